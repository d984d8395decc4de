"""导出器注册表"""
from __future__ import annotations
import importlib
from typing import Callable
from doc_quiz_toolkit.exporters.base import BaseExporter

_REGISTRY: dict[str, type[BaseExporter]] = {}

_BUILTIN = ("json_exporter", "csv_exporter", "xlsx_exporter")


def register(name: str) -> Callable[[type[BaseExporter]], type[BaseExporter]]:
    def deco(cls: type[BaseExporter]) -> type[BaseExporter]:
        _REGISTRY[name] = cls
        return cls
    return deco


def discover() -> None:
    """导入内置导出器模块，触发 @register"""
    for mod in _BUILTIN:
        importlib.import_module(f"doc_quiz_toolkit.exporters.{mod}")


def get_exporter(name: str) -> BaseExporter:
    if name not in _REGISTRY:
        raise KeyError(f"未知导出格式: {name}，可选: {', '.join(sorted(_REGISTRY))}")
    return _REGISTRY[name]()


def available() -> list[str]:
    return sorted(_REGISTRY)
