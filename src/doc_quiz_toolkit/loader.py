from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any
from doc_quiz_toolkit.models import QUESTION_KINDS, Question

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".txt", ".md")


def load_document(path: str | Path) -> str:
    """
    读取纯文本资料。

    path 为文件时直接读取；为目录时按文件名顺序读取其中所有 .txt/.md，
    以空行拼接（保留段落边界）。PDF 等格式需先在外部转换成文本。
    """
    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"输入路径不存在: {input_path}")

    if input_path.is_file():
        return input_path.read_text(encoding="utf-8")

    parts = []
    for fp in sorted(input_path.rglob("*")):
        if not fp.is_file() or fp.suffix.lower() not in DOCUMENT_SUFFIXES:
            continue
        try:
            parts.append(fp.read_text(encoding="utf-8"))
        except UnicodeDecodeError as e:
            logger.warning("跳过无法解码的文件 %s: %s", fp, e)
    logger.info("加载完成: %d 个文本文件", len(parts))
    return "\n\n".join(parts)


def question_from_dict(raw: dict[str, Any]) -> Question:
    kind = raw.get("type") or raw.get("kind")
    if kind not in QUESTION_KINDS:
        raise ValueError(f"未知题型: {kind!r}")
    try:
        qid = int(raw["id"])
    except (KeyError, TypeError, ValueError):
        raise ValueError(f"题目缺少有效 id: {raw!r}")

    answer = raw.get("correctAnswer", raw.get("correct_answer"))
    if isinstance(answer, list):
        answer = ", ".join(str(a) for a in answer)

    try:
        points = int(raw.get("points", 1))
    except (TypeError, ValueError):
        raise ValueError(f"题目 {qid} 分值无效: {raw.get('points')!r}")
    if points < 1:
        raise ValueError(f"题目 {qid} 分值必须 >= 1")

    return Question(
        id=qid,
        kind=kind,
        text=str(raw.get("text", "")),
        points=points,
        options=[str(o) for o in raw.get("options") or []],
        correct_answer=answer,
        source=str(raw.get("source", "")),
    )


def load_questions(path: str | Path) -> list[Question]:
    """读取题目 JSON：题目列表，或含 questions 字段的作业对象"""
    fp = Path(path)
    if not fp.exists():
        raise FileNotFoundError(f"题目文件不存在: {fp}")
    try:
        data = json.loads(fp.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"题目文件不是有效的 JSON: {fp} ({e})")

    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise ValueError(f"题目文件格式错误: {fp}")
    return [question_from_dict(item) for item in data]


def load_answers(path: str | Path) -> dict[str, Any]:
    """读取作答 JSON：{题号: 字符串 或 字符串列表}，题号统一转为字符串"""
    fp = Path(path)
    if not fp.exists():
        raise FileNotFoundError(f"作答文件不存在: {fp}")
    try:
        data = json.loads(fp.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"作答文件不是有效的 JSON: {fp} ({e})")

    if isinstance(data, dict) and isinstance(data.get("answers"), dict):
        data = data["answers"]
    if not isinstance(data, dict):
        raise ValueError(f"作答文件格式错误，应为对象: {fp}")
    return {str(k): v for k, v in data.items()}
