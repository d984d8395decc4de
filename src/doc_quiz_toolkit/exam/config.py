"""组卷配置"""
from __future__ import annotations
from dataclasses import dataclass, field


def _default_points() -> dict[str, tuple[int, int]]:
    return {
        "multiple_choice": (1, 1),
        "short_answer": (2, 3),
        "essay": (5, 10),
    }


@dataclass
class QuizConfig:
    title: str = "Practice Quiz"
    description: str = ""
    count: int = 5

    # 题型比例：选择 / 简答各约 40%，论述取余数
    multiple_choice_ratio: float = 0.4
    short_answer_ratio: float = 0.4

    # 各题型中优先使用对应概念的比例上限
    definition_share: float = 0.6      # 选择题中基于定义的比例
    process_share: float = 0.5         # 简答题中基于过程的比例
    comparison_share: float = 0.6      # 论述题中基于比较的比例

    # 每种题型的分值区间（闭区间），例: {"essay": (5, 10)}
    points: dict[str, tuple[int, int]] = field(default_factory=_default_points)

    answer_limit: int = 60             # 选择题选项截断长度
    paragraph_answer_limit: int = 200  # 简答题参考答案截断长度
    snippet_limit: int = 100           # 题干中引用原文的截断长度

    seed: int | None = None
    show_answers: bool = False
    answer_sheet: bool = True
