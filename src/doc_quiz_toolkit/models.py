from __future__ import annotations
from dataclasses import dataclass, field

MULTIPLE_CHOICE = "multiple_choice"
SHORT_ANSWER = "short_answer"
ESSAY = "essay"

QUESTION_KINDS = (MULTIPLE_CHOICE, SHORT_ANSWER, ESSAY)


@dataclass
class TextSegments:
    """预处理后的文档视图，每篇文档只生成一次"""
    full_text: str = ""                                  # 空白折叠后的全文
    paragraphs: list[str] = field(default_factory=list)
    sentences: list[str] = field(default_factory=list)   # 已按长度过滤
    headings: list[str] = field(default_factory=list)


@dataclass
class Topic:
    label: str


@dataclass
class Definition:
    term: str
    sentence: str       # 整句原文，而非匹配到的后半句


@dataclass
class Process:
    topic: str          # 段落首句（或前 50 字符）
    text: str           # 来源段落


@dataclass
class Comparison:
    elements: list[str] = field(default_factory=list)   # 0~2 个比较对象
    text: str = ""


@dataclass
class ConceptSet:
    """四类抽取结果的汇总"""
    topics: list[Topic] = field(default_factory=list)
    definitions: list[Definition] = field(default_factory=list)
    processes: list[Process] = field(default_factory=list)
    comparisons: list[Comparison] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (len(self.topics) + len(self.definitions)
                + len(self.processes) + len(self.comparisons))

    @property
    def is_empty(self) -> bool:
        return self.total == 0


@dataclass
class Question:
    """单道测验题，组卷结束后 id 重新编号为 1..N"""
    id: int
    kind: str                                            # multiple_choice / short_answer / essay
    text: str                                            # 题干
    points: int = 1
    options: list[str] = field(default_factory=list)     # 仅选择题，固定 4 项
    correct_answer: str | None = None                    # 论述题为 None
    source: str = ""                                     # definition/topic/process/comparison/paragraph/fallback
    fingerprint: str = ""                                # 去重指纹，由 dedup 模块填充


@dataclass
class QuestionFeedback:
    points: float
    feedback: str
    is_correct: bool = False


@dataclass
class SubmissionFeedback:
    overall_feedback: str
    score: int                                           # 0~100 百分制
    question_feedback: dict[str, QuestionFeedback] = field(default_factory=dict)
    total_earned: float = 0
    max_score: int = 0


@dataclass
class Assignment:
    """生成的作业：标题 + 说明 + 题目，持久化由调用方负责"""
    title: str
    description: str = ""
    questions: list[Question] = field(default_factory=list)
    material: str = ""                                   # 来源文档名
    created: float = 0.0

    @property
    def max_score(self) -> int:
        return sum(q.points for q in self.questions)
