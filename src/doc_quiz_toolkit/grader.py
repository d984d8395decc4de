"""评分：按题型打分 + 汇总反馈

所有阈值均为经验值，保持为具名常量，不要随意调整。
"""
from __future__ import annotations
import logging
import math
import re
from typing import Any, Callable
from doc_quiz_toolkit.exam.templates import extract_prompt_topics
from doc_quiz_toolkit.models import (
    ESSAY, MULTIPLE_CHOICE, SHORT_ANSWER,
    Question, QuestionFeedback, SubmissionFeedback,
)
from doc_quiz_toolkit.text import key_terms, word_tokens

logger = logging.getLogger(__name__)

NO_ANSWER_FEEDBACK = "No answer provided."
INVALID_FORMAT_FEEDBACK = "Invalid answer format."

# ── 选择题 ──
MC_HIGH_SIMILARITY = 0.7
MC_HIGH_CREDIT = 0.5
MC_LOW_SIMILARITY = 0.3
MC_LOW_CREDIT = 0.2

# ── 简答题 ──  (最低比例, 得分比例, 反馈)
SHORT_ANSWER_BANDS = (
    (0.8, 1.0, "Excellent! Your answer covers the key points."),
    (0.6, 0.8, "Good answer, but some details are missing."),
    (0.4, 0.6, "Partially correct. Your answer covers some of the key points."),
    (0.2, 0.3, "Your answer is missing many of the key points."),
)
SHORT_ANSWER_FLOOR = (0.1, "Your answer does not address the key points of the question.")
SHORT_ANSWER_CORRECT_RATIO = 0.8
MAX_MISSING_TERMS = 3

# ── 论述题 ──
ESSAY_LENGTH_BANDS = (
    (200, 0.40, "Your essay has good length and depth."),
    (100, 0.30, "Your essay has adequate length."),
    (50, 0.15, "Your essay is somewhat brief; consider expanding your ideas."),
)
ESSAY_LENGTH_FLOOR = (0.05, "Your essay is too short to fully address the question.")

ESSAY_STRUCTURE_FULL = (0.30, "Your essay is well structured, with a clear introduction, body and conclusion.")
ESSAY_STRUCTURE_PARTIAL = (0.20, "Your essay has a reasonable structure but could be better organized.")
ESSAY_STRUCTURE_PARAGRAPHS = (0.10, "Your essay is divided into paragraphs but needs a clearer introduction and conclusion.")
ESSAY_STRUCTURE_NONE = (0.0, "Your essay needs better structure, with distinct paragraphs, an introduction and a conclusion.")
MIN_STRUCTURE_PARAGRAPH_LEN = 30
MIN_ESSAY_PARAGRAPHS = 3

ESSAY_COVERAGE_BANDS = (
    (0.8, 0.30, "You thoroughly addressed the topics in the question."),
    (0.5, 0.20, "You addressed the main topics of the question."),
    (0.3, 0.10, "You touched on some of the topics but should address them more directly."),
)
ESSAY_COVERAGE_FLOOR = (0.0, "Your essay does not sufficiently address the topics in the question.")
# 题干中解析不出主题时的覆盖度得分
ESSAY_COVERAGE_UNKNOWN = (0.10, "The question names no specific topics, so coverage was judged leniently.")
ESSAY_CORRECT_RATIO = 0.7

TRANSITION_WORDS = frozenset({
    "however", "furthermore", "moreover", "additionally", "therefore",
    "thus", "also", "finally", "consequently", "besides", "similarly",
    "nevertheless", "nonetheless", "hence", "meanwhile", "conversely",
})

CONCLUSION_MARKERS = (
    "in conclusion", "to conclude", "in summary", "to summarize", "to sum up",
    "overall", "therefore", "thus", "ultimately", "finally", "in short",
    "consequently", "all in all",
)
_CONCLUSION_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(m) for m in CONCLUSION_MARKERS) + r")\b"
)

# ── 总评 ──
SCORE_BANDS = (
    (90, "Excellent work! You have demonstrated a strong understanding of the material."),
    (80, "Great job! You have a good grasp of most of the concepts."),
    (70, "Good effort. Review the questions you missed to strengthen your understanding."),
    (60, "You passed, but there is room for improvement. Focus on the key concepts you missed."),
)
SCORE_FLOOR_TEXT = (
    "You need to review this material more thoroughly. "
    "Revisit the key concepts and try again."
)

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_FIRST_WORD_RE = re.compile(r"[a-z]+")


class GradingError(Exception):
    pass


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def format_points(value: float) -> str:
    return f"{value:g}"


def _award(points: int, fraction: float) -> float:
    return round(points * fraction, 2)


def word_similarity(a: str, b: str) -> float:
    """对称词重叠相似度：长度 > 3 的词集合交并比"""
    ta, tb = word_tokens(a), word_tokens(b)
    union = ta | tb
    if not union:
        return 0.0
    return len(ta & tb) / len(union)


# ── 选择题 ──

def _as_choice(answer: Any) -> str:
    if isinstance(answer, str):
        return answer
    if isinstance(answer, (list, tuple)):
        return ", ".join(str(a) for a in answer)
    return str(answer)


def grade_multiple_choice(question: Question, answer: Any) -> QuestionFeedback:
    submitted = _as_choice(answer).strip()
    correct = (question.correct_answer or "").strip()
    if submitted == correct:
        return QuestionFeedback(points=question.points, feedback="Correct!", is_correct=True)

    similarity = word_similarity(submitted, correct)
    if similarity > MC_HIGH_SIMILARITY:
        fraction = MC_HIGH_CREDIT
    elif similarity > MC_LOW_SIMILARITY:
        fraction = MC_LOW_CREDIT
    else:
        fraction = 0.0

    if fraction:
        feedback = f"Partially correct. The correct answer is: {correct}"
    else:
        feedback = f"Incorrect. The correct answer is: {correct}"
    return QuestionFeedback(points=_award(question.points, fraction), feedback=feedback)


# ── 简答题 ──

def key_term_coverage(submitted: str, correct: str) -> tuple[float, list[str]]:
    """返回 (命中比例, 缺失关键词)；关键词与作答词任一方向包含即算命中"""
    expected = key_terms(correct)
    if not expected:
        return 0.0, []
    given = key_terms(submitted)
    missing = [
        term for term in expected
        if not any(term in w or w in term for w in given)
    ]
    return (len(expected) - len(missing)) / len(expected), missing


def grade_short_answer(question: Question, answer: Any) -> QuestionFeedback:
    if not isinstance(answer, str):
        return QuestionFeedback(points=0, feedback=INVALID_FORMAT_FEEDBACK)

    submitted = answer.strip().lower()
    correct = (question.correct_answer or "").strip().lower()
    if correct and (correct in submitted or submitted in correct):
        return QuestionFeedback(
            points=question.points,
            feedback="Correct! Your answer matches the expected answer.",
            is_correct=True,
        )

    ratio, missing = key_term_coverage(submitted, correct)
    fraction, feedback = SHORT_ANSWER_FLOOR
    for threshold, credit, text in SHORT_ANSWER_BANDS:
        if ratio >= threshold:
            fraction, feedback = credit, text
            break

    if 0.2 < ratio < 1.0 and missing:
        feedback += f" Consider including: {', '.join(missing[:MAX_MISSING_TERMS])}."

    return QuestionFeedback(
        points=_award(question.points, fraction),
        feedback=feedback,
        is_correct=ratio >= SHORT_ANSWER_CORRECT_RATIO,
    )


# ── 论述题 ──

def _essay_length(words: int) -> tuple[float, str]:
    for threshold, fraction, text in ESSAY_LENGTH_BANDS:
        if words > threshold:
            return fraction, text
    return ESSAY_LENGTH_FLOOR


def _opens_with_transition(paragraph: str) -> bool:
    m = _FIRST_WORD_RE.search(paragraph.lower())
    return bool(m) and m.group(0) in TRANSITION_WORDS


def _essay_structure(paragraphs: list[str]) -> tuple[float, str]:
    has_intro = bool(paragraphs) and (
        len(paragraphs[0]) > MIN_STRUCTURE_PARAGRAPH_LEN
        and not _opens_with_transition(paragraphs[0])
    )
    # 结论必须是独立的末段
    last = paragraphs[-1].lower() if len(paragraphs) > 1 else ""
    has_conclusion = (
        len(last) > MIN_STRUCTURE_PARAGRAPH_LEN
        and _CONCLUSION_RE.search(last) is not None
    )
    has_paragraphs = len(paragraphs) >= MIN_ESSAY_PARAGRAPHS

    hits = sum((has_intro, has_conclusion, has_paragraphs))
    if hits == 3:
        return ESSAY_STRUCTURE_FULL
    if hits == 2:
        return ESSAY_STRUCTURE_PARTIAL
    if has_paragraphs:
        return ESSAY_STRUCTURE_PARAGRAPHS
    return ESSAY_STRUCTURE_NONE


def topic_coverage(essay: str, topics: list[str]) -> float:
    if not topics:
        return 0.0
    lowered = essay.lower()
    occurrences = sum(lowered.count(t.lower()) for t in topics)
    return min(1.0, occurrences / (2 * len(topics)))


def _essay_coverage(essay: str, prompt: str) -> tuple[float, str]:
    topics = extract_prompt_topics(prompt)
    if not topics:
        return ESSAY_COVERAGE_UNKNOWN
    coverage = topic_coverage(essay, topics)
    for threshold, fraction, text in ESSAY_COVERAGE_BANDS:
        if coverage > threshold:
            return fraction, text
    return ESSAY_COVERAGE_FLOOR


def grade_essay(question: Question, answer: Any) -> QuestionFeedback:
    if not isinstance(answer, str):
        return QuestionFeedback(points=0, feedback=INVALID_FORMAT_FEEDBACK)

    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(answer) if p.strip()]
    length_frac, length_text = _essay_length(len(answer.split()))
    structure_frac, structure_text = _essay_structure(paragraphs)
    coverage_frac, coverage_text = _essay_coverage(answer, question.text)

    raw = question.points * (length_frac + structure_frac + coverage_frac)
    earned = min(int(math.floor(raw + 1e-9)), question.points)
    return QuestionFeedback(
        points=earned,
        feedback=" ".join((length_text, structure_text, coverage_text)),
        is_correct=earned >= question.points * ESSAY_CORRECT_RATIO,
    )


GRADERS: dict[str, Callable[[Question, Any], QuestionFeedback]] = {
    MULTIPLE_CHOICE: grade_multiple_choice,
    SHORT_ANSWER: grade_short_answer,
    ESSAY: grade_essay,
}


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str):
        return not answer.strip()
    if isinstance(answer, (list, tuple)):
        return not any(str(a).strip() for a in answer)
    return False


def grade_question(question: Question, answer: Any) -> QuestionFeedback:
    if _is_blank(answer):
        return QuestionFeedback(points=0, feedback=NO_ANSWER_FEEDBACK)
    handler = GRADERS.get(question.kind)
    if handler is None:
        logger.warning("未知题型 %s (id=%s)，按无效作答处理", question.kind, question.id)
        return QuestionFeedback(points=0, feedback=INVALID_FORMAT_FEEDBACK)
    return handler(question, answer)


def overall_feedback(total_earned: float, max_score: int, score: int) -> str:
    band = SCORE_FLOOR_TEXT
    for threshold, text in SCORE_BANDS:
        if score >= threshold:
            band = text
            break
    return (
        f"You scored {format_points(total_earned)} out of {max_score} points "
        f"({score}%). {band}"
    )


def grade(questions: list[Question], answers: dict[str, Any]) -> SubmissionFeedback:
    if not questions:
        raise GradingError("题目列表为空，无法评分")

    answers = answers or {}
    results: dict[str, QuestionFeedback] = {}
    total_earned = 0.0
    max_score = 0

    for q in questions:
        max_score += q.points
        key = str(q.id)
        fb = grade_question(q, answers.get(key))
        results[key] = fb
        total_earned += fb.points

    if max_score <= 0:
        raise GradingError("总分为 0，无法计算百分比")

    total_earned = round(total_earned, 2)
    score = round_half_up(100 * total_earned / max_score)
    logger.debug("评分完成: %s / %d (%d%%)", format_points(total_earned), max_score, score)
    return SubmissionFeedback(
        overall_feedback=overall_feedback(total_earned, max_score, score),
        score=score,
        question_feedback=results,
        total_earned=total_earned,
        max_score=max_score,
    )
