"""对外入口：文档 → 题目，题目 + 作答 → 反馈"""
from __future__ import annotations
import logging
import random
import time
from dataclasses import replace
from typing import Any
from doc_quiz_toolkit.concepts import extract_concepts
from doc_quiz_toolkit.exam.config import QuizConfig
from doc_quiz_toolkit.exam.generator import QuizGenerator, QuizGenerationError
from doc_quiz_toolkit.grader import grade
from doc_quiz_toolkit.models import Assignment, Question, SubmissionFeedback
from doc_quiz_toolkit.text import preprocess

logger = logging.getLogger(__name__)


def generate_questions(
    document_text: str,
    question_count: int,
    *,
    seed: int | None = None,
    config: QuizConfig | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    """
    从纯文本生成 question_count 道题，id 为 1..N。

    document_text 为空或全是空白、question_count < 1 时抛出 QuizGenerationError。
    seed 仅在未传入 rng 时生效；传入 config 时以参数 seed 优先。
    """
    if not document_text or not document_text.strip():
        raise QuizGenerationError("文档内容为空，无法出题")
    if question_count < 1:
        raise QuizGenerationError(f"题目数量必须 >= 1，当前为 {question_count}")

    config = config or QuizConfig()
    if seed is not None:
        config = replace(config, seed=seed)

    segments = preprocess(document_text)
    concepts = extract_concepts(segments)
    if concepts.is_empty:
        logger.info("未抽取到任何概念，全部使用通用模板出题")
    return QuizGenerator(segments, concepts, config, rng=rng).generate(question_count)


def evaluate_submission(
    questions: list[Question],
    answers: dict[str, Any],
) -> SubmissionFeedback:
    """answers 的键为字符串题号；多余的键忽略，缺失的键视为未作答"""
    return grade(questions, answers)


def build_assignment(
    document_text: str,
    title: str,
    question_count: int | None = None,
    *,
    description: str = "",
    material: str = "",
    config: QuizConfig | None = None,
    rng: random.Random | None = None,
) -> Assignment:
    config = config or QuizConfig()
    count = question_count if question_count is not None else config.count
    questions = generate_questions(document_text, count, config=config, rng=rng)
    return Assignment(
        title=title,
        description=description or f"{len(questions)} questions generated from {material or 'the material'}",
        questions=questions,
        material=material,
        created=time.time(),
    )
