from __future__ import annotations
import hashlib
import logging
import re
from doc_quiz_toolkit.models import Question

logger = logging.getLogger(__name__)


def _normalize_text(text: str) -> str:
    """去除空白、标点差异，统一用于指纹计算"""
    text = re.sub(r"\s+", " ", text or "").strip().lower()
    return re.sub(r"[^\w ]", "", text)


def compute_fingerprint(q: Question, strategy: str = "strict") -> str:
    """
    计算题目指纹。

    strategy:
        - content: 仅基于题型 + 题干
        - strict:  题型 + 题干 + 答案文本 + 选项(排序)
    """
    parts: list[str] = [q.kind, _normalize_text(q.text)]

    if strategy == "strict":
        parts.append(_normalize_text(q.correct_answer or ""))
        # 排序选项，消除顺序差异
        parts.extend(sorted(_normalize_text(opt) for opt in q.options))

    raw_str = "|".join(parts)
    return hashlib.sha256(raw_str.encode("utf-8")).hexdigest()[:16]


def deduplicate(
    questions: list[Question],
    strategy: str = "strict",
) -> list[Question]:
    """
    去重，返回去重后的列表。
    保留首次出现的题目，后续重复的丢弃。
    """
    seen: dict[str, Question] = {}
    duplicates = 0

    for q in questions:
        fp = compute_fingerprint(q, strategy)
        q.fingerprint = fp
        if fp in seen:
            duplicates += 1
        else:
            seen[fp] = q

    result = list(seen.values())
    if duplicates:
        logger.info("去重完成: %d -> %d (去除 %d 条重复)", len(questions), len(result), duplicates)
    return result
