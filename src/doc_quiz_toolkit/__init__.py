"""文档 → 测验题 → 评分反馈 的启发式流水线"""
from doc_quiz_toolkit.pipeline import build_assignment, evaluate_submission, generate_questions

__all__ = [
    "build_assignment",
    "evaluate_submission",
    "generate_questions",
]
