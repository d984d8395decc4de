"""自动出题组件"""
from doc_quiz_toolkit.exam.config import QuizConfig
from doc_quiz_toolkit.exam.generator import (
    QuizGenerator, QuizGenerationError, split_targets, synthesize,
)
from doc_quiz_toolkit.exam.docx_exporter import QuizDocxExporter

__all__ = [
    "QuizConfig",
    "QuizGenerator",
    "QuizGenerationError",
    "QuizDocxExporter",
    "split_targets",
    "synthesize",
]
