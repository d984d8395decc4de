from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from doc_quiz_toolkit.models import Question

OPTION_COUNT = 4


class BaseExporter(ABC):

    @abstractmethod
    def export(self, questions: list[Question], output_path: Path, **kwargs) -> None:
        ...

    @staticmethod
    def get_columns(split_options: bool = True) -> list[str]:
        base = ["id", "kind", "source", "points", "text"]
        if split_options:
            opt_cols = [f"option_{chr(65 + i)}" for i in range(OPTION_COUNT)]
        else:
            opt_cols = ["options"]
        return base + opt_cols + ["correct_answer", "fingerprint"]

    @staticmethod
    def flatten(
        questions: list[Question],
        split_options: bool = True,
    ) -> tuple[list[dict], list[str]]:
        """
        展平 Question 列表为行记录。

        split_options=True 时选项拆为 option_A..option_D 四列，
        非选择题留空；否则合并为 options 一列，以 " | " 分隔。
        """
        columns = BaseExporter.get_columns(split_options)

        rows = []
        for q in questions:
            row = {
                "id":             q.id,
                "kind":           q.kind,
                "source":         q.source,
                "points":         q.points,
                "text":           q.text,
                "correct_answer": q.correct_answer or "",
                "fingerprint":    q.fingerprint,
            }
            if split_options:
                for j in range(OPTION_COUNT):
                    row[f"option_{chr(65 + j)}"] = q.options[j] if j < len(q.options) else ""
            else:
                row["options"] = " | ".join(q.options)
            rows.append(row)

        return rows, columns
