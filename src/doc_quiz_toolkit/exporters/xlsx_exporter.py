from __future__ import annotations
from pathlib import Path
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter
from doc_quiz_toolkit.models import MULTIPLE_CHOICE, Question
from doc_quiz_toolkit.exporters import register
from doc_quiz_toolkit.exporters.base import BaseExporter

HEADER_LABELS = {
    "id":             "No.",
    "kind":           "Type",
    "source":         "Source",
    "points":         "Points",
    "text":           "Question",
    "options":        "Options",
    "correct_answer": "Answer",
    "fingerprint":    "Fingerprint",
}
for i in range(4):
    HEADER_LABELS[f"option_{chr(65 + i)}"] = f"Option {chr(65 + i)}"

COL_WIDTHS = {
    "id":             6,
    "points":         8,
    "text":           60,
    "options":        80,
    "correct_answer": 50,
    "fingerprint":    18,
}
for i in range(4):
    COL_WIDTHS[f"option_{chr(65 + i)}"] = 30

_HEADER_FILL  = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
_ANSWER_FILL  = PatternFill(start_color="E8F4E8", end_color="E8F4E8", fill_type="solid")


@register("xlsx")
class XlsxExporter(BaseExporter):

    def export(self, questions: list[Question], output_path: Path, **kwargs) -> None:
        split_options = kwargs.get("split_options", True)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fp = output_path.with_suffix(".xlsx")

        rows, columns = self.flatten(questions, split_options=split_options)

        wb = Workbook()
        ws = wb.active
        ws.title = "Questions"

        header_font = Font(bold=True, color="FFFFFF")

        # 表头
        for col_idx, col_key in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=HEADER_LABELS.get(col_key, col_key))
            cell.font = header_font
            cell.fill = _HEADER_FILL
            cell.alignment = Alignment(horizontal="center")

        # 数据行
        for row_idx, row in enumerate(rows, 2):
            for col_idx, col_key in enumerate(columns, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=row.get(col_key, ""))
                cell.alignment = Alignment(wrap_text=True, vertical="top")

            # 选择题：正确选项所在单元格标绿
            if split_options and row["kind"] == MULTIPLE_CHOICE:
                for j in range(4):
                    key = f"option_{chr(65 + j)}"
                    if row.get(key) and row[key] == row["correct_answer"]:
                        ws.cell(row=row_idx, column=columns.index(key) + 1).fill = _ANSWER_FILL

        # 列宽
        for col_idx, col_key in enumerate(columns, 1):
            letter = get_column_letter(col_idx)
            ws.column_dimensions[letter].width = COL_WIDTHS.get(col_key, 14)

        # 冻结首行
        ws.freeze_panes = "A2"
        last_col = get_column_letter(len(columns))
        ws.auto_filter.ref = f"A1:{last_col}{len(rows) + 1}"

        wb.save(fp)
        print(f"[INFO] XLSX 导出完成: {fp} ({len(rows)} 行, {len(columns)} 列)")
