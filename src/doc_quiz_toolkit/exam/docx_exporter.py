"""测验 Word 导出"""
from __future__ import annotations
from pathlib import Path
from docx import Document
from docx.shared import Pt, Cm, RGBColor
from docx.enum.text import WD_ALIGN_PARAGRAPH
from doc_quiz_toolkit.models import ESSAY, MULTIPLE_CHOICE, Question
from doc_quiz_toolkit.exam.config import QuizConfig
from doc_quiz_toolkit.exam.generator import KIND_LABELS

_ANSWER_COLOR = RGBColor(0x00, 0x66, 0x00)
_MUTED_COLOR = RGBColor(0x66, 0x66, 0x66)

_OPTION_LABELS = "ABCDEFGHIJ"

# 作答区空行数
_ANSWER_LINES = {
    "short_answer": 3,
    "essay": 10,
}


class QuizDocxExporter:

    def __init__(self, config: QuizConfig):
        self.config = config

    def export(self, questions: list[Question], output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fp = output_path.with_suffix(".docx")

        doc = Document()
        self._set_default_font(doc)
        self._add_header(doc, questions)
        self._add_questions(doc, questions)

        if self.config.answer_sheet:
            doc.add_page_break()
            self._add_answer_sheet(doc, questions)

        doc.save(str(fp))
        print(f"[INFO] 测验导出完成: {fp} ({len(questions)} 题)")
        return fp

    # ── 页面设置 ──

    @staticmethod
    def _set_default_font(doc: Document):
        style = doc.styles["Normal"]
        style.font.name = "Calibri"
        style.font.size = Pt(11)
        style.paragraph_format.space_after = Pt(2)
        style.paragraph_format.line_spacing = 1.15
        for section in doc.sections:
            section.top_margin    = Cm(2.5)
            section.bottom_margin = Cm(2.5)
            section.left_margin   = Cm(2.5)
            section.right_margin  = Cm(2.5)

    # ── 试卷头 ──

    def _add_header(self, doc: Document, questions: list[Question]):
        cfg = self.config
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run(cfg.title)
        run.bold = True
        run.font.size = Pt(18)

        if cfg.description:
            p = doc.add_paragraph()
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = p.add_run(cfg.description)
            run.font.size = Pt(12)

        total = sum(q.points for q in questions)
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run(f"{len(questions)} questions    Total: {total} points")
        run.font.size = Pt(10)
        run.font.color.rgb = _MUTED_COLOR
        doc.add_paragraph("_" * 60)

    # ── 题目区 ──

    def _add_questions(self, doc: Document, questions: list[Question]):
        current_kind = ""
        for q in questions:
            if q.kind != current_kind:
                current_kind = q.kind
                p = doc.add_paragraph()
                p.paragraph_format.space_before = Pt(12)
                run = p.add_run(KIND_LABELS.get(current_kind, current_kind))
                run.bold = True
                run.font.size = Pt(13)

            p = doc.add_paragraph()
            run = p.add_run(f"{q.id}. {q.text}")
            run.font.size = Pt(11)
            run = p.add_run(f"  ({q.points} pt{'s' if q.points != 1 else ''})")
            run.font.size = Pt(9)
            run.font.color.rgb = _MUTED_COLOR

            if q.kind == MULTIPLE_CHOICE:
                self._add_options(doc, q.options)
            else:
                for _ in range(_ANSWER_LINES.get(q.kind, 3)):
                    doc.add_paragraph("_" * 60)

            if self.config.show_answers and q.correct_answer:
                self._add_inline_answer(doc, q)

            doc.add_paragraph("")

    @staticmethod
    def _add_options(doc: Document, options: list[str]):
        for i, opt in enumerate(options):
            p = doc.add_paragraph()
            run = p.add_run(f"    {_OPTION_LABELS[i]}. {opt}")
            run.font.size = Pt(10.5)
            p.paragraph_format.space_after  = Pt(0)
            p.paragraph_format.space_before = Pt(0)

    @staticmethod
    def _add_inline_answer(doc: Document, q: Question) -> None:
        p = doc.add_paragraph()
        run = p.add_run(f"Answer: {q.correct_answer}")
        run.font.size = Pt(9)
        run.font.color.rgb = _ANSWER_COLOR

    # ── 答案页 ──

    def _add_answer_sheet(self, doc: Document, questions: list[Question]):
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run("Answer Key")
        run.bold = True
        run.font.size = Pt(14)
        doc.add_paragraph("")

        for q in questions:
            p = doc.add_paragraph()
            p.paragraph_format.space_after  = Pt(1)
            p.paragraph_format.space_before = Pt(1)
            run = p.add_run(f"{q.id}. ")
            run.font.size = Pt(10)

            if q.kind == ESSAY:
                run = p.add_run("Graded on length, structure and coverage of the topics in the prompt.")
                run.italic = True
                run.font.size = Pt(9)
                run.font.color.rgb = _MUTED_COLOR
                continue

            answer = q.correct_answer or "—"
            if q.kind == MULTIPLE_CHOICE and q.correct_answer in q.options:
                answer = f"{_OPTION_LABELS[q.options.index(q.correct_answer)]}. {answer}"
            run = p.add_run(answer)
            run.bold = q.kind == MULTIPLE_CHOICE
            run.font.size = Pt(10)
            run.font.color.rgb = _ANSWER_COLOR
