from __future__ import annotations
import json
from pathlib import Path
from typing import Any
from doc_quiz_toolkit.models import Assignment, Question, SubmissionFeedback
from doc_quiz_toolkit.exporters import register
from doc_quiz_toolkit.exporters.base import BaseExporter


def question_to_dict(q: Question) -> dict[str, Any]:
    """序列化为对外 JSON 结构（camelCase 字段名）"""
    d: dict[str, Any] = {
        "id": q.id,
        "type": q.kind,
        "text": q.text,
        "points": q.points,
    }
    if q.options:
        d["options"] = list(q.options)
    if q.correct_answer is not None:
        d["correctAnswer"] = q.correct_answer
    if q.source:
        d["source"] = q.source
    return d


def feedback_to_dict(fb: SubmissionFeedback) -> dict[str, Any]:
    return {
        "overallFeedback": fb.overall_feedback,
        "score": fb.score,
        "totalEarned": fb.total_earned,
        "maxScore": fb.max_score,
        "questionFeedback": {
            qid: {
                "points": qf.points,
                "feedback": qf.feedback,
                "isCorrect": qf.is_correct,
            }
            for qid, qf in fb.question_feedback.items()
        },
    }


def assignment_to_dict(a: Assignment) -> dict[str, Any]:
    return {
        "title": a.title,
        "description": a.description,
        "material": a.material,
        "created": a.created,
        "maxScore": a.max_score,
        "questions": [question_to_dict(q) for q in a.questions],
    }


def write_json(data: Any, fp: Path) -> Path:
    fp.parent.mkdir(parents=True, exist_ok=True)
    fp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    return fp


@register("json")
class JsonExporter(BaseExporter):

    def export(self, questions: list[Question], output_path: Path, **kwargs) -> None:
        fp = output_path.with_suffix(".json")
        assignment = kwargs.get("assignment")
        if assignment is not None:
            data = assignment_to_dict(assignment)
        else:
            data = [question_to_dict(q) for q in questions]
        write_json(data, fp)
        print(f"[INFO] JSON 导出完成: {fp} ({len(questions)} 题)")
