"""题目 / 评分统计"""
from __future__ import annotations
from collections import Counter
import unicodedata
from doc_quiz_toolkit.models import QUESTION_KINDS, Question, SubmissionFeedback

KIND_ORDER = list(QUESTION_KINDS)


def _display_width(s: str) -> int:
    """计算字符串在终端的显示宽度"""
    return sum(2 if unicodedata.east_asian_width(c) in ("F", "W") else 1 for c in s)


def _pad_right(s: str, width: int) -> str:
    """按显示宽度右补空格"""
    return s + " " * (width - _display_width(s))


def _trunc(s: str, n: int = 60) -> str:
    s = (s or "").replace("\n", " ").strip()
    return s[:n] + "…" if len(s) > n else s


def summarize(questions: list[Question]) -> dict:
    by_kind = Counter(q.kind for q in questions)
    by_source = Counter(q.source or "unknown" for q in questions)
    points_by_kind = Counter()
    for q in questions:
        points_by_kind[q.kind] += q.points

    return {
        "total": len(questions),
        "max_score": sum(q.points for q in questions),
        "by_kind": {k: by_kind[k] for k in KIND_ORDER if by_kind.get(k)},
        "points_by_kind": {k: points_by_kind[k] for k in KIND_ORDER if points_by_kind.get(k)},
        "by_source": dict(by_source.most_common()),
        "fallback_count": by_source.get("fallback", 0),
    }


def _print_section(title: str, data: dict, total: int, show_bar: bool = True):
    print(f"\n{title}:")
    if not data:
        print("  (无数据)")
        return
    col_width = max(_display_width(k) for k in data) + 2
    max_count = max(data.values())
    for key, count in data.items():
        pct = f"({count / total * 100:>5.1f}%)"
        bar = " " + "■" * round(count / max_count * 20) if show_bar else ""
        print(f"  {_pad_right(key, col_width)} {count:>5d} {pct}{bar}")


def print_summary(questions: list[Question]) -> None:
    """打印题目统计到终端"""
    s = summarize(questions)
    total = s["total"] or 1
    print(f"\n{'='*50}")
    print("📊 题目统计")
    print(f"{'='*50}")
    print(f"总题数: {s['total']} 道, 总分: {s['max_score']} 分")

    _print_section("按题型", s["by_kind"], total)
    _print_section("按来源", s["by_source"], total)

    if s["fallback_count"]:
        print(f"\n⚠️  通用模板兜底题目: {s['fallback_count']} 道（原文可抽取的概念不足）")
    print(f"{'='*50}\n")


def print_feedback(
    questions: list[Question],
    feedback: SubmissionFeedback,
    full: bool = False,
) -> None:
    """逐题打印评分结果"""
    W = 70
    print(f"\n{'═' * W}")
    print(f"  {feedback.overall_feedback}")
    print(f"{'─' * W}")
    for q in questions:
        qf = feedback.question_feedback.get(str(q.id))
        if qf is None:
            continue
        flag = "✅" if qf.is_correct else ("➖" if qf.points else "❌")
        print(f"  [{q.id}] {flag} {qf.points:g}/{q.points}  {q.kind}")
        print(f"      {q.text if full else _trunc(q.text)}")
        print(f"      {qf.feedback if full else _trunc(qf.feedback, 120)}")
    print(f"{'═' * W}\n")
