import json
import tempfile
from pathlib import Path
import click
import pytest
from click.testing import CliRunner
from doc_quiz_toolkit.cli import cli, parse_points

# 测试数据
DOC = """Cell Division

Mitosis is defined as the division of a nucleus into two identical nuclei. First the chromosomes are copied, then they line up in the middle of the cell.

Meiosis differs from mitosis because the daughter cells are not identical. However, both processes begin with copying the chromosomes.
"""

NO_CONFIG = ["-c", "does-not-exist.yaml"]


def _generate(tmp: Path, *extra: str):
    (tmp / "notes.txt").write_text(DOC, encoding="utf-8")
    runner = CliRunner()
    return runner.invoke(cli, NO_CONFIG + [
        "generate", "-i", str(tmp / "notes.txt"), "-o", str(tmp / "out" / "quiz"),
        "-n", "5", "--seed", "3", *extra,
    ])


def test_parse_points():
    assert parse_points("multiple_choice:1,essay:5-10") == {
        "multiple_choice": (1, 1), "essay": (5, 10),
    }
    assert parse_points('{"short_answer": [2, 4]}') == {"short_answer": (2, 4)}
    with pytest.raises(click.BadParameter):
        parse_points("true_false:3")


def test_generate_and_grade():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        result = _generate(tmp, "-f", "json", "-f", "csv", "--title", "Cells")
        assert result.exit_code == 0, result.output
        assert (tmp / "out" / "quiz.json").exists()
        assert (tmp / "out" / "quiz.csv").exists()

        data = json.loads((tmp / "out" / "quiz.json").read_text(encoding="utf-8"))
        assert data["title"] == "Cells"
        assert len(data["questions"]) == 5

        answers = {str(q["id"]): q["correctAnswer"] for q in data["questions"] if "correctAnswer" in q}
        (tmp / "answers.json").write_text(json.dumps(answers), encoding="utf-8")

        runner = CliRunner()
        result = runner.invoke(cli, NO_CONFIG + [
            "grade", "-q", str(tmp / "out" / "quiz.json"), "-a", str(tmp / "answers.json"),
            "-o", str(tmp / "out" / "feedback"),
        ])
        assert result.exit_code == 0, result.output
        assert "You scored" in result.output
        fb = json.loads((tmp / "out" / "feedback.json").read_text(encoding="utf-8"))
        assert set(fb["questionFeedback"]) == {"1", "2", "3", "4", "5"}


def test_generate_docx_with_points():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        result = _generate(tmp, "-f", "docx", "--points", "essay:6-6")
        assert result.exit_code == 0, result.output
        assert (tmp / "out" / "quiz.docx").exists()


def test_generate_bad_points():
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _generate(Path(tmpdir), "--points", "nonsense")
        assert result.exit_code != 0


def test_concepts_and_info():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        (tmp / "notes.txt").write_text(DOC, encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, NO_CONFIG + ["concepts", "-i", str(tmp / "notes.txt")])
        assert result.exit_code == 0, result.output
        assert "Mitosis" in result.output

        _generate(tmp, "-f", "json")
        result = runner.invoke(cli, NO_CONFIG + ["info", "-q", str(tmp / "out" / "quiz.json")])
        assert result.exit_code == 0, result.output
        assert "总题数: 5" in result.output


def test_info_reports_duplicates():
    dup = {"type": "short_answer", "text": "Define osmosis.", "points": 2,
           "correctAnswer": "Movement of water across a membrane"}
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        (tmp / "dup.json").write_text(json.dumps([{"id": 1, **dup}, {"id": 2, **dup}]), encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(cli, NO_CONFIG + ["info", "-q", str(tmp / "dup.json")])
        assert result.exit_code == 0, result.output
        assert "重复题目: 1" in result.output

        # 答案不同则不算重复
        other = {**dup, "id": 2, "correctAnswer": "Spreading of particles"}
        (tmp / "ok.json").write_text(json.dumps([{"id": 1, **dup}, other]), encoding="utf-8")
        result = runner.invoke(cli, NO_CONFIG + ["info", "-q", str(tmp / "ok.json")])
        assert result.exit_code == 0, result.output
        assert "重复题目" not in result.output


def test_grade_reports_bad_answers_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        tmp = Path(tmpdir)
        _generate(tmp, "-f", "json")
        (tmp / "answers.json").write_text("not json", encoding="utf-8")
        result = CliRunner().invoke(cli, NO_CONFIG + [
            "grade", "-q", str(tmp / "out" / "quiz.json"), "-a", str(tmp / "answers.json"),
        ])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output


if __name__ == "__main__":
    test_parse_points()
    test_generate_and_grade()
    test_generate_docx_with_points()
    test_generate_bad_points()
    test_concepts_and_info()
    test_info_reports_duplicates()
    test_grade_reports_bad_answers_file()
    print("All tests passed!")
