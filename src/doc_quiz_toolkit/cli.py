from __future__ import annotations
import click
import logging
import yaml
import sys
import json as _json
from dataclasses import replace
from pathlib import Path
from doc_quiz_toolkit.concepts import extract_concepts
from doc_quiz_toolkit.dedup import deduplicate
from doc_quiz_toolkit.exam import QuizConfig, QuizDocxExporter, QuizGenerationError
from doc_quiz_toolkit.exporters import discover as discover_exporters, get_exporter
from doc_quiz_toolkit.exporters.json_exporter import feedback_to_dict, write_json
from doc_quiz_toolkit.grader import GradingError
from doc_quiz_toolkit.loader import load_answers, load_document, load_questions
from doc_quiz_toolkit.models import QUESTION_KINDS
from doc_quiz_toolkit.pipeline import build_assignment, evaluate_submission
from doc_quiz_toolkit.stats import print_feedback, print_summary
from doc_quiz_toolkit.text import preprocess


def _load_config(config_path: str) -> dict:
    p = Path(config_path)
    if p.exists():
        return yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return {}


def _as_range(val) -> tuple[int, int]:
    if isinstance(val, (list, tuple)) and len(val) == 2:
        return int(val[0]), int(val[1])
    if isinstance(val, str) and "-" in val:
        lo, hi = val.split("-", 1)
        return int(lo.strip()), int(hi.strip())
    n = int(val)
    return n, n


def parse_points(raw: str) -> dict[str, tuple[int, int]]:
    """解析 --points 参数, 支持 JSON 和简写格式"""
    raw = raw.strip()

    if raw.startswith("{"):
        try:
            return {k: _as_range(v) for k, v in _json.loads(raw).items()}
        except (_json.JSONDecodeError, ValueError, TypeError):
            pass

    try:
        result = {}
        for pair in raw.split(","):
            pair = pair.strip()
            if not pair:
                continue
            key, val = pair.split(":", 1)
            result[key.strip()] = _as_range(val.strip())
        if result and set(result) <= set(QUESTION_KINDS):
            return result
    except (ValueError, IndexError):
        pass

    raise click.BadParameter(
        f"无法解析: {raw}\n"
        f"支持格式:\n"
        f'  JSON:  \'{{"essay": [5, 10], "short_answer": 2}}\'\n'
        f"  简写:  multiple_choice:1,short_answer:2-3,essay:5-10"
    )


def _quiz_config(cfg: dict, **overrides) -> QuizConfig:
    """参数优先级：命令行 > config.yaml > 默认值"""
    quiz_cfg = cfg.get("quiz", {}) or {}
    config = QuizConfig()
    if quiz_cfg.get("points"):
        points = dict(config.points)
        points.update({k: _as_range(v) for k, v in quiz_cfg["points"].items()})
        config = replace(config, points=points)
    for key in ("title", "description", "count", "seed"):
        if quiz_cfg.get(key) is not None:
            config = replace(config, **{key: quiz_cfg[key]})
    overrides = {k: v for k, v in overrides.items() if v not in (None, "", {})}
    if "points" in overrides:
        overrides["points"] = {**config.points, **overrides["points"]}
    return replace(config, **overrides)


@click.group()
@click.option("-c", "--config", "config_path", default="config.yaml", help="配置文件路径")
@click.option("-v", "--verbose", count=True, help="输出日志 (-v INFO, -vv DEBUG)")
@click.pass_context
def cli(ctx, config_path, verbose):
    """文档自动出题与评分工具"""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )
    ctx.ensure_object(dict)
    ctx.obj["config"] = _load_config(config_path)


@cli.command()
@click.option("-i", "--input", "input_path", required=True, type=click.Path(exists=True),
              help="资料文本文件或目录 (.txt/.md)")
@click.option("-o", "--output", default=None, help="输出路径（不含后缀）")
@click.option("-n", "--count", default=None, type=click.IntRange(min=1), help="题目数量")
@click.option("-f", "--format", "formats", multiple=True,
              help="导出格式: json/csv/xlsx/docx，可多选")
@click.option("--title", default=None, help="作业标题")
@click.option("--description", default=None, help="作业说明")
@click.option("--points", default="", help="各题型分值, 如 short_answer:2-3,essay:5-10")
@click.option("--seed", default=None, type=int, help="随机种子 (固定种子可复现)")
@click.option("--show-answers/--hide-answers", default=False, help="Word 试卷中显示答案")
@click.option("--answer-sheet/--no-answer-sheet", default=True, help="Word 试卷末尾附答案页")
@click.option("--stats/--no-stats", default=True, help="是否显示统计")
@click.pass_context
def generate(ctx, input_path, output, count, formats, title, description, points,
             seed, show_answers, answer_sheet, stats):
    """从资料生成作业题目并导出"""
    cfg = ctx.obj["config"]
    output = output or str(Path(cfg.get("output_dir", "./data/output")) / "assignment")
    if not formats:
        formats = (cfg.get("export", {}) or {}).get("formats", ["json"])

    quiz_cfg = _quiz_config(
        cfg,
        count=count,
        title=title,
        description=description,
        seed=seed,
        points=parse_points(points) if points else None,
        show_answers=show_answers,
        answer_sheet=answer_sheet,
    )

    text = load_document(input_path)
    material = Path(input_path).name
    try:
        assignment = build_assignment(
            text, quiz_cfg.title, quiz_cfg.count,
            description=quiz_cfg.description, material=material, config=quiz_cfg,
        )
    except QuizGenerationError as e:
        click.echo(f"[ERROR] {e}")
        sys.exit(1)

    click.echo(f"📝 已生成 {len(assignment.questions)} 道题，总分 {assignment.max_score}")
    if stats:
        print_summary(assignment.questions)

    discover_exporters()
    base_name = Path(output)
    for fmt in formats:
        click.echo(f"📤 导出 {fmt.upper()}...")
        try:
            if fmt == "docx":
                QuizDocxExporter(quiz_cfg).export(assignment.questions, base_name)
                continue
            exporter = get_exporter(fmt)
            exporter.export(assignment.questions, base_name, assignment=assignment)
        except KeyError as e:
            click.echo(f"[ERROR] {e}")
        except OSError as e:
            click.echo(f"[ERROR] 导出 {fmt} 失败: {e}")

    click.echo(f"✅ 完成! {base_name}")


@cli.command()
@click.option("-q", "--questions", "questions_path", required=True, type=click.Path(exists=True),
              help="题目 JSON（generate 导出的文件）")
@click.option("-a", "--answers", "answers_path", required=True, type=click.Path(exists=True),
              help="作答 JSON: {题号: 答案}")
@click.option("-o", "--output", default=None, help="评分结果 JSON 输出路径")
@click.option("--full", is_flag=True, default=False, help="显示完整题干与反馈（默认截断）")
def grade(questions_path, answers_path, output, full):
    """评阅作答，输出逐题反馈与总分"""
    try:
        questions = load_questions(questions_path)
        answers = load_answers(answers_path)
        feedback = evaluate_submission(questions, answers)
    except (ValueError, GradingError) as e:
        click.echo(f"[ERROR] {e}")
        sys.exit(1)

    print_feedback(questions, feedback, full=full)
    if output:
        fp = write_json(feedback_to_dict(feedback), Path(output).with_suffix(".json"))
        click.echo(f"✅ 评分结果已保存: {fp}")


@cli.command()
@click.option("-i", "--input", "input_path", required=True, type=click.Path(exists=True),
              help="资料文本文件或目录")
@click.option("--limit", default=10, type=int, help="每类最多显示多少条（0=全部）")
def concepts(input_path, limit):
    """查看资料中抽取到的主题 / 定义 / 过程 / 比较"""
    segments = preprocess(load_document(input_path))
    found = extract_concepts(segments)
    W = 70

    def _show(items: list[str]) -> None:
        shown = items if limit == 0 else items[:limit]
        for item in shown:
            click.echo(f"    • {_trunc(item, W)}")
        if limit and len(items) > limit:
            click.echo(f"    … 还有 {len(items) - limit} 条")

    click.echo(f"\n{'═' * W}")
    click.echo(f"  段落: {len(segments.paragraphs)}    句子: {len(segments.sentences)}"
               f"    标题候选: {len(segments.headings)}")
    click.echo(f"{'─' * W}")
    click.echo(f"  主题 ({len(found.topics)})")
    _show([t.label for t in found.topics])
    click.echo(f"  定义 ({len(found.definitions)})")
    _show([f"{d.term}: {d.sentence}" for d in found.definitions])
    click.echo(f"  过程 ({len(found.processes)})")
    _show([p.topic for p in found.processes])
    click.echo(f"  比较 ({len(found.comparisons)})")
    _show([
        (" vs ".join(c.elements) + ": " if c.elements else "") + c.text
        for c in found.comparisons
    ])
    click.echo(f"{'═' * W}")
    if found.is_empty:
        click.echo("  ⚠️  未抽取到任何概念，出题将全部使用通用模板")


@cli.command()
@click.option("-q", "--questions", "questions_path", required=True, type=click.Path(exists=True),
              help="题目 JSON")
def info(questions_path):
    """查看题目统计信息，并检查重复题目"""
    try:
        questions = load_questions(questions_path)
    except ValueError as e:
        click.echo(f"[ERROR] {e}")
        sys.exit(1)
    if not questions:
        click.echo("题目为空。")
        return
    print_summary(questions)
    unique = deduplicate(questions, strategy="strict")
    if len(unique) < len(questions):
        click.echo(f"⚠️  重复题目: {len(questions) - len(unique)} 道（题型、题干、答案与选项均相同）")


def _trunc(s: str, n: int = 40) -> str:
    s = (s or "").replace("\n", " ").strip()
    return s[:n] + "…" if len(s) > n else s


def main():
    cli()


if __name__ == "__main__":
    main()
