"""自动出题引擎：概念 → 选择题 / 简答题 / 论述题"""
from __future__ import annotations
import logging
import math
import random
from collections import Counter
from typing import Callable
from doc_quiz_toolkit.dedup import compute_fingerprint
from doc_quiz_toolkit.exam import templates as tpl
from doc_quiz_toolkit.exam.config import QuizConfig
from doc_quiz_toolkit.models import (
    ESSAY, MULTIPLE_CHOICE, QUESTION_KINDS, SHORT_ANSWER,
    ConceptSet, Definition, Question, TextSegments,
)
from doc_quiz_toolkit.text import split_sentences, truncate

logger = logging.getLogger(__name__)

KIND_LABELS = {
    MULTIPLE_CHOICE: "Multiple Choice",
    SHORT_ANSWER: "Short Answer",
    ESSAY: "Essay",
}

OPTION_COUNT = 4
MIN_SUMMARY_PARAGRAPH = 50
MAX_SUMMARY_PARAGRAPH = 300
# 论述题兜底模板最多尝试次数，超过后允许题干重复
MAX_SYNTHESIS_ATTEMPTS = 20


class QuizGenerationError(Exception):
    pass


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def split_targets(
    count: int,
    multiple_choice_ratio: float = 0.4,
    short_answer_ratio: float = 0.4,
) -> dict[str, int]:
    """将总题数拆成三种题型的子目标；count >= 3 时每种题型至少 1 道"""
    if count < 3:
        mc = min(count, 1)
        return {MULTIPLE_CHOICE: mc, SHORT_ANSWER: count - mc, ESSAY: 0}

    mc = max(1, _round_half_up(count * multiple_choice_ratio))
    sa = max(1, _round_half_up(count * short_answer_ratio))
    # 给论述题留出至少 1 道
    while mc + sa > count - 1:
        if sa >= mc:
            sa -= 1
        else:
            mc -= 1
    return {MULTIPLE_CHOICE: mc, SHORT_ANSWER: sa, ESSAY: count - mc - sa}


class QuizGenerator:

    def __init__(
        self,
        segments: TextSegments,
        concepts: ConceptSet,
        config: QuizConfig,
        rng: random.Random | None = None,
    ):
        self.segments = segments
        self.concepts = concepts
        self.config = config
        self._rng = rng if rng is not None else random.Random(config.seed)
        self._next_id = 0
        self._check_points()

    def _check_points(self) -> None:
        for kind in QUESTION_KINDS:
            lo, hi = self._point_range(kind)
            if lo < 1 or hi < lo:
                raise QuizGenerationError(f"{kind} 分值区间无效: ({lo}, {hi})，需满足 1 <= min <= max")

    def _point_range(self, kind: str) -> tuple[int, int]:
        lo, hi = self.config.points.get(kind, (1, 1))
        return int(lo), int(hi)

    # ── 组装 ──

    def generate(self, count: int | None = None) -> list[Question]:
        count = self.config.count if count is None else count
        if count < 1:
            raise QuizGenerationError(f"题目数量必须 >= 1，当前为 {count}")
        if not self.segments.full_text.strip():
            raise QuizGenerationError("文档内容为空，无法出题")

        targets = split_targets(
            count, self.config.multiple_choice_ratio, self.config.short_answer_ratio,
        )
        used: set[str] = set()      # 已用过的句子/段落
        seen: set[str] = set()      # 已接受题目的指纹

        mc = self._multiple_choice(targets[MULTIPLE_CHOICE], used, seen)
        sa = self._short_answer(targets[SHORT_ANSWER], used, seen, mc)
        essay = self._essay(targets[ESSAY], used, seen)

        selected = (
            mc[:targets[MULTIPLE_CHOICE]]
            + sa[:targets[SHORT_ANSWER]]
            + essay[:targets[ESSAY]]
        )
        # 最终统一编号，覆盖生成过程中的临时 id
        for i, q in enumerate(selected, 1):
            q.id = i

        logger.info(
            "出题完成: %d 道 (选择 %d / 简答 %d / 论述 %d)，总分 %d",
            len(selected), len(mc), len(sa), len(essay), sum(q.points for q in selected),
        )
        return selected

    def summary(self, selected: list[Question]) -> str:
        by_kind = Counter(q.kind for q in selected)
        by_source = Counter(q.source for q in selected)
        kind_str = ", ".join(
            f"{KIND_LABELS.get(k, k)}: {by_kind[k]}" for k in QUESTION_KINDS if by_kind[k]
        )
        lines = [
            f"Quiz: {self.config.title}",
            f"Questions: {len(selected)}",
            f"By type: {kind_str}",
            f"By source: {dict(by_source.most_common())}",
            f"Total points: {sum(q.points for q in selected)}",
        ]
        return "\n".join(lines)

    # ── 工具 ──

    def _question(
        self,
        kind: str,
        text: str,
        source: str,
        answer: str | None = None,
        options: list[str] | None = None,
    ) -> Question:
        self._next_id += 1
        return Question(
            id=self._next_id,
            kind=kind,
            text=text,
            options=options or [],
            correct_answer=answer,
            source=source,
        )

    def _accept(
        self, q: Question, bucket: list[Question], seen: set[str], force: bool = False,
    ) -> bool:
        fp = compute_fingerprint(q, "content")
        if fp in seen and not force:
            return False
        q.fingerprint = fp
        q.points = self._rng.randint(*self._point_range(q.kind))
        seen.add(fp)
        bucket.append(q)
        return True

    def _options(self, correct: str, distractors: list[str]) -> list[str]:
        """正确答案 + 3 个干扰项，不足时用通用错误选项补齐，再均匀打乱"""
        options = [correct]
        for d in distractors:
            if len(options) >= OPTION_COUNT:
                break
            if d and d not in options:
                options.append(d)
        for d in tpl.GENERIC_WRONG_ANSWERS:
            if len(options) >= OPTION_COUNT:
                break
            if d not in options:
                options.append(d)
        self._rng.shuffle(options)
        return options

    def _shuffled(self, items: list) -> list:
        items = list(items)
        self._rng.shuffle(items)
        return items

    def _passages(self) -> list[str]:
        return (
            self.segments.sentences
            or self.segments.paragraphs
            or [self.segments.full_text]
        )

    def _fill(
        self,
        bucket: list[Question],
        target: int,
        used: set[str],
        seen: set[str],
        build: Callable[[str, int], Question],
        label: str,
    ) -> None:
        """兜底：按原文片段 + 模板轮换补足数量；所有片段试过一轮后允许重复"""
        if len(bucket) >= target:
            return
        passages = self._passages()
        order = [p for p in passages if p not in used] + [p for p in passages if p in used]
        before = len(bucket)
        i = 0
        while len(bucket) < target:
            passage = order[i % len(order)]
            q = build(passage, len(bucket))
            if self._accept(q, bucket, seen, force=i >= len(order)):
                used.add(passage)
            i += 1
        logger.debug("%s: 概念不足，通用模板补充 %d 道", label, len(bucket) - before)

    def _find_sentence(self, label: str, used: set[str]) -> str | None:
        key = label.lower()
        for s in self.segments.sentences:
            if s not in used and key in s.lower():
                return s
        return None

    # ── 选择题 ──

    def _mc_from_definition(self, d: Definition, position: int) -> Question:
        limit = self.config.answer_limit
        correct = truncate(d.sentence, limit)
        others = [
            truncate(o.sentence, limit) for o in self.concepts.definitions
            if o.term.lower() != d.term.lower()
        ]
        others = [o for o in dict.fromkeys(others) if o != correct]
        distractors = self._rng.sample(others, min(OPTION_COUNT - 1, len(others)))
        return self._question(
            MULTIPLE_CHOICE,
            tpl.pick(tpl.MC_DEFINITION, position).format(term=d.term),
            "definition",
            answer=correct,
            options=self._options(correct, distractors),
        )

    def _mc_from_topic(self, label: str, sentence: str, position: int) -> Question:
        correct = truncate(sentence, self.config.answer_limit)
        distractors = [t.format(topic=label) for t in tpl.TOPIC_DISTRACTORS]
        distractors = [d[:1].upper() + d[1:] for d in distractors]
        return self._question(
            MULTIPLE_CHOICE,
            tpl.pick(tpl.MC_TOPIC, position).format(topic=label),
            "topic",
            answer=correct,
            options=self._options(correct, distractors),
        )

    def _mc_generic(self, passage: str, position: int) -> Question:
        correct = truncate(passage, self.config.answer_limit)
        distractors = self._rng.sample(tpl.GENERIC_WRONG_ANSWERS, OPTION_COUNT - 1)
        return self._question(
            MULTIPLE_CHOICE,
            tpl.pick(tpl.MC_GENERIC, position),
            "fallback",
            answer=correct,
            options=self._options(correct, distractors),
        )

    def _multiple_choice(self, target: int, used: set[str], seen: set[str]) -> list[Question]:
        out: list[Question] = []
        if target <= 0:
            return out

        quota = min(target, math.ceil(target * self.config.definition_share))
        for d in self._shuffled(self.concepts.definitions):
            if len(out) >= quota:
                break
            if d.sentence in used:
                continue
            if self._accept(self._mc_from_definition(d, len(out)), out, seen):
                used.add(d.sentence)

        for t in self._shuffled(self.concepts.topics):
            if len(out) >= target:
                break
            sentence = self._find_sentence(t.label, used)
            if sentence is None:
                continue
            if self._accept(self._mc_from_topic(t.label, sentence, len(out)), out, seen):
                used.add(sentence)

        self._fill(out, target, used, seen, self._mc_generic, "选择题")
        return out

    # ── 简答题 ──

    def _sa_generic(self, passage: str, position: int) -> Question:
        return self._question(
            SHORT_ANSWER,
            tpl.pick(tpl.SA_GENERIC, position).format(
                snippet=truncate(passage, self.config.snippet_limit)),
            "fallback",
            answer=truncate(passage, self.config.paragraph_answer_limit),
        )

    def _short_answer(
        self,
        target: int,
        used: set[str],
        seen: set[str],
        mc_questions: list[Question],
    ) -> list[Question]:
        out: list[Question] = []
        if target <= 0:
            return out
        cfg = self.config

        quota = min(target, math.ceil(target * cfg.process_share))
        for p in self.concepts.processes:
            if len(out) >= quota:
                break
            if p.text in used:
                continue
            q = self._question(
                SHORT_ANSWER,
                tpl.pick(tpl.SA_PROCESS, len(out)).format(topic=truncate(p.topic, cfg.snippet_limit)),
                "process",
                answer=truncate(p.text, cfg.paragraph_answer_limit),
            )
            if self._accept(q, out, seen):
                used.add(p.text)

        # 已在选择题题干中出现的术语不再重复考
        mc_prompts = " ".join(q.text.lower() for q in mc_questions)
        for d in self.concepts.definitions:
            if len(out) >= target:
                break
            if d.term.lower() in mc_prompts:
                continue
            q = self._question(
                SHORT_ANSWER,
                tpl.pick(tpl.SA_DEFINITION, len(out)).format(term=d.term),
                "definition",
                answer=truncate(d.sentence, cfg.paragraph_answer_limit),
            )
            if self._accept(q, out, seen):
                used.add(d.sentence)

        for para in self.segments.paragraphs:
            if len(out) >= target:
                break
            if para in used or not MIN_SUMMARY_PARAGRAPH <= len(para) <= MAX_SUMMARY_PARAGRAPH:
                continue
            first = split_sentences(para, min_len=0)[0]
            q = self._question(
                SHORT_ANSWER,
                tpl.pick(tpl.SA_SUMMARY, len(out)).format(snippet=truncate(first, cfg.snippet_limit)),
                "paragraph",
                answer=para,
            )
            if self._accept(q, out, seen):
                used.add(para)

        self._fill(out, target, used, seen, self._sa_generic, "简答题")
        return out

    # ── 论述题 ──

    def _essay_synthesis(self, position: int) -> Question:
        headings = [h for h in (tpl.prompt_safe(h) for h in self.segments.headings) if h]
        topics = [t for t in (tpl.prompt_safe(t.label) for t in self.concepts.topics) if t]
        if len(headings) >= 2:
            a, b = self._rng.sample(headings, 2)
            template = tpl.pick(tpl.ESSAY_SYNTHESIS_PAIR, position)
            # 标题自带 and 时 "between A and B" 无法正确切分，改用 relates to 句式
            if tpl.contains_and(a) or tpl.contains_and(b):
                template = tpl.ESSAY_SYNTHESIS_RELATES
            text = template.format(a=a, b=b)
        elif headings or topics:
            a = headings[0] if headings else self._rng.choice(topics)
            text = tpl.pick(tpl.ESSAY_SYNTHESIS_SINGLE, position).format(a=a)
        else:
            text = tpl.pick(tpl.ESSAY_GENERIC, position)
        return self._question(ESSAY, text, "fallback")

    def _essay(self, target: int, used: set[str], seen: set[str]) -> list[Question]:
        out: list[Question] = []
        if target <= 0:
            return out

        quota = min(target, math.ceil(target * self.config.comparison_share))
        for c in self.concepts.comparisons:
            if len(out) >= quota:
                break
            if c.text in used:
                continue
            elements = [tpl.prompt_safe(e) for e in c.elements]
            if len(elements) == 2 and all(elements):
                text = tpl.pick(tpl.ESSAY_COMPARE_PAIR, len(out)).format(a=elements[0], b=elements[1])
            else:
                text = tpl.pick(tpl.ESSAY_COMPARE_CONTEXT, len(out)).format(
                    snippet=truncate(c.text, self.config.snippet_limit).replace('"', "'"))
            if self._accept(self._question(ESSAY, text, "comparison"), out, seen):
                used.add(c.text)

        for t in self.concepts.topics:
            if len(out) >= target:
                break
            label = tpl.prompt_safe(t.label)
            if not label:
                continue
            text = tpl.pick(tpl.ESSAY_TOPIC, len(out)).format(topic=label)
            self._accept(self._question(ESSAY, text, "topic"), out, seen)

        attempts = 0
        while len(out) < target:
            q = self._essay_synthesis(len(out))
            self._accept(q, out, seen, force=attempts >= MAX_SYNTHESIS_ATTEMPTS)
            attempts += 1
        return out


def synthesize(
    segments: TextSegments,
    concepts: ConceptSet,
    target_count: int,
    config: QuizConfig | None = None,
    rng: random.Random | None = None,
) -> list[Question]:
    config = config or QuizConfig()
    return QuizGenerator(segments, concepts, config, rng=rng).generate(target_count)
