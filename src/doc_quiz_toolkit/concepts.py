"""概念抽取：主题 / 定义 / 过程 / 比较 四个互相独立的抽取器

每个抽取器都是纯函数，按文档顺序输出，去重时保留首次出现。
"""
from __future__ import annotations
import logging
import re
from collections import Counter
from doc_quiz_toolkit.models import (
    Comparison, ConceptSet, Definition, Process, TextSegments, Topic,
)
from doc_quiz_toolkit.text import STOP_WORDS, split_sentences

logger = logging.getLogger(__name__)

MAX_TOPICS = 15
MAX_FREQUENT_WORDS = 10
MIN_WORD_FREQUENCY = 3          # 出现次数需 > 2
MAX_CONCEPTS = 200              # 单个抽取器的结果上限
MIN_TERM_LEN = 4
MAX_TERM_WORDS = 6
PROCESS_LABEL_FALLBACK_LEN = 50

_DETERMINERS = ("the ", "a ", "an ", "this ", "these ", "that ", "those ")

# ── 主题 ──

_CAPITALIZED_RUN_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,2}\b")
_LOWER_WORD_RE = re.compile(r"\b[a-z]{4,}\b")


def _strip_stop_edges(words: list[str]) -> list[str]:
    while words and words[0].lower() in STOP_WORDS:
        words = words[1:]
    while words and words[-1].lower() in STOP_WORDS:
        words = words[:-1]
    return words


def _capitalized_phrases(text: str) -> list[str]:
    phrases = []
    for m in _CAPITALIZED_RUN_RE.finditer(text):
        words = _strip_stop_edges(m.group(0).split())
        phrase = " ".join(words)
        if len(phrase) >= MIN_TERM_LEN:
            phrases.append(phrase)
    return phrases


def _frequent_words(full_text: str) -> list[str]:
    counts = Counter(
        w for w in _LOWER_WORD_RE.findall(full_text.lower()) if w not in STOP_WORDS
    )
    # most_common 排序稳定：同频次按首次出现顺序
    return [w for w, n in counts.most_common() if n >= MIN_WORD_FREQUENCY][:MAX_FREQUENT_WORDS]


def extract_topics(segments: TextSegments) -> list[Topic]:
    candidates: list[str] = list(segments.headings)

    openers = []
    for para in segments.paragraphs:
        first = split_sentences(para, min_len=0)
        if first:
            openers.append(first[0])
    for text in openers + segments.headings:
        candidates.extend(_capitalized_phrases(text))

    candidates.extend(_frequent_words(segments.full_text))

    seen: set[str] = set()
    topics = []
    for label in candidates:
        key = label.lower()
        if key in seen or key in STOP_WORDS:
            continue
        seen.add(key)
        topics.append(Topic(label=label))
        if len(topics) >= MAX_TOPICS:
            break
    return topics


# ── 定义 ──

_TERM = r"(?P<term>[A-Za-z][A-Za-z0-9'\- ]{2,60}?)"

# (名称, 正则)，按顺序匹配，每句命中第一个即停止
DEFINITION_PATTERNS: tuple[tuple[str, re.Pattern], ...] = (
    ("defined_as", re.compile(
        _TERM + r",?\s+(?:is|are)\s+(?:defined\s+as|known\s+as|called|described\s+as)\s+(?P<body>.+)",
        re.IGNORECASE)),
    ("means", re.compile(
        _TERM + r",?\s+(?:means|refers\s+to|denotes|describes)\s+(?P<body>.+)",
        re.IGNORECASE)),
    ("is_a", re.compile(
        _TERM + r",?\s+(?:is|are)\s+(?:an?|the)\s+(?P<body>.+)",
        re.IGNORECASE)),
    ("colon", re.compile(r"(?P<term>[^:]{1,49}):\s*(?P<body>\S.*)")),
)


def _clean_term(raw: str) -> str:
    term = raw.strip(" \t\"'-")
    lowered = term.lower()
    for det in _DETERMINERS:
        if lowered.startswith(det):
            term = term[len(det):].strip()
            break
    return term


_TERM_VERBS = frozenset({"is", "are", "was", "were", "means", "refers"})


def _valid_term(term: str) -> bool:
    if len(term) < MIN_TERM_LEN or term.lower() in STOP_WORDS:
        return False
    words = term.lower().split()
    if len(words) > MAX_TERM_WORDS or _TERM_VERBS & set(words):
        return False
    return True


def match_definition(sentence: str) -> Definition | None:
    for _name, pattern in DEFINITION_PATTERNS:
        m = pattern.match(sentence)
        if not m:
            continue
        term = _clean_term(m.group("term"))
        if not _valid_term(term):
            return None
        return Definition(term=term, sentence=sentence)
    return None


def extract_definitions(segments: TextSegments) -> list[Definition]:
    seen: set[str] = set()
    definitions = []
    for sentence in segments.sentences:
        d = match_definition(sentence)
        if d is None or d.term.lower() in seen:
            continue
        seen.add(d.term.lower())
        definitions.append(d)
        if len(definitions) >= MAX_CONCEPTS:
            logger.warning("定义数量达到上限 %d，后续句子忽略", MAX_CONCEPTS)
            break
    return definitions


# ── 过程 ──

PROCESS_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\b(?:step|stage|phase)\s+(?:\d+|one|two|three)\b", re.IGNORECASE),
    re.compile(r"(?:^|\s)1[.)]\s+\S.*?\s2[.)]\s+\S"),
    re.compile(r"\bfirst(?:ly)?\b.+?\bthen\b", re.IGNORECASE),
    re.compile(r"\bfirst(?:ly)?\b.+?\b(?:finally|lastly)\b", re.IGNORECASE),
    re.compile(r"\bthe\s+(?:process|procedure|steps?)\s+(?:of|for|to|involves?|begins)\b", re.IGNORECASE),
)

SEQUENCE_WORDS = frozenset({
    "first", "firstly", "second", "secondly", "third", "thirdly", "next",
    "then", "finally", "lastly", "subsequently", "afterwards", "afterward",
    "eventually", "initially", "later",
})

_WORD_SPLIT_RE = re.compile(r"[a-z]+")


def is_process(paragraph: str) -> bool:
    if any(p.search(paragraph) for p in PROCESS_PATTERNS):
        return True
    words = set(_WORD_SPLIT_RE.findall(paragraph.lower()))
    return len(words & SEQUENCE_WORDS) >= 2


def _process_label(paragraph: str) -> str:
    sentences = split_sentences(paragraph, min_len=0)
    # 没有句末标点时才截取前 50 字符
    if sentences and sentences[0][-1] in ".!?":
        return sentences[0]
    return paragraph[:PROCESS_LABEL_FALLBACK_LEN].strip()


def extract_processes(segments: TextSegments) -> list[Process]:
    processes = []
    for para in segments.paragraphs:
        if is_process(para):
            processes.append(Process(topic=_process_label(para), text=para))
            if len(processes) >= MAX_CONCEPTS:
                break
    return processes


# ── 比较 ──

COMPARISON_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(
        r"\b(?:however|whereas|in\s+contrast|on\s+the\s+other\s+hand|unlike|"
        r"conversely|compared\s+(?:to|with)|differs?\s+from|difference\s+between|"
        r"similarly|in\s+comparison)\b",
        re.IGNORECASE),
    re.compile(
        r"\b(?:advantages?|disadvantages?|benefits?|drawbacks?|pros\s+and\s+cons|"
        r"strengths?|weaknesses)\b",
        re.IGNORECASE),
    re.compile(r"\b(?:\w+er|more\s+\w+|less\s+\w+|better|worse)\s+than\b", re.IGNORECASE),
    re.compile(r"\b(?:versus|vs\.)", re.IGNORECASE),
)

PARAGRAPH_COMPARISON_HITS = 2

_ELEMENT = r"[A-Za-z][\w\-]*(?:\s+[A-Za-z][\w\-]*)?"

ELEMENT_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\bbetween\s+(?P<a>" + _ELEMENT + r")\s+and\s+(?P<b>" + _ELEMENT + r")", re.IGNORECASE),
    re.compile(r"(?P<a>" + _ELEMENT + r")\s+(?:versus|vs\.?)\s+(?P<b>" + _ELEMENT + r")", re.IGNORECASE),
    re.compile(
        r"(?P<a>[A-Za-z][\w\-]*)\s+(?:is|are)\s+(?:\w+er|more\s+\w+|less\s+\w+|better|worse)"
        r"\s+than\s+(?P<b>" + _ELEMENT + r")",
        re.IGNORECASE),
    re.compile(r"\b(?P<a>[A-Z][\w\-]+)\s+and\s+(?P<b>[A-Z][\w\-]+)"),
)


def comparison_hits(text: str) -> int:
    return sum(len(p.findall(text)) for p in COMPARISON_PATTERNS)


def _clean_element(raw: str) -> str:
    return " ".join(_strip_stop_edges(raw.split()))


def extract_elements(text: str) -> list[str]:
    for pattern in ELEMENT_PATTERNS:
        for m in pattern.finditer(text):
            a, b = _clean_element(m.group("a")), _clean_element(m.group("b"))
            if a and b and a.lower() != b.lower():
                return [a, b]
    return []


def extract_comparisons(segments: TextSegments) -> list[Comparison]:
    comparisons = []
    covered: list[str] = []

    for para in segments.paragraphs:
        if comparison_hits(para) >= PARAGRAPH_COMPARISON_HITS:
            comparisons.append(Comparison(elements=extract_elements(para), text=para))
            covered.append(para)

    for sentence in segments.sentences:
        if len(comparisons) >= MAX_CONCEPTS:
            break
        if any(sentence in para for para in covered):
            continue
        if comparison_hits(sentence) >= 1:
            comparisons.append(Comparison(elements=extract_elements(sentence), text=sentence))

    return comparisons[:MAX_CONCEPTS]


def extract_concepts(segments: TextSegments) -> ConceptSet:
    concepts = ConceptSet(
        topics=extract_topics(segments),
        definitions=extract_definitions(segments),
        processes=extract_processes(segments),
        comparisons=extract_comparisons(segments),
    )
    logger.debug(
        "概念抽取: 主题 %d / 定义 %d / 过程 %d / 比较 %d",
        len(concepts.topics), len(concepts.definitions),
        len(concepts.processes), len(concepts.comparisons),
    )
    return concepts
