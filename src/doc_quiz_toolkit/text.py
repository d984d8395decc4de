"""文本预处理：段落 / 句子 / 标题候选切分，以及分词工具"""
from __future__ import annotations
import logging
import re
from doc_quiz_toolkit.models import TextSegments

logger = logging.getLogger(__name__)

MIN_PARAGRAPH_LEN = 20      # 段落需 > 20 字符
MIN_SENTENCE_LEN = 15       # 句子需 > 15 字符
MAX_HEADING_LEN = 100

# 病态输入保护
MAX_PARAGRAPHS = 2000
MAX_SENTENCES = 5000

STOP_WORDS = frozenset({
    "a", "about", "above", "after", "again", "against", "all", "also", "am",
    "an", "and", "any", "are", "as", "at", "be", "because", "been", "before",
    "being", "below", "between", "both", "but", "by", "can", "could", "did",
    "do", "does", "doing", "down", "during", "each", "either", "even", "every",
    "few", "for", "from", "further", "had", "has", "have", "having", "he",
    "her", "here", "hers", "him", "his", "how", "however", "i", "if", "in",
    "into", "is", "it", "its", "itself", "just", "many", "may", "me", "might",
    "more", "most", "much", "must", "my", "neither", "no", "nor", "not", "now",
    "of", "off", "often", "on", "once", "one", "only", "or", "other", "our",
    "ours", "out", "over", "own", "same", "she", "should", "so", "some",
    "such", "than", "that", "the", "their", "theirs", "them", "then", "there",
    "these", "they", "this", "those", "through", "thus", "to", "too", "under",
    "until", "up", "upon", "us", "used", "using", "very", "was", "we", "well",
    "were", "what", "when", "where", "whether", "which", "while", "who",
    "whom", "whose", "why", "will", "with", "within", "without", "would",
    "yet", "you", "your", "yours",
})

# 标题中允许小写出现的连接词
_HEADING_CONNECTORS = frozenset({
    "a", "an", "and", "as", "at", "by", "for", "from", "in", "into", "of",
    "on", "or", "the", "to", "vs", "with",
})

_WS_RE = re.compile(r"\s+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
_WORD_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9'\-]*")
_TITLE_WORD_RE = re.compile(r"^(?:[A-Z][A-Za-z0-9'\-]*|\d+[.)]?|[&:\-])$")


def normalize_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def truncate(text: str, limit: int) -> str:
    """截断到 limit 字符以内，超长时以 ... 结尾"""
    text = normalize_whitespace(text)
    if len(text) <= limit:
        return text
    return text[:max(limit - 3, 0)].rstrip() + "..."


def split_paragraphs(text: str) -> list[str]:
    paragraphs = []
    for block in _PARAGRAPH_SPLIT_RE.split(text or ""):
        para = normalize_whitespace(block)
        if len(para) > MIN_PARAGRAPH_LEN:
            paragraphs.append(para)
    return paragraphs


def split_sentences(paragraph: str, min_len: int = MIN_SENTENCE_LEN) -> list[str]:
    """按 . ! ? + 空白切句；min_len=0 时不做长度过滤"""
    parts = (s.strip() for s in _SENTENCE_SPLIT_RE.split(normalize_whitespace(paragraph)))
    return [s for s in parts if s and len(s) > min_len]


def is_heading(line: str) -> bool:
    line = line.strip()
    if not line or len(line) >= MAX_HEADING_LEN or line.endswith("."):
        return False
    if not any(c.isalpha() for c in line):
        return False
    if line.isupper():
        return True
    words = line.split()
    if not _TITLE_WORD_RE.match(words[0]):
        return False
    return all(
        _TITLE_WORD_RE.match(w) or w.lower() in _HEADING_CONNECTORS
        for w in words[1:]
    )


def find_headings(text: str) -> list[str]:
    seen: set[str] = set()
    headings = []
    for raw in (text or "").splitlines():
        line = normalize_whitespace(raw)
        if is_heading(line) and line not in seen:
            seen.add(line)
            headings.append(line)
    return headings


def preprocess(text: str) -> TextSegments:
    """原始文本 → TextSegments。切分基于原文，保留换行/段落边界"""
    if not text or not text.strip():
        return TextSegments()

    paragraphs = split_paragraphs(text)
    if len(paragraphs) > MAX_PARAGRAPHS:
        logger.warning("段落数 %d 超过上限，仅保留前 %d 段", len(paragraphs), MAX_PARAGRAPHS)
        paragraphs = paragraphs[:MAX_PARAGRAPHS]

    sentences: list[str] = []
    for para in paragraphs:
        sentences.extend(split_sentences(para))
        if len(sentences) >= MAX_SENTENCES:
            logger.warning("句子数超过上限 %d，后续段落不再切句", MAX_SENTENCES)
            sentences = sentences[:MAX_SENTENCES]
            break

    segments = TextSegments(
        full_text=normalize_whitespace(text),
        paragraphs=paragraphs,
        sentences=sentences,
        headings=find_headings(text),
    )
    logger.debug(
        "预处理完成: %d 段 / %d 句 / %d 个标题候选",
        len(segments.paragraphs), len(segments.sentences), len(segments.headings),
    )
    return segments


# ── 分词 ──

def word_tokens(text: str, min_len: int = 4) -> set[str]:
    """小写词集合，仅保留长度 >= min_len 的词"""
    return {
        w.strip("'-") for w in _WORD_RE.findall((text or "").lower())
        if len(w.strip("'-")) >= min_len
    }


def key_terms(text: str) -> list[str]:
    """关键词：小写、去标点、去掉 <=3 字符的词与停用词，保持首次出现顺序"""
    seen: set[str] = set()
    terms = []
    for raw in _WORD_RE.findall((text or "").lower()):
        w = raw.strip("'-")
        if len(w) <= 3 or w in STOP_WORDS or w in seen:
            continue
        seen.add(w)
        terms.append(w)
    return terms
