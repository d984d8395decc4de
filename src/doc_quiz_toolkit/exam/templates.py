"""题干模板与论述题主题解析表

出题时的措辞和评分时从题干反解主题的正则放在同一处，修改模板时需同步检查
PROMPT_TOPIC_PATTERNS。
"""
from __future__ import annotations
import re
from doc_quiz_toolkit.text import STOP_WORDS

# ── 选择题 ──

MC_DEFINITION = (
    "Which of the following best describes {term}?",
    "What is the correct definition of {term}?",
    "Which statement about {term} is accurate?",
)

MC_TOPIC = (
    "Which of the following statements about {topic} is supported by the material?",
    "According to the material, which statement regarding {topic} is correct?",
    "What does the material state about {topic}?",
)

MC_GENERIC = (
    "Which of the following statements appears in the material?",
    "Which of the following is stated in the material?",
    "According to the material, which statement is true?",
)

# 干扰项不足 3 个时的兜底错误选项
GENERIC_WRONG_ANSWERS = (
    "None of the definitions given in the material",
    "A concept that is not covered in the material",
    "The opposite of what the material describes",
    "A process unrelated to the subject of the material",
    "A term introduced only in a later chapter",
)

TOPIC_DISTRACTORS = (
    "{topic} is not discussed anywhere in the material.",
    "{topic} has no connection to the main subject of the material.",
    "The material states that {topic} is irrelevant to the subject.",
)

# ── 简答题 ──

SA_PROCESS = (
    "Explain the process described by the following: {topic}",
    "Describe the steps involved in the following: {topic}",
    "Outline the sequence of events described by the following: {topic}",
)

SA_DEFINITION = (
    "Explain what is meant by {term}.",
    "Define {term} in your own words.",
    "What does the term {term} refer to?",
)

SA_SUMMARY = (
    "Summarize the main point of the following passage: \"{snippet}\"",
    "In your own words, explain the following idea: \"{snippet}\"",
)

SA_GENERIC = (
    "Explain the significance of the following statement: \"{snippet}\"",
    "What does the material mean by the following statement: \"{snippet}\"",
)

# ── 论述题 ──

ESSAY_COMPARE_PAIR = (
    "Compare and contrast {a} and {b}.",
    "Analyze the differences and similarities between {a} and {b}.",
    "Evaluate the relative strengths of {a} and {b}.",
)

ESSAY_COMPARE_CONTEXT = (
    "Analyze the contrast described in this passage: \"{snippet}\"",
    "Evaluate the comparison made in this passage: \"{snippet}\"",
)

ESSAY_TOPIC = (
    "Discuss the significance of {topic} as presented in the material.",
    "Analyze the role of {topic} and its implications.",
    "Evaluate the importance of {topic} in the context of the material.",
)

ESSAY_SYNTHESIS_RELATES = "Discuss how {a} relates to {b}, drawing on evidence from the material."

ESSAY_SYNTHESIS_PAIR = (
    ESSAY_SYNTHESIS_RELATES,
    "Evaluate the connection between {a} and {b} as presented in the material.",
)

ESSAY_SYNTHESIS_SINGLE = (
    "Evaluate the implications of {a} for the broader subject of the material.",
    "Discuss the significance of {a} as presented in the material.",
)

ESSAY_GENERIC = (
    "What are the main ideas presented in the material, and why are they significant?",
    "Which key arguments does the material make, and what are their implications?",
)


def pick(templates: tuple[str, ...], position: int) -> str:
    """按位置取模轮换模板"""
    return templates[position % len(templates)]


_AND_RE = re.compile(r"\band\b", re.IGNORECASE)


def contains_and(label: str) -> bool:
    return _AND_RE.search(label) is not None


def prompt_safe(label: str) -> str:
    """去掉会截断主题正则的标点，保证评分时能原样反解"""
    return re.sub(r"\s+", " ", re.sub(r"[,.?:\"]", " ", label)).strip()


# ── 评分时从论述题干反解主题 ──
# 按顺序匹配，第一个命中的正则给出主题

_PHRASE = r"(?P<{name}>[^,.?:\"]+?)"

PROMPT_TOPIC_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\bcompare and contrast " + _PHRASE.format(name="a")
               + r" and " + _PHRASE.format(name="b") + r"[.?]", re.IGNORECASE),
    re.compile(r"\b(?:similarities|connection) between " + _PHRASE.format(name="a")
               + r" and " + _PHRASE.format(name="b") + r"(?: as presented|[.?])", re.IGNORECASE),
    re.compile(r"\bstrengths of " + _PHRASE.format(name="a")
               + r" and " + _PHRASE.format(name="b") + r"[.?]", re.IGNORECASE),
    re.compile(r"\bdiscuss how " + _PHRASE.format(name="a")
               + r" relates to " + _PHRASE.format(name="b") + r"[,.?]", re.IGNORECASE),
    re.compile(r"\bimplications of " + _PHRASE.format(name="a")
               + r" for\b", re.IGNORECASE),
    re.compile(r"\b(?:significance|role|importance) of " + _PHRASE.format(name="a")
               + r"(?: as presented| and its| in the context|[.?])", re.IGNORECASE),
    re.compile(r"\b(?:discuss|analyze|analyse|compare|evaluate) (?:the )?"
               + _PHRASE.format(name="a") + r"[.?]", re.IGNORECASE),
)

_CAPITALIZED_RE = re.compile(r"\b[A-Z][a-zA-Z\-]{2,}\b")

# 模板自身的动词，不作为主题
_PROMPT_VERBS = frozenset({
    "discuss", "analyze", "analyse", "compare", "contrast", "evaluate",
    "explain", "describe", "outline", "summarize", "define",
})


def _clean_topic(raw: str) -> str:
    words = raw.strip().split()
    while words and words[0].lower() in STOP_WORDS:
        words = words[1:]
    return " ".join(words)


def extract_prompt_topics(prompt: str) -> list[str]:
    for pattern in PROMPT_TOPIC_PATTERNS:
        m = pattern.search(prompt or "")
        if not m:
            continue
        topics = [_clean_topic(v) for v in m.groupdict().values() if v]
        topics = [t for t in topics if t]
        if topics:
            return topics

    seen: set[str] = set()
    topics = []
    for word in _CAPITALIZED_RE.findall(prompt or ""):
        key = word.lower()
        if key in STOP_WORDS or key in _PROMPT_VERBS or key in seen:
            continue
        seen.add(key)
        topics.append(word)
    return topics
