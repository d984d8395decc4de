import random
import pytest
from doc_quiz_toolkit.concepts import extract_concepts
from doc_quiz_toolkit.dedup import compute_fingerprint, deduplicate
from doc_quiz_toolkit.exam import QuizConfig, QuizGenerator, QuizGenerationError, split_targets, synthesize
from doc_quiz_toolkit.exam.templates import contains_and, extract_prompt_topics, pick, prompt_safe
from doc_quiz_toolkit.models import ESSAY, MULTIPLE_CHOICE, SHORT_ANSWER, Question, TextSegments
from doc_quiz_toolkit.text import preprocess

# 测试数据
DOC = """Cell Biology

Cells are the basic units of life. A cell is the smallest structure that can carry out all the processes of life. Every living organism is made of one or more cells.

Mitochondria

The mitochondrion is an organelle that releases energy from food. Mitochondria are found in almost every cell of the body.

Cell Division

Mitosis is defined as the division of a nucleus into two identical nuclei. First the chromosomes are copied, then they line up in the middle of the cell. Finally the cell splits into two daughter cells.

Meiosis is a type of division that produces four sex cells. Meiosis differs from mitosis because the daughter cells are not identical. However, both processes begin with copying the chromosomes.

Osmosis refers to the movement of water across a partially permeable membrane. Diffusion is faster than osmosis in many situations.
"""


def _generator(count=10, seed=7, **kwargs) -> QuizGenerator:
    segments = preprocess(DOC)
    config = QuizConfig(count=count, seed=seed, **kwargs)
    return QuizGenerator(segments, extract_concepts(segments), config)


@pytest.mark.parametrize("count,expected", [
    (1, (1, 0, 0)),
    (2, (1, 1, 0)),
    (3, (1, 1, 1)),
    (4, (2, 1, 1)),
    (5, (2, 2, 1)),
    (10, (4, 4, 2)),
])
def test_split_targets(count, expected):
    t = split_targets(count)
    assert (t[MULTIPLE_CHOICE], t[SHORT_ANSWER], t[ESSAY]) == expected
    assert sum(t.values()) == count


def test_generate_count_and_ids():
    questions = _generator(count=10).generate()
    assert len(questions) == 10
    assert [q.id for q in questions] == list(range(1, 11))
    kinds = [q.kind for q in questions]
    assert kinds.count(MULTIPLE_CHOICE) == 4
    assert kinds.count(SHORT_ANSWER) == 4
    assert kinds.count(ESSAY) == 2
    # 按题型分组输出
    assert kinds == sorted(kinds, key=[MULTIPLE_CHOICE, SHORT_ANSWER, ESSAY].index)


def test_multiple_choice_options():
    for q in _generator(count=10).generate():
        if q.kind != MULTIPLE_CHOICE:
            continue
        assert len(q.options) == 4
        assert len(set(q.options)) == 4
        assert q.correct_answer in q.options
        assert len(q.correct_answer) <= 60


def test_points_within_ranges():
    questions = _generator(count=10, points={
        "multiple_choice": (1, 1), "short_answer": (2, 3), "essay": (5, 10),
    }).generate()
    for q in questions:
        if q.kind == MULTIPLE_CHOICE:
            assert q.points == 1
        elif q.kind == SHORT_ANSWER:
            assert 2 <= q.points <= 3
        else:
            assert 5 <= q.points <= 10
            assert q.correct_answer is None


def test_definitions_used_first():
    questions = _generator(count=10).generate()
    mc_sources = [q.source for q in questions if q.kind == MULTIPLE_CHOICE]
    # 4 道选择题中基于定义的最多 ceil(4 * 0.6) = 3 道
    assert 1 <= mc_sources.count("definition") <= 3


def test_same_seed_same_questions():
    a = _generator(seed=42).generate()
    b = _generator(seed=42).generate()
    assert [(q.text, q.options, q.points) for q in a] == [(q.text, q.options, q.points) for q in b]


def test_injected_rng():
    segments = preprocess(DOC)
    concepts = extract_concepts(segments)
    a = synthesize(segments, concepts, 6, rng=random.Random(1))
    b = synthesize(segments, concepts, 6, rng=random.Random(1))
    assert [q.text for q in a] == [q.text for q in b]
    assert len(a) == 6


def test_unique_prompts_when_material_suffices():
    questions = _generator(count=10).generate()
    fps = [compute_fingerprint(q, "content") for q in questions]
    assert len(fps) == len(set(fps))
    assert all(q.fingerprint for q in questions)


def test_fallback_when_nothing_extractable():
    segments = preprocess("hello there")
    concepts = extract_concepts(segments)
    assert concepts.is_empty
    questions = QuizGenerator(segments, concepts, QuizConfig(seed=3)).generate(5)
    assert len(questions) == 5
    assert {q.source for q in questions} == {"fallback"}
    mc = [q for q in questions if q.kind == MULTIPLE_CHOICE]
    assert mc and all(len(q.options) == 4 for q in mc)
    assert all(q.correct_answer == "hello there" for q in mc)


def test_generate_rejects_bad_input():
    gen = _generator()
    with pytest.raises(QuizGenerationError):
        gen.generate(0)
    with pytest.raises(QuizGenerationError):
        QuizGenerator(TextSegments(), extract_concepts(TextSegments()), QuizConfig()).generate(3)
    with pytest.raises(QuizGenerationError):
        _generator(points={"essay": (0, 5)})


def test_summary():
    gen = _generator(count=5)
    text = gen.summary(gen.generate())
    assert "Questions: 5" in text
    assert "Multiple Choice: 2" in text


def test_essay_prompts_round_trip_topics():
    for q in _generator(count=10).generate():
        if q.kind == ESSAY and q.source in ("topic", "comparison"):
            assert extract_prompt_topics(q.text), q.text


def test_synthesis_pair_with_and_in_heading():
    segments = TextSegments(full_text="x", headings=["Cells and Tissues", "Organ Systems"])
    gen = QuizGenerator(segments, extract_concepts(TextSegments()), QuizConfig(seed=1))
    for position in range(4):
        q = gen._essay_synthesis(position)
        assert sorted(extract_prompt_topics(q.text)) == ["Cells and Tissues", "Organ Systems"], q.text


def test_prompt_topics():
    assert extract_prompt_topics("Compare and contrast Mitosis and Meiosis.") == ["Mitosis", "Meiosis"]
    assert extract_prompt_topics("Discuss the significance of Cell Division as presented in the material.") == [
        "Cell Division",
    ]
    assert extract_prompt_topics(
        "What are the main ideas presented in the material, and why are they significant?"
    ) == []


def test_templates_helpers():
    assert pick(("a", "b"), 3) == "b"
    assert prompt_safe('Cells: "Basics", part 1.') == "Cells Basics part 1"
    assert contains_and("Cells and Tissues")
    assert not contains_and("Band Theory")


def test_dedup():
    q1 = Question(id=1, kind=SHORT_ANSWER, text="Define  osmosis.", correct_answer="x")
    q2 = Question(id=2, kind=SHORT_ANSWER, text="define osmosis", correct_answer="x")
    q3 = Question(id=3, kind=SHORT_ANSWER, text="define osmosis", correct_answer="y")
    assert len(deduplicate([q1, q2])) == 1
    assert len(deduplicate([q1, q3])) == 2
    assert len(deduplicate([q1, q3], strategy="content")) == 1
    assert len(compute_fingerprint(q1)) == 16


if __name__ == "__main__":
    for n, exp in [(1, (1, 0, 0)), (3, (1, 1, 1)), (10, (4, 4, 2))]:
        test_split_targets(n, exp)
    test_generate_count_and_ids()
    test_multiple_choice_options()
    test_points_within_ranges()
    test_definitions_used_first()
    test_same_seed_same_questions()
    test_injected_rng()
    test_unique_prompts_when_material_suffices()
    test_fallback_when_nothing_extractable()
    test_generate_rejects_bad_input()
    test_summary()
    test_essay_prompts_round_trip_topics()
    test_synthesis_pair_with_and_in_heading()
    test_prompt_topics()
    test_templates_helpers()
    test_dedup()
    print("All tests passed!")
