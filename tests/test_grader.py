import pytest
from doc_quiz_toolkit.grader import (
    INVALID_FORMAT_FEEDBACK, NO_ANSWER_FEEDBACK, GradingError,
    grade, grade_essay, grade_multiple_choice, grade_short_answer,
    key_term_coverage, round_half_up, topic_coverage, word_similarity,
)
from doc_quiz_toolkit.models import ESSAY, MULTIPLE_CHOICE, SHORT_ANSWER, Question

# 测试数据
MC = Question(
    id=1, kind=MULTIPLE_CHOICE, points=2,
    text="Which of the following best describes photosynthesis?",
    options=[
        "Plants convert light energy into chemical energy",
        "A concept that is not covered in the material",
        "The opposite of what the material describes",
        "A term introduced only in a later chapter",
    ],
    correct_answer="Plants convert light energy into chemical energy",
)

SA = Question(
    id=2, kind=SHORT_ANSWER, points=5,
    text="Explain what is meant by mitochondria.",
    correct_answer="Mitochondria produce energy through cellular respiration",
)

ESSAY_Q = Question(id=3, kind=ESSAY, points=10, text="Compare and contrast Mitosis and Meiosis.")

LONG_ESSAY = (
    "Mitosis and meiosis are the two ways in which cells divide. " * 3
    + "\n\n"
    + "Mitosis produces identical cells while meiosis produces varied cells for reproduction. " * 15
    + "\n\n"
    + "In conclusion, mitosis supports growth and meiosis supports sexual reproduction."
)


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(49.5) == 50
    assert round_half_up(0.49) == 0


def test_word_similarity():
    assert word_similarity("light energy", "light energy") == 1.0
    assert word_similarity("", "") == 0.0
    assert word_similarity("plants grow", "rocks sink") == 0.0


def test_multiple_choice_exact():
    fb = grade_multiple_choice(MC, "Plants convert light energy into chemical energy")
    assert fb.points == 2 and fb.is_correct
    assert fb.feedback == "Correct!"


def test_multiple_choice_partial_and_wrong():
    fb = grade_multiple_choice(MC, "Plants convert light energy into sugar energy")
    assert fb.points == 1.0
    assert not fb.is_correct
    assert fb.feedback.startswith("Partially correct")

    fb = grade_multiple_choice(MC, "A term introduced only in a later chapter")
    assert fb.points == 0
    assert fb.feedback == f"Incorrect. The correct answer is: {MC.correct_answer}"


def test_multiple_choice_list_answer():
    fb = grade_multiple_choice(MC, ["Plants convert light energy into chemical energy"])
    assert fb.is_correct


def test_short_answer_containment():
    fb = grade_short_answer(SA, "I think mitochondria produce energy through cellular respiration, mostly.")
    assert fb.points == 5 and fb.is_correct


def test_short_answer_key_terms():
    ratio, missing = key_term_coverage("energy comes from respiration", SA.correct_answer.lower())
    assert ratio == pytest.approx(0.4)
    assert missing == ["mitochondria", "produce", "cellular"]

    fb = grade_short_answer(SA, "energy comes from respiration")
    assert fb.points == 3.0
    assert not fb.is_correct
    assert "Consider including: mitochondria, produce, cellular." in fb.feedback


def test_short_answer_floor_and_invalid():
    fb = grade_short_answer(SA, "no idea at all")
    assert fb.points == 0.5
    assert grade_short_answer(SA, ["energy"]).feedback == INVALID_FORMAT_FEEDBACK


def test_essay_short_single_paragraph():
    answer = "Mitosis and meiosis are both kinds of cell division found in living things."
    fb = grade_essay(ESSAY_Q, answer)
    # 长度 5% + 结构 0% + 覆盖度档位
    assert fb.points <= ESSAY_Q.points * (0.05 + 0.0 + 0.10)
    assert fb.points == 1
    assert not fb.is_correct


def test_essay_full_marks():
    fb = grade_essay(ESSAY_Q, LONG_ESSAY)
    assert fb.points == 10
    assert fb.is_correct
    assert "well structured" in fb.feedback


def test_essay_without_prompt_topics():
    q = Question(id=4, kind=ESSAY, points=10,
                 text="What are the main ideas presented in the material, and why are they significant?")
    assert topic_coverage("anything", []) == 0.0
    fb = grade_essay(q, LONG_ESSAY)
    # 无法解析主题时覆盖度按 10% 计
    assert fb.points == 8


MC_TEN = Question(id=5, kind=MULTIPLE_CHOICE, points=10, text=MC.text,
                  options=MC.options, correct_answer=MC.correct_answer)
SA_TEN = Question(id=6, kind=SHORT_ANSWER, points=10, text=SA.text,
                  correct_answer=SA.correct_answer)
# 题干中解析不出主题，覆盖度固定 10%
OPEN_ESSAY = Question(id=7, kind=ESSAY, points=20,
                      text="What are the main ideas presented in the material, and why are they significant?")
PAIR_ESSAY = Question(id=8, kind=ESSAY, points=20, text="Compare and contrast Mitosis and Meiosis.")

INTRO = "Cells are the building blocks of every living thing."
BODY = "They divide, grow and specialise into many kinds of tissue."
CONCLUSION = "In conclusion, cells explain much of how life works."
PLAIN_END = "Scientists still study them with great interest today."


@pytest.mark.parametrize("answer,points,fragment", [
    ("Plants convert light energy into chemical energy", 10, "Correct!"),
    ("Plants convert light energy into sugar energy", 5.0, "Partially correct"),   # 5/7 > 0.7
    ("Plants convert light into heat", 2.0, "Partially correct"),                  # 4/7 > 0.3
    ("Animals need food", 0, "Incorrect"),
])
def test_multiple_choice_bands(answer, points, fragment):
    fb = grade_multiple_choice(MC_TEN, answer)
    assert fb.points == points
    assert fragment in fb.feedback


@pytest.mark.parametrize("answer,points,fragment,suffix", [
    ("respiration cellular energy produce mitochondria", 10, "Excellent", False),  # 5/5
    ("energy produce mitochondria", 8.0, "Good answer", True),                     # 3/5
    ("energy comes from respiration", 6.0, "Partially correct", True),             # 2/5
    ("some energy stuff", 3.0, "missing many", False),                             # 1/5
    ("no idea at all", 1.0, "does not address", False),                            # 0/5
])
def test_short_answer_bands(answer, points, fragment, suffix):
    fb = grade_short_answer(SA_TEN, answer)
    assert fb.points == points
    assert fragment in fb.feedback
    assert ("Consider including" in fb.feedback) is suffix


@pytest.mark.parametrize("words,points,fragment", [
    (250, 10, "good length and depth"),      # 40% + 10%
    (150, 8, "adequate length"),             # 30% + 10%
    (75, 5, "somewhat brief"),               # 15% + 10%
    (20, 3, "too short"),                    # 5% + 10%
])
def test_essay_length_bands(words, points, fragment):
    fb = grade_essay(OPEN_ESSAY, "word " * words)
    assert fb.points == points
    assert fragment in fb.feedback


@pytest.mark.parametrize("paragraphs,points,fragment", [
    ([INTRO, BODY, CONCLUSION], 9, "well structured"),
    ([INTRO, BODY, PLAIN_END], 7, "reasonable structure"),
    (["However, cells are the building blocks of every living thing.", BODY, PLAIN_END],
     5, "divided into paragraphs"),
    ([INTRO + " " + BODY], 3, "needs better structure"),
    # 结论标记按整词匹配，enthusiasm 不含 thus
    ([INTRO, BODY, "Students approach this topic with enthusiasm every day."],
     7, "reasonable structure"),
    ([INTRO, BODY, "Overall, cells explain much of how life works."], 9, "well structured"),
])
def test_essay_structure_bands(paragraphs, points, fragment):
    # 长度 5% + 覆盖度 10% + 结构档位
    fb = grade_essay(OPEN_ESSAY, "\n\n".join(paragraphs))
    assert fb.points == points
    assert fragment in fb.feedback


@pytest.mark.parametrize("answer,points,fragment", [
    ("Mitosis and meiosis differ, yet mitosis and meiosis both split cells.", 7, "thoroughly addressed"),
    ("Mitosis and meiosis differ, and mitosis is simpler to follow.", 5, "addressed the main topics"),
    ("Mitosis and meiosis are both forms of cell division.", 3, "touched on some"),
    ("Mitosis is how body cells divide and grow.", 1, "does not sufficiently address"),
])
def test_essay_coverage_bands(answer, points, fragment):
    # 单段短文：长度 5% + 结构 0% + 覆盖度档位
    fb = grade_essay(PAIR_ESSAY, answer)
    assert fb.points == points
    assert fragment in fb.feedback


def test_grade_example_score():
    questions = [
        Question(id=1, kind=MULTIPLE_CHOICE, points=2, text="Q1",
                 options=["a", "b", "c", "d"], correct_answer="a"),
        Question(id=2, kind=SHORT_ANSWER, points=3, text="Q2", correct_answer="cells divide"),
        Question(id=3, kind=SHORT_ANSWER, points=5, text=SA.text, correct_answer=SA.correct_answer),
    ]
    fb = grade(questions, {"1": "a", "3": "energy comes from respiration"})
    assert [fb.question_feedback[k].points for k in ("1", "2", "3")] == [2, 0, 3.0]
    assert fb.max_score == 10
    assert fb.total_earned == 5
    assert fb.score == 50
    assert fb.overall_feedback.startswith("You scored 5 out of 10 points (50%).")


def test_grade_empty_answers():
    fb = grade([MC, SA, ESSAY_Q], {})
    assert fb.score == 0
    assert all(qf.points == 0 for qf in fb.question_feedback.values())
    assert all(qf.feedback == NO_ANSWER_FEEDBACK for qf in fb.question_feedback.values())


def test_grade_whitespace_is_unanswered_and_extra_keys_ignored():
    fb = grade([MC], {"1": "   ", "99": "ignored"})
    assert fb.question_feedback["1"].feedback == NO_ANSWER_FEEDBACK
    assert set(fb.question_feedback) == {"1"}


def test_grade_idempotent():
    answers = {"1": MC.correct_answer, "2": "energy comes from respiration", "3": LONG_ESSAY}
    assert grade([MC, SA, ESSAY_Q], answers) == grade([MC, SA, ESSAY_Q], answers)


def test_grade_rejects_empty_question_list():
    with pytest.raises(GradingError):
        grade([], {})


if __name__ == "__main__":
    test_round_half_up()
    test_word_similarity()
    test_multiple_choice_exact()
    test_multiple_choice_partial_and_wrong()
    test_multiple_choice_list_answer()
    test_short_answer_containment()
    test_short_answer_key_terms()
    test_short_answer_floor_and_invalid()
    test_essay_short_single_paragraph()
    test_essay_full_marks()
    test_essay_without_prompt_topics()
    test_grade_example_score()
    test_grade_empty_answers()
    test_grade_whitespace_is_unanswered_and_extra_keys_ignored()
    test_grade_idempotent()
    test_grade_rejects_empty_question_list()
    print("All tests passed!")
