from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from lesson_wordimport.datamodel import Answer, QuestionType
from lesson_wordimport.errors import InvalidQuestion, MalformedQuestion
from lesson_wordimport.grading import compute_grades, default_mark


def _answers(*scores: float) -> List[Answer]:
    return [Answer(text=f"answer {index}", score=score) for index, score in enumerate(scores)]


def _grades(question_type: QuestionType, answers: List[Answer], single: bool = True) -> List[object]:
    return [entry.grade for entry in compute_grades(question_type, answers, single)]


def test_single_answer_multichoice_is_all_or_nothing() -> None:
    assert _grades(QuestionType.MULTI_CHOICE, _answers(1, 0, 0)) == [100.0, 0.0, 0.0]


def test_multi_answer_multichoice_splits_credit_and_penalty() -> None:
    answers = _answers(2, 1, 0, 0)
    grades = _grades(QuestionType.MULTI_CHOICE, answers, single=False)
    mark = default_mark(QuestionType.MULTI_CHOICE, answers)

    assert mark == 3
    assert grades[0] == pytest.approx(2 / 3 * 100)
    assert grades[1] == pytest.approx(1 / 3 * 100)
    assert grades[2:] == [-50.0, -50.0]
    # Positive grades scale back to the raw scores.
    for answer, grade in zip(answers[:2], grades[:2]):
        assert grade / 100 * mark == pytest.approx(answer.score)


def test_multi_answer_multichoice_without_incorrect_answers_is_invalid() -> None:
    with pytest.raises(InvalidQuestion):
        compute_grades(QuestionType.MULTI_CHOICE, _answers(1, 1), single_answer=False)


def test_single_answer_multichoice_without_incorrect_answers_is_graded() -> None:
    assert _grades(QuestionType.MULTI_CHOICE, _answers(1, 1)) == [100.0, 100.0]


def test_multichoice_without_answers_is_invalid() -> None:
    with pytest.raises(InvalidQuestion):
        compute_grades(QuestionType.MULTI_CHOICE, [], single_answer=False)


def test_short_answer_grades_relative_to_best_score() -> None:
    answers = _answers(5, 2, 0)
    assert default_mark(QuestionType.SHORT_ANSWER, answers) == 5
    assert _grades(QuestionType.SHORT_ANSWER, answers) == [100.0, 40.0, 0.0]


def test_numerical_grades_within_tolerance() -> None:
    grades = _grades(QuestionType.NUMERICAL, _answers(1.5, 3, 0.7, -1))
    assert grades[1] == 100.0
    assert grades[0] == pytest.approx(50.0, abs=1e-6)
    assert grades[2] == pytest.approx(0.7 / 3 * 100, abs=1e-6)
    assert grades[3] == 0.0


def test_short_answer_without_positive_scores_has_no_correct_answer() -> None:
    assert _grades(QuestionType.SHORT_ANSWER, _answers(0, 0)) == [0.0, 0.0]


def test_true_false_grades_are_fixed() -> None:
    answers = _answers(3, 0)
    assert _grades(QuestionType.TRUE_FALSE, answers) == [100.0, 0.0]
    assert default_mark(QuestionType.TRUE_FALSE, answers) == 3


def test_true_false_needs_two_answers() -> None:
    with pytest.raises(MalformedQuestion):
        compute_grades(QuestionType.TRUE_FALSE, _answers(1, 0, 0))


def test_essay_and_matching_have_no_answer_grades() -> None:
    assert _grades(QuestionType.ESSAY, _answers(4)) == [None]
    assert default_mark(QuestionType.ESSAY, _answers(4)) == 4
    assert _grades(QuestionType.MATCHING, _answers(1, 0, 0, 0)) == [None] * 4


def test_graded_answers_keep_order() -> None:
    answers = _answers(0, 3, 1)
    graded = compute_grades(QuestionType.SHORT_ANSWER, answers)
    assert [entry.answer for entry in graded] == answers


def test_plain_pages_cannot_be_graded() -> None:
    with pytest.raises(InvalidQuestion):
        compute_grades(QuestionType.LESSON_PAGE, _answers(1))
