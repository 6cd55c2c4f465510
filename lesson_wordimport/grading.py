"""Translate raw Lesson answer scores into Moodle answer fractions.

Lesson pages score answers with raw points, whereas Moodle Question XML
expects a percentage per answer (``fraction``) relative to the question's
default mark. The rules differ per question type:

MultiChoice
    ``defaultMark`` is the sum of the positive scores. In single-answer mode
    a positive score earns 100 and anything else 0. In multi-answer mode a
    positive score earns ``score / defaultMark * 100`` and every other answer
    shares the penalty ``-100 / nIncorrect``; without an incorrect answer the
    penalty is undefined and the question is rejected.
ShortAnswer, Numerical
    ``defaultMark`` is the best score. The best answer earns 100, other
    positive answers ``score / defaultMark * 100`` and the rest 0.
TrueFalse
    The correct answer earns 100 and the incorrect one 0.
Essay, Matching
    No per-answer grade (``None``); matching is marked all-or-nothing.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence

from .datamodel import Answer, QuestionType
from .errors import InvalidQuestion, MalformedQuestion


@dataclass(frozen=True)
class GradedAnswer:
    answer: Answer
    grade: Optional[float]


@dataclass(frozen=True)
class _GradeRule:
    default_mark: Callable[[Sequence[Answer]], float]
    grades: Callable[[Sequence[Answer], float, bool], List[Optional[float]]]


def _positive_total(answers: Sequence[Answer]) -> float:
    return float(sum(answer.score for answer in answers if answer.score > 0))


def _best_score(answers: Sequence[Answer]) -> float:
    return float(max((answer.score for answer in answers), default=0.0))


def _first_score(answers: Sequence[Answer]) -> float:
    return float(answers[0].score) if answers else 0.0


def _multichoice_grades(answers: Sequence[Answer], default_mark: float, single: bool) -> List[Optional[float]]:
    if not answers:
        raise InvalidQuestion("multichoice question has no answers")
    if single:
        return [100.0 if answer.score > 0 else 0.0 for answer in answers]

    n_incorrect = sum(1 for answer in answers if answer.score <= 0)
    if n_incorrect == 0:
        raise InvalidQuestion("multi-answer multichoice question needs at least one incorrect answer")
    penalty = -100.0 / n_incorrect
    return [answer.score / default_mark * 100 if answer.score > 0 else penalty for answer in answers]


def _best_answer_grades(answers: Sequence[Answer], default_mark: float, single: bool) -> List[Optional[float]]:
    grades: List[Optional[float]] = []
    for answer in answers:
        if default_mark <= 0 or answer.score <= 0:
            grades.append(0.0)
        elif answer.score == default_mark:
            grades.append(100.0)
        else:
            grades.append(answer.score / default_mark * 100)
    return grades


def _true_false_grades(answers: Sequence[Answer], default_mark: float, single: bool) -> List[Optional[float]]:
    if len(answers) != 2:
        raise MalformedQuestion(f"truefalse question needs exactly 2 answers, got {len(answers)}")
    return [100.0, 0.0]


def _ungraded(answers: Sequence[Answer], default_mark: float, single: bool) -> List[Optional[float]]:
    return [None] * len(answers)


GRADE_RULES: Mapping[QuestionType, _GradeRule] = MappingProxyType(
    {
        QuestionType.MULTI_CHOICE: _GradeRule(_positive_total, _multichoice_grades),
        QuestionType.SHORT_ANSWER: _GradeRule(_best_score, _best_answer_grades),
        QuestionType.NUMERICAL: _GradeRule(_best_score, _best_answer_grades),
        QuestionType.TRUE_FALSE: _GradeRule(_first_score, _true_false_grades),
        QuestionType.ESSAY: _GradeRule(_first_score, _ungraded),
        QuestionType.MATCHING: _GradeRule(_first_score, _ungraded),
    }
)


def _rule_for(question_type: QuestionType) -> _GradeRule:
    try:
        return GRADE_RULES[question_type]
    except KeyError as exc:
        raise InvalidQuestion(f"{question_type.name.lower()} pages carry no gradable answers") from exc


def default_mark(question_type: QuestionType, answers: Sequence[Answer]) -> float:
    """Maximum raw score achievable for a question of *question_type*."""

    return _rule_for(question_type).default_mark(answers)


def compute_grades(
    question_type: QuestionType,
    answers: Sequence[Answer],
    single_answer: bool = True,
) -> List[GradedAnswer]:
    """Return ``(answer, grade)`` pairs in answer order.

    Raises:
        InvalidQuestion: for page types without grades or for answer sets
            that make the grade formula undefined.
    """

    rule = _rule_for(question_type)
    mark = rule.default_mark(answers)
    grades = rule.grades(answers, mark, single_answer)
    return [GradedAnswer(answer=answer, grade=grade) for answer, grade in zip(answers, grades)]


__all__ = ["GRADE_RULES", "GradedAnswer", "compute_grades", "default_mark"]
