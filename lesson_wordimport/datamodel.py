"""Core data model for Lesson pages and the questions they carry.

Lesson question pages are stored as a type code, a stem and an ordered list of
answers. Each answer holds a raw score and a jump telling the Lesson where to
send the learner after choosing it. The conversion modules (grading, jump
resolution, export and import) all work on the structures defined here, so the
positional conventions of the fixed-shape question types are checked in one
place rather than in every consumer.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence

from .errors import MalformedQuestion


class QuestionType(int, Enum):
    """Lesson page type codes, as stored by the Lesson activity."""

    UNKNOWN = 0
    SHORT_ANSWER = 1
    TRUE_FALSE = 2
    MULTI_CHOICE = 3
    MATCHING = 5
    NUMERICAL = 8
    ESSAY = 10
    LESSON_PAGE = 20
    BRANCH_END = 21
    CLUSTER_START = 30
    CLUSTER_END = 31

    @classmethod
    def from_code(cls, code: int) -> "QuestionType":
        """Return the variant for *code*, or ``UNKNOWN`` when unregistered."""

        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_question(self) -> bool:
        return self in _QUESTION_TYPES


_QUESTION_TYPES = frozenset(
    {
        QuestionType.SHORT_ANSWER,
        QuestionType.TRUE_FALSE,
        QuestionType.MULTI_CHOICE,
        QuestionType.MATCHING,
        QuestionType.NUMERICAL,
        QuestionType.ESSAY,
    }
)


class NamedJump(int, Enum):
    """Relative jump targets with their fixed Lesson codes."""

    NEXT_PAGE = -1
    PREVIOUS_PAGE = -40
    THIS_PAGE = 0
    END_OF_LESSON = -9


@dataclass(frozen=True)
class JumpTarget:
    """Navigation target attached to an answer.

    The raw Lesson code is kept as-is: zero and negative codes are named
    jumps, positive codes are page ids. A negative code missing from the
    named-jump table is still representable so that exports can degrade
    gracefully instead of failing.
    """

    code: int

    @classmethod
    def from_code(cls, code: int) -> "JumpTarget":
        return cls(code=int(code))

    @classmethod
    def named_jump(cls, jump: NamedJump) -> "JumpTarget":
        return cls(code=jump.value)

    @classmethod
    def page(cls, page_id: int) -> "JumpTarget":
        if page_id <= 0:
            raise ValueError(f"page id must be positive, got {page_id}")
        return cls(code=page_id)

    @property
    def is_page(self) -> bool:
        return self.code > 0

    @property
    def named(self) -> Optional[NamedJump]:
        """Named jump for this code, ``None`` for page ids and unknown codes."""

        if self.code > 0:
            return None
        try:
            return NamedJump(self.code)
        except ValueError:
            return None

    @property
    def page_id(self) -> Optional[int]:
        return self.code if self.code > 0 else None


NEXT_PAGE = JumpTarget.named_jump(NamedJump.NEXT_PAGE)
THIS_PAGE = JumpTarget.named_jump(NamedJump.THIS_PAGE)


@dataclass(frozen=True)
class Answer:
    """One candidate response of a question page."""

    text: str = ""
    score: float = 0.0
    feedback: str = ""
    jump: JumpTarget = NEXT_PAGE


@dataclass(frozen=True)
class TrueFalseAnswers:
    correct: Answer
    incorrect: Answer


@dataclass(frozen=True)
class MatchingAnswers:
    """Matching answers split into feedback carriers and real pairs."""

    correct: Answer
    incorrect: Answer
    pairs: Sequence[Answer]


PageTitleIndex = Mapping[int, str]


@dataclass
class Question:
    """A Lesson question page in its generic form."""

    type: QuestionType
    title: str
    stem: str
    answers: List[Answer] = field(default_factory=list)
    single_answer: bool = True
    page_id: Optional[int] = None

    @property
    def label(self) -> str:
        if self.page_id is not None:
            return f"page {self.page_id} ({self.title})"
        return self.title or "untitled question"

    def true_false_answers(self) -> TrueFalseAnswers:
        self._require_answer_count(2, exact=True)
        return TrueFalseAnswers(correct=self.answers[0], incorrect=self.answers[1])

    def matching_answers(self) -> MatchingAnswers:
        self._require_answer_count(2, exact=False)
        return MatchingAnswers(
            correct=self.answers[0],
            incorrect=self.answers[1],
            pairs=tuple(self.answers[2:]),
        )

    def essay_answer(self) -> Answer:
        self._require_answer_count(1, exact=True)
        return self.answers[0]

    def validate(self) -> None:
        """Check the positional contract of fixed-shape question types."""

        if self.type == QuestionType.TRUE_FALSE:
            self.true_false_answers()
        elif self.type == QuestionType.MATCHING:
            self.matching_answers()
        elif self.type == QuestionType.ESSAY:
            self.essay_answer()

    def _require_answer_count(self, expected: int, *, exact: bool) -> None:
        actual = len(self.answers)
        if actual == expected or (not exact and actual > expected):
            return
        qualifier = "exactly" if exact else "at least"
        raise MalformedQuestion(
            f"{self.type.name.lower()} question needs {qualifier} {expected} answers, got {actual}",
            question=self.label,
        )


@dataclass
class LessonPage:
    """A Lesson page: plain content, a structural marker or a question."""

    id: int
    title: str
    type: QuestionType
    contents: str = ""
    answers: List[Answer] = field(default_factory=list)
    single_answer: bool = True

    @property
    def is_question(self) -> bool:
        return self.type.is_question

    def to_question(self) -> Question:
        return Question(
            type=self.type,
            title=self.title,
            stem=self.contents,
            answers=list(self.answers),
            single_answer=self.single_answer,
            page_id=self.id,
        )

    @classmethod
    def from_question(cls, question: Question, page_id: int) -> "LessonPage":
        return cls(
            id=page_id,
            title=question.title,
            type=question.type,
            contents=question.stem,
            answers=list(question.answers),
            single_answer=question.single_answer,
        )


def build_title_index(pages: Sequence[LessonPage]) -> PageTitleIndex:
    """Return a read-only page id to title lookup for *pages*."""

    return MappingProxyType({page.id: page.title for page in pages})


__all__ = [
    "Answer",
    "JumpTarget",
    "LessonPage",
    "MatchingAnswers",
    "NEXT_PAGE",
    "NamedJump",
    "PageTitleIndex",
    "Question",
    "QuestionType",
    "THIS_PAGE",
    "TrueFalseAnswers",
    "build_title_index",
]
