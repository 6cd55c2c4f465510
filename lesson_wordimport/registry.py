"""Lesson page-type and jump-target name tables.

The tables are fixed: Lesson stores the numeric codes and Moodle Question XML
uses the names, so both directions are exposed as read-only mappings.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

from .datamodel import JumpTarget, NamedJump, QuestionType

PAGE_TYPE_CODES: Mapping[str, int] = MappingProxyType(
    {
        "shortanswer": QuestionType.SHORT_ANSWER.value,
        "truefalse": QuestionType.TRUE_FALSE.value,
        "multichoice": QuestionType.MULTI_CHOICE.value,
        "matching": QuestionType.MATCHING.value,
        "numerical": QuestionType.NUMERICAL.value,
        "essay": QuestionType.ESSAY.value,
        "lessonpage": QuestionType.LESSON_PAGE.value,
        "endofbranch": QuestionType.BRANCH_END.value,
        "cluster": QuestionType.CLUSTER_START.value,
        "endofcluster": QuestionType.CLUSTER_END.value,
    }
)

PAGE_TYPE_NAMES: Mapping[int, str] = MappingProxyType(
    {code: name for name, code in PAGE_TYPE_CODES.items()}
)

JUMP_CODES: Mapping[str, int] = MappingProxyType(
    {
        "nextpage": NamedJump.NEXT_PAGE.value,
        "previouspage": NamedJump.PREVIOUS_PAGE.value,
        "thispage": NamedJump.THIS_PAGE.value,
        "endoflesson": NamedJump.END_OF_LESSON.value,
    }
)

JUMP_NAMES: Mapping[int, str] = MappingProxyType({code: name for name, code in JUMP_CODES.items()})


def code_of(type_name: str) -> int:
    """Return the Lesson code for *type_name*, or ``0`` when it is unknown."""

    return PAGE_TYPE_CODES.get(type_name.strip().lower(), 0)


def type_of(code: int) -> QuestionType:
    """Return the page type registered for *code* (``UNKNOWN`` otherwise)."""

    if code not in PAGE_TYPE_NAMES:
        return QuestionType.UNKNOWN
    return QuestionType(code)


def name_of(question_type: QuestionType) -> str:
    try:
        return PAGE_TYPE_NAMES[question_type.value]
    except KeyError as exc:
        raise ValueError(f"no type name registered for {question_type!r}") from exc


def is_plain_page(code: int) -> bool:
    return code == QuestionType.LESSON_PAGE.value


def jump_code_of(name: str) -> Optional[int]:
    return JUMP_CODES.get(name.strip().lower())


def jump_name_of(jump: NamedJump) -> str:
    return JUMP_NAMES[jump.value]


def jump_target_from_fragment(fragment: str) -> Optional[JumpTarget]:
    """Turn a link fragment (``previouspage``, ``7``) back into a jump target.

    Negative numeric fragments are the placeholders written for unresolved
    jumps and map back to their raw code. Anything else returns ``None``.
    """

    fragment = fragment.strip().lstrip("#")
    if not fragment:
        return None
    code = jump_code_of(fragment)
    if code is not None:
        return JumpTarget.from_code(code)
    try:
        return JumpTarget.from_code(int(fragment))
    except ValueError:
        return None


__all__ = [
    "JUMP_CODES",
    "JUMP_NAMES",
    "PAGE_TYPE_CODES",
    "PAGE_TYPE_NAMES",
    "code_of",
    "is_plain_page",
    "jump_code_of",
    "jump_name_of",
    "jump_target_from_fragment",
    "name_of",
    "type_of",
]
