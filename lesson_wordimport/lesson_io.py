"""Read and write lessons in the JSON interchange format.

A lesson file holds an ordered ``pages`` array::

    {
        "pages": [
            {
                "id": 7,
                "title": "Capitals",
                "type": "multichoice",
                "contents": "<p>Capital of France?</p>",
                "single_answer": true,
                "answers": [
                    {"text": "Paris", "score": 1, "feedback": "", "jump": "nextpage"},
                    {"text": "Lyon", "score": 0, "feedback": "No", "jump": 7}
                ]
            }
        ]
    }

``type`` accepts a page-type name or its numeric code; ``jump`` accepts a
named jump (``nextpage``, ``previouspage``, ``thispage``, ``endoflesson``)
or a raw Lesson code.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from .datamodel import NEXT_PAGE, Answer, JumpTarget, LessonPage, QuestionType
from .registry import JUMP_NAMES, code_of, jump_code_of, name_of, type_of


class LessonFormatError(RuntimeError):
    """Raised when a lesson payload cannot be loaded."""


def load_lesson_from_file(path: Path) -> List[LessonPage]:
    """Load the pages stored in the JSON file at *path*."""

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise LessonFormatError(f"Invalid lesson file {path}: {exc}") from exc
    return pages_from_payload(raw)


def pages_from_payload(payload: Any) -> List[LessonPage]:
    if isinstance(payload, Mapping):
        items = payload.get("pages")
    else:
        items = payload
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)):
        raise LessonFormatError("Lesson payload must be a list of pages or an object with `pages`")

    pages = [_page_from_mapping(item, index) for index, item in enumerate(items, start=1)]
    ids = [page.id for page in pages]
    if len(set(ids)) != len(ids):
        raise LessonFormatError(f"Duplicate page ids: {ids}")
    return pages


def lesson_to_payload(pages: Sequence[LessonPage]) -> Dict[str, Any]:
    return {"pages": [_page_to_mapping(page) for page in pages]}


def write_lesson(pages: Sequence[LessonPage], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(lesson_to_payload(pages), fh, ensure_ascii=False, indent=2)


def _page_from_mapping(item: Any, index: int) -> LessonPage:
    if not isinstance(item, Mapping):
        raise LessonFormatError(f"Page #{index} must be an object")
    for key in ("title", "type"):
        if key not in item:
            raise LessonFormatError(f"Page #{index} is missing `{key}`")

    page_type = _parse_type(item["type"], index)
    answers = item.get("answers", [])
    if not isinstance(answers, Sequence) or isinstance(answers, str):
        raise LessonFormatError(f"Page #{index}: `answers` must be an array")

    return LessonPage(
        id=_parse_int(item.get("id", index), f"page #{index} id"),
        title=str(item["title"]),
        type=page_type,
        contents=str(item.get("contents", "")),
        answers=[_answer_from_mapping(answer, index) for answer in answers],
        single_answer=bool(item.get("single_answer", True)),
    )


def _parse_type(raw: Any, index: int) -> QuestionType:
    if isinstance(raw, str) and not raw.strip().isdigit():
        code = code_of(raw)
    else:
        code = _parse_int(raw, f"page #{index} type")
    page_type = type_of(code)
    if page_type == QuestionType.UNKNOWN:
        raise LessonFormatError(f"Page #{index} has unknown type {raw!r}")
    return page_type


def _answer_from_mapping(raw: Any, index: int) -> Answer:
    if not isinstance(raw, Mapping):
        raise LessonFormatError(f"Page #{index}: answers must be objects")
    score = raw.get("score", 0)
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise LessonFormatError(f"Page #{index}: answer score must be a number, got {score!r}")
    return Answer(
        text=str(raw.get("text", "")),
        score=float(score),
        feedback=str(raw.get("feedback", "")),
        jump=_parse_jump(raw.get("jump"), index),
    )


def _parse_jump(raw: Any, index: int) -> JumpTarget:
    if raw is None:
        return NEXT_PAGE
    if isinstance(raw, str) and not raw.strip().lstrip("-").isdigit():
        code = jump_code_of(raw)
        if code is None:
            raise LessonFormatError(f"Page #{index}: unknown jump {raw!r}")
        return JumpTarget.from_code(code)
    return JumpTarget.from_code(_parse_int(raw, f"page #{index} jump"))


def _parse_int(raw: Any, name: str) -> int:
    if isinstance(raw, bool):
        raise LessonFormatError(f"{name} must be an integer, got {raw!r}")
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise LessonFormatError(f"{name} must be an integer, got {raw!r}") from exc


def _page_to_mapping(page: LessonPage) -> Dict[str, Any]:
    return {
        "id": page.id,
        "title": page.title,
        "type": name_of(page.type),
        "contents": page.contents,
        "single_answer": page.single_answer,
        "answers": [_answer_to_mapping(answer) for answer in page.answers],
    }


def _answer_to_mapping(answer: Answer) -> Dict[str, Any]:
    jump: Any = JUMP_NAMES.get(answer.jump.code, answer.jump.code)
    score: Any = int(answer.score) if float(answer.score).is_integer() else answer.score
    return {"text": answer.text, "score": score, "feedback": answer.feedback, "jump": jump}


__all__ = [
    "LessonFormatError",
    "lesson_to_payload",
    "load_lesson_from_file",
    "pages_from_payload",
    "write_lesson",
]
