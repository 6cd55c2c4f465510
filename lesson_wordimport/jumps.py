"""Resolve answer jumps into navigation links for exported markup.

Each answer carries a jump (a named relative target or another page id). On
export the jump becomes an ``<a href="#...">`` link whose fragment names the
target and whose visible text depends on the question type:

* matching and essay pages label the link with the target itself;
* short-answer and numerical pages use the answer feedback when present,
  falling back to the target label;
* every other page type keeps the answer text as the label.

Jumps that cannot be resolved never abort an export. The raw code is used as
both label and fragment and an :class:`~lesson_wordimport.errors.UnresolvedJump`
warning is emitted.
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from .datamodel import Answer, JumpTarget, PageTitleIndex, QuestionType
from .errors import UnresolvedJump
from .localization import LESSON_COMPONENT, Localizer
from .markup import cdata, link_markup
from .registry import jump_name_of

logger = logging.getLogger(__name__)


class LabelPolicy(Enum):
    ANSWER_TEXT = "answer-text"
    TARGET = "target"
    FEEDBACK_OR_TARGET = "feedback-or-target"


LABEL_POLICIES: Mapping[QuestionType, LabelPolicy] = MappingProxyType(
    {
        QuestionType.MATCHING: LabelPolicy.TARGET,
        QuestionType.ESSAY: LabelPolicy.TARGET,
        QuestionType.SHORT_ANSWER: LabelPolicy.FEEDBACK_OR_TARGET,
        QuestionType.NUMERICAL: LabelPolicy.FEEDBACK_OR_TARGET,
        QuestionType.MULTI_CHOICE: LabelPolicy.ANSWER_TEXT,
        QuestionType.TRUE_FALSE: LabelPolicy.ANSWER_TEXT,
        QuestionType.LESSON_PAGE: LabelPolicy.ANSWER_TEXT,
        QuestionType.BRANCH_END: LabelPolicy.ANSWER_TEXT,
        QuestionType.CLUSTER_START: LabelPolicy.ANSWER_TEXT,
        QuestionType.CLUSTER_END: LabelPolicy.ANSWER_TEXT,
        QuestionType.UNKNOWN: LabelPolicy.ANSWER_TEXT,
    }
)


@dataclass(frozen=True)
class JumpLink:
    """Visible text and URL fragment of a navigation link."""

    text: str
    fragment: str
    resolved: bool = True

    @property
    def href(self) -> str:
        return f"#{self.fragment}"

    def to_html(self) -> str:
        return link_markup(self.text, self.fragment)

    def to_markup(self) -> str:
        """Link wrapped so downstream XML escaping leaves it untouched."""

        return cdata(self.to_html())


@dataclass(frozen=True)
class _Target:
    label: str
    fragment: str
    resolved: bool


class JumpLinkResolver:
    """Turn answer jumps into :class:`JumpLink` objects."""

    def __init__(self, page_titles: PageTitleIndex, localizer: Localizer) -> None:
        self._page_titles = page_titles
        self._localizer = localizer

    def resolve(self, answer: Answer, question_type: QuestionType) -> JumpLink:
        target = self._describe(answer.jump)
        policy = LABEL_POLICIES[question_type]
        if policy is LabelPolicy.TARGET:
            text = target.label
        elif policy is LabelPolicy.FEEDBACK_OR_TARGET:
            text = answer.feedback if answer.feedback else target.label
        else:
            text = answer.text
        return JumpLink(text=text, fragment=target.fragment, resolved=target.resolved)

    def label_for(self, jump: JumpTarget) -> Optional[str]:
        """Label written for *jump*, or ``None`` if it cannot be resolved."""

        target = self._lookup(jump)
        return target.label if target is not None else None

    def _describe(self, jump: JumpTarget) -> _Target:
        target = self._lookup(jump)
        if target is not None:
            return target
        placeholder = str(jump.code)
        message = f"Jump target {jump.code} is neither a named jump nor a known page"
        logger.warning(message)
        warnings.warn(message, UnresolvedJump, stacklevel=3)
        return _Target(label=placeholder, fragment=placeholder, resolved=False)

    def _lookup(self, jump: JumpTarget) -> Optional[_Target]:
        named = jump.named
        if named is not None:
            name = jump_name_of(named)
            return _Target(
                label=self._localizer.localize(name, LESSON_COMPONENT),
                fragment=name,
                resolved=True,
            )
        page_id = jump.page_id
        if page_id is not None and page_id in self._page_titles:
            return _Target(label=self._page_titles[page_id], fragment=str(page_id), resolved=True)
        return None


__all__ = ["JumpLink", "JumpLinkResolver", "LABEL_POLICIES", "LabelPolicy"]
