"""Import Moodle Question XML back into Lesson questions."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional

from .config_loader import ConverterConfig, load_config
from .datamodel import NEXT_PAGE, THIS_PAGE, Answer, JumpTarget, PageTitleIndex, Question, QuestionType
from .errors import ParseError
from .jumps import JumpLinkResolver
from .localization import Localizer, StringTable
from .markup import LinkSplit, local_name, split_jump_link
from .registry import code_of, jump_target_from_fragment, type_of
from .renderer import MarkupRenderer, PassthroughRenderer, StylesheetSelector

logger = logging.getLogger(__name__)


def parse_question_xml(
    document: str,
    *,
    localizer: Optional[Localizer] = None,
    page_titles: Optional[PageTitleIndex] = None,
) -> Question:
    """Parse the first ``<question>`` element of *document*.

    Raises:
        ParseError: if the document is not well-formed, has no question
            element, no question text, or an unsupported question type.
        MalformedQuestion: the answers break the shape of a true/false,
            matching or essay question.
    """

    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise ParseError(f"Question markup is not well-formed: {exc}") from exc

    element = _find_question(root)
    if element is None:
        raise ParseError("No <question> element found")

    type_name = element.get("type", "")
    question_type = type_of(code_of(type_name))
    if not question_type.is_question:
        raise ParseError(f"Unsupported question type {type_name!r}")

    title = _child_text(element, "name", "text").strip()
    stem_element = _child(element, "questiontext", "text")
    if stem_element is None:
        raise ParseError("Question has no <questiontext><text> element", question=title or None)

    reader = _AnswerReader(
        JumpLinkResolver(page_titles or {}, localizer or StringTable.load()),
        default_grade=_default_grade(element),
    )
    answers = reader.read(question_type, element)

    single_text = _child_text(element, "single").strip().lower()
    question = Question(
        type=question_type,
        title=title,
        stem=stem_element.text or "",
        answers=answers,
        single_answer=single_text in {"", "true", "1"},
    )
    question.validate()
    logger.debug("Imported %s with %d answers", question.label, len(answers))
    return question


class QuestionImporter:
    """Render presentational markup to Question XML and parse it."""

    def __init__(
        self,
        renderer: Optional[MarkupRenderer] = None,
        config: Optional[ConverterConfig] = None,
        page_titles: Optional[PageTitleIndex] = None,
        localizer: Optional[Localizer] = None,
    ) -> None:
        self.config = config or load_config()
        self.renderer = renderer or PassthroughRenderer()
        self.page_titles = page_titles or {}
        self.localizer = localizer or StringTable.load(self.config.language)

    def import_question(self, markup: str) -> Question:
        """Convert *markup* with the import stylesheet and parse the result.

        Raises:
            RenderError: the markup renderer failed.
            ParseError: the rendered document holds no usable question.
        """

        document = self.renderer.render(markup, StylesheetSelector.IMPORT, self.config.render_parameters())
        return parse_question_xml(document, localizer=self.localizer, page_titles=self.page_titles)


class _AnswerReader:
    def __init__(self, resolver: JumpLinkResolver, default_grade: float) -> None:
        self._resolver = resolver
        self._default_grade = default_grade

    def read(self, question_type: QuestionType, element: ET.Element) -> List[Answer]:
        if question_type in {QuestionType.MULTI_CHOICE, QuestionType.TRUE_FALSE}:
            return [self._linked_answer(node) for node in _children(element, "answer")]
        if question_type in {QuestionType.SHORT_ANSWER, QuestionType.NUMERICAL}:
            return [self._pattern_answer(node) for node in _children(element, "answer")]
        if question_type == QuestionType.ESSAY:
            return [self._essay_answer(element)]
        return self._matching_answers(element)

    def _score(self, fraction: float) -> float:
        if fraction <= 0:
            return 0.0
        return fraction * self._default_grade / 100

    def _jump(self, split: LinkSplit, score: float) -> JumpTarget:
        if split.fragment is not None:
            target = jump_target_from_fragment(split.fragment)
            if target is not None:
                return target
            logger.debug("Ignoring unrecognised jump fragment %r", split.fragment)
        return NEXT_PAGE if score > 0 else THIS_PAGE

    def _linked_answer(self, node: ET.Element) -> Answer:
        score = self._score(_fraction(node))
        split = split_jump_link(_child_text(node, "text"))
        return Answer(
            text=split.text,
            score=score,
            feedback=_child_text(node, "feedback", "text"),
            jump=self._jump(split, score),
        )

    def _pattern_answer(self, node: ET.Element) -> Answer:
        score = self._score(_fraction(node))
        split = split_jump_link(_child_text(node, "feedback", "text"))
        jump = self._jump(split, score)
        feedback = split.text
        if split.fragment is not None and not split.remainder:
            # A link labelled with its own target carried no feedback.
            if split.label == self._resolver.label_for(jump) or split.label == str(jump.code):
                feedback = ""
        return Answer(text=_child_text(node, "text").strip(), score=score, feedback=feedback, jump=jump)

    def _essay_answer(self, element: ET.Element) -> Answer:
        node = _child(element, "answer")
        split = split_jump_link(_child_text(node, "text") if node is not None else "")
        score = self._default_grade
        return Answer(text="", score=score, feedback="", jump=self._jump(split, score))

    def _matching_answers(self, element: ET.Element) -> List[Answer]:
        answers: List[Answer] = []
        for name, score in (("correctfeedback", self._default_grade), ("incorrectfeedback", 0.0)):
            split = split_jump_link(_child_text(element, name, "text"))
            answers.append(Answer(text="", score=score, feedback=split.remainder, jump=self._jump(split, score)))
        for node in _children(element, "subquestion"):
            answers.append(
                Answer(
                    text=_child_text(node, "text"),
                    feedback=_child_text(node, "answer", "text").strip(),
                )
            )
        return answers


def _find_question(root: ET.Element) -> Optional[ET.Element]:
    for element in root.iter():
        if local_name(element.tag) == "question":
            return element
    return None


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if local_name(child.tag) == name]


def _child(element: ET.Element, *path: str) -> Optional[ET.Element]:
    current: Optional[ET.Element] = element
    for name in path:
        if current is None:
            return None
        current = next((child for child in current if local_name(child.tag) == name), None)
    return current


def _child_text(element: ET.Element, *path: str) -> str:
    found = _child(element, *path)
    if found is None or found.text is None:
        return ""
    return found.text


def _fraction(node: ET.Element) -> float:
    raw = node.get("fraction", "0")
    try:
        return float(raw)
    except ValueError as exc:
        raise ParseError(f"Invalid answer fraction {raw!r}") from exc


def _default_grade(element: ET.Element) -> float:
    raw = _child_text(element, "defaultgrade").strip()
    if not raw:
        return 1.0
    try:
        value = float(raw)
    except ValueError as exc:
        raise ParseError(f"Invalid default grade {raw!r}") from exc
    return value if value >= 0 else 1.0


__all__ = ["QuestionImporter", "parse_question_xml"]
