"""Export Lesson question pages as Moodle Question XML and XHTML.

The exporter assembles one ``<question>`` element per page, wraps it with the
localised ``<moodlelabels>`` block and hands the result to the markup renderer
with the ``export`` stylesheet. Answer fractions come from
:mod:`lesson_wordimport.grading`; jump links come from
:mod:`lesson_wordimport.jumps`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional
from xml.sax.saxutils import escape, quoteattr

from .config_loader import ConverterConfig, load_config
from .datamodel import PageTitleIndex, Question, QuestionType
from .errors import ConversionError, InvalidQuestion, RenderError
from .grading import GradedAnswer, compute_grades, default_mark
from .jumps import JumpLinkResolver
from .localization import Localizer, StringTable, moodle_labels
from .markup import cdata
from .registry import name_of
from .renderer import MarkupRenderer, PassthroughRenderer, StylesheetSelector

logger = logging.getLogger(__name__)

COMMON_XML = """<generalfeedback format="html"><text></text></generalfeedback>
<defaultgrade>{default_grade}</defaultgrade>
<penalty>0.3333333</penalty>
<hidden>0</hidden>
<idnumber></idnumber>"""

MULTICHOICE_XML = """<single>{single}</single>
<shuffleanswers>true</shuffleanswers>
<answernumbering>ABCD</answernumbering>
<correctfeedback format="html"><text></text></correctfeedback>
<partiallycorrectfeedback format="html"><text></text></partiallycorrectfeedback>
<incorrectfeedback format="html"><text></text></incorrectfeedback>
<shownumcorrect/>"""

SHORTANSWER_XML = "<usecase>0</usecase>"

MATCHING_XML = "<shuffleanswers>true</shuffleanswers>"

ESSAY_XML = """<responseformat>editorfilepicker</responseformat>
<responserequired>1</responserequired>
<responsefieldlines>15</responsefieldlines>
<attachments>0</attachments>
<attachmentsrequired>0</attachmentsrequired>
<graderinfo format="html"><text></text></graderinfo>
<responsetemplate format="html"><text></text></responsetemplate>"""

NUMERICAL_UNITS_XML = """<units>
<unit><multiplier>1</multiplier><unit_name></unit_name></unit>
</units>
<unitgradingtype>1</unitgradingtype>
<unitpenalty>0.1000000</unitpenalty>
<showunits>2</showunits>
<unitsleft>1</unitsleft>"""


def format_fraction(value: float) -> str:
    """Format a grade the way Moodle writes fractions (``100``, ``33.3333333``)."""

    text = f"{value:.7f}".rstrip("0").rstrip(".")
    return "0" if text in {"", "-0"} else text


@dataclass(frozen=True)
class _TypeWriter:
    metadata: Callable[[Question], str]
    answers: Callable[["QuestionExporter", Question, List[GradedAnswer]], List[str]]
    trailer: str = ""


def _multichoice_metadata(question: Question) -> str:
    return MULTICHOICE_XML.format(single="true" if question.single_answer else "false")


def _constant(fragment: str) -> Callable[[Question], str]:
    return lambda question: fragment


class QuestionExporter:
    """Convert :class:`Question` objects into rendered markup."""

    def __init__(
        self,
        renderer: Optional[MarkupRenderer] = None,
        config: Optional[ConverterConfig] = None,
        page_titles: Optional[PageTitleIndex] = None,
        localizer: Optional[Localizer] = None,
    ) -> None:
        self.config = config or load_config()
        self.renderer = renderer or PassthroughRenderer()
        self.localizer = localizer or StringTable.load(self.config.language)
        self.resolver = JumpLinkResolver(page_titles or {}, self.localizer)

    def export(self, question: Question) -> str:
        """Return the renderer's markup for *question*.

        Raises:
            MalformedQuestion: wrong answer count for a fixed-shape type.
            InvalidQuestion: the page type cannot be exported as a question.
            RenderError: the markup renderer failed.
        """

        question_xml = self.build_question_xml(question)
        document = self.build_document(question_xml)
        try:
            return self.renderer.render(
                document,
                StylesheetSelector.EXPORT,
                self.config.render_parameters(question.type),
            )
        except RenderError as exc:
            raise RenderError(str(exc), question=question.label) from exc

    def build_document(self, question_xml: str) -> str:
        """Wrap question XML and labels in the container the stylesheet expects."""

        labels = moodle_labels(self.localizer)
        return f"<container>\n<quiz>{question_xml}</quiz>\n{labels}\n</container>"

    def build_question_xml(self, question: Question) -> str:
        """Assemble the Moodle Question XML for *question*."""

        try:
            return self._build_question_xml(question)
        except ConversionError as exc:
            if exc.question is None:
                exc.question = question.label
            raise

    def _build_question_xml(self, question: Question) -> str:
        writer = TYPE_WRITERS.get(question.type)
        if writer is None:
            raise InvalidQuestion(f"{question.type.name.lower()} pages cannot be exported as questions")
        question.validate()

        graded = compute_grades(question.type, question.answers, question.single_answer)
        mark = default_mark(question.type, question.answers)
        logger.debug("Exporting %s as %s (default mark %s)", question.label, question.type.name, mark)

        parts = [
            f"<question type={quoteattr(name_of(question.type))}>",
            f"<name><text>{escape(question.title)}</text></name>",
            f'<questiontext format="html"><text>{cdata(question.stem)}</text></questiontext>',
            COMMON_XML.format(default_grade=f"{mark:.7f}"),
            writer.metadata(question),
        ]
        parts.extend(writer.answers(self, question, graded))
        if writer.trailer:
            parts.append(writer.trailer)
        parts.append("</question>")
        return "\n".join(part for part in parts if part)

    # ------------------------------------------------------------------
    # Answer writers
    def _linked_answers(self, question: Question, graded: List[GradedAnswer]) -> List[str]:
        # Multichoice and true/false: the answer text itself is the link.
        nodes = []
        for entry in graded:
            link = self.resolver.resolve(entry.answer, question.type)
            nodes.append(
                f'<answer fraction="{format_fraction(entry.grade or 0.0)}" format="html">'
                f"<text>{link.to_markup()}</text>"
                f'<feedback format="html"><text>{cdata(entry.answer.feedback)}</text></feedback>'
                "</answer>"
            )
        return nodes

    def _pattern_answers(self, question: Question, graded: List[GradedAnswer]) -> List[str]:
        # Short answer and numerical: the feedback carries the link.
        tolerance = "<tolerance>0</tolerance>" if question.type == QuestionType.NUMERICAL else ""
        nodes = []
        for entry in graded:
            link = self.resolver.resolve(entry.answer, question.type)
            nodes.append(
                f'<answer fraction="{format_fraction(entry.grade or 0.0)}" format="moodle_auto_format">'
                f"<text>{escape(entry.answer.text)}</text>"
                f"{tolerance}"
                f'<feedback format="html"><text>{link.to_markup()}</text></feedback>'
                "</answer>"
            )
        return nodes

    def _essay_answer(self, question: Question, graded: List[GradedAnswer]) -> List[str]:
        link = self.resolver.resolve(question.essay_answer(), question.type)
        return [
            '<answer fraction="0" format="html">'
            f"<text>{link.to_markup()}</text>"
            '<feedback format="html"><text></text></feedback>'
            "</answer>"
        ]

    def _matching_answers(self, question: Question, graded: List[GradedAnswer]) -> List[str]:
        answers = question.matching_answers()
        nodes = []
        for element, carrier in (("correctfeedback", answers.correct), ("incorrectfeedback", answers.incorrect)):
            link = self.resolver.resolve(carrier, question.type)
            nodes.append(
                f'<{element} format="html"><text>{cdata(carrier.feedback + link.to_html())}</text></{element}>'
            )
        nodes.append('<partiallycorrectfeedback format="html"><text></text></partiallycorrectfeedback>')
        for pair in answers.pairs:
            nodes.append(
                '<subquestion format="html">'
                f"<text>{cdata(pair.text)}</text>"
                f"<answer><text>{escape(pair.feedback)}</text></answer>"
                "</subquestion>"
            )
        return nodes


TYPE_WRITERS: Mapping[QuestionType, _TypeWriter] = MappingProxyType(
    {
        QuestionType.MULTI_CHOICE: _TypeWriter(_multichoice_metadata, QuestionExporter._linked_answers),
        QuestionType.TRUE_FALSE: _TypeWriter(_constant(""), QuestionExporter._linked_answers),
        QuestionType.SHORT_ANSWER: _TypeWriter(_constant(SHORTANSWER_XML), QuestionExporter._pattern_answers),
        QuestionType.NUMERICAL: _TypeWriter(
            _constant(""), QuestionExporter._pattern_answers, trailer=NUMERICAL_UNITS_XML
        ),
        QuestionType.ESSAY: _TypeWriter(_constant(ESSAY_XML), QuestionExporter._essay_answer),
        QuestionType.MATCHING: _TypeWriter(_constant(MATCHING_XML), QuestionExporter._matching_answers),
    }
)


__all__ = ["QuestionExporter", "TYPE_WRITERS", "format_fraction"]
