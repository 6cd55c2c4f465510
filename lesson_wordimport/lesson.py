"""Whole-lesson export and import.

A lesson is exported as one XHTML document: every page starts with an
``<h1 id="PAGEID">`` heading, so page-id jump links (``#7``) point at real
anchors. Question pages are converted through :class:`QuestionExporter`;
content pages keep their HTML and list their jump buttons in a
``<ul class="lessonjumps">``. Page HTML is re-serialised as well-formed
XHTML on the way out, and structural pages (branch and cluster markers) name
their type in a ``data-pagetype`` heading attribute. Import reverses the
process by splitting the document body at each ``<h1>``.

A question that fails to convert never aborts the lesson: the failure is
logged, recorded in the result and the page falls back to its raw contents.
"""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Optional
from xml.sax.saxutils import escape

from .config_loader import ConverterConfig, load_config
from .datamodel import Answer, LessonPage, PageTitleIndex, QuestionType, build_title_index
from .errors import ConversionError, ParseError
from .exporter import QuestionExporter
from .importer import QuestionImporter
from .jumps import JumpLinkResolver
from .localization import Localizer, StringTable
from .markup import local_name, split_jump_link, xhtml_fragment
from .registry import code_of, jump_target_from_fragment, name_of, type_of
from .renderer import MarkupRenderer, PassthroughRenderer

logger = logging.getLogger(__name__)


JUMP_LIST_CLASS = "lessonjumps"
PAGE_TYPE_ATTRIBUTE = "data-pagetype"


@dataclass(frozen=True)
class ConversionFailure:
    """A page that could not be converted."""

    page_id: Optional[int]
    title: str
    message: str


@dataclass
class LessonExport:
    html: str
    total: int
    questions: int
    failures: List[ConversionFailure] = field(default_factory=list)


@dataclass
class LessonImport:
    pages: List[LessonPage]
    failures: List[ConversionFailure] = field(default_factory=list)


class LessonExporter:
    """Export an ordered list of Lesson pages as a single XHTML document."""

    def __init__(
        self,
        renderer: Optional[MarkupRenderer] = None,
        config: Optional[ConverterConfig] = None,
        localizer: Optional[Localizer] = None,
    ) -> None:
        self.config = config or load_config()
        self.renderer = renderer or PassthroughRenderer()
        self.localizer = localizer or StringTable.load(self.config.language)

    def export_lesson(self, pages: List[LessonPage]) -> LessonExport:
        titles = build_title_index(pages)
        exporter = QuestionExporter(self.renderer, self.config, titles, self.localizer)
        resolver = JumpLinkResolver(titles, self.localizer)

        sections: List[str] = []
        failures: List[ConversionFailure] = []
        questions = 0
        for page in pages:
            heading = _heading(page)
            if not page.is_question:
                sections.append(heading + xhtml_fragment(page.contents) + _jump_list(page, resolver))
                continue
            try:
                body = exporter.export(page.to_question())
            except ConversionError as exc:
                logger.warning("Exporting page %s (%s) failed: %s", page.id, page.title, exc)
                failures.append(ConversionFailure(page_id=page.id, title=page.title, message=str(exc)))
                body = xhtml_fragment(page.contents)
            else:
                questions += 1
            sections.append(heading + body)

        logger.info(
            "Exported %d pages (%d questions, %d failures)", len(pages), questions, len(failures)
        )
        html = "<html>\n" + "\n".join(sections) + "\n</html>"
        return LessonExport(html=html, total=len(pages), questions=questions, failures=failures)


class LessonImporter:
    """Split an XHTML document into Lesson pages."""

    def __init__(
        self,
        renderer: Optional[MarkupRenderer] = None,
        config: Optional[ConverterConfig] = None,
        localizer: Optional[Localizer] = None,
    ) -> None:
        self.config = config or load_config()
        self.renderer = renderer or PassthroughRenderer()
        self.localizer = localizer or StringTable.load(self.config.language)

    def import_lesson(self, xhtml: str) -> LessonImport:
        """Return the pages found in *xhtml*.

        Raises:
            ParseError: if the document itself is not well-formed XHTML.
        """

        try:
            root = ET.fromstring(xhtml)
        except ET.ParseError as exc:
            raise ParseError(f"Lesson document is not well-formed: {exc}") from exc
        _strip_namespaces(root)
        body = next((element for element in root.iter() if element.tag == "body"), root)

        sections = _split_sections(body)
        titles = _section_titles(sections)
        importer = QuestionImporter(self.renderer, self.config, titles, self.localizer)

        pages: List[LessonPage] = []
        failures: List[ConversionFailure] = []
        for section in sections:
            page = self._import_section(section, importer, failures)
            pages.append(page)

        logger.info("Imported %d pages (%d failures)", len(pages), len(failures))
        return LessonImport(pages=pages, failures=failures)

    def _import_section(
        self,
        section: "_Section",
        importer: QuestionImporter,
        failures: List[ConversionFailure],
    ) -> LessonPage:
        has_question = section.contains("question")
        if has_question or section.contains("table"):
            try:
                question = importer.import_question(f"<div>{section.markup()}</div>")
            except ConversionError as exc:
                if has_question:
                    logger.warning("Importing page %s (%s) failed: %s", section.page_id, section.title, exc)
                    failures.append(
                        ConversionFailure(page_id=section.page_id, title=section.title, message=str(exc))
                    )
                else:
                    logger.debug("Page %s has a table but no question: %s", section.page_id, exc)
            else:
                page = LessonPage.from_question(question, section.page_id)
                page.title = section.title or question.title
                return page

        answers = section.take_jump_list()
        return LessonPage(
            id=section.page_id,
            title=section.title,
            type=section.page_type,
            contents=section.markup(),
            answers=answers,
        )


@dataclass
class _Section:
    page_id: int
    title: str
    text: str
    elements: List[ET.Element]
    page_type: QuestionType = QuestionType.LESSON_PAGE

    def contains(self, tag: str) -> bool:
        return any(node.tag == tag for element in self.elements for node in element.iter())

    def markup(self) -> str:
        return (escape(self.text) + "".join(_serialize(element) for element in self.elements)).strip()

    def take_jump_list(self) -> List[Answer]:
        for element in self.elements:
            if element.tag == "ul" and JUMP_LIST_CLASS in element.get("class", "").split():
                self.elements.remove(element)
                return _read_jump_list(element)
        return []


def _split_sections(body: ET.Element) -> List[_Section]:
    sections: List[_Section] = []
    leading: List[ET.Element] = []
    for child in body:
        if child.tag == "h1":
            sections.append(
                _Section(
                    page_id=_heading_id(child),
                    title="".join(child.itertext()).strip(),
                    text=child.tail or "",
                    elements=[],
                    page_type=_heading_type(child),
                )
            )
        elif sections:
            sections[-1].elements.append(child)
        else:
            leading.append(child)

    if leading or (body.text or "").strip():
        logger.warning("Content before the first heading becomes an untitled page")
        sections.insert(0, _Section(page_id=0, title="", text=body.text or "", elements=leading))

    # Headings without a numeric id get fresh ids above the highest one used.
    next_id = max((section.page_id for section in sections), default=0) + 1
    for section in sections:
        if section.page_id <= 0:
            section.page_id = next_id
            next_id += 1
    return sections


def _heading(page: LessonPage) -> str:
    marker = ""
    if page.type != QuestionType.LESSON_PAGE and not page.is_question:
        marker = f' {PAGE_TYPE_ATTRIBUTE}="{name_of(page.type)}"'
    return f'<h1 id="{page.id}"{marker}>{escape(page.title)}</h1>'


def _heading_id(heading: ET.Element) -> int:
    raw = heading.get("id", "")
    return int(raw) if raw.isdigit() else 0


def _heading_type(heading: ET.Element) -> QuestionType:
    name = heading.get(PAGE_TYPE_ATTRIBUTE)
    if name is None:
        return QuestionType.LESSON_PAGE
    page_type = type_of(code_of(name))
    if page_type == QuestionType.UNKNOWN or page_type.is_question:
        logger.warning("Ignoring page type %r on heading %r", name, heading.get("id"))
        return QuestionType.LESSON_PAGE
    return page_type


def _section_titles(sections: List[_Section]) -> PageTitleIndex:
    return {section.page_id: section.title for section in sections}


def _jump_list(page: LessonPage, resolver: JumpLinkResolver) -> str:
    if not page.answers:
        return ""
    items = "".join(f"<li>{resolver.resolve(answer, page.type).to_html()}</li>" for answer in page.answers)
    return xhtml_fragment(f'<ul class="{JUMP_LIST_CLASS}">{items}</ul>')


def _read_jump_list(element: ET.Element) -> List[Answer]:
    answers: List[Answer] = []
    for item in element:
        if item.tag != "li":
            continue
        split = split_jump_link(_serialize_inner(item))
        target = jump_target_from_fragment(split.fragment) if split.fragment else None
        answers.append(Answer(text=split.text, jump=target) if target else Answer(text=split.text))
    return answers


def _strip_namespaces(root: ET.Element) -> None:
    for element in root.iter():
        if isinstance(element.tag, str):
            element.tag = local_name(element.tag)


def _serialize(element: ET.Element) -> str:
    return ET.tostring(element, encoding="unicode", short_empty_elements=True)


def _serialize_inner(element: ET.Element) -> str:
    return escape(element.text or "") + "".join(_serialize(child) for child in element)


__all__ = [
    "ConversionFailure",
    "JUMP_LIST_CLASS",
    "PAGE_TYPE_ATTRIBUTE",
    "LessonExport",
    "LessonExporter",
    "LessonImport",
    "LessonImporter",
]
