from __future__ import annotations

import sys
from pathlib import Path
from typing import List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from lesson_wordimport.config_loader import load_config
from lesson_wordimport.datamodel import THIS_PAGE, Answer, JumpTarget, LessonPage, QuestionType
from lesson_wordimport.errors import ParseError
from lesson_wordimport.lesson import LessonExporter, LessonImporter
from lesson_wordimport.localization import StringTable
from lesson_wordimport.renderer import PassthroughRenderer


@pytest.fixture()
def pages() -> List[LessonPage]:
    return [
        LessonPage(
            id=1,
            title="Intro",
            type=QuestionType.LESSON_PAGE,
            contents="<p>Welcome</p>",
            answers=[Answer(text="Start", jump=JumpTarget.page(2))],
        ),
        LessonPage(
            id=2,
            title="Capitals",
            type=QuestionType.MULTI_CHOICE,
            contents="<p>Capital of France?</p>",
            answers=[Answer("Paris", 1), Answer("Lyon", 0, "No", THIS_PAGE)],
        ),
        LessonPage(
            id=3,
            title="Broken",
            type=QuestionType.TRUE_FALSE,
            contents="<p>Sky is blue</p>",
            answers=[Answer("True", 1)],
        ),
    ]


@pytest.fixture()
def lesson_exporter() -> LessonExporter:
    return LessonExporter(PassthroughRenderer(), load_config(), StringTable.load())


@pytest.fixture()
def lesson_importer() -> LessonImporter:
    return LessonImporter(PassthroughRenderer(), load_config(), StringTable.load())


def test_export_isolates_failing_pages(lesson_exporter, pages) -> None:
    result = lesson_exporter.export_lesson(pages)

    assert result.total == 3
    assert result.questions == 1
    assert [failure.page_id for failure in result.failures] == [3]
    assert "true_false question needs exactly 2 answers" in result.failures[0].message
    assert '<h1 id="3">Broken</h1><p>Sky is blue</p>' in result.html


def test_export_anchors_pages_and_lists_jumps(lesson_exporter, pages) -> None:
    html = lesson_exporter.export_lesson(pages).html

    assert html.startswith("<html>\n")
    assert html.endswith("\n</html>")
    assert '<h1 id="2">Capitals</h1>' in html
    assert '<ul class="lessonjumps"><li><a href="#2">Start</a></li></ul>' in html


def test_export_then_import_keeps_pages(lesson_exporter, lesson_importer, pages) -> None:
    exported = lesson_exporter.export_lesson(pages)
    result = lesson_importer.import_lesson(exported.html)

    assert result.failures == []
    assert [page.id for page in result.pages] == [1, 2, 3]
    assert [page.title for page in result.pages] == ["Intro", "Capitals", "Broken"]

    intro, capitals, broken = result.pages
    assert intro.type == QuestionType.LESSON_PAGE
    assert intro.contents == "<p>Welcome</p>"
    assert intro.answers == [Answer(text="Start", jump=JumpTarget.page(2))]

    assert capitals.type == QuestionType.MULTI_CHOICE
    assert capitals.contents == "<p>Capital of France?</p>"
    assert capitals.answers == pages[1].answers

    assert broken.type == QuestionType.LESSON_PAGE
    assert broken.contents == "<p>Sky is blue</p>"


def test_import_records_unusable_questions(lesson_importer) -> None:
    html = (
        '<html><h1 id="4">Odd</h1>'
        '<question type="calculated"><questiontext><text>x</text></questiontext></question>'
        "</html>"
    )
    result = lesson_importer.import_lesson(html)

    assert [failure.page_id for failure in result.failures] == [4]
    assert result.pages[0].type == QuestionType.LESSON_PAGE
    assert result.pages[0].title == "Odd"


def test_import_assigns_ids_and_keeps_preface(lesson_importer) -> None:
    html = (
        '<html xmlns="http://www.w3.org/1999/xhtml"><body>'
        "<p>Preface</p>"
        "<h1>First</h1><p>One</p>"
        '<h1 id="9">Second</h1><p>Two</p>'
        "</body></html>"
    )
    result = lesson_importer.import_lesson(html)

    assert [page.id for page in result.pages] == [10, 11, 9]
    assert [page.title for page in result.pages] == ["", "First", "Second"]
    assert [page.contents for page in result.pages] == ["<p>Preface</p>", "<p>One</p>", "<p>Two</p>"]


def test_import_rejects_malformed_documents(lesson_importer) -> None:
    with pytest.raises(ParseError):
        lesson_importer.import_lesson("<html><h1>Open")


def test_loose_html_survives_a_round_trip(lesson_exporter, lesson_importer) -> None:
    pages = [
        LessonPage(1, "Intro", QuestionType.LESSON_PAGE, "<p>a&nbsp;b</p><p>line<br>next</p>"),
        LessonPage(2, "Essay", QuestionType.ESSAY, "<p>Discuss &amp; explain</p>", [Answer(score=1)]),
        LessonPage(3, "Broken", QuestionType.TRUE_FALSE, "<p>Sky&nbsp;is blue", [Answer("True", 1)]),
    ]
    exported = lesson_exporter.export_lesson(pages)
    result = lesson_importer.import_lesson(exported.html)

    assert [failure.page_id for failure in exported.failures] == [3]
    assert result.failures == []
    intro, essay, broken = result.pages
    assert intro.contents == "<p>a\u00a0b</p><p>line<br />next</p>"
    assert essay.type == QuestionType.ESSAY
    assert essay.contents == "<p>Discuss &amp; explain</p>"
    assert broken.contents == "<p>Sky\u00a0is blue</p>"


def test_structural_pages_keep_their_type(lesson_exporter, lesson_importer) -> None:
    pages = [
        LessonPage(1, "Cluster", QuestionType.CLUSTER_START),
        LessonPage(2, "Content", QuestionType.LESSON_PAGE, "<p>x</p>"),
        LessonPage(3, "End cluster", QuestionType.CLUSTER_END, answers=[Answer("Back", jump=JumpTarget.page(1))]),
        LessonPage(4, "End branch", QuestionType.BRANCH_END),
    ]
    exported = lesson_exporter.export_lesson(pages)
    result = lesson_importer.import_lesson(exported.html)

    assert '<h1 id="1" data-pagetype="cluster">Cluster</h1>' in exported.html
    assert '<h1 id="2">Content</h1>' in exported.html
    assert [page.type for page in result.pages] == [
        QuestionType.CLUSTER_START,
        QuestionType.LESSON_PAGE,
        QuestionType.CLUSTER_END,
        QuestionType.BRANCH_END,
    ]
    assert result.pages[2].answers == [Answer("Back", jump=JumpTarget.page(1))]


def test_unusable_page_type_markers_are_ignored(lesson_importer) -> None:
    html = (
        '<html><h1 id="2" data-pagetype="essay">Odd</h1><p>y</p>'
        '<h1 id="3" data-pagetype="bogus">Odder</h1></html>'
    )
    result = lesson_importer.import_lesson(html)
    assert [page.type for page in result.pages] == [QuestionType.LESSON_PAGE, QuestionType.LESSON_PAGE]
