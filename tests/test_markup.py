from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from lesson_wordimport.markup import cdata, local_name, parse_fragment, split_jump_link, xhtml_fragment


def test_split_link_with_surrounding_feedback() -> None:
    split = split_jump_link('Well <b>done</b> <a href="#7">Page Seven</a>')
    assert split.remainder == "Well <b>done</b>"
    assert split.label == "Page Seven"
    assert split.fragment == "7"
    assert split.text == "Well <b>done</b>"


def test_split_link_only() -> None:
    split = split_jump_link('<a href="#nextpage">Paris</a>')
    assert split.remainder == ""
    assert split.text == "Paris"


def test_external_links_are_not_jumps() -> None:
    split = split_jump_link('<a href="https://moodle.org">Moodle</a>')
    assert split.fragment is None
    assert split.text == '<a href="https://moodle.org">Moodle</a>'


def test_entities_are_kept_verbatim() -> None:
    assert parse_fragment("<p>Salt &amp; pepper&#33;<br></p>").inner_markup() == "<p>Salt &amp; pepper&#33;<br/></p>"


def test_cdata_and_local_name() -> None:
    assert cdata("a]]>b") == "<![CDATA[a]]]]><![CDATA[>b]]>"
    assert local_name("{http://www.w3.org/1999/xhtml}h1") == "h1"
    assert local_name("h1") == "h1"


def test_xhtml_fragment_is_well_formed() -> None:
    assert xhtml_fragment("<p>a&nbsp;b &amp; c<br>d") == "<p>a&#160;b &amp; c<br/>d</p>"
    assert xhtml_fragment("<p>Q & A &bogus; &#8212;</p>") == "<p>Q &amp; A &amp;bogus; &#8212;</p>"
    assert xhtml_fragment('<img src="a.png?x=1&y=2">') == '<img src="a.png?x=1&amp;y=2"/>'
