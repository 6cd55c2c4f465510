"""Localised labels for jump links and the renderer's label block."""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable, Mapping, Optional, Tuple
from xml.sax.saxutils import escape, quoteattr

logger = logging.getLogger(__name__)

LESSON_COMPONENT = "lesson"
DEFAULT_LANGUAGE = "en"
_LANG_DIR = Path(__file__).resolve().parent / "lang"

# Strings the export stylesheet expects in the <moodlelabels> block.
LABEL_STRINGS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("lesson", ("modulename", "pluginname", "nextpage", "previouspage", "thispage", "endoflesson", "allotheranswers")),
    ("moodle", ("no", "yes", "tags")),
    ("question", ("category", "defaultmark", "feedback", "generalfeedback", "questionname", "questiontext")),
)


class Localizer(ABC):
    """Contract for string lookups."""

    @abstractmethod
    def localize(self, key: str, component: str = LESSON_COMPONENT) -> str:
        """Return the text for *key* in *component*."""


class StringTable(Localizer):
    """Language strings read from ``lang/<language>.json``.

    Lookups fall back to English, then to Moodle's ``[[key]]`` marker for
    strings that do not exist anywhere.
    """

    def __init__(
        self,
        strings: Mapping[str, Mapping[str, str]],
        fallback: Optional[Mapping[str, Mapping[str, str]]] = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self._strings = strings
        self._fallback = fallback or {}
        self.language = language

    @classmethod
    def load(cls, language: str = DEFAULT_LANGUAGE, lang_dir: Optional[Path] = None) -> "StringTable":
        base_dir = lang_dir or _LANG_DIR
        fallback = _read_strings(base_dir / f"{DEFAULT_LANGUAGE}.json")
        if language == DEFAULT_LANGUAGE:
            return cls(fallback, language=language)
        path = base_dir / f"{language}.json"
        if not path.exists():
            logger.warning("No language pack for %s, using %s", language, DEFAULT_LANGUAGE)
            return cls(fallback, language=DEFAULT_LANGUAGE)
        return cls(_read_strings(path), fallback=fallback, language=language)

    def localize(self, key: str, component: str = LESSON_COMPONENT) -> str:
        for table in (self._strings, self._fallback):
            value = table.get(component, {}).get(key)
            if value is not None:
                return value
        logger.debug("Missing string %s/%s", component, key)
        return f"[[{key}]]"


def _read_strings(path: Path) -> Dict[str, Dict[str, str]]:
    with path.open("r", encoding="utf-8") as fp:
        return json.load(fp)


def moodle_labels(
    localizer: Localizer,
    strings: Iterable[Tuple[str, Iterable[str]]] = LABEL_STRINGS,
) -> str:
    """Build the ``<moodlelabels>`` block consumed by the stylesheets."""

    lines = ["<moodlelabels>"]
    for component, keys in strings:
        for key in keys:
            name = quoteattr(f"{component}_{key}")
            value = escape(localizer.localize(key, component))
            lines.append(f"<data name={name}><value>{value}</value></data>")
    lines.append("</moodlelabels>")
    return "\n".join(lines)


__all__ = [
    "DEFAULT_LANGUAGE",
    "LABEL_STRINGS",
    "LESSON_COMPONENT",
    "Localizer",
    "StringTable",
    "moodle_labels",
]
