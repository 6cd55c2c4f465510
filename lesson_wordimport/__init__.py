"""Convert Moodle Lesson question pages to Word-ready XHTML and back."""

from .config_loader import ConfigError, ConverterConfig, load_config
from .datamodel import Answer, JumpTarget, LessonPage, NamedJump, Question, QuestionType
from .errors import (
    ConversionError,
    InvalidQuestion,
    MalformedQuestion,
    ParseError,
    RenderError,
    UnresolvedJump,
)
from .exporter import QuestionExporter
from .grading import GradedAnswer, compute_grades, default_mark
from .importer import QuestionImporter, parse_question_xml
from .jumps import JumpLink, JumpLinkResolver
from .lesson import LessonExporter, LessonImporter
from .renderer import MarkupRenderer, PassthroughRenderer, StylesheetSelector, XsltprocRenderer

__all__ = [
    "Answer",
    "ConfigError",
    "ConversionError",
    "ConverterConfig",
    "GradedAnswer",
    "InvalidQuestion",
    "JumpLink",
    "JumpLinkResolver",
    "JumpTarget",
    "LessonExporter",
    "LessonImporter",
    "LessonPage",
    "MalformedQuestion",
    "MarkupRenderer",
    "NamedJump",
    "ParseError",
    "PassthroughRenderer",
    "Question",
    "QuestionExporter",
    "QuestionImporter",
    "QuestionType",
    "RenderError",
    "StylesheetSelector",
    "UnresolvedJump",
    "XsltprocRenderer",
    "compute_grades",
    "default_mark",
    "load_config",
    "parse_question_xml",
]
