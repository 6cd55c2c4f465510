"""Command line interface for exporting and importing lessons.

Examples::

    python -m lesson_wordimport export --source lesson.json --output lesson.xhtml
    python -m lesson_wordimport import --source lesson.xhtml --output lesson.json

Pages that fail to convert are reported in the log and do not stop the run;
only unreadable inputs or configuration errors make the command fail.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .config_loader import ConfigError, ConverterConfig, load_config
from .errors import ParseError
from .lesson import ConversionFailure, LessonExporter, LessonImporter
from .lesson_io import LessonFormatError, load_lesson_from_file, write_lesson
from .localization import StringTable
from .renderer import MarkupRenderer, PassthroughRenderer, XsltprocRenderer

logger = logging.getLogger(__name__)

RENDERERS = ("passthrough", "xsltproc")


def _configure_logger(log_file: Optional[Path], verbose: bool) -> logging.Logger:
    """Configure the package logger for command line use."""

    log = logging.getLogger("lesson_wordimport")
    log.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(log.handlers):
        log.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    log.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    return log


def _build_renderer(name: str, config: ConverterConfig) -> MarkupRenderer:
    if name == "xsltproc":
        return XsltprocRenderer(config)
    return PassthroughRenderer()


def _report_failures(failures: List[ConversionFailure]) -> None:
    for failure in failures:
        logger.warning("Page %s (%s) kept unconverted: %s", failure.page_id, failure.title, failure.message)


def run_export(source: Path, output: Path, config: ConverterConfig, renderer: MarkupRenderer) -> int:
    pages = load_lesson_from_file(source)
    localizer = StringTable.load(config.language)
    result = LessonExporter(renderer, config, localizer).export_lesson(pages)
    _report_failures(result.failures)

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.html, encoding="utf-8")
    logger.info(
        "Exported %d pages (%d questions) to %s, %d failures",
        result.total,
        result.questions,
        output,
        len(result.failures),
    )
    return 0


def run_import(source: Path, output: Path, config: ConverterConfig, renderer: MarkupRenderer) -> int:
    xhtml = source.read_text(encoding="utf-8")
    localizer = StringTable.load(config.language)
    result = LessonImporter(renderer, config, localizer).import_lesson(xhtml)
    _report_failures(result.failures)

    write_lesson(result.pages, output)
    logger.info("Imported %d pages to %s, %d failures", len(result.pages), output, len(result.failures))
    return 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert Lesson pages to and from Word-ready XHTML")
    parser.add_argument("--config-dir", type=Path, default=None, help="Directory holding settings.default.json")
    parser.add_argument("--renderer", choices=RENDERERS, default="passthrough", help="Markup renderer to use")
    parser.add_argument("--log-file", type=Path, default=None, help="Optional log file path")
    parser.add_argument("--verbose", action="store_true", help="Log debug messages")

    commands = parser.add_subparsers(dest="command", required=True)
    export_parser = commands.add_parser("export", help="Export a JSON lesson to XHTML")
    export_parser.add_argument("--source", required=True, type=Path, help="Lesson JSON file")
    export_parser.add_argument("--output", required=True, type=Path, help="XHTML file to write")

    import_parser = commands.add_parser("import", help="Import an XHTML document into a JSON lesson")
    import_parser.add_argument("--source", required=True, type=Path, help="XHTML file")
    import_parser.add_argument("--output", required=True, type=Path, help="Lesson JSON file to write")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logger(args.log_file, args.verbose)
    try:
        config = load_config(args.config_dir)
        renderer = _build_renderer(args.renderer, config)
        if args.command == "export":
            return run_export(args.source, args.output, config, renderer)
        return run_import(args.source, args.output, config, renderer)
    except (ConfigError, LessonFormatError, ParseError, OSError) as exc:
        logger.error("Conversion failed: %s", exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
