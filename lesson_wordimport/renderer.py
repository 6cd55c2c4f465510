"""Markup renderers turning intermediate question XML into XHTML and back."""
from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import List, Mapping

from .config_loader import ConverterConfig
from .errors import RenderError

logger = logging.getLogger(__name__)


class StylesheetSelector(str, Enum):
    IMPORT = "import"
    EXPORT = "export"


class MarkupRenderer(ABC):
    """Contract for the external markup transform."""

    @abstractmethod
    def render(self, document: str, stylesheet: StylesheetSelector, parameters: Mapping[str, str]) -> str:
        """Transform *document* with the selected stylesheet."""


class PassthroughRenderer(MarkupRenderer):
    """Renderer that returns documents unchanged."""

    def render(self, document: str, stylesheet: StylesheetSelector, parameters: Mapping[str, str]) -> str:
        logger.debug("Passthrough render (%s stylesheet, %d chars)", stylesheet.value, len(document))
        return document


class XsltprocRenderer(MarkupRenderer):
    """Run the configured XSLT processor with the document on stdin.

    The command receives ``--stringparam NAME VALUE`` for every parameter,
    then the stylesheet path and ``-``. Failures are reported once as
    :class:`RenderError`; retrying is left to the caller.
    """

    def __init__(self, config: ConverterConfig) -> None:
        self._command = list(config.renderer_command)
        self._timeout = config.renderer_timeout
        self._stylesheets = {
            StylesheetSelector.IMPORT: config.stylesheets.import_path,
            StylesheetSelector.EXPORT: config.stylesheets.export_path,
        }

    def build_command(self, stylesheet_path: Path, parameters: Mapping[str, str]) -> List[str]:
        command = list(self._command)
        for name, value in parameters.items():
            command.extend(["--stringparam", name, value])
        command.extend([str(stylesheet_path), "-"])
        return command

    def render(self, document: str, stylesheet: StylesheetSelector, parameters: Mapping[str, str]) -> str:
        stylesheet_path = self._stylesheets[stylesheet]
        if not stylesheet_path.is_file():
            raise RenderError(f"XSLT stylesheet {stylesheet_path} is not available")

        command = self.build_command(stylesheet_path, parameters)
        logger.debug("Running %s", " ".join(command))
        try:
            process = subprocess.run(
                command,
                input=document.encode("utf-8"),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            raise RenderError(f"XSLT processor not found: {self._command[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise RenderError(f"XSLT transformation timed out after {self._timeout:g}s") from exc

        stdout_text = process.stdout.decode("utf-8", errors="replace")
        if process.returncode == 0:
            return stdout_text

        stderr_text = process.stderr.decode("utf-8", errors="ignore").strip()
        combined_error = stderr_text or stdout_text.strip() or f"exit code {process.returncode}"
        raise RenderError(f"XSLT transformation failed ({combined_error})")


__all__ = ["MarkupRenderer", "PassthroughRenderer", "StylesheetSelector", "XsltprocRenderer"]
