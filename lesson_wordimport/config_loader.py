"""Configuration loader for the Lesson question converter."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple

from .datamodel import QuestionType
from .registry import PAGE_TYPE_CODES, name_of


class ConfigError(RuntimeError):
    """Raised when configuration files are missing or invalid."""


IMAGE_HANDLING_MODES = ("embedded", "referenced")
TEXT_DIRECTIONS = ("ltr", "rtl")


@dataclass(frozen=True)
class StylesheetConfig:
    """Resolved stylesheet locations."""

    import_path: Path
    export_path: Path


@dataclass(frozen=True)
class ConverterConfig:
    """Top-level configuration container."""

    plugin_name: str
    image_handling: str
    language: str
    text_direction: str
    heading1_style_level: int
    debug: bool
    stylesheets: StylesheetConfig
    renderer_command: Tuple[str, ...]
    renderer_timeout: float
    type_image_handling: Mapping[str, str] = field(default_factory=dict)

    def image_handling_for(self, question_type: Optional[QuestionType]) -> str:
        if question_type is None or question_type == QuestionType.UNKNOWN:
            return self.image_handling
        return self.type_image_handling.get(name_of(question_type), self.image_handling)

    def render_parameters(self, question_type: Optional[QuestionType] = None) -> Dict[str, str]:
        """Parameter bag handed to the markup renderer."""

        return {
            "pluginname": self.plugin_name,
            "imagehandling": self.image_handling_for(question_type),
            "moodle_language": self.language,
            "moodle_textdirection": self.text_direction,
            "heading1stylelevel": str(self.heading1_style_level),
            "debug_flag": "1" if self.debug else "0",
        }


_DEFAULT_FILENAME = "settings.default.json"
_LOCAL_OVERRIDE_FILENAME = "settings.local.json"


def load_config(config_dir: Optional[Path] = None) -> ConverterConfig:
    """Load converter configuration.

    Args:
        config_dir: Directory containing the configuration files. Defaults to
            the directory of this module.

    Returns:
        ConverterConfig with resolved stylesheet paths.

    Raises:
        ConfigError: if required files are missing or values are invalid.
    """

    base_dir = config_dir or Path(__file__).resolve().parent
    default_path = base_dir / _DEFAULT_FILENAME
    default_data = _read_json(default_path)

    local_path = base_dir / _LOCAL_OVERRIDE_FILENAME
    if local_path.exists():
        local_data = _read_json(local_path)
        merged = _deep_merge_dicts(default_data, local_data)
    else:
        merged = default_data

    try:
        return _parse_config(merged, base_dir)
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fp:
            return json.load(fp)
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid configuration file: {path}: {exc}") from exc


def _deep_merge_dicts(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge two dictionaries."""

    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], MutableMapping)
            and isinstance(value, Mapping)
        ):
            result[key] = _deep_merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def _parse_config(raw: Mapping[str, Any], base_dir: Path) -> ConverterConfig:
    renderer = raw["renderer"]
    stylesheets = raw["stylesheets"]

    command = renderer.get("command", ["xsltproc"])
    if isinstance(command, str):
        command = [command]
    if not command or not all(isinstance(part, str) and part for part in command):
        raise ValueError(f"renderer.command must be a non-empty list of strings: {command!r}")

    type_overrides: Dict[str, str] = {}
    for type_name, section in raw.get("question_types", {}).items():
        if type_name not in PAGE_TYPE_CODES:
            raise ValueError(f"Unknown question type in configuration: {type_name!r}")
        if "image_handling" in section:
            type_overrides[type_name] = _validate_choice(
                section["image_handling"], IMAGE_HANDLING_MODES, f"question_types.{type_name}.image_handling"
            )

    return ConverterConfig(
        plugin_name=_validate_text(renderer["plugin_name"], "renderer.plugin_name"),
        image_handling=_validate_choice(
            renderer.get("image_handling", "embedded"), IMAGE_HANDLING_MODES, "renderer.image_handling"
        ),
        language=_validate_text(renderer.get("language", "en"), "renderer.language"),
        text_direction=_validate_choice(
            renderer.get("text_direction", "ltr"), TEXT_DIRECTIONS, "renderer.text_direction"
        ),
        heading1_style_level=_validate_positive_int(
            renderer.get("heading1_style_level", 1), "renderer.heading1_style_level"
        ),
        debug=bool(renderer.get("debug", False)),
        stylesheets=StylesheetConfig(
            import_path=_resolve_path(base_dir, stylesheets["import"]),
            export_path=_resolve_path(base_dir, stylesheets["export"]),
        ),
        renderer_command=tuple(command),
        renderer_timeout=_validate_timeout(renderer.get("timeout_seconds", 60)),
        type_image_handling=type_overrides,
    )


def _resolve_path(base_dir: Path, value: Any) -> Path:
    if not isinstance(value, str) or not value:
        raise ValueError(f"Invalid path value: {value!r}")

    candidate = Path(value)
    if not candidate.is_absolute():
        candidate = (base_dir / candidate).resolve()
    return candidate


def _validate_text(raw_value: Any, name: str) -> str:
    if not isinstance(raw_value, str) or not raw_value.strip():
        raise ValueError(f"{name} must be a non-empty string, got {raw_value!r}")
    return raw_value.strip()


def _validate_choice(raw_value: Any, choices: Tuple[str, ...], name: str) -> str:
    if raw_value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {raw_value!r}")
    return raw_value


def _validate_positive_int(raw_value: Any, name: str) -> int:
    if isinstance(raw_value, bool) or not isinstance(raw_value, int):
        raise ValueError(f"{name} must be a positive integer, got {raw_value!r}")
    if raw_value <= 0:
        raise ValueError(f"{name} must be greater than 0, got {raw_value}")
    return raw_value


def _validate_timeout(raw_value: Any) -> float:
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)):
        raise ValueError(f"renderer.timeout_seconds must be a number, got {raw_value!r}")
    if raw_value <= 0:
        raise ValueError(f"renderer.timeout_seconds must be greater than 0, got {raw_value}")
    return float(raw_value)


__all__ = [
    "ConfigError",
    "ConverterConfig",
    "IMAGE_HANDLING_MODES",
    "StylesheetConfig",
    "TEXT_DIRECTIONS",
    "load_config",
]
