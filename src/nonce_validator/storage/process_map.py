import logging
import re
from pathlib import Path
from typing import Dict, List

from nonce_validator.errors import ConfigError, ConfigErrorKind
from nonce_validator.models.schemas import ValidationTarget

logger = logging.getLogger(__name__)

# A quoted string is any run of non-quote characters or backslash escapes.
_PAIR_RE = re.compile(r'"((?:[^"\\]|\\.)*)"\s*:\s*"((?:[^"\\]|\\.)*)"', re.DOTALL)
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)
_SCHEME_RE = re.compile(r"^https?://")


def parse_flat_mapping(text: str) -> Dict[str, str]:
    """Parse a JSON object whose keys and values are all strings.

    Structural checks run before extraction so that truncated or
    non-object files fail with a specific ``ConfigError`` kind.
    """
    trimmed = text.strip()
    if not trimmed:
        raise ConfigError(ConfigErrorKind.EMPTY, "Process map is empty")
    if not trimmed.startswith("{"):
        raise ConfigError(
            ConfigErrorKind.NOT_AN_OBJECT, "Process map is not a JSON object"
        )

    opening = text.count("{")
    closing = text.count("}")
    if opening != closing:
        raise ConfigError(
            ConfigErrorKind.UNBALANCED_BRACES,
            f"Unbalanced braces in process map ({opening} '{{' vs {closing} '}}')",
        )
    if not trimmed.endswith("}"):
        raise ConfigError(
            ConfigErrorKind.NOT_AN_OBJECT, "Process map is not a JSON object"
        )

    mapping: Dict[str, str] = {}
    for match in _PAIR_RE.finditer(trimmed):
        key, value = match.group(1), match.group(2)
        if "\\" in key or "\\" in value:
            key = _unescape(key)
            value = _unescape(value)
        mapping[key] = value

    if not mapping:
        raise ConfigError(
            ConfigErrorKind.EMPTY, "No processes found in process map"
        )
    return mapping


def _unescape(text: str) -> str:
    return _ESCAPE_RE.sub(r"\1", text)


def strip_scheme(host: str) -> str:
    return _SCHEME_RE.sub("", host.strip())


def build_targets(mapping: Dict[str, str]) -> List[ValidationTarget]:
    targets: List[ValidationTarget] = []
    for process_id, host in mapping.items():
        target = strip_scheme(host)
        if not process_id or not target:
            logger.warning(
                "Skipping process map entry with empty id or target: %r -> %r",
                process_id,
                host,
            )
            continue
        targets.append(ValidationTarget(process_id=process_id, target=target))
    return targets


def load_process_map(path: Path) -> List[ValidationTarget]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise ConfigError(
            ConfigErrorKind.UNREADABLE, f"Could not open {path}: {exc}"
        ) from exc

    targets = build_targets(parse_flat_mapping(text))
    if not targets:
        raise ConfigError(
            ConfigErrorKind.EMPTY, f"No processes found in {path}"
        )
    return targets
