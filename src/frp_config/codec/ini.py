"""Reader and writer for legacy frpc INI configs.

Values stay strings here; numeric and boolean coercion belongs to the
schema mapper. Keys that precede the first header land in the ``""``
section.
"""

from ..common.logging import get_logger

logger = get_logger(__name__)

COMMON_SECTION = "common"
NO_SECTION = ""

_COMMENT_PREFIXES = ("#", ";")
_INLINE_COMMENT_MARKERS = (" #", " ;")

Sections = dict[str, dict[str, str]]


def _is_quoted(value: str) -> bool:
    return len(value) >= 2 and value.startswith('"') and value.endswith('"')


def _clean_value(raw: str) -> str:
    value = raw.strip()
    if value.startswith('"'):
        return value[1:-1] if _is_quoted(value) else value

    for marker in _INLINE_COMMENT_MARKERS:
        cut = value.find(marker)
        if cut >= 0:
            value = value[:cut].strip()
    return value


def parse_ini(text: str) -> Sections:
    """Parse INI text into section -> key -> value.

    Blank lines and ``#``/``;`` comment lines are skipped, as is any line
    that is neither a header nor a ``key = value`` pair. An unquoted value
    loses a trailing `` #...`` or `` ;...`` comment; a double-quoted value
    is unwrapped as-is.

    Args:
        text: Raw configuration text

    Returns:
        Mapping of section name to its key/value pairs, in source order
    """
    sections: Sections = {}
    current = NO_SECTION

    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(_COMMENT_PREFIXES):
            continue

        if stripped.startswith("[") and stripped.endswith("]"):
            current = stripped[1:-1].strip()
            sections.setdefault(current, {})
            continue

        key, sep, raw = stripped.partition("=")
        key = key.strip()
        if not sep or not key:
            logger.debug("Skipping unparseable INI line", line=stripped)
            continue

        sections.setdefault(current, {})[key] = _clean_value(raw)

    return sections


def format_ini_value(value: str) -> str:
    """Quote a value only when a bare rendering would not read back intact."""
    needs_quotes = (
        value != value.strip()
        or value.startswith('"')
        or any(marker in value for marker in _INLINE_COMMENT_MARKERS)
    )
    return f'"{value}"' if needs_quotes else value


def _section_lines(values: dict[str, str]) -> list[str]:
    return [f"{key} = {format_ini_value(values[key])}" for key in sorted(values)]


def dump_ini(sections: Sections) -> str:
    """Serialize sections to INI text.

    ``[common]`` is written first when present, then the other sections in
    name order, then keys without a section. Keys are sorted within each
    section.
    """
    lines: list[str] = []

    if COMMON_SECTION in sections:
        lines.append(f"[{COMMON_SECTION}]")
        lines.extend(_section_lines(sections[COMMON_SECTION]))

    for name in sorted(sections):
        if name in (COMMON_SECTION, NO_SECTION):
            continue
        if lines:
            lines.append("")
        lines.append(f"[{name}]")
        lines.extend(_section_lines(sections[name]))

    unsectioned = sections.get(NO_SECTION)
    if unsectioned:
        if lines:
            lines.append("")
        lines.extend(_section_lines(unsectioned))

    return "\n".join(lines) + "\n"
