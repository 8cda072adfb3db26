"""Line-oriented reader and writer for the TOML subset used by frpc configs.

Supported: root keys, ``[table]`` and ``[[array.of.tables]]`` headers,
``[parent.child]`` sub-tables of the current array-of-tables entry, dotted
keys (kept flat), strings (basic, literal and ``\"\"\"`` multi-line),
integers, booleans, string arrays and flat inline tables. Lines the reader
cannot segment are skipped.
"""

import re

from ..common.exceptions import DocumentError
from ..common.logging import get_logger
from .document import Document, DocumentValue, Table, ValueKind, kind_of

logger = get_logger(__name__)

MULTILINE_DELIMITER = '"""'

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_QUOTES = "\"'"


def strip_inline_comment(value: str) -> str:
    """Cut a value at the first ``#`` that is not inside quotes."""
    quote: str | None = None
    for index, char in enumerate(value):
        if char in _QUOTES:
            if quote is None:
                quote = char
            elif char == quote:
                quote = None
        elif char == "#" and quote is None:
            return value[:index].strip()
    return value


def _split_items(inner: str) -> list[str]:
    """Split on commas outside quotes, dropping empty items."""
    items: list[str] = []
    current: list[str] = []
    quote: str | None = None
    for char in inner:
        if char in _QUOTES:
            if quote is None:
                quote = char
            elif char == quote:
                quote = None
        if char == "," and quote is None:
            items.append("".join(current))
            current = []
        else:
            current.append(char)
    items.append("".join(current))
    return [item.strip() for item in items if item.strip()]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def parse_value(raw: str) -> DocumentValue:
    """Parse the right-hand side of a single-line ``key = value``."""
    value = strip_inline_comment(raw).strip()

    if value == "true":
        return True
    if value == "false":
        return False
    if _INTEGER_RE.fullmatch(value):
        return int(value)
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    if value.startswith("[") and value.endswith("]"):
        return [_unquote(item) for item in _split_items(value[1:-1])]
    if value.startswith("{") and value.endswith("}"):
        inline: Table = {}
        for item in _split_items(value[1:-1]):
            key, sep, item_value = item.partition("=")
            if sep and key.strip():
                inline[_unquote(key.strip())] = _unquote(item_value.strip())
        return inline

    return value


def _is_table_list(value: object) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(item, dict) for item in value)
    )


class TOMLReader:
    """Single-use parse state: the current target table and multi-line buffer."""

    def __init__(self) -> None:
        self.document: Document = {}
        self._target: Table = self.document
        self._multiline_key: str | None = None
        self._multiline_value = ""

    def feed(self, line: str) -> None:
        """Consume one physical line."""
        if self._multiline_key is not None:
            self._continue_multiline(line)
            return

        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            return

        if stripped.startswith("[[") and stripped.endswith("]]"):
            self._open_table_list(stripped[2:-2].strip())
            return

        if stripped.startswith("[") and stripped.endswith("]"):
            self._open_table(stripped[1:-1].strip())
            return

        key, sep, raw = stripped.partition("=")
        key = key.strip()
        if not sep or not key:
            logger.debug("Skipping unparseable TOML line", line=stripped)
            return

        raw = raw.strip()
        if raw.startswith(MULTILINE_DELIMITER):
            # the first line keeps its trailing blanks
            opened = line.partition("=")[2].lstrip()
            after = opened[len(MULTILINE_DELIMITER) :]
            end = after.find(MULTILINE_DELIMITER)
            if end >= 0:
                self._target[key] = after[:end]
            else:
                self._multiline_key = key
                self._multiline_value = after + "\n"
            return

        self._target[key] = parse_value(raw)

    def finish(self) -> Document:
        """Return the document, dropping an unterminated multi-line string."""
        if self._multiline_key is not None:
            logger.warning(
                "Unterminated multi-line string dropped", key=self._multiline_key
            )
            self._multiline_key = None
        return self.document

    def _continue_multiline(self, line: str) -> None:
        end = line.find(MULTILINE_DELIMITER)
        if end < 0:
            self._multiline_value += line + "\n"
            return

        key, self._multiline_key = self._multiline_key, None
        self._target[key] = self._multiline_value + line[:end]  # type: ignore[index]
        self._multiline_value = ""

    def _open_table_list(self, name: str) -> None:
        if not name:
            logger.debug("Skipping empty array-of-tables header")
            return

        tables = self.document.get(name)
        if not _is_table_list(tables):
            if tables is not None:
                logger.warning("Array-of-tables header replaces existing key", key=name)
            tables = []
            self.document[name] = tables

        entry: Table = {}
        tables.append(entry)  # type: ignore[union-attr]
        self._target = entry

    def _open_table(self, name: str) -> None:
        if not name:
            logger.debug("Skipping empty table header")
            return

        # [proxies.plugin] right after [[proxies]] belongs to that entry
        parent_name, sep, child = name.partition(".")
        parent = self.document.get(parent_name)
        if sep and child and _is_table_list(parent):
            container: Table = parent[-1]  # type: ignore[index]
            name = child
        else:
            container = self.document

        table = container.get(name)
        if not isinstance(table, dict):
            if table is not None:
                logger.warning("Table header replaces existing key", key=name)
            table = {}
            container[name] = table
        self._target = table


def parse_toml(text: str) -> Document:
    """Parse TOML-flavored text into a document.

    Args:
        text: Raw configuration text

    Returns:
        Document with root keys, tables and arrays of tables
    """
    reader = TOMLReader()
    for line in text.splitlines():
        reader.feed(line)
    return reader.finish()


def _is_multiline(value: DocumentValue) -> bool:
    return isinstance(value, str) and "\n" in value


def _quote(value: str) -> str:
    quoted = f'"{value}"'
    if strip_inline_comment(quoted) != quoted:
        logger.warning("String holding '\"#' is cut short when read back")
    return quoted


def _format_inline(value: DocumentValue) -> str:
    if _is_multiline(value):
        raise DocumentError(
            "Multi-line strings cannot be written inside arrays or inline tables"
        )
    return format_value(value)


def format_value(value: DocumentValue) -> str:
    """Render a value for the right-hand side of ``key = value``.

    Strings are double-quoted without escapes, so a string holding ``"``
    followed by ``#`` is cut at the ``#`` when read back; writing one logs a
    warning.

    Raises:
        DocumentError: For arrays of tables, which only exist at the top
            level, and for multi-line strings inside arrays or inline tables
    """
    kind = kind_of(value)
    if kind is ValueKind.STRING:
        if _is_multiline(value):
            return f"{MULTILINE_DELIMITER}{value}{MULTILINE_DELIMITER}"
        return _quote(value)  # type: ignore[arg-type]
    if kind is ValueKind.BOOLEAN:
        return "true" if value else "false"
    if kind is ValueKind.INTEGER:
        return str(value)
    if kind is ValueKind.STRING_LIST:
        if not value:
            return "[]"
        items = [_format_inline(item) for item in value]  # type: ignore[union-attr]
        return "[ " + ", ".join(items) + " ]"
    if kind is ValueKind.TABLE:
        if not value:
            return "{}"
        pairs = sorted(value.items())  # type: ignore[union-attr]
        return "{ " + ", ".join(f"{k} = {_format_inline(v)}" for k, v in pairs) + " }"

    raise DocumentError("Arrays of tables are only supported at the top level")


def _table_lines(table: Table) -> list[str]:
    return [f"{key} = {format_value(table[key])}" for key in sorted(table)]


def _split_entry(entry: Table) -> tuple[Table, Table]:
    """Separate maps holding multi-line strings from an array-of-tables entry.

    Such maps cannot be written inline, so they become ``[parent.key]``
    sub-tables of the entry.
    """
    inline: Table = {}
    sub_tables: Table = {}
    for key, value in entry.items():
        if isinstance(value, dict) and any(map(_is_multiline, value.values())):
            sub_tables[key] = value
        else:
            inline[key] = value
    return inline, sub_tables


def dump_toml(document: Document) -> str:
    """Serialize a document to TOML text.

    Root scalars come first, sorted by key, then tables and arrays of tables
    sorted by key, each entry's lines sorted by key. A map inside an
    array-of-tables entry that holds a multi-line string is written as a
    ``[parent.key]`` sub-table after the entry's own lines. The output is
    byte-identical for equal documents.

    Raises:
        DocumentError: If the document holds a value outside the document model
    """
    lines: list[str] = []
    sections: list[tuple[str, DocumentValue, ValueKind]] = []

    for key in sorted(document):
        value = document[key]
        kind = kind_of(value)
        if kind.is_scalar:
            lines.append(f"{key} = {format_value(value)}")
        else:
            sections.append((key, value, kind))

    for key, value, kind in sections:
        if kind is ValueKind.TABLE:
            if lines:
                lines.append("")
            lines.append(f"[{key}]")
            lines.extend(_table_lines(value))  # type: ignore[arg-type]
            continue

        for entry in value:  # type: ignore[union-attr]
            inline, sub_tables = _split_entry(entry)  # type: ignore[arg-type]
            if lines:
                lines.append("")
            lines.append(f"[[{key}]]")
            lines.extend(_table_lines(inline))
            for name in sorted(sub_tables):
                lines.append(f"[{key}.{name}]")
                lines.extend(_table_lines(sub_tables[name]))  # type: ignore[arg-type]

    return "\n".join(lines) + "\n"
