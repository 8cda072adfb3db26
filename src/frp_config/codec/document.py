"""Untyped document tree shared by the TOML codec and the schema mapper.

A document value is exactly one of six variants. ``kind_of`` is the single
place that tells them apart, so serializers and mappers dispatch on
``ValueKind`` instead of probing types ad hoc.
"""

from enum import Enum
from typing import Union

from ..common.exceptions import DocumentError

DocumentValue = Union[
    str,
    int,
    bool,
    list[str],
    dict[str, "DocumentValue"],
    list[dict[str, "DocumentValue"]],
]
Table = dict[str, DocumentValue]
Document = dict[str, DocumentValue]


class ValueKind(str, Enum):
    """Variants of the document value model."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING_LIST = "string_list"
    TABLE = "table"
    TABLE_LIST = "table_list"

    @property
    def is_scalar(self) -> bool:
        """Scalars are written as ``key = value`` lines, even lists."""
        return self not in (ValueKind.TABLE, ValueKind.TABLE_LIST)


def kind_of(value: object) -> ValueKind:
    """Classify a document value.

    Booleans are checked before integers because ``bool`` subclasses ``int``.
    An empty list counts as a string list.

    Raises:
        DocumentError: If value is not one of the six document variants
    """
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, dict):
        if all(isinstance(key, str) for key in value):
            return ValueKind.TABLE
    elif isinstance(value, list):
        if all(isinstance(item, str) for item in value):
            return ValueKind.STRING_LIST
        if all(isinstance(item, dict) for item in value):
            return ValueKind.TABLE_LIST

    raise DocumentError(f"Unsupported document value: {value!r}")


def lookup(table: Table, key: str) -> DocumentValue | None:
    """Find a dotted key in a table.

    The flat key (``"auth.method"`` stored as one key) wins; otherwise the
    key is resolved through nested tables (``[auth]`` holding ``method``).
    """
    if key in table:
        return table[key]

    head, sep, rest = key.partition(".")
    while sep:
        nested = table.get(head)
        if isinstance(nested, dict):
            found = lookup(nested, rest)
            if found is not None:
                return found
        part, sep, rest = rest.partition(".")
        head = f"{head}.{part}"
    return None
