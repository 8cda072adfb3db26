"""Text codecs: the untyped document model and the TOML and INI formats."""

from .document import (
    Document,
    DocumentValue,
    Table,
    ValueKind,
    kind_of,
    lookup,
)
from .ini import COMMON_SECTION, NO_SECTION, Sections, dump_ini, parse_ini
from .toml import dump_toml, parse_toml

__all__ = [
    # Document model
    "Document",
    "DocumentValue",
    "Table",
    "ValueKind",
    "kind_of",
    "lookup",
    # TOML
    "parse_toml",
    "dump_toml",
    # INI
    "parse_ini",
    "dump_ini",
    "Sections",
    "COMMON_SECTION",
    "NO_SECTION",
]
