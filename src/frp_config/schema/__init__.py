"""Typed config <-> document mapping for the TOML and INI layouts."""

from .fields import FieldKind, FieldMapping
from .ini_schema import client_to_sections, sections_to_client
from .toml_schema import client_to_document, document_to_client

__all__ = [
    "FieldKind",
    "FieldMapping",
    "client_to_document",
    "document_to_client",
    "client_to_sections",
    "sections_to_client",
]
