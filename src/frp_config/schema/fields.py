"""Field mapping tables shared by the TOML and INI schemas.

A table is a tuple of ``FieldMapping`` rows, each tying a model attribute
(dotted for sub-records, e.g. ``"bandwidth.mode"``) to an on-disk key. Rows
carry an applicability predicate evaluated against the record being written
or hydrated, so type-conditional attribute groups are enforced the same way
by both formats. Tables are bound to the pydantic models at import time,
which fills each row's default from the model and rejects unknown
attributes.
"""

import re
from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..common.exceptions import MappingError
from ..common.logging import get_logger
from ..common.utils import format_bandwidth, parse_bandwidth, split_list
from ..models import ClientConfig, ProxyConfig
from ..models.enums import (
    DOMAIN_TYPES,
    HTTP_TYPES,
    P2P_TYPES,
    HealthCheckType,
    PluginType,
    Protocol,
)

logger = get_logger(__name__)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


class FieldKind(str, Enum):
    """How a field's value is represented on disk."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OPTIONAL_PORT = "optional_port"
    STRING_LIST = "string_list"
    STRING_MAP = "string_map"


Predicate = Callable[[Any], bool]


def always(_record: Any) -> bool:
    return True


# Proxy attribute groups


def is_p2p(proxy: ProxyConfig) -> bool:
    return proxy.type in P2P_TYPES


def is_domain_based(proxy: ProxyConfig) -> bool:
    return proxy.type in DOMAIN_TYPES


def is_http(proxy: ProxyConfig) -> bool:
    return proxy.type in HTTP_TYPES


def bandwidth_limited(proxy: ProxyConfig) -> bool:
    return proxy.bandwidth.limit > 0


def health_check_enabled(proxy: ProxyConfig) -> bool:
    return proxy.health_check.type != HealthCheckType.NONE


def plugin_in(kinds: Iterable[PluginType]) -> Predicate:
    """Predicate matching proxies whose plugin is one of ``kinds``."""
    allowed = frozenset(kinds)

    def predicate(proxy: ProxyConfig) -> bool:
        return proxy.plugin.type in allowed

    return predicate


# Client attribute groups


def admin_enabled(config: ClientConfig) -> bool:
    return config.admin_enabled


def admin_tls_enabled(config: ClientConfig) -> bool:
    return config.admin_enabled and config.admin_tls


def uses_quic(config: ClientConfig) -> bool:
    return config.protocol == Protocol.QUIC


class FieldMapping(BaseModel):
    """One row of a schema table.

    ``key`` is written; ``aliases`` are older spellings also accepted on read.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    attr: str
    key: str
    aliases: tuple[str, ...] = ()
    kind: FieldKind = FieldKind.STRING
    when: Predicate = always
    required: bool = False
    default: Any = None

    @property
    def conditional(self) -> bool:
        return self.when is not always

    @property
    def read_keys(self) -> tuple[str, ...]:
        return (self.key, *self.aliases)

    def get(self, record: BaseModel) -> Any:
        """Read this row's attribute from a record."""
        value: Any = record
        for part in self.attr.split("."):
            value = getattr(value, part)
        return value

    def set(self, record: BaseModel, value: Any) -> bool:
        """Assign through pydantic validation; False if the value was rejected."""
        *parents, last = self.attr.split(".")
        target: Any = record
        for part in parents:
            target = getattr(target, part)
        try:
            setattr(target, last, value)
        except ValidationError:
            return False
        return True


def _resolve_default(model: type[BaseModel], attr: str) -> Any:
    current = model
    parts = attr.split(".")
    for index, part in enumerate(parts):
        field = current.model_fields.get(part)
        if field is None:
            raise MappingError(f"{model.__name__} has no attribute {attr!r}")
        if index == len(parts) - 1:
            if field.is_required():
                return None
            return field.get_default(call_default_factory=True)
        annotation = field.annotation
        if not (isinstance(annotation, type) and issubclass(annotation, BaseModel)):
            raise MappingError(f"{attr!r} does not name a sub-record field")
        current = annotation
    raise MappingError(f"Empty attribute path for {model.__name__}")


def bind_table(
    model: type[BaseModel], rows: Iterable[FieldMapping]
) -> tuple[FieldMapping, ...]:
    """Check rows against a model and fill in their defaults.

    Raises:
        MappingError: If a row names an attribute the model does not have
    """
    return tuple(
        row.model_copy(update={"default": _resolve_default(model, row.attr)})
        for row in rows
    )


def to_plain(value: Any) -> Any:
    """Strip enums and copy containers so documents never alias records."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [to_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    return value


def elide(
    rows: Iterable[FieldMapping], record: BaseModel
) -> Iterator[tuple[FieldMapping, Any]]:
    """Yield (row, plain value) for every field that must be written.

    A field is written when its row applies to the record and the value
    differs from the row's default. Required rows are always written, with
    an empty value replaced by the default.
    """
    for row in rows:
        if not row.when(record):
            continue

        value = row.get(record)
        if row.required:
            if value in ("", None) and row.default not in ("", None):
                value = row.default
        elif value == row.default:
            continue

        yield row, to_plain(value)


MISSING = object()


def coerce(kind: FieldKind, raw: Any) -> Any:
    """Convert a raw on-disk value to the shape a field expects.

    Returns the sentinel ``MISSING`` when the value has the wrong shape.
    Range and vocabulary checks are left to pydantic on assignment.
    """
    if kind is FieldKind.STRING:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, int) and not isinstance(raw, bool):
            return str(raw)
    elif kind in (FieldKind.INTEGER, FieldKind.OPTIONAL_PORT):
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and _INTEGER_RE.fullmatch(raw.strip()):
            return int(raw)
    elif kind is FieldKind.BOOLEAN:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in ("true", "false"):
            return raw.strip().lower() == "true"
    elif kind is FieldKind.STRING_LIST:
        if isinstance(raw, list) and all(isinstance(item, str) for item in raw):
            return list(raw)
        if isinstance(raw, str):
            return split_list(raw)
    elif kind is FieldKind.STRING_MAP:
        if isinstance(raw, dict):
            return {str(key): str(value) for key, value in raw.items()}
    return MISSING


def hydrate(
    rows: Iterable[FieldMapping],
    record: BaseModel,
    read: Callable[[FieldMapping], Any],
) -> None:
    """Populate a default-constructed record from on-disk values.

    Unconditional rows go first so that the fields predicates look at
    (proxy type, plugin type, admin port, protocol) are in place before
    conditional rows are tested. Absent keys keep the model default; a
    value of the wrong shape or outside a field's constraints also keeps
    the default and is logged.

    Args:
        rows: Bound schema table
        record: Record holding model defaults, updated in place
        read: Returns the raw value for a row, or None when absent
    """
    ordered = sorted(rows, key=lambda row: row.conditional)
    for row in ordered:
        if not row.when(record):
            continue

        raw = read(row)
        if raw is None:
            continue

        value = coerce(row.kind, raw)
        if value is MISSING or not row.set(record, value):
            logger.debug(
                "Invalid value replaced by default",
                key=row.key,
                kind=row.kind.value,
                default=to_plain(row.default),
            )


def bandwidth_token(proxy: ProxyConfig) -> str | None:
    """On-disk bandwidth token, or None while limiting is off."""
    if not bandwidth_limited(proxy):
        return None
    return format_bandwidth(proxy.bandwidth.limit, proxy.bandwidth.unit.value)


def apply_bandwidth(proxy: ProxyConfig, raw: Any) -> None:
    """Split a bandwidth token such as ``"10MB"`` into the proxy's record."""
    token = coerce(FieldKind.STRING, raw)
    if token is MISSING:
        logger.debug("Invalid bandwidth limit ignored", proxy=proxy.name)
        return

    limit, unit = parse_bandwidth(token)
    proxy.bandwidth.limit = limit
    try:
        proxy.bandwidth.unit = unit
    except ValidationError:
        logger.debug("Unknown bandwidth unit replaced by default", unit=unit)
