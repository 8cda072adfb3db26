"""Format detection for configuration text of unknown origin."""

from .common.logging import get_logger
from .models.enums import ConfigFormat

logger = get_logger(__name__)

# snake_case names that only appear in legacy INI configs
LEGACY_KEYS = frozenset(
    {"server_addr", "server_port", "local_port", "remote_port", "log_level"}
)

_COMMENT_PREFIXES = ("#", ";")


def detect_format(text: str) -> ConfigFormat:
    """Guess whether text is TOML or legacy INI.

    Lines are scanned in order and the first conclusive one decides: an
    array-of-tables header or a dotted key means TOML, an assignment line
    mentioning one of ``LEGACY_KEYS`` means INI. Comment lines are ignored.
    Text with no conclusive line is treated as TOML, so a bare ``[common]``
    config with none of the legacy keys reads as TOML.

    Args:
        text: Raw configuration text

    Returns:
        Detected format
    """
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(_COMMENT_PREFIXES):
            continue

        if stripped.startswith("[[") and stripped.endswith("]]"):
            return ConfigFormat.TOML

        key, sep, _ = stripped.partition("=")
        if not sep:
            continue

        if "." in key.strip():
            return ConfigFormat.TOML
        if any(legacy in stripped for legacy in LEGACY_KEYS):
            return ConfigFormat.INI

    logger.debug("No conclusive line, assuming TOML")
    return ConfigFormat.TOML
