"""High-level API for the FRP configuration codec.

This module provides simple functions for the common import/export tasks,
backed by a stateless default ``ConfigConverter``.
"""

from .converter import ConfigConverter
from .models import ClientConfig, ConfigFormat

_converter = ConfigConverter()


def serialize_config(config: ClientConfig) -> str:
    """Render a config as TOML, or as INI when ``legacy_format`` is set.

    Example:
        >>> config = ClientConfig(name="office", server_addr="frp.example.com")
        >>> print(serialize_config(config))
        serverAddr = "frp.example.com"
        <BLANKLINE>
    """
    return _converter.serialize(config)


def parse_config(
    text: str, name: str, fmt: ConfigFormat | str | None = None
) -> ClientConfig:
    """Parse TOML or INI text into a config.

    Args:
        text: Raw configuration text
        name: Name for the resulting config
        fmt: ``"toml"``, ``"ini"``, or None to detect the format

    Returns:
        Hydrated ClientConfig

    Raises:
        UnsupportedFormatError: If fmt names another format
    """
    return _converter.parse(text, name, fmt)


def detect_format(text: str) -> ConfigFormat:
    """Classify raw configuration text as TOML or INI."""
    return _converter.detect_format(text)


def generate_share_link(config: ClientConfig) -> str:
    """Encode a config as an ``frp://`` share link."""
    return _converter.share_link(config)


def import_config(text: str, name: str | None = None) -> ClientConfig:
    """Import a config from a share link, base64 payload or raw text.

    Example:
        >>> link = generate_share_link(ClientConfig(name="a", server_addr="x"))
        >>> import_config(link, name="a").server_addr
        'x'
    """
    return _converter.import_text(text, name)
