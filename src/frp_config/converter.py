"""Facade composing the codecs, schema mapper and detector."""

from pathlib import Path

from .codec.ini import dump_ini, parse_ini
from .codec.toml import dump_toml, parse_toml
from .common.exceptions import UnsupportedFormatError
from .common.logging import get_logger
from .common.settings import ConverterSettings
from .common.utils import base64_decode, base64_encode, generate_random_name
from .detector import detect_format
from .models import ClientConfig, ConfigFormat
from .schema.ini_schema import client_to_sections, sections_to_client
from .schema.toml_schema import client_to_document, document_to_client

logger = get_logger(__name__)


class ConfigConverter:
    """Converts FRP client configs to and from TOML and INI text.

    The converter holds only its settings, so one instance can be shared
    freely between callers and threads.
    """

    def __init__(self, settings: ConverterSettings | None = None) -> None:
        """Initialize ConfigConverter.

        Args:
            settings: Import/export behavior, defaults to ``ConverterSettings()``
        """
        self.settings = settings or ConverterSettings()

    # Serialization

    def config_to_toml(self, config: ClientConfig) -> str:
        """Render a config as TOML regardless of its legacy flag."""
        text = dump_toml(client_to_document(config))
        logger.debug(
            "Serialized config",
            name=config.name,
            format="toml",
            proxies=len(config.proxies),
        )
        return text

    def config_to_ini(self, config: ClientConfig) -> str:
        """Render a config as legacy INI regardless of its legacy flag."""
        text = dump_ini(client_to_sections(config))
        logger.debug(
            "Serialized config",
            name=config.name,
            format="ini",
            proxies=len(config.proxies),
        )
        return text

    def serialize(self, config: ClientConfig) -> str:
        """Render a config in the format its ``legacy_format`` flag selects."""
        if config.config_format is ConfigFormat.INI:
            return self.config_to_ini(config)
        return self.config_to_toml(config)

    # Parsing

    def toml_to_config(self, text: str, name: str) -> ClientConfig:
        """Parse TOML text into a config named ``name``."""
        config = document_to_client(parse_toml(text), name)
        logger.debug(
            "Parsed config", name=name, format="toml", proxies=len(config.proxies)
        )
        return config

    def ini_to_config(self, text: str, name: str) -> ClientConfig:
        """Parse INI text into a config named ``name`` with ``legacy_format`` on."""
        config = sections_to_client(parse_ini(text), name)
        logger.debug(
            "Parsed config", name=name, format="ini", proxies=len(config.proxies)
        )
        return config

    def parse(
        self, text: str, name: str, fmt: ConfigFormat | str | None = None
    ) -> ClientConfig:
        """Parse config text, detecting the format when none is given.

        Args:
            text: Raw configuration text
            name: Name for the resulting config
            fmt: Format of the text, or None to detect it

        Returns:
            Hydrated ClientConfig

        Raises:
            UnsupportedFormatError: If fmt names a format other than toml or ini
        """
        config_format = (
            self.detect_format(text) if fmt is None else ConfigFormat.from_name(fmt)
        )
        if config_format is ConfigFormat.INI:
            return self.ini_to_config(text, name)
        return self.toml_to_config(text, name)

    def parse_file_content(self, text: str, path: str | Path) -> ClientConfig:
        """Parse the content of a config file, named after the file stem.

        Raises:
            UnsupportedFormatError: If the file suffix is not .toml or .ini
        """
        path = Path(path)
        return self.parse(text, path.stem, ConfigFormat.from_path(path))

    def detect_format(self, text: str) -> ConfigFormat:
        """Classify raw text as TOML or INI."""
        return detect_format(text)

    # Conveniences

    def file_name(self, config: ClientConfig) -> str:
        """File name a config is stored under, e.g. ``office.toml``."""
        return f"{config.name}{config.config_format.extension}"

    def share_link(self, config: ClientConfig) -> str:
        """Encode a config as a share link such as ``frp://<base64>``."""
        return self.settings.share_link_scheme + base64_encode(self.serialize(config))

    def import_text(self, text: str, name: str | None = None) -> ClientConfig:
        """Import a config from a share link, bare base64 or raw config text.

        Args:
            text: Clipboard or download content
            name: Name for the config, random when omitted

        Returns:
            Hydrated ClientConfig

        Raises:
            UnsupportedFormatError: If the text is empty or a share link
                payload does not decode to UTF-8 text
        """
        trimmed = text.strip()
        if not trimmed:
            raise UnsupportedFormatError("No configuration content to import")

        scheme = self.settings.share_link_scheme
        content: str | None
        if trimmed.startswith(scheme):
            content = base64_decode(trimmed[len(scheme) :])
            if content is None:
                raise UnsupportedFormatError("Share link payload is not valid base64")
            source = "share_link"
        else:
            content = None
            if self.settings.accept_bare_base64:
                content = base64_decode(trimmed)
            source = "base64"
            if content is None:
                content = trimmed
                source = "text"

        if name is None:
            name = generate_random_name(self.settings.generated_name_length)

        logger.info("Importing config", name=name, source=source)
        return self.parse(content, name)
