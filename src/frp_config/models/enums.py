"""Closed vocabularies used by the FRP client configuration models."""

from enum import Enum
from pathlib import Path
from typing import Any

from ..common.exceptions import UnsupportedFormatError


class ConfigFormat(str, Enum):
    """On-disk configuration formats."""

    TOML = "toml"
    INI = "ini"

    @property
    def extension(self) -> str:
        """File extension including the leading dot."""
        return f".{self.value}"

    @classmethod
    def for_config(cls, config: Any) -> "ConfigFormat":
        """Format a client config serializes to, from its legacy flag."""
        return cls.INI if config.legacy_format else cls.TOML

    @classmethod
    def from_name(cls, name: "str | ConfigFormat") -> "ConfigFormat":
        """Look up a format by name, case-insensitively.

        Raises:
            UnsupportedFormatError: If the name is not toml or ini
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise UnsupportedFormatError(f"Unsupported config format: {name}") from None

    @classmethod
    def from_path(cls, path: str | Path) -> "ConfigFormat":
        """Pick the format from a file suffix.

        Raises:
            UnsupportedFormatError: For any suffix other than .toml or .ini
        """
        suffix = Path(path).suffix
        if not suffix:
            raise UnsupportedFormatError(f"Cannot tell config format of {path}")
        return cls.from_name(suffix[1:])


class Protocol(str, Enum):
    """Transport protocol between frpc and frps."""

    TCP = "tcp"
    KCP = "kcp"
    QUIC = "quic"
    WEBSOCKET = "websocket"
    WSS = "wss"


class ProxyType(str, Enum):
    """Proxy type enumeration."""

    TCP = "tcp"
    UDP = "udp"
    XTCP = "xtcp"
    STCP = "stcp"
    SUDP = "sudp"
    HTTP = "http"
    HTTPS = "https"
    TCPMUX = "tcpmux"


class ProxyRole(str, Enum):
    """Role of a peer-to-peer proxy."""

    SERVER = "server"
    VISITOR = "visitor"


class AuthMethod(str, Enum):
    """Authentication methods. NONE leaves the method unset."""

    NONE = ""
    TOKEN = "token"
    OIDC = "oidc"


class LogLevel(str, Enum):
    """FRP client log levels."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class BandwidthUnit(str, Enum):
    KB = "KB"
    MB = "MB"


class BandwidthMode(str, Enum):
    """Side enforcing a proxy's bandwidth limit."""

    CLIENT = "client"
    SERVER = "server"


class HealthCheckType(str, Enum):
    """Health check kinds. NONE disables health checking."""

    NONE = ""
    TCP = "tcp"
    HTTP = "http"


class PluginType(str, Enum):
    """Local service plugins. NONE means the proxy has no plugin."""

    NONE = ""
    HTTP2HTTP = "http2http"
    HTTP2HTTPS = "http2https"
    HTTPS2HTTP = "https2http"
    HTTPS2HTTPS = "https2https"
    HTTP_PROXY = "http_proxy"
    SOCKS5 = "socks5"
    STATIC_FILE = "static_file"
    UNIX_DOMAIN_SOCKET = "unix_domain_socket"
    TLS2RAW = "tls2raw"


# Attribute groups keyed on proxy type
P2P_TYPES = frozenset({ProxyType.XTCP, ProxyType.STCP, ProxyType.SUDP})
DOMAIN_TYPES = frozenset({ProxyType.HTTP, ProxyType.HTTPS, ProxyType.TCPMUX})
HTTP_TYPES = frozenset({ProxyType.HTTP, ProxyType.HTTPS})

# Attribute groups keyed on plugin type
HTTP_FORWARD_PLUGINS = frozenset(
    {
        PluginType.HTTP2HTTP,
        PluginType.HTTP2HTTPS,
        PluginType.HTTPS2HTTP,
        PluginType.HTTPS2HTTPS,
    }
)
LOCAL_ADDR_PLUGINS = HTTP_FORWARD_PLUGINS | {PluginType.TLS2RAW}
TLS_TERMINATING_PLUGINS = frozenset(
    {PluginType.HTTPS2HTTP, PluginType.HTTPS2HTTPS, PluginType.TLS2RAW}
)
