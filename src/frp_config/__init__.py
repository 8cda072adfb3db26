"""FRP Config - TOML and legacy INI codec for FRP client configurations."""

from .api import (
    detect_format,
    generate_share_link,
    import_config,
    parse_config,
    serialize_config,
)

# Common utilities
from .common.exceptions import (
    DocumentError,
    FRPConfigError,
    MappingError,
    UnsupportedFormatError,
)
from .common.logging import get_logger, setup_logging
from .common.settings import ConverterSettings
from .converter import ConfigConverter

# Typed models
from .models import (
    AuthMethod,
    BandwidthConfig,
    BandwidthMode,
    BandwidthUnit,
    ClientConfig,
    ConfigFormat,
    HealthCheckConfig,
    HealthCheckType,
    LoadBalanceConfig,
    LogLevel,
    PluginConfig,
    PluginType,
    Protocol,
    ProxyConfig,
    ProxyRole,
    ProxyType,
)

# Package level logger
logger = get_logger(__name__)

__version__ = "0.1.0"


__all__ = [
    # High-level API
    "serialize_config",
    "parse_config",
    "detect_format",
    "generate_share_link",
    "import_config",
    # Converter
    "ConfigConverter",
    "ConverterSettings",
    # Models
    "ClientConfig",
    "ProxyConfig",
    "BandwidthConfig",
    "PluginConfig",
    "LoadBalanceConfig",
    "HealthCheckConfig",
    "ConfigFormat",
    "Protocol",
    "ProxyType",
    "ProxyRole",
    "AuthMethod",
    "LogLevel",
    "BandwidthUnit",
    "BandwidthMode",
    "HealthCheckType",
    "PluginType",
    # Exceptions
    "FRPConfigError",
    "UnsupportedFormatError",
    "DocumentError",
    "MappingError",
    # Utilities
    "get_logger",
    "setup_logging",
]
