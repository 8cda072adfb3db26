"""Typed FRP client configuration models."""

from .client import DEFAULT_ADMIN_ADDR, DEFAULT_SERVER_PORT, ClientConfig
from .enums import (
    AuthMethod,
    BandwidthMode,
    BandwidthUnit,
    ConfigFormat,
    HealthCheckType,
    LogLevel,
    PluginType,
    Protocol,
    ProxyRole,
    ProxyType,
)
from .proxy import (
    BandwidthConfig,
    HealthCheckConfig,
    LoadBalanceConfig,
    PluginConfig,
    ProxyConfig,
)

__all__ = [
    # Records
    "ClientConfig",
    "ProxyConfig",
    "BandwidthConfig",
    "PluginConfig",
    "LoadBalanceConfig",
    "HealthCheckConfig",
    # Vocabularies
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
    # Defaults
    "DEFAULT_SERVER_PORT",
    "DEFAULT_ADMIN_ADDR",
]
