"""Proxy configuration models for FRP client configs.

A proxy carries every attribute any proxy type can use. Which of them reach
disk is decided by the schema tables, keyed on ``type`` and ``plugin.type``.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..common.utils import MAX_PORT, MIN_PORT, validate_non_empty_string
from .enums import (
    BandwidthMode,
    BandwidthUnit,
    HealthCheckType,
    PluginType,
    ProxyRole,
    ProxyType,
)

_RECORD_CONFIG = ConfigDict(validate_assignment=True, extra="forbid")


class BandwidthConfig(BaseModel):
    """Per-proxy bandwidth limit. A zero limit disables limiting."""

    model_config = _RECORD_CONFIG

    limit: int = Field(default=0, ge=0, description="Limit value, 0 = unlimited")
    unit: BandwidthUnit = Field(default=BandwidthUnit.MB)
    mode: BandwidthMode = Field(default=BandwidthMode.CLIENT)


class PluginConfig(BaseModel):
    """Local service plugin settings, grouped by the plugin kinds using them."""

    model_config = _RECORD_CONFIG

    type: PluginType = Field(default=PluginType.NONE)

    # http2http, http2https, https2http, https2https, tls2raw
    local_addr: str = ""
    host_header_rewrite: str = ""
    request_headers: dict[str, str] = Field(default_factory=dict)

    # https2http, https2https, tls2raw
    crt_path: str = ""
    key_path: str = ""

    # http_proxy
    http_user: str = ""
    http_pwd: str = ""

    # socks5
    socks5_user: str = ""
    socks5_pwd: str = ""

    # static_file
    local_path: str = ""
    strip_prefix: str = ""
    static_file_user: str = ""
    static_file_pwd: str = ""

    # unix_domain_socket
    unix_path: str = ""


class LoadBalanceConfig(BaseModel):
    model_config = _RECORD_CONFIG

    group: str = ""
    group_key: str = ""


class HealthCheckConfig(BaseModel):
    """Health check settings. An empty type disables the check."""

    model_config = _RECORD_CONFIG

    type: HealthCheckType = Field(default=HealthCheckType.NONE)
    url: str = Field(default="", description="HTTP path probed by http checks")
    timeout: int = Field(default=0, ge=0, description="Timeout seconds")
    interval: int = Field(default=0, ge=0, description="Interval seconds")
    max_failed: int = Field(default=0, ge=0)


class ProxyConfig(BaseModel):
    """One forwarded service of an FRP client."""

    model_config = _RECORD_CONFIG

    # Basic
    name: str = Field(min_length=1, description="Proxy name, unique per client")
    type: ProxyType = Field(default=ProxyType.TCP)
    disabled: bool = False

    # Local endpoint
    local_ip: str = "127.0.0.1"
    local_port: int | None = Field(default=None, ge=MIN_PORT, le=MAX_PORT)
    remote_port: int | None = Field(default=None, ge=MIN_PORT, le=MAX_PORT)

    # Peer-to-peer (xtcp/stcp/sudp)
    role: ProxyRole = Field(default=ProxyRole.SERVER)
    secret_key: str = ""
    allow_users: list[str] = Field(default_factory=list)
    server_name: str = ""
    server_user: str = ""
    bind_addr: str = ""
    bind_port: int = Field(default=0, ge=MIN_PORT, le=MAX_PORT)
    visitor_protocol: str = Field(default="", description="quic or kcp for xtcp")
    keep_tunnel_open: bool = False
    max_retries_per_hour: int = Field(default=0, ge=0)
    min_retry_interval: int = Field(default=0, ge=0)
    fallback_to: str = ""
    fallback_timeout_ms: int = Field(default=0, ge=0)

    # Domain-based (http/https/tcpmux)
    subdomain: str = ""
    custom_domains: list[str] = Field(default_factory=list)
    locations: list[str] = Field(default_factory=list)
    multiplexer: str = ""
    route_by_http_user: str = ""

    # HTTP (http/https)
    http_user: str = ""
    http_pwd: str = ""
    host_header_rewrite: str = ""
    request_headers: dict[str, str] = Field(default_factory=dict)
    response_headers: dict[str, str] = Field(default_factory=dict)

    # Transport
    bandwidth: BandwidthConfig = Field(default_factory=BandwidthConfig)
    proxy_protocol_version: str = ""
    use_encryption: bool = False
    use_compression: bool = False

    plugin: PluginConfig = Field(default_factory=PluginConfig)
    load_balance: LoadBalanceConfig = Field(default_factory=LoadBalanceConfig)
    health_check: HealthCheckConfig = Field(default_factory=HealthCheckConfig)

    metadatas: dict[str, str] = Field(default_factory=dict)
    # Only the TOML schema has a slot for annotations
    annotations: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject blank proxy names."""
        return validate_non_empty_string(v, "Proxy name")
