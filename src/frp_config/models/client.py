"""Client configuration model for FRP client configs."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..common.utils import MAX_PORT, MIN_PORT, validate_non_empty_string
from .enums import AuthMethod, ConfigFormat, LogLevel, Protocol
from .proxy import ProxyConfig

DEFAULT_SERVER_PORT = 7000
DEFAULT_ADMIN_ADDR = "127.0.0.1"


class ClientConfig(BaseModel):
    """One FRP client identity plus its proxies.

    ``name`` doubles as the file stem the config is stored under, and
    ``legacy_format`` selects INI instead of TOML when the config is
    serialized. Fields the legacy schema has no key for are kept in memory
    but never written to INI.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(min_length=1, description="Unique config identifier")

    # Server
    server_addr: str = ""
    server_port: int = Field(default=DEFAULT_SERVER_PORT, ge=MIN_PORT, le=MAX_PORT)
    user: str = ""
    nat_hole_stun_server: str = ""
    dns_server: str = ""
    login_fail_exit: bool = True

    # Auth
    auth_method: AuthMethod = Field(default=AuthMethod.NONE)
    token: str = ""
    token_file: str = ""
    oidc_client_id: str = ""
    oidc_client_secret: str = ""
    oidc_audience: str = ""
    oidc_scope: str = ""
    oidc_token_endpoint: str = ""
    oidc_proxy_url: str = ""
    oidc_trusted_ca_file: str = ""
    oidc_skip_verify: bool = False
    auth_heartbeat: bool = False
    auth_new_work_conn: bool = False

    # Log
    log_level: LogLevel = Field(default=LogLevel.INFO)
    log_max_days: int = Field(default=3, ge=0)

    # Admin API, disabled while admin_port is 0
    admin_addr: str = DEFAULT_ADMIN_ADDR
    admin_port: int = Field(default=0, ge=MIN_PORT, le=MAX_PORT)
    admin_user: str = ""
    admin_pwd: str = ""
    admin_tls: bool = False
    admin_tls_cert_file: str = ""
    admin_tls_key_file: str = ""
    assets_dir: str = ""

    # Connection
    protocol: Protocol = Field(default=Protocol.TCP)
    dial_timeout: int = Field(default=10, ge=0, description="Seconds")
    keepalive_period: int = Field(default=30, description="Seconds, -1 disables")
    pool_count: int = Field(default=0, ge=0)
    heartbeat_interval: int = Field(default=30, description="Seconds, -1 disables")
    heartbeat_timeout: int = Field(default=90, description="Seconds, -1 disables")

    # QUIC, only meaningful when protocol is quic
    quic_keepalive_period: int = Field(default=10, ge=0)
    quic_max_idle_timeout: int = Field(default=30, ge=0)
    quic_max_incoming_streams: int = Field(default=100000, ge=0)

    # TLS
    tls_enable: bool = False
    tls_server_name: str = ""
    tls_cert_file: str = ""
    tls_key_file: str = ""
    tls_trusted_ca_file: str = ""
    tls_disable_custom_first_byte: bool = True

    # Multiplexing and advanced
    connect_server_local_ip: str = ""
    tcp_mux: bool = True
    tcp_mux_keepalive_interval: int = Field(default=60, ge=0)

    metadatas: dict[str, str] = Field(default_factory=dict)
    legacy_format: bool = Field(default=False, description="Serialize as INI")

    proxies: list[ProxyConfig] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject blank config names."""
        return validate_non_empty_string(v, "Config name")

    @model_validator(mode="after")
    def validate_unique_proxy_names(self) -> "ClientConfig":
        """Proxy names must be unique within a client."""
        seen: set[str] = set()
        for proxy in self.proxies:
            if proxy.name in seen:
                raise ValueError(f"Duplicate proxy name: {proxy.name}")
            seen.add(proxy.name)
        return self

    @property
    def config_format(self) -> ConfigFormat:
        """Format this config serializes to."""
        return ConfigFormat.for_config(self)

    @property
    def admin_enabled(self) -> bool:
        """Whether the admin API is on; a zero port disables it."""
        return self.admin_port > 0

    def get_proxy(self, name: str) -> ProxyConfig | None:
        """Get a proxy by name."""
        return next((p for p in self.proxies if p.name == name), None)
