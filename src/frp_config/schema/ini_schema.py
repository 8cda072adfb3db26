"""Mapping between ClientConfig and legacy frpc INI sections.

Client fields live in ``[common]`` and each proxy in a section named after
it. Every value is a string on disk: lists are comma-joined and string maps
are spread over prefixed keys (``meta_*``, ``header_*``,
``plugin_header_*``). Fields without a legacy key (token file, OIDC proxy
options, admin TLS, annotations) are not written.
"""

from typing import Any

from ..codec.ini import COMMON_SECTION, NO_SECTION, Sections
from ..common.logging import get_logger
from ..models import ClientConfig, ProxyConfig
from ..models.enums import (
    HTTP_FORWARD_PLUGINS,
    LOCAL_ADDR_PLUGINS,
    TLS_TERMINATING_PLUGINS,
    PluginType,
)
from .fields import (
    FieldKind,
    FieldMapping,
    admin_enabled,
    apply_bandwidth,
    bandwidth_limited,
    bandwidth_token,
    bind_table,
    elide,
    health_check_enabled,
    hydrate,
    is_domain_based,
    is_http,
    is_p2p,
    plugin_in,
    uses_quic,
)

logger = get_logger(__name__)

BANDWIDTH_LIMIT_KEY = "bandwidth_limit"

_I = FieldKind.INTEGER
_B = FieldKind.BOOLEAN
_P = FieldKind.OPTIONAL_PORT
_L = FieldKind.STRING_LIST
_M = FieldKind.STRING_MAP

# STRING_MAP rows name a key prefix rather than a key
CLIENT_FIELDS = bind_table(
    ClientConfig,
    [
        FieldMapping(attr="server_addr", key="server_addr"),
        FieldMapping(attr="server_port", key="server_port", kind=_I),
        FieldMapping(attr="user", key="user"),
        FieldMapping(attr="nat_hole_stun_server", key="nat_hole_stun_server"),
        FieldMapping(attr="dns_server", key="dns_server"),
        FieldMapping(attr="login_fail_exit", key="login_fail_exit", kind=_B),
        # Auth
        FieldMapping(attr="auth_method", key="authentication_method"),
        FieldMapping(attr="token", key="token"),
        FieldMapping(attr="oidc_client_id", key="oidc_client_id"),
        FieldMapping(attr="oidc_client_secret", key="oidc_client_secret"),
        FieldMapping(attr="oidc_audience", key="oidc_audience"),
        FieldMapping(attr="oidc_scope", key="oidc_scope"),
        FieldMapping(attr="oidc_token_endpoint", key="oidc_token_endpoint_url"),
        FieldMapping(attr="auth_heartbeat", key="authenticate_heartbeats", kind=_B),
        FieldMapping(
            attr="auth_new_work_conn", key="authenticate_new_work_conns", kind=_B
        ),
        # Log
        FieldMapping(attr="log_level", key="log_level"),
        FieldMapping(attr="log_max_days", key="log_max_days", kind=_I),
        # Admin API
        FieldMapping(attr="admin_port", key="admin_port", kind=_I),
        FieldMapping(
            attr="admin_addr", key="admin_addr", when=admin_enabled, required=True
        ),
        FieldMapping(attr="admin_user", key="admin_user", when=admin_enabled),
        FieldMapping(attr="admin_pwd", key="admin_pwd", when=admin_enabled),
        FieldMapping(attr="assets_dir", key="assets_dir", when=admin_enabled),
        # Transport
        FieldMapping(attr="protocol", key="protocol"),
        FieldMapping(attr="dial_timeout", key="dial_server_timeout", kind=_I),
        FieldMapping(attr="keepalive_period", key="dial_server_keepalive", kind=_I),
        FieldMapping(attr="pool_count", key="pool_count", kind=_I),
        FieldMapping(attr="heartbeat_interval", key="heartbeat_interval", kind=_I),
        FieldMapping(attr="heartbeat_timeout", key="heartbeat_timeout", kind=_I),
        FieldMapping(
            attr="quic_keepalive_period",
            key="quic_keepalive_period",
            kind=_I,
            when=uses_quic,
        ),
        FieldMapping(
            attr="quic_max_idle_timeout",
            key="quic_max_idle_timeout",
            kind=_I,
            when=uses_quic,
        ),
        FieldMapping(
            attr="quic_max_incoming_streams",
            key="quic_max_incoming_streams",
            kind=_I,
            when=uses_quic,
        ),
        FieldMapping(attr="tls_enable", key="tls_enable", kind=_B),
        FieldMapping(attr="tls_server_name", key="tls_server_name"),
        FieldMapping(attr="tls_cert_file", key="tls_cert_file"),
        FieldMapping(attr="tls_key_file", key="tls_key_file"),
        FieldMapping(attr="tls_trusted_ca_file", key="tls_trusted_ca_file"),
        FieldMapping(
            attr="tls_disable_custom_first_byte",
            key="disable_custom_tls_first_byte",
            kind=_B,
        ),
        FieldMapping(attr="connect_server_local_ip", key="connect_server_local_ip"),
        FieldMapping(attr="tcp_mux", key="tcp_mux", kind=_B),
        FieldMapping(
            attr="tcp_mux_keepalive_interval", key="tcp_mux_keepalive_interval", kind=_I
        ),
        FieldMapping(attr="metadatas", key="meta_", kind=_M),
    ],
)

_forwarding_plugin = plugin_in(HTTP_FORWARD_PLUGINS)
_local_addr_plugin = plugin_in(LOCAL_ADDR_PLUGINS)
_tls_plugin = plugin_in(TLS_TERMINATING_PLUGINS)
_http_proxy_plugin = plugin_in([PluginType.HTTP_PROXY])
_socks5_plugin = plugin_in([PluginType.SOCKS5])
_static_file_plugin = plugin_in([PluginType.STATIC_FILE])
_unix_socket_plugin = plugin_in([PluginType.UNIX_DOMAIN_SOCKET])

# The section header carries the proxy name
PROXY_FIELDS = bind_table(
    ProxyConfig,
    [
        FieldMapping(attr="type", key="type", required=True),
        FieldMapping(attr="disabled", key="disabled", kind=_B),
        FieldMapping(attr="local_ip", key="local_ip"),
        FieldMapping(attr="local_port", key="local_port", kind=_P),
        FieldMapping(attr="remote_port", key="remote_port", kind=_P),
        # xtcp, stcp, sudp
        FieldMapping(attr="role", key="role", when=is_p2p),
        FieldMapping(attr="secret_key", key="sk", when=is_p2p),
        FieldMapping(attr="allow_users", key="allow_users", kind=_L, when=is_p2p),
        FieldMapping(attr="server_name", key="server_name", when=is_p2p),
        FieldMapping(attr="server_user", key="server_user", when=is_p2p),
        FieldMapping(attr="bind_addr", key="bind_addr", when=is_p2p),
        FieldMapping(attr="bind_port", key="bind_port", kind=_I, when=is_p2p),
        FieldMapping(attr="visitor_protocol", key="protocol", when=is_p2p),
        FieldMapping(
            attr="keep_tunnel_open", key="keep_tunnel_open", kind=_B, when=is_p2p
        ),
        FieldMapping(
            attr="max_retries_per_hour",
            key="max_retries_an_hour",
            kind=_I,
            when=is_p2p,
        ),
        FieldMapping(
            attr="min_retry_interval", key="min_retry_interval", kind=_I, when=is_p2p
        ),
        FieldMapping(attr="fallback_to", key="fallback_to", when=is_p2p),
        FieldMapping(
            attr="fallback_timeout_ms", key="fallback_timeout_ms", kind=_I, when=is_p2p
        ),
        # http, https, tcpmux
        FieldMapping(attr="subdomain", key="subdomain", when=is_domain_based),
        FieldMapping(
            attr="custom_domains", key="custom_domains", kind=_L, when=is_domain_based
        ),
        FieldMapping(attr="locations", key="locations", kind=_L, when=is_domain_based),
        FieldMapping(attr="multiplexer", key="multiplexer", when=is_domain_based),
        FieldMapping(
            attr="route_by_http_user", key="route_by_http_user", when=is_domain_based
        ),
        # http, https
        FieldMapping(attr="http_user", key="http_user", when=is_http),
        FieldMapping(attr="http_pwd", key="http_pwd", when=is_http),
        FieldMapping(
            attr="host_header_rewrite", key="host_header_rewrite", when=is_http
        ),
        FieldMapping(attr="request_headers", key="header_", kind=_M, when=is_http),
        # Transport
        FieldMapping(
            attr="bandwidth.mode", key="bandwidth_limit_mode", when=bandwidth_limited
        ),
        FieldMapping(attr="proxy_protocol_version", key="proxy_protocol_version"),
        FieldMapping(attr="use_encryption", key="use_encryption", kind=_B),
        FieldMapping(attr="use_compression", key="use_compression", kind=_B),
        # Plugin
        FieldMapping(attr="plugin.type", key="plugin"),
        FieldMapping(
            attr="plugin.local_addr", key="plugin_local_addr", when=_local_addr_plugin
        ),
        FieldMapping(
            attr="plugin.host_header_rewrite",
            key="plugin_host_header_rewrite",
            when=_forwarding_plugin,
        ),
        FieldMapping(
            attr="plugin.request_headers",
            key="plugin_header_",
            kind=_M,
            when=_forwarding_plugin,
        ),
        FieldMapping(attr="plugin.crt_path", key="plugin_crt_path", when=_tls_plugin),
        FieldMapping(attr="plugin.key_path", key="plugin_key_path", when=_tls_plugin),
        FieldMapping(
            attr="plugin.http_user", key="plugin_http_user", when=_http_proxy_plugin
        ),
        FieldMapping(
            attr="plugin.http_pwd", key="plugin_http_passwd", when=_http_proxy_plugin
        ),
        FieldMapping(attr="plugin.socks5_user", key="plugin_user", when=_socks5_plugin),
        FieldMapping(
            attr="plugin.socks5_pwd", key="plugin_passwd", when=_socks5_plugin
        ),
        FieldMapping(
            attr="plugin.local_path", key="plugin_local_path", when=_static_file_plugin
        ),
        FieldMapping(
            attr="plugin.strip_prefix",
            key="plugin_strip_prefix",
            when=_static_file_plugin,
        ),
        FieldMapping(
            attr="plugin.static_file_user",
            key="plugin_http_user",
            when=_static_file_plugin,
        ),
        FieldMapping(
            attr="plugin.static_file_pwd",
            key="plugin_http_passwd",
            when=_static_file_plugin,
        ),
        FieldMapping(
            attr="plugin.unix_path", key="plugin_unix_path", when=_unix_socket_plugin
        ),
        # Load balancing and health checks
        FieldMapping(attr="load_balance.group", key="group"),
        FieldMapping(attr="load_balance.group_key", key="group_key"),
        FieldMapping(attr="health_check.type", key="health_check_type"),
        FieldMapping(
            attr="health_check.url",
            key="health_check_url",
            when=health_check_enabled,
        ),
        FieldMapping(
            attr="health_check.timeout",
            key="health_check_timeout_s",
            kind=_I,
            when=health_check_enabled,
        ),
        FieldMapping(
            attr="health_check.interval",
            key="health_check_interval_s",
            kind=_I,
            when=health_check_enabled,
        ),
        FieldMapping(
            attr="health_check.max_failed",
            key="health_check_max_failed",
            kind=_I,
            when=health_check_enabled,
        ),
        FieldMapping(attr="metadatas", key="meta_", kind=_M),
    ],
)


def _to_ini(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(value)
    return str(value)


def _write_section(rows: tuple[FieldMapping, ...], record: Any) -> dict[str, str]:
    values: dict[str, str] = {}
    for row, value in elide(rows, record):
        if row.kind is FieldKind.STRING_MAP:
            for name, item in value.items():
                values[row.key + name] = item
        else:
            values[row.key] = _to_ini(value)
    return values


def _read_section(values: dict[str, str]):
    def read(row: FieldMapping) -> Any:
        if row.kind is FieldKind.STRING_MAP:
            found = {
                key[len(row.key) :]: value
                for key, value in values.items()
                if key.startswith(row.key) and len(key) > len(row.key)
            }
            return found or None
        return values.get(row.key)

    return read


def proxy_to_section(proxy: ProxyConfig) -> dict[str, str]:
    """Build the key/value pairs of one proxy section."""
    values = _write_section(PROXY_FIELDS, proxy)

    token = bandwidth_token(proxy)
    if token is not None:
        values[BANDWIDTH_LIMIT_KEY] = token

    return values


def client_to_sections(config: ClientConfig) -> Sections:
    """Build INI sections for a client config.

    ``[common]`` is always present. A proxy named ``common`` would collide
    with it and is left out with a warning.
    """
    sections: Sections = {COMMON_SECTION: _write_section(CLIENT_FIELDS, config)}

    for proxy in config.proxies:
        if proxy.name == COMMON_SECTION:
            logger.warning("Proxy named like [common] skipped", proxy=proxy.name)
            continue
        sections[proxy.name] = proxy_to_section(proxy)

    return sections


def section_to_proxy(name: str, values: dict[str, str]) -> ProxyConfig:
    """Hydrate a proxy from the section named after it."""
    proxy = ProxyConfig(name=name)
    apply_bandwidth(proxy, values.get(BANDWIDTH_LIMIT_KEY))
    hydrate(PROXY_FIELDS, proxy, _read_section(values))
    return proxy


def sections_to_client(sections: Sections, name: str) -> ClientConfig:
    """Hydrate a client config from INI sections.

    Every section other than ``[common]`` becomes a proxy, in section
    order. Keys outside any section are ignored.

    Args:
        sections: Parsed INI sections
        name: Name for the resulting config

    Returns:
        ClientConfig with ``legacy_format`` on
    """
    config = ClientConfig(name=name, legacy_format=True)
    hydrate(CLIENT_FIELDS, config, _read_section(sections.get(COMMON_SECTION, {})))

    proxies: list[ProxyConfig] = []
    for section, values in sections.items():
        if section in (COMMON_SECTION, NO_SECTION):
            continue
        proxies.append(section_to_proxy(section, values))
    config.proxies = proxies

    return config
