"""Mapping between ClientConfig and the frpc TOML document layout.

Client fields live at the root as dotted keys (``auth.method``,
``webServer.port``) and proxies in the ``proxies`` array of tables. Reads
also accept the nested-table spelling of any dotted key, and fall back to a
``[common]`` table for client fields missing at the root.
"""

from typing import Any

from ..codec.document import Document, Table, lookup
from ..common.logging import get_logger
from ..models import ClientConfig, ProxyConfig
from ..models.enums import (
    HTTP_FORWARD_PLUGINS,
    LOCAL_ADDR_PLUGINS,
    TLS_TERMINATING_PLUGINS,
    PluginType,
)
from .fields import (
    MISSING,
    FieldKind,
    FieldMapping,
    admin_enabled,
    admin_tls_enabled,
    apply_bandwidth,
    bandwidth_limited,
    bandwidth_token,
    bind_table,
    coerce,
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

COMMON_TABLE = "common"
PROXIES_KEY = "proxies"
UNNAMED_PROXY = "unnamed"

ADDITIONAL_SCOPES_KEY = "auth.additionalScopes"
SCOPE_HEARTBEATS = "HeartBeats"
SCOPE_NEW_WORK_CONNS = "NewWorkConns"
ADMIN_TLS_CERT_KEY = "webServer.tls.certFile"
BANDWIDTH_LIMIT_KEY = "transport.bandwidthLimit"

_I = FieldKind.INTEGER
_B = FieldKind.BOOLEAN
_P = FieldKind.OPTIONAL_PORT
_L = FieldKind.STRING_LIST
_M = FieldKind.STRING_MAP

CLIENT_FIELDS = bind_table(
    ClientConfig,
    [
        FieldMapping(attr="server_addr", key="serverAddr"),
        FieldMapping(attr="server_port", key="serverPort", kind=_I),
        FieldMapping(attr="user", key="user"),
        FieldMapping(
            attr="nat_hole_stun_server",
            key="natHoleStunServer",
            aliases=("natHoleSTUNServer",),
        ),
        FieldMapping(attr="dns_server", key="dnsServer"),
        FieldMapping(attr="login_fail_exit", key="loginFailExit", kind=_B),
        # Auth
        FieldMapping(attr="auth_method", key="auth.method"),
        FieldMapping(attr="token", key="auth.token"),
        FieldMapping(attr="token_file", key="auth.tokenFile"),
        FieldMapping(attr="oidc_client_id", key="auth.oidc.clientID"),
        FieldMapping(attr="oidc_client_secret", key="auth.oidc.clientSecret"),
        FieldMapping(attr="oidc_audience", key="auth.oidc.audience"),
        FieldMapping(attr="oidc_scope", key="auth.oidc.scope"),
        FieldMapping(attr="oidc_token_endpoint", key="auth.oidc.tokenEndpointURL"),
        FieldMapping(attr="oidc_proxy_url", key="auth.oidc.proxyURL"),
        FieldMapping(attr="oidc_trusted_ca_file", key="auth.oidc.trustedCaFile"),
        FieldMapping(
            attr="oidc_skip_verify", key="auth.oidc.insecureSkipVerify", kind=_B
        ),
        # Log
        FieldMapping(attr="log_level", key="log.level"),
        FieldMapping(attr="log_max_days", key="log.maxDays", kind=_I),
        # Admin API
        FieldMapping(attr="admin_port", key="webServer.port", kind=_I),
        FieldMapping(
            attr="admin_addr", key="webServer.addr", when=admin_enabled, required=True
        ),
        FieldMapping(attr="admin_user", key="webServer.user", when=admin_enabled),
        FieldMapping(attr="admin_pwd", key="webServer.password", when=admin_enabled),
        FieldMapping(attr="assets_dir", key="webServer.assetsDir", when=admin_enabled),
        FieldMapping(
            attr="admin_tls_cert_file",
            key=ADMIN_TLS_CERT_KEY,
            when=admin_tls_enabled,
            required=True,
        ),
        FieldMapping(
            attr="admin_tls_key_file",
            key="webServer.tls.keyFile",
            when=admin_tls_enabled,
            required=True,
        ),
        # Transport
        FieldMapping(attr="protocol", key="transport.protocol"),
        FieldMapping(attr="dial_timeout", key="transport.dialServerTimeout", kind=_I),
        FieldMapping(
            attr="keepalive_period",
            key="transport.dialServerKeepalive",
            kind=_I,
            aliases=("transport.dialServerKeepAlive",),
        ),
        FieldMapping(attr="pool_count", key="transport.poolCount", kind=_I),
        FieldMapping(
            attr="heartbeat_interval", key="transport.heartbeatInterval", kind=_I
        ),
        FieldMapping(
            attr="heartbeat_timeout", key="transport.heartbeatTimeout", kind=_I
        ),
        FieldMapping(
            attr="quic_keepalive_period",
            key="transport.quic.keepalivePeriod",
            kind=_I,
            when=uses_quic,
        ),
        FieldMapping(
            attr="quic_max_idle_timeout",
            key="transport.quic.maxIdleTimeout",
            kind=_I,
            when=uses_quic,
        ),
        FieldMapping(
            attr="quic_max_incoming_streams",
            key="transport.quic.maxIncomingStreams",
            kind=_I,
            when=uses_quic,
        ),
        FieldMapping(attr="tls_enable", key="transport.tls.enable", kind=_B),
        FieldMapping(attr="tls_server_name", key="transport.tls.serverName"),
        FieldMapping(attr="tls_cert_file", key="transport.tls.certFile"),
        FieldMapping(attr="tls_key_file", key="transport.tls.keyFile"),
        FieldMapping(attr="tls_trusted_ca_file", key="transport.tls.trustedCaFile"),
        FieldMapping(
            attr="tls_disable_custom_first_byte",
            key="transport.tls.disableCustomTLSFirstByte",
            kind=_B,
        ),
        FieldMapping(
            attr="connect_server_local_ip", key="transport.connectServerLocalIP"
        ),
        FieldMapping(attr="tcp_mux", key="transport.tcpMux", kind=_B),
        FieldMapping(
            attr="tcp_mux_keepalive_interval",
            key="transport.tcpMuxKeepaliveInterval",
            kind=_I,
        ),
        FieldMapping(attr="metadatas", key="metadatas", kind=_M),
    ],
)

_forwarding_plugin = plugin_in(HTTP_FORWARD_PLUGINS)
_local_addr_plugin = plugin_in(LOCAL_ADDR_PLUGINS)
_tls_plugin = plugin_in(TLS_TERMINATING_PLUGINS)
_http_proxy_plugin = plugin_in([PluginType.HTTP_PROXY])
_socks5_plugin = plugin_in([PluginType.SOCKS5])
_static_file_plugin = plugin_in([PluginType.STATIC_FILE])
_unix_socket_plugin = plugin_in([PluginType.UNIX_DOMAIN_SOCKET])

PROXY_FIELDS = bind_table(
    ProxyConfig,
    [
        FieldMapping(attr="name", key="name", required=True),
        FieldMapping(attr="type", key="type", required=True),
        FieldMapping(attr="disabled", key="disabled", kind=_B),
        FieldMapping(attr="local_ip", key="localIP"),
        FieldMapping(attr="local_port", key="localPort", kind=_P),
        FieldMapping(attr="remote_port", key="remotePort", kind=_P),
        # xtcp, stcp, sudp
        FieldMapping(attr="role", key="role", when=is_p2p),
        FieldMapping(attr="secret_key", key="secretKey", when=is_p2p),
        FieldMapping(attr="allow_users", key="allowUsers", kind=_L, when=is_p2p),
        FieldMapping(attr="server_name", key="serverName", when=is_p2p),
        FieldMapping(attr="server_user", key="serverUser", when=is_p2p),
        FieldMapping(attr="bind_addr", key="bindAddr", when=is_p2p),
        FieldMapping(attr="bind_port", key="bindPort", kind=_I, when=is_p2p),
        FieldMapping(attr="visitor_protocol", key="protocol", when=is_p2p),
        FieldMapping(
            attr="keep_tunnel_open", key="keepTunnelOpen", kind=_B, when=is_p2p
        ),
        FieldMapping(
            attr="max_retries_per_hour", key="maxRetriesAnHour", kind=_I, when=is_p2p
        ),
        FieldMapping(
            attr="min_retry_interval", key="minRetryInterval", kind=_I, when=is_p2p
        ),
        FieldMapping(attr="fallback_to", key="fallbackTo", when=is_p2p),
        FieldMapping(
            attr="fallback_timeout_ms", key="fallbackTimeoutMs", kind=_I, when=is_p2p
        ),
        # http, https, tcpmux
        FieldMapping(attr="subdomain", key="subdomain", when=is_domain_based),
        FieldMapping(
            attr="custom_domains", key="customDomains", kind=_L, when=is_domain_based
        ),
        FieldMapping(attr="locations", key="locations", kind=_L, when=is_domain_based),
        FieldMapping(attr="multiplexer", key="multiplexer", when=is_domain_based),
        FieldMapping(
            attr="route_by_http_user", key="routeByHTTPUser", when=is_domain_based
        ),
        # http, https
        FieldMapping(attr="http_user", key="httpUser", when=is_http),
        FieldMapping(attr="http_pwd", key="httpPassword", when=is_http),
        FieldMapping(attr="host_header_rewrite", key="hostHeaderRewrite", when=is_http),
        FieldMapping(
            attr="request_headers", key="requestHeaders.set", kind=_M, when=is_http
        ),
        FieldMapping(
            attr="response_headers", key="responseHeaders.set", kind=_M, when=is_http
        ),
        # Transport
        FieldMapping(
            attr="bandwidth.mode",
            key="transport.bandwidthLimitMode",
            when=bandwidth_limited,
        ),
        FieldMapping(
            attr="proxy_protocol_version", key="transport.proxyProtocolVersion"
        ),
        FieldMapping(attr="use_encryption", key="transport.useEncryption", kind=_B),
        FieldMapping(attr="use_compression", key="transport.useCompression", kind=_B),
        # Plugin
        FieldMapping(attr="plugin.type", key="plugin.type"),
        FieldMapping(
            attr="plugin.local_addr", key="plugin.localAddr", when=_local_addr_plugin
        ),
        FieldMapping(
            attr="plugin.host_header_rewrite",
            key="plugin.hostHeaderRewrite",
            when=_forwarding_plugin,
        ),
        FieldMapping(
            attr="plugin.request_headers",
            key="plugin.requestHeaders.set",
            kind=_M,
            when=_forwarding_plugin,
        ),
        FieldMapping(attr="plugin.crt_path", key="plugin.crtPath", when=_tls_plugin),
        FieldMapping(attr="plugin.key_path", key="plugin.keyPath", when=_tls_plugin),
        FieldMapping(
            attr="plugin.http_user", key="plugin.httpUser", when=_http_proxy_plugin
        ),
        FieldMapping(
            attr="plugin.http_pwd", key="plugin.httpPassword", when=_http_proxy_plugin
        ),
        FieldMapping(
            attr="plugin.socks5_user", key="plugin.username", when=_socks5_plugin
        ),
        FieldMapping(
            attr="plugin.socks5_pwd", key="plugin.password", when=_socks5_plugin
        ),
        FieldMapping(
            attr="plugin.local_path", key="plugin.localPath", when=_static_file_plugin
        ),
        FieldMapping(
            attr="plugin.strip_prefix",
            key="plugin.stripPrefix",
            when=_static_file_plugin,
        ),
        FieldMapping(
            attr="plugin.static_file_user",
            key="plugin.httpUser",
            when=_static_file_plugin,
        ),
        FieldMapping(
            attr="plugin.static_file_pwd",
            key="plugin.httpPassword",
            when=_static_file_plugin,
        ),
        FieldMapping(
            attr="plugin.unix_path", key="plugin.unixPath", when=_unix_socket_plugin
        ),
        # Load balancing and health checks
        FieldMapping(attr="load_balance.group", key="loadBalancer.group"),
        FieldMapping(attr="load_balance.group_key", key="loadBalancer.groupKey"),
        FieldMapping(attr="health_check.type", key="healthCheck.type"),
        FieldMapping(
            attr="health_check.url", key="healthCheck.path", when=health_check_enabled
        ),
        FieldMapping(
            attr="health_check.timeout",
            key="healthCheck.timeoutSeconds",
            kind=_I,
            when=health_check_enabled,
        ),
        FieldMapping(
            attr="health_check.interval",
            key="healthCheck.intervalSeconds",
            kind=_I,
            when=health_check_enabled,
        ),
        FieldMapping(
            attr="health_check.max_failed",
            key="healthCheck.maxFailed",
            kind=_I,
            when=health_check_enabled,
        ),
        FieldMapping(attr="metadatas", key="metadatas", kind=_M),
        FieldMapping(attr="annotations", key="annotations", kind=_M),
    ],
)


def proxy_to_table(proxy: ProxyConfig) -> Table:
    """Build one ``[[proxies]]`` entry, eliding default and inapplicable fields."""
    table: Table = {row.key: value for row, value in elide(PROXY_FIELDS, proxy)}

    token = bandwidth_token(proxy)
    if token is not None:
        table[BANDWIDTH_LIMIT_KEY] = token

    return table


def client_to_document(config: ClientConfig) -> Document:
    """Build the TOML document for a client config.

    Args:
        config: Client config to map

    Returns:
        Document whose root holds client fields and whose ``proxies`` key
        holds one table per proxy, in proxy order
    """
    document: Document = {row.key: value for row, value in elide(CLIENT_FIELDS, config)}

    scopes = []
    if config.auth_heartbeat:
        scopes.append(SCOPE_HEARTBEATS)
    if config.auth_new_work_conn:
        scopes.append(SCOPE_NEW_WORK_CONNS)
    if scopes:
        document[ADDITIONAL_SCOPES_KEY] = scopes

    if config.proxies:
        document[PROXIES_KEY] = [proxy_to_table(proxy) for proxy in config.proxies]

    return document


def table_to_proxy(table: Table) -> ProxyConfig:
    """Hydrate a proxy from one ``[[proxies]]`` entry."""
    name = coerce(FieldKind.STRING, table.get("name"))
    if name is MISSING or not name.strip():
        logger.debug("Proxy without a name", fallback=UNNAMED_PROXY)
        name = UNNAMED_PROXY

    proxy = ProxyConfig(name=name)
    apply_bandwidth(proxy, lookup(table, BANDWIDTH_LIMIT_KEY))
    hydrate(PROXY_FIELDS, proxy, lambda row: _read_row(table, row))
    return proxy


def _gather_prefixed(table: Table, key: str) -> Table | None:
    """Collect flat ``key.name = value`` entries into one map."""
    prefix = f"{key}."
    entries = {
        name[len(prefix) :]: value
        for name, value in table.items()
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    return entries or None


def _read_row(table: Table, row: FieldMapping) -> Any:
    for key in row.read_keys:
        value = lookup(table, key)
        if value is None and row.kind is FieldKind.STRING_MAP:
            value = _gather_prefixed(table, key)
        if value is not None:
            return value
    return None


def _read_root(document: Document, row: FieldMapping) -> Any:
    value = _read_row(document, row)
    if value is None:
        common = document.get(COMMON_TABLE)
        if isinstance(common, dict):
            value = _read_row(common, row)
    return value


def _read_root_key(document: Document, key: str) -> Any:
    value = lookup(document, key)
    if value is None:
        common = document.get(COMMON_TABLE)
        if isinstance(common, dict):
            value = lookup(common, key)
    return value


def _read_proxies(document: Document) -> list[ProxyConfig]:
    entries = document.get(PROXIES_KEY)
    if entries is None:
        return []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        logger.warning("Ignoring malformed proxies key", key=PROXIES_KEY)
        return []

    proxies: list[ProxyConfig] = []
    seen: set[str] = set()
    for entry in entries:
        proxy = table_to_proxy(entry)
        if proxy.name in seen:
            logger.warning("Skipping duplicate proxy", proxy=proxy.name)
            continue
        seen.add(proxy.name)
        proxies.append(proxy)
    return proxies


def document_to_client(document: Document, name: str) -> ClientConfig:
    """Hydrate a client config from a TOML document.

    Missing keys take model defaults, and values of the wrong shape are
    replaced by defaults rather than rejected. A proxy whose name repeats an
    earlier one is dropped.

    Args:
        document: Parsed TOML document
        name: Name for the resulting config

    Returns:
        ClientConfig with ``legacy_format`` off
    """
    config = ClientConfig(name=name)

    scopes = coerce(
        FieldKind.STRING_LIST, _read_root_key(document, ADDITIONAL_SCOPES_KEY)
    )
    if scopes is not MISSING:
        config.auth_heartbeat = SCOPE_HEARTBEATS in scopes
        config.auth_new_work_conn = SCOPE_NEW_WORK_CONNS in scopes
    config.admin_tls = _read_root_key(document, ADMIN_TLS_CERT_KEY) is not None

    hydrate(CLIENT_FIELDS, config, lambda row: _read_root(document, row))
    config.proxies = _read_proxies(document)
    return config
