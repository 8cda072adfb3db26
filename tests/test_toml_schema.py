"""Tests for mapping client configs to and from TOML documents."""

import pytest

from frp_config.codec.toml import dump_toml, parse_toml
from frp_config.common.exceptions import MappingError
from frp_config.models import (
    AuthMethod,
    BandwidthConfig,
    BandwidthUnit,
    ClientConfig,
    HealthCheckConfig,
    HealthCheckType,
    PluginConfig,
    PluginType,
    Protocol,
    ProxyConfig,
    ProxyRole,
    ProxyType,
)
from frp_config.schema.fields import FieldMapping, bind_table
from frp_config.schema.toml_schema import (
    CLIENT_FIELDS,
    PROXY_FIELDS,
    client_to_document,
    document_to_client,
    proxy_to_table,
    table_to_proxy,
)


def _round_trip(config: ClientConfig) -> ClientConfig:
    text = dump_toml(client_to_document(config))
    return document_to_client(parse_toml(text), config.name)


class TestFieldTables:
    """Test schema table binding."""

    def test_defaults_come_from_models(self):
        """Bound rows carry the model default of their attribute."""
        defaults = {row.attr: row.default for row in CLIENT_FIELDS}

        assert defaults["server_port"] == 7000
        assert defaults["login_fail_exit"] is True
        assert defaults["metadatas"] == {}

        proxy_defaults = {row.attr: row.default for row in PROXY_FIELDS}
        assert proxy_defaults["local_ip"] == "127.0.0.1"
        assert proxy_defaults["remote_port"] is None
        assert proxy_defaults["bandwidth.mode"] == "client"

    def test_unknown_attribute_rejected(self):
        """A row naming a missing attribute fails at bind time."""
        with pytest.raises(MappingError, match="server_address"):
            bind_table(ClientConfig, [FieldMapping(attr="server_address", key="x")])

        with pytest.raises(MappingError):
            bind_table(ProxyConfig, [FieldMapping(attr="bandwidth.burst", key="x")])

    def test_scalar_attribute_cannot_be_traversed(self):
        """Only sub-record fields can prefix a dotted attribute."""
        with pytest.raises(MappingError):
            bind_table(ProxyConfig, [FieldMapping(attr="local_ip.host", key="x")])


class TestClientToDocument:
    """Test TOML emission of client fields."""

    def test_default_elision(self):
        """Only non-default fields are written."""
        config = ClientConfig(name="office", server_addr="frp.example.com")

        assert client_to_document(config) == {"serverAddr": "frp.example.com"}
        expected = 'serverAddr = "frp.example.com"\n'
        assert dump_toml(client_to_document(config)) == expected

    def test_dotted_keys(self):
        """Grouped client fields use dotted keys at the root."""
        config = ClientConfig(
            name="a",
            auth_method=AuthMethod.TOKEN,
            token="t",
            tls_enable=True,
            tcp_mux=False,
        )

        assert client_to_document(config) == {
            "auth.method": "token",
            "auth.token": "t",
            "transport.tls.enable": True,
            "transport.tcpMux": False,
        }

    def test_admin_block_requires_port(self):
        """Admin settings are dropped while the admin port is 0."""
        config = ClientConfig(name="a", admin_user="admin", admin_pwd="pw")

        assert client_to_document(config) == {}

    def test_admin_address_forced(self):
        """With admin enabled the address is always written."""
        document = client_to_document(
            ClientConfig(name="a", admin_port=7400, admin_addr="")
        )

        assert document == {"webServer.port": 7400, "webServer.addr": "127.0.0.1"}

    def test_admin_tls(self):
        """Admin TLS writes the cert and key paths."""
        config = ClientConfig(
            name="a",
            admin_port=7400,
            admin_tls=True,
            admin_tls_cert_file="/c.pem",
            admin_tls_key_file="/k.pem",
        )

        document = client_to_document(config)

        assert document["webServer.tls.certFile"] == "/c.pem"
        assert document["webServer.tls.keyFile"] == "/k.pem"

    def test_quic_knobs_only_with_quic(self):
        """QUIC settings are written only when QUIC is the protocol."""
        tcp = ClientConfig(name="a", quic_max_idle_timeout=60)
        quic = ClientConfig(name="a", protocol=Protocol.QUIC, quic_max_idle_timeout=60)

        assert client_to_document(tcp) == {}
        assert client_to_document(quic) == {
            "transport.protocol": "quic",
            "transport.quic.maxIdleTimeout": 60,
        }

    def test_additional_scopes(self):
        """Auth scope flags collapse into one list."""
        config = ClientConfig(name="a", auth_heartbeat=True, auth_new_work_conn=True)

        assert client_to_document(config) == {
            "auth.additionalScopes": ["HeartBeats", "NewWorkConns"]
        }

    def test_metadata_table(self):
        """Client metadata becomes a [metadatas] table."""
        config = ClientConfig(name="a", metadatas={"region": "eu"})

        assert dump_toml(client_to_document(config)) == '[metadatas]\nregion = "eu"\n'

    def test_proxies_in_order(self):
        """Proxies become an array of tables in list order."""
        config = ClientConfig(
            name="a", proxies=[ProxyConfig(name="web"), ProxyConfig(name="db")]
        )

        document = client_to_document(config)

        assert [entry["name"] for entry in document["proxies"]] == ["web", "db"]


class TestProxyToTable:
    """Test type-conditional proxy emission."""

    def test_minimal_proxy(self):
        """Name and type are always written."""
        assert proxy_to_table(ProxyConfig(name="ssh", local_port=22)) == {
            "name": "ssh",
            "type": "tcp",
            "localPort": 22,
        }

    def test_inapplicable_fields_not_written(self):
        """Domain and P2P fields are dropped for a tcp proxy."""
        proxy = ProxyConfig(
            name="ssh",
            subdomain="ssh",
            custom_domains=["example.com"],
            secret_key="abc",
            http_user="u",
        )

        assert proxy_to_table(proxy) == {"name": "ssh", "type": "tcp"}

    def test_http_fields(self):
        """HTTP proxies write domains and header maps."""
        proxy = ProxyConfig(
            name="web",
            type=ProxyType.HTTP,
            custom_domains=["example.com"],
            request_headers={"X-From-Where": "frp"},
        )

        assert proxy_to_table(proxy) == {
            "name": "web",
            "type": "http",
            "customDomains": ["example.com"],
            "requestHeaders.set": {"X-From-Where": "frp"},
        }

    def test_tcpmux_has_domains_but_no_http_auth(self):
        """tcpmux is domain-based but not HTTP."""
        proxy = ProxyConfig(
            name="mux",
            type=ProxyType.TCPMUX,
            multiplexer="httpconnect",
            http_user="u",
        )

        assert proxy_to_table(proxy) == {
            "name": "mux",
            "type": "tcpmux",
            "multiplexer": "httpconnect",
        }

    def test_p2p_fields(self):
        """P2P proxies write role, secret and allow list."""
        proxy = ProxyConfig(
            name="p2p",
            type=ProxyType.XTCP,
            role=ProxyRole.VISITOR,
            secret_key="abc",
            server_name="ssh",
            bind_port=6000,
        )

        assert proxy_to_table(proxy) == {
            "name": "p2p",
            "type": "xtcp",
            "role": "visitor",
            "secretKey": "abc",
            "serverName": "ssh",
            "bindPort": 6000,
        }

    def test_bandwidth(self):
        """The bandwidth limit is written as one token with its mode."""
        proxy = ProxyConfig(
            name="ssh", bandwidth=BandwidthConfig(limit=10, unit=BandwidthUnit.KB)
        )
        zero = ProxyConfig(
            name="ssh", bandwidth=BandwidthConfig(limit=0, mode="server")
        )

        assert proxy_to_table(proxy)["transport.bandwidthLimit"] == "10KB"
        assert "transport.bandwidthLimitMode" not in proxy_to_table(proxy)
        assert proxy_to_table(zero) == {"name": "ssh", "type": "tcp"}

    def test_plugin_fields_follow_plugin_type(self):
        """Only the fields of the configured plugin kind are written."""
        proxy = ProxyConfig(
            name="web",
            plugin=PluginConfig(
                type=PluginType.HTTPS2HTTP,
                local_addr="127.0.0.1:80",
                crt_path="/c.crt",
                socks5_user="ignored",
                local_path="/ignored",
            ),
        )

        assert proxy_to_table(proxy) == {
            "name": "web",
            "type": "tcp",
            "plugin.type": "https2http",
            "plugin.localAddr": "127.0.0.1:80",
            "plugin.crtPath": "/c.crt",
        }

    def test_health_check_details_need_type(self):
        """Health check details are written only with a check type."""
        disabled = ProxyConfig(name="a", health_check=HealthCheckConfig(timeout=3))
        enabled = ProxyConfig(
            name="a",
            health_check=HealthCheckConfig(type=HealthCheckType.TCP, timeout=3),
        )

        assert proxy_to_table(disabled) == {"name": "a", "type": "tcp"}
        assert proxy_to_table(enabled)["healthCheck.timeoutSeconds"] == 3


class TestDocumentToClient:
    """Test hydration from TOML documents."""

    def test_missing_keys_take_defaults(self):
        """An empty document hydrates to defaults."""
        assert document_to_client({}, "office") == ClientConfig(name="office")

    def test_nested_tables(self):
        """Dotted keys may be spelled as tables."""
        document = parse_toml(
            '[auth]\nmethod = "token"\ntoken = "t"\n'
            "[webServer]\nport = 7400\n"
            '[transport.tls]\nenable = true\n'
        )

        config = document_to_client(document, "a")

        assert config.auth_method is AuthMethod.TOKEN
        assert config.token == "t"
        assert config.admin_port == 7400
        assert config.tls_enable is True

    def test_common_table_fallback(self):
        """Client keys missing at the root are read from [common]."""
        document = parse_toml('user = "root"\n[common]\nserverAddr = "x"\nuser = "c"\n')

        config = document_to_client(document, "a")

        assert config.server_addr == "x"
        assert config.user == "root"

    def test_alternate_key_spellings(self):
        """Older key spellings are read; the frp spellings are written."""
        document = parse_toml(
            'natHoleSTUNServer = "stun.example:3478"\n'
            "transport.dialServerKeepAlive = 60\n"
        )

        config = document_to_client(document, "a")
        written = client_to_document(config)

        assert config.nat_hole_stun_server == "stun.example:3478"
        assert config.keepalive_period == 60
        assert written["natHoleStunServer"] == "stun.example:3478"
        assert written["transport.dialServerKeepalive"] == 60
        assert "natHoleSTUNServer" not in written

    def test_written_spelling_wins(self):
        """When both spellings are present the written one is used."""
        document = parse_toml(
            'natHoleStunServer = "new:3478"\nnatHoleSTUNServer = "old:3478"\n'
        )

        assert document_to_client(document, "a").nat_hole_stun_server == "new:3478"

    def test_flat_metadata_keys(self):
        """Dotted ``metadatas.name`` keys are gathered into one map."""
        document = parse_toml('metadatas.var1 = "abc"\nmetadatas.var2 = "123"\n')

        config = document_to_client(document, "a")

        assert config.metadatas == {"var1": "abc", "var2": "123"}

    def test_flat_metadata_keys_in_common(self):
        """Dotted map keys are also gathered from [common]."""
        document = parse_toml('[common]\nmetadatas.var1 = "abc"\n')

        assert document_to_client(document, "a").metadatas == {"var1": "abc"}

    def test_type_mismatch_falls_back_to_default(self):
        """Values of the wrong shape or range keep the default."""
        document = parse_toml(
            'serverPort = "abc"\n'
            "log.maxDays = -3\n"
            'loginFailExit = "nope"\n'
            'transport.protocol = "sctp"\n'
            "webServer.port = 70000\n"
        )

        assert document_to_client(document, "a") == ClientConfig(name="a")

    def test_string_values_coerced(self):
        """Digit strings and true/false strings are accepted."""
        document = parse_toml('serverPort = "7001"\ntransport.tcpMux = "false"\n')

        config = document_to_client(document, "a")

        assert config.server_port == 7001
        assert config.tcp_mux is False

    def test_admin_tls_from_cert_key(self):
        """Admin TLS is on when the cert key is present."""
        document = parse_toml(
            'webServer.port = 7400\nwebServer.tls.certFile = "/c.pem"\n'
        )

        config = document_to_client(document, "a")

        assert config.admin_tls is True
        assert config.admin_tls_cert_file == "/c.pem"

    def test_admin_fields_ignored_without_port(self):
        """Admin credentials are not read while the admin API is off."""
        config = document_to_client(parse_toml('webServer.user = "admin"\n'), "a")

        assert config.admin_user == ""

    def test_additional_scopes(self):
        """Known scopes set the matching flags."""
        config = document_to_client(
            parse_toml('auth.additionalScopes = ["NewWorkConns"]\n'), "a"
        )

        assert config.auth_heartbeat is False
        assert config.auth_new_work_conn is True

    def test_duplicate_proxy_skipped(self):
        """A repeated proxy name keeps only the first entry."""
        document = parse_toml(
            '[[proxies]]\nname = "ssh"\nlocalPort = 22\n'
            '[[proxies]]\nname = "ssh"\nlocalPort = 2222\n'
            '[[proxies]]\nname = "web"\ntype = "http"\n'
        )

        config = document_to_client(document, "a")

        assert [proxy.name for proxy in config.proxies] == ["ssh", "web"]
        assert config.proxies[0].local_port == 22

    def test_malformed_proxies_ignored(self):
        """A proxies key that is not an array of tables is ignored."""
        config = document_to_client({"proxies": "ssh"}, "a")

        assert config.proxies == []


class TestTableToProxy:
    """Test proxy hydration."""

    def test_unnamed_proxy(self):
        """Entries without a usable name get a placeholder."""
        assert table_to_proxy({"type": "udp"}).name == "unnamed"
        assert table_to_proxy({"name": "  "}).name == "unnamed"

    def test_unknown_type_falls_back(self):
        """Unknown proxy types hydrate as tcp."""
        assert table_to_proxy({"name": "a", "type": "ftp"}).type is ProxyType.TCP

    def test_port_out_of_range(self):
        """Out-of-range ports keep the unset default."""
        proxy = table_to_proxy({"name": "a", "localPort": 99999, "remotePort": "80"})

        assert proxy.local_port is None
        assert proxy.remote_port == 80

    def test_inapplicable_keys_ignored(self):
        """Keys outside the proxy type's groups are not picked up."""
        proxy = table_to_proxy(
            {"name": "a", "type": "tcp", "subdomain": "x", "secretKey": "s"}
        )

        assert proxy.subdomain == ""
        assert proxy.secret_key == ""

    def test_plugin_sub_table(self):
        """Plugin settings may come from a [proxies.plugin] table."""
        document = parse_toml(
            '[[proxies]]\nname = "web"\n'
            '[proxies.plugin]\ntype = "http2https"\nlocalAddr = "127.0.0.1:443"\n'
        )

        proxy = table_to_proxy(document["proxies"][0])

        assert proxy.plugin.type is PluginType.HTTP2HTTPS
        assert proxy.plugin.local_addr == "127.0.0.1:443"

    def test_bandwidth_token(self):
        """The bandwidth token splits into limit and unit."""
        proxy = table_to_proxy(
            {
                "name": "a",
                "transport.bandwidthLimit": "512KB",
                "transport.bandwidthLimitMode": "server",
            }
        )

        assert proxy.bandwidth.limit == 512
        assert proxy.bandwidth.unit is BandwidthUnit.KB
        assert proxy.bandwidth.mode == "server"

    def test_bandwidth_unknown_unit(self):
        """An unknown unit keeps MB."""
        proxy = table_to_proxy({"name": "a", "transport.bandwidthLimit": "5GB"})

        assert proxy.bandwidth.limit == 5
        assert proxy.bandwidth.unit is BandwidthUnit.MB

    def test_flat_header_keys(self):
        """Dotted ``requestHeaders.set.name`` keys are gathered into one map."""
        document = parse_toml(
            '[[proxies]]\nname = "web"\ntype = "http"\n'
            'requestHeaders.set.x-from-where = "frp"\n'
            'metadatas.owner = "ops"\n'
        )

        proxy = table_to_proxy(document["proxies"][0])

        assert proxy.request_headers == {"x-from-where": "frp"}
        assert proxy.metadatas == {"owner": "ops"}

    def test_inline_map_preferred_over_flat_keys(self):
        """An inline map under the key itself is used as is."""
        proxy = table_to_proxy(
            {"name": "a", "metadatas": {"k": "v"}, "metadatas.other": "x"}
        )

        assert proxy.metadatas == {"k": "v"}


class TestRoundTrip:
    """Test serialize-then-parse equality."""

    def test_full_config(self, client_config):
        """Every field TOML can hold survives a round trip."""
        assert _round_trip(client_config) == client_config

    def test_admin_tls_round_trip(self):
        """Admin TLS with an empty cert path still round-trips."""
        config = ClientConfig(name="a", admin_port=7400, admin_tls=True)

        assert _round_trip(config) == config

    def test_plugin_kinds(self):
        """Each plugin kind's own fields round-trip."""
        plugins = [
            PluginConfig(type=PluginType.HTTP_PROXY, http_user="u", http_pwd="p"),
            PluginConfig(type=PluginType.SOCKS5, socks5_user="u", socks5_pwd="p"),
            PluginConfig(
                type=PluginType.UNIX_DOMAIN_SOCKET, unix_path="/var/run/docker.sock"
            ),
            PluginConfig(
                type=PluginType.HTTP2HTTP,
                local_addr="127.0.0.1:80",
                host_header_rewrite="example.com",
                request_headers={"X-Real": "1"},
            ),
            PluginConfig(
                type=PluginType.TLS2RAW,
                local_addr="127.0.0.1:22",
                crt_path="/c.crt",
                key_path="/c.key",
            ),
        ]
        config = ClientConfig(
            name="a",
            proxies=[
                ProxyConfig(name=f"p{index}", plugin=plugin)
                for index, plugin in enumerate(plugins)
            ],
        )

        assert _round_trip(config) == config

    def test_deterministic(self, client_config):
        """Serializing twice gives identical text."""
        first = dump_toml(client_to_document(client_config))
        second = dump_toml(client_to_document(client_config.model_copy(deep=True)))

        assert first == second

    def test_multiline_map_values(self):
        """Multi-line map values survive, trailing blanks included."""
        config = ClientConfig(
            name="a",
            metadatas={"k": "line1  \nline2"},
            proxies=[ProxyConfig(name="p", metadatas={"k": "x\ny", "plain": "v"})],
        )

        assert _round_trip(config) == config
