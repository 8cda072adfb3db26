"""Shared pytest fixtures for FRP config codec tests."""

import logging

import pytest
import structlog

from frp_config.converter import ConfigConverter
from frp_config.models import (
    AuthMethod,
    BandwidthConfig,
    BandwidthMode,
    BandwidthUnit,
    ClientConfig,
    HealthCheckConfig,
    HealthCheckType,
    LogLevel,
    PluginConfig,
    PluginType,
    Protocol,
    ProxyConfig,
    ProxyType,
)


@pytest.fixture
def converter():
    """Converter with default settings."""
    return ConfigConverter()


@pytest.fixture
def client_config():
    """Client config touching every attribute group both formats can hold.

    Proxies are listed in name order so the same value also round-trips
    through INI, where sections are written alphabetically.

    Returns:
        ClientConfig: Populated TOML config
    """
    return ClientConfig(
        name="office",
        server_addr="frp.example.com",
        server_port=7001,
        user="alice",
        auth_method=AuthMethod.TOKEN,
        token="s3cr3t#token",
        auth_heartbeat=True,
        log_level=LogLevel.DEBUG,
        log_max_days=7,
        admin_port=7400,
        admin_user="admin",
        admin_pwd="adminpw",
        protocol=Protocol.QUIC,
        quic_max_idle_timeout=60,
        heartbeat_interval=-1,
        tls_enable=True,
        tcp_mux=False,
        metadatas={"region": "eu"},
        proxies=[
            ProxyConfig(
                name="files",
                remote_port=6001,
                plugin=PluginConfig(
                    type=PluginType.STATIC_FILE,
                    local_path="/srv/files",
                    strip_prefix="static",
                    static_file_user="reader",
                    static_file_pwd="readpw",
                ),
            ),
            ProxyConfig(
                name="secret-ssh",
                type=ProxyType.STCP,
                local_port=22,
                secret_key="abc123",
                allow_users=["bob", "carol"],
            ),
            ProxyConfig(
                name="ssh",
                local_port=22,
                remote_port=6000,
                use_encryption=True,
                bandwidth=BandwidthConfig(
                    limit=10, unit=BandwidthUnit.KB, mode=BandwidthMode.SERVER
                ),
                metadatas={"owner": "ops"},
            ),
            ProxyConfig(
                name="web",
                type=ProxyType.HTTP,
                local_port=8080,
                custom_domains=["example.com", "www.example.com"],
                locations=["/", "/api"],
                http_user="web",
                http_pwd="webpw",
                request_headers={"X-From-Where": "frp"},
                health_check=HealthCheckConfig(
                    type=HealthCheckType.HTTP,
                    url="/health",
                    timeout=3,
                    interval=10,
                    max_failed=3,
                ),
                annotations={"note": "public"},
            ),
        ],
    )


@pytest.fixture
def legacy_config(client_config):
    """The shared client config restricted to what INI can represent.

    Returns:
        ClientConfig: Config with legacy_format set and annotations cleared
    """
    config = client_config.model_copy(deep=True)
    config.legacy_format = True
    for proxy in config.proxies:
        proxy.annotations = {}
    return config


@pytest.fixture
def reset_structlog():
    """Restore structlog and root logger state after a test."""
    yield
    structlog.reset_defaults()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
