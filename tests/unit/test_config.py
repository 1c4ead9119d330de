"""
Unit tests for ServerConfig.
"""

import socket

import pytest

from rawhttpd import ServerConfig


class TestServerConfig:

    def test_defaults(self):
        config = ServerConfig()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.backlog == socket.SOMAXCONN
        assert config.max_body_size == 1024
        assert config.timeout is None
        assert config.log_format == "text"
        config.validate()

    def test_port_zero_allowed(self):
        ServerConfig(port=0).validate()

    @pytest.mark.parametrize("kwargs", [
        {"port": -1},
        {"port": 65536},
        {"backlog": -1},
        {"buffer_size": 0},
        {"max_body_size": -1},
        {"max_line_size": 4},
        {"timeout": 0},
        {"log_format": "xml"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ServerConfig(**kwargs).validate()
