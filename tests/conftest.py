import socket
from typing import Callable, Generator

import pytest
import yaml

from tests.helpers import FakeFuncTCPConfig

from functcp.core.transport.handler import Handler
from functcp.core.transport.server import Server
from functcp.infra.msgpack_serializer import MsgPackSerializer


@pytest.fixture
def serializer():
    return MsgPackSerializer()


@pytest.fixture
def socket_pair() -> Generator[tuple[socket.socket, socket.socket], None, None]:
    left, right = socket.socketpair()
    try:
        yield left, right
    finally:
        left.close()
        right.close()


@pytest.fixture
def start_server() -> Generator[Callable[..., Server], None, None]:
    servers: list[Server] = []

    def factory(handler: Handler, port: int = 0, **options) -> Server:
        options.setdefault("poll_interval", 0.05)
        server = Server(handler, port, **options)
        server.start()
        servers.append(server)
        return server

    yield factory

    for server in servers:
        server.shutdown()


@pytest.fixture
def config_file(tmp_path):
    file = tmp_path / "funcnode.yaml"

    data = {
        "handler": "tests.handlers:number_of",
        "server": {
            "host": "127.0.0.1",
            "port": 0,
            "worker_count": 4,
            "read_timeout": 5,
            "backlog": 10,
            "limit_concurrency": 16,
            "max_message_size": 64 * 1024,
        },
    }

    file.write_text(yaml.dump(data))
    return file


@pytest.fixture
def func_config(config_file, monkeypatch) -> FakeFuncTCPConfig:
    monkeypatch.setenv("TEST_FUNCNODECONFIG", str(config_file))
    return FakeFuncTCPConfig()
