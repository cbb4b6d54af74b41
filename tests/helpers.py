import os
import socket
import struct
import threading
import time
from typing import Any, Callable

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from functcp.bootstrap.config.settings import FuncTCPConfig


class FakeFuncTCPConfig(FuncTCPConfig):
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_FUNCNODECONFIG"]),
        )


def frame(payload: bytes) -> bytes:
    return struct.pack("!I", len(payload)) + payload


def recv_all(sock: socket.socket) -> bytes:
    """Read until the peer closes its side."""
    buf = bytearray()
    while chunk := sock.recv(4096):
        buf.extend(chunk)
    return bytes(buf)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0, interval: float = 0.01) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


class RawServer:
    """
    Single-shot loopback server with a scripted behavior.

    Accepts one connection, reads one frame, then hands the socket to
    `behavior`. Used to play a misbehaving functcp server.
    """
    def __init__(self, behavior: Callable[[socket.socket], Any]) -> None:
        self._behavior = behavior
        self._sock = socket.create_server(("127.0.0.1", 0))
        self.port = self._sock.getsockname()[1]
        self.received: list[bytes] = []
        self._thread = threading.Thread(target=self._run, daemon=True)

    def __enter__(self) -> "RawServer":
        self._thread.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self._thread.join(timeout=5)
        self._sock.close()

    def _run(self) -> None:
        conn, _ = self._sock.accept()
        with conn:
            header = conn.recv(4, socket.MSG_WAITALL)
            length = struct.unpack("!I", header)[0]
            self.received.append(conn.recv(length, socket.MSG_WAITALL))
            self._behavior(conn)
