import logging
import threading
from typing import Any

from functcp.core.errors import ConnectionClosedError
from functcp.core.models.config import DEFAULT_MAX_MESSAGE_SIZE, validate_port
from functcp.core.models.reply import ReplyOutcome, ReplyResult
from functcp.core.ports.serializer import Serializer
from functcp.core.transport.connection import Connection
from functcp.infra.msgpack_serializer import MsgPackSerializer


class Client:
    """
    Synchronous TCP client for a functcp Server.

    Every call opens a fresh Connection, writes one request and closes
    the connection again; nothing is reused between calls. Calls made on
    the same Client are serialized: a second caller blocks until the
    first call's connection is fully closed.

    No network activity happens before the first call. `timeout` bounds
    connect and read operations; by default both block indefinitely.
    """
    def __init__(
        self,
        host: str,
        port: int,
        serializer: Serializer | None = None,
        timeout: float | None = None,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._host = host
        self._port = validate_port(port)
        self._serializer = serializer or MsgPackSerializer()
        self._timeout = timeout
        self._max_message_size = max_message_size
        self._lock = threading.Lock()
        self._logger = logging.getLogger("core.transport.client")

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    def send_replied_request(self, request: Any) -> Any:
        """
        Send a request and wait for its reply.

        Returns None when the connection is closed before a reply is
        received. That covers a handler that produced no reply as well as
        a server that died mid-response; use `exchange()` to tell them
        apart. Decode errors and connection failures are raised.
        """
        return self.exchange(request).reply

    def exchange(self, request: Any) -> ReplyResult:
        """
        Send a request, wait for its reply and report how it ended.
        """
        with self._lock:
            connection = self._connect()
            try:
                connection.send(request)
                return self._read_reply(connection)
            finally:
                connection.close()

    def send_non_replied_request(self, request: Any) -> None:
        """
        Send a request without waiting for anything.

        The connection is closed right after the request is written; there
        is no acknowledgement of delivery.
        """
        with self._lock:
            with self._connect() as connection:
                connection.send(request)

    def _connect(self) -> Connection:
        return Connection.open(
            self._host,
            self._port,
            self._serializer,
            timeout=self._timeout,
            max_message_size=self._max_message_size,
        )

    def _read_reply(self, connection: Connection) -> ReplyResult:
        try:
            reply = connection.receive()
        except ConnectionClosedError as ex:
            if ex.clean:
                self._logger.debug(f"{self.address} closed the connection without replying")
                return ReplyResult(ReplyOutcome.no_reply)
            self._logger.warning(f"{self.address} closed the connection mid-reply")
            return ReplyResult(ReplyOutcome.connection_lost)
        except OSError as ex:
            self._logger.warning(f"Lost connection to {self.address} before a reply: {ex}")
            return ReplyResult(ReplyOutcome.connection_lost)

        return ReplyResult(ReplyOutcome.replied, reply)
