import logging
import selectors
import socket
import threading
from typing import Any, Self

from functcp.core.models.config import DEFAULT_MAX_MESSAGE_SIZE
from functcp.core.models.state import ConnectionState
from functcp.core.ports.serializer import Serializer
from functcp.core.transport.addr import format_addr, get_remote_addr
from functcp.core.transport.framing import pack_frame, recv_frame


class Connection:
    """
    A single TCP stream wrapped with framing and the payload codec.

    A Connection is created either by the client when it connects
    (`Connection.open`) or by the server when it accepts a socket, and is
    owned by exactly one thread for its whole life: one client call, or
    one Worker. It is never reused once closed.

    Outgoing values are serialized and written as one length-prefixed
    frame; incoming frames are read in full before being deserialized.
    Codec failures surface as EncodeError / DecodeError, a peer that
    disappears surfaces as ConnectionClosedError or the underlying OSError.

    `close()` releases the socket and may be called any number of times
    from any exit path, including error paths.
    """
    def __init__(
        self,
        sock: socket.socket,
        serializer: Serializer,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._sock = sock
        self._serializer = serializer
        self._max_message_size = max_message_size
        self._close_lock = threading.Lock()
        self.state = ConnectionState.open
        self.peer = get_remote_addr(sock)
        self._logger = logging.getLogger("core.transport.connection")

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        serializer: Serializer,
        timeout: float | None = None,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> Self:
        sock = socket.create_connection((host, port), timeout=timeout)
        return cls(sock, serializer, max_message_size=max_message_size)

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.closed

    def __repr__(self) -> str:
        return f"Connection({format_addr(self.peer) or '?'}, {self.state})"

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def set_timeout(self, timeout: float | None) -> None:
        self._sock.settimeout(timeout)

    def send(self, message: Any) -> None:
        self._ensure_open()
        payload = self._serializer.serialize(message)
        frame = pack_frame(payload, self._max_message_size)
        self.state = ConnectionState.active
        self._sock.sendall(frame)

    def receive(self) -> Any:
        self._ensure_open()
        self.state = ConnectionState.active
        payload = recv_frame(self._sock, self._max_message_size)
        return self._serializer.deserialize(payload)

    def has_buffered_data(self) -> bool:
        """
        Tell whether request bytes are already waiting on the socket.

        This does not wait for the peer: it only reports what has
        already arrived. A peer that closed its side is not reported as
        pending data.
        """
        if self.closed:
            return False

        with selectors.DefaultSelector() as selector:
            selector.register(self._sock, selectors.EVENT_READ)
            if not selector.select(timeout=0):
                return False

        try:
            return bool(self._sock.recv(1, socket.MSG_PEEK))
        except OSError:
            # Reset by peer; nothing left to serve
            return False

    def close(self) -> None:
        with self._close_lock:
            if self.state is ConnectionState.closed:
                return
            self.state = ConnectionState.closed

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # Already reset or never fully connected
            pass

        try:
            self._sock.close()
        except OSError as ex:
            self._logger.debug(f"{self!r} - Error while closing socket: {ex}")

    def _ensure_open(self) -> None:
        if self.closed:
            raise ConnectionError(f"{self!r} is closed")
