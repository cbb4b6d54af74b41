import dataclasses
import logging
import selectors
import socket
import threading
from typing import Any, Self

from functcp.core.errors import BindError
from functcp.core.models.config import ServerConfig
from functcp.core.ports.serializer import Serializer
from functcp.core.transport.addr import format_addr, get_local_addr
from functcp.core.transport.connection import Connection
from functcp.core.transport.handler import Handler
from functcp.core.transport.pool import WorkerPool
from functcp.core.transport.worker import Worker
from functcp.infra.msgpack_serializer import MsgPackSerializer


class Server:
    """
    Owns the lifecycle of a TCP server that accepts client connections
    and hands each of them to a Worker running on a fixed-size pool.

    A Server is idle after construction: no socket is bound until
    `start()` is called. `start()` binds in the caller's thread, so a
    port that is already in use is reported there as a BindError, then
    spawns a supervising thread that runs the accept loop. Every accepted
    socket is wrapped in a Connection and admitted to the WorkerPool;
    when the pool is at its admission limit the connection is closed
    right away.

    The server does not implement any application logic itself. The
    configured handler receives decoded requests and returns the reply
    to send back, or None.

    `shutdown()` closes the listening socket and waits for the accept
    loop to exit. It stops the admission of new connections but does not
    wait for, or cancel, workers that are still serving a connection.

    The listening socket and the pool only exist between `start()` and
    the end of the accept loop. The worker count can only be changed
    while the server is stopped.
    """
    def __init__(
        self,
        handler: Handler,
        port: int = 0,
        *,
        host: str = "127.0.0.1",
        serializer: Serializer | None = None,
        **options: Any,
    ) -> None:
        self._config = ServerConfig(handler=handler, host=host, port=port, **options)
        self._serializer = serializer or MsgPackSerializer()

        self._lock = threading.Lock()
        self._sock: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self._logger = logging.getLogger("core.transport.server")

    @classmethod
    def from_config(cls, config: ServerConfig, serializer: Serializer | None = None) -> Self:
        options = {
            field.name: getattr(config, field.name)
            for field in dataclasses.fields(config)
            if field.name != "handler"
        }
        return cls(config.handler, serializer=serializer, **options)

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def port(self) -> int:
        """
        Port the server listens on.

        While the listening socket is open this is the port actually
        bound, which is how an ephemeral port (0) is resolved. Otherwise
        the configured port is returned.
        """
        sock = self._sock
        if sock is not None and (addr := get_local_addr(sock)) is not None:
            return addr[1]

        return self._config.port

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    @property
    def worker_count(self) -> int:
        return self._config.worker_count

    @worker_count.setter
    def worker_count(self, count: int) -> None:
        with self._lock:
            if self.is_running:
                raise RuntimeError("Worker count cannot be changed while the server is running")
            self._config = dataclasses.replace(self._config, worker_count=count)

    def __enter__(self) -> Self:
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    def start(self) -> None:
        with self._lock:
            if self.is_running:
                return

            config = self._config
            sock = self._bind(config)
            pool = WorkerPool(size=config.worker_count, limit=config.admission_limit)

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._serve,
                args=(sock, pool, stop_event),
                name=f"{type(self).__name__} main thread",
                daemon=True,
            )

            self._sock = sock
            self._stop_event = stop_event
            self._thread = thread
            thread.start()

        self._logger.info(
            f"Listening on {format_addr(get_local_addr(sock))} "
            f"with {config.worker_count} worker(s)"
        )

    def shutdown(self) -> None:
        with self._lock:
            thread = self._thread
            if thread is None or not thread.is_alive():
                return

            self._stop_event.set()
            if self._sock is not None:
                self._sock.close()

            thread.join()

    def _bind(self, config: ServerConfig) -> socket.socket:
        try:
            return socket.create_server((config.host, config.port), backlog=config.backlog)
        except OSError as ex:
            raise BindError(
                ex.errno,
                f"Could not bind to {config.host}:{config.port}: {ex.strerror or ex}"
            ) from ex

    def _serve(self, sock: socket.socket, pool: WorkerPool, stop_event: threading.Event) -> None:
        try:
            with selectors.DefaultSelector() as selector:
                selector.register(sock, selectors.EVENT_READ)
                while not stop_event.is_set():
                    if not selector.select(self._config.poll_interval):
                        continue

                    try:
                        client_sock, _ = sock.accept()
                    except (ConnectionAbortedError, InterruptedError):
                        # Peer gave up before we accepted
                        continue

                    self._dispatch(client_sock, pool)
        except (OSError, ValueError) as ex:
            # Listening socket closed under the selector or accept()
            if not stop_event.is_set():
                self._logger.error(f"Accept loop failed: {ex}", exc_info=ex)
        finally:
            sock.close()
            self._sock = None
            pool.shutdown(wait=False)
            self._logger.info("Server stopped accepting connections")

    def _dispatch(self, client_sock: socket.socket, pool: WorkerPool) -> None:
        config = self._config
        connection = Connection(client_sock, self._serializer, max_message_size=config.max_message_size)
        self._logger.debug(f"{connection!r} - Connection accepted")

        worker = Worker(connection, config.handler, read_timeout=config.read_timeout)
        if not pool.submit(worker):
            self._logger.warning(
                f"{connection!r} - Rejected, {pool.admitted} connection(s) "
                f"already admitted (limit {pool.limit})"
            )
            connection.close()
