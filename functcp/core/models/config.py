from dataclasses import dataclass

from functcp.core.transport.handler import Handler

MIN_PORT = 0
MAX_PORT = 65535

DEFAULT_WORKER_COUNT = 20
DEFAULT_READ_TIMEOUT = 60.0
DEFAULT_MAX_MESSAGE_SIZE = 1 * 1024 * 1024  # 1MB
DEFAULT_LIMIT_CONCURRENCY = 1024


def validate_port(port: int) -> int:
    if not MIN_PORT <= port <= MAX_PORT:
        raise ValueError(f"Port number has to be between {MIN_PORT} and {MAX_PORT}, got {port}")
    return port


def validate_worker_count(count: int) -> int:
    if count < 1:
        raise ValueError(f"Worker count must be a positive integer, got {count}")
    return count


@dataclass
class ServerConfig:
    """
    Static configuration for a functcp Server.

    Every field is checked at construction so that an invalid value is
    reported immediately rather than when the server is started.
    """
    handler: Handler
    """
    The user-defined function called once per request:
        def handler(request) -> reply | None
    Returning None means that no reply is written back.
    """

    host: str = "127.0.0.1"
    """
    IP address or hostname on which the server listens.
    """

    port: int = 0
    """
    TCP port to bind. If set to 0, the OS selects an available port.
    """

    worker_count: int = DEFAULT_WORKER_COUNT
    """
    Number of threads serving accepted connections.
    """

    read_timeout: float = DEFAULT_READ_TIMEOUT
    """
    Socket read timeout (seconds) applied to every accepted connection.
    Bounds how long an idle worker can hold a pool thread.
    """

    backlog: int = 128
    """
    Maximum number of pending TCP connections waiting for accept().
    """

    limit_concurrency: int | None = None
    """
    Maximum number of accepted connections admitted to the pool, queued
    or running. Connections above this limit are closed immediately.
    When unset, the limit is DEFAULT_LIMIT_CONCURRENCY or worker_count,
    whichever is larger.
    """

    max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE
    """
    Maximum size of a single encoded payload.
    """

    poll_interval: float = 0.5
    """
    How often (seconds) the accept loop checks for a shutdown request
    while no connection is pending.
    """

    def __post_init__(self) -> None:
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        validate_port(self.port)
        validate_worker_count(self.worker_count)
        if self.read_timeout <= 0:
            raise ValueError(f"read_timeout must be positive, got {self.read_timeout}")
        if self.backlog < 0:
            raise ValueError(f"backlog must not be negative, got {self.backlog}")
        if self.limit_concurrency is not None and self.limit_concurrency < self.worker_count:
            raise ValueError(
                f"limit_concurrency ({self.limit_concurrency}) must be at least "
                f"worker_count ({self.worker_count})"
            )
        if self.max_message_size < 1:
            raise ValueError(f"max_message_size must be positive, got {self.max_message_size}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")

    @property
    def admission_limit(self) -> int:
        if self.limit_concurrency is None:
            return max(DEFAULT_LIMIT_CONCURRENCY, self.worker_count)
        return self.limit_concurrency
