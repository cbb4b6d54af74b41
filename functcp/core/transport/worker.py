import logging

from functcp.core.errors import ConnectionClosedError
from functcp.core.models.config import DEFAULT_READ_TIMEOUT
from functcp.core.transport.connection import Connection
from functcp.core.transport.handler import Handler


class Worker:
    """
    Serves the requests of one accepted Connection on a pool thread.

    The Worker reads one request, passes it to the Handler and writes the
    Handler's result back when it is not None. It then looks at the socket
    once: if the bytes of another request have already arrived, the loop
    starts over on the same connection; otherwise the connection is
    closed. This only picks up requests that a client happened to write
    back-to-back. A client that waits before sending its next request
    will find the connection closed and has to open a new one.

    Each read is bounded by `read_timeout` so that a silent peer cannot
    hold a pool thread forever.

    Any failure (I/O, framing, codec, or an exception raised by the
    Handler) stops the loop, is logged, and closes the connection without
    notifying the client. Failures never escape `run()`, so one broken
    connection cannot disturb the server or other workers.
    """
    def __init__(
        self,
        connection: Connection,
        handler: Handler,
        read_timeout: float = DEFAULT_READ_TIMEOUT,
    ) -> None:
        self._connection = connection
        self._handler = handler
        self._read_timeout = read_timeout
        self.served = 0
        self._logger = logging.getLogger("core.transport.worker")

    def run(self) -> None:
        connection = self._connection
        try:
            connection.set_timeout(self._read_timeout)
            while True:
                self._serve_one()
                if not connection.has_buffered_data():
                    break
        except ConnectionClosedError as ex:
            if ex.clean:
                self._logger.debug(f"{connection!r} - Peer closed after {self.served} request(s)")
            else:
                self._logger.error(f"{connection!r} - Connection closed before a full request: {ex}")
        except TimeoutError:
            self._logger.warning(
                f"{connection!r} - No request within {self._read_timeout:.1f}s, closing"
            )
        except OSError as ex:
            self._logger.warning(f"{connection!r} - I/O error: {ex}")
        except Exception as ex:
            self._logger.error(f"{connection!r} - Worker aborted: {ex}", exc_info=ex)
        finally:
            connection.close()

    def _serve_one(self) -> None:
        request = self._connection.receive()
        reply = self._handler(request)
        self.served += 1

        if reply is not None:
            self._connection.send(reply)
