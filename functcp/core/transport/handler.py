from typing import Any, Callable

Handler = Callable[[Any], Any]
"""
Per-request function injected into the Server.

A Handler receives one decoded request and returns the reply to send
back, or None when the request does not expect one. It runs on a pool
thread, once per request, and must be safe to call concurrently from
several workers. It never sees framing, sockets, or serialization; those
belong to the Connection and the Worker.

An exception raised by the Handler is logged and closes the connection
it was serving; it has no effect on other connections.
"""
