from enum import StrEnum


class ConnectionState(StrEnum):
    """
    Lifecycle of a single Connection.

    open -> active -> closed, or open -> closed when nothing was
    exchanged. There is no transition out of closed.
    """
    open = "open"
    active = "active"
    closed = "closed"
