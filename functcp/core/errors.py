class FuncTCPError(Exception):
    """Base class for every error raised by functcp."""


class BindError(FuncTCPError, OSError):
    """
    The server could not bind or listen on its configured address.

    Raised from Server.start() in the caller's thread so that an
    embedding application decides what a failed bind means for it.
    """


class CodecError(FuncTCPError):
    """A payload could not be converted to or from bytes."""


class EncodeError(CodecError):
    pass


class DecodeError(CodecError):
    pass


class FrameError(FuncTCPError):
    """A frame header announced an invalid or oversized payload."""


class ConnectionClosedError(FuncTCPError, ConnectionError):
    """
    The peer closed the stream while a frame was expected.

    `clean` is True when the stream ended exactly on a frame boundary,
    i.e. before any byte of the next frame was received.
    """
    def __init__(self, message: str, clean: bool = False) -> None:
        super().__init__(message)
        self.clean = clean
