"""
Length-prefixed framing over a blocking socket.

Wire format:

    [4-byte big-endian length][payload]

Exactly one encoded payload per frame. A zero-length payload is never
produced by the codec and is rejected, as is any length above the
configured maximum.
"""
import socket
import struct

from functcp.core.errors import ConnectionClosedError, FrameError

# "!I" = uint32 big-endian (network order)
HEADER = struct.Struct("!I")


def pack_frame(payload: bytes, max_size: int) -> bytes:
    if not payload or len(payload) > max_size:
        raise FrameError(f"Refusing to send frame of {len(payload)} bytes (max {max_size})")
    return HEADER.pack(len(payload)) + payload


def recv_frame(sock: socket.socket, max_size: int) -> bytes:
    header = recv_exact(sock, HEADER.size, at_boundary=True)
    length = HEADER.unpack(header)[0]

    if length == 0 or length > max_size:
        raise FrameError(f"Invalid frame length {length} (max {max_size})")

    return recv_exact(sock, length)


def recv_exact(sock: socket.socket, n: int, at_boundary: bool = False) -> bytes:
    """
    Blocking read of exactly n bytes.

    Raises ConnectionClosedError when the peer closes the stream first;
    the error is flagged clean only if nothing at all was read and the
    caller was positioned on a frame boundary.
    """
    buf = bytearray()
    while len(buf) < n:
        chunk = sock.recv(n - len(buf))
        if not chunk:
            clean = at_boundary and not buf
            raise ConnectionClosedError("Connection closed by peer", clean=clean)
        buf.extend(chunk)
    return bytes(buf)
