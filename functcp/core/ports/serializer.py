from typing import Protocol, Any


class Serializer(Protocol):
    """
    Defines the interface for encoding/decoding payloads exchanged
    over the TCP transport.

    Client and server must use the same implementation; there is no
    negotiation on the wire.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - safe against malformed input: failures are reported as
      EncodeError / DecodeError, never as a silent None
    """

    def serialize(self, message: Any) -> bytes:
        """Encode a Python object into bytes suitable for network transport."""

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes received from the network into a Python object."""
