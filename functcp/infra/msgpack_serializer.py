import msgpack
from typing import Any

from functcp.core.errors import DecodeError, EncodeError
from functcp.core.ports.serializer import Serializer


class MsgPackSerializer(Serializer):
    """
    MsgPack-based implementation of the Serializer interface.

    - deterministic binary encoding
    - compact
    - fast
    - documented format, readable from any runtime

    Tuples are encoded as arrays and therefore come back as lists.
    """
    def serialize(self, message: Any) -> bytes:
        try:
            return msgpack.packb(message, use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as ex:
            raise EncodeError(f"Cannot encode {type(message).__name__}: {ex}") from ex

    def deserialize(self, data: bytes) -> Any:
        try:
            return msgpack.unpackb(data, raw=False)
        except (msgpack.UnpackException, ValueError, TypeError) as ex:
            raise DecodeError(f"Invalid payload: {ex}") from ex
