import json
from functools import lru_cache

from pydantic import ValidationError

from functcp.bootstrap.config.settings import FuncTCPConfig
from functcp.core.helpers.utils import load_handler
from functcp.core.transport.server import Server
from functcp.infra.msgpack_serializer import MsgPackSerializer


@lru_cache
def get_server() -> Server:
    config = get_config()

    try:
        handler = load_handler(config.handler)
    except (ImportError, ValueError, TypeError) as ex:
        raise SystemExit(f"[config] Cannot load handler {config.handler!r}: {ex}")

    return Server.from_config(
        config.get_server_config(handler),
        serializer=MsgPackSerializer(),
    )


@lru_cache
def get_config() -> FuncTCPConfig:
    try:
        return FuncTCPConfig()
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))
