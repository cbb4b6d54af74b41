import socket


def get_remote_addr(sock: socket.socket) -> tuple[str, int] | None:
    try:
        info = sock.getpeername()
    except OSError:
        return None

    return _as_addr(info)


def get_local_addr(sock: socket.socket) -> tuple[str, int] | None:
    try:
        info = sock.getsockname()
    except OSError:
        return None

    return _as_addr(info)


def format_addr(addr: tuple[str, int] | None) -> str:
    if addr is None:
        return ""
    host, port = addr
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _as_addr(info) -> tuple[str, int] | None:
    # IPv6 sockets report (host, port, flowinfo, scope_id)
    if isinstance(info, (list, tuple)) and len(info) >= 2:
        return str(info[0]), int(info[1])
    return None
