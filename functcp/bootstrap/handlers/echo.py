import logging
from typing import Any

logger = logging.getLogger("bootstrap.handlers.echo")


def echo(request: Any) -> Any:
    """Reply with the request itself. Default handler of `funcnode`."""
    logger.debug(f"echo {request!r}")
    return request
