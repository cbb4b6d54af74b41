import contextlib
import importlib
import logging
import sys
import signal
import threading
from types import FrameType
from typing import Generator

from functcp.core.transport.handler import Handler

SHUTDOWN_SIGNALS = (
    signal.SIGINT,
    signal.SIGTERM,
)

if sys.platform == "win32":
    SHUTDOWN_SIGNALS += (signal.SIGBREAK,)


@contextlib.contextmanager
def setup_signal_handler() -> Generator[threading.Event, None, None]:
    stop_event = threading.Event()

    if threading.current_thread() is not threading.main_thread():
        yield stop_event
        return

    captured_signals: list[signal.Signals | int] = []

    def handle(sig: int, frame: FrameType | None) -> None:
        captured_signals.append(sig)
        stop_event.set()

    # Install temporary handlers
    original_handlers = {
        sig: signal.signal(sig, handle)
        for sig in SHUTDOWN_SIGNALS
    }

    try:
        yield stop_event
    finally:
        # Restore original handlers
        for sig, old in original_handlers.items():
            signal.signal(sig, old)

        # Now replay signals with the real handler
        for sig in reversed(captured_signals):
            if original_handlers[sig] is not handle:
                signal.raise_signal(sig)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s',
    )


def load_handler(path: str) -> Handler:
    """
    Import a handler from a "package.module:attribute" path.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Handler path must look like 'module:function', got {path!r}")

    module = importlib.import_module(module_name)

    target = module
    for name in attr.split("."):
        try:
            target = getattr(target, name)
        except AttributeError as ex:
            raise ValueError(f"Module {module_name!r} has no attribute {attr!r}") from ex

    if not callable(target):
        raise TypeError(f"Handler {path!r} is not callable")

    return target
