import logging

from functcp.bootstrap.config.loader import get_cli_args
from functcp.bootstrap.deps import get_server
from functcp.core.errors import BindError
from functcp.core.helpers.utils import setup_signal_handler, setup_logging


def main():
    cli = get_cli_args()
    setup_logging(cli.log_level)

    server = get_server()
    logger = logging.getLogger("bootstrap.boot")

    try:
        with setup_signal_handler() as stop_event:
            try:
                server.start()
            except BindError as ex:
                raise SystemExit(f"[server] {ex}")

            while not stop_event.wait(timeout=1.0):
                if not server.is_running:
                    logger.error("Accept loop exited unexpectedly")
                    raise SystemExit(1)

            server.shutdown()
    except KeyboardInterrupt:
        server.shutdown()


if __name__ == "__main__":
    main()
