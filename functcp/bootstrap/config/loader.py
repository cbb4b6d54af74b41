import argparse
import os
from functools import lru_cache
from pathlib import Path


@lru_cache
def get_cli_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="funcnode",
        description=(
            "Start a functcp server.\n\n"
            "functcp passes every request received over TCP to a Python\n"
            "function and sends back whatever that function returns."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to a functcp configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity for the server.\n"
            "Choose among: DEBUG, INFO, WARNING, ERROR, CRITICAL.\n\n"
            "DEBUG    → every accepted connection and exchange.\n"
            "INFO     → start/stop of the server (default).\n"
            "WARNING  → rejected connections, timeouts, broken peers.\n"
            "ERROR    → failing handlers and corrupt requests.\n"
            "CRITICAL → only critical failures.\n\n"
            "Example:\n"
            "  --log-level DEBUG"
        ),
    )

    return parser.parse_args()


@lru_cache
def get_configfile() -> Path | None:
    args = get_cli_args()

    # Priority: CLI > ENV > default file in current working directory
    raw = args.config or os.getenv("FUNCNODECONFIG")

    if raw is None:
        file = Path.cwd() / "funcnode.yaml"
        # The default file is optional: defaults and env vars apply
        return file if file.is_file() else None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the FUNCNODECONFIG environment variable\n"
            "  - Or place a 'funcnode.yaml' file in the current working directory."
        )

    return file
