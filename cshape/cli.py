"""CLI entrypoint: print the type model of a C file as one line of JSON."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError
from .extractors import ProviderContractError
from .logging import configure_logging, get_logger
from .orchestrator import Orchestrator
from .providers import ParseError, UnknownProviderError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cshape",
        description="Extract typedef, struct, enum and union declarations from a C file as JSON.",
    )
    parser.add_argument("path", help="C source or header file to inspect.")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting (logs go to stderr).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a .cshape.yml file or its directory (defaults to the current directory).",
    )
    parser.add_argument(
        "--provider",
        default=None,
        help="Parser backend to use (libclang or tree-sitter); overrides the config file.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write debug logs to this file.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for cshape."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    try:
        orchestrator = Orchestrator.from_config_file(args.config, provider_name=args.provider)
        entries = orchestrator.run_extract(args.path)
        output = orchestrator.render(entries)
    except (FileNotFoundError, ParseError, UnknownProviderError) as exc:
        parser.exit(1, f"cshape: {exc}\n")
    except ConfigError as exc:
        parser.exit(1, f"cshape: invalid configuration: {exc}\n")
    except ProviderContractError as exc:
        logger.debug("Provider contract violation", exc_info=True)
        parser.exit(2, f"cshape: internal error: {exc}\n")

    print(output)


if __name__ == "__main__":
    main(sys.argv[1:])
