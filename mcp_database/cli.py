"""
mcp-database command line entry point.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Dict, List, Optional

from dotenv import load_dotenv

from . import __version__
from .binary import find_binary, verify_binary
from .config import generate_prebuilt_config, load_config, parse_prebuilt, validate_prebuilt_env
from .env_mapper import DIALECT_ENV, UNIFIED_DB_ENV, apply_cli_overrides, build_child_environment, describe_variables
from .errors import ConfigError, ProcessError
from .models import PrebuiltDatabase
from .server import ServerOptions, serve
from .settings import resolve_transport_settings

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False):
    """Send all log records to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    if not verbose:
        for noisy in ("httpx", "httpcore", "mcp"):
            logging.getLogger(noisy).setLevel(logging.WARNING)


def _epilog() -> str:
    lines = [
        "environment variables:",
        f"  unified:     {', '.join(UNIFIED_DB_ENV.values())}",
    ]
    for kind in DIALECT_ENV:
        lines.append(f"  {kind + ':':<20} {', '.join(describe_variables(kind))}")
    lines += [
        "  toolbox:     TOOLBOX_PATH, MCP_TOOLBOX_TRANSPORT, MCP_TOOLBOX_HOST, MCP_TOOLBOX_PORT",
        "",
        "binary search order:",
        "  --binary-path, TOOLBOX_PATH, ./binaries/toolbox,",
        "  ~/.mcp-database/binaries/toolbox, PATH",
        "",
        "examples:",
        "  mcp-database --prebuilt postgres",
        "  mcp-database --config ./tools.yaml --no-stdio --toolbox-port 5001",
    ]
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-database",
        description="MCP server for databases, backed by genai-toolbox.",
        epilog=_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-c", "--config", help="Path to a tools.yaml configuration file")
    source.add_argument(
        "-p",
        "--prebuilt",
        help=f"Prebuilt database type ({', '.join(item.value for item in PrebuiltDatabase)})",
    )
    parser.add_argument("-b", "--binary-path", help="Path to the genai-toolbox binary or its directory")
    parser.add_argument(
        "--stdio",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Talk to the toolbox over stdio (default) or, with --no-stdio, over HTTP",
    )
    parser.add_argument("--transport", choices=["stdio", "http"], help="Toolbox transport; overrides --stdio")
    parser.add_argument("--toolbox-host", help="Toolbox HTTP host (default: 127.0.0.1)")
    parser.add_argument("--toolbox-port", help="Toolbox HTTP port (default: 5000)")
    parser.add_argument("--db-host", help="Database host")
    parser.add_argument("--db-port", help="Database port")
    parser.add_argument("--db-name", help="Database name")
    parser.add_argument("--db-user", help="Database user")
    parser.add_argument("--db-password", help="Database password")
    parser.add_argument("-v", "--version", action="version", version=f"mcp-database {__version__}")
    parser.add_argument("--verbose", action="store_true", help="Debug logging and toolbox output on stderr")
    return parser


def _db_flags(args: argparse.Namespace) -> Dict[str, Optional[str]]:
    return {
        "host": args.db_host,
        "port": args.db_port,
        "database": args.db_name,
        "user": args.db_user,
        "password": args.db_password,
    }


def prepare(args: argparse.Namespace, env: Dict[str, str]) -> ServerOptions:
    """
    Resolve the binary, configuration and transport from parsed arguments.

    Raises:
        ConfigError: for invalid configuration or missing variables
        ProcessError: if the toolbox binary cannot be found
    """
    binary_path = find_binary(args.binary_path, env)
    logger.info(f"Using toolbox binary {binary_path}")
    try:
        logger.info(f"Toolbox version: {verify_binary(binary_path)}")
    except ProcessError as e:
        logger.warning(f"Could not verify toolbox version: {e}")

    db_flags = _db_flags(args)
    prebuilt = None
    if args.config:
        if not os.path.exists(args.config):
            raise ConfigError(f"Config file not found: {args.config}")
        logger.info(f"Loading config from {args.config}")
        config = load_config(args.config, apply_cli_overrides(env, **db_flags))
        kind = config.active_source.kind
    else:
        prebuilt = parse_prebuilt(args.prebuilt)
        kind = prebuilt.value
        logger.info(f"Using prebuilt config for {kind}")

    env = apply_cli_overrides(env, kind=kind, **db_flags)
    if prebuilt is not None:
        validate_prebuilt_env(prebuilt, env)
        config = generate_prebuilt_config(prebuilt, env)

    transport = resolve_transport_settings(
        env,
        cli_transport=args.transport,
        cli_stdio=args.stdio,
        cli_host=args.toolbox_host,
        cli_port=args.toolbox_port,
    )
    return ServerOptions(
        binary_path=binary_path,
        config=config,
        transport=transport,
        prebuilt=prebuilt,
        env=build_child_environment(kind, env),
        verbose=args.verbose,
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = prepare(args, dict(os.environ))
        asyncio.run(serve(options))
    except (ConfigError, ProcessError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
