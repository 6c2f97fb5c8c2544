"""
Command-line interface for the co-op banker.

Provides CLI commands for ledger and server management:
- init-ledger: Create an empty ledger file
- check-ledger: Load the ledger and print a short summary
- refresh: Poll the feed once and reconcile
- run: Start the web server (report page, API, WebSocket, poller)

Usage:
    coop-banker init-ledger [--force]
    coop-banker check-ledger
    coop-banker refresh
    coop-banker run [--host HOST] [--port PORT]

Environment Variables:
    HYPIXEL_API_KEY: API key for the profile endpoint
    PROFILE_UUID: Co-op profile to follow
    BANKER_LEDGER_PATH: Ledger file (default: data/data.json)
    BANKER_HOST / BANKER_PORT: Bind address (default: 127.0.0.1:7878)
"""

import argparse
import sys

from coop_banker.config import config, configure_logging


def cmd_init_ledger(args: argparse.Namespace) -> int:
    """
    Create an empty ledger at the configured path.

    Refuses to overwrite an existing ledger unless ``--force`` is given.

    Returns:
        0 on success, 1 on error
    """
    from coop_banker.ledger.errors import LedgerStoreError
    from coop_banker.ledger.store import LedgerStore

    path = config.ledger.absolute_path
    try:
        LedgerStore(path).create(overwrite=args.force)
    except LedgerStoreError as e:
        print(f"Error creating ledger: {e}", file=sys.stderr)
        return 1

    print(f"Ledger created at {path}")
    return 0


def cmd_check_ledger(args: argparse.Namespace) -> int:
    """
    Load the ledger and print its headline figures.

    Returns:
        0 when the ledger loads, 1 otherwise
    """
    from coop_banker.config import get_config_status
    from coop_banker.core.report import format_balance, format_timestamp
    from coop_banker.ledger.errors import BankerError
    from coop_banker.ledger.reconciler import check_drift
    from coop_banker.ledger.store import LedgerStore

    try:
        state = LedgerStore(config.ledger.absolute_path).load()
    except BankerError as e:
        print(f"Error loading ledger: {e}", file=sys.stderr)
        return 1

    status = get_config_status()
    if status["config_file_exists"]:
        source = status["config_file_path"]
    elif status["using_example"]:
        source = "example config (copy to banker.ini for production)"
    else:
        source = "built-in defaults"
    print(f"Config:           {source}")
    print(f"Feed configured:  {'yes' if status['feed_configured'] else 'no'}")
    print(f"Ledger:           {status['ledger_path']}")
    print(f"Schema version:   {state.version}")
    print(f"Members:          {len(state.users)}")
    print(f"Operations:       {len(state.operations)}")
    print(f"Balance:          {format_balance(state.balance)}")
    print(f"Interest earned:  {format_balance(state.bank_interest_accrued)}")
    print(
        "Last transaction: "
        f"{format_timestamp(state.last_processed_timestamp, config.report.timezone)}"
    )

    warning = check_drift(state)
    if warning is not None:
        print(f"Warning: {warning}")
    return 0


def cmd_refresh(args: argparse.Namespace) -> int:
    """
    Poll the feed once and reconcile it into the ledger.

    Returns:
        0 on success, 1 on error
    """
    from coop_banker.api.server import build_service
    from coop_banker.ledger.errors import BankerError

    try:
        service = build_service(config)
        result = service.refresh()
    except BankerError as e:
        print(f"Error refreshing ledger: {e}", file=sys.stderr)
        return 1

    print(f"Accepted {result.new_transactions} new transactions.")
    if result.marker_added:
        print("Feed page was full: some transactions may have been missed.")
    if result.drift_warning is not None:
        print(f"Warning: {result.drift_warning}")
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    """
    Start the web server.

    Returns:
        0 on clean shutdown, 1 if the ledger cannot be loaded
    """
    from coop_banker.api.server import start_server
    from coop_banker.ledger.errors import BankerError

    host = args.host or config.server.host
    port = args.port or config.server.port
    print(f"Serving co-op banker on http://{host}:{port}")

    try:
        start_server(host=host, port=port)
    except BankerError as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        print("Run 'coop-banker init-ledger' to create an empty ledger.", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutting down...")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="coop-banker",
        description="Co-op Banker - per-member shares of a SkyBlock co-op bank",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-ledger command
    init_parser = subparsers.add_parser(
        "init-ledger",
        help="Create an empty ledger file",
        description="Create an empty ledger at the configured path.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing ledger",
    )
    init_parser.set_defaults(func=cmd_init_ledger)

    # check-ledger command
    check_parser = subparsers.add_parser(
        "check-ledger",
        help="Load the ledger and print a summary",
        description="Validate the ledger file and print its headline figures.",
    )
    check_parser.set_defaults(func=cmd_check_ledger)

    # refresh command
    refresh_parser = subparsers.add_parser(
        "refresh",
        help="Poll the feed once",
        description="Fetch the co-op profile and reconcile new transactions.",
    )
    refresh_parser.set_defaults(func=cmd_refresh)

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Run the web server",
        description="Serve the report page and API, polling the feed in the background.",
    )
    run_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="Port to listen on (default: 7878, or BANKER_PORT env var)",
    )
    run_parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default: 127.0.0.1, or BANKER_HOST env var)",
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    configure_logging()
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
