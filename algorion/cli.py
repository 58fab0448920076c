"""
Algorion CLI - Command-line interface for the game server.

Usage:
    algorion serve                     Run the HTTP/WebSocket server
    algorion validate-content [path]   Check a content seed file
    algorion new-session               Create a session and print its state
"""

import argparse
import json
import sys

from .config import (
    ALGORION_CONTENT_PATH,
    ALGORION_HOST,
    ALGORION_INITIAL_PH,
    ALGORION_LOG_LEVEL,
    ALGORION_PORT,
    configure_logging,
)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Algorion - Cooperative riddle game server",
        prog="algorion",
    )
    parser.add_argument("--log-level", default=ALGORION_LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP/WebSocket server")
    serve_parser.add_argument("--host", default=ALGORION_HOST, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=ALGORION_PORT, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Validate command
    validate_parser = subparsers.add_parser("validate-content", help="Validate a content seed file")
    validate_parser.add_argument("path", nargs="?", default=ALGORION_CONTENT_PATH, help="Seed file")

    # New session command
    session_parser = subparsers.add_parser("new-session", help="Create a session and print its state")
    session_parser.add_argument("--ph", type=int, default=ALGORION_INITIAL_PH, help="Initial PH (content default if omitted)")
    session_parser.add_argument("--seed", type=int, default=None, help="Shuffle seed")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "validate-content":
        cmd_validate_content(args)
    elif args.command == "new-session":
        cmd_new_session(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "algorion.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


def cmd_validate_content(args):
    """Validate a content seed file."""
    from .content import ContentCatalog, DEFAULT_SEED_PATH
    from .engine_core.errors import ContentError

    path = args.path or DEFAULT_SEED_PATH
    print(f"Validating: {path}")
    try:
        catalog = ContentCatalog.load(path)
    except ContentError as e:
        print("Content is invalid:")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)

    print(f"Houses: {len(catalog.houses)}")
    print(f"Fragments: {len(catalog.fragments)}")
    print(f"Events: {', '.join(e.name for e in catalog.events)}")
    print(f"Heroes: {', '.join(h.name for h in catalog.heroes.values())}")
    print(f"Initial PH: {catalog.initial_ph}")
    print("OK")


def cmd_new_session(args):
    """Create a session and print its initial snapshot."""
    from .content import ContentCatalog
    from .engine_core.notifications import snapshot
    from .session import SessionManager

    manager = SessionManager(ContentCatalog.load(ALGORION_CONTENT_PATH))
    session = manager.create_session(initial_ph=args.ph, seed=args.seed)

    print(f"Session created: {session.session_id}")
    print(json.dumps(snapshot(session.game), indent=2))


if __name__ == "__main__":
    main()
