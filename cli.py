"""CLI entry point for github-oauth-relay.

Commands:
- serve: validate configuration and run the relay under uvicorn
- check: validate configuration and print a masked summary
"""
import argparse
import sys

import uvicorn

from config import ConfigurationError, load_settings
from logging_config import create_supabase_client, setup_logging
from main import VERSION


def load_or_exit():
    """Load settings, exiting with status 1 when they are incomplete."""
    try:
        return load_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def cmd_check(args) -> int:
    settings = load_or_exit()
    print("Configuration OK")
    for key, value in settings.summary().items():
        print(f"  {key}: {value}")
    return 0


def cmd_serve(args) -> int:
    settings = load_or_exit()

    supabase = None
    try:
        supabase = create_supabase_client(settings.supabase_url, settings.supabase_anon_key)
    except Exception as e:
        print(f"[WARNING] Supabase client setup failed: {type(e).__name__}", file=sys.stderr)

    setup_logging(
        supabase_client=supabase,
        level=settings.log_level,
        redact=settings.secret_values,
    )

    uvicorn.run(
        "main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
        access_log=False,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="github-oauth-relay",
        description="OAuth authorization-code relay for GitHub popup logins",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the relay")
    serve.add_argument("--host", help="Bind address (default: HOST or 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Bind port (default: PORT or 8080)")
    serve.set_defaults(func=cmd_serve)

    check = subparsers.add_parser("check", help="Validate configuration")
    check.set_defaults(func=cmd_check)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
