#!/usr/bin/env python3
"""
tasktrack -- Multi-tenant task tracker with bearer-token authentication.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 8080 --reload
  python main.py init-db
  python main.py check-config

Environment variables:
  SECRET_KEY    Token signing key. Required unless DEBUG=true; at least 32 chars.
                Generate: python -c "import secrets; print(secrets.token_hex(32))"
  DEBUG         true enables stack traces in error responses and an ephemeral key.
  DATABASE_URL  SQLAlchemy URL (default: sqlite file next to this script).
"""

import argparse
import sys


def _load_settings():
    """Load settings or exit with status 1 and a readable message."""
    from core.config import get_settings

    try:
        return get_settings()
    except ValueError as e:  # pydantic.ValidationError is a ValueError
        print(f"  [!] Configuration error: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_init_db(args: argparse.Namespace) -> None:
    from auth.store import UserStore
    from core.db import create_db_engine
    from tasks.store import TaskStore

    settings = _load_settings()
    engine = create_db_engine(settings.database_url)
    try:
        # Each store creates its own tables on construction.
        UserStore(engine)
        TaskStore(engine)
    finally:
        engine.dispose()
    print(f"Database ready: {settings.database_url}")


def _cmd_check_config(args: argparse.Namespace) -> None:
    settings = _load_settings()
    print("tasktrack configuration")
    print("─" * 40)
    print(f"  debug               {settings.debug}")
    print(f"  database_url        {settings.database_url}")
    print(f"  token_ttl_seconds   {settings.token_ttl_seconds}")
    print(f"  bcrypt_rounds       {settings.bcrypt_rounds}")
    print(f"  crypto_workers      {settings.crypto_workers}")
    print(f"  rate_limit_enabled  {settings.rate_limit_enabled}")
    print(f"  auth_rate_limit     {settings.auth_rate_limit}")
    print(f"  task_rate_limit     {settings.task_rate_limit}")
    print(f"  allowed_hosts       {', '.join(settings.allowed_hosts)}")
    print(f"  cors_origins        {', '.join(settings.cors_origins) or '(none)'}")
    # Never print the key itself.
    print(f"  secret_key          {'set' if settings.secret_key else 'missing'} ({len(settings.secret_key)} chars)")


def _cmd_serve(args: argparse.Namespace) -> None:
    import uvicorn

    _load_settings()
    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="tasktrack",
        description="Multi-tenant task tracker API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py init-db
  DEBUG=true python main.py serve --reload
  SECRET_KEY=... python main.py check-config
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    init_db = sub.add_parser("init-db", help="Create the users and tasks tables if missing")
    init_db.set_defaults(func=_cmd_init_db)

    check = sub.add_parser("check-config", help="Validate settings and print them (secret redacted)")
    check.set_defaults(func=_cmd_check_config)

    serve = sub.add_parser("serve", help="Run the API under uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    args = parser.parse_args()
    if not getattr(args, "func", None):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
