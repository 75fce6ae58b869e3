from __future__ import annotations

import argparse
import sys

from tasktracker.config import load_config
from tasktracker.errors import StoreError


def serve(host: str | None = None, port: int | None = None) -> int:
    # Defer heavy imports so 'client' stays lightweight
    import uvicorn

    from tasktracker.gateway.app import build_app

    cfg = load_config()
    try:
        app = build_app(cfg)
    except StoreError as exc:
        sys.stderr.write(f"error: {exc.message}\n")
        return 1
    uvicorn.run(app, host=host or cfg.host, port=port or cfg.port, log_config=None)
    return 0


def init_db() -> int:
    from tasktracker.store.sql_store import SqlTaskStore

    cfg = load_config()
    try:
        SqlTaskStore.from_url(cfg.database_url).init_schema()
    except StoreError as exc:
        sys.stderr.write(f"error: {exc.message}\n")
        return 1
    sys.stdout.write(f"schema ready at {cfg.database_url}\n")
    return 0


def launch_client(argv: list[str]) -> int:
    from tasktracker.client.cli import main as client_main

    return client_main(argv)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser("tasktracker")
    sub = parser.add_subparsers(dest="cmd")

    p_serve = sub.add_parser("serve", help="Run the task HTTP API")
    p_serve.add_argument("--host", help="Bind address (default: TASKTRACKER_HOST)")
    p_serve.add_argument("--port", type=int, help="Bind port (default: TASKTRACKER_PORT)")

    sub.add_parser("init-db", help="Create the task table if it does not exist")

    # Everything after 'client' is handed to the terminal client untouched
    sub.add_parser("client", help="Run the terminal client", add_help=False)

    args, extra = parser.parse_known_args(argv)
    cmd = getattr(args, "cmd", None)

    if cmd == "serve":
        raise SystemExit(serve(args.host, args.port))
    if cmd == "init-db":
        raise SystemExit(init_db())
    if cmd == "client":
        raise SystemExit(launch_client(extra))

    parser.print_help()


if __name__ == "__main__":
    main()
