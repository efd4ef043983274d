#!/usr/bin/env python3
"""
Stockroom management CLI.

Usage:
    python manage.py start       Start the API server in the background
    python manage.py stop        Graceful shutdown
    python manage.py restart     Stop + start
    python manage.py status      Check if server is running
    python manage.py migrate     Apply pending database migrations
    python manage.py db-status   Show applied and pending migrations
    python manage.py verify      Run schema and stock consistency checks
    python manage.py reconcile   Retry bookkeeping entries waiting for reconciliation
"""

import argparse
import asyncio
import os
import signal
import socket
import subprocess
import sys
import time
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
PID_FILE = ROOT_DIR / ".stockroom.pid"


def _is_pid_alive(pid: int) -> bool:
    """Check if a process with the given PID is running."""
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def _read_pid() -> int | None:
    """Read PID from the PID file, return None if missing or stale."""
    if not PID_FILE.exists():
        return None
    try:
        pid = int(PID_FILE.read_text().strip())
    except (ValueError, OSError):
        return None
    if _is_pid_alive(pid):
        return pid
    # Stale PID file
    PID_FILE.unlink(missing_ok=True)
    return None


def _is_port_free(port: int) -> bool:
    """Check if a port is available for binding."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", port))
        return True
    except OSError:
        return False


def _stop_pid(pid: int, timeout: float = 3.0) -> bool:
    """SIGTERM, wait, then SIGKILL. Returns True once the process is gone."""
    try:
        os.kill(pid, signal.SIGTERM)
    except OSError:
        return not _is_pid_alive(pid)

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not _is_pid_alive(pid):
            return True
        time.sleep(0.1)

    print(f"Process {pid} did not exit within {timeout:.0f}s, sending SIGKILL.")
    try:
        os.kill(pid, signal.SIGKILL)
    except OSError:
        pass
    time.sleep(0.2)
    return not _is_pid_alive(pid)


def cmd_start(args: argparse.Namespace) -> None:
    """Start uvicorn in the background and record its PID."""
    existing_pid = _read_pid()
    if existing_pid is not None:
        print(f"Server already running (PID {existing_pid}). Use 'restart' or 'stop' first.")
        sys.exit(1)

    if not _is_port_free(args.port):
        print(f"Error: Port {args.port} is in use by another process.")
        sys.exit(1)

    # One worker: per-item locks live in the server process
    uvicorn_cmd = [
        sys.executable, "-m", "uvicorn",
        "src.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]

    print(f"Starting server on {args.host}:{args.port}...")
    proc = subprocess.Popen(uvicorn_cmd, cwd=str(ROOT_DIR))

    PID_FILE.write_text(str(proc.pid))
    print(f"Server started (PID {proc.pid}).")
    print(f"  API:      http://{args.host}:{args.port}/api")
    print(f"  PID file: {PID_FILE}")


def cmd_stop(args: argparse.Namespace) -> None:
    """Stop the running server."""
    pid = _read_pid()
    if pid is None:
        print("Server is not running.")
        return

    print(f"Stopping server (PID {pid})...")
    stopped = _stop_pid(pid)
    PID_FILE.unlink(missing_ok=True)
    print("Server stopped." if stopped else "Warning: Server may still be running.")


def cmd_restart(args: argparse.Namespace) -> None:
    """Stop then start the server."""
    cmd_stop(args)
    cmd_start(args)


def cmd_status(args: argparse.Namespace) -> None:
    """Check if the server is running."""
    pid = _read_pid()
    if pid is not None:
        print(f"Server is running (PID {pid}).")
    elif not _is_port_free(args.port):
        print(f"No PID file. Port {args.port} is in use by another process.")
    else:
        print(f"Server is not running (port {args.port} is free).")


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    results = asyncio.run(run_migrations(create_backup_before=not args.no_backup))
    if not results:
        print("Database is up to date.")
    for result in results:
        state = "SUCCESS" if result.success else "FAILED"
        print(f"[{state}] v{result.version}: {result.name} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"         Error: {result.error}")
    if any(not r.success for r in results):
        sys.exit(1)


def cmd_db_status(args: argparse.Namespace) -> None:
    """Show applied and pending migrations."""
    from src.infrastructure.storage.sqlite.migrations import get_migration_status

    status = asyncio.run(get_migration_status())
    print(f"Database exists:    {status['exists']}")
    print(f"Current version:    {status['current_version'] or '-'}")
    print(f"Applied migrations: {', '.join(status['applied_migrations']) or '-'}")
    print(f"Pending migrations: {', '.join(status['pending_migrations']) or '-'}")


def cmd_verify(args: argparse.Namespace) -> None:
    """Run schema and ledger consistency checks."""
    from src.infrastructure.storage.sqlite.migrations import verify_schema_integrity

    checks = asyncio.run(verify_schema_integrity())
    for check in checks:
        print(f"[{check['status']}] {check['check']}")
        if check["status"] != "PASS":
            for key, value in check.items():
                if key not in ("check", "status"):
                    print(f"       {key}: {value}")
    if any(c["status"] != "PASS" for c in checks):
        sys.exit(1)


async def _reconcile(limit: int) -> int:
    from src.application.services import get_bookkeeping_reconciler
    from src.infrastructure.storage.sqlite import close_pool

    try:
        reconciler = await get_bookkeeping_reconciler()
        report = await reconciler.retry_pending(limit=limit)
    finally:
        await close_pool()

    print(f"Attempted: {report.attempted}  Resolved: {report.resolved}  Failed: {report.failed}")
    for task in report.tasks:
        outcome = task.resolved_entry_id or f"pending ({task.last_error})"
        print(f"  task {task.id} event {task.event_id}: {outcome}")
    return report.failed


def cmd_reconcile(args: argparse.Namespace) -> None:
    """Retry queued bookkeeping entries."""
    from src.config import configure_logging

    configure_logging()
    failed = asyncio.run(_reconcile(args.limit))
    if failed:
        sys.exit(2)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Stockroom management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # start / restart
    for name, func, help_text in (
        ("start", cmd_start, "Start the server"),
        ("restart", cmd_restart, "Restart the server"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
        p.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
        p.set_defaults(func=func)

    # stop
    p_stop = sub.add_parser("stop", help="Stop the server")
    p_stop.set_defaults(func=cmd_stop)

    # status
    p_status = sub.add_parser("status", help="Check if server is running")
    p_status.add_argument("--port", type=int, default=8000, help="Port to check (default: 8000)")
    p_status.set_defaults(func=cmd_status)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending database migrations")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip backup before migrating")
    p_migrate.set_defaults(func=cmd_migrate)

    sub.add_parser("db-status", help="Show migration status").set_defaults(func=cmd_db_status)
    sub.add_parser("verify", help="Run schema integrity checks").set_defaults(func=cmd_verify)

    # reconcile
    p_reconcile = sub.add_parser("reconcile", help="Retry queued bookkeeping entries")
    p_reconcile.add_argument("--limit", type=int, default=50, help="Max tasks to retry (default: 50)")
    p_reconcile.set_defaults(func=cmd_reconcile)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
