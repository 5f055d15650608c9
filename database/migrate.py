"""
Migration Runner
Main entry point for running database migrations using Alembic
"""
import sys
import os
import subprocess

# Add the project root to the Python path
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)


def alembic(*args):
    """Run an alembic command from the project root and echo its output."""
    result = subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True
    )
    if result.stdout:
        print(result.stdout)
    if result.returncode != 0:
        print(result.stderr)
        return False
    return True


def create_database():
    """Create tables straight from the models and stamp them as up to date"""
    print("=" * 50)
    print("Initializing Database...")
    print("=" * 50)

    from database.connection import init_db
    init_db()
    print("[INIT] Tables created.")

    if alembic("stamp", "head"):
        print("[INIT] Database initialized and stamped ✓")
        return True
    print("[INIT] Stamping failed ✗")
    return False


def run_migrations():
    print("Running database migrations...")
    ok = alembic("upgrade", "head")
    print("[MIGRATE] Migrations completed ✓" if ok else "[MIGRATE] Migration failed ✗")
    return ok


def rollback_migration():
    print("Rolling back last migration...")
    ok = alembic("downgrade", "-1")
    print("[MIGRATE] Rollback completed ✓" if ok else "[MIGRATE] Rollback failed ✗")
    return ok


def show_current():
    return alembic("current")


def show_history():
    return alembic("history")


def print_help():
    print("""
Database Migration Tool
=======================

Usage: python database/migrate.py [command]

Commands:
  init      Create all tables and stamp the latest revision
  run       Run all pending migrations (default)
  rollback  Rollback the last migration
  status    Show current migration status
  history   Show migration history
  help      Show this help message
""")


COMMANDS = {
    "init": create_database,
    "run": run_migrations,
    "rollback": rollback_migration,
    "status": show_current,
    "history": show_history,
    "help": print_help,
}


if __name__ == "__main__":
    command = sys.argv[1] if len(sys.argv) > 1 else "run"

    if command in COMMANDS:
        ok = COMMANDS[command]()
        sys.exit(0 if ok is not False else 1)
    else:
        print(f"Unknown command: {command}")
        print_help()
        sys.exit(1)
