"""AI Story Builder — dev launcher. Starts the API server in watch mode."""

import argparse
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "5000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()


def main():
    parser = argparse.ArgumentParser(description="AI Story Builder dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--database-url", default=None,
                        help="Database URL, e.g. memory:// or postgresql+psycopg://... "
                             "(default: SQLite file in the data directory)")
    parser.add_argument("--demo", action="store_true",
                        help="Clean and create demo project data")
    args = parser.parse_args()

    # Handle --demo: init storage and populate, then continue to dev server
    if args.demo:
        from story_builder import storage
        from story_builder.demo import create_demo_data
        storage.init_storage(args.data_dir or Path("data"), args.database_url)
        create_demo_data()
        storage.get_storage().close()

    # Build env for the server process so it picks up the same store
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())
    if args.database_url:
        env["DATABASE_URL"] = args.database_url

    proc = subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "story_builder.app:app", "--reload",
         "--host", HOST, "--port", BACKEND_PORT, "--log-level", LOG_LEVEL],
        cwd=ROOT, env=env,
    )

    def shutdown(*_):
        print("\nShutting down...")
        proc.terminate()
        proc.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    proc.wait()


if __name__ == "__main__":
    main()
