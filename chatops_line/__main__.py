"""Entry point for the LINE broker daemon.

Run with:
  python -m chatops_line
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


def main() -> None:
    """Load .env and run the daemon."""
    # Explicit path resolution: CHATOPS_ENV_FILE > cwd search
    env_file = os.getenv("CHATOPS_ENV_FILE")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file)
    else:
        load_dotenv()

    from .daemon import run_daemon

    run_daemon()


if __name__ == "__main__":
    main()
