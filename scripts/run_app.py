#!/usr/bin/env python3
"""Utility to prepare the article cache and launch the news feed API.

This script handles:
- Checking that NEWS_API_KEY is available
- Creating (or resetting) the article cache directory
- Starting the FastAPI backend with uvicorn
- Fetching articles once and printing them (--fetch-once)
"""

from __future__ import annotations

import argparse
import json
import os
import shutil
import subprocess
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
UVICORN_APP = "news_feed.api.server:app"


def check_env_vars() -> list[str]:
    """Check for required environment variables and return list of missing ones."""
    required = ["NEWS_API_KEY"]
    optional = ["NEWS_COUNTRY", "NEWS_CATEGORY", "CACHE_PATH"]

    missing = [var for var in required if not os.environ.get(var)]

    if missing:
        print(f"[env] WARNING: Missing required environment variables: {', '.join(missing)}")
        print("[env] Cached articles will be served, but no fresh fetch can succeed.")

    for var in optional:
        if not os.environ.get(var):
            print(f"[env] Note: Optional variable {var} not set.")

    return missing


def ensure_cache_dir(cache_path: Path, reset: bool = False) -> None:
    """Ensure the directory holding the article cache exists.

    Args:
        cache_path: Location of the cache file.
        reset: If True, delete the cache directory and start fresh.
    """
    cache_dir = cache_path.parent
    if reset and cache_dir.exists():
        print(f"[cache] Resetting article cache at {cache_dir}...")
        shutil.rmtree(cache_dir)

    if not cache_dir.exists():
        print(f"[cache] Creating cache directory at {cache_dir}...")
        cache_dir.mkdir(parents=True, exist_ok=True)
    else:
        print(f"[cache] Cache directory exists at {cache_dir}")


def fetch_once(cache_path: Path, offline: bool = False) -> int:
    """Run a single article request and print the outcome as JSON."""
    from news_feed.config import settings
    from news_feed.core.repository import build_repository

    config = settings.model_copy(
        update={"cache_path": str(cache_path), "offline": offline or settings.offline}
    )
    repository = build_repository(config)
    try:
        result = repository.get_articles()
    finally:
        repository.close()

    if result.is_failure:
        print(json.dumps({
            "kind": result.failure.kind.value,
            "message": result.failure.user_message,
            "retryable": result.failure.retryable,
        }, indent=2))
        return 1

    print(json.dumps(
        [a.model_dump(mode="json") for a in result.value],
        indent=2,
        ensure_ascii=False,
    ))
    return 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Prepare the article cache, then start the news feed API."
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host/interface for the FastAPI server (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the FastAPI server (default: 8000).",
    )
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable uvicorn auto-reload (enabled by default).",
    )
    parser.add_argument(
        "--reset-cache",
        action="store_true",
        help="Delete the cached article snapshot before starting.",
    )
    parser.add_argument(
        "--fetch-once",
        action="store_true",
        help="Fetch articles once, print them and exit instead of serving.",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Never contact NewsAPI; serve only the cached snapshot.",
    )
    parser.add_argument(
        "--skip-env-check",
        action="store_true",
        help="Skip checking for required environment variables.",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    from dotenv import load_dotenv

    env_file = ROOT_DIR / ".env"
    if env_file.exists():
        load_dotenv(env_file)
        print(f"[env] Loaded environment from {env_file}")

    if not args.skip_env_check:
        check_env_vars()

    from news_feed.config import settings

    cache_path = Path(settings.cache_path)
    if not cache_path.is_absolute():
        cache_path = ROOT_DIR / cache_path
    ensure_cache_dir(cache_path, reset=args.reset_cache)

    if args.fetch_once:
        return fetch_once(cache_path, offline=args.offline)

    env = os.environ.copy()
    env.setdefault("CACHE_PATH", str(cache_path))
    if args.offline:
        env["OFFLINE"] = "true"
        print("[mode] Running in OFFLINE mode (cached articles only)")

    backend_cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        UVICORN_APP,
        "--host",
        args.host,
        "--port",
        str(args.port),
    ]
    if not args.no_reload:
        backend_cmd.append("--reload")

    print(f"[backend] {' '.join(backend_cmd)}")
    print(f"[runner] API docs: http://{args.host}:{args.port}/docs")
    try:
        return subprocess.call(backend_cmd, cwd=ROOT_DIR, env=env)  # noqa: S603
    except KeyboardInterrupt:
        print("\n[runner] Caught KeyboardInterrupt. Shutting down...")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
