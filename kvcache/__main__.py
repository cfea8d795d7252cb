"""
kvcache - Maintenance Entrypoint

Runs one-off maintenance commands against the env-configured cache:

    python -m kvcache stats
    python -m kvcache clear
"""

import argparse
import asyncio
import json
import logging
import sys

from .cache import close_all_caches, create_cache
from .config import load_config
from .errors import KVCacheError

logger = logging.getLogger("kvcache")


async def _run(command: str) -> int:
    cache = create_cache()
    try:
        if command == "stats":
            print(json.dumps(await cache.get_stats(), indent=2))
            return 0

        if await cache.clear():
            logger.info("Cache cleared")
            return 0
        logger.error("Cache clear finished with failures")
        return 1
    finally:
        await close_all_caches()


def main(argv: list[str] | None = None) -> int:
    """Parse arguments and run a maintenance command."""
    parser = argparse.ArgumentParser(prog="kvcache", description="Cache maintenance commands")
    parser.add_argument("command", choices=["stats", "clear"], help="Command to run")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    args = parser.parse_args(argv)

    try:
        config = load_config(env_file=args.env_file)
    except KVCacheError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Configuration error: %s", e.message, extra={"details": e.details})
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return asyncio.run(_run(args.command))
    except KVCacheError as e:
        logger.error("Cache error: %s", e.message, extra={"details": e.details})
        return 1


if __name__ == "__main__":
    sys.exit(main())
