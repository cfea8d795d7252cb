"""
Cache Usage Example

Demonstrates how to use the kvcache backends.

This example shows:
- Creating a file cache from an option map
- TTLs as seconds or timedeltas
- Namespaces
- Bulk operations and their aggregate results
"""

import asyncio
import logging
import tempfile
from datetime import timedelta

from kvcache import create_driver

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def example_file_cache(directory: str):
    """Example: Basic file cache usage."""
    logger.info("=" * 60)
    logger.info("Example 1: File cache")
    logger.info("=" * 60)

    cache = create_driver("file", {"dir": directory, "ttl": 600})

    await cache.set("user:42", {"name": "Alice", "roles": ["admin"]})
    await cache.set("session:abc", "token", ttl=timedelta(minutes=5))

    logger.info(f"user:42 -> {await cache.get('user:42')}")
    logger.info(f"missing -> {await cache.get('missing', 'fallback')}")
    logger.info(f"entry file: {cache.path_for('user:42')}")

    cache.namespace = "reports"
    await cache.set("daily", [1, 2, 3])
    logger.info(f"namespaced entry file: {cache.path_for('daily')}")

    stats = await cache.get_stats()
    logger.info(f"stats: {stats}")


async def example_bulk(directory: str):
    """Example: Bulk operations."""
    logger.info("=" * 60)
    logger.info("Example 2: Bulk operations")
    logger.info("=" * 60)

    cache = create_driver("file", {"dir": directory})

    ok = await cache.set_many({"a": 1, "b": object(), "c": 3})
    logger.info(f"set_many with one unserializable value -> {ok}")
    logger.info(f"get_many -> {await cache.get_many(['a', 'b', 'c'])}")

    ok = await cache.clear()
    logger.info(f"clear -> {ok}")


async def main():
    with tempfile.TemporaryDirectory() as directory:
        await example_file_cache(directory)
        await example_bulk(directory)


if __name__ == "__main__":
    asyncio.run(main())
