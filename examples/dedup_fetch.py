"""
dedup_fetch.py — Minimal coalescing example.

Demonstrates concurrent lookups for the same key sharing one slow call,
while a different key runs on its own.

Usage:
    python examples/dedup_fetch.py
"""

import asyncio
import logging

from coalesce import coalesced

calls: list[str] = []


@coalesced
async def load_profile(user_id: str) -> dict:
    calls.append(user_id)
    await asyncio.sleep(0.1)
    return {"id": user_id, "name": f"user-{user_id}"}


async def main() -> None:
    results = await asyncio.gather(
        load_profile("42"),
        load_profile("42"),
        load_profile("7"),
    )
    print(results)
    print(f"producer calls: {calls}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    asyncio.run(main())
