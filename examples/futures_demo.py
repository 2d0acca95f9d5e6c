"""
Future Combinators Demo

Demonstrates aggregation, recovery, composition and polling.
"""

import asyncio
import logging
import random
import time

from futurekit import (
    Future,
    ThreadScheduler,
    WorkerPool,
    all_as_list,
    combine,
    exceptionally_compose,
    poll,
    successful_as_list,
)


def fetch_price(symbol: str) -> float:
    """Pretend to call a slow pricing service."""
    time.sleep(random.uniform(0.01, 0.1))
    if symbol == "BAD":
        raise LookupError(f"unknown symbol {symbol}")
    return round(random.uniform(10, 100), 2)


# Example 1: Ordered aggregation
def example_all_as_list(pool: WorkerPool):
    """All prices, in request order."""
    print("\n=== Example 1: all_as_list ===")

    symbols = ["AAA", "BBB", "CCC"]
    prices = all_as_list([pool.run(lambda s=s: fetch_price(s)) for s in symbols])
    print(f"Prices: {dict(zip(symbols, prices.get(timeout=5)))}")


# Example 2: Defaults for failures
def example_successful_as_list(pool: WorkerPool):
    """Failed lookups become None."""
    print("\n=== Example 2: successful_as_list ===")

    symbols = ["AAA", "BAD", "CCC"]
    prices = successful_as_list(
        [pool.run(lambda s=s: fetch_price(s)) for s in symbols],
        lambda e: None,
    )
    print(f"Prices: {dict(zip(symbols, prices.get(timeout=5)))}")


# Example 3: Asynchronous fallback
def example_exceptionally_compose(pool: WorkerPool):
    """Fall back to a second source when the first fails."""
    print("\n=== Example 3: exceptionally_compose ===")

    price = exceptionally_compose(
        pool.run(lambda: fetch_price("BAD")),
        lambda e: pool.run(lambda: fetch_price("AAA")),
    )
    print(f"Fallback price: {price.get(timeout=5)}")


# Example 4: Combining two results
def example_combine(pool: WorkerPool):
    """Spread between two prices."""
    print("\n=== Example 4: combine ===")

    spread = combine(
        pool.run(lambda: fetch_price("AAA")),
        pool.run(lambda: fetch_price("BBB")),
        lambda a, b: round(a - b, 2),
    )
    print(f"Spread: {spread.get(timeout=5)}")


# Example 5: Polling until a job finishes
async def example_poll(scheduler: ThreadScheduler):
    """Poll a job every 50ms and await the result."""
    print("\n=== Example 5: poll ===")

    finished_at = time.monotonic() + 0.3

    def job_status():
        if time.monotonic() < finished_at:
            return None
        return {"status": "done"}

    result: Future = poll(job_status, 0.05, scheduler)
    print(f"Job: {await result}")


def main():
    """Run all examples."""
    logging.basicConfig(level=logging.INFO)

    with WorkerPool() as pool, ThreadScheduler() as scheduler:
        example_all_as_list(pool)
        example_successful_as_list(pool)
        example_exceptionally_compose(pool)
        example_combine(pool)
        asyncio.run(example_poll(scheduler))


if __name__ == "__main__":
    main()
