"""Fan out article fetches per topic with retries and partitioned errors."""

import asyncio
import random

from dotenv import load_dotenv

from perspective import setup_logging
from perspective.parallel import ParallelConfig, execute_parallel, process_with_errors, retry_with_backoff


async def fetch_topic(topic: str) -> list[str]:
    await asyncio.sleep(random.uniform(0.05, 0.2))
    if topic == "locked":
        raise PermissionError("invalid API key for topic feed")
    if random.random() < 0.3:
        raise ConnectionError(f"upstream timeout for {topic}")
    return [f"{topic}-article-{n}" for n in range(3)]


async def fetch_with_retry(topic: str, config: ParallelConfig) -> list[str]:
    return await retry_with_backoff(
        lambda: fetch_topic(topic),
        max_retries=config.retry.max_retries,
        initial_delay=0.1,
        max_delay=config.retry.max_delay,
        backoff_factor=config.retry.backoff_factor,
        retry_condition=lambda error: "API key" not in str(error),
    )


async def main() -> None:
    # Load environment variables from .env if present
    load_dotenv()
    setup_logging()
    config = ParallelConfig.from_env()

    topics = ["politics", "economy", "climate", "technology", "locked", "health"]

    print("▶ Aggregating articles...")
    outcome = await process_with_errors(
        topics,
        lambda topic: fetch_with_retry(topic, config),
        on_error=lambda error, topic: print(f"  ✗ {topic}: {error}"),
        **config.partition_kwargs(),
    )

    articles = sorted({article for result in outcome.results for article in result})
    print(f"\nFetched {len(articles)} unique articles from {outcome.success_count} topics")
    print(f"Failed topics: {outcome.failed_items}")

    summary = await execute_parallel(
        {
            "article_count": lambda: asyncio.sleep(0, result=len(articles)),
            "failed_count": lambda: asyncio.sleep(0, result=outcome.failure_count),
        }
    )
    print("Summary:", summary)


if __name__ == "__main__":
    asyncio.run(main())
