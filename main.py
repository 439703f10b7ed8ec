"""
reviewquest entry point.

Probes the quest API and prints the current quest overview and first page.
"""

import asyncio

from loguru import logger

from reviewquest.services import (
    CacheManager,
    ClassifiedError,
    QuestService,
    ReviewsService,
)
from reviewquest.services.client import close_service_client
from reviewquest.settings import global_settings


async def main() -> None:
    """Main function"""
    logger.info(f"Starting reviewquest against {global_settings.api_base_url}...")

    # One cache shared by every service in the process
    cache = CacheManager(
        max_size=global_settings.cache_max_size, debug=global_settings.debug
    )
    quests = QuestService(cache=cache)
    reviews = ReviewsService(cache=cache)

    try:
        if not await quests.health_check():
            logger.error("Quest API is not available")
            return

        page = await quests.fetch_quests()
        logger.info(
            f"Loaded {len(page.quests)} of {page.total_count} quests "
            f"(more: {page.has_more})"
        )
        for quest in page.quests:
            logger.info(f"  - [{quest.state.value}] {quest.title} ({quest.priority.value})")

        overview = await reviews.fetch_overview()
        logger.info(
            f"Reviews: {overview.sentiment_breakdown.positive} positive, "
            f"{overview.sentiment_breakdown.negative} negative"
        )

    except ClassifiedError as e:
        logger.error(QuestService.get_error_message(e))
    finally:
        logger.info("Closing HTTP client...")
        await close_service_client()
        logger.info("reviewquest stopped")


if __name__ == "__main__":
    asyncio.run(main())
