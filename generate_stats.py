"""Main entry point for the GitHub statistics generator.

This script collects the statistics snapshot using the application service
and renders it into SVG images.
"""
import asyncio
import logging
import sys
from profile_stats.application.stats_service import StatsService
from profile_stats.domain.exceptions import AggregationError, ConfigurationError
from profile_stats.infrastructure.configuration import Settings, load_environment
from profile_stats.infrastructure.github_client import GitHubClient
from profile_stats.infrastructure.svg_renderer import TemplateImageGenerator


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Execute the statistics collection and rendering."""
    load_environment()

    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)
    logger.info(f"Generating GitHub statistics for {settings.github_actor}")

    async with GitHubClient(
        settings.access_token,
        api_url=settings.api_url,
        request_timeout=settings.request_timeout,
        graphql_retry_attempts=settings.graphql_retry_attempts,
        rest_retry_attempts=settings.rest_retry_attempts
    ) as github_client:
        service = StatsService(
            github_client=github_client,
            login=settings.github_actor,
            include_contributed=not settings.exclude_forked_repos,
            excluded_repos=settings.excluded_repos,
            excluded_langs=settings.excluded_langs,
            language_limit=settings.language_limit,
            max_concurrency=settings.max_concurrency,
            request_timeout=settings.request_timeout,
            max_pages=settings.max_pages
        )

        try:
            snapshot = await service.collect_stats()
        except AggregationError as e:
            logger.error(f"Statistics collection failed: {e}", exc_info=True)
            sys.exit(1)

    # Log results
    logger.info("=" * 50)
    logger.info("Statistics:")
    logger.info(f"  Name: {snapshot.name}")
    logger.info(f"  Repositories: {len(snapshot.repos)}")
    logger.info(f"  Stars: {snapshot.stargazers}  Forks: {snapshot.forks}")
    logger.info(f"  Contributions: {snapshot.total_contributions}")
    logger.info(f"  Lines changed: +{snapshot.lines_changed[0]} / -{snapshot.lines_changed[1]}")
    logger.info(f"  Views: {snapshot.views}")
    logger.info(f"  Languages: {', '.join(language.name for language in snapshot.languages)}")
    logger.info("=" * 50)

    renderer = TemplateImageGenerator(settings.template_folder, settings.output_folder)
    renderer.generate_overview(snapshot)
    renderer.generate_languages(snapshot)
    renderer.generate_contributions_grid(snapshot)


if __name__ == "__main__":
    asyncio.run(main())
