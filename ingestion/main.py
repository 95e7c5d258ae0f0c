"""
Process entry point: connect both stores, serve /metrics and run the
experiment on schedule.

Run with ``python -m ingestion.main`` (or the ``stack-github-ingest`` script).
Exits with status 1 on a configuration error or on the first failed pass.
"""

import asyncio
import logging
import sys

import uvicorn

from api.main import app
from core.config import settings
from core.database import build_engine, build_session_maker, verify_connection
from core.exceptions import IngestionError
from core.logging import setup_logging
from ingestion.extractors.github_extractor import GitHubExtractor
from ingestion.extractors.stackoverflow_extractor import StackOverflowExtractor
from ingestion.loaders.postgres_loader import PostgresLoader
from ingestion.runner import ExperimentRunner
from ingestion.scheduler import ExperimentScheduler
from schemas.entities import build_roster

logger = logging.getLogger(__name__)


async def serve() -> int:
    """Run until interrupted (0) or until an experiment fails (1)"""
    setup_logging()

    stackoverflow_engine = build_engine(settings.STACKOVERFLOW_DATABASE_URL)
    github_engine = build_engine(settings.GITHUB_DATABASE_URL)

    try:
        try:
            credential = settings.require_github_token()
            roster = build_roster(settings.TRACKED_ENTITIES)
            lookback_windows = settings.lookback_windows()

            await verify_connection(stackoverflow_engine, "Stackoverflow")
            await verify_connection(github_engine, "GitHub")
        except IngestionError as e:
            logger.critical(
                f"Startup failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            return 1

        logger.info(f"Tracking {len(roster)} entities: {', '.join(e.name for e in roster)}")

        app.state.engines = {
            "stackoverflow": stackoverflow_engine,
            "github": github_engine,
        }

        async with build_session_maker(stackoverflow_engine)() as qa_session, \
                build_session_maker(github_engine)() as repo_session:

            runner = ExperimentRunner(
                qa_loader=PostgresLoader(qa_session),
                repo_loader=PostgresLoader(repo_session),
                stackoverflow=StackOverflowExtractor(),
                github=GitHubExtractor(),
                roster=roster,
                credential=credential,
                lookback_windows=lookback_windows,
            )
            scheduler = ExperimentScheduler(runner)

            server = uvicorn.Server(uvicorn.Config(
                app,
                host=settings.METRICS_HOST,
                port=settings.METRICS_PORT,
                log_level=settings.LOG_LEVEL.lower(),
            ))

            server_task = asyncio.create_task(server.serve())
            failure_task = asyncio.create_task(scheduler.wait_for_failure())
            scheduler.start()

            done, _ = await asyncio.wait(
                {server_task, failure_task},
                return_when=asyncio.FIRST_COMPLETED
            )

            if failure_task in done:
                error = failure_task.result()
                logger.critical(f"Shutting down after failed experiment: {error}")
                await scheduler.stop()
                server.should_exit = True
                await server_task
                return 1

            failure_task.cancel()
            await scheduler.stop()

            if not server.started:
                logger.critical(
                    f"Metrics server could not start on {settings.METRICS_HOST}:{settings.METRICS_PORT}"
                )
                return 1

            logger.info("Metrics server stopped; exiting")
            return 0

    finally:
        await stackoverflow_engine.dispose()
        await github_engine.dispose()


def main():
    sys.exit(asyncio.run(serve()))


if __name__ == "__main__":
    main()
