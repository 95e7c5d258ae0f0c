# ============================================================================
# File: ingestion/runner.py
# Description: Experiment orchestrator for the Stack Overflow / GitHub stores
# ============================================================================
"""
Experiment Runner - drives fetch and write for every tracked entity.

A pass walks the roster once for a single lookback window:

1. Fetch Stack Overflow threads active since ``now - lookback``
2. Write them to the QA store
3. Fetch open GitHub issues/comments updated since ``now - lookback``
4. Write them to the repository store
5. Add the fetched counts to the pass totals

The first failure for any entity stops the pass and is re-raised; nothing
after it runs.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
import logging

from core.exceptions import IngestionError
from core.metrics import record_pass_totals
from ingestion.extractors.github_extractor import GitHubExtractor
from ingestion.extractors.stackoverflow_extractor import StackOverflowExtractor
from ingestion.loaders.postgres_loader import PostgresLoader
from models.base import SourceType
from schemas.entities import TrackedEntity

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EntityResult:
    """Outcome of one entity's fetch/write pipeline within a pass"""

    entity: TrackedEntity
    stackoverflow_records: int = 0
    github_records: int = 0
    error: Optional[IngestionError] = None
    phase: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ExperimentRunner:
    """
    Orchestrates passes over the tracked roster.

    Responsibilities:
    - Run each entity's pipeline and collect an EntityResult
    - Stop at the first failed entity
    - Add pass totals to the matching lookback window counters
    """

    def __init__(
        self,
        qa_loader: PostgresLoader,
        repo_loader: PostgresLoader,
        stackoverflow: StackOverflowExtractor,
        github: GitHubExtractor,
        roster: Sequence[TrackedEntity],
        credential: str,
        lookback_windows: Dict[timedelta, str],
        clock: Callable[[], datetime] = utcnow
    ):
        self.qa_loader = qa_loader
        self.repo_loader = repo_loader
        self.stackoverflow = stackoverflow
        self.github = github
        self.roster = list(roster)
        self.credential = credential
        self.lookback_windows = dict(lookback_windows)
        self.clock = clock

    async def run_entity(self, entity: TrackedEntity, since: datetime) -> EntityResult:
        """
        Fetch and write both sources for one entity.

        Errors are captured in the returned result rather than raised.
        """
        result = EntityResult(entity=entity)

        try:
            result.phase = "stackoverflow_fetch"
            threads = await self.stackoverflow.fetch_threads(entity.name, since)

            result.phase = "stackoverflow_write"
            await self.qa_loader.write_qa_data(threads, entity.table_token)
            result.stackoverflow_records = len(threads)

            result.phase = "github_fetch"
            items = await self.github.fetch_items(
                entity.owner, entity.repo_name, self.credential, since
            )

            result.phase = "github_write"
            await self.repo_loader.write_repo_data(items, entity.table_token)
            result.github_records = len(items)

        except IngestionError as e:
            result.error = e
            return result

        result.phase = None
        return result

    async def run_pass(self, lookback: timedelta) -> Dict[str, Any]:
        """
        Run every tracked entity once for a lookback window.

        Args:
            lookback: How far back from now to fetch

        Returns:
            Dictionary with pass statistics:
            - lookback_days: Lookback in days
            - window: Window label, or None if the lookback matches none
            - entities: Number of entities processed
            - stackoverflow_records / github_records: Fetched totals

        Raises:
            IngestionError: The first entity failure, unchanged
        """
        since = self.clock() - lookback
        window = self.lookback_windows.get(lookback)

        logger.info(
            f"Starting pass: lookback={lookback.days}d window={window} "
            f"since={since.isoformat()} entities={len(self.roster)}"
        )

        totals = {SourceType.STACKOVERFLOW: 0, SourceType.GITHUB: 0}

        for entity in self.roster:
            result = await self.run_entity(entity, since)

            if not result.ok:
                logger.error(
                    f"Pass aborted at {entity.name} during {result.phase}: {result.error.message}",
                    extra={"error_context": result.error.to_dict()}
                )
                raise result.error

            totals[SourceType.STACKOVERFLOW] += result.stackoverflow_records
            totals[SourceType.GITHUB] += result.github_records

            logger.info(
                f"{entity.name}: stackoverflow={result.stackoverflow_records} "
                f"github={result.github_records}"
            )

        if window is not None:
            for source, count in totals.items():
                record_pass_totals(source, window, count)
        else:
            logger.warning(
                f"Lookback of {lookback} matches no configured window; window counters unchanged"
            )

        summary = {
            "lookback_days": lookback / timedelta(days=1),
            "window": window,
            "entities": len(self.roster),
            "stackoverflow_records": totals[SourceType.STACKOVERFLOW],
            "github_records": totals[SourceType.GITHUB],
        }

        logger.info(
            f"Pass completed: window={window} "
            f"stackoverflow={summary['stackoverflow_records']} github={summary['github_records']}"
        )
        return summary

    async def run_experiment(self) -> List[Dict[str, Any]]:
        """Run one pass per configured lookback window, shortest first"""
        summaries = []
        for lookback in sorted(self.lookback_windows):
            summaries.append(await self.run_pass(lookback))
        return summaries
