"""
Stack Exchange API client.

Fetches the five most recently active questions for a tag, each with its
five most recently active answers.
"""

from datetime import datetime
from typing import List, Optional
import logging
import time

import httpx

from core.config import settings
from ingestion.base import DataSource
from models.base import SourceType
from schemas.records import AnswersPage, QAThread, QuestionsPage

logger = logging.getLogger(__name__)

PAGE_SIZE = 5


class StackOverflowExtractor(DataSource):
    """
    Extract question threads from Stack Overflow.

    Every call issues 1 + N requests (question page, then one answer page per
    question). The first failed request aborts the whole fetch.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            source_type=SourceType.STACKOVERFLOW,
            base_url=api_url or settings.STACKOVERFLOW_API_URL,
            timeout=timeout,
            transport=transport
        )

    async def fetch_threads(self, tag: str, since: Optional[datetime] = None) -> List[QAThread]:
        """
        Fetch questions tagged ``tag`` with their answers.

        Args:
            tag: Stack Overflow tag
            since: Only questions with activity after this time

        Returns:
            Up to five threads, most recent activity first

        Raises:
            FetchError: On any transport, status or decoding failure
        """
        started_at = time.perf_counter()

        params = {
            "order": "desc",
            "sort": "activity",
            "tagged": tag,
            "site": "stackoverflow",
            "filter": "withbody",
            "pagesize": PAGE_SIZE,
        }
        if since is not None:
            params["fromdate"] = int(since.timestamp())

        threads: List[QAThread] = []

        async with self._client() as client:
            questions = await self._get_json(client, "/questions", params, QuestionsPage)
            logger.debug(f"Tag {tag}: {len(questions.items)} questions")

            for question in questions.items:
                answers = await self._get_json(
                    client,
                    f"/questions/{question.question_id}/answers",
                    {
                        "order": "desc",
                        "sort": "activity",
                        "site": "stackoverflow",
                        "filter": "withbody",
                        "pagesize": PAGE_SIZE,
                    },
                    AnswersPage
                )

                threads.append(QAThread(
                    question_id=question.question_id,
                    title=question.title,
                    body=question.body,
                    answers=answers.items
                ))

        self._record_call(started_at, len(threads))
        return threads
