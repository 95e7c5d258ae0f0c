"""
GitHub REST API client.

Lists open issues of a repository and the comments on each issue, turning
issues into Question items and comments into Answer items.
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging
import time

import httpx

from core.config import settings
from ingestion.base import DataSource
from models.base import SourceType
from schemas.records import CommentsPage, IssuesPage, RepoItem, RepoItemKind

logger = logging.getLogger(__name__)

PER_PAGE = 30


class GitHubExtractor(DataSource):
    """
    Extract issues and comments from a GitHub repository.

    Authenticates with a static bearer token. Only the first page of open
    issues (and of each issue's comments) is read.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(
            source_type=SourceType.GITHUB,
            base_url=api_url or settings.GITHUB_API_URL,
            timeout=timeout,
            transport=transport
        )

    async def fetch_items(
        self,
        owner: str,
        repo_name: str,
        credential: str,
        since: Optional[datetime] = None
    ) -> List[RepoItem]:
        """
        Fetch open issues and their comments.

        Args:
            owner: Repository owner
            repo_name: Repository name
            credential: Bearer token
            since: Only issues updated at or after this time

        Returns:
            For each issue, its Question item followed by one Answer item
            per comment

        Raises:
            AuthenticationError: If GitHub rejects the token
            FetchError: On any other transport, status or decoding failure
        """
        started_at = time.perf_counter()

        headers = {
            "Authorization": f"Bearer {credential}",
            "Accept": "application/vnd.github+json",
        }

        params = {"state": "open", "per_page": PER_PAGE}
        if since is not None:
            params["since"] = since.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

        items: List[RepoItem] = []

        async with self._client(headers=headers) as client:
            issues = await self._get_json(
                client, f"/repos/{owner}/{repo_name}/issues", params, IssuesPage, list_body=True
            )
            logger.debug(f"{owner}/{repo_name}: {len(issues.items)} open issues")

            for issue in issues.items:
                comments = await self._get_json(
                    client,
                    f"/repos/{owner}/{repo_name}/issues/{issue.number}/comments",
                    {"per_page": PER_PAGE},
                    CommentsPage,
                    list_body=True
                )

                items.append(RepoItem(kind=RepoItemKind.QUESTION, body=issue.body))
                items.extend(
                    RepoItem(kind=RepoItemKind.ANSWER, body=comment.body)
                    for comment in comments.items
                )

        self._record_call(started_at, len(items))
        return items
