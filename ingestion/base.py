"""
Abstract base class for source clients with request and metrics handling
"""

from abc import ABC
from typing import Any, Dict, Optional, Type, TypeVar
import logging
import time

import httpx
from pydantic import BaseModel, ValidationError

from core.config import settings
from core.exceptions import AuthenticationError, FetchError, ResponseFormatError
from core.metrics import record_fetch
from models.base import SourceType

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class DataSource(ABC):
    """
    Base class for the Stack Exchange and GitHub clients.

    Responsibilities:
    - One GET per call, no retry
    - Mapping transport, status and decoding failures onto FetchError
    - Recording call rate and call count after a successful fetch
    """

    def __init__(
        self,
        source_type: SourceType,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.source_type = source_type
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    @property
    def source_name(self) -> str:
        return self.source_type.value

    def _client(self, headers: Optional[Dict[str, str]] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport
        )

    async def _get_json(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: Dict[str, Any],
        payload_model: Type[PayloadT],
        list_body: bool = False
    ) -> PayloadT:
        """
        GET ``path`` and decode the body into ``payload_model``.

        With ``list_body`` the endpoint must return a bare JSON array, which is
        decoded as ``{"items": [...]}``. Otherwise it must return an object.

        Raises:
            AuthenticationError: On HTTP 401/403
            FetchError: On transport failure or any other non-2xx status
            ResponseFormatError: If the body is not JSON of the expected shape
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {url} params={params}")

        try:
            response = await client.get(path, params=params)
        except httpx.HTTPError as e:
            raise FetchError(
                f"Request to {self.source_name} failed",
                context={"source": self.source_name, "url": url},
                original_exception=e
            )

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed for {url}",
                context={
                    "source": self.source_name,
                    "url": url,
                    "status_code": response.status_code
                }
            )

        if not response.is_success:
            raise FetchError(
                f"{self.source_name} returned HTTP {response.status_code}",
                context={
                    "source": self.source_name,
                    "url": url,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ResponseFormatError(
                "Failed to parse JSON response",
                context={
                    "source": self.source_name,
                    "url": url,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

        expected_type = list if list_body else dict
        if not isinstance(data, expected_type):
            raise ResponseFormatError(
                f"Expected a JSON {'array' if list_body else 'object'}, got {type(data).__name__}",
                context={
                    "source": self.source_name,
                    "url": url,
                    "expected": payload_model.__name__
                }
            )

        try:
            if list_body:
                data = {"items": data}
            return payload_model.model_validate(data)
        except ValidationError as e:
            raise ResponseFormatError(
                "Unexpected response shape",
                context={
                    "source": self.source_name,
                    "url": url,
                    "expected": payload_model.__name__
                },
                original_exception=e
            )

    def _record_call(self, started_at: float, records: int) -> None:
        """Observe call rate and bump the call counter for a finished fetch"""
        elapsed = time.perf_counter() - started_at
        record_fetch(self.source_type, elapsed, records)
        logger.info(
            f"Fetched {records} records from {self.source_name} in {elapsed:.2f}s"
        )
