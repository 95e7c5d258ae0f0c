"""
Unit tests for the Stack Exchange and GitHub clients
"""

from datetime import datetime, timezone

import httpx
import pytest

from core.exceptions import AuthenticationError, FetchError, ResponseFormatError
from ingestion.extractors.github_extractor import GitHubExtractor
from ingestion.extractors.stackoverflow_extractor import StackOverflowExtractor
from schemas.records import RepoItemKind

SO_URL = "https://stackoverflow.test/2.2"
GH_URL = "https://github.test"

SINCE = datetime(2024, 1, 13, 0, 0, tzinfo=timezone.utc)


def static_transport(response: httpx.Response) -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: response)


class TestStackOverflowExtractor:
    """Test Stack Overflow thread fetching"""

    @pytest.mark.asyncio
    async def test_fetch_threads(self, stackoverflow_transport):
        extractor = StackOverflowExtractor(api_url=SO_URL, transport=stackoverflow_transport)

        threads = await extractor.fetch_threads("Prometheus", SINCE)

        assert [t.question_id for t in threads] == [1001, 1002]
        assert threads[0].answers == []
        assert [a.answer_id for a in threads[1].answers] == [5001]
        assert threads[1].link == "https://stackoverflow.com/q/1002"

    @pytest.mark.asyncio
    async def test_question_query(self, stackoverflow_transport):
        extractor = StackOverflowExtractor(api_url=SO_URL, transport=stackoverflow_transport)

        await extractor.fetch_threads("Prometheus", SINCE)

        # 1 question page + 1 answer page per question
        assert len(stackoverflow_transport.requests) == 3

        params = stackoverflow_transport.requests[0].url.params
        assert params["tagged"] == "Prometheus"
        assert params["site"] == "stackoverflow"
        assert params["sort"] == "activity"
        assert params["order"] == "desc"
        assert params["pagesize"] == "5"
        assert params["fromdate"] == str(int(SINCE.timestamp()))

        answer_paths = [r.url.path for r in stackoverflow_transport.requests[1:]]
        assert answer_paths == ["/2.2/questions/1001/answers", "/2.2/questions/1002/answers"]

    @pytest.mark.asyncio
    async def test_no_since_omits_fromdate(self, stackoverflow_transport):
        extractor = StackOverflowExtractor(api_url=SO_URL, transport=stackoverflow_transport)

        await extractor.fetch_threads("Go")

        assert "fromdate" not in stackoverflow_transport.requests[0].url.params

    @pytest.mark.asyncio
    async def test_records_call_metrics(self, stackoverflow_transport, metric):
        extractor = StackOverflowExtractor(api_url=SO_URL, transport=stackoverflow_transport)
        labels = {"endpoint": "stackoverflow_endpoint"}

        calls_before = metric("total_stackoverflow_api_calls_total")
        rate_before = metric("stackoverflow_api_calls_per_second_count", labels)
        data_before = metric("data_collected_per_second_count", {"source": "stackoverflow"})

        await extractor.fetch_threads("Docker", SINCE)

        # One logical call, however many HTTP requests it took
        assert metric("total_stackoverflow_api_calls_total") == calls_before + 1
        assert metric("stackoverflow_api_calls_per_second_count", labels) == rate_before + 1
        assert metric("data_collected_per_second_count", {"source": "stackoverflow"}) == data_before + 1

    @pytest.mark.asyncio
    async def test_server_error(self, metric):
        extractor = StackOverflowExtractor(
            api_url=SO_URL,
            transport=static_transport(httpx.Response(500, text="Internal Server Error"))
        )
        calls_before = metric("total_stackoverflow_api_calls_total")

        with pytest.raises(FetchError) as exc_info:
            await extractor.fetch_threads("Docker", SINCE)

        assert exc_info.value.context["status_code"] == 500
        assert metric("total_stackoverflow_api_calls_total") == calls_before

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        extractor = StackOverflowExtractor(api_url=SO_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(FetchError) as exc_info:
            await extractor.fetch_threads("Docker", SINCE)

        assert isinstance(exc_info.value.original_exception, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        extractor = StackOverflowExtractor(
            api_url=SO_URL,
            transport=static_transport(httpx.Response(200, text="<html>not json</html>"))
        )

        with pytest.raises(ResponseFormatError):
            await extractor.fetch_threads("Docker", SINCE)

    @pytest.mark.asyncio
    async def test_unexpected_shape(self):
        extractor = StackOverflowExtractor(
            api_url=SO_URL,
            transport=static_transport(httpx.Response(200, json={"items": [{"title": "no id"}]}))
        )

        with pytest.raises(ResponseFormatError) as exc_info:
            await extractor.fetch_threads("Docker", SINCE)

        assert exc_info.value.context["expected"] == "QuestionsPage"

    @pytest.mark.asyncio
    async def test_bare_array_rejected(self, mock_questions):
        """Stack Exchange always wraps results in an object"""
        extractor = StackOverflowExtractor(
            api_url=SO_URL,
            transport=static_transport(httpx.Response(200, json=mock_questions))
        )

        with pytest.raises(ResponseFormatError) as exc_info:
            await extractor.fetch_threads("Go")

        assert exc_info.value.context["expected"] == "QuestionsPage"

    @pytest.mark.asyncio
    async def test_answer_page_failure_aborts_fetch(self, mock_questions):
        def handler(request):
            if request.url.path.endswith("/answers"):
                return httpx.Response(502)
            return httpx.Response(200, json={"items": mock_questions})

        extractor = StackOverflowExtractor(api_url=SO_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(FetchError):
            await extractor.fetch_threads("Docker", SINCE)


class TestGitHubExtractor:
    """Test GitHub issue and comment fetching"""

    @pytest.mark.asyncio
    async def test_fetch_items(self, github_transport):
        extractor = GitHubExtractor(api_url=GH_URL, transport=github_transport)

        items = await extractor.fetch_items("prometheus", "prometheus", "test_token", SINCE)

        assert [(i.kind, i.body) for i in items] == [
            (RepoItemKind.QUESTION, "A"),
            (RepoItemKind.ANSWER, "B"),
            (RepoItemKind.ANSWER, "C"),
        ]

    @pytest.mark.asyncio
    async def test_issue_query(self, github_transport):
        extractor = GitHubExtractor(api_url=GH_URL, transport=github_transport)

        await extractor.fetch_items("openai", "gym", "test_token", SINCE)

        issues_request, comments_request = github_transport.requests
        assert issues_request.url.path == "/repos/openai/gym/issues"
        assert issues_request.url.params["state"] == "open"
        assert issues_request.url.params["since"] == "2024-01-13T00:00:00Z"
        assert issues_request.headers["Authorization"] == "Bearer test_token"
        assert comments_request.url.path == "/repos/openai/gym/issues/7/comments"

    @pytest.mark.asyncio
    async def test_null_bodies_become_empty(self):
        def handler(request):
            if request.url.path.endswith("/comments"):
                return httpx.Response(200, json=[{"body": None}])
            return httpx.Response(200, json=[{"number": 1, "body": None}])

        extractor = GitHubExtractor(api_url=GH_URL, transport=httpx.MockTransport(handler))

        items = await extractor.fetch_items("golang", "go", "test_token")

        assert [i.body for i in items] == ["", ""]

    @pytest.mark.asyncio
    async def test_wrapped_issue_list_rejected(self):
        """GitHub list endpoints return a bare array"""
        extractor = GitHubExtractor(
            api_url=GH_URL,
            transport=static_transport(httpx.Response(200, json={"items": []}))
        )

        with pytest.raises(ResponseFormatError) as exc_info:
            await extractor.fetch_items("golang", "go", "test_token")

        assert exc_info.value.context["expected"] == "IssuesPage"

    @pytest.mark.asyncio
    async def test_wrapped_comment_list_rejected(self, mock_issues):
        def handler(request):
            if request.url.path.endswith("/comments"):
                return httpx.Response(200, json={"items": [{"body": "B"}]})
            return httpx.Response(200, json=mock_issues)

        extractor = GitHubExtractor(api_url=GH_URL, transport=httpx.MockTransport(handler))

        with pytest.raises(FetchError):
            await extractor.fetch_items("golang", "go", "test_token")

    @pytest.mark.asyncio
    async def test_bad_credential(self, github_transport, metric):
        extractor = GitHubExtractor(api_url=GH_URL, transport=github_transport)
        calls_before = metric("total_github_api_calls_total")

        with pytest.raises(AuthenticationError) as exc_info:
            await extractor.fetch_items("docker", "docker", "wrong_token", SINCE)

        assert exc_info.value.context["status_code"] == 401
        assert metric("total_github_api_calls_total") == calls_before

    @pytest.mark.asyncio
    async def test_records_call_metrics(self, github_transport, metric):
        extractor = GitHubExtractor(api_url=GH_URL, transport=github_transport)
        labels = {"endpoint": "github_endpoint"}

        calls_before = metric("total_github_api_calls_total")
        rate_before = metric("github_api_calls_per_second_count", labels)
        data_before = metric("data_collected_per_second_sum", {"source": "github"})

        await extractor.fetch_items("docker", "docker", "test_token", SINCE)

        assert metric("total_github_api_calls_total") == calls_before + 1
        assert metric("github_api_calls_per_second_count", labels) == rate_before + 1
        assert metric("data_collected_per_second_sum", {"source": "github"}) > data_before

    @pytest.mark.asyncio
    async def test_not_found(self):
        extractor = GitHubExtractor(
            api_url=GH_URL,
            transport=static_transport(httpx.Response(404, json={"message": "Not Found"}))
        )

        with pytest.raises(FetchError) as exc_info:
            await extractor.fetch_items("nobody", "nothing", "test_token")

        assert not isinstance(exc_info.value, AuthenticationError)
