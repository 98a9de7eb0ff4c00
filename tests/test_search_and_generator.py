import httpx
import pytest
import requests
from groq import APIConnectionError
from tavily.errors import UsageLimitExceededError

from middleware.error_handler import UpstreamFailure
from prompts import CONTEXT_SEPARATOR
from services.prediction_generator import PredictionGenerator
from services.search_service import SearchService
from tests.fakes import FakeGroq, FakeTavily


class TestSearchService:

    def test_joins_result_bodies(self, search_client):
        context = SearchService(search_client).fetch_match_context("Chelsea", "Arsenal")
        assert context == CONTEXT_SEPARATOR.join(search_client.contents)

    def test_query_and_result_count(self):
        client = FakeTavily(contents=["x"])
        SearchService(client, max_results=5).fetch_match_context("Inter", "Milan")

        [call] = client.calls
        assert call["query"].endswith("between Inter and Milan")
        assert call["max_results"] == 5

    def test_results_without_content_are_skipped(self):
        client = FakeTavily(contents=["first", "", "third"])
        context = SearchService(client).fetch_match_context("A", "B")
        assert context == f"first{CONTEXT_SEPARATOR}third"

    def test_no_results_is_empty_context(self):
        assert SearchService(FakeTavily(contents=[])).fetch_match_context("A", "B") == ""

    @pytest.mark.parametrize(
        "error",
        [
            UsageLimitExceededError("Monthly search quota exceeded."),
            requests.ConnectionError("connection refused"),
            requests.Timeout("read timed out"),
            httpx.ConnectError("connection refused"),
        ],
    )
    def test_client_error_is_upstream_failure(self, error):
        service = SearchService(FakeTavily(error=error))
        with pytest.raises(UpstreamFailure, match="Could not fetch match data.") as excinfo:
            service.fetch_match_context("Chelsea", "Arsenal")
        assert excinfo.value.__cause__ is error

    def test_programming_errors_are_not_masked(self):
        service = SearchService(FakeTavily(error=TypeError("search() got an unexpected keyword")))
        with pytest.raises(TypeError):
            service.fetch_match_context("Chelsea", "Arsenal")


class TestPredictionGenerator:

    def test_prompt_carries_teams_and_context(self, llm_client):
        generator = PredictionGenerator(llm_client, model="llama-3.1-8b-instant")
        text = generator.generate("Chelsea", "Arsenal", "Chelsea unbeaten in five.")

        assert text == llm_client.content
        [call] = llm_client.calls
        assert call["model"] == "llama-3.1-8b-instant"
        prompt = call["messages"][0]["content"]
        assert "between Chelsea and Arsenal" in prompt
        assert "Chelsea unbeaten in five." in prompt
        assert '"keyInsights"' in prompt

    def test_api_error_is_upstream_failure(self):
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        client = FakeGroq(error=APIConnectionError(request=request))

        with pytest.raises(UpstreamFailure, match="The AI service is unavailable."):
            PredictionGenerator(client, model="m").generate("A", "B", "")

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_empty_reply_is_upstream_failure(self, content):
        with pytest.raises(UpstreamFailure, match="empty response"):
            PredictionGenerator(FakeGroq(content=content), model="m").generate("A", "B", "ctx")
