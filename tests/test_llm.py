"""
Tests for prompt construction and the completion endpoint client.
"""

import pytest
import requests
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dataroom.components.config import Config
from dataroom.llm import prompts
from dataroom.llm.provider import (
    ASK_MAX_TOKENS, GENERATE_MAX_TOKENS, CompletionProvider, UpstreamError, extract_text
)
from dataroom.llm.synth import generate_csv_fallback
from dataroom.math.clusters import cluster_dataset
from dataroom.math.dataset import Dataset
from dataroom.math.regression import regress_columns
from dataroom.math.stats import summarize


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload or {}
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._payload


class FakeSession:
    """Records posted requests and replays a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def completion(text):
    return FakeResponse(200, {"choices": [{"text": text}]})


@pytest.fixture
def dataset():
    return Dataset(["x", "y", "name"], [
        ["1", "2", "a"],
        ["2", "4", "b"],
        ["3", "6", "c"],
        ["4", "8", "d"],
    ])


class TestBrief:
    """Tests for the analysis brief."""

    def test_summary_brief(self, dataset):
        brief = prompts.summary_brief(summarize(dataset))
        assert brief == "x{n:4,mean:2.500,sd:1.118}; y{n:4,mean:5.000,sd:2.236}"

    def test_regression_brief(self, dataset):
        regression = regress_columns(dataset, 0, 1)
        assert prompts.regression_brief(dataset, regression) == (
            "regression X=x Y=y slope=2.0000 intercept=0.0000 r=1.0000 r2=1.0000"
        )
        assert prompts.regression_brief(dataset, None) == "no regression"

    def test_clusters_brief(self, dataset):
        clusters = cluster_dataset(dataset, [0, 1], 2, seed=42)
        brief = prompts.clusters_brief(clusters)
        assert brief.startswith("kmeans k=2 features=x,y inertia=")
        assert brief.endswith("sizes=" + ",".join(str(c) for c in clusters.counts))
        assert prompts.clusters_brief(None) == "no clustering"

    def test_build_brief_lines(self, dataset):
        brief = prompts.build_brief(dataset, summarize(dataset))
        lines = brief.split("\n")
        assert len(lines) == 3
        assert lines[0].startswith("summary: x{n:4")
        assert lines[1:] == ["no regression", "no clustering"]

    def test_ask_prompt(self, dataset):
        prompt = prompts.build_ask_prompt(dataset, "What trend?", summarize(dataset))
        assert prompt.startswith("You are a data analyst. Given:")
        assert "schema: 0:x, 1:y, 2:name" in prompt
        assert "csv_preview:\nx,y,name\n1,2,a" in prompt
        assert "User question:\nWhat trend?" in prompt

    def test_ask_prompt_preview_is_capped(self):
        ds = Dataset(["n"], [[str(i)] for i in range(100)])
        prompt = prompts.build_ask_prompt(ds, "q", summarize(ds))
        preview = prompt.split("csv_preview:\n")[1].split("\n\nUser question:")[0]
        assert len(preview.split("\n")) == prompts.PREVIEW_ROWS


class TestGenerationHelpers:
    """Tests for the generation prompt helpers."""

    @pytest.mark.parametrize("requested, expected", [
        (None, 1000),
        (0, 1000),
        ("abc", 1000),
        (float("inf"), 1000),
        (10, 50),
        (300, 300),
        ("300", 300),
        (99999, 5000),
    ])
    def test_clamp_rows(self, requested, expected):
        assert prompts.clamp_rows(requested) == expected

    def test_generate_prompt(self):
        text = prompts.build_generate_prompt("bike rentals", 200)
        assert "Rows: about 200 lines" in text
        assert text.endswith("bike rentals\nCSV ONLY.")

    def test_unwrap_fence(self):
        assert prompts.unwrap_csv_fence("```csv\na,b\n1,2\n```") == "a,b\n1,2"
        assert prompts.unwrap_csv_fence("Here:\n```\na,b\n1,2\n```\nthanks") == "a,b\n1,2"
        assert prompts.unwrap_csv_fence("  a,b\n1,2  ") == "a,b\n1,2"

    def test_looks_like_csv(self):
        assert prompts.looks_like_csv("a,b\n1,2")
        assert not prompts.looks_like_csv("")
        assert not prompts.looks_like_csv("a,b")
        assert not prompts.looks_like_csv("Sure! Here is your data\nand more")


class TestExtractText:
    """Tests for reading completion payloads."""

    def test_text_choices(self):
        assert extract_text({"choices": [{"text": "a"}, {"text": "b"}]}) == "ab"

    def test_chat_choices(self):
        assert extract_text({"choices": [{"message": {"content": "hi"}}]}) == "hi"

    def test_no_choices(self):
        assert extract_text({}) == ""
        assert extract_text(None) == ""


class TestCompletionProvider:
    """Tests for the completion endpoint client."""

    def test_ask_request_body(self):
        session = FakeSession(completion("answer"))
        provider = CompletionProvider("http://llm/v1/completions", session=session, timeout=5)

        assert provider.ask("question") == "answer"
        call = session.calls[0]
        assert call["url"] == "http://llm/v1/completions"
        assert call["timeout"] == 5
        assert call["json"] == {
            "model": "local",
            "prompt": "question",
            "max_tokens": ASK_MAX_TOKENS,
            "temperature": 0.2
        }

    def test_upstream_error(self):
        session = FakeSession(FakeResponse(502, text="bad gateway"))
        provider = CompletionProvider(session=session)

        with pytest.raises(UpstreamError) as info:
            provider.ask("q")
        assert info.value.status_code == 502
        assert str(info.value) == "Upstream 502: bad gateway"

    def test_connection_error_propagates(self):
        session = FakeSession(error=requests.ConnectionError("refused"))
        provider = CompletionProvider(session=session)

        with pytest.raises(requests.RequestException):
            provider.ask("q")

    def test_generate_uses_model_csv(self):
        session = FakeSession(completion("```csv\ncity,temp\noslo,4\n```"))
        provider = CompletionProvider(session=session)

        assert provider.generate_csv("weather", 120) == "city,temp\noslo,4"
        body = session.calls[0]["json"]
        assert body["max_tokens"] == GENERATE_MAX_TOKENS
        assert "Rows: about 120 lines" in body["prompt"]

    def test_generate_falls_back_on_prose(self):
        session = FakeSession(completion("I cannot do that."))
        provider = CompletionProvider(session=session)

        text = provider.generate_csv("t: a, b", None)
        assert text == generate_csv_fallback("t: a, b", 1000, 1337)

    def test_generate_falls_back_on_upstream_error(self):
        session = FakeSession(FakeResponse(500, text="boom"))
        provider = CompletionProvider(session=session)

        text = provider.generate_csv("t: a, b", 10)
        assert text == generate_csv_fallback("t: a, b", 50, 1337)

    def test_generate_fallback_seed(self):
        session = FakeSession(FakeResponse(500))
        provider = CompletionProvider(session=session)

        text = provider.generate_csv("t: a, b", 60, fallback_seed=3)
        assert text == generate_csv_fallback("t: a, b", 60, 3)

    def test_from_config(self):
        config = Config({
            'llm': {'endpoint': 'http://example/v1/completions', 'model': 'tiny', 'timeout': 3.0},
            'generate': {'default-rows': 80, 'min-rows': 60, 'max-rows': 90, 'fallback-seed': 5}
        })
        provider = CompletionProvider.from_config(config)

        assert provider.endpoint == 'http://example/v1/completions'
        assert provider.model == 'tiny'
        assert provider.timeout == 3.0
        assert (provider.default_rows, provider.min_rows, provider.max_rows) == (80, 60, 90)
        assert provider.fallback_seed == 5
