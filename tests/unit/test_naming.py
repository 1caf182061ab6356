"""Tests for session namers."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import pytest

from caveatbot.naming import UNTITLED, HeuristicNamer, LLMError, LLMNamer, parse_name


def text_response(text):
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


class TestHeuristicNamer:
    """Tests for HeuristicNamer."""

    def test_first_words(self):
        assert HeuristicNamer().name_for("fix auth bug in the login flow") == "Fix Auth Bug"

    def test_strips_punctuation(self):
        assert HeuristicNamer(max_words=2).name_for("  refactor, parser!! now") == "Refactor Parser"

    def test_empty_description(self):
        assert HeuristicNamer().name_for("   ") == UNTITLED


class TestParseName:
    """Tests for parse_name."""

    def test_json_object(self):
        assert parse_name('{"name": "Auth Fix"}') == "Auth Fix"

    def test_raw_text_fallback(self):
        assert parse_name("  Auth Fix \n") == "Auth Fix"

    def test_code_fenced_json(self):
        assert parse_name("```json\n{\"name\": \"Auth Fix\"}\n```") == "Auth Fix"

    def test_bare_code_fence(self):
        assert parse_name("```\n{\"name\": \"Auth Fix\"}\n```\n") == "Auth Fix"

    def test_json_without_name(self):
        assert parse_name('{"title": "x"}') == '{"title": "x"}'


class TestLLMNamer:
    """Tests for LLMNamer with a mocked Anthropic client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def namer(self, client):
        return LLMNamer(api_key="test-key", _client=client)

    def test_uses_model_reply(self, namer, client):
        client.messages.create.return_value = text_response('{"name": "Login Bug"}')

        assert namer.name_for("fix the login bug") == "Login Bug"

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == namer.model
        assert kwargs["temperature"] == 0.2
        assert "fix the login bug" in kwargs["messages"][0]["content"]

    def test_api_error_falls_back_to_heuristic(self, namer, client):
        client.messages.create.side_effect = anthropic.APIError(
            "overloaded", request=MagicMock(), body=None
        )
        assert namer.name_for("fix the login bug") == "Fix The Login"

    def test_empty_reply_falls_back(self, namer, client):
        client.messages.create.return_value = text_response("   ")
        assert namer.name_for("update readme") == "Update Readme"

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.delenv("ANTHROPIC_AUTH_TOKEN", raising=False)
        namer = LLMNamer()
        with pytest.raises(LLMError):
            namer._get_client()
        assert namer.name_for("write tests") == "Write Tests"

    def test_empty_description_skips_call(self, namer, client):
        assert namer.name_for("") == UNTITLED
        client.messages.create.assert_not_called()
