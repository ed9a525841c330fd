"""Unit tests for LLM utilities."""

import os
import pytest
from unittest.mock import patch

from pydantic_ai import Agent
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIResponsesModel

from gradepro.libs.llm import build_model, create_agent, is_google_model


@pytest.fixture
def configs():
    return {
        "llm": {
            "api_key": "test-openai-key",
            "google_api_key": "test-google-key",
            "settings": {"temperature": 0.2}
        },
        "grading": {"default_model": "gemini-2.5-flash"}
    }


def test_is_google_model():
    assert is_google_model("gemini-2.5-flash")
    assert is_google_model("Gemini-3-pro-preview")
    assert is_google_model("gemma-3-27b-it")
    assert not is_google_model("gpt-4o")


class TestCreateAgent:
    """Test the create_agent function."""

    def test_create_agent_with_defaults(self, configs, monkeypatch):
        """Default model comes from grading.default_model and keys reach the environment."""
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        agent = create_agent(configs)

        assert isinstance(agent, Agent)
        assert isinstance(agent.model, GoogleModel)
        assert os.environ.get('GOOGLE_API_KEY') == 'test-google-key'
        assert os.environ.get('OPENAI_API_KEY') == 'test-openai-key'

    def test_create_agent_with_openai_model(self, configs, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        agent = create_agent(configs=configs, model="gpt-4o")

        assert isinstance(agent.model, OpenAIResponsesModel)

    def test_empty_keys_do_not_overwrite_environment(self, configs, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "from-env")
        configs["llm"]["google_api_key"] = ""

        create_agent(configs)

        assert os.environ["GOOGLE_API_KEY"] == "from-env"

    def test_settings_are_merged_over_config(self, configs):
        """Call-site settings override llm.settings without dropping the rest."""
        with patch("gradepro.libs.llm.build_model", wraps=build_model) as mock_build:
            create_agent(configs, settings_dict={"max_tokens": 1000})

        mock_build.assert_called_once_with(
            "gemini-2.5-flash", {"temperature": 0.2, "max_tokens": 1000}
        )

    def test_create_agent_with_system_prompt(self, configs):
        custom_prompt = "You are an expert academic grader."
        agent = create_agent(configs=configs, system_prompt=custom_prompt)

        assert agent is not None

    def test_create_agent_missing_model(self):
        """Without a model argument or grading.default_model, a KeyError is raised."""
        with pytest.raises(KeyError, match="Key.*not found.*"):
            create_agent({})
