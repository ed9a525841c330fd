"""LLM utilities for creating and configuring AI agents."""


import logging
import os
from typing import Any, Dict, Optional

from pydantic_ai import Agent
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel, GoogleModelSettings
from pydantic_ai.models.openai import OpenAIResponsesModel, OpenAIResponsesModelSettings

from gradepro.libs.config_loader import ConfigType, get_config


# Fix up logging level for httpx to WARNING to reduce noise
logging.getLogger("httpx").setLevel(logging.WARNING)

LOG = logging.getLogger(__name__)

GOOGLE_MODEL_PREFIXES = ("gemini", "gemma")


def is_google_model(model: str) -> bool:
    return model.lower().startswith(GOOGLE_MODEL_PREFIXES)


def _export_credentials(configs: ConfigType) -> None:
    """Copy API keys from config into the environment the providers read."""
    api_key = get_config("llm.api_key", configs, default="")
    google_api_key = get_config("llm.google_api_key", configs, default="")
    if api_key:
        os.environ['OPENAI_API_KEY'] = api_key
    if google_api_key:
        os.environ['GOOGLE_API_KEY'] = google_api_key


def build_model(model: str, settings_dict: Optional[Dict[str, Any]] = None) -> tuple[Model, Any]:
    """Pick the pydantic-ai model class for a model identifier.

    Returns the model together with the matching settings object (or None).
    """
    if is_google_model(model):
        settings = GoogleModelSettings(**settings_dict) if settings_dict else None
        return GoogleModel(model), settings
    settings = OpenAIResponsesModelSettings(**settings_dict) if settings_dict else None
    return OpenAIResponsesModel(model), settings


def create_agent(configs: ConfigType,
                 model: Optional[str] = None,
                 settings_dict: Optional[Dict[str, Any]] = None,
                 system_prompt: Optional[str] = None,
                 output_type: Any = str) -> Agent:
    """
    Create a pydantic-ai Agent for the requested model.

    Args:
        configs: Configuration dictionary (required)
        model: Model to use (overrides grading.default_model)
        settings_dict: Pydantic AI settings dict (overrides llm.settings values)
        system_prompt: System prompt for the agent (optional)
        output_type: Structured output type the agent must produce

    Returns:
        Configured Agent

    Raises:
        KeyError: If no model is given and grading.default_model is not configured
    """
    _export_credentials(configs)
    model = model or get_config("grading.default_model", configs)
    base_settings = get_config("llm.settings", configs, default={}) or {}

    settings_dict = base_settings | (settings_dict or {})
    llm_model, model_settings = build_model(model, settings_dict)
    LOG.debug("Creating agent for model %s with settings %s", model, settings_dict)

    kwargs: Dict[str, Any] = {
        "model": llm_model,
        "model_settings": model_settings,
        "output_type": output_type,
        "retries": 0,
    }
    if system_prompt:
        kwargs["system_prompt"] = system_prompt
    return Agent(**kwargs)
