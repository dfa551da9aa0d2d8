"""
Configuration
=============

Settings loaded from the environment (and optionally a ``.env`` file).
"""

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError

from sql_agent.errors import ConfigurationError

DEFAULT_MODEL = "claude-3-5-sonnet-20240620"


class Settings(BaseModel):
    """Runtime configuration for the LLM, database and agent loop."""

    anthropic_api_key: str | None = Field(default=None, repr=False)
    model: str = DEFAULT_MODEL
    temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    max_tokens: int = Field(default=1024, gt=0)
    database_path: str = "./Chinook.db"
    top_k: int = Field(default=5, gt=0)
    pipeline_top_k: int = Field(default=10, gt=0)
    max_cycles: int = Field(default=15, ge=1)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional ``.env`` file loaded first (existing variables win);
                      by default the nearest ``.env`` at or above the
                      working directory

        Returns:
            Settings populated from the environment, defaults elsewhere
        """
        if env_file is not None:
            load_dotenv(env_file)
        else:
            load_dotenv(find_dotenv(usecwd=True))

        values = {
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY") or None,
            "model": os.getenv("SQL_AGENT_MODEL"),
            "temperature": os.getenv("SQL_AGENT_TEMPERATURE"),
            "max_tokens": os.getenv("SQL_AGENT_MAX_TOKENS"),
            "database_path": os.getenv("SQL_AGENT_DATABASE"),
            "top_k": os.getenv("SQL_AGENT_TOP_K"),
            "pipeline_top_k": os.getenv("SQL_AGENT_PIPELINE_TOP_K"),
            "max_cycles": os.getenv("SQL_AGENT_MAX_CYCLES"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        try:
            return cls(**{key: value for key, value in values.items() if value is not None})
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def require_api_key(self) -> str:
        """Return the API key or fail before any network call is made."""
        if not self.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set")
        return self.anthropic_api_key
