from __future__ import annotations

import os

from . import client as _client
from .client import TinyClient, TinyConfigurationError

TOKEN_ENV_VAR = "TINY_API_TOKEN"


def load_env_config(*, use_dotenv: bool = True) -> str:
    """Load the Tiny API token from the environment (optional .env)."""
    if use_dotenv:
        _client.load_dotenv()
    return os.getenv(TOKEN_ENV_VAR, "").strip()


def create_client_from_env(**kwargs) -> TinyClient:
    """Create a TinyClient from environment variables."""
    token = load_env_config()
    if not token:
        raise TinyConfigurationError(f"Missing {TOKEN_ENV_VAR} in environment.")
    return TinyClient(token=token, **kwargs)


__all__ = ["TOKEN_ENV_VAR", "load_env_config", "create_client_from_env"]
