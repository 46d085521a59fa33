"""OpenAI client bootstrap shared by the quiz commands."""

from __future__ import annotations

import os
from typing import Any, Mapping

from dotenv import find_dotenv, load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "DEFAULT_MAX_RETRIES", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_MAX_RETRIES = 0


def load_client(*, env: Mapping[str, str] | None = None, **kwargs: Any) -> Any:
    """Return an OpenAI client built from ``OPENAI_API_KEY``.

    A ``.env`` file in the working directory is honoured. Extra keyword
    arguments (``timeout``, ``base_url`` ...) go straight to the client.
    The SDK's automatic retries are off unless ``max_retries`` is passed.
    """

    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ
    api_key = (env.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs.setdefault("max_retries", DEFAULT_MAX_RETRIES)
    return OpenAI(api_key=api_key, **kwargs)
