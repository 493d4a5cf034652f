from __future__ import annotations

import json
import logging
import os
import time
from functools import lru_cache
from typing import Any

import openai
from openai import OpenAI

logger = logging.getLogger(__name__)


class LLMTimeoutError(RuntimeError):
    pass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def llm_enabled() -> bool:
    if not _env_bool("LLM_ENABLED", False):
        return False
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    return bool(api_key) and not _looks_like_placeholder(api_key)


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        base_url=(os.getenv("OPENAI_BASE_URL") or None),
        timeout=float(os.getenv("LLM_TIMEOUT_S", "20")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def _model() -> str:
    return (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 900,
    purpose: str = "unknown",
) -> dict[str, Any] | None:
    """Ask the model for a JSON object.

    Returns None when the LLM is disabled or the call fails for any reason other
    than a timeout, which raises LLMTimeoutError so callers can fail the request.
    """
    if not llm_enabled():
        return None

    started = time.perf_counter()
    try:
        response = _client().chat.completions.create(
            model=_model(),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
    except openai.APITimeoutError as exc:
        logger.warning("llm_json_timeout purpose=%s model=%s", purpose, _model())
        raise LLMTimeoutError(f"LLM call for {purpose} timed out.") from exc
    except Exception as exc:  # noqa: BLE001 - deterministic fallback is expected
        logger.warning("llm_json_failed purpose=%s model=%s prompt_len=%s: %s", purpose, _model(), len(user_prompt), exc)
        return None

    latency_ms = int((time.perf_counter() - started) * 1000)
    content = response.choices[0].message.content if response.choices else ""
    if not content:
        logger.info("llm_json_empty purpose=%s latency_ms=%s", purpose, latency_ms)
        return None
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        logger.warning("llm_json_invalid purpose=%s latency_ms=%s", purpose, latency_ms)
        return None
    if not isinstance(parsed, dict):
        return None
    logger.info("llm_json_success purpose=%s latency_ms=%s", purpose, latency_ms)
    return parsed
