"""Ask an OpenAI chat model for MCQs and keep only the well-formed ones.

The request declares a strict JSON schema, but the schema is a request-time
contract only: every response is parsed and validated again here before any
question reaches a quiz session.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

import openai

from ..core.ai import load_client
from .models import (
    ANY_DIFFICULTY,
    MCQ,
    OPTION_COUNT,
    Difficulty,
    DifficultyChoice,
    GenerationParameters,
)

logger = logging.getLogger(__name__)

MAX_SOURCE_CHARS = 20_000
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7

MALFORMED_MESSAGE = "AI returned malformed MCQ data. Please try again."
UNAVAILABLE_MESSAGE = (
    "Failed to generate MCQs from the AI. The content might be too complex "
    "or the service may be temporarily unavailable."
)

_LEVELS = [member.value for member in Difficulty]
_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)

MCQ_RESPONSE_SCHEMA: dict[str, Any] = {
    "name": "mcq_list",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "questions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "question": {
                            "type": "string",
                            "description": "The multiple-choice question.",
                        },
                        "options": {
                            "type": "array",
                            "items": {"type": "string"},
                            "minItems": OPTION_COUNT,
                            "maxItems": OPTION_COUNT,
                            "description": "Exactly 4 possible answers.",
                        },
                        "correctAnswer": {
                            "type": "string",
                            "description": (
                                "The correct answer, copied exactly from the "
                                "options array."
                            ),
                        },
                        "difficulty": {
                            "type": "string",
                            "enum": _LEVELS,
                        },
                    },
                    "required": [
                        "question",
                        "options",
                        "correctAnswer",
                        "difficulty",
                    ],
                    "additionalProperties": False,
                },
            }
        },
        "required": ["questions"],
        "additionalProperties": False,
    },
}


class GenerationError(RuntimeError):
    """Raised when no usable question list could be produced."""


class MalformedResponseError(GenerationError):
    """Raised when the model output is unparsable or entirely invalid."""


class ServiceUnavailableError(GenerationError):
    """Raised when the AI provider call itself fails.

    The provider exception is chained as ``__cause__`` for the logs; the
    message stays generic so it can be shown to users.
    """


@dataclass(frozen=True)
class GeneratorSettings:
    """Model knobs for the chat completion request."""

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE


def generate_mcqs(
    text: str,
    params: GenerationParameters,
    *,
    client: object = None,
    settings: Optional[GeneratorSettings] = None,
) -> List[MCQ]:
    """Generate up to ``params.count`` validated MCQs from ``text``.

    Exactly one completion request is made; nothing is retried. An empty
    array from the model is a valid (empty) result; a non-empty array where
    nothing survives validation is :class:`MalformedResponseError`.
    """

    settings = settings or GeneratorSettings()
    resolved_client = client if client is not None else load_client()
    system_prompt, user_prompt = build_prompts(text, params)

    logger.info(
        "Requesting MCQs",
        extra={
            "count": params.count,
            "difficulty": _difficulty_label(params.difficulty),
            "model": settings.model,
            "source_chars": len(text),
        },
    )
    content = _chat_completion_content(
        resolved_client,
        settings=settings,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
    )
    records = parse_response(content)
    questions = validate_records(records)

    if records and not questions:
        logger.warning(
            "Every generated item failed validation",
            extra={"received": len(records)},
        )
        raise MalformedResponseError(MALFORMED_MESSAGE)

    logger.info(
        "Generated MCQs",
        extra={
            "received": len(records),
            "accepted": len(questions),
            "dropped": len(records) - len(questions),
        },
    )
    return questions


def build_prompts(text: str, params: GenerationParameters) -> tuple[str, str]:
    """Return the system and user prompts for a generation request."""

    system_prompt = (
        "You write high-quality multiple-choice study questions from source "
        "documents and answer only with JSON matching the given schema."
    )
    user_prompt = (
        "Based on the following document text, generate "
        f"{params.count} high-quality multiple-choice questions (MCQs).\n"
        "For each MCQ, you must provide:\n"
        "1. A clear and concise question.\n"
        "2. Exactly four distinct options.\n"
        "3. The single correct answer, which must exactly match one of the "
        "four options.\n"
        f"4. {_difficulty_instruction(params.difficulty)}\n\n"
        "Ensure the questions cover a variety of topics from the text and are "
        "grammatically correct.\n"
        "Do not generate questions about the document's metadata (e.g., page "
        "numbers, author). Focus solely on the core content.\n\n"
        "Document Text:\n---\n"
        f"{truncate_source(text)}\n"
        "---"
    )
    return system_prompt, user_prompt


def truncate_source(text: str, limit: int = MAX_SOURCE_CHARS) -> str:
    return text[:limit]


def _difficulty_instruction(difficulty: DifficultyChoice) -> str:
    if isinstance(difficulty, Difficulty):
        return (
            f"A difficulty rating of '{difficulty.value}'. All questions must "
            "conform to this difficulty."
        )
    return "A difficulty rating of 'Easy', 'Medium', or 'Hard'."


def _difficulty_label(difficulty: DifficultyChoice) -> str:
    if isinstance(difficulty, Difficulty):
        return difficulty.value
    return ANY_DIFFICULTY


def _chat_completion_content(
    client: object,
    *,
    settings: GeneratorSettings,
    system_prompt: str,
    user_prompt: str,
) -> str:
    create = client.chat.completions.create  # type: ignore[attr-defined]
    try:
        resp = create(
            model=settings.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=settings.temperature,
            response_format={
                "type": "json_schema",
                "json_schema": MCQ_RESPONSE_SCHEMA,
            },
        )
        raw_content = resp.choices[0].message.content
    except (openai.APIError, OSError, IndexError, AttributeError) as exc:
        logger.error(
            "MCQ generation request failed",
            extra={"error": repr(exc), "model": settings.model},
        )
        raise ServiceUnavailableError(UNAVAILABLE_MESSAGE) from exc
    return (raw_content or "").strip()


def parse_response(content: str) -> List[Any]:
    """Decode the model output into the list of candidate records.

    Accepts a bare JSON array or the ``{"questions": [...]}`` envelope the
    schema asks for, optionally inside a Markdown code fence.
    """

    try:
        data = _decode_json(content)
    except (TypeError, ValueError) as exc:
        logger.warning(
            "Model output is not JSON", extra={"content": content[:500]}
        )
        raise MalformedResponseError(MALFORMED_MESSAGE) from exc
    if isinstance(data, Mapping):
        data = data.get("questions")
    if not isinstance(data, list):
        logger.warning(
            "Model output is not a question array",
            extra={"content": content[:500]},
        )
        raise MalformedResponseError(MALFORMED_MESSAGE)
    return data


def _decode_json(content: str) -> Any:
    try:
        return json.loads(content)
    except ValueError:
        fenced = _FENCE_RE.search(content)
        if fenced is None:
            raise
        return json.loads(fenced.group(1))


def validate_records(records: Sequence[Any]) -> List[MCQ]:
    """Keep the records that satisfy the MCQ contract, in their given order.

    Nothing is repaired: a record with three options or an answer outside its
    options is dropped, not fixed.
    """

    questions: List[MCQ] = []
    for position, record in enumerate(records):
        mcq = _coerce_mcq(record)
        if mcq is None:
            logger.debug("Dropped invalid MCQ", extra={"position": position})
            continue
        questions.append(mcq)
    return questions


def _coerce_mcq(record: Any) -> Optional[MCQ]:
    if not isinstance(record, Mapping):
        return None
    question = record.get("question")
    options = record.get("options")
    answer = record.get("correctAnswer")
    difficulty = record.get("difficulty")

    if not isinstance(question, str) or not question:
        return None
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        return None
    if not all(isinstance(option, str) for option in options):
        return None
    if not isinstance(answer, str) or not answer or answer not in options:
        return None
    if difficulty not in _LEVELS:
        return None
    return MCQ(
        question=question,
        options=tuple(options),
        correct_answer=answer,
        difficulty=Difficulty(difficulty),
    )


__all__ = [
    "DEFAULT_MODEL",
    "DEFAULT_TEMPERATURE",
    "GenerationError",
    "GeneratorSettings",
    "MALFORMED_MESSAGE",
    "MAX_SOURCE_CHARS",
    "MCQ_RESPONSE_SCHEMA",
    "MalformedResponseError",
    "ServiceUnavailableError",
    "UNAVAILABLE_MESSAGE",
    "build_prompts",
    "generate_mcqs",
    "parse_response",
    "truncate_source",
    "validate_records",
]
