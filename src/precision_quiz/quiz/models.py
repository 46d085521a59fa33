"""Data contracts shared by the extraction, generation and quiz stages."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Union

PDF_MIME = "application/pdf"
DOCX_MIME = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
TEXT_MIME = "text/plain"

SUPPORTED_MIME_TYPES: frozenset[str] = frozenset({PDF_MIME, DOCX_MIME, TEXT_MIME})

OPTION_COUNT = 4
ANY_DIFFICULTY = "Any"


class Difficulty(Enum):
    """Difficulty tag carried by every generated question."""

    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def from_value(cls, value: str) -> "Difficulty":
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown difficulty '{value}'. Expected one of: {expected}."
        )


DifficultyChoice = Union[Difficulty, Literal["Any"]]


def parse_difficulty_choice(value: str | Difficulty) -> DifficultyChoice:
    """Accept a level name (any case) or ``Any``."""

    if isinstance(value, Difficulty):
        return value
    if value.strip().lower() == ANY_DIFFICULTY.lower():
        return ANY_DIFFICULTY
    return Difficulty.from_value(value)


@dataclass(frozen=True)
class Document:
    """Raw upload: bytes plus the content type the caller declared."""

    data: bytes
    content_type: str
    name: str | None = None


@dataclass(frozen=True)
class GenerationParameters:
    """How many questions to ask for and at which difficulty."""

    count: int
    difficulty: DifficultyChoice = Difficulty.EASY

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int):
            raise ValueError("count must be an integer")
        if self.count <= 0:
            raise ValueError("count must be greater than zero")
        if not isinstance(self.difficulty, Difficulty) and (
            self.difficulty != ANY_DIFFICULTY
        ):
            raise ValueError(
                f"difficulty must be a Difficulty or '{ANY_DIFFICULTY}'"
            )


@dataclass(frozen=True)
class MCQ:
    """A four-option, single-answer question."""

    question: str
    options: tuple[str, ...]
    correct_answer: str
    difficulty: Difficulty

    def __post_init__(self) -> None:
        if len(self.options) != OPTION_COUNT:
            raise ValueError(f"an MCQ needs exactly {OPTION_COUNT} options")
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")

    def option_for(self, key: str) -> str | None:
        """Map a choice letter (``A``..``D``) to its option text."""

        letter = key.strip().upper()[:1]
        if not letter:
            return None
        index = ord(letter) - ord("A")
        if 0 <= index < len(self.options):
            return self.options[index]
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "difficulty": self.difficulty.value,
        }


@dataclass(frozen=True)
class UserAnswer:
    """Snapshot of one answered question, independent of the source MCQ."""

    question: str
    options: tuple[str, ...]
    selected_answer: str
    correct_answer: str
    is_correct: bool


def choice_letter(index: int) -> str:
    return chr(ord("A") + index)


__all__ = [
    "ANY_DIFFICULTY",
    "DOCX_MIME",
    "Difficulty",
    "DifficultyChoice",
    "Document",
    "GenerationParameters",
    "MCQ",
    "OPTION_COUNT",
    "PDF_MIME",
    "SUPPORTED_MIME_TYPES",
    "TEXT_MIME",
    "UserAnswer",
    "choice_letter",
    "parse_difficulty_choice",
]
