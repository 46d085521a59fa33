"""Quiz session state machine and the Rich console loop that drives it.

A :class:`QuizSession` moves ``EMPTY -> ACTIVE -> COMPLETE`` and never back.
Illegal calls raise :class:`SessionStateError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Callable, Literal, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import MCQ, UserAnswer, choice_letter

InputProvider = Callable[[], str]
ExitAction = Literal["completed", "quit"]


class SessionStateError(RuntimeError):
    """Raised when an operation is not legal in the session's current state."""


class SessionStatus(Enum):
    EMPTY = "empty"
    ACTIVE = "active"
    COMPLETE = "complete"


@dataclass(frozen=True)
class QuizScore:
    """Final tally of a completed session."""

    score: int
    total: int

    @property
    def percentage(self) -> int:
        return score_percentage(self.score, self.total)


@dataclass(frozen=True)
class QuizSessionState:
    """Read-only view of a session at a point in time."""

    status: SessionStatus
    questions: tuple[MCQ, ...]
    current_index: int
    answers: tuple[UserAnswer, ...]


class QuizSession:
    """One attempt at a fixed, ordered list of questions."""

    def __init__(self) -> None:
        self._questions: tuple[MCQ, ...] = ()
        self._answers: list[UserAnswer] = []
        self._index = 0
        self._status = SessionStatus.EMPTY

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def questions(self) -> tuple[MCQ, ...]:
        return self._questions

    @property
    def answers(self) -> tuple[UserAnswer, ...]:
        return tuple(self._answers)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def is_complete(self) -> bool:
        return self._status is SessionStatus.COMPLETE

    @property
    def current_question(self) -> MCQ:
        self._require(SessionStatus.ACTIVE, "read the current question")
        return self._questions[self._index]

    def start(self, questions: Sequence[MCQ]) -> None:
        """Load the question list; only legal on an empty session."""

        self._require(SessionStatus.EMPTY, "start")
        self._questions = tuple(questions)
        self._answers = []
        self._index = 0
        self._status = (
            SessionStatus.ACTIVE if self._questions else SessionStatus.COMPLETE
        )

    def submit_answer(self, selected: str) -> UserAnswer:
        """Record ``selected`` for the current question and advance."""

        self._require(SessionStatus.ACTIVE, "submit an answer")
        question = self._questions[self._index]
        answer = UserAnswer(
            question=question.question,
            options=question.options,
            selected_answer=selected,
            correct_answer=question.correct_answer,
            is_correct=selected == question.correct_answer,
        )
        self._answers.append(answer)
        self._index += 1
        if self._index >= len(self._questions):
            self._status = SessionStatus.COMPLETE
        return answer

    def result(self) -> QuizScore:
        """Score of the finished session."""

        self._require(SessionStatus.COMPLETE, "score")
        correct = sum(1 for answer in self._answers if answer.is_correct)
        return QuizScore(score=correct, total=len(self._answers))

    def snapshot(self) -> QuizSessionState:
        return QuizSessionState(
            status=self._status,
            questions=self._questions,
            current_index=self._index,
            answers=tuple(self._answers),
        )

    def _require(self, status: SessionStatus, action: str) -> None:
        if self._status is not status:
            raise SessionStateError(
                f"Cannot {action} while the session is {self._status.value}."
            )


def score_percentage(score: int, total: int) -> int:
    """``round(100 * score / total)`` with halves rounded up; 0 for no answers."""

    if total <= 0:
        return 0
    ratio = Decimal(100 * score) / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def run_quiz_session(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
) -> ExitAction:
    """Ask each question on ``console`` until the session completes or the
    user quits. Returns how the loop ended."""

    while session.status is SessionStatus.ACTIVE:
        question = session.current_question
        _render_question(console, session, question)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return "quit"
        text = (raw or "").strip()
        if text.lower() in {"q", "quit", "exit"}:
            console.print("\n[bold yellow]Ending session without finishing.[/]")
            return "quit"
        selected = question.option_for(text) if len(text) == 1 else None
        if selected is None:
            console.print(
                Text(
                    f"'{text}' is not a valid choice for this question.",
                    style="red",
                )
            )
            continue
        answer = session.submit_answer(selected)
        if answer.is_correct:
            console.print("[bold green]Correct![/]")
        else:
            console.print(
                Text.assemble(
                    ("Incorrect. ", "bold red"),
                    ("Answer: ", "dim"),
                    (answer.correct_answer, "bold"),
                )
            )

    render_summary(console, session)
    return "completed"


def _render_question(
    console: Console, session: QuizSession, question: MCQ
) -> None:
    total = len(session.questions)
    header = Text.assemble(
        (f"Question {session.current_index + 1}", "bold cyan"),
        (f" of {total}", "dim"),
        (f"  [{question.difficulty.value}]", "magenta"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for index, option in enumerate(question.options):
        table.add_row(choice_letter(index), option)
    console.print(table)
    keys = ", ".join(choice_letter(i) for i in range(len(question.options)))
    console.print(Text(f"Choose [{keys}] or quit", style="dim"))


def render_summary(console: Console, session: QuizSession) -> None:
    """Print the score line and a per-question review table."""

    result = session.result()
    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))
    console.print(
        Text(
            f"Score: {result.score}/{result.total} ({result.percentage}%)",
            style="bold",
        )
    )

    review = Table(title="Review", box=box.SIMPLE, expand=True)
    review.add_column("#", justify="right")
    review.add_column("Question", overflow="fold")
    review.add_column("Your answer")
    review.add_column("Correct answer")
    review.add_column("Result", justify="center")
    for idx, answer in enumerate(session.answers, start=1):
        outcome = (
            Text("Correct", style="green")
            if answer.is_correct
            else Text("Incorrect", style="red")
        )
        review.add_row(
            str(idx),
            answer.question,
            answer.selected_answer,
            answer.correct_answer,
            outcome,
        )
    console.print(review)


__all__ = [
    "ExitAction",
    "InputProvider",
    "QuizScore",
    "QuizSession",
    "QuizSessionState",
    "SessionStateError",
    "SessionStatus",
    "render_summary",
    "run_quiz_session",
    "score_percentage",
]
