"""Interactive entity/field collection.

The collector is an explicit state machine that asks one ``Question`` at a
time and advances on each accepted answer.  It owns no I/O: a ``Prompter``
front end (the Rich terminal prompter below, or a scripted one in tests)
supplies the answers.

States::

    ENTITY_NAME -> FIELD_NAME -> FIELD_TYPE -> FIELD_REQUIRED -> ADD_ANOTHER
    ADD_ANOTHER --yes--> FIELD_NAME
    ADD_ANOTHER --no---> TIMESTAMPS -> DONE
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Protocol

from pydantic import BaseModel, Field
from rich.prompt import Confirm, Prompt

from .models import EntitySpec, FieldSpec, LogicalType, is_identifier


class QuestionKind(str, Enum):
    TEXT = "text"
    CHOICE = "choice"
    CONFIRM = "confirm"


class Question(BaseModel):
    """A single prompt the front end must answer."""
    key: str = Field(..., description="Stable identifier, e.g. 'field_name'")
    kind: QuestionKind
    message: str
    choices: list[str] = Field(default_factory=list)
    default: Any = None


class Prompter(Protocol):
    """Anything that can answer a ``Question``."""

    def ask(self, question: Question) -> Any: ...


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


class CollectorState(str, Enum):
    ENTITY_NAME = "entity_name"
    FIELD_NAME = "field_name"
    FIELD_TYPE = "field_type"
    FIELD_REQUIRED = "field_required"
    ADD_ANOTHER = "add_another"
    TIMESTAMPS = "timestamps"
    DONE = "done"


class FieldCollector:
    """Builds an ``EntitySpec`` one answer at a time.

    ``answer`` returns ``None`` when the answer was accepted, or an error
    message when it was rejected; a rejected answer leaves the state
    unchanged so the same question is asked again.
    """

    def __init__(self, entity_name: str | None = None) -> None:
        self._fields: list[FieldSpec] = []
        self._pending: dict[str, Any] = {}
        self._timestamps = True
        self._entity_name = ""
        self.state = CollectorState.ENTITY_NAME
        if entity_name is not None:
            error = self.answer(entity_name)
            if error:
                raise ValueError(error)

    @property
    def done(self) -> bool:
        return self.state is CollectorState.DONE

    @property
    def fields(self) -> list[FieldSpec]:
        return list(self._fields)

    def current_question(self) -> Question:
        """Return the question for the current state."""
        state = self.state
        if state is CollectorState.ENTITY_NAME:
            return Question(key="entity_name", kind=QuestionKind.TEXT, message="Enter model name:")
        if state is CollectorState.FIELD_NAME:
            return Question(key="field_name", kind=QuestionKind.TEXT, message="  Enter field name:")
        if state is CollectorState.FIELD_TYPE:
            return Question(
                key="field_type",
                kind=QuestionKind.CHOICE,
                message="  Select field type:",
                choices=LogicalType.choices(),
                default=LogicalType.STRING.value,
            )
        if state is CollectorState.FIELD_REQUIRED:
            return Question(
                key="field_required",
                kind=QuestionKind.CONFIRM,
                message="  Is the field required?",
                default=True,
            )
        if state is CollectorState.ADD_ANOTHER:
            return Question(
                key="add_another",
                kind=QuestionKind.CONFIRM,
                message="Do you want to add another field?",
                default=True,
            )
        if state is CollectorState.TIMESTAMPS:
            return Question(
                key="timestamps",
                kind=QuestionKind.CONFIRM,
                message="Do you want to add timestamps?",
                default=True,
            )
        raise RuntimeError("Field collection is already complete")

    def answer(self, value: Any) -> Optional[str]:
        """Feed an answer for the current question and advance."""
        state = self.state

        if state is CollectorState.ENTITY_NAME:
            name = str(value or "").strip()
            if not name:
                return "Model name cannot be empty!"
            if not is_identifier(name):
                return f"'{name}' is not a valid identifier."
            self._entity_name = name
            self.state = CollectorState.FIELD_NAME
            return None

        if state is CollectorState.FIELD_NAME:
            name = str(value or "").strip()
            if not name:
                return "Field name cannot be empty!"
            if any(f.name == name for f in self._fields):
                return f"Field '{name}' already exists."
            self._pending = {"name": name}
            self.state = CollectorState.FIELD_TYPE
            return None

        if state is CollectorState.FIELD_TYPE:
            choice = str(getattr(value, "value", value) or "").strip().lower()
            if choice not in LogicalType.choices():
                return f"Choose one of: {', '.join(LogicalType.choices())}"
            self._pending["type"] = choice
            self.state = CollectorState.FIELD_REQUIRED
            return None

        if state is CollectorState.FIELD_REQUIRED:
            self._pending["required"] = True if value is None else bool(value)
            self._fields.append(FieldSpec(**self._pending))
            self._pending = {}
            self.state = CollectorState.ADD_ANOTHER
            return None

        if state is CollectorState.ADD_ANOTHER:
            add_more = True if value is None else bool(value)
            self.state = CollectorState.FIELD_NAME if add_more else CollectorState.TIMESTAMPS
            return None

        if state is CollectorState.TIMESTAMPS:
            self._timestamps = True if value is None else bool(value)
            self.state = CollectorState.DONE
            return None

        raise RuntimeError("Field collection is already complete")

    def result(self) -> EntitySpec:
        """Return the completed ``EntitySpec``.  Only valid once ``done``."""
        if not self.done:
            raise RuntimeError(f"Field collection incomplete (state: {self.state.value})")
        return EntitySpec(
            name=self._entity_name,
            fields=list(self._fields),
            timestamps=self._timestamps,
        )


def ask_until_valid(prompter: Prompter, question: Question, validate) -> Any:
    """Ask *question* repeatedly until *validate* returns ``None``."""
    while True:
        value = prompter.ask(question)
        error = validate(value)
        if error is None:
            return value
        report = getattr(prompter, "report_error", None)
        if report is not None:
            report(error)


def collect_entity(prompter: Prompter, entity_name: str | None = None) -> EntitySpec:
    """Drive a ``FieldCollector`` to completion with *prompter*."""
    collector = FieldCollector(entity_name)
    while not collector.done:
        question = collector.current_question()
        ask_until_valid(prompter, question, collector.answer)
    return collector.result()


def ask_entity_name(prompter: Prompter, message: str = "Enter model name:") -> str:
    """Ask for a bare entity name with the collector's validation rules."""
    collector = FieldCollector()
    question = collector.current_question().model_copy(update={"message": message})
    value = ask_until_valid(prompter, question, collector.answer)
    return str(value).strip()


def confirm(prompter: Prompter, message: str, default: bool = True, key: str = "confirm") -> bool:
    """Ask a yes/no question through *prompter*."""
    question = Question(key=key, kind=QuestionKind.CONFIRM, message=message, default=default)
    value = prompter.ask(question)
    return default if value is None else bool(value)


# ---------------------------------------------------------------------------
# Terminal front end
# ---------------------------------------------------------------------------


class RichPrompter:
    """Answers questions at the terminal using ``rich.prompt``."""

    def __init__(self, console=None) -> None:
        if console is None:
            from crudgen.utils import console as default_console

            console = default_console
        self.console = console

    def ask(self, question: Question) -> Any:
        if question.kind is QuestionKind.CONFIRM:
            return Confirm.ask(
                question.message,
                default=bool(question.default),
                console=self.console,
            )
        if question.kind is QuestionKind.CHOICE:
            return Prompt.ask(
                question.message,
                choices=question.choices,
                default=question.default,
                console=self.console,
            )
        return Prompt.ask(question.message, console=self.console)

    def report_error(self, message: str) -> None:
        self.console.print(f"[bold red]{message}[/bold red]")
