"""Core types for the execution orchestrator.

This module defines the data structures the reducer works on:
- ExecutionPhase: State machine phases of one Execute cycle
- PromptPayload: Prompt text plus optional image/audio references
- OrchestratorState: Immutable snapshot of everything the UI reads back
- Intent classes: Inputs accepted by the reducer
"""

from dataclasses import dataclass, field
from enum import Enum

from model_aggregator.client.models import AIModel, ExecutionResult
from model_aggregator.client.types import ExecutionMode


class ExecutionPhase(str, Enum):
    """State machine phases for one Execute cycle.

    IDLE is both the initial and the terminal phase; a cycle ends in IDLE with
    either a result or an error populated.
    """

    IDLE = "idle"
    VALIDATING = "validating"
    DISPATCHING = "dispatching"
    IN_FLIGHT = "in_flight"


@dataclass(frozen=True)
class PromptPayload:
    """Prompt text plus optional media references, as typed by the user.

    Values are stored untrimmed; trimming happens when a request is built.

    Attributes:
        text: Prompt text. Must be non-empty after trim at submit time.
        image_url: Optional image reference URL.
        audio_url: Optional audio reference URL.
    """

    text: str = ""
    image_url: str = ""
    audio_url: str = ""

    @property
    def trimmed_text(self) -> str:
        return self.text.strip()

    @property
    def trimmed_image_url(self) -> str | None:
        """Trimmed image reference, or None when blank."""
        return self.image_url.strip() or None

    @property
    def trimmed_audio_url(self) -> str | None:
        """Trimmed audio reference, or None when blank."""
        return self.audio_url.strip() or None


@dataclass(frozen=True)
class OrchestratorState:
    """Immutable snapshot of the orchestrator.

    Every transition returns a new instance (see state.reduce).

    Attributes:
        mode: Current execution mode.
        catalog: Models known from the last catalog fetch.
        selection: Ordered, de-duplicated selected model ids.
        prompt: Current prompt payload.
        phase: Current phase of the Execute state machine.
        result: Result of the last successful execution, if any.
        error: Message of the last failure, if any. Never set together with result.
        last_trace_id: Trace ID of the last execution cycle that reached dispatch.
    """

    mode: ExecutionMode = ExecutionMode.SINGLE
    catalog: tuple[AIModel, ...] = ()
    selection: tuple[str, ...] = ()
    prompt: PromptPayload = field(default_factory=PromptPayload)
    phase: ExecutionPhase = ExecutionPhase.IDLE
    result: ExecutionResult | None = None
    error: str | None = None
    last_trace_id: str | None = None

    @property
    def in_flight(self) -> bool:
        """True strictly between dispatch and resolution."""
        return self.phase in (ExecutionPhase.DISPATCHING, ExecutionPhase.IN_FLIGHT)

    @property
    def can_execute(self) -> bool:
        """Whether the execute affordance should be enabled."""
        return not self.in_flight and bool(self.selection) and bool(self.prompt.trimmed_text)

    @property
    def execute_label(self) -> str:
        if self.in_flight:
            return "Executing..."
        if self.mode is ExecutionMode.SINGLE:
            return "Execute Single Model"
        return "Execute Multi-Model"

    @property
    def selected_models(self) -> list[AIModel]:
        """Catalog entries for the selection, in selection order. Unknown ids are skipped."""
        by_id = {model.id: model for model in self.catalog}
        return [by_id[model_id] for model_id in self.selection if model_id in by_id]


# Intents


@dataclass(frozen=True)
class ModeChanged:
    mode: ExecutionMode


@dataclass(frozen=True)
class SelectionChanged:
    model_ids: tuple[str, ...]


@dataclass(frozen=True)
class PromptEdited:
    """Partial prompt update. Fields left as None keep their current value."""

    text: str | None = None
    image_url: str | None = None
    audio_url: str | None = None


@dataclass(frozen=True)
class CatalogLoaded:
    models: tuple[AIModel, ...]


@dataclass(frozen=True)
class CatalogLoadFailed:
    message: str


@dataclass(frozen=True)
class ValidationStarted:
    pass


@dataclass(frozen=True)
class ValidationFailed:
    message: str


@dataclass(frozen=True)
class ExecutionStarted:
    trace_id: str


@dataclass(frozen=True)
class RequestSent:
    pass


@dataclass(frozen=True)
class ExecutionSucceeded:
    result: ExecutionResult


@dataclass(frozen=True)
class ExecutionFailed:
    message: str


Intent = (
    ModeChanged
    | SelectionChanged
    | PromptEdited
    | CatalogLoaded
    | CatalogLoadFailed
    | ValidationStarted
    | ValidationFailed
    | ExecutionStarted
    | RequestSent
    | ExecutionSucceeded
    | ExecutionFailed
)
