"""Pure state transitions for the execution orchestrator.

``reduce(state, intent)`` is the only place state changes. It enforces the
invalidation rules itself instead of relying on call sites:

- a mode change empties the selection and clears result/error
- a selection change clears result/error
- prompt edits never touch result/error
- result and error are mutually exclusive

The helpers below it (validation, request building, attachment checks) are
pure reads of a state snapshot.
"""

from dataclasses import replace
from typing import Iterable

from pydantic import ValidationError as PydanticValidationError

from model_aggregator.client.models import (
    ExecutionRequest,
    MultiExecutionRequest,
    SingleExecutionRequest,
)
from model_aggregator.client.types import (
    CATALOG_LOAD_FAILED_MESSAGE,
    EMPTY_PROMPT_MESSAGE,
    NO_MODEL_SELECTED_MESSAGE,
    ExecutionMode,
    ValidationError,
)
from model_aggregator.orchestrator.types import (
    CatalogLoaded,
    CatalogLoadFailed,
    ExecutionFailed,
    ExecutionPhase,
    ExecutionStarted,
    ExecutionSucceeded,
    Intent,
    ModeChanged,
    OrchestratorState,
    PromptEdited,
    RequestSent,
    SelectionChanged,
    ValidationFailed,
    ValidationStarted,
)

ATTACHMENT_CAPABILITIES = ("image", "audio")


def normalize_selection(model_ids: Iterable[str]) -> tuple[str, ...]:
    """Collapse duplicates, first seen wins. Order and cardinality are otherwise kept."""
    return tuple(dict.fromkeys(model_ids))


def reduce(state: OrchestratorState, intent: Intent) -> OrchestratorState:
    """Apply one intent to a state snapshot.

    Args:
        state: Current state.
        intent: Intent to apply.

    Returns:
        The new state. The input is never mutated.

    Raises:
        TypeError: If the intent type is unknown.
    """
    if isinstance(intent, ModeChanged):
        return replace(state, mode=intent.mode, selection=(), result=None, error=None)

    if isinstance(intent, SelectionChanged):
        return replace(
            state,
            selection=normalize_selection(intent.model_ids),
            result=None,
            error=None,
        )

    if isinstance(intent, PromptEdited):
        prompt = state.prompt
        if intent.text is not None:
            prompt = replace(prompt, text=intent.text)
        if intent.image_url is not None:
            prompt = replace(prompt, image_url=intent.image_url)
        if intent.audio_url is not None:
            prompt = replace(prompt, audio_url=intent.audio_url)
        return replace(state, prompt=prompt)

    if isinstance(intent, CatalogLoaded):
        known = {model.id for model in intent.models}
        pruned = tuple(model_id for model_id in state.selection if model_id in known)
        if pruned == state.selection:
            # A successful reload supersedes the previous load failure
            error = None if state.error == CATALOG_LOAD_FAILED_MESSAGE else state.error
            return replace(state, catalog=intent.models, error=error)
        # Selection changed underneath a shown result: same invalidation as SelectionChanged
        return replace(state, catalog=intent.models, selection=pruned, result=None, error=None)

    if isinstance(intent, CatalogLoadFailed):
        return replace(state, catalog=(), selection=(), result=None, error=intent.message)

    if isinstance(intent, ValidationStarted):
        return replace(state, phase=ExecutionPhase.VALIDATING)

    if isinstance(intent, ValidationFailed):
        return replace(state, phase=ExecutionPhase.IDLE, result=None, error=intent.message)

    if isinstance(intent, ExecutionStarted):
        return replace(
            state,
            phase=ExecutionPhase.DISPATCHING,
            result=None,
            error=None,
            last_trace_id=intent.trace_id,
        )

    if isinstance(intent, RequestSent):
        return replace(state, phase=ExecutionPhase.IN_FLIGHT)

    if isinstance(intent, ExecutionSucceeded):
        return replace(state, phase=ExecutionPhase.IDLE, result=intent.result, error=None)

    if isinstance(intent, ExecutionFailed):
        return replace(state, phase=ExecutionPhase.IDLE, result=None, error=intent.message)

    raise TypeError(f"Unknown intent: {type(intent).__name__}")


def validate_submission(state: OrchestratorState) -> None:
    """Check the Execute preconditions in order; the first failure wins.

    Raises:
        ValidationError: If the prompt is blank or no model is selected.
    """
    if not state.prompt.trimmed_text:
        raise ValidationError(EMPTY_PROMPT_MESSAGE)
    if not state.selection:
        raise ValidationError(NO_MODEL_SELECTED_MESSAGE)


def build_execution_request(state: OrchestratorState) -> ExecutionRequest:
    """Build the request for the current mode.

    The prompt is trimmed and blank image/audio references are left out of
    the body entirely. SINGLE mode sends the first selected id.

    Args:
        state: A state that passed validate_submission.

    Returns:
        SingleExecutionRequest for SINGLE mode, MultiExecutionRequest for MULTI.

    Raises:
        ValidationError: If the selection or prompt cannot form a request body
            (for example an empty model id).
    """
    try:
        return _build_request(state)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid request: {e.errors()[0]['msg']}") from e


def _build_request(state: OrchestratorState) -> ExecutionRequest:
    prompt = state.prompt
    if state.mode is ExecutionMode.SINGLE:
        return SingleExecutionRequest(
            model=state.selection[0],
            prompt=prompt.trimmed_text,
            image_url=prompt.trimmed_image_url,
            audio_url=prompt.trimmed_audio_url,
        )
    return MultiExecutionRequest(
        models=list(state.selection),
        prompt=prompt.trimmed_text,
        image_url=prompt.trimmed_image_url,
        audio_url=prompt.trimmed_audio_url,
    )


def unsupported_attachments(state: OrchestratorState) -> dict[str, list[str]]:
    """List selected models that do not accept a supplied media reference.

    Only models that declare capabilities are checked; an entry with no
    capability list is treated as unknown, not as unsupported.

    Returns:
        Mapping of capability ("image", "audio") to model ids lacking it.
        Capabilities with no supplied reference or no offending model are omitted.
    """
    supplied = {
        "image": state.prompt.trimmed_image_url,
        "audio": state.prompt.trimmed_audio_url,
    }
    warnings: dict[str, list[str]] = {}
    for capability in ATTACHMENT_CAPABILITIES:
        if not supplied[capability]:
            continue
        lacking = [
            model.id
            for model in state.selected_models
            if model.capabilities and not model.supports(capability)
        ]
        if lacking:
            warnings[capability] = lacking
    return warnings
