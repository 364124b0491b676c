"""High-level orchestrator API.

ExecutionOrchestrator holds the current OrchestratorState, turns user intents
into reducer calls, and runs the one network effect each Execute cycle needs.
"""

import time
from typing import Iterable

from model_aggregator.client import AggregatorClient, AggregatorError
from model_aggregator.client.models import MultiModelResponse
from model_aggregator.client.types import (
    CATALOG_LOAD_FAILED_MESSAGE,
    TRANSPORT_ERROR_FALLBACK,
    ExecutionMode,
    ValidationError,
)
from model_aggregator.orchestrator.state import (
    build_execution_request,
    reduce,
    unsupported_attachments,
    validate_submission,
)
from model_aggregator.orchestrator.types import (
    CatalogLoaded,
    CatalogLoadFailed,
    ExecutionFailed,
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
from model_aggregator.telemetry import (
    CATALOG_LOAD_FAILED,
    CATALOG_LOAD_STARTED,
    CATALOG_LOADED,
    EXECUTION_COMPLETED,
    EXECUTION_FAILED,
    EXECUTION_REFUSED_IN_FLIGHT,
    EXECUTION_STARTED,
    MODE_CHANGED,
    PROMPT_EDITED,
    SELECTION_CHANGED,
    SELECTION_PRUNED,
    STATE_TRANSITION,
    VALIDATION_FAILED,
    get_logger,
)
from model_aggregator.telemetry.trace import TraceContext

log = get_logger(__name__)


class ExecutionOrchestrator:
    """Owns the orchestrator state and the transitions that mutate it.

    All mutations go through ``reduce``; this class only decides which intents
    to apply and performs the HTTP call between them. It is meant for a single
    cooperative event loop: Execute suspends only at the network call.

    Usage:
        orchestrator = ExecutionOrchestrator()
        await orchestrator.load_catalog()
        orchestrator.set_mode(ExecutionMode.MULTI)
        orchestrator.set_selection(["gpt-4o", "claude-3-5-sonnet"])
        orchestrator.set_prompt(text="Summarize this")
        state = await orchestrator.execute()
    """

    def __init__(
        self,
        client: AggregatorClient | None = None,
        state: OrchestratorState | None = None,
    ) -> None:
        """Initialize with an optional client and starting state.

        Args:
            client: API client. If None, creates one from settings.
            state: Initial state. If None, starts empty in SINGLE mode.
        """
        self.client = client or AggregatorClient()
        self._state = state or OrchestratorState()

    @property
    def state(self) -> OrchestratorState:
        return self._state

    def _apply(self, intent: Intent, trace_id: str | None = None) -> OrchestratorState:
        previous = self._state
        self._state = reduce(previous, intent)
        if previous.phase != self._state.phase:
            log.debug(
                STATE_TRANSITION,
                from_phase=previous.phase.value,
                to_phase=self._state.phase.value,
                intent=type(intent).__name__,
                trace_id=trace_id,
            )
        return self._state

    # Intents

    def set_mode(self, mode: ExecutionMode) -> OrchestratorState:
        """Switch execution mode. Always empties the selection and clears result/error."""
        log.info(MODE_CHANGED, from_mode=self._state.mode.value, to_mode=mode.value)
        return self._apply(ModeChanged(mode=mode))

    def set_selection(self, model_ids: Iterable[str]) -> OrchestratorState:
        """Replace the selection and clear result/error.

        Catalog membership is not checked here and duplicates collapse. The ids
        are kept as given in either mode; a SINGLE execution sends the first one.
        """
        state = self._apply(SelectionChanged(model_ids=tuple(model_ids)))
        log.info(SELECTION_CHANGED, mode=state.mode.value, selection=list(state.selection))
        return state

    def set_prompt(
        self,
        text: str | None = None,
        image_url: str | None = None,
        audio_url: str | None = None,
    ) -> OrchestratorState:
        """Update prompt fields. A shown result or error is left untouched."""
        log.debug(
            PROMPT_EDITED,
            text_changed=text is not None,
            image_url_changed=image_url is not None,
            audio_url_changed=audio_url is not None,
        )
        return self._apply(PromptEdited(text=text, image_url=image_url, audio_url=audio_url))

    def attachment_warnings(self) -> dict[str, list[str]]:
        """Selected models that lack a capability for a supplied image/audio reference."""
        return unsupported_attachments(self._state)

    # Effects

    async def load_catalog(self) -> OrchestratorState:
        """Fetch the model catalog and replace the known models wholesale.

        Any failure leaves an empty catalog and the fixed catalog error message;
        execution then stays blocked because nothing can be selected.
        """
        log.info(CATALOG_LOAD_STARTED, base_url=self.client.base_url)
        try:
            models = await self.client.list_models()
        except Exception as e:
            log.error(
                CATALOG_LOAD_FAILED,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=not isinstance(e, AggregatorError),
            )
            return self._apply(CatalogLoadFailed(message=CATALOG_LOAD_FAILED_MESSAGE))

        previous_selection = self._state.selection
        state = self._apply(CatalogLoaded(models=tuple(models)))
        if state.selection != previous_selection:
            log.info(
                SELECTION_PRUNED,
                removed=[m for m in previous_selection if m not in state.selection],
            )
        log.info(CATALOG_LOADED, models_count=len(models))
        return state

    async def execute(self) -> OrchestratorState:
        """Run one Execute cycle.

        Validation failures never reach the network. On the success path exactly
        one request is dispatched, and the in-flight phase is always left in a
        ``finally`` block so it cannot stay stuck once the call settles.

        This method never raises for validation, application or transport
        failures; they all land in ``state.error``.

        Returns:
            The state after the cycle settles.
        """
        if self._state.in_flight:
            log.warning(
                EXECUTION_REFUSED_IN_FLIGHT,
                mode=self._state.mode.value,
                trace_id=self._state.last_trace_id,
            )
            return self._state

        self._apply(ValidationStarted())
        try:
            validate_submission(self._state)
            request = build_execution_request(self._state)
        except ValidationError as e:
            log.info(VALIDATION_FAILED, reason=e.display_message, mode=self._state.mode.value)
            return self._apply(ValidationFailed(message=e.display_message))

        trace_ctx = TraceContext.new_trace()
        self._apply(ExecutionStarted(trace_id=trace_ctx.trace_id), trace_id=trace_ctx.trace_id)

        log.info(
            EXECUTION_STARTED,
            mode=self._state.mode.value,
            models=list(self._state.selection),
            has_image=request.image_url is not None,
            has_audio=request.audio_url is not None,
            trace_id=trace_ctx.trace_id,
        )

        start_time = time.time()
        outcome: Intent = ExecutionFailed(message=TRANSPORT_ERROR_FALLBACK)
        try:
            self._apply(RequestSent(), trace_id=trace_ctx.trace_id)
            result = await self.client.dispatch(request, trace_ctx=trace_ctx)
            outcome = ExecutionSucceeded(result=result)
            log.info(
                EXECUTION_COMPLETED,
                mode=self._state.mode.value,
                failed_models=(
                    [r.model for r in result.failed] if isinstance(result, MultiModelResponse) else []
                ),
                duration_ms=int((time.time() - start_time) * 1000),
                trace_id=trace_ctx.trace_id,
            )
        except AggregatorError as e:
            outcome = ExecutionFailed(message=e.display_message)
            log.error(
                EXECUTION_FAILED,
                error_type=type(e).__name__,
                error=e.display_message,
                duration_ms=int((time.time() - start_time) * 1000),
                trace_id=trace_ctx.trace_id,
            )
        except Exception as e:
            outcome = ExecutionFailed(message=str(e) or TRANSPORT_ERROR_FALLBACK)
            log.error(
                EXECUTION_FAILED,
                error_type=type(e).__name__,
                error=str(e),
                duration_ms=int((time.time() - start_time) * 1000),
                trace_id=trace_ctx.trace_id,
                exc_info=True,
            )
        finally:
            self._apply(outcome, trace_id=trace_ctx.trace_id)

        return self._state
