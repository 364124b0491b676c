"""Aggregator API client implementation.

This module provides the AggregatorClient class for talking to the backend
that lists the model catalog and runs prompts against one or many models.
"""

import time
from typing import Any

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from model_aggregator.client.models import (
    AIModel,
    ExecutionRequest,
    ExecutionResult,
    ModelCatalog,
    MultiExecutionRequest,
    MultiModelResponse,
    SingleExecutionRequest,
    SingleModelResponse,
)
from model_aggregator.client.types import (
    APPLICATION_ERROR_FALLBACK,
    ApplicationError,
    ExecutionMode,
    TransportError,
)
from model_aggregator.config import settings
from model_aggregator.telemetry import (
    API_CALL_COMPLETED,
    API_CALL_ERROR,
    API_CALL_STARTED,
    get_logger,
)
from model_aggregator.telemetry.trace import TraceContext

log = get_logger(__name__)

MODELS_PATH = "/api/models"
EXECUTION_PATHS: dict[ExecutionMode, str] = {
    ExecutionMode.SINGLE: "/api/models/single",
    ExecutionMode.MULTI: "/api/models/multi",
}


def extract_error_message(payload: Any) -> str:
    """Pull ``error.message`` out of a failure body.

    Args:
        payload: Decoded JSON body, or None if the body was not JSON.

    Returns:
        The embedded message, or the generic fallback when absent or empty.
    """
    if isinstance(payload, dict):
        error_obj = payload.get("error")
        if isinstance(error_obj, dict):
            message = error_obj.get("message")
            if isinstance(message, str) and message:
                return message
    return APPLICATION_ERROR_FALLBACK


class AggregatorClient:
    """HTTP client for the aggregator backend.

    A fresh httpx.AsyncClient is opened per call. Every call is one request:
    there are no retries at this layer.

    Usage:
        client = AggregatorClient()
        models = await client.list_models()
        result = await client.dispatch(SingleExecutionRequest(model="gpt-4o", prompt="Hi"))

    Attributes:
        base_url: Backend base URL (e.g., "http://localhost:3000").
        timeout_seconds: Request timeout, or None for no timeout.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend base URL. If None, uses settings.api_base_url.
            timeout_seconds: Request timeout. If None, uses settings.request_timeout_seconds.
            transport: Optional httpx transport (e.g., httpx.MockTransport in tests).
        """
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.request_timeout_seconds
        )
        self._transport = transport

    def _open(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout_seconds,
            transport=self._transport,
        )

    async def _request_json(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> Any:
        """Issue one request and decode the JSON body.

        Args:
            method: HTTP method.
            path: Path relative to base_url.
            body: Optional JSON body.
            trace_ctx: Trace context for telemetry correlation.

        Returns:
            The decoded JSON payload of a 2xx response.

        Raises:
            ApplicationError: If the backend returns a non-2xx status.
            TransportError: If the request fails or a 2xx body is not JSON.
        """
        if trace_ctx is None:
            trace_ctx = TraceContext.new_trace()
        _, span_id = trace_ctx.new_span()

        start_time = time.time()
        log.info(
            API_CALL_STARTED,
            method=method,
            path=path,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        try:
            async with self._open() as client:
                response = await client.request(method, path, json=body)
        except httpx.HTTPError as e:
            log.error(
                API_CALL_ERROR,
                method=method,
                path=path,
                error_type=type(e).__name__,
                error=str(e),
                latency_ms=int((time.time() - start_time) * 1000),
                trace_id=trace_ctx.trace_id,
                span_id=span_id,
            )
            raise TransportError(str(e)) from e

        payload: Any = None
        decode_error: ValueError | None = None
        try:
            payload = response.json()
        except ValueError as e:
            decode_error = e

        latency_ms = int((time.time() - start_time) * 1000)

        if response.is_error:
            message = extract_error_message(payload)
            log.error(
                API_CALL_ERROR,
                method=method,
                path=path,
                status_code=response.status_code,
                error_type=ApplicationError.__name__,
                error=message,
                latency_ms=latency_ms,
                trace_id=trace_ctx.trace_id,
                span_id=span_id,
            )
            raise ApplicationError(message, status_code=response.status_code)

        if decode_error is not None:
            log.error(
                API_CALL_ERROR,
                method=method,
                path=path,
                status_code=response.status_code,
                error_type=type(decode_error).__name__,
                error=str(decode_error),
                latency_ms=latency_ms,
                trace_id=trace_ctx.trace_id,
                span_id=span_id,
            )
            raise TransportError(f"Invalid JSON response: {decode_error}") from decode_error

        log.info(
            API_CALL_COMPLETED,
            method=method,
            path=path,
            status_code=response.status_code,
            latency_ms=latency_ms,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        return payload

    @staticmethod
    def _parse(model_cls: type[BaseModel], payload: Any) -> Any:
        try:
            return model_cls.model_validate(payload)
        except PydanticValidationError as e:
            raise TransportError(f"Invalid response format: {e.error_count()} validation error(s)") from e

    async def list_models(self, trace_ctx: TraceContext | None = None) -> list[AIModel]:
        """Fetch the model catalog.

        Returns:
            Catalog entries in backend order. A body without ``models`` yields [].

        Raises:
            ApplicationError: If the backend returns a non-2xx status.
            TransportError: If the request fails or the body is malformed.
        """
        payload = await self._request_json("GET", MODELS_PATH, trace_ctx=trace_ctx)
        if not isinstance(payload, dict):
            raise TransportError("Invalid response format: expected a JSON object")
        catalog: ModelCatalog = self._parse(ModelCatalog, {"models": payload.get("models") or []})
        return catalog.models

    async def execute_single(
        self, request: SingleExecutionRequest, trace_ctx: TraceContext | None = None
    ) -> SingleModelResponse:
        """Run a prompt against one model."""
        payload = await self._request_json(
            "POST", EXECUTION_PATHS[ExecutionMode.SINGLE], body=request.to_body(), trace_ctx=trace_ctx
        )
        return self._parse(SingleModelResponse, payload)

    async def execute_multi(
        self, request: MultiExecutionRequest, trace_ctx: TraceContext | None = None
    ) -> MultiModelResponse:
        """Run a prompt against every model in the request."""
        payload = await self._request_json(
            "POST", EXECUTION_PATHS[ExecutionMode.MULTI], body=request.to_body(), trace_ctx=trace_ctx
        )
        return self._parse(MultiModelResponse, payload)

    async def dispatch(
        self, request: ExecutionRequest, trace_ctx: TraceContext | None = None
    ) -> ExecutionResult:
        """Send an execution request to the endpoint matching its shape."""
        if isinstance(request, SingleExecutionRequest):
            return await self.execute_single(request, trace_ctx=trace_ctx)
        return await self.execute_multi(request, trace_ctx=trace_ctx)
