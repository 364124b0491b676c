"""Pydantic models for the aggregator API payloads.

Catalog entries, execution request bodies and execution responses. Response
models allow extra keys so backend metadata survives round-tripping into the
orchestrator state.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AIModel(BaseModel):
    """A catalog entry returned by GET /api/models.

    Attributes:
        id: Unique model identifier (e.g., "gpt-4o").
        name: Display name. Defaults to the id.
        provider: Provider name (e.g., "openai").
        description: Optional human-readable description.
        capabilities: Input kinds the model accepts (e.g., "text", "image", "audio").
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str = Field(..., min_length=1, description="Unique model identifier")
    name: str | None = Field(None, description="Display name")
    provider: str | None = Field(None, description="Provider name")
    description: str | None = Field(None, description="Model description")
    capabilities: tuple[str, ...] = Field(default=(), description="Supported input kinds")

    @property
    def display_name(self) -> str:
        """Name to show in listings, falling back to the id."""
        return self.name or self.id

    def supports(self, capability: str) -> bool:
        """Return True if the model lists the given input capability."""
        return capability in self.capabilities


class ModelCatalog(BaseModel):
    """Body of GET /api/models. A missing models key is an empty catalog."""

    models: list[AIModel] = Field(default_factory=list)


class SingleExecutionRequest(BaseModel):
    """Body of POST /api/models/single."""

    model: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    image_url: str | None = None
    audio_url: str | None = None

    def to_body(self) -> dict[str, Any]:
        """Serialize to the JSON body, omitting unset reference fields."""
        return self.model_dump(exclude_none=True)


class MultiExecutionRequest(BaseModel):
    """Body of POST /api/models/multi."""

    models: list[str] = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    image_url: str | None = None
    audio_url: str | None = None

    def to_body(self) -> dict[str, Any]:
        """Serialize to the JSON body, omitting unset reference fields."""
        return self.model_dump(exclude_none=True)


ExecutionRequest = SingleExecutionRequest | MultiExecutionRequest


class ModelResult(BaseModel):
    """Output of one model for one prompt.

    Attributes:
        model: Identifier of the model that produced the output, when reported.
        status: Per-model status. Only "success" counts as ok; any other value
            the backend sends (e.g. "error") is kept as-is.
        response: Model output text when status is "success".
        error: Error description when status is "error".
        latency_ms: Backend-measured call latency.
        usage: Token usage reported by the provider.
    """

    model_config = ConfigDict(extra="allow")

    model: str | None = None
    status: str = "success"
    response: str | None = None
    error: str | None = None
    latency_ms: float | None = None
    usage: dict[str, Any] | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class SingleModelResponse(ModelResult):
    """Success body of POST /api/models/single."""


class MultiModelResponse(BaseModel):
    """Success body of POST /api/models/multi.

    ``responses`` keeps the order the backend returned, one entry per model.
    """

    model_config = ConfigDict(extra="allow")

    responses: list[ModelResult] = Field(default_factory=list)
    total_latency_ms: float | None = None

    @property
    def succeeded(self) -> list[ModelResult]:
        return [r for r in self.responses if r.ok]

    @property
    def failed(self) -> list[ModelResult]:
        return [r for r in self.responses if not r.ok]


ExecutionResult = SingleModelResponse | MultiModelResponse
