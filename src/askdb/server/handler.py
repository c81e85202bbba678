"""Framework-neutral request handler for an ask-database HTTP endpoint.

Web frameworks wrap ``AskDatabaseHandler.handle`` with a few lines of glue:
pass the request method and raw body in, write the returned status, headers and
JSON body out.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from askdb.config import AskDBSettings
from askdb.core.types import ProviderName
from askdb.exceptions import ConfigurationError
from askdb.llm import get_model
from askdb.llm.provider import LanguageModel
from askdb.query.limiter import DEFAULT_MAX_ROWS
from askdb.query.orchestrator import (
    DEFAULT_TIMEOUT_MS,
    QueryExecutor,
    QueryOrchestrator,
    SchemaSource,
)

logger = logging.getLogger(__name__)

ApiKeySource = Callable[[], str | Awaitable[str]]

# Substrings that mark an error as the caller's fault
CLIENT_ERROR_MARKERS = ("invalid", "required")


class AskDatabaseRequest(BaseModel):
    """JSON body accepted by the endpoint."""

    question: str = Field(..., min_length=1)
    model: str | None = None
    max_rows: int | None = Field(default=None, ge=1)
    format_results: bool | None = None

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


@dataclass
class HandlerResponse:
    """Status, headers and JSON body to send back."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] | None = None

    def json(self) -> str:
        return "" if self.body is None else json.dumps(self.body, default=str)


def cors_headers(origins: Iterable[str]) -> dict[str, str]:
    origins = list(origins)
    return {
        "Access-Control-Allow-Origin": "*" if "*" in origins else ", ".join(origins),
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }


def status_for_error(message: str) -> int:
    """Map an error message to 400 (caller problem) or 500 (everything else)."""
    if any(marker in message for marker in CLIENT_ERROR_MARKERS):
        return 400
    return 500


class AskDatabaseHandler:
    """Handles POST requests carrying a question and answers with the pipeline result.

    Example:
        >>> handler = AskDatabaseHandler(
        ...     SQLAlchemyExecutor(DATABASE_URL),
        ...     MY_SCHEMA,
        ...     get_api_key=lambda: os.environ["GEMINI_API_KEY"],
        ... )
        >>> response = await handler.handle("POST", b'{"question": "How many users?"}')
        >>> response.status, response.body["answer"]
    """

    def __init__(
        self,
        execute_query: QueryExecutor,
        schema: SchemaSource,
        *,
        model: LanguageModel | None = None,
        get_api_key: ApiKeySource | None = None,
        provider: str = ProviderName.GOOGLE,
        default_model: str | None = None,
        max_rows: int = DEFAULT_MAX_ROWS,
        format_results: bool = True,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        cors_origins: Iterable[str] = ("*",),
    ) -> None:
        """Initialize the handler.

        Args:
            execute_query: Executor for validated SQL
            schema: Schema context string or structured schema
            model: Fixed language model; requests may still name another model
            get_api_key: Returns the provider API key (sync or async)
            provider: Provider used when building models from get_api_key
            default_model: Model name used when the request names none
            max_rows: Row cap when the request does not set maxRows
            format_results: Formatting default when the request does not set it
            timeout_ms: Deadline for each request's pipeline
            cors_origins: Origins allowed by CORS headers
        """
        if model is None and get_api_key is None:
            raise ValueError("Either model or get_api_key is required")

        self._execute_query = execute_query
        self._schema = schema
        self._model = model
        self._get_api_key = get_api_key
        self._provider = provider
        self._default_model = default_model
        self._max_rows = max_rows
        self._format_results = format_results
        self._timeout_ms = timeout_ms
        self._cors = cors_headers(cors_origins)

    @classmethod
    def from_settings(
        cls,
        settings: AskDBSettings,
        execute_query: QueryExecutor,
        schema: SchemaSource,
    ) -> AskDatabaseHandler:
        """Build a handler whose API key and defaults come from settings."""
        api_key = settings.api_key

        def get_api_key() -> str:
            if not api_key:
                raise ConfigurationError("No API key configured for the model provider")
            return api_key

        return cls(
            execute_query,
            schema,
            get_api_key=get_api_key,
            provider=settings.provider,
            default_model=settings.model,
            max_rows=settings.max_rows,
            format_results=settings.format_results,
            timeout_ms=settings.timeout_ms,
            cors_origins=settings.cors_origins,
        )

    async def handle(self, method: str, body: bytes | str | None) -> HandlerResponse:
        """Handle one request.

        Args:
            method: HTTP method
            body: Raw request body

        Returns:
            HandlerResponse to send back
        """
        method = method.upper()
        if method == "OPTIONS":
            return HandlerResponse(status=204, headers=dict(self._cors))

        if method != "POST":
            return self._json(405, {"error": "Method not allowed"})

        request = self._parse_request(body)
        if isinstance(request, HandlerResponse):
            return request

        try:
            model = await self._resolve_model(request.model)
            orchestrator = QueryOrchestrator(
                model,
                self._execute_query,
                max_rows=request.max_rows or self._max_rows,
                format_results=(
                    self._format_results
                    if request.format_results is None
                    else request.format_results
                ),
                timeout_ms=self._timeout_ms,
            )
            result = await orchestrator.ask(request.question, self._schema)
        except Exception as e:
            message = str(e) or "Internal server error"
            logger.error(f"Request failed: {message}")
            return self._json(status_for_error(message), {"error": message})

        return self._json(200, result.to_dict())

    def _parse_request(self, body: bytes | str | None) -> AskDatabaseRequest | HandlerResponse:
        try:
            payload = json.loads(body or "")
        except (json.JSONDecodeError, UnicodeDecodeError):
            return self._json(400, {"error": "Request body is invalid JSON"})

        if not isinstance(payload, Mapping) or not isinstance(payload.get("question"), str):
            return self._json(400, {"error": "Question is required"})

        try:
            return AskDatabaseRequest.model_validate(payload)
        except ValidationError as e:
            if any(err["loc"] == ("question",) for err in e.errors()):
                return self._json(400, {"error": "Question is required"})
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            return self._json(400, {"error": f"Request is invalid: {errors}"})

    async def _resolve_model(self, requested: str | None) -> LanguageModel:
        if self._get_api_key is None:
            # __init__ requires a model when there is no key source
            return self._model  # type: ignore[return-value]
        if self._model is not None and requested in (None, self._model.model_name):
            return self._model

        api_key = self._get_api_key()
        if inspect.isawaitable(api_key):
            api_key = await api_key
        return get_model(self._provider, api_key=api_key, model=requested or self._default_model)

    def _json(self, status: int, body: dict[str, Any]) -> HandlerResponse:
        return HandlerResponse(
            status=status,
            headers={**self._cors, "Content-Type": "application/json"},
            body=body,
        )
