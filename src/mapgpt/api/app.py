"""FastAPI application exposing the MapGPT chat pipeline."""

from __future__ import annotations

import argparse
import traceback
from dataclasses import dataclass
from functools import partial
from typing import Sequence
from uuid import uuid4

from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from mapgpt.api.schemas import ChatRequest, ChatResponse, ErrorResponse, HealthResponse, UsageResponse
from mapgpt.config import Settings, get_settings
from mapgpt.errors import ChatbotError, ValidationError
from mapgpt.knowledge import get_knowledge_base
from mapgpt.metrics.observability import (
    PipelineMetrics,
    bind_correlation_id,
    clear_correlation_id,
    configure_logging,
    get_logger,
)
from mapgpt.retrieval import (
    DispatchConfig,
    NewsPageScraper,
    RetrievalDispatcher,
    ScrapeConfig,
    SearchConfig,
    SerperSearchClient,
)
from mapgpt.services import (
    ChatService,
    CompletionConfig,
    ComposerConfig,
    GrokCompletionClient,
    PromptComposer,
    validate_prompt,
)

CHAT_PATH = "/api/chat"


@dataclass(frozen=True)
class AppDependencies:
    chat_service: ChatService


def _build_dependencies(settings: Settings) -> AppDependencies:
    knowledge = get_knowledge_base()
    search = SerperSearchClient(
        SearchConfig(
            url=settings.search_url,
            gl=settings.search_gl,
            hl=settings.search_hl,
            timeout_seconds=settings.search_timeout_seconds,
        ),
        api_key_provider=partial(settings.require_secret, "serper_api_key"),
    )
    news = NewsPageScraper(
        ScrapeConfig(
            url=settings.news_url,
            user_agent=settings.news_user_agent,
            timeout_seconds=settings.news_timeout_seconds,
        ),
    )
    dispatcher = RetrievalDispatcher(
        knowledge=knowledge,
        search=search,
        news=news,
        config=DispatchConfig(
            search_limit=settings.search_limit,
            news_limit=settings.news_limit,
            recency_window_days=settings.recency_window_days,
            web_search_fallback=settings.web_search_fallback,
        ),
    )
    composer = PromptComposer(
        knowledge,
        ComposerConfig(
            system_role_enabled=settings.system_role_enabled,
            domain_guard_enabled=settings.domain_guard_enabled,
        ),
    )
    completer = GrokCompletionClient(
        CompletionConfig(
            url=settings.completion_url,
            model=settings.completion_model,
            max_tokens=settings.completion_max_tokens,
            temperature=settings.completion_temperature,
            timeout_seconds=settings.completion_timeout_seconds,
        ),
        api_key_provider=partial(settings.require_secret, "grok_api_key"),
    )
    chat_service = ChatService(
        composer=composer,
        dispatcher=dispatcher,
        completer=completer,
        news_passthrough=settings.news_passthrough,
    )
    return AppDependencies(chat_service=chat_service)


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    deps = dependencies or _build_dependencies(settings)

    configure_logging(settings.log_level, json_logs=settings.log_json)
    logger = get_logger("api")
    app = FastAPI(title="MapGPT API", version="0.2.0")
    app.state.dependencies = deps

    # Optional CORS
    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    def error_response(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        status_code = exc.status_code if isinstance(exc, ChatbotError) else status.HTTP_500_INTERNAL_SERVER_ERROR
        content: dict[str, str] = {"error": str(exc) or "Failed to process request"}
        if status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.warning("request.rejected", correlation_id=correlation_id, detail=content["error"])
            return JSONResponse(status_code=status_code, content=content)
        PipelineMetrics.observe_failure(type(exc).__name__)
        logger.error(
            "chat.error",
            correlation_id=correlation_id,
            error_type=type(exc).__name__,
            detail=content["error"],
        )
        if settings.expose_error_details:
            content["details"] = "".join(traceback.format_exception(exc))
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(ChatbotError)
    async def handle_chatbot_error(request: Request, exc: ChatbotError) -> JSONResponse:
        return error_response(request, exc)

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_chat_service(dep: AppDependencies = Depends(get_dependencies)) -> ChatService:
        return dep.chat_service

    @app.post(
        CHAT_PATH,
        response_model=ChatResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def chat(request: Request, service: ChatService = Depends(get_chat_service)) -> Response:
        try:
            try:
                payload = await request.json()
            except ValueError as exc:
                raise ValidationError("Request body must be valid JSON") from exc
            prompt = validate_prompt(payload)
            answer = await service.answer(prompt)
        except Exception as exc:  # noqa: BLE001 - every failure maps to the JSON envelope
            return error_response(request, exc)
        logger.info("chat.answered", intent=answer.intent.value, latency_ms=answer.latency_ms)
        return JSONResponse(
            content=ChatResponse(response=answer.text).model_dump(),
            headers={"X-MapGPT-Intent": answer.intent.value},
        )

    @app.get(CHAT_PATH, response_model=UsageResponse)
    async def chat_usage() -> UsageResponse:
        return UsageResponse(
            message=f"Send a POST request to {CHAT_PATH} with a JSON body containing a non-empty 'prompt'.",
            example=ChatRequest(prompt="Who is the HOD of Computer Science at MAPOLY?"),
        )

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz", response_model=HealthResponse)
    async def healthcheck() -> HealthResponse:
        from mapgpt import __version__

        return HealthResponse(status="ok", version=__version__, environment=settings.environment)

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    return app


def parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the MapGPT API server.")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    return parser.parse_args(argv)


def serve(argv: Sequence[str] | None = None) -> None:
    import uvicorn

    args = parse_args(argv)
    uvicorn.run(
        "mapgpt.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=get_settings().log_level.lower(),
    )


app = create_app()
