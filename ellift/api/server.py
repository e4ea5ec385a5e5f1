"""FastAPI application for the adaptation service.

Provides HTTP endpoints for:
- /api/claude - Primary backend proxy
- /api/openai-claude-fallback - Proxy with explicit secondary-backend routing
- /api/adapt - Full adaptation lifecycle (cache, rate limit, dispatch)
- /api/extract-text - PDF text extraction
- /api/image - Educational image generation
- /api/log-error - Client error reporting
- /api/performance - Operation timing report
- /health - Service and backend configuration status
- /metrics - Prometheus metrics in text format

Usage:
    # Create and run server
    from ellift.api.server import run_server
    run_server()

    # Or use with custom collaborators
    from ellift.api.server import create_app
    app = create_app(config, controller=controller)
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, MutableMapping, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from ellift import __version__
from ellift.api.schemas import (
    AdaptRequestBody,
    ExtractTextRequest,
    FallbackProxyRequest,
    ImageRequest,
    ProxyRequest,
)
from ellift.models.adaptation import BackendKind, BackendPolicy
from ellift.models.config import AppConfig
from ellift.observability.context import REQUEST_ID_HEADER, request_id_context
from ellift.observability.logging import bind_context, clear_context, configure_logging
from ellift.observability.metrics import get_metrics_content_type, get_metrics_text
from ellift.observability.performance import PerformanceRecorder
from ellift.services.cache_service import FingerprintCache
from ellift.services.config_manager import load_config
from ellift.services.error_log import ClientErrorReport, log_client_error
from ellift.services.extraction_service import (
    ExtractionPipeline,
    decode_base64_document,
)
from ellift.services.image_service import ImageService
from ellift.services.llm.providers.anthropic import AnthropicBackend
from ellift.services.llm.providers.openai import OpenAIBackend
from ellift.services.llm.service import DispatchController
from ellift.utils.exceptions import AdapterError, RateLimitedError
from ellift.utils.rate_limiter import SlidingWindowRateLimiter, client_identity

logger = structlog.get_logger()


def open_store(config: AppConfig) -> Optional[MutableMapping[str, Any]]:
    """Persistent store for cache entries and the performance log, if configured."""
    if not config.cache_dir:
        return None

    import diskcache

    logger.info("persistent_store_opened", cache_dir=config.cache_dir)
    return diskcache.Cache(config.cache_dir)


def build_controller(
    config: AppConfig,
    store: Optional[MutableMapping[str, Any]] = None,
    recorder: Optional[PerformanceRecorder] = None,
) -> DispatchController:
    """Wire a DispatchController from configuration."""
    return DispatchController(
        primary=AnthropicBackend(config.primary),
        secondary=OpenAIBackend(config.secondary),
        cache=FingerprintCache(config.cache, store=store),
        rate_limiter=SlidingWindowRateLimiter(config.rate_limit),
        recorder=recorder or PerformanceRecorder(config.performance, store=store),
    )


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    details = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({"field": ".".join(loc), "message": error.get("msg", "")})
    return details


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    """Log startup and close the persistent store on shutdown."""
    logger.info("api_server_starting", version=__version__)
    yield
    store = getattr(app.state, "store", None)
    if store is not None and hasattr(store, "close"):
        store.close()
    logger.info("api_server_stopping")


def create_app(
    config: Optional[AppConfig] = None,
    controller: Optional[DispatchController] = None,
    pipeline: Optional[ExtractionPipeline] = None,
    image_service: Optional[ImageService] = None,
    recorder: Optional[PerformanceRecorder] = None,
) -> FastAPI:
    """Create FastAPI application with all endpoints.

    Args:
        config: Service configuration (loaded from the environment if None)
        controller: Dispatch controller (built from config if None)
        pipeline: PDF extraction pipeline
        image_service: Image generation service
        recorder: Performance recorder shared by all endpoints

    Returns:
        Configured FastAPI application
    """
    config = config or load_config()
    store = None
    if controller is None:
        store = open_store(config)
        controller = build_controller(config, store=store, recorder=recorder)
    recorder = recorder or controller.recorder
    pipeline = pipeline or ExtractionPipeline()
    image_service = image_service or ImageService(config.image)

    app = FastAPI(
        title="ELLIFT Adaptation API",
        version=__version__,
        description="Adapts classroom materials for English Language Learners",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.controller = controller
    app.state.store = store

    # ==================== Error translation ====================

    @app.exception_handler(AdapterError)
    async def adapter_error_handler(request: Request, exc: AdapterError) -> Response:
        logger.warning(
            "request_failed",
            path=request.url.path,
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            error=str(exc),
        )
        headers = {}
        if isinstance(exc, RateLimitedError):
            headers["Retry-After"] = str(exc.retry_after_seconds)
        return JSONResponse(
            content=exc.to_response(), status_code=exc.status_code, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> Response:
        details = _validation_details(exc)
        message = "Invalid request body"
        if any(d["field"].startswith("messages") for d in details):
            message = "Invalid messages format"
        logger.warning("request_invalid", path=request.url.path, details=details)
        return JSONResponse(
            content={"error": message, "details": details},
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.middleware("http")
    async def request_context(request: Request, call_next) -> Response:
        with request_id_context(request.headers.get(REQUEST_ID_HEADER)) as req_id:
            clear_context()
            bind_context(method=request.method, path=request.url.path)
            try:
                response = await call_next(request)
            except Exception as e:
                logger.exception("unhandled_error", error=str(e))
                body: Dict[str, Any] = {"error": "Internal server error"}
                if config.expose_error_details:
                    body["message"] = str(e)
                response = JSONResponse(
                    content=body, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
                )
            finally:
                clear_context()
            response.headers[REQUEST_ID_HEADER] = req_id
            return response

    # Added last so it wraps every response, including errors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER, "Retry-After"],
    )

    # ==================== Model proxies ====================

    @app.options("/api/{path:path}", include_in_schema=False)
    async def preflight(path: str) -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.post("/api/claude", summary="Primary backend proxy")
    async def claude_proxy(body: ProxyRequest) -> Dict[str, Any]:
        policy = BackendPolicy(backend=BackendKind.PRIMARY, max_tokens=body.max_tokens)
        outcome = await controller.dispatch(body.messages, policy)
        return outcome.to_response()

    @app.post(
        "/api/openai-claude-fallback",
        summary="Proxy with optional high-capacity backend",
    )
    async def fallback_proxy(body: FallbackProxyRequest) -> Dict[str, Any]:
        policy = BackendPolicy(backend=body.backend, max_tokens=body.max_tokens)
        outcome = await controller.dispatch(body.messages, policy)
        return outcome.to_response()

    @app.post("/api/adapt", summary="Adapt material for an ELL proficiency level")
    async def adapt(body: AdaptRequestBody, request: Request) -> Dict[str, Any]:
        identity = client_identity(
            request.headers,
            peer=request.client.host if request.client else None,
            policy=config.rate_limit.unidentified_client_policy,
        )
        bind_context(client=identity)
        policy = BackendPolicy(
            backend=body.backend,
            max_tokens=body.max_output_tokens,
            auto_route=True,
        )
        outcome = await controller.adapt(body, policy, identity)
        return outcome.to_response()

    # ==================== Documents and images ====================

    @app.post("/api/extract-text", summary="Extract text from a base64 PDF")
    async def extract_text(body: ExtractTextRequest) -> Dict[str, Any]:
        data = decode_base64_document(body.base64_data)
        async with recorder.track("extract_text", size_bytes=len(data)):
            text = await pipeline.extract(data)
        return {"text": text}

    @app.post("/api/image", summary="Generate an educational image")
    async def generate_image(body: ImageRequest) -> Dict[str, Any]:
        async with recorder.track("generate_image"):
            return await image_service.generate(body.prompt)

    @app.post("/api/log-error", summary="Record a client-side error")
    async def log_error(report: ClientErrorReport) -> Response:
        try:
            return JSONResponse(content=log_client_error(report))
        except Exception as e:
            logger.error("client_error_log_failed", error=str(e))
            return JSONResponse(
                content={"error": "Failed to log error"},
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    # ==================== Monitoring ====================

    @app.get("/api/performance", summary="Operation timing report")
    async def performance_report() -> Dict[str, Any]:
        return recorder.get_report().model_dump(by_alias=True)

    @app.get("/health", summary="Service health")
    async def health() -> Dict[str, Any]:
        cache_stats = controller.cache.stats()
        return {
            "status": "ok",
            "version": __version__,
            "backends": controller.backend_status(),
            "cache": {
                "size": cache_stats.size,
                "hits": cache_stats.hits,
                "misses": cache_stats.misses,
                "hit_rate": cache_stats.hit_rate,
            },
        }

    @app.get(
        "/metrics",
        response_class=PlainTextResponse,
        summary="Prometheus metrics",
    )
    async def prometheus_metrics() -> Response:
        return Response(content=get_metrics_text(), media_type=get_metrics_content_type())

    return app


def run_server(config: Optional[AppConfig] = None) -> None:  # pragma: no cover
    """Run the API server (blocking)."""
    import uvicorn

    config = config or load_config()
    configure_logging(level=config.log_level, json_output=config.log_json)
    app = create_app(config)
    logger.info("api_server_starting", host=config.host, port=config.port)
    # log_config=None keeps the structlog handlers installed by configure_logging
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)
