"""HTTP interface: POST /api/v1/web-research and GET /api/v1/health."""

from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from webresearch import __version__
from webresearch.contracts.research_v1 import (
    ErrorResponse,
    ResearchRequest,
    ResearchResponse,
)
from webresearch.core.config import config
from webresearch.core.errors import (
    AllSourcesFailedError,
    InvalidInputError,
    WebResearchError,
)
from webresearch.core.logger import logger
from webresearch.orchestrators.research.orchestrator import (
    ResearchAggregationOrchestrator,
)

API_V1_PREFIX = "/api/v1"

router = APIRouter()


def status_for(exc: Exception) -> int:
    if isinstance(exc, InvalidInputError):
        return 400
    if isinstance(exc, AllSourcesFailedError):
        return 502
    return 500


def _error_response(status_code: int, message: str, error_code: str | None) -> JSONResponse:
    body = ErrorResponse(error=message, error_code=error_code)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@router.get("/health")
async def health() -> dict:
    return {"status": "healthy", "version": __version__}


@router.post("/web-research")
async def web_research(body: ResearchRequest, request: Request) -> JSONResponse:
    orchestrator: ResearchAggregationOrchestrator = request.app.state.orchestrator
    report = await orchestrator.aggregate(body)
    response: ResearchResponse = report.to_response()
    return JSONResponse(content=response.model_dump(by_alias=True, mode="json"))


def create_app(orchestrator: ResearchAggregationOrchestrator | None = None) -> FastAPI:
    """Create the FastAPI app; builds the orchestrator from config unless one is given."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = orchestrator is None
        if owned:
            from webresearch.core.bootstrap import build_orchestrator

            app.state.orchestrator = build_orchestrator()
        else:
            app.state.orchestrator = orchestrator
        logger.info(f"webresearch API v{__version__} ready")
        try:
            yield
        finally:
            if owned:
                await app.state.orchestrator.close()

    app = FastAPI(
        title="webresearch",
        version=__version__,
        description="Multi-source research aggregation",
        docs_url="/docs",
        redoc_url=None,
        openapi_url=f"{API_V1_PREFIX}/openapi.json",
        lifespan=lifespan,
    )
    wildcard = "*" in config.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )
    app.include_router(router, prefix=API_V1_PREFIX)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid request: {field} {first.get('msg', '')}".strip()
        return _error_response(400, message, InvalidInputError.error_code)

    @app.exception_handler(WebResearchError)
    async def web_research_error_handler(request: Request, exc: WebResearchError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error_response(status_code, exc.message, exc.error_code)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"{request.method} {request.url.path} crashed", exception=exc)
        return _error_response(500, str(exc) or type(exc).__name__, None)

    return app
