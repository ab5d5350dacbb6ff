from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.v1.middleware.error_handler import ErrorHandlerMiddleware
from src.api.v1.middleware.logging_middleware import LoggingMiddleware
from src.api.v1.router import v1_router
from src.config import settings
from src.dependencies import RunStore, get_llm_client
from src.engines.defaults import build_default_registry
from src.utils.logging import setup_logging, get_logger


def init_state(app: FastAPI) -> None:
    """Attach the engine registry and run store to ``app.state``."""
    registry = build_default_registry(get_llm_client())
    app.state.engine_registry = registry
    app.state.run_store = RunStore(registry, settings.output_dir)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(debug=settings.debug)
    logger = get_logger("startup")
    logger.info("Starting BuildLoop automation service", version="0.1.0")

    init_state(app)
    logger.info(
        "Engine registry initialized",
        engine_count=len(app.state.engine_registry),
        llm_provider=settings.llm_provider or "template",
    )

    yield

    logger.info("Shutting down", sessions=len(app.state.run_store))


def create_app() -> FastAPI:
    app = FastAPI(
        title="BuildLoop",
        description="Plan, execute, score and decide: automated build loop",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Middleware is applied in reverse order -- outermost first.
    # 1. CORS (outermost -- handles preflight before anything else)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # 2. Error handler (catches exceptions from inner layers)
    app.add_middleware(ErrorHandlerMiddleware)
    # 3. Request/response logger (innermost -- logs timing around handler)
    app.add_middleware(LoggingMiddleware)

    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()
