"""
deckforge - Norwegian AI presentation generator
Main entry point for the HTTP and WebSocket API.

Endpoints:
- GET  /health          service status and provider flags
- POST /api/generate    full pipeline, returns outline + deck
- POST /api/outline     composed outline only
- GET  /api/templates   golden template options
- WS   /ws/generate     streamed generation (progress, checkpoints, result)
"""

import os
import tempfile
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables
load_dotenv()

# Google libraries read credentials from a file, production passes them as JSON
if os.environ.get('GCP_SERVICE_ACCOUNT_JSON'):
    try:
        with tempfile.NamedTemporaryFile(mode='w', delete=False, suffix='.json') as f:
            f.write(os.environ['GCP_SERVICE_ACCOUNT_JSON'])
        os.environ['GOOGLE_APPLICATION_CREDENTIALS'] = f.name
    except OSError as e:
        print(f"Failed to set up Google credentials: {e}")

# Configure Logfire early in startup
from deckforge.utils.logfire_config import configure_logfire, instrument_agents, instrument_fastapi
configure_logfire()

from config.settings import get_settings
from deckforge import __version__
from deckforge.agents.errors import PipelineError
from deckforge.agents.pipeline import create_pipeline
from deckforge.core.content_analyzer import analyze_content
from deckforge.core.templates import get_template_options
from deckforge.handlers.websocket import GenerationStreamHandler
from deckforge.models.deck import GenerationRequest, GenerationResult
from deckforge.models.slide import Outline
from deckforge.utils.gcp_auth import get_project_info
from deckforge.utils.logger import setup_logger

logger = setup_logger(__name__)
settings = get_settings()

_handler_instance: Optional[GenerationStreamHandler] = None


def get_handler() -> GenerationStreamHandler:
    """Get or create the shared WebSocket handler."""
    global _handler_instance
    if _handler_instance is None:
        _handler_instance = GenerationStreamHandler()
    return _handler_instance


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting deckforge API v{__version__}...")

    if not settings.API_ENABLED:
        logger.warning("API_ENABLED is set to False - generation endpoints are DISABLED")
        yield
        return

    instrument_agents()

    if settings.use_mock_llm:
        logger.info("🧪 FAKE_LLM active - using deterministic mock clients")
    if not settings.has_storage:
        logger.warning("Supabase storage not configured - generated images will not be persisted")

    yield
    logger.info("Shutting down deckforge API...")


app = FastAPI(
    title="deckforge API",
    version=__version__,
    description="Norwegian AI presentation generation pipeline",
    lifespan=lifespan,
)
instrument_fastapi(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request, exc: PipelineError):
    logger.error(f"Pipeline error: {exc}")
    return JSONResponse(status_code=502, content=exc.to_dict())


def _ensure_enabled():
    if not settings.API_ENABLED:
        return JSONResponse(status_code=503, content={"code": "API_DISABLED", "message": "Service is disabled"})
    return None


@app.get("/health")
async def health_check():
    return {
        "status": "healthy" if settings.API_ENABLED else "disabled",
        "service": "deckforge",
        "version": __version__,
        "environment": settings.APP_ENV,
        "mock_llm": settings.use_mock_llm,
        "mock_images": settings.use_mock_images,
        "storage_configured": settings.has_storage,
        "vertex": get_project_info(),
    }


@app.post("/api/generate", response_model=GenerationResult)
async def generate(request: GenerationRequest, deck_id: Optional[str] = None):
    """Run the full pipeline. Images are only generated when a deck_id is given."""
    disabled = _ensure_enabled()
    if disabled:
        return disabled

    pipeline = create_pipeline(settings, deck_id=deck_id)
    result = await pipeline.generate(request)
    logger.info(f"✅ Generated deck '{result.deck.deck.title}' with {len(result.deck.slides)} slides")
    return result


@app.post("/api/outline", response_model=Outline)
async def outline(request: GenerationRequest):
    """Composed, count- and distribution-enforced outline, without slide content."""
    disabled = _ensure_enabled()
    if disabled:
        return disabled

    pipeline = create_pipeline(settings)
    return await pipeline.plan_outline(request, analyze_content(request.input_text))


@app.get("/api/templates")
async def templates():
    return {"templates": [option.model_dump(mode="json") for option in get_template_options()]}


@app.websocket("/ws/generate")
async def websocket_generate(websocket: WebSocket):
    if not settings.API_ENABLED:
        await websocket.close(code=1013, reason="Service temporarily unavailable - API disabled")
        return
    await get_handler().handle_connection(websocket)


@app.get("/")
async def root():
    return {
        "name": "deckforge API",
        "version": __version__,
        "endpoints": {
            "health": "/health",
            "generate": "POST /api/generate?deck_id={deck_id}",
            "outline": "POST /api/outline",
            "templates": "/api/templates",
            "websocket": "/ws/generate",
        },
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="debug" if settings.DEBUG else "info",
        reload=settings.DEBUG,
    )
