"""FastAPI application entry point.

The lifespan handler loads documents from disk and creates the note store,
the model client with its retrying invoker, and the review rate limiter.
All state is stored on app.state for access by route handlers.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .documents.loader import load_documents
from .engine.invoker import AIInvoker
from .engine.model_client import ModelClient
from .logging import logger, print_settings
from .notes.store import InMemoryNoteStore
from .policy.rate_limit import RateLimiter
from .routes import health_router, notes_router, review_router, settings_router

logger.info("Starting Block Feedback Service")

# Print settings with sensitive data masked
print_settings(settings)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.documents = load_documents(settings.documents_dir)
    logger.info(f"Loaded {len(app.state.documents)} document(s)")

    app.state.note_store = InMemoryNoteStore()
    app.state.rate_limiter = RateLimiter()

    app.state.invoker = AIInvoker(ModelClient())
    logger.info(f"Model client initialized: {settings.ai_base_url} / default model {settings.default_model}")

    yield

    await app.state.note_store.close()


# Initialize FastAPI app
app = FastAPI(title="Block Feedback Service", version="0.1.0", lifespan=lifespan)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",")],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Include routers
app.include_router(health_router)
app.include_router(settings_router)
app.include_router(review_router)
app.include_router(notes_router)
