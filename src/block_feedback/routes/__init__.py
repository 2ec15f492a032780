from .health import router as health_router
from .notes import router as notes_router
from .review import router as review_router
from .settings import router as settings_router

__all__ = ["health_router", "notes_router", "review_router", "settings_router"]
