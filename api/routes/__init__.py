"""
Route package initialization.
"""
from .dashboard import router as dashboard_router
from .facebook import router as facebook_router
from .scraping import router as scraping_router
from .settings import router as settings_router
from .vehicles import router as vehicles_router

__all__ = ["dashboard_router", "facebook_router", "scraping_router", "settings_router", "vehicles_router"]
