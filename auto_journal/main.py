"""
Auto Journal Engine - FastAPI Application.

This is the entry point for the application.
Logging, exception handlers and routers are set up here.
"""

from fastapi import FastAPI

from auto_journal.config import get_settings
from auto_journal.logging_config import configure_logging
from auto_journal.api.errors import register_exception_handlers
from auto_journal.api.health import router as health_router
from auto_journal.api.journals import router as journals_router
from auto_journal.api.accounting import router as accounting_router

settings = get_settings()
configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Automated double-entry journal posting for retail back-office events",
)

register_exception_handlers(app)

# Register routers
app.include_router(health_router)
app.include_router(journals_router)
app.include_router(accounting_router)
