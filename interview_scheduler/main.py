import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from interview_scheduler.api.errors import register_exception_handlers
from interview_scheduler.api.v1.availability import router as availability_router
from interview_scheduler.api.v1.bookings import router as bookings_router
from interview_scheduler.api.v1.invitations import router as invitations_router
from interview_scheduler.api.v1.reminders import router as reminders_router
from interview_scheduler.api.v1.slots import router as slots_router
from interview_scheduler.core.config import Settings, settings
from interview_scheduler.wiring.container import build_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("booking_id", "slot_id", "employer_id", "event", "status", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)


def create_app(app_settings: Settings | None = None, **overrides) -> FastAPI:
    """Build the application. ``overrides`` are passed to ``build_container`` (directory, email, sink)."""
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = build_container(app_settings, **overrides)
        app.state.container = container
        logging.getLogger(__name__).info("Container ready", extra={"status": app_settings.STORE_PROVIDER})
        try:
            yield
        finally:
            container.close()

    app = FastAPI(title=app_settings.APP_NAME, version="1.0.0", lifespan=lifespan)
    register_exception_handlers(app)

    app.include_router(slots_router, prefix="/api/v1", tags=["slots"])
    app.include_router(availability_router, prefix="/api/v1", tags=["availability"])
    app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])
    app.include_router(invitations_router, prefix="/api/v1", tags=["invitations"])
    app.include_router(reminders_router, prefix="/api/v1", tags=["reminders"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
