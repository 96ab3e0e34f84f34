from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from clinic_console.config import get_settings
from clinic_console.dependencies.services import (
    get_auth_client_cached,
    get_manager_client_cached,
    get_session,
)
from clinic_console.health import router as health_router
from clinic_console.routes.appointments import router as appointments_router
from clinic_console.routes.dashboard import router as dashboard_router
from clinic_console.routes.directory import customers_router, dentists_router
from clinic_console.routes.session import router as session_router
from clinic_console.services.exceptions import UnauthorizedError

LOGIN_PATH = "/session/login"


def configure_logging() -> None:
    """Ensure application logs use the INFO level by default."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(logging.INFO)

# Configure logging as soon as the module is loaded
configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    settings = get_settings()

    settings_snapshot = settings.model_dump(exclude={"manager_service_token"})
    logger.info("Application settings on startup: %s", settings_snapshot)

    get_session().on_invalidate(
        lambda: logger.info("Operator must sign in again at %s", LOGIN_PATH)
    )
    manager_client = get_manager_client_cached()
    auth_client = get_auth_client_cached()
    logger.info("Application startup complete.")

    try:
        yield
    finally:
        logger.info("Closing remote service clients.")
        await manager_client.close()
        await auth_client.close()
        logger.info("Application shutdown complete.")


settings = get_settings()
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content={"detail": {"message": str(exc), "login": LOGIN_PATH}},
    )


app.include_router(appointments_router, prefix="/appointments")
app.include_router(customers_router, prefix="/customers")
app.include_router(dentists_router, prefix="/dentists")
app.include_router(dashboard_router, prefix="/dashboard")
app.include_router(session_router, prefix="/session")
app.include_router(health_router)
