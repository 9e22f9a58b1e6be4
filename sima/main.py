import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from sima.api import routers
from sima.core.config import Settings, get_settings
from sima.core.error_handlers import register_exception_handlers
from sima.core.logging_config import configure_logging
from sima.core.metrics import RequestMetrics
from sima.core.security import PasswordHasher, TokenService
from sima.db.session import close_db_pool, connect_db_pool
from sima.middleware.auth_middleware import AuthMiddleware
from sima.services.upload_service import PUBLIC_PREFIX, UploadService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, connect_db: bool = True) -> FastAPI:
    settings = settings or get_settings()
    settings.validate_for_production()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if connect_db:
            await connect_db_pool(settings)
        logger.info("%s started (%s)", settings.APP_NAME, settings.ENVIRONMENT)
        yield
        if connect_db:
            await close_db_pool()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Registro de personas y antecedentes con control de acceso y auditoría",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.token_service = TokenService(settings)
    app.state.password_hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    app.state.upload_service = UploadService(settings)
    app.state.metrics = RequestMetrics(maxlen=settings.METRICS_BUFFER_SIZE,
                                       slow_ms=settings.SLOW_REQUEST_MS)

    app.add_middleware(AuthMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(routers.router)
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

    return app


app = create_app()
