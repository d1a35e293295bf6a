# eduable/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.sessions import SessionMiddleware

from .config import Settings, load_settings
from .errors import EduAbleError, InvalidCredentials
from .routes import router
from .seed_data import seed
from .storage import MemStorage, Storage

logger = logging.getLogger(__name__)


def make_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "sql":
        from .database import make_session_factory
        from .sql_storage import SqlStorage

        return SqlStorage(make_session_factory(settings.database_url))
    return MemStorage()


def create_app(settings: Optional[Settings] = None, storage: Optional[Storage] = None) -> FastAPI:
    """
    Собирает приложение. Хранилище живёт в app.state, а не в глобальной
    переменной модуля, так что тесты подставляют своё.
    """
    if settings is None:
        settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if storage is None:
        storage = make_storage(settings)
        if settings.seed_sample_data:
            seed(storage)

    app = FastAPI(title="EduAble API", version="1.0.0")
    app.state.settings = settings
    app.state.storage = storage

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie="eduable_session",
        max_age=settings.session_ttl,
        same_site="lax",
        https_only=settings.https_only,
    )

    app.include_router(router)
    register_error_handlers(app)
    return app


def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(EduAbleError)
    async def domain_error(request: Request, exc: EduAbleError):
        if isinstance(exc, InvalidCredentials):
            return JSONResponse({"message": exc.message}, status_code=exc.status_code)
        return PlainTextResponse(exc.message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        parts = []
        for item in exc.errors():
            # loc вида ("body", "settings", "foo") → settings.foo
            location = ".".join(str(part) for part in item["loc"][1:]) or str(item["loc"][0])
            parts.append(f"{location}: {item['msg']}")
        return PlainTextResponse("Invalid request: " + "; ".join(parts), status_code=400)

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return PlainTextResponse("Internal Server Error", status_code=500)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("eduable.main:create_app", factory=True, host="0.0.0.0", port=8000)
