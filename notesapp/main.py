import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn

from .config import Settings, get_settings
from .db import lifespan_db
from .errors import AppError
from .api.routers import health as health_router
from .api.routers import auth as auth_router
from .api.routers import notes as notes_router
from .api.routers import dev as dev_router
from .observability.logging import setup_logging
from .observability.metrics import MetricsHTTPMiddleware, metrics_app
from .middleware.request_context import RequestContextMiddleware
from .services.google_identity import GoogleTokenVerifier, IdentityVerifier
from .services.mailer import DispatchLog, Mailer, build_mailer

settings = get_settings()
setup_logging()
log = logging.getLogger("notesapp")

DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
]


def _allowed_origins(s: Settings) -> list[str]:
    origins = [s.FRONTEND_ORIGIN]
    if s.ENV != "prod":
        origins += [o for o in DEV_ORIGINS if o != s.FRONTEND_ORIGIN]
    return origins


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(_: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        log.exception("unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "Server error"})


def create_app(
    *,
    mailer: Optional[Mailer] = None,
    identity_verifier: Optional[IdentityVerifier] = None,
    dispatch_log: Optional[DispatchLog] = None,
) -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG, lifespan=lifespan_db)

    app.state.dispatch_log = dispatch_log or DispatchLog()
    app.state.mailer = mailer or build_mailer(settings, app.state.dispatch_log)
    app.state.identity_verifier = identity_verifier or GoogleTokenVerifier(settings.GOOGLE_CLIENT_ID)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.REQUEST_ID_HEADER],
    )

    # then your custom middlewares
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(MetricsHTTPMiddleware)

    _install_error_handlers(app)

    app.include_router(health_router.router)
    app.include_router(auth_router.router)
    app.include_router(notes_router.router)
    app.add_api_route("/metrics", metrics_app(), methods=["GET"], include_in_schema=False)
    if settings.dev_tools_mounted:
        log.warning("developer routes mounted under /api/dev and /api/test")
        app.include_router(dev_router.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("notesapp.main:app", host=settings.APP_HOST, port=settings.APP_PORT, reload=settings.ENV == "dev")
