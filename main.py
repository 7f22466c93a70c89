import importlib
import logging
import pathlib
import pkgutil
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from db.database import build_engine, build_session_factory, init_db
from routes.limiter import limiter as route_limiter
from services.container import build_services
from services.exceptions import (
    IpBlockedError,
    NotLinkOwnerError,
    ShortCodeConflictError,
    ShortCodeNotFoundError,
    SpamRejectedError,
    StoreUnavailableError,
    ValidationError,
)
from settings import Settings
from utils.logging_utils import setup_logging

logger = logging.getLogger("shortlink.app")


def _include_all_routers(app: FastAPI) -> None:
    import routes

    package_path = pathlib.Path(routes.__file__).parent
    for mod in pkgutil.iter_modules([str(package_path)]):
        module = importlib.import_module(f"routes.{mod.name}")
        for name in dir(module):
            attr = getattr(module, name)
            if isinstance(attr, APIRouter):
                app.include_router(attr)


def _request_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    # pydantic locations -> the same {field, message} shape the domain validator emits
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")) or "body"
        message = f"{field} is required" if err.get("type") == "missing" else err.get("msg", "Invalid value")
        errors.append({"field": field, "message": message})
    return errors


def _register_exception_handlers(app: FastAPI) -> None:
    # Domain errors -> HTTP responses. Bodies stay generic: no thresholds, no store details.
    @app.exception_handler(ValidationError)
    async def validation_handler(_, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": exc.errors})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": _request_errors(exc)})

    @app.exception_handler(SpamRejectedError)
    async def spam_handler(_, exc: SpamRejectedError):
        return JSONResponse(
            status_code=429,
            content={
                "detail": "Your request appears to be spam. Please try again later.",
                "reason": exc.reason.value,
            },
        )

    @app.exception_handler(IpBlockedError)
    async def blocked_handler(_, __):
        return JSONResponse(
            status_code=403,
            content={"detail": "Your IP address has been blocked due to suspicious activity"},
        )

    @app.exception_handler(NotLinkOwnerError)
    async def not_owner_handler(_, __):
        return JSONResponse(status_code=403, content={"detail": "Not authorized to modify this link"})

    @app.exception_handler(ShortCodeNotFoundError)
    async def not_found_handler(_, __):
        return JSONResponse(status_code=404, content={"detail": "Short code not found"})

    @app.exception_handler(ShortCodeConflictError)
    async def conflict_handler(_, __):
        return JSONResponse(status_code=409, content={"detail": "Short code already exists"})

    @app.exception_handler(StoreUnavailableError)
    async def store_handler(request, exc: StoreUnavailableError):
        logger.error("store unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(level=settings.log_level, file_path=settings.log_file)

    engine = build_engine(settings.database_url)
    session_factory = build_session_factory(engine)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        await init_db(engine)
        yield
        await engine.dispose()

    app = FastAPI(title="Short Link Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = build_services(settings, session_factory)

    # Attach rate limiter to app state (required by slowapi)
    route_limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = route_limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Registered before the routers so the root-level redirect cannot shadow it
    @app.get("/health", include_in_schema=False)
    async def health():
        return {"status": "ok"}

    _include_all_routers(app)
    _register_exception_handlers(app)
    return app


app = create_app()
