import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional, Tuple

import jwt
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from supabase import Client

from app.config import settings
from app.config.settings import DEFAULT_JWT_SECRET
from app.core.exceptions import AppError
from app.core.rate_limit import limiter
from app.modules.auth import routes as auth_routes
from app.modules.users import routes as users_routes
from app.modules.roles import routes as roles_routes
from app.modules.permissions import routes as permissions_routes
from app.modules.testing import routes as testing_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

# Message fragments of unexpected errors that still map to a client status, with the fixed message returned
MESSAGE_STATUS_HINTS = [
    ("UNAUTHORIZED", 401, "UNAUTHORIZED"),
    ("NOT_FOUND", 404, "Resource not found"),
    ("DOES_NOT_EXIST", 404, "Resource not found"),
    ("INVALID", 400, "Bad request"),
    ("BAD_REQUEST", 400, "Bad request"),
]


def error_response(status_code: int, message) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def classify_message(message: str) -> Optional[Tuple[int, str]]:
    for fragment, status_code, public_message in MESSAGE_STATUS_HINTS:
        if fragment in message:
            return status_code, public_message
    return None


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("Application error on %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, exc.detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [error.get("msg", "Invalid value") for error in exc.errors()]
    return error_response(400, messages)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    response = error_response(429, f"Rate limit exceeded: {exc.detail}")
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if view_rate_limit is not None:
        response = request.app.state.limiter._inject_headers(response, view_rate_limit)
    return response


async def jwt_exception_handler(request: Request, exc: jwt.PyJWTError):
    return error_response(401, "Invalid or expired token")


async def global_exception_handler(request: Request, exc: Exception):
    classified = classify_message(str(exc))
    if classified is not None:
        status_code, public_message = classified
        logger.warning("Classified %s as %s: %s", type(exc).__name__, status_code, exc)
        return error_response(status_code, public_message)
    logger.exception("Unhandled exception: %s", exc)
    return error_response(500, "Internal server error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup (environment=%s)", settings.environment)
    yield
    logger.info("Application shutdown")


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"no-referrer"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(supabase: Optional[Client] = None) -> FastAPI:
    """
    Build the application.

    The persistence client can be passed in; otherwise it is created from
    settings on first use.
    """
    if settings.is_production and settings.jwt_secret_key == DEFAULT_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set in production")

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        redirect_slashes=False,
        lifespan=lifespan,
    )
    app.state.supabase = supabase
    app.state.limiter = limiter

    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(jwt.PyJWTError, jwt_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include module routes
    app.include_router(auth_routes.router)
    app.include_router(users_routes.router)
    app.include_router(roles_routes.router)
    app.include_router(permissions_routes.router)
    if settings.enable_test_routes and not settings.is_production:
        logger.warning("Test routes enabled: POST /test/setup wipes the database")
        app.include_router(testing_routes.router)

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}", "status": "healthy"}

    @app.get("/health")
    @limiter.exempt
    async def health():
        return {"status": "healthy"}

    @app.get("/ready")
    @limiter.exempt
    async def ready():
        """Readiness probe: extend here with a database check if needed."""
        return {"status": "ready"}

    return app


app = create_app()
