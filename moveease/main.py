import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .database import init_db
from .errors import MoveEaseError, ValidationError
from .routers import checklists, estimates, geo, progress, user
from .schemas import UserCreate, UserRead
from .services.estimator import (
    AvailabilityOracle,
    DistanceEstimator,
    RandomAvailabilityOracle,
    RandomDistanceEstimator,
)
from .settings.config import Settings, settings as default_settings
from .storage import DatabaseStorage, Storage, build_storage
from .users import auth_backend, fastapi_users

logger = logging.getLogger(__name__)


def _field_errors(exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        # drop the "body"/"query" prefix FastAPI puts in front of the field path
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return errors


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": "Validation error", "errors": _field_errors(exc)})

    @app.exception_handler(ValidationError)
    async def _validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": exc.message, "errors": exc.errors})

    @app.exception_handler(MoveEaseError)
    async def _moveease_error_handler(request: Request, exc: MoveEaseError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def _internal_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[Storage] = None,
    distance_estimator: Optional[DistanceEstimator] = None,
    availability: Optional[AvailabilityOracle] = None,
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.LOG_LEVEL)

    app = FastAPI(title="MoveEase")
    app.state.settings = settings
    app.state.storage = storage or build_storage(settings)
    app.state.distance_estimator = distance_estimator or RandomDistanceEstimator()
    app.state.availability = availability or RandomAvailabilityOracle()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ----------------------
    # Route Includes
    # ----------------------
    app.include_router(estimates.router)
    app.include_router(checklists.router)
    app.include_router(progress.router)
    app.include_router(geo.router)
    app.include_router(user.router)

    # Authentication Routes
    app.include_router(
        fastapi_users.get_auth_router(auth_backend),
        prefix="/auth/jwt",
        tags=["auth"],
    )
    app.include_router(
        fastapi_users.get_register_router(UserRead, UserCreate),
        prefix="/auth",
        tags=["auth"],
    )

    _register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        store = app.state.storage
        if settings.RUN_DB_CREATE_ALL and isinstance(store, DatabaseStorage) and store.engine is not None:
            await init_db(store.engine)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.storage.close()

    return app


app = create_app()
