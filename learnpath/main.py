"""LearnPath API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnpath.assessments.router import course_assessments_router
from learnpath.assessments.router import router as assessments_router
from learnpath.assessments.service import AssessmentService
from learnpath.auth.service import UserService
from learnpath.config import get_settings
from learnpath.core.context import get_request_id
from learnpath.core.database import init_async_cassandra, shutdown_async_cassandra
from learnpath.core.logging import configure_structlog, get_logger
from learnpath.core.middleware import RequestContextMiddleware
from learnpath.core.redis import init_redis, shutdown_redis
from learnpath.courses.router import router as courses_router
from learnpath.courses.service import CourseService
from learnpath.health import router as health_router
from learnpath.leaderboard.router import router as leaderboard_router
from learnpath.leaderboard.service import LeaderboardService
from learnpath.preferences.router import router as preferences_router
from learnpath.preferences.service import PreferencesService, RedisPreferenceStore
from learnpath.progress.router import enrollments_router
from learnpath.progress.router import router as progress_router
from learnpath.progress.service import ProgressService
from learnpath.quizzes.router import course_quiz_router, quizzes_router
from learnpath.quizzes.router import router as quiz_submissions_router
from learnpath.quizzes.service import QuizService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)

SAFE_5XX_STATUSES = frozenset(
    {status.HTTP_503_SERVICE_UNAVAILABLE, status.HTTP_504_GATEWAY_TIMEOUT}
)


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    user_service: UserService | None = None
    course_service: CourseService | None = None
    progress_service: ProgressService | None = None
    quiz_service: QuizService | None = None
    assessment_service: AssessmentService | None = None
    leaderboard_service: LeaderboardService | None = None
    preferences_service: PreferencesService | None = None


app_state = AppState()


def init_services(app: FastAPI, session: Any) -> None:
    """Build the Cassandra-backed services and expose them on app.state."""
    settings = get_settings()
    keyspace = settings.cassandra_keyspace

    app_state.user_service = UserService(session=session, keyspace=keyspace)
    app_state.course_service = CourseService(session=session, keyspace=keyspace)
    app_state.progress_service = ProgressService(session=session, keyspace=keyspace)
    logger.info("core_services_initialized")

    app_state.quiz_service = QuizService(
        session=session,
        keyspace=keyspace,
        course_service=app_state.course_service,
        progress_service=app_state.progress_service,
        max_attempts=settings.quiz_max_attempts,
        completion_min_score=settings.quiz_completion_min_score,
    )
    logger.info(
        "quiz_service_initialized",
        max_attempts=settings.quiz_max_attempts,
        completion_min_score=settings.quiz_completion_min_score,
    )

    app_state.assessment_service = AssessmentService(
        session=session,
        keyspace=keyspace,
        progress_service=app_state.progress_service,
    )
    logger.info("assessment_service_initialized")

    app_state.leaderboard_service = LeaderboardService(
        user_service=app_state.user_service,
        course_service=app_state.course_service,
        progress_service=app_state.progress_service,
        quiz_service=app_state.quiz_service,
        max_concurrency=settings.leaderboard_max_concurrency,
        timeout_seconds=settings.leaderboard_timeout_seconds,
    )
    logger.info("leaderboard_service_initialized")

    app.state.user_service = app_state.user_service
    app.state.course_service = app_state.course_service
    app.state.progress_service = app_state.progress_service
    app.state.quiz_service = app_state.quiz_service
    app.state.assessment_service = app_state.assessment_service
    app.state.leaderboard_service = app_state.leaderboard_service


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Initialize Redis (non-critical - only preferences need it)
    try:
        redis_client = await init_redis()
        app_state.preferences_service = PreferencesService(
            RedisPreferenceStore(redis_client, settings.preferences_key_prefix)
        )
        app.state.preferences_service = app_state.preferences_service
        logger.info("preferences_service_initialized")
    except Exception as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - preferences disabled",
        )

    # Initialize Cassandra (async)
    try:
        app_state.cassandra_session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        init_services(app, app_state.cassandra_session)
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps Starlette's ServerErrorMiddleware from rendering
    # stack traces; the handlers below log details and return safe messages.
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="LearnPath e-learning API: quizzes, progress and leaderboard",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    # Global exception handlers (never expose stack traces)
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        # Unavailable and timeout messages are safe; other 5xx are masked
        message = (
            str(exc.detail)
            if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
            or exc.status_code in SAFE_5XX_STATUSES
            else "Internal server error"
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": message,
                "status_code": exc.status_code,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with per-field details."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Full details go to the log; the caller gets a generic message.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(course_quiz_router)
    app.include_router(enrollments_router)
    app.include_router(progress_router)
    app.include_router(quiz_submissions_router)
    app.include_router(quizzes_router)
    app.include_router(assessments_router)
    app.include_router(course_assessments_router)
    app.include_router(leaderboard_router)
    app.include_router(preferences_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "LearnPath API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
