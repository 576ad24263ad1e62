import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Dict, Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, settings as default_settings
from app.routers import ai, auth, consultation_ws, verification
from app.services.assistant import GeminiAssistant
from app.services.auth_service import AuthService
from app.services.federated import FirebaseTokenVerifier
from app.services.identity_store import IdentityStore, InMemoryIdentityStore, MongoIdentityStore
from app.services.room_broker import RoomBroker
from common.database import create_mongo_client, ping
from common.exceptions import AppError, BadRequest
from common.utils.security import TokenService

# Configure logging
logging.basicConfig(
    level=logging.INFO if not default_settings.DEBUG else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def build_identity_store(settings: Settings, service_state: Dict[str, Any]) -> IdentityStore:
    """Open the configured store, falling back to in-memory when MongoDB is unreachable."""
    if settings.STORE_BACKEND == "memory":
        return InMemoryIdentityStore()

    client = create_mongo_client(settings.MONGODB_URI)
    service_state["mongodb"] = ping(client)
    if not service_state["mongodb"]:
        client.close()
        logger.warning("  MongoDB: Not available - using in-memory identity store (demo mode)")
        return InMemoryIdentityStore()
    return MongoIdentityStore.from_client(client, settings.MONGODB_DB)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    settings: Settings = app.state.settings
    service_state: Dict[str, Any] = app.state.service_state
    created = []

    logger.info("=" * 50)
    logger.info(f"{settings.APP_NAME} Starting...")
    logger.info("=" * 50)

    if app.state.store is None:
        app.state.store = build_identity_store(settings, service_state)
        created.append(app.state.store)
    if isinstance(app.state.store, MongoIdentityStore):
        logger.info(f"  MongoDB: Connected to {settings.MONGODB_DB}")
    else:
        logger.info("  Identity store: in-memory")

    if app.state.federated is None:
        app.state.federated = FirebaseTokenVerifier(
            settings.FIREBASE_CREDENTIALS_PATH, settings.FIREBASE_PROJECT_ID
        )
        app.state.federated.start()
        created.append(app.state.federated)
    service_state["firebase"] = getattr(app.state.federated, "configured", True)

    if app.state.assistant is None:
        app.state.assistant = GeminiAssistant(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)
        app.state.assistant.start()
        created.append(app.state.assistant)
    service_state["gemini"] = getattr(app.state.assistant, "configured", True)

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        AuthService(app.state.store, app.state.tokens).seed_admin(
            settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME
        )

    service_state["startup_complete"] = True
    logger.info(f"  CORS Origins: {settings.CORS_ORIGINS}")
    logger.info("=" * 50)
    logger.info("HealthPal API Ready")
    logger.info("=" * 50)

    yield

    logger.info("HealthPal API shutting down...")
    service_state["startup_complete"] = False
    for resource in reversed(created):
        resource.close()


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[IdentityStore] = None,
    federated=None,
    assistant=None,
) -> FastAPI:
    """Build the API. Collaborators passed in are used as-is and not closed on shutdown."""
    settings = settings or default_settings

    app = FastAPI(
        title=settings.APP_NAME,
        description="Telehealth backend: accounts, sessions and consultation chat",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.service_state = {
        "mongodb": False,
        "firebase": False,
        "gemini": False,
        "startup_complete": False,
    }
    app.state.store = store
    app.state.federated = federated
    app.state.assistant = assistant
    app.state.tokens = TokenService(
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        expires_delta=timedelta(days=settings.TOKEN_EXPIRE_DAYS),
    )
    app.state.broker = RoomBroker()

    # CORS configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth.router)
    app.include_router(verification.router)
    app.include_router(ai.router)
    app.include_router(consultation_ws.router)

    @app.get("/health")
    async def health_check():
        """Basic health check for load balancers."""
        return {"status": "healthy", "service": "healthpal-api"}

    @app.get("/ready")
    async def readiness_check():
        """Detailed readiness check."""
        state = app.state.service_state
        return {
            "status": "ready" if state["startup_complete"] else "starting",
            "services": {
                "mongodb": state["mongodb"],
                "firebase": state["firebase"],
                "gemini": state["gemini"],
            },
            "realtime": {
                "connections": app.state.broker.connection_count,
                "rooms": app.state.broker.room_count,
            },
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": settings.APP_NAME,
            "version": "1.0.0",
            "docs": "/docs",
        }

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"Error processing {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message, "error": exc.code, **exc.extra},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report the first invalid field in the standard error envelope."""
        errors = exc.errors()
        logger.info(f"Validation error on {request.method} {request.url.path}: {errors}")
        message = None
        if errors:
            field_loc = errors[0].get("loc") or ()
            field = field_loc[-1] if field_loc else "field"
            message = f"{str(field).title()}: {errors[0]['msg']}"
        return await app_error_handler(request, BadRequest(message))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Internal server error",
                "error": "internal_error",
                "detail": str(exc) if settings.DEBUG else None,
            },
        )

    return app


app = create_app()
