"""NEPP Portal - notification service API."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from nepp.config import get_settings
from nepp.errors import StoreUnavailable, ValidationError
from nepp.logging_config import configure_logging

settings = get_settings()
configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: create tables and wire services
    from nepp.container import ServiceContainer
    from nepp.database import Base, SessionLocal, engine

    # Import all models so they're registered with Base
    from nepp import models  # noqa: F401

    Base.metadata.create_all(bind=engine)

    container = ServiceContainer(settings, SessionLocal)
    app.state.container = container
    container.start()

    yield
    # Shutdown: stop timers
    container.shutdown()


app = FastAPI(
    title=settings.app_name,
    description="Form notifications, due-date reminders and unread badges for the NEPP portal",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=503, content={"detail": "Notification store unavailable"})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from nepp.api import auth, forms, notifications, users  # noqa: E402

app.include_router(auth.router, prefix="/api")
app.include_router(forms.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(notifications.router, prefix="/api")
