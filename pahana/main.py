from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
import time
import uvicorn

from .auth import ensure_default_admin
from .core.config import settings
from .core.logging import app_logger
from .core.database import engine, SessionLocal
from .core.exceptions import ConflictError, NotFoundError, StorageError, ValidationError
from .models import models
from .routers import login, customers, items, bills, admin, pages

# Create database tables
models.Base.metadata.create_all(bind=engine)

# Initialize FastAPI
app = FastAPI(
    title=settings.APP_NAME,
    description="Customer, item catalog and billing API",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=["*"]  # Configure appropriately for production
)

# Request logging middleware; /health is not logged
@app.middleware("http")
async def log_requests(request: Request, call_next):
    if request.url.path == "/health":
        return await call_next(request)

    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000

    client = request.client.host if request.client else "-"
    level = "WARNING" if response.status_code >= 400 else "INFO"
    app_logger.log(
        level,
        f"{client} {request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)"
    )
    return response

# Exception handlers
@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    app_logger.warning(f"Conflict: {str(exc)}")
    return JSONResponse(status_code=409, content={"detail": str(exc)})

@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})

@app.exception_handler(StorageError)
async def storage_handler(request: Request, exc: StorageError):
    app_logger.error(f"Storage failure: {str(exc)}")
    return JSONResponse(status_code=503, content={"detail": str(exc)})

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    app_logger.error(f"Global exception: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

# Include routers
app.include_router(login.router)
app.include_router(customers.router)
app.include_router(items.router)
app.include_router(bills.router)
app.include_router(admin.router)
app.include_router(pages.router)

# Health check
@app.get("/")
async def root():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    return {"status": "healthy", "timestamp": time.time()}

# Startup event
@app.on_event("startup")
async def startup_event():
    app_logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    db = SessionLocal()
    try:
        ensure_default_admin(db)
    finally:
        db.close()

# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    app_logger.info("Shutting down application")

def run():
    uvicorn.run(
        "pahana.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="info"
    )

if __name__ == "__main__":
    run()
