from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import sys
from pathlib import Path
import logging
import os
from datetime import datetime
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load .env variables
load_dotenv()

# Configure base logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("app")

# Add the parent directory to sys.path
sys.path.append(str(Path(__file__).parent.parent))

from app.routers import admin, asiento, assignments, public, registro
from app.database import engine, Base, SessionLocal
from app.init_db import create_initial_admins
from app.services.email import email_service
import uvicorn


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create database tables
    Base.metadata.create_all(bind=engine)

    # Initialize super admin
    logger.info("Initializing database with super admin...")
    db = SessionLocal()
    try:
        create_initial_admins(db)
    finally:
        db.close()
    yield


app = FastAPI(
    title="Asientos API",
    description="API para la asignación de asientos de la ceremonia de graduación",
    version="1.0.0",
    lifespan=lifespan,
)


# Configure email error reporting
def _configure_email_error_reporting() -> bool:
    enable_emails = os.getenv("ENABLE_ERROR_EMAILS", "false").lower() in {
        "1",
        "true",
        "yes",
    }

    if not enable_emails:
        logger.info(
            "Email error reporting disabled (ENABLE_ERROR_EMAILS not set or false)"
        )
        return False

    if not email_service.is_configured():
        logger.warning("Email service not configured: missing SMTP settings")
        return False

    logger.info("Email error reporting configured successfully")
    return True


ERROR_EMAILS_ENABLED = _configure_email_error_reporting()

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(registro.router, prefix="/api/registro", tags=["registro"])
app.include_router(asiento.router, prefix="/api/asiento", tags=["asiento"])
app.include_router(public.router, prefix="/api/public", tags=["public"])
app.include_router(assignments.router, prefix="/api/assignments", tags=["assignments"])
app.include_router(assignments.ws_router, tags=["realtime"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])


@app.get("/")
def read_root():
    return {"message": "Welcome to Asientos API"}


# Errors are returned as {"error": message}
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# Global unhandled exception handler -> logs ERROR and sends email
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled error | path=%s | method=%s | client=%s",
        request.url.path,
        request.method,
        request.client.host if request.client else "unknown",
    )

    if ERROR_EMAILS_ENABLED:
        email_service.send_error_email(
            {
                "path": request.url.path,
                "method": request.method,
                "client": request.client.host if request.client else "unknown",
                "exception": exc,
                "timestamp": datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S"),
            }
        )

    return JSONResponse(status_code=500, content={"error": "Error interno"})


if __name__ == "__main__":
    uvicorn.run("app.main:app", host="0.0.0.0", port=5009, reload=True)
