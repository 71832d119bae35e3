import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from university_api.api import api_router
from university_api.config import settings
from university_api.database import SessionLocal, create_tables
from university_api.schemas.common import HealthCheck
from university_api.utils.storage import blob_store

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup

    # Las tablas se crean con Alembic (alembic upgrade head);
    # AUTO_CREATE_TABLES solo debe usarse en desarrollo
    if settings.auto_create_tables:
        create_tables()
        logger.info("Tablas creadas automáticamente")

    yield


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    API de administración universitaria

    Esta API proporciona endpoints para:
    - Super usuarios, directivos y personal, con login unificado
    - Direcciones (unidades organizacionales)
    - Actividades con imágenes y comunicados
    - Asignación y seguimiento de tareas con archivos de evidencia
    - Logo institucional

    ## Autenticación

    `/login-general` devuelve un token JWT. Para rutas que identifican al usuario
    incluye el header: `Authorization: Bearer <token>`
    """,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Create necessary directories if they don't exist
blob_store.ensure_directories()

# Mount uploaded files
app.mount("/uploads", StaticFiles(directory=str(blob_store.root)), name="uploads")

# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Custom validation exception handler with improved error messages"""
    # Extract the first error message for a cleaner user experience
    first_error = exc.errors()[0] if exc.errors() else {}
    error_msg = first_error.get('msg', 'Validation error')
    field = first_error.get('loc', ['unknown'])[-1] if first_error.get('loc') else 'unknown'
    error_type = first_error.get('type', 'validation_error')
    input_value = first_error.get('input', 'unknown')

    # Provide more specific error messages for common validation errors
    if error_type == 'int_parsing':
        user_message = f"El parámetro '{field}' debe ser un número entero válido. Valor recibido: '{input_value}'"
    elif error_type == 'missing':
        user_message = f"El parámetro requerido '{field}' no fue proporcionado"
    elif error_type == 'value_error':
        # Mensaje definido en los validadores de los esquemas
        user_message = error_msg.removeprefix("Value error, ")
    else:
        user_message = f"Error de validación en el campo '{field}': {error_msg}"

    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": user_message,
            "error_code": 400,
            "field": field,
            "error_type": error_type,
            "timestamp": time.time()
        }
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Custom HTTP exception handler"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "error_code": exc.status_code,
            "timestamp": time.time()
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(OperationalError)
async def database_exception_handler(request: Request, exc: OperationalError):
    """Datastore unreachable"""
    logger.error(f"Error de base de datos en {request.url.path}: {str(exc)}")
    content = {
        "success": False,
        "error": "Servicio no disponible",
        "error_code": 500,
        "timestamp": time.time()
    }
    if settings.debug:
        content["detail"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """General exception handler"""
    logger.error(f"Error no controlado en {request.url.path}: {str(exc)}", exc_info=exc)
    content = {
        "success": False,
        "error": "Error interno del servidor",
        "error_code": 500,
        "timestamp": time.time()
    }
    if settings.debug:
        content["detail"] = str(exc)
    return JSONResponse(status_code=500, content=content)


@app.get("/", include_in_schema=False)
async def root():
    """Root endpoint"""
    return {
        "message": settings.app_name,
        "version": settings.app_version,
        "api": settings.api_prefix,
    }


@app.get("/health", response_model=HealthCheck, tags=["health"])
def health_check() -> Any:
    """Health check endpoint"""
    database = "connected"
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    except OperationalError as e:
        logger.error(f"Health check: base de datos no disponible: {str(e)}")
        database = "disconnected"
    finally:
        db.close()

    return HealthCheck(
        status="healthy" if database == "connected" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=settings.app_version,
        database=database,
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "university_api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
