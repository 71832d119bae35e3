from fastapi import APIRouter

from .auth import router as auth_router
from .estadisticas import router as estadisticas_router
from .direcciones import router as direcciones_router
from .directivos import router as directivos_router
from .personal import router as personal_router
from .actividades import router as actividades_router
from .logo import router as logo_router
from .comunicados import router as comunicados_router
from .tareas import router as tareas_router


api_router = APIRouter()

# Las rutas conservan las URLs públicas existentes, por eso no llevan prefijo propio
api_router.include_router(auth_router, tags=["authentication"])
api_router.include_router(estadisticas_router, tags=["estadisticas"])
api_router.include_router(direcciones_router, tags=["direcciones"])
api_router.include_router(directivos_router, tags=["directivos"])
api_router.include_router(personal_router, tags=["personal"])
api_router.include_router(actividades_router, tags=["actividades"])
api_router.include_router(logo_router, tags=["logo"])
api_router.include_router(comunicados_router, tags=["comunicados"])
api_router.include_router(tareas_router, tags=["tareas"])
