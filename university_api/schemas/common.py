from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class LimitParams(BaseModel):
    """Límite de resultados para listados cortos (recientes)"""
    limit: int = 5

    class Config:
        validate_assignment = True

    def __init__(self, **data):
        super().__init__(**data)
        if self.limit < 1:
            self.limit = 1
        if self.limit > 100:
            self.limit = 100


def parse_limit(raw: Optional[str], default: int = 5) -> int:
    """Convierte el parámetro ``limit`` de la URL; valores no numéricos usan el default"""
    try:
        value = int(raw) if raw is not None else default
    except (TypeError, ValueError):
        value = default
    return LimitParams(limit=value).limit


class HealthCheck(BaseModel):
    status: str = "healthy"
    timestamp: datetime
    version: str
    database: str = "connected"
