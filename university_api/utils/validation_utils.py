"""
Utilidades para validar campos de formularios multipart
"""
from datetime import date, datetime
from typing import Any, Optional

from university_api.exceptions import ValidationError


def is_blank(value: Any) -> bool:
    """True si el valor es None o una cadena vacía tras quitar espacios"""
    return value is None or (isinstance(value, str) and not value.strip())


def clean_text(value: Optional[str]) -> Optional[str]:
    """Quita espacios; las cadenas vacías se guardan como None"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def safe_int_conversion(value: Any, field_name: str, allow_none: bool = True) -> Optional[int]:
    """
    Convierte de manera segura un valor a entero.

    Args:
        value: El valor a convertir
        field_name: Nombre del campo para mensajes de error
        allow_none: Si se permite None como valor válido

    Raises:
        ValidationError: Si la conversión falla
    """
    if is_blank(value):
        if allow_none:
            return None
        raise ValidationError(f"El campo '{field_name}' es requerido")

    if isinstance(value, int):
        return value

    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(
            f"El campo '{field_name}' debe ser un número entero válido. Valor recibido: '{value}'"
        )


def parse_fecha(value: Any, field_name: str, allow_none: bool = False) -> Optional[date]:
    """
    Acepta 'YYYY-MM-DD' o un datetime ISO completo y devuelve solo la fecha.
    """
    if is_blank(value):
        if allow_none:
            return None
        raise ValidationError(f"El campo '{field_name}' es requerido")

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"Fecha inválida en el campo '{field_name}': '{text}'")
