"""
Utilidades de cálculo monetario compartidas por los módulos de documentos y nómina
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Union

Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Convierte int/float/str a Decimal sin arrastrar errores binarios de float."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def money(value: Number) -> Decimal:
    """Redondeo a 2 decimales (half-up)."""
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_rupee(value: Number) -> Decimal:
    """Redondeo al entero más cercano, expresado con 2 decimales."""
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP).quantize(TWO_PLACES)


def round_to_ten(value: Number) -> Decimal:
    """Redondeo a la decena más cercana (cifras del dashboard de nómina)."""
    tens = (to_decimal(value) / Decimal("10")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return (tens * Decimal("10")).quantize(TWO_PLACES)
