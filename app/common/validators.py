"""
Validadores específicos para India (GSTIN, PIN, IFSC, teléfono)
y normalización de sub-listas con bandera única (primario/por defecto)
"""
import re
from typing import Any, Dict, List, Optional
from uuid import uuid4


GSTIN_PATTERN = re.compile(r'^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$')
IFSC_PATTERN = re.compile(r'^[A-Z]{4}0[A-Z0-9]{6}$')


def validate_gstin(gstin: str) -> bool:
    """
    Valida GSTIN indio.
    - 15 caracteres
    - 2 dígitos de estado + PAN (10) + entidad + 'Z' + checksum
    """
    cleaned = gstin.strip().upper()
    return bool(GSTIN_PATTERN.match(cleaned))


def validate_pincode(pincode: str) -> bool:
    """PIN code indio: 6 dígitos, no empieza con 0."""
    cleaned = re.sub(r'\s', '', pincode)
    return bool(re.match(r'^[1-9][0-9]{5}$', cleaned))


def validate_ifsc(ifsc: str) -> bool:
    """IFSC: 4 letras de banco, '0', 6 alfanuméricos de sucursal."""
    return bool(IFSC_PATTERN.match(ifsc.strip().upper()))


def validate_india_phone(phone: str) -> bool:
    """
    Valida teléfono indio.
    Formatos válidos:
    - +91XXXXXXXXXX / 91XXXXXXXXXX
    - 0XXXXXXXXXX (fijo con código STD)
    - XXXXXXXXXX (10 dígitos)
    """
    cleaned = re.sub(r'[\s\-\(\)]', '', phone)
    patterns = [
        r'^\+91[6-9][0-9]{9}$',
        r'^91[6-9][0-9]{9}$',
        r'^0[1-9][0-9]{9}$',
        r'^[6-9][0-9]{9}$',
        r'^[1-9][0-9]{9}$',
    ]
    return any(re.match(pattern, cleaned) for pattern in patterns)


def clean_gstin(gstin: Optional[str]) -> Optional[str]:
    """Normaliza GSTIN a mayúsculas; vacío -> None."""
    if gstin is None:
        return None
    cleaned = gstin.strip().upper()
    return cleaned or None


def normalize_flagged_list(
    items: Optional[List[Dict[str, Any]]],
    flag: str
) -> List[Dict[str, Any]]:
    """
    Asegura ids y a lo sumo una entrada con `flag` en True.

    - Cada entrada sin id recibe uno nuevo.
    - Si hay varias marcadas, gana la primera marcada.
    - Si ninguna está marcada y la lista no está vacía, se marca la primera.
    """
    normalized: List[Dict[str, Any]] = []
    flagged_seen = False
    for item in items or []:
        entry = dict(item)
        if not entry.get("id"):
            entry["id"] = str(uuid4())
        else:
            entry["id"] = str(entry["id"])
        if entry.get(flag) and not flagged_seen:
            entry[flag] = True
            flagged_seen = True
        else:
            entry[flag] = False
        normalized.append(entry)

    if normalized and not flagged_seen:
        normalized[0][flag] = True

    return normalized


def needs_flag_normalization(items: Optional[List[Dict[str, Any]]], flag: str) -> bool:
    """True si la lista tiene entradas sin id o no exactamente una bandera."""
    if not items:
        return False
    flagged = sum(1 for item in items if item.get(flag))
    missing_ids = any(not item.get("id") for item in items)
    return flagged != 1 or missing_ids
