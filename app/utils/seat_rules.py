"""
Reglas de ocupación de asientos.

Lógica pura: recibe la fila actual del asiento (o None) y la identidad de quien
pide, y decide si la operación procede y qué mutación aplicar. No toca la base.

Un asiento puede estar:
    - Empty: no hay fila en "assignments".
    - OpenSlot(categoria): cupo reutilizable de una categoría ("Cupo Disponible").
    - Held(registro_id, nombre, categoria): ocupado por un registro.
"""
import os
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Union

from app.models.assignment import SLOT_SENTINELS
from app.utils.errors import Forbidden, NotAssigned, SeatUnavailable

DEFAULT_SLOT_REUSE_CATEGORIES = "docente"


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class OpenSlot:
    categoria: str


@dataclass(frozen=True)
class Held:
    registro_id: int
    nombre: str
    categoria: str


Occupant = Union[Empty, OpenSlot, Held]


@dataclass(frozen=True)
class Requester:
    id: int
    nombre: str
    categoria: str


@dataclass(frozen=True)
class ClaimPlan:
    # Hay que borrar la fila existente del asiento antes de insertar
    replace_existing: bool
    from_slot: bool


REVERT = "revert"
DELETE = "delete"


def get_slot_reuse_categories() -> FrozenSet[str]:
    """Categorías cuyos asientos vuelven a ser cupo abierto al liberarse."""
    raw = os.getenv("SLOT_REUSE_CATEGORIES", DEFAULT_SLOT_REUSE_CATEGORIES)
    return frozenset(c.strip().lower() for c in raw.split(",") if c.strip())


def classify(existing) -> Occupant:
    if existing is None:
        return Empty()
    if existing.registro_id is None or existing.nombre_invitado in SLOT_SENTINELS:
        return OpenSlot(existing.categoria)
    return Held(existing.registro_id, existing.nombre_invitado, existing.categoria)


def is_open_slot_for(existing, categoria: str) -> bool:
    occupant = classify(existing)
    return isinstance(occupant, OpenSlot) and occupant.categoria == categoria


def decide_claim(
    existing, requester: Requester, quota_categories: Iterable[str] = ()
) -> ClaimPlan:
    """
    Decide si el registro puede ocupar el asiento.

    Args:
        existing: Fila actual del asiento o None
        requester: Identidad de quien reserva
        quota_categories: Categorías con cupo fijo en el evento; solo pueden
            ocupar cupos abiertos, nunca asientos libres sin fila

    Returns:
        ClaimPlan con la mutación a aplicar

    Raises:
        SeatUnavailable: asiento ocupado por otro o de otra categoría
    """
    if existing is not None and existing.registro_id == requester.id:
        return ClaimPlan(replace_existing=True, from_slot=bool(existing.from_slot))

    occupant = classify(existing)

    if isinstance(occupant, Empty):
        if requester.categoria in set(quota_categories):
            raise SeatUnavailable(
                "Tu categoría solo puede ocupar cupos disponibles de este evento"
            )
        return ClaimPlan(replace_existing=False, from_slot=False)

    if isinstance(occupant, OpenSlot) and occupant.categoria == requester.categoria:
        return ClaimPlan(replace_existing=True, from_slot=True)

    raise SeatUnavailable()


def release_mode(row, slot_reuse_categories: Optional[Iterable[str]] = None) -> str:
    """REVERT si el asiento debe volver a ser cupo abierto, DELETE si desaparece."""
    if slot_reuse_categories is None:
        slot_reuse_categories = get_slot_reuse_categories()
    if row.categoria in set(slot_reuse_categories) or row.from_slot:
        return REVERT
    return DELETE


def decide_release(
    existing,
    requester: Requester,
    slot_reuse_categories: Optional[Iterable[str]] = None,
) -> str:
    if existing is None:
        raise NotAssigned()
    if existing.registro_id != requester.id:
        raise Forbidden()
    return release_mode(existing, slot_reuse_categories)
