"""
Tests para las reglas puras de ocupación y liberación de asientos
"""
from types import SimpleNamespace

import pytest

from app.models.assignment import OPEN_SLOT_NAME, RESERVED_SLOT_NAME
from app.utils.errors import Forbidden, NotAssigned, SeatUnavailable
from app.utils.seat_rules import (
    DELETE,
    REVERT,
    Empty,
    Held,
    OpenSlot,
    Requester,
    classify,
    decide_claim,
    decide_release,
    get_slot_reuse_categories,
    is_open_slot_for,
    release_mode,
)


def row(nombre, categoria, registro_id=None, from_slot=False):
    return SimpleNamespace(
        nombre_invitado=nombre,
        categoria=categoria,
        registro_id=registro_id,
        from_slot=from_slot,
    )


DOCENTE = Requester(id=1, nombre="María Gómez", categoria="docente")
INVITADO = Requester(id=2, nombre="Juan Lopez", categoria="invitado")


def test_classify_variants():
    """
    Test: Una fila se clasifica como vacía, cupo abierto u ocupada
    """
    assert classify(None) == Empty()
    assert classify(row(OPEN_SLOT_NAME, "docente")) == OpenSlot("docente")
    assert classify(row(RESERVED_SLOT_NAME, "autoridad", registro_id=9)) == OpenSlot("autoridad")
    assert classify(row("Juan Lopez", "invitado", registro_id=2)) == Held(2, "Juan Lopez", "invitado")


def test_admin_named_row_without_registro_is_open_slot():
    """
    Test: Una fila cargada por el administrador sin registro cuenta como cupo de su categoría
    """
    existing = row("Rector", "autoridad")
    assert is_open_slot_for(existing, "autoridad")
    assert not is_open_slot_for(existing, "docente")


def test_claim_empty_seat():
    plan = decide_claim(None, INVITADO)
    assert plan.replace_existing is False
    assert plan.from_slot is False


def test_claim_empty_seat_rejected_for_quota_category():
    """
    Test: Una categoría con cupo fijo solo puede ocupar cupos abiertos
    """
    with pytest.raises(SeatUnavailable):
        decide_claim(None, DOCENTE, quota_categories=["docente"])


def test_claim_open_slot_same_category():
    plan = decide_claim(row(OPEN_SLOT_NAME, "docente"), DOCENTE, quota_categories=["docente"])
    assert plan.replace_existing is True
    assert plan.from_slot is True


def test_claim_open_slot_other_category_rejected():
    with pytest.raises(SeatUnavailable):
        decide_claim(row(OPEN_SLOT_NAME, "docente"), INVITADO)


def test_claim_seat_held_by_other_rejected():
    with pytest.raises(SeatUnavailable):
        decide_claim(row("Juan Lopez", "invitado", registro_id=2), DOCENTE)


def test_claim_own_seat_keeps_slot_origin():
    """
    Test: Volver a pedir el asiento propio no pierde el origen de cupo
    """
    plan = decide_claim(row("María Gómez", "docente", registro_id=1, from_slot=True), DOCENTE)
    assert plan.replace_existing is True
    assert plan.from_slot is True


def test_release_mode_by_category_and_origin():
    reuse = {"docente"}
    assert release_mode(row("María Gómez", "docente", registro_id=1), reuse) == REVERT
    assert release_mode(row("Juan Lopez", "invitado", registro_id=2), reuse) == DELETE
    assert release_mode(row("Juan Lopez", "invitado", registro_id=2, from_slot=True), reuse) == REVERT


def test_decide_release_errors():
    """
    Test: Liberar sin fila es NotAssigned; liberar un asiento ajeno es Forbidden
    """
    with pytest.raises(NotAssigned):
        decide_release(None, INVITADO, {"docente"})
    with pytest.raises(Forbidden):
        decide_release(row("María Gómez", "docente", registro_id=1), INVITADO, {"docente"})
    with pytest.raises(Forbidden):
        decide_release(row(OPEN_SLOT_NAME, "invitado"), INVITADO, {"docente"})


def test_slot_reuse_categories_from_env(monkeypatch):
    monkeypatch.setenv("SLOT_REUSE_CATEGORIES", "Docente, autoridad ,")
    assert get_slot_reuse_categories() == frozenset({"docente", "autoridad"})
    monkeypatch.delenv("SLOT_REUSE_CATEGORIES")
    assert get_slot_reuse_categories() == frozenset({"docente"})
