"""
Tests para la ocupación y liberación de asientos contra la base de datos
"""
import pytest

from app.crud import assignment as assignment_crud
from app.crud import event_quota as quota_crud
from app.models.assignment import Assignment, OPEN_SLOT_NAME
from app.models.audit_log import AuditLog
from app.models.registro import Registro
from app.services import seat_service
from app.services.change_feed import change_feed
from app.utils.errors import BadRequest, Forbidden, NotAssigned, SeatUnavailable, Unauthorized

from tests.factories import make_open_slot, make_registro


def held_rows(db, registro):
    return db.query(Assignment).filter(Assignment.registro_id == registro.id).all()


def test_docente_moves_between_open_slots(db, sample_template, docente):
    """
    Test: Un docente que cambia de cupo devuelve el anterior como "Cupo Disponible"
    """
    make_open_slot(db, "R8-L-1", "docente", sample_template.id)
    make_open_slot(db, "R8-L-2", "docente", sample_template.id)

    seat_service.claim_seat(db, docente, "R8-L-1", sample_template.id)
    seat_service.claim_seat(db, docente, "R8-L-2", sample_template.id)

    first = assignment_crud.get_assignment(db, "R8-L-1", sample_template.id)
    second = assignment_crud.get_assignment(db, "R8-L-2", sample_template.id)
    assert first.nombre_invitado == OPEN_SLOT_NAME
    assert first.registro_id is None
    assert first.categoria == "docente"
    assert second.registro_id == docente.id
    assert second.nombre_invitado == "María Gómez"
    assert len(held_rows(db, docente)) == 1


def test_invitado_release_deletes_row(db, sample_template, invitado):
    """
    Test: Un invitado que libera su asiento libre lo deja sin fila y otro puede tomarlo
    """
    seat_service.claim_seat(db, invitado, "R9-R-4", sample_template.id)
    result = seat_service.release_seat(db, invitado, "R9-R-4", sample_template.id)

    assert result is None
    assert assignment_crud.get_assignment(db, "R9-R-4", sample_template.id) is None

    otro = make_registro(db, "Ana Díaz", "invitado", sample_template.id)
    row = seat_service.claim_seat(db, otro, "R9-R-4", sample_template.id)
    assert row.registro_id == otro.id


def test_seat_taken_from_slot_reverts_on_release(db, sample_template, invitado):
    """
    Test: Un asiento tomado desde un cupo vuelve a ser cupo aunque la categoría no se reutilice
    """
    make_open_slot(db, "R10-L-5", "invitado", sample_template.id)

    row = seat_service.claim_seat(db, invitado, "R10-L-5", sample_template.id)
    assert row.from_slot is True

    reverted = seat_service.release_seat(db, invitado, "R10-L-5", sample_template.id)
    assert reverted is not None
    assert reverted.nombre_invitado == OPEN_SLOT_NAME
    assert reverted.registro_id is None
    assert reverted.categoria == "invitado"


def test_claim_seat_held_by_other(db, sample_template, invitado, estudiante):
    seat_service.claim_seat(db, invitado, "R8-R-1", sample_template.id)

    with pytest.raises(SeatUnavailable):
        seat_service.claim_seat(db, estudiante, "R8-R-1", sample_template.id)

    row = assignment_crud.get_assignment(db, "R8-R-1", sample_template.id)
    assert row.registro_id == invitado.id
    assert held_rows(db, estudiante) == []


def test_claim_open_slot_of_other_category(db, sample_template, invitado):
    make_open_slot(db, "R8-L-9", "docente", sample_template.id)

    with pytest.raises(SeatUnavailable):
        seat_service.claim_seat(db, invitado, "R8-L-9", sample_template.id)

    row = assignment_crud.get_assignment(db, "R8-L-9", sample_template.id)
    assert row.nombre_invitado == OPEN_SLOT_NAME


def test_quota_category_cannot_take_free_seat(db, sample_template, docente):
    """
    Test: Con cupo fijo configurado, el docente no puede ocupar un asiento sin fila
    """
    quota_crud.set_quotas(db, sample_template.id, {"docente": 2})

    with pytest.raises(SeatUnavailable):
        seat_service.claim_seat(db, docente, "R12-L-1", sample_template.id)
    assert assignment_crud.count_assignments(db, sample_template.id) == 0


def test_release_foreign_seat_is_forbidden(db, sample_template, docente, invitado):
    seat_service.claim_seat(db, docente, "R8-L-4", sample_template.id)

    with pytest.raises(Forbidden):
        seat_service.release_seat(db, invitado, "R8-L-4", sample_template.id)

    row = assignment_crud.get_assignment(db, "R8-L-4", sample_template.id)
    assert row.registro_id == docente.id
    assert row.nombre_invitado == "María Gómez"


def test_release_unassigned_seat(db, sample_template, invitado):
    with pytest.raises(NotAssigned):
        seat_service.release_seat(db, invitado, "R8-L-4", sample_template.id)
    assert assignment_crud.count_assignments(db, sample_template.id) == 0


def test_registro_from_other_event_is_unauthorized(db, sample_template, other_template, invitado):
    with pytest.raises(Unauthorized):
        seat_service.claim_seat(db, invitado, "R8-L-4", other_template.id)


def test_validate_seat_request():
    assert seat_service.validate_seat_request(" R8-L-3 ", 1) == "R8-L-3"
    with pytest.raises(BadRequest):
        seat_service.validate_seat_request(None, 1)
    with pytest.raises(BadRequest):
        seat_service.validate_seat_request("R8-L-3", None)
    with pytest.raises(BadRequest):
        seat_service.validate_seat_request("R8-L-99", 1)


def test_lost_race_maps_to_seat_unavailable(db, sample_template, invitado, monkeypatch):
    """
    Test: Si otra transacción ocupó el asiento después de la lectura, la PK hace
    fallar el commit y la operación responde SeatUnavailable sin mutar nada
    """
    template_id = sample_template.id
    otro = make_registro(db, "Ana Díaz", "invitado", template_id)
    otro_id = otro.id
    seat_service.claim_seat(db, otro, "R8-R-2", template_id)
    invitado_id = invitado.id
    db.expunge_all()

    # Simula una lectura obsoleta: el asiento parece libre
    monkeypatch.setattr(assignment_crud, "get_assignment", lambda *args, **kwargs: None)
    registro = db.query(Registro).filter(Registro.id == invitado_id).first()

    with pytest.raises(SeatUnavailable):
        seat_service.claim_seat(db, registro, "R8-R-2", template_id)

    monkeypatch.undo()
    row = assignment_crud.get_assignment(db, "R8-R-2", template_id)
    assert row.registro_id == otro_id
    assert held_rows(db, registro) == []


def test_claim_publishes_changes_and_audits(db, sample_template, invitado, monkeypatch):
    published = []
    monkeypatch.setattr(
        change_feed,
        "publish_assignment",
        lambda template_id, seat_id, row: published.append((template_id, seat_id, row)),
    )

    seat_service.claim_seat(db, invitado, "R8-L-3", sample_template.id)
    seat_service.claim_seat(db, invitado, "R8-L-5", sample_template.id)

    assert published[0][1] == "R8-L-3"
    assert published[0][2]["registro_id"] == invitado.id
    # el segundo claim borra el asiento anterior y publica el nuevo
    assert (sample_template.id, "R8-L-3", None) in published
    assert published[-1][1] == "R8-L-5"

    actions = [log.action for log in db.query(AuditLog).all()]
    assert actions.count("reserve_seat") == 2


def test_release_all_for_registro(db, sample_template, docente):
    seat_service.claim_seat(db, docente, "R8-L-1", sample_template.id)

    assert seat_service.release_all_for_registro(db, docente) == 1
    db.commit()

    row = assignment_crud.get_assignment(db, "R8-L-1", sample_template.id)
    assert row.nombre_invitado == OPEN_SLOT_NAME
    assert row.registro_id is None


def test_audit_failure_does_not_block_claim(db, sample_template, invitado, monkeypatch):
    """
    Test: Si la auditoría falla, la reserva igual queda confirmada
    """
    from app.services import audit

    def failing_audit_log(**kwargs):
        raise RuntimeError("audit_logs no disponible")

    monkeypatch.setattr(audit, "AuditLog", failing_audit_log)

    row = seat_service.claim_seat(db, invitado, "R8-L-7", sample_template.id)
    assert row.registro_id == invitado.id
    assert assignment_crud.get_assignment(db, "R8-L-7", sample_template.id).registro_id == invitado.id
    assert db.query(AuditLog).count() == 0

    assert audit.write_audit_log(
        db, actor_type="system", action="reserve_seat", entity="assignments"
    ) is False
