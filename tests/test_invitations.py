"""
Tests para la importación de nóminas y el envío de invitaciones
"""
import io

import openpyxl
import pytest

from app.enums.invitation_status import InvitationStatus
from app.models.invitation_campaign import InvitationCampaign
from app.models.registro import Registro
from app.services import invitations as invitation_service
from app.services.email import email_service
from app.utils.invitation_file import InvitationFileError, parse_invitations_file

from tests.factories import make_registro


CSV_CONTENT = (
    "Nombre,Correo,Categoría,Departamento\n"
    "Ana Pérez,ANA@example.com,docente,Física\n"
    "Beto Ruiz,beto@example.com,,\n"
    ",sin-nombre@example.com,invitado,\n"
    "Carla Díaz,no-es-correo,invitado,\n"
    "Dani Gil,dani@example.com,rector,\n"
    "Ana María Pérez,ana@example.com,autoridad,Rectoría\n"
).encode("utf-8")


def test_parse_csv_collapses_duplicate_emails():
    """
    Test: Dos filas con el mismo correo (distinto uso de mayúsculas) quedan en una sola, la última
    """
    preview = parse_invitations_file(CSV_CONTENT, "nomina.csv")

    assert preview["total"] == 6
    assert preview["duplicates_in_file"] == 1
    assert preview["valid"] == 2
    assert preview["invalid"] == 3

    by_email = {row["correo"]: row for row in preview["rows"]}
    assert by_email["ana@example.com"]["nombre"] == "Ana María Pérez"
    assert by_email["ana@example.com"]["categoria"] == "autoridad"
    assert by_email["beto@example.com"]["categoria"] == "docente"

    messages = {e["row"]: e["message"] for e in preview["errors"]}
    assert messages == {4: "Nombre requerido", 5: "Correo inválido", 6: "Categoría inválida"}


def test_parse_xlsx():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.append(["NOMBRE", "Email", "Categoria"])
    ws.append(["Ana Pérez", "ana@example.com", "Invitado"])
    ws.append([None, None, None])
    ws.append(["Beto Ruiz", "beto@example.com", None])
    buffer = io.BytesIO()
    wb.save(buffer)

    preview = parse_invitations_file(buffer.getvalue(), "nomina.xlsx")
    assert preview["total"] == 2
    assert [r["categoria"] for r in preview["rows"]] == ["invitado", "docente"]


def test_parse_rejects_other_formats():
    with pytest.raises(InvitationFileError):
        parse_invitations_file(b"nombre;correo", "nomina.txt")


def test_confirm_import_inserts_updates_and_skips(db, sample_template):
    """
    Test: La confirmación inserta correos nuevos, actualiza los existentes y
    omite los registros que ya reservaron
    """
    make_registro(
        db, "Beto Ruiz", "invitado", sample_template.id,
        correo="beto@example.com", invitation_status=InvitationStatus.SENT.value,
    )
    make_registro(
        db, "Carla Díaz", "invitado", sample_template.id,
        correo="carla@example.com", invitation_status=InvitationStatus.RESERVED.value,
    )

    result = invitation_service.confirm_import(
        db,
        sample_template.id,
        [
            {"nombre": "Ana Pérez", "correo": "ana@example.com", "categoria": "docente"},
            {"nombre": "Roberto Ruiz", "correo": "Beto@Example.com", "categoria": "autoridad"},
            {"nombre": "Carla D.", "correo": "carla@example.com", "categoria": "docente"},
        ],
    )

    assert result == {"inserted": 1, "updated": 1, "skipped": 1, "total": 3}

    ana = db.query(Registro).filter(Registro.correo == "ana@example.com").one()
    assert ana.invitation_status == InvitationStatus.PENDING.value
    assert len(ana.codigo_acceso) == 8
    assert ana.token

    beto = db.query(Registro).filter(Registro.correo == "beto@example.com").one()
    assert beto.nombre == "Roberto Ruiz"
    assert beto.categoria == "autoridad"

    carla = db.query(Registro).filter(Registro.correo == "carla@example.com").one()
    assert carla.nombre == "Carla Díaz"
    assert carla.categoria == "invitado"


def test_preview_counts_existing_emails(db, sample_template):
    make_registro(db, "Ana Pérez", "docente", sample_template.id, correo="ana@example.com")
    preview = invitation_service.preview_import(db, sample_template.id, CSV_CONTENT, "nomina.csv")
    assert preview["duplicates_in_db"] == 1


def test_send_invitations_simulated(db, sample_template, monkeypatch):
    """
    Test: En modo simulado todos los pendientes pasan a enviados con vencimiento
    """
    monkeypatch.setenv("MAIL_MODE", "simulate")
    for i, status in enumerate(
        [InvitationStatus.PENDING.value, InvitationStatus.PENDING.value, InvitationStatus.SENT.value]
    ):
        make_registro(
            db, f"Invitado {i}", "invitado", sample_template.id,
            correo=f"invitado{i}@example.com", invitation_status=status,
        )

    result = invitation_service.send_invitations(db, sample_template, base_url="http://testserver/")
    assert result["total"] == 2
    assert result["sent"] == 2
    assert result["failed"] == 0
    assert result["mode"] == "simulate"

    sent = db.query(Registro).filter(Registro.invitation_status == InvitationStatus.SENT.value).all()
    assert len(sent) == 3
    assert all(r.invitation_expires_at is not None for r in sent if r.invitation_sent_at)

    campaign = db.query(InvitationCampaign).one()
    assert campaign.status == "completed"
    assert campaign.sent == 2

    resend = invitation_service.send_invitations(
        db, sample_template, base_url="http://testserver/", resend=True
    )
    assert resend["total"] == 3


def test_send_invitations_smtp_without_config(db, sample_template, monkeypatch):
    monkeypatch.setenv("MAIL_MODE", "smtp")
    monkeypatch.setattr(email_service, "has_smtp", lambda: False)
    registro = make_registro(
        db, "Ana Pérez", "docente", sample_template.id,
        correo="ana@example.com", invitation_status=InvitationStatus.PENDING.value,
    )

    result = invitation_service.send_invitations(db, sample_template, base_url="http://testserver/")
    assert result["failed"] == 1
    assert result["failures"][0]["correo"] == "ana@example.com"

    db.refresh(registro)
    assert registro.invitation_status == InvitationStatus.PENDING.value
    assert registro.invitation_last_error == "SMTP no configurado"


def test_build_invite_link(monkeypatch):
    monkeypatch.delenv("PUBLIC_BASE_URL", raising=False)
    assert (
        invitation_service.build_invite_link("http://testserver/", "abc")
        == "http://testserver/invitacion/abc"
    )
    monkeypatch.setenv("PUBLIC_BASE_URL", "https://asientos.example.com")
    assert (
        invitation_service.build_invite_link("http://testserver/", "abc")
        == "https://asientos.example.com/invitacion/abc"
    )
