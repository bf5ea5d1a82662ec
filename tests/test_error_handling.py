"""
Tests del formato de errores y del reporte por correo
"""
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.crud import assignment as assignment_crud
from app.services.email import EmailService
from app.utils.errors import Forbidden, SeatUnavailable, to_http_exception


def test_unhandled_error_returns_generic_message(client, monkeypatch):
    from app.main import app

    def boom(db, template_id):
        raise RuntimeError("db caída")

    monkeypatch.setattr(assignment_crud, "get_assignments", boom)
    safe_client = TestClient(app, raise_server_exceptions=False)

    response = safe_client.get("/api/assignments", params={"template_id": 1})
    assert response.status_code == 500
    assert response.json() == {"error": "Error interno"}


def test_error_email_skipped_without_config(monkeypatch):
    for var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "ERROR_TO"):
        monkeypatch.delenv(var, raising=False)
    service = EmailService()

    assert service.is_configured() is False
    assert service.send_error_email({"path": "/api/asiento/asignar"}) is False


def test_error_html_includes_traceback():
    service = EmailService()
    try:
        raise ValueError("<sin asiento>")
    except ValueError as e:
        html = service._generate_error_html(
            {"path": "/api/asiento/asignar", "method": "POST", "client": "1.2.3.4", "exception": e}
        )

    assert "POST /api/asiento/asignar" in html
    assert "&lt;sin asiento&gt;" in html


def test_rule_errors_map_to_http_exceptions():
    exc = to_http_exception(SeatUnavailable())
    assert isinstance(exc, HTTPException)
    assert exc.status_code == 409
    assert exc.detail == SeatUnavailable.default_message

    assert to_http_exception(Forbidden("otro")).status_code == 403
