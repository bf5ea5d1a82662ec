import logging
import os
from typing import List

from app.services.email import email_service

logger = logging.getLogger(__name__)

MODE_SIMULATE = "simulate"
MODE_SMTP = "smtp"


class InvitationMailer:
    """
    Envía lotes de invitaciones.

    En modo "simulate" no sale ningún correo y todos cuentan como enviados; en
    modo "smtp" se usa el EmailService y cada destinatario fallido queda en
    "failures".
    """

    def __init__(self, mode: str = None):
        self.mode = (mode or os.getenv("MAIL_MODE", MODE_SIMULATE)).lower()

    def send_batch(self, recipients: List[dict]) -> dict:
        """
        Args:
            recipients: [{"nombre", "correo", "invite_link", "event_name"}]

        Returns:
            dict: {"sent": int, "failed": int, "failures": [{"correo", "error"}]}
        """
        if self.mode != MODE_SMTP:
            logger.info(f"Simulando envío de {len(recipients)} invitaciones")
            return {"sent": len(recipients), "failed": 0, "failures": []}

        if not email_service.has_smtp():
            logger.warning("MAIL_MODE=smtp pero faltan SMTP_HOST/SMTP_USER/SMTP_PASS")
            return {
                "sent": 0,
                "failed": len(recipients),
                "failures": [
                    {"correo": r["correo"], "error": "SMTP no configurado"}
                    for r in recipients
                ],
            }

        sent = 0
        failures = []
        for recipient in recipients:
            try:
                email_service.send_invitation_email(
                    recipient["correo"],
                    recipient["nombre"],
                    recipient["event_name"],
                    recipient["invite_link"],
                )
                sent += 1
            except Exception as e:
                logger.error(f"Error enviando invitación a {recipient['correo']}: {e}")
                failures.append({"correo": recipient["correo"], "error": str(e)})

        return {"sent": sent, "failed": len(failures), "failures": failures}


def get_mailer() -> InvitationMailer:
    return InvitationMailer()
