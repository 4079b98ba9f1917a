"""
Notification Service

Prévient l'équipe commerciale quand un point de contact a été rattaché à un
prospect. Envoi via Flask-Mail, corps rendu depuis templates/emails.
"""

from __future__ import annotations

from typing import List, Optional

from flask import current_app, render_template
from flask_mail import Message

from ..extensions import mail
from ..models import Prospect


EVENT_SUBJECTS = {
    "contact_request": "Nouvelle demande de contact",
    "session_registration": "Nouvelle inscription à une session",
    "needs_analysis": "Nouvelle analyse de besoins",
}


class NotificationService:
    """Service d'envoi des notifications prospects."""

    @staticmethod
    def is_enabled() -> bool:
        return bool(
            current_app.config.get("PROSPECT_NOTIFICATIONS_ENABLED")
            and current_app.config.get("PROSPECT_NOTIFY_EMAIL")
        )

    @staticmethod
    def send_notification(prospect: Prospect, event: str, **context) -> bool:
        """
        Notifier l'équipe d'un événement sur un prospect.

        Args:
            prospect: Prospect concerné
            event: Type d'événement (contact_request, session_registration, ...)
            **context: Variables supplémentaires pour le template

        Returns:
            True si envoyé, False si désactivé ou en échec
        """
        if not NotificationService.is_enabled():
            current_app.logger.debug(
                "event=prospect.notify.skipped prospect_id=%s kind=%s", prospect.id, event
            )
            return False

        recipients = NotificationService._recipients()
        subject = f"{EVENT_SUBJECTS.get(event, 'Activité prospect')} - {prospect.full_name}"

        try:
            html_body = render_template("emails/prospect_event.html", prospect=prospect, event=event, **context)
            text_body = render_template("emails/prospect_event.txt", prospect=prospect, event=event, **context)

            msg = Message(
                subject=subject,
                recipients=recipients,
                html=html_body,
                body=text_body,
                sender=current_app.config.get("MAIL_DEFAULT_SENDER", "noreply@eprofos.fr"),
            )
            mail.send(msg)
            current_app.logger.info(
                "event=prospect.notify.sent prospect_id=%s kind=%s to=%s", prospect.id, event, ",".join(recipients)
            )
            return True

        except Exception as e:
            current_app.logger.error(f"Failed to send prospect notification to {recipients}: {str(e)}")
            return False

    @staticmethod
    def _recipients() -> List[str]:
        raw: Optional[str] = current_app.config.get("PROSPECT_NOTIFY_EMAIL")
        return [addr.strip() for addr in (raw or "").split(",") if addr.strip()]
