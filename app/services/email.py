"""Email service over SMTP, with Jinja2-rendered bodies.

When no SMTP host is configured the message is logged instead of sent
(dev/test mode).
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.config import get_settings
from app.errors import SmtpAuthError, TransportError

logger = logging.getLogger(__name__)

_settings = get_settings()

_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=select_autoescape(["html", "j2"]))

SMTP_AUTH_FAILED = 535


@dataclass
class EmailResult:
    success: bool
    message_id: str = ""


def render_template(name: str, **context) -> str:
    return _env.get_template(name).render(company_name=_settings.company_name, **context)


def send_email(to: str, subject: str, html: str) -> EmailResult:
    """Send an HTML email. Raises SmtpAuthError on 535, TransportError otherwise."""
    mail = _settings.mail
    if not mail.host:
        logger.warning("MAIL_HOST not set, email to %s not sent: %s", to, subject)
        return EmailResult(success=False)

    domain = mail.from_address.split("@")[-1] or None
    msg = EmailMessage()
    msg["From"] = formataddr((mail.from_name, mail.from_address))
    msg["To"] = to
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid(domain=domain)
    msg.set_content("Este mensaje requiere un cliente de correo con soporte HTML.")
    msg.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(mail.host, mail.port, timeout=mail.timeout) as smtp:
            if mail.use_tls:
                smtp.starttls()
            if mail.username and mail.password:
                smtp.login(mail.username, mail.password)
            smtp.send_message(msg)
    except smtplib.SMTPResponseException as exc:
        if exc.smtp_code == SMTP_AUTH_FAILED:
            logger.error("SMTP authentication failed for %s@%s", mail.username, mail.host)
            raise SmtpAuthError(
                "Error de autenticación SMTP (535): revise MAIL_USERNAME y MAIL_PASSWORD."
            ) from exc
        logger.exception("Failed to send email to %s", to)
        raise TransportError(f"No se pudo enviar el correo: {exc.smtp_code} {exc.smtp_error!r}") from exc
    except (smtplib.SMTPException, OSError) as exc:
        logger.exception("Failed to send email to %s", to)
        raise TransportError(f"No se pudo enviar el correo: {exc}") from exc

    logger.info("Email sent to %s: %s", to, subject)
    return EmailResult(success=True, message_id=msg["Message-ID"])


def send_signature_request_email(to: str, client_name: str, folio: int, link: str, ttl_days: int) -> EmailResult:
    html = render_template(
        "signature_request.html.j2",
        client_name=client_name, folio=folio, link=link, ttl_days=ttl_days,
    )
    return send_email(to, f"{_settings.company_name} - Solicitud de Firma Digital OT #{folio}", html)


def send_work_order_completed_email(
    to: str, client_name: str, folio: int, order_date: str, summary: str, link: str,
) -> EmailResult:
    html = render_template(
        "work_order_completed.html.j2",
        client_name=client_name, folio=folio, order_date=order_date,
        summary=summary, link=link,
    )
    return send_email(to, f"{_settings.company_name} - Orden de Trabajo #{folio} Finalizada", html)
