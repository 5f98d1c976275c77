import logging
import smtplib
from email.message import EmailMessage

from ..config import Settings

logger = logging.getLogger(__name__)


class SmtpMailer:
    """
    Sends HTML emails through an SMTP relay (Gmail App Password recommended).

    Configured from SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_TLS and MAIL_FROM.
    """

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_pass
        self.mail_from = settings.mail_from or settings.smtp_user
        self.use_tls = settings.smtp_tls

    def send(self, *, to: str, subject: str, html: str) -> None:
        if not self.host or not self.user or not self.password or not self.mail_from:
            raise RuntimeError("SMTP is not configured (missing SMTP_HOST/SMTP_USER/SMTP_PASS/MAIL_FROM).")
        if not to:
            raise ValueError("Email recipient is required")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.mail_from
        msg["To"] = to
        msg.set_content("This message requires an HTML capable email client.")
        msg.add_alternative(html, subtype="html")

        logger.debug("Connecting to %s:%s (TLS=%s)", self.host, self.port, self.use_tls)
        with smtplib.SMTP(self.host, self.port, timeout=15) as smtp:
            smtp.ehlo()
            if self.use_tls:
                smtp.starttls()
                smtp.ehlo()
            smtp.login(self.user, self.password)
            smtp.send_message(msg)
        logger.info("Email has been sent to %s", to)
