import os
import smtplib
import ssl
from email.header import Header
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Protocol

from fastapi import Request
from jinja2 import Environment, FileSystemLoader, select_autoescape
from starlette.concurrency import run_in_threadpool

from app.platform.config import Settings
from app.platform.exceptions import EmailDeliveryError
from app.platform.logger import get_logger

logger = get_logger("email_service")

current_dir = os.path.dirname(os.path.abspath(__file__))
template_dir = os.path.join(current_dir, "../../features/auth/template")

if not os.path.exists(template_dir):
    template_dir = os.path.join(os.getcwd(), "app/features/auth/template")

env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(["html"]))

# Subject and wording per verification flow
FLOW_CONTENT = {
    "password_reset": {
        "subject": "LineTime 密码重置验证码",
        "title": "LineTime 密码重置",
        "intro": "您正在重置 LineTime 账户密码。请使用以下验证码完成密码重置：",
        "minutes": 10,
    },
    "login_code": {
        "subject": "LineTime 登录验证码",
        "title": "LineTime 验证码登录",
        "intro": "您正在使用验证码登录 LineTime。请使用以下验证码完成登录：",
        "minutes": 5,
    },
}


class EmailSender(Protocol):
    async def send_verification_code(self, to_email: str, code: str, flow: str) -> None:
        ...


def render_verification_email(code: str, flow: str) -> tuple[str, str]:
    """Return ``(subject, html_body)`` for a verification code email."""
    content = FLOW_CONTENT.get(flow, FLOW_CONTENT["password_reset"])
    template = env.get_template("verification_code.html")
    body = template.render(
        title=content["title"],
        intro=content["intro"],
        code=code,
        minutes=content["minutes"],
    )
    return content["subject"], body


class SMTPEmailSender:
    """Sends verification emails through SMTP."""

    def __init__(self, settings: Settings):
        self.host = settings.MAIL_HOST
        self.port = settings.MAIL_PORT
        self.username = settings.MAIL_USERNAME
        self.password = settings.MAIL_PASSWORD
        self.encryption = settings.MAIL_ENCRYPTION
        self.from_address = settings.MAIL_FROM_ADDRESS
        self.from_name = settings.MAIL_FROM_NAME

    async def send_verification_code(self, to_email: str, code: str, flow: str) -> None:
        subject, body = render_verification_email(code, flow)
        await run_in_threadpool(self.send_email, to_email, subject, body)
        logger.info(f"Verification email ({flow}) sent to {to_email}")

    def send_email(self, to_email: str, subject: str, body: str) -> None:
        """Send an HTML email via SMTP. Raises EmailDeliveryError on failure."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = Header(subject, "utf-8")
        msg["From"] = formataddr((str(Header(self.from_name, "utf-8")), self.from_address))
        msg["To"] = to_email
        msg.attach(MIMEText(body, "html", "utf-8"))

        try:
            if self.port == 465:
                context = ssl.create_default_context()
                with smtplib.SMTP_SSL(self.host, self.port, context=context) as server:
                    server.login(self.username, self.password)
                    server.sendmail(self.from_address, to_email, msg.as_string())
            else:
                with smtplib.SMTP(self.host, self.port) as server:
                    server.ehlo()

                    if str(self.encryption).upper() in ["TLS", "TRUE"]:
                        server.starttls()
                        server.ehlo()

                    server.login(self.username, self.password)
                    server.sendmail(self.from_address, to_email, msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"CRITICAL EMAIL ERROR: {str(e)}")
            raise EmailDeliveryError(f"发送邮件失败: {e}") from e


def get_email_sender(request: Request) -> EmailSender:
    """FastAPI dependency returning the application's email sender."""
    sender = getattr(request.app.state, "email_sender", None)
    if sender is None:
        sender = SMTPEmailSender(request.app.state.settings)
        request.app.state.email_sender = sender
    return sender
