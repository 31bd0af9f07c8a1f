import os
import logging
from datetime import datetime
from jinja2 import Environment, FileSystemLoader, select_autoescape
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, To

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    _template_env = None

    @classmethod
    def _get_template_env(cls):
        """
        Initialize Jinja2 template environment with inheritance support
        """
        if cls._template_env is None:
            template_dir = os.path.join(
                os.path.dirname(os.path.abspath(__file__)),
                '..',
                'templates',
                'emails'
            )

            cls._template_env = Environment(
                loader=FileSystemLoader(template_dir),
                autoescape=select_autoescape(['html']),
                enable_async=False
            )
        return cls._template_env

    @classmethod
    def render_template(cls, template_name: str, context: dict) -> str:
        """
        Render an email template

        :param template_name: Name of the template file
        :param context: Dictionary of template variables
        :return: Rendered HTML template
        """
        default_context = {
            'company_name': settings.PROJECT_NAME,
            'base_url': settings.BASE_URL,
            'current_year': datetime.now().year,
            **context
        }
        template = cls._get_template_env().get_template(template_name)
        return template.render(**default_context)

    @classmethod
    def send_email(
        cls,
        to_email: str,
        subject: str,
        template_name: str,
        template_context: dict,
    ) -> bool:
        """Deliver one message. Failures are logged and reported as ``False``."""
        if not settings.SENDGRID_API_KEY:
            logger.warning(f"Email delivery disabled, not sending '{subject}' to {to_email}")
            return False

        try:
            html_content = cls.render_template(template_name, template_context)

            message = Mail(
                from_email=(settings.EMAILS_FROM_EMAIL, settings.EMAILS_FROM_NAME),
                to_emails=To(to_email),
                subject=subject,
                html_content=html_content
            )

            sendgrid_client = SendGridAPIClient(settings.SENDGRID_API_KEY)
            response = sendgrid_client.send(message)

            if response.status_code not in [200, 201, 202]:
                logger.error(f"SendGrid error: {response.status_code} - {response.body}")
                return False

            logger.info(f"Email sent successfully to {to_email} via SendGrid")
            return True

        except Exception as e:
            logger.error(f"SendGrid email error for {to_email}: {e}")
            return False

    @classmethod
    def send_verification_email(cls, *, to_email: str, name: str, token: str) -> bool:
        return cls.send_email(
            to_email=to_email,
            subject=f"Verify your {settings.PROJECT_NAME} account",
            template_name="verification.html",
            template_context={
                'name': name,
                'verify_url': f"{settings.BASE_URL}/auth/verify/{token}",
                'expire_hours': settings.VERIFICATION_TOKEN_EXPIRE_HOURS,
            }
        )

    @classmethod
    def send_password_reset_email(cls, *, to_email: str, name: str, token: str) -> bool:
        return cls.send_email(
            to_email=to_email,
            subject="Password Reset Request",
            template_name="password_reset.html",
            template_context={
                'name': name,
                'reset_url': f"{settings.BASE_URL}/auth/reset-password/{token}",
                'expire_minutes': settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES,
            }
        )
