"""
Transactional Email Service

Delivers DevSync's transactional mail (organization invitations) through
Resend, rendering message bodies from Jinja2 templates.
"""

import os
import re
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, List
from jinja2 import Environment, FileSystemLoader, TemplateNotFound

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"


class EmailProvider(Enum):
    """Supported email service providers."""
    RESEND = "resend"


class TransactionalEmailConfig:
    """Configuration for transactional email services."""

    def __init__(self):
        self.provider = EmailProvider(os.getenv('EMAIL_PROVIDER', 'resend').lower())

        self.from_email = os.getenv('FROM_EMAIL', 'noreply@devsync.app')
        self.from_name = os.getenv('FROM_NAME', 'DevSync')
        self.reply_to_email = os.getenv('REPLY_TO_EMAIL', '')

        self.resend_api_key = os.getenv('RESEND_API_KEY', '')

        self.template_dir = os.getenv('EMAIL_TEMPLATE_DIR', str(DEFAULT_TEMPLATE_DIR))

    def is_configured(self) -> bool:
        """Check if the selected provider is properly configured."""
        if self.provider == EmailProvider.RESEND:
            return bool(self.resend_api_key and self.from_email)
        return False

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []
        if not self.from_email:
            errors.append("FROM_EMAIL is required")
        if self.provider == EmailProvider.RESEND and not self.resend_api_key:
            errors.append("RESEND_API_KEY is required for Resend provider")
        return errors


class ResendEmailService:
    """Email service implementation for Resend."""

    def __init__(self, config: TransactionalEmailConfig):
        import resend

        self.config = config
        resend.api_key = self.config.resend_api_key
        self.client = resend

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> Dict[str, Any]:
        """Send email via Resend."""
        email_data = {
            "from": f"{self.config.from_name} <{self.config.from_email}>",
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }
        if text_content:
            email_data["text"] = text_content
        if self.config.reply_to_email:
            email_data["reply_to"] = self.config.reply_to_email

        try:
            result = self.client.Emails.send(email_data)
        except Exception as e:  # provider errors surface as a failed send
            return {
                'success': False,
                'provider': 'resend',
                'error': str(e)
            }
        return {
            'success': True,
            'provider': 'resend',
            'message_id': result['id'],
            'provider_response': result
        }


class TransactionalEmailService:
    """Main transactional email service that delegates to the provider implementation."""

    def __init__(self, config: Optional[TransactionalEmailConfig] = None):
        self.config = config or TransactionalEmailConfig()
        self.provider_service = None
        self.template_env = None
        self._setup_provider()
        self._setup_templates()

    def _setup_provider(self):
        if not self.config.is_configured():
            logger.warning("Email service not configured: %s", "; ".join(self.config.validate()))
            return
        if self.config.provider == EmailProvider.RESEND:
            self.provider_service = ResendEmailService(self.config)
            logger.info("Initialized Resend email service")

    def _setup_templates(self):
        template_path = Path(self.config.template_dir)
        if not template_path.exists():
            logger.warning(f"Email template directory not found: {template_path}")
            template_path = DEFAULT_TEMPLATE_DIR
        self.template_env = Environment(loader=FileSystemLoader(str(template_path)), autoescape=True)

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Send an email via the configured transactional email service.

        Returns:
            Dict with 'success', 'provider', 'message_id', and 'error' keys
        """
        if not self.provider_service:
            return {
                'success': False,
                'error': 'Email service not configured or initialization failed'
            }

        logger.info(f"Sending email to {to_email} via {self.config.provider.value}")
        result = await self.provider_service.send_email(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            text_content=text_content
        )
        if result['success']:
            logger.info(f"Email sent successfully to {to_email} via {result['provider']}")
        else:
            logger.error(f"Email sending failed: {result['error']}")
        return result

    def render_template(self, template_name: str, context: Dict[str, Any]) -> tuple[str, str]:
        """
        Render email template with context.

        Returns:
            Tuple of (html_content, text_content)
        """
        html_content = self.template_env.get_template(f"{template_name}.html").render(**context)
        try:
            text_content = self.template_env.get_template(f"{template_name}.txt").render(**context)
        except TemplateNotFound:
            text_content = self._html_to_text(html_content)
        return html_content, text_content

    def _html_to_text(self, html_content: str) -> str:
        """Convert HTML to basic text content."""
        text = re.sub(r'<[^>]+>', '', html_content)
        text = text.replace('&amp;', '&').replace('&lt;', '<').replace('&gt;', '>')
        text = text.replace('&quot;', '"').replace('&#39;', "'")
        return re.sub(r'\s+', ' ', text).strip()


# Global email service instance
_email_service = None


def get_transactional_email_service() -> TransactionalEmailService:
    """Get singleton transactional email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = TransactionalEmailService()
    return _email_service
