"""
Notification service: outbound email for organization events.

Sending is best effort. Callers get a result dict back and decide what a
failure means; the invitation flow records it and carries on.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from devsync.utils.feature_flags import email_enabled, get_settings
from devsync.utils.role_permissions import ROLE_ADMIN

logger = logging.getLogger(__name__)

EVENT_ORG_INVITATION = 'org_invitation'

TEMPLATE_ORG_INVITATION = 'org_invitation'


def format_inviter(inviter_name: Optional[str], inviter_email: Optional[str]) -> str:
    """Display form of the inviter: ``Name (email)``, or whichever part exists."""
    name = (inviter_name or "").strip()
    email = (inviter_email or "").strip()
    if name and email:
        return f"{name} ({email})"
    return name or email or "A DevSync user"


def invitation_subject(inviter_display: str, organization_name: str) -> str:
    return f"{inviter_display} invited you to join {organization_name} on DevSync"


class NotificationService:
    """Service class for outbound notifications."""

    def __init__(self, email_service: Optional[Any] = None, enabled: Optional[bool] = None):
        # The factory is resolved lazily so tests that patch it take effect
        if email_service is None and (enabled if enabled is not None else email_enabled()):
            from devsync.services import transactional_email_service
            email_service = transactional_email_service.get_transactional_email_service()
        self.email_service = email_service
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled if self._enabled is not None else email_enabled()

    def send_invite_email(
        self,
        to_email: str,
        organization_name: str,
        inviter_name: Optional[str],
        inviter_email: Optional[str],
        role: str,
        invite_link: str,
        expires_in_days: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Send an organization invitation email.

        Returns:
            Dict with 'success' plus either 'message_id', 'skipped' or 'error'
        """
        if expires_in_days is None:
            expires_in_days = get_settings().invite_ttl_days
        inviter_display = format_inviter(inviter_name, inviter_email)
        subject = invitation_subject(inviter_display, organization_name)

        if not self.enabled:
            logger.info(
                "Email disabled; invitation for %s to %s not sent. Invite link: %s",
                to_email, organization_name, invite_link,
            )
            return {'success': True, 'skipped': True, 'event_type': EVENT_ORG_INVITATION}

        if self.email_service is None:
            logger.warning("No email service available; invitation for %s not sent", to_email)
            return {'success': False, 'error': 'Email service unavailable'}

        context = {
            'organization_name': organization_name,
            'inviter_display': inviter_display,
            'inviter_name': inviter_name or '',
            'inviter_email': inviter_email or '',
            'role': role,
            'role_label': 'an admin' if role == ROLE_ADMIN else 'a member',
            'invite_link': invite_link,
            'expires_in_days': expires_in_days,
        }
        try:
            html_content, text_content = self.email_service.render_template(TEMPLATE_ORG_INVITATION, context)
            result = asyncio.run(self.email_service.send_email(
                to_email=to_email,
                subject=subject,
                html_content=html_content,
                text_content=text_content,
            ))
        except Exception as e:  # delivery problems never abort the caller
            logger.exception("Failed to send invitation email to %s", to_email)
            return {'success': False, 'error': str(e)}

        if not result.get('success'):
            logger.error("Invitation email to %s failed: %s", to_email, result.get('error'))
        return result
