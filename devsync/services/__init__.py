"""Business logic services package; one service class per component."""

from .access_policy import AccessPolicy
from .collection_service import CollectionService
from .invitation_service import InvitationService
from .notification_service import NotificationService
from .organization_service import OrganizationService
from .promotion_service import PromotionService
from .snippet_service import SnippetService
from .subscription_service import SubscriptionService
from .tag_service import TagService

__all__ = [
    "AccessPolicy",
    "CollectionService",
    "InvitationService",
    "NotificationService",
    "OrganizationService",
    "PromotionService",
    "SnippetService",
    "SubscriptionService",
    "TagService",
]
