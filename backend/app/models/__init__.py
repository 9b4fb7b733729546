from .user import User, UserType
from .subscription import Subscription, SubscriptionTier, SubscriptionStatus
from .provider_profile import ProviderProfile
from .booking import Booking
from .booking_status import BookingStatus, QUALIFYING_BOOKING_STATUSES
from .transaction import Transaction, TransactionType, TransactionStatus
from .job_post import JobPost, JobPostStatus
from .lead import Lead, LeadStatus
from .message import Message, MessageType

__all__ = [
    "User",
    "UserType",
    "Subscription",
    "SubscriptionTier",
    "SubscriptionStatus",
    "ProviderProfile",
    "Booking",
    "BookingStatus",
    "QUALIFYING_BOOKING_STATUSES",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "JobPost",
    "JobPostStatus",
    "Lead",
    "LeadStatus",
    "Message",
    "MessageType",
]
