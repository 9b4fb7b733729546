from .user import UserSummary, UserPublic
from .payment import (
    TransactionResponse,
    DepositCheckoutResponse,
    PaymentFinalize,
    EarningsSummary,
)
from .booking import (
    BookingRequestCreate,
    QuoteCreate,
    BookingCancel,
    DisputeCreate,
    ProviderProfileNested,
    BookingResponse,
    BookingDetailResponse,
    BookingCompletionResponse,
)
from .subscription import (
    TierInfoResponse,
    SubscriptionResponse,
    SubscriptionOverviewResponse,
    SubscriptionChange,
    FeeQuote,
)
from .message import (
    MessageCreate,
    MessageResponse,
    SendMessageResponse,
    ConversationSummary,
    ConversationResponse,
)
from .job_post import (
    JobPostCreate,
    JobPostResponse,
    JobPostWithLeads,
    LeadResponse,
    LeadUnlockResponse,
)
from .provider import ProviderProfileResponse
