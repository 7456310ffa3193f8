
# -------------------------
# Enums
# -------------------------
from .enums import (
    Role,
    RequestStatus,
    PaymentStatus,
    DocumentCategory,
    IdSide,
    StatsPeriod,
)

# -------------------------
# Profiles
# -------------------------
from .profile import ProfileBase, ProfileRead, ProfileUpdate

# -------------------------
# Document Types
# -------------------------
from .document_type import (
    DocumentTypeBase,
    DocumentTypeCreate,
    DocumentTypeRead,
    DocumentTypeUpdate,
    DocumentTypeActive,
)

# -------------------------
# Requests
# -------------------------
from .request import (
    StatusUpdate,
    RequestRead,
    RequestCreated,
    ResidentSummary,
    AdminDashboard,
)
from .status_history import StatusHistoryRead
from .attachment import AttachmentRead, SignedUrlResponse

# -------------------------
# Payments
# -------------------------
from .payment import (
    CreatePaymentIntentBody,
    CreatePaymentIntentResponse,
    VerifyPaymentBody,
    VerifyPaymentResponse,
)

# -------------------------
# Analytics
# -------------------------
from .analytics import AnalyticsStats

# -------------------------
# Auth
# -------------------------
from .auth import (
    RegisterRequest,
    LoginRequest,
    TokenResponse,
    EmailRequest,
    ResetPasswordRequest,
    AuthCallbackRequest,
    MessageResponse,
)

__all__ = [
    # enums
    "Role",
    "RequestStatus",
    "PaymentStatus",
    "DocumentCategory",
    "IdSide",
    "StatsPeriod",

    # profiles
    "ProfileBase",
    "ProfileRead",
    "ProfileUpdate",

    # document types
    "DocumentTypeBase",
    "DocumentTypeCreate",
    "DocumentTypeRead",
    "DocumentTypeUpdate",
    "DocumentTypeActive",

    # requests
    "StatusUpdate",
    "RequestRead",
    "RequestCreated",
    "ResidentSummary",
    "AdminDashboard",
    "StatusHistoryRead",
    "AttachmentRead",
    "SignedUrlResponse",

    # payments
    "CreatePaymentIntentBody",
    "CreatePaymentIntentResponse",
    "VerifyPaymentBody",
    "VerifyPaymentResponse",

    # analytics
    "AnalyticsStats",

    # auth
    "RegisterRequest",
    "LoginRequest",
    "TokenResponse",
    "EmailRequest",
    "ResetPasswordRequest",
    "AuthCallbackRequest",
    "MessageResponse",
]
