from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# PROFILE ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    resident = "resident"
    encoder = "encoder"
    captain = "captain"
    admin = "admin"


# -----------------------------------------------------
# REQUEST STATUS
# -----------------------------------------------------
class RequestStatus(BaseStrEnum):
    """Canonical snake_case workflow state of a document request."""

    pending = "pending"
    processing = "processing"
    ready_for_pickup = "ready_for_pickup"
    completed = "completed"
    rejected = "rejected"
    cancelled = "cancelled"


# -----------------------------------------------------
# PAYMENT STATUS
# -----------------------------------------------------
class PaymentStatus(BaseStrEnum):
    """Informational only; never drives RequestStatus."""

    pending = "pending"
    completed = "completed"
    failed = "failed"


# -----------------------------------------------------
# ATTACHMENT CATEGORY
# -----------------------------------------------------
class DocumentCategory(BaseStrEnum):
    additional_document = "additional-document"
    signed_document = "signed-document"


# -----------------------------------------------------
# IDENTIFICATION IMAGE SIDE
# -----------------------------------------------------
class IdSide(BaseStrEnum):
    front = "front"
    back = "back"


# -----------------------------------------------------
# ANALYTICS WINDOW
# -----------------------------------------------------
class StatsPeriod(BaseStrEnum):
    day = "day"
    week = "week"
    month = "month"
    year = "year"
