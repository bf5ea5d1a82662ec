from enum import Enum


class InvitationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    OPENED = "opened"
    RESERVED = "reserved"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
