"""Status and role enums stored on rndvx documents."""

import enum


class MeetingStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PENDING_QUORUM = "PENDING_QUORUM"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class RecurrenceRule(str, enum.Enum):
    NONE = "NONE"
    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class RsvpStatus(str, enum.Enum):
    PENDING = "PENDING"
    YES = "YES"
    NO = "NO"
    MAYBE = "MAYBE"


class InviteStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"


class GroupRole(str, enum.Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    MEMBER = "MEMBER"
