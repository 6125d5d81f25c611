"""
FastAPI dependencies for rndvx.

Provides dependency injection for all services.
"""

from typing import Annotated, Optional

from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth, create_auth_dependency
from common.utils.exceptions import UnauthorizedException
from rndvx.config import Settings
from rndvx.services.access import AccessPolicy
from rndvx.services.email import EmailService, MeetingNotifier
from rndvx.services.groups import GroupService
from rndvx.services.invites import InviteService
from rndvx.services.meetings import (
    MeetingService,
    QuorumEngine,
    RecurrenceService,
    RsvpService,
)
from rndvx.services.places import LocationVoteService, PlacesService
from rndvx.services.user import UserService


# ─────────────────────────────────────────────────────────────────
# Service instances (initialized at startup)
# ─────────────────────────────────────────────────────────────────

_auth_provider: Optional[JWTAuth] = None
_email_service: Optional[EmailService] = None
_notifier: Optional[MeetingNotifier] = None

_user_service: Optional[UserService] = None
_group_service: Optional[GroupService] = None

_quorum_engine: Optional[QuorumEngine] = None
_meeting_service: Optional[MeetingService] = None
_rsvp_service: Optional[RsvpService] = None
_recurrence_service: Optional[RecurrenceService] = None

_invite_service: Optional[InviteService] = None

_location_vote_service: Optional[LocationVoteService] = None
_places_service: Optional[PlacesService] = None


# ─────────────────────────────────────────────────────────────────
# Initialization
# ─────────────────────────────────────────────────────────────────

def init_auth_services(settings: Settings) -> None:
    """Initialize the token/password provider."""
    global _auth_provider

    _auth_provider = JWTAuth(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        bcrypt_rounds=settings.BCRYPT_ROUNDS,
    )


def init_email_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """Initialize email delivery and the background notifier."""
    global _email_service, _notifier

    _email_service = EmailService(
        mode=settings.EMAIL_MODE,
        resend_api_key=settings.RESEND_API_KEY,
        from_email=settings.SMTP_FROM_EMAIL,
        from_name=settings.SMTP_FROM_NAME,
        app_url=settings.APP_URL,
        smtp_host=settings.SMTP_HOST,
        smtp_port=settings.SMTP_PORT,
        smtp_user=settings.SMTP_USER,
        smtp_password=settings.SMTP_PASSWORD,
    )
    _notifier = MeetingNotifier(db=db, email_service=_email_service)


def init_domain_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """
    Initialize meeting, group, invite, user and place services.

    Requires auth and email services to be initialized first.
    """
    global _user_service, _group_service
    global _quorum_engine, _meeting_service, _rsvp_service, _recurrence_service
    global _invite_service, _location_vote_service, _places_service

    access = AccessPolicy(db)

    _user_service = UserService(db=db, auth_provider=get_auth_provider())
    _group_service = GroupService(db=db, access=access)

    _quorum_engine = QuorumEngine(db=db, notifier=_notifier)
    _meeting_service = MeetingService(
        db=db,
        quorum_engine=_quorum_engine,
        notifier=_notifier,
        access=access,
        default_duration=settings.DEFAULT_MEETING_DURATION,
        default_quorum=settings.DEFAULT_QUORUM_THRESHOLD,
    )
    _rsvp_service = RsvpService(
        db=db,
        quorum_engine=_quorum_engine,
        notifier=_notifier,
        access=access,
    )
    _recurrence_service = RecurrenceService(db=db, access=access)

    _invite_service = InviteService(
        db=db,
        group_service=_group_service,
        rsvp_service=_rsvp_service,
        notifier=_notifier,
        access=access,
    )

    _location_vote_service = LocationVoteService(db=db, access=access)
    _places_service = PlacesService(location_vote_service=_location_vote_service)


def init_all_services(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """
    Initialize all services with database connection.

    Called once at application startup.
    """
    init_auth_services(settings)
    init_email_services(db, settings)
    init_domain_services(db, settings)


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_auth_provider() -> JWTAuth:
    """Get auth provider instance."""
    if _auth_provider is None:
        raise RuntimeError("Auth services not initialized. Call init_auth_services first.")
    return _auth_provider


def get_email_service() -> EmailService:
    """Get email service instance."""
    if _email_service is None:
        raise RuntimeError("Email services not initialized. Call init_email_services first.")
    return _email_service


def get_notifier() -> MeetingNotifier:
    """Get meeting notifier instance."""
    if _notifier is None:
        raise RuntimeError("Email services not initialized. Call init_email_services first.")
    return _notifier


def get_user_service() -> UserService:
    """Get user service instance."""
    if _user_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _user_service


def get_group_service() -> GroupService:
    """Get group service instance."""
    if _group_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _group_service


def get_meeting_service() -> MeetingService:
    """Get meeting service instance."""
    if _meeting_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _meeting_service


def get_rsvp_service() -> RsvpService:
    """Get RSVP service instance."""
    if _rsvp_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _rsvp_service


def get_recurrence_service() -> RecurrenceService:
    """Get recurrence service instance."""
    if _recurrence_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _recurrence_service


def get_invite_service() -> InviteService:
    """Get invite service instance."""
    if _invite_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _invite_service


def get_location_vote_service() -> LocationVoteService:
    """Get location vote service instance."""
    if _location_vote_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _location_vote_service


def get_places_service() -> PlacesService:
    """Get places service instance."""
    if _places_service is None:
        raise RuntimeError("Domain services not initialized. Call init_domain_services first.")
    return _places_service


# ─────────────────────────────────────────────────────────────────
# Auth dependency
# ─────────────────────────────────────────────────────────────────

_get_token_subject = create_auth_dependency(get_auth_provider)


async def require_auth(
    user_id: Annotated[str, Depends(_get_token_subject)],
) -> str:
    """Dependency that requires a valid bearer token. Returns the user id."""
    if not ObjectId.is_valid(user_id):
        raise UnauthorizedException("Invalid or expired token", code="INVALID_TOKEN")
    return user_id
