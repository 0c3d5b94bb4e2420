"""Domain errors for Channel Service.

Every failure the managers report is a ``ChannelServiceError`` carrying a
``kind`` (the closed set of failure classes), a machine readable ``code``
and an optional entity payload. The HTTP layer maps kinds to status codes
in one place (``http_status_for``).
"""

from enum import Enum
from typing import Optional

from fastapi import status


class ErrorKind(str, Enum):
    """Failure classes understood by the transport layer."""

    NOT_FOUND = "not_found"
    NOT_AUTHORIZED = "not_authorized"
    NOT_MEMBER = "not_member"
    CONFLICT = "conflict"
    STATE_CONFLICT = "state_conflict"
    VALIDATION = "validation"


class ChannelServiceError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind

    def __init__(
        self,
        code: str,
        message: str,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> dict:
        payload = {"detail": self.message, "code": self.code}
        if self.entity_id:
            payload["entity_id"] = self.entity_id
        return payload


class NotFoundError(ChannelServiceError):
    """The entity does not exist or the caller cannot see it."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        label = entity.replace("_", " ")
        super().__init__(
            f"{entity}_not_found",
            f"{label[0].upper()}{label[1:]} not found",
            entity=entity,
            entity_id=entity_id,
        )


class NotAuthorizedError(ChannelServiceError):
    """The actor's role does not meet the required tier."""

    kind = ErrorKind.NOT_AUTHORIZED

    def __init__(self, message: str = "Not authorized", code: str = "not_authorized"):
        super().__init__(code, message)


class NotMemberError(NotAuthorizedError):
    """The actor has no membership where one is required.

    A narrower ``NotAuthorizedError``: callers outside the channel are refused
    before any entity inside it is looked up.
    """

    kind = ErrorKind.NOT_MEMBER

    def __init__(self, message: str = "Not a member of this channel", entity_id: Optional[str] = None):
        ChannelServiceError.__init__(
            self, "not_member", message, entity="member", entity_id=entity_id
        )


class ConflictError(ChannelServiceError):
    """Duplicate of something that must be unique."""

    kind = ErrorKind.CONFLICT


class StateConflictError(ChannelServiceError):
    """The entity is in a state that forbids the operation."""

    kind = ErrorKind.STATE_CONFLICT


class InvalidRequestError(ChannelServiceError):
    """The request carries a value the domain rejects."""

    kind = ErrorKind.VALIDATION


_KIND_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_MEMBER: status.HTTP_403_FORBIDDEN,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.STATE_CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
}

# Codes whose HTTP status differs from their kind's default
_CODE_STATUS = {
    "invite_expired": status.HTTP_410_GONE,
    "user_banned": status.HTTP_403_FORBIDDEN,
    "user_muted": status.HTTP_403_FORBIDDEN,
}


def http_status_for(error: ChannelServiceError) -> int:
    """Return the HTTP status code for a domain error."""
    if error.code in _CODE_STATUS:
        return _CODE_STATUS[error.code]
    return _KIND_STATUS.get(error.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)


# Shared error instances used by more than one manager


def channel_archived(channel_id: Optional[str] = None) -> StateConflictError:
    return StateConflictError(
        "channel_archived", "Channel is archived", entity="channel", entity_id=channel_id
    )


def user_banned(user_id: Optional[str] = None) -> StateConflictError:
    return StateConflictError(
        "user_banned", "User is banned from this channel", entity="user", entity_id=user_id
    )


def already_member(user_id: Optional[str] = None) -> ConflictError:
    return ConflictError("already_member", "Already a member", entity="member", entity_id=user_id)


def cannot_leave_owner() -> StateConflictError:
    return StateConflictError(
        "cannot_leave_owner", "Owner cannot leave channel, transfer ownership first"
    )
