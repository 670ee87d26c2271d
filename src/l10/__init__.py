"""L10 meeting session layer.

Provides:
- MeetingSession: Boundary API for live agenda navigation
- MeetingLifecycle: Schedule, start and end meetings
- Authorizer / ProfileAuthorizer: Organization access checks
"""

from src.l10.authorization import AccessLevel, Authorizer, ProfileAuthorizer
from src.l10.lifecycle import MeetingLifecycle
from src.l10.session import MeetingSession, load_authorized_meeting

__all__ = [
    "AccessLevel",
    "Authorizer",
    "MeetingLifecycle",
    "MeetingSession",
    "ProfileAuthorizer",
    "load_authorized_meeting",
]
