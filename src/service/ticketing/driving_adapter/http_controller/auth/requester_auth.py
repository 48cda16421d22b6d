"""
Caller identity for the HTTP adapter.

Authentication happens upstream (gateway); the already-authenticated caller
arrives as `X-User-Id` / `X-User-Role` headers.
"""

from fastapi import Header
from opentelemetry import trace

from src.platform.exception.exceptions import ForbiddenError
from src.service.ticketing.domain.enum.user_role import UserRole
from src.service.ticketing.domain.value_object.requester import Requester


tracer = trace.get_tracer(__name__)


async def get_requester(
    x_user_id: int = Header(..., gt=0),
    x_user_role: UserRole = Header(UserRole.BUYER),
) -> Requester:
    with tracer.start_as_current_span(
        'auth.get_requester', attributes={'user.id': x_user_id, 'user.role': x_user_role.value}
    ):
        return Requester(user_id=x_user_id, role=x_user_role)


async def require_staff(x_user_role: UserRole = Header(UserRole.BUYER)) -> UserRole:
    """Entry scanning is done by organizers or admins."""
    if x_user_role not in (UserRole.ORGANIZER, UserRole.ADMIN):
        raise ForbiddenError('Only event staff can scan tickets')
    return x_user_role
