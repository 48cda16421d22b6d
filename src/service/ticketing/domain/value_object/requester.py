import attrs

from src.service.ticketing.domain.enum.user_role import UserRole


@attrs.define(frozen=True)
class Requester:
    """The already-authenticated caller of an operation."""

    user_id: int
    role: UserRole = UserRole.BUYER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def can_access(self, owner_id: int) -> bool:
        return self.is_admin or self.user_id == owner_id
