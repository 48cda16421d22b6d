from enum import StrEnum


class ReservationStatus(StrEnum):
    ACTIVE = 'active'
    RELEASED = 'released'  # returned by the buyer
    CONSUMED = 'consumed'  # converted into a completed order
    EXPIRED = 'expired'  # returned by the expiry sweep

    @property
    def is_terminal(self) -> bool:
        return self is not ReservationStatus.ACTIVE
