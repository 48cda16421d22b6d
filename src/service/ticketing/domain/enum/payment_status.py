from enum import StrEnum


class PaymentStatus(StrEnum):
    SUCCESS = 'success'
    PENDING = 'pending'
    FAILED = 'failed'
    REFUNDED = 'refunded'
