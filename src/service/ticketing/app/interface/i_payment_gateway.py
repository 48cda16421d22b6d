"""
Payment Gateway Interface

Provider wire protocols live in adapters; the purchase and refund flows only
see these calls and result records.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

import attrs

from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.value_object.billing_info import BillingInfo


@attrs.define(frozen=True)
class PaymentResult:
    payment_id: str
    status: PaymentStatus
    amount: int
    processed_at: datetime
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    authorization_url: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCESS


@attrs.define(frozen=True)
class RefundResult:
    refund_id: str
    status: PaymentStatus
    amount: int
    processed_at: datetime
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == PaymentStatus.SUCCESS


@attrs.define(frozen=True)
class PaymentStatusResult:
    payment_id: str
    status: PaymentStatus
    amount: int
    created_at: datetime
    updated_at: datetime
    transaction_id: Optional[str] = None


class IPaymentGateway(ABC):
    @abstractmethod
    async def process_payment(
        self, *, amount: int, payment_method: str, billing_info: BillingInfo
    ) -> PaymentResult:
        pass

    @abstractmethod
    async def refund_payment(self, *, payment_id: str, amount: int) -> RefundResult:
        pass

    @abstractmethod
    async def get_payment_status(self, *, payment_id: str) -> PaymentStatusResult:
        pass
