from datetime import datetime, timedelta, timezone
import secrets

import attrs

from src.platform.logging.loguru_io import Logger
from src.service.ticketing.app.interface.i_payment_gateway import (
    IPaymentGateway,
    PaymentResult,
    PaymentStatusResult,
    RefundResult,
)
from src.service.ticketing.domain.enum.payment_status import PaymentStatus
from src.service.ticketing.domain.value_object.billing_info import BillingInfo


DECLINED_PAYMENT_METHOD = 'declined_card'


class MockPaymentGateway(IPaymentGateway):
    """
    Gateway stand-in for local runs and tests.

    Every charge succeeds except payment_method='declined_card'. Payments are
    remembered so status lookups and refunds reflect what happened: a refund
    needs a successful, not yet refunded charge of at least the refunded amount.
    """

    def __init__(self) -> None:
        self._payments: dict[str, PaymentStatusResult] = {}

    @Logger.io
    async def process_payment(
        self, *, amount: int, payment_method: str, billing_info: BillingInfo
    ) -> PaymentResult:
        now = datetime.now(timezone.utc)
        payment_id = f'mock_pay_{int(now.timestamp())}_{amount}_{secrets.token_hex(4)}'

        if payment_method == DECLINED_PAYMENT_METHOD:
            Logger.base.info(f'💳 [MOCK PAYMENT] Declined {amount} for {billing_info.email}')
            return PaymentResult(
                payment_id=payment_id,
                status=PaymentStatus.FAILED,
                amount=amount,
                processed_at=now,
                error_message='Card declined',
            )

        transaction_id = f'txn_{int(now.timestamp())}_{secrets.token_hex(4)}'
        self._payments[payment_id] = PaymentStatusResult(
            payment_id=payment_id,
            status=PaymentStatus.SUCCESS,
            amount=amount,
            transaction_id=transaction_id,
            created_at=now,
            updated_at=now,
        )
        Logger.base.info(f'💳 [MOCK PAYMENT] Charged {amount / 100:.2f} for {billing_info.email}')
        return PaymentResult(
            payment_id=payment_id,
            status=PaymentStatus.SUCCESS,
            amount=amount,
            transaction_id=transaction_id,
            processed_at=now,
        )

    @Logger.io
    async def refund_payment(self, *, payment_id: str, amount: int) -> RefundResult:
        now = datetime.now(timezone.utc)
        refund_id = f'mock_ref_{int(now.timestamp())}_{amount}_{secrets.token_hex(4)}'

        payment = self._payments.get(payment_id)
        reason = None
        if payment is None:
            reason = 'Unknown payment'
        elif payment.status != PaymentStatus.SUCCESS:
            reason = f'Payment is {payment.status}'
        elif amount > payment.amount:
            reason = f'Refund exceeds the {payment.amount} charged'
        if payment is None or reason is not None:
            Logger.base.info(f'💸 [MOCK PAYMENT] Refund of {payment_id} rejected: {reason}')
            return RefundResult(
                refund_id=refund_id,
                status=PaymentStatus.FAILED,
                amount=amount,
                processed_at=now,
                error_message=reason,
            )

        self._payments[payment_id] = attrs.evolve(
            payment, status=PaymentStatus.REFUNDED, updated_at=now
        )
        Logger.base.info(f'💸 [MOCK PAYMENT] Refunding {amount / 100:.2f} of {payment_id}')
        return RefundResult(
            refund_id=refund_id,
            status=PaymentStatus.SUCCESS,
            amount=amount,
            processed_at=now,
        )

    @Logger.io
    async def get_payment_status(self, *, payment_id: str) -> PaymentStatusResult:
        if known := self._payments.get(payment_id):
            return known
        now = datetime.now(timezone.utc)
        return PaymentStatusResult(
            payment_id=payment_id,
            status=PaymentStatus.SUCCESS,
            amount=0,
            transaction_id=f'txn_{payment_id}',
            created_at=now - timedelta(hours=1),
            updated_at=now,
        )
