"""Payment creation and status refresh services."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import QRISError
from ..models import Payment, PaymentStatus
from ..monitoring import record_payload_built
from ..qris_encoder import build_payload
from ..renderer import render_qr_payload
from ..settlement import SettlementPoller, SettlementStatus
from ..transactions import new_transaction, unique_fee
from ..uploader import Uploader
from .errors import err_not_found, from_codec_error

logger = logging.getLogger("qrisgate.payments")


@dataclass(slots=True)
class CreatePaymentResult:
    payment: Payment
    qr_png_base64: str


class PaymentService:
    def __init__(self, session: AsyncSession, uploader: Uploader | None = None):
        self.session = session
        self.uploader = uploader

    async def create_payment(
        self,
        *,
        merchant_payload: str,
        amount: int,
        with_fee: bool | None = None,
    ) -> CreatePaymentResult:
        apply_fee = settings.unique_fee_enabled if with_fee is None else with_fee
        fee = unique_fee(settings.fee_min, settings.fee_max) if apply_fee else 0
        total_amount = amount + fee

        try:
            encoded = build_payload(merchant_payload, total_amount)
        except QRISError as exc:
            raise from_codec_error(exc) from exc
        record_payload_built()

        transaction = new_transaction(total_amount, ttl_seconds=settings.ttl_seconds)
        rendered = render_qr_payload(encoded.payload, settings.render)
        image_url = await self.uploader.upload(rendered.png_bytes) if self.uploader else None

        payment = Payment(
            id=transaction.id,
            amount=amount,
            fee=fee,
            total_amount=total_amount,
            payload=encoded.payload,
            crc=encoded.crc,
            image_url=image_url,
            status=PaymentStatus.PENDING,
            created_at=transaction.created_at,
            expires_at=transaction.expires_at,
        )
        self.session.add(payment)
        await self.session.commit()
        await self.session.refresh(payment)

        logger.info(
            "payment created",
            extra={"transaction_id": payment.id, "total_amount": total_amount, "fee": fee},
        )
        return CreatePaymentResult(payment=payment, qr_png_base64=rendered.png_base64)

    async def get_payment(self, transaction_id: str) -> Payment:
        payment = await self.session.get(Payment, transaction_id)
        if payment is None:
            raise err_not_found(f"Payment {transaction_id} not found")
        return payment

    async def refresh_status(
        self,
        transaction_id: str,
        *,
        poller: SettlementPoller,
        merchant_id: str,
        access_token: str,
    ) -> Payment:
        """Poll the mutation feed once for a pending payment and persist the outcome.

        A payment past its expiry is still polled so a late-arriving match wins.
        """

        payment = await self.get_payment(transaction_id)
        if payment.status != PaymentStatus.PENDING:
            return payment

        result = await poller.check_settlement(merchant_id, access_token, payment.total_amount)
        if result.status is SettlementStatus.SUCCESS:
            payment.status = PaymentStatus.SUCCESS
        elif payment.is_expired():
            payment.status = PaymentStatus.EXPIRED

        if payment.status != PaymentStatus.PENDING:
            await self.session.commit()
            await self.session.refresh(payment)
            logger.info("payment status changed", extra={"transaction_id": payment.id, "status": payment.status.value})
        return payment
