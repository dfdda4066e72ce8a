"""POST /v1/{obligations|debts}/{id}/confirm-payment - payment confirmation endpoints"""

import time
import logging
from datetime import date
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finflow_gateway.api.v1.schemas import ConfirmPaymentRequest, PaymentResponse, TransactionSchema
from finflow_gateway.api.dependencies import get_request_id, get_space_id, get_today, get_webhook_client
from finflow_gateway.infrastructure.database.session import get_db
from finflow_gateway.infrastructure.clients.webhook import PaymentWebhookClient
from finflow_gateway.infrastructure.observability.logging import log_payment
from finflow_gateway.infrastructure.observability.metrics import record_payment
from finflow_gateway.domain.exceptions import (
    InvalidAmountError,
    NotFoundError,
    PaymentInProgressError,
    ProviderUnavailableError,
)
from finflow_gateway.domain.models import PaymentReceipt, SourceKind
from finflow_gateway.services.payments import PaymentService

router = APIRouter()


def to_response(receipt: PaymentReceipt) -> PaymentResponse:
    txn = receipt.transaction
    return PaymentResponse(
        kind=receipt.kind.value,
        target_id=receipt.target_id,
        transaction=TransactionSchema(
            id=txn.id,
            type=txn.type.value,
            amount=txn.amount,
            date=txn.date,
            description=txn.description,
            category=txn.category,
        ),
        status=receipt.status.value if receipt.status else None,
        remaining_installments=receipt.remaining_installments,
        total_amount=receipt.total_amount,
        next_payment_date=receipt.next_payment_date,
        matched_obligation_id=receipt.matched_obligation_id,
    )


def confirm(
    kind: SourceKind,
    target_id: str,
    body: ConfirmPaymentRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    space_id: str,
    today: date,
    db: Session,
    webhook_client: PaymentWebhookClient,
) -> PaymentResponse:
    """
    Flow:
    1. Apply the payment and record the expense (single DB transaction)
    2. Schedule the PAYMENT_CONFIRMED webhook
    3. Return the receipt; callers re-read /v1/calendar and /v1/insight afterwards
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        receipt = PaymentService(db).confirm_payment(
            space_id,
            kind,
            target_id,
            body.payment_amount,
            body.payment_date,
            body.description,
            today=today,
        )

    except InvalidAmountError as e:
        record_payment(kind.value, "invalid_amount")
        logging.warning(f"Invalid payment amount: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except NotFoundError as e:
        record_payment(kind.value, "not_found")
        logging.warning(f"Payment target not found: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except PaymentInProgressError as e:
        record_payment(kind.value, "in_progress")
        raise HTTPException(status_code=409, detail=str(e))

    except ProviderUnavailableError as e:
        record_payment(kind.value, "error")
        logging.error(f"Payment storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    if webhook_client.enabled:
        background_tasks.add_task(
            webhook_client.send_payment_event,
            {
                "event": "PAYMENT_CONFIRMED",
                "space_id": space_id,
                "kind": kind.value,
                "target_id": receipt.target_id,
                "transaction_id": receipt.transaction.id,
                "amount": str(receipt.transaction.amount),
                "date": receipt.transaction.date.isoformat(),
            },
        )

    record_payment(kind.value, "confirmed")
    log_payment(
        request_id,
        space_id,
        kind.value,
        receipt.target_id,
        receipt.transaction.id,
        receipt.matched_obligation_id,
        (time.time() - start_time) * 1000,
    )
    return to_response(receipt)


@router.post("/obligations/{obligation_id}/confirm-payment", response_model=PaymentResponse)
def confirm_obligation_payment(
    obligation_id: str,
    body: ConfirmPaymentRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    space_id: str = Depends(get_space_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
    webhook_client: PaymentWebhookClient = Depends(get_webhook_client),
):
    """Mark an obligation as paid and register the expense"""
    return confirm(
        SourceKind.OBLIGATION, obligation_id, body, request, background_tasks, space_id, today, db, webhook_client
    )


@router.post("/debts/{debt_id}/confirm-payment", response_model=PaymentResponse)
def confirm_debt_payment(
    debt_id: str,
    body: ConfirmPaymentRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    space_id: str = Depends(get_space_id),
    today: date = Depends(get_today),
    db: Session = Depends(get_db),
    webhook_client: PaymentWebhookClient = Depends(get_webhook_client),
):
    """Pay one installment of a debt and register the expense"""
    return confirm(SourceKind.DEBT, debt_id, body, request, background_tasks, space_id, today, db, webhook_client)
