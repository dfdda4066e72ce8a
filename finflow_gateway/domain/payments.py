"""Payment confirmation rules for obligations and installment debts"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from finflow_gateway.domain.exceptions import AlreadySettledError, InvalidAmountError, NotFoundError
from finflow_gateway.domain.models import (
    Debt,
    DebtPayment,
    FlowType,
    Obligation,
    ObligationPayment,
    ObligationStatus,
    Transaction,
)
from finflow_gateway.utils.date_utils import add_months

DEFAULT_PAYMENT_CATEGORY = "Deudas"

# Amounts are stored as Numeric(14, 2)
CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1000000000000")


def validate_amount(payment_amount) -> Decimal:
    """Coerce to Decimal and reject anything that is not a positive amount in whole cents"""
    try:
        amount = Decimal(str(payment_amount))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise InvalidAmountError(f"Invalid payment amount: {payment_amount!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"Payment amount must be positive, got {payment_amount}")
    if amount >= MAX_AMOUNT:
        raise InvalidAmountError(f"Payment amount is too large: {payment_amount}")
    if amount != amount.quantize(CENT):
        raise InvalidAmountError(f"Payment amount has more than two decimal places: {payment_amount}")
    return amount


def _payment_transaction(
    amount: Decimal,
    payment_date: date,
    description: Optional[str],
    default_description: str,
    category: Optional[str],
) -> Transaction:
    return Transaction(
        type=FlowType.EXPENSE,
        amount=amount,
        date=payment_date,
        description=(description or "").strip() or default_description,
        category=category or DEFAULT_PAYMENT_CATEGORY,
    )


def pay_obligation(
    obligation: Obligation,
    payment_amount,
    payment_date: date,
    description: Optional[str] = None,
) -> ObligationPayment:
    """
    Settle an obligation.

    The obligation becomes paid and an expense of exactly payment_amount is
    registered. Paying an already paid obligation is a NotFound: there is no
    open obligation left to confirm.
    """
    amount = validate_amount(payment_amount)
    if obligation.status == ObligationStatus.PAID:
        raise NotFoundError(f"Obligation {obligation.id} is already paid")

    return ObligationPayment(
        status=ObligationStatus.PAID,
        transaction=_payment_transaction(
            amount,
            payment_date,
            description,
            f"Pago de obligación: {obligation.title or 'Obligación'}",
            obligation.category,
        ),
    )


def pay_debt_installment(
    debt: Debt,
    payment_amount,
    payment_date: date,
    description: Optional[str] = None,
) -> DebtPayment:
    """
    Pay one installment of a debt.

    - remaining_installments decreases by one (never below zero)
    - total_amount decreases by the payment (never below zero); reaching zero
      settles the debt, so no installments remain
    - next_payment_date moves one month ahead while the debt is still active,
      otherwise it records the payment date

    The expense transaction always equals payment_amount.
    """
    amount = validate_amount(payment_amount)
    if debt.remaining_installments <= 0 or debt.total_amount <= 0:
        raise AlreadySettledError(f"Debt {debt.id} is already settled")

    total_amount = max(debt.total_amount - amount, Decimal("0"))
    # a zero balance settles the debt whatever installments were scheduled
    remaining = max(debt.remaining_installments - 1, 0) if total_amount > 0 else 0
    if total_amount > 0 and remaining > 0:
        next_payment_date = add_months(debt.next_payment_date, 1)
    else:
        next_payment_date = payment_date

    return DebtPayment(
        total_amount=total_amount,
        remaining_installments=remaining,
        next_payment_date=next_payment_date,
        transaction=_payment_transaction(
            amount,
            payment_date,
            description,
            f"Pago de deuda: {debt.name}",
            debt.category,
        ),
    )
