"""Integration tests for API endpoints"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from finflow_gateway.config import settings
from finflow_gateway.infrastructure.database.models import AuditEventRow, DebtRow, ObligationRow, TransactionRow


def _db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "finflow_payment_confirmations_total" in response.text


def test_space_header_is_required(client: TestClient):
    response = client.get("/v1/calendar", headers={"X-Space-ID": ""})
    assert response.status_code == 422


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_calendar_groups_three_sources(client: TestClient, seed, today):
    seed.obligation("Luz", 45000, today + timedelta(days=2), category="Servicios")
    seed.debt("Notebook", 30000, today + timedelta(days=2))
    seed.recurring("Netflix", 9990, today + timedelta(days=5))
    seed.obligation("Pagada", 10000, today + timedelta(days=1), status="paid")
    seed.obligation("Lejana", 10000, today + timedelta(days=60))

    response = client.get("/v1/calendar", params={"days": 30})

    assert response.status_code == 200
    data = response.json()
    assert data["range"] == {
        "from": today.isoformat(),
        "to": (today + timedelta(days=30)).isoformat(),
        "days": 30,
    }
    assert data["partial"] is False
    assert [group["date"] for group in data["groups"]] == [
        (today + timedelta(days=2)).isoformat(),
        (today + timedelta(days=5)).isoformat(),
    ]
    first = data["groups"][0]["items"]
    assert [item["kind"] for item in first] == ["obligation", "debt"]
    assert first[0]["status"] == "pending"
    assert first[1]["remaining_installments"] == 6
    assert data["groups"][1]["items"][0]["type"] == "expense"


def test_calendar_window_is_clamped(client: TestClient, seed, today):
    response = client.get("/v1/calendar", params={"days": 500})
    assert response.json()["range"]["days"] == 120

    response = client.get("/v1/calendar")
    assert response.json()["range"]["days"] == 45


def test_calendar_is_scoped_to_space(client: TestClient, seed, today, other_space_id):
    seed.obligation("Arriendo oficina", 500000, today + timedelta(days=1), space_id=other_space_id)

    response = client.get("/v1/calendar")
    assert response.json()["groups"] == []

    response = client.get("/v1/calendar", headers={"X-Space-ID": other_space_id})
    assert len(response.json()["groups"]) == 1


@patch("finflow_gateway.infrastructure.database.repositories.RecurringRepository.list_upcoming", _db_down)
def test_calendar_survives_provider_failure(client: TestClient, seed, today):
    seed.obligation("Luz", 45000, today + timedelta(days=2))
    seed.debt("Notebook", 30000, today + timedelta(days=3))

    response = client.get("/v1/calendar")

    assert response.status_code == 200
    data = response.json()
    assert data["partial"] is True
    assert "recurring" in data["errors"]
    kinds = [item["kind"] for group in data["groups"] for item in group["items"]]
    assert kinds == ["obligation", "debt"]


def test_insight_balanced_scenario(client: TestClient, seed):
    seed.transaction("income", 300000)
    seed.transaction("expense", 280000)

    response = client.get("/v1/insight")

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["capital_available"]) == Decimal("20000")
    assert data["profile"] == "balanced"
    assert data["risk_level"] == "medium"
    assert data["monthly_outlook"] == "Equilibrado"
    assert Decimal("0.066") < Decimal(data["savings_rate"]) < Decimal("0.067")


def test_insight_ignores_transactions_outside_current_month(client: TestClient, seed, today):
    seed.transaction("income", 300000)
    seed.transaction("expense", 999999, on=today.replace(day=1) - timedelta(days=1))

    data = client.get("/v1/insight").json()
    assert Decimal(data["summary"]["expenses"]) == Decimal("0")


def test_insight_dedups_debt_mirroring_an_obligation(client: TestClient, seed, today):
    obligation = seed.obligation("Visa Santander", 150000, today + timedelta(days=2))
    seed.debt("visa santánder", 150000, today + timedelta(days=2))
    seed.transaction("income", 1000000)

    data = client.get("/v1/insight").json()

    payment_actions = [a for a in data["weekly_actions"] if a["id"].startswith("pay-obligation") or a["id"].startswith("pay-debt")]
    assert len(payment_actions) == 1
    assert payment_actions[0]["source_kind"] == "obligation"
    assert payment_actions[0]["source_id"] == str(obligation.id)
    assert payment_actions[0]["priority"] == 1


def test_insight_reports_budget_alerts(client: TestClient, seed):
    seed.transaction("income", 1000000)
    seed.transaction("expense", 90000, category="supermercado")
    seed.budget("Supermercado", 100000)

    data = client.get("/v1/insight").json()

    assert [alert["category"] for alert in data["budget_alerts"]] == ["Supermercado"]
    assert any("Presupuesto Supermercado" in reminder for reminder in data["reminders"])


@patch("finflow_gateway.infrastructure.database.repositories.TransactionRepository.list_between", _db_down)
def test_insight_without_transactions_is_unknown(client: TestClient, seed, today):
    seed.obligation("Luz", 45000, today + timedelta(days=1))

    response = client.get("/v1/insight")

    assert response.status_code == 200
    data = response.json()
    assert data["profile"] == "unknown"
    assert "transactions" in data["errors"]
    assert [a["id"] for a in data["weekly_actions"]][0].startswith("pay-obligation-")


def test_confirm_obligation_payment(client: TestClient, seed, db: Session, today):
    obligation = seed.obligation("Visa Santander", 45000, today + timedelta(days=2), category="Tarjetas")

    response = client.post(
        f"/v1/obligations/{obligation.id}/confirm-payment",
        json={"payment_amount": 45000, "payment_date": "2025-03-10"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "paid"
    assert Decimal(data["transaction"]["amount"]) == Decimal("45000")
    assert data["transaction"]["date"] == "2025-03-10"
    assert data["transaction"]["type"] == "expense"
    assert data["transaction"]["category"] == "Tarjetas"

    db.expire_all()
    assert db.get(ObligationRow, obligation.id).status == "paid"
    transactions = db.query(TransactionRow).all()
    assert len(transactions) == 1
    assert transactions[0].date.isoformat() == "2025-03-10"
    assert db.query(AuditEventRow).count() == 2


def test_confirm_obligation_twice_never_double_records(client: TestClient, seed, db: Session, today):
    obligation = seed.obligation("Visa Santander", 45000, today + timedelta(days=2))
    body = {"payment_amount": 45000, "payment_date": "2025-03-10"}

    first = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json=body)
    second = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json=body)

    assert first.status_code == 200
    assert second.status_code == 404
    assert db.query(TransactionRow).count() == 1


def test_paid_obligation_disappears_from_calendar_and_actions(client: TestClient, seed, today):
    obligation = seed.obligation("Luz", 45000, today + timedelta(days=1))
    client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json={"payment_amount": 45000})

    calendar = client.get("/v1/calendar").json()
    insight = client.get("/v1/insight").json()

    assert calendar["groups"] == []
    assert all(a["source_id"] != str(obligation.id) for a in insight["weekly_actions"])
    assert Decimal(insight["summary"]["expenses"]) == Decimal("45000")


def test_confirm_payment_rejects_non_positive_amount(client: TestClient, seed, db: Session, today):
    obligation = seed.obligation("Luz", 45000, today + timedelta(days=1))

    response = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json={"payment_amount": 0})

    assert response.status_code == 400
    db.expire_all()
    assert db.get(ObligationRow, obligation.id).status == "pending"
    assert db.query(TransactionRow).count() == 0


def test_confirm_payment_unknown_or_foreign_target_is_not_found(client: TestClient, seed, today, other_space_id):
    foreign = seed.obligation("Oficina", 45000, today + timedelta(days=1), space_id=other_space_id)

    assert client.post(f"/v1/obligations/{foreign.id}/confirm-payment", json={"payment_amount": 1}).status_code == 404
    assert client.post("/v1/obligations/not-a-uuid/confirm-payment", json={"payment_amount": 1}).status_code == 404
    assert client.post("/v1/debts/not-a-uuid/confirm-payment", json={"payment_amount": 1}).status_code == 404


def test_confirm_debt_payment_advances_schedule_and_settles_mirrored_obligation(
    client: TestClient, seed, db: Session, today
):
    debt = seed.debt("Visa Santander", 30000, today.replace(day=15), remaining=3, total_installments=12)
    mirrored = seed.obligation("visa  santander", 30000, today.replace(day=15))

    response = client.post(f"/v1/debts/{debt.id}/confirm-payment", json={"payment_amount": 30000})

    assert response.status_code == 200
    data = response.json()
    assert data["remaining_installments"] == 2
    assert Decimal(data["total_amount"]) == Decimal("60000")
    assert data["next_payment_date"] == "2025-04-15"
    assert data["transaction"]["date"] == today.isoformat()
    assert data["transaction"]["description"] == "Pago de deuda: Visa Santander"
    assert data["matched_obligation_id"] == str(mirrored.id)

    db.expire_all()
    assert db.get(ObligationRow, mirrored.id).status == "paid"
    audit = db.query(AuditEventRow).filter(AuditEventRow.entity_id == str(mirrored.id)).one()
    assert audit.before_data["status"] == "pending"
    assert audit.after_data["status"] == "paid"


def test_confirm_settled_debt_is_not_found(client: TestClient, seed, db: Session, today):
    debt = seed.debt("Auto", 100000, today, remaining=0, total_amount=0)

    response = client.post(f"/v1/debts/{debt.id}/confirm-payment", json={"payment_amount": 100000})

    assert response.status_code == 404
    assert db.query(TransactionRow).count() == 0


def test_confirm_payment_is_atomic(client: TestClient, seed, db: Session, today):
    """If the transaction insert fails the obligation stays open"""
    obligation = seed.obligation("Luz", 45000, today + timedelta(days=1))

    with patch(
        "finflow_gateway.infrastructure.database.repositories.TransactionRepository.create",
        _db_down,
    ):
        response = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json={"payment_amount": 45000})

    assert response.status_code == 503
    db.expire_all()
    assert db.get(ObligationRow, obligation.id).status == "pending"
    assert db.query(TransactionRow).count() == 0
    assert db.query(AuditEventRow).count() == 0


def test_concurrent_confirmation_for_same_target_is_rejected(client: TestClient, seed, space_id, today):
    from finflow_gateway.services import payments

    obligation = seed.obligation("Luz", 45000, today + timedelta(days=1))
    key = (space_id, "obligation", str(obligation.id))
    payments._in_flight.add(key)
    try:
        response = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json={"payment_amount": 45000})
    finally:
        payments._in_flight.discard(key)

    assert response.status_code == 409


def test_confirm_payment_rejects_sub_cent_amount(client: TestClient, seed, db: Session, today):
    obligation = seed.obligation("Luz", 45000, today + timedelta(days=1))

    response = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json={"payment_amount": "0.001"})

    assert response.status_code == 400
    db.expire_all()
    assert db.get(ObligationRow, obligation.id).status == "pending"
    assert db.query(TransactionRow).count() == 0


def test_paying_off_debt_early_settles_it(client: TestClient, seed, db: Session, today):
    debt = seed.debt("Notebook", 30000, today + timedelta(days=2), remaining=3)
    seed.transaction("income", 1000000)

    response = client.post(f"/v1/debts/{debt.id}/confirm-payment", json={"payment_amount": 90000})

    assert response.status_code == 200
    data = response.json()
    assert data["remaining_installments"] == 0
    assert Decimal(data["total_amount"]) == Decimal("0")

    insight = client.get("/v1/insight").json()
    assert Decimal(insight["summary"]["monthly_debt_payments"]) == Decimal("0")
    assert all(a["source_id"] != str(debt.id) for a in insight["weekly_actions"])

    second = client.post(f"/v1/debts/{debt.id}/confirm-payment", json={"payment_amount": 30000})
    assert second.status_code == 404
    assert db.query(TransactionRow).count() == 2


def test_debt_confirmation_is_atomic(client: TestClient, seed, db: Session, today):
    """The debt update is flushed before the expense insert fails and must be rolled back"""
    debt = seed.debt("Notebook", 30000, today + timedelta(days=2), remaining=3)

    with patch(
        "finflow_gateway.infrastructure.database.repositories.TransactionRepository.create",
        _db_down,
    ):
        response = client.post(f"/v1/debts/{debt.id}/confirm-payment", json={"payment_amount": 30000})

    assert response.status_code == 503
    db.expire_all()
    row = db.get(DebtRow, debt.id)
    assert row.remaining_installments == 3
    assert row.total_amount == Decimal("90000")
    assert row.next_payment_date == today + timedelta(days=2)
    assert db.query(TransactionRow).count() == 0
    assert db.query(AuditEventRow).count() == 0


def test_obligation_confirmation_rolls_back_when_audit_fails(client: TestClient, seed, db: Session, today):
    obligation = seed.obligation("Luz", 45000, today + timedelta(days=1))

    with patch(
        "finflow_gateway.infrastructure.database.repositories.AuditRepository.record",
        _db_down,
    ):
        response = client.post(f"/v1/obligations/{obligation.id}/confirm-payment", json={"payment_amount": 45000})

    assert response.status_code == 503
    db.expire_all()
    assert db.get(ObligationRow, obligation.id).status == "pending"
    assert db.query(TransactionRow).count() == 0


def test_insight_applies_reminder_and_contribution_settings(client: TestClient, seed, today, monkeypatch):
    monkeypatch.setattr(settings, "max_reminders", 1)
    monkeypatch.setattr(settings, "emergency_contribution_rate", Decimal("0.25"))
    seed.transaction("income", 300000)
    seed.transaction("expense", 100000)
    seed.obligation("Luz", 45000, today + timedelta(days=1))
    seed.obligation("Agua", 15000, today + timedelta(days=2))

    data = client.get("/v1/insight").json()

    assert data["reminders"] == ["Luz vence en 1 día(s) ($45.000)."]
    fund = next(action for action in data["weekly_actions"] if action["id"] == "fund-emergency")
    assert "25%" in fund["description"]
