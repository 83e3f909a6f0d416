"""API tests for telebill."""

import hashlib
import hmac
import json
import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from telebill.core.database import get_db, init_db
from telebill.core.exceptions import PricingLookupError
from telebill.main import app
from telebill.models.billing_account import BillingAccount
from telebill.models.billing_cycle import BillingCycle, BillingCycleStatus
from telebill.models.invoice import Invoice, InvoiceStatus
from telebill.models.payment import Payment, PaymentStatus
from telebill.models.payment_method import PaymentMethod
from telebill.models.regional_pricing import RegionalPricing
from telebill.services.payment_gateway import PAYMENT_SUCCEEDED, GatewayWebhookEvent, ManualGateway


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def db_session():
    """Create a database session for direct repository testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def account(db_session):
    account = BillingAccount(
        user_id=uuid.uuid4(),
        name="Acme Telecom",
        billing_period="monthly",
        next_billing_date=datetime(2024, 2, 1, tzinfo=UTC),
        currency="USD",
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def invoice(db_session, account):
    invoice = Invoice(
        invoice_number="INV-202402-0001",
        billing_account_id=account.id,
        status=InvoiceStatus.SENT.value,
        period_start=datetime(2024, 1, 1, tzinfo=UTC),
        period_end=datetime(2024, 2, 1, tzinfo=UTC),
        subtotal=1000,
        tax=80,
        total=1080,
        currency="USD",
        due_date=datetime(2024, 3, 2, tzinfo=UTC),
    )
    db_session.add(invoice)
    db_session.commit()
    db_session.refresh(invoice)
    return invoice


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


class TestUsageEndpoints:
    def test_track_usage(self, client, account):
        response = client.post(
            "/v1/usage/",
            json={
                "billing_account_id": str(account.id),
                "number_id": "num-1",
                "event_type": "outbound_call",
                "duration": 61,
                "timestamp": "2024-01-10T12:00:00Z",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["quantity"] == 2
        assert data["unit_cost"] == 3
        assert data["total_cost"] == 6
        assert data["is_invoiced"] is False

    def test_track_usage_unknown_account(self, client):
        response = client.post(
            "/v1/usage/",
            json={
                "billing_account_id": str(uuid.uuid4()),
                "number_id": "num-1",
                "event_type": "sms_sent",
            },
        )
        assert response.status_code == 404

    def test_track_usage_unknown_event_type(self, client, account):
        response = client.post(
            "/v1/usage/",
            json={
                "billing_account_id": str(account.id),
                "number_id": "num-1",
                "event_type": "fax_sent",
            },
        )
        assert response.status_code == 400
        assert "fax_sent" in response.json()["detail"]

    def test_track_usage_negative_duration_rejected(self, client, account):
        response = client.post(
            "/v1/usage/",
            json={
                "billing_account_id": str(account.id),
                "number_id": "num-1",
                "event_type": "inbound_call",
                "duration": -5,
            },
        )
        assert response.status_code == 422

    def test_statistics_and_daily(self, client, account):
        for when in ("2024-01-10T08:00:00Z", "2024-01-10T09:00:00Z", "2024-01-12T09:00:00Z"):
            client.post(
                "/v1/usage/",
                json={
                    "billing_account_id": str(account.id),
                    "number_id": "num-1",
                    "event_type": "sms_sent",
                    "timestamp": when,
                },
            )
        params = {
            "billing_account_id": str(account.id),
            "start": "2024-01-01T00:00:00Z",
            "end": "2024-01-31T23:59:59Z",
        }

        stats = client.get("/v1/usage/statistics", params=params).json()
        assert stats["total_events"] == 3
        assert stats["total_cost"] == 6
        assert stats["event_breakdown"]["sms_sent"]["count"] == 3

        daily = client.get("/v1/usage/daily", params=params).json()
        assert [d["date"] for d in daily] == ["2024-01-10", "2024-01-12"]
        assert daily[0]["count"] == 2

    def test_usage_by_number(self, client, account):
        for _ in range(3):
            client.post(
                "/v1/usage/",
                json={
                    "billing_account_id": str(account.id),
                    "number_id": "num-9",
                    "event_type": "voicemail_received",
                },
            )
        response = client.get("/v1/usage/numbers/num-9", params={"limit": 2})
        assert response.status_code == 200
        assert len(response.json()) == 2
        assert response.headers["X-Total-Count"] == "3"


class TestInvoiceEndpoints:
    def test_generate_and_fetch(self, client, account):
        client.post(
            "/v1/usage/",
            json={
                "billing_account_id": str(account.id),
                "number_id": "num-1",
                "event_type": "sms_sent",
                "quantity": 50,
                "timestamp": "2024-01-10T12:00:00Z",
            },
        )

        response = client.post(
            "/v1/invoices/generate",
            json={
                "billing_account_id": str(account.id),
                "period_start": "2024-01-01T00:00:00Z",
                "period_end": "2024-01-31T23:59:59Z",
            },
        )
        assert response.status_code == 201
        invoice = response.json()
        assert invoice["status"] == "sent"
        assert invoice["subtotal"] == 100
        assert invoice["tax"] == 8
        assert invoice["total"] == 108

        detail = client.get(f"/v1/invoices/{invoice['id']}").json()
        assert len(detail["items"]) == 1
        assert detail["items"][0]["quantity"] == 50

        listing = client.get("/v1/invoices/", params={"billing_account_id": str(account.id)})
        assert listing.headers["X-Total-Count"] == "1"

    def test_generate_unknown_account(self, client):
        response = client.post(
            "/v1/invoices/generate",
            json={
                "billing_account_id": str(uuid.uuid4()),
                "period_start": "2024-01-01T00:00:00Z",
                "period_end": "2024-01-31T23:59:59Z",
            },
        )
        assert response.status_code == 404

    def test_get_missing_invoice(self, client):
        assert client.get(f"/v1/invoices/{uuid.uuid4()}").status_code == 404

    def test_generate_pdf(self, client, invoice):
        with patch(
            "telebill.services.invoice_service.PdfService.render_and_store",
            return_value="/static/invoices/INV-202402-0001.pdf",
        ):
            response = client.post(f"/v1/invoices/{invoice.id}/pdf")

        assert response.status_code == 200
        assert response.json()["pdf_url"] == "/static/invoices/INV-202402-0001.pdf"

    @patch("telebill.routers.invoices.enqueue_invoice_pdf", new_callable=AsyncMock)
    def test_enqueue_pdf(self, mock_enqueue, client, invoice):
        mock_enqueue.return_value = MagicMock(job_id="job-456")
        response = client.post(f"/v1/invoices/{invoice.id}/pdf/enqueue")
        assert response.status_code == 202
        assert response.json() == {"job_id": "job-456"}
        mock_enqueue.assert_awaited_once_with(str(invoice.id))

    @patch("telebill.routers.invoices.enqueue_invoice_pdf", new_callable=AsyncMock)
    def test_enqueue_pdf_missing_invoice(self, mock_enqueue, client):
        response = client.post(f"/v1/invoices/{uuid.uuid4()}/pdf/enqueue")
        assert response.status_code == 404
        mock_enqueue.assert_not_awaited()

    def test_pay_without_payment_method(self, client, invoice):
        response = client.post(f"/v1/invoices/{invoice.id}/pay")
        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "payment": None,
            "error": "No active payment method found",
        }

    def test_pay_missing_invoice(self, client):
        assert client.post(f"/v1/invoices/{uuid.uuid4()}/pay").status_code == 404

    def test_pay_draft_invoice_is_refused_before_charging(self, client, db_session, invoice):
        invoice.status = InvoiceStatus.DRAFT.value
        db_session.add(
            PaymentMethod(
                billing_account_id=invoice.billing_account_id,
                gateway="manual",
                gateway_payment_method_id="manual_ref",
                is_default=True,
            )
        )
        db_session.commit()

        with patch.object(ManualGateway, "charge") as mock_charge:
            response = client.post(f"/v1/invoices/{invoice.id}/pay")

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "payment": None,
            "error": "Invoice in status draft cannot be paid",
        }
        mock_charge.assert_not_called()
        assert db_session.query(Payment).count() == 0
        db_session.refresh(invoice)
        assert invoice.status == InvoiceStatus.DRAFT.value


class TestBillingCycleEndpoints:
    def test_list_and_current(self, client, db_session, account):
        now = datetime.now(UTC)
        cycle = BillingCycle(
            billing_account_id=account.id,
            period_start=datetime(now.year - 1, 1, 1, tzinfo=UTC),
            period_end=datetime(now.year + 1, 1, 1, tzinfo=UTC),
            status=BillingCycleStatus.COMPLETED.value,
            created_at=now,
        )
        db_session.add(cycle)
        db_session.commit()

        listing = client.get("/v1/billing_cycles/", params={"billing_account_id": str(account.id)})
        assert listing.status_code == 200
        assert listing.headers["X-Total-Count"] == "1"

        current = client.get(
            "/v1/billing_cycles/current", params={"billing_account_id": str(account.id)}
        )
        assert current.status_code == 200
        assert current.json()["id"] == str(cycle.id)

    def test_no_current_cycle(self, client, account):
        response = client.get(
            "/v1/billing_cycles/current", params={"billing_account_id": str(account.id)}
        )
        assert response.status_code == 404

    @patch("telebill.routers.billing_cycles.enqueue_billing_run", new_callable=AsyncMock)
    def test_enqueue_billing_run(self, mock_enqueue, client):
        mock_enqueue.return_value = MagicMock(job_id="job-123")
        response = client.post("/v1/billing_cycles/run")
        assert response.status_code == 202
        assert response.json() == {"job_id": "job-123"}
        mock_enqueue.assert_awaited_once()


class TestPricingEndpoints:
    def test_default_pricing(self, client):
        data = client.get("/v1/pricing/").json()
        assert data["rates"]["outbound_call_per_minute"] == 3
        assert data["currency"] == "USD"

    def test_regional_pricing_and_tax(self, client, db_session):
        db_session.add(
            RegionalPricing(
                region="IN",
                currency="INR",
                pricing={"inbound_call_per_minute": 50},
                taxes={"rate": "0.18", "type": "GST", "cgst": "0.09", "sgst": "0.09"},
                effective_from=datetime(2000, 1, 1, tzinfo=UTC),
            )
        )
        db_session.commit()

        pricing = client.get("/v1/pricing/in")
        assert pricing.status_code == 200
        assert pricing.json()["currency"] == "INR"

        tax = client.get("/v1/pricing/IN/tax", params={"subtotal": 10000}).json()
        assert tax["tax"] == 1800
        assert tax["breakdown"]["cgst"] == 900
        assert tax["breakdown"]["sgst"] == 900

    def test_missing_region(self, client):
        assert client.get("/v1/pricing/EU").status_code == 404
        assert client.get("/v1/pricing/EU/tax", params={"subtotal": 100}).status_code == 404

    def test_lookup_failure_is_503_on_both_routes(self, client):
        with patch(
            "telebill.routers.pricing.RegionalPricingService.get_regional_pricing",
            side_effect=PricingLookupError("pricing store unavailable"),
        ):
            assert client.get("/v1/pricing/IN").status_code == 503
            response = client.get("/v1/pricing/IN/tax", params={"subtotal": 100})
        assert response.status_code == 503

    def test_pricing_tiers(self, client):
        data = client.get("/v1/pricing/in/tiers").json()
        assert [plan["name"] for plan in data] == ["STARTER", "BUSINESS", "ENTERPRISE"]

    def test_estimate_monthly_cost(self, client):
        response = client.post(
            "/v1/pricing/US/tiers/standard/estimate", json={"outbound_minutes": 10}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["plan"] == "STANDARD"
        assert data["total"] == 1112

    def test_estimate_unknown_plan(self, client):
        response = client.post("/v1/pricing/IN/tiers/platinum/estimate", json={})
        assert response.status_code == 404

    def test_estimate_rejects_negative_usage(self, client):
        response = client.post(
            "/v1/pricing/IN/tiers/starter/estimate", json={"sms_outbound": -1}
        )
        assert response.status_code == 422


class TestWebhookEndpoints:
    def test_invalid_gateway(self, client):
        response = client.post("/v1/webhooks/paypal", json={"type": "test"})
        assert response.status_code == 400
        assert "Invalid gateway" in response.json()["detail"]

    def test_invalid_signature(self, client):
        response = client.post(
            "/v1/webhooks/stripe",
            json={"type": "test"},
            headers={"Stripe-Signature": "invalid"},
        )
        assert response.status_code == 401

    @patch("telebill.routers.webhooks.get_payment_gateway")
    def test_invalid_json(self, mock_get_gateway, client):
        mock_gateway = MagicMock()
        mock_gateway.verify_webhook_signature.return_value = True
        mock_get_gateway.return_value = mock_gateway

        response = client.post(
            "/v1/webhooks/stripe",
            content=b"not json",
            headers={"Stripe-Signature": "t=1,v1=abc"},
        )
        assert response.status_code == 400

    @patch("telebill.routers.webhooks.get_payment_gateway")
    def test_unmatched_event(self, mock_get_gateway, client):
        mock_gateway = MagicMock()
        mock_gateway.verify_webhook_signature.return_value = True
        mock_gateway.parse_webhook.return_value = GatewayWebhookEvent(
            event_type=PAYMENT_SUCCEEDED, gateway_charge_id="pi_unknown"
        )
        mock_get_gateway.return_value = mock_gateway

        response = client.post(
            "/v1/webhooks/stripe", json={"type": "payment_intent.succeeded"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "status": "received",
            "event_type": PAYMENT_SUCCEEDED,
            "handled": False,
        }

    @patch("telebill.services.payment_gateway.settings")
    def test_manual_webhook_pays_invoice(self, mock_settings, client, db_session, invoice):
        mock_settings.manual_webhook_secret = "manual-secret"
        db_session.add(
            Payment(
                invoice_id=invoice.id,
                amount=1080,
                currency="USD",
                gateway="manual",
                gateway_charge_id="manual_abc",
                status=PaymentStatus.PENDING.value,
            )
        )
        db_session.commit()
        payload = json.dumps({"charge_id": "manual_abc", "status": "succeeded"}).encode()
        signature = hmac.new(b"manual-secret", payload, hashlib.sha256).hexdigest()

        response = client.post(
            "/v1/webhooks/manual",
            content=payload,
            headers={"X-Webhook-Signature": signature, "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.json()["handled"] is True
        db_session.refresh(invoice)
        assert invoice.status == InvoiceStatus.PAID.value


class TestDatabase:
    def test_init_db(self):
        """init_db creates tables idempotently."""
        from sqlalchemy import inspect

        from telebill.core.database import engine

        init_db()

        tables = inspect(engine).get_table_names()
        assert "usage_events" in tables
        assert "billing_cycles" in tables
