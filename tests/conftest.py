"""
Pytest configuration and fixtures for the billing-response tests.

Provides payload factories shaped like the service's wire format (singular
wrappers, string leaves) and a fixed clock.
"""
from datetime import datetime, timezone

import pytest

from core.domain.models import RawResponse
from core.services.response import BillingResponse

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Factory Helpers
# =============================================================================

def make_item(code, quantity_included="100", overage_amount="2.5", quantity=None):
    """Create a plan-level item as the service serializes it (string leaves)."""
    item = {
        "code": code,
        "name": f"Item {code}",
        "quantityIncluded": quantity_included,
        "isPeriodic": "1",
        "overageAmount": overage_amount,
    }
    if quantity is not None:
        item["quantity"] = quantity
    return item


def make_plan(code, items=None):
    plan = {
        "code": code,
        "name": f"Plan {code}",
        "isActive": "1",
        "isFree": "0",
        "trialDays": "30",
        "recurringChargeAmount": "19.99",
        "createdDatetime": "2024-01-01T00:00:00+00:00",
    }
    if items is not None:
        plan["items"] = items
    return plan


def make_invoice(invoice_id, billing_datetime, transactions=None, paid_transaction_id=None):
    invoice = {
        "id": invoice_id,
        "number": str(invoice_id),
        "billingDatetime": billing_datetime,
    }
    if transactions is not None:
        invoice["transactions"] = transactions
    if paid_transaction_id is not None:
        invoice["paidTransactionId"] = paid_transaction_id
    return invoice


def make_customer(code, subscriptions=None):
    customer = {
        "code": code,
        "firstName": "Ada",
        "lastName": code.title(),
        "email": f"{code}@example.com",
    }
    if subscriptions is not None:
        customer["subscriptions"] = subscriptions
    return customer


def make_response(parsed_body, status_code=200, body=""):
    """Normalize a parsed body into a BillingResponse with the fixed clock."""
    raw = RawResponse(status_code=status_code, parsed_body=parsed_body, body=body)
    return BillingResponse(raw, clock=lambda: FIXED_NOW)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def plans_payload():
    """Two plans, wire-format arrays."""
    return {
        "plans": {
            "plan": [
                make_plan("BASIC", items={"item": make_item("SEATS", quantity_included="5")}),
                make_plan(
                    "PRO",
                    items={"item": [make_item("SEATS", quantity_included="20"), make_item("STORAGE")]},
                ),
            ]
        }
    }


@pytest.fixture
def customer_payload():
    """One customer: an active subscription with two invoices plus one historical subscription."""
    active = {
        "id": "sub-active",
        "createdDatetime": "2024-05-01T00:00:00+00:00",
        "canceledDatetime": None,
        "plans": {"plan": make_plan("PRO", items={"item": [make_item("SEATS"), make_item("STORAGE", "10", "0.5")]})},
        "items": {
            "item": [
                {"code": "SEATS", "quantity": "120"},
                {"code": "STORAGE", "quantity": "4"},
            ]
        },
        "invoices": {
            "invoice": [
                make_invoice("inv-open", "2024-07-01T00:00:00+00:00"),
                make_invoice(
                    "inv-billed",
                    "2024-06-01T00:00:00+00:00",
                    transactions={"transaction": {"id": "txn-1", "amount": "19.99"}},
                    paid_transaction_id="txn-1",
                ),
            ]
        },
    }
    historical = {
        "id": "sub-old",
        "canceledDatetime": "2024-04-30T00:00:00+00:00",
        "plans": {"plan": make_plan("BASIC")},
        "invoices": {
            "invoice": make_invoice(
                "inv-old",
                "2024-04-01T00:00:00+00:00",
                transactions={"transaction": [{"id": "txn-0", "amount": "9.99"}]},
            )
        },
    }
    return {"customers": {"customer": make_customer("alice", {"subscription": [active, historical]})}}


@pytest.fixture
def two_customers_payload(customer_payload):
    alice = customer_payload["customers"]["customer"]
    bob = make_customer("bob", {"subscription": {"id": "sub-bob", "invoices": None}})
    return {"customers": {"customer": [alice, bob]}}
