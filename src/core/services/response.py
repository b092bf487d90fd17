"""Query layer over a normalized billing response.

`BillingResponse` wraps one canonical tree and answers "give me entity X"
questions using the service's ordering conventions. These are wire-contract
guarantees and are never re-derived by sorting:

- a customer's first subscription is the active one, the rest are history;
- across a customer's invoices, index 0 is the open invoice and index 1 is
  the most recently billed one;
- a subscription's first plan is its current plan.

Any lookup into a collection with more than one element needs a `code`;
without it `AmbiguousSelectionError` is raised.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from core.domain.exceptions import AmbiguousSelectionError, MissingCollectionError
from core.domain.models import CanonicalNode, ErrorRecord, RawResponse
from core.services.normalizer import Normalizer, is_valid

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_records(value: Any) -> list[Any]:
    if isinstance(value, list):
        return value
    if isinstance(value, dict):
        return [value]
    return []


def _code_text(value: Any) -> str:
    return "" if value is None else str(value)


def _number(value: Any) -> float | int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    return 0


def retrieve(container: Any, collection_key: str, code: Any = None) -> dict[str, Any] | None:
    """Pick one element of `container[collection_key]`.

    - collection absent -> `MissingCollectionError`
    - `code` given -> the element whose `code` matches as text, or None
    - zero or one element -> that element, or None
    - several elements and no code -> `AmbiguousSelectionError`
    """

    collection = container.get(collection_key) if isinstance(container, Mapping) else None
    if collection is None:
        raise MissingCollectionError(collection_key)

    records = _as_records(collection)
    if code is not None:
        wanted = str(code)
        for record in records:
            if isinstance(record, Mapping) and _code_text(record.get("code")) == wanted:
                return record
        return None
    if len(records) <= 1:
        return records[0] if records else None
    raise AmbiguousSelectionError(collection_key, count=len(records))


class BillingResponse:
    """A normalized billing response plus its entity accessors."""

    def __init__(
        self,
        raw_response: RawResponse,
        *,
        normalizer: Normalizer | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.raw_response = raw_response
        self._clock = clock or _utc_now
        self.tree: dict[str, CanonicalNode] = (normalizer or Normalizer()).build(raw_response)

    @classmethod
    def from_payload(
        cls,
        parsed_body: Any,
        *,
        status_code: int = 200,
        body: str = "",
        clock: Clock | None = None,
    ) -> "BillingResponse":
        raw = RawResponse(status_code=status_code, parsed_body=parsed_body, body=body)
        return cls(raw, clock=clock)

    # -- raw access --------------------------------------------------------

    def __getitem__(self, key: str) -> CanonicalNode:
        return self.tree.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.tree

    def get(self, key: str, default: Any = None) -> CanonicalNode:
        return self.tree.get(key, default)

    def __repr__(self) -> str:
        return f"BillingResponse(status={self.raw_response.status_code}, valid={self.valid}, keys={sorted(map(str, self.tree))})"

    @property
    def errors(self) -> list[dict[str, Any]]:
        return self.tree.get("errors") or []

    @property
    def plans(self) -> CanonicalNode:
        return self.tree.get("plans")

    @property
    def customers(self) -> CanonicalNode:
        return self.tree.get("customers")

    @property
    def valid(self) -> bool:
        """True if the service reported no errors and the status is below 400."""

        return is_valid(self.tree, self.raw_response.status_code)

    def error_messages(self) -> list[str]:
        """Human-readable error messages, suffixed with the field name when known."""

        messages: list[str] = []
        for error in self.errors:
            message = _code_text(error.get("text"))
            if error.get("fieldName"):
                message += f": {error['fieldName']}"
            messages.append(message)
        return messages

    def error_records(self) -> list[ErrorRecord]:
        return [ErrorRecord.model_validate(e) for e in self.errors]

    # -- plans -------------------------------------------------------------

    def plan(self, code: Any = None) -> dict[str, Any] | None:
        """Returns the given plan.

        code must be provided if this response contains more than one plan.
        """

        return retrieve(self.tree, "plans", code)

    def plan_items(self, code: Any = None) -> list[dict[str, Any]] | None:
        return (self.plan(code) or {}).get("items")

    def plan_item(self, item_code: Any = None, code: Any = None) -> dict[str, Any] | None:
        """Returns the given item of the given plan.

        item_code must be provided if the plan has more than one item.
        """

        return retrieve(self.plan(code), "items", item_code)

    # -- customers ---------------------------------------------------------

    def customer(self, code: Any = None) -> dict[str, Any] | None:
        return retrieve(self.tree, "customers", code)

    def customer_subscriptions(self, code: Any = None) -> list[dict[str, Any]]:
        """All subscriptions of the customer; only the first one is active."""

        customer = self.customer(code) or {}
        return _as_records(customer.get("subscriptions"))

    def customer_subscription(self, code: Any = None) -> dict[str, Any] | None:
        subscriptions = self.customer_subscriptions(code)
        return subscriptions[0] if subscriptions else None

    def customer_plan(self, code: Any = None) -> dict[str, Any] | None:
        """The current plan: first plan of the active subscription."""

        plans = _as_records((self.customer_subscription(code) or {}).get("plans"))
        return plans[0] if plans else None

    def customer_invoices(self, code: Any = None) -> list[dict[str, Any]]:
        """Invoices of every subscription, in subscription order then invoice order."""

        invoices: list[dict[str, Any]] = []
        for subscription in self.customer_subscriptions(code):
            invoices.extend(_as_records(subscription.get("invoices")))
        return invoices

    def customer_invoice(self, code: Any = None) -> dict[str, Any] | None:
        """The current open invoice (index 0)."""

        invoices = self.customer_invoices(code)
        return invoices[0] if invoices else None

    def customer_last_billed_invoice(self, code: Any = None) -> dict[str, Any] | None:
        """The last billed invoice (index 1); not the open one. None if absent."""

        invoices = self.customer_invoices(code)
        return invoices[1] if len(invoices) > 1 else None

    def customer_transactions(self, code: Any = None) -> list[dict[str, Any]]:
        transactions: list[dict[str, Any]] = []
        for invoice in self.customer_invoices(code):
            transactions.extend(_as_records(invoice.get("transactions")))
        return transactions

    def customer_last_transaction(self, code: Any = None) -> dict[str, Any] | None:
        invoice = self.customer_last_billed_invoice(code) or {}
        transactions = _as_records(invoice.get("transactions"))
        return transactions[0] if transactions else None

    def customer_outstanding_invoices(self, code: Any = None) -> list[dict[str, Any]]:
        """Unpaid invoices whose billing timestamp is after "now".

        "now" is read from the clock on every call.
        """

        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)

        outstanding: list[dict[str, Any]] = []
        for invoice in self.customer_invoices(code):
            if invoice.get("paidTransactionId"):
                continue
            billed_at = invoice.get("billingDatetime")
            if isinstance(billed_at, datetime) and billed_at > now:
                outstanding.append(invoice)
        return outstanding

    # -- items & metrics ---------------------------------------------------

    def customer_item(self, item_code: Any = None, code: Any = None) -> dict[str, Any] | None:
        """Plan item info merged with the subscription's quantity for that item.

        item_code must be provided if the plan has more than one item.
        """

        subscription = self.customer_subscription(code)
        if not subscription:
            return None
        subscription_item = retrieve(subscription, "items", item_code)
        plan = retrieve(subscription, "plans")
        if plan is None:
            return None
        plan_item = retrieve(plan, "items", item_code)
        if not subscription_item or not plan_item:
            return None

        item = dict(plan_item)
        item["quantity"] = subscription_item.get("quantity")
        return item

    def customer_item_quantity_remaining(self, item_code: Any = None, code: Any = None) -> float | int:
        item = self.customer_item(item_code, code)
        if item is None:
            return 0
        return _number(item.get("quantityIncluded")) - _number(item.get("quantity"))

    def customer_item_quantity_overage(self, item_code: Any = None, code: Any = None) -> float | int:
        """Quantity above the included allotment; 0 while under the limit."""

        over = -self.customer_item_quantity_remaining(item_code, code)
        return over if over > 0 else 0

    def customer_item_quantity_overage_cost(self, item_code: Any = None, code: Any = None) -> float | int:
        item = self.customer_item(item_code, code)
        if item is None:
            return 0
        overage = self.customer_item_quantity_overage(item_code, code)
        return _number(item.get("overageAmount")) * overage

    def customer_canceled(self, code: Any = None) -> bool | None:
        """None without an active subscription, else whether it carries a cancellation timestamp."""

        subscription = self.customer_subscription(code)
        if subscription is None:
            return None
        return subscription.get("canceledDatetime") is not None
