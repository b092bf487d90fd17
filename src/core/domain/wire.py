"""Wire-contract tables for the billing service's response dialect.

Both tables are read-only module data: the normalizer receives them as
arguments (with these as defaults) and never mutates them.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping


class FieldType(str, Enum):
    """Semantic types that string leaves are coerced into."""

    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    DATETIME = "datetime"


# Collections the service may collapse into `{<singular>: {...}}` when only
# one element is present.
COLLECTION_SINGULARS: Mapping[str, str] = MappingProxyType(
    {
        "plans": "plan",
        "items": "item",
        "subscriptions": "subscription",
        "customers": "customer",
        "invoices": "invoice",
        "charges": "charge",
        "transactions": "transaction",
        "errors": "error",
    }
)

FIELD_TYPES: Mapping[str, FieldType] = MappingProxyType(
    {
        "isActive": FieldType.BOOLEAN,
        "isFree": FieldType.BOOLEAN,
        "trialDays": FieldType.INTEGER,
        "setupChargeAmount": FieldType.FLOAT,
        "recurringChargeAmount": FieldType.FLOAT,
        "billingFrequencyQuantity": FieldType.INTEGER,
        "createdDatetime": FieldType.DATETIME,
        "quantityIncluded": FieldType.FLOAT,
        "isPeriodic": FieldType.BOOLEAN,
        "overageAmount": FieldType.FLOAT,
        "isVatExempt": FieldType.BOOLEAN,
        "firstContactDatetime": FieldType.DATETIME,
        "modifiedDatetime": FieldType.DATETIME,
        "canceledDatetime": FieldType.DATETIME,
        "ccExpirationDate": FieldType.DATE,
        "quantity": FieldType.FLOAT,
        "billingDatetime": FieldType.DATETIME,
        "eachAmount": FieldType.FLOAT,
        "number": FieldType.INTEGER,
        "amount": FieldType.FLOAT,
        "transactedDatetime": FieldType.DATETIME,
        "vatRate": FieldType.FLOAT,
    }
)
