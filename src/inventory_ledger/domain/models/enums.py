"""Enumerations for domain models."""

from enum import Enum


class MutationAction(str, Enum):
    """Kinds of invoice-line changes the ledger reacts to."""

    CREATE = "CREATE"
    EDIT = "EDIT"
    DELETE = "DELETE"


class InvoiceType(str, Enum):
    """Direction of an invoice's stock effect."""

    BUY = "BUY"  # purchase, increases stock
    SELL = "SELL"  # sale, decreases stock


class OversellPolicy(str, Enum):
    """What to do when a movement would leave negative stock."""

    REJECT = "REJECT"
    ALLOW = "ALLOW"
