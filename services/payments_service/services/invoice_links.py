"""Normalising Fawaterak invoice responses into ``InvoiceLink``.

Field names in the create-invoice response are not fixed across endpoints
and API revisions (``data.invoice_key``, ``data.invoiceKey``, flat
top-level fields, ``payment_data.redirectTo``...). Each value is found by
walking an ordered list of candidate paths and taking the first one that
resolves to a non-empty value.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

# Paths are relative to the response scope (see ``_response_scope``).
INVOICE_ID_PATHS: tuple[tuple[str, ...], ...] = (
    ("invoice_key",),
    ("invoiceKey",),
    ("invoice_id",),
)

INVOICE_URL_PATHS: tuple[tuple[str, ...], ...] = (
    ("invoiceUrl",),
    ("frame_url",),
    ("invoice_url",),
    ("url",),
    ("payment_data", "redirectTo"),
    ("payment_data", "redirect_to"),
    ("payment_data", "url"),
    ("redirectTo",),
    ("redirect_to",),
)


@dataclass(frozen=True)
class InvoiceLink:
    invoice_id: Optional[str]
    invoice_url: Optional[str]


def resolve_path(document: Any, path: Iterable[str]) -> Any:
    """Follow ``path`` through nested dicts; ``None`` when any hop is missing."""
    current = document
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def first_match(
    document: Any, paths: Iterable[tuple[str, ...]]
) -> Optional[str]:
    """Value of the first path that resolves to something non-empty."""
    for path in paths:
        value = resolve_path(document, path)
        if value is None or value == "" or isinstance(value, (dict, list, bool)):
            continue
        return str(value)
    return None


def _response_scope(response: Any) -> Optional[dict]:
    if not isinstance(response, dict):
        return None
    data = response.get("data")
    if isinstance(data, dict):
        return data
    # Flat responses are only trusted when they carry an invoice key.
    if response.get("invoice_key") or response.get("invoiceKey"):
        return response
    return None


def extract_invoice_link(response: Any) -> InvoiceLink:
    """Pull the invoice identifier and redirect URL out of a gateway response."""
    scope = _response_scope(response)
    if scope is None:
        return InvoiceLink(invoice_id=None, invoice_url=None)
    return InvoiceLink(
        invoice_id=first_match(scope, INVOICE_ID_PATHS),
        invoice_url=first_match(scope, INVOICE_URL_PATHS),
    )
