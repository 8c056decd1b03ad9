"""Unit tests for normalising Fawaterak invoice responses."""

import pytest
from services.payments_service.services.invoice_links import (
    INVOICE_URL_PATHS,
    InvoiceLink,
    extract_invoice_link,
    first_match,
    resolve_path,
)


@pytest.mark.unit
def test_data_invoice_key_and_url():
    response = {
        "status": "success",
        "data": {"invoice_id": 1001, "invoice_key": "KEY1", "url": "https://pay/x"},
    }

    assert extract_invoice_link(response) == InvoiceLink("KEY1", "https://pay/x")


@pytest.mark.unit
def test_camel_case_key_is_used_when_snake_case_missing():
    response = {"data": {"invoiceKey": "KEY2", "invoiceUrl": "https://pay/y"}}

    assert extract_invoice_link(response) == InvoiceLink("KEY2", "https://pay/y")


@pytest.mark.unit
def test_numeric_invoice_id_is_last_resort_and_stringified():
    response = {"data": {"invoice_id": 42, "frame_url": "https://pay/frame"}}

    link = extract_invoice_link(response)

    assert link.invoice_id == "42"
    assert link.invoice_url == "https://pay/frame"


@pytest.mark.unit
def test_nested_payment_data_redirect():
    response = {
        "data": {
            "invoice_key": "KEY3",
            "payment_data": {"redirectTo": "https://pay/redirect"},
        }
    }

    assert extract_invoice_link(response).invoice_url == "https://pay/redirect"


@pytest.mark.unit
def test_earlier_url_rule_wins():
    response = {
        "data": {
            "invoice_key": "KEY4",
            "redirectTo": "https://pay/late",
            "invoice_url": "https://pay/early",
            "payment_data": {"url": "https://pay/middle"},
        }
    }

    assert extract_invoice_link(response).invoice_url == "https://pay/early"


@pytest.mark.unit
def test_empty_values_fall_through_to_next_rule():
    response = {
        "data": {
            "invoice_key": "",
            "invoiceKey": "KEY5",
            "invoiceUrl": None,
            "frame_url": "",
            "payment_data": {"redirect_to": "https://pay/snake"},
        }
    }

    assert extract_invoice_link(response) == InvoiceLink("KEY5", "https://pay/snake")


@pytest.mark.unit
def test_flat_response_with_invoice_key():
    response = {"invoice_key": "FLAT", "redirect_to": "https://pay/flat"}

    assert extract_invoice_link(response) == InvoiceLink("FLAT", "https://pay/flat")


@pytest.mark.unit
def test_flat_response_without_invoice_key_is_ignored():
    response = {"invoice_id": 7, "url": "https://pay/ignored"}

    assert extract_invoice_link(response) == InvoiceLink(None, None)


@pytest.mark.unit
def test_no_url_keeps_recovered_id():
    response = {"data": {"invoice_key": "KEY6"}}

    assert extract_invoice_link(response) == InvoiceLink("KEY6", None)


@pytest.mark.unit
@pytest.mark.parametrize("response", [None, [], "oops", {"data": "nope"}])
def test_unusable_responses(response):
    assert extract_invoice_link(response) == InvoiceLink(None, None)


@pytest.mark.unit
def test_resolve_path_stops_at_non_dict():
    assert resolve_path({"payment_data": "text"}, ("payment_data", "url")) is None
    assert resolve_path({"a": {"b": 1}}, ("a", "b")) == 1


@pytest.mark.unit
def test_first_match_skips_nested_objects():
    document = {"invoiceUrl": {"href": "x"}, "url": "https://pay/plain"}

    assert first_match(document, INVOICE_URL_PATHS) == "https://pay/plain"
