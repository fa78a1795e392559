# tests/test_hydration.py
import json

import pytest

from hydration import ABSENT, Present, dumps, hydrate, serialize
from invoice import (
    AddItem, BillTo, EventDetails, Invoice, LineItem, SectionLabels, SetField, apply,
)


@pytest.fixture
def default():
    return Invoice(
        title="Invoice #101",
        issuer_name="ROYAL TURBAN NYC",
        bill_to=BillTo(name="", phone="", email="desk@example.com"),
        event_details=EventDetails(date="2025-11-02", time="10:30 AM", location=""),
        items=(LineItem("Turban Tying Service", 1, 150), LineItem("Travel Charge", 1, 50)),
        notes="Terms",
        payment_instructions="Cash",
        signature_date="2025-11-02",
        deposit=0.0,
        section_labels=SectionLabels(bill_to="Bill To", details="Event Details"),
        theme_color="#f97316",
    )


def test_absent_is_a_singleton():
    assert ABSENT is type(ABSENT)()
    assert Present(1) == Present(1)


def test_missing_record_gives_default(default):
    assert hydrate(None, default) == default
    assert hydrate({}, default) == default


def test_partial_record_keeps_default_fields(default):
    out = hydrate({"deposit": 20}, default)
    assert out.deposit == 20.0
    assert out.bill_to == default.bill_to
    assert out.items == default.items
    assert out.title == default.title


def test_nested_objects_merge_per_key(default):
    # Older records were written before billTo.email existed.
    out = hydrate({"billTo": {"name": "Ann", "phone": "555-0100"}}, default)
    assert out.bill_to == BillTo(name="Ann", phone="555-0100", email="desk@example.com")


@pytest.mark.parametrize("persisted", ["{not json", "[1, 2]", "42", b"\xff\xfe", 3.5, ["x"]])
def test_unreadable_records_give_default(default, persisted):
    assert hydrate(persisted, default) == default


def test_wrong_types_are_ignored(default):
    out = hydrate({
        "invoiceTitle": 5,
        "deposit": "20",
        "notes": None,
        "billTo": {"name": 7, "phone": "555"},
        "eventDetails": "tomorrow",
    }, default)
    assert out.title == default.title
    assert out.deposit == default.deposit
    assert out.notes == default.notes
    assert out.bill_to == BillTo(name="", phone="555", email="desk@example.com")
    assert out.event_details == default.event_details


@pytest.mark.parametrize("deposit", [-5, True, float("nan")])
def test_out_of_domain_amounts_are_ignored(default, deposit):
    assert hydrate({"deposit": deposit}, default).deposit == default.deposit


def test_items_replace_the_default_list(default):
    out = hydrate({"items": [{"description": "Only", "quantity": 2, "price": 30}]}, default)
    assert out.items == (LineItem("Only", 2.0, 30.0),)


def test_empty_item_list_is_kept(default):
    assert hydrate({"items": []}, default).items == ()


def test_one_bad_item_keeps_the_default_list(default):
    out = hydrate({"items": [
        {"description": "Good", "quantity": 1, "price": 10},
        {"description": "Bad", "quantity": "two", "price": 10},
    ]}, default)
    assert out.items == default.items


def test_null_label_means_builtin_label(default):
    out = hydrate({"labels": {"billTo": None}}, default)
    assert out.section_labels == SectionLabels(bill_to=None, details="Event Details")


def test_images_round_trip(default, logo, signature):
    inv = apply(default, SetField("logo_image", logo))
    inv = apply(inv, SetField("signature_image", signature))
    out = hydrate(dumps(inv), default)
    assert out.logo_image == logo
    assert out.signature_image == signature


def test_corrupt_image_keeps_default(default):
    out = hydrate({"logoBase64": "data:image/png;base64,not-really-base64!!"}, default)
    assert out.logo_image is None
    out = hydrate({"logoBase64": "data:image/png;base64,aGVsbG8="}, default)
    assert out.logo_image is None


def test_serialize_uses_wire_names(default, logo):
    data = serialize(default)
    assert data["invoiceTitle"] == "Invoice #101"
    assert data["companyName"] == "ROYAL TURBAN NYC"
    assert data["items"][0] == {"description": "Turban Tying Service", "quantity": 1.0, "price": 150.0}
    assert data["labels"] == {"billTo": "Bill To", "details": "Event Details"}
    assert "logoBase64" not in data

    data = serialize(apply(default, SetField("logo_image", logo)))
    assert data["logoBase64"].startswith("data:image/png;base64,")


def test_saved_edits_come_back(default):
    inv = apply(default, SetField("bill_to.name", "Ann"))
    inv = apply(inv, AddItem("Extra", 2, 5))
    inv = apply(inv, SetField("deposit", 25))
    assert hydrate(dumps(inv), default) == inv
    assert hydrate(dumps(inv).encode("utf-8"), default) == inv


@pytest.mark.parametrize("persisted", [
    None,
    {},
    {"deposit": 20},
    {"billTo": {"name": "Ann"}},
    {"items": [{"description": "x", "quantity": 1, "price": 2}]},
    {"items": [{"description": "x"}]},
    "{broken",
])
def test_hydrating_twice_changes_nothing(default, persisted):
    once = hydrate(persisted, default)
    assert hydrate(persisted, once) == once
    assert hydrate(json.dumps(serialize(once)), default) == once


def test_huge_integers_are_treated_as_malformed(default):
    huge = "1" + "0" * 400
    out = hydrate('{"deposit": ' + huge + ', "invoiceTitle": "X"}', default)
    assert out.deposit == default.deposit
    assert out.title == "X"

    out = hydrate('{"items": [{"description": "a", "quantity": ' + huge + ', "price": 1}]}', default)
    assert out.items == default.items
