from datetime import datetime

import pytest

from app.core.exceptions import DeliveryError
from app.services.invoice_service import (
    build_bill_html,
    collect_book_attachments,
    recipient_for,
    send_purchase_email,
)
from conftest import FakeEmailService

ITEMS = [
    {"bookId": 1, "qty": 2, "price": 150, "title": "Godaan"},
    {"bookId": 2, "qty": 1, "price": 99.5, "title": "<Gitanjali>"},
]


def test_bill_lists_lines_and_recomputed_total():
    bill = build_bill_html(ITEMS, "12 MG Road", now=datetime(2026, 3, 1, 10, 30, 0))

    assert "Date: 01/03/2026, 10:30:00" in bill
    assert "<td>Godaan</td><td>2</td><td>₹300</td>" in bill
    assert "&lt;Gitanjali&gt;" in bill
    assert "Total: ₹399.50" in bill


def test_attachments_skip_missing_pdfs(tmp_path):
    (tmp_path / "1.pdf").write_bytes(b"%PDF-1.4 godaan")

    attachments = collect_book_attachments(ITEMS, str(tmp_path))

    assert attachments == [("Godaan.pdf", b"%PDF-1.4 godaan", "application/pdf")]


def test_recipient_falls_back_to_mobile():
    assert recipient_for({"email": "a@example.com", "mobile": "1"}) == "a@example.com"
    assert recipient_for({"mobile": "9999999999"}) == "9999999999@example.com"


@pytest.mark.anyio
async def test_send_purchase_email_attaches_bill(tmp_path):
    (tmp_path / "2.pdf").write_bytes(b"%PDF")
    email = FakeEmailService()

    await send_purchase_email(email, {"_id": "u1", "mobile": "9999999999"}, ITEMS, "Addr", str(tmp_path))

    sent = email.sent[0]
    assert sent["to"] == "9999999999@example.com"
    names = [name for name, _, _ in sent["attachments"]]
    assert names == ["<Gitanjali>.pdf", "Bill.html"]


@pytest.mark.anyio
async def test_send_purchase_email_failure(tmp_path):
    with pytest.raises(DeliveryError):
        await send_purchase_email(FakeEmailService(succeed=False), {"_id": "u1"}, ITEMS, "Addr", str(tmp_path))
