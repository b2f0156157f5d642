"""
app/services/invoice_service.py

Purpose: Purchase invoice email

- Renders the HTML bill for a set of line items
- Attaches the purchased books' PDFs from the uploads directory
- Hands the mail to the email collaborator
"""

import html
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.exceptions import DeliveryError
from app.core.logging import get_logger
from app.services.purchase_service import items_total

logger = get_logger(__name__)


def format_amount(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.2f}"


def build_bill_html(items: List[Dict[str, Any]], address: str, now: Optional[datetime] = None) -> str:
    """
    Renders the bill. The total is recomputed from the items.
    """
    now = now or datetime.now()
    rows = "".join(
        f"<tr><td>{html.escape(str(item['title']))}</td>"
        f"<td>{item['qty']}</td>"
        f"<td>₹{format_amount(item['qty'] * item['price'])}</td></tr>"
        for item in items
    )
    return (
        f"<h2>{html.escape(settings.BRAND_NAME)} Invoice</h2>"
        f"<p>Date: {now.strftime('%d/%m/%Y, %H:%M:%S')}</p>"
        f"<p>Address: {html.escape(address)}</p>"
        '<table border="1" style="width:100%;border-collapse:collapse">'
        f"<tr><th>Title</th><th>Qty</th><th>Price</th></tr>{rows}</table>"
        f"<p><strong>Total: ₹{format_amount(items_total(items))}</strong></p>"
    )


def collect_book_attachments(items: List[Dict[str, Any]], uploads_dir: Optional[str] = None) -> list:
    """
    Reads <bookId>.pdf for each item. Missing files are skipped with a warning.
    """
    base = Path(uploads_dir or settings.UPLOADS_DIR)
    attachments = []
    for item in items:
        path = base / f"{item['bookId']}.pdf"
        if not path.is_file():
            logger.warning(f"PDF missing for book {item['bookId']}")
            continue
        attachments.append((f"{item['title']}.pdf", path.read_bytes(), "application/pdf"))
    return attachments


def recipient_for(user: Dict[str, Any]) -> str:
    return user.get("email") or f"{user.get('mobile')}@example.com"


async def send_purchase_email(
    email_service,
    user: Dict[str, Any],
    items: List[Dict[str, Any]],
    address: str,
    uploads_dir: Optional[str] = None
):
    """
    Emails the bill plus the book PDFs to the user.

    Raises:
        DeliveryError: If the email collaborator reports failure
    """
    attachments = collect_book_attachments(items, uploads_dir)
    bill = build_bill_html(items, address)
    attachments.append(("Bill.html", bill.encode("utf-8"), "text/html"))

    sent = await email_service.send_email(
        recipient_for(user),
        f"{settings.BRAND_NAME}: Your Purchase",
        "Thank you! PDFs + Bill attached.",
        attachments
    )
    if not sent:
        raise DeliveryError("Could not send purchase email")
    logger.info("Purchase email sent", extra={"user_id": str(user["_id"])})
