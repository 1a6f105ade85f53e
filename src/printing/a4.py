# A4 print channel: a self-contained HTML page that prints itself in the browser
import html
import os
import tempfile
import webbrowser
from pathlib import Path
from typing import Callable, Optional

from sales.receipt import ReceiptDocument
from utils.logger import get_logger

_logger = get_logger(__name__)

# the only external resource, text falls back to the system stack when offline
WEB_FONT_URL = "https://fonts.googleapis.com/css2?family=Inter:wght@400;500;700&display=swap"

_STYLE = """
@import url('%(font)s');
@page { size: A4; margin: 1.5cm; }
body { font-family: 'Inter', 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
       margin: 0; padding: 0; color: #333; line-height: 1.5; }
.header { text-align: center; margin-bottom: 1.5rem; }
.company-name { font-size: 28px; font-weight: 700; color: #1e40af; }
.document-title { font-size: 18px; color: #4b5563; }
.date { font-size: 13px; color: #6b7280; border-top: 1px solid #e5e7eb;
        border-bottom: 1px solid #e5e7eb; padding: 6px 0; margin-top: 8px; }
.order-info { display: grid; grid-template-columns: 1fr 1fr; gap: 1rem; margin-bottom: 1.5rem; }
.info-card { background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 8px; padding: 12px; }
.info-card h3 { font-size: 14px; color: #64748b; margin: 0 0 6px 0; }
.info-card p { font-size: 15px; font-weight: 500; color: #1e293b; margin: 0; }
.customer { background: #eff6ff; border-radius: 8px; padding: 12px; margin-bottom: 1.5rem; }
.customer h3 { color: #1d4ed8; font-size: 15px; margin: 0 0 8px 0; }
.customer dl { display: grid; grid-template-columns: 1fr 1fr; gap: 6px 1rem; margin: 0; }
.customer dt { font-size: 12px; color: #6b7280; }
.customer dd { margin: 0; font-weight: 500; }
table { width: 100%%; border-collapse: collapse; margin: 1.5rem 0; }
thead { background: #1e40af; color: white; }
th { padding: 12px 15px; text-align: left; font-weight: 600; }
td { padding: 10px 15px; border-bottom: 1px solid #e2e8f0; vertical-align: top; }
tr:nth-child(even) { background: #f8fafc; }
.product-note { font-size: 12px; color: #64748b; font-style: italic; margin-top: 4px; }
.text-right { text-align: right; }
.discount { color: #dc2626; font-weight: 500; }
.summary { background: #f8fafc; border: 1px solid #e2e8f0; border-radius: 8px; padding: 1.5rem; }
.summary-row { display: flex; justify-content: space-between; margin-bottom: 8px; }
.summary-total { font-size: 20px; font-weight: 700; color: #1e40af;
                 border-top: 2px solid #e2e8f0; padding-top: 8px; }
.footer { text-align: center; font-size: 13px; color: #6b7280; margin-top: 2rem;
          padding-top: 1rem; border-top: 1px solid #e5e7eb; }
"""

# print on load, close the tab once the dialog is dismissed
_SCRIPT = """
window.addEventListener('afterprint', function () { window.close(); });
window.addEventListener('load', function () { setTimeout(function () { window.print(); }, 250); });
"""


def _e(value) -> str:
    return html.escape("" if value is None else str(value))


def render_a4_html(doc: ReceiptDocument) -> str:
    """Full HTML document for the receipt, styles inlined."""
    rows = []
    for line in doc.lines:
        note = (
            f'<div class="product-note">Note: {_e(line.comment)}</div>'
            if line.comment
            else ""
        )
        discount = (
            f'<span class="discount">-{_e(line.discount_display)}</span>'
            if line.discount_display
            else "-"
        )
        rows.append(
            "<tr>"
            f'<td><div class="product-name">{_e(line.product_name)}</div>{note}</td>'
            f'<td class="text-right">{line.quantity}</td>'
            f'<td class="text-right">{_e(doc.money(line.unit_price))}</td>'
            f'<td class="text-right">{discount}</td>'
            f'<td class="text-right">{_e(doc.money(line.line_total))}</td>'
            "</tr>"
        )

    customer_html = ""
    if doc.customer is not None:
        fields = [("Name", doc.customer.name), ("Code", doc.customer.code or "N/A")]
        if doc.customer.phone:
            fields.append(("Phone", doc.customer.phone))
        if doc.customer.email:
            fields.append(("Email", doc.customer.email))
        entries = "".join(f"<div><dt>{k}</dt><dd>{_e(v)}</dd></div>" for k, v in fields)
        customer_html = (
            '<div class="customer"><h3>Customer Information</h3>'
            f"<dl>{entries}</dl></div>"
        )

    order_discount_html = ""
    if doc.order_discount_display:
        order_discount_html = (
            '<div class="summary-row discount"><span>Order Discount:</span>'
            f"<span>-{_e(doc.order_discount_display)}</span></div>"
        )

    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Order Ticket - {_e(doc.order_number)}</title>
<style>{_STYLE % {"font": WEB_FONT_URL}}</style>
</head>
<body>
<div class="header">
  <div class="company-name">{_e(doc.shop_name)}</div>
  <div class="document-title">Order Receipt</div>
  <div class="date">{_e(doc.timestamp_display)}</div>
</div>
<div class="order-info">
  <div class="info-card"><h3>Order #</h3><p>{_e(doc.order_number)}</p></div>
  <div class="info-card"><h3>Cashier</h3><p>{_e(doc.cashier_name or "-")}</p></div>
</div>
{customer_html}
<table>
  <thead><tr><th>Product</th><th class="text-right">Qty</th><th class="text-right">Price</th>
  <th class="text-right">Discount</th><th class="text-right">Total</th></tr></thead>
  <tbody>{"".join(rows)}</tbody>
</table>
<div class="summary">
  <div class="summary-row"><span>Subtotal:</span><span>{_e(doc.money(doc.subtotal))}</span></div>
  {order_discount_html}
  <div class="summary-row summary-total"><span>TOTAL:</span><span>{_e(doc.money(doc.grand_total))}</span></div>
</div>
<div class="footer"><div>Thank you for your purchase!</div><div>{_e(doc.shop_name)}</div></div>
<script>{_SCRIPT}</script>
</body>
</html>
"""


def print_a4(
    doc: ReceiptDocument,
    opener: Callable[[str], bool] = lambda url: webbrowser.open_new_tab(url),
    directory: Optional[str] = None,
) -> bool:
    """
    Write the document to a temporary file and open it in a new browser tab.

    Returns False when no browser could be opened (the popup-blocked case),
    so the caller can warn instead of crashing.
    """
    try:
        fd, path = tempfile.mkstemp(
            prefix=f"receipt-{doc.order_number}-", suffix=".html", dir=directory
        )
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(render_a4_html(doc))
    except OSError as exc:
        _logger.error(f"Could not write A4 receipt for {doc.order_number}: {exc}")
        return False

    try:
        opened = bool(opener(Path(path).as_uri()))
    except webbrowser.Error as exc:
        _logger.warning(f"Browser unavailable for A4 print: {exc}")
        opened = False

    if not opened:
        _logger.warning(f"A4 print window for {doc.order_number} was not opened")
    else:
        _logger.info(f"A4 receipt for {doc.order_number} sent to browser")
    return opened
