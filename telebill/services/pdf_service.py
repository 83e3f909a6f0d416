"""PDF rendering and storage for invoices."""

from __future__ import annotations

from html import escape
from pathlib import Path
from string import Template
from typing import TYPE_CHECKING

from telebill.core.config import settings
from telebill.core.money import format_amount

if TYPE_CHECKING:
    from telebill.models.billing_account import BillingAccount
    from telebill.models.invoice import Invoice
    from telebill.models.invoice_item import InvoiceItem

_INVOICE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html>
<head>
<style>
  body { font-family: Helvetica, Arial, sans-serif; font-size: 12px; color: #333; margin: 40px; }
  h1 { font-size: 24px; margin-bottom: 4px; }
  .meta { margin-bottom: 20px; }
  .meta td { padding: 2px 8px 2px 0; }
  table.items { width: 100%; border-collapse: collapse; margin-bottom: 20px; }
  table.items th { text-align: left; border-bottom: 2px solid #333; padding: 6px 8px; }
  table.items td { padding: 6px 8px; border-bottom: 1px solid #ddd; }
  table.items .right { text-align: right; }
  .totals { width: 300px; margin-left: auto; }
  .totals td { padding: 4px 8px; }
  .totals .label { text-align: right; }
  .totals .total-row { font-weight: bold; border-top: 2px solid #333; }
  .status { display: inline-block; padding: 4px 12px; border-radius: 4px; font-weight: bold;
             text-transform: uppercase; font-size: 11px; }
  .status-sent { background: #e8f0fe; color: #1a73e8; }
  .status-paid { background: #e6f4ea; color: #137333; }
  .status-draft { background: #f1f3f4; color: #5f6368; }
  .status-overdue { background: #fce8e6; color: #c5221f; }
</style>
</head>
<body>
<h1>INVOICE</h1>
<span class="status status-${status}">${status}</span>
<table class="meta">
  <tr><td><strong>Invoice #:</strong></td><td>${invoice_number}</td></tr>
  <tr><td><strong>Issued:</strong></td><td>${issued_at}</td></tr>
  <tr><td><strong>Due:</strong></td><td>${due_date}</td></tr>
  <tr><td><strong>Billing Period:</strong></td><td>${billing_period}</td></tr>
</table>
<table class="meta">
  <tr><td><strong>Bill To:</strong></td></tr>
  <tr><td>${account_name}</td></tr>
  <tr><td>${account_email}</td></tr>
</table>
<table class="items">
  <thead>
    <tr>
      <th>Description</th>
      <th class="right">Quantity</th>
      <th class="right">Unit Price</th>
      <th class="right">Amount</th>
    </tr>
  </thead>
  <tbody>
    ${item_rows}
  </tbody>
</table>
<table class="totals">
  <tr><td class="label">Subtotal:</td><td class="right">${subtotal}</td></tr>
  <tr><td class="label">Tax:</td><td class="right">${tax}</td></tr>
  <tr class="total-row"><td class="label">Total:</td><td class="right">${total}</td></tr>
</table>
</body>
</html>
""")

_ITEM_ROW_TEMPLATE = Template(
    '<tr><td>${description}</td><td class="right">${quantity}</td>'
    '<td class="right">${unit_price}</td><td class="right">${amount}</td></tr>'
)


def _format_date(dt: object) -> str:
    """Format a datetime to YYYY-MM-DD, or return empty string if None."""
    if dt is None:
        return ""
    return str(dt)[:10]


class PdfService:
    """Renders invoices to PDF and stores them under the configured storage path."""

    def __init__(self, storage_path: str | None = None, storage_url: str | None = None):
        self.storage_path = Path(storage_path or settings.PDF_STORAGE_PATH)
        self.storage_url = (storage_url or settings.PDF_STORAGE_URL).rstrip("/")

    def render_invoice_html(
        self, invoice: Invoice, items: list[InvoiceItem], account: BillingAccount | None
    ) -> str:
        currency = str(invoice.currency)
        item_rows = "\n    ".join(
            _ITEM_ROW_TEMPLATE.substitute(
                description=escape(str(item.description)),
                quantity=item.quantity,
                unit_price=format_amount(int(item.unit_price), currency),
                amount=format_amount(int(item.total), currency),
            )
            for item in items
        )

        return _INVOICE_TEMPLATE.substitute(
            status=str(invoice.status),
            invoice_number=invoice.invoice_number,
            issued_at=_format_date(invoice.issued_at),
            due_date=_format_date(invoice.due_date),
            billing_period=(
                f"{_format_date(invoice.period_start)} to {_format_date(invoice.period_end)}"
            ),
            account_name=escape(str(account.name or "")) if account else "",
            account_email=escape(str(account.email or "")) if account else "",
            item_rows=item_rows,
            subtotal=format_amount(int(invoice.subtotal), currency),
            tax=format_amount(int(invoice.tax), currency),
            total=format_amount(int(invoice.total), currency),
        )

    def generate_invoice_pdf(
        self, invoice: Invoice, items: list[InvoiceItem], account: BillingAccount | None
    ) -> bytes:
        """Render an invoice to raw PDF bytes."""
        html = self.render_invoice_html(invoice, items, account)

        import weasyprint

        pdf_bytes: bytes = weasyprint.HTML(string=html).write_pdf()
        return pdf_bytes

    def store_invoice_pdf(self, invoice: Invoice, pdf_bytes: bytes) -> str:
        """Write the PDF to storage and return its public URL."""
        filename = f"{invoice.invoice_number}.pdf"
        self.storage_path.mkdir(parents=True, exist_ok=True)
        (self.storage_path / filename).write_bytes(pdf_bytes)
        return f"{self.storage_url}/{filename}"

    def render_and_store(
        self, invoice: Invoice, items: list[InvoiceItem], account: BillingAccount | None
    ) -> str:
        return self.store_invoice_pdf(invoice, self.generate_invoice_pdf(invoice, items, account))
