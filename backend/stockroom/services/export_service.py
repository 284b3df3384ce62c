# Overview: Service-layer operations for tabular exports (CSV and Excel workbooks).

"""
Export Service

Each export is a list of column headers plus row dicts keyed by those
headers. The same rows render as CSV (default) or as a single-sheet
.xlsx workbook, which is what the back office opens in Excel.
"""

from __future__ import annotations

import csv
import io

from openpyxl import Workbook

from ..models import Product, StockMovement, Invoice, PurchaseOrder
from stockroom.time_utils import to_utc_z, to_iso_date

EXPORT_FORMATS = {
    "csv": "text/csv",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class ExportFormatError(ValueError):
    pass


def _cents(value: int | None) -> str:
    if value is None:
        return ""
    return f"{value / 100:.2f}"


PRODUCT_COLUMNS = [
    "id", "name", "category", "unit", "quantity_in_stock", "threshold",
    "unit_price", "vendor_name", "expiration_date", "low_stock",
]


def product_rows(products: list[Product]) -> list[dict]:
    return [
        {
            "id": p.id,
            "name": p.name,
            "category": p.category,
            "unit": p.unit,
            "quantity_in_stock": p.quantity_in_stock,
            "threshold": p.threshold,
            "unit_price": _cents(p.unit_price_cents),
            "vendor_name": p.vendor_name or "",
            "expiration_date": to_iso_date(p.expiration_date) or "",
            "low_stock": "yes" if p.is_low_stock else "no",
        }
        for p in products
    ]


MOVEMENT_COLUMNS = [
    "date", "product", "movement_type", "quantity_before", "quantity_change",
    "quantity_after", "reason", "user",
]


def movement_rows(movements: list[StockMovement]) -> list[dict]:
    return [
        {
            "date": to_utc_z(m.created_at),
            "product": m.product.name if m.product else "",
            "movement_type": m.movement_type,
            "quantity_before": m.quantity_before,
            "quantity_change": m.quantity_change,
            "quantity_after": m.quantity_after,
            "reason": m.reason or "",
            "user": m.user.email if m.user else "",
        }
        for m in movements
    ]


INVOICE_COLUMNS = [
    "invoice_number", "date", "customer_name", "phone_number", "items",
    "subtotal", "shipping", "tax", "total",
]


def invoice_rows(invoices: list[Invoice]) -> list[dict]:
    return [
        {
            "invoice_number": inv.invoice_number,
            "date": to_utc_z(inv.created_at),
            "customer_name": inv.customer_name,
            "phone_number": inv.phone_number or "",
            "items": len(inv.items),
            "subtotal": _cents(inv.subtotal_cents),
            "shipping": _cents(inv.shipping_cents),
            "tax": _cents(inv.tax_cents),
            "total": _cents(inv.total_cents),
        }
        for inv in invoices
    ]


PURCHASE_ORDER_COLUMNS = [
    "order_number", "supplier", "order_date", "expected_delivery",
    "delivery_status", "total",
]


def purchase_order_rows(orders: list[PurchaseOrder]) -> list[dict]:
    return [
        {
            "order_number": po.order_number,
            "supplier": po.supplier_name,
            "order_date": to_iso_date(po.order_date) or "",
            "expected_delivery": to_iso_date(po.expected_delivery) or "",
            "delivery_status": po.delivery_status,
            "total": _cents(po.total_cents),
        }
        for po in orders
    ]


def render_csv(columns: list[str], rows: list[dict]) -> bytes:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue().encode("utf-8")


def render_xlsx(columns: list[str], rows: list[dict], sheet_title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    # Excel limits sheet titles to 31 characters
    ws.title = sheet_title[:31]
    ws.append(columns)
    for row in rows:
        ws.append([row.get(col, "") for col in columns])

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def render(fmt: str, columns: list[str], rows: list[dict], *, sheet_title: str) -> tuple[bytes, str]:
    """Returns (body, mimetype). Raises ExportFormatError for unknown formats."""
    fmt = (fmt or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ExportFormatError(f"format must be one of: {', '.join(EXPORT_FORMATS)}")

    if fmt == "xlsx":
        body = render_xlsx(columns, rows, sheet_title)
    else:
        body = render_csv(columns, rows)
    return body, EXPORT_FORMATS[fmt]
