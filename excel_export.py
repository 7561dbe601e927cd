"""
Excel export functionality for POS Reports
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from models import Dataset
from computations import (
    calculate_inventory_summary,
    calculate_monthly_breakdown,
    compute_dataset_report,
    credit_paid_amount,
    filter_by_date_range,
    filter_dataset,
    group_sales_by_date,
    product_stock_value,
)
from utils import format_month

logger = logging.getLogger(__name__)

MONEY_FORMAT = "#,##0.00"
PERCENT_FORMAT = "0.00"

SUMMARY_ROWS = [
    ("Ingresos Totales", "total_sales"),
    ("Ventas en Efectivo", "cash_sales"),
    ("Ventas con Tarjeta", "card_sales"),
    ("Ventas por Transferencia", "transfer_sales"),
    ("Costo de Ventas", "cost_of_goods_sold"),
    ("Ganancia Bruta", "gross_profit"),
    ("Margen Bruto %", "gross_profit_margin"),
    ("Gastos Totales", "total_expenses"),
    ("Comisiones", "total_commissions"),
    ("Ganancia Neta", "net_profit"),
    ("Margen Neto %", "net_profit_margin"),
    ("Créditos Otorgados", "total_amount"),
    ("Créditos Cobrados", "total_paid"),
    ("Créditos Pendientes", "pending_amount"),
    ("Dinero en Caja", "cash_in_register"),
]


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _number_format(ws, first_col, last_col, fmt=MONEY_FORMAT):
    for r in range(2, ws.max_row + 1):
        for c in range(first_col, last_col + 1):
            ws.cell(r, c).number_format = fmt


def export_excel(
    dataset: Dataset,
    filepath: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    monthly_rows: Optional[int] = None
) -> None:
    """
    Export the profit report to an Excel file with sheets:
    - Summary (all metrics)
    - Monthly breakdown
    - Daily sales
    - Credits
    - Inventory
    """
    data = filter_dataset(dataset, start, end)
    report = compute_dataset_report(data)

    wb = Workbook()
    # remove default sheet
    wb.remove(wb.active)

    ws = wb.create_sheet("Summary")
    ws.append(["Concepto", "Valor"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    period = f"{start.isoformat() if start else '(todas)'} a {end.isoformat() if end else '(todas)'}"
    for label, key in SUMMARY_ROWS:
        ws.append([label, report[key]])
        ws.cell(ws.max_row, 2).number_format = PERCENT_FORMAT if key.endswith("_margin") else MONEY_FORMAT
    ws.append([])
    ws.append(["Periodo", period])
    ws.cell(ws.max_row, 1).font = Font(bold=True)
    _autosize_columns(ws)

    ws = wb.create_sheet("Monthly")
    ws.append(["Mes", "Ingresos", "Costo de Ventas", "Ganancia Bruta", "Margen Bruto %",
               "Gastos", "Ganancia Neta", "Margen Neto %"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    months = calculate_monthly_breakdown(data.sales, data.expenses, report["cost_of_goods_sold"], monthly_rows)
    for key, m in months:
        ws.append([format_month(key), m["sales"], m["cogs"], m["gross_profit"], m["gross_profit_margin"],
                   m["expenses"], m["net_profit"], m["net_profit_margin"]])
    _number_format(ws, 2, 8)
    _number_format(ws, 5, 5, PERCENT_FORMAT)
    _number_format(ws, 8, 8, PERCENT_FORMAT)
    _autosize_columns(ws)

    ws = wb.create_sheet("Daily Sales")
    ws.append(["Fecha", "Venta", "Estado", "Pago", "Total"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    # the day list shows cancelled sales too; only their totals are left out
    for day, sales, total in group_sales_by_date(filter_by_date_range(dataset.sales, start, end)):
        ws.append([day, "", "", "", total])
        day_row = ws.max_row
        for c in range(1, 6):
            ws.cell(day_row, c).font = Font(bold=True)
            ws.cell(day_row, c).fill = PatternFill("solid", fgColor="D9E1F2")
        for s in sales:
            ws.append(["", s.id, s.status, s.payment_method, s.total])
    _number_format(ws, 5, 5)
    _autosize_columns(ws)

    ws = wb.create_sheet("Credits")
    ws.append(["Crédito", "Cliente", "Vencimiento", "Total", "Pagado", "Pendiente"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for c in sorted(data.credits, key=lambda c: c.due_date):
        paid = credit_paid_amount(c)
        ws.append([c.id, c.customer, c.due_date, c.total_amount, paid, c.total_amount - paid])
    if ws.max_row >= 2:
        last = ws.max_row
        ws.append(["TOTALES", "", ""] + [f"=SUM({get_column_letter(col)}2:{get_column_letter(col)}{last})"
                                          for col in range(4, 7)])
        ws.cell(ws.max_row, 1).font = Font(bold=True)
    _number_format(ws, 4, 6)
    _autosize_columns(ws)

    ws = wb.create_sheet("Inventory")
    ws.append(["Código", "Producto", "Stock", "Costo", "Precio", "Valor al Costo", "Valor de Venta"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for p in sorted(data.products, key=lambda p: p.code):
        units, cost_value, retail_value = product_stock_value(p)
        ws.append([p.code, p.name, units, p.cost_price, p.price, cost_value, retail_value])
    inv = calculate_inventory_summary(data.products)
    ws.append(["TOTALES", f"{inv['products']} productos", inv["units"], "", "", inv["cost_value"], inv["retail_value"]])
    ws.cell(ws.max_row, 1).font = Font(bold=True)
    _number_format(ws, 4, 7)
    _autosize_columns(ws)

    wb.save(filepath)
    logger.info("exported Excel report to %s", filepath)
