"""
CSV export and import functionality for POS Reports
"""
from __future__ import annotations
import csv
import logging
from typing import List

from config import dict_to_expense, dict_to_sale
from models import Expense, Sale

logger = logging.getLogger(__name__)

SALE_COLUMNS = ['id', 'date', 'status', 'total', 'payment_method', 'commission_amount', 'staff', 'customer', 'items']
EXPENSE_COLUMNS = ['id', 'date', 'status', 'amount', 'category', 'description']


def _items_to_str(sale: Sale) -> str:
    return ';'.join([f"{it.code}:{it.quantity:g}" for it in sale.items])


def _str_to_items(s: str) -> List[dict]:
    items = []
    for pair in (s or '').split(';'):
        if ':' in pair:
            code, qty = pair.rsplit(':', 1)
            items.append({'code': code.strip(), 'quantity': qty.strip()})
    return items


def export_sales_to_csv(sales: List[Sale], filepath: str) -> None:
    """
    Export sales list to CSV file
    Line items go in one column as code:qty;code:qty
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(SALE_COLUMNS)
        for s in sales:
            writer.writerow([
                s.id,
                s.date,
                s.status,
                s.total,
                s.payment_method,
                '' if s.commission_amount is None else s.commission_amount,
                s.staff,
                s.customer,
                _items_to_str(s),
            ])
    logger.info("exported %d sales to %s", len(sales), filepath)


def import_sales_from_csv(filepath: str) -> List[Sale]:
    """
    Import sales from CSV file
    Raises ValueError on a row that does not describe a valid sale
    """
    sales = []
    with open(filepath, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for row in reader:
            raw = dict(row)
            raw['items'] = _str_to_items(row.get('items', ''))
            if not raw.get('commission_amount'):
                raw['commission_amount'] = None
            try:
                sales.append(dict_to_sale(raw))
            except ValueError as ex:
                raise ValueError(f"{filepath} line {reader.line_num}: {ex}") from ex
    return sales


def export_expenses_to_csv(expenses: List[Expense], filepath: str) -> None:
    """Export expenses list to CSV file"""
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        writer = csv.writer(f)
        writer.writerow(EXPENSE_COLUMNS)
        for e in expenses:
            writer.writerow([e.id, e.date, e.status, e.amount, e.category, e.description])
    logger.info("exported %d expenses to %s", len(expenses), filepath)


def import_expenses_from_csv(filepath: str) -> List[Expense]:
    """Import expenses list from CSV file"""
    expenses = []
    with open(filepath, 'r', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        for row in reader:
            try:
                expenses.append(dict_to_expense(dict(row)))
            except ValueError as ex:
                raise ValueError(f"{filepath} line {reader.line_num}: {ex}") from ex
    return expenses
