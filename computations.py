"""
Business logic and computations for POS Reports
"""
from __future__ import annotations
import logging
from datetime import date
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from models import (
    Credit, Dataset, Expense, Product, Sale,
    PAYMENT_CARD, PAYMENT_CASH, PAYMENT_TRANSFER, STATUS_ACTIVE, STATUS_CANCELLED,
)
from utils import month_key, parse_date

logger = logging.getLogger(__name__)


def calculate_sales_metrics(sales: Sequence[Sale]) -> Dict[str, float]:
    """Totals per payment method and commissions, ignoring cancelled sales"""
    out = {
        "total_sales": 0.0,
        "cash_sales": 0.0,
        "card_sales": 0.0,
        "transfer_sales": 0.0,
        "total_commissions": 0.0,
    }
    for s in sales:
        if s.status == STATUS_CANCELLED:
            continue
        out["total_sales"] += s.total
        if s.payment_method == PAYMENT_CASH:
            out["cash_sales"] += s.total
        elif s.payment_method == PAYMENT_CARD:
            out["card_sales"] += s.total
        elif s.payment_method == PAYMENT_TRANSFER:
            out["transfer_sales"] += s.total
        out["total_commissions"] += s.commission_amount or 0.0
    return out


def calculate_expenses_total(expenses: Sequence[Expense]) -> float:
    """Sum of non-cancelled expenses"""
    return sum((e.amount for e in expenses if e.status != STATUS_CANCELLED), 0.0)


def credit_paid_amount(credit: Credit) -> float:
    """Amount paid so far; only active payments count"""
    return sum((p.amount for p in credit.payments if p.status == STATUS_ACTIVE), 0.0)


def calculate_credits_metrics(credits: Sequence[Credit]) -> Dict[str, float]:
    """Total lent on credit, total collected and what is still pending"""
    out = {"total_amount": 0.0, "total_paid": 0.0, "pending_amount": 0.0}
    for c in credits:
        paid = credit_paid_amount(c)
        out["total_amount"] += c.total_amount
        out["total_paid"] += paid
        out["pending_amount"] += c.total_amount - paid
    return out


def build_cost_map(products: Sequence[Product]) -> Dict[str, float]:
    """Build mapping of product code to cost price"""
    out: Dict[str, float] = {}
    for p in products:
        # first product wins, like a lookup by code would
        out.setdefault(p.code, float(p.cost_price))
    return out


def calculate_cost_of_goods_sold(sales: Sequence[Sale], products: Sequence[Product]) -> float:
    """
    Cost of the items sold in non-cancelled sales.
    Items whose code is not in the catalog cost nothing.
    """
    cost = build_cost_map(products)
    total = 0.0
    for s in sales:
        if s.status == STATUS_CANCELLED:
            continue
        for it in s.items:
            unit_cost = cost.get(it.code)
            if unit_cost is None:
                continue
            total += unit_cost * it.quantity
    return total


def _margin(profit: float, total_sales: float) -> float:
    if not total_sales:
        return 0.0
    return profit / total_sales * 100


def calculate_profit_metrics(
    total_sales: float,
    cost_of_goods_sold: float,
    total_expenses: float,
    total_commissions: float
) -> Dict[str, float]:
    """Gross/net profit and their margins in percent (0 when there are no sales)"""
    gross = total_sales - cost_of_goods_sold
    net = gross - total_expenses - total_commissions
    return {
        "gross_profit": gross,
        "net_profit": net,
        "gross_profit_margin": _margin(gross, total_sales),
        "net_profit_margin": _margin(net, total_sales),
    }


def calculate_cash_in_register(
    cash_sales: float,
    total_expenses: float,
    total_commissions: float,
    petty_cash_balance: float
) -> float:
    """Cash expected in the drawer"""
    return cash_sales - total_expenses - total_commissions + petty_cash_balance


@lru_cache(maxsize=16)
def _compute_report_cached(
    sales: Tuple[Sale, ...],
    expenses: Tuple[Expense, ...],
    credits: Tuple[Credit, ...],
    products: Tuple[Product, ...],
    petty_cash_balance: float
) -> Dict[str, float]:
    return _compute_report(sales, expenses, credits, products, petty_cash_balance)


def _compute_report(sales, expenses, credits, products, petty_cash_balance) -> Dict[str, float]:
    sales_metrics = calculate_sales_metrics(sales)
    total_expenses = calculate_expenses_total(expenses)
    credits_metrics = calculate_credits_metrics(credits)
    cogs = calculate_cost_of_goods_sold(sales, products)
    profit = calculate_profit_metrics(
        sales_metrics["total_sales"],
        cogs,
        total_expenses,
        sales_metrics["total_commissions"],
    )
    cash = calculate_cash_in_register(
        sales_metrics["cash_sales"],
        total_expenses,
        sales_metrics["total_commissions"],
        petty_cash_balance,
    )

    report = dict(sales_metrics)
    report["total_expenses"] = total_expenses
    report.update(credits_metrics)
    report["cost_of_goods_sold"] = cogs
    report.update(profit)
    report["cash_in_register"] = cash
    return report


def compute_report(
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
    credits: Sequence[Credit],
    products: Sequence[Product],
    petty_cash_balance: float = 0.0
) -> Dict[str, float]:
    """
    Compute the full metrics record for the given records.
    Returns a flat dict: total_sales, cash_sales, card_sales, transfer_sales,
    total_commissions, total_expenses, total_amount, total_paid, pending_amount,
    cost_of_goods_sold, gross_profit, net_profit, gross_profit_margin,
    net_profit_margin, cash_in_register.

    Results are memoized on the inputs; callers get a fresh copy each time.
    """
    args = (tuple(sales), tuple(expenses), tuple(credits), tuple(products), float(petty_cash_balance))
    try:
        hash(args)
    except TypeError:
        # records built with list fields are not hashable
        logger.debug("unhashable records, computing report without cache")
        return dict(_compute_report(*args))

    hits = _compute_report_cached.cache_info().hits
    report = _compute_report_cached(*args)
    if _compute_report_cached.cache_info().hits > hits:
        logger.debug("report cache hit")
    return dict(report)


def clear_report_cache() -> None:
    """Drop memoized reports"""
    _compute_report_cached.cache_clear()


def compute_dataset_report(dataset: Dataset) -> Dict[str, float]:
    """compute_report over a whole Dataset"""
    return compute_report(
        dataset.sales,
        dataset.expenses,
        dataset.credits,
        dataset.products,
        dataset.petty_cash_balance,
    )


def filter_by_date_range(
    records: Sequence,
    start: Optional[date],
    end: Optional[date],
    date_attr: str = "date",
    exclude_cancelled: bool = False
) -> list:
    """Filter records by inclusive date range; either bound may be None"""
    out = []
    for r in records:
        if exclude_cancelled and getattr(r, "status", None) == STATUS_CANCELLED:
            continue
        d = parse_date(getattr(r, date_attr))
        if start and d < start:
            continue
        if end and d > end:
            continue
        out.append(r)
    return out


def filter_dataset(dataset: Dataset, start: Optional[date], end: Optional[date]) -> Dataset:
    """
    Restrict a dataset to a reporting window.
    Sales and expenses are filtered by date with cancelled ones dropped,
    credits by due date. Products and petty cash are kept as they are.
    """
    return Dataset(
        sales=filter_by_date_range(dataset.sales, start, end, exclude_cancelled=True),
        expenses=filter_by_date_range(dataset.expenses, start, end, exclude_cancelled=True),
        credits=filter_by_date_range(dataset.credits, start, end, date_attr="due_date"),
        products=list(dataset.products),
        petty_cash_balance=dataset.petty_cash_balance,
        version=dataset.version,
    )


def calculate_monthly_breakdown(
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
    cost_of_goods_sold: float,
    limit: Optional[int] = None
) -> List[Tuple[str, Dict[str, float]]]:
    """
    Per-month sales, expenses, COGS and profit, newest month first.
    COGS is spread over months in proportion to each month's sales.
    Returns list of (YYYY-MM, {sales, expenses, cogs, gross_profit, net_profit,
    gross_profit_margin, net_profit_margin}).
    """
    months: Dict[str, Dict[str, float]] = {}

    def bucket(key: str) -> Dict[str, float]:
        return months.setdefault(key, {"sales": 0.0, "expenses": 0.0, "cogs": 0.0,
                                       "gross_profit": 0.0, "net_profit": 0.0})

    for s in sales:
        if s.status == STATUS_CANCELLED:
            continue
        bucket(month_key(s.date))["sales"] += s.total
    for e in expenses:
        if e.status == STATUS_CANCELLED:
            continue
        bucket(month_key(e.date))["expenses"] += e.amount

    total_sales = sum(m["sales"] for m in months.values())
    for m in months.values():
        ratio = m["sales"] / total_sales if total_sales else 0.0
        m["cogs"] = cost_of_goods_sold * ratio
        m["gross_profit"] = m["sales"] - m["cogs"]
        m["net_profit"] = m["gross_profit"] - m["expenses"]
        m["gross_profit_margin"] = _margin(m["gross_profit"], m["sales"])
        m["net_profit_margin"] = _margin(m["net_profit"], m["sales"])

    rows = sorted(months.items(), key=lambda kv: kv[0], reverse=True)
    if limit is not None:
        rows = rows[:limit]
    return rows


def group_sales_by_date(sales: Sequence[Sale]) -> List[Tuple[str, List[Sale], float]]:
    """
    Group sales per calendar day, newest first.
    Returns list of (YYYY-MM-DD, sales of that day, total of non-cancelled sales).
    """
    groups: Dict[str, List[Sale]] = {}
    for s in sales:
        groups.setdefault(parse_date(s.date).isoformat(), []).append(s)

    out = []
    for day in sorted(groups, reverse=True):
        day_sales = groups[day]
        total = sum((s.total for s in day_sales if s.status != STATUS_CANCELLED), 0.0)
        out.append((day, day_sales, total))
    return out


def calculate_daily_series(
    sales: Sequence[Sale],
    expenses: Sequence[Expense]
) -> List[Tuple[str, float, float]]:
    """(day, sales, expenses) per day in ascending order, cancelled records skipped"""
    days: Dict[str, List[float]] = {}
    for s in sales:
        if s.status == STATUS_CANCELLED:
            continue
        days.setdefault(parse_date(s.date).isoformat(), [0.0, 0.0])[0] += s.total
    for e in expenses:
        if e.status == STATUS_CANCELLED:
            continue
        days.setdefault(parse_date(e.date).isoformat(), [0.0, 0.0])[1] += e.amount
    return [(d, v[0], v[1]) for d, v in sorted(days.items())]


def product_stock_value(product: Product) -> Tuple[float, float, float]:
    """(units, value at cost, value at sale price); negative stock counts as none"""
    units = max(0.0, float(product.stock))
    return units, product.cost_price * units, product.price * units


def calculate_inventory_summary(products: Sequence[Product]) -> Dict[str, float]:
    """Stock value at cost and at sale price"""
    out = {"products": len(products), "units": 0.0, "cost_value": 0.0, "retail_value": 0.0}
    for p in products:
        units, cost_value, retail_value = product_stock_value(p)
        out["units"] += units
        out["cost_value"] += cost_value
        out["retail_value"] += retail_value
    return out
