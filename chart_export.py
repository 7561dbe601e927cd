"""
Profit charts for POS Reports
"""
from __future__ import annotations
import logging
from typing import Optional, Sequence

from matplotlib.figure import Figure

from models import Expense, Sale
from computations import calculate_daily_series, calculate_monthly_breakdown
from utils import format_month

logger = logging.getLogger(__name__)


def build_profit_figure(
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
    cost_of_goods_sold: float = 0.0,
    figure: Optional[Figure] = None
) -> Figure:
    """
    Two panels: daily sales vs expenses, and net profit per month.
    Pass an existing figure to redraw in place (e.g. one embedded in Tk).
    """
    fig = figure if figure is not None else Figure(figsize=(10, 6), dpi=100)
    fig.clear()
    ax_daily = fig.add_subplot(2, 1, 1)
    ax_monthly = fig.add_subplot(2, 1, 2)

    series = calculate_daily_series(sales, expenses)
    if not series:
        ax_daily.set_title("Sin datos en el periodo")
    else:
        days = [d for d, _, _ in series]
        xs = range(len(days))
        ax_daily.plot(xs, [s for _, s, _ in series], marker="o", color="#16a34a", label="Ventas")
        ax_daily.plot(xs, [e for _, _, e in series], marker="o", color="#dc2626", label="Gastos")
        ax_daily.set_xticks(list(xs))
        ax_daily.set_xticklabels(days, rotation=45, ha="right", fontsize=7)
        ax_daily.set_title("Ventas y gastos por día")
        ax_daily.legend()

    months = list(reversed(calculate_monthly_breakdown(sales, expenses, cost_of_goods_sold)))
    if months:
        labels = [format_month(k) for k, _ in months]
        values = [m["net_profit"] for _, m in months]
        colors = ["#16a34a" if v >= 0 else "#dc2626" for v in values]
        ax_monthly.bar(labels, values, color=colors)
        ax_monthly.axhline(0, color="#6b7280", linewidth=0.8)
        ax_monthly.set_title("Ganancia neta por mes")

    fig.tight_layout()
    return fig


def export_profit_chart(
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
    filepath: str,
    cost_of_goods_sold: float = 0.0
) -> None:
    """Render the profit figure to an image file (format from the extension)"""
    fig = build_profit_figure(sales, expenses, cost_of_goods_sold)
    fig.savefig(filepath)
    logger.info("exported profit chart to %s", filepath)
