"""
Utility functions for POS Reports
"""
from __future__ import annotations
import os
from datetime import date, datetime

MONTH_NAMES_ES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)
WEEKDAY_NAMES_ES = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")


def parse_date(s: str) -> date:
    """Parse YYYY-MM-DD date or ISO datetime string"""
    s = s.strip()
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        # 2024-03-05T14:22:00Z style timestamps
        return datetime.fromisoformat(s.replace("Z", "+00:00")).date()


def month_key(s: str) -> str:
    """YYYY-MM bucket for a date string"""
    d = parse_date(s)
    return f"{d.year:04d}-{d.month:02d}"


def format_currency(amount: float, symbol: str = "$") -> str:
    """Format amount like -$1,234.50"""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def format_month(key: str) -> str:
    """'2024-03' -> 'marzo 2024'"""
    year, month = key.split("-")
    return f"{MONTH_NAMES_ES[int(month) - 1]} {int(year)}"


def format_date(s: str) -> str:
    """Long Spanish date, e.g. 'martes, 5 de marzo de 2024'"""
    try:
        d = parse_date(s)
    except ValueError:
        return "Fecha inválida"
    return f"{WEEKDAY_NAMES_ES[d.weekday()]}, {d.day} de {MONTH_NAMES_ES[d.month - 1]} de {d.year}"


def app_dir() -> str:
    """
    Get application data directory: ~/Library/Application Support/POSReports
    Creates directory if it doesn't exist.
    """
    base = os.path.expanduser("~/Library/Application Support")
    path = os.path.join(base, "POSReports")
    os.makedirs(path, exist_ok=True)
    return path
