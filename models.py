"""
Data models for POS Reports
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

STATUS_ACTIVE = "active"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_ACTIVE, STATUS_CANCELLED)

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_TRANSFER = "transfer"
PAYMENT_METHODS = (PAYMENT_CASH, PAYMENT_CARD, PAYMENT_TRANSFER)


@dataclass(frozen=True)
class SaleItem:
    """Line item of a sale"""
    code: str  # product code
    quantity: float
    name: str = ""
    price: float = 0.0  # unit sale price


@dataclass(frozen=True)
class Sale:
    """Single sale ticket"""
    id: str
    date: str  # YYYY-MM-DD or ISO datetime
    status: str
    total: float
    payment_method: str
    items: Tuple[SaleItem, ...] = ()
    commission_amount: Optional[float] = None  # staff commission, if any
    staff: str = ""
    customer: str = ""


@dataclass(frozen=True)
class Expense:
    """Operating expense"""
    id: str
    date: str
    status: str
    amount: float
    description: str = ""
    category: str = ""


@dataclass(frozen=True)
class CreditPayment:
    """Installment paid against a credit"""
    id: str
    date: str
    status: str
    amount: float


@dataclass(frozen=True)
class Credit:
    """Sale on credit with its payments"""
    id: str
    due_date: str
    total_amount: float
    payments: Tuple[CreditPayment, ...] = ()
    customer: str = ""


@dataclass(frozen=True)
class Product:
    """Catalog product; code is unique"""
    code: str
    cost_price: float
    name: str = ""
    price: float = 0.0
    stock: float = 0


@dataclass
class Dataset:
    """Everything the reports are computed from"""
    sales: List[Sale] = field(default_factory=list)
    expenses: List[Expense] = field(default_factory=list)
    credits: List[Credit] = field(default_factory=list)
    products: List[Product] = field(default_factory=list)
    petty_cash_balance: float = 0.0
    version: int = 1
