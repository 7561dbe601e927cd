"""
This module contains pytest fixtures shared by the report tests.
"""
import sys
from pathlib import Path

import matplotlib
import pytest

# Add the project's root directory to the system path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

matplotlib.use("Agg")

from computations import clear_report_cache
from models import Credit, CreditPayment, Dataset, Expense, Product, Sale, SaleItem


@pytest.fixture(autouse=True)
def fresh_report_cache():
    """Every test starts with an empty report cache."""
    clear_report_cache()
    yield
    clear_report_cache()


@pytest.fixture
def products():
    return [
        Product(code="A1", cost_price=2.0, name="Café", price=5.0, stock=10),
        Product(code="B2", cost_price=10.0, name="Pastel", price=25.0, stock=3),
    ]


@pytest.fixture
def sales():
    return [
        Sale(id="s1", date="2024-01-15", status="active", total=100.0, payment_method="cash",
             items=(SaleItem(code="A1", quantity=5), SaleItem(code="B2", quantity=2))),
        Sale(id="s2", date="2024-01-20T18:30:00", status="active", total=60.0, payment_method="card",
             items=(SaleItem(code="A1", quantity=3),), commission_amount=6.0, staff="Ana"),
        Sale(id="s3", date="2024-02-02", status="active", total=40.0, payment_method="transfer",
             items=(SaleItem(code="ZZ", quantity=4),)),
        Sale(id="s4", date="2024-02-03", status="cancelled", total=50.0, payment_method="cash",
             items=(SaleItem(code="B2", quantity=1),), commission_amount=5.0),
    ]


@pytest.fixture
def expenses():
    return [
        Expense(id="e1", date="2024-01-31", status="active", amount=20.0, description="Luz"),
        Expense(id="e2", date="2024-02-10", status="active", amount=15.0, description="Agua"),
        Expense(id="e3", date="2024-02-11", status="cancelled", amount=99.0),
    ]


@pytest.fixture
def credits():
    return [
        Credit(id="c1", due_date="2024-01-30", total_amount=100.0, customer="Luis", payments=(
            CreditPayment(id="p1", date="2024-01-10", status="active", amount=30.0),
            CreditPayment(id="p2", date="2024-01-12", status="cancelled", amount=50.0),
        )),
        Credit(id="c2", due_date="2024-03-01", total_amount=40.0, customer="Eva"),
    ]


@pytest.fixture
def dataset(sales, expenses, credits, products):
    return Dataset(sales=sales, expenses=expenses, credits=credits, products=products, petty_cash_balance=25.0)


@pytest.fixture
def raw_dataset():
    """Dataset JSON as the web dashboard stores it (camelCase, nested payment/staff)."""
    return {
        "pettyCashBalance": 10,
        "sales": [
            {"id": "1", "date": "2024-03-05T10:00:00.000Z", "status": "active", "total": 80,
             "payment": {"method": "cash"}, "staff": {"name": "Ana", "commissionAmount": 8},
             "products": [{"code": "A1", "quantity": 4, "name": "Café", "price": 5}]},
            {"id": "2", "date": "2024-03-06", "status": "cancelled", "total": 30,
             "paymentMethod": "card", "products": []},
        ],
        "expenses": [{"id": "e", "date": "2024-03-05", "status": "active", "amount": 12.5}],
        "credits": [{"id": "c", "dueDate": "2024-03-31", "totalAmount": 50,
                     "payments": [{"id": "p", "status": "active", "amount": 20}]}],
        "products": [{"code": "A1", "costPrice": 2, "name": "Café", "price": 5, "stock": 7}],
    }
