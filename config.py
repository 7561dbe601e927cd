"""
Configuration and data loading/saving for POS Reports
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import asdict, replace
from typing import Any, Dict, List, Tuple

from models import (
    Credit, CreditPayment, Dataset, Expense, Product, Sale, SaleItem,
    PAYMENT_METHODS, STATUSES, STATUS_ACTIVE,
)
from utils import app_dir, parse_date

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"


def default_settings() -> Dict[str, Any]:
    return {
        "data_file": "",          # dataset JSON opened at startup
        "monthly_rows": 3,        # months shown in the breakdown
        "currency_symbol": "$",
    }


def load_settings(path: str = "") -> Dict[str, Any]:
    """Load settings JSON, filling in defaults"""
    path = path or os.path.join(app_dir(), SETTINGS_FILE)
    settings = default_settings()
    try:
        with open(path, "r", encoding="utf-8") as f:
            settings.update(json.load(f))
    except FileNotFoundError:
        logger.info("no settings at %s, using defaults", path)
    return settings


def save_settings(settings: Dict[str, Any], path: str = "") -> None:
    path = path or os.path.join(app_dir(), SETTINGS_FILE)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(settings, f, ensure_ascii=False, indent=2)


def _pick(d: dict, *keys, default=None):
    """First present key; accepts snake_case and camelCase spellings"""
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def _require(d: dict, kind: str, *keys):
    v = _pick(d, *keys)
    if v is None:
        raise ValueError(f"{kind} {d.get('id', '?')}: missing '{keys[0]}'")
    return v


def _number(value, kind: str, rid: str, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{kind} {rid}: '{name}' is not a number: {value!r}") from None


def _status(d: dict, kind: str) -> str:
    status = d.get("status") or STATUS_ACTIVE
    if status not in STATUSES:
        raise ValueError(f"{kind} {d.get('id', '?')}: unknown status {status!r}")
    return status


def _date(value: str, kind: str, rid: str) -> str:
    try:
        parse_date(str(value))
    except ValueError:
        raise ValueError(f"{kind} {rid}: invalid date {value!r}") from None
    return str(value)


def _name(value) -> str:
    """People may come as plain names or as {name: ...} objects"""
    if isinstance(value, dict):
        return str(value.get("name", ""))
    return str(value or "")


def dict_to_sale(d: dict) -> Sale:
    """Build a Sale from JSON, validating status and payment method"""
    rid = str(_require(d, "Sale", "id"))
    payment = d.get("payment") if isinstance(d.get("payment"), dict) else {}
    method = _pick(d, "payment_method", "paymentMethod", default=payment.get("method"))
    if method not in PAYMENT_METHODS:
        raise ValueError(f"Sale {rid}: unknown payment method {method!r}")

    staff = d.get("staff") if isinstance(d.get("staff"), dict) else {}
    commission = _pick(d, "commission_amount", "commissionAmount", default=staff.get("commissionAmount"))
    items = tuple(
        SaleItem(
            code=str(_require(it, "Sale item", "code")),
            quantity=_number(_pick(it, "quantity", default=0), "Sale", rid, "quantity"),
            name=it.get("name", ""),
            price=_number(_pick(it, "price", default=0), "Sale", rid, "price"),
        )
        for it in _pick(d, "items", "products", default=[])
    )
    return Sale(
        id=rid,
        date=_date(_require(d, "Sale", "date"), "Sale", rid),
        status=_status(d, "Sale"),
        total=_number(_require(d, "Sale", "total"), "Sale", rid, "total"),
        payment_method=method,
        items=items,
        commission_amount=None if commission is None else _number(commission, "Sale", rid, "commission"),
        staff=_name(d.get("staff")),
        customer=_name(d.get("customer")),
    )


def dict_to_expense(d: dict) -> Expense:
    rid = str(_require(d, "Expense", "id"))
    return Expense(
        id=rid,
        date=_date(_require(d, "Expense", "date"), "Expense", rid),
        status=_status(d, "Expense"),
        amount=_number(_require(d, "Expense", "amount"), "Expense", rid, "amount"),
        description=d.get("description", ""),
        category=d.get("category", ""),
    )


def dict_to_credit(d: dict) -> Credit:
    rid = str(_require(d, "Credit", "id"))
    payments = tuple(
        CreditPayment(
            id=str(p.get("id", f"{rid}-{i}")),
            date=str(p.get("date", "")),
            status=_status(p, "Credit payment"),
            amount=_number(_require(p, "Credit payment", "amount"), "Credit", rid, "payment amount"),
        )
        for i, p in enumerate(d.get("payments", []))
    )
    return Credit(
        id=rid,
        due_date=_date(_require(d, "Credit", "due_date", "dueDate"), "Credit", rid),
        total_amount=_number(_require(d, "Credit", "total_amount", "totalAmount"), "Credit", rid, "total_amount"),
        payments=payments,
        customer=_name(d.get("customer")),
    )


def dict_to_product(d: dict) -> Product:
    code = str(_require(d, "Product", "code"))
    return Product(
        code=code,
        cost_price=_number(_require(d, "Product", "cost_price", "costPrice"), "Product", code, "cost_price"),
        name=d.get("name", ""),
        price=_number(_pick(d, "price", default=0), "Product", code, "price"),
        stock=_number(_pick(d, "stock", default=0), "Product", code, "stock"),
    )


def dataset_to_dict(dataset: Dataset) -> dict:
    """Convert Dataset object to dictionary for JSON serialization"""
    return {
        "version": dataset.version,
        "petty_cash_balance": dataset.petty_cash_balance,
        "sales": [asdict(s) for s in dataset.sales],
        "expenses": [asdict(e) for e in dataset.expenses],
        "credits": [asdict(c) for c in dataset.credits],
        "products": [asdict(p) for p in dataset.products],
    }


def dict_to_dataset(d: dict) -> Dataset:
    """Convert dictionary from JSON to Dataset object"""
    petty = _pick(d, "petty_cash_balance", "pettyCashBalance", default=0.0)
    return Dataset(
        version=d.get("version", 1),
        sales=[dict_to_sale(s) for s in d.get("sales", [])],
        expenses=[dict_to_expense(e) for e in d.get("expenses", [])],
        credits=[dict_to_credit(c) for c in d.get("credits", [])],
        products=[dict_to_product(p) for p in d.get("products", [])],
        petty_cash_balance=_number(petty, "Dataset", "-", "petty_cash_balance"),
    )


def load_dataset(path: str) -> Dataset:
    """Load dataset JSON file"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    dataset = dict_to_dataset(data)
    logger.info(
        "loaded %s: %d sales, %d expenses, %d credits, %d products",
        path, len(dataset.sales), len(dataset.expenses), len(dataset.credits), len(dataset.products),
    )
    return dataset


def save_dataset(dataset: Dataset, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dataset_to_dict(dataset), f, ensure_ascii=False, indent=2)
    logger.info("saved dataset to %s", path)


def get_default_dataset(settings: Dict[str, Any] = None) -> Dataset:
    """Dataset from the configured data file, or an empty one"""
    settings = settings if settings is not None else load_settings()
    path = settings.get("data_file") or ""
    if not path:
        return Dataset()
    try:
        return load_dataset(path)
    except FileNotFoundError:
        logger.warning("data file %s not found, starting empty", path)
        return Dataset()


def load_startup_dataset(settings: Dict[str, Any]) -> Tuple[Dataset, str]:
    """
    Dataset to open the window with, plus an error message.
    A configured file that cannot be read or parsed yields an empty dataset
    and the reason, so the caller can report it and carry on.
    """
    try:
        return get_default_dataset(settings), ""
    except (OSError, ValueError) as ex:
        logger.warning("could not load data file %s: %s", settings.get("data_file"), ex)
        return Dataset(), f"{settings.get('data_file')}: {ex}"


def merge_imported(dataset: Dataset, kind: str, records: List, append: bool = True) -> Dataset:
    """
    Dataset with imported sales or expenses appended to, or replacing,
    the current ones. kind is "sales" or "expenses".
    """
    if kind not in ("sales", "expenses"):
        raise ValueError(f"cannot import {kind!r}")
    current = list(getattr(dataset, kind)) if append else []
    return replace(dataset, **{kind: current + list(records)})
