"""
Unit tests for the profit report calculations.
"""
from datetime import date

import pytest

import computations
from computations import (
    calculate_cash_in_register,
    calculate_cost_of_goods_sold,
    calculate_credits_metrics,
    calculate_daily_series,
    calculate_expenses_total,
    calculate_inventory_summary,
    calculate_monthly_breakdown,
    calculate_profit_metrics,
    calculate_sales_metrics,
    compute_dataset_report,
    compute_report,
    filter_by_date_range,
    filter_dataset,
    group_sales_by_date,
    product_stock_value,
)
from models import Credit, CreditPayment, Expense, Product, Sale, SaleItem


class TestSalesMetrics:
    """Test calculate_sales_metrics."""

    def test_totals_per_payment_method(self, sales):
        """Cancelled sales are ignored and commissions default to zero."""
        m = calculate_sales_metrics(sales)
        assert m == {
            "total_sales": 200.0,
            "cash_sales": 100.0,
            "card_sales": 60.0,
            "transfer_sales": 40.0,
            "total_commissions": 6.0,
        }

    def test_method_subtotals_add_up_to_total(self, sales):
        m = calculate_sales_metrics(sales)
        assert m["cash_sales"] + m["card_sales"] + m["transfer_sales"] == pytest.approx(m["total_sales"])

    def test_empty_input(self):
        assert all(v == 0 for v in calculate_sales_metrics([]).values())

    def test_all_cancelled(self, sales):
        cancelled = [Sale(id=s.id, date=s.date, status="cancelled", total=s.total,
                          payment_method=s.payment_method, commission_amount=3.0) for s in sales]
        assert all(v == 0 for v in calculate_sales_metrics(cancelled).values())

    def test_cancelled_sale_contributes_nothing(self):
        """A cancelled cash sale of 50 leaves every sales metric at zero."""
        sale = Sale(id="x", date="2024-01-01", status="cancelled", total=50.0, payment_method="cash")
        assert calculate_sales_metrics([sale])["total_sales"] == 0
        assert calculate_sales_metrics([sale])["cash_sales"] == 0


class TestExpensesAndCredits:
    """Test the expense and credit reductions."""

    def test_expenses_total_skips_cancelled(self, expenses):
        assert calculate_expenses_total(expenses) == 35.0

    def test_expenses_total_empty(self):
        assert calculate_expenses_total([]) == 0

    def test_credits_only_count_active_payments(self, credits):
        m = calculate_credits_metrics(credits)
        assert m == {"total_amount": 140.0, "total_paid": 30.0, "pending_amount": 110.0}

    def test_pending_is_total_minus_paid(self, credits):
        m = calculate_credits_metrics(credits)
        assert m["pending_amount"] == pytest.approx(m["total_amount"] - m["total_paid"])

    def test_overpaid_credit_goes_negative(self):
        credit = Credit(id="c", due_date="2024-01-01", total_amount=10.0,
                        payments=(CreditPayment(id="p", date="2024-01-01", status="active", amount=15.0),))
        assert calculate_credits_metrics([credit])["pending_amount"] == -5.0


class TestCostOfGoodsSold:
    """Test calculate_cost_of_goods_sold."""

    def test_cost_of_active_sales(self, sales, products):
        """Unknown product codes and cancelled sales cost nothing."""
        assert calculate_cost_of_goods_sold(sales, products) == pytest.approx(36.0)

    def test_no_products(self, sales):
        assert calculate_cost_of_goods_sold(sales, []) == 0

    def test_duplicate_codes_use_first_product(self):
        sale = Sale(id="s", date="2024-01-01", status="active", total=10.0, payment_method="cash",
                    items=(SaleItem(code="A", quantity=2),))
        products = [Product(code="A", cost_price=1.0), Product(code="A", cost_price=9.0)]
        assert calculate_cost_of_goods_sold([sale], products) == 2.0


class TestProfitMetrics:
    """Test calculate_profit_metrics and calculate_cash_in_register."""

    def test_profit_and_margins(self):
        m = calculate_profit_metrics(200.0, 36.0, 35.0, 6.0)
        assert m["gross_profit"] == 164.0
        assert m["net_profit"] == 123.0
        assert m["gross_profit_margin"] == pytest.approx(82.0)
        assert m["net_profit_margin"] == pytest.approx(61.5)

    @pytest.mark.parametrize("cogs", [0.0, 10.0])
    def test_margins_zero_without_sales(self, cogs):
        """Margins are 0 when there are no sales, whatever the sign of the profit."""
        m = calculate_profit_metrics(0.0, cogs, 5.0, 0.0)
        assert m["gross_profit_margin"] == 0
        assert m["net_profit_margin"] == 0
        assert m["gross_profit"] == -cogs

    def test_cash_in_register(self):
        assert calculate_cash_in_register(100.0, 20.0, 5.0, 50.0) == 125.0


class TestComputeReport:
    """Test the orchestration step."""

    def test_single_cash_sale_example(self):
        sales = [Sale(id="1", date="2024-01-01", status="active", total=100.0, payment_method="cash")]
        expenses = [Expense(id="e", date="2024-01-01", status="active", amount=20.0)]
        r = compute_report(sales, expenses, [], [], 7.0)
        assert r["total_sales"] == 100
        assert r["cash_sales"] == 100
        assert r["total_expenses"] == 20
        assert r["cost_of_goods_sold"] == 0
        assert r["gross_profit"] == 100
        assert r["net_profit"] == 80
        assert r["cash_in_register"] == 87

    def test_full_report(self, dataset):
        r = compute_dataset_report(dataset)
        assert r["total_sales"] == 200.0
        assert r["cost_of_goods_sold"] == pytest.approx(36.0)
        assert r["total_expenses"] == 35.0
        assert r["total_commissions"] == 6.0
        assert r["net_profit"] == pytest.approx(123.0)
        assert r["pending_amount"] == 110.0
        assert r["cash_in_register"] == pytest.approx(84.0)

    def test_report_keys(self, dataset):
        assert set(compute_dataset_report(dataset)) == {
            "total_sales", "cash_sales", "card_sales", "transfer_sales", "total_commissions",
            "total_expenses", "total_amount", "total_paid", "pending_amount", "cost_of_goods_sold",
            "gross_profit", "net_profit", "gross_profit_margin", "net_profit_margin", "cash_in_register",
        }

    def test_memoized_on_inputs(self, sales, expenses, credits, products):
        compute_report(sales, expenses, credits, products, 0.0)
        compute_report(list(sales), list(expenses), list(credits), list(products), 0.0)
        info = computations._compute_report_cached.cache_info()
        assert info.hits == 1
        assert info.misses == 1

    def test_petty_cash_is_part_of_the_key(self, sales, expenses, credits, products):
        a = compute_report(sales, expenses, credits, products, 0.0)
        b = compute_report(sales, expenses, credits, products, 10.0)
        assert b["cash_in_register"] - a["cash_in_register"] == 10.0

    def test_cached_result_is_a_copy(self, sales, expenses, credits, products):
        r = compute_report(sales, expenses, credits, products)
        r["total_sales"] = -1
        assert compute_report(sales, expenses, credits, products)["total_sales"] == 200.0

    def test_unhashable_records_still_compute(self):
        sale = Sale(id="1", date="2024-01-01", status="active", total=10.0, payment_method="card",
                    items=[SaleItem(code="A", quantity=1)])
        r = compute_report([sale], [], [], [Product(code="A", cost_price=4.0)])
        assert r["gross_profit"] == 6.0

    def test_bad_record_errors_propagate(self, monkeypatch):
        """A TypeError raised while computing surfaces once, without a second attempt."""
        calls = []
        original = computations._compute_report

        def counting(*args):
            calls.append(args)
            return original(*args)

        monkeypatch.setattr(computations, "_compute_report", counting)
        sale = Sale(id="1", date="2024-01-01", status="active", total="100", payment_method="cash")
        with pytest.raises(TypeError):
            compute_report([sale], [], [], [])
        assert len(calls) == 1


class TestFilters:
    """Test date-window filtering."""

    def test_inclusive_bounds(self, sales):
        out = filter_by_date_range(sales, date(2024, 1, 15), date(2024, 1, 20))
        assert [s.id for s in out] == ["s1", "s2"]

    def test_open_bounds(self, sales):
        assert len(filter_by_date_range(sales, None, None)) == 4
        assert [s.id for s in filter_by_date_range(sales, date(2024, 2, 1), None)] == ["s3", "s4"]

    def test_exclude_cancelled(self, sales):
        out = filter_by_date_range(sales, None, None, exclude_cancelled=True)
        assert "s4" not in [s.id for s in out]

    def test_filter_dataset(self, dataset):
        data = filter_dataset(dataset, date(2024, 1, 1), date(2024, 1, 31))
        assert [s.id for s in data.sales] == ["s1", "s2"]
        assert [e.id for e in data.expenses] == ["e1"]
        assert [c.id for c in data.credits] == ["c1"]
        assert data.products == dataset.products
        assert data.petty_cash_balance == 25.0


class TestBreakdowns:
    """Test monthly, daily and inventory summaries."""

    def test_monthly_breakdown(self, sales, expenses):
        rows = calculate_monthly_breakdown(sales, expenses, 36.0)
        assert [k for k, _ in rows] == ["2024-02", "2024-01"]
        feb, jan = rows[0][1], rows[1][1]
        assert jan["sales"] == 160.0
        assert jan["cogs"] == pytest.approx(28.8)
        assert jan["net_profit"] == pytest.approx(111.2)
        assert feb["expenses"] == 15.0
        assert feb["gross_profit"] == pytest.approx(32.8)
        assert jan["cogs"] + feb["cogs"] == pytest.approx(36.0)

    def test_monthly_breakdown_limit(self, sales, expenses):
        assert len(calculate_monthly_breakdown(sales, expenses, 0.0, limit=1)) == 1

    def test_month_with_only_expenses(self):
        expenses = [Expense(id="e", date="2024-05-01", status="active", amount=10.0)]
        [(key, m)] = calculate_monthly_breakdown([], expenses, 0.0)
        assert key == "2024-05"
        assert m["cogs"] == 0
        assert m["net_profit"] == -10.0
        assert m["net_profit_margin"] == 0

    def test_group_sales_by_date(self, sales):
        groups = group_sales_by_date(sales)
        assert [d for d, _, _ in groups] == ["2024-02-03", "2024-02-02", "2024-01-20", "2024-01-15"]
        assert groups[0][2] == 0
        assert groups[2][2] == 60.0

    def test_day_with_only_cancelled_sales(self):
        sales = [
            Sale(id="ok", date="2024-04-01", status="active", total=10.0, payment_method="cash"),
            Sale(id="x", date="2024-04-01", status="cancelled", total=50.0, payment_method="cash"),
            Sale(id="gone", date="2024-04-02", status="cancelled", total=5.0, payment_method="card"),
        ]
        groups = group_sales_by_date(sales)
        assert [(d, [s.id for s in day], t) for d, day, t in groups] == [
            ("2024-04-02", ["gone"], 0.0),
            ("2024-04-01", ["ok", "x"], 10.0),
        ]

    def test_daily_series(self, sales, expenses):
        assert calculate_daily_series(sales, expenses) == [
            ("2024-01-15", 100.0, 0.0),
            ("2024-01-20", 60.0, 0.0),
            ("2024-01-31", 0.0, 20.0),
            ("2024-02-02", 40.0, 0.0),
            ("2024-02-10", 0.0, 15.0),
        ]

    def test_inventory_summary(self, products):
        assert calculate_inventory_summary(products) == {
            "products": 2, "units": 13.0, "cost_value": 50.0, "retail_value": 125.0,
        }

    def test_negative_stock_counts_as_none(self):
        short = Product(code="B", cost_price=3.0, price=4.0, stock=-4)
        assert product_stock_value(short) == (0.0, 0.0, 0.0)
        products = [Product(code="A", cost_price=2.0, price=3.0, stock=10), short]
        summary = calculate_inventory_summary(products)
        assert summary["cost_value"] == sum(product_stock_value(p)[1] for p in products) == 20.0
        assert summary["units"] == 10.0
