"""
Main application window for POS Reports GUI
"""
from __future__ import annotations
import logging
import os
from datetime import date
from typing import Optional, Tuple

try:
    import tkinter as tk
    from tkinter import ttk, messagebox, filedialog
except ModuleNotFoundError:
    tk = None
    ttk = None
    messagebox = None
    filedialog = None

from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from models import Dataset
from config import (
    load_dataset,
    load_settings,
    load_startup_dataset,
    merge_imported,
    save_dataset,
    save_settings,
)
from utils import format_currency, format_date, format_month, parse_date
from computations import (
    calculate_monthly_breakdown,
    compute_dataset_report,
    filter_by_date_range,
    filter_dataset,
    group_sales_by_date,
)
from chart_export import build_profit_figure, export_profit_chart
from csv_handler import (
    export_expenses_to_csv,
    export_sales_to_csv,
    import_expenses_from_csv,
    import_sales_from_csv,
)
from excel_export import export_excel

logger = logging.getLogger(__name__)

METRIC_ROWS = [
    ("Ingresos Totales", "total_sales"),
    ("Efectivo", "cash_sales"),
    ("Tarjeta", "card_sales"),
    ("Transferencia", "transfer_sales"),
    ("Costo de Ventas", "cost_of_goods_sold"),
    ("Ganancia Bruta", "gross_profit"),
    ("Gastos Totales", "total_expenses"),
    ("Comisiones", "total_commissions"),
    ("Ganancia Neta", "net_profit"),
    ("Créditos Pendientes", "pending_amount"),
    ("Dinero en Caja", "cash_in_register"),
]


class POSReportsApp(ttk.Frame):
    """Main application window"""

    def __init__(self, master: tk.Tk):
        super().__init__(master, padding=8)
        self.master = master
        self.master.title("POS Reports")
        self.master.geometry("1100x700")
        self.grid(row=0, column=0, sticky="nsew")
        self.master.rowconfigure(0, weight=1)
        self.master.columnconfigure(0, weight=1)

        self.settings = load_settings()
        self.data_path: Optional[str] = self.settings.get("data_file") or None
        self.dataset, load_error = load_startup_dataset(self.settings)

        self._build_menu()
        self._build_ui()
        self.refresh_all()
        if load_error:
            messagebox.showerror("Open failed", load_error)

    # ---------- Menu ----------
    def _build_menu(self):
        """Build application menu bar"""
        menubar = tk.Menu(self.master)
        filem = tk.Menu(menubar, tearoff=0)
        filem.add_command(label="Open…", command=self.open_dataset)
        filem.add_command(label="Reload", command=self.reload_dataset)
        filem.add_command(label="Save", command=self.save_data)
        filem.add_command(label="Save As…", command=self.save_as_data)
        filem.add_separator()
        filem.add_command(label="Import Sales CSV…", command=self.import_sales_csv_dialog)
        filem.add_command(label="Import Expenses CSV…", command=self.import_expenses_csv_dialog)
        filem.add_command(label="Export Sales CSV…", command=self.export_sales_csv_dialog)
        filem.add_command(label="Export Expenses CSV…", command=self.export_expenses_csv_dialog)
        filem.add_separator()
        filem.add_command(label="Export Excel…", command=self.export_excel_dialog)
        filem.add_command(label="Export Chart…", command=self.export_chart_dialog)
        filem.add_separator()
        filem.add_command(label="Exit", command=self.master.destroy)
        menubar.add_cascade(label="File", menu=filem)
        self.master.config(menu=menubar)

    # ---------- UI ----------
    def _build_ui(self):
        """Build date filter and report tabs"""
        self.rowconfigure(1, weight=1)
        self.columnconfigure(0, weight=1)

        filt = ttk.Frame(self)
        filt.grid(row=0, column=0, sticky="ew", pady=(0, 6))
        ttk.Label(filt, text="Start (YYYY-MM-DD)").pack(side="left")
        self.rep_start = tk.StringVar(value="")
        ttk.Entry(filt, textvariable=self.rep_start, width=12).pack(side="left", padx=4)
        ttk.Label(filt, text="End (YYYY-MM-DD)").pack(side="left")
        self.rep_end = tk.StringVar(value="")
        ttk.Entry(filt, textvariable=self.rep_end, width=12).pack(side="left", padx=4)
        ttk.Button(filt, text="Refresh", command=self.refresh_all).pack(side="left", padx=8)
        self.report_note = tk.StringVar(value="")
        ttk.Label(filt, textvariable=self.report_note).pack(side="left", padx=8)

        nb = ttk.Notebook(self)
        nb.grid(row=1, column=0, sticky="nsew")
        self.tab_profit = ttk.Frame(nb, padding=8)
        self.tab_sales = ttk.Frame(nb, padding=8)
        self.tab_chart = ttk.Frame(nb, padding=8)
        nb.add(self.tab_profit, text="Profit")
        nb.add(self.tab_sales, text="Sales")
        nb.add(self.tab_chart, text="Chart")

        self._build_profit_tab()
        self._build_sales_tab()
        self._build_chart_tab()

    def _build_profit_tab(self):
        """Metrics table and monthly breakdown"""
        self.tab_profit.columnconfigure(0, weight=1)

        cols = ("metric", "value")
        self.metric_tree = ttk.Treeview(self.tab_profit, columns=cols, show="headings", height=len(METRIC_ROWS))
        for c, w in zip(cols, [220, 160]):
            self.metric_tree.heading(c, text=c)
            self.metric_tree.column(c, width=w, anchor="w")
        self.metric_tree.grid(row=0, column=0, sticky="nsew", pady=6)

        ttk.Label(self.tab_profit, text="Monthly breakdown:").grid(row=1, column=0, sticky="w", pady=(10, 0))
        mcols = ("month", "sales", "cogs", "gross", "expenses", "net")
        self.month_tree = ttk.Treeview(self.tab_profit, columns=mcols, show="headings", height=6)
        for c, w in zip(mcols, [140, 120, 120, 170, 120, 170]):
            self.month_tree.heading(c, text=c)
            self.month_tree.column(c, width=w, anchor="e" if c != "month" else "w")
        self.month_tree.grid(row=2, column=0, sticky="nsew")
        self.tab_profit.rowconfigure(2, weight=1)

    def _build_sales_tab(self):
        """Sales grouped by day"""
        self.tab_sales.columnconfigure(0, weight=1)
        self.tab_sales.rowconfigure(0, weight=1)
        cols = ("sale", "status", "payment", "total")
        self.sales_tree = ttk.Treeview(self.tab_sales, columns=cols, show="tree headings", height=20)
        self.sales_tree.heading("#0", text="day")
        self.sales_tree.column("#0", width=300, anchor="w")
        for c, w in zip(cols, [160, 100, 100, 120]):
            self.sales_tree.heading(c, text=c)
            self.sales_tree.column(c, width=w, anchor="w")
        self.sales_tree.grid(row=0, column=0, sticky="nsew")

        yscroll = ttk.Scrollbar(self.tab_sales, orient="vertical", command=self.sales_tree.yview)
        self.sales_tree.configure(yscroll=yscroll.set)
        yscroll.grid(row=0, column=1, sticky="ns")

    def _build_chart_tab(self):
        self.figure = Figure(figsize=(10, 6), dpi=100)
        self.canvas = FigureCanvasTkAgg(self.figure, master=self.tab_chart)
        self.canvas.get_tk_widget().pack(fill="both", expand=True)

    # ---------- File ops ----------
    def open_dataset(self):
        """Open dataset JSON and remember it for the next start"""
        fp = filedialog.askopenfilename(
            title="Open POS data JSON",
            filetypes=[("POS data JSON", "*.json"), ("All files", "*.*")]
        )
        if not fp:
            return
        try:
            self.dataset = load_dataset(fp)
            self.data_path = fp
            self.settings["data_file"] = fp
            save_settings(self.settings)
            self.master.title(f"POS Reports - {os.path.basename(fp)}")
            self.refresh_all()
        except Exception as ex:
            logger.exception("open failed")
            messagebox.showerror("Open failed", str(ex))

    def reload_dataset(self):
        if not self.data_path:
            return self.open_dataset()
        try:
            self.dataset = load_dataset(self.data_path)
            self.refresh_all()
        except Exception as ex:
            logger.exception("reload failed")
            messagebox.showerror("Reload failed", str(ex))

    def save_data(self):
        """Save dataset to its file"""
        if not self.data_path:
            return self.save_as_data()
        try:
            save_dataset(self.dataset, self.data_path)
            self.master.title(f"POS Reports - {os.path.basename(self.data_path)}")
        except Exception as ex:
            logger.exception("save failed")
            messagebox.showerror("Save failed", str(ex))

    def save_as_data(self):
        """Save dataset to a new file"""
        fp = self._ask_save("Save POS data JSON", ".json", "POS data JSON")
        if not fp:
            return
        self.data_path = fp
        self.settings["data_file"] = fp
        save_settings(self.settings)
        self.save_data()

    def import_sales_csv_dialog(self):
        self._import_csv_dialog("sales", import_sales_from_csv)

    def import_expenses_csv_dialog(self):
        self._import_csv_dialog("expenses", import_expenses_from_csv)

    def _import_csv_dialog(self, kind: str, reader):
        """Import sales or expenses from CSV file"""
        fp = filedialog.askopenfilename(
            title=f"Import {kind.capitalize()} from CSV",
            filetypes=[("CSV files", "*.csv"), ("All files", "*.*")]
        )
        if not fp:
            return

        try:
            imported = reader(fp)
            if not imported:
                messagebox.showinfo("Import CSV", f"No {kind} found in CSV file.")
                return

            # Ask user if they want to append or replace
            choice = messagebox.askyesnocancel(
                "Import CSV",
                f"Found {len(imported)} {kind} in CSV.\n\n"
                f"Yes: Append to current {kind}\n"
                f"No: Replace current {kind}\n"
                "Cancel: Cancel import"
            )
            if choice is None:  # Cancel
                return
            self.dataset = merge_imported(self.dataset, kind, imported, append=choice)
            self.refresh_all()
            messagebox.showinfo("Import CSV", f"Imported {len(imported)} {kind}.")
        except Exception as ex:
            logger.exception("csv import failed")
            messagebox.showerror("Import failed", str(ex))

    def _ask_save(self, title: str, ext: str, label: str) -> str:
        return filedialog.asksaveasfilename(
            title=title,
            defaultextension=ext,
            filetypes=[(label, f"*{ext}")]
        )

    def export_excel_dialog(self):
        """Export report to Excel file"""
        start, end, ok = self._get_report_dates()
        if not ok:
            return
        fp = self._ask_save("Export Excel", ".xlsx", "Excel Workbook")
        if not fp:
            return
        try:
            export_excel(self.dataset, fp, start, end, self.settings.get("monthly_rows"))
            messagebox.showinfo("Export", f"Exported: {fp}")
        except Exception as ex:
            logger.exception("excel export failed")
            messagebox.showerror("Export failed", str(ex))

    def export_chart_dialog(self):
        """Export profit chart to PNG"""
        start, end, ok = self._get_report_dates()
        if not ok:
            return
        fp = self._ask_save("Export Chart", ".png", "PNG image")
        if not fp:
            return
        try:
            data = filter_dataset(self.dataset, start, end)
            report = compute_dataset_report(data)
            export_profit_chart(data.sales, data.expenses, fp, report["cost_of_goods_sold"])
            messagebox.showinfo("Export", f"Exported: {fp}")
        except Exception as ex:
            logger.exception("chart export failed")
            messagebox.showerror("Export failed", str(ex))

    def export_sales_csv_dialog(self):
        if not self.dataset.sales:
            messagebox.showinfo("Export CSV", "No sales to export.")
            return
        fp = self._ask_save("Export Sales to CSV", ".csv", "CSV files")
        if not fp:
            return
        try:
            export_sales_to_csv(self.dataset.sales, fp)
            messagebox.showinfo("Export CSV", f"Exported {len(self.dataset.sales)} sales to:\n{fp}")
        except Exception as ex:
            messagebox.showerror("Export failed", str(ex))

    def export_expenses_csv_dialog(self):
        if not self.dataset.expenses:
            messagebox.showinfo("Export CSV", "No expenses to export.")
            return
        fp = self._ask_save("Export Expenses to CSV", ".csv", "CSV files")
        if not fp:
            return
        try:
            export_expenses_to_csv(self.dataset.expenses, fp)
            messagebox.showinfo("Export CSV", f"Exported {len(self.dataset.expenses)} expenses to:\n{fp}")
        except Exception as ex:
            messagebox.showerror("Export failed", str(ex))

    # ---------- Refresh ----------
    def _get_report_dates(self) -> Tuple[Optional[date], Optional[date], bool]:
        """Parse report date range from inputs"""
        s = self.rep_start.get().strip()
        e = self.rep_end.get().strip()
        start = None
        end = None
        if s:
            try:
                start = parse_date(s)
            except ValueError:
                messagebox.showerror("Invalid date", "Start date must be YYYY-MM-DD.")
                return None, None, False
        if e:
            try:
                end = parse_date(e)
            except ValueError:
                messagebox.showerror("Invalid date", "End date must be YYYY-MM-DD.")
                return None, None, False
        return start, end, True

    def refresh_all(self):
        """Recompute the report for the current window and redraw"""
        start, end, ok = self._get_report_dates()
        if not ok:
            return
        self.report_note.set(
            f"Date filter: {start.isoformat() if start else '(todas)'} to {end.isoformat() if end else '(todas)'}; "
            f"petty cash {self.money(self.dataset.petty_cash_balance)}"
        )
        data = filter_dataset(self.dataset, start, end)
        report = compute_dataset_report(data)
        self.refresh_metrics(report)
        self.refresh_months(data, report["cost_of_goods_sold"])
        # cancelled sales stay listed; group_sales_by_date leaves them out of the day totals
        self.refresh_sales(filter_by_date_range(self.dataset.sales, start, end))
        build_profit_figure(data.sales, data.expenses, report["cost_of_goods_sold"], figure=self.figure)
        self.canvas.draw()

    def money(self, value: float) -> str:
        return format_currency(value, self.settings.get("currency_symbol", "$"))

    def refresh_metrics(self, report: dict):
        for iid in self.metric_tree.get_children():
            self.metric_tree.delete(iid)
        for label, key in METRIC_ROWS:
            value = self.money(report[key])
            if key == "gross_profit":
                value += f"  ({report['gross_profit_margin']:.2f}%)"
            elif key == "net_profit":
                value += f"  ({report['net_profit_margin']:.2f}%)"
            self.metric_tree.insert("", "end", values=(label, value))

    def refresh_months(self, data: Dataset, cost_of_goods_sold: float):
        for iid in self.month_tree.get_children():
            self.month_tree.delete(iid)
        rows = int(self.settings.get("monthly_rows") or 3)
        for key, m in calculate_monthly_breakdown(data.sales, data.expenses, cost_of_goods_sold, rows):
            self.month_tree.insert("", "end", values=(
                format_month(key),
                self.money(m["sales"]),
                self.money(m["cogs"]),
                f"{self.money(m['gross_profit'])} ({m['gross_profit_margin']:.1f}%)",
                self.money(m["expenses"]),
                f"{self.money(m['net_profit'])} ({m['net_profit_margin']:.1f}%)",
            ))

    def refresh_sales(self, sales_in_range: list):
        for iid in self.sales_tree.get_children():
            self.sales_tree.delete(iid)
        for day, sales, total in group_sales_by_date(sales_in_range):
            parent = self.sales_tree.insert(
                "", "end", text=format_date(day), values=(f"{len(sales)} ventas", "", "", self.money(total))
            )
            for s in sales:
                self.sales_tree.insert(parent, "end", values=(s.id, s.status, s.payment_method, self.money(s.total)))
