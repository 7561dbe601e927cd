"""
POS Reports GUI
- Profit summary of a point-of-sale data file: sales, COGS, expenses,
  commissions, credits and cash in register for a date window.
- Monthly breakdown, sales by day and a profit chart.
- Export an Excel report, a PNG chart or the raw sales/expenses as CSV.

Run:
  python pos_reports_gui.py

Dependencies:
  pip install openpyxl matplotlib
(Tkinter ships with most Python distributions; on some Linux you may need: sudo apt-get install python3-tk)
"""
from __future__ import annotations
import logging

try:
    import tkinter as tk
except ModuleNotFoundError:
    tk = None


def main():
    """Main entry point for the application"""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if tk is None:
        raise RuntimeError(
            'tkinter is not available. Install it (e.g., on Ubuntu: sudo apt-get install python3-tk) '
            'and re-run to use the GUI.'
        )

    from main_app import POSReportsApp

    root = tk.Tk()
    app = POSReportsApp(root)
    root.mainloop()


if __name__ == "__main__":
    main()
