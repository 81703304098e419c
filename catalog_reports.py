#!/usr/bin/env python3
"""
catalog_reports.py

Reporting and circulation analysis for a LibrarySystem.

This module provides functions to:
- Snapshot books, members and loans into pandas DataFrames
- Compute circulation metrics (loan counts, overdue loans, fees, category demand)
- Produce charts with matplotlib/seaborn and save them to disk
- Export aggregate CSVs and a summary Excel workbook when possible

Nothing here mutates the catalog; reports are read-only snapshots.

Typical usage:
    python catalog_reports.py --out library_outputs

The public entrypoint is `analyze(system, out)` which orchestrates the full
pipeline and returns a small summary dictionary.
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from library_system import LibrarySystem

logger = logging.getLogger("LibrarySystem.reports")

BOOK_COLUMNS = ["Book ID", "Title", "Author", "Category", "Year", "Total", "Borrowed", "Available",
                "Popularity", "Waitlist"]
MEMBER_COLUMNS = ["Member ID", "Name", "ActiveLoans", "MaxLoans", "Penalty", "TotalLoans"]
LOAN_COLUMNS = ["Book ID", "Title", "Category", "Member ID", "Member", "borrow_date", "due_date",
                "return_date", "status", "late_days", "fine"]


# -------------------- Snapshots -------------------- #
def books_frame(system: LibrarySystem) -> pd.DataFrame:
    """
    Produce a DataFrame of the book inventory, one row per indexed book.

    Columns: Book ID, Title, Author, Category, Year, Total, Borrowed, Available,
    Popularity, Waitlist.
    """
    rows = [{
        "Book ID": b.book_id,
        "Title": b.title,
        "Author": b.author,
        "Category": b.category,
        "Year": b.year,
        "Total": b.total_copies,
        "Borrowed": b.borrowed_copies,
        "Available": b.available_copies,
        "Popularity": b.popularity_count,
        "Waitlist": len(b.waitlist),
    } for b in system.list_all_books()]
    return pd.DataFrame(rows, columns=BOOK_COLUMNS)


def members_frame(system: LibrarySystem) -> pd.DataFrame:
    """Summarize members with their current loan counts and penalty balances."""
    rows = [{
        "Member ID": m.member_id,
        "Name": m.name,
        "ActiveLoans": len(m.active_loans),
        "MaxLoans": m.max_loans,
        "Penalty": round(m.penalty_balance, 2),
        "TotalLoans": sum(1 for lr in m.loan_history if not lr.cancelled),
    } for m in system.list_all_members()]
    return pd.DataFrame(rows, columns=MEMBER_COLUMNS)


def loans_frame(system: LibrarySystem, include_cancelled: bool = False) -> pd.DataFrame:
    """
    Build a DataFrame of the global loan history.

    Cancelled loans (borrows that were undone) are dropped unless
    `include_cancelled` is set. Late days and fines for active loans are
    computed as of the system's current date.

    Args:
        system: the catalog to read.
        include_cancelled: keep undone borrows in the output.

    Returns:
        DataFrame with LOAN_COLUMNS; date columns are datetime64.
    """
    today = system.clock()
    rows = []
    for lr in system.loan_history():
        if lr.cancelled and not include_cancelled:
            continue
        rows.append({
            "Book ID": lr.book.book_id,
            "Title": lr.book.title,
            "Category": lr.book.category,
            "Member ID": lr.member.member_id,
            "Member": lr.member.name,
            "borrow_date": lr.borrow_date,
            "due_date": lr.due_date,
            "return_date": lr.return_date,
            "status": lr.status,
            "late_days": lr.late_days(today),
            "fine": lr.fine(system.fine_per_day, today),
        })
    df = pd.DataFrame(rows, columns=LOAN_COLUMNS)
    for col in ("borrow_date", "due_date", "return_date"):
        df[col] = pd.to_datetime(df[col], errors="coerce")
    return df


# -------------------- Metrics -------------------- #
def most_popular_category(system: LibrarySystem) -> Optional[str]:
    """
    Compute the most frequently-borrowed category from loan history.

    Returns the category string or None if there is insufficient data.
    """
    loans = loans_frame(system)
    if loans.empty:
        return None
    loans["Category"] = loans["Category"].fillna("").astype(str).str.strip()
    counts = loans.groupby("Category").size().reset_index(name="count")
    counts = counts[counts["Category"] != ""]
    if counts.empty:
        return None
    top = counts.sort_values("count", ascending=False).iloc[0]
    return top["Category"]


def circulation_metrics(system: LibrarySystem) -> dict:
    """
    Compute circulation aggregates used for reporting and plotting.

    Returns:
        Dictionary with keys:
          - total_loans: int loans ever made (cancelled ones excluded)
          - active_loans: int loans not yet returned
          - overdue_loans: int active loans past their due date
          - total_fines: float late fees accrued on returned loans
          - utilisation: float share of all copies currently on loan
          - utilisation_by_category: DataFrame [Category, Utilisation]
          - mean_days_late: float average lateness of late returns
          - loans_by_category: DataFrame [Category, Loans]
          - monthly_loans: DataFrame [Month, Loans]
          - top_books: DataFrame [Title, Popularity] (top 10 by popularity)
    """
    loans = loans_frame(system)
    books = books_frame(system)

    active = loans[loans["status"] == "BORROWED"]
    returned = loans[loans["status"] == "RETURNED"]
    total_copies = int(books["Total"].sum()) if not books.empty else 0
    utilisation = int(books["Borrowed"].sum()) / total_copies if total_copies else 0.0

    copies = books.groupby("Category")[["Borrowed", "Total"]].sum()
    totals = copies["Total"].to_numpy(dtype=float)
    share = np.divide(copies["Borrowed"].to_numpy(dtype=float), totals,
                      out=np.zeros_like(totals), where=totals > 0)
    by_category_use = pd.DataFrame({"Category": copies.index.to_numpy(), "Utilisation": np.round(share, 3)})

    late = returned["late_days"].to_numpy(dtype=float)
    late = late[late > 0]
    mean_days_late = float(np.mean(late)) if late.size else 0.0

    if loans.empty:
        by_category = pd.DataFrame(columns=["Category", "Loans"])
        monthly = pd.DataFrame(columns=["Month", "Loans"])
    else:
        by_category = loans["Category"].fillna("Unknown").value_counts().reset_index()
        by_category.columns = ["Category", "Loans"]
        monthly = (loans.set_index("borrow_date").resample("MS").size()
                   .reset_index(name="Loans").rename(columns={"borrow_date": "Month"}))

    top_books = (books.sort_values("Popularity", ascending=False).head(10)[["Title", "Popularity"]]
                 .reset_index(drop=True))

    return {
        "total_loans": len(loans),
        "active_loans": len(active),
        "overdue_loans": int((active["late_days"] > 0).sum()) if not active.empty else 0,
        "total_fines": float(returned["fine"].sum()) if not returned.empty else 0.0,
        "utilisation": utilisation,
        "utilisation_by_category": by_category_use,
        "mean_days_late": mean_days_late,
        "loans_by_category": by_category,
        "monthly_loans": monthly,
        "top_books": top_books,
    }


# -------------------- Output helpers -------------------- #
def save_plot(fig, plots_dir: Path, name: str, saved: list) -> None:
    """Write `fig` as plots_dir/name, close it and record the path in `saved`."""
    path = plots_dir / name
    fig.savefig(path, bbox_inches="tight")
    plt.close(fig)
    saved.append(path)


def annotate_bar_values(ax, fontsize=8) -> None:
    """Label each bar with its count; empty and zero bars stay unlabelled."""
    for container in ax.containers:
        labels = [f"{v:.0f}" if np.isfinite(v) and v else "" for v in container.datavalues]
        ax.bar_label(container, labels=labels, fontsize=fontsize)


# -------------------- Visualisations -------------------- #
def create_visualisations(metrics: dict, out_dir: Path) -> list:
    """
    Create and persist charts for the computed circulation metrics.

    Charts are only drawn for non-empty tables. Filenames carry a numbered
    prefix so they sort in report order.

    Returns:
        List[Path] of saved plot file paths.
    """
    plots = []
    plots_dir = out_dir / "plots"
    plots_dir.mkdir(parents=True, exist_ok=True)
    sns.set_theme(style="whitegrid")

    # 1) Most popular books
    top_books = metrics.get("top_books", pd.DataFrame())
    if not top_books.empty and top_books["Popularity"].sum() > 0:
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.barplot(data=top_books, x="Popularity", y="Title", ax=ax, color="steelblue")
        ax.set_title("Most Borrowed Books")
        ax.set_xlabel("Borrows")
        ax.set_ylabel("")
        save_plot(fig, plots_dir, "01_top_books.png", plots)

    # 2) Loans by category
    by_category = metrics.get("loans_by_category", pd.DataFrame())
    if not by_category.empty:
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.barplot(data=by_category, x="Category", y="Loans", ax=ax, color="seagreen")
        ax.set_title("Loans by Category")
        ax.set_xlabel("")
        plt.xticks(rotation=45, ha="right")
        annotate_bar_values(ax)
        save_plot(fig, plots_dir, "02_loans_by_category.png", plots)

    # 3) Monthly loan trend
    monthly = metrics.get("monthly_loans", pd.DataFrame())
    if len(monthly) > 1:
        fig, ax = plt.subplots(figsize=(10, 5))
        sns.lineplot(data=monthly, x="Month", y="Loans", marker="o", ax=ax)
        ax.set_title("Monthly Loans")
        ax.set_xlabel("")
        save_plot(fig, plots_dir, "03_monthly_loans.png", plots)

    logger.info("Saved %d plot(s) to %s", len(plots), plots_dir)
    return plots


def save_aggregates(out_dir: Path, system: LibrarySystem, metrics: dict) -> tuple:
    """
    Persist aggregate CSVs and attempt to write an Excel workbook with key tables.

    Returns:
        Tuple[bool, Optional[str]] indicating whether the Excel write succeeded
        and an error string when it failed (None on success).
    """
    agg_dir = out_dir / "aggregates"
    agg_dir.mkdir(parents=True, exist_ok=True)

    tables = {
        "books": books_frame(system),
        "members": members_frame(system),
        "loans": loans_frame(system),
        "loans_by_category": metrics["loans_by_category"],
        "monthly_loans": metrics["monthly_loans"],
        "top_books": metrics["top_books"],
        "utilisation_by_category": metrics["utilisation_by_category"],
    }
    for name, df in tables.items():
        df.to_csv(agg_dir / f"{name}.csv", index=False)
    logger.info("Saved %d aggregate table(s) to %s", len(tables), agg_dir)

    # the workbook needs openpyxl; the CSVs above are the fallback
    try:
        with pd.ExcelWriter(agg_dir / "key_aggregates.xlsx") as writer:
            for name, df in tables.items():
                df.to_excel(writer, sheet_name=name[:31], index=False)
        return True, None
    except (ImportError, ValueError, OSError) as e:
        return False, str(e)


# -------------------- Orchestrator -------------------- #
def analyze(system: LibrarySystem, out: str = "library_outputs") -> dict:
    """
    High-level orchestration that runs the full reporting pipeline.

    Steps: compute circulation metrics, draw charts, write aggregates.

    Args:
        system: the catalog to report on.
        out: Output directory to save plots and aggregates.

    Returns:
        Small summary dictionary with keys: total_loans, active_loans,
        overdue_loans, total_fines, top_category, top_books, plots.
    """
    out_dir = Path(out)
    out_dir.mkdir(parents=True, exist_ok=True)

    metrics = circulation_metrics(system)
    plots = create_visualisations(metrics, out_dir)
    ok, err = save_aggregates(out_dir, system, metrics)
    if not ok:
        logger.warning("Excel write failed (openpyxl may be missing); CSV files were written. Error: %s", err)

    top = metrics["top_books"]
    return {
        "total_loans": metrics["total_loans"],
        "active_loans": metrics["active_loans"],
        "overdue_loans": metrics["overdue_loans"],
        "total_fines": metrics["total_fines"],
        "top_category": most_popular_category(system),
        "top_books": top[top["Popularity"] > 0]["Title"].head(5).tolist(),
        "plots": [str(p) for p in plots],
    }


# -------------------- CLI -------------------- #
if __name__ == "__main__":
    from library_cli import load_sample_data

    parser = argparse.ArgumentParser(description="Circulation report for the sample catalog")
    parser.add_argument("--out", default="library_outputs", help="Output folder for plots & aggregates")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    lib = LibrarySystem()
    load_sample_data(lib)
    print(analyze(lib, args.out))
