"""Member statement export.

A :class:`~sacco.models.StatementRequest` is turned into named tables
(savings, loans, external income, ...) which are then rendered either as a
reportlab PDF or as a single CSV file.
"""
from __future__ import annotations

import io
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.utils import format_currency, pretty_label
from sacco.models import CredibilityMetrics, Loan, Member, Savings, StatementRequest
from sacco.presets import DISCLAIMER, STATEMENT_TYPES

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {"pdf": "application/pdf", "csv": "text/csv"}

_RANGE_DAYS = {"last_month": 30, "last_3_months": 91, "last_6_months": 182, "last_year": 365}

_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("BOX", (0, 0), (-1, -1), 1, colors.black),
        ("INNERGRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]
)


def date_window(request: StatementRequest, today: Optional[date] = None) -> Tuple[Optional[date], Optional[date]]:
    """Inclusive ``(start, end)`` for the requested range; ``None`` means open."""
    today = today or date.today()
    if request.date_range == "custom":
        return request.custom_start_date, request.custom_end_date
    if request.date_range == "year_to_date":
        return date(today.year, 1, 1), today
    if request.date_range in _RANGE_DAYS:
        return today - timedelta(days=_RANGE_DAYS[request.date_range]), today
    return None, None


def _in_window(d: date, start: Optional[date], end: Optional[date]) -> bool:
    return (start is None or d >= start) and (end is None or d <= end)


def statement_tables(
    request: StatementRequest,
    member: Member,
    loans: List[Loan],
    savings: List[Savings],
    credibility: Optional[CredibilityMetrics] = None,
    today: Optional[date] = None,
) -> Dict[str, pd.DataFrame]:
    start, end = date_window(request, today)
    kind = request.statement_type
    tables: Dict[str, pd.DataFrame] = {}

    own_savings = [s for s in savings if s.member_id == member.id and _in_window(s.date, start, end)]
    own_loans = [l for l in loans if l.member_id == member.id and _in_window(l.applied_date, start, end)]

    if kind in ("comprehensive", "savings_only") and request.include_savings_history:
        tables["Savings History"] = pd.DataFrame(
            [
                {"Date": s.date.isoformat(), "Type": pretty_label(s.type), "Description": s.description,
                 "Amount": s.amount, "Status": s.status}
                for s in own_savings if s.type != "withdrawal"
            ],
            columns=["Date", "Type", "Description", "Amount", "Status"],
        )
    if kind in ("comprehensive", "loans_only") and request.include_loan_details:
        tables["Loans"] = pd.DataFrame(
            [
                {"Applied": l.applied_date.isoformat(), "Purpose": l.purpose, "Amount": l.amount,
                 "Rate %": l.interest_rate, "Term": l.term, "Monthly Payment": round(l.monthly_payment),
                 "Balance": l.remaining_balance, "Status": l.status}
                for l in own_loans
            ],
            columns=["Applied", "Purpose", "Amount", "Rate %", "Term", "Monthly Payment", "Balance", "Status"],
        )
    if kind in ("comprehensive", "transactions_only") and request.include_transactions:
        rows = [
            {"Date": s.date.isoformat(), "Description": s.description,
             "Amount": -s.amount if s.type == "withdrawal" else s.amount}
            for s in own_savings
        ]
        rows += [
            {"Date": l.disbursed_date.isoformat(), "Description": f"Loan disbursed: {l.purpose}", "Amount": l.amount}
            for l in own_loans
            if l.disbursed_date is not None
        ]
        tables["Transactions"] = pd.DataFrame(rows, columns=["Date", "Description", "Amount"]).sort_values("Date")
    if kind == "comprehensive" and request.include_external_income:
        tables["External Income"] = pd.DataFrame(
            [
                {"Source": i.source, "Category": pretty_label(i.category), "Frequency": i.frequency,
                 "Amount": i.amount, "Verified": "Yes" if i.verified else "No"}
                for i in member.external_incomes
            ],
            columns=["Source", "Category", "Frequency", "Amount", "Verified"],
        )
    if kind == "comprehensive" and request.include_credibility_score:
        score = credibility.score if credibility else member.credibility_score
        trend = credibility.trend if credibility else "stable"
        tables["Credibility"] = pd.DataFrame([{"Score": score, "Trend": trend}])
    return tables


def _to_csv(tables: Dict[str, pd.DataFrame]) -> bytes:
    frames = []
    for section, df in tables.items():
        frames.append(df.assign(Section=section))
    if not frames:
        return b""
    combined = pd.concat(frames, ignore_index=True)
    cols = ["Section"] + [c for c in combined.columns if c != "Section"]
    return combined[cols].to_csv(index=False).encode("utf-8")


_MONEY_COLUMNS = {"Amount", "Monthly Payment", "Balance"}


def _cell(column, value) -> str:
    if column in _MONEY_COLUMNS:
        return format_currency(value)
    return str(value)


def _to_pdf(request: StatementRequest, member: Member, tables: Dict[str, pd.DataFrame], window) -> bytes:
    buf = io.BytesIO()
    styles = getSampleStyleSheet()
    doc = SimpleDocTemplate(buf, pagesize=A4, leftMargin=36, rightMargin=36, topMargin=36, bottomMargin=36)
    title = STATEMENT_TYPES.get(request.statement_type, "Statement")
    story = [Paragraph(f"<b>{title}</b>", styles["Title"]), Spacer(1, 6)]
    # Paragraph text is parsed as markup
    story.append(Paragraph(escape(f"{member.name} ({member.member_number})"), styles["Normal"]))
    start, end = window
    period = f"{start.isoformat() if start else 'Beginning'} to {end.isoformat() if end else 'Today'}"
    story += [Paragraph(f"Period: {period}", styles["Normal"]), Spacer(1, 12)]
    for section, df in tables.items():
        story += [Paragraph(f"<b>{section}</b>", styles["Heading3"]), Spacer(1, 6)]
        if df.empty:
            story += [Paragraph("No records in this period.", styles["Normal"]), Spacer(1, 12)]
            continue
        rows = [list(df.columns)] + [[_cell(c, v) for c, v in zip(df.columns, row)] for row in df.itertuples(index=False)]
        t = Table(rows, hAlign="LEFT")
        t.setStyle(_TABLE_STYLE)
        story += [t, Spacer(1, 12)]
    story += [Spacer(1, 12), Paragraph(f"<font size=8>{DISCLAIMER}</font>", styles["Normal"])]
    doc.build(story)
    return buf.getvalue()


def export_statement(
    request: StatementRequest,
    member: Member,
    loans: List[Loan],
    savings: List[Savings],
    credibility: Optional[CredibilityMetrics] = None,
    today: Optional[date] = None,
) -> Tuple[bytes, str, str]:
    """Render a statement; returns ``(data, mime_type, file_name)``.

    Only PDF and CSV can be produced. Other formats raise ``ValueError``.
    """
    if request.format not in EXPORT_FORMATS:
        raise ValueError(f"statement format {request.format!r} is not supported for export")
    tables = statement_tables(request, member, loans, savings, credibility, today)
    if request.format == "csv":
        data = _to_csv(tables)
    else:
        data = _to_pdf(request, member, tables, date_window(request, today))
    name = f"{member.member_number}_{request.statement_type}.{request.format}"
    logger.info("Exported %s statement for %s (%d bytes)", request.format, member.member_number, len(data))
    return data, EXPORT_FORMATS[request.format], name
