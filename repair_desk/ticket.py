"""
Design (ticket.py)
- Purpose: Render a repair as a fixed-width plain-text receipt for thermal printers.
- Inputs: RepairRecord, PrinterSettings.
- Outputs: Receipt text (lines joined with "\\n", followed by a paper feed).
- Side effects: None.
"""

import textwrap
from datetime import date
from typing import List

from .config import PAPER_FEED_LINES, SHOP_FOOTER, SHOP_HEADER, TICKET_DATE_FORMAT, TICKET_WIDTH
from .models import PrinterSettings, RepairRecord


def center_text(text: str, width: int = TICKET_WIDTH) -> str:
    # Left padding only; thermal printers don't need trailing spaces
    padding = max(0, width - len(text))
    return " " * (padding // 2) + text


def truncate(text: str, width: int = TICKET_WIDTH) -> str:
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def format_date(value: date) -> str:
    return value.strftime(TICKET_DATE_FORMAT)


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "NO"


def render_ticket(record: RepairRecord, settings: PrinterSettings, width: int = TICKET_WIDTH) -> str:
    divider = "-" * width
    lines: List[str] = []

    if settings.show_logo:
        lines.extend(center_text(line, width) for line in SHOP_HEADER)
    if settings.custom_header:
        lines.append(divider)
        lines.extend(center_text(line.strip(), width) for line in settings.custom_header.split("\n"))
    lines.append(divider)

    lines.append(f"Repair #: {record.sequence_number}")
    lines.append(f"Date: {format_date(record.created_date)}")
    lines.append(f"Status: {record.status.value.upper()}")
    lines.append(divider)

    client = record.client
    lines.append("CLIENT")
    lines.append(f"Name: {client.full_name}")
    lines.append(f"Phone: {client.phone}")
    if client.email:
        lines.append(f"Email: {truncate(client.email, width - len('Email: '))}")
    lines.append(divider)

    lines.append("DEVICE")
    lines.append(f"Article: {record.article}")
    lines.append(f"Brand: {record.brand}")
    lines.append(f"Model: {record.model}")
    if record.serial_imei:
        lines.append(f"Serial/IMEI: {record.serial_imei}")
    lines.append(divider)

    lines.append("PROBLEM DESCRIPTION")
    # Over-long words (URLs, part numbers) stay whole on their own line
    lines.extend(textwrap.wrap(record.problem, width=width, break_long_words=False))
    lines.append(divider)

    lines.append(f"Warranty: {_yes_no(record.warranty)}")
    lines.append(f"Budget requested: {_yes_no(record.request_budget)}")
    if record.delivery_date:
        lines.append(f"Delivered: {format_date(record.delivery_date)}")

    if settings.show_footer:
        lines.append(divider)
        lines.extend(center_text(line, width) for line in SHOP_FOOTER)
    if settings.custom_footer:
        lines.append(divider)
        lines.extend(center_text(line.strip(), width) for line in settings.custom_footer.split("\n"))

    lines.append("\n" * PAPER_FEED_LINES)
    return "\n".join(lines)
