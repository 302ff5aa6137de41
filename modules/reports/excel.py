from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter


def _create_styles():
    """Create reusable style definitions."""
    thin_border = Side(style="thin", color="000000")
    return {
        "title_font": Font(bold=True, size=14),
        "section_font": Font(bold=True, size=11),
        "header_font": Font(bold=True, size=10),
        "header_fill": PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid"),
        "warning_fill": PatternFill(start_color="FFF2CC", end_color="FFF2CC", fill_type="solid"),
        "total_fill": PatternFill(start_color="E2EFDA", end_color="E2EFDA", fill_type="solid"),
        "subtotal_font": Font(bold=True),
        "border": Border(left=thin_border, right=thin_border, top=thin_border, bottom=thin_border),
        "center_align": Alignment(horizontal="center", vertical="center"),
        "right_align": Alignment(horizontal="right", vertical="center"),
        "left_align": Alignment(horizontal="left", vertical="center"),
    }


def _apply_header_row(ws, row: int, columns: List[str], styles: dict):
    """Apply formatting to a header row."""
    for col_idx, col_name in enumerate(columns, start=1):
        cell = ws.cell(row=row, column=col_idx, value=col_name)
        cell.font = styles["header_font"]
        cell.fill = styles["header_fill"]
        cell.border = styles["border"]
        cell.alignment = styles["center_align"]


def _apply_data_row(ws, row: int, values: List[Any], styles: dict, alignments: List[str] = None):
    """Apply formatting to a data row."""
    for col_idx, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col_idx, value=value)
        cell.border = styles["border"]
        if alignments and col_idx <= len(alignments):
            align_type = alignments[col_idx - 1]
            cell.alignment = styles.get(f"{align_type}_align", styles["left_align"])


def _set_column_widths(ws, widths: List[int]):
    """Set column widths."""
    for col_idx, width in enumerate(widths, start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width


def _format_number(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:,.{decimals}f}"


def _format_currency(value: Optional[float]) -> str:
    """Format an LKR amount."""
    if value is None:
        return "-"
    return f"LKR {value:,.2f}"


def _format_date(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d")
    return str(value)[:10]


def _write_section_table(ws, row: int, title: str, columns: List[str], rows: List[List[Any]], styles: dict) -> int:
    """Write a titled three-column table and return the next free row."""
    ws.cell(row=row, column=1, value=title).font = styles["section_font"]
    row += 1
    _apply_header_row(ws, row, columns, styles)
    row += 1
    for values in rows:
        _apply_data_row(ws, row, values, styles, ["left", "right", "center"])
        row += 1
    return row + 1


def build_royalty_excel(data: Dict[str, Any]) -> BytesIO:
    """Generate a one-sheet royalty statement.

    ``data`` is a saved record or an unsaved calculation report. The rates and
    warning sections are written only when ``rates_applied`` / ``warning_message``
    are present, which is the case for unsaved calculations.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Royalty Statement"
    styles = _create_styles()

    current_row = 1
    ws.cell(row=current_row, column=1, value="ROYALTY STATEMENT").font = styles["title_font"]
    ws.merge_cells(start_row=current_row, start_column=1, end_row=current_row, end_column=3)
    current_row += 2

    header_info = []
    if data.get("id") is not None:
        header_info.append(("Record No:", f"#{data['id']}"))
    if data.get("miner_id") is not None:
        header_info.append(("Miner:", data.get("miner_name") or f"#{data['miner_id']}"))
    header_info += [
        ("Calculation Date:", _format_date(data.get("calculation_date"))),
        ("Payment Due Date:", _format_date(data.get("payment_due_date"))),
    ]
    for label, value in header_info:
        ws.cell(row=current_row, column=1, value=label).font = Font(bold=True)
        ws.cell(row=current_row, column=2, value=value)
        current_row += 1

    warning_message = data.get("warning_message")
    if warning_message:
        current_row += 1
        warning_cell = ws.cell(row=current_row, column=1, value=f"⚠ {warning_message}")
        warning_cell.fill = styles["warning_fill"]
        ws.merge_cells(start_row=current_row, start_column=1, end_row=current_row, end_column=3)
        current_row += 1

    current_row += 1

    current_row = _write_section_table(
        ws,
        current_row,
        "EXPLOSIVE USAGE",
        ["Input", "Value", "Unit"],
        [
            ["Water Gel", _format_number(data.get("water_gel")), "kg"],
            ["NH4NO3", _format_number(data.get("nh4no3")), "kg"],
            ["Powder Factor", _format_number(data.get("powder_factor"), 3), ""],
        ],
        styles,
    )

    rates = data.get("rates_applied")
    if rates:
        current_row = _write_section_table(
            ws,
            current_row,
            "RATES APPLIED",
            ["Rate", "Value", "Unit"],
            [
                ["Royalty Rate", _format_currency(rates.get("royalty_rate_per_cubic_meter")), "per m³"],
                ["SSCL", rates.get("sscl_rate", "-"), ""],
                ["VAT", rates.get("vat_rate", "-"), ""],
            ],
            styles,
        )

    steps = [
        ["Total Explosive Quantity", _format_number(data.get("total_explosive_quantity")), "kg"],
        ["Basic Volume", _format_number(data.get("basic_volume")), "m³"],
        ["Blasted Rock Volume", _format_number(data.get("blasted_rock_volume")), "m³"],
        ["Base Royalty", _format_currency(data.get("base_royalty")), ""],
        ["Royalty with SSCL", _format_currency(data.get("royalty_with_sscl")), ""],
    ]
    current_row = _write_section_table(ws, current_row, "CALCULATION", ["Step", "Value", "Unit"], steps, styles)

    # Total sits directly under the calculation table.
    current_row -= 1
    total_values = ["TOTAL AMOUNT (incl. VAT)", _format_currency(data.get("total_amount_with_vat")), ""]
    _apply_data_row(ws, current_row, total_values, styles, ["left", "right", "center"])
    for col in range(1, 4):
        cell = ws.cell(row=current_row, column=col)
        cell.font = styles["subtotal_font"]
        cell.fill = styles["total_fill"]

    _set_column_widths(ws, [30, 22, 10])

    stream = BytesIO()
    wb.save(stream)
    stream.seek(0)
    return stream
