"""
Exportación del reporte de liquidación de cuentas

- Excel (openpyxl): hojas Resumen, Cuentas por Cobrar, Cuentas por Pagar
- PDF (reportlab): tablas paginadas con las mismas tres secciones, horizontal

Los nombres de archivo incluyen la fecha de corte: liquidacion-cuentas-YYYY-MM-DD
"""

import io
from datetime import date, datetime
from decimal import Decimal
from typing import Any, List, Sequence

from fastapi import Response
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ledgerpos.core.config import settings
from ledgerpos.modules.settlement.schemas import SettlementReport

REPORT_TITLE = "Reporte de Liquidación de Cuentas"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

RECEIVABLE_HEADERS = ["Cliente", "Fecha Venta", "Total", "Pagado", "Saldo Pendiente", "Días Vencido"]
PAYABLE_HEADERS = ["Proveedor", "Fecha Orden", "Total", "Pagado", "Saldo Pendiente", "Días Vencido"]

HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")


def build_filename(cutoff_date: date, extension: str) -> str:
    return f"liquidacion-cuentas-{cutoff_date.isoformat()}.{extension}"


def format_money(value: Decimal) -> str:
    return f"$ {value:,.2f}"


def format_date(value: Any) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime("%d/%m/%Y")


def _summary_rows(report: SettlementReport) -> List[List[Any]]:
    summary = report.summary
    return [
        ["Fecha de corte", format_date(report.cutoff_date)],
        ["Moneda", report.currency],
        ["Total por Cobrar", summary.total_receivable],
        ["Total por Pagar", summary.total_payable],
        ["Balance Neto", summary.net_balance],
        ["Cuentas por Cobrar", len(report.accounts_receivable)],
        ["Cuentas por Pagar", len(report.accounts_payable)],
    ]


def _receivable_rows(report: SettlementReport) -> List[List[Any]]:
    return [
        [a.customer_name, format_date(a.sale_date), a.total, a.paid, a.balance, a.days_overdue]
        for a in report.accounts_receivable
    ]


def _payable_rows(report: SettlementReport) -> List[List[Any]]:
    return [
        [a.supplier_name, format_date(a.order_date), a.total, a.paid, a.balance, a.days_overdue]
        for a in report.accounts_payable
    ]


# ===== EXCEL =====

def _write_sheet(sheet, headers: Sequence[str], rows: List[List[Any]]) -> None:
    sheet.append(list(headers))
    for cell in sheet[1]:
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = Alignment(horizontal="center")

    for row in rows:
        sheet.append(row)

    for index, header in enumerate(headers, start=1):
        width = max([len(str(header))] + [len(str(row[index - 1])) for row in rows])
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 4, 50)


def build_settlement_workbook(report: SettlementReport) -> bytes:
    workbook = Workbook()

    summary_sheet = workbook.active
    summary_sheet.title = "Resumen"
    _write_sheet(summary_sheet, ["Concepto", "Valor"], _summary_rows(report))

    receivable_sheet = workbook.create_sheet("Cuentas por Cobrar")
    _write_sheet(receivable_sheet, RECEIVABLE_HEADERS, _receivable_rows(report))

    payable_sheet = workbook.create_sheet("Cuentas por Pagar")
    _write_sheet(payable_sheet, PAYABLE_HEADERS, _payable_rows(report))

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


# ===== PDF =====

def _pdf_table(headers: Sequence[str], rows: List[List[Any]]) -> Table:
    data = [list(headers)] + [
        [format_money(value) if isinstance(value, Decimal) else str(value) for value in row]
        for row in rows
    ]
    # repeatRows repite el encabezado en cada página
    table = Table(data, repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#1F4E78")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F2F2F2")]),
    ]))
    return table


def build_settlement_pdf(report: SettlementReport) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=15 * mm, rightMargin=15 * mm,
        topMargin=15 * mm, bottomMargin=15 * mm,
        title=REPORT_TITLE,
        author=settings.COMPANY_NAME
    )
    styles = getSampleStyleSheet()

    story = [
        Paragraph(REPORT_TITLE, styles["Title"]),
        Paragraph(f"{settings.COMPANY_NAME} - Fecha de corte: {format_date(report.cutoff_date)}", styles["Normal"]),
        Spacer(1, 6 * mm),
        Paragraph("Resumen", styles["Heading2"]),
        _pdf_table(["Concepto", "Valor"], _summary_rows(report)),
        Spacer(1, 6 * mm),
        Paragraph("Cuentas por Cobrar", styles["Heading2"]),
        _pdf_table(RECEIVABLE_HEADERS, _receivable_rows(report)),
        Spacer(1, 6 * mm),
        Paragraph("Cuentas por Pagar", styles["Heading2"]),
        _pdf_table(PAYABLE_HEADERS, _payable_rows(report)),
    ]
    doc.build(story)
    return buffer.getvalue()


# ===== RESPUESTAS HTTP =====

def create_xlsx_response(report: SettlementReport) -> Response:
    return Response(
        content=build_settlement_workbook(report),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={build_filename(report.cutoff_date, 'xlsx')}"}
    )


def create_pdf_response(report: SettlementReport) -> Response:
    return Response(
        content=build_settlement_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={build_filename(report.cutoff_date, 'pdf')}"}
    )
