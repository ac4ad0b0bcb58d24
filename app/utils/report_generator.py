# [ Imports ]
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas
from reportlab.lib.colors import HexColor
from reportlab.platypus import Paragraph
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.enums import TA_JUSTIFY
from datetime import datetime
from io import BytesIO
from typing import List, Tuple
import logging

from app.core.config import settings
from app.schemas.metrics import DetailedReport

logger = logging.getLogger(__name__)


# ==========================================
# Design
# ==========================================
class ReportDesign:
    PRIMARY = '#1b4332'      # Deep green (titles)
    SECONDARY = '#40916c'    # Green (rules)
    ACCENT = '#2d6a4f'       # Amount box border
    DARK = '#343a40'
    LIGHT = '#ffffff'
    GRAY = '#6c757d'
    BACKGROUND = '#f1faee'
    ROW_ALT = '#e9f5ec'

    FONT_BOLD = "Helvetica-Bold"
    FONT_REGULAR = "Helvetica"
    FONT_ITALIC = "Helvetica-Oblique"

    MARGIN_LEFT = 2.2*cm
    MARGIN_RIGHT = 2.2*cm
    MARGIN_TOP = 2.2*cm
    MARGIN_BOTTOM = 2.2*cm

    SPACE_L = 1.2*cm
    SPACE_M = 0.8*cm
    SPACE_S = 0.5*cm

    ROW_HEIGHT = 0.6*cm


CONTENT_WIDTH = A4[0] - ReportDesign.MARGIN_LEFT - ReportDesign.MARGIN_RIGHT


# ==========================================
# Drawing helpers
# ==========================================

def draw_rule(c, y_pos, x_start=None, x_end=None):
    """Double rule (thick over thin) across the content width"""
    x_start = ReportDesign.MARGIN_LEFT if x_start is None else x_start
    x_end = A4[0] - ReportDesign.MARGIN_RIGHT if x_end is None else x_end
    c.setStrokeColor(HexColor(ReportDesign.SECONDARY))
    c.setLineWidth(1.5)
    c.line(x_start, y_pos, x_end, y_pos)
    c.setLineWidth(0.4)
    c.line(x_start, y_pos - 0.08*cm, x_end, y_pos - 0.08*cm)
    return y_pos - 0.2*cm


def draw_header(c, title, subtitle, y_position):
    c.setFont(ReportDesign.FONT_BOLD, 11)
    c.setFillColor(HexColor(ReportDesign.SECONDARY))
    c.drawString(ReportDesign.MARGIN_LEFT, y_position, settings.APP_NAME.upper())

    y_position -= ReportDesign.SPACE_M
    c.setFont(ReportDesign.FONT_BOLD, 20)
    c.setFillColor(HexColor(ReportDesign.PRIMARY))
    c.drawString(ReportDesign.MARGIN_LEFT, y_position, title)

    if subtitle:
        y_position -= ReportDesign.SPACE_S
        c.setFont(ReportDesign.FONT_REGULAR, 10)
        c.setFillColor(HexColor(ReportDesign.GRAY))
        c.drawString(ReportDesign.MARGIN_LEFT, y_position, subtitle)

    y_position = draw_rule(c, y_position - 0.4*cm)
    return y_position - ReportDesign.SPACE_M


def draw_section_title(c, text, y_position):
    c.setFont(ReportDesign.FONT_BOLD, 13)
    c.setFillColor(HexColor(ReportDesign.PRIMARY))
    c.drawString(ReportDesign.MARGIN_LEFT, y_position, text)
    return y_position - ReportDesign.SPACE_S - 0.1*cm


def draw_paragraph(c, text, y_position, size=10):
    styles = getSampleStyleSheet()
    style = styles['Normal']
    style.fontName = ReportDesign.FONT_REGULAR
    style.fontSize = size
    style.leading = size + 3
    style.alignment = TA_JUSTIFY
    style.textColor = HexColor(ReportDesign.DARK)

    p = Paragraph(text, style)
    w, h = p.wrap(CONTENT_WIDTH, 20*cm)
    p.drawOn(c, ReportDesign.MARGIN_LEFT, y_position - h)
    return y_position - h - ReportDesign.SPACE_S


def draw_key_values(c, rows: List[Tuple[str, str]], y_position):
    """Two-column label/value listing with alternating row shading"""
    for index, (label, value) in enumerate(rows):
        if index % 2 == 0:
            c.setFillColor(HexColor(ReportDesign.ROW_ALT))
            c.rect(ReportDesign.MARGIN_LEFT, y_position - 0.18*cm, CONTENT_WIDTH, ReportDesign.ROW_HEIGHT,
                   stroke=0, fill=1)
        c.setFillColor(HexColor(ReportDesign.DARK))
        c.setFont(ReportDesign.FONT_REGULAR, 10)
        c.drawString(ReportDesign.MARGIN_LEFT + 0.2*cm, y_position, label)
        c.setFont(ReportDesign.FONT_BOLD, 10)
        c.drawRightString(A4[0] - ReportDesign.MARGIN_RIGHT - 0.2*cm, y_position, value)
        y_position -= ReportDesign.ROW_HEIGHT
    return y_position - ReportDesign.SPACE_S


def draw_table(c, headers: List[str], widths: List[float], rows: List[List[str]], y_position):
    """Simple table; starts a new page when the current one is full"""
    def draw_headers(y):
        c.setFillColor(HexColor(ReportDesign.PRIMARY))
        c.rect(ReportDesign.MARGIN_LEFT, y - 0.18*cm, CONTENT_WIDTH, ReportDesign.ROW_HEIGHT, stroke=0, fill=1)
        c.setFillColor(HexColor(ReportDesign.LIGHT))
        c.setFont(ReportDesign.FONT_BOLD, 9)
        x = ReportDesign.MARGIN_LEFT + 0.15*cm
        for header, width in zip(headers, widths):
            c.drawString(x, y, header)
            x += width
        return y - ReportDesign.ROW_HEIGHT

    y_position = draw_headers(y_position)
    for index, row in enumerate(rows):
        if y_position < ReportDesign.MARGIN_BOTTOM + ReportDesign.ROW_HEIGHT:
            c.showPage()
            y_position = draw_headers(A4[1] - ReportDesign.MARGIN_TOP)
        if index % 2 == 1:
            c.setFillColor(HexColor(ReportDesign.ROW_ALT))
            c.rect(ReportDesign.MARGIN_LEFT, y_position - 0.18*cm, CONTENT_WIDTH, ReportDesign.ROW_HEIGHT,
                   stroke=0, fill=1)
        c.setFillColor(HexColor(ReportDesign.DARK))
        c.setFont(ReportDesign.FONT_REGULAR, 9)
        x = ReportDesign.MARGIN_LEFT + 0.15*cm
        for value, width in zip(row, widths):
            max_chars = max(int(width / (0.18*cm)), 4)
            text = value if len(value) <= max_chars else value[:max_chars - 1] + "…"
            c.drawString(x, y_position, text)
            x += width
        y_position -= ReportDesign.ROW_HEIGHT
    return y_position - ReportDesign.SPACE_S


def ensure_space(c, y_position, needed):
    if y_position - needed < ReportDesign.MARGIN_BOTTOM:
        c.showPage()
        return A4[1] - ReportDesign.MARGIN_TOP
    return y_position


def draw_document_code(c, code):
    c.setFont(ReportDesign.FONT_REGULAR, 8)
    c.setFillColor(HexColor(ReportDesign.GRAY))
    c.drawCentredString(A4[0] / 2, ReportDesign.MARGIN_BOTTOM / 2, code)


def format_amount(amount) -> str:
    return f"{amount:,.2f}"


# ==========================================
# Receipt
# ==========================================

async def generate_receipt_pdf(payment_data: dict, household_data: dict, collector_data: dict = None) -> bytes:
    """Single-page payment receipt"""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)

    try:
        y_pos = A4[1] - ReportDesign.MARGIN_TOP
        doc_code = f"RCP-{payment_data.get('transaction_reference', '')}"

        y_pos = draw_header(c, "PAYMENT RECEIPT", f"Reference {payment_data.get('transaction_reference', '')}", y_pos)

        # Amount box
        box_height = 2.6*cm
        box_y = y_pos - box_height
        c.setFillColor(HexColor(ReportDesign.BACKGROUND))
        c.roundRect(ReportDesign.MARGIN_LEFT, box_y, CONTENT_WIDTH, box_height, 0.3*cm, stroke=0, fill=1)
        c.setStrokeColor(HexColor(ReportDesign.ACCENT))
        c.setLineWidth(1.5)
        c.roundRect(ReportDesign.MARGIN_LEFT, box_y, CONTENT_WIDTH, box_height, 0.3*cm, stroke=1, fill=0)
        c.setFont(ReportDesign.FONT_BOLD, 28)
        c.setFillColor(HexColor(ReportDesign.ACCENT))
        c.drawCentredString(A4[0] / 2, box_y + 1.0*cm, format_amount(payment_data.get('amount', 0)))
        y_pos = box_y - ReportDesign.SPACE_L

        payment_date = payment_data.get('payment_date')
        if isinstance(payment_date, str):
            payment_date = datetime.fromisoformat(payment_date)
        date_text = payment_date.strftime('%Y-%m-%d %H:%M') if payment_date else "-"

        y_pos = draw_paragraph(
            c,
            f"Received from <b>{household_data.get('name', '-')}</b> the amount above for the waste "
            f"collection service request <b>{payment_data.get('service_request_id') or '-'}</b>.",
            y_pos,
            size=11,
        )

        rows = [
            ("Payment method", str(payment_data.get('payment_method', '-')).replace('_', ' ').title()),
            ("Status", str(payment_data.get('status', '-'))),
            ("Payment date", date_text),
            ("Household", household_data.get('name', '-')),
            ("Address", household_data.get('address') or '-'),
        ]
        if collector_data:
            rows.append(("Collector", collector_data.get('name', '-')))
        draw_key_values(c, rows, y_pos)

        draw_document_code(c, doc_code)
        c.showPage()
        c.save()

        pdf_bytes = buffer.getvalue()
        logger.info(f"Receipt generated for payment {payment_data.get('id')}")
        return pdf_bytes

    except Exception as e:
        logger.error(f"Failed to render receipt: {e}")
        raise
    finally:
        buffer.close()


# ==========================================
# Municipality / platform report
# ==========================================

async def generate_report_pdf(title: str, report: DetailedReport) -> bytes:
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(title)

    try:
        y_pos = A4[1] - ReportDesign.MARGIN_TOP
        subtitle = (
            f"{report.municipality_name}  |  {report.start_date:%Y-%m-%d} to {report.end_date:%Y-%m-%d}"
            f"  |  generated {report.generated_at:%Y-%m-%d %H:%M} UTC"
        )
        y_pos = draw_header(c, title, subtitle, y_pos)

        data = report.collection_data
        y_pos = draw_section_title(c, "Collections", y_pos)
        y_pos = draw_key_values(c, [
            ("Collections", str(data.total_collections)),
            ("Total weight (kg)", format_amount(data.total_weight)),
            ("Average weight (kg)", format_amount(data.average_weight)),
            ("Pending requests", str(data.pending_requests)),
            ("Completed requests", str(data.completed_requests)),
        ], y_pos)

        if data.weight_by_waste_type:
            y_pos = ensure_space(c, y_pos, ReportDesign.ROW_HEIGHT * (len(data.weight_by_waste_type) + 2))
            y_pos = draw_section_title(c, "Weight by waste type", y_pos)
            y_pos = draw_key_values(c, [
                (waste_type.title(), format_amount(weight))
                for waste_type, weight in sorted(data.weight_by_waste_type.items())
            ], y_pos)

        metrics = report.metrics
        performance = report.performance
        y_pos = ensure_space(c, y_pos, ReportDesign.ROW_HEIGHT * 12)
        y_pos = draw_section_title(c, "Performance", y_pos)
        y_pos = draw_key_values(c, [
            ("Households (active / total)", f"{metrics.active_households} / {metrics.total_households}"),
            ("Collectors (active / total)", f"{metrics.active_collectors} / {metrics.total_collectors}"),
            ("Collection efficiency (%)", format_amount(performance.collection_efficiency)),
            ("Average response time (h)", format_amount(performance.average_response_time_hours)),
            ("Customer satisfaction (1-5)", format_amount(performance.customer_satisfaction)),
            ("Disputes (open / total)", f"{metrics.open_disputes} / {metrics.total_disputes}"),
        ], y_pos)

        y_pos = ensure_space(c, y_pos, ReportDesign.ROW_HEIGHT * 4)
        y_pos = draw_section_title(c, f"Underserved households ({len(report.underserved_areas)})", y_pos)
        if report.underserved_areas:
            draw_table(
                c,
                ["Household", "Address", "Days", "Pending", "Coverage"],
                [4.5*cm, 6.1*cm, 2.0*cm, 2.0*cm, 2.0*cm],
                [
                    [
                        area.household_name,
                        area.address or "-",
                        str(area.days_since_last_collection),
                        str(area.pending_requests),
                        f"{area.coverage_score}%",
                    ]
                    for area in report.underserved_areas
                ],
                y_pos,
            )
        else:
            draw_paragraph(c, "No household is currently underserved.", y_pos)

        draw_document_code(c, f"RPT{datetime.utcnow().strftime('%Y%m%d%H%M%S')}")
        c.showPage()
        c.save()

        pdf_bytes = buffer.getvalue()
        logger.info(f"Report '{title}' rendered ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    except Exception as e:
        logger.error(f"Failed to render report '{title}': {e}")
        raise
    finally:
        buffer.close()
