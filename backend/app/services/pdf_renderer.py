"""
PDF Renderer - reportlab layouts for generated documents, admit cards and fee receipts

All render_* methods are synchronous and CPU bound; endpoints call them through
run_in_threadpool. Each returns the finished PDF as bytes.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime, date
from xml.sax.saxutils import escape
import io

import qrcode
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4, A5, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

from app.core.config import settings
from app.core.exceptions import DocumentGenerationError
from app.core.logging_config import logger
from app.services.document_catalog import DOCUMENT_TYPES


PRIMARY = colors.HexColor("#1a365d")
MUTED = colors.HexColor("#4a5568")
LIGHT = colors.HexColor("#718096")
BORDER = colors.HexColor("#cbd5e0")
HEADER_BG = colors.HexColor("#e2e8f0")

BANGLA_FONT_NAME = "Bangla"


def _text(value: Any) -> str:
    """Escape user supplied text for Paragraph markup"""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%d/%m/%Y")
    return escape(str(value))


def _label(key: str) -> str:
    return key.replace("_", " ").replace("-", " ").title()


class PDFRenderer:
    """Generate school documents as PDF using reportlab platypus"""

    def __init__(self):
        self._styles = None
        self._bangla_font: Optional[str] = None

    def _register_bangla_font(self) -> str:
        """Register the configured Bangla TTF once; fall back to Helvetica"""
        if self._bangla_font is not None:
            return self._bangla_font

        self._bangla_font = "Helvetica"
        font_path = settings.PDF_BANGLA_FONT_PATH
        if font_path:
            try:
                pdfmetrics.registerFont(TTFont(BANGLA_FONT_NAME, font_path))
                self._bangla_font = BANGLA_FONT_NAME
            except Exception as e:
                logger.warning(f"[PDF] Could not register Bangla font {font_path}: {e}")
        return self._bangla_font

    @property
    def styles(self) -> Dict[str, ParagraphStyle]:
        if self._styles is None:
            base = getSampleStyleSheet()
            bangla_font = self._register_bangla_font()
            self._styles = {
                "school": ParagraphStyle(
                    "SchoolName", parent=base["Heading1"], fontSize=18,
                    textColor=PRIMARY, alignment=TA_CENTER, spaceAfter=2,
                ),
                "school_bn": ParagraphStyle(
                    "SchoolNameBn", parent=base["Normal"], fontName=bangla_font, fontSize=12,
                    textColor=MUTED, alignment=TA_CENTER, spaceAfter=2,
                ),
                "address": ParagraphStyle(
                    "SchoolAddress", parent=base["Normal"], fontSize=9,
                    textColor=LIGHT, alignment=TA_CENTER, spaceAfter=8,
                ),
                "title": ParagraphStyle(
                    "DocTitle", parent=base["Heading1"], fontSize=22,
                    textColor=PRIMARY, alignment=TA_CENTER, spaceBefore=6, spaceAfter=4,
                ),
                "subtitle_bn": ParagraphStyle(
                    "DocSubtitleBn", parent=base["Heading2"], fontName=bangla_font, fontSize=14,
                    textColor=MUTED, alignment=TA_CENTER, spaceAfter=14,
                ),
                "recipient": ParagraphStyle(
                    "Recipient", parent=base["Heading1"], fontSize=20,
                    textColor=colors.HexColor("#2d3748"), alignment=TA_CENTER, spaceBefore=6, spaceAfter=10,
                ),
                "body": ParagraphStyle(
                    "Body", parent=base["Normal"], fontSize=11,
                    textColor=MUTED, alignment=TA_CENTER, spaceAfter=6,
                ),
                "cell": ParagraphStyle(
                    "Cell", parent=base["Normal"], fontName=bangla_font, fontSize=10,
                    textColor=MUTED, alignment=TA_LEFT,
                ),
                "small": ParagraphStyle(
                    "Small", parent=base["Normal"], fontSize=8,
                    textColor=LIGHT, alignment=TA_CENTER, spaceAfter=2,
                ),
            }
        return self._styles

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    @staticmethod
    def qr_image(data: str, size: float = 3 * cm) -> Image:
        """QR code as a reportlab flowable"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(data)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        buffer.seek(0)
        return Image(buffer, width=size, height=size)

    def _school_header(self, school: Any) -> List[Any]:
        if school is None:
            return []
        content = [Paragraph(_text(school.name), self.styles["school"])]
        if getattr(school, "name_bn", None):
            content.append(Paragraph(_text(school.name_bn), self.styles["school_bn"]))
        details = [d for d in (getattr(school, "address", None), getattr(school, "phone", None)) if d]
        if getattr(school, "eiin", None):
            details.append(f"EIIN: {school.eiin}")
        if details:
            content.append(Paragraph(" | ".join(_text(d) for d in details), self.styles["address"]))
        return content

    def _key_value_table(self, rows: List[List[Any]], col_widths: List[float]) -> Table:
        cell = self.styles["cell"]
        data = [[Paragraph(f"<b>{_text(k)}</b>", cell), Paragraph(_text(v), cell)] for k, v in rows]
        table = Table(data, colWidths=col_widths)
        table.setStyle(TableStyle([
            ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
            ("BACKGROUND", (0, 0), (0, -1), HEADER_BG),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("TOPPADDING", (0, 0), (-1, -1), 5),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
        ]))
        return table

    def _verification_footer(self, verification_code: str) -> List[Any]:
        verify_url = settings.get_verify_url(verification_code)
        return [
            Spacer(1, 12),
            self.qr_image(verify_url),
            Paragraph(f"Verification Code: <b>{_text(verification_code)}</b>", self.styles["small"]),
            Paragraph(f"Verify at: {_text(verify_url)}", self.styles["small"]),
            Paragraph(f"Issued on: {datetime.utcnow().strftime('%d %B %Y')}", self.styles["small"]),
        ]

    @staticmethod
    def _build(content: List[Any], pagesize, margin: float = 1.5 * cm) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=pagesize,
            rightMargin=margin,
            leftMargin=margin,
            topMargin=margin,
            bottomMargin=margin,
        )
        doc.build(content)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------

    def render_document(
        self,
        document_type: str,
        title: str,
        verification_code: str,
        recipient_name: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        school: Any = None,
        orientation: str = "portrait",
    ) -> bytes:
        """
        Generic certificate/letter layout.

        Title with the Bangla type name under it, the recipient, a key/value
        table of ``data`` and a QR verification footer.
        """
        entry = DOCUMENT_TYPES.get(document_type, {})
        pagesize = landscape(A4) if orientation == "landscape" else A4

        try:
            content = self._school_header(school)
            content.append(Paragraph(_text(title), self.styles["title"]))
            if entry.get("name_bn"):
                content.append(Paragraph(_text(entry["name_bn"]), self.styles["subtitle_bn"]))

            if recipient_name:
                content.append(Paragraph("This is to certify that", self.styles["body"]))
                content.append(Paragraph(f"<b>{_text(recipient_name)}</b>", self.styles["recipient"]))

            rows = [[_label(k), v] for k, v in (data or {}).items() if not isinstance(v, (dict, list))]
            if rows:
                content.append(Spacer(1, 8))
                content.append(self._key_value_table(rows, [5 * cm, 10 * cm]))

            content.extend(self._verification_footer(verification_code))
            return self._build(content, pagesize)
        except Exception as e:
            logger.error(f"[PDF] Error rendering {document_type}: {e}", exc_info=True)
            raise DocumentGenerationError(f"Failed to render document: {e}", doc_type=document_type)

    def render_admit_card(self, card: Any, school: Any = None) -> bytes:
        """Admit card with candidate details, exam schedule and QR code"""
        try:
            content = self._school_header(school)
            content.append(Paragraph("ADMIT CARD", self.styles["title"]))
            content.append(Paragraph("প্রবেশপত্র", self.styles["subtitle_bn"]))

            rows = [
                ["Card Number", card.card_number],
                ["Candidate", card.student_name],
            ]
            if card.student_name_bn:
                rows.append(["নাম", card.student_name_bn])
            rows.extend([
                ["Roll Number", card.roll_number],
                ["Registration", card.registration_number or "-"],
                ["Class / Section", f"{card.class_name or '-'} / {card.section or '-'}"],
                ["Examination", card.exam_name],
                ["Exam Type", card.exam_type],
                ["Exam Center", card.exam_center],
                ["Exam Date", card.exam_date or "-"],
                ["Valid Until", card.valid_until or "-"],
            ])
            content.append(self._key_value_table(rows, [4.5 * cm, 9 * cm]))

            subjects = card.subjects or []
            if subjects:
                content.append(Spacer(1, 10))
                schedule = [["Subject", "Date", "Time"]]
                for subject in subjects:
                    if isinstance(subject, dict):
                        schedule.append([
                            str(subject.get("name") or ""),
                            str(subject.get("date") or ""),
                            str(subject.get("time") or ""),
                        ])
                    else:
                        schedule.append([str(subject), "", ""])
                table = Table(schedule, colWidths=[6.5 * cm, 3.5 * cm, 3.5 * cm])
                table.setStyle(TableStyle([
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
                    ("FONTSIZE", (0, 0), (-1, -1), 9),
                ]))
                content.append(table)

            content.extend(self._verification_footer(card.verification_code))
            return self._build(content, A4)
        except Exception as e:
            logger.error(f"[PDF] Error rendering admit card {card.card_number}: {e}", exc_info=True)
            raise DocumentGenerationError(f"Failed to render admit card: {e}", doc_type="admit-card")

    def render_fee_receipt(self, receipt: Any, items: List[Any], school: Any = None, student: Any = None) -> bytes:
        """Fee receipt with line items and totals (BDT)"""
        try:
            content = self._school_header(school)
            content.append(Paragraph("FEE RECEIPT", self.styles["title"]))
            content.append(Paragraph("ফি রসিদ", self.styles["subtitle_bn"]))

            rows = [["Receipt No", receipt.receipt_number]]
            if student is not None:
                rows.extend([
                    ["Student", student.name],
                    ["Student ID", student.student_id],
                    ["Class / Section", f"{student.class_name} / {student.section or '-'}"],
                ])
            rows.extend([
                ["Month", receipt.month or "-"],
                ["Academic Year", receipt.academic_year or "-"],
                ["Payment Date", receipt.payment_date or "-"],
                ["Payment Method", receipt.payment_method or "-"],
            ])
            content.append(self._key_value_table(rows, [4.5 * cm, 9 * cm]))
            content.append(Spacer(1, 10))

            lines = [["#", "Description", "Amount (BDT)"]]
            for index, item in enumerate(items, start=1):
                name = item.name if not item.name_bn else f"{item.name} ({item.name_bn})"
                lines.append([str(index), Paragraph(_text(name), self.styles["cell"]), f"{item.amount:,.2f}"])
            lines.append(["", "Total", f"{receipt.total_amount:,.2f}"])
            lines.append(["", "Paid", f"{receipt.paid_amount:,.2f}"])
            lines.append(["", "Due", f"{receipt.due_amount:,.2f}"])

            table = Table(lines, colWidths=[1.2 * cm, 8.8 * cm, 3.5 * cm])
            table.setStyle(TableStyle([
                ("BACKGROUND", (0, 0), (-1, 0), HEADER_BG),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTNAME", (1, -3), (-1, -1), "Helvetica-Bold"),
                ("ALIGN", (2, 0), (2, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
            ]))
            content.append(table)
            content.append(Spacer(1, 10))
            content.append(Paragraph(f"Status: <b>{_text(receipt.status).upper()}</b>", self.styles["body"]))
            content.append(Paragraph(
                f"Generated on {datetime.utcnow().strftime('%d %B %Y')}",
                self.styles["small"],
            ))
            return self._build(content, A5)
        except Exception as e:
            logger.error(f"[PDF] Error rendering fee receipt {receipt.receipt_number}: {e}", exc_info=True)
            raise DocumentGenerationError(f"Failed to render fee receipt: {e}", doc_type="fee-receipt")


# Singleton instance
pdf_renderer = PDFRenderer()
