"""
Generación de PDFs con reportlab (platypus)

- Documentos comerciales: cotización, orden de venta, orden de despacho, orden de compra
- Recibo de pago (payslip) de una nómina

Las columnas opcionales (GSTIN, HSN), el color del encabezado de la tabla y
el tamaño de letra salen de la configuración PDF de la empresa.
"""
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from app.modules.settings.schemas import CompanyDetails, PdfSettings, PdfTemplate


def format_amount(value) -> str:
    return f"Rs. {Decimal(str(value or 0)):,.2f}"


def format_quantity(value) -> str:
    value = Decimal(str(value or 0))
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return f"{value.normalize()}"


def address_text(address: Optional[Dict[str, Any]]) -> str:
    if not address:
        return ""
    parts = [address.get("line1"), address.get("line2"), address.get("city"), address.get("state")]
    text = ", ".join(p for p in parts if p)
    if address.get("pincode"):
        text = f"{text} - {address['pincode']}"
    return text


class PdfBuilder:
    """Bloques comunes (encabezado de empresa, tabla de líneas, totales)"""

    def __init__(self, company: CompanyDetails, pdf_settings: PdfSettings):
        self.company = company
        self.settings = pdf_settings
        if pdf_settings.template == PdfTemplate.BW:
            self.accent = colors.black
        else:
            self.accent = colors.HexColor(pdf_settings.accent_color)

        size = pdf_settings.font_size
        styles = getSampleStyleSheet()
        self.normal = ParagraphStyle("doc_normal", parent=styles["Normal"], fontSize=size, leading=size + 3)
        self.small = ParagraphStyle("doc_small", parent=self.normal, fontSize=size - 1, leading=size + 1,
                                    textColor=colors.HexColor("#475569"))
        self.bold = ParagraphStyle("doc_bold", parent=self.normal, fontName="Helvetica-Bold")
        self.right = ParagraphStyle("doc_right", parent=self.normal, alignment=TA_RIGHT)
        self.company_name = ParagraphStyle("doc_company", parent=styles["Title"], fontSize=size + 7,
                                           leading=size + 10, alignment=0, textColor=self.accent)
        self.title = ParagraphStyle("doc_title", parent=styles["Heading2"], fontSize=size + 4,
                                    alignment=TA_RIGHT, textColor=self.accent)
        self.header_cell = ParagraphStyle("doc_header_cell", parent=self.bold, textColor=colors.white)

    def p(self, text: Any, style: Optional[ParagraphStyle] = None) -> Paragraph:
        text = escape(str(text)) if text is not None else ""
        return Paragraph(text.replace("\n", "<br/>"), style or self.normal)

    # ===== BLOQUES =====

    def company_header(self, title: str, meta: List[List[str]]) -> List:
        c = self.company
        lines = [c.address] if c.address else []
        contact = " | ".join(x for x in (c.phone, c.email, c.website) if x)
        if contact:
            lines.append(contact)
        if self.settings.show_gstin and c.gstin:
            lines.append(f"GSTIN: {c.gstin}")

        left = [self.p(c.name or "", self.company_name)] + [self.p(line, self.small) for line in lines]
        right = [self.p(title, self.title)] + [
            self.p(f"{label}: {value}", self.right) for label, value in meta if value
        ]
        table = Table([[left, right]], colWidths=[110 * mm, 70 * mm])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("LINEBELOW", (0, 0), (-1, 0), 1.2, self.accent),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]))
        return [table, Spacer(1, 6)]

    def party_blocks(self, blocks: List[Dict[str, Any]]) -> List:
        """Bloques de contraparte lado a lado: [{label, name, gstin, address, contact}]"""
        cells = []
        for block in blocks:
            content = [self.p(block["label"], self.small), self.p(block.get("name") or "", self.bold)]
            if block.get("address"):
                content.append(self.p(block["address"]))
            if self.settings.show_gstin and block.get("gstin"):
                content.append(self.p(f"GSTIN: {block['gstin']}"))
            contact = block.get("contact") or {}
            contact_line = " | ".join(x for x in (contact.get("name"), contact.get("phone"), contact.get("email")) if x)
            if contact_line:
                content.append(self.p(f"Attn: {contact_line}", self.small))
            cells.append(content)

        width = 180 * mm / max(len(cells), 1)
        table = Table([cells], colWidths=[width] * len(cells))
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOX", (0, 0), (-1, -1), 0.5, colors.grey),
            ("INNERGRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ]))
        return [table, Spacer(1, 8)]

    def items_table(self, items: Iterable, priced: bool = True) -> List:
        show_hsn = self.settings.show_hsn_code
        header = ["#", "Description"]
        widths = [8 * mm, None]
        if show_hsn:
            header.append("HSN")
            widths.append(18 * mm)
        header += ["Qty", "Unit"]
        widths += [16 * mm, 14 * mm]
        if priced:
            header += ["Rate", "GST %", "Amount"]
            widths += [24 * mm, 14 * mm, 28 * mm]

        fixed = sum(w for w in widths if w)
        widths[1] = 180 * mm - fixed

        data = [[self.p(h, self.header_cell) for h in header]]
        for index, item in enumerate(items, start=1):
            description = self.p(item.product_name, self.bold)
            cell = [description]
            if item.description:
                cell.append(self.p(item.description, self.small))
            row = [str(index), cell]
            if show_hsn:
                row.append(item.hsn_code or "")
            row += [format_quantity(item.quantity), item.unit]
            if priced:
                row += [format_amount(item.unit_price), format_quantity(item.tax_rate), format_amount(item.total)]
            data.append(row)

        table = Table(data, colWidths=widths, repeatRows=1)
        style = [
            ("BACKGROUND", (0, 0), (-1, 0), self.accent),
            ("FONTSIZE", (0, 1), (-1, -1), self.settings.font_size),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
            ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ]
        if self.settings.template == PdfTemplate.MODERN:
            style[-1] = ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.lightgrey)
        table.setStyle(TableStyle(style))
        return [table, Spacer(1, 6)]

    def totals_table(self, sub_total, gst_total, total) -> List:
        data = [
            ["Sub Total", format_amount(sub_total)],
            ["GST", format_amount(gst_total)],
            ["Total", format_amount(total)],
        ]
        table = Table(data, colWidths=[40 * mm, 35 * mm], hAlign="RIGHT")
        table.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
            ("FONTSIZE", (0, 0), (-1, -1), self.settings.font_size),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("LINEABOVE", (0, -1), (-1, -1), 1, self.accent),
        ]))
        return [table, Spacer(1, 8)]

    def terms_block(self, terms: Optional[List[str]], description: Optional[str] = None) -> List:
        elements = []
        if description:
            elements += [self.p(description), Spacer(1, 6)]
        if terms:
            elements.append(self.p("Terms & Conditions", self.bold))
            elements += [self.p(f"{i}. {term}", self.small) for i, term in enumerate(terms, start=1)]
            elements.append(Spacer(1, 6))
        return elements

    def bank_block(self) -> List:
        bank = self.company.bank_details
        if not self.settings.show_bank_details or not bank.account_number:
            return []
        return [
            self.p("Bank Details", self.bold),
            self.p(f"{bank.name}, {bank.branch}", self.small),
            self.p(f"A/c No: {bank.account_number}  IFSC: {bank.ifsc}", self.small),
            Spacer(1, 6),
        ]

    def signature_block(self, point_of_contact=None) -> List:
        elements = [Spacer(1, 12), self.p(f"For {self.company.name}", self.bold), Spacer(1, 18)]
        if point_of_contact is not None:
            elements.append(self.p(point_of_contact.name))
            if point_of_contact.designation:
                elements.append(self.p(point_of_contact.designation, self.small))
            contact = " | ".join(x for x in (point_of_contact.phone, point_of_contact.email) if x)
            if contact:
                elements.append(self.p(contact, self.small))
        else:
            elements.append(self.p("Authorised Signatory", self.small))
        return elements

    def build(self, elements: List, title: str) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer, pagesize=A4, title=title,
            leftMargin=15 * mm, rightMargin=15 * mm, topMargin=15 * mm, bottomMargin=15 * mm
        )
        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes


# ===== DOCUMENTOS =====

def render_quote_pdf(quote, company: CompanyDetails, pdf_settings: PdfSettings, point_of_contact=None) -> bytes:
    builder = PdfBuilder(company, pdf_settings)
    elements = builder.company_header("QUOTATION", [
        ["Quote No", quote.display_number],
        ["Date", quote.issue_date.isoformat()],
        ["Valid Until", quote.expiry_date.isoformat() if quote.expiry_date else None],
    ])
    elements += builder.party_blocks([
        {"label": "Bill To", "name": quote.customer_name, "gstin": quote.customer_gstin,
         "address": address_text(quote.billing_address), "contact": quote.contact},
        {"label": "Ship To", "name": quote.customer_name,
         "address": address_text(quote.shipping_address)},
    ])
    elements += builder.items_table(quote.line_items)
    elements += builder.totals_table(quote.sub_total, quote.gst_total, quote.total)
    elements += builder.terms_block(quote.terms, quote.additional_description)
    elements += builder.bank_block()
    elements += builder.signature_block(point_of_contact)
    return builder.build(elements, f"Quotation {quote.display_number}")


def render_sales_order_pdf(order, company: CompanyDetails, pdf_settings: PdfSettings, point_of_contact=None) -> bytes:
    builder = PdfBuilder(company, pdf_settings)
    elements = builder.company_header("SALES ORDER", [
        ["SO No", order.order_number],
        ["Date", order.order_date.isoformat()],
        ["Quote Ref", order.quote_number],
        ["Client PO", order.client_po_number],
    ])
    elements += builder.party_blocks([
        {"label": "Bill To", "name": order.customer_name, "gstin": order.customer_gstin,
         "address": address_text(order.billing_address), "contact": order.contact},
        {"label": "Ship To", "name": order.customer_name,
         "address": address_text(order.shipping_address)},
    ])
    elements += builder.items_table(order.line_items)
    elements += builder.totals_table(order.sub_total, order.gst_total, order.total)
    elements += builder.terms_block(order.terms, order.additional_description)
    elements += builder.signature_block(point_of_contact)
    return builder.build(elements, f"Sales Order {order.order_number}")


def render_delivery_order_pdf(delivery, company: CompanyDetails, pdf_settings: PdfSettings) -> bytes:
    builder = PdfBuilder(company, pdf_settings)
    elements = builder.company_header("DELIVERY CHALLAN", [
        ["DO No", delivery.delivery_number],
        ["Date", delivery.delivery_date.isoformat()],
        ["SO Ref", delivery.sales_order_number],
        ["Vehicle", delivery.vehicle_number],
    ])
    elements += builder.party_blocks([
        {"label": "Deliver To", "name": delivery.customer_name, "gstin": delivery.customer_gstin,
         "address": address_text(delivery.shipping_address), "contact": delivery.contact},
    ])
    elements += builder.items_table(delivery.line_items, priced=False)
    if delivery.notes:
        elements += [builder.p(delivery.notes), Spacer(1, 6)]
    elements += [Spacer(1, 12), builder.p("Received the above goods in good condition.", builder.small)]
    elements += builder.signature_block()
    return builder.build(elements, f"Delivery Order {delivery.delivery_number}")


def render_purchase_order_pdf(po, company: CompanyDetails, pdf_settings: PdfSettings, point_of_contact=None) -> bytes:
    builder = PdfBuilder(company, pdf_settings)
    elements = builder.company_header("PURCHASE ORDER", [
        ["PO No", po.po_number],
        ["Date", po.order_date.isoformat()],
    ])
    elements += builder.party_blocks([
        {"label": "Vendor", "name": po.vendor_name, "gstin": po.vendor_gstin, "address": po.vendor_address},
        {"label": "Deliver To", "name": company.name, "gstin": company.gstin, "address": po.delivery_address},
    ])
    elements += builder.items_table(po.line_items)
    elements += builder.totals_table(po.sub_total, po.gst_total, po.total)
    if po.notes:
        elements += [builder.p(po.notes), Spacer(1, 6)]
    elements += builder.signature_block(point_of_contact)
    return builder.build(elements, f"Purchase Order {po.po_number}")


def render_payslip_pdf(record, company: CompanyDetails, pdf_settings: PdfSettings) -> bytes:
    builder = PdfBuilder(company, pdf_settings)
    elements = builder.company_header("PAYSLIP", [
        ["Month", record.payroll_month],
        ["Status", record.status],
    ])

    account = record.remittance_account or {}
    details = [
        ["Employee", record.employee_name, "Employee ID", record.employee_code],
        ["Category", record.category, "Days Present", format_quantity(record.days_present)],
        ["Bank", account.get("bank_name", ""), "Account", account.get("account_number", "")],
    ]
    info = Table(details, colWidths=[30 * mm, 60 * mm, 30 * mm, 60 * mm])
    info.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -1), pdf_settings.font_size),
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTNAME", (2, 0), (2, -1), "Helvetica-Bold"),
        ("BOX", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    elements += [info, Spacer(1, 8)]

    overtime_label = "Overtime"
    if record.overtime_details:
        overtime_label = f"Overtime ({record.overtime_details})"
    earnings = [
        ["Basic", record.basic_pay],
        ["HRA", record.hra],
        ["Special Allowance", record.special_allowance],
        [overtime_label, record.overtime],
    ]
    deductions = [
        ["PF", record.pf],
        ["ESI", record.esi],
        ["Professional Tax", record.pt],
        ["TDS", record.tds],
        ["Advance Deduction", record.advance_deduction],
    ]
    data = [[builder.p(h, builder.header_cell) for h in ("Earnings", "Amount", "Deductions", "Amount")]]
    for i in range(max(len(earnings), len(deductions))):
        e = earnings[i] if i < len(earnings) else ["", None]
        d = deductions[i] if i < len(deductions) else ["", None]
        data.append([
            e[0], format_amount(e[1]) if e[1] is not None else "",
            d[0], format_amount(d[1]) if d[1] is not None else "",
        ])
    data.append(["Gross Pay", format_amount(record.gross_pay), "Total Deductions", format_amount(record.total_deductions)])

    table = Table(data, colWidths=[50 * mm, 40 * mm, 50 * mm, 40 * mm])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), builder.accent),
        ("FONTSIZE", (0, 1), (-1, -1), pdf_settings.font_size),
        ("ALIGN", (1, 1), (1, -1), "RIGHT"),
        ("ALIGN", (3, 1), (3, -1), "RIGHT"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
    ]))
    elements += [table, Spacer(1, 10)]
    elements.append(builder.p(f"Net Pay: {format_amount(record.net_pay)}", builder.title))
    elements += [Spacer(1, 18), builder.p("This is a computer generated payslip.", builder.small)]
    return builder.build(elements, f"Payslip {record.employee_code} {record.payroll_month}")
