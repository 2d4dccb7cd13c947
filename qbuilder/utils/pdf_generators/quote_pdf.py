from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from qbuilder.models.quotes.quote_models import Quote
from qbuilder.models.users.user_models import User
from qbuilder.utils.decimal_utils import to_decimal

CURRENCY_SYMBOLS = {"ILS": "₪", "USD": "$", "EUR": "€", "GBP": "£"}


def _text(value) -> str:
    # Paragraph parses a mini-markup; user text must not be taken as tags
    return escape(str(value)) if value not in (None, "") else "-"


def _money(amount, currency: str) -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    return f"{symbol}{to_decimal(amount):,.2f}"


def _quantity(value) -> str:
    text = f"{value:f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def render_quote_pdf(quote: Quote, user: User) -> bytes:
    """
    Render a quote with the business header from ``user`` and return the
    PDF bytes. ``quote.client`` and ``quote.items`` must be loaded.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=30,
        leftMargin=30,
        topMargin=30,
        bottomMargin=30,
        title=quote.quote_number,
    )
    styles = getSampleStyleSheet()
    elements = []

    # -------------------------------
    # Business header
    # -------------------------------
    elements.append(Paragraph(f"<b>{_text(user.business_name)}</b>", styles["Title"]))
    elements.append(Paragraph(_text(user.address), styles["Normal"]))
    elements.append(
        Paragraph(f"Email: {_text(user.email)} | Phone: {_text(user.phone)}", styles["Normal"])
    )
    elements.append(Spacer(1, 12))

    elements.append(Paragraph(f"<b>Quote #: </b>{_text(quote.quote_number)}", styles["Heading2"]))
    elements.append(Paragraph(_text(quote.title), styles["Heading3"]))
    elements.append(Paragraph(f"Issue Date: {quote.issue_date.strftime('%d/%m/%Y')}", styles["Normal"]))
    elements.append(Paragraph(f"Valid Until: {quote.expiry_date.strftime('%d/%m/%Y')}", styles["Normal"]))
    elements.append(Spacer(1, 10))

    # -------------------------------
    # Client
    # -------------------------------
    client = quote.client
    elements.append(Paragraph("<b>Client</b>", styles["Heading3"]))
    elements.append(Paragraph(f"Name: {_text(client.name)}", styles["Normal"]))
    if client.contact_person:
        elements.append(Paragraph(f"Contact: {_text(client.contact_person)}", styles["Normal"]))
    elements.append(Paragraph(f"Email: {_text(client.email)}", styles["Normal"]))
    elements.append(Paragraph(f"Phone: {_text(client.phone)}", styles["Normal"]))
    elements.append(Paragraph(f"Address: {_text(client.address)}", styles["Normal"]))
    elements.append(Spacer(1, 12))

    # -------------------------------
    # Items
    # -------------------------------
    currency = quote.currency
    data = [["#", "Description", "Unit", "Qty", "Unit Price", "Total"]]

    for i, item in enumerate(quote.items, start=1):
        data.append([
            i,
            Paragraph(_text(item.description), styles["Normal"]),
            item.unit,
            _quantity(item.quantity),
            _money(item.unit_price, currency),
            _money(item.line_total, currency),
        ])

    vat_percent = to_decimal(quote.vat_rate * 100)
    data.append(["", "", "", "", "Subtotal", _money(quote.subtotal_amount, currency)])
    data.append(["", "", "", "", f"VAT ({vat_percent}%)", _money(quote.vat_amount, currency)])
    data.append(["", "", "", "", "Total", _money(quote.total_amount, currency)])

    table = Table(data, colWidths=[25, 215, 50, 50, 90, 90])
    table.setStyle(
        TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTNAME", (4, -1), (-1, -1), "Helvetica-Bold"),
            ("GRID", (0, 0), (-1, -4), 0.5, colors.grey),
            ("BACKGROUND", (0, 1), (-1, -4), colors.whitesmoke),
        ])
    )
    elements.append(table)
    elements.append(Spacer(1, 20))

    # -------------------------------
    # Terms
    # -------------------------------
    if quote.terms:
        elements.append(Paragraph("<b>Terms:</b>", styles["Heading3"]))
        elements.append(Paragraph(_text(quote.terms).replace("\n", "<br/>"), styles["Normal"]))
        elements.append(Spacer(1, 12))

    elements.append(Paragraph(f"Thank you for choosing {_text(user.business_name)}!", styles["Normal"]))

    doc.build(elements)
    return buffer.getvalue()
