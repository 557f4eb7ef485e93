"""
Génération du reçu PDF d'une transaction réglée (ReportLab).
Le PDF est produit en mémoire et joint directement à l'email récapitulatif.
"""
from io import BytesIO
from typing import Iterable, List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer

from storefront.config import SUPPORT_EMAIL, HDFC_CURRENCY
from .models import LineItemSnapshot, quantize_amount

def receipt_filename(order_id: str) -> str:
    return f"order_receipt_{order_id}.pdf"

def generate_receipt(
    order_id: str,
    amount,
    line_items: Iterable[LineItemSnapshot],
    customer_name: str,
    zip_links: Iterable[str],
    currency: str = HDFC_CURRENCY,
) -> bytes:
    """
    Construit le reçu: titre, identifiant de commande, client, liens de
    téléchargement, articles, montant total et pied de page de contact.
    Le découpage en pages est géré par SimpleDocTemplate.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"Order receipt {order_id}",
    )
    styles = getSampleStyleSheet()
    body = styles["BodyText"]
    heading = styles["Heading2"]

    story: List = [
        Paragraph("Thank You for Your Order!", styles["Title"]),
        HRFlowable(width="100%", thickness=1, color=colors.black),
        Spacer(1, 6 * mm),
        Paragraph(f"Order ID: {escape(order_id)}", styles["Heading3"]),
        Spacer(1, 4 * mm),
        Paragraph("Customer Information", heading),
        Paragraph(f"Name: {escape(customer_name or '')}", body),
    ]
    for link in zip_links or []:
        story.append(Paragraph(f"Zip file: {escape(str(link))}", body))

    story += [
        Spacer(1, 6 * mm),
        Paragraph("Ordered Items", heading),
        HRFlowable(width="100%", thickness=0.5, color=colors.grey),
    ]
    for item in line_items:
        story.append(Paragraph(escape(item.name or item.product), body))

    story += [
        Spacer(1, 6 * mm),
        Paragraph(f"Amount: {escape(currency)} {quantize_amount(amount)}", styles["Heading3"]),
        Spacer(1, 8 * mm),
        Paragraph(
            "Thank you for shopping with us! If you have any questions, feel free to contact our support team.",
            styles["Italic"],
        ),
        Paragraph(escape(SUPPORT_EMAIL), body),
    ]

    doc.build(story)
    return buffer.getvalue()
