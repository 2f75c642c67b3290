"""
Standalone HTML preview of a proposal.

Section content is editor HTML and is inserted as-is; titles are escaped.
Pricing sections in structured mode render their table instead of content.
"""

from html import escape

from .pricing_engine import format_currency, format_item_discount, format_number
from .schemas import PricingSectionData, Proposal, ProposalSection

PAGE_STYLE = """
          body {
            font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
            padding: 40px;
            max-width: 800px;
            margin: 0 auto;
            color: #333;
          }
          h1 {
            color: #1e3a8a;
            font-size: 32px;
            margin-bottom: 20px;
            border-bottom: 2px solid #2563eb;
            padding-bottom: 10px;
          }
          section { margin-bottom: 30px; page-break-inside: avoid; }
          h2 { color: #1e3a8a; font-size: 24px; margin-bottom: 10px; }
          p { line-height: 1.6; margin-bottom: 10px; }
          table { width: 100%; border-collapse: collapse; }
          th, td { padding: 6px; border-bottom: 1px solid #e5e5e5; }
          .num { text-align: right; }
          .discount { color: #c80000; }
          .total { font-weight: bold; color: #1e3a8a; }
"""


def _pricing_table_html(data: PricingSectionData) -> str:
    if not data.items:
        return '<p><em>(No pricing items added)</em></p>'

    currency = data.currency
    rows = []
    for item in data.items:
        discount = format_item_discount(item, currency)
        rows.append(
            "<tr>"
            f"<td>{escape(item.description or '(No description)')}</td>"
            f'<td class="num">{format_number(item.quantity)}</td>'
            f'<td class="num">{format_currency(item.unit_price, currency)}</td>'
            f'<td class="num">{discount}</td>'
            f'<td class="num"><strong>{format_currency(item.subtotal, currency)}</strong></td>'
            "</tr>"
        )

    totals = [f'<tr><td colspan="4" class="num">Subtotal:</td><td class="num">{format_currency(data.subtotal, currency)}</td></tr>']
    if data.discount_amount:
        totals.append(
            f'<tr class="discount"><td colspan="4" class="num">Discount:</td>'
            f'<td class="num">-{format_currency(data.discount_amount, currency)}</td></tr>'
        )
    if data.tax_amount:
        totals.append(
            f'<tr><td colspan="4" class="num">Tax:</td>'
            f'<td class="num">+{format_currency(data.tax_amount, currency)}</td></tr>'
        )
    totals.append(
        f'<tr class="total"><td colspan="4" class="num">Total:</td>'
        f'<td class="num">{format_currency(data.total, currency)}</td></tr>'
    )

    notes = f'<p><em>{escape(data.notes)}</em></p>' if data.notes else ""
    return (
        "<table>"
        '<thead><tr><th>Description</th><th class="num">Qty</th><th class="num">Unit Price</th>'
        '<th class="num">Discount</th><th class="num">Subtotal</th></tr></thead>'
        f"<tbody>{''.join(rows)}{''.join(totals)}</tbody>"
        f"</table>{notes}"
    )


def _section_html(section: ProposalSection) -> str:
    if section.is_structured_pricing:
        body = _pricing_table_html(section.pricing_data)
    else:
        body = f'<div style="color: #333; line-height: 1.6; white-space: pre-wrap;">{section.content or ""}</div>'
    return (
        '\n    <section style="margin-bottom: 30px; page-break-inside: avoid;">\n'
        f'      <h2 style="color: #1e3a8a; font-size: 24px; margin-bottom: 10px;">{escape(section.title)}</h2>\n'
        f"      {body}\n"
        "    </section>\n  "
    )


def generate_proposal_html(proposal: Proposal) -> str:
    """Full HTML document: title, then each section in `order`."""
    title = escape(proposal.title)
    sections_html = "".join(_section_html(s) for s in proposal.sorted_sections())
    return f"""<!DOCTYPE html>
    <html>
      <head>
        <meta charset="UTF-8">
        <title>{title}</title>
        <style>{PAGE_STYLE}        </style>
      </head>
      <body>
        <h1>{title}</h1>
        {sections_html}
      </body>
    </html>
"""
