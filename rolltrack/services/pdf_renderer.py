from xml.sax.saxutils import escape
import io
import logging

from ..schemas import RenderedDocument

logger = logging.getLogger(__name__)


def render_pdf(document: RenderedDocument) -> bytes:
    """
    Render a laid-out document to PDF bytes.

    The canvas is built in invariant mode, so the same document always yields
    the same bytes.
    """
    from reportlab.lib import colors
    from reportlab.lib.units import mm
    from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
    from reportlab.lib.enums import TA_CENTER
    from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

    page = document.page
    width, height = page.width_mm * mm, page.height_mm * mm
    if page.orientation == "landscape":
        width, height = height, width
    margin = page.margin_mm * mm
    frame_width = width - 2 * margin

    # Labels are printed on 4x6 stock, so everything is scaled down
    small = document.kind == "label"
    base_size = 8.5 if small else 10

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=(width, height),
        leftMargin=margin,
        rightMargin=margin,
        topMargin=margin,
        bottomMargin=margin,
        title=document.title,
        invariant=1,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'DocTitle',
        parent=styles['Normal'],
        fontName='Helvetica-Bold',
        fontSize=8 if small else 16,
        alignment=TA_CENTER,
        spaceAfter=2,
    )
    emphasis_style = ParagraphStyle(
        'DocEmphasis',
        parent=styles['Normal'],
        fontName='Helvetica-Bold',
        fontSize=14,
        leading=18,
        alignment=TA_CENTER,
        spaceAfter=4,
    )
    muted_style = ParagraphStyle(
        'DocMuted',
        parent=styles['Normal'],
        fontSize=5.5 if small else 9,
        textColor=colors.HexColor('#666666'),
        alignment=TA_CENTER,
    )
    label_style = ParagraphStyle(
        'FieldLabel',
        parent=styles['Normal'],
        fontName='Helvetica-Bold',
        fontSize=6.5 if small else 8,
        textColor=colors.HexColor('#666666'),
    )
    value_style = ParagraphStyle(
        'FieldValue',
        parent=styles['Normal'],
        fontName='Helvetica-Bold',
        fontSize=base_size,
    )
    summary_value_style = ParagraphStyle('SummaryValue', parent=value_style, textColor=colors.HexColor('#0066cc'))
    cell_style = ParagraphStyle('Cell', parent=styles['Normal'], fontSize=9)

    def para(text, style):
        return Paragraph(escape(text), style)

    def field_cell(field):
        return [para(field.label, label_style), para(field.value, value_style)]

    story = []
    for block in document.blocks:
        if block.kind == "header":
            story.append(para(block.title, title_style))
            if block.emphasis:
                story.append(para(block.emphasis, emphasis_style))
            if block.subtitle:
                story.append(para(block.subtitle, muted_style))
            story.append(Spacer(1, 3 * mm if small else 8 * mm))

        elif block.kind == "field":
            box = Table([[field_cell(block.field)]], colWidths=[frame_width])
            if block.highlight:
                box.setStyle(TableStyle([
                    ('BOX', (0, 0), (-1, -1), 2, colors.HexColor('#cc0000')),
                    ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#ffe6e6')),
                ]))
            else:
                box.setStyle(TableStyle([('BOX', (0, 0), (-1, -1), 1, colors.HexColor('#333333'))]))
            story.append(box)
            story.append(Spacer(1, 2 * mm))

        elif block.kind == "field_row":
            col_width = frame_width / len(block.fields)
            row = Table([[field_cell(field) for field in block.fields]], colWidths=[col_width] * len(block.fields))
            row.setStyle(TableStyle([
                ('BOX', (0, 0), (-1, -1), 1, colors.HexColor('#333333')),
                ('INNERGRID', (0, 0), (-1, -1), 1, colors.HexColor('#333333')),
                ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ]))
            story.append(row)
            story.append(Spacer(1, 2 * mm))

        elif block.kind == "table":
            data = [[para(column, label_style) for column in block.columns]]
            data.extend([[para(cell, cell_style) for cell in row] for row in block.rows])
            table = Table(data, colWidths=[frame_width / len(block.columns)] * len(block.columns), repeatRows=1)
            table.setStyle(TableStyle([
                ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f0f0f0')),
                ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#333333')),
                ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f9f9f9')]),
                ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ]))
            story.append(table)
            story.append(Spacer(1, 10 * mm))

        elif block.kind == "summary":
            summary = Table(
                [[para(entry.label, value_style), para(entry.value, summary_value_style)] for entry in block.entries],
                colWidths=[frame_width / 2] * 2,
            )
            summary.setStyle(TableStyle([
                ('LINEABOVE', (0, 0), (-1, 0), 2, colors.HexColor('#333333')),
            ]))
            story.append(summary)

        elif block.kind == "footer":
            story.append(Spacer(1, 2 * mm))
            story.append(para(block.text, muted_style))

    doc.build(story)
    content = buffer.getvalue()
    buffer.close()
    logger.info(f"Rendered {document.kind} PDF '{document.title}' ({len(content)} bytes)")
    return content
