"""
Helper methods for practice sheet table configuration
"""
from docx.enum.table import WD_ROW_HEIGHT_RULE
from docx.enum.text import WD_PARAGRAPH_ALIGNMENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

BORDER_NAMES = ('top', 'left', 'bottom', 'right', 'insideH', 'insideV')


def _border_element(tag, style, size, color):
    border = OxmlElement(f'w:{tag}')
    border.set(qn('w:val'), style)
    border.set(qn('w:sz'), size)
    border.set(qn('w:space'), '0')
    border.set(qn('w:color'), color)
    return border


def configure_sheet_table(table, cell_width, border=True):
    """
    Configure table as a fixed grid of square cells
    """
    tbl = table._tbl
    tblPr = tbl.tblPr

    tblBorders = OxmlElement('w:tblBorders')
    for border_name in BORDER_NAMES:
        if border:
            tblBorders.append(_border_element(border_name, 'single', '4', '000000'))
        else:
            tblBorders.append(_border_element(border_name, 'nil', '0', 'auto'))
    tblPr.append(tblBorders)

    # Fixed layout keeps every column the same width
    tblLayout = OxmlElement('w:tblLayout')
    tblLayout.set(qn('w:type'), 'fixed')
    tblPr.append(tblLayout)

    for col in table.columns:
        col.width = cell_width
        for cell in col.cells:
            cell.width = cell_width


def configure_row_height(row, height):
    """Pin a row to an exact height so hidden content never collapses it"""
    row.height = height
    row.height_rule = WD_ROW_HEIGHT_RULE.EXACTLY


def clear_row_borders(row, keep_top=False):
    """Remove cell borders from one row, used for the pinyin guide rows"""
    for cell in row.cells:
        tcPr = cell._tc.get_or_add_tcPr()
        tcBorders = OxmlElement('w:tcBorders')
        for border_name in ('top', 'left', 'bottom', 'right'):
            if keep_top and border_name == 'top':
                tcBorders.append(_border_element(border_name, 'single', '4', '000000'))
            else:
                tcBorders.append(_border_element(border_name, 'nil', '0', 'auto'))
        tcPr.append(tcBorders)


def configure_sheet_cell(cell, text, font_size_points, font_name, hidden=False, color=None):
    """
    Configure individual cell for centred character placement
    """
    cell.text = ''

    tcPr = cell._tc.get_or_add_tcPr()

    # Minimal cell margins for grid appearance
    tcMar = OxmlElement('w:tcMar')
    for margin in ['top', 'left', 'bottom', 'right']:
        mar = OxmlElement(f'w:{margin}')
        mar.set(qn('w:w'), '0')
        mar.set(qn('w:type'), 'dxa')
        tcMar.append(mar)
    tcPr.append(tcMar)

    vAlign = OxmlElement('w:vAlign')
    vAlign.set(qn('w:val'), 'center')
    tcPr.append(vAlign)

    paragraph = cell.paragraphs[0]
    paragraph.alignment = WD_PARAGRAPH_ALIGNMENT.CENTER
    paragraph.paragraph_format.space_before = Pt(0)
    paragraph.paragraph_format.space_after = Pt(0)

    if text:
        run = paragraph.add_run(text)
        run.font.name = font_name
        run.font.size = Pt(font_size_points)
        run.font.hidden = hidden
        if color is not None:
            run.font.color.rgb = RGBColor(*color)
        # East Asian font slot, otherwise Word falls back for CJK glyphs
        rPr = run._r.get_or_add_rPr()
        rFonts = rPr.find(qn('w:rFonts'))
        if rFonts is None:
            rFonts = OxmlElement('w:rFonts')
            rPr.insert(0, rFonts)
        rFonts.set(qn('w:eastAsia'), font_name)
        return run
    return None
