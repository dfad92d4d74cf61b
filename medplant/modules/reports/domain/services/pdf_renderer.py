# 📄 File: medplant/modules/reports/domain/services/pdf_renderer.py
# 🧭 Purpose (Layman Explanation):
# Turns a plant report (a title and some text) into a PDF file the user can download and share.
# 🧪 Purpose (Technical Summary):
# fpdf2-based renderer: A4 portrait, centred plant-name title, justified body text. The built-in
# PDF fonts are latin-1 only, so text is transliterated first and anything left is dropped.
# 🔗 Dependencies:
# fpdf2, unicodedata
# 🔄 Connected Modules / Calls From:
# reports.presentation.api.v1.reports

import re
import unicodedata
from typing import Dict

from fpdf import FPDF
from fpdf.enums import XPos, YPos

TYPOGRAPHY_REPLACEMENTS: Dict[str, str] = {
    '\u2022': '-',     # bullet
    '\u2013': '-',     # en dash
    '\u2014': '--',    # em dash
    '\u2018': "'",
    '\u2019': "'",
    '\u201C': '"',
    '\u201D': '"',
    '\u2026': '...',
    '\u00A0': ' ',     # non-breaking space
    '\u2192': '->',
}


def clean_text_for_pdf(text: str) -> str:
    """Make ``text`` encodable in latin-1 without raising."""
    if not text:
        return ""

    for char, replacement in TYPOGRAPHY_REPLACEMENTS.items():
        text = text.replace(char, replacement)

    try:
        text.encode('latin-1')
        return text
    except UnicodeEncodeError:
        pass

    # Decompose accents outside latin-1 (e.g. 'ā' -> 'a'), then drop the rest
    decomposed = unicodedata.normalize('NFKD', text)
    kept = []
    for char in decomposed:
        if unicodedata.combining(char):
            continue
        try:
            char.encode('latin-1')
        except UnicodeEncodeError:
            continue
        kept.append(char)
    return unicodedata.normalize('NFC', ''.join(kept))


def report_filename(plant_name: str) -> str:
    """'Tulsi  Holy Basil' -> 'Tulsi_Holy_Basil_Report.pdf' (ASCII, header safe)"""
    stem = re.sub(r'\s+', '_', plant_name.strip())
    stem = stem.replace('"', '').replace('\\', '')
    stem = stem.encode('ascii', 'ignore').decode('ascii') or 'Plant'
    return f"{stem}_Report.pdf"


def render_report_pdf(plant_name: str, report_text: str) -> bytes:
    """
    Render the report. Pure CPU work; call from a worker thread.

    Returns:
        bytes: the PDF document
    """
    pdf = FPDF(orientation='P', unit='mm', format='A4')
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.set_title(clean_text_for_pdf(plant_name))
    pdf.add_page()

    pdf.set_font('Helvetica', 'B', 20)
    pdf.multi_cell(0, 10, clean_text_for_pdf(plant_name), align='C', new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(6)

    pdf.set_font('Helvetica', '', 12)
    pdf.multi_cell(0, 7, clean_text_for_pdf(report_text), align='J', new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    return bytes(pdf.output())
