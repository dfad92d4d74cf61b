import pytest

from medplant.modules.reports.domain.services.pdf_renderer import (
    clean_text_for_pdf,
    render_report_pdf,
    report_filename,
)

REPORT = """Tulsi (Ocimum tenuiflorum)

• Used for coughs and colds – usually as a tea.
• Adaptogen “holy basil”…
Sanskrit: तुलसी"""


def test_typography_is_mapped_to_latin1():
    cleaned = clean_text_for_pdf(REPORT)

    cleaned.encode("latin-1")
    assert "- Used for coughs and colds - usually as a tea." in cleaned
    assert '"holy basil"...' in cleaned


def test_accents_outside_latin1_are_transliterated():
    assert clean_text_for_pdf("āyurveda") == "ayurveda"
    assert clean_text_for_pdf("café") == "café"
    assert clean_text_for_pdf("") == ""


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Tulsi", "Tulsi_Report.pdf"),
        ("  Holy   Basil ", "Holy_Basil_Report.pdf"),
        ('Evil"Name\\', "EvilName_Report.pdf"),
        ("तुलसी", "Plant_Report.pdf"),
    ],
)
def test_report_filename(name, expected):
    assert report_filename(name) == expected


def test_render_produces_a_pdf():
    pdf = render_report_pdf("Tulsi", REPORT * 40)

    assert pdf.startswith(b"%PDF-")
    assert b"%%EOF" in pdf[-64:]


@pytest.mark.asyncio
async def test_generate_pdf_endpoint(client):
    response = await client.post("/generate-pdf", json={"plantName": "Aloe Vera", "reportText": "Soothes burns."})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == 'attachment; filename="Aloe_Vera_Report.pdf"'
    assert response.content.startswith(b"%PDF-")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"plantName": "Aloe"},
        {"reportText": "text"},
        {"plantName": "  ", "reportText": "text"},
        {"plantName": "Aloe", "reportText": 12},
        ["not", "an", "object"],
    ],
)
async def test_generate_pdf_requires_both_fields(client, payload):
    response = await client.post("/generate-pdf", json=payload)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["type"] == "INVALID_REQUEST"
    assert body["error"]["message"] == "Missing reportText or plantName"
