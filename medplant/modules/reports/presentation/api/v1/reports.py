# 📄 File: medplant/modules/reports/presentation/api/v1/reports.py
# 🧭 Purpose (Layman Explanation):
# The address the app calls to download a plant report as a PDF.
# 🧪 Purpose (Technical Summary):
# POST /generate-pdf: {reportText, plantName} JSON in, application/pdf attachment out.
# Rendering runs in the threadpool so the event loop is not blocked.
# 🔗 Dependencies:
# FastAPI, starlette.concurrency, reports.domain.services.pdf_renderer
# 🔄 Connected Modules / Calls From:
# medplant.api.v1.router

from typing import Any, Dict

from fastapi import APIRouter, Body, Response
from starlette.concurrency import run_in_threadpool

from medplant.modules.reports.domain.services.pdf_renderer import render_report_pdf, report_filename
from medplant.shared.core.exceptions import InvalidRequestError
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)

reports_router = APIRouter()


@reports_router.post(
    "/generate-pdf",
    summary="Render a plant report as PDF",
    response_class=Response,
    responses={200: {"content": {"application/pdf": {}}}, 400: {"description": "Missing fields"}},
)
async def generate_pdf(payload: Any = Body(default=None)) -> Response:
    body: Dict[str, Any] = payload if isinstance(payload, dict) else {}
    report_text = body.get("reportText")
    plant_name = body.get("plantName")

    if not isinstance(report_text, str) or not report_text.strip() \
            or not isinstance(plant_name, str) or not plant_name.strip():
        raise InvalidRequestError("Missing reportText or plantName")

    pdf_bytes = await run_in_threadpool(render_report_pdf, plant_name.strip(), report_text)
    filename = report_filename(plant_name)
    logger.info("PDF report generated", filename=filename, bytes=len(pdf_bytes))

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
