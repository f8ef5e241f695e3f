"""Export endpoint for report datasets."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.api.dependencies import get_report_window, get_reporting_service, get_task_selection
from app.core.auth import RequestUserContext, get_current_user_context
from app.services.export_service import ExportService
from app.services.reporting_service import ReportingService, ReportWindow, TaskSelection

router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/{report_key}")
def export_report(
    report_key: str,
    format: str = Query(default="xlsx"),
    window: ReportWindow = Depends(get_report_window),
    selection: TaskSelection = Depends(get_task_selection),
    context: RequestUserContext = Depends(get_current_user_context),
    service: ReportingService = Depends(get_reporting_service),
) -> Response:
    exported = ExportService(service).export_report(
        context=context,
        report_key=report_key,
        format_name=format,
        window=window,
        selection=selection,
    )
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )
