"""CSV and XLSX export of any report."""

from __future__ import annotations

import csv
import io
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO

from fastapi import HTTPException, status
from openpyxl import Workbook
from pydantic import BaseModel

from app.core.auth import RequestUserContext
from app.services.reporting_service import ReportingService, ReportWindow, TaskSelection

ADMIN_REPORT_KEYS = (
    "user-summaries",
    "hours-by-user",
    "user-activity-timeline",
    "phase-distribution",
    "stale-projects",
    "client-billability",
    "client-timeline",
    "day-of-week",
    "tracking-compliance",
    "task-repetition",
    "period-delta",
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass(slots=True)
class ExportFilePayload:
    media_type: str
    filename: str
    content: bytes


def _cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(_cell(item) for item in value)
    return str(value)


def flatten_report_rows(report_key: str, payload: BaseModel | list[BaseModel]) -> list[dict[str, str]]:
    """Turn a report DTO into flat string rows.

    A row holding a list of nested rows (phases, clients, months) expands into
    one output row per nested entry, prefixed with the parent's scalar columns.
    Period deltas emit one row per entry with a ``group`` column.
    """

    if isinstance(payload, BaseModel):
        dumped = payload.model_dump(mode="json")
        if "by_user" in dumped and "by_client" in dumped:
            rows: list[dict[str, object]] = []
            for group in ("by_user", "by_client"):
                for entry in dumped[group]:
                    rows.append(
                        {
                            "group": group.removeprefix("by_"),
                            "current_label": dumped["current_label"],
                            "prior_label": dumped["prior_label"],
                            **entry,
                        }
                    )
        else:
            rows = [dumped]
    else:
        rows = [item.model_dump(mode="json") for item in payload]

    flat_rows: list[dict[str, str]] = []
    for row in rows:
        base_columns: dict[str, str] = {"report_key": report_key}
        nested_field: str | None = None
        for field, value in row.items():
            if isinstance(value, list) and value and all(isinstance(item, dict) for item in value):
                nested_field = field
                continue
            base_columns[field] = _cell(value)

        if nested_field is None:
            flat_rows.append(base_columns)
            continue
        for nested in row[nested_field]:
            record = dict(base_columns)
            for field, value in nested.items():
                record[f"{nested_field}_{field}"] = _cell(value)
            flat_rows.append(record)
    return flat_rows


class ExportService:
    """Renders report rows into downloadable files."""

    def __init__(self, reporting: ReportingService) -> None:
        self.reporting = reporting

    def _dispatch(self, window: ReportWindow, selection: TaskSelection) -> dict[str, Callable[[], object]]:
        reporting = self.reporting
        return {
            "dashboard-summary": lambda: reporting.dashboard_summary(window),
            "time-by-client": lambda: reporting.time_by_client(window),
            "time-by-project": lambda: reporting.time_by_project(window),
            "daily-hours": lambda: reporting.daily_hours(window),
            "time-by-phase": lambda: reporting.time_by_phase(window),
            "weekly-summary": lambda: reporting.weekly_summary(window),
            "monthly-comparison": lambda: reporting.monthly_comparison(window),
            "top-activities": lambda: reporting.top_activities(window),
            "expense-billability": lambda: reporting.expense_billability(window),
            "user-summaries": lambda: reporting.user_summaries(window, selection),
            "hours-by-user": lambda: reporting.hours_by_user(window, selection),
            "user-activity-timeline": lambda: reporting.user_activity_timeline(window, selection),
            "phase-distribution": lambda: reporting.phase_distribution(window, selection),
            "stale-projects": lambda: reporting.stale_projects(window, selection),
            "client-billability": lambda: reporting.client_billability(window, selection),
            "client-timeline": lambda: reporting.client_timeline(window, selection),
            "day-of-week": lambda: reporting.day_of_week_hours(window, selection),
            "tracking-compliance": lambda: reporting.tracking_compliance(window, selection),
            "task-repetition": lambda: reporting.task_repetition(window, selection),
            "period-delta": lambda: reporting.period_delta(window, selection),
        }

    def export_report(
        self,
        *,
        context: RequestUserContext,
        report_key: str,
        format_name: str,
        window: ReportWindow,
        selection: TaskSelection | None = None,
    ) -> ExportFilePayload:
        normalized_key = report_key.strip().lower()
        normalized_format = format_name.strip().lower()
        if normalized_format not in {"csv", "xlsx"}:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="format must be one of: csv, xlsx.",
            )

        report_func = self._dispatch(window, selection or TaskSelection()).get(normalized_key)
        if report_func is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Unknown report_key for export.",
            )
        if normalized_key in ADMIN_REPORT_KEYS and not context.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )

        flattened = flatten_report_rows(normalized_key, report_func())
        fieldnames: list[str] = []
        for row in flattened:
            for column in row:
                if column not in fieldnames:
                    fieldnames.append(column)

        base_filename = f"{normalized_key}-{self.reporting.today().isoformat()}"
        if normalized_format == "csv":
            csv_bytes = b""
            if fieldnames:
                sio = io.StringIO()
                writer = csv.DictWriter(sio, fieldnames=fieldnames, restval="")
                writer.writeheader()
                writer.writerows(flattened)
                csv_bytes = sio.getvalue().encode("utf-8")
            return ExportFilePayload(
                media_type="text/csv; charset=utf-8",
                filename=f"{base_filename}.csv",
                content=csv_bytes,
            )

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = normalized_key[:31]
        if fieldnames:
            sheet.append(fieldnames)
            for row in flattened:
                sheet.append([row.get(column, "") for column in fieldnames])

        output = BytesIO()
        workbook.save(output)
        return ExportFilePayload(
            media_type=XLSX_MEDIA_TYPE,
            filename=f"{base_filename}.xlsx",
            content=output.getvalue(),
        )
