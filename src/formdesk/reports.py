from __future__ import annotations

import csv
import io
from typing import Any

from formdesk.protocols import Storage

BASE_HEADERS = ["Date", "Form ID", "User ID", "Customer ID", "Collection Plan", "Water Plan"]


def collect_stats(storage: Storage) -> dict[str, Any]:
    submissions = storage.submissions.list_submissions()
    revenue = sum(float(item.get("collection_plan") or 0) for item in submissions)
    return {
        "totalForms": len(storage.forms.list_forms()),
        "activeUsers": len(storage.users.list_users()),
        "totalSubmissions": len(submissions),
        "revenue": revenue,
    }


def value_to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(value_to_text(item) for item in value)
    if isinstance(value, dict):
        if "address" in value:
            return str(value.get("address") or "")
        return ", ".join(f"{key}={value_to_text(item)}" for key, item in value.items())
    return str(value)


def csv_headers_and_rows(
    submissions: list[dict[str, Any]],
    fields: list[dict[str, Any]] | None = None,
) -> tuple[list[str], list[list[str]]]:
    fields = fields or []
    headers = BASE_HEADERS + [field.get("label") or field["id"] for field in fields]
    rows: list[list[str]] = []
    for submission in submissions:
        submitted_at = submission.get("submitted_at")
        row = [
            submitted_at.date().isoformat() if submitted_at else "",
            value_to_text(submission.get("form_id")),
            value_to_text(submission.get("user_id")),
            value_to_text(submission.get("customer_id")),
            value_to_text(submission.get("collection_plan")),
            value_to_text(submission.get("water_plan")),
        ]
        data = submission.get("data", {})
        for field in fields:
            row.append(value_to_text(data.get(field["id"])))
        rows.append(row)
    return headers, rows


def render_csv(headers: list[str], rows: list[list[str]], delimiter: str = ",") -> str:
    output = io.StringIO()
    writer = csv.writer(output, delimiter=delimiter, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return output.getvalue()
