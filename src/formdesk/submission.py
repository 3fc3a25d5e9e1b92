from __future__ import annotations

import logging
from typing import Any

from formdesk.auth import AuthContext
from formdesk.errors import (
    FormInactive,
    FormNotFound,
    InvalidFieldValue,
    SubmissionRejected,
)
from formdesk.protocols import Storage
from formdesk.utils import new_ulid, now_utc, to_iso
from formdesk.validation import validate_submission

logger = logging.getLogger(__name__)


def build_submission_record(
    form: dict[str, Any],
    normalized: dict[str, Any],
    context: AuthContext,
    customer_id: str | None = None,
) -> dict[str, Any]:
    return {
        "id": new_ulid(),
        "form_id": form["id"],
        "user_id": context.user_id,
        "customer_id": customer_id or None,
        "data": normalized["data"],
        "collection_plan": normalized.get("collectionPlan"),
        "water_plan": normalized.get("waterPlan"),
        "submitted_at": now_utc(),
    }


def submit_form(
    storage: Storage,
    form_id: str,
    raw_values: dict[str, Any],
    context: AuthContext,
    customer_id: str | None = None,
) -> dict[str, Any]:
    """Validate ``raw_values`` against the stored form and persist one submission.

    Raises ``FormNotFound``, ``FormInactive`` or ``SubmissionRejected``; a
    failing store raises ``PersistenceError`` and nothing is written.
    """
    form = storage.forms.get_form(form_id)
    if not form:
        raise FormNotFound(form_id)
    if not form.get("is_active"):
        raise FormInactive(form_id)

    normalized, issues = validate_submission(form.get("fields", []), raw_values)
    if customer_id and storage.customers.get_customer(customer_id) is None:
        issues.append(InvalidFieldValue("Selected customer does not exist"))
    if issues:
        raise SubmissionRejected(issues)

    record = build_submission_record(form, normalized, context, customer_id)
    created = storage.submissions.create_submission(record)
    logger.info("Submission %s stored for form %s", created["id"], form_id)
    return created


def sanitize_submission_output(submission: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": submission["id"],
        "formId": submission.get("form_id"),
        "userId": submission.get("user_id"),
        "customerId": submission.get("customer_id"),
        "data": submission.get("data", {}),
        "collectionPlan": submission.get("collection_plan"),
        "waterPlan": submission.get("water_plan"),
        "submittedAt": to_iso(submission.get("submitted_at") or now_utc()),
    }
