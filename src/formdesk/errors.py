from __future__ import annotations

from typing import Any


class ValidationIssue:
    """A single problem found while validating a submission."""

    kind = "ValidationIssue"

    def __init__(self, message: str, field_id: str | None = None) -> None:
        self.message = message
        self.field_id = field_id

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.field_id is not None:
            payload["fieldId"] = self.field_id
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class MissingRequiredFields(ValidationIssue):
    kind = "MissingRequiredFields"

    def __init__(self, labels: list[str]) -> None:
        super().__init__(f"Please fill in required fields: {', '.join(labels)}")
        self.labels = list(labels)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["labels"] = self.labels
        return payload


class BusinessRuleViolation(ValidationIssue):
    kind = "BusinessRuleViolation"

    def __init__(
        self,
        message: str,
        minimum: float,
        value: Any,
        field_id: str | None = None,
    ) -> None:
        super().__init__(message, field_id)
        self.minimum = minimum
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["minimum"] = self.minimum
        payload["value"] = self.value
        return payload


class InvalidOptionValue(ValidationIssue):
    kind = "InvalidOptionValue"

    def __init__(self, label: str, value: Any, options: list[str], field_id: str) -> None:
        super().__init__(f"{label}: '{value}' is not one of the available options", field_id)
        self.value = value
        self.options = list(options)

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["value"] = self.value
        payload["options"] = self.options
        return payload


class MalformedNumeric(ValidationIssue):
    kind = "MalformedNumeric"

    def __init__(self, label: str, value: Any, field_id: str | None = None) -> None:
        super().__init__(f"{label}: '{value}' is not a valid number", field_id)
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["value"] = self.value
        return payload


class InvalidFieldValue(ValidationIssue):
    kind = "InvalidFieldValue"


class SubmissionRejected(Exception):
    def __init__(self, issues: list[ValidationIssue]) -> None:
        super().__init__("; ".join(issue.message for issue in issues))
        self.issues = issues

    def to_dict(self) -> dict[str, Any]:
        return {
            "detail": "Validation failed",
            "errors": [issue.to_dict() for issue in self.issues],
        }


class FormNotFound(Exception):
    pass


class FormInactive(Exception):
    pass


class PersistenceError(Exception):
    pass
