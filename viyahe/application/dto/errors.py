from __future__ import annotations

from pydantic import ValidationError


def field_errors_from(error: ValidationError) -> dict[str, str]:
    """Flatten pydantic errors into {field: first message}; model-level errors go under "form"."""
    errors: dict[str, str] = {}
    for issue in error.errors():
        path = ".".join(str(part) for part in issue.get("loc", ())) or "form"
        errors.setdefault(path, issue.get("msg", "Invalid value"))
    return errors
