"""
Per-form ``form_data`` validation.

``form_data`` is a flat ``{key: value}`` map. Some forms require keys once
the submission leaves DRAFT; drafts may be saved incomplete.
"""

from legal_desk.core.exceptions import ValidationError

FORM_DATA_REQUIRED_KEYS = {
    2: ("purpose_of_lease", "period_of_lease", "monthly_rental"),
    3: ("customer_type", "outstanding_amount"),
}


def _blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def validate_form_data(form_id, form_data, *, draft=False):
    """Return ``form_data`` (``{}`` when None) or raise ValidationError."""
    if form_data is None:
        form_data = {}
    if not isinstance(form_data, dict):
        raise ValidationError("form_data must be an object", details={"form_data": "invalid"})
    if draft:
        return form_data

    missing = {
        f"form_data.{key}": "required"
        for key in FORM_DATA_REQUIRED_KEYS.get(form_id, ())
        if _blank(form_data.get(key))
    }
    if missing:
        raise ValidationError(f"Missing form data for form {form_id}", details=missing)
    return form_data
