"""
Form configuration — admin-maintained instructions and document templates.

Saving a config always replaces its docs list wholesale.
"""

import logging

from sqlalchemy import select

from legal_desk.core.exceptions import NotFoundError, ValidationError
from legal_desk.models import db
from legal_desk.models.form_config import FORM_CATALOG, FormConfig, FormConfigDoc
from legal_desk.utils.helpers import db_commit_or_raise

logger = logging.getLogger(__name__)

# Form 1 template; forms 2–10 start with a single placeholder doc.
DEFAULT_FORM1_DOCS = [
    ("Certificate of Incorporation", "Company"),
    ("Form 1 (Company Registration)", "Company"),
    ("Articles of Association", "Company"),
    ("Board Resolution", "Company"),
    ("VAT Registration Certificate", "Company"),
    ("Partnership Agreement", "Partnership"),
    ("Business Registration Certificate", "Partnership"),
    ("NIC copies of all Partners", "Partnership"),
    ("NIC copy", "Individual"),
    ("Proof of Address", "Individual"),
    ("Form 15 (latest form)", "Common"),
    ("Form 13 (latest form if applicable)", "Common"),
    ("Form 20 (latest form if applicable)", "Common"),
]
DEFAULT_FORM1_INSTRUCTIONS = (
    "Please provide all required documents before submission.\n"
    "1. Ensure all company documents are certified.\n"
    "2. Board resolution must be dated within 3 months.\n"
    "3. All NIC copies must be attested."
)


def list_form_configs():
    return db.session.execute(select(FormConfig).order_by(FormConfig.form_id)).scalars().all()


def find_form_config(form_id):
    return db.session.execute(
        select(FormConfig).where(FormConfig.form_id == form_id)
    ).scalar_one_or_none()


def get_form_config(form_id):
    config = find_form_config(form_id)
    if config is None:
        raise NotFoundError(resource="FormConfig", resource_id=form_id)
    return config


def _parse_form_id(value):
    try:
        form_id = int(value)
    except (TypeError, ValueError):
        raise ValidationError("form_id is required", details={"form_id": "required"})
    if form_id not in FORM_CATALOG:
        raise ValidationError(f"Unknown form_id: {form_id}", details={"form_id": "invalid"})
    return form_id


def _parse_docs(docs):
    if docs is None:
        return []
    if not isinstance(docs, list):
        raise ValidationError("docs must be a list", details={"docs": "invalid"})
    parsed = []
    for i, doc in enumerate(docs):
        if not isinstance(doc, dict):
            raise ValidationError(f"docs[{i}] must be an object", details={f"docs[{i}]": "invalid"})
        label = str(doc.get("label") or "").strip()
        if not label:
            raise ValidationError(f"docs[{i}].label is required", details={f"docs[{i}].label": "required"})
        parsed.append((label, str(doc.get("type") or "Common").strip()))
    return parsed


def upsert_form_config(data, *, commit=True):
    """Create or update a form config; docs are deleted and recreated in order."""
    if not isinstance(data, dict):
        raise ValidationError("Form config must be an object", details={"body": "invalid"})
    form_id = _parse_form_id(data.get("form_id"))
    docs = _parse_docs(data.get("docs"))

    config = find_form_config(form_id)
    if config is None:
        config = FormConfig(
            form_id=form_id,
            form_name=data.get("form_name") or f"Form {form_id}",
            instructions=data.get("instructions") or "",
        )
        db.session.add(config)
    else:
        config.instructions = data.get("instructions") or ""
        if data.get("form_name"):
            config.form_name = data["form_name"]
        config.docs.clear()
        db.session.flush()

    config.docs.extend(
        FormConfigDoc(label=label, type=doc_type, sort_order=i)
        for i, (label, doc_type) in enumerate(docs)
    )
    if commit:
        db_commit_or_raise("FormConfig")
    logger.info("Form config %s saved with %d docs", form_id, len(docs))
    return config


def seed_default_form_configs():
    """Insert configs for forms that have none. Returns how many were created."""
    created = 0
    for form_id, name in FORM_CATALOG.items():
        if find_form_config(form_id) is not None:
            continue
        if form_id == 1:
            docs = [{"label": label, "type": t} for label, t in DEFAULT_FORM1_DOCS]
            instructions = DEFAULT_FORM1_INSTRUCTIONS
        else:
            docs = [{"label": "Certificate of Incorporation", "type": "Company"}]
            instructions = f"Instructions for {name} — to be configured."
        upsert_form_config(
            {"form_id": form_id, "form_name": name, "instructions": instructions, "docs": docs},
            commit=False,
        )
        created += 1
    db_commit_or_raise("FormConfig")
    return created
