"""
Document requirement resolver.

Turns a form id plus the submission's party legal types into the checklist
of documents the initiator must provide. Pure: no session access, the
caller passes in the admin template (``FormConfig.docs``) when one exists.

Rule precedence by form id:
    2      fixed lease catalog, entries filtered by party type or "all"
    3      per-customer-type supplements, then the fixed litigation base list
    other  admin template when configured, else the hard-coded fallback

Output is order preserving and label-deduplicated (first occurrence wins).
"""

COMMON = "Common"
ALL = "all"

# ── Form 2: lease agreement catalog ──────────────────────────────────────────

LEASE_CATALOG = [
    ("Offer Letter from the landowner and/or the Life Interest Holder", (ALL,)),
    ("Copy of the Title Deed of the property to be leased", (ALL,)),
    ("Copy of the Approved Survey Plan", (ALL,)),
    ("Extracts from Land Registry for past 30 years", (ALL,)),
    ("Copy of the Approved Building Plan", (ALL,)),
    ("Latest Street Line Certificate from Municipal Council/Urban Council/Pradeshiya Sabha", (ALL,)),
    ("Latest Building Line Certificate from Municipal Council/Urban Council/Pradeshiya Sabha", (ALL,)),
    ("Latest Non-Vesting Certificate from Municipal Council/Urban Council/Pradeshiya Sabha", (ALL,)),
    ("Certificate of Ownership from Municipal Council/Urban Council/Pradeshiya Sabha", (ALL,)),
    ("Last Municipal Tax payment receipt with a copy of latest Assessment Notice", (ALL,)),
    ("Certificate of Conformity (if there is a building)", (ALL,)),
    ("Declaration that premises are not vested or subject of any notice of acquisition", (ALL,)),
    ("Plan of the building/area to be leased with parking areas", (ALL,)),
    ("Copy of any Mortgage on property (if no Mortgage, confirmation to that effect)", (ALL,)),
    ("If loans outstanding — Copy of Loan Agreement with lending authority", (ALL,)),
    ("Letter of Acceptance", (ALL,)),
    ("Last receipt of Water and Electricity bills paid", (ALL,)),
    ("Copy of National Identity Card/Cards", (ALL,)),
    ("If owner living abroad — copy of Passport and Power of Attorney", (ALL,)),
    ("Copy of Fire Certificate (for Buildings)", (ALL,)),
    ("Inventory", (ALL,)),
    ("Lessor VAT Registration No (If applicable)", (ALL,)),
    ("Confirmation from Facilities Manager regarding existing buildings", (ALL,)),
    ("i. Memorandum and Article of Association", ("Company",)),
    ("ii. Board Resolution", ("Company",)),
    ("iii. Company registration certificate", ("Company",)),
    ("iv. Registered Address of the company", ("Company",)),
    ("v. Form 20", ("Company",)),
    ("i. Partnership registration certificate", ("Partnership",)),
    ("ii. NIC/passport copies of every partner", ("Partnership",)),
    ("i. NIC/passport of the sole proprietor", ("Sole proprietorship",)),
    ("ii. Business registration/sole proprietorship certificate", ("Sole proprietorship",)),
    ("i. NIC (Individual owner)", ("Individual",)),
]

# ── Form 3: instruction for litigation ───────────────────────────────────────

LITIGATION_BASE_DOCS = [
    "Original Agreement (if any)",
    "Original Credit Application",
    "Copy of the Letter of Demand (LOD)",
    "Original Postal Article receipt for LOD",
    "Copies of Letters Sent to the Customer",
    "Original Letters Sent by the Customer",
    "Originals Documents referred to in the Account statement",
]

# Keys use the hyphenated spelling; lookups are exact.
LITIGATION_DOCS_BY_TYPE = {
    "Individual": ["NIC", "Other (Individual)"],
    "Sole-proprietorship": [
        "NIC/passport of the sole proprietor",
        "Business registration/sole proprietorship certificate",
        "Other (Sole proprietorship)",
    ],
    "Partnership": [
        "Partnership registration certificate",
        "NIC/passport copies of every partner",
        "Other (Partnership)",
    ],
    "Company": [
        "Incorporation Certificate of the Company",
        "Form 1, 13 or any other document to prove the registered address",
        "Any other company related documents",
    ],
}

# ── Fallback (no admin template configured) ──────────────────────────────────

FALLBACK_DOCS_BY_TYPE = {
    "Company": [
        "Certificate of Incorporation",
        "Form 1 (Company Registration)",
        "Articles of Association",
        "Board Resolution",
        "VAT Registration Certificate",
    ],
    "Partnership": [
        "Partnership Agreement",
        "Business Registration Certificate",
        "NIC copies of all Partners",
    ],
    "Sole proprietorship": [
        "Business Registration Certificate",
        "NIC copy of Proprietor",
    ],
    "Individual": ["NIC copy", "Proof of Address"],
}

FALLBACK_COMPANY_FORMS = [
    "Form 15 (latest form)",
    "Form 13 (latest form if applicable)",
    "Form 20 (latest form if applicable)",
]


class _Checklist:
    """Ordered, label-deduplicated accumulator."""

    def __init__(self):
        self._seen = set()
        self.items = []

    def add(self, label, doc_type):
        if label in self._seen:
            return
        self._seen.add(label)
        self.items.append({"label": label, "type": doc_type})


def _unique_types(party_types):
    out = []
    for t in party_types or []:
        if t and t not in out:
            out.append(t)
    return out


def _normalize_type(doc_type):
    # Only the first hyphen is replaced.
    return doc_type.replace("-", " ", 1)


def _resolve_lease(types, checklist):
    for label, applies_to in LEASE_CATALOG:
        if ALL in applies_to:
            checklist.add(label, COMMON)
        elif any(t in applies_to for t in types):
            checklist.add(label, applies_to[0])


def _resolve_litigation(types, checklist):
    for t in types:
        for label in LITIGATION_DOCS_BY_TYPE.get(t, []):
            checklist.add(label, COMMON)
    for label in LITIGATION_BASE_DOCS:
        checklist.add(label, COMMON)


def _resolve_template(types, template_docs, checklist):
    for doc in template_docs:
        label, doc_type = _doc_fields(doc)
        if doc_type == COMMON or doc_type in types or _normalize_type(doc_type) in types:
            checklist.add(label, doc_type)


def _resolve_fallback(types, checklist):
    for t in types:
        for label in FALLBACK_DOCS_BY_TYPE.get(t, []):
            checklist.add(label, t)
    for label in FALLBACK_COMPANY_FORMS:
        checklist.add(label, "Company")


def _doc_fields(doc):
    if isinstance(doc, dict):
        return doc["label"], doc.get("type") or COMMON
    return doc.label, doc.type or COMMON


def resolve(form_id, party_types, form_config_docs=None):
    """
    Return the required documents for a submission.

    Args:
        form_id: Form type id (1–10).
        party_types: Legal types of the submission's parties, e.g.
            ``["Company", "Sole proprietorship"]``. Duplicates and blanks
            are ignored.
        form_config_docs: Admin template for the form, as FormConfigDoc rows
            or ``{"label", "type"}`` dicts in sort order. Ignored for forms
            2 and 3.

    Returns:
        list of ``{"label": str, "type": str}``, no two with the same label.
    """
    types = _unique_types(party_types)
    checklist = _Checklist()

    if form_id == 2:
        _resolve_lease(types, checklist)
    elif form_id == 3:
        _resolve_litigation(types, checklist)
    elif form_config_docs:
        _resolve_template(types, form_config_docs, checklist)
    else:
        _resolve_fallback(types, checklist)

    return checklist.items
