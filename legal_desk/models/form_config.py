"""
Form configuration models.

    FormConfig ──1:N──▶ FormConfigDoc

One row per form id (1–10). The docs list is the admin-maintained document
template the requirement resolver filters by party type for forms other than
2 and 3. Docs are always replaced wholesale on save.
"""

from legal_desk.models import db
from legal_desk.utils.helpers import isoformat, utcnow

# Ten form types offered to initiators.
FORM_CATALOG = {
    1: "Contract Review Form",
    2: "Lease Agreement",
    3: "Instruction For Litigation",
    4: "Vehicle Rent Agreement",
    5: "Request for Power of Attorney",
    6: "Registration of a Trademark",
    7: "Termination of agreements",
    8: "Handing over of leased premises",
    9: "Approval for Purchasing Premises",
    10: "Letter of Demand",
}


def form_name_for(form_id):
    return FORM_CATALOG.get(form_id, f"Form {form_id}")


class FormConfig(db.Model):
    __tablename__ = "form_configs"

    id = db.Column(db.Integer, primary_key=True)
    form_id = db.Column(db.Integer, nullable=False, unique=True)
    form_name = db.Column(db.String(120), nullable=False)
    instructions = db.Column(db.Text, nullable=False, default="")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    docs = db.relationship(
        "FormConfigDoc", backref="form_config", lazy="select",
        cascade="all, delete-orphan", order_by="FormConfigDoc.sort_order",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "form_id": self.form_id,
            "form_name": self.form_name,
            "instructions": self.instructions,
            "docs": [d.to_dict() for d in self.docs],
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<FormConfig {self.form_id}: {self.form_name}>"


class FormConfigDoc(db.Model):
    __tablename__ = "form_config_docs"

    id = db.Column(db.Integer, primary_key=True)
    config_id = db.Column(
        db.Integer, db.ForeignKey("form_configs.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    label = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(40), nullable=False, default="Common")
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {"label": self.label, "type": self.type, "sort_order": self.sort_order}
