"""
Lead stage transitions.

A lead starts in ``on_progress`` and staff move it to ``closing`` (won) or
``loss``. Nothing stops a lead from leaving a terminal stage again. Payment
details only exist while a lead is ``closing``: leaving that stage clears them.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..schemas.crm import CLOSING, Lead, LeadUpdate

# Columns a staff member may write through PATCH /leads/{id}
EDITABLE_FIELDS = (
    "assigned_admin_id",
    "follow_up_status",
    "follow_up_notes",
    "stage",
    "payment_type",
    "dp_amount",
    "final_price",
    "temperature",
    "package_taken",
    "closing_date",
)


@dataclass
class LeadTransition:
    values: Dict[str, Any]
    entered_closing: bool = False
    left_closing: bool = False

    @property
    def is_closing(self) -> bool:
        return self.values["stage"] == CLOSING


def apply_lead_update(current: Lead, changes: LeadUpdate, now: Optional[datetime] = None) -> LeadTransition:
    """Merge a draft onto a copy of the stored lead and derive the columns to write."""
    now = now or datetime.now(timezone.utc)
    submitted = changes.model_dump(exclude_unset=True)
    draft = current.model_copy(update=submitted)

    was_closing = current.stage == CLOSING
    is_closing = draft.stage == CLOSING

    if is_closing:
        draft.package_taken = True
        if current.closing_date is not None:
            draft.closing_date = current.closing_date
        elif draft.closing_date is None:
            draft.closing_date = now
        if draft.payment_type != "dp":
            draft.dp_amount = None
    else:
        draft.package_taken = False
        draft.closing_date = None
        draft.payment_type = None
        draft.dp_amount = None

    values = {field: getattr(draft, field) for field in EDITABLE_FIELDS}
    values["updated_at"] = now
    return LeadTransition(
        values=values,
        entered_closing=is_closing and not was_closing,
        left_closing=was_closing and not is_closing,
    )
