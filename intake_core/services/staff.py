# intake_core/services/staff.py

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Tuple

from intake_core.conf import now as _now
from intake_core.services.cases import CaseState
from intake_core.services.errors import NothingToUpdate
from intake_core.workflows.steps import normalize_case_status

logger = logging.getLogger(__name__)


class _NotProvided:
    def __repr__(self) -> str:
        return "NOT_PROVIDED"


NOT_PROVIDED = _NotProvided()


def apply_staff_update(
    case: CaseState,
    *,
    actor_id: str,
    actor_type: str = "employee",
    status: Any = NOT_PROVIDED,
    assigned_to: Any = NOT_PROVIDED,
    now=None,
) -> Tuple[CaseState, Dict[str, Any]]:
    """
    Board status / assignee change made by staff.

    - unknown statuses are ignored
    - an empty assignee clears the assignment
    - nothing applicable raises NothingToUpdate

    Returns the new snapshot and the audit event to persist.
    """
    data: Dict[str, Any] = {}

    if status is not NOT_PROVIDED:
        canonical = normalize_case_status(status)
        if canonical is not None:
            data["status"] = canonical
        else:
            logger.info("Ignoring unknown case status %r for case %s", status, case.id)

    if assigned_to is not NOT_PROVIDED:
        data["assigned_to"] = None if assigned_to == "" else assigned_to

    if not data:
        raise NothingToUpdate()

    when = now or _now()
    updated = replace(case, updated_at=when, **data)
    event = {
        "action": "case_update",
        "actor_type": actor_type,
        "actor_id": actor_id,
        "case_id": case.id,
        "payload": data,
        "at": when.isoformat(),
    }
    return updated, event
