# intake_core/services/reminders.py
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional

from intake_core.conf import get_setting, now as _now
from intake_core.services.cases import CaseState
from intake_core.workflows.steps import is_terminal

logger = logging.getLogger(__name__)


def find_stale_cases(
    cases: Iterable[CaseState],
    *,
    now=None,
    stale_hours: Optional[int] = None,
) -> List[CaseState]:
    """
    Cases still in progress whose last change is older than the window.

    Cases without updated_at are skipped; there is nothing to measure.
    """
    now = now or _now()
    if stale_hours is None:
        stale_hours = get_setting("TAXFLOW_REMINDER_STALE_HOURS")
    since = now - timedelta(hours=int(stale_hours))

    stale: List[CaseState] = []
    for case in cases:
        if is_terminal(case.workflow_step):
            continue
        if case.updated_at is None:
            continue
        if case.updated_at < since:
            stale.append(case)
    return stale


def run_reminder_check(
    cases: Iterable[CaseState],
    *,
    now=None,
    stale_hours: Optional[int] = None,
    contacts: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """
    Log one reminder per stale case. Delivery (email/SMS) is left to the
    hosting service; `contacts` maps user_id to the address used in the log.
    """
    contacts = contacts or {}
    stale = find_stale_cases(cases, now=now, stale_hours=stale_hours)

    for case in stale:
        logger.info(
            "[Reminder] case %s user %s workflow %s",
            case.id,
            contacts.get(case.user_id, "?"),
            case.workflow_step,
        )

    return {
        "ok": True,
        "reminded": len(stale),
        "case_ids": [c.id for c in stale],
    }
