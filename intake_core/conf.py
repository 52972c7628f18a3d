# intake_core/conf.py

"""
Settings access for the intake engine.

Pure modules (workflows, questionnaire) never read settings. Services go
through get_setting() so they keep working with the documented defaults
when Django settings are not configured (scripts, notebooks).
"""

from __future__ import annotations

from typing import Any

DEFAULTS = {
    "TAXFLOW_MARRIED_QUESTION_KEY": "q_married",
    "TAXFLOW_MARRIED_YES_VALUE": "yes",
    "TAXFLOW_MIN_TAX_YEAR": 2000,
    "TAXFLOW_MAX_TAX_YEAR": 2100,
    "TAXFLOW_REMINDER_STALE_HOURS": 24,
    "TAXFLOW_QUESTIONNAIRE_PACKS": [],
}


def get_setting(name: str) -> Any:
    from django.conf import settings

    default = DEFAULTS[name]
    if not settings.configured:
        return default
    return getattr(settings, name, default)


def now():
    """
    Aware current time; falls back to UTC when settings are not configured.
    """
    from django.conf import settings

    if settings.configured:
        from django.utils import timezone

        return timezone.now()

    from datetime import datetime, timezone as dt_timezone

    return datetime.now(dt_timezone.utc)
