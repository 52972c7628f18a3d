# conftest.py

import pytest


@pytest.fixture(autouse=True)
def _intake_defaults(settings):
    # Keep tests independent of whatever .env the developer has locally
    settings.TAXFLOW_MARRIED_QUESTION_KEY = "q_married"
    settings.TAXFLOW_MARRIED_YES_VALUE = "yes"
    settings.TAXFLOW_MIN_TAX_YEAR = 2000
    settings.TAXFLOW_MAX_TAX_YEAR = 2100
    settings.TAXFLOW_REMINDER_STALE_HOURS = 24
    settings.TAXFLOW_QUESTIONNAIRE_PACKS = []
