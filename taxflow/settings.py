"""
Django settings for the taxflow project.

Hosts the intake workflow engine: questionnaire display rules,
case workflow steps, questionnaire pack tooling and reminder checks.
"""

from pathlib import Path
from decouple import config
import os


# ===============================================================
# Base paths
# ===============================================================
BASE_DIR = Path(__file__).resolve().parent.parent


# ===============================================================
# Security
# ===============================================================
SECRET_KEY = config("SECRET_KEY", default="insecure-key-change-me")
DEBUG = config("DEBUG", default=False, cast=bool)

_raw_hosts = config("ALLOWED_HOSTS", default="127.0.0.1,localhost,testserver")
ALLOWED_HOSTS = [h.strip() for h in str(_raw_hosts).split(",") if h.strip()]


# ===============================================================
# Installed apps
# ===============================================================
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "rest_framework",
    "intake_core.apps.IntakeCoreConfig",
]

MIDDLEWARE = []


# ===============================================================
# Database
# ===============================================================
# The engine keeps no state of its own; persistence belongs to the
# hosting service. A local sqlite file keeps Django's test runner happy.
DJANGO_ENV = os.environ.get("DJANGO_ENV", "").lower()

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / ("test.sqlite3" if DJANGO_ENV in {"ci", "test"} else "db.sqlite3"),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ===============================================================
# Internationalization
# ===============================================================
LANGUAGE_CODE = "en-us"
TIME_ZONE = config("TIME_ZONE", default="Asia/Jerusalem")
USE_I18N = True
USE_TZ = True


# ===============================================================
# Django REST Framework
# ===============================================================
# Only serializers are used (authoring payload validation).
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": (
        "rest_framework.renderers.JSONRenderer",
    ),
    "UNAUTHENTICATED_USER": None,
}


# ===============================================================
# Logging
# ===============================================================
LOG_LEVEL = config("LOG_LEVEL", default="INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "plain",
        },
    },
    "loggers": {
        "intake_core": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": True,
        },
    },
}


# ===============================================================
# Intake workflow
# ===============================================================
# Answer that drives the spouse branch of the workflow.
TAXFLOW_MARRIED_QUESTION_KEY = config("TAXFLOW_MARRIED_QUESTION_KEY", default="q_married")
TAXFLOW_MARRIED_YES_VALUE = config("TAXFLOW_MARRIED_YES_VALUE", default="yes")

TAXFLOW_MIN_TAX_YEAR = config("TAXFLOW_MIN_TAX_YEAR", default=2000, cast=int)
TAXFLOW_MAX_TAX_YEAR = config("TAXFLOW_MAX_TAX_YEAR", default=2100, cast=int)

# Cases untouched for this long (and not yet submitted) get a reminder.
TAXFLOW_REMINDER_STALE_HOURS = config("TAXFLOW_REMINDER_STALE_HOURS", default=24, cast=int)

# Questionnaire pack files validated by `manage.py check`.
_raw_packs = config("TAXFLOW_QUESTIONNAIRE_PACKS", default="")
TAXFLOW_QUESTIONNAIRE_PACKS = [p.strip() for p in str(_raw_packs).split(",") if p.strip()]
