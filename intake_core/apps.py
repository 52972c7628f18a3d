# intake_core/apps.py

from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class IntakeCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "intake_core"
    verbose_name = "Tax intake workflow"

    def ready(self):
        # Register Django system checks only
        try:
            from .checks import questionnaire_packs  # noqa
        except ImportError as exc:
            logger.warning(
                "Questionnaire pack checks not registered: %s",
                exc,
            )
