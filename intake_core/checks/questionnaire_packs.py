# intake_core/checks/questionnaire_packs.py

from django.core.checks import Error, register

from intake_core.conf import get_setting
from intake_core.questionnaire.pack_io import PackFormatError, load_version
from intake_core.questionnaire.rules import RuleValidationError
from intake_core.questionnaire.versions import validate_version


@register()
def check_questionnaire_packs(app_configs, **kwargs):
    """
    Django system check for the questionnaire packs listed in
    TAXFLOW_QUESTIONNAIRE_PACKS.
    """
    errors = []

    for path in get_setting("TAXFLOW_QUESTIONNAIRE_PACKS") or []:
        # 1. Pack loads
        try:
            version = load_version(path)
        except (OSError, PackFormatError, RuleValidationError) as exc:
            errors.append(
                Error(
                    f"Questionnaire pack not loadable: {path}",
                    hint=str(exc),
                    id="intake_core.E001",
                )
            )
            continue

        # 2. Structure
        for problem in validate_version(version):
            errors.append(
                Error(
                    f"Questionnaire pack '{path}' ({version.tax_year} v{version.version}) is invalid",
                    hint=problem,
                    id="intake_core.E002",
                )
            )

    return errors
