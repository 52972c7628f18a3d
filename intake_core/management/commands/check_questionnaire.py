# intake_core/management/commands/check_questionnaire.py

from django.core.management.base import BaseCommand, CommandError

from intake_core.questionnaire.pack_io import PackFormatError, load_version
from intake_core.questionnaire.rules import RuleValidationError
from intake_core.questionnaire.versions import validate_version


class Command(BaseCommand):
    help = "Validate questionnaire pack files (keys, options and display rules)"

    def add_arguments(self, parser):
        parser.add_argument("paths", nargs="+", type=str)

    def handle(self, *args, **options):
        errors_found = False

        for path in options["paths"]:
            try:
                version = load_version(path)
            except (OSError, PackFormatError, RuleValidationError) as exc:
                self.stderr.write(f"[ERROR] {path}: {exc}")
                errors_found = True
                continue

            problems = validate_version(version)
            if problems:
                self.stderr.write(f"[ERROR] {path} ({version.tax_year} v{version.version})")
                for problem in problems:
                    self.stderr.write(f"        {problem}")
                errors_found = True
            else:
                self.stdout.write(
                    f"[OK] {path} ({version.tax_year} v{version.version}, "
                    f"{len(version.questions)} questions)"
                )

        if errors_found:
            raise CommandError("One or more questionnaire packs are invalid.")

        self.stdout.write(self.style.SUCCESS("All questionnaire packs validated successfully."))
