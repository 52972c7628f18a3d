# intake_core/management/commands/preview_questionnaire.py

import json

from django.core.management.base import BaseCommand, CommandError

from intake_core.questionnaire.pack_io import PackFormatError, load_version
from intake_core.questionnaire.rules import RuleValidationError
from intake_core.services.preview import preview_next_question


class Command(BaseCommand):
    help = "Show the next question a client would get for simulated answers."

    def add_arguments(self, parser):
        parser.add_argument("path", type=str)
        parser.add_argument("--answers", type=str, default="", help="JSON object of answers")
        parser.add_argument("--answers-file", type=str, default="")

    def _answers(self, options):
        raw = options["answers"]
        if options["answers_file"]:
            try:
                with open(options["answers_file"], "r", encoding="utf-8") as f:
                    raw = f.read()
            except OSError as exc:
                raise CommandError(f"Cannot read answers file: {exc}") from exc
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise CommandError(f"Answers are not valid JSON: {exc}") from exc

    def handle(self, *args, **options):
        try:
            version = load_version(options["path"])
        except (OSError, PackFormatError, RuleValidationError) as exc:
            raise CommandError(f"Cannot load questionnaire: {exc}") from exc

        payload = preview_next_question(version, self._answers(options))
        self.stdout.write(json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False))
