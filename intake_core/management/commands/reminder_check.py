# intake_core/management/commands/reminder_check.py

import json

from django.core.management.base import BaseCommand, CommandError

from intake_core.services.cases import case_from_dict
from intake_core.services.reminders import run_reminder_check


class Command(BaseCommand):
    help = "Report in-progress cases that have not changed within the reminder window"

    def add_arguments(self, parser):
        parser.add_argument("path", type=str, help="JSON list of exported case records")
        parser.add_argument("--stale-hours", type=int, default=None)

    def handle(self, *args, **options):
        try:
            with open(options["path"], "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CommandError(f"Cannot read cases: {exc}") from exc

        if isinstance(records, dict):
            records = records.get("cases", [])

        try:
            cases = [case_from_dict(r) for r in records]
        except (KeyError, TypeError, ValueError) as exc:
            raise CommandError(f"Invalid case record: {exc}") from exc

        contacts = {
            str(r.get("user_id", r.get("userId", ""))): (r.get("user") or {}).get("email", "?")
            for r in records
        }

        result = run_reminder_check(cases, stale_hours=options["stale_hours"], contacts=contacts)
        self.stdout.write(json.dumps(result, sort_keys=True))
