import json

from django.core.management.base import BaseCommand

from intake_core.workflows import workflow_definition


class Command(BaseCommand):
    help = "Print the case workflow definition as JSON."

    def handle(self, *args, **options):
        self.stdout.write(json.dumps(workflow_definition(), indent=2))
