"""
Write a blog export document to stdout or a file.

    python manage.py inkpress_export --include-users --output backup.json
"""
import json

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.core.serializers.json import DjangoJSONEncoder

from inkpress.models import Profile
from inkpress.transfer import export_data


class Command(BaseCommand):
    help = "Export posts, comments, tags and navigation as JSON."

    def add_arguments(self, parser):
        parser.add_argument("--output", "-o", help="File to write instead of stdout")
        parser.add_argument("--include-media", action="store_true")
        parser.add_argument("--include-users", action="store_true")
        parser.add_argument("--include-settings", action="store_true")

    def handle(self, *args, **options):
        admin = (
            get_user_model().objects
            .filter(profile__role=Profile.ROLE_ADMIN)
            .order_by("date_joined")
            .first()
        )
        if admin is None:
            raise CommandError("No admin user exists")

        document = export_data(
            admin,
            include_media=options["include_media"],
            include_users=options["include_users"],
            include_settings=options["include_settings"],
        )
        text = json.dumps(document, cls=DjangoJSONEncoder, indent=2)

        if options["output"]:
            with open(options["output"], "w", encoding="utf-8") as fh:
                fh.write(text)
            counts = ", ".join(f"{len(rows)} {name}" for name, rows in document["data"].items() if isinstance(rows, list))
            self.stdout.write(self.style.SUCCESS(f"Exported {counts} to {options['output']}"))
        else:
            self.stdout.write(text)
