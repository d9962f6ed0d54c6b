"""Management command to validate a prize table offline."""

import json

from django.core.management.base import BaseCommand, CommandError

from radiant.models.game import GameType
from radiant.services.games import GameTableValidator, game_from_payload


class Command(BaseCommand):
    help = "Validate a spin/scratch game definition (JSON) before saving it"

    def add_arguments(self, parser):
        parser.add_argument("path", help="Path to the game definition JSON file")
        parser.add_argument(
            "--type",
            choices=GameType.values,
            default=None,
            help="Override the game type declared in the file",
        )

    def handle(self, *args, **options):
        try:
            with open(options["path"], encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as e:
            raise CommandError(f"Cannot read {options['path']}: {e}")

        if options["type"]:
            data["type"] = options["type"]
        game = game_from_payload(data)
        result = GameTableValidator.validate(game.type, game.items)

        for item in result.items:
            probability = f" ({item.probability}%)" if item.probability is not None else ""
            self.stdout.write(f"  {item.title}: {item.value} [{item.value_type}]{probability}")
        for warning in result.warnings:
            self.stdout.write(self.style.WARNING(warning))

        if not result.valid:
            raise CommandError("; ".join(error.message for error in result.errors))

        self.stdout.write(
            self.style.SUCCESS(f"{len(result.items)} items valid for {game.type} game.")
        )
