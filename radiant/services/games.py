"""Game table service: validate and save spin/scratch prize tables.

validate + save is a single full-replace operation per game: items with an
id are edits in place, items without one are additions, and items left out
of the submitted set are deletions.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation

from radiant.conf import radiant_settings
from radiant.exceptions import ProbabilityExceeded
from radiant.gates import GateError, Gates, _field, _text
from radiant.models.game import GameDefinition, GameItem, GameSettings, GameType
from radiant.protocols.games import GameConfigBackend
from radiant.signals import game_saved

logger = logging.getLogger(__name__)


@dataclass
class GameValidation:
    """Prize table validation result."""

    valid: bool
    game_type: str
    items: tuple[GameItem, ...] = ()
    errors: list[GateError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    dropped: int = 0
    total_probability: Decimal | None = None

    @property
    def is_publishable(self) -> bool:
        return self.valid and bool(self.items)

    def raise_for_errors(self) -> None:
        """Raise the first error (ProbabilityExceeded for G2)."""
        for error in self.errors:
            if error.gate_name == "G2_ProbabilityCeiling":
                raise ProbabilityExceeded(
                    total=error.details.get("total", self.total_probability),
                    ceiling=error.details.get("ceiling", radiant_settings.PROBABILITY_CEILING),
                    message=error.message,
                )
            raise error


@dataclass
class TableDiff:
    """What a full-replace save does to the stored table."""

    added: int = 0
    updated: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def _probability(raw, game_type: str) -> Decimal | None:
    if game_type != GameType.SCRATCH:
        return None
    value = _field(raw, "probability")
    if value is None or value == "":
        return Decimal(radiant_settings.DEFAULT_ITEM_PROBABILITY)
    try:
        probability = Decimal(str(value))
    except InvalidOperation:
        probability = None
    if probability is None or not probability.is_finite():
        raise GateError(
            "G2_ProbabilityCeiling",
            f"Probability of '{_text(_field(raw, 'title'))}' is not a number.",
            {"probability": value},
        )
    return probability


def settings_from_payload(data: dict | None, game_type: str) -> GameSettings:
    """Read ``scratchSettings`` / ``spinSettings`` falling back to RADIANT defaults."""
    data = data or {}
    if game_type == GameType.SCRATCH:
        section = data.get("scratchSettings") or {}
        max_plays = section.get("maxPlaysPerUser")
    else:
        section = data.get("spinSettings") or {}
        max_plays = section.get("maxSpinsPerUser")

    return GameSettings(
        play_cost=int(section.get("requirePoints", radiant_settings.DEFAULT_PLAY_COST)),
        max_plays=int(max_plays or radiant_settings.DEFAULT_MAX_PLAYS),
        reset_period=section.get("resetPeriod") or radiant_settings.DEFAULT_RESET_PERIOD,
        spin_duration_ms=int(section.get("spinDuration") or 3000),
    )


class GameTableValidator:
    """
    Validates prize tables and hands approved ones to the GameConfigBackend.

    Usage:
        result = GameTableValidator.validate("scratch", items)
        if result.valid:
            await GameTableValidator(backend).save(game)
    """

    def __init__(self, backend: GameConfigBackend | None = None):
        self.backend = backend

    @classmethod
    def normalize_item(cls, raw, game_type: str) -> GameItem | None:
        """
        Build a GameItem from a raw mapping (or GameItem).

        Returns None for items failing G1; they are dropped, not errors.
        """
        if isinstance(raw, GameItem):
            if not Gates.check_item_completeness(raw):
                return None
            probability = raw.probability
            if game_type == GameType.SCRATCH and probability is None:
                probability = Decimal(radiant_settings.DEFAULT_ITEM_PROBABILITY)
            if game_type != GameType.SCRATCH:
                probability = None
            return replace(
                raw,
                title=raw.title.strip(),
                value=str(raw.value).strip(),
                probability=probability,
            )

        if not Gates.check_item_completeness(raw):
            return None

        item_id = _field(raw, "_id", "id")
        is_active = _field(raw, "isActive", "is_active")
        return GameItem(
            title=_text(_field(raw, "title")),
            value=_text(_field(raw, "value")),
            value_type=_field(raw, "valueType", "value_type") or radiant_settings.DEFAULT_VALUE_TYPE,
            color=_field(raw, "color") or radiant_settings.DEFAULT_ITEM_COLOR,
            probability=_probability(raw, game_type),
            is_active=is_active is not False,
            id=str(item_id) if item_id else None,
        )

    @classmethod
    def validate(cls, game_type: str, items) -> GameValidation:
        """
        Validate a prize table.

        G1 drops incomplete items, G2 caps scratch probabilities, G3 warns
        when nothing is left to publish, G4 rejects unknown game types.
        """
        try:
            Gates.game_type_known(game_type)
        except GateError as e:
            return GameValidation(valid=False, game_type=game_type, errors=[e])

        errors: list[GateError] = []
        warnings: list[str] = []
        validated: list[GameItem] = []
        dropped = 0

        for raw in items or ():
            try:
                item = cls.normalize_item(raw, game_type)
            except GateError as e:
                errors.append(e)
                continue
            if item is None:
                dropped += 1
                continue
            validated.append(item)

        if dropped:
            warnings.append(f"{dropped} item(s) without title or value were skipped.")

        total = None
        if game_type == GameType.SCRATCH:
            total = sum((i.probability for i in validated if i.is_active), Decimal("0"))
            try:
                Gates.probability_ceiling(validated)
            except GateError as e:
                errors.append(e)

        try:
            Gates.publishable(validated)
        except GateError as e:
            warnings.append(e.message)

        return GameValidation(
            valid=not errors,
            game_type=game_type,
            items=tuple(validated),
            errors=errors,
            warnings=warnings,
            dropped=dropped,
            total_probability=total,
        )

    @staticmethod
    def diff(existing, validated) -> TableDiff:
        """Compare the stored items with a validated replacement set."""
        existing_ids = [i.id for i in existing if i.id]
        kept_ids = {i.id for i in validated if i.id}
        return TableDiff(
            added=sum(1 for i in validated if not i.id),
            updated=[i for i in existing_ids if i in kept_ids],
            removed=[i for i in existing_ids if i not in kept_ids],
        )

    async def save(self, game: GameDefinition) -> GameDefinition:
        """
        Validate ``game`` and persist its full table.

        A game without valid items is saved inactive.

        Returns:
            The GameDefinition that was sent to the backend

        Raises:
            ProbabilityExceeded: Scratch total over the ceiling (nothing sent)
            GateError: Other validation failure (nothing sent)
        """
        if self.backend is None:
            raise RuntimeError("GameTableValidator.save() requires a GameConfigBackend")

        validation = self.validate(game.type, game.items)
        validation.raise_for_errors()

        if not validation.is_publishable and game.is_active:
            logger.warning("Game %s has no valid items; saving it inactive", game.id or game.title)

        approved = replace(
            game,
            items=validation.items,
            is_active=game.is_active and validation.is_publishable,
        )
        await self.backend.save_game(approved)
        logger.info("Game %s saved with %d items", approved.id or approved.title, len(approved.items))
        game_saved.send(sender=self.__class__, game=approved)
        return approved


def game_from_payload(data: dict) -> GameDefinition:
    """Build a GameDefinition from the management UI / API payload (unvalidated items)."""
    game_type = data.get("type", "")
    game_id = data.get("_id") or data.get("id")
    return GameDefinition(
        type=game_type,
        items=tuple(data.get("items") or ()),
        id=str(game_id) if game_id else None,
        title=data.get("title", ""),
        location_id=data.get("locationId", ""),
        is_active=data.get("isActive", True) is not False,
        settings=settings_from_payload(data.get("settings"), game_type),
    )
