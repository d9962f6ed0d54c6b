"""
Radiant Gates - Prize table validation rules.

G1: ItemCompleteness - Item needs a non-empty title and value
G2: ProbabilityCeiling - Scratch probabilities stay within 0-100 and sum <= ceiling
G3: Publishable - A game needs at least one valid item to be activated
G4: GameTypeKnown - Game type must be spin or scratch

G1 failures are not fatal: incomplete items are dropped by the validator
and never persisted. G3 failures only produce a warning.
"""

from dataclasses import dataclass
from decimal import Decimal

from radiant.conf import radiant_settings
from radiant.models.game import GameType


class GateError(Exception):
    """Gate validation error."""

    def __init__(self, gate_name: str, message: str, details: dict | None = None):
        self.gate_name = gate_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{gate_name}] {message}")


@dataclass
class GateResult:
    """Result of a gate check."""

    passed: bool
    gate_name: str
    message: str = ""


def _field(item, *names):
    """Read a field from a mapping (camelCase or snake_case) or an object."""
    for name in names:
        if isinstance(item, dict):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


# =============================================================================
# Gates
# =============================================================================


class Gates:
    """Radiant validation gates."""

    # =========================================================================
    # G1: Item Completeness
    # =========================================================================

    @classmethod
    def item_completeness(cls, item) -> GateResult:
        """
        G1: Item must have a non-empty title and value.

        Args:
            item: Raw item mapping or GameItem

        Raises:
            GateError: If title or value is missing or blank
        """
        if item is None:
            raise GateError("G1_ItemCompleteness", "Item is empty.")

        missing = [
            name
            for name, value in (
                ("title", _field(item, "title")),
                ("value", _field(item, "value")),
            )
            if not _text(value)
        ]
        if missing:
            raise GateError(
                "G1_ItemCompleteness",
                f"Item missing {', '.join(missing)}.",
                {"missing": missing},
            )

        return GateResult(True, "G1_ItemCompleteness")

    @classmethod
    def check_item_completeness(cls, item) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.item_completeness(item)
            return True
        except GateError:
            return False

    # =========================================================================
    # G2: Probability Ceiling
    # =========================================================================

    @classmethod
    def probability_ceiling(cls, items, ceiling: int | None = None) -> GateResult:
        """
        G2: Scratch probabilities are each within 0-100 and the active ones
        sum to at most ``ceiling``.

        A total below the ceiling is allowed: the remainder means "no prize".

        Args:
            items: Validated GameItems of a scratch game
            ceiling: Override PROBABILITY_CEILING setting

        Raises:
            GateError: If an item is out of range or the total is exceeded
        """
        if ceiling is None:
            ceiling = radiant_settings.PROBABILITY_CEILING

        total = Decimal("0")
        for item in items:
            probability = item.probability or Decimal("0")
            if not probability.is_finite() or probability < 0 or probability > 100:
                raise GateError(
                    "G2_ProbabilityCeiling",
                    f"Probability of '{item.title}' must be between 0 and 100.",
                    {"item": item.title, "probability": probability},
                )
            if item.is_active:
                total += probability

        if total > ceiling:
            raise GateError(
                "G2_ProbabilityCeiling",
                f"Total probability is {total}%. Should be {ceiling}% or less.",
                {"total": total, "ceiling": ceiling},
            )

        return GateResult(True, "G2_ProbabilityCeiling")

    @classmethod
    def check_probability_ceiling(cls, *args, **kwargs) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.probability_ceiling(*args, **kwargs)
            return True
        except GateError:
            return False

    # =========================================================================
    # G3: Publishable
    # =========================================================================

    @classmethod
    def publishable(cls, items) -> GateResult:
        """
        G3: At least one valid item is required to activate a game.

        Raises:
            GateError: If there are no valid items
        """
        if not items:
            raise GateError(
                "G3_Publishable",
                "Add at least one valid item. Game cannot be activated.",
            )

        return GateResult(True, "G3_Publishable")

    @classmethod
    def check_publishable(cls, items) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.publishable(items)
            return True
        except GateError:
            return False

    # =========================================================================
    # G4: Game Type Known
    # =========================================================================

    @classmethod
    def game_type_known(cls, game_type: str) -> GateResult:
        """
        G4: Game type must be one of GameType.

        Raises:
            GateError: If the type is unknown
        """
        if game_type not in GameType.values:
            raise GateError(
                "G4_GameTypeKnown",
                f'Type must be either "scratch" or "spin", got {game_type!r}.',
                {"allowed": list(GameType.values)},
            )

        return GateResult(True, "G4_GameTypeKnown")

    @classmethod
    def check_game_type_known(cls, game_type: str) -> bool:
        """Check without raising (returns bool)."""
        try:
            cls.game_type_known(game_type)
            return True
        except GateError:
            return False
