"""Game configuration collaborator protocol."""

from typing import Protocol, runtime_checkable

from radiant.models.game import GameDefinition


@runtime_checkable
class GameConfigBackend(Protocol):
    """Persists prize tables. Only receives tables that passed validation."""

    async def save_game(self, game: GameDefinition) -> bool:
        """Replace the stored game with ``game``. Returns True on ack."""
        ...
