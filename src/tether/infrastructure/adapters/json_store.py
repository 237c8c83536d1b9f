"""
JSON File Repository: Infrastructure adapter for a single JSON document.

Implements FriendRepository by reading and rewriting one file holding the
friends, interactions and tier catalog. Writes go through a temporary file
and an atomic rename.
"""

import logging
import os
import tempfile
from pathlib import Path

from pydantic import BaseModel, Field

from tether.domain.errors import StorageError
from tether.domain.models import Friend, Interaction, Tier
from tether.domain.ports import FriendRepository

logger = logging.getLogger(__name__)


class TetherDocument(BaseModel):
    """On-disk layout."""

    friends: list[Friend] = Field(default_factory=list)
    interactions: list[Interaction] = Field(default_factory=list)
    tiers: list[Tier] = Field(default_factory=list)


class JsonFileRepository(FriendRepository):
    def __init__(self, path: Path):
        self.path = Path(path)

    async def load_friends(self) -> list[Friend]:
        return self._read().friends

    async def load_interactions(self) -> list[Interaction]:
        return self._read().interactions

    async def save_friend(self, friend: Friend) -> None:
        doc = self._read()
        doc.friends = [f for f in doc.friends if f.id != friend.id] + [friend]
        self._write(doc)

    async def append_interaction(self, interaction: Interaction) -> None:
        doc = self._read()
        doc.interactions.append(interaction)
        self._write(doc)

    async def delete_friend(self, friend_id: str) -> None:
        doc = self._read()
        doc.friends = [f for f in doc.friends if f.id != friend_id]
        doc.interactions = [i for i in doc.interactions if i.friend_id != friend_id]
        self._write(doc)

    async def delete_interaction(self, interaction_id: str) -> None:
        doc = self._read()
        doc.interactions = [i for i in doc.interactions if i.id != interaction_id]
        self._write(doc)

    async def load_tier_catalog(self) -> list[Tier]:
        return self._read().tiers

    async def save_tier_catalog(self, tiers: list[Tier]) -> None:
        doc = self._read()
        doc.tiers = list(tiers)
        self._write(doc)

    def _read(self) -> TetherDocument:
        if not self.path.exists():
            return TetherDocument()

        try:
            return TetherDocument.model_validate_json(self.path.read_text(encoding="utf-8"))
        except ValueError as e:  # includes pydantic.ValidationError
            logger.error(f"Could not parse {self.path}: {e}")
            raise StorageError(f"Corrupt data file: {self.path}") from e

    def _write(self, doc: TetherDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".tether-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(doc.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
