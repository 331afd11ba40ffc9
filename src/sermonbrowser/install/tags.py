"""Tag maintenance used by the 1.4→1.5 cleanup step.

Historical releases could insert the same tag name twice.  Before a
unique index can be put on ``tags.name`` every duplicate group is folded
onto its lowest id, and tags no sermon references any more are removed.
"""

from __future__ import annotations

from sermonbrowser.core.dialect import Dialect
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.protocols import Connection
from sermonbrowser.core.repository import BaseRepository

logger = get_logger(__name__)


class TagCleanup(BaseRepository):
    """Dedupe and prune rows of the tags table.

    Parameters:
        conn / dialect: as for :class:`BaseRepository`.
        tags_table: Physical tags table name.
        pivot_table: Physical sermon↔tag pivot table name.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: Dialect,
        tags_table: str,
        pivot_table: str,
    ) -> None:
        super().__init__(conn, dialect)
        self.tags_table = tags_table
        self.pivot_table = pivot_table

    def duplicate_groups(self) -> dict[str, list[int]]:
        """Map each repeated tag name to its ids, lowest first.

        Name equality is the column collation's, so on a case-insensitive
        backend ``Grace`` and ``grace`` form one group.
        """
        names = self.query(
            f"SELECT MIN(id) AS first_id, MIN(name) AS name FROM {self.tags_table} "
            "WHERE name IS NOT NULL GROUP BY name HAVING COUNT(*) > 1 ORDER BY first_id"
        )
        ph = self.ph(1)
        groups: dict[str, list[int]] = {}
        for row in names:
            ids = self.query(
                f"SELECT id FROM {self.tags_table} WHERE name = {ph} ORDER BY id",
                (row["name"],),
            )
            groups[row["name"]] = [int(r["id"]) for r in ids]
        return groups

    def consolidate(self, name: str, ids: list[int]) -> int:
        """Repoint pivot rows to ``ids[0]`` and delete the other rows."""
        canonical, duplicates = ids[0], ids[1:]
        ph = self.ph(1)
        for dup in duplicates:
            self.execute(
                f"UPDATE {self.pivot_table} SET tag_id = {ph} WHERE tag_id = {ph}",
                (canonical, dup),
            )
            self.execute(f"DELETE FROM {self.tags_table} WHERE id = {ph}", (dup,))
        logger.info(
            "tags.consolidated", name=name, canonical_id=canonical, removed=duplicates
        )
        return len(duplicates)

    def dedupe(self) -> int:
        """Consolidate every duplicate group; returns rows removed."""
        removed = 0
        for name, ids in self.duplicate_groups().items():
            removed += self.consolidate(name, ids)
        self.commit()
        return removed

    def delete_unused(self) -> int:
        """Delete tags with no pivot row; returns rows removed."""
        before = self._count()
        self.execute(
            f"DELETE FROM {self.tags_table} WHERE NOT EXISTS ("
            f"SELECT 1 FROM {self.pivot_table} st WHERE st.tag_id = {self.tags_table}.id)"
        )
        self.commit()
        removed = before - self._count()
        if removed:
            logger.info("tags.unused_deleted", count=removed)
        return removed

    def _count(self) -> int:
        row = self.query_one(f"SELECT COUNT(*) AS n FROM {self.tags_table}")
        return int(row["n"]) if row else 0


__all__ = ["TagCleanup"]
