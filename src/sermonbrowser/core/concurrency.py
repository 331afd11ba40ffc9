"""Upgrade guard: DB-level single-flight lock around the cascade.

Two requests that both see a stale schema version would otherwise run
the same ALTER statements twice.  ``UpgradeGuard`` keeps one lock row
per key in ``<prefix>sb_upgrade_locks`` with an expiry, so a crashed
upgrade releases itself after ``timeout_seconds``.

::

    UpgradeGuard(conn, dialect, table)
      ├── .acquire(key, holder)   ─ try-lock, re-entrant for the same holder
      ├── .release(key, holder)   ─ explicit unlock
      ├── .is_locked(key)         ─ check without acquiring
      ├── .holder(key)            ─ current owner or None
      └── .cleanup_expired()      ─ reap stale locks

Example::

    guard = UpgradeGuard(conn, dialect, "wp_sb_upgrade_locks")
    if guard.acquire("schema-upgrade", holder="pid-4242"):
        try:
            upgrader.database_upgrade("1.4")
        finally:
            guard.release("schema-upgrade", "pid-4242")
"""

from datetime import UTC, datetime, timedelta

from sermonbrowser.core.dialect import Dialect
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.protocols import Connection
from sermonbrowser.core.repository import SchemaRepository

logger = get_logger(__name__)


def utcnow() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(UTC)


class UpgradeGuard:
    """Expiring lock rows keyed by name.

    The lock table is created on first use and dropped by the
    uninstaller together with the managed tables.
    """

    def __init__(self, conn: Connection, dialect: Dialect, table: str):
        self._repo = SchemaRepository(conn, dialect)
        self._conn = conn
        self.table = table
        self._ready = False

    def ensure_table(self) -> None:
        if self._ready:
            return
        if not self._repo.table_exists(self.table):
            self._conn.execute(
                f"CREATE TABLE {self.table} ("
                "lock_key VARCHAR(100) NOT NULL PRIMARY KEY, "
                "holder VARCHAR(100) NOT NULL, "
                "acquired_at VARCHAR(40) NOT NULL, "
                "expires_at VARCHAR(40) NOT NULL)"
            )
            self._conn.commit()
        self._ready = True

    def acquire(self, lock_key: str, holder: str, timeout_seconds: int = 600) -> bool:
        """Try to acquire a lock.

        Returns:
            True if the lock is now held by *holder*, False if another
            holder has an unexpired lock.
        """
        self.ensure_table()
        ph = self._repo.ph
        now = utcnow()
        expires_at = (now + timedelta(seconds=timeout_seconds)).isoformat()

        self._conn.execute(
            f"DELETE FROM {self.table} WHERE lock_key = {ph(1)} AND expires_at < {ph(1)}",
            (lock_key, now.isoformat()),
        )

        current = self.holder(lock_key)
        if current is None:
            try:
                self._repo.insert(
                    self.table,
                    {
                        "lock_key": lock_key,
                        "holder": holder,
                        "acquired_at": now.isoformat(),
                        "expires_at": expires_at,
                    },
                )
                self._conn.commit()
                logger.debug("upgrade_lock.acquired", lock_key=lock_key, holder=holder)
                return True
            except Exception:  # noqa: BLE001 - lost the insert race
                self._conn.rollback()
                current = self.holder(lock_key)

        if current == holder:
            self._conn.execute(
                f"UPDATE {self.table} SET expires_at = {ph(1)} "
                f"WHERE lock_key = {ph(1)} AND holder = {ph(1)}",
                (expires_at, lock_key, holder),
            )
            self._conn.commit()
            return True

        logger.info("upgrade_lock.busy", lock_key=lock_key, holder=current)
        return False

    def release(self, lock_key: str, holder: str | None = None) -> None:
        self.ensure_table()
        ph = self._repo.ph
        if holder:
            self._conn.execute(
                f"DELETE FROM {self.table} WHERE lock_key = {ph(1)} AND holder = {ph(1)}",
                (lock_key, holder),
            )
        else:
            self._conn.execute(
                f"DELETE FROM {self.table} WHERE lock_key = {ph(1)}", (lock_key,)
            )
        self._conn.commit()
        logger.debug("upgrade_lock.released", lock_key=lock_key)

    def holder(self, lock_key: str) -> str | None:
        """Holder of an unexpired lock, or None."""
        self.ensure_table()
        row = self._repo.query_one(
            f"SELECT holder, expires_at FROM {self.table} WHERE lock_key = {self._repo.ph(1)}",
            (lock_key,),
        )
        if row is None:
            return None
        if datetime.fromisoformat(row["expires_at"]) < utcnow():
            return None
        return row["holder"]

    def is_locked(self, lock_key: str) -> bool:
        return self.holder(lock_key) is not None

    def cleanup_expired(self) -> int:
        """Delete every expired lock; returns the number removed."""
        self.ensure_table()
        cursor = self._conn.execute(
            f"DELETE FROM {self.table} WHERE expires_at < {self._repo.ph(1)}",
            (utcnow().isoformat(),),
        )
        self._conn.commit()
        return getattr(cursor, "rowcount", 0) or 0


__all__ = ["UpgradeGuard"]
