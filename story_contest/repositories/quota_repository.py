"""
Quota Repository - Story Contest Platform
story_contest/repositories/quota_repository.py

Per-user, per-period entry counters with an atomic bounded increment.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.engine import Connection

from story_contest.repositories.base import BaseRepository


class QuotaRepository(BaseRepository):
    """Repository for QuotaCounter rows keyed by (user_id, period_key)."""

    TABLE_NAME = "quota_counters"

    def get_count(self, user_id: str, period_key: str) -> int:
        sql = """
            SELECT count FROM quota_counters
            WHERE user_id = :user_id AND period_key = :period_key
        """
        row = self.execute_query(
            sql, {"user_id": user_id, "period_key": period_key}, fetch_one=True
        )
        return int(row["count"]) if row else 0

    def try_increment(
        self,
        user_id: str,
        period_key: str,
        cap: int,
        now: datetime,
        conn: Optional[Connection] = None,
    ) -> bool:
        """
        Increment the counter only while it is below `cap`.

        Returns False, leaving the counter untouched, when the cap is reached.
        """
        ts = self.to_db_timestamp(now)
        params = {"user_id": user_id, "period_key": period_key, "cap": cap, "now": ts}

        with self.transaction(conn) as active:
            self.execute_query(
                """
                INSERT INTO quota_counters (user_id, period_key, count, updated_at)
                VALUES (:user_id, :period_key, 0, :now)
                ON CONFLICT (user_id, period_key) DO NOTHING
                """,
                params,
                conn=active,
            )
            rowcount = self.execute_query(
                """
                UPDATE quota_counters
                SET count = count + 1, updated_at = :now
                WHERE user_id = :user_id AND period_key = :period_key AND count < :cap
                """,
                params,
                conn=active,
            )
        return rowcount == 1

    def delete_before(self, period_key: str) -> int:
        """Drop counters of periods older than `period_key` ("YYYY-MM" sorts lexically)."""
        return self.execute_query(
            "DELETE FROM quota_counters WHERE period_key < :period_key",
            {"period_key": period_key},
        )
