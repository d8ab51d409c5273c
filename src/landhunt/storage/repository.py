"""Enrichment store: parcel reads and idempotent enrichment writes.

Scores are upserted on parcel_id. Planning summaries are upserted on
parcel_id when one is given, else on source_url. Passports are appended,
never overwritten. Every write refreshes its timestamp, and concurrent
writes for one key resolve last-write-wins through the database's
INSERT ... ON CONFLICT DO UPDATE.

Read failures raise PersistenceError. Write failures follow an explicit
PersistencePolicy instead of being swallowed implicitly.
"""

import logging
from dataclasses import asdict, fields
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from landhunt.core.errors import PersistenceError, ValidationError
from landhunt.core.types import (
    Parcel,
    ParcelScores,
    PassportDocument,
    PersistencePolicy,
    PlanningSummary,
    PlanningSummaryRecord,
    ScoreRecord,
)
from landhunt.storage.models import (
    ParcelPassportRow,
    ParcelRow,
    ParcelScoreRow,
    PlanningSummaryRow,
)

logger = logging.getLogger(__name__)

_SCORE_KEYS = {f.name for f in fields(ParcelScores)}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _row_to_parcel(row: ParcelRow) -> Parcel:
    return Parcel(
        id=row.id,
        address=row.address,
        area_sq_m=row.area_sq_m,
        use_class=row.use_class,
        local_plan_designation=row.local_plan_designation,
        flood_zone=row.flood_zone,
        constraints=row.constraints,
        ppd_snapshot=row.ppd_snapshot,
    )


def _row_to_summary_record(row: PlanningSummaryRow) -> PlanningSummaryRecord:
    return PlanningSummaryRecord(
        summary=PlanningSummary(
            decision=row.decision,
            summary=row.summary,
            policies=list(row.policies or []),
            material_issues=list(row.material_issues or []),
            risks=list(row.risks or []),
            approval_probability=row.approval_probability,
        ),
        parcel_id=row.parcel_id,
        source_url=row.source_url,
        origin_url=row.origin_url,
        updated_at=row.updated_at,
    )


class EnrichmentStore:
    """Reads parcels, reads and writes enrichment records."""

    def __init__(self, session_factory: async_sessionmaker, dialect_name: str = "postgresql") -> None:
        self._session_factory = session_factory
        if dialect_name == "postgresql":
            self._insert = postgresql.insert
        elif dialect_name == "sqlite":
            self._insert = sqlite.insert
        else:
            raise ValueError(f"Unsupported database dialect for upserts: {dialect_name}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_parcel(self, parcel_id: str) -> Parcel | None:
        row = await self._select_one(
            select(ParcelRow).where(ParcelRow.id == parcel_id), "parcels", parcel_id,
        )
        return _row_to_parcel(row) if row else None

    async def get_scores(self, parcel_id: str) -> ScoreRecord | None:
        row = await self._select_one(
            select(ParcelScoreRow).where(ParcelScoreRow.parcel_id == parcel_id),
            "parcel_ai_scores", parcel_id,
        )
        if row is None:
            return None
        raw = row.scores if isinstance(row.scores, dict) else {}
        scores = ParcelScores(**{k: v for k, v in raw.items() if k in _SCORE_KEYS})
        return ScoreRecord(parcel_id=row.parcel_id, scores=scores, updated_at=row.updated_at)

    async def get_planning_summary(
        self, parcel_id: str | None = None, source_url: str | None = None,
    ) -> PlanningSummaryRecord | None:
        if parcel_id:
            clause = PlanningSummaryRow.parcel_id == parcel_id
        elif source_url:
            clause = PlanningSummaryRow.source_url == source_url
        else:
            return None

        row = await self._select_one(
            select(PlanningSummaryRow).where(clause), "planning_summaries", parcel_id or source_url,
        )
        return _row_to_summary_record(row) if row else None

    async def list_passports(self, parcel_id: str) -> list[PassportDocument]:
        """Passports generated for a parcel, newest first."""
        rows = await self._select_all(
            select(ParcelPassportRow)
            .where(ParcelPassportRow.parcel_id == parcel_id)
            .order_by(ParcelPassportRow.id.desc()),
            "parcel_passports", parcel_id,
        )
        return [
            PassportDocument(
                parcel_id=row.parcel_id, file_path=row.file_path, url=row.url,
                created_at=row.created_at,
            )
            for row in rows
        ]

    async def _select_one(self, stmt, table: str, key: str):
        return await self._read(stmt, table, key, lambda result: result.scalar_one_or_none())

    async def _select_all(self, stmt, table: str, key: str) -> list:
        return await self._read(stmt, table, key, lambda result: list(result.scalars().all()))

    async def _read(self, stmt, table: str, key: str, extract):
        """Run a SELECT. Read failures always raise, whatever the write policy."""
        session = self._session_factory()
        try:
            result = await session.execute(stmt)
            return extract(result)
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Failed to read %s for %s: %s", table, key, e,
                extra={"error_type": "persistence_error"},
            )
            raise PersistenceError(f"Failed to read {table} for {key}: {e}") from e
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def upsert_scores(
        self,
        parcel_id: str,
        scores: ParcelScores,
        policy: PersistencePolicy = PersistencePolicy.BEST_EFFORT,
    ) -> bool:
        """Insert or overwrite the score record for a parcel.

        Returns True when the write landed, False when it failed under
        BEST_EFFORT.
        """
        now = _utcnow()
        stmt = self._insert(ParcelScoreRow).values(
            parcel_id=parcel_id, scores=asdict(scores), updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ParcelScoreRow.parcel_id],
            set_={"scores": stmt.excluded.scores, "updated_at": stmt.excluded.updated_at},
        )
        return await self._write(stmt, policy, "parcel_ai_scores", parcel_id)

    async def upsert_planning_summary(
        self,
        summary: PlanningSummary,
        parcel_id: str | None = None,
        source_url: str | None = None,
        origin_url: str | None = None,
        policy: PersistencePolicy = PersistencePolicy.BEST_EFFORT,
    ) -> bool:
        """Insert or overwrite a planning summary.

        The conflict key is parcel_id when given, otherwise source_url.
        Only the chosen key is stored, so a record never carries two
        identities.

        Raises:
            ValidationError: neither parcel_id nor source_url was given.
                Raised before any database work, regardless of policy.
        """
        if parcel_id:
            key_column = PlanningSummaryRow.parcel_id
            identity = {"parcel_id": parcel_id, "source_url": None}
        elif source_url:
            key_column = PlanningSummaryRow.source_url
            identity = {"parcel_id": None, "source_url": source_url}
        else:
            raise ValidationError("planning summary needs a parcel_id or source_url")

        values = {
            "decision": summary.decision,
            "summary": summary.summary,
            "policies": list(summary.policies),
            "material_issues": list(summary.material_issues),
            "risks": list(summary.risks),
            "approval_probability": summary.approval_probability,
            "origin_url": origin_url if parcel_id else None,
            "updated_at": _utcnow(),
        }
        stmt = self._insert(PlanningSummaryRow).values(**identity, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[key_column],
            set_={name: getattr(stmt.excluded, name) for name in values},
        )
        return await self._write(stmt, policy, "planning_summaries", parcel_id or source_url)

    async def append_passport(
        self,
        parcel_id: str,
        file_path: str,
        url: str,
        policy: PersistencePolicy = PersistencePolicy.BEST_EFFORT,
    ) -> bool:
        stmt = self._insert(ParcelPassportRow).values(
            parcel_id=parcel_id, file_path=file_path, url=url, created_at=_utcnow(),
        )
        return await self._write(stmt, policy, "parcel_passports", parcel_id)

    async def _write(self, stmt, policy: PersistencePolicy, table: str, key: str) -> bool:
        session = self._session_factory()
        try:
            await session.execute(stmt)
            await session.commit()
        except (SQLAlchemyError, OSError) as e:
            await session.rollback()
            if policy is PersistencePolicy.REQUIRED:
                raise PersistenceError(f"Failed to write {table} for {key}: {e}") from e
            logger.error(
                "Failed to write %s for %s (best effort, result still returned): %s",
                table, key, e, extra={"error_type": "persistence_error"},
            )
            return False
        finally:
            await session.close()

        logger.info("Wrote %s for %s", table, key)
        return True
