"""
Row Store - select/insert/update/upsert against the portal collections.

Plain SQL through SQLAlchemy text() with whitelisted identifiers. Every
method takes an optional Actor: with one, the collection policy is applied;
without one the call is trusted (used by server-side functions only).

Error surface:
- missing row      -> None from maybe_single (never an exception)
- malformed filter -> no rows (a value the column type cannot hold, e.g. a bad uuid)
- unique violation -> ConflictError
- policy refusal   -> PermissionDeniedError
- anything else    -> RemoteError
"""

import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import bindparam, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from placement_hub.core.exceptions import ConflictError, PermissionDeniedError, RemoteError
from placement_hub.db.postgres import get_db_session
from placement_hub.services.remote.policies import Actor, get_policy

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


@dataclass(frozen=True)
class TableSpec:
    columns: tuple
    json_columns: tuple = ()


TABLES: Dict[str, TableSpec] = {
    "profiles": TableSpec(columns=("id", "user_id", "role", "created_at", "updated_at")),
    "students": TableSpec(
        columns=(
            "id", "user_id", "full_name", "email", "phone", "college_roll_no", "stream", "year",
            "about_yourself", "past_experience", "preferred_job_role", "past_education",
            "skills", "expertise", "courses", "certificate_urls", "profile_image_url",
            "resume_url", "is_active", "created_at", "updated_at",
        ),
        json_columns=("past_education",),
    ),
    "job_postings": TableSpec(
        columns=(
            "id", "title", "company_name", "description", "job_type", "location", "salary_range",
            "requirements", "application_deadline", "posted_by", "is_active", "created_at", "updated_at",
        )
    ),
    "applications": TableSpec(
        columns=("id", "job_posting_id", "student_id", "status", "applied_at", "updated_at")
    ),
}


def _spec(collection: str) -> TableSpec:
    if collection not in TABLES:
        raise ValueError(f"Unknown collection: {collection}")
    return TABLES[collection]


def _check_columns(collection: str, columns: Iterable[str]) -> None:
    allowed = _spec(collection).columns
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise ValueError(f"Unknown column(s) for {collection}: {', '.join(unknown)}")


def _plain(row: Any) -> dict:
    """Convert a result mapping to JSON-friendly python values."""
    out = {}
    for key, value in dict(row).items():
        if isinstance(value, uuid.UUID):
            value = str(value)
        out[key] = value
    return out


def _where(filters: Dict[str, Any]) -> str:
    if not filters:
        return ""
    return " WHERE " + " AND ".join(f"{col} = :f_{col}" for col in filters)


@contextmanager
def _translate_errors(action: str, collection: str):
    try:
        yield
    except (PermissionDeniedError, ConflictError):
        raise
    except IntegrityError as e:
        if getattr(e.orig, "pgcode", None) == UNIQUE_VIOLATION:
            raise ConflictError(f"duplicate key value violates unique constraint on {collection}") from e
        logger.error(f"[ROWS] {action} on {collection} failed: {e}", exc_info=True)
        raise RemoteError(f"Could not {action} {collection}: constraint violation") from e
    except SQLAlchemyError as e:
        logger.error(f"[ROWS] {action} on {collection} failed: {e}", exc_info=True)
        raise RemoteError(f"Could not {action} {collection}") from e


class RowStore:
    """Synchronous row access. Wrapped by RemoteDataClient for async callers."""

    def _resolve_role(self, db, actor: Actor) -> None:
        result = db.execute(
            text("SELECT role FROM profiles WHERE user_id = :id"),
            {"id": actor.user_id}
        )
        row = result.fetchone()
        actor.role = row[0] if row else None

    def _statement(self, collection: str, sql: str, columns: Iterable[str]):
        json_columns = [c for c in columns if c in _spec(collection).json_columns]
        stmt = text(sql)
        if json_columns:
            stmt = stmt.bindparams(*(bindparam(c, type_=JSONB) for c in json_columns))
        return stmt

    def select(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        actor: Optional[Actor] = None,
    ) -> List[dict]:
        filters = filters or {}
        _check_columns(collection, list(filters) + ([order_by] if order_by else []))

        sql = f"SELECT * FROM {collection}{_where(filters)}"
        if order_by:
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        if limit:
            sql += f" LIMIT {int(limit)}"
        params = {f"f_{col}": value for col, value in filters.items()}

        with _translate_errors("read", collection):
            try:
                with get_db_session() as db:
                    rows = [_plain(r) for r in db.execute(text(sql), params).mappings().all()]
                    if actor is not None:
                        self._resolve_role(db, actor)
                        policy = get_policy(collection)
                        rows = [r for r in rows if policy.select(actor, r)]
            except DataError as e:
                logger.info(f"[ROWS] filter on {collection} cannot match any row: {e.orig}")
                return []
        return rows

    def maybe_single(
        self, collection: str, filters: Dict[str, Any], actor: Optional[Actor] = None
    ) -> Optional[dict]:
        rows = self.select(collection, filters, limit=2, actor=actor)
        if len(rows) > 1:
            raise RemoteError(f"Expected at most one {collection} row, found several")
        return rows[0] if rows else None

    def insert(self, collection: str, row: Dict[str, Any], actor: Optional[Actor] = None) -> dict:
        _check_columns(collection, row)
        columns = list(row)
        sql = (
            f"INSERT INTO {collection} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)}) RETURNING *"
        )
        with _translate_errors("insert", collection):
            with get_db_session() as db:
                if actor is not None:
                    self._resolve_role(db, actor)
                    if not get_policy(collection).insert(actor, row):
                        raise PermissionDeniedError(f"Not allowed to insert into {collection}")
                result = db.execute(self._statement(collection, sql, columns), row)
                return _plain(result.mappings().one())

    def update(
        self,
        collection: str,
        values: Dict[str, Any],
        filters: Dict[str, Any],
        actor: Optional[Actor] = None,
    ) -> List[dict]:
        _check_columns(collection, list(values) + list(filters))
        assignments = ", ".join(f"{c} = :{c}" for c in values)
        sql = f"UPDATE {collection} SET {assignments}, updated_at = now(){_where(filters)} RETURNING *"
        params = dict(values)
        params.update({f"f_{col}": value for col, value in filters.items()})

        with _translate_errors("update", collection):
            with get_db_session() as db:
                if actor is not None:
                    self._resolve_role(db, actor)
                    policy = get_policy(collection)
                    current = db.execute(
                        text(f"SELECT * FROM {collection}{_where(filters)}"),
                        {f"f_{col}": value for col, value in filters.items()}
                    ).mappings().all()
                    for existing in current:
                        if not policy.update(actor, {**_plain(existing), **values}):
                            raise PermissionDeniedError(f"Not allowed to update {collection}")
                result = db.execute(self._statement(collection, sql, list(values)), params)
                return [_plain(r) for r in result.mappings().all()]

    def upsert(
        self,
        collection: str,
        row: Dict[str, Any],
        on_conflict: str,
        actor: Optional[Actor] = None,
    ) -> dict:
        """Insert-or-replace keyed by a unique column."""
        _check_columns(collection, list(row) + [on_conflict])
        if on_conflict not in row:
            raise ValueError(f"Upsert row must carry the conflict column {on_conflict}")
        columns = list(row)
        replaced = [c for c in columns if c != on_conflict]
        sql = (
            f"INSERT INTO {collection} ({', '.join(columns)}) "
            f"VALUES ({', '.join(':' + c for c in columns)}) "
            f"ON CONFLICT ({on_conflict}) DO UPDATE SET "
            + ", ".join([f"{c} = EXCLUDED.{c}" for c in replaced] + ["updated_at = now()"])
            + " RETURNING *"
        )
        with _translate_errors("save", collection):
            with get_db_session() as db:
                if actor is not None:
                    self._resolve_role(db, actor)
                    policy = get_policy(collection)
                    existing = db.execute(
                        text(f"SELECT * FROM {collection} WHERE {on_conflict} = :key"),
                        {"key": row[on_conflict]}
                    ).mappings().first()
                    allowed = (
                        policy.update(actor, {**_plain(existing), **row})
                        if existing is not None
                        else policy.insert(actor, row)
                    )
                    if not allowed:
                        raise PermissionDeniedError(f"Not allowed to write {collection}")
                result = db.execute(self._statement(collection, sql, columns), row)
                return _plain(result.mappings().one())

