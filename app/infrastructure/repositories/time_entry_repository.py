"""
Time entry repository implementation using SQLAlchemy.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, List, Optional

from sqlalchemy import func, desc
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.domain.models.base import (
    ConflictActiveEntry,
    EntityNotFoundError,
    IntegrityViolation,
    TransientStoreFailure,
)
from app.domain.models.time_entry import TimeEntry, TimeEntryStatus, Activity, ACTIVE_STATUSES
from app.domain.repositories.time_entry_repository import (
    TimeEntryRepository as TimeEntryRepositoryInterface,
    EntryMutation,
    EntrySummary,
    RunningSlice,
)
from app.infrastructure.db.database import SessionFactory, session_scope
from app.infrastructure.db.models import TimeEntryModel, ActivityModel
from app.infrastructure.mappers.time_entry_mapper import TimeEntryMapper, ActivityMapper, as_utc

logger = logging.getLogger(__name__)


class SQLAlchemyTimeEntryRepository(TimeEntryRepositoryInterface):
    """
    SQLAlchemy implementation of time entry repository.
    Each call is its own transaction; an entry and its activity commit together.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.mapper = TimeEntryMapper()
        self.activity_mapper = ActivityMapper()

    @contextmanager
    def _unit_of_work(self) -> Generator[Session, None, None]:
        try:
            with session_scope(self.session_factory) as db:
                yield db
        except IntegrityError:
            raise
        except (OperationalError, DBAPIError) as exc:
            logger.error(f"Time entry store unavailable: {exc}")
            raise TransientStoreFailure() from exc

    def create_if_no_active(self, entry: TimeEntry, activity: Activity) -> TimeEntry:
        """Insert a running entry unless the user already has an active one."""
        try:
            with self._unit_of_work() as db:
                existing = self._active_models(db, entry.tenant_id, entry.user_id)
                if existing:
                    self._ensure_single_active(entry.tenant_id, entry.user_id, existing)
                    raise ConflictActiveEntry(existing[0].id)

                db.add(self.mapper.domain_to_model(entry))
                db.add(self.activity_mapper.domain_to_model(activity))
                db.flush()
        except IntegrityError:
            # Lost the race against another process; the unique index rejected the insert
            active = self.find_active(entry.tenant_id, entry.user_id)
            raise ConflictActiveEntry(active.id if active else None) from None

        return entry

    def update_entry(self, tenant_id: str, entry_id: str, mutate: EntryMutation) -> TimeEntry:
        """Load, mutate and write back one entry with its activity in a single transaction."""
        with self._unit_of_work() as db:
            model = db.query(TimeEntryModel).filter_by(
                tenant_id=tenant_id, id=entry_id
            ).with_for_update().first()
            if not model:
                raise EntityNotFoundError("TimeEntry", entry_id)

            entry = self.mapper.model_to_domain(model)
            activity = mutate(entry)
            self.mapper.update_model(model, entry)
            if activity is not None:
                db.add(self.activity_mapper.domain_to_model(activity))
            db.flush()

        return entry

    def get(self, tenant_id: str, entry_id: str) -> Optional[TimeEntry]:
        """Get time entry by ID within the tenant."""
        with self._unit_of_work() as db:
            model = db.query(TimeEntryModel).filter_by(tenant_id=tenant_id, id=entry_id).first()
            if not model:
                return None
            return self.mapper.model_to_domain(model)

    def find_active(self, tenant_id: str, user_id: str) -> Optional[TimeEntry]:
        """Get the user's running or paused entry."""
        with self._unit_of_work() as db:
            models = self._active_models(db, tenant_id, user_id)
            if not models:
                return None
            self._ensure_single_active(tenant_id, user_id, models)
            return self.mapper.model_to_domain(models[0])

    def list_entries(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        project_id: Optional[str] = None,
        status: Optional[TimeEntryStatus] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[TimeEntry]:
        """List time entries with optional filters, newest start first."""
        with self._unit_of_work() as db:
            query = db.query(TimeEntryModel).filter(TimeEntryModel.tenant_id == tenant_id)

            if user_id:
                query = query.filter(TimeEntryModel.user_id == user_id)
            if project_id:
                query = query.filter(TimeEntryModel.project_id == project_id)
            if status:
                query = query.filter(TimeEntryModel.status == TimeEntryStatus(status))

            query = query.order_by(desc(TimeEntryModel.start_time), desc(TimeEntryModel.created_at))
            if offset:
                query = query.offset(offset)
            if limit:
                query = query.limit(limit)

            return [self.mapper.model_to_domain(model) for model in query.all()]

    def summarize(
        self,
        tenant_id: str,
        day_start: datetime,
        user_id: Optional[str] = None,
    ) -> EntrySummary:
        """Persisted totals plus the open intervals of running entries."""
        with self._unit_of_work() as db:
            base_filters = [TimeEntryModel.tenant_id == tenant_id]
            if user_id:
                base_filters.append(TimeEntryModel.user_id == user_id)

            total = db.query(
                func.coalesce(func.sum(TimeEntryModel.duration), 0)
            ).filter(*base_filters).scalar()

            today = db.query(
                func.coalesce(func.sum(TimeEntryModel.duration), 0)
            ).filter(*base_filters, TimeEntryModel.start_time >= day_start).scalar()

            running = db.query(TimeEntryModel).filter(
                *base_filters, TimeEntryModel.status == TimeEntryStatus.RUNNING
            ).all()

            return EntrySummary(
                persisted_total_seconds=int(total or 0),
                persisted_today_seconds=int(today or 0),
                running=[
                    RunningSlice(
                        entry_id=model.id,
                        user_id=model.user_id,
                        start_time=as_utc(model.start_time),
                        last_resumed_at=as_utc(model.last_resumed_at or model.start_time),
                    )
                    for model in running
                ],
            )

    def list_activities(
        self,
        tenant_id: str,
        user_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[Activity]:
        """Activity feed, newest first."""
        with self._unit_of_work() as db:
            query = db.query(ActivityModel).filter(ActivityModel.tenant_id == tenant_id)
            if user_id:
                query = query.filter(ActivityModel.user_id == user_id)

            query = query.order_by(desc(ActivityModel.timestamp)).limit(limit)
            return [self.activity_mapper.model_to_domain(model) for model in query.all()]

    def _active_models(self, db: Session, tenant_id: str, user_id: str) -> List[TimeEntryModel]:
        return db.query(TimeEntryModel).filter(
            TimeEntryModel.tenant_id == tenant_id,
            TimeEntryModel.user_id == user_id,
            TimeEntryModel.status.in_(ACTIVE_STATUSES),
        ).order_by(desc(TimeEntryModel.start_time)).all()

    def _ensure_single_active(self, tenant_id: str, user_id: str, models: List[TimeEntryModel]) -> None:
        """Log the integrity alert and raise when more than one entry is active."""
        if len(models) <= 1:
            return
        entry_ids = [model.id for model in models]
        logger.critical(
            f"INTEGRITY ALERT: user {user_id} in tenant {tenant_id} has "
            f"{len(models)} active time entries: {', '.join(entry_ids)}"
        )
        raise IntegrityViolation(
            f"User {user_id} has more than one active time entry",
            entry_ids,
        )
