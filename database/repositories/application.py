import logging
from datetime import datetime
from typing import List, Optional, Any, Sequence

from sqlalchemy import select, update

from database.models import Application, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ApplicationRepository(BaseRepository):
    def get_by_id(self, application_id: Any) -> Optional[Application]:
        stmt = select(Application).where(Application.id == application_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_for_update(self, application_id: Any) -> Optional[Application]:
        """Load the application with a row lock held until the transaction ends."""
        stmt = (
            select(Application)
            .where(Application.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def compare_and_set_status(
        self,
        application_id: Any,
        observed: str,
        new_status: str,
        claimed_at: Optional[datetime] = None,
        release_claim: bool = False,
        expected_claimed_at: Optional[datetime] = None,
        require_unclaimed: bool = False,
    ) -> bool:
        """Move status from observed to new_status. Returns False if the row moved on.

        expected_claimed_at additionally requires that the analysis claim is
        still the one this caller took; require_unclaimed requires that there
        is no claim timestamp at all.
        """
        values = {'status': new_status, 'updated_at': utcnow()}
        if claimed_at is not None:
            values['analysis_claimed_at'] = claimed_at
        elif release_claim:
            values['analysis_claimed_at'] = None

        stmt = (
            update(Application)
            .where(Application.id == application_id, Application.status == observed)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if expected_claimed_at is not None:
            stmt = stmt.where(Application.analysis_claimed_at == expected_claimed_at)
        elif require_unclaimed:
            stmt = stmt.where(Application.analysis_claimed_at.is_(None))
        result = self.db.execute(stmt)
        return result.rowcount == 1

    def get_stale_with_status(self, status: str, cutoff: datetime) -> List[Application]:
        stmt = (
            select(Application)
            .where(Application.status == status, Application.updated_at < cutoff)
            .order_by(Application.updated_at)
        )
        return self.db.execute(stmt).scalars().all()

    def get_with_status(
        self,
        status: str,
        job_role: Optional[str] = None,
        application_ids: Optional[Sequence[Any]] = None,
    ) -> List[Application]:
        """Applications in a status, narrowed to explicit ids if given, else to a job role."""
        stmt = select(Application).where(Application.status == status)
        if application_ids:
            stmt = stmt.where(Application.id.in_(list(application_ids)))
        elif job_role is not None:
            stmt = stmt.where(Application.job_role == job_role)
        stmt = stmt.order_by(Application.created_at)
        return self.db.execute(stmt).scalars().all()
