import logging
from typing import List, Optional, Any, Dict

from sqlalchemy import select

from database.models import JobRequirement, MatchResult, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class MatchRepository(BaseRepository):
    def get_requirement(self, job_requirement_id: Any) -> Optional[JobRequirement]:
        stmt = select(JobRequirement).where(JobRequirement.id == job_requirement_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_match(self, application_id: Any, job_requirement_id: Any) -> Optional[MatchResult]:
        stmt = select(MatchResult).where(
            MatchResult.application_id == application_id,
            MatchResult.job_requirement_id == job_requirement_id
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def upsert_match(
        self,
        application_id: Any,
        job_requirement_id: Any,
        match_score: int,
        skills_match: int,
        experience_match: int,
        education_match: int,
        match_details: Dict[str, Any],
    ) -> None:
        values = {
            'match_score': match_score,
            'skills_match': skills_match,
            'experience_match': experience_match,
            'education_match': education_match,
            'match_details': match_details,
            'created_at': utcnow(),
        }
        stmt = self._insert(MatchResult).values(
            application_id=application_id,
            job_requirement_id=job_requirement_id,
            **values
        ).on_conflict_do_update(
            index_elements=['application_id', 'job_requirement_id'],
            set_=values
        )
        self.db.execute(stmt)

    def get_matches_for_requirement(self, job_requirement_id: Any, min_score: Optional[int] = None) -> List[MatchResult]:
        stmt = select(MatchResult).where(MatchResult.job_requirement_id == job_requirement_id)
        if min_score is not None:
            stmt = stmt.where(MatchResult.match_score >= min_score)
        stmt = stmt.order_by(MatchResult.match_score.desc())
        return self.db.execute(stmt).scalars().all()
