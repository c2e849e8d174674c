import logging
from typing import List, Optional, Any, Dict, Tuple

from sqlalchemy import select, delete

from database.models import AnalysisResult, Skill, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AnalysisRepository(BaseRepository):
    def upsert_result(
        self,
        application_id: Any,
        skills_score: int,
        experience_score: int,
        education_score: int,
        overall_score: int,
        recommendations: Optional[str],
        analysis_summary: Dict[str, Any],
    ) -> AnalysisResult:
        """Insert or wholly replace the single analysis row for an application."""
        analyzed_at = utcnow()
        values = {
            'skills_score': skills_score,
            'experience_score': experience_score,
            'education_score': education_score,
            'overall_score': overall_score,
            'recommendations': recommendations,
            'analysis_summary': analysis_summary,
            'analyzed_at': analyzed_at,
        }
        stmt = self._insert(AnalysisResult).values(
            application_id=application_id,
            **values
        ).on_conflict_do_update(
            index_elements=['application_id'],
            set_=values
        )
        self.db.execute(stmt)
        return self.db.execute(
            select(AnalysisResult)
            .where(AnalysisResult.application_id == application_id)
            .execution_options(populate_existing=True)
        ).scalar_one()

    def replace_skills(self, application_id: Any, skills: List[Tuple[str, Optional[str]]]) -> int:
        """Delete the application's skills and insert the new set. Returns rows inserted."""
        self.db.execute(
            delete(Skill).where(Skill.application_id == application_id)
        )
        now = utcnow()
        rows = [
            Skill(application_id=application_id, skill_name=name, proficiency_level=level, created_at=now)
            for name, level in skills
        ]
        self.db.add_all(rows)
        self.db.flush()
        return len(rows)
