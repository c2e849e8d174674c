import contextlib
import logging

from sqlalchemy.exc import SQLAlchemyError

from core.errors import PersistenceError
from database.database import SessionLocal
from database.repository import RecruitmentRepository

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def recruitment_uow(session_factory=None):
    """Per-unit-of-work transaction scope.

    Yields a RecruitmentRepository bound to a fresh Session. Commits on
    success, rolls back on exception, always closes. Store failures surface
    as PersistenceError.

    Usage:
        with recruitment_uow() as repo:
            application = repo.applications.get_by_id(application_id)
            # perform operations...
        # commit happens automatically on successful exit
    """
    session = (session_factory or SessionLocal)()
    try:
        repo = RecruitmentRepository(session)
        yield repo
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(str(e)) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
