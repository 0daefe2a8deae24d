import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from hostel_tracker.core.config import DATABASE_URL
from hostel_tracker.core.exceptions import ConflictError, UpstreamError

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)


def init_db(bind=None) -> None:
    # register every table on the metadata before create_all
    from hostel_tracker.models import announcement, issue, lost_found, notification, user  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


def get_session():
    with Session(engine) as session:
        yield session


def commit(session: Session, conflict_message: Optional[str] = None) -> None:
    """
    Commit the current unit of work or roll all of it back.

    An integrity violation becomes a ConflictError when the caller expects
    duplicates (``conflict_message``); any other store failure is an
    UpstreamError.
    """
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if conflict_message:
            raise ConflictError(conflict_message) from e
        logger.exception("Integrity error on commit")
        raise UpstreamError("Data store rejected the update") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Data store failure on commit")
        raise UpstreamError("Data store operation failed") from e
