import logging
from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from app.extensions import db
from app.exceptions import TransientStoreError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(operation: str, on_conflict: Exception = None):
    """Runs the block as one transaction: commit on success, rollback on any error.

    Database failures are re-raised as TransientStoreError. A unique
    constraint violation is re-raised as ``on_conflict`` when one is given.
    """
    try:
        yield
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if on_conflict is not None:
            logger.warning(f"{operation}: conflicting write rejected ({e.orig})")
            raise on_conflict from e
        logger.error(f"{operation} failed, transaction rolled back: {e}")
        raise TransientStoreError(f"{operation} failed, please try again") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{operation} failed, transaction rolled back: {e}")
        raise TransientStoreError(f"{operation} failed, please try again") from e
    except Exception:
        db.session.rollback()
        raise
