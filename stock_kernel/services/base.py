"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor for every write-side service. Services receive a
    SQLAlchemy ``Session`` and use ``session.flush()``, never
    ``session.commit()``: the caller owns the transaction, so a stock
    mutation and the evaluation it triggers commit or roll back together.

Architecture position:
    Kernel > Services -- imperative shell.
"""

from abc import ABC
from typing import Generic, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stock_kernel.db.base import Base
from stock_kernel.exceptions import DuplicateRecordError

ModelType = TypeVar("ModelType", bound=Base)

# Actor recorded on rows written by the system itself (evaluator, sweeps).
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for all kernel services.

    Guarantees:
        The service never calls ``session.commit()`` or
        ``session.rollback()``.

    Non-goals:
        Read-only queries belong in ``stock_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session

    def _flush_unique(self, entity_type: str) -> None:
        """Flush, translating unique-constraint violations into DuplicateRecordError.

        The session is left needing a rollback; the caller's transaction
        scope takes care of it when the error propagates.
        """
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise DuplicateRecordError(entity_type, str(exc.orig)) from exc
