"""Storage ledger: per-owner byte accounting against a quota."""

import sqlite3
from dataclasses import dataclass
from typing import Dict, Optional

from common.logging_config import get_logger
from docstore.exceptions import QuotaExceededError, UserNotFoundError
from docstore.repositories.user_repository import UserRepository

logger = get_logger(__name__)


@dataclass
class Reservation:
    """
    A pending change to one owner's storage_used.

    Positive deltas are applied to the counter at reservation time (held)
    so concurrent writers cannot both pass the quota check. Negative deltas
    are only applied on commit.
    """
    owner_id: str
    delta: int
    held: bool = False
    settled: bool = False


class StorageLedger:
    def __init__(self):
        self.user_repo = UserRepository()

    def check_and_reserve(self, owner_id: str, delta: int) -> Reservation:
        """
        Reserve delta bytes for owner_id.

        Raises:
            UserNotFoundError: If the owner has no ledger entry
            QuotaExceededError: If used + delta would exceed the owner's limit
        """
        if delta <= 0:
            return Reservation(owner_id=owner_id, delta=delta)

        if self.user_repo.try_increment_storage(owner_id, delta):
            logger.debug(f"Reserved {delta} bytes [owner_id={owner_id}]")
            return Reservation(owner_id=owner_id, delta=delta, held=True)

        user = self.user_repo.get_by_user_id(owner_id)
        if user is None:
            raise UserNotFoundError(f"User '{owner_id}' not found")

        logger.warning(
            f"Quota exceeded [owner_id={owner_id}]: used={user.storage_used} "
            f"limit={user.storage_limit} required={delta}"
        )
        raise QuotaExceededError(used=user.storage_used, limit=user.storage_limit, required=delta)

    def commit(self, reservation: Reservation, conn: Optional[sqlite3.Connection] = None) -> None:
        """
        Finalize a reservation once the content write or delete succeeded.
        """
        if reservation.settled:
            return
        if reservation.delta < 0:
            self.user_repo.decrement_storage(reservation.owner_id, -reservation.delta, conn=conn)
        reservation.settled = True
        logger.debug(f"Committed storage delta {reservation.delta} [owner_id={reservation.owner_id}]")

    def release(self, reservation: Reservation) -> None:
        """
        Give back a held reservation whose guarded write failed.
        """
        if reservation.settled:
            return
        if reservation.held:
            self.user_repo.decrement_storage(reservation.owner_id, reservation.delta)
            logger.info(f"Released {reservation.delta} reserved bytes [owner_id={reservation.owner_id}]")
        reservation.settled = True

    def reclaim(self, owner_id: str, amount: int) -> bool:
        """
        Return amount bytes to owner_id after a deletion.

        A failure here is logged and reported, never raised: the deleted
        content is already gone and cannot be restored.
        """
        if amount <= 0:
            return True

        reservation = Reservation(owner_id=owner_id, delta=-amount)
        try:
            self.commit(reservation)
        except sqlite3.Error as e:
            logger.error(
                f"Storage reclamation failed, counter out of sync by {amount} bytes "
                f"[owner_id={owner_id}]: {e}",
                exc_info=True
            )
            return False

        logger.info(f"Reclaimed {amount} bytes [owner_id={owner_id}]")
        return True

    def usage(self, user_id: str) -> Dict[str, int]:
        user = self.user_repo.get_by_user_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User '{user_id}' not found")
        return {
            "used": user.storage_used,
            "limit": user.storage_limit,
            "available": max(user.storage_limit - user.storage_used, 0),
        }
