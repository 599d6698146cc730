"""Commits accepted stop sequences back to the assignment store."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Sequence

from ...persistence.assignments import AssignmentStore
from .models import AssignmentStop

DEFAULT_REASON = "Dynamic optimization based on traffic conditions"
CHANGE_TYPE = "rerouted"

logger = logging.getLogger(__name__)


class ReroutingApplier:
    """Writes new sequences, holding one lock per cluster so writes never interleave."""

    def __init__(self, store: AssignmentStore) -> None:
        self.store = store
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, cluster_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(cluster_id)
            if lock is None:
                lock = self._locks[cluster_id] = threading.Lock()
            return lock

    def apply_reroute(
        self,
        cluster_id: str,
        new_sequence: Sequence[AssignmentStop | str],
        reason: str = DEFAULT_REASON,
    ) -> bool:
        """Persist ``new_sequence`` as positions 1..n and record an audit entry.

        Returns False on invalid input or store failure; retrying is left to the caller.
        """

        order_ids = [item.order_id if isinstance(item, AssignmentStop) else str(item) for item in new_sequence]
        if not order_ids:
            logger.warning(f"Refusing to apply an empty sequence to cluster {cluster_id}")
            return False
        if len(set(order_ids)) != len(order_ids):
            logger.warning(f"Refusing to apply a sequence with duplicate orders to cluster {cluster_id}")
            return False

        with self.lock_for(cluster_id):
            try:
                self.store.update_sequence(cluster_id, order_ids)
                self.store.log_route_change(cluster_id, CHANGE_TYPE, reason, datetime.now(timezone.utc))
            except Exception as exc:
                logger.error(f"Failed to apply dynamic rerouting to cluster {cluster_id}: {exc}")
                return False

        logger.info(f"Applied new {len(order_ids)}-stop sequence to cluster {cluster_id}")
        return True
