"""Audit Log - example extension that logs its lifecycle calls."""

import logging

from units import Unit

logger = logging.getLogger(__name__)


class AuditLogUnit(Unit):
    """Records when the host initializes it."""

    def init(self) -> None:
        logger.info("audit_log: init (request=%r)", self.request)

    def after_init(self) -> None:
        logger.info("audit_log: after_init")
