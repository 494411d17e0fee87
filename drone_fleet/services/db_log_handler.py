from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from drone_fleet.db.models import ServerLog

# Records from these loggers would be written through the same engine
# that produced them.
_SKIPPED_LOGGERS = ("sqlalchemy", "drone_fleet.services.db_log_handler")


class DBLogHandler(logging.Handler):
    """Keeps operator-relevant warnings in the ``server_logs`` table.

    Failed links, store conflicts and startup problems are logged at WARNING
    and stay queryable next to the audit trail after the process restarts.
    ``resource`` and ``action`` passed through ``extra=`` land in ``meta``.
    """

    def __init__(
        self,
        sessionmaker: Callable[[], Session],
        *,
        level: int = logging.WARNING,
    ) -> None:
        super().__init__(level=level)
        self._sessionmaker = sessionmaker

    def _meta(self, record: logging.LogRecord) -> dict[str, Any]:
        meta: dict[str, Any] = {"module": record.module, "lineno": record.lineno}
        for key in ("action", "resource"):
            value = getattr(record, key, None)
            if value is not None:
                meta[key] = str(value)
        return meta

    def emit(self, record: logging.LogRecord) -> None:
        if record.name.startswith(_SKIPPED_LOGGERS):
            return
        try:
            row = ServerLog(level=record.levelname, logger=record.name, message=self.format(record), meta=self._meta(record))
            with self._sessionmaker() as db:
                db.add(row)
                db.commit()
        except Exception:
            self.handleError(record)
