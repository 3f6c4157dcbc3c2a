"""Audit log collaborator for the dispatch facade.

AuditSink is the interface the facade calls once per uncached
interaction. AuditLogger is the default implementation: it persists an
InteractionRecord and emits a log line. Persistence failures are
reported to the log and never reach the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from switchboard.models.interaction import InteractionRecord, OperationKind
from switchboard.storage.json_store import InteractionSink

logger = logging.getLogger("switchboard.audit")

__all__ = ["AuditLogger", "AuditSink"]


@runtime_checkable
class AuditSink(Protocol):
    """Receives one entry per dispatched interaction."""

    def record(
        self,
        provider: str,
        operation: OperationKind,
        input: Any,
        output: Any,
        options: dict[str, Any],
        tokens_used: int,
        duration: float,
        success: bool,
        error: str | None = None,
        user_id: str | None = None,
    ) -> None: ...


class AuditLogger:
    """Write interaction records to a store and to the ``switchboard.audit`` log.

    Args:
        store: Where records are persisted. None logs without persisting.
        enabled: When False, :meth:`record` does nothing.
    """

    def __init__(self, store: InteractionSink | None = None, enabled: bool = True) -> None:
        self.store = store
        self.enabled = enabled

    def record(
        self,
        provider: str,
        operation: OperationKind,
        input: Any,
        output: Any,
        options: dict[str, Any],
        tokens_used: int,
        duration: float,
        success: bool,
        error: str | None = None,
        user_id: str | None = None,
    ) -> None:
        if not self.enabled:
            return

        context = {
            "provider": provider,
            "operation": operation,
            "tokens_used": tokens_used,
            "duration": duration,
        }
        try:
            if self.store is not None:
                self.store.save(
                    InteractionRecord(
                        provider=provider,
                        type=operation,
                        input=input,
                        output=output,
                        options=options,
                        tokens_used=tokens_used,
                        duration=duration,
                        success=success,
                        error=error,
                        user_id=user_id,
                    )
                )
        except Exception as exc:
            logger.error("Failed to log AI interaction: %s", exc, exc_info=True, extra=context)
            return

        if success:
            logger.info("AI request (%s/%s)", provider, operation, extra=context)
        else:
            logger.error("AI error (%s): %s", provider, error, extra=context)
