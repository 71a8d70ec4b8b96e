"""Cooperative cancellation for analysis passes."""

import threading


class AnalysisCancelled(Exception):
    """Raised at a checkpoint once the pass has been superseded."""


class CancellationToken:
    """Flag shared between the owner of a pass and the pass itself."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


def checkpoint(token: CancellationToken | None, stage: str) -> None:
    """Stop the current pass if *token* has been cancelled.

    Args:
        token: The pass's token, or None when the pass cannot be cancelled.
        stage: Name of the pipeline stage that just finished, for diagnostics.

    Raises:
        AnalysisCancelled: If the token was cancelled.
    """
    if token is not None and token.is_cancelled:
        raise AnalysisCancelled(stage)
