"""Run analysis passes in the background, keeping one live pass per document."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import typing
from collections.abc import Callable

from pine_lint import cancellation

if typing.TYPE_CHECKING:
    from pine_lint import analyzer, diagnostics

logger = logging.getLogger(__name__)

PublishCallback = Callable[[str, list["diagnostics.Diagnostic"]], None]


class AnalysisScheduler:
    """Schedules analysis passes so that a newer pass supersedes older ones.

    Submitting a document cancels whatever pass is still running for the same
    URI. A pass only publishes if it ran to completion and is still the latest
    pass for its document. Different documents are analyzed in parallel.
    """

    def __init__(
        self,
        doc_analyzer: analyzer.Analyzer,
        publish: PublishCallback,
        executor: concurrent.futures.Executor | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            doc_analyzer: Analyzer used for every pass.
            publish: Called with ``(uri, diagnostics)`` for each completed pass.
            executor: Where passes run. Defaults to a private thread pool.
        """
        self._analyzer = doc_analyzer
        self._publish = publish
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            thread_name_prefix="pine-lint"
        )
        self._lock = threading.Lock()
        self._publish_lock = threading.Lock()
        self._pending: dict[str, cancellation.CancellationToken] = {}

    def submit(self, uri: str, source: str) -> concurrent.futures.Future[bool]:
        """Start a pass over *source*, superseding any pass for *uri*.

        Returns:
            A future resolving to True if the pass published its diagnostics.
        """
        token = cancellation.CancellationToken()
        with self._lock:
            previous = self._pending.get(uri)
            if previous is not None:
                previous.cancel()
            self._pending[uri] = token
        return self._executor.submit(self._run, uri, source, token)

    def discard(self, uri: str) -> None:
        """Cancel any pass for *uri*, e.g. when the document is closed."""
        with self._lock:
            token = self._pending.pop(uri, None)
        if token is not None:
            token.cancel()

    def shutdown(self) -> None:
        with self._lock:
            for token in self._pending.values():
                token.cancel()
            self._pending.clear()
        self._executor.shutdown(wait=True)

    def _is_current(self, uri: str, token: cancellation.CancellationToken) -> bool:
        with self._lock:
            return self._pending.get(uri) is token and not token.is_cancelled

    def _finish(self, uri: str, token: cancellation.CancellationToken) -> None:
        with self._lock:
            if self._pending.get(uri) is token:
                del self._pending[uri]

    def _run(
        self,
        uri: str,
        source: str,
        token: cancellation.CancellationToken,
    ) -> bool:
        try:
            diags = self._analyzer.analyze(source, cancel=token)
        except cancellation.AnalysisCancelled as exc:
            logger.debug("Pass for %s superseded (stopped %s)", uri, exc)
            return False
        except Exception:  # noqa: BLE001
            logger.exception("Analysis of %s failed", uri)
            self._finish(uri, token)
            return False
        # Check and publish together: a superseded pass never publishes after
        # the pass that replaced it.
        with self._publish_lock:
            if not self._is_current(uri, token):
                logger.debug("Pass for %s finished after being superseded", uri)
                return False
            try:
                self._publish(uri, diags)
            except Exception:  # noqa: BLE001
                logger.exception("Publishing diagnostics for %s failed", uri)
                return False
            finally:
                self._finish(uri, token)
        return True
