"""Tests for pine_lint.scheduler.AnalysisScheduler."""

import concurrent.futures
import logging
import threading

import pytest

from pine_lint import analyzer, diagnostics, scheduler
from pine_lint import rules as pine_rules

_TIMEOUT = 5


class _Gate:
    """Rule that blocks the first pass until released."""

    def __init__(self) -> None:
        self.started = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()
        self._calls = 0

    def __call__(self, program, token_stream):  # noqa: ANN001, ANN204
        with self._lock:
            self._calls += 1
            first = self._calls == 1
        if first:
            self.started.set()
            self.release.wait(timeout=_TIMEOUT)
        return []


class _Recorder:
    def __init__(self) -> None:
        self.published: list[tuple[str, list[diagnostics.Diagnostic]]] = []
        self._lock = threading.Lock()

    def __call__(self, uri: str, diags: list[diagnostics.Diagnostic]) -> None:
        with self._lock:
            self.published.append((uri, diags))


@pytest.fixture
def executor():  # noqa: ANN201
    pool = concurrent.futures.ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


def _gated_scheduler(
    gate: _Gate,
    recorder: _Recorder,
    executor: concurrent.futures.Executor,
) -> scheduler.AnalysisScheduler:
    doc_analyzer = analyzer.Analyzer(pine_rules.ALL_RULES, extra_rules=[("GATE", gate)])
    return scheduler.AnalysisScheduler(doc_analyzer, publish=recorder, executor=executor)


class TestAnalysisScheduler:
    def test_single_pass_publishes(self, executor: concurrent.futures.Executor) -> None:
        recorder = _Recorder()
        sched = scheduler.AnalysisScheduler(
            analyzer.Analyzer(pine_rules.ALL_RULES), publish=recorder, executor=executor
        )
        assert sched.submit("file:///a.pine", "if true\n    foo()").result(_TIMEOUT)
        ((uri, diags),) = recorder.published
        assert uri == "file:///a.pine"
        assert [diag.code for diag in diags] == ["LITERAL_BOOLEAN_MISUSE"]

    def test_newer_pass_supersedes_older(self, executor: concurrent.futures.Executor) -> None:
        gate, recorder = _Gate(), _Recorder()
        sched = _gated_scheduler(gate, recorder, executor)

        stale = sched.submit("file:///a.pine", "x = 1")
        assert gate.started.wait(_TIMEOUT)
        fresh = sched.submit("file:///a.pine", "x = )")
        assert fresh.result(_TIMEOUT) is True
        gate.release.set()
        assert stale.result(_TIMEOUT) is False

        ((uri, diags),) = recorder.published
        assert uri == "file:///a.pine"
        assert [diag.code for diag in diags] == ["SYNTAX_ERROR"]

    def test_documents_are_independent(self, executor: concurrent.futures.Executor) -> None:
        gate, recorder = _Gate(), _Recorder()
        sched = _gated_scheduler(gate, recorder, executor)

        slow = sched.submit("file:///a.pine", "x = 1")
        assert gate.started.wait(_TIMEOUT)
        other = sched.submit("file:///b.pine", "y = 2")
        assert other.result(_TIMEOUT) is True
        gate.release.set()
        assert slow.result(_TIMEOUT) is True
        assert sorted(uri for uri, _ in recorder.published) == [
            "file:///a.pine",
            "file:///b.pine",
        ]

    def test_discard_prevents_publish(self, executor: concurrent.futures.Executor) -> None:
        gate, recorder = _Gate(), _Recorder()
        sched = _gated_scheduler(gate, recorder, executor)

        pending = sched.submit("file:///a.pine", "x = 1")
        assert gate.started.wait(_TIMEOUT)
        sched.discard("file:///a.pine")
        gate.release.set()
        assert pending.result(_TIMEOUT) is False
        assert recorder.published == []

    def test_discard_unknown_uri_is_noop(self, executor: concurrent.futures.Executor) -> None:
        sched = scheduler.AnalysisScheduler(
            analyzer.Analyzer(), publish=_Recorder(), executor=executor
        )
        sched.discard("file:///never-opened.pine")

    def test_publish_failure_is_logged(
        self,
        executor: concurrent.futures.Executor,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def _broken(uri: str, diags: list[diagnostics.Diagnostic]) -> None:
            msg = "client went away"
            raise ConnectionError(msg)

        sched = scheduler.AnalysisScheduler(
            analyzer.Analyzer(pine_rules.ALL_RULES), publish=_broken, executor=executor
        )
        with caplog.at_level(logging.ERROR, logger="pine_lint.scheduler"):
            assert sched.submit("file:///a.pine", "x = 1").result(_TIMEOUT) is False
        assert "file:///a.pine" in caplog.text
        assert "client went away" in caplog.text

    def test_shutdown_waits_for_running_passes(self) -> None:
        recorder = _Recorder()
        sched = scheduler.AnalysisScheduler(
            analyzer.Analyzer(pine_rules.ALL_RULES), publish=recorder
        )
        future = sched.submit("file:///a.pine", "x = 1")
        sched.shutdown()
        assert future.done()

    def test_superseded_pass_never_publishes_last(
        self,
        executor: concurrent.futures.Executor,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        recorder = _Recorder()
        sched = scheduler.AnalysisScheduler(
            analyzer.Analyzer(pine_rules.ALL_RULES), publish=recorder, executor=executor
        )
        checked, release = threading.Event(), threading.Event()
        is_current = sched._is_current
        calls: list[str] = []

        def _slow_is_current(uri, token):  # noqa: ANN001, ANN202
            current = is_current(uri, token)
            calls.append(uri)
            if len(calls) == 1:
                checked.set()
                release.wait(timeout=_TIMEOUT)
            return current

        monkeypatch.setattr(sched, "_is_current", _slow_is_current)

        stale = sched.submit("file:///a.pine", "if true\n    x = 1")
        assert checked.wait(_TIMEOUT)
        fresh = sched.submit("file:///a.pine", "x = 1")
        # Give the newer pass every chance to publish before the older one.
        concurrent.futures.wait([fresh], timeout=0.5)
        release.set()
        stale.result(_TIMEOUT)
        assert fresh.result(_TIMEOUT) is True

        assert recorder.published[-1] == ("file:///a.pine", [])

    def test_analysis_failure_is_logged(
        self,
        executor: concurrent.futures.Executor,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        class _Exploding:
            def analyze(self, source, cancel=None):  # noqa: ANN001, ANN202
                msg = "analyzer broke"
                raise RuntimeError(msg)

        recorder = _Recorder()
        sched = scheduler.AnalysisScheduler(_Exploding(), publish=recorder, executor=executor)
        with caplog.at_level(logging.ERROR, logger="pine_lint.scheduler"):
            assert sched.submit("file:///a.pine", "x = 1").result(_TIMEOUT) is False
        assert "analyzer broke" in caplog.text
        assert recorder.published == []
