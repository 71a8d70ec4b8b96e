"""Tests for pine_lint.publish: the JSON diagnostic contract."""

import json
import pathlib

from pine_lint import diagnostics, publish, tokens


def _diag(severity: diagnostics.Severity) -> diagnostics.Diagnostic:
    return diagnostics.Diagnostic(
        code=diagnostics.Code.UNREACHABLE_CODE,
        message="Code after `return` is unreachable",
        severity=severity,
        range=tokens.Range(tokens.Position(2, 4), tokens.Position(3, 9)),
    )


class TestToPayload:
    def test_shape(self) -> None:
        assert publish.to_payload(_diag(diagnostics.Severity.WARNING)) == {
            "code": "UNREACHABLE_CODE",
            "message": "Code after `return` is unreachable",
            "severity": 1,
            "range": {
                "start": {"line": 2, "character": 4},
                "end": {"line": 3, "character": 9},
            },
            "source": "pine-lint",
        }

    def test_error_severity_is_two(self) -> None:
        assert publish.to_payload(_diag(diagnostics.Severity.ERROR))["severity"] == 2

    def test_payload_is_json_serialisable(self) -> None:
        payload = publish.to_payload(_diag(diagnostics.Severity.ERROR))
        assert json.loads(json.dumps(payload)) == payload


class TestDumps:
    def test_empty_list(self) -> None:
        assert json.loads(publish.dumps([])) == []

    def test_preserves_order(self) -> None:
        first = _diag(diagnostics.Severity.ERROR)
        second = diagnostics.Diagnostic(
            code="OTHER",
            message="later",
            severity=diagnostics.Severity.WARNING,
            range=tokens.Range(tokens.Position(7, 0), tokens.Position(7, 1)),
        )
        loaded = json.loads(publish.dumps([first, second]))
        assert [item["code"] for item in loaded] == ["UNREACHABLE_CODE", "OTHER"]

    def test_ends_with_newline(self) -> None:
        assert publish.dumps([]).endswith("\n")

    def test_write(self, tmp_path: pathlib.Path) -> None:
        output = tmp_path / "out.json"
        publish.write([_diag(diagnostics.Severity.WARNING)], output)
        assert json.loads(output.read_text(encoding="utf-8"))[0]["severity"] == 1


class TestHasErrors:
    def test_warnings_only(self) -> None:
        assert not publish.has_errors([_diag(diagnostics.Severity.WARNING)])

    def test_with_error(self) -> None:
        assert publish.has_errors(
            [_diag(diagnostics.Severity.WARNING), _diag(diagnostics.Severity.ERROR)]
        )

    def test_empty(self) -> None:
        assert not publish.has_errors([])
