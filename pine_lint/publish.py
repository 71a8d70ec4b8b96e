"""Serialise diagnostics for the publish contract and the one-shot dump."""

import json
import pathlib
import typing
from collections.abc import Iterable

from pine_lint import diagnostics, tokens


def _position(position: tokens.Position) -> dict[str, int]:
    return {"line": position.line, "character": position.character}


def to_payload(diag: diagnostics.Diagnostic) -> dict[str, typing.Any]:
    """Convert *diag* to its JSON-ready publish form.

    Severity is emitted as its contractual number: 1 for warnings, 2 for
    errors.
    """
    return {
        "code": str(diag.code),
        "message": diag.message,
        "severity": int(diag.severity),
        "range": {
            "start": _position(diag.range.start),
            "end": _position(diag.range.end),
        },
        "source": diag.source,
    }


def dumps(diags: Iterable[diagnostics.Diagnostic]) -> str:
    """Render *diags* as a JSON array, one object per diagnostic."""
    return json.dumps([to_payload(diag) for diag in diags], indent=2) + "\n"


def write(diags: Iterable[diagnostics.Diagnostic], output: pathlib.Path) -> None:
    """Write the JSON array for *diags* to *output*."""
    output.write_text(dumps(diags), encoding="utf-8")


def has_errors(diags: Iterable[diagnostics.Diagnostic]) -> bool:
    """Return True if any diagnostic has Error severity."""
    return any(diag.severity == diagnostics.Severity.ERROR for diag in diags)
