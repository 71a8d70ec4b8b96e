"""pygls LSP server for pine-lint."""

import logging

from lsprotocol import types
from pygls.lsp import server as pygls_server

from pine_lint import analyzer as pine_analyzer
from pine_lint import config as pine_config
from pine_lint import diagnostics
from pine_lint import scheduler as pine_scheduler

logger = logging.getLogger(__name__)

server = pygls_server.LanguageServer("pine-lint", "v0.1.0")

_SEVERITY_MAP: dict[diagnostics.Severity, types.DiagnosticSeverity] = {
    diagnostics.Severity.ERROR: types.DiagnosticSeverity.Error,
    diagnostics.Severity.WARNING: types.DiagnosticSeverity.Warning,
}


def _to_lsp(diag: diagnostics.Diagnostic) -> types.Diagnostic:
    """Convert a pine-lint Diagnostic to an LSP Diagnostic."""
    return types.Diagnostic(
        range=types.Range(
            start=types.Position(
                line=diag.range.start.line, character=diag.range.start.character
            ),
            end=types.Position(
                line=diag.range.end.line, character=diag.range.end.character
            ),
        ),
        message=diag.message,
        severity=_SEVERITY_MAP[diag.severity],
        code=str(diag.code),
        source=diag.source,
    )


def _publish(uri: str, diags: list[diagnostics.Diagnostic]) -> None:
    """Send the full diagnostic list for *uri* to the client."""
    server.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(
            uri=uri,
            diagnostics=[_to_lsp(diag) for diag in diags],
        )
    )


scheduler = pine_scheduler.AnalysisScheduler(
    pine_analyzer.from_config(pine_config.load_config()),
    publish=_publish,
)


def _schedule(ls: pygls_server.LanguageServer, uri: str) -> None:
    """Start a fresh analysis pass for the current text of *uri*."""
    source = ls.workspace.get_text_document(uri).source
    scheduler.submit(uri, source)


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(
    ls: pygls_server.LanguageServer,
    params: types.DidOpenTextDocumentParams,
) -> None:
    """Analyze a newly opened document."""
    _schedule(ls, params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(
    ls: pygls_server.LanguageServer,
    params: types.DidChangeTextDocumentParams,
) -> None:
    """Re-analyze a document after every change, superseding older passes."""
    _schedule(ls, params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(
    ls: pygls_server.LanguageServer,
    params: types.DidCloseTextDocumentParams,
) -> None:
    """Clear diagnostics when a document is closed."""
    scheduler.discard(params.text_document.uri)
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=params.text_document.uri, diagnostics=[])
    )


def start() -> None:
    """Start the LSP server over stdio."""
    logger.info("Starting pine-lint language server")
    server.start_io()
