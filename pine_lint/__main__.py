"""Entry point: pine-lint [check <path>... | dump <file> | serve]."""

import logging
import pathlib
import sys
import typing

import typer

app = typer.Typer()

_EXTENSIONS: frozenset[str] = frozenset({".pine", ".pinescript"})

# Directories that are never interesting to analyse.
_SKIP_DIRS: frozenset[str] = frozenset(
    {".venv", "venv", "__pycache__", ".git", "node_modules", "build", "dist", ".tox"}
)


def _configure_logging(*, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _collect_script_files(root: pathlib.Path) -> list[pathlib.Path]:
    """Recursively find script files under root, skipping non-source directories."""
    return sorted(
        script
        for script in root.rglob("*")
        if script.suffix in _EXTENSIONS
        and script.is_file()
        and not any(part in _SKIP_DIRS for part in script.parts)
    )


def _resolve_files(paths: list[pathlib.Path] | None) -> list[pathlib.Path]:
    """Expand paths into a deduplicated script file list."""
    candidates: list[pathlib.Path] = []
    for raw_path in paths or []:
        if raw_path.is_dir():
            candidates.extend(_collect_script_files(raw_path))
        else:
            candidates.append(raw_path)
    seen: set[pathlib.Path] = set()
    unique: list[pathlib.Path] = []
    for file_path in candidates:
        resolved = file_path.resolve()
        if resolved not in seen:
            seen.add(resolved)
            unique.append(file_path)
    return unique


@app.command(no_args_is_help=True)
def check(
    paths: typing.Annotated[
        list[pathlib.Path] | None,
        typer.Argument(help="Files or directories to check."),
    ] = None,
    strict: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--strict", help="Fail on warnings as well as errors."),
    ] = False,
    verbose: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline details to stderr."),
    ] = False,
) -> None:
    """Check one or more files/directories for rule violations.

    Raises:
        typer.Exit: With code 1 if any error (or, with --strict, any
            diagnostic at all) is reported.
    """
    from pine_lint import analyzer as pine_analyzer  # noqa: PLC0415
    from pine_lint import config as pine_config  # noqa: PLC0415
    from pine_lint import publish  # noqa: PLC0415

    _configure_logging(verbose=verbose)
    script_files = _resolve_files(paths)
    analyzers: dict[pathlib.Path, pine_analyzer.Analyzer] = {}
    failed = False

    for file_path in script_files:
        try:
            source = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            typer.echo(f"error: {file_path}: {e}", err=True)
            continue

        directory = file_path.resolve().parent
        if directory not in analyzers:
            analyzers[directory] = pine_analyzer.from_config(
                pine_config.load_config(directory)
            )
        diagnostics = analyzers[directory].analyze(source)
        for diag in diagnostics:
            start = diag.range.start
            typer.echo(
                f"{file_path}:{start.line + 1}:{start.character + 1}:"
                f" {diag.code} {diag.message}"
            )
        if publish.has_errors(diagnostics) or (strict and diagnostics):
            failed = True

    if failed:
        raise typer.Exit(code=1)


@app.command(no_args_is_help=True)
def dump(
    path: typing.Annotated[
        pathlib.Path,
        typer.Argument(help="Script file to analyse."),
    ],
    output: typing.Annotated[
        pathlib.Path | None,
        typer.Option("--output", "-o", help="Write JSON here instead of stdout."),
    ] = None,
    verbose: typing.Annotated[  # noqa: FBT002
        bool,
        typer.Option("--verbose", "-v", help="Log pipeline details to stderr."),
    ] = False,
) -> None:
    """Analyse one file and write its diagnostics as a JSON array.

    Raises:
        typer.Exit: With code 1 if any error diagnostic was produced, or 2
            if the file cannot be read or the output cannot be written.
    """
    from pine_lint import analyzer as pine_analyzer  # noqa: PLC0415
    from pine_lint import config as pine_config  # noqa: PLC0415
    from pine_lint import publish  # noqa: PLC0415

    _configure_logging(verbose=verbose)
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"error: {path}: {e}", err=True)
        raise typer.Exit(code=2) from e

    analyzer = pine_analyzer.from_config(pine_config.load_config(path.resolve().parent))
    diagnostics = analyzer.analyze(source)

    if output is None:
        typer.echo(publish.dumps(diagnostics), nl=False)
    else:
        try:
            publish.write(diagnostics, output)
        except OSError as e:
            typer.echo(f"error: {e}", err=True)
            raise typer.Exit(code=2) from e

    if publish.has_errors(diagnostics):
        raise typer.Exit(code=1)


@app.command()
def serve() -> None:
    """Run the LSP server over stdio."""
    from pine_lint import server  # noqa: PLC0415

    server.start()


def main() -> None:
    """Dispatch to CLI check/dump mode or LSP server mode."""
    app()


if __name__ == "__main__":
    main()
