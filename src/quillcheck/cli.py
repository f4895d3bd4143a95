"""Typer-based command line interface for the suggestion pipeline.

``check`` reads a text file, runs every configured provider through the
composite provider and prints the merged issues.  ``fix`` applies the first
candidate of every issue and writes the corrected text.  The optional
LanguageTool backend is only imported when enabled in the configuration.

Exit codes
----------
0 success
2 issues found (``check --strict`` only)
3 I/O error (missing input, unwritable output)
4 configuration error
"""

from __future__ import annotations

import json
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from .config import ConfigModel, load_config
from .suggest.base import AnalysisRequest, AnalysisResult, Issue
from .suggest.fixes import apply_all, dedupe_issues
from .suggest.registry import build_provider
from .utils.errors import ConfigError
from .utils.logging import configure_logging
from .utils.textspan import build_line_starts, char_to_line_col
from .utils.timing import Timing

if not sys.stdout.isatty():  # pragma: no cover - CLI test context
    os.environ.setdefault("NO_COLOR", "1")

app = typer.Typer(
    name="quillcheck",
    help="Writing suggestions from several providers. Use 'quillcheck check' to analyse a file.",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _safe_exit(code: int, msg: str | None = None) -> NoReturn:
    """Exit the CLI with ``code`` emitting ``msg`` to stderr if provided."""

    if msg:
        typer.echo(msg, err=True)
    raise typer.Exit(code)


def _load(config_path: Optional[Path], verbose: bool) -> ConfigModel:
    try:
        cfg = load_config(config_path)
    except (ValidationError, ConfigError) as exc:
        _safe_exit(4, str(exc).splitlines()[0])
    configure_logging("INFO" if verbose else cfg.logging.level)
    return cfg


def _read_text(path: Path, encoding: str) -> str:
    try:
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as exc:
        _safe_exit(3, f"cannot read {path}: {exc}")


def _analyze(
    text: str, cfg: ConfigModel, *, use_async: bool, dedupe: bool, verbose: bool
) -> AnalysisResult:
    request = AnalysisRequest(text=text, language=cfg.locale)
    with ThreadPoolExecutor(
        max_workers=cfg.aggregator.max_workers, thread_name_prefix="quillcheck-cli"
    ) as pool:
        provider = build_provider(cfg, executor=pool)
        if verbose:
            names = ", ".join(child.name() for child in provider.children) or "none"
            typer.echo(f"Providers: {names}", err=True)
        with Timing() as t_run:
            if use_async:
                result = provider.analyze_async(request).result()
            else:
                result = provider.analyze(request)
    if verbose:
        typer.echo(f"Found {len(result.issues)} issues in {t_run.ms:.1f} ms", err=True)
    if dedupe:
        result = AnalysisResult(
            tuple(dedupe_issues(result.issues)), result.elapsed_ms, result.provider_version
        )
    return result


def _format_issue(path: Path, issue: Issue, line_starts: tuple[int, ...]) -> str:
    line, col = char_to_line_col(issue.start, line_starts)
    out = f"{path}:{line + 1}:{col + 1}: {issue.severity.value} [{issue.rule_id}] {issue.message}"
    if issue.replacements:
        out += " -> " + " | ".join(issue.replacements[:3])
    return out


@app.callback()
def main() -> None:
    """Entry point for the quillcheck command group."""
    pass


@app.command()
def check(  # noqa: PLR0913
    in_path: Path = typer.Option(  # noqa: B008
        ..., "--in", "--input", help="Text file to analyse"
    ),
    config_path: Optional[Path] = typer.Option(  # noqa: B008
        None, "--config", help="YAML config to override defaults"
    ),
    as_json: bool = typer.Option(  # noqa: B008
        False, "--json", help="Emit issues as a JSON document"
    ),
    use_async: bool = typer.Option(  # noqa: B008
        True, "--async/--sync", help="Run providers concurrently or one after another"
    ),
    dedupe: bool = typer.Option(  # noqa: B008
        True, "--dedupe/--no-dedupe", help="Collapse issues sharing rule and span"
    ),
    strict: bool = typer.Option(  # noqa: B008
        False, "--strict", help="Exit with code 2 when any issue is found"
    ),
    encoding_in: str = typer.Option("utf-8-sig", help="Input file encoding"),  # noqa: B008
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Emit progress messages to stderr"
    ),
) -> None:
    """Analyse ``in_path`` and print the merged issues."""

    cfg = _load(config_path, verbose)
    text = _read_text(in_path, encoding_in)
    if verbose:
        typer.echo(f"Read {len(text)} chars", err=True)

    result = _analyze(text, cfg, use_async=use_async, dedupe=dedupe, verbose=verbose)

    if as_json:
        payload = {
            "path": str(in_path),
            "provider_version": result.provider_version,
            "elapsed_ms": result.elapsed_ms,
            "issues": [issue.to_dict() for issue in result.issues],
        }
        typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        line_starts = build_line_starts(text)
        for issue in sorted(result.issues, key=lambda i: (i.start, i.end)):
            typer.echo(_format_issue(in_path, issue, line_starts))

    if strict and result.issues:
        _safe_exit(2)


@app.command()
def fix(  # noqa: PLR0913
    in_path: Path = typer.Option(  # noqa: B008
        ..., "--in", "--input", help="Text file to correct"
    ),
    out_path: Path = typer.Option(..., "--out", help="Where to write the corrected text"),  # noqa: B008
    config_path: Optional[Path] = typer.Option(  # noqa: B008
        None, "--config", help="YAML config to override defaults"
    ),
    encoding_in: str = typer.Option("utf-8-sig", help="Input file encoding"),  # noqa: B008
    encoding_out: str = typer.Option("utf-8", help="Output file encoding"),  # noqa: B008
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Emit progress messages to stderr"
    ),
) -> None:
    """Apply the first suggested replacement of every issue in ``in_path``."""

    cfg = _load(config_path, verbose)
    text = _read_text(in_path, encoding_in)
    result = _analyze(text, cfg, use_async=True, dedupe=True, verbose=verbose)
    fixed = apply_all(text, result.issues)
    try:
        out_path.write_text(fixed, encoding=encoding_out)
    except OSError as exc:
        _safe_exit(3, f"cannot write {out_path}: {exc}")
    if verbose:
        typer.echo(f"Wrote {out_path}", err=True)
