"""Typer CLI entrypoint for docledger."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated, Literal, cast

import typer

from apps.cli.format_human import render_regression_summary, render_validation_summary
from apps.cli.io import load_snapshot, write_json_atomic
from core.audit.log import AuditLog
from core.export.gate import build_export_payload, ensure_exportable
from core.policy.models import IntegrityPolicy
from core.policy.policy_loader import load_policy
from core.regression.detector import detect_regression
from core.regression.models import RegressionSeverity
from core.utils.errors import ExportBlockedError
from core.utils.log_events import dump_json
from core.validation.engine import validate

app = typer.Typer(help="Document revision and integrity CLI", rich_markup_mode=None)
ReportMode = Literal["human", "json", "both"]

EXIT_INTERNAL = 1
EXIT_CHECK_FAILED = 4

_FAIL_ON_CHOICES = ("moderate", "major", "critical")


@app.callback()
def cli_callback(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Emit JSON log lines to stderr at this level."),
    ] = None,
) -> None:
    """Validate, compare and export extracted document snapshots."""

    if log_level is not None:
        logging.basicConfig(level=log_level.upper(), stream=sys.stderr, format="%(message)s")


@app.command("validate")
def validate_command(
    snapshot: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    policy: Annotated[Path | None, typer.Option()] = None,
    report: Annotated[str, typer.Option()] = "human",
) -> None:
    """Validate one snapshot; exit 4 when it has export-blocking issues."""

    report_mode = _parse_report_mode(report)
    try:
        policy_model = _load_policy_or_none(policy)
        document = load_snapshot(snapshot)
        result = validate(document, policy=policy_model)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=EXIT_INTERNAL) from exc

    if report_mode in {"human", "both"}:
        typer.echo(render_validation_summary(result, document_type=document.document_type))
    if report_mode in {"json", "both"}:
        typer.echo(dump_json(result.model_dump(mode="json", by_alias=True)))

    if result.has_blockers:
        typer.echo("ERROR: validation blockers present")
        raise typer.Exit(code=EXIT_CHECK_FAILED)
    typer.echo("INFO: success")


@app.command("diff")
def diff_command(
    baseline: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    candidate: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    policy: Annotated[Path | None, typer.Option()] = None,
    fail_on: Annotated[str, typer.Option(help="moderate, major or critical.")] = "critical",
    report: Annotated[str, typer.Option()] = "human",
) -> None:
    """Compare two snapshots; exit 4 when the regression reaches --fail-on."""

    report_mode = _parse_report_mode(report)
    normalized_fail_on = fail_on.lower().strip()
    if normalized_fail_on not in _FAIL_ON_CHOICES:
        typer.echo("ERROR: --fail-on must be one of: moderate, major, critical.")
        raise typer.Exit(code=EXIT_INTERNAL)
    threshold = cast(RegressionSeverity, normalized_fail_on)

    try:
        policy_model = _load_policy_or_none(policy)
        baseline_snapshot = load_snapshot(baseline)
        candidate_snapshot = load_snapshot(candidate)
        regression = detect_regression(baseline_snapshot, candidate_snapshot, policy=policy_model)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=EXIT_INTERNAL) from exc

    if report_mode in {"human", "both"}:
        typer.echo(render_regression_summary(regression))
    if report_mode in {"json", "both"}:
        typer.echo(dump_json(regression.model_dump(mode="json", by_alias=True)))

    if regression.is_regression and regression.at_least(threshold):
        typer.echo(f"ERROR: {regression.severity} regression")
        raise typer.Exit(code=EXIT_CHECK_FAILED)
    typer.echo("INFO: success")


@app.command("export")
def export_command(
    snapshot: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    out: Annotated[Path, typer.Option(dir_okay=False, file_okay=True)],
    policy: Annotated[Path | None, typer.Option()] = None,
    actor: Annotated[str, typer.Option(help="Approver recorded in the stamp.")] = "anonymous",
    mode: Annotated[str, typer.Option(help="Review mode recorded in the stamp.")] = "review",
    force: Annotated[
        bool, typer.Option("--force", help="Overwrite the output when it already exists.")
    ] = False,
) -> None:
    """Export a snapshot with an approval stamp; refused when validation blocks."""

    if out.exists() and not force:
        typer.echo(f"ERROR: output already exists: {out} (use --force to overwrite)")
        raise typer.Exit(code=EXIT_INTERNAL)

    try:
        policy_model = _load_policy_or_none(policy)
        document = load_snapshot(snapshot)
        result = ensure_exportable(document, policy=policy_model)
    except ExportBlockedError as exc:
        typer.echo(
            render_validation_summary(exc.validation_result, document_type=document.document_type)
        )
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=EXIT_CHECK_FAILED) from exc
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        raise typer.Exit(code=EXIT_INTERNAL) from exc

    stamp = AuditLog().approval_stamp(
        mode, result.error_count, result.warning_count, actor_id=actor
    )
    try:
        write_json_atomic(out, build_export_payload(document, stamp))
    except OSError as exc:
        typer.echo(f"ERROR: write output failed: {exc}")
        raise typer.Exit(code=EXIT_INTERNAL) from exc

    if result.warning_count:
        typer.echo(f"WARNING: exported with {result.warning_count} warning(s)")
    typer.echo(f"INFO: wrote {out}")
    typer.echo("INFO: success")


def _parse_report_mode(report: str) -> ReportMode:
    normalized = report.lower().strip()
    if normalized not in {"human", "json", "both"}:
        typer.echo("ERROR: --report must be one of: human, json, both.")
        raise typer.Exit(code=EXIT_INTERNAL)
    return cast(ReportMode, normalized)


def _load_policy_or_none(path: Path | None) -> IntegrityPolicy | None:
    if path is None:
        return None
    return load_policy(path)


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
