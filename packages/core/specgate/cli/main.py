"""Main CLI entry point for SpecGate"""

import functools
import logging
import sys
import tempfile
from pathlib import Path
from typing import Optional, Sequence, Tuple

import click
from rich import box
from rich.console import Console
from rich.table import Table

from specgate import __version__
from specgate.config import PullRequestConfig, SpecConfig, ToolConfig
from specgate.errors import MalformedOutput, ReferenceStateUnavailable
from specgate.models.finding import Severity
from specgate.models.tool_output import TOOL_BREAKING_CHANGE, TOOL_LINT, TOOL_MODEL_VALIDATION
from specgate.reporters.json_reporter import JSONReporter
from specgate.reporters.markdown_reporter import MarkdownReporter
from specgate.reporters.report import Report, ReportBuilder
from specgate.scanner.dual_run import run_dual
from specgate.scanner.git import (
    GitError,
    checkout_reference,
    find_new_files,
    get_changed_files,
    resolve_ref,
)
from specgate.scanner.pipeline import MalformedPolicy, run_pipeline
from specgate.scanner.tools import BreakingChangeRunner, ToolRunner

console = Console()

SEVERITY_STYLES = {
    Severity.ERROR: "bold red",
    Severity.WARNING: "bold yellow",
    Severity.INFO: "cyan",
    Severity.UNKNOWN: "dim",
}
MAX_TABLE_ROWS = 50


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _common_options(func):
    """Options shared by every gate command"""

    @click.option(
        "--repo",
        type=click.Path(exists=True, file_okay=False),
        default=".",
        help="Repository checkout to inspect (default: current directory)",
    )
    @click.option(
        "--base",
        "-b",
        help="Target branch or ref (default: SPECGATE_TARGET_BRANCH or TRAVIS_BRANCH)",
    )
    @click.option(
        "--files",
        "file_overrides",
        multiple=True,
        help="Process these paths instead of the changed files (repeatable)",
    )
    @click.option(
        "--format",
        "-f",
        "output_format",
        type=click.Choice(["markdown", "json", "table"]),
        default="markdown",
        help="Output format (default: markdown)",
    )
    @click.option("--output", "-o", type=click.Path(), help="Output file path")
    @click.option("--command", "command_template", help="Override the tool command template")
    @click.option("--timeout", type=int, help="Per-file tool timeout in seconds")
    @click.option("--workers", type=int, help="Maximum parallel tool invocations")
    @click.option("--debug", is_flag=True, help="Show verbose diagnostic output")
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        return func(*args, **kwargs)

    return wrapper


def _resolve_base(base: Optional[str], pr_config: PullRequestConfig) -> str:
    target = base or pr_config.target_branch
    if not target:
        console.print(
            "[bold red]❌ No target branch:[/bold red] pass --base or set SPECGATE_TARGET_BRANCH"
        )
        sys.exit(2)
    return target


def _select_files(
    repo_path: Path,
    base: str,
    file_overrides: Sequence[str],
    patterns: Tuple[str, ...],
) -> list:
    if file_overrides:
        return list(file_overrides)
    return get_changed_files(repo_path, base, patterns, SpecConfig.EXCLUDED_SEGMENTS)


def _display_table(report: Report) -> None:
    """Display a report as rich tables"""
    console.print()
    console.print(f"[bold]{report.title}[/bold]")

    stats_table = Table(show_header=False, box=box.SIMPLE)
    if report.target_branch:
        stats_table.add_row("Target branch:", f"[cyan]{report.target_branch}[/cyan]")
    stats_table.add_row("Files with findings:", str(len(report.body.tables)))
    stats_table.add_row("New errors:", f"[bold red]{report.error_count}[/bold red]")
    stats_table.add_row("New warnings:", f"[bold yellow]{report.warning_count}[/bold yellow]")
    if report.body.new_files:
        stats_table.add_row("New files (skipped):", str(len(report.body.new_files)))
    console.print(stats_table)

    rows = [(table.path, finding) for table in report.body.tables for finding in table.findings]
    if rows:
        findings_table = Table(title="Findings", box=box.ROUNDED, show_lines=True)
        findings_table.add_column("Severity", width=9)
        findings_table.add_column("Rule", style="bold")
        findings_table.add_column("Location", style="cyan")
        findings_table.add_column("Message")

        for path, finding in rows[:MAX_TABLE_ROWS]:
            style = SEVERITY_STYLES.get(finding.severity, "white")
            location = finding.locations[0].anchor if finding.locations else path
            findings_table.add_row(
                f"[{style}]{finding.severity.value}[/{style}]",
                finding.rule_id,
                location,
                finding.message[:120],
            )
        console.print(findings_table)

        if len(rows) > MAX_TABLE_ROWS:
            console.print(f"\n[dim]... and {len(rows) - MAX_TABLE_ROWS} more findings[/dim]")
    else:
        console.print(f"[bold green]✅ {report.body.empty_message}[/bold green]")

    console.print()


def _write_output(
    report: Report,
    output_format: str,
    output: Optional[str],
    pr_config: PullRequestConfig,
    framed: bool = False,
) -> None:
    """Render or persist the report in the selected format."""
    if output_format == "table":
        _display_table(report)
        return

    try:
        if output_format == "json":
            if output:
                JSONReporter.save(report, output)
                console.print(f"\n✅ Results saved to: {output}")
            else:
                console.print_json(data=report.to_dict())
            return

        markdown = MarkdownReporter.generate(report, pr_config)
        if output:
            MarkdownReporter.save(report, output, pr_config)
            console.print(f"\n✅ Markdown report saved to: {output}")
        elif framed:
            click.echo(JSONReporter.framed_check_output(report, markdown))
        else:
            click.echo(markdown)
    except OSError as exc:
        console.print(f"[bold red]❌ Error writing output file:[/bold red] {exc}")
        sys.exit(1)


def _print_failures(report: Report) -> None:
    if not report.body.failures:
        return
    console.print(
        f"[bold yellow]⚠️  {len(report.body.failures)} file(s) could not be processed:[/bold yellow]",
        highlight=False,
    )
    for failure in report.body.failures:
        console.print(f"  - {failure.describe()}", highlight=False)


@click.group()
@click.version_option(version=__version__, prog_name="specgate")
def cli():
    """
    SpecGate - pull request gates for OpenAPI specification repositories

    Runs breaking-change detection, linting and model validation on the
    specification files a pull request touches.
    """
    pass


@cli.command("breaking-change")
@_common_options
def breaking_change(
    repo: str,
    base: Optional[str],
    file_overrides: Tuple[str, ...],
    output_format: str,
    output: Optional[str],
    command_template: Optional[str],
    timeout: Optional[int],
    workers: Optional[int],
    debug: bool,
):
    """
    Compare changed specs against the target branch and report breaking changes.

    Exits 1 when a breaking change (error) is found or a file could not be
    checked.

    Examples:

        specgate breaking-change --base origin/main

        specgate breaking-change --base main --files specification/a/b.json --format table
    """
    _configure_logging(debug)
    repo_path = Path(repo).resolve()
    pr_config = PullRequestConfig.from_env(target_branch=base)
    base_ref = _resolve_base(base, pr_config)

    try:
        paths = _select_files(repo_path, base_ref, file_overrides, SpecConfig.SPEC_PATTERNS)
        base_commit = resolve_ref(repo_path, base_ref)
        new_files = find_new_files(repo_path, base_commit, paths)

        with tempfile.TemporaryDirectory(prefix="specgate-") as scratch:
            runner = BreakingChangeRunner(
                tool=TOOL_BREAKING_CHANGE,
                template=ToolConfig.get_command(TOOL_BREAKING_CHANGE, command_template),
                cwd=repo_path,
                timeout_seconds=timeout or ToolConfig.get_timeout(),
                base_commit=base_commit,
                scratch_dir=Path(scratch),
            )
            result = run_pipeline(
                paths,
                runner,
                TOOL_BREAKING_CHANGE,
                new_files=new_files,
                malformed_policy=MalformedPolicy.FATAL,
                max_workers=workers or ToolConfig.get_max_workers(),
                target_branch=base_ref,
            )
    except MalformedOutput as e:
        console.print(f"[bold red]❌ Unreadable tool output:[/bold red] {e}", highlight=False)
        if debug and e.excerpt:
            console.print(e.excerpt, markup=False, highlight=False)
        sys.exit(1)
    except (GitError, ValueError) as e:
        console.print(f"[bold red]❌ Error:[/bold red] {e}", highlight=False)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Cancelled by user[/yellow]")
        sys.exit(130)

    report = ReportBuilder(tool=TOOL_BREAKING_CHANGE).build(result)
    _write_output(report, output_format, output, pr_config, framed=True)
    _print_failures(report)

    if not report.is_clean or result.has_failures:
        sys.exit(1)
    sys.exit(0)


@cli.command("lint-diff")
@_common_options
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False),
    default="output",
    help="Directory receiving the <pr>.json before/after log (default: output)",
)
def lint_diff(
    repo: str,
    base: Optional[str],
    file_overrides: Tuple[str, ...],
    output_format: str,
    output: Optional[str],
    command_template: Optional[str],
    timeout: Optional[int],
    workers: Optional[int],
    debug: bool,
    log_dir: str,
):
    """
    Lint changed AutoRest configurations on the PR and on the target branch.

    Reports the linter findings the pull request introduces. This command
    informs and does not gate: it exits 0 unless the comparison could not
    run.

    Examples:

        specgate lint-diff --base origin/main --log-dir output
    """
    _configure_logging(debug)
    repo_path = Path(repo).resolve()
    pr_config = PullRequestConfig.from_env(target_branch=base)
    base_ref = _resolve_base(base, pr_config)

    try:
        paths = _select_files(repo_path, base_ref, file_overrides, SpecConfig.CONFIG_PATTERNS)
        base_commit = resolve_ref(repo_path, base_ref)
        new_files = find_new_files(repo_path, base_commit, paths)

        runner = ToolRunner(
            tool=TOOL_LINT,
            template=ToolConfig.get_command(TOOL_LINT, command_template),
            cwd=repo_path,
            timeout_seconds=timeout or ToolConfig.get_timeout(),
        )
        result = run_dual(
            paths,
            runner,
            TOOL_LINT,
            lambda: checkout_reference(repo_path, base_commit),
            new_files=new_files,
            malformed_policy=MalformedPolicy.FATAL,
            max_workers=workers or ToolConfig.get_max_workers(),
            target_branch=base_ref,
        )
    except ReferenceStateUnavailable as e:
        console.print(f"[bold red]❌ Cannot compare:[/bold red] {e}", highlight=False)
        sys.exit(1)
    except MalformedOutput as e:
        console.print(f"[bold red]❌ Unreadable linter output:[/bold red] {e}", highlight=False)
        sys.exit(1)
    except (GitError, ValueError) as e:
        console.print(f"[bold red]❌ Error:[/bold red] {e}", highlight=False)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Cancelled by user[/yellow]")
        sys.exit(130)

    log_path = Path(log_dir) / f"{pr_config.number or 'local'}.json"
    try:
        JSONReporter.save(JSONReporter.dual_log(result, pr_config), log_path)
    except OSError as e:
        console.print(f"[bold red]❌ Error writing log file:[/bold red] {e}")
        sys.exit(1)

    report = ReportBuilder(tool=TOOL_LINT).build_dual(result)
    _write_output(report, output_format, output, pr_config)
    _print_failures(report)
    sys.exit(0)


@cli.command("model-validate")
@_common_options
@click.option(
    "--pipe-log",
    type=click.Path(dir_okay=False),
    default="pipe.log",
    help="JSON-lines file the results are appended to (default: pipe.log)",
)
def model_validate(
    repo: str,
    base: Optional[str],
    file_overrides: Tuple[str, ...],
    output_format: str,
    output: Optional[str],
    command_template: Optional[str],
    timeout: Optional[int],
    workers: Optional[int],
    debug: bool,
    pipe_log: str,
):
    """
    Validate the examples of changed specs.

    Every file is validated independently; a file whose validator crashed
    or printed unreadable output is recorded as a failure and the rest
    still run. Exits 1 if any finding or failure was recorded.

    Examples:

        specgate model-validate --base origin/main

        specgate model-validate --files specification/a/b.json --format json
    """
    _configure_logging(debug)
    repo_path = Path(repo).resolve()
    pr_config = PullRequestConfig.from_env(target_branch=base)

    try:
        if file_overrides:
            paths = list(file_overrides)
        else:
            paths = _select_files(
                repo_path, _resolve_base(base, pr_config), (), SpecConfig.SPEC_PATTERNS
            )

        runner = ToolRunner(
            tool=TOOL_MODEL_VALIDATION,
            template=ToolConfig.get_command(TOOL_MODEL_VALIDATION, command_template),
            cwd=repo_path,
            timeout_seconds=timeout or ToolConfig.get_timeout(),
        )
        result = run_pipeline(
            paths,
            runner,
            TOOL_MODEL_VALIDATION,
            malformed_policy=MalformedPolicy.SKIP,
            max_workers=workers or ToolConfig.get_max_workers(),
            target_branch=base or pr_config.target_branch,
        )
    except (GitError, ValueError) as e:
        console.print(f"[bold red]❌ Error:[/bold red] {e}", highlight=False)
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Cancelled by user[/yellow]")
        sys.exit(130)

    try:
        JSONReporter.append_jsonl(pipe_log, JSONReporter.pipe_records(result))
    except OSError as e:
        console.print(f"[bold red]❌ Error writing pipe log:[/bold red] {e}")
        sys.exit(1)

    report = ReportBuilder(
        tool=TOOL_MODEL_VALIDATION,
        subject="model validation error",
        call_to_action="There are model validation errors in this PR. Please review before moving forward.",
    ).build(result)
    _write_output(report, output_format, output, pr_config)
    _print_failures(report)

    if report.body.has_findings or result.has_failures:
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    cli()
