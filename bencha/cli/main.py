"""CLI entrypoint for bencha — typer app with `run`, `evaluate` and `analyze` commands."""

import asyncio
import sys
from datetime import datetime, time
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from bencha.agent.infrastructure.observer import StructlogAgentObserver
from bencha.agent.infrastructure.registry import AgentRegistry
from bencha.analysis.application.aggregator import aggregate
from bencha.analysis.domain.report import AggregateReport
from bencha.config.domain.source import LoadedConfig
from bencha.config.infrastructure.observer import StructlogConfigObserver
from bencha.config.infrastructure.yaml_loader import YamlConfigLoader
from bencha.core.errors import BenchaError
from bencha.evaluator.infrastructure.registry import EvaluatorRegistry
from bencha.hook.infrastructure.registry import HookRegistry
from bencha.history.domain.filter import HistoryFilter
from bencha.history.infrastructure.observer import StructlogHistoryObserver
from bencha.history.infrastructure.reader import JsonlHistoryReader
from bencha.history.infrastructure.store import JsonlHistoryStore
from bencha.orchestration.application.orchestrator import (
    Orchestrator,
    OrchestratorOptions,
)
from bencha.orchestration.domain.bundle import OverallStatus, ResultsBundle
from bencha.orchestration.domain.observer import RunObserver
from bencha.orchestration.infrastructure.composite_observer import CompositeRunObserver
from bencha.orchestration.infrastructure.observer import StructlogRunObserver
from bencha.orchestration.infrastructure.progress_observer import ProgressRunObserver
from bencha.workspace.infrastructure.manager import WorkspaceManager
from bencha.workspace.infrastructure.observer import StructlogWorkspaceObserver

app = typer.Typer(add_completion=False)

_STATUS_STYLES: dict[str, str] = {
    "passed": "green",
    "partial": "yellow",
    "skipped": "yellow",
    "failed": "red",
    "error": "red",
}
_SEVERITY_STYLES: dict[str, str] = {
    "critical": "bold red",
    "warning": "yellow",
    "info": "cyan",
}
_DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S%z"]


def _parse_until(value: str) -> datetime:
    """Parse --until with the --since formats; a bare date stands for the end of that day."""
    for fmt in _DATE_FORMATS:
        try:
            parsed = datetime.strptime(value, fmt)
        except ValueError:
            continue
        return datetime.combine(parsed.date(), time.max) if fmt == "%Y-%m-%d" else parsed
    raise typer.BadParameter(f"'{value}' does not match any of {', '.join(_DATE_FORMATS)}")


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format. Logs go to stderr."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_config(config_path: Path) -> LoadedConfig:
    loader = YamlConfigLoader(observer=StructlogConfigObserver())
    return loader.load(path=config_path)


def _build_orchestrator(
    loaded: LoadedConfig, options: OrchestratorOptions, log_format: str
) -> Orchestrator:
    agent_factory = AgentRegistry(
        observer=StructlogAgentObserver(),
        max_output_bytes=loaded.config.max_output_bytes,
    )
    observers: list[RunObserver] = [StructlogRunObserver()]
    if log_format != "json":
        observers.append(ProgressRunObserver())
    return Orchestrator(
        workspaces=WorkspaceManager(
            workspace_root=options.workspace_root,
            observer=StructlogWorkspaceObserver(),
        ),
        agent_factory=agent_factory,
        evaluator_factory=EvaluatorRegistry(agent_factory=agent_factory),
        observer=CompositeRunObserver(observers=observers),
        options=options,
        hook_factory=HookRegistry(),
    )


def _record_history(bundle: ResultsBundle, history: Path | None) -> None:
    if history is None:
        return
    store = JsonlHistoryStore(path=history, observer=StructlogHistoryObserver())
    store.append(bundle=bundle)


def _exit_code(bundle: ResultsBundle) -> int:
    return 1 if bundle.summary.overall_status == OverallStatus.FAILED else 0


def _styled(value: str) -> str:
    style = _STATUS_STYLES.get(value, "default")
    return f"[{style}]{value}[/{style}]"


def _print_bundle(bundle: ResultsBundle) -> None:
    """Render the evaluator results of one run as a Rich table on stdout."""
    console = Console()
    summary = bundle.summary
    table = Table(
        title=f"{bundle.test_case.name}  ·  run {bundle.run.id}",
        caption=(
            f"agent {bundle.agent.type}: {bundle.agent.status}  ·  "
            f"{summary.passed} passed, {summary.failed} failed, "
            f"{summary.skipped} skipped  ·  {bundle.execution.duration_ms}ms"
        ),
    )
    table.add_column("Evaluator")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Message", overflow="fold")
    for result in bundle.evaluators:
        table.add_row(
            result.evaluator,
            _styled(result.status),
            f"{result.duration_ms}ms",
            escape(result.message),
        )
    console.print(table)
    console.print(f"Overall: {_styled(summary.overall_status)}")


def _percent(rate: float) -> str:
    return f"{rate * 100:.1f}%"


def _print_report(report: AggregateReport) -> None:
    """Render the aggregate report as Rich tables on stdout."""
    console = Console()
    summary = report.summary
    console.print(
        f"[bold]{summary.total_runs} runs[/bold]  ·  "
        f"{summary.passed_runs} passed, {summary.failed_runs} failed, "
        f"{summary.partial_runs} partial  ·  pass rate {_percent(summary.pass_rate)}"
    )

    cases = Table(title="Test cases")
    for column in ("Test case", "Runs", "Pass rate", "Evaluator pass rate", "Trend", "Last"):
        cases.add_column(column)
    for case in report.by_test_case:
        cases.add_row(
            case.name,
            str(case.run_count),
            _percent(case.pass_rate),
            _percent(case.evaluator_pass_rate),
            case.recent_trend,
            _styled(case.last_run.status),
        )
    console.print(cases)

    evaluators = Table(title="Evaluators")
    for column in ("Evaluator", "Runs", "Pass rate", "Skip rate", "Errors", "Top failure"):
        evaluators.add_column(column)
    for evaluator in report.by_evaluator:
        top = evaluator.failure_patterns[0].pattern if evaluator.failure_patterns else ""
        evaluators.add_row(
            evaluator.name,
            str(evaluator.run_count),
            _percent(evaluator.pass_rate),
            _percent(evaluator.skip_rate),
            str(evaluator.errors),
            escape(top),
        )
    console.print(evaluators)

    for insight in report.insights:
        style = _SEVERITY_STYLES.get(insight.severity, "default")
        console.print(
            f"[{style}]{insight.severity:>8}[/{style}]  {escape(insight.title)}  "
            f"[dim]{escape(insight.description)}[/dim]"
        )


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to benchmark config YAML"),
    history: Path | None = typer.Option(
        None, "--history", help="JSONL history file to append the result to"
    ),
    workspace_root: Path = typer.Option(
        Path(".bencha-workspace"), "--workspace-root", help="Directory for run workspaces"
    ),
    keep_workspace: bool = typer.Option(
        False, "--keep-workspace", help="Keep checked-out trees after the run"
    ),
    log_format: str = typer.Option(
        "console", "--log-format", help="Log format: 'console' or 'json'"
    ),
) -> None:
    """Check out the repository, run the agent, and score its change."""
    _configure_structlog(log_format=log_format)
    try:
        loaded = _load_config(config_path=config_path)
        orchestrator = _build_orchestrator(
            loaded=loaded,
            options=OrchestratorOptions(
                keep_workspace=keep_workspace, workspace_root=workspace_root
            ),
            log_format=log_format,
        )
        bundle = asyncio.run(
            orchestrator.run_evaluation(config=loaded.config, source=loaded.source)
        )
        _record_history(bundle=bundle, history=history)
        _print_bundle(bundle=bundle)
    except KeyboardInterrupt:
        typer.echo("Run interrupted.")
        sys.exit(1)
    except BenchaError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)
    sys.exit(_exit_code(bundle=bundle))


@app.command()
def evaluate(
    config_path: Path = typer.Argument(..., help="Path to benchmark config YAML"),
    directory: Path = typer.Option(
        ..., "--dir", exists=True, file_okay=False, help="Directory to evaluate"
    ),
    expected_directory: Path | None = typer.Option(
        None, "--expected-dir", exists=True, file_okay=False, help="Reference directory"
    ),
    history: Path | None = typer.Option(
        None, "--history", help="JSONL history file to append the result to"
    ),
    workspace_root: Path = typer.Option(
        Path(".bencha-workspace"), "--workspace-root", help="Directory for run artifacts"
    ),
    log_format: str = typer.Option(
        "console", "--log-format", help="Log format: 'console' or 'json'"
    ),
) -> None:
    """Score an existing directory without running an agent."""
    _configure_structlog(log_format=log_format)
    try:
        loaded = _load_config(config_path=config_path)
        orchestrator = _build_orchestrator(
            loaded=loaded,
            options=OrchestratorOptions(workspace_root=workspace_root),
            log_format=log_format,
        )
        bundle = asyncio.run(
            orchestrator.run_evaluation_only(
                config=loaded.config,
                directory=directory,
                expected_directory=expected_directory,
                source=loaded.source,
            )
        )
        _record_history(bundle=bundle, history=history)
        _print_bundle(bundle=bundle)
    except KeyboardInterrupt:
        typer.echo("Evaluation interrupted.")
        sys.exit(1)
    except BenchaError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)
    sys.exit(_exit_code(bundle=bundle))


@app.command()
def analyze(
    history: Path = typer.Argument(..., help="JSONL history file to analyze"),
    test_case: str | None = typer.Option(
        None, "--test-case", help="Test case name, '*' and '?' wildcards allowed"
    ),
    agent: str | None = typer.Option(None, "--agent", help="Agent type"),
    evaluator: str | None = typer.Option(
        None, "--evaluator", help="Only runs that include this evaluator"
    ),
    since: datetime | None = typer.Option(
        None, "--since", formats=_DATE_FORMATS, help="Earliest export time (UTC)"
    ),
    until: datetime | None = typer.Option(
        None,
        "--until",
        parser=_parse_until,
        metavar="DATE",
        help="Latest export time (UTC); a bare date includes that whole day",
    ),
    status: list[OverallStatus] | None = typer.Option(
        None, "--status", help="Overall status to include; repeatable"
    ),
    last: int | None = typer.Option(
        None, "--last", min=1, help="Analyze only the last N matching runs"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON"),
    log_format: str = typer.Option(
        "console", "--log-format", help="Log format: 'console' or 'json'"
    ),
) -> None:
    """Aggregate a history file into summaries, trends and insights."""
    _configure_structlog(log_format=log_format)
    try:
        reader = JsonlHistoryReader(path=history, observer=StructlogHistoryObserver())
        history_filter = HistoryFilter(
            test_case=test_case,
            agent=agent,
            evaluator=evaluator,
            since=since,
            until=until,
            statuses=frozenset(status or []),
        )
        records = (
            reader.read_last(n=last, filter=history_filter)
            if last is not None
            else reader.read_filtered(filter=history_filter)
        )
        report = aggregate(records=records)
        if as_json:
            typer.echo(report.model_dump_json(indent=2))
        else:
            _print_report(report=report)
    except KeyboardInterrupt:
        typer.echo("Analysis interrupted.")
        sys.exit(1)
    except BenchaError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


if __name__ == "__main__":
    app()
