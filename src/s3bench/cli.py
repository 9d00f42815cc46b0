"""s3bench CLI."""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from s3bench import __version__
from s3bench.compiler import CompilationContractError
from s3bench.config import (
    BenchmarkStatus,
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    S3Bench,
    ValidationError,
    Violation,
    generate_example_manifest_yaml,
    load_manifest,
    validate_bench,
)
from s3bench.k8s import K8sConnectionError, K8sError, WaitStatus, get_k8s_client, wait_for_benchmark
from s3bench.lifecycle import (
    LifecycleTracker,
    ObservationError,
    RunState,
    observation_from_pod_phase,
)
from s3bench.reconcile import ExecutionPlan, prepare

# Default manifest file name for auto-discovery
DEFAULT_MANIFEST = "s3bench.yaml"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="s3bench",
    help="Compile and run S3 object-storage benchmarks (warp) on Kubernetes",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: init -> validate -> compile -> run -> status -> delete[/dim]",
)

console = Console()


class OutputFormat(str, Enum):
    TEXT = "text"
    YAML = "yaml"
    JSON = "json"


# =============================================================================
# Helper Functions
# =============================================================================


def resolve_manifest_path(manifest_file: Path | None) -> Path:
    """Resolve manifest path, using ./s3bench.yaml as default."""
    if manifest_file is not None:
        return manifest_file

    default = Path(DEFAULT_MANIFEST)
    if default.exists():
        return default

    console.print(f"[red]ERROR[/red] No manifest specified and ./{DEFAULT_MANIFEST} not found")
    console.print("[blue]INFO[/blue] Create one with: s3bench init")
    raise typer.Exit(1)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def _load(manifest_file: Path) -> S3Bench:
    """Load a manifest, exiting with a readable message on failure."""
    try:
        return load_manifest(manifest_file)
    except ConfigFileNotFoundError as e:
        print_error(f"File not found: {e}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigValidationError as e:
        print_error("Manifest validation failed:")
        if e.errors:
            for err in e.errors:
                loc = ".".join(str(x) for x in err["loc"])
                console.print(f"  [red]•[/red] {loc}: {err['msg']}")
        else:
            console.print(f"  [red]•[/red] {e}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigError as e:
        print_error(f"Manifest error: {e}")
        raise typer.Exit(1)  # noqa: B904


def _print_plain(text: str) -> None:
    """Print text verbatim, without markup or line wrapping."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _with_namespace(bench: S3Bench, namespace: str) -> S3Bench:
    if not namespace or namespace == bench.metadata.namespace:
        return bench
    metadata = bench.metadata.model_copy(update={"namespace": namespace})
    return bench.model_copy(update={"metadata": metadata})


def _print_violations(violations: list[Violation]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Problem")
    for v in violations:
        table.add_row(v.field, v.message)
    console.print(table)


def _prepare(bench: S3Bench) -> ExecutionPlan:
    """Validate, default and compile, exiting on any violation."""
    try:
        return prepare(bench)
    except ValidationError as e:
        print_error(f"S3Bench {bench.metadata.name or '<unnamed>'} is invalid")
        _print_violations(e.violations)
        raise typer.Exit(1)  # noqa: B904
    except CompilationContractError as e:
        print_error(f"Compilation failed: {e}")
        raise typer.Exit(1)  # noqa: B904


def _redact(manifest: dict[str, Any]) -> dict[str, Any]:
    """Copy of a manifest with Secret values masked."""
    if manifest.get("kind") != "Secret":
        return manifest
    redacted = dict(manifest)
    redacted["stringData"] = {key: "<redacted>" for key in manifest.get("stringData", {})}
    return redacted


def _render_manifests(plan: ExecutionPlan, fmt: OutputFormat) -> str:
    manifests = [_redact(m) for m in plan.workload.manifests()]
    if fmt == OutputFormat.JSON:
        return json.dumps(manifests, indent=2)
    return yaml.safe_dump_all(manifests, default_flow_style=False, sort_keys=False)


# =============================================================================
# CLI Commands
# =============================================================================


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging",
        ),
    ] = False,
) -> None:
    """Compile and run S3 object-storage benchmarks on Kubernetes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"s3bench version {__version__}")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path for the manifest",
        ),
    ] = Path(DEFAULT_MANIFEST),
    name: Annotated[
        str,
        typer.Option(
            "--name",
            "-n",
            help="Benchmark name (a DNS-1123 label)",
        ),
    ] = "s3bench-sample",
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing file",
        ),
    ] = False,
) -> None:
    """Generate a starter S3Bench manifest.

    Only mode and host are required; every other option is listed with
    its default so it can be uncommented and changed.
    """
    if output.exists() and not force:
        print_error(f"File already exists: {output}")
        print_info("Use --force to overwrite")
        raise typer.Exit(1)

    output.write_text(generate_example_manifest_yaml(name))
    print_success(f"Created manifest: {output}")
    print_info("Edit host and credentials, then run: s3bench validate")


@app.command()
def validate(
    manifest_file: Annotated[
        Path | None,
        typer.Argument(
            help="Path to S3Bench manifest (default: ./s3bench.yaml)",
        ),
    ] = None,
) -> None:
    """Validate a manifest.

    Reports every violation at once; exits non-zero if there are any.
    """
    manifest_file = resolve_manifest_path(manifest_file)
    console.print(Panel(f"Validating: [bold]{manifest_file}[/bold]", expand=False))

    bench = _load(manifest_file)
    print_success("Manifest schema valid")

    violations = validate_bench(bench)
    if violations:
        print_error(f"{len(violations)} violation(s) found")
        _print_violations(violations)
        raise typer.Exit(1)

    print_success(f"S3Bench {bench.metadata.name} is valid (mode={bench.spec.mode})")


@app.command(name="compile")
def compile_cmd(
    manifest_file: Annotated[
        Path | None,
        typer.Argument(
            help="Path to S3Bench manifest (default: ./s3bench.yaml)",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            help="text: warp command line; yaml/json: Kubernetes manifests",
        ),
    ] = OutputFormat.TEXT,
) -> None:
    """Compile a manifest into the warp command and Kubernetes objects.

    Nothing is submitted. Credential values are masked in the output.
    """
    manifest_file = resolve_manifest_path(manifest_file)
    plan = _prepare(_load(manifest_file))

    if output_format != OutputFormat.TEXT:
        _print_plain(_render_manifests(plan, output_format))
        return

    workload = plan.workload
    _print_plain(str(workload.command))
    console.print(f"[dim]image: {workload.image} ({workload.pull_policy})[/dim]")
    if workload.credentials:
        console.print(f"[dim]credentials: Secret {workload.credentials.name}[/dim]")
    console.print(f"[dim]spec: {plan.fingerprint}[/dim]")


@app.command()
def run(
    manifest_file: Annotated[
        Path | None,
        typer.Argument(
            help="Path to S3Bench manifest (default: ./s3bench.yaml)",
        ),
    ] = None,
    context: Annotated[
        str,
        typer.Option(
            "--context",
            help="Kubernetes context (default: current)",
        ),
    ] = "",
    namespace: Annotated[
        str,
        typer.Option(
            "--namespace",
            "-n",
            help="Override the manifest namespace",
        ),
    ] = "",
    wait: Annotated[
        bool,
        typer.Option(
            "--wait/--no-wait",
            help="Wait for the benchmark to finish",
        ),
    ] = True,
    timeout: Annotated[
        int,
        typer.Option(
            "--timeout",
            help="Seconds to wait for completion",
        ),
    ] = 3600,
    poll_interval: Annotated[
        int,
        typer.Option(
            "--poll-interval",
            help="Seconds between status checks",
        ),
    ] = 10,
    replace: Annotated[
        bool,
        typer.Option(
            "--replace",
            help="Delete and recreate an existing benchmark Job",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Print the manifests instead of submitting them",
        ),
    ] = False,
) -> None:
    """Submit a benchmark and follow it to completion."""
    manifest_file = resolve_manifest_path(manifest_file)
    bench = _with_namespace(_load(manifest_file), namespace)
    plan = _prepare(bench)
    workload = plan.workload

    if dry_run:
        _print_plain(_render_manifests(plan, OutputFormat.YAML))
        return

    console.print(
        Panel(
            f"Benchmark: [bold]{workload.namespace}/{workload.name}[/bold]\n"
            f"Mode: {plan.bench.spec.mode}\n"
            f"Hosts: {', '.join(plan.bench.spec.hosts())}",
            expand=False,
        )
    )

    try:
        k8s = get_k8s_client(context=context, namespace=workload.namespace)
        created = k8s.apply_workload(workload, replace=replace)
    except K8sConnectionError as e:
        print_error(f"Cannot connect to Kubernetes: {e}")
        raise typer.Exit(1)  # noqa: B904
    except K8sError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if created:
        print_success(f"Submitted Job {workload.namespace}/{workload.name}")
    else:
        print_warning(f"Job {workload.name} already exists (use --replace to rerun)")

    if not wait:
        print_info(f"Check progress with: s3bench status {workload.name} -n {workload.namespace}")
        return

    tracker = LifecycleTracker(name=workload.name)

    def on_progress(state: RunState) -> None:
        print_info(f"Benchmark is {state.value}")

    try:
        result = wait_for_benchmark(
            k8s,
            workload.name,
            workload.namespace,
            tracker,
            timeout_seconds=timeout,
            poll_interval=poll_interval,
            progress_callback=on_progress,
        )
    except K8sError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if result.status == WaitStatus.READY:
        print_success(f"{result.message} in {result.elapsed_seconds:.0f}s")
        print_info(f"Results: s3bench status {workload.name} -n {workload.namespace} --logs")
        return

    if result.status == WaitStatus.FAILED:
        print_error(result.message)
        logs = k8s.get_job_logs(workload.name, workload.namespace, tail_lines=20)
        if logs:
            console.print(Panel(logs, title="warp output (last 20 lines)", expand=False))
    else:
        print_warning(result.message)
    raise typer.Exit(1)


@app.command()
def status(
    name: Annotated[
        str,
        typer.Argument(help="Benchmark name"),
    ],
    namespace: Annotated[
        str,
        typer.Option(
            "--namespace",
            "-n",
            help="Namespace (default: from context)",
        ),
    ] = "",
    context: Annotated[
        str,
        typer.Option(
            "--context",
            help="Kubernetes context (default: current)",
        ),
    ] = "",
    logs: Annotated[
        bool,
        typer.Option(
            "--logs",
            help="Show warp output",
        ),
    ] = False,
) -> None:
    """Show the lifecycle status of a benchmark."""
    try:
        k8s = get_k8s_client(context=context, namespace=namespace)
        ns = namespace or k8s.namespace
        resource = k8s.get_s3bench(name, ns)
        job_status = k8s.get_job_status(name, ns)
        pod = k8s.get_job_pod_status(name, ns)
    except K8sConnectionError as e:
        print_error(f"Cannot connect to Kubernetes: {e}")
        raise typer.Exit(1)  # noqa: B904
    except K8sError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if resource is None and job_status is None:
        print_error(f"Benchmark {ns}/{name} not found")
        raise typer.Exit(1)

    published = (resource or {}).get("status") or {}
    try:
        tracker = LifecycleTracker.from_status(
            BenchmarkStatus(
                running=bool(published.get("running")),
                completed=bool(published.get("completed")),
            ),
            name=name,
        )
    except ObservationError as e:
        print_warning(f"Ignoring published status: {e}")
        tracker = LifecycleTracker(name=name)

    if job_status is not None:
        tracker.ingest(job_status)
    if pod.exists:
        try:
            tracker.observe(observation_from_pod_phase(pod.message))
        except ObservationError as e:
            logger.debug("Pod phase not usable: %s", e)

    current = tracker.status()
    table = Table(title=f"Benchmark {ns}/{name}", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("State", tracker.state.value)
    table.add_row("Running", str(current.running).lower())
    table.add_row("Completed", str(current.completed).lower())
    table.add_row("S3Bench", "present" if resource else "[dim]absent[/dim]")
    table.add_row("Job", "present" if job_status is not None else "[dim]absent[/dim]")
    table.add_row("Pod", f"{pod.name} ({pod.message})" if pod.exists else "[dim]none[/dim]")
    if tracker.message:
        table.add_row("Message", tracker.message)
    console.print(table)

    if logs:
        output = k8s.get_job_logs(name, ns, tail_lines=None)
        if output:
            _print_plain(output)
        else:
            print_warning("No output available")


@app.command()
def delete(
    name: Annotated[
        str,
        typer.Argument(help="Benchmark name"),
    ],
    namespace: Annotated[
        str,
        typer.Option(
            "--namespace",
            "-n",
            help="Namespace (default: from context)",
        ),
    ] = "",
    context: Annotated[
        str,
        typer.Option(
            "--context",
            help="Kubernetes context (default: current)",
        ),
    ] = "",
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip confirmation",
        ),
    ] = False,
) -> None:
    """Delete a benchmark Job and its credentials Secret."""
    if not yes:
        typer.confirm(f"Delete benchmark {name} and its output?", abort=True)

    try:
        k8s = get_k8s_client(context=context, namespace=namespace)
        deleted = k8s.delete_workload(name, namespace or k8s.namespace)
    except K8sConnectionError as e:
        print_error(f"Cannot connect to Kubernetes: {e}")
        raise typer.Exit(1)  # noqa: B904
    except K8sError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if deleted:
        print_success(f"Deleted benchmark {name}")
    else:
        print_warning(f"Benchmark Job {name} not found")


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
