"""warp command-line compilation.

Maps a validated, fully defaulted spec to the ordered argument list passed
to the warp container. The mapping is table driven and deterministic:
the same spec always yields the same tokens. Credentials never appear in
the arguments; see :mod:`s3bench.compiler.workload` for how they are bound.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from s3bench.config.defaults import missing_defaults
from s3bench.config.schema import BenchmarkMode, S3BenchSpec
from s3bench.config.validator import validate_spec

logger = logging.getLogger(__name__)

PROGRAM = "warp"

# (field path, flag) in emission order. Scalars emit ``flag value``,
# booleans emit a bare ``flag`` when true and nothing when false.
_OPTION_FLAGS: tuple[tuple[str, str], ...] = (
    ("options.concurrent", "--concurrent"),
    ("options.bucket", "--bucket"),
    ("options.duration", "--duration"),
    ("options.host_select", "--host-select"),
    ("options.region", "--region"),
    ("options.tls", "--tls"),
    ("options.insecure", "--insecure"),
    ("options.encrypt", "--encrypt"),
    ("options.no_prefix", "--noprefix"),
    ("options.no_clear", "--noclear"),
    ("options.bench_output", "--benchdata"),
    ("options.sync_start", "--syncstart"),
    ("options.requests", "--requests"),
    ("options.no_color", "--no-color"),
    ("options.debug", "--debug"),
    ("objects.count", "--objects"),
    ("objects.size", "--obj.size"),
    ("objects.generator", "--obj.generator"),
    ("objects.random_size", "--obj.randsize"),
    ("analysis.duration", "--analyze.dur"),
    ("analysis.output", "--analyze.out"),
    ("analysis.operation_filter", "--analyze.op"),
    ("analysis.print_errors", "--analyze.errors"),
    ("analysis.host_filter", "--analyze.host"),
    ("analysis.skip", "--analyze.skip"),
    ("analysis.host_details", "--analyze.hostdetails"),
)

_AUTO_TERM_FLAGS: tuple[tuple[str, str], ...] = (
    ("auto_term.enabled", "--autoterm"),
    ("auto_term.duration", "--autoterm.dur"),
    ("auto_term.percent", "--autoterm.pct"),
)

# Always emitted in mixed mode, zero weights included
_MIXED_FLAGS: tuple[tuple[str, str], ...] = (
    ("mixed_dist.get", "--get-distrib"),
    ("mixed_dist.stat", "--stat-distrib"),
    ("mixed_dist.put", "--put-distrib"),
    ("mixed_dist.delete", "--delete-distrib"),
)


class CompilationContractError(Exception):
    """Raised when compilation is attempted on an invalid or undefaulted spec.

    Indicates a caller skipped validation or defaulting; never user-facing.
    """

    pass


@dataclass(frozen=True)
class CompiledCommand:
    """Ordered warp invocation for one benchmark run."""

    mode: str
    args: tuple[str, ...]

    @property
    def argv(self) -> tuple[str, ...]:
        """Full argument vector including the program name."""
        return (PROGRAM, *self.args)

    def __str__(self) -> str:
        return " ".join(self.argv)


def _get(spec: S3BenchSpec, path: str) -> Any:
    section, name = path.split(".", 1)
    return getattr(getattr(spec, section), name)


def _emit(tokens: list[str], flag: str, value: Any) -> None:
    if isinstance(value, bool):
        if value:
            tokens.append(flag)
        return
    if value is None or value == "" or value == 0:
        return
    tokens.extend((flag, str(value)))


def require_compilable(spec: S3BenchSpec) -> None:
    """Check the compile preconditions.

    Raises:
        CompilationContractError: If the spec is invalid or not fully defaulted
    """
    problems = [str(v) for v in validate_spec(spec)]
    problems.extend(f"{path}: not defaulted" for path in missing_defaults(spec))
    if problems:
        logger.error("Refusing to compile spec: %s", "; ".join(problems))
        raise CompilationContractError(
            "Spec must be validated and defaulted before compilation: " + "; ".join(problems)
        )


def compile_command(spec: S3BenchSpec) -> CompiledCommand:
    """Compile a validated, defaulted spec into warp arguments.

    Args:
        spec: Spec that passed validation and defaulting

    Returns:
        CompiledCommand with the sub-command followed by its flags

    Raises:
        CompilationContractError: If the preconditions do not hold
    """
    require_compilable(spec)

    tokens: list[str] = [spec.mode, "--host", ",".join(spec.hosts())]

    for path, flag in _OPTION_FLAGS:
        _emit(tokens, flag, _get(spec, path))

    if spec.auto_term.enabled:
        for path, flag in _AUTO_TERM_FLAGS:
            _emit(tokens, flag, _get(spec, path))

    if spec.mode == BenchmarkMode.MIXED.value:
        for path, flag in _MIXED_FLAGS:
            tokens.extend((flag, str(_get(spec, path))))

    return CompiledCommand(mode=spec.mode, args=tuple(tokens))
