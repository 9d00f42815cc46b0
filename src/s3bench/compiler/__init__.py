"""Compilation of S3Bench specs into runnable workloads."""

from .command import (
    PROGRAM,
    CompilationContractError,
    CompiledCommand,
    compile_command,
    require_compilable,
)
from .workload import (
    CredentialSecret,
    EnvBinding,
    Workload,
    compile_workload,
    credentials_secret_name,
)

__all__ = [
    "PROGRAM",
    "CompiledCommand",
    "CompilationContractError",
    "compile_command",
    "require_compilable",
    "CredentialSecret",
    "EnvBinding",
    "Workload",
    "compile_workload",
    "credentials_secret_name",
]
