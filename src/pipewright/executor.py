"""
Execution of a resolved rule: the builtin copy and ordered shell chains
sharing one scratch file.
"""
from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import typing as t

from .core import (
    TOKEN_SCRATCH, TOKEN_SOURCE, TOKEN_TARGET, CopyOperation, Operation, PipelineRule, ShellOperation,
)
from .errors import (
    CommandFailedError, ExecTimeoutError, FileOperationError, SourceMissingError, TargetNotProducedError,
)

if t.TYPE_CHECKING:
    from pathlib import Path
    from .paths import ResolutionContext


def quote_path(path: Path) -> str:
    """
    Quote a path for the platform shell, leaving ordinary paths unchanged.
    """
    if os.name == 'nt':
        return subprocess.list2cmdline([str(path)])
    return shlex.quote(str(path))


class PipelineExecutor:
    """
    Runs the operations of a `PipelineRule` against a `ResolutionContext`.
    @timeout, when given, is the wall-clock limit in seconds for each shell
    operation.

    When the last operation is a shell command that never names `$TARGET`,
    the scratch file is copied to the target afterwards. The scratch file
    starts out empty, so a chain that never writes it yields an empty target.
    Filesystem failures are raised as `FileOperationError`.
    """
    encoding = 'utf-8'

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    def run(self, ctx: ResolutionContext, rule: PipelineRule):
        """
        Run every operation of @rule in order, stopping at the first failure.
        The scratch directory of @ctx is removed however this ends.
        """
        with ctx:
            for index, operation in enumerate(rule.operations, 1):
                self.run_operation(ctx, rule, index, operation)

            last = rule.operations[-1]
            if isinstance(last, ShellOperation) and TOKEN_TARGET not in last.tokens():
                # The chain left its result in the scratch file.
                self.copy_file(ctx, rule, ctx.scratch_path)

            if not ctx.target_path.exists():
                raise TargetNotProducedError(ctx.requested_uri, rule, ctx.target_path)

    def run_operation(self,
                      ctx: ResolutionContext,
                      rule: PipelineRule,
                      index: int,
                      operation: Operation):
        if isinstance(operation, CopyOperation):
            self.run_copy(ctx, rule)
        elif isinstance(operation, ShellOperation):
            self.run_shell(ctx, rule, index, operation)
        else:
            raise TypeError(f'Unsupported operation: {operation!r}')

    def make_target_dir(self, ctx: ResolutionContext, rule: PipelineRule):
        directory = ctx.target_path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileOperationError(ctx.requested_uri, rule, 'create directory', directory, e) from e

    def copy_file(self, ctx: ResolutionContext, rule: PipelineRule, source: Path):
        """
        Copy @source over the target of @ctx.
        """
        self.make_target_dir(ctx, rule)
        try:
            shutil.copyfile(source, ctx.target_path)
        except OSError as e:
            raise FileOperationError(ctx.requested_uri, rule, 'copy to', ctx.target_path, e) from e

    def run_copy(self, ctx: ResolutionContext, rule: PipelineRule):
        if not ctx.source_path.is_file():
            raise SourceMissingError(ctx.requested_uri, rule, ctx.source_path)
        self.copy_file(ctx, rule, ctx.source_path)

    def render_command(self, ctx: ResolutionContext, operation: ShellOperation) -> str:
        return operation.render({
            TOKEN_SOURCE: quote_path(ctx.source_path),
            TOKEN_TARGET: quote_path(ctx.target_path),
            TOKEN_SCRATCH: quote_path(ctx.scratch_path),
        })

    def run_shell(self,
                  ctx: ResolutionContext,
                  rule: PipelineRule,
                  index: int,
                  operation: ShellOperation):
        if not ctx.working_dir.is_dir():
            raise SourceMissingError(ctx.requested_uri, rule, ctx.working_dir)
        self.make_target_dir(ctx, rule)

        command = self.render_command(ctx, operation)
        try:
            completed = subprocess.run(
                command,
                shell=True,
                cwd=ctx.working_dir,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                encoding=self.encoding,
                errors='replace',
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise ExecTimeoutError(ctx.requested_uri, rule, index, command, e.timeout) from e
        except OSError as e:
            raise FileOperationError(ctx.requested_uri, rule, 'run a shell in', ctx.working_dir, e) from e

        if completed.returncode != 0:
            raise CommandFailedError(
                ctx.requested_uri,
                rule,
                index,
                command,
                completed.returncode,
                completed.stderr.strip(),
                completed.stdout.strip(),
            )
