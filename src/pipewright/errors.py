"""
Exception hierarchy for Pipewright. Every error carries enough context to be
shown to the user as-is.
"""
from __future__ import annotations

import typing as t
from pathlib import Path

if t.TYPE_CHECKING:
    from .core import Operation, PipelineRule


class PipewrightError(Exception):
    """
    Base class for all Pipewright errors.
    """


class ConfigError(PipewrightError):
    """
    Raised for invalid pipeline configuration, such as an unknown operation.
    """


class RegistryFrozenError(PipewrightError):
    """
    Raised when registering a rule after the registry has been frozen.
    """


class OperationUnavailableError(PipewrightError):
    """
    Raised when a rule uses an operation whose dependencies are missing.
    """
    def __init__(self, operation: Operation, *args: t.Any):
        self.operation = operation
        super().__init__(f'{operation} is unavailable due to missing dependencies', *args)


# Glob errors

class GlobError(PipewrightError):
    def __init__(self, pattern: str, message: str):
        self.pattern = pattern
        super().__init__(f'{message}: {pattern!r}')


class MalformedGlobError(GlobError):
    def __init__(self, pattern: str, reason: str):
        self.reason = reason
        super().__init__(pattern, f'Malformed glob ({reason})')


class GlobNotAbsoluteError(GlobError):
    def __init__(self, pattern: str):
        super().__init__(pattern, 'Glob must begin with "/" or "**"')


# Path errors

class PathError(PipewrightError):
    """
    Base class for failures while resolving the paths of an asset request.
    """


class NoDocumentOriginError(PathError):
    """
    Raised when a rule works relative to the referencing document, but the
    asset was not referenced by a generated document (for example, it came
    from a mounted file).
    """
    def __init__(self, requested_uri: str):
        self.requested_uri = requested_uri
        super().__init__(
            f'Cannot resolve {requested_uri}: the rule works relative to the '
            'referencing document, but no document origin is known'
        )


class UnreadableProjectRootError(PathError):
    def __init__(self, project_root: Path):
        self.project_root = project_root
        super().__init__(f'Project root {project_root} is not a readable directory')


class InvalidAssetUriError(PathError):
    def __init__(self, requested_uri: str, reason: str):
        self.requested_uri = requested_uri
        self.reason = reason
        super().__init__(f'Invalid asset URI {requested_uri!r}: {reason}')


# Execution errors

class ExecError(PipewrightError):
    """
    Base class for failures while running the operations of a rule.
    """
    def __init__(self, requested_uri: str, rule: PipelineRule, message: str):
        self.requested_uri = requested_uri
        self.rule = rule
        super().__init__(message)


class SourceMissingError(ExecError):
    def __init__(self, requested_uri: str, rule: PipelineRule, source_path: Path):
        self.source_path = source_path
        super().__init__(
            requested_uri, rule,
            f'Cannot produce {requested_uri}: source {source_path} does not exist'
        )


class CommandFailedError(ExecError):
    """
    Raised when a shell operation exits with a non-zero status. @index is the
    1-based position of the failing operation in the rule.
    """
    def __init__(self,
                 requested_uri: str,
                 rule: PipelineRule,
                 index: int,
                 command: str,
                 exit_code: int,
                 stderr: str,
                 stdout: str = ''):
        self.index = index
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        super().__init__(
            requested_uri, rule,
            f'Operation {index} for {requested_uri} exited with status {exit_code}: {command}'
        )


class TargetNotProducedError(ExecError):
    def __init__(self, requested_uri: str, rule: PipelineRule, target_path: Path):
        self.target_path = target_path
        super().__init__(
            requested_uri, rule,
            f'Rule {rule.pattern.raw} finished without producing {target_path}'
        )


class ExecTimeoutError(ExecError):
    def __init__(self,
                 requested_uri: str,
                 rule: PipelineRule,
                 index: int,
                 command: str,
                 timeout: float):
        self.index = index
        self.command = command
        self.timeout = timeout
        super().__init__(
            requested_uri, rule,
            f'Operation {index} for {requested_uri} timed out after {timeout}s: {command}'
        )


class FileOperationError(ExecError):
    """
    Raised when the filesystem refuses an operation, such as creating the
    target's directory or launching the shell. @error is the original
    `OSError`.
    """
    def __init__(self,
                 requested_uri: str,
                 rule: PipelineRule,
                 action: str,
                 path: Path,
                 error: OSError):
        self.action = action
        self.path = path
        self.error = error
        super().__init__(
            requested_uri, rule,
            f'Cannot produce {requested_uri}: failed to {action} {path}: {error.strerror or error}'
        )


# Pipeline errors

class PipelineError(PipewrightError):
    """
    Error surfaced by `PipelineService`. Failures after a rule was selected are
    wrapped, with the original error available as @cause.
    """
    def __init__(self,
                 requested_uri: str,
                 rule: PipelineRule | None = None,
                 cause: PipewrightError | None = None,
                 message: str | None = None):
        self.requested_uri = requested_uri
        self.rule = rule
        self.cause = cause
        if message is None:
            label = f' (rule {rule.pattern.raw})' if rule else ''
            message = f'Failed to produce {requested_uri}{label}: {cause}'
        super().__init__(message)


class NoMatchingRuleError(PipelineError):
    def __init__(self, requested_uri: str):
        super().__init__(
            requested_uri,
            message=f'No pipeline rule matches {requested_uri}'
        )


class BuildFailedError(PipewrightError):
    """
    Raised by the build driver when one or more assets could not be produced.
    """
    def __init__(self, failures: list[PipelineError]):
        self.failures = failures
        super().__init__(f'{len(failures)} asset(s) could not be produced')
