"""
Core classes and types for the Pipewright asset pipeline.
"""
from __future__ import annotations

import abc
import posixpath
import re
import typing as t
from pathlib import Path, PurePosixPath

from .dependencies import Dependency, ExecutableDependency, POSIX_SHELL
from .errors import ConfigError
from .globs import GlobPattern, compile_glob

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Sequence, Set


class InputBuildSettings(t.TypedDict, total=False):
    """
    TypedDict for defining build settings in a Pipewright config file.
    """
    project_root: Path
    content_dir: Path
    output_dir: Path
    scratch_dir: Path | None
    jobs: int | None
    timeout: float | None
    overwrite: bool


class BuildSettings(t.TypedDict):
    """
    TypedDict for processed build settings, with every directory absolute.
    """
    project_root: Path
    content_dir: Path
    output_dir: Path
    scratch_dir: Path | None
    jobs: int
    timeout: float | None
    overwrite: bool


class DocumentRef(t.NamedTuple):
    """
    The source document that referenced an asset.
    """
    path: Path

    @property
    def directory(self) -> Path:
        return self.path.parent


class AssetRequest(t.NamedTuple):
    """
    A referenced asset URI and, when known, the document referencing it.
    """
    uri: str
    document: DocumentRef | None = None


class ProducedAsset(t.NamedTuple):
    """
    The result of a successful pipeline run.
    """
    requested_uri: str
    target_path: Path
    rule: PipelineRule


# Operations

TOKEN_SOURCE = 'SOURCE'
TOKEN_TARGET = 'TARGET'
TOKEN_SCRATCH = 'SCRATCH'
# Tokens are only recognized when not followed by further identifier
# characters, so $SOURCE_DIR reaches the shell untouched.
TOKEN_RE = re.compile(r'\$(SOURCE|TARGET|SCRATCH)(?![A-Za-z0-9_])')


class Operation(abc.ABC):
    """
    Abstract base class for the individual steps of a pipeline rule.
    """
    @classmethod
    def get_dependencies(cls) -> Set[Dependency]:
        return set()

    def dependencies(self) -> Set[Dependency]:
        """
        Return the requirements of this particular operation.
        """
        return self.get_dependencies()

    def is_available(self) -> bool:
        """
        Return whether this operation's needed requirements are installed.
        """
        return all(d.satisfied for d in self.dependencies() if d.needed)


class CopyOperation(Operation):
    """
    Builtin operation copying the resolved source to the target.
    """
    def __eq__(self, other):
        return isinstance(other, CopyOperation)

    def __hash__(self):
        return hash(CopyOperation)

    def __repr__(self):
        return 'OP_COPY'


OP_COPY = CopyOperation()
OP_COPY_NAME = 'OP_COPY'


class ShellOperation(Operation):
    """
    An operation running a command template through the platform shell.
    @requires names extra executables (or `Dependency` objects) the command
    needs.
    """
    def __init__(self, command: str, requires: Iterable[str | Dependency] = ()):
        self.command = command
        self.requires = frozenset(
            r if isinstance(r, Dependency) else ExecutableDependency(r)
            for r in requires
        )

    @classmethod
    def get_dependencies(cls):
        return {POSIX_SHELL}

    def dependencies(self):
        return self.get_dependencies() | self.requires

    def tokens(self) -> set[str]:
        """
        Return the substitution tokens used by the command.
        """
        return set(TOKEN_RE.findall(self.command))

    def render(self, values: dict[str, str]) -> str:
        """
        Substitute `$SOURCE`, `$TARGET` and `$SCRATCH`; any other `$` token is
        left for the shell.
        """
        return TOKEN_RE.sub(lambda m: values[m.group(1)], self.command)

    def __eq__(self, other):
        if not isinstance(other, ShellOperation):
            return NotImplemented
        return (self.command, self.requires) == (other.command, other.requires)

    def __hash__(self):
        return hash((self.command, self.requires))

    def __repr__(self):
        return f'ShellOperation({self.command!r})'


# Working directories

class WorkingDir(abc.ABC):
    """
    Where a rule finds its sources and runs its commands.
    """
    @classmethod
    def parse(cls, spec: str | WorkingDir) -> WorkingDir:
        """
        Parse a config string: a leading "/" means relative to the project
        root, anything else relative to the referencing document.
        """
        if isinstance(spec, WorkingDir):
            return spec
        if spec.startswith('/'):
            return AbsoluteFromRoot(spec)
        normalized = posixpath.normpath(spec) if spec else '.'
        return RelativeToDocument(None if normalized == '.' else normalized)


class RelativeToDocument(WorkingDir):
    def __init__(self, subpath: str | None = None):
        if subpath is not None and PurePosixPath(subpath).is_absolute():
            raise ValueError(f'Document-relative sub-path must be relative: {subpath!r}')
        self.subpath = subpath

    def __eq__(self, other):
        if not isinstance(other, RelativeToDocument):
            return NotImplemented
        return self.subpath == other.subpath

    def __hash__(self):
        return hash((RelativeToDocument, self.subpath))

    def __repr__(self):
        return f'RelativeToDocument({self.subpath!r})'


class AbsoluteFromRoot(WorkingDir):
    def __init__(self, path: str):
        self.path = path

    def relative(self) -> PurePosixPath:
        """
        The directory as a path relative to the project root.
        """
        return PurePosixPath(self.path.lstrip('/'))

    def __eq__(self, other):
        if not isinstance(other, AbsoluteFromRoot):
            return NotImplemented
        return self.relative() == other.relative()

    def __hash__(self):
        return hash((AbsoluteFromRoot, self.relative()))

    def __repr__(self):
        return f'AbsoluteFromRoot({self.path!r})'


class PipelineRule:
    """
    A single registered transformation: a working directory, a target glob,
    an ordered list of operations and an optional autorun glob.
    """
    def __init__(self,
                 working_dir: str | WorkingDir,
                 glob: str | GlobPattern,
                 operations: Sequence[Operation | str],
                 autorun: str | GlobPattern | None = None):
        self.working_dir = WorkingDir.parse(working_dir)
        self.pattern = glob if isinstance(glob, GlobPattern) else compile_glob(glob)
        self.operations: tuple[Operation, ...] = tuple(parse_operation(op) for op in operations)
        if not self.operations:
            raise ConfigError(f'Rule {self.pattern.raw} has no operations')
        if autorun is None:
            self.autorun = self.pattern
        else:
            self.autorun = autorun if isinstance(autorun, GlobPattern) else compile_glob(autorun)

    def matches(self, uri: str) -> bool:
        return self.pattern.matches(uri)

    def unavailable_operations(self) -> list[Operation]:
        return [op for op in self.operations if not op.is_available()]

    def __repr__(self):
        return (f'PipelineRule({self.working_dir!r}, {self.pattern.raw!r}, '
                f'{list(self.operations)!r})')


def parse_operation(value: t.Any) -> Operation:
    """
    Turn a configured operation into an `Operation`. The string "OP_COPY"
    names the builtin copy and any other string is a shell command.
    """
    if isinstance(value, Operation):
        return value
    if isinstance(value, str):
        if value == OP_COPY_NAME:
            return OP_COPY
        if not value.strip():
            raise ConfigError('Shell operations must not be empty')
        return ShellOperation(value)
    raise ConfigError(f'Expected an operation or a shell command, got {value!r}')
