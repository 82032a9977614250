"""
Resolution of the source, target and scratch paths for a single asset
request.
"""
from __future__ import annotations

import posixpath
import shutil
import tempfile
from pathlib import Path, PurePosixPath

from .core import AbsoluteFromRoot, DocumentRef, PipelineRule, RelativeToDocument
from .errors import InvalidAssetUriError, NoDocumentOriginError, UnreadableProjectRootError


SCRATCH_PREFIX = 'pipewright-'
SCRATCH_FILE = 'scratch'


class ResolutionContext:
    """
    Everything needed to run one rule for one requested asset. Owns a freshly
    created scratch directory, which is removed by `cleanup()` or on leaving
    a `with` block.
    """
    def __init__(self,
                 requested_uri: str,
                 document: DocumentRef | None,
                 target_path: Path,
                 working_dir: Path,
                 source_path: Path,
                 scratch_dir: Path):
        self.requested_uri = requested_uri
        self.document = document
        self.target_path = target_path
        self.working_dir = working_dir
        self.source_path = source_path
        self.scratch_dir = scratch_dir

    @property
    def scratch_path(self) -> Path:
        """
        The single scratch file shared by every operation of a rule run.
        """
        return self.scratch_dir / SCRATCH_FILE

    def cleanup(self):
        if self.scratch_dir.exists():
            shutil.rmtree(self.scratch_dir)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.cleanup()

    def __repr__(self):
        return (f'ResolutionContext({self.requested_uri!r}, source={self.source_path}, '
                f'target={self.target_path}, scratch={self.scratch_dir})')


def normalize_uri(requested_uri: str) -> str:
    """
    Normalize an absolute asset URI, refusing URIs that are relative or that
    climb above the output root.
    """
    if not requested_uri.startswith('/'):
        raise InvalidAssetUriError(requested_uri, 'asset URIs must begin with "/"')
    relative = posixpath.normpath(requested_uri.lstrip('/') or '.')
    if relative == '..' or relative.startswith('../'):
        raise InvalidAssetUriError(requested_uri, 'URI escapes the output directory')
    if relative == '.' or requested_uri.endswith('/'):
        raise InvalidAssetUriError(requested_uri, 'URI does not name a file')
    return '/' + relative


class PathResolver:
    """
    Computes the absolute paths used to produce an asset. @output_dir and
    @scratch_root may be relative to @project_root; @scratch_root defaults to
    the system temporary directory.
    """
    def __init__(self,
                 project_root: Path,
                 output_dir: Path,
                 scratch_root: Path | None = None):
        self.project_root = Path(project_root)
        self.output_dir = self.project_root / output_dir
        self.scratch_root = self.project_root / scratch_root if scratch_root else None

    def check_project_root(self):
        if not self.project_root.is_dir():
            raise UnreadableProjectRootError(self.project_root)

    def target_path(self, requested_uri: str) -> Path:
        return self.output_dir / normalize_uri(requested_uri).lstrip('/')

    def working_dir(self,
                    rule: PipelineRule,
                    requested_uri: str,
                    document: DocumentRef | None) -> Path:
        spec = rule.working_dir
        if isinstance(spec, AbsoluteFromRoot):
            return self.project_root / spec.relative()
        if isinstance(spec, RelativeToDocument):
            if document is None:
                raise NoDocumentOriginError(requested_uri)
            directory = self.project_root / document.directory
            return directory / spec.subpath if spec.subpath else directory
        raise TypeError(f'Unknown working directory specification: {spec!r}')

    def make_scratch_dir(self) -> Path:
        """
        Create a uniquely named scratch directory holding an empty scratch
        file.
        """
        if self.scratch_root:
            self.scratch_root.mkdir(parents=True, exist_ok=True)
        scratch_dir = Path(tempfile.mkdtemp(prefix=SCRATCH_PREFIX, dir=self.scratch_root))
        (scratch_dir / SCRATCH_FILE).touch()
        return scratch_dir

    def resolve(self,
                rule: PipelineRule,
                requested_uri: str,
                document: DocumentRef | None = None) -> ResolutionContext:
        """
        Resolve every path for running @rule on @requested_uri, as referenced
        by @document. The scratch directory is created last.
        """
        self.check_project_root()
        uri = normalize_uri(requested_uri)
        target_path = self.target_path(uri)
        working_dir = self.working_dir(rule, uri, document)
        source_path = working_dir / PurePosixPath(uri).name
        return ResolutionContext(
            requested_uri=uri,
            document=document,
            target_path=target_path,
            working_dir=working_dir,
            source_path=source_path,
            scratch_dir=self.make_scratch_dir(),
        )
