"""
The entry point used by the rest of a build to produce referenced assets.
"""
from __future__ import annotations

import concurrent.futures
import os
import threading
import typing as t
from pathlib import Path

from .core import AssetRequest, DocumentRef, ProducedAsset
from .errors import ExecError, InvalidAssetUriError, NoMatchingRuleError, PathError, PipelineError
from .executor import PipelineExecutor
from .paths import PathResolver, normalize_uri
from .pretty_utils import print_with_style, track_progress

if t.TYPE_CHECKING:
    from collections.abc import Iterable
    from .core import BuildSettings
    from .registry import PipelineRegistry


def default_jobs() -> int:
    return os.cpu_count() or 1


class PipelineService:
    """
    Finds the best rule for a requested asset, resolves its paths and runs
    it. The registry is frozen on use; to change rules mid-session, build a
    new registry and pass it to `replace_registry()`.
    """
    def __init__(self,
                 registry: PipelineRegistry,
                 resolver: PathResolver,
                 executor: PipelineExecutor | None = None,
                 quiet: bool = False):
        self._registry = registry.freeze()
        self._swap_lock = threading.Lock()
        self.resolver = resolver
        self.executor = executor or PipelineExecutor()
        self.quiet = quiet

    @classmethod
    def from_settings(cls, settings: BuildSettings, registry: PipelineRegistry, quiet: bool = False):
        """
        Build a service, resolver and executor from processed build settings.
        """
        resolver = PathResolver(settings['project_root'], settings['output_dir'], settings['scratch_dir'])
        return cls(registry, resolver, PipelineExecutor(settings['timeout']), quiet=quiet)

    @property
    def registry(self) -> PipelineRegistry:
        return self._registry

    def replace_registry(self, registry: PipelineRegistry):
        """
        Atomically swap in a new rule snapshot. Resolutions already running
        finish with the snapshot they started with.
        """
        registry.freeze()
        with self._swap_lock:
            self._registry = registry

    def resolve_and_run(self,
                        requested_uri: str,
                        document: DocumentRef | Path | None = None) -> ProducedAsset:
        """
        Produce @requested_uri, as referenced by @document, with the most
        specific matching rule. Rules are matched against the normalized URI.
        """
        if isinstance(document, Path):
            document = DocumentRef(document)
        registry = self._registry

        try:
            uri = normalize_uri(requested_uri)
        except InvalidAssetUriError as e:
            raise PipelineError(requested_uri, cause=e) from e

        matches = registry.find_matches(uri)
        if not matches:
            raise NoMatchingRuleError(uri)
        rule = matches[0]

        try:
            ctx = self.resolver.resolve(rule, uri, document)
            self.executor.run(ctx, rule)
        except (PathError, ExecError) as e:
            raise PipelineError(uri, rule, e) from e

        if not self.quiet:
            print_with_style(f'{rule.pattern.raw}: {ctx.source_path} ⇒ {ctx.target_path}')
        return ProducedAsset(ctx.requested_uri, ctx.target_path, rule)

    def resolve_all(self,
                    requests: Iterable[AssetRequest],
                    jobs: int | None = None) -> tuple[list[ProducedAsset], list[PipelineError]]:
        """
        Resolve many independent requests on at most @jobs worker threads.
        Returns the produced assets and the failures, each in request order.
        """
        requests = list(requests)
        results: list[ProducedAsset | PipelineError | None] = [None] * len(requests)

        with concurrent.futures.ThreadPoolExecutor(max_workers=jobs or default_jobs()) as pool:
            futures = {
                pool.submit(self.resolve_and_run, request.uri, request.document): i
                for i, request in enumerate(requests)
            }
            completed = concurrent.futures.as_completed(futures)
            for future in track_progress(completed, 'Producing assets...', total=len(futures)):
                try:
                    results[futures[future]] = future.result()
                except PipelineError as e:
                    results[futures[future]] = e

        produced = [r for r in results if isinstance(r, ProducedAsset)]
        failures = [r for r in results if isinstance(r, PipelineError)]
        return produced, failures
