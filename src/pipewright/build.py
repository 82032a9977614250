"""
The build driver: discovers referenced assets, skips the ones already in the
output tree and produces the rest.
"""
from __future__ import annotations

import typing as t

from .discover import discover_assets
from .errors import BuildFailedError, InvalidAssetUriError
from .paths import normalize_uri
from .pretty_utils import print_error, print_with_style
from .service import PipelineService

if t.TYPE_CHECKING:
    from .core import AssetRequest, BuildSettings, ProducedAsset
    from .registry import PipelineRegistry


class SiteBuild:
    """
    Produces every missing asset referenced by the rendered pages of a site.
    """
    def __init__(self,
                 settings: BuildSettings,
                 registry: PipelineRegistry,
                 service: PipelineService | None = None):
        self.settings = settings
        self.service = service or PipelineService.from_settings(settings, registry)

    def discover(self) -> list[AssetRequest]:
        return discover_assets(self.settings)

    def needs_run(self, request: AssetRequest) -> bool:
        """
        Whether @request must be produced. Existing targets are left alone
        unless the build overwrites.
        """
        if self.settings['overwrite']:
            return True
        try:
            target = self.settings['output_dir'] / normalize_uri(request.uri).lstrip('/')
        except InvalidAssetUriError:
            # Let the service report it.
            return True
        return not target.exists()

    def run(self, requests: list[AssetRequest] | None = None) -> list[ProducedAsset]:
        """
        Produce the assets for @requests, or for everything discovered in the
        output directory. Raises `BuildFailedError` after reporting every
        failure.
        """
        if requests is None:
            requests = self.discover()
        pending = [r for r in requests if self.needs_run(r)]
        skipped = len(requests) - len(pending)
        if skipped:
            print_with_style(f'Skipped {skipped} existing asset(s)', style='yellow')

        produced, failures = self.service.resolve_all(pending, self.settings['jobs'])
        for failure in failures:
            print_error(failure)
        if failures:
            raise BuildFailedError(failures)

        print_with_style(f'Produced {len(produced)} asset(s)', style='green')
        return produced
