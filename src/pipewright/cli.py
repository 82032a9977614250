"""
Pipewright's command line interface, with an accessible API for building
project-specific CLIs.
"""
from __future__ import annotations

import argparse
import importlib
import sys
import typing as t
from pathlib import Path

from .build import SiteBuild
from .config import Config, load_config, load_module, resolve_settings
from .core import AssetRequest, DocumentRef, InputBuildSettings
from .errors import OperationUnavailableError, PipewrightError
from .pretty_utils import print_error, print_with_style

if t.TYPE_CHECKING:
    from .core import Operation, PipelineRule


class BuildNamespace:
    """
    Internal used to merge config-file settings with command line overrides.
    """
    project_root: Path | None = None
    content_dir: Path | None = None
    output_dir: Path | None = None
    scratch_dir: Path | None = None
    jobs: int | None = None
    timeout: float | None = None
    overwrite: bool | None = None
    assets: list[str] | None = None
    document: Path | None = None

    def to_input_settings(self, settings: InputBuildSettings | None) -> InputBuildSettings:
        merged = InputBuildSettings(**(settings or {}))
        for key in InputBuildSettings.__annotations__:
            value = getattr(self, key, None)
            if value is not None:
                merged[key] = value.resolve() if key == 'project_root' else value
        return merged

    def requests(self) -> list[AssetRequest] | None:
        if not self.assets:
            return None
        document = DocumentRef(self.document.resolve()) if self.document else None
        return [AssetRequest(uri, document) for uri in self.assets]


def parse_settings_args(argv: list[str] | None = None, **kw) -> BuildNamespace:
    """
    Parse the build options that may override a config file's SETTINGS.
    """
    parser = argparse.ArgumentParser(**kw)
    parser.add_argument('-r', '--root',
                        help='project root; defaults to the config file directory',
                        type=Path,
                        dest='project_root')
    parser.add_argument('-c', '--content',
                        help='directory of source documents, relative to the root',
                        type=Path,
                        dest='content_dir')
    parser.add_argument('-o', '--output',
                        help='directory of rendered output, relative to the root',
                        type=Path,
                        dest='output_dir')
    parser.add_argument('--scratch',
                        help='directory for per-asset scratch directories; defaults to the system temp dir',
                        type=Path,
                        dest='scratch_dir')
    parser.add_argument('-j', '--jobs',
                        help='number of assets to produce in parallel',
                        type=int)
    parser.add_argument('--timeout',
                        help='wall-clock limit in seconds for each shell operation',
                        type=float)
    parser.add_argument('--overwrite',
                        help='rerun pipelines for assets that already exist in the output',
                        action=argparse.BooleanOptionalAction)
    parser.add_argument('-a', '--asset',
                        help='produce this asset URI instead of scanning the output; may be repeated',
                        action='append',
                        dest='assets')
    parser.add_argument('-d', '--document',
                        help='source document referencing the assets given with --asset',
                        type=Path)

    return parser.parse_args(argv, namespace=BuildNamespace())


def run_from_config(config: Config,
                    base_dir: Path | None = None,
                    argv: list[str] | None = None,
                    **kw):
    """
    Resolve settings from @config and command line arguments, then build.
    """
    namespace = parse_settings_args(argv, **kw)
    settings = resolve_settings(namespace.to_input_settings(config.settings), base_dir)
    build = SiteBuild(settings, config.registry())
    return build.run(namespace.requests())


def pprint_operation(operation: Operation):
    """
    Prettily display dependency information for the given operation.
    """
    missing = [
        str(d) for d in operation.dependencies()
        if d.needed and not d.satisfied
    ]
    if missing:
        text = ', '.join(missing)
        print_with_style(f'  ✗ {operation!r} (missing: {text})', style='red')
    else:
        print_with_style(f'  ✓ {operation!r}', style='green')


def audit_rules(rules: list[PipelineRule]):
    for i, rule in enumerate(rules):
        print(f'[{i}] {rule.pattern.raw} (working dir: {rule.working_dir!r}, '
              f'autorun: {rule.autorun.raw})')
        for operation in rule.operations:
            pprint_operation(operation)


def pprint_missing_deps(operation: Operation):
    """
    Prettily display an error for the given operation with missing
    dependencies.
    """
    print_with_style(
        f'{operation!r} is unavailable due to missing dependencies!',
        file='stderr',
        style='red'
    )
    for dep in operation.dependencies():
        if not dep.needed:
            continue
        if dep.satisfied:
            print_with_style(f'✓ {dep}', style='green')
        else:
            print_with_style(f'✗ {dep}: {dep.install_hint}', style='red')


def main(arguments: list[str] | None = None):
    """
    Pipewright main function. Loads rules from a config file or module, then
    produces the assets referenced by the rendered site.
    """
    parser = argparse.ArgumentParser(description='Produce the assets of a Pipewright project.')
    parser.add_argument('--audit-rules',
                        help='list rules and the availability of their operations instead of building',
                        action='store_true')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('-m',
                       help='import path of a config module',
                       dest='module',
                       default=None)
    group.add_argument('config_file',
                       nargs='?',
                       help='path to a .py or .toml config file',
                       type=Path,
                       default=None)

    args, remaining = parser.parse_known_args(arguments)

    try:
        if args.config_file:
            label = str(args.config_file)
            config = load_config(args.config_file)
            base_dir = args.config_file.resolve().parent
        else:
            label = f'-m {args.module}'
            config = load_module(importlib.import_module(args.module))
            base_dir = None

        if args.audit_rules:
            audit_rules(config.rules)
            return

        run_from_config(config, base_dir, argv=remaining, prog=f'pipewright {label}')
    except OperationUnavailableError as e:
        pprint_missing_deps(e.operation)
        sys.exit(1)
    except PipewrightError as e:
        print_error(e)
        sys.exit(1)
