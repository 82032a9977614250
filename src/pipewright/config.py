"""
Loading build settings and pipeline rules from Python or TOML config files.

A Python config file (or importable module) exposes `RULES`, a list of
`PipelineRule`s, and optionally `SETTINGS`, an `InputBuildSettings`. A TOML
config file uses an optional `[settings]` table and `[[pipeline]]` tables:

    [[pipeline]]
    working_dir = "."
    glob = "/blog/**/*.png"
    ops = ["OP_COPY"]
"""
from __future__ import annotations

import runpy
import sys
import types
import typing as t
from pathlib import Path

from .core import BuildSettings, InputBuildSettings, PipelineRule, ShellOperation, parse_operation
from .errors import ConfigError, GlobError
from .registry import PipelineRegistry
from .service import default_jobs


DEFAULT_CONTENT_DIR = Path('content')
DEFAULT_OUTPUT_DIR = Path('output')
PATH_SETTINGS = ('project_root', 'content_dir', 'output_dir', 'scratch_dir')
PIPELINE_KEYS = {'working_dir', 'glob', 'ops', 'autorun', 'requires'}


class Config:
    """
    The rules and settings read from a config source.
    """
    def __init__(self,
                 rules: list[PipelineRule],
                 settings: InputBuildSettings | None = None,
                 label: str = '<config>'):
        self.rules = rules
        self.settings: InputBuildSettings = settings or InputBuildSettings()
        self.label = label

    def registry(self, check_available: bool = True) -> PipelineRegistry:
        return PipelineRegistry(self.rules, check_available=check_available)


def resolve_settings(settings: InputBuildSettings | None = None,
                     base_dir: Path | None = None) -> BuildSettings:
    """
    Fill in defaults and make every directory absolute. A relative
    `project_root` is taken from @base_dir (default: the current directory);
    other relative directories are taken from the project root.
    """
    settings = settings or InputBuildSettings()
    base_dir = base_dir or Path.cwd()
    project_root = (base_dir / settings.get('project_root', Path('.'))).resolve()

    scratch_dir = settings.get('scratch_dir')
    jobs = settings.get('jobs') or default_jobs()
    if jobs < 1:
        raise ConfigError(f'jobs must be at least 1, got {jobs}')
    timeout = settings.get('timeout')
    if timeout is not None and timeout <= 0:
        raise ConfigError(f'timeout must be positive, got {timeout}')

    return BuildSettings(
        project_root=project_root,
        content_dir=project_root / settings.get('content_dir', DEFAULT_CONTENT_DIR),
        output_dir=project_root / settings.get('output_dir', DEFAULT_OUTPUT_DIR),
        scratch_dir=project_root / scratch_dir if scratch_dir else None,
        jobs=jobs,
        timeout=timeout,
        overwrite=bool(settings.get('overwrite', False)),
    )


def _coerce_settings(raw: t.Any, label: str) -> InputBuildSettings:
    if not isinstance(raw, dict):
        raise ConfigError(f'{label}: settings must be a table')
    unknown = set(raw) - set(InputBuildSettings.__annotations__)
    if unknown:
        raise ConfigError(f'{label}: unknown settings {", ".join(sorted(unknown))}')
    settings = InputBuildSettings(**raw)
    for key in PATH_SETTINGS:
        if settings.get(key) is not None:
            settings[key] = Path(settings[key])
    return settings


def rule_from_table(table: t.Any, label: str = '<config>') -> PipelineRule:
    """
    Build a `PipelineRule` from a `[[pipeline]]` table.
    """
    if not isinstance(table, dict):
        raise ConfigError(f'{label}: pipelines must be tables')
    unknown = set(table) - PIPELINE_KEYS
    if unknown:
        raise ConfigError(f'{label}: unknown pipeline keys {", ".join(sorted(unknown))}')
    for key in ('working_dir', 'glob', 'ops'):
        if key not in table:
            raise ConfigError(f'{label}: pipeline is missing {key!r}')

    working_dir, glob, ops = table['working_dir'], table['glob'], table['ops']
    if not isinstance(working_dir, str) or not isinstance(glob, str):
        raise ConfigError(f'{label}: working_dir and glob must be strings')
    if not isinstance(ops, list):
        raise ConfigError(f'{label}: ops must be a list')

    operations = [parse_operation(op) for op in ops]
    requires = table.get('requires', [])
    if requires:
        if not isinstance(requires, list) or not all(isinstance(r, str) for r in requires):
            raise ConfigError(f'{label}: requires must be a list of strings')
        operations = [ShellOperation(op.command, requires) if isinstance(op, ShellOperation) else op
                      for op in operations]

    try:
        return PipelineRule(working_dir, glob, operations, table.get('autorun'))
    except GlobError as e:
        raise ConfigError(f'{label}: {e}') from e


def load_toml(path: Path) -> Config:
    if sys.version_info < (3, 11):
        import tomli as tomllib
    else:
        import tomllib

    label = str(path)
    try:
        with path.open('rb') as file:
            data = tomllib.load(file)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f'{label}: {e}') from e

    settings = _coerce_settings(data.get('settings', {}), label)
    pipelines = data.get('pipeline', [])
    if not isinstance(pipelines, list):
        raise ConfigError(f'{label}: use [[pipeline]] tables to declare pipelines')
    return Config([rule_from_table(p, label) for p in pipelines], settings, label)


def _from_namespace(get: t.Callable[[str], t.Any], label: str) -> Config:
    rules = get('RULES')
    if rules is None:
        raise ConfigError(f'{label}: Pipewright config files must have a RULES attribute')
    rules = list(rules)
    for rule in rules:
        if not isinstance(rule, PipelineRule):
            raise ConfigError(f'{label}: RULES may only contain PipelineRule objects, got {rule!r}')
    return Config(rules, get('SETTINGS'), label)


def load_python(path: Path) -> Config:
    label = str(path)
    namespace = runpy.run_path(label)
    return _from_namespace(namespace.get, label)


def load_module(module: types.ModuleType) -> Config:
    return _from_namespace(lambda name: getattr(module, name, None), f'-m {module.__name__}')


def load_config(path: Path) -> Config:
    """
    Load a config file, choosing the format from its extension.
    """
    if not path.is_file():
        raise ConfigError(f'Config file {path} does not exist')
    if path.suffix == '.toml':
        return load_toml(path)
    return load_python(path)
