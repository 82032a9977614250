import sys

import pytest

from pipewright.core import OP_COPY, PipelineRule, ShellOperation
from pipewright.dependencies import ExecutableDependency
from pipewright.errors import OperationUnavailableError, RegistryFrozenError
from pipewright.registry import PipelineRegistry


def copy_rule(glob: str, autorun: str | None = None):
    return PipelineRule('.', glob, [OP_COPY], autorun)


def test_register_returns_sequential_ids():
    registry = PipelineRegistry()
    assert registry.register(copy_rule('/a/*.png')) == 0
    assert registry.register(copy_rule('/b/*.png')) == 1
    assert len(registry) == 2


def test_find_matches_orders_by_specificity():
    broad = copy_rule('**/*.jpg')
    middle = copy_rule('/blog/**/*.jpg')
    narrow = copy_rule('/blog/vacation/*.jpg')
    exact = copy_rule('/blog/vacation/photo.jpg')
    other = copy_rule('/static/*.jpg')
    registry = PipelineRegistry([broad, other, middle, exact, narrow])

    assert registry.find_matches('/blog/vacation/photo.jpg') == [exact, narrow, middle, broad]
    assert registry.find_matches('/static/a.jpg') == [other, broad]


def test_find_matches_ties_go_to_first_registered():
    first = copy_rule('/img/*.png')
    second = copy_rule('/img/?????.png')
    third = copy_rule('/img/logo.*')
    registry = PipelineRegistry([first, second, third])
    assert registry.find_matches('/img/logo1.png') == [first, second]
    assert registry.find_matches('/img/logo.png') == [first, third]

    reversed_registry = PipelineRegistry([third, second, first])
    assert reversed_registry.find_matches('/img/logo.png') == [third, first]


def test_find_matches_empty():
    registry = PipelineRegistry([copy_rule('/img/*.png')])
    assert registry.find_matches('/img/photo.jpg') == []
    assert PipelineRegistry().find_matches('/anything') == []


def test_later_specific_rule_wins_without_reordering_ties():
    registry = PipelineRegistry([copy_rule('/a/*.png'), copy_rule('/b/*.png')])
    specific = copy_rule('/a/special.png')
    registry.register(specific)
    assert registry.find_matches('/a/special.png')[0] is specific


def test_find_autorun_defaults_to_target_glob():
    default = copy_rule('/css/*.css')
    custom = copy_rule('/css/site.css', autorun='/styles/**')
    registry = PipelineRegistry([default, custom])
    assert default.autorun is default.pattern
    assert registry.find_autorun('/css/site.css') == [default]
    assert registry.find_autorun('/styles/base/colors.scss') == [custom]


def test_freeze():
    registry = PipelineRegistry([copy_rule('/a/*.png')])
    assert registry.freeze() is registry
    assert registry.frozen
    with pytest.raises(RegistryFrozenError):
        registry.register(copy_rule('/b/*.png'))
    assert len(registry) == 1


def test_unavailable_operation():
    missing = ShellOperation('frobnicate $SOURCE', requires=['pipewright-missing-tool'])
    registry = PipelineRegistry()
    with pytest.raises(OperationUnavailableError) as excinfo:
        registry.register(PipelineRule('.', '/a/*.x', [missing]))
    assert excinfo.value.operation is missing
    assert len(registry) == 0

    unchecked = PipelineRegistry(check_available=False)
    unchecked.register(PipelineRule('.', '/a/*.x', [missing]))
    assert len(unchecked) == 1


@pytest.mark.skipif(sys.platform == 'win32', reason='requires a POSIX shell')
def test_either_dependency_is_enough():
    either = ExecutableDependency('pipewright-missing-tool') | ExecutableDependency('sh')
    operation = ShellOperation('true', requires=[either])
    assert operation.is_available()
    registry = PipelineRegistry()
    registry.register(PipelineRule('.', '/a/*.x', [operation]))


def test_rule_id_and_iteration():
    rules = [copy_rule('/a/*.png'), copy_rule('/b/*.png')]
    registry = PipelineRegistry(rules)
    assert list(registry) == rules
    assert registry.rule_id(rules[1]) == 1
    with pytest.raises(KeyError):
        registry.rule_id(copy_rule('/c/*.png'))
