import sys

import pytest

from pipewright.core import OP_COPY, ShellOperation
from pipewright.dependencies import POSIX_SHELL, ExecutableDependency

MISSING = ExecutableDependency('pipewright-missing-tool', 'get it from the tool shop')
PRESENT = ExecutableDependency('python', check_name=sys.executable)


def test_executable_dependency():
    assert not MISSING.satisfied
    assert MISSING.needed
    assert MISSING.install_hint == 'get it from the tool shop'
    assert PRESENT.satisfied
    assert str(PRESENT) == 'python'


def test_platform_limited():
    elsewhere = ExecutableDependency('pipewright-missing-tool', platforms=('pipewright-os',))
    assert not elsewhere.needed
    assert ShellOperation('true', requires=[elsewhere]).dependencies() >= {elsewhere}


@pytest.mark.parametrize('dependency,satisfied', [
    (MISSING | PRESENT, True),
    (PRESENT | MISSING, True),
    (MISSING | MISSING, False),
    (MISSING & PRESENT, False),
    (PRESENT & PRESENT, True),
])
def test_combinators(dependency, satisfied: bool):
    assert dependency.satisfied is satisfied
    assert dependency.needed


def test_combined_install_hint():
    assert (MISSING & PRESENT).install_hint == 'get it from the tool shop'
    assert (PRESENT | MISSING).install_hint == 'install python and make sure it is on PATH'
    assert str(MISSING & PRESENT) == '(pipewright-missing-tool & python)'


def test_operation_dependencies():
    assert OP_COPY.dependencies() == set()
    assert OP_COPY.is_available()
    operation = ShellOperation('frobnicate $SOURCE', requires=['pipewright-missing-tool'])
    assert operation.dependencies() == {POSIX_SHELL, ExecutableDependency('pipewright-missing-tool')}
    assert not operation.is_available()
