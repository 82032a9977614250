"""
Trackable dependencies on external executables used by shell operations.
"""
from __future__ import annotations

import abc
import shutil
import sys


class Dependency(abc.ABC):
    """
    A base class for evaluable, composable dependencies.
    """

    @property
    @abc.abstractmethod
    def satisfied(self) -> bool:
        """
        A bool indicating whether this dependency is met.
        """

    @property
    def needed(self) -> bool:
        """
        A bool indicating whether this dependency is needed on the current platform.
        """
        return True

    @property
    @abc.abstractmethod
    def install_hint(self) -> str:
        """
        A string giving help on how to install this dependency.
        """

    def __repr__(self):
        return f'{self.__class__.__name__}({self}, needed={self.needed}, satisfied={self.satisfied})'

    def __or__(self, other: Dependency):
        return _EitherDependency(self, other)

    def __and__(self, other: Dependency):
        return _BothDependency(self, other)


class _EitherDependency(Dependency):
    def __init__(self, left: Dependency, right: Dependency):
        self.left = left
        self.right = right

    def __str__(self):
        return f'({self.left} | {self.right})'

    @property
    def satisfied(self):
        return self.left.satisfied or self.right.satisfied

    @property
    def needed(self):
        return self.left.needed or self.right.needed

    @property
    def install_hint(self):
        return (
            (self.left.needed and self.left.install_hint)
            or (self.right.needed and self.right.install_hint)
            or ''
        )


class _BothDependency(Dependency):
    def __init__(self, left: Dependency, right: Dependency):
        self.left = left
        self.right = right

    def __str__(self):
        return f'({self.left} & {self.right})'

    @property
    def satisfied(self):
        return self.left.satisfied and self.right.satisfied

    @property
    def needed(self):
        # One side may only apply on some platforms.
        return self.left.needed or self.right.needed

    @property
    def install_hint(self):
        return '; '.join(d.install_hint for d in (self.left, self.right) if d.needed and not d.satisfied)


class ExecutableDependency(Dependency):
    """
    A Dependency on an executable found on PATH. @platforms, when given,
    limits the `sys.platform` prefixes on which it is needed.
    """
    def __init__(self,
                 name: str,
                 source: str | None = None,
                 check_name: str | None = None,
                 platforms: tuple[str, ...] | None = None):
        self.name = name
        self.source = source or f'install {name} and make sure it is on PATH'
        self.check_name = check_name or name
        self.platforms = platforms

    def __str__(self):
        return self.name

    def __eq__(self, other):
        if not isinstance(other, ExecutableDependency):
            return NotImplemented
        return (self.check_name, self.platforms) == (other.check_name, other.platforms)

    def __hash__(self):
        return hash((self.check_name, self.platforms))

    @property
    def needed(self):
        if self.platforms is None:
            return True
        return sys.platform.startswith(self.platforms)

    @property
    def satisfied(self):
        return bool(shutil.which(self.check_name))

    @property
    def install_hint(self):
        return self.source


# The platform shell used for shell operations outside Windows.
POSIX_SHELL = ExecutableDependency(
    'sh',
    'a POSIX shell is required to run shell operations',
    platforms=('linux', 'darwin', 'freebsd', 'openbsd', 'netbsd', 'cygwin', 'aix', 'sunos'),
)
