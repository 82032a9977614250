"""
Glob patterns compiled to anchored regular expressions, with a structural
specificity ranking used to choose between several matching rules.
"""
from __future__ import annotations

import functools
import re

from .errors import GlobNotAbsoluteError, MalformedGlobError


SEPARATOR = '/'
DOUBLE_STAR = '**'


@functools.total_ordering
class Specificity:
    """
    A totally ordered ranking of a glob's restrictiveness. More literal
    segments rank higher, then fewer `**` segments, then fewer `*`/`?`
    segments.
    """
    __slots__ = ('literal', 'doublestar', 'wildcard')

    def __init__(self, literal: int, doublestar: int, wildcard: int):
        self.literal = literal
        self.doublestar = doublestar
        self.wildcard = wildcard

    @property
    def key(self):
        return (self.literal, -self.doublestar, -self.wildcard)

    def __eq__(self, other):
        if not isinstance(other, Specificity):
            return NotImplemented
        return self.key == other.key

    def __lt__(self, other):
        if not isinstance(other, Specificity):
            return NotImplemented
        return self.key < other.key

    def __hash__(self):
        return hash(self.key)

    def __repr__(self):
        return (f'Specificity(literal={self.literal}, '
                f'doublestar={self.doublestar}, wildcard={self.wildcard})')


def specificity_of(pattern: str) -> Specificity:
    """
    Rank a glob by the kinds of its path segments.
    """
    literal = doublestar = wildcard = 0
    for segment in pattern.split(SEPARATOR):
        if not segment:
            continue
        if DOUBLE_STAR in segment:
            doublestar += 1
        elif '*' in segment or '?' in segment:
            wildcard += 1
        else:
            literal += 1
    return Specificity(literal, doublestar, wildcard)


def translate(pattern: str) -> str:
    """
    Translate a glob into an anchored regular expression string. `**` crosses
    separators, `*` and `?` do not, and everything else is literal.
    """
    parts = ['^']
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if pattern.startswith(DOUBLE_STAR, i):
            parts.append('.*')
            i += 2
        elif char == '*':
            parts.append('[^/]*')
            i += 1
        elif char == '?':
            parts.append('[^/]')
            i += 1
        else:
            parts.append(re.escape(char))
            i += 1
    parts.append('$')
    return ''.join(parts)


class GlobPattern:
    """
    An immutable, compiled glob pattern. Use `compile_glob()` to build one.
    """
    __slots__ = ('raw', 'regex', 'specificity')

    raw: str
    regex: re.Pattern[str]
    specificity: Specificity

    def __init__(self, raw: str, regex: re.Pattern[str], specificity: Specificity):
        object.__setattr__(self, 'raw', raw)
        object.__setattr__(self, 'regex', regex)
        object.__setattr__(self, 'specificity', specificity)

    def __setattr__(self, name, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def matches(self, path: str) -> bool:
        return self.regex.match(path) is not None

    def __eq__(self, other):
        if not isinstance(other, GlobPattern):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self):
        return hash(self.raw)

    def __repr__(self):
        return f'GlobPattern({self.raw!r})'

    def __str__(self):
        return self.raw


def compile_glob(pattern: str) -> GlobPattern:
    """
    Compile @pattern into a `GlobPattern`. Patterns must be absolute, meaning
    they start with a separator or with `**` (which already matches one).
    """
    if not pattern:
        raise MalformedGlobError(pattern, 'empty pattern')
    if '***' in pattern:
        raise MalformedGlobError(pattern, 'more than two consecutive "*"')
    if not (pattern.startswith(SEPARATOR) or pattern.startswith(DOUBLE_STAR)):
        raise GlobNotAbsoluteError(pattern)
    try:
        regex = re.compile(translate(pattern))
    except re.error as e:
        raise MalformedGlobError(pattern, str(e)) from e
    return GlobPattern(pattern, regex, specificity_of(pattern))
