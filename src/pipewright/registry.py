"""
The rule registry: built once per build pass, then frozen and shared
read-only between concurrent resolutions.
"""
from __future__ import annotations

import typing as t

from .errors import OperationUnavailableError, RegistryFrozenError

if t.TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from .core import PipelineRule
    from .globs import GlobPattern


RuleId = int


class PipelineRegistry:
    """
    Stores registered `PipelineRule`s and answers which of them apply to a
    path. Results are ranked by glob specificity; among equally specific
    rules the one registered first wins.
    """
    def __init__(self, rules: Iterable[PipelineRule] = (), check_available: bool = True):
        self.check_available = check_available
        self._rules: list[PipelineRule] = []
        self._frozen = False
        for rule in rules:
            self.register(rule)

    @property
    def frozen(self):
        return self._frozen

    def register(self, rule: PipelineRule) -> RuleId:
        """
        Add a rule and return its id, which is also its registration order.
        """
        if self._frozen:
            raise RegistryFrozenError(f'Cannot register {rule.pattern.raw}: registry is frozen')
        if self.check_available:
            for operation in rule.unavailable_operations():
                raise OperationUnavailableError(operation)
        self._rules.append(rule)
        return len(self._rules) - 1

    def freeze(self):
        """
        End the registration phase. Returns the registry for chaining.
        """
        self._frozen = True
        return self

    def _ranked(self, matched: list[tuple[RuleId, PipelineRule]], key: t.Callable[[PipelineRule], GlobPattern]):
        # Stable sort on descending specificity keeps registration order
        # among ties.
        matched.sort(key=lambda item: key(item[1]).specificity, reverse=True)
        return [rule for _rule_id, rule in matched]

    def find_matches(self, target_uri: str) -> list[PipelineRule]:
        """
        Return every rule whose target glob matches @target_uri, most
        specific first.
        """
        matched = [(i, r) for i, r in enumerate(self._rules) if r.pattern.matches(target_uri)]
        return self._ranked(matched, lambda r: r.pattern)

    def find_autorun(self, path: str) -> list[PipelineRule]:
        """
        Return every rule whose autorun glob matches @path, most specific
        first.
        """
        matched = [(i, r) for i, r in enumerate(self._rules) if r.autorun.matches(path)]
        return self._ranked(matched, lambda r: r.autorun)

    def rule_id(self, rule: PipelineRule) -> RuleId:
        for i, candidate in enumerate(self._rules):
            if candidate is rule:
                return i
        raise KeyError(rule)

    def __iter__(self) -> Iterator[PipelineRule]:
        return iter(self._rules)

    def __len__(self):
        return len(self._rules)
