"""
Internal utilities for progress bars, pretty printing and error reports.
"""
from __future__ import annotations

import sys
import typing as t

try:
    import rich.progress as _rich_progress
except ImportError:
    _rich_progress = None
try:
    import rich.console
    _rich_consoles = {
        'stdout': rich.console.Console(file=sys.stdout),
        'stderr': rich.console.Console(file=sys.stderr),
    }
except ImportError:
    _rich_consoles = {}
try:
    import tqdm as _tqdm
except ImportError:
    _tqdm = None

from .errors import CommandFailedError, PipelineError

if t.TYPE_CHECKING:
    from collections.abc import Iterable


T = t.TypeVar('T')


def track_progress(iterable: Iterable[T], desc: str, total: int | None = None) -> Iterable[T]:
    """
    Progress tracker which supports rich and tqdm progress bars and gracefully
    devolves to no progress tracking.
    """
    if _rich_progress:
        yield from _rich_progress.track(iterable, desc, total=total, console=_rich_consoles['stdout'])
    elif _tqdm:
        yield from _tqdm.tqdm(iterable, desc, total=total)
    else:
        print(desc)
        yield from iterable


def print_with_style(*args, sep=' ', end='\n', file: str = 'stdout', style=None):
    """
    Enhanced print() function which supports rich console styles and gracefully
    devolves to standard print().
    """
    if file in _rich_consoles:
        # Paths and commands may contain square brackets.
        _rich_consoles[file].print(*args, sep=sep, end=end, style=style, markup=False)
    else:
        print(*args, sep=sep, end=end, file=getattr(sys, file))


def section(header: str, body: str) -> str:
    """
    Format a labelled, indented block for an error report.
    """
    lines = body.splitlines() or ['<empty>']
    return '\n'.join([header, *(f'    {line}' for line in lines)])


def format_error(error: BaseException) -> str:
    """
    Render an error, including any captured command output, for the user.
    """
    parts = [str(error)]
    cause = error.cause if isinstance(error, PipelineError) else None
    if isinstance(cause, CommandFailedError):
        parts.append(section('Command:', cause.command))
        if cause.stdout:
            parts.append(section('Stdout:', cause.stdout))
        parts.append(section('Stderr:', cause.stderr))
    return '\n'.join(parts)


def print_error(error: BaseException):
    print_with_style(format_error(error), file='stderr', style='red')
