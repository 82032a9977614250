"""
Discovery of asset references in rendered HTML pages.
"""
from __future__ import annotations

import posixpath
import typing as t
import urllib.parse
from pathlib import Path

from .core import AssetRequest, DocumentRef

if t.TYPE_CHECKING:
    from collections.abc import Iterator
    from .core import BuildSettings


HTML_SUFFIXES = {'.html', '.htm'}
DOCUMENT_SUFFIX = '.md'
# Anchors point at pages rather than assets.
IGNORED_TAGS = {'a'}


def normalize_reference(reference: str, page_uri: str) -> str | None:
    """
    Turn an attribute value into an absolute, site-local URI, or None if it
    does not name a local file.
    """
    reference = reference.strip()
    if not reference or reference.startswith('#'):
        return None
    parsed = urllib.parse.urlsplit(reference)
    if parsed.scheme or parsed.netloc or not parsed.path:
        return None
    path = urllib.parse.unquote(parsed.path)
    if not path.startswith('/'):
        path = posixpath.join(posixpath.dirname(page_uri), path)
    path = posixpath.normpath(path)
    if path.startswith('//'):
        path = '/' + path.lstrip('/')
    if path == '/' or parsed.path.endswith('/'):
        return None
    return path


def find_references(html: str, page_uri: str) -> Iterator[str]:
    """
    Yield every asset URI referenced by @html, which is served at @page_uri.
    """
    import lxml.html

    if not html.strip():
        return
    document = lxml.html.document_fromstring(html)
    for element, _attribute, link, _pos in document.iterlinks():
        if element.tag in IGNORED_TAGS:
            continue
        if uri := normalize_reference(link, page_uri):
            yield uri


def page_uri(html_path: Path, output_dir: Path) -> str:
    return '/' + html_path.relative_to(output_dir).as_posix()


def find_document(html_path: Path, settings: BuildSettings) -> DocumentRef | None:
    """
    Find the source document a rendered page was generated from. Pages with
    no source document, such as mounted files, have no origin.
    """
    relative = html_path.relative_to(settings['output_dir'])
    candidate = (settings['content_dir'] / relative).with_suffix(DOCUMENT_SUFFIX)
    if candidate.is_file():
        return DocumentRef(candidate)
    return None


def find_pages(output_dir: Path) -> Iterator[Path]:
    if not output_dir.exists():
        return
    for candidate in sorted(output_dir.rglob('*')):
        if candidate.is_file() and candidate.suffix in HTML_SUFFIXES:
            yield candidate


def discover_assets(settings: BuildSettings, encoding: str = 'utf-8') -> list[AssetRequest]:
    """
    Collect one request per referenced asset URI across every rendered page.
    When several pages reference the same URI, the first page found wins.
    """
    requests: dict[str, AssetRequest] = {}
    output_dir = settings['output_dir']
    for html_path in find_pages(output_dir):
        document = find_document(html_path, settings)
        html = html_path.read_text(encoding, errors='replace')
        for uri in find_references(html, page_uri(html_path, output_dir)):
            requests.setdefault(uri, AssetRequest(uri, document))
    return list(requests.values())
