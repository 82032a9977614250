from pathlib import Path

import pytest

from pipewright.core import AssetRequest, DocumentRef
from pipewright.discover import discover_assets, find_document, find_references, normalize_reference
from pipewright.test_harness import make_project


PAGE = '''<!DOCTYPE html>
<html>
<head>
  <link rel="stylesheet" href="/static/site.css">
  <script src="diagram.js"></script>
</head>
<body>
  <a href="/blog/other.html">Other</a>
  <img src="y.png" alt="Y">
  <img src="/blog/x/y.png" alt="Y again">
  <img src="https://example.com/remote.png">
  <img src="//cdn.example.com/lib.png">
  <img src="#fragment">
  <img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=">
  <img src="photo%20one.jpg?v=2#top">
  <object data="../media/clip.webm"></object>
</body>
</html>
'''


@pytest.mark.parametrize('reference,expected', [
    ('/static/site.css', '/static/site.css'),
    ('y.png', '/blog/x/y.png'),
    ('./y.png', '/blog/x/y.png'),
    ('../y.png', '/blog/y.png'),
    ('sub/dir/y.png', '/blog/x/sub/dir/y.png'),
    ('  y.png  ', '/blog/x/y.png'),
    ('y.png?size=2', '/blog/x/y.png'),
    ('with%20space.png', '/blog/x/with space.png'),
    ('https://example.com/a.png', None),
    ('//example.com/a.png', None),
    ('mailto:someone@example.com', None),
    ('#top', None),
    ('', None),
    ('/', None),
    ('/blog/', None),
    ('?query', None),
])
def test_normalize_reference(reference: str, expected: str | None):
    assert normalize_reference(reference, '/blog/x/page.html') == expected


def test_find_references():
    assert list(find_references(PAGE, '/blog/x/page.html')) == [
        '/static/site.css',
        '/blog/x/diagram.js',
        '/blog/x/y.png',
        '/blog/x/y.png',
        '/blog/x/photo one.jpg',
        '/blog/media/clip.webm',
    ]


def test_find_references_empty():
    assert list(find_references('', '/index.html')) == []
    assert list(find_references('  \n', '/index.html')) == []


@pytest.fixture
def settings(tmp_path: Path):
    return make_project(tmp_path, {
        'content': {
            'blog': {'x': {'page.md': '# Page\n'}},
        },
        'output': {
            'blog': {
                'x': {
                    'page.html': PAGE,
                    'y.png': b'already here',
                },
            },
            'about.html': '<img src="/static/site.css"><img src="me.jpg">',
            'notes.txt': '<img src="/ignored.png">',
        },
    })


def test_find_document(settings):
    output = settings['output_dir']
    assert find_document(output / 'blog' / 'x' / 'page.html', settings) == DocumentRef(
        settings['content_dir'] / 'blog' / 'x' / 'page.md'
    )
    assert find_document(output / 'about.html', settings) is None


def test_discover_assets(settings):
    requests = discover_assets(settings)
    page = DocumentRef(settings['content_dir'] / 'blog' / 'x' / 'page.md')

    assert requests == [
        AssetRequest('/static/site.css', None),
        AssetRequest('/me.jpg', None),
        AssetRequest('/blog/x/diagram.js', page),
        AssetRequest('/blog/x/y.png', page),
        AssetRequest('/blog/x/photo one.jpg', page),
        AssetRequest('/blog/media/clip.webm', page),
    ]


def test_discover_without_output(tmp_path: Path):
    assert discover_assets(make_project(tmp_path)) == []
