import pytest

from pipewright.errors import GlobNotAbsoluteError, MalformedGlobError
from pipewright.globs import Specificity, compile_glob, specificity_of, translate


@pytest.mark.parametrize('pattern,path,expected', [
    ('/blog/**/*.png', '/blog/x/y.png', True),
    ('/blog/**/*.png', '/blog/x/z/y.png', True),
    ('/blog/**/*.png', '/blog/y.png', False),
    ('/blog/**/*.png', '/other/x/y.png', False),
    ('/blog/*.png', '/blog/y.png', True),
    ('/blog/*.png', '/blog/x/y.png', False),
    ('/img/?.svg', '/img/a.svg', True),
    ('/img/?.svg', '/img/ab.svg', False),
    ('/img/?.svg', '/img//.svg', False),
    ('/static/site.css', '/static/site.css', True),
    ('/static/site.css', '/static/site.css.map', False),
    ('/static/site.css', '/x/static/site.css', False),
    ('/a.b/c+d/(e).txt', '/a.b/c+d/(e).txt', True),
    ('/a.b/*.txt', '/aXb/f.txt', False),
    ('/[abc].txt', '/[abc].txt', True),
    ('/[abc].txt', '/a.txt', False),
    ('**/*.jpg', '/blog/vacation/photo.jpg', True),
    ('**/*.jpg', '/photo.jpg', True),
    ('**/*.jpg', '/photo.png', False),
    ('/**', '/anything/at/all', True),
])
def test_matches(pattern: str, path: str, expected: bool):
    assert compile_glob(pattern).matches(path) is expected


@pytest.mark.parametrize('pattern,expected', [
    ('/a/**/b', r'^/a/.*/b$'),
    ('/a/*.png', r'^/a/[^/]*\.png$'),
    ('/a/?', r'^/a/[^/]$'),
])
def test_translate(pattern: str, expected: str):
    assert translate(pattern) == expected


@pytest.mark.parametrize('pattern,counts', [
    ('/blog/vacation/photo.jpg', (3, 0, 0)),
    ('/blog/vacation/*.jpg', (2, 0, 1)),
    ('/blog/**/*.png', (1, 1, 1)),
    ('**/*.jpg', (0, 1, 1)),
    ('/img/logo-?.svg', (1, 0, 1)),
    ('/**', (0, 1, 0)),
    ('/a/**.png', (1, 1, 0)),
])
def test_specificity_counts(pattern: str, counts: tuple):
    spec = specificity_of(pattern)
    assert (spec.literal, spec.doublestar, spec.wildcard) == counts


# Each pattern must rank strictly above the next.
CALIBRATION = [
    '/blog/vacation/photo.jpg',
    '/blog/vacation/*.jpg',
    '/blog/**/photo.jpg',
    '/blog/*/*.jpg',
    '/blog/**/*.jpg',
    '/blog/**/**/*.jpg',
    '**/*.jpg',
]


@pytest.mark.parametrize('higher,lower', list(zip(CALIBRATION, CALIBRATION[1:])))
def test_specificity_calibration(higher: str, lower: str):
    assert compile_glob(higher).specificity > compile_glob(lower).specificity


@pytest.mark.parametrize('prefix', ['/blog', '/blog/x', '/static/img'])
@pytest.mark.parametrize('final', ['photo.png', 'index.html'])
def test_literal_segment_beats_double_star(prefix: str, final: str):
    with_star = compile_glob(f'{prefix}/**')
    with_literal = compile_glob(f'{prefix}/{final}')
    path = f'{prefix}/{final}'
    assert with_star.matches(path) and with_literal.matches(path)
    assert with_literal.specificity > with_star.specificity


def test_specificity_total_order():
    patterns = [compile_glob(p) for p in CALIBRATION]
    ranked = sorted(patterns, key=lambda p: p.specificity, reverse=True)
    assert [p.raw for p in ranked] == CALIBRATION
    assert Specificity(1, 0, 1) == Specificity(1, 0, 1)
    assert compile_glob('/a/*.png').specificity == compile_glob('/b/*.jpg').specificity


@pytest.mark.parametrize('pattern', ['', '/a/***.png'])
def test_malformed(pattern: str):
    with pytest.raises(MalformedGlobError):
        compile_glob(pattern)


@pytest.mark.parametrize('pattern', ['blog/*.png', '*.png', './x.png', '?/x'])
def test_not_absolute(pattern: str):
    with pytest.raises(GlobNotAbsoluteError) as excinfo:
        compile_glob(pattern)
    assert excinfo.value.pattern == pattern


def test_glob_pattern_immutable():
    pattern = compile_glob('/a/*.png')
    with pytest.raises(AttributeError):
        pattern.raw = '/b/*.png'
