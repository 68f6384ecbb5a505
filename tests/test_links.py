"""
Tests for HTML parsing and link extraction.
"""
from __future__ import annotations

from linkcrawler.links import extract_links, parse_document


def links_of(html: str):
    return extract_links(parse_document(html.encode("utf-8")))


def test_document_order_is_preorder():
    html = """
    <html><body>
      <div>
        <a href="https://one.test/">1 <a href="https://nested.test/">n</a></a>
        <p><a href="https://two.test/">2</a></p>
      </div>
      <footer><a href="http://three.test/">3</a></footer>
    </body></html>
    """
    assert links_of(html) == [
        "https://one.test/",
        "https://nested.test/",
        "https://two.test/",
        "http://three.test/",
    ]


def test_href_whitespace_is_trimmed():
    assert links_of('<a href="  https://x.test/page \n">x</a>') == ["https://x.test/page"]


def test_relative_and_other_schemes_excluded():
    html = (
        '<a href="/about">a</a>'
        '<a href="page.html">b</a>'
        '<a href="//cdn.test/x">c</a>'
        '<a href="mailto:x@y.com">d</a>'
        '<a href="ftp://files.test/">e</a>'
        '<a href="#top">f</a>'
        '<a href="https://kept.test/">g</a>'
    )
    assert links_of(html) == ["https://kept.test/"]


def test_empty_and_missing_href_skipped():
    assert links_of('<a href="">x</a><a href="   ">y</a><a name="anchor">z</a>') == []


def test_only_anchor_elements_count():
    html = (
        '<link href="https://style.test/main.css" rel="stylesheet">'
        '<img src="https://img.test/a.png">'
        '<area href="https://map.test/">'
        '<a href="https://a.test/">a</a>'
    )
    assert links_of(html) == ["https://a.test/"]


def test_duplicates_are_kept_in_order():
    html = '<a href="https://a.test/">1</a><a href="https://b.test/">2</a><a href="https://a.test/">3</a>'
    assert links_of(html) == ["https://a.test/", "https://b.test/", "https://a.test/"]


def test_extraction_is_restartable():
    document = parse_document(b'<a href="https://a.test/">a</a>')
    assert extract_links(document) == extract_links(document) == ["https://a.test/"]


def test_empty_body_parses_to_no_links():
    assert extract_links(parse_document(b"")) == []
