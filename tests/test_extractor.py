"""
Tests for hyperlink extraction.
"""
from linkscan.extractor import extract_links

PAGE = "https://example.com/docs/index.html"


def test_source_order_and_resolution():
    html = """
    <html><body>
      <a href="/about">About</a>
      <p><a href="guide.html">Guide</a></p>
      <map><area href="../map-target" alt="x"></map>
      <a href="https://other.org/x">Other</a>
    </body></html>
    """
    assert list(extract_links(html, PAGE)) == [
        "https://example.com/about",
        "https://example.com/docs/guide.html",
        "https://example.com/map-target",
        "https://other.org/x",
    ]


def test_ignores_non_navigation_references():
    html = """
    <html><head>
      <link rel="stylesheet" href="/style.css">
      <script src="/app.js"></script>
    </head><body>
      <img src="/logo.png">
      <a>no href</a>
      <a href="">empty</a>
      <a href="   ">blank</a>
      <a href="/only">Only</a>
    </body></html>
    """
    assert list(extract_links(html, PAGE)) == ["https://example.com/only"]


def test_base_href_overrides_page_url():
    html = '<html><head><base href="https://cdn.example.com/root/"></head><body><a href="page">p</a></body></html>'
    assert list(extract_links(html, PAGE)) == ["https://cdn.example.com/root/page"]


def test_non_http_links_are_passed_through():
    html = '<a href="mailto:team@example.com">Mail</a><a href="javascript:void(0)">JS</a>'
    assert list(extract_links(html, PAGE)) == ["mailto:team@example.com", "javascript:void(0)"]


def test_exclude_selectors_skip_links_inside_matches():
    html = """
    <html><body>
      <nav class="menu"><ul><li><a href="/menu-item">Menu</a></li></ul></nav>
      <main><a href="/content">Content</a><a class="ad" href="/ad">Ad</a></main>
      <footer><a href="/legal">Legal</a></footer>
    </body></html>
    """
    links = list(extract_links(html, PAGE, exclude_selectors=["nav.menu", "a.ad", "footer"]))
    assert links == ["https://example.com/content"]


def test_sequence_is_lazy_and_restartable():
    html = '<a href="/one">1</a><a href="/two">2</a>'
    links = extract_links(html, PAGE)
    assert next(links) == "https://example.com/one"
    assert list(extract_links(html, PAGE)) == ["https://example.com/one", "https://example.com/two"]


def test_unresolvable_href_does_not_hide_later_links():
    html = '<a href="/a">a</a><a href="http://[bad/">bad</a><a href="/b">b</a>'
    assert list(extract_links(html, PAGE)) == ["https://example.com/a", "https://example.com/b"]


def test_unresolvable_base_href_falls_back_to_page_url():
    html = '<html><head><base href="http://[bad/"></head><body><a href="/a">a</a></body></html>'
    assert list(extract_links(html, PAGE)) == ["https://example.com/a"]
