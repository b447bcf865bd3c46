"""Tests for header and HTML signature based technology detection."""

from bs4 import BeautifulSoup

from sitegraph.tech_detection import detect_from_headers, detect_tech_stack


def detect(html: str, headers=None):
    return detect_tech_stack(html, BeautifulSoup(html, "lxml"), headers)


class TestHeaders:
    def test_server_and_cdn_headers(self):
        tech = detect_from_headers({"Server": "cloudflare", "CF-Ray": "abc", "X-Powered-By": "Express"})
        assert "Cloudflare" in tech
        assert "Express" in tech

    def test_no_headers(self):
        assert detect_from_headers(None) == []


class TestContent:
    def test_wordpress_with_duplicate_header_signal(self):
        html = """
            <html><head><link rel="stylesheet" href="/wp-content/themes/acme/style.css"></head>
            <body><p>hello</p></body></html>
        """
        assert detect(html, {"server": "cloudflare", "cf-ray": "abc"}) == ["Cloudflare", "WordPress"]

    def test_react_root_with_chunk_bundle(self):
        html = '<div id="root"></div><script src="/static/js/main.chunk.js"></script>'
        assert "React" in detect(html)

    def test_vue_scoped_attribute(self):
        html = '<div data-v-1a2b3c4d class="card">Hi</div>'
        assert "Vue.js" in detect(html)

    def test_google_analytics_and_hubspot(self):
        html = """
            <script async src="https://www.googletagmanager.com/gtag/js?id=G-ABCDEF1234"></script>
            <script src="https://js.hs-scripts.com/123.js"></script>
        """
        tech = detect(html)
        assert "Google Analytics" in tech
        assert "HubSpot" in tech

    def test_plain_page_has_no_signals(self):
        assert detect("<html><body><p>Just text</p></body></html>") == []
