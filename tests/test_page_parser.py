"""
Unit tests for the page parser.

Each candidate strategy is exercised on its own with inline HTML, then
parse_page is checked end to end.
"""

import pytest
from bs4 import BeautifulSoup

from sitegraph.page_parser import (
    definition_list_matches,
    executive_title_matches,
    extract_links,
    extract_navigation_categories,
    extract_people,
    extract_product_sections,
    header_body_matches,
    heading_paragraph_matches,
    list_product_matches,
    looks_like_name,
    parse_page,
    people_list_matches,
    person_card_matches,
    structured_product_matches,
)


def soup_of(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


# ============================================================================
# LINKS
# ============================================================================

class TestLinks:
    def test_splits_internal_and_external(self):
        soup = soup_of("""
            <a href="/about">About us</a>
            <a href="https://twitter.com/acme">Twitter</a>
            <a href="mailto:hello@acme.com">Mail</a>
            <a href="javascript:void(0)">Menu</a>
        """)
        internal, external = extract_links(soup, "https://acme.com")

        assert [link.url for link in internal] == ["https://acme.com/about"]
        assert internal[0].anchor_text == "About us"
        assert [link.url for link in external] == ["https://twitter.com/acme"]


# ============================================================================
# PRODUCTS & CATEGORIES
# ============================================================================

class TestProductStrategies:
    def test_list_under_products_heading(self):
        soup = soup_of("""
            <div>
              <h2>Our Products</h2>
              <ul>
                <li>Widget Pro: A fast widget for teams</li>
                <li>Gadget Max - Sturdy gadget</li>
              </ul>
            </div>
        """)
        products = list_product_matches(soup)

        assert [p.name for p in products] == ["Widget Pro", "Gadget Max"]
        assert products[0].description == "A fast widget for teams"
        assert all(p.source_strategy == "list" for p in products)

    def test_list_without_products_heading_is_ignored(self):
        soup = soup_of("<div><h2>Press</h2><ul><li>Widget Pro: launched today</li></ul></div>")
        assert list_product_matches(soup) == []

    def test_definition_list(self):
        soup = soup_of("<dl><dt>Analytics Suite</dt><dd>Dashboards for everyone</dd></dl>")
        products = definition_list_matches(soup)

        assert len(products) == 1
        assert products[0].name == "Analytics Suite"
        assert products[0].description == "Dashboards for everyone"

    CARDS = """
        <div class="card"><h3>Flow</h3><p>Visual workflow builder</p></div>
        <div class="card"><h3>Workflow Studio</h3><p>Design automations for every team</p></div>
    """

    def test_structured_cards(self):
        products = structured_product_matches(soup_of(self.CARDS), threshold=3)

        assert [(p.name, p.description) for p in products] == [
            ("Flow", "Visual workflow builder"),
            ("Workflow Studio", "Design automations for every team"),
        ]
        assert all(p.source_strategy == "structured" for p in products)

    @pytest.mark.parametrize("page_url,expected", [
        ("https://acme.com/products", ["Flow", "Workflow Studio"]),
        ("https://acme.com/about", ["Workflow Studio"]),
    ])
    def test_short_card_headings_only_on_product_pages(self, page_url, expected):
        products = extract_product_sections(soup_of(self.CARDS), page_url)
        assert [p.name for p in products] == expected

    def test_navigation_categories_skip_utility_links(self):
        soup = soup_of("""
            <nav>
              <a href="/category/shoes">Shoes</a>
              <a href="/about">About</a>
              <a href="/category/bags">Bags</a>
            </nav>
        """)
        categories = extract_navigation_categories(soup)
        assert [c.name for c in categories] == ["Shoes", "Bags"]


# ============================================================================
# PEOPLE
# ============================================================================

class TestPeopleStrategies:
    def test_executive_title_mentions(self):
        people = executive_title_matches("Our team is led by Jane Doe, CEO and John Smith, CTO.")
        by_name = {p.name: p.title for p in people}

        assert by_name == {"Jane Doe": "CEO", "John Smith": "CTO"}

    def test_person_card(self):
        soup = soup_of("""
            <div class="team-member">
              <h3>Alice Walker</h3>
              <p class="title">VP Engineering</p>
            </div>
        """)
        people = person_card_matches(soup)

        assert len(people) == 1
        assert people[0].name == "Alice Walker"
        assert people[0].title == "VP Engineering"

    def test_header_followed_by_paragraph(self):
        soup = soup_of("""
            <section>
              <header><h2>Maria Lopez</h2></header>
              <p>Chief Financial Officer since 2020</p>
            </section>
        """)
        people = header_body_matches(soup)

        assert [(p.name, p.title) for p in people] == [("Maria Lopez", "Chief Financial Officer since 2020")]
        assert people[0].source_strategy == "header-body"

    def test_list_under_leadership_heading(self):
        soup = soup_of("""
            <div>
              <h2>Leadership</h2>
              <ul>
                <li><strong>Sam Park</strong> - Chief Operating Officer</li>
                <li><strong>Our Partners</strong></li>
              </ul>
            </div>
        """)
        people = people_list_matches(soup)

        assert [(p.name, p.title) for p in people] == [("Sam Park", "Chief Operating Officer")]
        assert people[0].source_strategy == "list"

    def test_list_without_people_heading_is_ignored(self):
        soup = soup_of("<div><h2>Press</h2><ul><li><strong>Sam Park</strong> - COO</li></ul></div>")
        assert people_list_matches(soup) == []

    def test_heading_paragraph_takes_first_sentence(self):
        soup = soup_of("""
            <div>
              <h3>Lena Fischer</h3>
              <p>Head of Design. Lena joined in 2019.</p>
              <h3>Our Mission</h3>
              <p>Better widgets. For everyone.</p>
            </div>
        """)
        people = heading_paragraph_matches(soup)

        assert [(p.name, p.title) for p in people] == [("Lena Fischer", "Head of Design")]
        assert people[0].source_strategy == "heading-paragraph"

    def test_extract_people_dedupes_across_strategies(self):
        soup = soup_of("""
            <div class="team-member"><h3>Alice Walker</h3><p class="title">VP Engineering</p></div>
        """)
        people = extract_people(soup, "Alice Walker, CTO at Acme")
        assert [p.name.lower() for p in people].count("alice walker") == 1

    def test_looks_like_name(self):
        assert looks_like_name("Jane Doe")
        assert not looks_like_name("Meet Our Team")
        assert not looks_like_name("Founded 2019")
        assert not looks_like_name("Madonna")


# ============================================================================
# PAGE ASSEMBLY
# ============================================================================

class TestParsePage:
    HTML = """
        <html>
          <head>
            <title>Acme | Home</title>
            <meta name="description" content="Acme builds widgets">
            <script src="https://code.jquery.com/jquery.min.js"></script>
          </head>
          <body>
            <script>var secret = "do not index";</script>
            <h1>Welcome to Acme</h1>
            <a href="/about">About</a>
            <img src="/img/logo.svg" alt="Acme logo">
          </body>
        </html>
    """

    def test_fields(self, settings):
        page = parse_page(self.HTML, {"server": "nginx"}, "https://acme.com", "https://acme.com", settings)

        assert page.title == "Acme | Home"
        assert page.meta_description == "Acme builds widgets"
        assert "Welcome to Acme" in page.text
        assert "do not index" not in page.text
        assert page.links[0].url == "https://acme.com/about"
        assert page.images[0].url == "https://acme.com/img/logo.svg"
        assert page.images[0].alt_text == "Acme logo"

    def test_tech_detected_before_scripts_are_stripped(self, settings):
        page = parse_page(self.HTML, {"server": "nginx"}, "https://acme.com", "https://acme.com", settings)

        assert page.tech_signals[0] == "Nginx"
        assert "jQuery" in page.tech_signals

    def test_empty_document(self, settings):
        page = parse_page("", None, "https://acme.com", "https://acme.com", settings)
        assert page.title == ""
        assert page.text == ""
        assert page.links == []
