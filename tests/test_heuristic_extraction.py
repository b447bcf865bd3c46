"""Tests for deterministic field extraction over crawled pages."""

import pytest

from sitegraph.heuristic_extraction import (
    HeuristicExtractor,
    extract_company_name,
    extract_emails,
    extract_logo,
    extract_people,
    extract_phones,
    extract_products,
    extract_social_media,
    extract_tech_stack,
    infer_role_category,
)
from sitegraph.models import Image, Link, Page, PersonCandidate, ProductCandidate
from sitegraph.utils import dedupe_people, dedupe_products


# ============================================================================
# IDENTITY & CONTACT
# ============================================================================

class TestIdentity:
    @pytest.mark.parametrize("title,expected", [
        ("Acme Corp | Home", "Acme Corp"),
        ("Acme - Official Website", "Acme"),
        ("Acme Analytics", "Acme Analytics"),
    ])
    def test_company_name_from_title(self, title, expected):
        assert extract_company_name([Page(url="https://acme.com", title=title)]) == expected

    def test_company_name_skips_untitled_pages(self):
        pages = [Page(url="https://acme.com"), Page(url="https://acme.com/about", title="Acme Labs")]
        assert extract_company_name(pages) == "Acme Labs"

    def test_emails_drop_placeholder_domains(self):
        text = "Write to sales@acme.com or test@example.com. Again: sales@acme.com"
        assert extract_emails(text) == ["sales@acme.com"]

    def test_phones(self):
        assert extract_phones("Call +1 415-555-0100 today") == ["+1 415-555-0100"]

    def test_social_media_last_match_wins(self):
        pages = [
            Page(url="https://acme.com", external_links=[
                Link(url="https://www.linkedin.com/company/acme"),
                Link(url="https://twitter.com/acme_old"),
            ]),
            Page(url="https://acme.com/about", external_links=[Link(url="https://x.com/acme")]),
        ]
        social = extract_social_media(pages)

        assert social.linkedin == "https://www.linkedin.com/company/acme"
        assert social.twitter == "https://x.com/acme"
        assert social.facebook == ""

    def test_tech_stack_is_ordered_union(self):
        pages = [
            Page(url="https://acme.com", tech_signals=["Nginx", "React"]),
            Page(url="https://acme.com/about", tech_signals=["React", "HubSpot"]),
        ]
        assert extract_tech_stack(pages) == ["Nginx", "React", "HubSpot"]


# ============================================================================
# LOGO
# ============================================================================

class TestLogo:
    def test_best_scored_image_wins(self):
        pages = [Page(url="https://acme.com", images=[
            Image(url="https://acme.com/assets/hero.jpg", alt_text="Team photo"),
            Image(url="https://acme.com/img/logo.svg", alt_text="Acme logo"),
        ])]
        assert extract_logo(pages, "https://acme.com") == "https://acme.com/img/logo.svg"

    def test_schema_org_logo(self):
        html = """
            <html><head>
            <script type="application/ld+json">
            {"@context": "https://schema.org", "@type": "Organization", "logo": "https://acme.com/media/mark.png"}
            </script>
            </head><body></body></html>
        """
        pages = [Page(url="https://acme.com", html=html)]
        assert extract_logo(pages, "https://acme.com") == "https://acme.com/media/mark.png"

    def test_relative_icon_is_resolved(self):
        html = '<html><head><link rel="icon" href="/static/icon.png"></head><body></body></html>'
        pages = [Page(url="https://acme.com/about", html=html)]
        assert extract_logo(pages, "https://acme.com") == "https://acme.com/static/icon.png"

    def test_relative_schema_org_logo_is_resolved(self):
        html = """
            <html><head>
            <script type="application/ld+json">{"@type": "Organization", "logo": "/img/brand.svg"}</script>
            </head><body></body></html>
        """
        pages = [Page(url="https://acme.com/about", html=html)]
        assert extract_logo(pages, "https://acme.com") == "https://acme.com/img/brand.svg"

    def test_guess_when_nothing_found(self):
        assert extract_logo([Page(url="https://acme.com")], "acme.com") == "https://acme.com/logo.svg"


# ============================================================================
# PRODUCTS & PEOPLE
# ============================================================================

class TestProducts:
    def test_case_insensitive_duplicates_collapse(self):
        """["Widgets", "Widgets", "Gadgets"] -> 2 products."""
        pages = [Page(url="https://acme.com/products", product_candidates=[
            ProductCandidate(name="Widgets", source_strategy="list"),
            ProductCandidate(name="widgets", source_strategy="structured"),
            ProductCandidate(name="Gadgets", source_strategy="list"),
        ])]
        products = extract_products(pages)

        assert [p.name for p in products] == ["Widgets", "Gadgets"]
        assert dedupe_products(products) == products

    def test_text_pattern_fallback_on_product_pages(self):
        html = """
            <html><body>
              <h2>CLOUD BACKUP</h2>
              <p>Automatic encrypted backups for every laptop in your company.</p>
            </body></html>
        """
        products = extract_products([Page(url="https://acme.com/products", html=html)])

        assert [p.name for p in products] == ["CLOUD BACKUP"]
        assert products[0].source == "text-pattern"

    def test_text_pattern_ignores_other_pages(self):
        html = "<h2>CLOUD BACKUP</h2><p>Automatic encrypted backups for every laptop in your company.</p>"
        assert extract_products([Page(url="https://acme.com/blog", html=html)]) == []

    def test_cap(self):
        pages = [Page(url="https://acme.com", product_candidates=[
            ProductCandidate(name=f"Product {i}", source_strategy="list") for i in range(30)
        ])]
        assert len(extract_products(pages, limit=20)) == 20


class TestPeople:
    @pytest.mark.parametrize("title,expected", [
        ("Chief Executive Officer", "Leadership"),
        ("Co-Founder", "Leadership"),
        ("VP of Engineering", "Engineering"),
        ("Account Executive", "Sales"),
        ("Head of PR", "Marketing"),
        ("Product Designer", "Other"),
        ("", "Other"),
    ])
    def test_infer_role_category(self, title, expected):
        assert infer_role_category(title) == expected

    def test_people_deduped_with_roles(self):
        pages = [
            Page(url="https://acme.com/team", people_candidates=[
                PersonCandidate(name="Jane Doe", title="CEO", source_strategy="structured"),
                PersonCandidate(name="Bob Lee", title="CTO", source_strategy="structured"),
            ]),
            Page(url="https://acme.com/about", people_candidates=[
                PersonCandidate(name="jane doe ", title="CEO", source_strategy="executive-title-match"),
            ]),
        ]
        people = extract_people(pages)

        assert [(p.name, p.role_category) for p in people] == [("Jane Doe", "Leadership"), ("Bob Lee", "Engineering")]
        assert dedupe_people(people) == people


# ============================================================================
# EXTRACTOR
# ============================================================================

class TestHeuristicExtractor:
    @pytest.mark.asyncio
    async def test_mumbai_headquarters(self, settings, make_crawl_result):
        text = (
            "We are based in Mumbai, India with offices in Bangalore...Our headquarters is "
            "located at 123 Main Street, Mumbai, Maharashtra 400001."
        )
        crawl_result = make_crawl_result([Page(url="https://test.com", title="Test Co", text=text)], domain="https://test.com")

        data = await HeuristicExtractor(settings).extract(crawl_result)

        assert "Mumbai" in data.locations.headquarters
        assert data.locations.headquarters == "Mumbai, India"
        assert data.locations.addresses == ["123 Main Street, Mumbai, Maharashtra 400001"]
        assert data.company_name == "Test Co"

    @pytest.mark.asyncio
    async def test_all_fields(self, settings, make_crawl_result):
        pages = [
            Page(
                url="https://acme.com",
                title="Acme | Home",
                text="Email hello@acme.com or call (415) 555-0100.",
                tech_signals=["React"],
                images=[Image(url="https://acme.com/logo.png", alt_text="logo")],
                product_candidates=[ProductCandidate(name="Widget Cloud", source_strategy="list")],
            ),
            Page(
                url="https://acme.com/team",
                text="Meet the team",
                people_candidates=[PersonCandidate(name="Jane Doe", title="CEO", source_strategy="structured")],
            ),
        ]
        data = await HeuristicExtractor(settings).extract(make_crawl_result(pages))

        assert data.domain == "https://acme.com"
        assert data.company_name == "Acme"
        assert data.emails == ["hello@acme.com"]
        assert data.phones == ["(415) 555-0100"]
        assert data.logo_url == "https://acme.com/logo.png"
        assert [p.name for p in data.products] == ["Widget Cloud"]
        assert [p.name for p in data.people] == ["Jane Doe"]
        assert data.tech_stack == ["React"]
