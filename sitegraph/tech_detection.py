"""
Technology detection from response headers and HTML signatures.

Each rule is independent and contributes at most one technology name;
the result keeps first-seen order with duplicates collapsed.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

Rule = Callable[[str, BeautifulSoup], bool]

GA4_ID = re.compile(r"['\"=]g-[a-z0-9]{10}['\"&]")
UA_ID = re.compile(r"ua-\d{4,9}-\d{1,4}")
NG_ATTR = re.compile(r"\sng-[a-z]+=")
VUE_SCOPED_ATTR = re.compile(r"\sdata-v-[0-9a-f]{6,8}")
CHUNK_JS = re.compile(r"\.chunk\.js")


def _meta_generator(soup: BeautifulSoup) -> str:
    tag = soup.find("meta", attrs={"name": "generator"})
    return (tag.get("content") or "") if tag else ""


def _has(soup: BeautifulSoup, selector: str) -> bool:
    return soup.select_one(selector) is not None


def _contains_any(html: str, needles: Tuple[str, ...]) -> bool:
    return any(needle in html for needle in needles)


# ============================================================================
# HEADER RULES
# ============================================================================

def detect_from_headers(headers: Optional[Dict[str, str]]) -> List[str]:
    tech: List[str] = []
    if not headers:
        return tech
    headers = {k.lower(): v for k, v in headers.items()}

    server = headers.get("server", "").lower()
    if "nginx" in server:
        tech.append("Nginx")
    if "apache" in server:
        tech.append("Apache")
    if "microsoft-iis" in server:
        tech.append("IIS")
    if "cloudflare" in server:
        tech.append("Cloudflare")

    powered_by = headers.get("x-powered-by", "").lower()
    if "express" in powered_by:
        tech.append("Express")
    if "php" in powered_by:
        tech.append("PHP")
    if "asp.net" in powered_by:
        tech.append("ASP.NET")
    if "next.js" in powered_by:
        tech.append("Next.js")

    if headers.get("x-generator"):
        tech.append(headers["x-generator"].strip())
    if "x-drupal-cache" in headers:
        tech.append("Drupal")

    # CDN headers
    if "cf-ray" in headers:
        tech.append("Cloudflare")
    if "x-amz-cf-id" in headers:
        tech.append("AWS CloudFront")
    if "x-fastly-request-id" in headers:
        tech.append("Fastly")
    return tech


# ============================================================================
# CONTENT RULES (html is lower-cased)
# ============================================================================

def _wordpress(html: str, soup: BeautifulSoup) -> bool:
    stylesheet = soup.find("link", rel="stylesheet")
    return (
        _contains_any(html, ("wp-content/", "wp-includes/", "wp-json/", "wp-admin", "/wp-"))
        or "WordPress" in _meta_generator(soup)
        or bool(stylesheet and "wp-content" in (stylesheet.get("href") or ""))
        or ("wordpress" in html and ".css" in html)
    )


def _react(html: str, soup: BeautifulSoup) -> bool:
    has_root = _has(soup, "#root")
    return (
        _has(soup, "[data-reactroot]")
        or _has(soup, "[data-reactid]")
        or _has(soup, "[data-react]")
        or (has_root and ("react" in html or "bundle.js" in html))
        or _has(soup, "#__next")
        or _contains_any(html, ("react-dom", "react.production", "react.development", "/_next/", "__next", "react-router"))
        or ("/static/js/" in html and "react" in html)
        or (bool(CHUNK_JS.search(html)) and has_root)
    )


def _vue(html: str, soup: BeautifulSoup) -> bool:
    return (
        bool(VUE_SCOPED_ATTR.search(html))
        or _contains_any(html, ("vue.js", "vue.runtime", "nuxt.js"))
        or _has(soup, "[v-cloak]")
    )


def _angular(html: str, soup: BeautifulSoup) -> bool:
    return (
        _has(soup, "[ng-app]")
        or _has(soup, "[ng-controller]")
        or _has(soup, "[ng-version]")
        or _contains_any(html, ("angular.js", "angular.min.js", "@angular/"))
        or bool(NG_ATTR.search(html))
    )


def _nextjs(html: str, soup: BeautifulSoup) -> bool:
    return _contains_any(html, ("_next/static", "__next_data__")) or _has(soup, 'script[src*="_next"]')


def _gatsby(html: str, soup: BeautifulSoup) -> bool:
    return "gatsby" in html or "Gatsby" in _meta_generator(soup)


def _svelte(html: str, soup: BeautifulSoup) -> bool:
    return "svelte" in html or _has(soup, '[class*="svelte-"]')


def _jquery(html: str, soup: BeautifulSoup) -> bool:
    return _contains_any(html, ("jquery.min.js", "jquery.js", "ajax.googleapis.com/ajax/libs/jquery/"))


def _bootstrap(html: str, soup: BeautifulSoup) -> bool:
    return (
        _contains_any(html, ("bootstrap.min.css", "bootstrap.css", "bootstrap.min.js"))
        or _has(soup, '[class*="col-md-"]')
        or _has(soup, '[class*="col-sm-"]')
    )


def _tailwind(html: str, soup: BeautifulSoup) -> bool:
    if _contains_any(html, ("tailwindcss", "tailwind.css")):
        return True
    return len(soup.select('[class*="flex"]')) > 10 and len(soup.select('[class*="sm:"]')) > 5


def _google_analytics(html: str, soup: BeautifulSoup) -> bool:
    return (
        _contains_any(html, (
            "google-analytics.com/analytics.js", "googletagmanager.com/gtag/js",
            "googletagmanager.com/gtm.js", "gtag(", "ga('create')", "_gaq",
            "analytics.google.com",
        ))
        or bool(GA4_ID.search(html))
        or bool(UA_ID.search(html))
    )


def _hubspot(html: str, soup: BeautifulSoup) -> bool:
    return (
        _contains_any(html, (
            "js.hs-analytics.net", "js.hs-scripts.com", "js.hsforms.net",
            "forms.hubspot.com", "hs-scripts.com", "hsforms.com", "_hsq",
        ))
        or ("hubspot.com" in html and "script" in html)
        or _has(soup, "[data-hsjs-portal]")
        or _has(soup, "[data-hs-form]")
    )


def _shopify(html: str, soup: BeautifulSoup) -> bool:
    return (
        _contains_any(html, ("cdn.shopify.com", "shopify.com/s/files"))
        or _has(soup, 'meta[name="shopify-checkout-api-token"]')
    )


def _webflow(html: str, soup: BeautifulSoup) -> bool:
    html_tag = soup.find("html")
    return _contains_any(html, ("webflow.com", "webflow.io")) or bool(html_tag and html_tag.get("data-wf-page"))


def _nodejs(html: str, soup: BeautifulSoup) -> bool:
    return ("express" in html and "node" in html) or "Node" in _meta_generator(soup)


def _rails(html: str, soup: BeautifulSoup) -> bool:
    return ("csrf-param" in html and "csrf-token" in html) or _has(soup, 'meta[name="csrf-param"]')


CONTENT_RULES: List[Tuple[str, Rule]] = [
    ("WordPress", _wordpress),
    ("React", _react),
    ("Vue.js", _vue),
    ("Angular", _angular),
    ("Next.js", _nextjs),
    ("Gatsby", _gatsby),
    ("Svelte", _svelte),
    ("jQuery", _jquery),
    ("Bootstrap", _bootstrap),
    ("Tailwind CSS", _tailwind),
    ("Google Analytics", _google_analytics),
    ("HubSpot", _hubspot),
    ("Shopify", _shopify),
    ("Wix", lambda html, soup: _contains_any(html, ("wixsite.com", "static.wixstatic.com"))),
    ("Webflow", _webflow),
    ("Squarespace", lambda html, soup: "squarespace.com" in html),
    ("Stripe", lambda html, soup: _contains_any(html, ("stripe.com/v3/", "js.stripe.com"))),
    ("Node.js", _nodejs),
    ("Django", lambda html, soup: _contains_any(html, ("csrfmiddlewaretoken", "__admin_media_prefix__"))),
    ("Ruby on Rails", _rails),
    ("Laravel", lambda html, soup: "laravel" in html),
    ("TypeScript", lambda html, soup: (".ts" in html and "typescript" in html) or "__typescript" in html),
]


def detect_tech_stack(html: str, soup: BeautifulSoup, headers: Optional[Dict[str, str]] = None) -> List[str]:
    """Run header and content rules; soup must still contain script/link tags."""
    tech = detect_from_headers(headers)
    html_lower = (html or "").lower()
    for name, rule in CONTENT_RULES:
        if rule(html_lower, soup):
            tech.append(name)
    return list(dict.fromkeys(tech))
