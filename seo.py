"""
SEO Helpers

Site URL configuration plus the metadata a page renderer needs:
canonical URLs, Open Graph / Twitter metadata, JSON-LD objects,
the sitemap and the robots policy.

Only the OG image *URL* is built here; rasterizing the image is left to
whatever serves ``/og``.
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlencode
from xml.etree import ElementTree

from schemas import Casino, Country, FaqItem, Guide

DEFAULT_SITE_URL = "https://ggoldstar.com"
DEFAULT_SITE_NAME = "Gold Star"
DEFAULT_DESCRIPTION = "Gold Star casino reviews, countries, and guides."

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
STATIC_ROUTES = ("/", "/casinos", "/countries", "/guides")

JsonLd = Dict[str, Any]


def get_site_url() -> str:
    url = os.getenv("SITE_URL") or os.getenv("NEXT_PUBLIC_SITE_URL") or DEFAULT_SITE_URL
    return url.rstrip("/")


def get_site_name() -> str:
    return os.getenv("SITE_NAME", DEFAULT_SITE_NAME)


def absolute_url(path: str) -> str:
    """Build an absolute URL for *path*; absolute URLs pass through unchanged."""
    site = get_site_url()
    if not path:
        return site
    if path.lower().startswith(("http://", "https://")):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return f"{site}{path}"


# ----------------------------------------------------------------------------
# Open Graph
# ----------------------------------------------------------------------------

def flag_emoji(code: str) -> str:
    """Regional-indicator flag for a two-letter country code, else ''."""
    code = (code or "").strip().upper()
    if len(code) != 2 or not code.isascii() or not code.isalpha():
        return ""
    return "".join(chr(0x1F1E6 + ord(ch) - ord("A")) for ch in code)


def og_image_url(kind: str, title: str, subtitle: str = "", rating: Optional[float] = None, flag: str = "") -> str:
    params = {"type": kind[:24], "title": title[:90]}
    if subtitle:
        params["subtitle"] = subtitle[:140]
    if rating is not None:
        params["rating"] = f"{rating:.1f}"
    if flag:
        params["flag"] = flag[:6]
    return "/og?" + urlencode(params)


def page_metadata(title: str, description: str, path: str, og_image: str, og_type: str = "website") -> Dict[str, Any]:
    return {
        "title": f"{title} | {get_site_name()}",
        "description": description,
        "canonical": absolute_url(path),
        "openGraph": {
            "title": title,
            "description": description,
            "url": absolute_url(path),
            "type": og_type,
            "siteName": get_site_name(),
            "images": [absolute_url(og_image)],
        },
        "twitter": {
            "card": "summary_large_image",
            "title": title,
            "description": description,
            "images": [absolute_url(og_image)],
        },
    }


def casino_metadata(casino: Casino) -> Dict[str, Any]:
    title = f"{casino.name} Review"
    description = casino.description or f"Read our review of {casino.name}: bonuses, features, and key details."
    og = (casino.assets.og if casino.assets and casino.assets.og else None) or og_image_url(
        "casino", title, "Bonuses • Payments • Features", rating=casino.rating
    )
    return page_metadata(title, description, f"/casinos/{casino.slug}", og, og_type="article")


def country_metadata(country: Country) -> Dict[str, Any]:
    title = f"Best Online Casinos in {country.name}"
    description = (
        country.description
        or f"Top online casinos available in {country.name}. Compare options, ratings, and guides."
    )
    og = og_image_url("country", title, f"Country code: {country.code}", flag=flag_emoji(country.code))
    return page_metadata(title, description, f"/countries/{country.code}", og)


def guide_metadata(guide: Guide) -> Dict[str, Any]:
    description = guide.description or f"Read our guide: {guide.title}. Practical tips, steps, and internal links."
    og = og_image_url("guide", guide.title, "Step-by-step casino guide")
    return page_metadata(guide.title, description, f"/guides/{guide.slug}", og, og_type="article")


# ----------------------------------------------------------------------------
# JSON-LD
# ----------------------------------------------------------------------------

def breadcrumb_json_ld(trail: Sequence[Tuple[str, str]]) -> JsonLd:
    """BreadcrumbList for ``[(name, path), ...]``; Home is prepended."""
    items = [("Home", "/")] + list(trail)
    return {
        "@context": "https://schema.org",
        "@type": "BreadcrumbList",
        "itemListElement": [
            {"@type": "ListItem", "position": i, "name": name, "item": absolute_url(path)}
            for i, (name, path) in enumerate(items, start=1)
        ],
    }


def item_list_json_ld(entries: Iterable[Tuple[str, str]]) -> JsonLd:
    return {
        "@context": "https://schema.org",
        "@type": "ItemList",
        "itemListElement": [
            {"@type": "ListItem", "position": i, "name": name, "url": absolute_url(path)}
            for i, (name, path) in enumerate(entries, start=1)
        ],
    }


def faq_json_ld(faq: Sequence[FaqItem]) -> Optional[JsonLd]:
    if not faq:
        return None
    return {
        "@context": "https://schema.org",
        "@type": "FAQPage",
        "mainEntity": [
            {
                "@type": "Question",
                "name": qa.question,
                "acceptedAnswer": {"@type": "Answer", "text": qa.answer},
            }
            for qa in faq
        ],
    }


def casino_review_json_ld(casino: Casino) -> JsonLd:
    doc: JsonLd = {
        "@context": "https://schema.org",
        "@type": "Review",
        "name": f"{casino.name} Review",
        "url": absolute_url(f"/casinos/{casino.slug}"),
        "itemReviewed": {"@type": "Organization", "name": casino.name},
        "author": {"@type": "Organization", "name": get_site_name()},
    }
    if casino.rating is not None:
        doc["reviewRating"] = {"@type": "Rating", "ratingValue": casino.rating, "bestRating": 5, "worstRating": 0}
    return doc


# ----------------------------------------------------------------------------
# Sitemap & robots
# ----------------------------------------------------------------------------

def sitemap_entries(
    casinos: Iterable[Casino],
    countries: Iterable[Country],
    guides: Iterable[Guide],
    now: Optional[datetime] = None,
) -> List[Dict[str, str]]:
    lastmod = (now or datetime.now(timezone.utc)).date().isoformat()
    paths = list(STATIC_ROUTES)
    paths += [f"/casinos/{c.slug}" for c in casinos]
    paths += [f"/countries/{c.code}" for c in countries]
    paths += [f"/guides/{g.slug}" for g in guides]
    return [{"loc": absolute_url(p), "lastmod": lastmod} for p in paths]


def render_sitemap(entries: Iterable[Dict[str, str]]) -> str:
    urlset = ElementTree.Element("urlset", xmlns=SITEMAP_NS)
    for entry in entries:
        url = ElementTree.SubElement(urlset, "url")
        for tag in ("loc", "lastmod"):
            if entry.get(tag):
                ElementTree.SubElement(url, tag).text = entry[tag]
    body = ElementTree.tostring(urlset, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body


def robots_txt() -> str:
    return "\n".join([
        "User-agent: *",
        "Allow: /",
        "",
        f"Sitemap: {absolute_url('/sitemap.xml')}",
        "",
    ])
