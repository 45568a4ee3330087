import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from catalog import Catalog, ENTITIES, sort_casinos, sort_countries, sort_guides
from database import get_sources
from errors import SourceUnavailable
import seo

logger = logging.getLogger(__name__)

# ----------------------------------------------------------------------------
# App & CORS
# ----------------------------------------------------------------------------
app = FastAPI(title="Gold Star Catalog API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 10
CASINO_SORTS = ("rating_desc", "rating_asc", "name_asc", "name_desc")

# ----------------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------------

def get_catalog() -> Catalog:
    """A fresh catalog per request; content is re-read on every call."""
    return Catalog.from_sources(get_sources())


@app.exception_handler(SourceUnavailable)
async def source_unavailable_handler(request: Request, exc: SourceUnavailable):
    logger.error("Content source unavailable for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Content source unavailable"})


def paginate(items: list, page: int, page_size: int) -> Dict[str, Any]:
    if page < 1:
        page = 1
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        page_size = DEFAULT_PAGE_SIZE
    total = len(items)
    start = (page - 1) * page_size
    return {
        "items": [item.to_json() for item in items[start:start + page_size]],
        "pagination": {
            "page": page,
            "page_size": page_size,
            "total": total,
            "pages": (total + page_size - 1) // page_size,
        },
    }


def dump(records: list) -> List[dict]:
    return [r.to_json() for r in records]


# ----------------------------------------------------------------------------
# Health
# ----------------------------------------------------------------------------
@app.get("/")
async def read_root():
    return {"message": "Gold Star Catalog Running"}


@app.get("/test")
async def test_content(catalog: Catalog = Depends(get_catalog)):
    try:
        loaded = {entity: catalog.load(entity) for entity in ENTITIES}
        return {
            "backend": "✅ Running",
            "content": "✅ Loaded",
            "content_backend": os.getenv("CONTENT_BACKEND", "files"),
            "collections": {
                entity: {"records": len(res.records), "dropped": res.dropped}
                for entity, res in loaded.items()
            },
        }
    except SourceUnavailable as e:
        return {
            "backend": "✅ Running",
            "content": f"❌ {str(e)}",
            "content_backend": os.getenv("CONTENT_BACKEND", "files"),
            "data_dir": os.getenv("DATA_DIR", "Not Set"),
        }


# ----------------------------------------------------------------------------
# Casinos
# ----------------------------------------------------------------------------

@app.get("/api/casinos")
async def list_casinos(
    country: Optional[str] = None,
    q: Optional[str] = None,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    sort: Optional[str] = None,
    catalog: Catalog = Depends(get_catalog),
):
    """Casinos for the listing page, best rated first unless *sort* says otherwise."""
    casinos = catalog.casinos_in_country(country) if country else catalog.casinos()
    if q:
        needle = q.strip().casefold()
        casinos = [c for c in casinos if needle in c.name.casefold()]

    if sort not in CASINO_SORTS:
        sort = "rating_desc"
    if sort == "rating_desc":
        casinos = sort_casinos(casinos)
    elif sort == "rating_asc":
        casinos = sorted(casinos, key=lambda c: (c.rating or 0.0, c.name.casefold()))
    else:
        casinos = sorted(casinos, key=lambda c: c.name.casefold(), reverse=(sort == "name_desc"))

    result = paginate(casinos, page, page_size)
    result["sort"] = sort
    return result


@app.get("/api/casinos/{slug}")
async def get_casino(slug: str, catalog: Catalog = Depends(get_catalog)):
    casino = catalog.get_casino(slug)
    if casino is None:
        raise HTTPException(status_code=404, detail="Casino not found")

    json_ld = [
        seo.breadcrumb_json_ld([("Casinos", "/casinos"), (casino.name, f"/casinos/{casino.slug}")]),
        seo.casino_review_json_ld(casino),
    ]
    faq_ld = seo.faq_json_ld(casino.faq)
    if faq_ld:
        json_ld.append(faq_ld)

    return {
        "casino": casino.to_json(),
        "countries": dump(catalog.countries_for_casino(casino)),
        "guides": dump(sort_guides(catalog.guides_for_casino(casino.slug))),
        "metadata": seo.casino_metadata(casino),
        "json_ld": json_ld,
    }


# ----------------------------------------------------------------------------
# Countries
# ----------------------------------------------------------------------------

@app.get("/api/countries")
async def list_countries(catalog: Catalog = Depends(get_catalog)):
    countries = sort_countries(catalog.countries())
    return {
        "items": dump(countries),
        "json_ld": [
            seo.breadcrumb_json_ld([("Countries", "/countries")]),
            seo.item_list_json_ld((c.name, f"/countries/{c.code}") for c in countries),
        ],
    }


@app.get("/api/countries/{code}")
async def get_country(code: str, catalog: Catalog = Depends(get_catalog)):
    country = catalog.get_country(code)
    if country is None:
        raise HTTPException(status_code=404, detail="Country not found")

    casinos = sort_casinos(catalog.casinos_in_country(country.code))
    return {
        "country": country.to_json(),
        "flag": seo.flag_emoji(country.code),
        "casinos": dump(casinos),
        "guides": dump(sort_guides(catalog.guides_for_country(country.code))),
        "metadata": seo.country_metadata(country),
        "json_ld": [
            seo.breadcrumb_json_ld([("Countries", "/countries"), (country.name, f"/countries/{country.code}")]),
            seo.item_list_json_ld((c.name, f"/casinos/{c.slug}") for c in casinos),
        ],
    }


# ----------------------------------------------------------------------------
# Guides
# ----------------------------------------------------------------------------

@app.get("/api/guides")
async def list_guides(catalog: Catalog = Depends(get_catalog)):
    guides = sort_guides(catalog.guides())
    return {
        "items": dump(guides),
        "json_ld": [
            seo.breadcrumb_json_ld([("Guides", "/guides")]),
            seo.item_list_json_ld((g.title, f"/guides/{g.slug}") for g in guides),
        ],
    }


@app.get("/api/guides/{slug}")
async def get_guide(slug: str, catalog: Catalog = Depends(get_catalog)):
    guide = catalog.get_guide(slug)
    if guide is None:
        raise HTTPException(status_code=404, detail="Guide not found")

    json_ld = [seo.breadcrumb_json_ld([("Guides", "/guides"), (guide.title, f"/guides/{guide.slug}")])]
    faq_ld = seo.faq_json_ld(guide.faq)
    if faq_ld:
        json_ld.append(faq_ld)

    return {
        "guide": guide.to_json(),
        "casinos": dump(catalog.casinos_for_guide(guide)),
        "countries": dump(catalog.countries_for_guide(guide)),
        "metadata": seo.guide_metadata(guide),
        "json_ld": json_ld,
    }


# ----------------------------------------------------------------------------
# Diagnostics, sitemap & robots
# ----------------------------------------------------------------------------

@app.get("/api/diagnostics")
async def diagnostics(catalog: Catalog = Depends(get_catalog)):
    return {
        "dropped": {
            entity: [d.model_dump() for d in items]
            for entity, items in catalog.diagnostics().items()
        },
        "links": [r.model_dump() for r in catalog.validate_links()],
    }


@app.get("/sitemap.xml")
async def sitemap(catalog: Catalog = Depends(get_catalog)):
    entries = seo.sitemap_entries(catalog.casinos(), catalog.countries(), catalog.guides())
    return Response(content=seo.render_sitemap(entries), media_type="application/xml")


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots():
    return seo.robots_txt()


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
