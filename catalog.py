"""Collection loading and cross-reference queries.

A Catalog holds one source handle per entity and nothing else. Every query
re-reads its collections from the sources, so a Catalog can be shared freely
and always reflects the content on disk (or in the database).

Loading is best-effort: records that fail normalization, files that cannot be
parsed and duplicate keys are left out of the collection and reported as
diagnostics instead of raised. Only a source that cannot be read at all
raises (SourceUnavailable).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Type

from errors import UnknownEntity, UnknownRelation
from normalize import normalize
from schemas import Casino, ContentModel, Country, Diagnostic, Guide, LinkReport

logger = logging.getLogger(__name__)


def canonical_slug(value: Any) -> str:
    return ("" if value is None else str(value)).strip().lower()


def canonical_code(value: Any) -> str:
    return ("" if value is None else str(value)).strip().upper()


class EntitySpec(NamedTuple):
    model: Type[ContentModel]
    key_field: str
    canonical: Callable[[Any], str]


ENTITIES: Dict[str, EntitySpec] = {
    "casino": EntitySpec(Casino, "slug", canonical_slug),
    "country": EntitySpec(Country, "code", canonical_code),
    "guide": EntitySpec(Guide, "slug", canonical_slug),
}

# (entity, related entity) -> list field on entity holding related keys
RELATIONS: Dict[tuple, str] = {
    ("casino", "country"): "countries",
    ("guide", "casino"): "related_casinos",
    ("guide", "country"): "related_countries",
}


def entity_spec(entity: str) -> EntitySpec:
    try:
        return ENTITIES[entity]
    except KeyError:
        raise UnknownEntity(f"unknown entity: {entity!r}") from None


@dataclass
class LoadResult:
    entity: str
    records: List[Any] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def dropped(self) -> int:
        return len(self.diagnostics)


def load_collection(entity: str, source) -> LoadResult:
    """Read every raw item from *source* and keep the ones that normalize.

    Duplicate keys keep the first record seen.
    """
    spec = entity_spec(entity)
    read = source.read(entity)
    result = LoadResult(entity=entity, diagnostics=list(read.diagnostics))

    seen = set()
    for origin, raw in read.items:
        reasons: List[str] = []
        record = normalize(spec.model, raw, reasons)
        if record is None:
            logger.debug("Dropping invalid %s at %s: %s", entity, origin, "; ".join(reasons))
            result.diagnostics.append(Diagnostic(entity=entity, origin=origin, kind="invalid", reasons=reasons))
            continue
        key = getattr(record, spec.key_field)
        if key in seen:
            logger.debug("Dropping duplicate %s %r at %s", entity, key, origin)
            result.diagnostics.append(
                Diagnostic(
                    entity=entity,
                    origin=origin,
                    kind="duplicate",
                    reasons=[f"{spec.key_field} {key!r} already loaded"],
                )
            )
            continue
        seen.add(key)
        result.records.append(record)

    if result.diagnostics:
        logger.warning(
            "Loaded %d %s records from %r, dropped %d",
            len(result.records), entity, source, result.dropped,
        )
    return result


# --------------------------------------------------
# Display ordering

def _rating(casino: Casino) -> float:
    return casino.rating if casino.rating is not None else 0.0


def sort_casinos(casinos: Iterable[Casino]) -> List[Casino]:
    """Best rating first, then name; casinos without a rating count as 0."""
    return sorted(casinos, key=lambda c: (-_rating(c), c.name.casefold()))


def sort_countries(countries: Iterable[Country]) -> List[Country]:
    return sorted(countries, key=lambda c: c.name.casefold())


def sort_guides(guides: Iterable[Guide]) -> List[Guide]:
    return sorted(guides, key=lambda g: g.title.casefold())


class Catalog:
    def __init__(self, casinos, countries, guides):
        self.sources = {"casino": casinos, "country": countries, "guide": guides}

    @classmethod
    def from_sources(cls, sources: Dict[str, Any]) -> "Catalog":
        return cls(casinos=sources["casino"], countries=sources["country"], guides=sources["guide"])

    # ----------------------------------------------------------------
    # Collections

    def load(self, entity: str) -> LoadResult:
        entity_spec(entity)
        return load_collection(entity, self.sources[entity])

    def list_records(self, entity: str) -> list:
        return self.load(entity).records

    def casinos(self) -> List[Casino]:
        return self.list_records("casino")

    def countries(self) -> List[Country]:
        return self.list_records("country")

    def guides(self) -> List[Guide]:
        return self.list_records("guide")

    def diagnostics(self) -> Dict[str, List[Diagnostic]]:
        return {entity: self.load(entity).diagnostics for entity in ENTITIES}

    # ----------------------------------------------------------------
    # Point lookups

    def get_by_key(self, entity: str, key: Any):
        """Case-insensitive exact match on slug/code; None when absent."""
        spec = entity_spec(entity)
        target = spec.canonical(key)
        if not target:
            return None
        for record in self.list_records(entity):
            if getattr(record, spec.key_field) == target:
                return record
        return None

    def get_casino(self, slug: Any) -> Optional[Casino]:
        return self.get_by_key("casino", slug)

    def get_country(self, code: Any) -> Optional[Country]:
        return self.get_by_key("country", code)

    def get_guide(self, slug: Any) -> Optional[Guide]:
        return self.get_by_key("guide", slug)

    # ----------------------------------------------------------------
    # Relations

    def filter_by_relation(self, entity: str, related_entity: str, key: Any) -> list:
        """Records of *entity* whose reference list contains *key*.

        e.g. ``filter_by_relation("casino", "country", "au")`` returns the
        casinos available in Australia.
        """
        entity_spec(entity)
        try:
            list_field = RELATIONS[(entity, related_entity)]
        except KeyError:
            raise UnknownRelation(f"{entity} has no relation to {related_entity}") from None
        target = entity_spec(related_entity).canonical(key)
        if not target:
            return []
        return [r for r in self.list_records(entity) if target in getattr(r, list_field)]

    def casinos_in_country(self, code: Any) -> List[Casino]:
        return self.filter_by_relation("casino", "country", code)

    def guides_for_casino(self, slug: Any) -> List[Guide]:
        return self.filter_by_relation("guide", "casino", slug)

    def guides_for_country(self, code: Any) -> List[Guide]:
        return self.filter_by_relation("guide", "country", code)

    def _resolve(self, entity: str, keys: Iterable[str]) -> list:
        spec = entity_spec(entity)
        index = {getattr(r, spec.key_field): r for r in self.list_records(entity)}
        wanted = [spec.canonical(k) for k in keys]
        return [index[k] for k in wanted if k in index]

    def countries_for_casino(self, casino: Casino) -> List[Country]:
        """Countries the casino lists, in its order; unknown codes are skipped."""
        return self._resolve("country", casino.countries)

    def casinos_for_guide(self, guide: Guide) -> List[Casino]:
        return self._resolve("casino", guide.related_casinos)

    def countries_for_guide(self, guide: Guide) -> List[Country]:
        return self._resolve("country", guide.related_countries)

    # ----------------------------------------------------------------
    # Diagnostics

    def validate_links(self) -> List[LinkReport]:
        """Report references that point at no loaded casino or country."""
        casinos = self.casinos()
        casino_slugs = {c.slug for c in casinos}
        country_codes = {c.code for c in self.countries()}

        reports: List[LinkReport] = []
        for casino in casinos:
            missing = [code for code in casino.countries if code not in country_codes]
            if missing:
                reports.append(LinkReport(entity="casino", key=casino.slug, missing_countries=missing))
        for guide in self.guides():
            missing_casinos = [s for s in guide.related_casinos if s not in casino_slugs]
            missing_countries = [c for c in guide.related_countries if c not in country_codes]
            if missing_casinos or missing_countries:
                reports.append(
                    LinkReport(
                        entity="guide",
                        key=guide.slug,
                        missing_casinos=missing_casinos,
                        missing_countries=missing_countries,
                    )
                )
        return reports


__all__ = [
    "Catalog",
    "ENTITIES",
    "LoadResult",
    "RELATIONS",
    "canonical_code",
    "canonical_slug",
    "load_collection",
    "sort_casinos",
    "sort_countries",
    "sort_guides",
]
