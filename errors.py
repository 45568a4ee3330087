"""Errors raised by the content catalog."""


class CatalogError(Exception):
    """Base error for this package."""


class SourceUnavailable(CatalogError):
    """Raised when a content source cannot be read at all."""


class UnknownEntity(CatalogError):
    """Raised when an entity name is not one of casino, country or guide."""


class UnknownRelation(CatalogError):
    """Raised when two entities have no relation between them."""
