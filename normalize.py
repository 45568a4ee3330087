"""Record normalization.

Turns one raw JSON value into a typed record, or rejects it.

    normalize(Casino, {"slug": "Spin", "name": "Spin"})  -> Casino(slug="spin", ...)
    normalize(Casino, None)                               -> None

Normalization never raises for malformed content. Callers that want to know
why a value was rejected pass a list as ``reasons``.
"""

from typing import Any, List, Optional, Type, TypeVar

from pydantic import ValidationError

from schemas import Casino, ContentModel, Country, Guide

M = TypeVar("M", bound=ContentModel)


def describe_errors(exc: ValidationError) -> List[str]:
    """Flatten a ValidationError into ``"field: message"`` strings."""
    out: List[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        msg = err.get("msg", "invalid")
        out.append(f"{loc}: {msg}" if loc else msg)
    return out


def normalize(model: Type[M], raw: Any, reasons: Optional[List[str]] = None) -> Optional[M]:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        if reasons is not None:
            reasons.extend(describe_errors(exc))
        return None


def normalize_casino(raw: Any, reasons: Optional[List[str]] = None) -> Optional[Casino]:
    return normalize(Casino, raw, reasons)


def normalize_country(raw: Any, reasons: Optional[List[str]] = None) -> Optional[Country]:
    return normalize(Country, raw, reasons)


def normalize_guide(raw: Any, reasons: Optional[List[str]] = None) -> Optional[Guide]:
    return normalize(Guide, raw, reasons)


__all__ = ["describe_errors", "normalize", "normalize_casino", "normalize_country", "normalize_guide"]
