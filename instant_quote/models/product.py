"""
Product models for the Instant Quote extractor.
ProductRecord is the contract between the extraction pipeline and its
callers (API, quote calculator); the other types are pipeline internals.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


RESOLVABLE_FIELDS = ("title", "price", "image", "variant")


class FetchStrategy(str, Enum):
    """How the HTML used for extraction was obtained."""
    DIRECT = "direct"
    RENDERED = "rendered"


@dataclass
class FetchResult:
    """Raw HTML returned by one fetch strategy."""
    html: str
    strategy: FetchStrategy
    status_code: Optional[int] = None


@dataclass
class StructuredCandidate:
    """One product-like object found in embedded JSON-LD."""
    name: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    images: List[str] = field(default_factory=list)
    # color / size / material / pattern, as declared by the page
    attributes: Dict[str, str] = field(default_factory=dict)


class ProductRecord(BaseModel):
    """
    Best-effort product data for one URL.

    Records are immutable once assembled. The confidence map is derived
    from field presence, so it can never disagree with the fields.
    """
    model_config = ConfigDict(frozen=True)

    url: str
    store: str

    title: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)
    currency: Optional[str] = None
    image: Optional[str] = None
    variant: Optional[str] = None

    fetch_strategy: Optional[FetchStrategy] = None

    @computed_field
    @property
    def confidence(self) -> Dict[str, bool]:
        return {name: getattr(self, name) is not None for name in RESOLVABLE_FIELDS}

    @classmethod
    def empty(cls, url: str, store: str) -> "ProductRecord":
        """Record returned when no HTML could be obtained."""
        return cls(url=url, store=store)

    def get_present_fields(self) -> List[str]:
        """Return resolvable fields that were populated."""
        return [name for name, present in self.confidence.items() if present]

    def get_missing_fields(self) -> List[str]:
        """Return resolvable fields that were left empty."""
        return [name for name, present in self.confidence.items() if not present]
