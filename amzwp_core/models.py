#!/usr/bin/env python3
"""Data types shared across discovery, audit and product analysis."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class PostPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class PostType(str, Enum):
    REVIEW = "review"
    LISTICLE = "listicle"
    INFO = "info"
    UNKNOWN = "unknown"


class MonetizationStatus(str, Enum):
    ANALYZING = "analyzing"
    MONETIZED = "monetized"
    OPPORTUNITY = "opportunity"
    ERROR = "error"
    QUEUED = "queued"


class CandidateSource(str, Enum):
    LINK = "link"
    HEADING = "heading"
    LIST = "list"
    TEXT = "text"


@dataclass
class BlogPost:
    """A discovered page. Content is empty until resolved."""
    id: int
    title: str
    url: str
    status: str = "publish"
    content: str = ""
    priority: PostPriority = PostPriority.MEDIUM
    post_type: PostType = PostType.UNKNOWN
    monetization_status: MonetizationStatus = MonetizationStatus.ANALYZING

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        out = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "status": self.status,
            "priority": self.priority.value,
            "post_type": self.post_type.value,
            "monetization_status": self.monetization_status.value,
        }
        if include_content:
            out["content"] = self.content
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlogPost":
        return cls(
            id=int(data["id"]),
            title=data.get("title") or "Untitled",
            url=data.get("url") or "",
            status=data.get("status") or "publish",
            content=data.get("content") or "",
            priority=PostPriority(data.get("priority") or PostPriority.MEDIUM.value),
            post_type=PostType(data.get("post_type") or PostType.UNKNOWN.value),
            monetization_status=MonetizationStatus(
                data.get("monetization_status") or MonetizationStatus.ANALYZING.value
            ),
        )


@dataclass(frozen=True)
class ExtractedCandidate:
    """One product mention surfaced by one extraction heuristic."""
    asin: str
    name: str
    source: CandidateSource
    confidence: float


@dataclass(frozen=True)
class OracleSuggestion:
    """Product suggested by the enrichment oracle."""
    product_name: str
    brand: str = ""
    category: str = ""
    verdict: str = ""
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OracleSuggestion":
        try:
            confidence = float(data.get("confidence") or 0)
        except (TypeError, ValueError):
            confidence = 0.0
        return cls(
            product_name=str(data.get("productName") or data.get("product_name") or "").strip(),
            brand=str(data.get("brand") or ""),
            category=str(data.get("category") or ""),
            verdict=str(data.get("verdict") or ""),
            confidence=confidence,
        )


@dataclass
class MergedProduct:
    asin: str = ""
    name: str = ""
    brand: str = ""
    category: str = ""
    verdict: str = ""


@dataclass
class ProductLookup:
    """Product-data oracle answer. Empty fields mean the oracle had nothing."""
    asin: str = ""
    title: str = ""
    brand: str = ""
    price: str = ""
    image_url: str = ""
    rating: Optional[float] = None
    review_count: Optional[int] = None
    prime: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductLookup":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


@dataclass
class ProductDetails:
    id: str
    asin: str
    title: str
    brand: str
    category: str
    price: str
    image_url: str
    rating: float
    review_count: int
    prime: bool
    verdict: str
    faqs: List[Dict[str, str]] = field(default_factory=list)
    entities: List[str] = field(default_factory=list)
    evidence_claims: List[str] = field(default_factory=list)
    specs: Dict[str, str] = field(default_factory=dict)
    insertion_index: int = -1
    deployment_mode: str = "ELITE_BENTO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductDetails":
        known = {k: data[k] for k in cls.__dataclass_fields__ if k in data}
        return cls(**known)


@dataclass
class CarouselData:
    title: str
    product_ids: List[str]


@dataclass
class AnalysisResult:
    detected_products: List[ProductDetails] = field(default_factory=list)
    carousel: Optional[CarouselData] = None
    cached: bool = False

    @property
    def product(self) -> Optional[ProductDetails]:
        return self.detected_products[0] if self.detected_products else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "products": [p.to_dict() for p in self.detected_products],
            "carousel": asdict(self.carousel) if self.carousel else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], cached: bool = False) -> "AnalysisResult":
        carousel = data.get("carousel")
        return cls(
            detected_products=[ProductDetails.from_dict(p) for p in data.get("products") or []],
            carousel=CarouselData(**carousel) if carousel else None,
            cached=cached,
        )


@dataclass
class ResolvedContent:
    body: str
    resolved_id: int
    strategy: str = ""
