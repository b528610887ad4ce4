"""
SEO Brain - Data Models

Shared value types passed between the generator, optimizer and
persistence layers.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CityProfile:
    """Reference data about a target city. Read-only to the pipeline."""
    id: str
    name: str
    state: str
    slug: str
    population: Optional[int] = None
    industries: List[str] = field(default_factory=list)
    neighborhoods: List[str] = field(default_factory=list)
    venues: List[str] = field(default_factory=list)
    famous_for: List[str] = field(default_factory=list)
    zip_codes: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RecruitmentSpec:
    """Preparer recruitment offer shown on service pages."""
    avg_income: int
    benefits: List[str] = field(default_factory=list)
    training_duration: str = "Self-paced"
    certification_provided: bool = True
    year_round: bool = False
    top_earner_income: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["RecruitmentSpec"]:
        if not data:
            return None
        return cls(**data)


@dataclass(frozen=True)
class ProductCampaignSpec:
    """
    One generation run. Immutable while generation is in progress.

    content_type selects the prompt family: "product" pages sell a printed
    product, "service" pages sell a local service, in which case
    product_name is the service name and price its starting price.
    """
    product_name: str
    quantity: int
    size: str
    material: str
    turnaround: str
    price: float
    online_only: bool = True
    keywords: List[str] = field(default_factory=list)
    industries: List[str] = field(default_factory=list)
    campaign_id: Optional[str] = None
    reference_image_path: Optional[str] = None
    content_type: str = "product"
    language: str = "en"
    average_refund: Optional[float] = None
    recruitment: Optional[RecruitmentSpec] = None

    @property
    def price_label(self) -> str:
        """Price as shown to customers: $179, $24.99"""
        if float(self.price).is_integer():
            return f"${int(self.price)}"
        return f"${self.price:.2f}"
