from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from config import DEFAULT_MAX_RESULTS, MAX_RESULTS, MIN_RESULTS


def _to_int(value):
    try:
        return int(float(str(value).strip() or 0))
    except (TypeError, ValueError, OverflowError):
        return 0


class ProductSource(str, Enum):
    """Tier a product record came from."""
    CATALOG = "catalog"
    LIVE = "live"
    SCRAPED_FALLBACK = "scraped-fallback"


@dataclass(frozen=True)
class CustomerProfile:
    """Read-only caller profile; the core never mutates or stores it."""
    preferred_language: Optional[str] = None
    name: Optional[str] = None
    is_vip: bool = False
    total_orders: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["CustomerProfile"]:
        if not isinstance(data, dict) or not data:
            return None
        return cls(
            preferred_language=data.get("preferredLanguage") or data.get("preferred_language"),
            name=data.get("name"),
            is_vip=bool(data.get("isVipCustomer") or data.get("is_vip")),
            total_orders=_to_int(data.get("totalOrders") or data.get("total_orders")),
        )


@dataclass(frozen=True)
class CallContext:
    """Per-invocation context supplied by the webhook adapter."""
    conversation_id: Optional[str] = None
    customer_profile: Optional[CustomerProfile] = None
    language: Optional[str] = None
    request_timestamp: float = field(default_factory=time.time)

    @property
    def explicit_language(self) -> Optional[str]:
        if self.language:
            return self.language
        if self.customer_profile and self.customer_profile.preferred_language:
            return self.customer_profile.preferred_language
        return None


@dataclass
class NormalizedProduct:
    """Common product shape produced by every data source."""
    name: str
    source: ProductSource
    price: Optional[float] = None
    in_stock: Optional[bool] = None
    sku: Optional[str] = None
    relevance: float = 0.0
    description: Optional[str] = None
    url: Optional[str] = None
    category: Optional[str] = None
    stock_quantity: Optional[int] = None
    specifications: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Structured payload for the caller; relevance stays internal."""
        data = asdict(self)
        data.pop("relevance")
        data["source"] = self.source.value
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class Result:
    """Return value of every callable operation. `message` is what gets spoken."""
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    requires_input: bool = False
    error: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not self.message or not self.message.strip():
            raise ValueError("Result message must not be empty")

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "requiresInput": self.requires_input,
        }
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload


# ---------------- Operation parameter records ----------------

class OperationParams(BaseModel):
    """Base for strongly-typed operation parameters coerced from platform JSON."""
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    @field_validator("*", mode="before")
    @classmethod
    def _clean_value(cls, value, info: ValidationInfo):
        if isinstance(value, str):
            value = value.strip() or None
        if value is None:
            # blank or null falls back to the field default
            return cls.model_fields[info.field_name].get_default()
        return value


class CheckInventoryParams(OperationParams):
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    category: Optional[str] = None


class ProductPriceParams(OperationParams):
    product_identifier: Optional[str] = None
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def _positive_quantity(cls, value):
        if value < 1:
            raise ValueError("quantity must be at least 1")
        return value


class LiveSearchParams(OperationParams):
    product_query: Optional[str] = None
    category: Optional[str] = None
    max_results: int = DEFAULT_MAX_RESULTS

    @field_validator("max_results")
    @classmethod
    def _bound_max_results(cls, value):
        return max(MIN_RESULTS, min(MAX_RESULTS, value))


class LiveDetailsParams(OperationParams):
    product_url: Optional[str] = None
    product_sku: Optional[str] = None


INFO_TYPES = ("hours", "location", "contact", "services", "general")


class StoreInfoParams(OperationParams):
    info_type: str = "general"
    language: Optional[str] = None

    @field_validator("info_type")
    @classmethod
    def _known_info_type(cls, value):
        value = value.lower()
        return value if value in INFO_TYPES else "general"
