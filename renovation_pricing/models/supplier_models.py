"""Models for the supplier directory consumed by the price discovery pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SupplierRecord(BaseModel):
    """A supplier as stored in the directory. Only the fields used for scraping are typed."""

    id: int = Field(..., description="Numeric supplier identifier.")
    name: str = Field(..., description="Display name of the supplier.")
    website: Optional[str] = Field(
        default=None, description="Storefront URL, when the supplier has one."
    )

    model_config = ConfigDict(extra="ignore")


@dataclass(frozen=True, slots=True)
class SupplierRef:
    """A supplier eligible for scraping, with its storefront reduced to scheme and host."""

    supplier_id: int
    name: str
    base_url: str
