"""Catalog contracts."""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator


class BillingCadence(StrEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONE_TIME = "one_time"

    @property
    def recurring_interval(self) -> str | None:
        if self is BillingCadence.MONTHLY:
            return "month"
        if self is BillingCadence.YEARLY:
            return "year"
        return None


class LocalProduct(BaseModel):
    local_id: str = Field(min_length=1)
    name: str
    description: str = ""
    price: int = Field(ge=0)
    currency: str
    billing: BillingCadence
    metadata: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @field_validator("currency")
    @classmethod
    def _lowercase_currency(cls, value: str) -> str:
        return value.strip().lower()


# Raw definitions as written in catalog files. Amounts are in major units.

Amount = Annotated[Decimal, Field(ge=0)]


class PlanDefinition(BaseModel):
    id: str
    name: str
    description: str = ""
    monthly_price: Amount
    yearly_price: Amount
    yearly_discount: int = 0
    max_users: int | None = None
    max_contacts: int | None = None
    currency: str | None = None


class AddonDefinition(BaseModel):
    id: str
    name: str
    description: str = ""
    monthly_price: Amount
    features: list[str] = Field(default_factory=list)
    available_for_plans: list[str] = Field(default_factory=list)
    currency: str | None = None


class RoleTierDefinition(BaseModel):
    id: str
    name: str
    description: str = ""
    price: Amount


class RolePricingDefinition(BaseModel):
    role: str
    display_name: str
    tiers: list[RoleTierDefinition] = Field(default_factory=list)
    currency: str | None = None


class OrgPlanDefinition(BaseModel):
    id: str
    name: str
    description: str = ""
    price_monthly: Amount
    setup_fee: Amount = Decimal(0)
    currency: str | None = None


class CatalogDefinition(BaseModel):
    currency: str | None = None
    plans: list[PlanDefinition] = Field(default_factory=list)
    addons: list[AddonDefinition] = Field(default_factory=list)
    role_pricing: list[RolePricingDefinition] = Field(default_factory=list)
    org_plans: list[OrgPlanDefinition] = Field(default_factory=list)


# Normalized sources, one per LocalProduct. ``origin`` names the file the
# source came from and is only used in error messages.


class PlanSource(BaseModel):
    kind: Literal["plan"] = "plan"
    origin: str
    plan: PlanDefinition
    cadence: Literal[BillingCadence.MONTHLY, BillingCadence.YEARLY]
    currency: str


class AddonSource(BaseModel):
    kind: Literal["addon"] = "addon"
    origin: str
    addon: AddonDefinition
    currency: str


class RoleTierSource(BaseModel):
    kind: Literal["role_tier"] = "role_tier"
    origin: str
    role: str
    display_name: str
    tier: RoleTierDefinition
    currency: str


class OrgPlanSource(BaseModel):
    kind: Literal["org_plan"] = "org_plan"
    origin: str
    org_plan: OrgPlanDefinition
    currency: str


class OrgSetupFeeSource(BaseModel):
    kind: Literal["org_setup_fee"] = "org_setup_fee"
    origin: str
    org_plan: OrgPlanDefinition
    currency: str


LocalProductSource = Annotated[
    PlanSource | AddonSource | RoleTierSource | OrgPlanSource | OrgSetupFeeSource,
    Field(discriminator="kind"),
]
