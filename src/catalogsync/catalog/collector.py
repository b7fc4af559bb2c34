"""Collect catalog definitions into one normalized list of local products."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

from catalogsync.catalog.loader import load_catalog
from catalogsync.contracts.catalog import (
    AddonSource,
    BillingCadence,
    CatalogDefinition,
    LocalProduct,
    LocalProductSource,
    OrgPlanSource,
    OrgSetupFeeSource,
    PlanSource,
    RoleTierSource,
)
from catalogsync.contracts.exceptions import ConfigurationError, DuplicateLocalIdError

_LOG = logging.getLogger(__name__)

# Currencies the billing provider charges without a fractional minor unit.
_ZERO_DECIMAL_CURRENCIES = frozenset(
    {"bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga", "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf"}
)


def to_minor_units(amount: Decimal, currency: str, *, local_id: str) -> int:
    """Convert a major-unit amount into integer minor units for *currency*."""
    if amount < 0:
        raise ConfigurationError(f"{local_id}: price must be non-negative, got {amount}")
    exponent = 0 if currency.lower() in _ZERO_DECIMAL_CURRENCIES else 2
    scaled = amount.scaleb(exponent)
    if scaled != scaled.to_integral_value():
        raise ConfigurationError(f"{local_id}: price {amount} {currency} has sub-minor-unit precision")
    return int(scaled)


def expand_sources(origin: str, definition: CatalogDefinition, *, default_currency: str) -> list[LocalProductSource]:
    """Expand one catalog file into one source per sellable entry."""
    file_currency = definition.currency or default_currency
    sources: list[LocalProductSource] = []

    for plan in definition.plans:
        currency = (plan.currency or file_currency).lower()
        for cadence in (BillingCadence.MONTHLY, BillingCadence.YEARLY):
            sources.append(PlanSource(origin=origin, plan=plan, cadence=cadence, currency=currency))

    for addon in definition.addons:
        sources.append(AddonSource(origin=origin, addon=addon, currency=(addon.currency or file_currency).lower()))

    for role_config in definition.role_pricing:
        currency = (role_config.currency or file_currency).lower()
        for tier in role_config.tiers:
            sources.append(
                RoleTierSource(
                    origin=origin,
                    role=role_config.role,
                    display_name=role_config.display_name,
                    tier=tier,
                    currency=currency,
                )
            )

    for org_plan in definition.org_plans:
        currency = (org_plan.currency or file_currency).lower()
        sources.append(OrgPlanSource(origin=origin, org_plan=org_plan, currency=currency))
        if org_plan.setup_fee > 0:
            sources.append(OrgSetupFeeSource(origin=origin, org_plan=org_plan, currency=currency))

    return sources


def _plan_product(source: PlanSource) -> LocalProduct:
    plan = source.plan
    cadence = source.cadence
    local_id = f"plan_{plan.id}_{cadence.value}"
    metadata = {"source": "pricing_plans", "plan_id": plan.id, "billing": cadence.value}
    if cadence is BillingCadence.YEARLY:
        label = "Yearly"
        amount = plan.yearly_price
        description = f"{plan.description} - Yearly billing ({plan.yearly_discount}% discount)"
        metadata["discount"] = str(plan.yearly_discount)
    else:
        label = "Monthly"
        amount = plan.monthly_price
        description = f"{plan.description} - Monthly billing"
    if plan.max_users is not None:
        metadata["max_users"] = str(plan.max_users)
    if plan.max_contacts is not None:
        metadata["max_contacts"] = str(plan.max_contacts)
    return LocalProduct(
        local_id=local_id,
        name=f"{plan.name} Plan ({label})",
        description=description,
        price=to_minor_units(amount, source.currency, local_id=local_id),
        currency=source.currency,
        billing=cadence,
        metadata=metadata,
    )


def _addon_product(source: AddonSource) -> LocalProduct:
    addon = source.addon
    local_id = f"addon_{addon.id}"
    return LocalProduct(
        local_id=local_id,
        name=f"{addon.name} Add-on",
        description=addon.description,
        price=to_minor_units(addon.monthly_price, source.currency, local_id=local_id),
        currency=source.currency,
        billing=BillingCadence.MONTHLY,
        metadata={
            "source": "add_on_packages",
            "addon_id": addon.id,
            "features": ",".join(addon.features),
            "available_for_plans": ",".join(addon.available_for_plans),
        },
    )


def _role_tier_product(source: RoleTierSource) -> LocalProduct:
    tier = source.tier
    local_id = f"role_{source.role}_{tier.id}"
    return LocalProduct(
        local_id=local_id,
        name=f"{source.display_name} - {tier.name}",
        description=f"{tier.description} for {source.display_name}",
        price=to_minor_units(tier.price, source.currency, local_id=local_id),
        currency=source.currency,
        billing=BillingCadence.MONTHLY,
        metadata={"source": "role_pricing", "role": source.role, "tier_id": tier.id, "tier_name": tier.name},
    )


def _org_plan_product(source: OrgPlanSource) -> LocalProduct:
    org_plan = source.org_plan
    local_id = f"org_{org_plan.id}_monthly"
    return LocalProduct(
        local_id=local_id,
        name=f"Organization {org_plan.name}",
        description=org_plan.description,
        price=to_minor_units(org_plan.price_monthly, source.currency, local_id=local_id),
        currency=source.currency,
        billing=BillingCadence.MONTHLY,
        metadata={
            "source": "org_plans",
            "org_plan_id": org_plan.id,
            "setup_fee": str(to_minor_units(org_plan.setup_fee, source.currency, local_id=local_id)),
        },
    )


def _org_setup_fee_product(source: OrgSetupFeeSource) -> LocalProduct:
    org_plan = source.org_plan
    local_id = f"org_{org_plan.id}_setup"
    return LocalProduct(
        local_id=local_id,
        name=f"{org_plan.name} Setup Fee",
        description=f"One-time setup fee for {org_plan.name} organization plan",
        price=to_minor_units(org_plan.setup_fee, source.currency, local_id=local_id),
        currency=source.currency,
        billing=BillingCadence.ONE_TIME,
        metadata={"source": "org_setup_fees", "org_plan_id": org_plan.id, "type": "setup_fee"},
    )


def to_local_product(source: LocalProductSource) -> LocalProduct:
    if isinstance(source, PlanSource):
        return _plan_product(source)
    if isinstance(source, AddonSource):
        return _addon_product(source)
    if isinstance(source, RoleTierSource):
        return _role_tier_product(source)
    if isinstance(source, OrgPlanSource):
        return _org_plan_product(source)
    return _org_setup_fee_product(source)


class CatalogCollector:
    """Merges every configured catalog source into one deduplicated product list.

    Catalogs may be given as file paths (read on each ``collect()``) or as
    already-parsed ``CatalogDefinition`` objects.
    """

    def __init__(
        self,
        catalogs: Sequence[Path | CatalogDefinition],
        *,
        default_currency: str = "usd",
    ) -> None:
        self._catalogs = list(catalogs)
        self._default_currency = default_currency.lower()

    def collect(self) -> list[LocalProduct]:
        products: list[LocalProduct] = []
        origin_by_id: dict[str, str] = {}

        for index, catalog in enumerate(self._catalogs):
            if isinstance(catalog, CatalogDefinition):
                origin = f"catalog[{index}]"
                definition = catalog
            else:
                origin = str(catalog)
                definition = load_catalog(catalog)

            for source in expand_sources(origin, definition, default_currency=self._default_currency):
                product = to_local_product(source)
                label = f"{source.origin}:{source.kind}"
                if product.local_id in origin_by_id:
                    raise DuplicateLocalIdError(
                        product.local_id, first_source=origin_by_id[product.local_id], second_source=label
                    )
                origin_by_id[product.local_id] = label
                products.append(product)

        _LOG.debug("Collected %d local products from %d catalog(s)", len(products), len(self._catalogs))
        return products


__all__ = ["CatalogCollector", "expand_sources", "to_local_product", "to_minor_units"]
