"""Shared test fixtures for catalogsync tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from catalogsync.catalog.collector import CatalogCollector
from catalogsync.clients.memory import InMemoryBillingClient
from catalogsync.contracts.catalog import (
    AddonDefinition,
    CatalogDefinition,
    OrgPlanDefinition,
    PlanDefinition,
    RolePricingDefinition,
    RoleTierDefinition,
)
from catalogsync.contracts.config import RetryPolicy
from catalogsync.engine.orchestrator import SyncOrchestrator
from catalogsync.mapping.store import InMemoryMappingStore
from tests.fakes.builders import FIXED_NOW, NO_RETRY, no_sleep


@pytest.fixture
def full_catalog() -> CatalogDefinition:
    """A catalog touching every section."""
    return CatalogDefinition(
        plans=[
            PlanDefinition(
                id="pro",
                name="Pro",
                description="For growing teams",
                monthly_price=Decimal("49"),
                yearly_price=Decimal("490"),
                yearly_discount=17,
                max_users=10,
            )
        ],
        addons=[
            AddonDefinition(
                id="sms",
                name="SMS Pack",
                description="Outbound SMS",
                monthly_price=Decimal("9.99"),
                features=["sms", "mms"],
                available_for_plans=["pro"],
            )
        ],
        role_pricing=[
            RolePricingDefinition(
                role="agent",
                display_name="Agent",
                tiers=[RoleTierDefinition(id="basic", name="Basic", description="Core tools", price=Decimal("15"))],
            )
        ],
        org_plans=[
            OrgPlanDefinition(
                id="team",
                name="Team",
                description="Shared workspace",
                price_monthly=Decimal("199"),
                setup_fee=Decimal("500"),
            )
        ],
    )


@pytest.fixture
def client() -> InMemoryBillingClient:
    return InMemoryBillingClient()


@pytest.fixture
def store() -> InMemoryMappingStore:
    return InMemoryMappingStore()


@pytest.fixture
def make_orchestrator(client: InMemoryBillingClient, store: InMemoryMappingStore) -> Callable[..., SyncOrchestrator]:
    def _make(catalog: CatalogDefinition, *, retry: RetryPolicy = NO_RETRY) -> SyncOrchestrator:
        return SyncOrchestrator(
            collector=CatalogCollector([catalog]),
            store=store,
            client=client,
            retry=retry,
            clock=lambda: FIXED_NOW,
            sleep=no_sleep,
        )

    return _make


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, Any], Path]:
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return _write
