"""Shared BDD fixtures and step definitions for procurement rounds."""

import pytest
from pytest_bdd import given, parsers


@pytest.fixture()
def buying_round():
    """Ids collected while a scenario builds up its buying round."""
    return {"demand_ids": [], "bid_ids": [], "error": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a registered SKU "{code}"'))
def _(buying_round, register_sku, code):
    buying_round["sku_id"] = register_sku(code=code)


@given(parsers.cfparse('a registered supplier "{name}"'))
def _(buying_round, register_supplier, name):
    buying_round.setdefault("suppliers", {})[name] = register_supplier(name=name)


@given(parsers.cfparse('pharmacy "{pharmacy_id}" has submitted demand for {quantity:d} units'))
def _(buying_round, submitted_demand, pharmacy_id, quantity):
    buying_round["demand_ids"].append(submitted_demand(pharmacy_id, buying_round["sku_id"], quantity))


@given(parsers.cfparse('the demands are aggregated into group order "{title}"'))
def _(buying_round, aggregate, title):
    buying_round["group_order_id"] = aggregate(buying_round["demand_ids"], title=title)


@given(parsers.cfparse("an RFQ is published with bidding open for {days:d} days"))
def _(buying_round, publish, days):
    buying_round["rfq_id"] = publish(buying_round["group_order_id"], days=days)
