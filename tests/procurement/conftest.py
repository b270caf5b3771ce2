import json
from datetime import timedelta

import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from procurement.clock import reset_clock, set_clock
from procurement.clock.frozen_clock import FrozenClock
from procurement.notification import reset_sink, set_sink
from procurement.notification.recording_sink import RecordingSink


@pytest.fixture(scope="session")
def procurement_bed():
    from procurement.domain import procurement
    from procurement.utils.db import drop_db, setup_db

    bed = DomainFixture(procurement)
    bed.setup()
    setup_db(procurement)
    yield bed
    drop_db(procurement)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(procurement_bed):
    with procurement_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()


@pytest.fixture(autouse=True)
def clock():
    frozen = FrozenClock()
    set_clock(frozen)
    yield frozen
    reset_clock()


@pytest.fixture(autouse=True)
def sink():
    recording = RecordingSink()
    set_sink(recording)
    yield recording
    reset_sink()


# ---------------------------------------------------------------------------
# Command helpers shared by application, integration and BDD tests
# ---------------------------------------------------------------------------
@pytest.fixture
def process():
    def _process(command):
        return current_domain.process(command, asynchronous=False)

    return _process


@pytest.fixture
def register_sku(process):
    from procurement.catalogue.management import RegisterSku

    def _register(code="PARA500", name="Paracetamol", category="Analgesics", unit="box", **kwargs):
        return process(RegisterSku(code=code, name=name, category=category, unit=unit, **kwargs))

    return _register


@pytest.fixture
def register_supplier(process):
    from procurement.supplier.registration import RegisterSupplier

    def _register(name="Supplier X", rating=4.0, categories=("ALL",)):
        return process(RegisterSupplier(name=name, rating=rating, categories=json.dumps(list(categories))))

    return _register


@pytest.fixture
def submitted_demand(process):
    from procurement.demand.submission import CreateDemand, SubmitDemand

    def _demand(pharmacy_id, sku_id, quantity, **kwargs):
        demand_id = process(CreateDemand(pharmacy_id=pharmacy_id, sku_id=sku_id, quantity=quantity, **kwargs))
        process(SubmitDemand(demand_id=demand_id))
        return demand_id

    return _demand


@pytest.fixture
def aggregate(process):
    from procurement.group_order.aggregation import AggregateDemands

    def _aggregate(demand_ids, title="January analgesics round", **kwargs):
        return process(AggregateDemands(demand_ids=json.dumps(list(demand_ids)), title=title, **kwargs))

    return _aggregate


@pytest.fixture
def publish(process, clock):
    from procurement.rfq.publication import PublishRfq

    def _publish(group_order_id, days=3, **kwargs):
        return process(
            PublishRfq(group_order_id=group_order_id, bidding_deadline=clock.now() + timedelta(days=days), **kwargs)
        )

    return _publish


@pytest.fixture
def bid(process):
    from procurement.rfq.bidding import SubmitBid

    def _bid(rfq_id, supplier_id, sku_id, unit_price, quantity, lead_time_days=3, **kwargs):
        return process(
            SubmitBid(
                rfq_id=rfq_id,
                supplier_id=supplier_id,
                sku_id=sku_id,
                unit_price=unit_price,
                quantity=quantity,
                lead_time_days=lead_time_days,
                **kwargs,
            )
        )

    return _bid


@pytest.fixture
def close(process):
    from procurement.rfq.closing import CloseBidding

    def _close(rfq_id):
        return process(CloseBidding(rfq_id=rfq_id))

    return _close


@pytest.fixture
def award(process):
    from procurement.rfq.award import AwardBid

    def _award(bid_id):
        return process(AwardBid(bid_id=bid_id))

    return _award


@pytest.fixture
def para500_round(register_sku, register_supplier, submitted_demand, aggregate, publish, bid, close):
    """Pharmacy A wants 100 and pharmacy B 50 of PARA500; supplier X bids 1.00 for all 150; bidding closed."""
    sku_id = register_sku()
    supplier_id = register_supplier()
    demand_a = submitted_demand("pharm-a", sku_id, 100)
    demand_b = submitted_demand("pharm-b", sku_id, 50)
    group_order_id = aggregate([demand_a, demand_b])
    rfq_id = publish(group_order_id)
    bid_id = bid(rfq_id, supplier_id, sku_id, unit_price=1.00, quantity=150, lead_time_days=3)
    close(rfq_id)
    return {
        "sku_id": sku_id,
        "supplier_id": supplier_id,
        "demand_ids": [demand_a, demand_b],
        "group_order_id": group_order_id,
        "rfq_id": rfq_id,
        "bid_id": bid_id,
    }
