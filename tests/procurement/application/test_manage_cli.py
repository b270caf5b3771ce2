from datetime import timedelta

import manage
from protean import current_domain

from procurement.rfq.rfq import Rfq, RfqStatus
from procurement.store import load


class TestCloseExpiredBiddingCommand:
    def test_closes_overdue_rfqs(self, monkeypatch, capsys, register_sku, submitted_demand, aggregate, publish, clock):
        monkeypatch.setattr(manage, "_domain", lambda: current_domain)
        rfq_id = publish(aggregate([submitted_demand("pharm-a", register_sku(), 10)]), days=1)

        manage.close_expired_bidding(as_of=clock.now() + timedelta(days=2))

        assert load(Rfq, rfq_id).status == RfqStatus.CLOSED.value
        output = capsys.readouterr().out
        assert f"closed RFQ {rfq_id}" in output
        assert "Closed 1 RFQ(s)." in output

    def test_nothing_to_close(self, monkeypatch, capsys):
        monkeypatch.setattr(manage, "_domain", lambda: current_domain)
        manage.close_expired_bidding()
        assert capsys.readouterr().out.strip() == "Closed 0 RFQ(s)."
