"""
Tests for the Free/Pro admission policy.
"""

import pytest

from everythingpdf_backend.admission import FREE_LIMIT, admit, tier_cap
from everythingpdf_backend.classifier import classify
from everythingpdf_backend.models import Tier


@pytest.fixture
def batch(incoming):
    def _make(count):
        return [classify(incoming(f"file-{i}.pdf", b"%PDF", "application/pdf")) for i in range(count)]

    return _make


class TestProTier:
    def test_accepts_whole_batch(self, batch):
        items = batch(5)
        decision = admit(items, current_queue_length=10, tier=Tier.PRO)
        assert list(decision.accepted) == items
        assert decision.rejected_count == 0
        assert decision.cap_exceeded is False

    def test_unbounded_cap(self):
        assert tier_cap(Tier.PRO) is None
        assert tier_cap(Tier.FREE) == FREE_LIMIT


class TestFreeTier:
    def test_full_queue_rejects_everything(self, batch):
        decision = admit(batch(3), current_queue_length=2, tier=Tier.FREE)
        assert decision.accepted == ()
        assert decision.cap_exceeded is True
        assert decision.rejected_count == 3

    def test_partial_admission_takes_batch_front(self, batch):
        items = batch(3)
        decision = admit(items, current_queue_length=1, tier=Tier.FREE)
        assert list(decision.accepted) == items[:1]
        assert decision.rejected_count == 2
        assert decision.cap_exceeded is False

    def test_batch_is_not_mutated(self, batch):
        items = batch(4)
        original = list(items)
        admit(items, current_queue_length=0, tier=Tier.FREE)
        assert items == original

    @pytest.mark.parametrize("queue_length", [0, 1, 2, 3])
    @pytest.mark.parametrize("batch_size", [0, 1, 2, 5])
    def test_never_exceeds_limit(self, batch, queue_length, batch_size):
        decision = admit(batch(batch_size), current_queue_length=queue_length, tier=Tier.FREE)
        assert len(decision.accepted) <= max(0, FREE_LIMIT - queue_length)
        assert len(decision.accepted) + decision.rejected_count == batch_size

    def test_custom_limit(self, batch):
        decision = admit(batch(4), current_queue_length=0, tier=Tier.FREE, free_limit=3)
        assert len(decision.accepted) == 3
        assert decision.rejected_count == 1


class TestMessages:
    def test_total_and_partial_rejection_messages_differ(self, batch):
        capped = admit(batch(1), current_queue_length=2, tier=Tier.FREE)
        partial = admit(batch(3), current_queue_length=1, tier=Tier.FREE)
        assert "Upgrade to Pro" in capped.message(FREE_LIMIT)
        assert "only 1 more upload(s)" in partial.message(FREE_LIMIT)
        assert capped.message(FREE_LIMIT) != partial.message(FREE_LIMIT)

    def test_no_message_when_everything_fits(self, batch):
        decision = admit(batch(2), current_queue_length=0, tier=Tier.FREE)
        assert decision.message(FREE_LIMIT) is None
