from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .models import QueuedInput, Tier

FREE_LIMIT = 2


@dataclass(frozen=True)
class AdmissionDecision:
    accepted: Tuple[QueuedInput, ...]
    rejected_count: int
    cap_exceeded: bool

    def message(self, limit: int) -> Optional[str]:
        """User-facing notice for a capped batch, or ``None`` if nothing was turned away."""
        if self.cap_exceeded:
            return f'Free plan allows only {limit} uploads. Click "Upgrade to Pro" to add more.'
        if self.rejected_count:
            return (
                f"Free plan limit: only {len(self.accepted)} more upload(s) allowed. "
                f"{self.rejected_count} extra file(s) were not added."
            )
        return None


def tier_cap(tier: Tier, free_limit: int = FREE_LIMIT) -> Optional[int]:
    return free_limit if tier is Tier.FREE else None


def admit(
    batch: Sequence[QueuedInput],
    current_queue_length: int,
    tier: Tier,
    free_limit: int = FREE_LIMIT,
) -> AdmissionDecision:
    """
    Decide how much of ``batch`` may join a queue of ``current_queue_length``.

    Pro admits everything. Free admits at most ``free_limit - current_queue_length``
    inputs, taken from the front of the batch. A Free queue that is already full
    admits nothing and reports ``cap_exceeded``. ``batch`` is never modified.
    """
    if tier is Tier.PRO:
        return AdmissionDecision(accepted=tuple(batch), rejected_count=0, cap_exceeded=False)

    remaining = free_limit - current_queue_length
    if remaining <= 0:
        return AdmissionDecision(accepted=(), rejected_count=len(batch), cap_exceeded=True)

    accepted = tuple(batch[:remaining])
    return AdmissionDecision(
        accepted=accepted,
        rejected_count=len(batch) - len(accepted),
        cap_exceeded=False,
    )
