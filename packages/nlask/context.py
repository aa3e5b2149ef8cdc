"""Bounded conversation context fed to the model.

Sizes are estimated, not tokenized: one token per ``TOKEN_ESTIMATE_RATIO``
characters. Budget and caps are policy constants.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional

logger = logging.getLogger(__name__)

# Token limits - most models support 4K-128K, we'll be conservative
MAX_CONTEXT_TOKENS = 3000      # Reserve ~1000 for the reply
TOKEN_ESTIMATE_RATIO = 4       # Roughly 1 token per 4 characters

NORMAL_OUTPUT_CAP = 500        # Characters of output kept per record
COMPACT_OUTPUT_CAP = 200       # Stricter cap applied during compaction
MAX_EVICTION_ROUNDS = 10       # Evictions before falling back to re-truncation
TRUNCATION_MARKER = "... (truncated)"

CONTEXT_HEADER = "Previous commands and outputs in this session:\n\n"


@dataclass(frozen=True)
class InteractionRecord:
    """One resolved user turn."""
    prompt: str
    command: Optional[str] = None
    output: Optional[str] = None


def truncate_output(output: Optional[str], cap: int) -> Optional[str]:
    """Cut output to ``cap`` characters, marking the cut."""
    if output is None or len(output) <= cap:
        return output
    if output.endswith(TRUNCATION_MARKER) and len(output) - len(TRUNCATION_MARKER) <= cap:
        return output
    return output[:cap] + TRUNCATION_MARKER


def format_record(record: InteractionRecord) -> str:
    """Render one record the way it appears in the context block."""
    text = f"User: {record.prompt}\n"
    if record.command:
        text += f"Command: {record.command}\n"
    if record.output:
        text += f"Output: {record.output}\n"
    return text + "\n"


class ContextManager:
    """Ordered, size-bounded log of interaction records.

    ``size`` is always the sum of the estimates of the retained records.
    Insertion order is the eviction order: oldest goes first.
    """

    def __init__(
        self,
        max_tokens: int = MAX_CONTEXT_TOKENS,
        ratio: int = TOKEN_ESTIMATE_RATIO,
        output_cap: int = NORMAL_OUTPUT_CAP,
        compact_cap: int = COMPACT_OUTPUT_CAP,
        max_eviction_rounds: int = MAX_EVICTION_ROUNDS,
    ):
        self.max_tokens = max_tokens
        self.ratio = ratio
        self.output_cap = output_cap
        self.compact_cap = compact_cap
        self.max_eviction_rounds = max_eviction_rounds
        self._records: list[InteractionRecord] = []
        self._sizes: list[int] = []
        self._size = 0
        self._total_recorded = 0

    @property
    def records(self) -> tuple[InteractionRecord, ...]:
        return tuple(self._records)

    @property
    def size(self) -> int:
        return self._size

    @property
    def total_recorded(self) -> int:
        """Interactions recorded since the last clear, evicted ones included."""
        return self._total_recorded

    def __len__(self) -> int:
        return len(self._records)

    def estimate(self, text: str) -> int:
        return len(text) // self.ratio

    def record(self, prompt: str, command: Optional[str] = None, output: Optional[str] = None) -> InteractionRecord:
        """Append a record, then compact if the budget is exceeded."""
        entry = InteractionRecord(prompt, command, truncate_output(output, self.output_cap))
        self._append(entry)
        self._total_recorded += 1
        self.compact_if_needed()
        return entry

    def render(self) -> str:
        """The context block for the model; empty when nothing is retained."""
        if not self._records:
            return ""
        context = CONTEXT_HEADER
        if len(self._records) < self._total_recorded:
            context += (
                f"Note: showing recent {len(self._records)} of {self._total_recorded} "
                f"total interactions due to length\n\n"
            )
        return context + "".join(format_record(r) for r in self._records)

    def over_budget(self) -> bool:
        return self.estimate(self.render()) > self.max_tokens

    def compact_if_needed(self) -> bool:
        """Evict and re-truncate until ``render()`` fits the budget.

        The newest record is always kept, even when it alone is too large.

        Returns:
            True if anything changed
        """
        changed = False
        rounds = 0
        while self.over_budget() and len(self._records) > 1 and rounds < self.max_eviction_rounds:
            self._evict_oldest()
            rounds += 1
            changed = True

        if self.over_budget():
            changed = self._retruncate(self.compact_cap) or changed
            while self.over_budget() and len(self._records) > 1:
                self._evict_oldest()
                changed = True

        if changed:
            logger.debug(
                f"Context compacted to {len(self._records)} of {self._total_recorded} "
                f"records (~{self.estimate(self.render())} tokens)"
            )
        return changed

    def clear(self):
        """Drop all records."""
        self._records.clear()
        self._sizes.clear()
        self._size = 0
        self._total_recorded = 0

    def _append(self, entry: InteractionRecord):
        cost = self.estimate(format_record(entry))
        self._records.append(entry)
        self._sizes.append(cost)
        self._size += cost

    def _evict_oldest(self):
        evicted = self._records.pop(0)
        self._size -= self._sizes.pop(0)
        logger.debug(f"Evicted context record for {evicted.prompt[:40]!r}")

    def _retruncate(self, cap: int) -> bool:
        """Apply a stricter output cap to every retained record."""
        changed = False
        for i, entry in enumerate(self._records):
            output = truncate_output(entry.output, cap)
            if output == entry.output:
                continue
            shorter = replace(entry, output=output)
            cost = self.estimate(format_record(shorter))
            self._size += cost - self._sizes[i]
            self._records[i] = shorter
            self._sizes[i] = cost
            changed = True
        if changed:
            logger.debug(f"Re-truncated context outputs to {cap} characters")
        return changed
