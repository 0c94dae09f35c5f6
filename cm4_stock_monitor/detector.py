"""Edge-triggered in-stock detection.

Turns repeated per-variant availability samples into one-shot events: a
variant fires once when it comes into stock, stays quiet while it remains in
stock, and re-arms as soon as it is seen out of stock again.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional

from .variants import VARIANTS, Variant

# variant key -> "currently listed as available"
StockReading = Mapping[str, bool]


class EdgeDetector:
    """Per-variant rising-edge detector with a latch.

    ``armed[key]`` is True while a notification for the current in-stock
    period has already been emitted. State lives only in this instance.
    """

    def __init__(self, variants: Optional[Iterable[Variant]] = None) -> None:
        self.variants: List[Variant] = list(variants if variants is not None else VARIANTS)
        self._armed: Dict[str, bool] = {v.key: False for v in self.variants}

    @property
    def armed(self) -> Dict[str, bool]:
        return dict(self._armed)

    def is_armed(self, key: str) -> bool:
        return self._armed[key]

    def advance(self, reading: StockReading) -> List[Variant]:
        """Apply one reading and return the variants that just came into stock.

        Variants missing from ``reading`` keep their current state.
        """
        fired: List[Variant] = []
        for variant in self.variants:
            if variant.key not in reading:
                continue
            if reading[variant.key]:
                if not self._armed[variant.key]:
                    self._armed[variant.key] = True
                    fired.append(variant)
            else:
                self._armed[variant.key] = False
        return fired


__all__ = ["EdgeDetector", "StockReading"]
