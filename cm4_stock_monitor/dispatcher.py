"""Fan-out of stock events to the enabled chat backends."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .variants import Variant, watched_variants

logger = logging.getLogger(__name__)

# A backend takes the variants to announce and sends them somewhere.
Backend = Callable[[Sequence[Variant]], Any]


class Dispatcher:
    """Send stock events to every backend, best-effort.

    Only watched variants are announced. A failing backend is logged and
    never stops the others; ``dispatch`` itself never raises.
    """

    def __init__(self, backends: Mapping[str, Backend], watch_flags: Optional[Mapping[str, bool]] = None) -> None:
        self.backends: Dict[str, Backend] = dict(backends)
        self.watch_flags = watch_flags

    def dispatch(self, events: Sequence[Variant]) -> List[Variant]:
        """Returns the variants that were handed to the backends."""
        to_send = watched_variants(events, self.watch_flags)
        if not to_send:
            logger.info("No watched variants among %d stock event(s); nothing to send.", len(events))
            return []

        for name, send in self.backends.items():
            try:
                send(to_send)
            except Exception:
                logger.exception("Backend %s failed to deliver stock alert", name)
        return to_send


__all__ = ["Backend", "Dispatcher"]
