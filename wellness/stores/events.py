# -*- coding: utf-8 -*-
"""Client stores — "data changed" signal for independent consumers (dashboards)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeSignal:
    domain: str
    action: str
    date: Optional[str] = None
    record_id: Optional[str] = None


Listener = Callable[[ChangeSignal], None]

ALL_DOMAINS = "*"


class EventBus:
    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, domain: str, listener: Listener) -> Callable[[], None]:
        self._listeners.setdefault(domain, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(domain, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def publish(self, signal: ChangeSignal) -> None:
        listeners = list(self._listeners.get(signal.domain, [])) + list(self._listeners.get(ALL_DOMAINS, []))
        for listener in listeners:
            try:
                listener(signal)
            except Exception:
                logger.exception("listener failed for %s/%s", signal.domain, signal.action)
