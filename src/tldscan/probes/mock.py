"""
Mock probe for testing

Returns scripted outcomes without touching the network.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from ..models import Available, Taken
from .base import ProbeClient, ProbeError, ProbeTransientError

# Long enough that any sane per-attempt timeout fires first
HANG_SECONDS = 3600.0

AVAILABLE = "available"
TAKEN = "taken"
TIMEOUT = "timeout"
TRANSIENT = "transient"


@dataclass
class MockProbe(ProbeClient):
    """
    Mock probe for testing.

    Each key of `scripts` is a TLD (".com") or full domain ("example.com");
    its value is a list of steps consumed one per call, the last step
    repeating once the list runs out. A step is one of:

    - "available" / "taken"
    - "timeout": hang until the caller's timeout fires
    - "transient": raise ProbeTransientError
    - an exception instance or class: raised as-is

    Domains without a script get `default` (a step, or a callable taking the
    domain and returning a step).
    """

    scripts: dict[str, list[Any]] = field(default_factory=dict)
    default: Union[str, Callable[[str], Any]] = AVAILABLE
    delay_seconds: float = 0.0
    delays: dict[str, float] = field(default_factory=dict)
    registrar: Optional[str] = "MockRegistrar"
    _name: str = "mock"
    calls: list[str] = field(default_factory=list, init=False)
    _positions: dict[str, int] = field(default_factory=dict, init=False)

    @property
    def name(self) -> str:
        return self._name

    def call_count(self, domain: str) -> int:
        return self.calls.count(domain.lower())

    def _next_step(self, domain: str, tld: str) -> Any:
        key = domain if domain in self.scripts else tld
        steps = self.scripts.get(key)
        if not steps:
            return self.default(domain) if callable(self.default) else self.default

        position = self._positions.get(key, 0)
        self._positions[key] = position + 1
        return steps[min(position, len(steps) - 1)]

    async def check(self, domain: str) -> Union[Available, Taken]:
        domain = domain.lower()
        tld = "." + domain.rsplit(".", 1)[-1]
        self.calls.append(domain)
        step = self._next_step(domain, tld)

        # Simulate latency
        delay = self.delays.get(domain, self.delays.get(tld, self.delay_seconds))
        if delay > 0:
            await asyncio.sleep(delay)

        if step == TIMEOUT:
            await asyncio.sleep(HANG_SECONDS)
        if step == TRANSIENT:
            raise ProbeTransientError(f"Simulated transient failure for {domain}")
        if isinstance(step, BaseException):
            raise step
        if isinstance(step, type) and issubclass(step, ProbeError):
            raise step(f"Simulated {step.__name__} for {domain}")
        if step == TAKEN:
            return Taken(method=self.name, registrar=self.registrar)
        if step == AVAILABLE:
            return Available(method=self.name)

        raise ValueError(f"Unknown mock step: {step!r}")
