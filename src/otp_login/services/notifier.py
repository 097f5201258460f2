"""Notifier — abstract out-of-band delivery of one-time codes."""

from abc import ABC, abstractmethod


class BaseNotifier(ABC):
    """Delivers a code to an address over some out-of-band channel."""

    @abstractmethod
    async def notify(self, address: str, code: str) -> bool:
        """Deliver *code* to *address*.

        Returns ``True`` on success.  Implementations report transport
        failures by returning ``False`` rather than raising.
        """
