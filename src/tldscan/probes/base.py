"""
Base protocol for availability probes

Defines the interface all probes must implement and the failure taxonomy
the retry policy uses to decide whether another attempt can help.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

from ..models import Available, Taken


class ProbeError(Exception):
    """Base exception for probe errors."""
    pass


class ProbeTransientError(ProbeError):
    """Temporary failure; a later attempt may succeed."""
    pass


class ProbeTimeout(ProbeTransientError):
    """The lookup did not answer in time."""
    pass


class RateLimitError(ProbeTransientError):
    """The source asked us to slow down."""

    def __init__(self, message: str = "Rate limited - try again later", retry_after: Optional[float] = None):
        super().__init__(message)
        self.retry_after = retry_after


class ProbeTerminalError(ProbeError):
    """Retrying cannot help (malformed domain, unsupported TLD, ...)."""
    pass


class MalformedDomainError(ProbeTerminalError):
    """The source rejected the domain as syntactically invalid."""
    pass


class UnsupportedTldError(ProbeTerminalError):
    """The source has no data for this TLD."""
    pass


class ProbeClient(ABC):
    """
    Abstract base class for availability probes.

    A probe answers one question for one fully-qualified domain: is it
    registered? It returns Available or Taken, or raises a ProbeError
    subclass. It never retries by itself; that is RetryPolicy's job.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Method identifier recorded on results (e.g. 'dns', 'rdap')."""
        pass

    @abstractmethod
    async def check(self, domain: str) -> Union[Available, Taken]:
        """
        Check whether a domain is registered.

        Args:
            domain: Full domain name (e.g. "example.com")

        Returns:
            Available or Taken

        Raises:
            ProbeTransientError: On timeouts, network errors, rate limits
            ProbeTerminalError: When retrying cannot help
        """
        pass

    async def close(self):
        """Release any network resources."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
