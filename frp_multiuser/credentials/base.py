"""
Base credential store interface.

Purpose:
    Keep the request handler and the reload coordinator ignorant of how the
    current credential mapping is held, so tests can inject their own store.

Testing & Coverage:
    Abstract methods are not executed directly; they are marked
    `# pragma: no cover`.
"""

from abc import ABC, abstractmethod
from typing import Mapping, Optional


class BaseCredentialStore(ABC):
    """Abstract base class for credential stores."""

    @abstractmethod  # pragma: no cover
    def lookup(self, username: str) -> Optional[str]:
        """
        Return the password stored for ``username``, or None if unknown.

        Must be safe for any number of concurrent callers and must not wait
        on a concurrent replace.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def replace(self, mapping: Mapping[str, str]) -> None:
        """
        Install ``mapping`` as the current credentials, as one atomic step.

        LLM Prompt Example:
            "Explain copy-on-write snapshot replacement and why readers never
            observe a half-updated table."
        """
        raise NotImplementedError
