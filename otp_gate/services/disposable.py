"""
Block-list of disposable (throwaway) mail domains.

Loaded once at startup from a newline-separated file.  If the file is
missing or unreadable the list is empty and every domain is accepted:
losing the block-list must never take the sign-in flow down with it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class DisposableDomains:
    def __init__(self, domains: Iterable[str] = ()) -> None:
        cleaned = (d.strip().lower().rstrip(".") for d in domains)
        self._domains = frozenset(d for d in cleaned if d and not d.startswith("#"))

    @classmethod
    def from_file(cls, path: str | Path | None) -> DisposableDomains:
        if not path:
            logger.info("No disposable mail list configured")
            return cls()
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError:
            logger.warning(
                "Failed loading disposable mail list from %s — no domain will be blocked",
                path,
                exc_info=True,
            )
            return cls()

        domains = cls(text.splitlines())
        logger.info("Loaded %d disposable mail domains from %s", len(domains), path)
        return domains

    def __len__(self) -> int:
        return len(self._domains)

    def is_disposable(self, domain: str) -> bool:
        """True if *domain* or any parent domain is block-listed."""
        labels = domain.strip().lower().rstrip(".").split(".")
        return any(".".join(labels[i:]) in self._domains for i in range(len(labels)))

    def is_disposable_address(self, address: str) -> bool:
        _, _, domain = address.rpartition("@")
        return bool(domain) and self.is_disposable(domain)
