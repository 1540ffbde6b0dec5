"""Budgets for a crawl run."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional


@dataclass
class CrawlerConfig:
    """Page, depth, concurrency and time budgets for one traversal."""

    max_pages: int = 50
    max_depth: int = 1
    batch_size: int = 5
    page_timeout: float = 10.0
    seed_timeout: float = 20.0
    probe_timeout: Optional[float] = 5.0
    run_timeout: Optional[float] = None
    # A failed seed fetch aborts the run instead of yielding zero pages
    require_seed: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_pages < 1:
            raise ValueError("max_pages must be >= 1")

        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")

        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        if self.page_timeout <= 0 or self.seed_timeout <= 0:
            raise ValueError("page_timeout and seed_timeout must be > 0")

        if self.probe_timeout is not None and self.probe_timeout <= 0:
            raise ValueError("probe_timeout must be > 0 or None")

        if self.run_timeout is not None and self.run_timeout <= 0:
            raise ValueError("run_timeout must be > 0 or None")

    @classmethod
    def native(cls) -> "CrawlerConfig":
        """Seed page plus up to 49 of its links, no global deadline."""
        return cls()

    @classmethod
    def advanced(cls) -> "CrawlerConfig":
        """Small bounded crawl that must finish within 20 seconds."""
        return cls(
            max_pages=5,
            max_depth=1,
            page_timeout=10.0,
            seed_timeout=10.0,
            probe_timeout=None,
            run_timeout=20.0,
            require_seed=False,
        )


class Deadline:
    """Wall-clock budget shared by every fetch of one run.

    ``Deadline(None)`` never expires.
    """

    def __init__(self, seconds: Optional[float], clock=time.monotonic) -> None:
        self.seconds = seconds
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def clamp(self, timeout: float) -> float:
        """Per-request timeout that does not outlive the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return max(0.001, min(timeout, remaining))
