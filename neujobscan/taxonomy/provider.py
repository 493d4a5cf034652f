from __future__ import annotations

from typing import Protocol


class TaxonomyProvider(Protocol):
    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        """Return normalized text and optional canonical skill ID."""

    def categorize(self, raw: str) -> str:
        """Return one of: technical, soft, language, tool."""

    def display_name(self, canonical_id: str) -> str:
        """Return the catalogue spelling for a canonical skill ID."""

    def known_skills(self) -> list[str]:
        """Return canonical IDs of every catalogued skill."""

    def is_high_demand(self, canonical_id: str) -> bool:
        """Return whether the skill is flagged as high demand."""
