from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from .provider import TaxonomyProvider

_CATEGORIES = ("language", "technical", "soft", "tool")
_CLEAN_RE = re.compile(r"[^a-z0-9\+#\./\- ]+")
_SPACE_RE = re.compile(r"\s+")


def clean_term(raw: str) -> str:
    lowered = _CLEAN_RE.sub(" ", (raw or "").lower())
    return _SPACE_RE.sub(" ", lowered).strip().rstrip(" ./")


class LocalTaxonomy(TaxonomyProvider):
    def __init__(
        self,
        synonyms_path: str | Path | None = None,
        catalog_path: str | Path | None = None,
    ) -> None:
        synonyms_file = Path(synonyms_path) if synonyms_path else Path(__file__).with_name("synonyms.json")
        catalog_file = Path(catalog_path) if catalog_path else Path(__file__).with_name("catalog.json")
        self._synonyms = self._load_synonyms(synonyms_file)
        catalog = self._load_json(catalog_file)

        self._categories: dict[str, str] = {}
        self._display: dict[str, str] = {}
        for category in _CATEGORIES:
            for name in catalog.get(category, []):
                canonical_id = str(name).strip().lower()
                self._categories.setdefault(canonical_id, category)
                self._display.setdefault(canonical_id, str(name).strip())

        self._high_demand = {str(name).strip().lower() for name in catalog.get("high_demand", [])}
        self._ambiguous = {str(name).strip().lower() for name in catalog.get("ambiguous", [])}
        self.business_terms: tuple[str, ...] = tuple(
            str(term).strip().lower() for term in catalog.get("business_terms", [])
        )
        self._scan_pattern = self._build_scan_pattern()

    @staticmethod
    def _load_json(path: Path) -> Any:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    @classmethod
    def _load_synonyms(cls, path: Path) -> dict[str, str]:
        raw = cls._load_json(path)
        return {str(key).strip().lower(): str(value) for key, value in raw.items()}

    def _build_scan_pattern(self) -> re.Pattern[str]:
        phrases = {
            phrase
            for phrase in list(self._categories) + list(self._synonyms)
            if phrase not in self._ambiguous and len(phrase) > 1
        }
        ordered = sorted(phrases, key=len, reverse=True)
        alternation = "|".join(re.escape(phrase) for phrase in ordered)
        return re.compile(rf"(?<![a-z0-9])(?:{alternation})(?![a-z0-9\+#])")

    def normalize_skill(self, raw: str) -> tuple[str, str | None]:
        normalized = clean_term(raw)
        canonical_skill_id = self._synonyms.get(normalized)
        if canonical_skill_id is None and normalized in self._categories:
            canonical_skill_id = normalized
        return normalized, canonical_skill_id

    def categorize(self, raw: str) -> str:
        normalized, canonical_id = self.normalize_skill(raw)
        if canonical_id and canonical_id in self._categories:
            return self._categories[canonical_id]
        for found in self.find_skills(normalized):
            return self._categories.get(found, "technical")
        return "technical"

    def display_name(self, canonical_id: str) -> str:
        return self._display.get(canonical_id, canonical_id)

    def known_skills(self) -> list[str]:
        return list(self._categories)

    def is_high_demand(self, canonical_id: str) -> bool:
        return canonical_id in self._high_demand

    def is_ambiguous(self, canonical_id: str) -> bool:
        return canonical_id in self._ambiguous

    def find_skills(self, text: str) -> list[str]:
        """Canonical IDs of catalogued skills mentioned in free text, in order of first mention."""
        found: list[str] = []
        for match in self._scan_pattern.finditer((text or "").lower()):
            phrase = match.group(0)
            canonical_id = self._synonyms.get(phrase, phrase)
            if canonical_id in self._categories and canonical_id not in found:
                found.append(canonical_id)
        return found
