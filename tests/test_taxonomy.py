import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from neujobscan.taxonomy.local_taxonomy import LocalTaxonomy, clean_term  # noqa: E402


class TaxonomyTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.taxonomy = LocalTaxonomy()

    def test_synonym_normalization_resolves_canonical_id(self):
        normalized, canonical_id = self.taxonomy.normalize_skill("Client Management")
        self.assertEqual(normalized, "client management")
        self.assertEqual(canonical_id, "stakeholder management")

    def test_catalogued_name_is_its_own_canonical_id(self):
        self.assertEqual(self.taxonomy.normalize_skill("Kubernetes"), ("kubernetes", "kubernetes"))
        self.assertEqual(self.taxonomy.normalize_skill("k8s"), ("k8s", "kubernetes"))

    def test_unknown_term_has_no_canonical_id(self):
        normalized, canonical_id = self.taxonomy.normalize_skill("  Basket Weaving ")
        self.assertEqual(normalized, "basket weaving")
        self.assertIsNone(canonical_id)

    def test_categories_cover_programming_and_spoken_languages(self):
        self.assertEqual(self.taxonomy.categorize("Python"), "language")
        self.assertEqual(self.taxonomy.categorize("Spanish"), "language")
        self.assertEqual(self.taxonomy.categorize("Leadership"), "soft")
        self.assertEqual(self.taxonomy.categorize("Jira"), "tool")
        self.assertEqual(self.taxonomy.categorize("Docker"), "technical")

    def test_find_skills_returns_canonical_ids_in_order_of_mention(self):
        found = self.taxonomy.find_skills("Built services with Node.js, Postgres and Amazon Web Services; deployed on k8s.")
        self.assertEqual(found, ["node.js", "postgresql", "aws", "kubernetes"])

    def test_find_skills_skips_ambiguous_short_terms(self):
        found = self.taxonomy.find_skills("We go to great lengths and grade on a C curve.")
        self.assertNotIn("go", found)
        self.assertNotIn("c", found)

    def test_display_name_and_demand_flags(self):
        self.assertEqual(self.taxonomy.display_name("aws"), "AWS")
        self.assertTrue(self.taxonomy.is_high_demand("kubernetes"))
        self.assertFalse(self.taxonomy.is_high_demand("payroll"))
        self.assertTrue(self.taxonomy.is_ambiguous("go"))

    def test_clean_term_strips_noise(self):
        self.assertEqual(clean_term("  C++ / C# !! "), "c++ / c#")


if __name__ == "__main__":
    unittest.main()
