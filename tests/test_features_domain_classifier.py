import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from neujobscan.features.domain_classifier import (  # noqa: E402
    classify_domain,
    classify_domain_from_job,
    missing_domain_keywords,
)
from neujobscan.schemas.job import JobSkill, ParsedJobData  # noqa: E402


class DomainClassifierTests(unittest.TestCase):
    def test_sales_job_classifies_as_sales(self):
        job = ParsedJobData(
            title="Senior Sales Account Executive",
            requirements=[
                "Must own sales pipeline and hit quota targets",
                "Experience with CRM, prospecting, and deal closing",
            ],
        )

        classification = classify_domain_from_job(job)
        self.assertEqual(classification.domain_primary, "sales")
        self.assertGreater(classification.confidence, 0.5)
        self.assertFalse(classification.using_general_expectations)

    def test_backend_job_classifies_as_tech(self):
        job = ParsedJobData(
            title="Backend Engineer",
            description="Build Python microservices on AWS.",
            skills=[JobSkill(name="Docker"), JobSkill(name="Kubernetes")],
        )
        self.assertEqual(classify_domain_from_job(job).domain_primary, "tech")

    def test_text_without_domain_terms_uses_general_expectations(self):
        classification = classify_domain("Friendly and punctual.")
        self.assertEqual(classification.domain_primary, "other")
        self.assertTrue(classification.using_general_expectations)

    def test_missing_domain_keywords_skips_terms_already_present(self):
        missing = missing_domain_keywords("sales", "Managed the CRM and a growing sales pipeline.")
        self.assertNotIn("crm", missing)
        self.assertNotIn("pipeline", missing)
        self.assertIn("quota", missing)
        self.assertEqual(missing_domain_keywords("unknown", "anything"), [])


if __name__ == "__main__":
    unittest.main()
