import itertools
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("LLM_ENABLED", "0")

from neujobscan.core.errors import (  # noqa: E402
    ParsingError,
    PersistenceError,
    PipelineStageError,
    ScanTimeoutError,
    ValidationError,
)
from neujobscan.services.history_store import SqliteScanHistoryStore  # noqa: E402
from neujobscan.services.llm import LLMTimeoutError  # noqa: E402
from neujobscan.services.scan_service import ScanService  # noqa: E402
from tests.fixtures import JOB_TEXT, RESUME_TEXT  # noqa: E402


class _FailingStore:
    def append(self, user_id, scan):
        raise PersistenceError("disk full")

    def list(self, user_id, limit=None):
        raise OSError("database is gone")

    def purge_older_than(self, cutoff):
        return 0


class ScanServiceTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = SqliteScanHistoryStore(os.path.join(self._tmp.name, "history.db"))
        self.service = ScanService(self.store)

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def test_perform_scan_builds_full_response_and_records_history(self):
        result = self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1", "resume.txt")

        self.assertRegex(result.scan_id, r"^scan_\d+_[0-9a-f]{8}$")
        self.assertEqual(result.user_id, "user-1")
        self.assertEqual(result.file_name, "resume.txt")
        self.assertEqual(result.job_title, "Senior Backend Engineer")
        self.assertTrue(0 <= result.overall_score <= 100)
        self.assertEqual(result.breakdown.keyword_match, result.keyword_score)
        self.assertEqual(result.breakdown.ats_compliance, result.ats_score)
        self.assertEqual(result.format_score, result.resume_analysis.structure_score)
        self.assertEqual(result.explanation.scan_id, result.scan_id)
        self.assertEqual(len(result.recommendations), len(set(result.recommendations)))

        history = self.service.get_scan_history("user-1")
        self.assertEqual([scan.scan_id for scan in history], [result.scan_id])

    def test_history_is_most_recent_first(self):
        first = self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")
        second = self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")
        history = self.service.get_scan_history("user-1")
        self.assertEqual([scan.scan_id for scan in history], [second.scan_id, first.scan_id])
        self.assertEqual(len(self.service.get_scan_history("user-1", limit=1)), 1)

    def test_match_stage_reuses_the_index_and_keyword_result(self):
        with patch(
            "neujobscan.scoring.matcher.match_keywords",
            side_effect=AssertionError("keywords matched twice"),
        ), patch(
            "neujobscan.scoring.matcher.ResumeIndex",
            side_effect=AssertionError("resume indexed twice"),
        ):
            result = self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")
        self.assertEqual(result.keyword_score, result.keyword_matches.match_score)

    def test_missing_inputs_raise_validation_error(self):
        with self.assertRaises(ValidationError):
            self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "  ")
        with self.assertRaises(ValidationError):
            self.service.perform_scan("", JOB_TEXT, "user-1")
        with self.assertRaises(ValidationError):
            self.service.perform_scan(RESUME_TEXT, "   ", "user-1")
        with self.assertRaises(ValidationError):
            self.service.get_scan_history("")

    def test_unparseable_resume_propagates_parsing_error(self):
        with self.assertRaises(ParsingError):
            self.service.perform_scan("1234 5678", JOB_TEXT, "user-1")

    def test_history_failure_is_logged_and_scan_still_returned(self):
        service = ScanService(_FailingStore())
        with self.assertLogs("neujobscan.services.scan_service", level="ERROR") as captured:
            result = service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")

        self.assertTrue(result.scan_id.startswith("scan_"))
        self.assertTrue(any("scan_history_persist_failed" in line for line in captured.output))

    def test_history_read_failure_becomes_persistence_error(self):
        with self.assertRaises(PersistenceError):
            ScanService(_FailingStore()).get_scan_history("user-1")

    def test_stage_failure_names_the_stage(self):
        with patch(
            "neujobscan.services.scan_service.compute_skill_gaps",
            side_effect=RuntimeError("boom"),
        ):
            with self.assertLogs("neujobscan.services.scan_service", level="ERROR"):
                with self.assertRaises(PipelineStageError) as ctx:
                    self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")

        self.assertEqual(ctx.exception.stage, "skill-gap")
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(self.service.get_scan_history("user-1"), [])

    def test_exceeding_budget_raises_timeout_with_stage(self):
        ticks = itertools.count(start=0, step=10)
        service = ScanService(self.store, timeout_s=1, clock=lambda: next(ticks))

        with self.assertRaises(ScanTimeoutError) as ctx:
            service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")

        self.assertEqual(ctx.exception.stage, "parse")
        self.assertEqual(ctx.exception.extra_payload(), {"stage": "parse", "timeout": True})

    def test_llm_timeout_surfaces_as_scan_timeout(self):
        with patch(
            "neujobscan.services.scan_service.build_explanation",
            side_effect=LLMTimeoutError("slow"),
        ):
            with self.assertRaises(ScanTimeoutError) as ctx:
                self.service.perform_scan(RESUME_TEXT, JOB_TEXT, "user-1")
        self.assertEqual(ctx.exception.stage, "explanation")


if __name__ == "__main__":
    unittest.main()
