import dataclasses
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_DATA_DIR = tempfile.mkdtemp(prefix="neujobscan-api-")
os.environ.setdefault("LLM_ENABLED", "0")
os.environ.setdefault("RATE_LIMIT_ENABLED", "0")
os.environ.setdefault("HISTORY_DB_PATH", os.path.join(_DATA_DIR, "history.db"))
os.environ.setdefault("SESSION_DB_PATH", os.path.join(_DATA_DIR, "sessions.db"))

from fastapi.testclient import TestClient  # noqa: E402

from neujobscan.api.v1.dependencies import get_history_store  # noqa: E402
from neujobscan.core.config import settings  # noqa: E402
from neujobscan.core.errors import PersistenceError  # noqa: E402
from neujobscan.core.rate_limit import limiter  # noqa: E402
from neujobscan.core.security import get_session_store  # noqa: E402
from neujobscan.core.session_store import SqliteSessionStore  # noqa: E402
from neujobscan.main import app  # noqa: E402
from neujobscan.normalize.job_parser import parse_job  # noqa: E402
from neujobscan.normalize.resume_parser import parse_resume  # noqa: E402
from neujobscan.scoring.skill_gaps import compute_skill_gaps  # noqa: E402
from neujobscan.services.history_store import SqliteScanHistoryStore  # noqa: E402
from tests.fixtures import JOB_TEXT, RESUME_TEXT  # noqa: E402


class _BrokenHistoryStore:
    def append(self, user_id, scan):
        raise PersistenceError("database is locked")

    def list(self, user_id, limit=None):
        return []

    def purge_older_than(self, cutoff):
        return 0


def _dump(model):
    return model.model_dump(mode="json", by_alias=True)


class _ApiTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._limiter_enabled = limiter.enabled
        limiter.enabled = False

    @classmethod
    def tearDownClass(cls):
        limiter.enabled = cls._limiter_enabled

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.history = SqliteScanHistoryStore(os.path.join(self._tmp.name, "history.db"))
        self.sessions = SqliteSessionStore(os.path.join(self._tmp.name, "sessions.db"))
        app.dependency_overrides[get_history_store] = lambda: self.history
        app.dependency_overrides[get_session_store] = lambda: self.sessions
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.history.close()
        self._tmp.cleanup()

    def scan(self, user_id="user-1", **overrides):
        payload = {"resumeText": RESUME_TEXT, "jobText": JOB_TEXT, "userId": user_id, **overrides}
        return self.client.post("/v1/scan", json=payload)


class HealthAndScanApiTests(_ApiTestCase):
    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})

    def test_scan_returns_camel_case_envelope(self):
        response = self.scan(fileName="resume.txt")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        data = body["data"]
        self.assertRegex(data["scanId"], r"^scan_\d+_[0-9a-f]{8}$")
        self.assertEqual(data["fileName"], "resume.txt")
        self.assertTrue(0 <= data["overallScore"] <= 100)
        self.assertIn("keywordMatch", data["breakdown"])
        self.assertIn("missingSkills", data["skillGaps"])

    def test_scan_without_user_id_is_bad_request(self):
        response = self.client.post("/v1/scan", json={"resumeText": RESUME_TEXT, "jobText": JOB_TEXT})
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["status"], 400)
        self.assertIn("userId", body["error"])

    def test_unreadable_resume_is_unprocessable(self):
        response = self.scan(resumeText="1234 5678")
        self.assertEqual(response.status_code, 422)
        body = response.json()
        self.assertEqual(body["documentType"], "resume")
        self.assertEqual(body["text"], "1234 5678")

    def test_stage_failure_reports_stage(self):
        with patch(
            "neujobscan.services.scan_service.compute_skill_gaps",
            side_effect=RuntimeError("boom"),
        ):
            response = self.scan()
        self.assertEqual(response.status_code, 500)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["stage"], "skill-gap")

    def test_history_failure_does_not_fail_scan(self):
        app.dependency_overrides[get_history_store] = lambda: _BrokenHistoryStore()
        with self.assertLogs("neujobscan.services.scan_service", level="ERROR") as captured:
            response = self.scan()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(any("scan_history_persist_failed" in line for line in captured.output))

    def test_scan_history_listing(self):
        first = self.scan().json()["data"]["scanId"]
        second = self.scan().json()["data"]["scanId"]
        self.scan(user_id="someone-else")

        response = self.client.get("/v1/scan", params={"userId": "user-1"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([item["scanId"] for item in response.json()["data"]], [second, first])

        limited = self.client.get("/v1/scan", params={"userId": "user-1", "limit": 1})
        self.assertEqual(len(limited.json()["data"]), 1)

        missing = self.client.get("/v1/scan")
        self.assertEqual(missing.status_code, 400)
        self.assertFalse(missing.json()["success"])


class MatchAndDocumentApiTests(_ApiTestCase):
    def setUp(self):
        super().setUp()
        self.resume = parse_resume(RESUME_TEXT)
        self.job = parse_job(JOB_TEXT)

    def test_match(self):
        response = self.client.post(
            "/v1/match",
            json={"resumeData": _dump(self.resume), "jobData": _dump(self.job)},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertTrue(data["id"].startswith("match_"))
        self.assertTrue(0 <= data["overallScore"] <= 100)
        self.assertIn("matchPercentage", data)

    def test_match_without_job_is_bad_request(self):
        response = self.client.post("/v1/match", json={"resumeData": _dump(self.resume)})
        self.assertEqual(response.status_code, 400)
        self.assertIn("jobData", response.json()["error"])

    def test_rewrite(self):
        gaps = compute_skill_gaps(self.resume, self.job)
        response = self.client.post(
            "/v1/rewrite",
            json={"resumeData": _dump(self.resume), "jobData": _dump(self.job), "skillGaps": _dump(gaps)},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertIn("suggestions", data)
        for suggestion in data["suggestions"]:
            self.assertGreaterEqual(suggestion["atsScore"]["after"], suggestion["atsScore"]["before"])

    def test_parse_job_and_resume(self):
        job = self.client.post("/v1/job/parse", json={"content": JOB_TEXT})
        self.assertEqual(job.status_code, 200)
        self.assertEqual(job.json()["data"]["parsedData"]["title"], "Senior Backend Engineer")
        self.assertIsNotNone(job.json()["data"]["analysis"])

        resume = self.client.post("/v1/resume/parse", json={"content": RESUME_TEXT})
        self.assertEqual(resume.status_code, 200)
        self.assertEqual(
            resume.json()["data"]["parsedData"]["personalInfo"]["email"],
            "jane.doe@example.com",
        )

        empty = self.client.post("/v1/job/parse", json={"content": ""})
        self.assertEqual(empty.status_code, 400)

    def test_upload_text_resume(self):
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("resume.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["fileType"], "txt")
        self.assertEqual(data["fileSize"], len(RESUME_TEXT.encode("utf-8")))
        self.assertEqual(data["parsedData"]["personalInfo"]["email"], "jane.doe@example.com")

    def test_upload_rejects_unsupported_type(self):
        response = self.client.post(
            "/v1/resume/upload",
            files={"file": ("photo.png", b"\x89PNG\r\n", "image/png")},
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("Unsupported file type", response.json()["error"])

    def test_upload_rejects_oversized_file(self):
        small_limit = dataclasses.replace(settings, upload_max_bytes=4096)
        with patch("neujobscan.api.v1.documents.settings", small_limit):
            response = self.client.post(
                "/v1/resume/upload",
                files={"file": ("resume.txt", b"a" * 5000, "text/plain")},
            )
        self.assertEqual(response.status_code, 400)
        self.assertIn("too large", response.json()["error"])


class CoverLetterApiTests(_ApiTestCase):
    def setUp(self):
        super().setUp()
        self.payload = {
            "resumeData": _dump(parse_resume(RESUME_TEXT)),
            "jobData": _dump(parse_job(JOB_TEXT)),
        }

    def test_generate_defaults_to_professional(self):
        response = self.client.post("/v1/cover-letter", json=self.payload)
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["template"], "professional")
        self.assertEqual(data["company"], "Acme Corp")
        self.assertTrue(data["content"].startswith("Dear Hiring Manager,"))
        self.assertIn("Senior Backend Engineer", data["content"])
        self.assertIn("Python", data["highlightedSkills"])
        self.assertNotIn("Kubernetes", data["highlightedSkills"])
        self.assertEqual(data["generationMode"], "heuristic")
        self.assertGreater(data["wordCount"], 0)

    def test_generate_with_template_and_hiring_manager(self):
        response = self.client.post(
            "/v1/cover-letter",
            json={**self.payload, "template": "modern", "hiringManager": "Dana"},
        )
        self.assertEqual(response.status_code, 200)
        content = response.json()["data"]["content"]
        self.assertTrue(content.startswith("Hi Dana,"))
        self.assertIn("Best regards,", content)

    def test_unknown_template_is_bad_request(self):
        response = self.client.post("/v1/cover-letter", json={**self.payload, "template": "poetic"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("template", response.json()["error"])

    def test_missing_resume_is_bad_request(self):
        response = self.client.post("/v1/cover-letter", json={"jobData": self.payload["jobData"]})
        self.assertEqual(response.status_code, 400)
        self.assertIn("resumeData", response.json()["error"])

    def test_export_formats(self):
        content = "Dear Hiring Manager,\n\n<b>Hello</b>\n\nSincerely,\nJane Doe"
        html = self.client.post("/v1/cover-letter/export", json={"content": content})
        self.assertEqual(html.status_code, 200)
        self.assertTrue(html.headers["content-type"].startswith("text/html"))
        self.assertIn('filename="cover-letter.html"', html.headers["content-disposition"])
        self.assertIn("&lt;b&gt;Hello&lt;/b&gt;", html.text)

        word = self.client.post("/v1/cover-letter/export", json={"content": content, "format": "word"})
        self.assertEqual(word.status_code, 200)
        self.assertIn('filename="cover-letter.doc"', word.headers["content-disposition"])
        self.assertIn(b"Dear Hiring Manager,\r\n\r\n", word.content)

        text = self.client.post("/v1/cover-letter/export", json={"content": content, "format": "txt"})
        self.assertEqual(text.text, content)

    def test_export_rejects_blank_content(self):
        response = self.client.post("/v1/cover-letter/export", json={"content": "   "})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Content is required", response.json()["error"])


class AnalyticsPaymentsAuthApiTests(_ApiTestCase):
    def test_dashboard_and_export(self):
        self.scan()

        dashboard = self.client.get("/v1/analytics/dashboard", params={"userId": "user-1"})
        self.assertEqual(dashboard.status_code, 200)
        data = dashboard.json()["data"]
        self.assertEqual(data["totalMatches"], 1)
        self.assertEqual(data["recentActivity"][0]["type"], "match_created")

        export = self.client.post("/v1/reports/export", json={"userId": "user-1", "format": "csv"})
        self.assertEqual(export.status_code, 200)
        self.assertTrue(export.headers["content-type"].startswith("text/csv"))
        self.assertIn("attachment;", export.headers["content-disposition"])
        self.assertTrue(export.text.startswith("scanId,"))

        bad = self.client.post("/v1/reports/export", json={"userId": "user-1", "format": "pdf"})
        self.assertEqual(bad.status_code, 400)

    def test_create_checkout_session(self):
        response = self.client.post(
            "/v1/payments/create-session",
            json={"plan": "premium", "email": "jane@example.com"},
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()["data"]
        self.assertEqual(data["provider"], "mock")
        self.assertIn("plan=premium", data["checkoutUrl"])
        self.assertTrue(data["sessionId"].startswith("cs_mock_"))

        unknown = self.client.post(
            "/v1/payments/create-session",
            json={"plan": "platinum", "email": "jane@example.com"},
        )
        self.assertEqual(unknown.status_code, 400)

        invalid_email = self.client.post(
            "/v1/payments/create-session",
            json={"plan": "basic", "email": "not-an-email"},
        )
        self.assertEqual(invalid_email.status_code, 400)

    def test_session_lifecycle(self):
        created = self.client.post("/v1/auth/session", json={"email": "Jane@Example.com", "name": "Jane"})
        self.assertEqual(created.status_code, 200)
        token = created.json()["data"]["token"]
        headers = {"Authorization": f"Bearer {token}"}

        current = self.client.get("/v1/auth/session", headers=headers)
        self.assertEqual(current.status_code, 200)
        self.assertEqual(current.json()["data"]["email"], "jane@example.com")

        self.assertEqual(self.client.get("/v1/auth/session").status_code, 401)

        destroyed = self.client.delete("/v1/auth/session", headers=headers)
        self.assertTrue(destroyed.json()["data"]["destroyed"])
        self.assertEqual(self.client.get("/v1/auth/session", headers=headers).status_code, 401)


if __name__ == "__main__":
    unittest.main()
