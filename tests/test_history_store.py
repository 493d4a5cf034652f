import os
import sys
import tempfile
import threading
import unittest
from datetime import datetime, timezone
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("LLM_ENABLED", "0")

from neujobscan.core.errors import PersistenceError  # noqa: E402
from neujobscan.services.history_store import SqliteScanHistoryStore  # noqa: E402
from neujobscan.services.scan_service import ScanService  # noqa: E402
from tests.fixtures import JOB_TEXT, RESUME_TEXT  # noqa: E402


class SqliteScanHistoryStoreTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls._seed_dir = tempfile.TemporaryDirectory()
        seed_store = SqliteScanHistoryStore(os.path.join(cls._seed_dir.name, "seed.db"))
        cls.scan = ScanService(seed_store).perform_scan(RESUME_TEXT, JOB_TEXT, "user-seed")
        seed_store.close()

    @classmethod
    def tearDownClass(cls):
        cls._seed_dir.cleanup()

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = SqliteScanHistoryStore(os.path.join(self._tmp.name, "nested", "history.db"))

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def _scan(self, scan_id, **updates):
        return self.scan.model_copy(update={"scan_id": scan_id, **updates})

    def test_append_and_list_round_trip_most_recent_first(self):
        older = self._scan("scan_1", timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))
        newer = self._scan("scan_2", timestamp=datetime(2024, 2, 1, tzinfo=timezone.utc))
        self.store.append("user-1", older)
        self.store.append("user-1", newer)
        self.store.append("user-2", self._scan("scan_3"))

        history = self.store.list("user-1")
        self.assertEqual([scan.scan_id for scan in history], ["scan_2", "scan_1"])
        self.assertEqual(history[0].overall_score, self.scan.overall_score)
        self.assertEqual([scan.scan_id for scan in self.store.list("user-1", limit=1)], ["scan_2"])
        self.assertEqual(self.store.list("nobody"), [])

    def test_concurrent_appends_for_one_user_all_persist(self):
        errors = []

        def worker(index):
            try:
                self.store.append("user-1", self._scan(f"scan_{index}"))
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(index,)) for index in range(12)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(
            {scan.scan_id for scan in self.store.list("user-1")},
            {f"scan_{index}" for index in range(12)},
        )

    def test_purge_removes_only_expired_rows(self):
        self.store.append("user-1", self._scan("old", timestamp=datetime(2020, 1, 1, tzinfo=timezone.utc)))
        self.store.append("user-1", self._scan("new", timestamp=datetime(2030, 1, 1, tzinfo=timezone.utc)))
        deleted = self.store.purge_older_than(datetime(2025, 1, 1, tzinfo=timezone.utc))
        self.assertEqual(deleted, 1)
        self.assertEqual([scan.scan_id for scan in self.store.list("user-1")], ["new"])

    def test_unusable_database_raises_persistence_error(self):
        store = SqliteScanHistoryStore(self._tmp.name)
        with self.assertRaises(PersistenceError):
            store.list("user-1")


if __name__ == "__main__":
    unittest.main()
