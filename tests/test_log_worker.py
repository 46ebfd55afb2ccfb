from __future__ import annotations

import io
import json
import signal
import tempfile
import threading
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import patch

import api.log_worker as log_worker_mod
from api.settings import AnalyzerSettings


class LogWorkerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.root = Path(self._tmpdir.name)
        (self.root / "2024-03-01.md").write_text("## Health log\n- Ate coffee — headache 30min later\n", encoding="utf-8")
        (self.root / "2024-03-02.md").write_text("## Health log\nFoods: coffee\nSymptoms: headache, nausea\n", encoding="utf-8")
        (self.root / "notes.md").write_text("## Health log\n- Ate cake — nausea\n", encoding="utf-8")

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def test_main_prints_analysis_json(self) -> None:
        out = io.StringIO()
        with patch.object(log_worker_mod, "_install_cancel_handler"), redirect_stdout(out):
            log_worker_mod.main(["--notes-dir", str(self.root), "--extractor", "heuristic"])
        payload = json.loads(out.getvalue())
        self.assertFalse(payload["cancelled"])
        self.assertEqual(payload["summary"]["entries"], 2)
        top = payload["associations"][0]
        self.assertEqual(top["trigger"], {"type": "food", "name": "coffee"})
        self.assertEqual(top["symptom"], "headache")
        self.assertEqual(top["total_count"], 2)

    def test_tag_option_switches_selection(self) -> None:
        (self.root / "notes.md").write_text("#daily\n## Health log\n- Ate cake — nausea\n", encoding="utf-8")
        out = io.StringIO()
        with patch.object(log_worker_mod, "_install_cancel_handler"), redirect_stdout(out):
            log_worker_mod.main(["--notes-dir", str(self.root), "--tag", "#daily"])
        payload = json.loads(out.getvalue())
        self.assertEqual([entry["date"] for entry in payload["entries"]], ["notes"])

    def test_cancelled_run_returns_no_entries(self) -> None:
        cancel_event = threading.Event()
        cancel_event.set()
        result = log_worker_mod.run_once(str(self.root), settings=AnalyzerSettings(), cancel_event=cancel_event)
        self.assertTrue(result.cancelled)
        self.assertEqual(result.entries, [])

    def test_interrupt_sets_cancel_flag(self) -> None:
        cancel_event = threading.Event()
        with patch.object(log_worker_mod.signal, "signal") as install:
            log_worker_mod._install_cancel_handler(cancel_event)
        signum, handler = install.call_args.args
        self.assertEqual(signum, signal.SIGINT)
        handler(signal.SIGINT, None)
        self.assertTrue(cancel_event.is_set())


if __name__ == "__main__":
    unittest.main()
