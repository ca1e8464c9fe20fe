import contextlib
import io
import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import yaml

from keymap_viewer.__main__ import main
from keymap_viewer.telemetry import KeyBitset, KeyboardState, encode_frame

LAYER = [f"KC_{c}" for c in "QWERTYUIOPASDFGHJKLZXCVBNM"] + ["KC_SPC"] * 22


def run_cli(*argv: str) -> str:
    out = io.StringIO()
    with mock.patch.object(sys, "argv", ["keymap-viewer", *argv]), contextlib.redirect_stdout(out):
        main()
    return out.getvalue()


class TestCli(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()  # pylint: disable=consider-using-with
        self.addCleanup(self.tmp.cleanup)
        self.keymap = Path(self.tmp.name) / "keymap.json"
        self.keymap.write_text(
            json.dumps({"keyboard": "planck/rev6", "layers": [LAYER, LAYER], "layer_names": ["Base", "Lower"]}),
            encoding="utf-8",
        )

    def test_infer(self):
        self.assertEqual(run_cli("infer", "48"), "4x12\n")
        self.assertEqual(run_cli("infer", "48", "--hint", "6x8"), "6x8\n")

    def test_infer_indeterminate(self):
        with self.assertLogs("keymap_viewer", level="ERROR"), self.assertRaises(SystemExit) as cm:
            run_cli("infer", "61")
        self.assertEqual(cm.exception.code, 1)

    def test_parse(self):
        dump = yaml.safe_load(run_cli("parse", str(self.keymap)))
        self.assertEqual(dump["keyboard"], "planck/rev6")
        self.assertEqual((dump["rows"], dump["cols"]), (4, 12))
        self.assertEqual(list(dump["layers"]), ["Base", "Lower"])
        self.assertEqual(dump["layers"]["Base"][0][:3], ["KC_Q", "KC_W", "KC_E"])

    def test_parse_grid_mismatch(self):
        with self.assertLogs("keymap_viewer", level="ERROR"), self.assertRaises(SystemExit) as cm:
            run_cli("parse", str(self.keymap), "--grid", "5x10")
        self.assertEqual(cm.exception.code, 1)

    def test_parse_bad_grid_argument(self):
        with contextlib.redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as cm:
            run_cli("parse", str(self.keymap), "--grid", "twelve")
        self.assertEqual(cm.exception.code, 2)

    def test_monitor_mock(self):
        output = run_cli("monitor", "--mock", "--keymap", str(self.keymap), "--duration", "0.3")
        lines = output.splitlines()
        self.assertTrue(lines)
        self.assertRegex(lines[0], r"^layer Base: 0,\d+=\w+$")

    def test_monitor_capture_file(self):
        capture = Path(self.tmp.name) / "capture.txt"
        capture.write_bytes(b"LAYER:1\nPRESS:0,1\nEND\n")
        output = run_cli("monitor", str(capture), "--keys", "48", "--protocol", "console", "--duration", "2")
        self.assertEqual(output.splitlines()[-1], "layer 1: [(0, 1)]")

    def test_monitor_binary_capture_file(self):
        capture = Path(self.tmp.name) / "capture.bin"
        capture.write_bytes(
            encode_frame(KeyboardState(0, KeyBitset.from_indices([0], 48)), 48)
            + encode_frame(KeyboardState(2, KeyBitset.from_indices([13], 48)), 48)
        )
        output = run_cli("monitor", str(capture), "--keys", "48", "--duration", "2")
        self.assertEqual(output.splitlines()[-1], "layer 2: [(1, 1)]")

    def test_dump_config(self):
        config = yaml.safe_load(run_cli("dump-config"))
        self.assertEqual(list(config), ["parse_config", "layout_config", "telemetry_config"])
        self.assertEqual(config["layout_config"]["min_aspect"], 2.0)

    def test_config_file(self):
        config = Path(self.tmp.name) / "config.yaml"
        config.write_text("layout_config:\n  min_aspect: 1.0\n  max_aspect: 2.0\n", encoding="utf-8")
        self.assertEqual(run_cli("-c", str(config), "infer", "48"), "6x8\n")


if __name__ == "__main__":
    unittest.main()
