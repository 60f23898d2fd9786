"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..games.collapse import STORAGE_KEY
from ..storage import DeckStore


class TestDemo:

    def test_demo_runs_a_round(self, capsys):
        main(["demo", "--seed", "7"])

        out = capsys.readouterr().out
        assert "Composition valid: True" in out
        assert "Deck Locked + Primed" in out
        assert "Hand: " in out


class TestValidate:

    def test_valid_record(self, tmp_path, capsys):
        record = tmp_path / "record.json"
        record.write_text(json.dumps({
            "baseCounts": {"strike": 10, "guard": 8, "dash": 8},
            "nullCount": 5,
        }), encoding="utf-8")

        main(["validate", str(record)])

        out = capsys.readouterr().out
        assert "Base total: 26/26 (ok)" in out
        assert "Lifecycle: unlocked" in out

    def test_invalid_record_exits(self, tmp_path):
        record = tmp_path / "record.json"
        record.write_text("{}", encoding="utf-8")

        with pytest.raises(SystemExit):
            main(["validate", str(record)])

    def test_missing_file(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["validate", str(tmp_path / "nope.json")])


class TestExportImport:

    def test_export_then_import(self, tmp_path, capsys):
        store_dir = tmp_path / "store"
        DeckStore(store_dir).put(STORAGE_KEY, {"nullCount": 7})
        out_file = tmp_path / "bundle.json"

        main(["--storage-dir", str(store_dir), "export", "-o", str(out_file)])
        assert json.loads(out_file.read_text(encoding="utf-8"))["data"][STORAGE_KEY] == {"nullCount": 7}

        DeckStore(store_dir).put(STORAGE_KEY, {"nullCount": 9})
        main([
            "--storage-dir", str(store_dir),
            "import", str(out_file), "--yes",
            "--backup-dir", str(tmp_path / "backups"),
        ])

        assert DeckStore(store_dir).get(STORAGE_KEY) == {"nullCount": 7}
        assert "Imported 1 key(s)" in capsys.readouterr().out

    def test_export_empty_store_exits(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["--storage-dir", str(tmp_path / "empty"), "export", "-o", str(tmp_path / "x.json")])
