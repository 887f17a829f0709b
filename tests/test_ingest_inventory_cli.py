from __future__ import annotations

import json
from pathlib import Path

import pytest

from app.services.report_builder import read_error_report_csv
from scripts.ingest_inventory import EXIT_CONFIG_ERROR, EXIT_FILE_ERROR, EXIT_OK, main


@pytest.fixture()
def inventory_file(tmp_path: Path) -> Path:
    path = tmp_path / "stock.csv"
    path.write_bytes(
        b"Stock #,Shape,Carat,Color,Clarity,Fluor,Cert #\n"
        b"A1,RB,1.05,G,VS1,N,111\n"
        b"A2,PR,abc,H,SI1,F,112\n"
    )
    return path


class TestIngestInventoryCli:
    def test_validate_only_prints_report(self, inventory_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = main(["--file", str(inventory_file), "--owner-id", "vendor-1", "--validate-only"])

        assert exit_code == EXIT_OK
        report = json.loads(capsys.readouterr().out)
        assert report["totalRows"] == 2
        assert report["rejectedRows"] == 1
        assert report["batches"] == []

    def test_writes_error_csv(self, inventory_file: Path, tmp_path: Path) -> None:
        errors_path = tmp_path / "errors.csv"

        exit_code = main(
            [
                "--file",
                str(inventory_file),
                "--owner-id",
                "vendor-1",
                "--validate-only",
                "--errors-csv",
                str(errors_path),
            ]
        )

        assert exit_code == EXIT_OK
        rows = read_error_report_csv(errors_path.read_text(encoding="utf-8"))
        assert rows[0]["Row"] == "2"
        assert rows[0]["Column"] == "Carat"

    def test_fatal_file_error_exit_code(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        empty = tmp_path / "empty.csv"
        empty.write_bytes(b"Shape,Carat\n")

        exit_code = main(["--file", str(empty), "--owner-id", "vendor-1", "--validate-only"])

        assert exit_code == EXIT_FILE_ERROR
        assert json.loads(capsys.readouterr().err)["code"] == "empty_file"

    def test_missing_file(self, tmp_path: Path) -> None:
        exit_code = main(["--file", str(tmp_path / "nope.csv"), "--owner-id", "vendor-1", "--validate-only"])

        assert exit_code == EXIT_FILE_ERROR

    def test_invalid_mapping_json_is_a_usage_error(self, inventory_file: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--file", str(inventory_file), "--owner-id", "vendor-1", "--mapping", "{oops"])

        assert excinfo.value.code == 2

    def test_mapping_values_must_be_field_names(self, inventory_file: Path) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["--file", str(inventory_file), "--owner-id", "vendor-1", "--mapping", '{"Carat": 1}'])

        assert excinfo.value.code == 2

    def test_unconfigured_storage_fails_before_ingesting(
        self,
        inventory_file: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        def _unconfigured() -> None:
            raise RuntimeError("No database URL configured for inventory storage.")

        monkeypatch.setattr("scripts.ingest_inventory.get_engine", _unconfigured)

        exit_code = main(["--file", str(inventory_file), "--owner-id", "vendor-1"])

        captured = capsys.readouterr()
        assert exit_code == EXIT_CONFIG_ERROR
        assert captured.out == ""
        assert json.loads(captured.err)["code"] == "persistence_unavailable"
