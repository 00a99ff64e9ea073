from __future__ import annotations

from pathlib import Path

import pytest

import dxftree
import dxftree.cli as cli_module
from tests._dxf_helpers import SAMPLE_DXF, write_sample


def test_cli_inspect_reports_counts_and_unresolved_names(tmp_path: Path, capsys) -> None:
    path = write_sample(tmp_path / "sample.dxf")

    code = cli_module.main(["inspect", str(path)])

    assert code == 0
    out = capsys.readouterr().out
    assert "version: AC1015" in out
    assert "sections: HEADER, TABLES, BLOCKS, ENTITIES" in out
    assert "layers: 2" in out
    assert "blocks: 1" in out
    assert "total_entities: 4" in out
    assert "LINE: 1" in out
    assert "POINT: 1" in out
    assert "unresolved_layers: 1 (Missing)" in out
    assert "unresolved_blocks" not in out


def test_cli_inspect_verbose_lists_layers(tmp_path: Path, capsys) -> None:
    path = write_sample(tmp_path / "sample.dxf")

    code = dxftree.main(["inspect", str(path), "--verbose"])

    assert code == 0
    out = capsys.readouterr().out
    assert "layer[Walls]: color=1 visible=True" in out


def test_cli_inspect_missing_file(tmp_path: Path, capsys) -> None:
    code = cli_module.main(["inspect", str(tmp_path / "missing.dxf")])

    assert code == 2
    assert "file not found" in capsys.readouterr().err


def test_cli_inspect_malformed_file(tmp_path: Path, capsys) -> None:
    path = write_sample(tmp_path / "bad.dxf", "0\nSECTION\nnot-a-code\nENTITIES\n")

    code = cli_module.main(["inspect", str(path)])

    assert code == 2
    assert "failed to read DXF" in capsys.readouterr().err


def test_cli_normalize_writes_equivalent_stream(tmp_path: Path, capsys) -> None:
    source = write_sample(tmp_path / "in.dxf")
    target = tmp_path / "out.dxf"

    code = cli_module.main(["normalize", str(source), str(target)])

    assert code == 0
    assert target.read_text(encoding="utf-8") == SAMPLE_DXF
    out = capsys.readouterr().out
    assert f"output: {target}" in out
    assert "field_errors: 0" in out


def test_cli_convert_reports_conversion_errors(monkeypatch, tmp_path: Path, capsys) -> None:
    source = write_sample(tmp_path / "in.dxf")

    def _fail(*args, **kwargs):  # noqa: ANN002, ANN003
        raise ImportError("ezdxf is required")

    monkeypatch.setattr(cli_module, "export_dxf", _fail)

    code = cli_module.main(["convert", str(source), str(tmp_path / "out.dxf")])

    assert code == 2
    assert "ezdxf is required" in capsys.readouterr().err


def test_cli_version(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli_module.main(["--version"])

    assert exc_info.value.code == 0
    assert capsys.readouterr().out.startswith("dxftree ")


def test_cli_without_command_prints_help(capsys) -> None:
    assert cli_module.main([]) == 0
    assert "usage: dxftree" in capsys.readouterr().out
