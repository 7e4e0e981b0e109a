import shutil
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest

from fnsim.cli import build_parser, handle_args
from fnsim.config import FnsimOptions
from fnsim.lib.runners import FeatureRunner, run_default_mode
from fnsim.lib.utils import gen_file_list, print_features_table

DATA_DIR = Path(__file__).parent / "data"


def test_handle_args():
    args = build_parser().parse_args(["-i", "a.json", "b.json", "-o", "out", "--disassembly"])
    options = handle_args(args)
    assert options.src_files == ["a.json", "b.json"]
    assert options.reports_dir == "out"
    assert options.export_features
    assert options.show_disassembly
    assert options.show_features
    args = build_parser().parse_args(["-i", "a.json", "--no-summary", "-q"])
    options = handle_args(args)
    assert not options.export_features
    assert not options.show_features
    assert options.quiet_mode


def test_gen_file_list(tmp_path):
    shutil.copy(DATA_DIR / "chain.json", tmp_path / "chain.json")
    (tmp_path / "notes.txt").write_text("not a graph")
    files = gen_file_list([str(tmp_path), str(DATA_DIR / "loop.json")])
    assert files == [str(tmp_path / "chain.json"), str(DATA_DIR / "loop.json")]


def test_feature_runner_exports(tmp_path):
    options = FnsimOptions(
        src_files=[str(DATA_DIR / "chain.json")],
        reports_dir=str(tmp_path),
        export_features=True,
    )
    summaries, failures = FeatureRunner().start(options, options.src_files)
    assert failures == []
    assert summaries[0]["name"] == "chain"
    assert summaries[0]["nodes"] == 5
    assert summaries[0]["subgraphs"] == 10
    assert summaries[0]["mnemonic_tuples"] == 3
    exported = orjson.loads((tmp_path / "chain-features.json").read_bytes())
    assert exported["mnemonic_tuples"] == [["a", "b", "c"], ["b", "c", "d"], ["c", "d", "e"]]
    assert [s["distance"] for s in exported["subgraphs"]] == [2] * 5 + [3] * 5
    assert exported["subgraphs"][0] == {
        "center": 1,
        "distance": 2,
        "nodes": [1, 2, 3],
        "edges": [[1, 2], [2, 3]],
    }


def test_feature_runner_reports_failures():
    options = FnsimOptions(src_files=[str(DATA_DIR / "truncated.json")])
    with patch("fnsim.lib.runners.LOG") as mock_log:
        summaries, failures = FeatureRunner().start(options, options.src_files)
    assert summaries == []
    assert failures == [str(DATA_DIR / "truncated.json")]
    mock_log.error.assert_called_once()


def test_run_default_mode_exits_on_failure():
    options = FnsimOptions(src_files=[str(DATA_DIR / "truncated.json")])
    with pytest.raises(SystemExit):
        run_default_mode(options)
    options.no_error = True
    run_default_mode(options)


def test_run_default_mode_prints_disassembly():
    options = FnsimOptions(src_files=[str(DATA_DIR / "loop.json")], show_disassembly=True)
    with patch("fnsim.lib.runners.console") as mock_console, \
         patch("fnsim.lib.runners.print_features_table") as mock_table:
        run_default_mode(options)
    printed = mock_console.print.call_args[0][0]
    assert "Block at 40100a (2)" in printed
    mock_table.assert_called_once()


def test_file_names_are_not_markup(tmp_path):
    bad_file = tmp_path / "bad[red].json"
    bad_file.write_text('{"nodes": [')
    options = FnsimOptions(src_files=[str(bad_file)])
    with patch("fnsim.lib.runners.LOG") as mock_log:
        FeatureRunner().start(options, options.src_files)
    message = mock_log.error.call_args[0][0]
    assert "bad\\[red].json" in message


def test_features_table_escapes_markup():
    summaries = [{
        "name": "f[bold]",
        "nodes": 1,
        "edges": 0,
        "subgraphs": 2,
        "largest_subgraph": 1,
        "mnemonic_tuples": 1,
        "top_tuple": "mov [rax] ret (1)",
    }]
    with patch("fnsim.lib.utils.console") as mock_console:
        print_features_table(summaries, ["a.json", "b.json"])
    table = mock_console.print.call_args[0][0]
    assert list(table.columns[0].cells) == ["f\\[bold]"]
    assert list(table.columns[-1].cells) == ["mov \\[rax] ret (1)"]
