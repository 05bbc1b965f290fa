# tests/test_batch_solve_outputs.py
from pathlib import Path

from batch_runner import batch_solve_file, batch_solve_path
from helpers import format_total_time
from models import SolveLimits

MATE1 = "4k4/9/4P4/9/9/9/9/9/9 b G 1"
MATE3 = "7bk/9/9/8P/9/9/9/9/9 b BG 1"
NO_MATE = "8k/9/9/9/9/9/9/9/9 b G 1"


def _write(p: Path, lines) -> Path:
    p.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return p


def test_batch_solve_file_writes_one_kif_per_mate(tmp_path, capsys):
    src = _write(tmp_path / "demo.sfen", [
        "# 1行1問",
        MATE1,
        "",
        "sfen " + MATE3,
        "not a sfen",
        NO_MATE,
        "9/9/9/9/9/9/9/9/9 b G 1",   # 玉が無い
        MATE1,                        # 同じ問題（重複は書かない）
    ])
    outdir = tmp_path / "out"
    written = batch_solve_file(src, SolveLimits(max_ply=7), outdir=outdir)

    names = sorted(Path(p).name for p in written)
    assert names == ["demo_001.kif", "demo_002.kif"]
    assert sorted(p.name for p in outdir.glob("demo*.kif")) == names

    kif = (outdir / "demo_002.kif").read_bytes().decode("cp932")
    assert "   4 詰み" in kif

    out = capsys.readouterr().out
    assert "[batch]" in out
    assert "SFENの解析に失敗" in out
    assert "局面が不正です" in out
    assert "詰みなし" in out
    assert "省略" in out


def test_batch_solve_path_directory(tmp_path):
    inp = tmp_path / "INPUT"
    inp.mkdir()
    _write(inp / "a.sfen", [MATE1])
    _write(inp / "b.sfen", [NO_MATE])
    (inp / "ignored.txt").write_text(MATE1, encoding="utf-8")

    outdir = tmp_path / "OUTPUT"
    written = batch_solve_path(inp, SolveLimits(max_ply=5), outdir=outdir)
    assert [Path(p).name for p in written] == ["a_001.kif"]


def test_format_total_time_basic():
    assert format_total_time(0) == "00:00:00"
    assert format_total_time(9) == "00:00:09"
    assert format_total_time(75) == "00:01:15"
    assert format_total_time(3671) == "01:01:11"
