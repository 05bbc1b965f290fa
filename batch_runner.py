from __future__ import annotations
from typing import Dict, List, Optional, Union
import logging
import pathlib

from errors import PositionError
from helpers import _write_kif_unique
from kif_format import generate_kif_text
from models import SolveLimits
from paths import _ensure_output_dir, _input_dir
from sfen import sfen_to_snapshot
from solver_core import solve

logger = logging.getLogger(__name__)


def _basename_no_ext(p: str) -> str:
    return pathlib.Path(p).stem


def _iter_sfen_lines(text: str):
    """(行番号, SFEN) を返す。空行と # コメント行は飛ばす。"""
    for lineno, ln in enumerate(text.splitlines(), start=1):
        s = ln.strip()
        if not s or s.startswith("#"):
            continue
        if s.startswith("sfen "):
            s = s[len("sfen "):]
        yield lineno, s


def batch_solve_file(path: Union[str, pathlib.Path],
                     limits: Optional[SolveLimits] = None,
                     outdir: Optional[Union[str, pathlib.Path]] = None) -> List[str]:
    """
    Solve every SFEN line of one file and write each mate as <base>_<NNN>.kif.
    - Lines that fail to parse or are not solvable positions are reported and skipped.
    - No mate / time out: nothing is written for that line.
    - Identical KIF texts are written once.
    Returns written file paths.
    """
    out = _ensure_output_dir(outdir)
    raw = pathlib.Path(path).read_bytes()
    try:
        txt = raw.decode("utf-8")
    except UnicodeDecodeError:
        txt = raw.decode("cp932", errors="replace")

    base = _basename_no_ext(str(path))
    written: List[str] = []
    seen_kif: Dict[str, str] = {}
    for j, (lineno, sfen) in enumerate(_iter_sfen_lines(txt), start=1):
        try:
            snap = sfen_to_snapshot(sfen)
            result = solve(snap, limits)
        except PositionError as e:
            print(f"[batch] {path}:{lineno}: 局面が不正です（{e}）。スキップします")
            continue
        except ValueError as e:
            print(f"[batch] {path}:{lineno}: SFENの解析に失敗（{e}）。スキップします")
            continue

        if not result.is_mate:
            print(f"[batch] {path}:{lineno}: {result.summary()}（nodes={result.nodes} {result.elapsed:.3f}s）")
            continue

        kif_text = generate_kif_text(snap, result.path)
        # 日時行は重複判定から外す
        body = "\n".join(ln for ln in kif_text.splitlines() if not ln.startswith("終了日時："))
        fname = f"{base}_{j:03d}.kif"
        key_seen = _write_kif_unique(out, fname, kif_text, seen_kif, dedup_text=body)
        if key_seen is None:
            print(f"[batch] {path}:{lineno}: {fname} は既出の解と同一なので省略")
            continue
        written.append(key_seen)
        print(f"[batch] {path}:{lineno}: {result.summary()} / 探索={result.elapsed:.3f}s nodes={result.nodes} -> {fname}")

    logger.info("batch %s: %d file(s) written to %s", path, len(written), out)
    return written


def batch_solve_path(path: Optional[Union[str, pathlib.Path]] = None,
                     limits: Optional[SolveLimits] = None,
                     outdir: Optional[Union[str, pathlib.Path]] = None) -> List[str]:
    """
    Process a folder or one file.
      <dir>         every *.sfen in it
      <file.sfen>   that file
      None          INPUT/ next to this module
    """
    p = pathlib.Path(path) if path is not None else _input_dir()
    written_all: List[str] = []
    if p.is_dir():
        for f in sorted(p.glob("*.sfen")):
            written_all.extend(batch_solve_file(f, limits=limits, outdir=outdir))
    else:
        written_all.extend(batch_solve_file(p, limits=limits, outdir=outdir))
    return written_all
