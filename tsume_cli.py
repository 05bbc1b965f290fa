#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
詰将棋ソルバー CLI

使い方（例）:
  tsume-solve "4k4/9/4P4/9/9/9/9/9/9 b G 1"
  tsume-solve --file INPUT/problems.sfen --out OUTPUT --ply 15
  tsume-solve "<SFEN>" --moves          # 攻め方の王手一覧だけ表示
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from batch_runner import batch_solve_path
from errors import PositionError
from kif_format import path_to_kif_moves, snapshot_to_piyo
from models import SolveLimits, SolveResult, SolveStatus
from progress import ProgressInfo
from sfen import sfen_to_snapshot
from solver_core import legal_moves_after, solve

EXIT_MATE = 0
EXIT_NO_MATE = 1
EXIT_INPUT_ERROR = 2

console = Console()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tsume-solve", description="詰将棋（王手の連続で玉を詰める）の最短手順を探索します")
    ap.add_argument("sfen", nargs="*", help="SFEN（空白を含むので引用符で囲むか、そのまま並べる）")
    ap.add_argument("--file", help="SFEN を1行1問で書いたファイル、または *.sfen のフォルダ（一括解析）")
    ap.add_argument("--out", help="一括解析の KIF 出力先（省略時は OUTPUT/）")
    ap.add_argument("--ply", type=int, default=SolveLimits.max_ply, help="最大手数（奇数）")
    ap.add_argument("--nodes", type=int, default=None, help="探索ノード数の上限")
    ap.add_argument("--time", type=float, default=None, help="制限時間（秒）")
    ap.add_argument("--no-tt", action="store_true", help="置換表を使わない")
    ap.add_argument("--seed", type=int, default=0, help="Zobrist ハッシュの乱数シード")
    ap.add_argument("--moves", action="store_true", help="初期局面の王手一覧を表示して終了")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="ログ出力（-vv でデバッグ）")
    return ap


def _limits_from_args(args: argparse.Namespace) -> SolveLimits:
    return SolveLimits(
        max_ply=args.ply,
        max_nodes=args.nodes,
        max_time_sec=args.time,
        use_transposition=not args.no_tt,
        hash_seed=args.seed,
    )


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING if verbose == 0 else (logging.INFO if verbose == 1 else logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def render_result(result: SolveResult) -> Table:
    style = {SolveStatus.MATE: "bold green", SolveStatus.NO_MATE: "bold red"}.get(result.status, "yellow")
    table = Table(title=Text(result.summary(), style=style), show_header=True)
    table.add_column("手数", justify="right")
    table.add_column("指手")
    table.add_column("USI")
    if result.path:
        for i, (kif, mv) in enumerate(zip(path_to_kif_moves(result.path), result.path), start=1):
            table.add_row(str(i), kif, mv.usi())
    table.caption = f"nodes={result.nodes}  depth={result.depth_completed}  {result.elapsed:.3f}s"
    return table


def _render_candidates(sfen: str, limits: SolveLimits) -> int:
    snap = sfen_to_snapshot(sfen)
    moves = legal_moves_after(snap, limits=limits)
    table = Table(title=f"王手 {len(moves)} 通り")
    table.add_column("#", justify="right")
    table.add_column("指手")
    table.add_column("USI")
    for i, mv in enumerate(moves, start=1):
        table.add_row(str(i), str(mv), mv.usi())
    console.print(snapshot_to_piyo(snap), highlight=False)
    console.print(table)
    return EXIT_MATE


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    limits = _limits_from_args(args)

    if args.ply < 1:
        console.print("[red]--ply は 1 以上を指定してください[/red]")
        return EXIT_INPUT_ERROR

    if args.file:
        try:
            written = batch_solve_path(args.file, limits=limits, outdir=args.out)
        except OSError as e:
            console.print(f"[red]読み込みに失敗しました: {e}[/red]")
            return EXIT_INPUT_ERROR
        print(f"[batch] 書き出し {len(written)} 件")
        return EXIT_MATE if written else EXIT_NO_MATE

    if not args.sfen:
        console.print("[red]SFEN か --file を指定してください[/red]")
        return EXIT_INPUT_ERROR
    sfen = " ".join(args.sfen)

    try:
        if args.moves:
            return _render_candidates(sfen, limits)
        snap = sfen_to_snapshot(sfen)
        with console.status("探索中...") as status:
            def on_progress(info: ProgressInfo) -> None:
                status.update(f"探索中... depth={info.depth} nodes={info.nodes}")
            result = solve(snap, limits, on_progress=on_progress)
    except PositionError as e:
        console.print(f"[red]局面が不正です: {e}[/red]")
        return EXIT_INPUT_ERROR
    except ValueError as e:
        console.print(f"[red]SFENの解析に失敗しました: {e}[/red]")
        return EXIT_INPUT_ERROR

    console.print(snapshot_to_piyo(snap), highlight=False)
    console.print(render_result(result))
    return EXIT_MATE if result.is_mate else EXIT_NO_MATE


if __name__ == "__main__":
    sys.exit(main())
