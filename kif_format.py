#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from constants import HAND_ORDER, PIECE_JP, RANK_KANJI
from helpers import (
    format_total_time,
    inv_count_kanji,
    now_yyyy_mm_dd_hhmmss,
    sq_to_paren,
)
from models import BoardSnapshot, Coordinate, Move, Side
from sfen import compute_gote_remaining

SEC_PER_MOVE = 3


def kif_line_for_move(
    idx: int, mv: Move, prev_to: Optional[int], sec: int, total_sec: int
) -> Tuple[str, int]:
    """KIF の1手分の行。直前の着手先と同じマスなら「同」を使う。"""
    dst = "同　" if prev_to is not None and prev_to == mv.to else str(mv.dest)
    if mv.is_drop:
        body = f"{dst}{mv.piece.jp}打"
    else:
        name = mv.piece.jp + ("成" if mv.promote else "")
        o = mv.origin
        body = f"{dst}{name}{sq_to_paren(o.file, o.rank)}"

    time_part = f"( 0:{sec:02d}/{format_total_time(total_sec)})"
    line = f"{idx:4d} {body:<12} {time_part}"
    return line, mv.to


def _hands_to_line(hands: Dict[str, int]) -> str:
    parts = []
    for k in HAND_ORDER:
        n = hands.get(k, 0)
        if n <= 0:
            continue
        parts.append(f"{PIECE_JP[k]}{inv_count_kanji(n)}")
    return "　".join(parts) if parts else "なし"


_PIYO_ONE_CHAR = {"+L": "杏", "+N": "圭", "+S": "全"}


def snapshot_to_piyo(snap: BoardSnapshot) -> str:
    lines = []
    lines.append("  ９ ８ ７ ６ ５ ４ ３ ２ １")
    lines.append("+---------------------------+")
    for r in range(9):
        row = []
        for c in range(9):
            cell = snap.grid[r][c]
            if cell is None:
                row.append(" ・")
            else:
                kind, side = cell
                # 成香・成桂・成銀は盤面図では1文字（杏・圭・全）
                name = _PIYO_ONE_CHAR.get(kind.value, kind.jp)
                row.append(("v" if side is Side.DEFENDER else " ") + name)
        lines.append("|" + "".join(row) + f"|{RANK_KANJI[r + 1]}")
    lines.append("+---------------------------+")
    return "\n".join(lines)


def generate_kif_text(
    snap: BoardSnapshot,
    path: Iterable[Move],
    sente_name: str = "",
    gote_name: str = "",
) -> str:
    """Single-line KIF (no variations) for a mate path from snap."""
    header: List[str] = []
    header.append("# ---- 詰将棋ソルバー ----")
    header.append(f"終了日時：{now_yyyy_mm_dd_hhmmss()}")
    header.append("手合割：平手")
    header.append("後手の持駒：" + _hands_to_line(compute_gote_remaining(snap)))
    header.append(snapshot_to_piyo(snap))
    header.append("先手の持駒：" + _hands_to_line({k.value: n for k, n in snap.hand.items()}))
    header.append(f"先手：{sente_name}")
    header.append(f"後手：{gote_name}")
    header.append("手数----指手---------消費時間--")

    prev_to: Optional[int] = None
    total_sec = 0
    lines: List[str] = []
    idx = 1
    for mv in path:
        total_sec += SEC_PER_MOVE
        line, prev_to = kif_line_for_move(idx, mv, prev_to, SEC_PER_MOVE, total_sec)
        lines.append(line)
        idx += 1

    lines.append(f"{idx:4d} 詰み         ( 0:00/{format_total_time(total_sec)})")
    return "\n".join(header + lines) + "\n"


def path_to_kif_moves(path: Iterable[Move]) -> List[str]:
    """「▲５二金打」形式の手順リスト（表示用）。"""
    out: List[str] = []
    prev: Optional[Coordinate] = None
    for mv in path:
        text = str(mv)
        if prev is not None and prev == mv.dest:
            mark = text[0]
            text = mark + "同　" + text[1 + len(str(mv.dest)):]
        out.append(text)
        prev = mv.dest
    return out
