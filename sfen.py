#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import Dict, List

from constants import HAND_ORDER, PIECE_JP, TOTAL_COUNTS
from models import BoardSnapshot, Cell, Kind, Side


def compute_gote_remaining(snap: BoardSnapshot) -> Dict[str, int]:
    """玉方の持駒（盤上と攻め方の持駒で使われていない残り駒）。KIF の表示用。"""
    used = {k: 0 for k in TOTAL_COUNTS.keys()}
    for row in snap.grid:
        for cell in row:
            if cell is None:
                continue
            base = cell[0].demoted().value
            used[base] += 1

    for kind, n in snap.hand.items():
        used[kind.demoted().value] += n

    remaining: Dict[str, int] = {}
    for kind, total in TOTAL_COUNTS.items():
        if kind == "K":
            continue
        left = total - used.get(kind, 0)
        if left > 0:
            remaining[kind] = left
    return remaining


def hands_to_sfen(hands_b: Dict[str, int], hands_w: Dict[str, int]) -> str:
    parts: List[str] = []

    def add(kind: str, n: int, is_black: bool) -> None:
        if n <= 0:
            return
        c = kind if is_black else kind.lower()
        parts.append(c if n == 1 else f"{n}{c}")

    for k in HAND_ORDER:
        add(k, hands_b.get(k, 0), True)
    for k in HAND_ORDER:
        add(k, hands_w.get(k, 0), False)

    return "-" if not parts else "".join(parts)


def _cell_to_sfen(cell: Cell) -> str:
    kind, side = cell
    code = kind.value
    return code if side is Side.ATTACKER else code.lower()


def board_to_sfen(snap: BoardSnapshot) -> str:
    rows: List[str] = []
    for r in range(9):
        empties = 0
        row = ""
        for c in range(9):
            cell = snap.grid[r][c]
            if cell is None:
                empties += 1
                continue
            if empties:
                row += str(empties)
                empties = 0
            row += _cell_to_sfen(cell)
        if empties:
            row += str(empties)
        rows.append(row)
    return "/".join(rows)


def snapshot_to_sfen(snap: BoardSnapshot, with_gote_hand: bool = False) -> str:
    board_part = board_to_sfen(snap)
    turn = "b" if snap.side_to_move is Side.ATTACKER else "w"
    hands_b = {k.value: n for k, n in snap.hand.items()}
    hands_w = compute_gote_remaining(snap) if with_gote_hand else {}
    hands_part = hands_to_sfen(hands_b, hands_w)
    return f"{board_part} {turn} {hands_part} 1"


def sfen_to_snapshot(sfen: str) -> BoardSnapshot:
    """Parse SFEN into a BoardSnapshot. Ignores gote hands (tsume: 玉方の持駒は使わない)."""
    parts = sfen.strip().split()
    if len(parts) < 3:
        raise ValueError("SFEN形式が不正です")
    board_part, turn_part, hands_part = parts[0], parts[1], parts[2]
    if turn_part not in ("b", "w"):
        raise ValueError("SFENの手番が不正です")

    snap = BoardSnapshot(side_to_move=Side.ATTACKER if turn_part == "b" else Side.DEFENDER)

    # board
    rows = board_part.split("/")
    if len(rows) != 9:
        raise ValueError("SFEN盤面の段数が不正です")
    for r, row in enumerate(rows):
        c = 0
        i = 0
        while i < len(row):
            ch = row[i]
            if ch.isdigit():
                c += int(ch)
                i += 1
                continue
            prom = False
            if ch == "+":
                prom = True
                i += 1
                if i >= len(row):
                    raise ValueError("SFEN駒種が不正です")
                ch = row[i]
            code = ch.upper()
            if code not in PIECE_JP:
                raise ValueError("SFEN駒種が不正です")
            if c >= 9:
                raise ValueError("SFEN盤面の筋数が不正です")
            kind = Kind(code)
            if prom:
                try:
                    kind = kind.promoted()
                except ValueError:
                    raise ValueError("SFEN駒種が不正です") from None
            snap.grid[r][c] = (kind, Side.ATTACKER if ch.isupper() else Side.DEFENDER)
            c += 1
            i += 1
        if c != 9:
            raise ValueError("SFEN盤面の筋数が不正です")

    # hands (black only)
    if hands_part != "-":
        i = 0
        while i < len(hands_part):
            # count may be multiple digits
            if hands_part[i].isdigit():
                j = i
                while j < len(hands_part) and hands_part[j].isdigit():
                    j += 1
                if j >= len(hands_part):
                    raise ValueError("SFEN持駒が不正です")
                cnt = int(hands_part[i:j])
                pch = hands_part[j]
                i = j + 1
            else:
                cnt = 1
                pch = hands_part[i]
                i += 1
            if pch.upper() not in PIECE_JP or pch.upper() == "K":
                raise ValueError("SFEN持駒が不正です")
            if pch.isupper():
                kind = Kind(pch)
                snap.hand[kind] = snap.hand.get(kind, 0) + cnt
            # lowercase (gote) is ignored
    return snap
