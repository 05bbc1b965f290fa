#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from typing import Dict, List, Optional, Set, Tuple

from constants import TOTAL_COUNTS
from errors import CorruptPositionError, PositionError
from models import BoardSnapshot, Cell, Kind, Move, Side
from zobrist import HAND_KINDS, ZobristKeys


__all__ = ["Position"]


# push/pop の履歴1件: (move, captured cell)
Undo = Tuple[Move, Cell]


class Position:
    """
    Search-side board: 81 cells indexed by row * 9 + col, a square set per side,
    the defender king square and the attacker hand.

    push()/pop() make and unmake moves in place and keep ``key`` updated
    incrementally; siblings in the search see the board only between a push
    and its matching pop.
    """

    __slots__ = ("cells", "squares", "king_sq", "hand", "side_to_move", "key", "keys", "_history")

    def __init__(self, keys: ZobristKeys) -> None:
        self.cells: List[Cell] = [None] * 81
        self.squares: Dict[Side, Set[int]] = {Side.ATTACKER: set(), Side.DEFENDER: set()}
        self.king_sq: int = -1
        self.hand: Dict[Kind, int] = {k: 0 for k in HAND_KINDS}
        self.side_to_move: Side = Side.ATTACKER
        self.keys = keys
        self.key: int = 0
        self._history: List[Undo] = []

    # ---- construction ----
    @classmethod
    def from_snapshot(cls, snap: BoardSnapshot, keys: ZobristKeys) -> "Position":
        pos = cls(keys)
        kings: List[int] = []
        used: Dict[str, int] = {}
        for row in range(9):
            for col in range(9):
                cell = snap.grid[row][col]
                if cell is None:
                    continue
                kind, side = cell
                sq = row * 9 + col
                if kind is Kind.KING:
                    if side is Side.ATTACKER:
                        raise PositionError("攻め方の玉は配置できません")
                    kings.append(sq)
                base = kind.demoted().value
                used[base] = used.get(base, 0) + 1
                pos.cells[sq] = (kind, side)
                pos.squares[side].add(sq)
        if len(kings) != 1:
            raise PositionError(f"玉方の玉がちょうど1枚必要です（{len(kings)}枚）")
        pos.king_sq = kings[0]

        for kind, n in snap.hand.items():
            base = kind.demoted()
            if base is Kind.KING:
                raise PositionError("玉は持駒にできません")
            if n < 0:
                raise PositionError("持駒の枚数が負です")
            pos.hand[base] += n
            used[base.value] = used.get(base.value, 0) + n
        for base, n in used.items():
            if n > TOTAL_COUNTS[base]:
                raise PositionError(f"駒数が多すぎます: {base} x{n}")

        pos.side_to_move = snap.side_to_move
        pos.key = pos.compute_key()
        return pos

    def to_snapshot(self) -> BoardSnapshot:
        snap = BoardSnapshot(side_to_move=self.side_to_move)
        for sq, cell in enumerate(self.cells):
            if cell is not None:
                snap.grid[sq // 9][sq % 9] = cell
        snap.hand = {k: n for k, n in self.hand.items() if n > 0}
        return snap

    def compute_key(self) -> int:
        """Hash from scratch; push/pop must always agree with this."""
        k = 0
        for sq, cell in enumerate(self.cells):
            if cell is not None:
                kind, side = cell
                k ^= self.keys.piece(side, kind, sq)
        for kind, n in self.hand.items():
            for i in range(1, n + 1):
                k ^= self.keys.hand_piece(kind, i)
        if self.side_to_move is Side.ATTACKER:
            k ^= self.keys.turn
        return k

    # ---- accessors ----
    def piece_at(self, sq: int) -> Cell:
        return self.cells[sq]

    @property
    def ply(self) -> int:
        return len(self._history)

    @property
    def last_move(self) -> Optional[Move]:
        return self._history[-1][0] if self._history else None

    # ---- make / unmake ----
    def push(self, mv: Move) -> None:
        keys = self.keys
        side = mv.side
        if side is not self.side_to_move:
            raise CorruptPositionError(f"手番ではありません: {mv}")
        to = mv.to
        captured = self.cells[to]

        if mv.frm is None:
            if captured is not None:
                raise CorruptPositionError(f"打ち先に駒があります: {mv}")
            n = self.hand.get(mv.piece, 0)
            if side is not Side.ATTACKER or n <= 0:
                raise CorruptPositionError(f"持駒がありません: {mv}")
            self.key ^= keys.hand_piece(mv.piece, n)
            self.hand[mv.piece] = n - 1
        else:
            if self.cells[mv.frm] != (mv.piece, side):
                raise CorruptPositionError(f"移動元に駒がありません: {mv}")
            self.key ^= keys.piece(side, mv.piece, mv.frm)
            self.cells[mv.frm] = None
            self.squares[side].discard(mv.frm)
            if captured is not None:
                cap_kind, cap_side = captured
                if cap_side is side or cap_kind is Kind.KING:
                    raise CorruptPositionError(f"取れない駒です: {mv}")
                self.key ^= keys.piece(cap_side, cap_kind, to)
                self.squares[cap_side].discard(to)
                if side is Side.ATTACKER:
                    base = cap_kind.demoted()
                    self.hand[base] += 1
                    self.key ^= keys.hand_piece(base, self.hand[base])
                # 玉方が取った駒は消える（玉方は持駒を使わない）

        new_kind = mv.result_kind
        self.cells[to] = (new_kind, side)
        self.squares[side].add(to)
        self.key ^= keys.piece(side, new_kind, to)
        if mv.piece is Kind.KING:
            self.king_sq = to

        self.key ^= keys.turn
        self.side_to_move = side.opponent
        self._history.append((mv, captured))

    def pop(self) -> Move:
        if not self._history:
            raise CorruptPositionError("戻せる手がありません")
        mv, captured = self._history.pop()
        keys = self.keys
        side = mv.side
        to = mv.to

        self.key ^= keys.turn
        self.side_to_move = side

        new_kind = mv.result_kind
        if self.cells[to] != (new_kind, side):
            raise CorruptPositionError(f"移動先に駒がありません: {mv}")
        self.key ^= keys.piece(side, new_kind, to)
        self.cells[to] = captured
        self.squares[side].discard(to)

        if mv.frm is None:
            n = self.hand[mv.piece] + 1
            self.hand[mv.piece] = n
            self.key ^= keys.hand_piece(mv.piece, n)
        else:
            self.cells[mv.frm] = (mv.piece, side)
            self.squares[side].add(mv.frm)
            self.key ^= keys.piece(side, mv.piece, mv.frm)
            if mv.piece is Kind.KING:
                self.king_sq = mv.frm
            if captured is not None:
                cap_kind, cap_side = captured
                self.squares[cap_side].add(to)
                self.key ^= keys.piece(cap_side, cap_kind, to)
                if side is Side.ATTACKER:
                    base = cap_kind.demoted()
                    self.key ^= keys.hand_piece(base, self.hand[base])
                    self.hand[base] -= 1
        return mv
