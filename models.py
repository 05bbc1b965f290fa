#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

from constants import PIECE_JP, PROMOTED_JP, PROMOTABLE
from helpers import sq_to_kif, sq_to_paren, sq_to_usi


class Side(Enum):
    ATTACKER = "B"  # 先手（攻め方）
    DEFENDER = "W"  # 後手（玉方）

    @property
    def opponent(self) -> "Side":
        return Side.DEFENDER if self is Side.ATTACKER else Side.ATTACKER


class Kind(str, Enum):
    PAWN = "P"
    LANCE = "L"
    KNIGHT = "N"
    SILVER = "S"
    GOLD = "G"
    KING = "K"
    ROOK = "R"
    BISHOP = "B"
    PRO_PAWN = "+P"
    PRO_LANCE = "+L"
    PRO_KNIGHT = "+N"
    PRO_SILVER = "+S"
    DRAGON = "+R"
    HORSE = "+B"

    @property
    def is_promoted(self) -> bool:
        return self.value.startswith("+")

    @property
    def can_promote(self) -> bool:
        return self.value in PROMOTABLE

    def promoted(self) -> "Kind":
        if not self.can_promote:
            raise ValueError(f"{self.value} は成れません")
        return Kind("+" + self.value)

    def demoted(self) -> "Kind":
        return Kind(self.value[1:]) if self.is_promoted else self

    @property
    def jp(self) -> str:
        if self.is_promoted:
            return PROMOTED_JP[self.value[1:]]
        return PIECE_JP[self.value]


class Coordinate(NamedTuple):
    """Board square; row 0 is rank 1 (defender side), col 0 is file 9."""
    row: int
    col: int

    @property
    def file(self) -> int:
        return 9 - self.col

    @property
    def rank(self) -> int:
        return self.row + 1

    @property
    def index(self) -> int:
        return self.row * 9 + self.col

    @classmethod
    def from_index(cls, sq: int) -> "Coordinate":
        return cls(sq // 9, sq % 9)

    @classmethod
    def from_file_rank(cls, file_: int, rank: int) -> "Coordinate":
        if not (1 <= file_ <= 9 and 1 <= rank <= 9):
            raise ValueError("マスは 11〜99 の範囲です")
        return cls(rank - 1, 9 - file_)

    def __str__(self) -> str:
        return sq_to_kif(self.file, self.rank)


@dataclass(frozen=True)
class Move:
    """One ply. ``frm`` is None for a drop; squares are 0..80 board indices."""
    side: Side
    piece: Kind
    frm: Optional[int]
    to: int
    promote: bool = False

    @property
    def is_drop(self) -> bool:
        return self.frm is None

    @property
    def is_pawn_drop(self) -> bool:
        return self.frm is None and self.piece is Kind.PAWN

    @property
    def result_kind(self) -> Kind:
        return self.piece.promoted() if self.promote else self.piece

    @property
    def origin(self) -> Optional[Coordinate]:
        return None if self.frm is None else Coordinate.from_index(self.frm)

    @property
    def dest(self) -> Coordinate:
        return Coordinate.from_index(self.to)

    def usi(self) -> str:
        d = self.dest
        if self.frm is None:
            return f"{self.piece.value}*{sq_to_usi(d.file, d.rank)}"
        o = Coordinate.from_index(self.frm)
        return f"{sq_to_usi(o.file, o.rank)}{sq_to_usi(d.file, d.rank)}" + ("+" if self.promote else "")

    def __str__(self) -> str:
        mark = "▲" if self.side is Side.ATTACKER else "△"
        if self.frm is None:
            return f"{mark}{self.dest}{self.piece.jp}打"
        o = Coordinate.from_index(self.frm)
        name = self.piece.jp + ("成" if self.promote else "")
        return f"{mark}{self.dest}{name}{sq_to_paren(o.file, o.rank)}"


@dataclass(frozen=True)
class MoveRecord:
    ply: int
    origin: Optional[Coordinate]
    dest: Coordinate
    piece: Kind  # kind after the move
    promoted: bool


Cell = Optional[Tuple[Kind, Side]]


@dataclass
class BoardSnapshot:
    """Board as handed over by the editing side: grid[row][col] and the attacker hand."""
    grid: List[List[Cell]] = field(default_factory=lambda: [[None] * 9 for _ in range(9)])
    hand: Dict[Kind, int] = field(default_factory=dict)
    side_to_move: Side = Side.ATTACKER

    def put(self, file_: int, rank: int, kind: Kind, side: Side) -> "BoardSnapshot":
        c = Coordinate.from_file_rank(file_, rank)
        self.grid[c.row][c.col] = (kind, side)
        return self


@dataclass
class SolveLimits:
    max_ply: int = 29
    max_nodes: Optional[int] = None
    max_time_sec: Optional[float] = None
    checkpoint_interval: int = 5000
    use_transposition: bool = True
    tt_max_entries: int = 1_000_000
    hash_seed: int = 0


class SolveStatus(Enum):
    MATE = "mate"
    NO_MATE = "no_mate"
    TIMED_OUT = "timed_out"


@dataclass
class SolveResult:
    status: SolveStatus
    path: Optional[Tuple[Move, ...]]
    depth_completed: int
    nodes: int
    elapsed: float = 0.0
    continuations: Mapping[int, Tuple[Move, ...]] = field(default_factory=lambda: MappingProxyType({}))
    # continuations のキーを計算した Zobrist の seed
    hash_seed: int = 0

    @property
    def is_mate(self) -> bool:
        return self.status is SolveStatus.MATE

    def records(self) -> List[MoveRecord]:
        if not self.path:
            return []
        return [
            MoveRecord(ply=i, origin=mv.origin, dest=mv.dest, piece=mv.result_kind, promoted=mv.promote)
            for i, mv in enumerate(self.path, start=1)
        ]

    def summary(self) -> str:
        if self.status is SolveStatus.MATE:
            return f"{len(self.path or ())}手詰"
        if self.status is SolveStatus.NO_MATE:
            return "詰みなし"
        return f"時間切れ（{self.depth_completed}手まで探索済み）"
