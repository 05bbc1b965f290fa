#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
Move generation for tsume positions.

Public API:
- legal_moves       : ordered candidates for the side to move (attacker: checks only by default)
- attacker_moves    : attacker candidates, uchifuzume drops removed
- defender_moves    : defender replies that leave the king unattacked
- is_attacked       : is a square attacked by a side
- is_check          : is the defender king attacked
"""

from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from constants import CHECK_BONUS, PIECE_VALUE, PROMOTION_BONUS
from models import Kind, Move, Side
from position import Position
from zobrist import HAND_KINDS

__all__ = [
    "legal_moves",
    "attacker_moves",
    "defender_moves",
    "has_legal_reply",
    "is_attacked",
    "is_check",
    "order_moves",
    "pseudo_moves",
]

Delta = Tuple[int, int]

_ORTH: Tuple[Delta, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))
_DIAG: Tuple[Delta, ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))
_GOLD: Tuple[Delta, ...] = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, 0))

# attacker orientation: forward is row - 1
_STEPS: Dict[Kind, Tuple[Delta, ...]] = {
    Kind.PAWN: ((-1, 0),),
    Kind.LANCE: (),
    Kind.KNIGHT: ((-2, -1), (-2, 1)),
    Kind.SILVER: ((-1, -1), (-1, 0), (-1, 1), (1, -1), (1, 1)),
    Kind.GOLD: _GOLD,
    Kind.KING: _ORTH + _DIAG,
    Kind.ROOK: (),
    Kind.BISHOP: (),
    Kind.PRO_PAWN: _GOLD,
    Kind.PRO_LANCE: _GOLD,
    Kind.PRO_KNIGHT: _GOLD,
    Kind.PRO_SILVER: _GOLD,
    Kind.DRAGON: _DIAG,
    Kind.HORSE: _ORTH,
}

_SLIDES: Dict[Kind, Tuple[Delta, ...]] = {
    Kind.LANCE: ((-1, 0),),
    Kind.ROOK: _ORTH,
    Kind.BISHOP: _DIAG,
    Kind.DRAGON: _ORTH,
    Kind.HORSE: _DIAG,
}


def _orient(d: Delta, side: Side) -> Delta:
    return d if side is Side.ATTACKER else (-d[0], d[1])


def _on_board(r: int, c: int) -> bool:
    return 0 <= r < 9 and 0 <= c < 9


def _ray(sq: int, d: Delta) -> Tuple[int, ...]:
    r, c = divmod(sq, 9)
    out: List[int] = []
    r += d[0]
    c += d[1]
    while _on_board(r, c):
        out.append(r * 9 + c)
        r += d[0]
        c += d[1]
    return tuple(out)


def _build_tables():
    step_targets: Dict[Tuple[Side, Kind], List[Tuple[int, ...]]] = {}
    slide_rays: Dict[Tuple[Side, Kind], List[Tuple[Tuple[int, ...], ...]]] = {}
    step_sources: Dict[Side, List[List[Tuple[int, FrozenSet[Kind]]]]] = {}
    slide_sources: Dict[Side, List[List[Tuple[Tuple[int, ...], FrozenSet[Kind]]]]] = {}

    for side in Side:
        for kind in Kind:
            targets = []
            rays = []
            for sq in range(81):
                r, c = divmod(sq, 9)
                ts = []
                for d in _STEPS[kind]:
                    dr, dc = _orient(d, side)
                    if _on_board(r + dr, c + dc):
                        ts.append((r + dr) * 9 + c + dc)
                targets.append(tuple(ts))
                rays.append(tuple(
                    ray for ray in (_ray(sq, _orient(d, side)) for d in _SLIDES.get(kind, ()))
                    if ray
                ))
            step_targets[(side, kind)] = targets
            slide_rays[(side, kind)] = rays

        # reverse tables: who attacks square t
        src_map: List[Dict[int, set]] = [dict() for _ in range(81)]
        for kind in Kind:
            for sq in range(81):
                for t in step_targets[(side, kind)][sq]:
                    src_map[t].setdefault(sq, set()).add(kind)
        step_sources[side] = [
            [(src, frozenset(kinds)) for src, kinds in sorted(src_map[t].items())] for t in range(81)
        ]

        per_dir: Dict[Delta, set] = {}
        for kind, ds in _SLIDES.items():
            for d in ds:
                per_dir.setdefault(_orient(d, side), set()).add(kind)
        slide_sources[side] = [
            [
                (_ray(t, (-d[0], -d[1])), frozenset(kinds))
                for d, kinds in per_dir.items()
                if _ray(t, (-d[0], -d[1]))
            ]
            for t in range(81)
        ]
    return step_targets, slide_rays, step_sources, slide_sources


_STEP_TARGETS, _SLIDE_RAYS, _STEP_SOURCES, _SLIDE_SOURCES = _build_tables()


# ----------------- attacks -----------------

def is_attacked(pos: Position, sq: int, by: Side) -> bool:
    cells = pos.cells
    for src, kinds in _STEP_SOURCES[by][sq]:
        cell = cells[src]
        if cell is not None and cell[1] is by and cell[0] in kinds:
            return True
    for ray, kinds in _SLIDE_SOURCES[by][sq]:
        for s in ray:
            cell = cells[s]
            if cell is None:
                continue
            if cell[1] is by and cell[0] in kinds:
                return True
            break
    return False


def is_check(pos: Position) -> bool:
    return is_attacked(pos, pos.king_sq, Side.ATTACKER)


# ----------------- promotion rules -----------------

def _rel_row(row: int, side: Side) -> int:
    return row if side is Side.ATTACKER else 8 - row


def _must_promote(kind: Kind, side: Side, to_row: int) -> bool:
    rr = _rel_row(to_row, side)
    if kind in (Kind.PAWN, Kind.LANCE):
        return rr == 0
    if kind is Kind.KNIGHT:
        return rr <= 1
    return False


def _promotion_options(kind: Kind, side: Side, frm: int, to: int) -> Tuple[bool, ...]:
    if not kind.can_promote:
        return (False,)
    to_row = to // 9
    if _must_promote(kind, side, to_row):
        return (True,)
    if _rel_row(frm // 9, side) <= 2 or _rel_row(to_row, side) <= 2:
        return (False, True)
    return (False,)


# ----------------- pseudo-legal generation -----------------

def _piece_moves(pos: Position, sq: int, kind: Kind, side: Side) -> Iterator[Move]:
    cells = pos.cells
    for to in _STEP_TARGETS[(side, kind)][sq]:
        cell = cells[to]
        if cell is not None and cell[1] is side:
            continue
        for promote in _promotion_options(kind, side, sq, to):
            yield Move(side, kind, sq, to, promote)
    for ray in _SLIDE_RAYS[(side, kind)][sq]:
        for to in ray:
            cell = cells[to]
            if cell is not None and cell[1] is side:
                break
            for promote in _promotion_options(kind, side, sq, to):
                yield Move(side, kind, sq, to, promote)
            if cell is not None:
                break


def _drop_allowed(pos: Position, kind: Kind, sq: int, pawn_files: set) -> bool:
    if pos.cells[sq] is not None:
        return False
    row = sq // 9
    if kind in (Kind.PAWN, Kind.LANCE) and row == 0:
        return False
    if kind is Kind.KNIGHT and row <= 1:
        return False
    if kind is Kind.PAWN and sq % 9 in pawn_files:
        return False  # 二歩
    return True


def _pawn_files(pos: Position) -> set:
    return {
        sq % 9 for sq in pos.squares[Side.ATTACKER]
        if pos.cells[sq][0] is Kind.PAWN
    }


def _drops(pos: Position, squares: Optional[Dict[Kind, List[int]]] = None) -> Iterator[Move]:
    pawn_files = _pawn_files(pos)
    for kind in HAND_KINDS:
        if pos.hand.get(kind, 0) <= 0:
            continue
        targets = range(81) if squares is None else squares.get(kind, ())
        for sq in targets:
            if _drop_allowed(pos, kind, sq, pawn_files):
                yield Move(Side.ATTACKER, kind, None, sq, False)


def pseudo_moves(pos: Position) -> Iterator[Move]:
    side = pos.side_to_move
    for sq in sorted(pos.squares[side]):
        kind = pos.cells[sq][0]
        yield from _piece_moves(pos, sq, kind, side)
    if side is Side.ATTACKER:
        yield from _drops(pos)


def _checking_drop_squares(pos: Position) -> Dict[Kind, List[int]]:
    """Empty squares from which a dropped piece of each hand kind would attack the king."""
    k = pos.king_sq
    cells = pos.cells
    out: Dict[Kind, List[int]] = {}
    for src, kinds in _STEP_SOURCES[Side.ATTACKER][k]:
        if cells[src] is None:
            for kind in kinds:
                out.setdefault(kind, []).append(src)
    for ray, kinds in _SLIDE_SOURCES[Side.ATTACKER][k]:
        for s in ray:
            if cells[s] is not None:
                break
            for kind in kinds:
                if s not in out.get(kind, ()):
                    out.setdefault(kind, []).append(s)
    return out


# ----------------- legality filters -----------------

def has_legal_reply(pos: Position) -> bool:
    """Defender to move: is there any move leaving the king unattacked?"""
    for mv in pseudo_moves(pos):
        pos.push(mv)
        ok = not is_attacked(pos, pos.king_sq, Side.ATTACKER)
        pos.pop()
        if ok:
            return True
    return False


def attacker_moves(pos: Position, check_only: bool = True) -> List[Move]:
    """
    Attacker candidates. With check_only (tsume), every move must leave the
    defender king attacked. Pawn drops that leave no reply (打ち歩詰め) are removed.
    """
    out: List[Move] = []
    candidates: List[Move] = [
        mv for sq in sorted(pos.squares[Side.ATTACKER])
        for mv in _piece_moves(pos, sq, pos.cells[sq][0], Side.ATTACKER)
    ]
    if check_only:
        candidates.extend(_drops(pos, _checking_drop_squares(pos)))
    else:
        candidates.extend(_drops(pos))

    for mv in candidates:
        if mv.to == pos.king_sq:
            continue
        pos.push(mv)
        checking = is_attacked(pos, pos.king_sq, Side.ATTACKER)
        illegal = checking and mv.is_pawn_drop and not has_legal_reply(pos)
        pos.pop()
        if illegal or (check_only and not checking):
            continue
        out.append(mv)
    return out


def defender_moves(pos: Position) -> List[Move]:
    out: List[Move] = []
    for mv in list(pseudo_moves(pos)):
        pos.push(mv)
        ok = not is_attacked(pos, pos.king_sq, Side.ATTACKER)
        pos.pop()
        if ok:
            out.append(mv)
    return out


# ----------------- ordering -----------------

def _score(pos: Position, mv: Move) -> int:
    score = 0
    captured = pos.cells[mv.to]
    if captured is not None:
        score += PIECE_VALUE[captured[0].value] - PIECE_VALUE[mv.piece.value]
    if mv.promote:
        score += PROMOTION_BONUS
    if mv.side is Side.ATTACKER:
        pos.push(mv)
        if is_attacked(pos, pos.king_sq, Side.ATTACKER):
            score += CHECK_BONUS
        pos.pop()
    return score


def order_moves(pos: Position, moves: List[Move]) -> List[Move]:
    """Best first; ties keep generation order so results are deterministic."""
    scored = [(_score(pos, mv), i, mv) for i, mv in enumerate(moves)]
    scored.sort(key=lambda t: (-t[0], t[1]))
    return [mv for _, _, mv in scored]


def legal_moves(pos: Position, check_only: bool = True) -> List[Move]:
    if pos.side_to_move is Side.ATTACKER:
        moves = attacker_moves(pos, check_only=check_only)
    else:
        moves = defender_moves(pos)
    return order_moves(pos, moves)
