#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
詰将棋探索コア

Public API:
- solve
- replay
- legal_moves_after
- continuation_after
- verify_mate_path
"""

import logging
import time
from types import MappingProxyType
from typing import Iterable, List, Optional, Tuple

from errors import CorruptPositionError, PositionError
from models import BoardSnapshot, Move, Side, SolveLimits, SolveResult, SolveStatus
from movegen import is_check, legal_moves
from position import Position
from progress import CancelToken, ProgressCallback, SearchCancelled, SearchMonitor
from transposition import Bound, TranspositionTable
from zobrist import ZobristConfig, ZobristKeys

__all__ = [
    "MateSearch",
    "solve",
    "prepare_position",
    "replay",
    "legal_moves_after",
    "continuation_after",
    "verify_mate_path",
]

logger = logging.getLogger(__name__)

Path = Tuple[Move, ...]

# depth recorded for results that hold at any depth (no checks / already mated)
UNBOUNDED = 10 ** 6


class MateSearch:
    """
    AND-OR search on path length.

    OR node (attacker): shortest mate over the checking moves. Once a mate of
    length L is known, later children only get L - 2 plies, so the window
    shrinks instead of carrying an explicit beta. With `alpha` set, the node
    stops as soon as it has a mate no longer than alpha, since the AND parent
    already holds a longer line.

    AND node (defender): every reply must be mated; the result is the longest
    continuation. The first reply that escapes fails the node.
    """

    def __init__(
        self,
        pos: Position,
        monitor: SearchMonitor,
        table: Optional[TranspositionTable] = None,
    ) -> None:
        self.pos = pos
        self.monitor = monitor
        self.table = table

    def _store(self, key: int, depth: int, path: Optional[Path], bound: Bound) -> None:
        if self.table is not None:
            self.table.store(key, depth, path, bound)

    def or_node(self, remaining: int, alpha: Optional[int] = None) -> Optional[Path]:
        self.monitor.visit()
        if remaining <= 0:
            return None
        pos = self.pos
        key = pos.key
        if self.table is not None:
            usable, hit = self.table.probe(key, remaining, alpha)
            if usable:
                return hit

        moves = legal_moves(pos)
        if not moves:
            self._store(key, UNBOUNDED, None, Bound.EXACT)
            return None

        best: Optional[Path] = None
        bound = Bound.EXACT
        for mv in moves:
            limit = remaining - 1 if best is None else min(remaining - 1, len(best) - 2)
            pos.push(mv)
            try:
                child = self.and_node(limit)
            finally:
                pos.pop()
            if child is None:
                continue
            best = (mv,) + child
            if len(best) == 1:
                break
            if alpha is not None and len(best) <= alpha:
                bound = Bound.UPPER_BOUND
                break

        if best is None:
            self._store(key, remaining, None, Bound.LOWER_BOUND)
        else:
            self._store(key, remaining, best, bound)
        return best

    def and_node(self, remaining: int) -> Optional[Path]:
        self.monitor.visit()
        pos = self.pos
        key = pos.key
        if self.table is not None:
            usable, hit = self.table.probe(key, remaining)
            if usable:
                return hit

        replies = legal_moves(pos)
        if not replies:
            # 打ち歩詰めは指し手生成の段階で除外済み
            self._store(key, UNBOUNDED, (), Bound.EXACT)
            return ()
        if remaining < 2:
            return None

        best: Optional[Path] = None
        for mv in replies:
            alpha = None if best is None else len(best) - 1
            pos.push(mv)
            try:
                child = self.or_node(remaining - 1, alpha)
            finally:
                pos.pop()
            if child is None:
                self._store(key, remaining, None, Bound.LOWER_BOUND)
                return None
            if best is None or len(child) + 1 > len(best):
                best = (mv,) + child

        self._store(key, remaining, best, Bound.EXACT)
        return best

    def run(self, max_ply: int) -> Tuple[SolveStatus, Optional[Path], int]:
        """Iterative deepening over odd depths. Returns (status, path, depth_completed)."""
        depth_completed = 0
        try:
            self.monitor.check()
            if not legal_moves(self.pos):
                return SolveStatus.NO_MATE, None, 0
            for depth in range(1, max_ply + 1, 2):
                self.monitor.depth = depth
                self.monitor.check()
                path = self.or_node(depth)
                depth_completed = depth
                logger.debug("depth %d: nodes=%d found=%s", depth, self.monitor.nodes, path is not None)
                if path is not None:
                    return SolveStatus.MATE, path, depth_completed
        except SearchCancelled as e:
            logger.debug("search stopped: %s", e)
            return SolveStatus.TIMED_OUT, None, depth_completed
        return SolveStatus.NO_MATE, None, depth_completed


def _keys_for(limits: SolveLimits) -> ZobristKeys:
    return ZobristKeys(ZobristConfig(seed=limits.hash_seed))


def prepare_position(snapshot: BoardSnapshot, limits: Optional[SolveLimits] = None) -> Position:
    """
    Position for the snapshot; raises PositionError for unsolvable setups.

    With the attacker to move, the defender king must not already be in check
    (the defender would have had to leave it there on the previous move).
    """
    if limits is None:
        limits = SolveLimits()
    pos = Position.from_snapshot(snapshot, _keys_for(limits))
    if pos.side_to_move is Side.ATTACKER and is_check(pos):
        raise PositionError("攻め方の手番で玉方の玉に王手がかかっています")
    return pos


def replay(snapshot: BoardSnapshot, moves: Iterable[Move], limits: Optional[SolveLimits] = None) -> Position:
    pos = prepare_position(snapshot, limits)
    for i, mv in enumerate(moves, start=1):
        if mv not in legal_moves(pos, check_only=False):
            raise PositionError(f"{i}手目 {mv} は指せません")
        pos.push(mv)
    return pos


def legal_moves_after(
    snapshot: BoardSnapshot,
    prefix: Iterable[Move] = (),
    check_only: bool = True,
    limits: Optional[SolveLimits] = None,
) -> List[Move]:
    """Candidate list for whoever moves after `prefix` (for browsing a solution)."""
    pos = replay(snapshot, prefix, limits)
    return legal_moves(pos, check_only=check_only)


def continuation_after(
    result: SolveResult,
    snapshot: BoardSnapshot,
    prefix: Iterable[Move],
    limits: Optional[SolveLimits] = None,
) -> Optional[Path]:
    """
    Known mate continuation from the position reached by `prefix`, if any.

    The map is keyed by Zobrist hash, so the replay uses the seed the result
    was searched with unless `limits` says otherwise.
    """
    if limits is None:
        limits = SolveLimits(hash_seed=result.hash_seed)
    pos = replay(snapshot, prefix, limits)
    return result.continuations.get(pos.key)


def verify_mate_path(pos: Position, path: Path) -> bool:
    """
    True if `path` is a forced-mate line from pos: attacker moves all check,
    every defender ply has a reply, and the final position has none.
    """
    pushed = 0
    try:
        for mv in path:
            if mv not in legal_moves(pos):
                return False
            pos.push(mv)
            pushed += 1
        return pos.side_to_move is Side.DEFENDER and not legal_moves(pos)
    finally:
        for _ in range(pushed):
            pos.pop()


def solve(
    snapshot: BoardSnapshot,
    limits: Optional[SolveLimits] = None,
    token: Optional[CancelToken] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> SolveResult:
    """
    Shortest forced mate for the attacker within limits.max_ply plies.

    Cancellation (token, limits.max_time_sec or limits.max_nodes) is not an
    error: the result is TIMED_OUT with the deepest odd depth fully searched.
    The caller's token is only read, so it can be reused for later calls.
    """
    if limits is None:
        limits = SolveLimits()
    pos = prepare_position(snapshot, limits)
    if pos.side_to_move is not Side.ATTACKER:
        raise PositionError("攻め方（先手）の手番の局面のみ解析できます")

    deadline = None
    if limits.max_time_sec is not None:
        deadline = time.monotonic() + limits.max_time_sec

    monitor = SearchMonitor(
        checkpoint_interval=limits.checkpoint_interval,
        token=token,
        on_progress=on_progress,
        max_nodes=limits.max_nodes,
        deadline=deadline,
    )
    table = TranspositionTable(limits.tt_max_entries) if limits.use_transposition else None
    search = MateSearch(pos, monitor, table)

    start = time.perf_counter()
    status, path, depth_completed = search.run(limits.max_ply)
    elapsed = time.perf_counter() - start

    if path is not None and not verify_mate_path(pos, path):
        raise CorruptPositionError("探索結果の手順が詰みになっていません")

    continuations = table.exact_paths() if table is not None else {}
    if path is not None:
        continuations[pos.key] = path

    if table is not None:
        logger.debug("%r", table)
    logger.info(
        "solve: %s len=%s depth=%d nodes=%d %.3fs",
        status.value, None if path is None else len(path), depth_completed, monitor.nodes, elapsed,
    )
    return SolveResult(
        status=status,
        path=path,
        depth_completed=depth_completed,
        nodes=monitor.nodes,
        elapsed=elapsed,
        continuations=MappingProxyType(continuations),
        hash_seed=limits.hash_seed,
    )
