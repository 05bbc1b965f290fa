#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
Transposition table for the mate search.

Entries are keyed by the Zobrist key of a position (side to move included) and
hold the remaining depth they were searched with, the continuation found (None
means no mate within that depth) and how far the result can be trusted:

    EXACT        true mate length is len(path); path is the principal line
    LOWER_BOUND  no mate within `depth` plies (path is None)
    UPPER_BOUND  a mate of len(path) exists but a shorter one was not looked for
                 (the OR node stopped early because the parent could not use it)

One table lives for one top-level solve call.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from models import Move

__all__ = ["Bound", "TTEntry", "TranspositionTable"]

Path = Tuple[Move, ...]


class Bound(Enum):
    EXACT = 0
    LOWER_BOUND = 1
    UPPER_BOUND = 2


@dataclass
class TTEntry:
    key: int
    depth: int
    path: Optional[Path]
    bound: Bound

    def __repr__(self) -> str:
        length = "-" if self.path is None else len(self.path)
        return f"TTEntry(key={self.key:#x}, depth={self.depth}, len={length}, bound={self.bound.name})"


class TranspositionTable:
    def __init__(self, max_entries: int = 1_000_000) -> None:
        self.max_entries = max_entries
        self.table: Dict[int, TTEntry] = {}
        self.hits = 0
        self.misses = 0
        self.stores = 0

    def __len__(self) -> int:
        return len(self.table)

    def store(self, key: int, depth: int, path: Optional[Path], bound: Bound) -> None:
        existing = self.table.get(key)
        if existing is not None:
            # deeper results win; an EXACT result always replaces a bound
            if depth < existing.depth and not (bound is Bound.EXACT and existing.bound is not Bound.EXACT):
                return
            del self.table[key]
        elif len(self.table) >= self.max_entries:
            # oldest first
            del self.table[next(iter(self.table))]
        self.table[key] = TTEntry(key, depth, path, bound)
        self.stores += 1

    def lookup(self, key: int, depth: int) -> Optional[TTEntry]:
        """Entry for key if it was searched with at least `depth` plies remaining."""
        entry = self.table.get(key)
        if entry is not None and entry.depth >= depth:
            self.hits += 1
            return entry
        self.misses += 1
        return None

    def probe(self, key: int, depth: int, alpha: Optional[int] = None) -> Tuple[bool, Optional[Path]]:
        """
        Returns (usable, path).
          EXACT       -> path if it fits in `depth`, else None (no mate that short)
          LOWER_BOUND -> None
          UPPER_BOUND -> path only as an alpha cutoff (len(path) <= alpha)
        """
        entry = self.lookup(key, depth)
        if entry is None:
            return False, None
        if entry.bound is Bound.EXACT:
            if entry.path is not None and len(entry.path) <= depth:
                return True, entry.path
            return True, None
        if entry.bound is Bound.LOWER_BOUND:
            return True, None
        if alpha is not None and entry.path is not None and len(entry.path) <= alpha:
            return True, entry.path
        return False, None

    def exact_paths(self) -> Dict[int, Path]:
        return {
            k: e.path for k, e in self.table.items()
            if e.bound is Bound.EXACT and e.path is not None
        }

    def clear(self) -> None:
        self.table.clear()
        self.hits = 0
        self.misses = 0
        self.stores = 0

    def get_stats(self) -> Dict[str, float]:
        total = self.hits + self.misses
        return {
            "entries": len(self.table),
            "hits": self.hits,
            "misses": self.misses,
            "stores": self.stores,
            "hit_rate": (self.hits / total * 100) if total else 0.0,
        }

    def __repr__(self) -> str:
        stats = self.get_stats()
        return f"TranspositionTable(entries={stats['entries']}, hit_rate={stats['hit_rate']:.1f}%)"
