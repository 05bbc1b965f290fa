#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
Zobrist keys for tsume positions.

Hash = XOR of
  - one key per (side, kind, square) for every occupied square
  - one key per (hand kind, n) for n = 1..count of every attacker hand kind
  - the turn key when the attacker is to move

Keys come from a seeded random.Random, so two ZobristKeys built from the same
ZobristConfig are identical and nothing is shared at module level.
"""

from dataclasses import dataclass
import random
from typing import Dict, List, Tuple

from constants import TOTAL_COUNTS
from models import Kind, Side

__all__ = ["ZobristConfig", "ZobristKeys", "HAND_KINDS"]

HAND_KINDS = (Kind.ROOK, Kind.BISHOP, Kind.GOLD, Kind.SILVER, Kind.KNIGHT, Kind.LANCE, Kind.PAWN)


@dataclass(frozen=True)
class ZobristConfig:
    seed: int = 0
    bits: int = 64


class ZobristKeys:
    def __init__(self, config: ZobristConfig = ZobristConfig()) -> None:
        self.config = config
        rng = random.Random(config.seed)
        bits = config.bits
        self.board: Dict[Tuple[Side, Kind], List[int]] = {}
        for side in Side:
            for kind in Kind:
                self.board[(side, kind)] = [rng.getrandbits(bits) for _ in range(81)]
        # hand[kind][n] toggles the n-th held piece; index 0 unused
        self.hand: Dict[Kind, List[int]] = {
            kind: [0] + [rng.getrandbits(bits) for _ in range(TOTAL_COUNTS[kind.value])]
            for kind in HAND_KINDS
        }
        self.turn = rng.getrandbits(bits)

    def piece(self, side: Side, kind: Kind, sq: int) -> int:
        return self.board[(side, kind)][sq]

    def hand_piece(self, kind: Kind, n: int) -> int:
        return self.hand[kind][n]
