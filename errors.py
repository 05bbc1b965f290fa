#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations


class PositionError(ValueError):
    """Snapshot cannot be searched (king count, hand contents, illegal replay)."""


class CorruptPositionError(RuntimeError):
    """Internal board state disagrees with a move being made or unmade."""
