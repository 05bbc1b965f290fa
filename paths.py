#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
paths.py

入出力フォルダ（INPUT/OUTPUT）とパス解決の共通化。
フォルダは必要になったときに作成する（import 時には作らない）。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


def _base_dir() -> Path:
    # このモジュール（paths.py）のあるディレクトリを基準にする
    return Path(__file__).resolve().parent


def _output_dir() -> Path:
    return _base_dir() / "OUTPUT"


def _ensure_output_dir(outdir: Optional[Union[str, Path]] = None) -> Path:
    out = Path(outdir) if outdir is not None else _output_dir()
    out.mkdir(parents=True, exist_ok=True)
    return out


def _input_dir() -> Path:
    return _base_dir() / "INPUT"

