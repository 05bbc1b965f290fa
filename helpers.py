#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

import datetime
import hashlib
from pathlib import Path
from typing import Dict, Optional

from constants import FW_DIGITS, RANK_KANJI, USI_RANKS


def format_total_time(total_sec: int) -> str:
    """秒数を HH:MM:SS に整形（KIFの消費時間表示用）"""
    if total_sec < 0:
        total_sec = 0
    h = total_sec // 3600
    m = (total_sec % 3600) // 60
    s = total_sec % 60
    return f"{h:02d}:{m:02d}:{s:02d}"


def now_yyyy_mm_dd_hhmmss() -> str:
    # 015.kif style: YYYY/MM/DD HH:MM:SS
    return datetime.datetime.now().strftime("%Y/%m/%d %H:%M:%S")


def sq_to_kif(file_: int, rank: int) -> str:
    return f"{FW_DIGITS[str(file_)]}{RANK_KANJI[rank]}"


def sq_to_paren(file_: int, rank: int) -> str:
    return f"({file_}{rank})"


def sq_to_usi(file_: int, rank: int) -> str:
    return f"{file_}{USI_RANKS[rank - 1]}"


def inv_count_kanji(n: int) -> str:
    inv = {
        1:"",2:"二",3:"三",4:"四",5:"五",6:"六",7:"七",8:"八",9:"九",
        10:"十",11:"十一",12:"十二",13:"十三",14:"十四",15:"十五",16:"十六",17:"十七",18:"十八"
    }
    return inv.get(n, str(n))


def _dedup_key_from_kif_text(kif_text: str) -> str:
    b = kif_text.encode("cp932", errors="replace")
    return hashlib.sha1(b).hexdigest()


def _write_kif_unique(
    outdir: Path,
    filename: str,
    kif_text: str,
    seen: Optional[Dict[str, str]] = None,
    dedup_text: Optional[str] = None,
) -> Optional[str]:
    """Write outdir/filename (cp932). Returns None if the same text was already written."""
    key = _dedup_key_from_kif_text(kif_text if dedup_text is None else dedup_text)
    if seen is not None and key in seen:
        return None
    p = outdir / filename
    p.write_bytes(kif_text.encode("cp932", errors="replace"))
    if seen is not None:
        seen[key] = str(p)
    return str(p)
