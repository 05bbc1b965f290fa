#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# ----------------- constants -----------------

FW_DIGITS = {str(i): ch for i, ch in enumerate("０１２３４５６７８９")}
RANK_KANJI = {1: "一", 2: "二", 3: "三", 4: "四", 5: "五", 6: "六", 7: "七", 8: "八", 9: "九"}

# keyed by Kind.value (SFEN letter, "+" prefix when promoted)
PIECE_JP = {"P":"歩","L":"香","N":"桂","S":"銀","G":"金","B":"角","R":"飛","K":"玉"}
PROMOTED_JP = {"P":"と","L":"成香","N":"成桂","S":"成銀","B":"馬","R":"竜"}
PROMOTABLE = set(["P","L","N","S","B","R"])

# Total piece counts in standard shogi (also the hand-count ceiling for hashing)
TOTAL_COUNTS = {"R":2,"B":2,"G":4,"S":4,"N":4,"L":4,"P":18,"K":2}

# display order for hands (飛 角 金 銀 桂 香 歩)
HAND_ORDER = ["R", "B", "G", "S", "N", "L", "P"]

# move-ordering values (not an evaluation)
PIECE_VALUE = {
    "P": 100, "L": 300, "N": 400, "S": 500, "G": 600, "B": 800, "R": 1000, "K": 0,
    "+P": 600, "+L": 600, "+N": 600, "+S": 600, "+B": 1000, "+R": 1200,
}
PROMOTION_BONUS = 300
CHECK_BONUS = 1000

USI_RANKS = "abcdefghi"
