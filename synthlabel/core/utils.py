from __future__ import annotations
import numpy as np
import logging

def get_logger(name: str = "synthlabel") -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger

def clamp(value: float, lo: float, hi: float) -> float:
    return float(min(max(value, lo), hi))

def round_half_up(v: np.ndarray) -> np.ndarray:
    # ties go toward +inf; np.round would round half to even
    return np.floor(np.asarray(v, dtype=np.float64) + 0.5)

def natural_key(text: str) -> tuple:
    """Sort key that orders embedded integers numerically ("sample_2" < "sample_10")."""
    parts = []
    num = ""
    word = ""
    for ch in text:
        if ch.isdigit():
            if word:
                parts.append((1, word, 0))
                word = ""
            num += ch
        else:
            if num:
                parts.append((0, "", int(num)))
                num = ""
            word += ch
    if num:
        parts.append((0, "", int(num)))
    if word:
        parts.append((1, word, 0))
    return tuple(parts)

