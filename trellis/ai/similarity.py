"""
Vector similarity for recommendations and semantic search.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from trellis.logger import get_logger

logger = get_logger("ai.similarity")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    dot(a, b) / (|a| * |b|).

    Defined as 0.0 when either vector has zero magnitude. Vectors of different
    length raise ValueError.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Embedding dimensions differ: {va.shape} vs {vb.shape}")
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


def rank_by_similarity(
    target: Sequence[float],
    candidates: Iterable[Tuple[int, Sequence[float]]],
    limit: Optional[int] = None,
    threshold: Optional[float] = None,
) -> List[Tuple[int, float]]:
    """
    Score ``(product_id, embedding)`` candidates against ``target``.

    Returns (product_id, similarity) sorted by similarity descending, ties by
    product id. Candidates below ``threshold`` are dropped; candidates whose
    dimension does not match the target are skipped and logged.
    """
    scored = []
    for product_id, embedding in candidates:
        try:
            score = cosine_similarity(target, embedding)
        except ValueError as e:
            logger.warning("similarity: method=rank product_id=%s result=skipped error=%s", product_id, e)
            continue
        if threshold is not None and score < threshold:
            continue
        scored.append((product_id, score))

    scored.sort(key=lambda item: (-item[1], item[0]))
    if limit is not None:
        scored = scored[:limit]
    return scored
