# layers/memory.py
"""
Bookkeeping for weight tensors owned by layers.

Every built layer registers the tensors it allocated and releases them in
``dispose()``. ``memory()`` reports what is currently alive, which is what
tests use to check that a model releases exactly what it allocated.
"""
from typing import Dict, Iterable

import torch

_live: Dict[int, torch.Tensor] = {}


def track(tensors: Iterable[torch.Tensor]) -> None:
    for t in tensors:
        _live[id(t)] = t


def release(tensors: Iterable[torch.Tensor]) -> None:
    for t in tensors:
        if _live.pop(id(t), None) is None:
            raise KeyError(f"tensor {id(t)} is not tracked (already released?)")


def memory() -> Dict[str, int]:
    return {
        "num_tensors": len(_live),
        "num_bytes": sum(t.numel() * t.element_size() for t in _live.values()),
    }
