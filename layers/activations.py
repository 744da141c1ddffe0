import torch
import torch.nn.functional as F

_ACT = {
    "linear": lambda x: x,
    "relu": torch.relu,
    "gelu": F.gelu,
    "sigmoid": torch.sigmoid,
    "tanh": torch.tanh,
    "softmax": lambda x: torch.softmax(x, dim=-1),
}


def get_activation(name):
    key = "linear" if name is None else str(name).lower()
    if key not in _ACT:
        raise ValueError(f"Unknown activation '{name}'. Expected one of {sorted(_ACT)}")
    return _ACT[key]
