# replication/table.py
from dataclasses import dataclass

from layers.base import Layer
from replication.errors import ReplicationError


@dataclass
class ReconstructionRecord:
    original_layer: Layer
    rebuilt_layer: Layer
    requires_weights_reset: bool


class ReconstructionTable:
    """
    Records of one rebuild, indexed by the position of the original layer.

    Each original layer gets a stable integer id when the table is created,
    so looking up the rebuilt counterpart of a layer is a dict hit plus a list index.
    """

    def __init__(self, original_layers):
        self._ids = {id(layer): i for i, layer in enumerate(original_layers)}
        self._layers = list(original_layers)
        self._records = [None] * len(self._layers)

    def layer_id(self, layer):
        try:
            return self._ids[id(layer)]
        except KeyError:
            raise ReplicationError(f"Layer {layer.name} is not part of the model being rebuilt") from None

    def add(self, record):
        idx = self.layer_id(record.original_layer)
        if self._records[idx] is not None:
            raise ReplicationError(f"Layer {record.original_layer.name} was already rebuilt")
        self._records[idx] = record

    def lookup(self, layer):
        record = self._records[self.layer_id(layer)]
        if record is None:
            raise ReplicationError(f"Layer {layer.name} is referenced before it was rebuilt")
        return record

    def __iter__(self):
        return (r for r in self._records if r is not None)

    def __len__(self):
        return sum(1 for r in self._records if r is not None)
