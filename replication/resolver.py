# replication/resolver.py
from replication.errors import UnsupportedTopology


def resolve(table, ref, allow_multi_output=True):
    """
    Map a SymbolicTensor of the original model (or a list of them) to its
    counterpart in the rebuilt model.

    With ``allow_multi_output=False`` a reference into a multi-output layer is refused.
    """
    if isinstance(ref, (list, tuple)):
        return [resolve(table, r, allow_multi_output) for r in ref]

    rebuilt = table.lookup(ref.source_layer).rebuilt_layer
    output = rebuilt.output
    if not isinstance(output, list):
        return output
    if not allow_multi_output:
        raise UnsupportedTopology(
            f"Multi-output layers are not supported (layer {ref.source_layer.name} has {len(output)} outputs)")
    return output[ref.tensor_index]
