# replication/assembler.py
from architectures.graph import Model
from replication.resolver import resolve


def assemble(table, original_model, name=None, allow_multi_output=True):
    """Build the rebuilt Model from the declared inputs/outputs of ``original_model``."""
    inputs = resolve(table, original_model.inputs, allow_multi_output)
    outputs = resolve(table, original_model.outputs, allow_multi_output)
    return Model(inputs=inputs, outputs=outputs, name=name)
