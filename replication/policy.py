# replication/policy.py
"""
When must a rebuilt layer discard the weights of its original?

- an input layer whose shape is overridden (even with the same value)
- an output layer whose width is overridden (even with the same value)
- a layer applied directly to an overridden input (one hop only)
- optionally, a layer fed by a layer whose output shape changed
"""
from replication.config import is_preserved
from replication.errors import InvalidConfiguration

WIDTH_FIELDS = ("units", "filters")


def _index_of(layer, layers):
    for i, candidate in enumerate(layers):
        if candidate is layer:
            return i
    return -1


def width_fields(layer_config):
    return [key for key in WIDTH_FIELDS if key in layer_config]


def input_override(layer, config, model):
    """The new shape for input layer ``layer``, or None if it is kept."""
    if config.new_input_shapes is None:
        return None
    idx = _index_of(layer, model.input_layers)
    if idx == -1 or is_preserved(config.new_input_shapes[idx]):
        return None
    return tuple(d if d is None else int(d) for d in config.new_input_shapes[idx])


def output_width_override(layer, config, model, layer_config=None):
    """
    The new width for output layer ``layer``, or None if it is kept.
    Raises InvalidConfiguration when the layer has no ``units``/``filters`` to override.
    """
    if config.new_output_widths is None:
        return None
    idx = _index_of(layer, model.output_layers)
    if idx == -1 or config.new_output_widths[idx] is None:
        return None
    if layer_config is None:
        layer_config = layer.get_config()
    if not width_fields(layer_config):
        raise InvalidConfiguration(
            f"Cannot update output shape of {layer.name}: no field "
            f"{' nor '.join(repr(k) for k in WIDTH_FIELDS)} found in the layer's config")
    return int(config.new_output_widths[idx])


def resets_because_of_input(layer, config, model):
    """True if ``layer`` is applied directly to an input whose shape is overridden."""
    if config.new_input_shapes is None:
        return False
    for node in layer.inbound_nodes:
        for source in node.inbound_layers:
            if source.is_input and input_override(source, config, model) is not None:
                return True
    return False


def resets_because_of_predecessor(layer, table):
    """True if any direct predecessor's output shape changed in the rebuild."""
    for node in layer.inbound_nodes:
        for source in node.inbound_layers:
            if table.lookup(source).requires_weights_reset:
                return True
    return False


def requires_reset(layer, config, model, table=None):
    if layer.is_input:
        return input_override(layer, config, model) is not None
    if output_width_override(layer, config, model) is not None:
        return True
    if resets_because_of_input(layer, config, model):
        return True
    if config.propagate_shape_changes and table is not None:
        return resets_because_of_predecessor(layer, table)
    return False


def output_shape_changed(original, rebuilt):
    return rebuilt.output_shape != original.output_shape
