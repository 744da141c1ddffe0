# replication/driver.py
from architectures.sequential import Sequential
from layers.registry import deserialize
from replication import policy
from replication.assembler import assemble
from replication.config import ReplicationConfig, as_config
from replication.errors import UnsupportedTopology
from replication.resolver import resolve
from replication.table import ReconstructionRecord, ReconstructionTable
from replication.transfer import transfer_weights
from utils.logger import get_logger

logger = get_logger("replication")


def _rebuild_input_layer(layer, layer_config, config, model):
    new_shape = policy.input_override(layer, config, model)
    if new_shape is not None:
        layer_config.pop("batch_input_shape", None)
        layer_config["input_shape"] = new_shape
        logger.debug("Input %s: shape overridden to %s", layer.name, list(new_shape))
    rebuilt = deserialize(layer.class_name, layer_config)
    return ReconstructionRecord(layer, rebuilt, new_shape is not None)


def _rebuild_layer(layer, layer_config, config, model, table, allow_multi_output, reset_layers):
    if len(layer.inbound_nodes) != 1:
        raise UnsupportedTopology(
            f"Layer {layer.name} is applied {len(layer.inbound_nodes)} times; "
            f"layers with multiple inbound nodes are not supported")
    original_node = layer.inbound_nodes[0]

    width = policy.output_width_override(layer, config, model, layer_config)
    if width is not None:
        for key in policy.width_fields(layer_config):
            layer_config[key] = width
        logger.debug("Output %s: width overridden to %d", layer.name, width)

    rebuilt = deserialize(layer.class_name, layer_config)
    try:
        rebuilt.apply(resolve(table, original_node.inputs, allow_multi_output), **original_node.call_args)
        reset = policy.requires_reset(layer, config, model, table)
        transfer_weights(layer, rebuilt, reset, config.preserved_weights_are_trainable)
    except Exception:
        rebuilt.dispose()
        raise

    if reset:
        reset_layers.append(layer.name)
    return ReconstructionRecord(layer, rebuilt, policy.output_shape_changed(layer, rebuilt))


def reconstruct(original_model, config=None, allow_multi_output=True, name=None):
    """
    Rebuild ``original_model`` layer by layer into a new, independent Model.

    Weights are copied wherever a layer's shape contract is untouched by the
    overrides in ``config`` (a ReplicationConfig or a mapping of its fields).
    The original model is never modified; on failure every layer allocated so
    far is disposed and the error propagates.
    """
    config = as_config(config)
    if isinstance(original_model, Sequential):
        raise UnsupportedTopology(
            f"Sequential models are not supported ({original_model.name}); build a functional Model instead")
    config.validate(original_model)

    logger.info("Rebuilding model %s (%d layers)", original_model.name, len(original_model.layers))
    table = ReconstructionTable(original_model.layers)
    reset_layers = []
    try:
        for layer in original_model.layers:
            layer_config = dict(layer.get_config())
            layer_config.pop("name", None)
            if layer.is_input:
                record = _rebuild_input_layer(layer, layer_config, config, original_model)
            else:
                record = _rebuild_layer(layer, layer_config, config, original_model, table,
                                        allow_multi_output, reset_layers)
            table.add(record)
            logger.debug("Rebuilt %s -> %s (requires_weights_reset=%s)",
                         layer.name, record.rebuilt_layer.name, record.requires_weights_reset)

        new_model = assemble(table, original_model, name=name, allow_multi_output=allow_multi_output)
    except Exception:
        logger.error("Rebuilding %s failed, disposing %d rebuilt layers", original_model.name, len(table))
        for record in table:
            record.rebuilt_layer.dispose()
        raise

    if config.verbose:
        logger.info("The weights of layers %s in model %s are reset", ", ".join(reset_layers), original_model.name)
    else:
        logger.debug("Layers with reset weights: %s", reset_layers)
    logger.info("Rebuilt model %s as %s", original_model.name, new_model.name)
    return new_model


def replicate_layers_model(original_model, **options):
    """Rebuild with the full set of options (see ReplicationConfig)."""
    return reconstruct(original_model, ReplicationConfig.from_mapping(options))


def recreate_layers_model(original_model, new_input_shapes=None, new_output_widths=None):
    """
    Minimal rebuild: shape/width overrides only. Trainability is left as it was,
    nothing is reported, and references into multi-output layers are refused.
    """
    config = ReplicationConfig(new_input_shapes=new_input_shapes,
                               new_output_widths=new_output_widths,
                               preserved_weights_are_trainable=True)
    return reconstruct(original_model, config, allow_multi_output=False)
