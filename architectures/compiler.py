# architectures/compiler.py
from utils.logger import get_logger

logger = get_logger("compiler")


def _check_input(sym, value):
    if value.dim() != len(sym.shape):
        raise ValueError(f"Input {sym.name} expects rank {len(sym.shape)}, got shape {tuple(value.shape)}")
    for expected, actual in zip(sym.shape, value.shape):
        if expected is not None and expected != actual:
            raise ValueError(f"Input {sym.name} expects shape {list(sym.shape)}, got {tuple(value.shape)}")


def run_graph(model, inputs, training=False):
    """
    Evaluate ``model`` on concrete tensors, one call record at a time in topological order.
    Recorded call arguments take precedence over ``training``.
    """
    cache = {}
    for sym, value in zip(model.inputs, inputs):
        _check_input(sym, value)
        cache[id(sym)] = value

    for node in model.nodes:
        layer = node.outbound_layer
        if layer.is_input:
            continue

        missing = [t.name for t in node.input_tensors if id(t) not in cache]
        if missing:
            logger.error("Layer %s input(s) %s not computed", layer.name, missing)
            raise KeyError(f"Missing inputs for layer {layer.name}: {missing}")

        args = [cache[id(t)] for t in node.input_tensors]
        x = args if node.input_is_list else args[0]
        kwargs = dict(node.call_args)
        kwargs.setdefault("training", training)

        try:
            out = layer.call(x, **kwargs)
        except Exception:
            logger.exception("Layer forward failed at %s (%s) input shapes=%s",
                             layer.name, layer.class_name, [tuple(a.shape) for a in args])
            raise

        outs = out if node.output_is_list else [out]
        for sym, value in zip(node.output_tensors, outs):
            cache[id(sym)] = value
        logger.debug("Layer %s produced output shape(s) %s", layer.name, [tuple(o.shape) for o in outs])

    for t in model.outputs:
        if id(t) not in cache:
            logger.error("Output %s not computed. Cache holds %d tensors", t.name, len(cache))
            raise KeyError("Output not computed")

    return [cache[id(t)] for t in model.outputs]
