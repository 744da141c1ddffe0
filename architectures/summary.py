# architectures/summary.py
from utils.logger import get_logger

logger = get_logger("summary")


def count_parameters(model):
    total = sum(w.numel() for layer in model.layers for w in layer.weights)
    trainable = sum(p.numel() for p in model.trainable_parameters())
    logger.debug("Parameter count for %s: total=%d trainable=%d", model.name, total, trainable)
    return {"total": total, "trainable": trainable, "non_trainable": total - trainable}


def _fmt_shape(shape):
    if shape is None:
        return "-"
    if isinstance(shape, list):
        return "[" + ",".join(_fmt_shape(s) for s in shape) + "]"
    return "[" + ",".join("null" if d is None else str(d) for d in shape) + "]"


def summarize(model, width=90):
    """Human-readable table: one row per layer, then parameter totals."""
    cols = (28, 26, 26, 10)
    rule = "_" * width
    lines = [rule,
             "".join(h.ljust(c) for h, c in zip(("Layer (type)", "Input Shape", "Output shape", "Param #"), cols)),
             "=" * width]
    for i, layer in enumerate(model.layers):
        in_shape = layer.input_shape if not layer.is_input else layer.output_shape
        row = (f"{layer.name} ({layer.class_name})",
               _fmt_shape(in_shape),
               _fmt_shape(layer.output_shape),
               str(layer.count_params()))
        lines.append("".join(v.ljust(c) for v, c in zip(row, cols)))
        lines.append("=" * width if i == len(model.layers) - 1 else rule)

    counts = count_parameters(model)
    lines += [f"Total params: {counts['total']}",
              f"Trainable params: {counts['trainable']}",
              f"Non-trainable params: {counts['non_trainable']}",
              rule]
    return "\n".join(lines)
