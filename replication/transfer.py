# replication/transfer.py
from replication.errors import WeightTransferError
from utils.logger import get_logger

logger = get_logger("transfer")


def transfer_weights(original, rebuilt, requires_reset, preserved_weights_are_trainable=False):
    """
    Copy the weights of ``original`` into ``rebuilt`` unless ``requires_reset``.

    A reset layer keeps its fresh initialization and is frozen unless
    ``preserved_weights_are_trainable``. Weightless layers are left alone.
    Returns True if weights were copied.
    """
    if not original.weights and not rebuilt.weights:
        return False

    if requires_reset:
        if not preserved_weights_are_trainable:
            rebuilt.trainable = False
        logger.debug("Kept fresh weights for %s (trainable=%s)", rebuilt.name, rebuilt.trainable)
        return False

    weights = original.get_weights()
    targets = rebuilt.weights
    if len(weights) != len(targets):
        logger.error("Weight count mismatch %s -> %s: %d vs %d", original.name, rebuilt.name,
                     len(weights), len(targets))
        raise WeightTransferError(
            f"Layer {original.name} has {len(weights)} weights but its rebuilt counterpart expects {len(targets)}")
    for i, (src, dst) in enumerate(zip(weights, targets)):
        if tuple(src.shape) != tuple(dst.shape):
            logger.error("Weight %d shape mismatch %s -> %s: %s vs %s", i, original.name, rebuilt.name,
                         tuple(src.shape), tuple(dst.shape))
            raise WeightTransferError(
                f"Weight {i} of layer {original.name} has shape {tuple(src.shape)} but the rebuilt layer "
                f"expects {tuple(dst.shape)}. An upstream shape change reached this layer; "
                f"use propagate_shape_changes=True to reset it")

    rebuilt.set_weights(weights)
    logger.debug("Copied %d weights %s -> %s", len(weights), original.name, rebuilt.name)
    return True
