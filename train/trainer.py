# train/trainer.py (minimal)
import torch
import torch.nn as nn
from torch.optim import SGD
from tqdm import tqdm

from utils.logger import get_logger

logger = get_logger("trainer")


def fine_tune(model, train_loader, epochs=1, lr=1e-3, loss_fn=None, progress=False):
    """
    Fine-tune the trainable layers of ``model``; frozen layers are left untouched.
    ``train_loader`` yields (inputs, targets). Returns the mean loss of the last epoch,
    or None if nothing is trainable.
    """
    params = model.trainable_parameters()
    if not params:
        logger.warning("Model %s has no trainable weights, skipping fine-tuning", model.name)
        return None

    opt = SGD(params, lr=lr, momentum=0.9)
    loss_fn = loss_fn or nn.MSELoss()
    mean_loss = None
    for e in range(epochs):
        total, count = 0.0, 0
        for x, y in tqdm(train_loader, desc=f"epoch {e}", disable=not progress):
            opt.zero_grad()
            out = model(x, training=True)
            loss = loss_fn(out, torch.as_tensor(y))
            loss.backward(); opt.step()
            total += loss.item(); count += 1
        mean_loss = total / max(1, count)
        logger.info("Fine-tune %s epoch %d loss=%.6f", model.name, e, mean_loss)
    return mean_loss
