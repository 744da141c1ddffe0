# tests/test_trainer.py
import torch

from architectures.graph import Model
from layers.core import Dense, Input
from replication.driver import reconstruct
from train.trainer import fine_tune


def build_model():
    x = Input(shape=[3])
    h = Dense(4, activation="tanh").apply(x)
    return Model(x, Dense(2).apply(h))


def dummy_loader(batch_size=8, batches=4, out_dim=3):
    g = torch.Generator().manual_seed(0)
    return [(torch.randn(batch_size, 3, generator=g), torch.randn(batch_size, out_dim, generator=g))
            for _ in range(batches)]


def test_fine_tune_updates_only_trainable_layers():
    original = build_model()
    rebuilt = reconstruct(original, {"new_output_widths": [3]})
    hidden, head = rebuilt.layers[1], rebuilt.layers[2]
    assert hidden.trainable and not head.trainable

    hidden_before = hidden.get_weights()
    head_before = head.get_weights()
    loss = fine_tune(rebuilt, dummy_loader(), epochs=2, lr=0.05)

    assert loss is not None
    assert any(not torch.equal(a, b) for a, b in zip(hidden_before, hidden.get_weights()))
    assert all(torch.equal(a, b) for a, b in zip(head_before, head.get_weights()))


def test_fine_tune_with_nothing_trainable():
    model = build_model()
    for layer in model.layers:
        layer.trainable = False
    assert fine_tune(model, dummy_loader(out_dim=2)) is None
