# tests/test_transfer.py
import numpy as np
import pytest

from layers.core import Activation, Dense, Input
from replication.errors import WeightTransferError
from replication.transfer import transfer_weights


def build_pair(in_features=3, units=2, use_bias=True):
    original = Dense(units)
    original.apply(Input(shape=[3]))
    rebuilt = Dense(units, use_bias=use_bias)
    rebuilt.apply(Input(shape=[in_features]))
    return original, rebuilt


def test_copies_weights_positionally():
    original, rebuilt = build_pair()
    assert transfer_weights(original, rebuilt, requires_reset=False)
    for a, b in zip(original.get_weights(), rebuilt.get_weights()):
        np.testing.assert_array_equal(a.numpy(), b.numpy())
    assert rebuilt.trainable


def test_copied_weights_are_independent():
    original, rebuilt = build_pair()
    transfer_weights(original, rebuilt, requires_reset=False)
    before = original.get_weights()[0]
    rebuilt.set_weights([w * 0 for w in rebuilt.get_weights()])
    np.testing.assert_array_equal(original.get_weights()[0].numpy(), before.numpy())


def test_reset_keeps_fresh_weights_and_freezes():
    original, rebuilt = build_pair()
    fresh = rebuilt.get_weights()
    assert not transfer_weights(original, rebuilt, requires_reset=True)
    np.testing.assert_array_equal(rebuilt.get_weights()[0].numpy(), fresh[0].numpy())
    assert not rebuilt.trainable


def test_reset_can_stay_trainable():
    original, rebuilt = build_pair()
    transfer_weights(original, rebuilt, requires_reset=True, preserved_weights_are_trainable=True)
    assert rebuilt.trainable


def test_weightless_layer_untouched():
    x = Input(shape=[3])
    original = Activation("relu")
    original.apply(x)
    rebuilt = Activation("relu")
    rebuilt.apply(Input(shape=[3]))
    assert not transfer_weights(original, rebuilt, requires_reset=True)
    assert rebuilt.trainable


def test_mismatch_is_fatal():
    original, rebuilt = build_pair(use_bias=False)
    with pytest.raises(WeightTransferError):
        transfer_weights(original, rebuilt, requires_reset=False)

    original, rebuilt = build_pair(in_features=5)
    with pytest.raises(WeightTransferError):
        transfer_weights(original, rebuilt, requires_reset=False)
