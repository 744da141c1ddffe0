# tests/test_policy.py
import pytest

from architectures.graph import Model
from layers.core import Activation, Dense, Flatten, Input
from replication import policy
from replication.config import PRESERVE, ReplicationConfig
from replication.errors import InvalidConfiguration
from replication.table import ReconstructionRecord, ReconstructionTable


def build_chain():
    # input -> dense_1 -> dense_2 -> dense_3
    x = Input(shape=[3])
    h1 = Dense(4).apply(x)
    h2 = Dense(4).apply(h1)
    out = Dense(2).apply(h2)
    return Model(x, out)


def test_no_overrides_never_resets():
    model = build_chain()
    config = ReplicationConfig()
    assert not any(policy.requires_reset(layer, config, model) for layer in model.layers)


@pytest.mark.parametrize("entry", [PRESERVE, None])
def test_preserved_input_does_not_reset(entry):
    model = build_chain()
    config = ReplicationConfig(new_input_shapes=[entry])
    assert not policy.requires_reset(model.layers[0], config, model)
    assert not policy.requires_reset(model.layers[1], config, model)


def test_input_override_equal_to_original_still_resets():
    model = build_chain()
    config = ReplicationConfig(new_input_shapes=[[3]])
    assert policy.input_override(model.layers[0], config, model) == (3,)
    assert policy.requires_reset(model.layers[0], config, model)
    assert policy.requires_reset(model.layers[1], config, model)


def test_input_override_is_one_hop():
    model = build_chain()
    config = ReplicationConfig(new_input_shapes=[[5]])
    assert not policy.requires_reset(model.layers[2], config, model)
    assert not policy.requires_reset(model.layers[3], config, model)


def test_output_override_resets_output_layer_only():
    model = build_chain()
    config = ReplicationConfig(new_output_widths=[2])
    flags = [policy.requires_reset(layer, config, model) for layer in model.layers]
    assert flags == [False, False, False, True]
    assert policy.output_width_override(model.layers[3], config, model) == 2


def test_output_override_without_width_field():
    x = Input(shape=[3])
    act = Activation("relu", name="final_relu")
    model = Model(x, act.apply(Dense(3).apply(x)))
    config = ReplicationConfig(new_output_widths=[4])
    with pytest.raises(InvalidConfiguration, match="final_relu"):
        policy.requires_reset(act, config, model)


def test_output_override_none_entry_keeps_layer():
    model = build_chain()
    config = ReplicationConfig(new_output_widths=[None])
    assert not policy.requires_reset(model.layers[3], config, model)


def test_width_fields():
    assert policy.width_fields({"units": 3}) == ["units"]
    assert policy.width_fields({"filters": 3, "kernel_size": 1}) == ["filters"]
    assert policy.width_fields({"rate": 0.5}) == []


def test_propagation_through_predecessor_flag():
    x = Input(shape=[2, 3])
    flat = Flatten().apply(x)
    out = Dense(2).apply(flat)
    model = Model(x, out)
    inp, flatten, dense = model.layers

    table = ReconstructionTable(model.layers)
    table.add(ReconstructionRecord(inp, inp, True))
    table.add(ReconstructionRecord(flatten, flatten, True))

    config = ReplicationConfig(new_input_shapes=[[2, 2]])
    assert not policy.requires_reset(dense, config, model, table)

    config = ReplicationConfig(new_input_shapes=[[2, 2]], propagate_shape_changes=True)
    assert policy.requires_reset(dense, config, model, table)
