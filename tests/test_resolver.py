# tests/test_resolver.py
import pytest

from layers.core import InputLayer
from layers.merge import Split
from replication.errors import ReplicationError, UnsupportedTopology
from replication.resolver import resolve
from replication.table import ReconstructionRecord, ReconstructionTable


def test_resolves_single_output():
    original = InputLayer(input_shape=[3])
    rebuilt = InputLayer(input_shape=[3])
    table = ReconstructionTable([original])
    table.add(ReconstructionRecord(original, rebuilt, True))

    assert resolve(table, original.output) is rebuilt.output


def test_resolves_lists_in_order():
    a, b = InputLayer(input_shape=[3]), InputLayer(input_shape=[2])
    ra, rb = InputLayer(input_shape=[3]), InputLayer(input_shape=[2])
    table = ReconstructionTable([a, b])
    table.add(ReconstructionRecord(a, ra, False))
    table.add(ReconstructionRecord(b, rb, False))

    resolved = resolve(table, [b.output, a.output, b.output])
    assert resolved == [rb.output, ra.output, rb.output]


def build_split_pair():
    original_input = InputLayer(input_shape=[4])
    rebuilt_input = InputLayer(input_shape=[4])
    original = Split([2, 2])
    rebuilt = Split([2, 2])
    original.apply(original_input.output)
    rebuilt.apply(rebuilt_input.output)
    table = ReconstructionTable([original])
    table.add(ReconstructionRecord(original, rebuilt, False))
    return original, rebuilt, table


def test_resolves_multi_output_by_index():
    original, rebuilt, table = build_split_pair()
    assert resolve(table, original.output) == rebuilt.output
    assert resolve(table, original.output[1]) is rebuilt.output[1]


def test_single_output_variant_refuses_multi_output():
    original, _, table = build_split_pair()
    with pytest.raises(UnsupportedTopology):
        resolve(table, original.output[0], allow_multi_output=False)


def test_unknown_or_unbuilt_layer():
    original = InputLayer(input_shape=[3])
    other = InputLayer(input_shape=[3])
    table = ReconstructionTable([original])
    with pytest.raises(ReplicationError):
        resolve(table, original.output)
    with pytest.raises(ReplicationError):
        resolve(table, other.output)


def test_table_refuses_second_record():
    original = InputLayer(input_shape=[3])
    table = ReconstructionTable([original])
    table.add(ReconstructionRecord(original, original, False))
    assert len(table) == 1
    with pytest.raises(ReplicationError):
        table.add(ReconstructionRecord(original, original, False))
