# replication/config.py
from collections.abc import Mapping
from dataclasses import dataclass, fields
from numbers import Integral
from typing import Any, List, Optional, Sequence

from replication.errors import InvalidConfiguration

# Input override entry that keeps the input as it is.
PRESERVE = "preserve"


def is_preserved(entry) -> bool:
    return entry is None or (isinstance(entry, str) and entry == PRESERVE)


def _is_dim(d) -> bool:
    return d is None or _is_width(d)


def _is_width(w) -> bool:
    return isinstance(w, Integral) and not isinstance(w, bool) and w > 0


@dataclass
class ReplicationConfig:
    """
    Options for rebuilding a model.

    new_input_shapes : one entry per input layer, PRESERVE/None to keep it, or a new
                       shape without the batch dimension. Any non-preserve entry resets
                       the weights of the layers applied to that input, even if the
                       shape is unchanged.
    new_output_widths: one entry per output layer, None to keep it, or the new value
                       of its ``units``/``filters``. Any non-None entry resets that layer.
    preserved_weights_are_trainable: keep reset layers trainable (default: freeze them).
    verbose          : log the names of the layers whose weights were reset.
    propagate_shape_changes: also reset layers fed by a layer whose output shape changed.
    """

    new_input_shapes: Optional[List[Any]] = None
    new_output_widths: Optional[List[Optional[int]]] = None
    preserved_weights_are_trainable: bool = False
    verbose: bool = False
    propagate_shape_changes: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> "ReplicationConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise InvalidConfiguration(f"Unknown replication option(s) {unknown}. Expected any of {sorted(known)}")
        return cls(**mapping)

    def validate(self, model) -> None:
        """Check the override lists against ``model``; raises InvalidConfiguration."""
        if self.new_input_shapes is not None:
            _check_length("new_input_shapes", self.new_input_shapes, model.input_layers, "inputLayers")
            for i, entry in enumerate(self.new_input_shapes):
                if is_preserved(entry):
                    continue
                if isinstance(entry, str) or not isinstance(entry, Sequence) or not all(_is_dim(d) for d in entry):
                    raise InvalidConfiguration(
                        f"new_input_shapes[{i}] must be '{PRESERVE}', None, or a sequence of positive "
                        f"ints / None, got {entry!r}")

        if self.new_output_widths is not None:
            _check_length("new_output_widths", self.new_output_widths, model.output_layers, "outputLayers")
            for j, width in enumerate(self.new_output_widths):
                if width is not None and not _is_width(width):
                    raise InvalidConfiguration(
                        f"new_output_widths[{j}] must be None or a positive int, got {width!r}")
            _check_repeated_outputs(self.new_output_widths, model.output_layers)


def _check_repeated_outputs(widths, layers):
    # a layer listed as several outputs is rebuilt once, so its entries must agree
    first = {}
    for j, (width, layer) in enumerate(zip(widths, layers)):
        i = first.setdefault(id(layer), j)
        if widths[i] != width:
            raise InvalidConfiguration(
                f"new_output_widths[{i}] and new_output_widths[{j}] both refer to output layer "
                f"{layer.name} but disagree ({widths[i]!r} != {width!r})")


def _check_length(option, overrides, layers, what):
    if len(overrides) != len(layers):
        raise InvalidConfiguration(
            f"`{option}` must have the same length as the model's {what} "
            f"({len(overrides)} != {len(layers)}). Use None for entries that should remain unchanged")


def as_config(config) -> ReplicationConfig:
    if config is None:
        return ReplicationConfig()
    if isinstance(config, ReplicationConfig):
        return config
    if isinstance(config, Mapping):
        return ReplicationConfig.from_mapping(config)
    raise InvalidConfiguration(f"Expected a ReplicationConfig or a mapping, got {type(config).__name__}")
