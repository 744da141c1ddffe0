# layers/merge.py
import torch

from layers.base import Layer
from layers.registry import register_layer


def _merge_dim(a, b):
    if a is None:
        return b
    if b is None or a == b:
        return a
    raise ValueError(f"incompatible dimensions {a} and {b}")


def _check_list(layer, input_shape):
    if not isinstance(input_shape, list) or len(input_shape) < 2:
        raise ValueError(f"{layer.class_name} {layer.name} expects a list of at least 2 inputs")


@register_layer
class Add(Layer):
    def compute_output_shape(self, input_shape):
        _check_list(self, input_shape)
        out = input_shape[0]
        for shape in input_shape[1:]:
            if len(shape) != len(out):
                raise ValueError(f"Add {self.name}: cannot sum inputs with shapes {input_shape}")
            out = tuple(_merge_dim(a, b) for a, b in zip(out, shape))
        return tuple(out)

    def call(self, inputs, training=False, **kwargs):
        base = inputs[0].clone()
        for t in inputs[1:]:
            if t.shape != base.shape:
                raise ValueError(f"cannot sum inputs with shapes {base.shape} and {t.shape}")
            base = base + t
        return base


@register_layer
class Concatenate(Layer):
    def __init__(self, axis=-1, **kwargs):
        super().__init__(**kwargs)
        self.axis = int(axis)

    def get_config(self):
        config = super().get_config()
        config["axis"] = self.axis
        return config

    def compute_output_shape(self, input_shape):
        _check_list(self, input_shape)
        rank = len(input_shape[0])
        axis = self.axis % rank
        out = list(input_shape[0])
        for shape in input_shape[1:]:
            if len(shape) != rank:
                raise ValueError(f"Concatenate {self.name}: inputs of different rank {input_shape}")
            for i, d in enumerate(shape):
                if i == axis:
                    out[i] = None if out[i] is None or d is None else out[i] + d
                else:
                    out[i] = _merge_dim(out[i], d)
        return tuple(out)

    def call(self, inputs, training=False, **kwargs):
        return torch.cat(list(inputs), dim=self.axis)


@register_layer
class Split(Layer):
    """Splits one input along ``axis`` into chunks of ``sizes``; one output per chunk."""

    def __init__(self, sizes, axis=-1, **kwargs):
        super().__init__(**kwargs)
        self.sizes = [int(s) for s in sizes]
        self.axis = int(axis)

    def get_config(self):
        config = super().get_config()
        config.update(sizes=list(self.sizes), axis=self.axis)
        return config

    def compute_output_shape(self, input_shape):
        if isinstance(input_shape, list):
            if len(input_shape) != 1:
                raise ValueError(f"Split {self.name}: cannot split multiple tensors simultaneously")
            input_shape = input_shape[0]
        axis = self.axis % len(input_shape)
        if input_shape[axis] is not None and input_shape[axis] != sum(self.sizes):
            raise ValueError(f"Split {self.name}: sizes {self.sizes} do not add up to dimension {input_shape[axis]}")
        shapes = []
        for size in self.sizes:
            shape = list(input_shape)
            shape[axis] = size
            shapes.append(tuple(shape))
        return shapes

    def call(self, inputs, training=False, **kwargs):
        if isinstance(inputs, list):
            inputs = inputs[0]
        return list(torch.split(inputs, self.sizes, dim=self.axis))
