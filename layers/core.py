# layers/core.py
import math

import torch.nn as nn
import torch.nn.functional as F

from architectures.node import Node
from layers.activations import get_activation
from layers.base import Layer, SymbolicTensor
from layers.registry import register_layer


def _positive_int(value, what):
    if isinstance(value, bool) or int(value) != value or int(value) <= 0:
        raise ValueError(f"{what} must be a positive integer, got {value!r}")
    return int(value)


@register_layer
class InputLayer(Layer):
    """Entry point of a model: no weights, one output of the declared shape."""

    is_input = True

    def __init__(self, input_shape=None, batch_size=None, batch_input_shape=None,
                 dtype="float32", name=None, **kwargs):
        if input_shape is not None and batch_input_shape is not None:
            raise ValueError("Provide either input_shape or batch_input_shape to InputLayer, not both")
        if input_shape is None and batch_input_shape is None:
            raise ValueError("InputLayer needs input_shape or batch_input_shape")
        if batch_input_shape is None:
            batch_input_shape = (batch_size,) + tuple(input_shape)
        kwargs.pop("trainable", None)
        super().__init__(name=name, trainable=False, dtype=dtype, batch_input_shape=batch_input_shape, **kwargs)
        self.built = True
        out = SymbolicTensor(self.batch_input_shape, self, 0, 0, dtype)
        Node(self, [], [out])

    def get_config(self):
        return {"batch_input_shape": list(self.batch_input_shape), "dtype": self.dtype, "name": self.name}

    def apply(self, inputs, **kwargs):
        raise TypeError(f"InputLayer {self.name} cannot be applied to tensors")

    __call__ = apply


def Input(shape=None, batch_shape=None, name=None, dtype="float32"):
    """Create an InputLayer and return its symbolic output."""
    if batch_shape is not None:
        return InputLayer(batch_input_shape=batch_shape, name=name, dtype=dtype).output
    return InputLayer(input_shape=shape, name=name, dtype=dtype).output


@register_layer
class Dense(Layer):
    def __init__(self, units, activation=None, use_bias=True, **kwargs):
        super().__init__(**kwargs)
        self.units = _positive_int(units, "units")
        self.activation = activation
        self.use_bias = bool(use_bias)
        self._act = get_activation(activation)

    def get_config(self):
        config = super().get_config()
        config.update(units=self.units, activation=self.activation, use_bias=self.use_bias)
        return config

    def make_module(self, input_shape):
        in_features = input_shape[-1]
        if in_features is None:
            raise ValueError(f"Dense {self.name}: last input dimension must be known, got {input_shape}")
        return nn.Linear(in_features, self.units, bias=self.use_bias)

    def compute_output_shape(self, input_shape):
        return tuple(input_shape[:-1]) + (self.units,)

    def call(self, inputs, training=False, **kwargs):
        return self._act(self.module(inputs))


@register_layer
class Conv2D(Layer):
    """
    2D convolution on channels-first input (N, C, H, W), like torch.nn.Conv2d.
    """

    def __init__(self, filters, kernel_size=3, strides=1, padding=0, activation=None, use_bias=True, **kwargs):
        super().__init__(**kwargs)
        self.filters = _positive_int(filters, "filters")
        self.kernel_size = _positive_int(kernel_size, "kernel_size")
        self.strides = _positive_int(strides, "strides")
        self.padding = int(padding)
        self.activation = activation
        self.use_bias = bool(use_bias)
        self._act = get_activation(activation)

    def get_config(self):
        config = super().get_config()
        config.update(filters=self.filters, kernel_size=self.kernel_size, strides=self.strides,
                      padding=self.padding, activation=self.activation, use_bias=self.use_bias)
        return config

    def make_module(self, input_shape):
        if len(input_shape) != 4 or input_shape[1] is None:
            raise ValueError(f"Conv2D {self.name}: expected (N, C, H, W) with known C, got {input_shape}")
        return nn.Conv2d(input_shape[1], self.filters, kernel_size=self.kernel_size,
                         stride=self.strides, padding=self.padding, bias=self.use_bias)

    def _spatial(self, size):
        if size is None:
            return None
        return (size + 2 * self.padding - self.kernel_size) // self.strides + 1

    def compute_output_shape(self, input_shape):
        n, _, h, w = input_shape
        return (n, self.filters, self._spatial(h), self._spatial(w))

    def call(self, inputs, training=False, **kwargs):
        return self._act(self.module(inputs))


@register_layer
class BatchNormalization(Layer):
    """Normalizes over axis 1. Weights: gamma, beta, moving mean, moving variance."""

    def __init__(self, momentum=0.1, epsilon=1e-5, **kwargs):
        super().__init__(**kwargs)
        self.momentum = float(momentum)
        self.epsilon = float(epsilon)

    def get_config(self):
        config = super().get_config()
        config.update(momentum=self.momentum, epsilon=self.epsilon)
        return config

    def make_module(self, input_shape):
        if len(input_shape) < 2 or input_shape[1] is None:
            raise ValueError(f"BatchNormalization {self.name}: feature axis must be known, got {input_shape}")
        bn_cls = nn.BatchNorm2d if len(input_shape) == 4 else nn.BatchNorm1d
        module = bn_cls(input_shape[1], eps=self.epsilon, momentum=self.momentum)
        # momentum is fixed, the batch counter is not a weight
        module.register_buffer("num_batches_tracked", None)
        return module

    def call(self, inputs, training=False, **kwargs):
        # frozen layers always run in inference mode
        self.module.train(bool(training) and self.trainable)
        return self.module(inputs)


@register_layer
class Activation(Layer):
    def __init__(self, activation, **kwargs):
        super().__init__(**kwargs)
        self.activation = activation
        self._act = get_activation(activation)

    def get_config(self):
        config = super().get_config()
        config["activation"] = self.activation
        return config

    def call(self, inputs, training=False, **kwargs):
        return self._act(inputs)


@register_layer
class Dropout(Layer):
    def __init__(self, rate, **kwargs):
        super().__init__(**kwargs)
        if not 0.0 <= float(rate) < 1.0:
            raise ValueError(f"Dropout rate must be in [0, 1), got {rate}")
        self.rate = float(rate)

    def get_config(self):
        config = super().get_config()
        config["rate"] = self.rate
        return config

    def call(self, inputs, training=False, **kwargs):
        return F.dropout(inputs, p=self.rate, training=bool(training))


@register_layer
class Flatten(Layer):
    def compute_output_shape(self, input_shape):
        rest = input_shape[1:]
        if any(d is None for d in rest):
            return (input_shape[0], None)
        return (input_shape[0], math.prod(rest))

    def call(self, inputs, training=False, **kwargs):
        return inputs.flatten(start_dim=1)
