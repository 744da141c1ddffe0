# layers/base.py
import torch

from architectures.node import Node
from layers import memory
from layers.naming import get_uid, to_snake_case
from utils.logger import get_logger

logger = get_logger("layers")


class SymbolicTensor:
    """
    Graph-level handle on one output of one layer application.
    Carries no data: only the producing layer, which call record (node_index)
    and which of its outputs (tensor_index).
    """

    def __init__(self, shape, source_layer, node_index, tensor_index, dtype="float32"):
        self.shape = tuple(shape)
        self.source_layer = source_layer
        self.node_index = node_index
        self.tensor_index = tensor_index
        self.dtype = dtype

    @property
    def name(self):
        return f"{self.source_layer.name}/{self.node_index}:{self.tensor_index}"

    def __repr__(self):
        return f"SymbolicTensor(name={self.name}, shape={list(self.shape)})"


def _as_list(x):
    return list(x) if isinstance(x, (list, tuple)) else [x]


class Layer:
    """
    Base class for every layer type.

    A layer is described by its config map (``get_config()``) and its type tag
    (``class_name``); ``registry.deserialize(class_name, config)`` gives back a
    fresh, unbuilt layer of the same kind. Weights live in ``self.module`` (a
    torch module created on first application) and are exposed as an ordered
    list through ``weights`` / ``get_weights()`` / ``set_weights()``.
    """

    class_name = None
    is_input = False

    def __init__(self, name=None, trainable=True, dtype="float32", input_shape=None, batch_input_shape=None):
        self.name = name or get_uid(to_snake_case(type(self).__name__))
        self.dtype = dtype
        self._trainable = bool(trainable)
        if batch_input_shape is None and input_shape is not None:
            batch_input_shape = (None,) + tuple(input_shape)
        self.batch_input_shape = tuple(batch_input_shape) if batch_input_shape is not None else None

        self.inbound_nodes = []
        self.outbound_nodes = []
        self.module = None
        self.built = False
        self.disposed = False

    # ----- config -----
    def get_config(self):
        config = {"name": self.name, "trainable": self._trainable, "dtype": self.dtype}
        if self.batch_input_shape is not None:
            config["batch_input_shape"] = list(self.batch_input_shape)
        return config

    @classmethod
    def from_config(cls, config):
        return cls(**config)

    # ----- build / weights -----
    def make_module(self, input_shape):
        """Return the torch module holding this layer's weights, or None."""
        return None

    def build(self, input_shape):
        if self.disposed:
            raise RuntimeError(f"Layer {self.name} is disposed")
        module = self.make_module(input_shape)
        if module is not None:
            module = module.to(getattr(torch, self.dtype))
            for p in module.parameters():
                p.requires_grad_(self._trainable)
            self.module = module
            memory.track(self.weights)
            logger.debug("Built %s (%s) input_shape=%s weights=%s", self.name, self.class_name,
                         input_shape, [tuple(w.shape) for w in self.weights])
        self.built = True

    @property
    def weights(self):
        if self.module is None:
            return []
        return list(self.module.state_dict(keep_vars=True).values())

    @property
    def trainable_weights(self):
        if self.module is None or not self._trainable:
            return []
        return [p for p in self.module.parameters() if p.requires_grad]

    @property
    def non_trainable_weights(self):
        trainable = {id(w) for w in self.trainable_weights}
        return [w for w in self.weights if id(w) not in trainable]

    def get_weights(self):
        return [w.detach().clone() for w in self.weights]

    def set_weights(self, weights):
        targets = self.weights
        if len(weights) != len(targets):
            raise ValueError(f"Layer {self.name} expects {len(targets)} weights, got {len(weights)}")
        with torch.no_grad():
            for dst, src in zip(targets, weights):
                src = torch.as_tensor(src)
                if tuple(src.shape) != tuple(dst.shape):
                    raise ValueError(f"Layer {self.name}: weight shape mismatch, "
                                     f"expected {tuple(dst.shape)} got {tuple(src.shape)}")
                dst.copy_(src)

    def count_params(self):
        return sum(w.numel() for w in self.weights)

    @property
    def trainable(self):
        return self._trainable

    @trainable.setter
    def trainable(self, value):
        self._trainable = bool(value)
        if self.module is not None:
            for p in self.module.parameters():
                p.requires_grad_(self._trainable)

    # ----- application -----
    def compute_output_shape(self, input_shape):
        return input_shape

    def call(self, inputs, training=False, **kwargs):
        raise NotImplementedError

    def apply(self, inputs, **kwargs):
        """
        Symbolic inputs: record a call (Node) and return SymbolicTensor(s).
        Concrete inputs: run the layer eagerly.
        """
        flat = _as_list(inputs)
        symbolic = [isinstance(t, SymbolicTensor) for t in flat]
        if any(symbolic) and not all(symbolic):
            raise TypeError(f"Layer {self.name}: cannot mix symbolic and concrete inputs")
        if all(symbolic) and flat:
            return self._apply_symbolic(inputs, kwargs)

        values = [torch.as_tensor(t, dtype=getattr(torch, self.dtype)) for t in flat]
        if not self.built:
            shapes = [(None,) + tuple(v.shape[1:]) for v in values]
            self.build(shapes if isinstance(inputs, (list, tuple)) else shapes[0])
        return self.call(values if isinstance(inputs, (list, tuple)) else values[0], **kwargs)

    __call__ = apply

    def _apply_symbolic(self, inputs, call_args):
        is_list = isinstance(inputs, (list, tuple))
        flat = _as_list(inputs)
        input_shape = [t.shape for t in flat] if is_list else flat[0].shape
        if not self.built:
            self.build(input_shape)
        output_shape = self.compute_output_shape(input_shape)

        node_index = len(self.inbound_nodes)
        multi = isinstance(output_shape, list)
        shapes = output_shape if multi else [output_shape]
        outputs = [SymbolicTensor(s, self, node_index, i, self.dtype) for i, s in enumerate(shapes)]
        node = Node(self, flat, outputs, call_args, input_is_list=is_list, output_is_list=multi)
        return node.outputs

    def _single_node(self, attr):
        if not self.inbound_nodes:
            raise AttributeError(f"Layer {self.name} has never been applied, no {attr} defined")
        if len(self.inbound_nodes) > 1:
            raise AttributeError(f"Layer {self.name} has multiple inbound nodes, {attr} is ambiguous")
        return self.inbound_nodes[0]

    @property
    def input(self):
        return self._single_node("input").inputs

    @property
    def output(self):
        return self._single_node("output").outputs

    @property
    def input_shape(self):
        node = self._single_node("input shape")
        shapes = [t.shape for t in node.input_tensors]
        return shapes if node.input_is_list else (shapes[0] if shapes else None)

    @property
    def output_shape(self):
        node = self._single_node("output shape")
        shapes = [t.shape for t in node.output_tensors]
        return shapes if node.output_is_list else shapes[0]

    # ----- lifetime -----
    def dispose(self):
        """Release the weights this layer allocated. Returns the number of tensors released."""
        if self.disposed:
            return 0
        released = 0
        if self.module is not None:
            weights = self.weights
            memory.release(weights)
            released = len(weights)
            self.module = None
        self.disposed = True
        logger.debug("Disposed %s (%d tensors)", self.name, released)
        return released

    def __repr__(self):
        return f"{self.class_name or type(self).__name__}(name={self.name})"
