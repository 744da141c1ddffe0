# architectures/sequential.py
from architectures.graph import Model
from layers.core import InputLayer
from layers.naming import get_uid


class Sequential(Model):
    """
    Linear stack of single-input, single-output layers.
    The first layer must declare ``input_shape`` (or be an InputLayer).
    """

    def __init__(self, layers=None, name=None):
        self.name = name or get_uid("sequential")
        self.disposed = False
        self.inputs, self.outputs = [], []
        self.input_layers, self.output_layers = [], []
        self.nodes, self.layers = [], []
        for layer in layers or []:
            self.add(layer)

    def add(self, layer):
        if not self.outputs:
            if layer.is_input:
                x = layer.output
                self._init_graph(x, x)
                return
            if layer.batch_input_shape is None:
                raise ValueError(f"The first layer of {self.name} must declare an input_shape")
            x = InputLayer(batch_input_shape=layer.batch_input_shape).output
        else:
            x = self.outputs[0]

        y = layer.apply(x)
        if isinstance(y, list):
            raise ValueError(f"Layer {layer.name} has multiple outputs, which {self.name} does not support")
        self._init_graph(x if not self.inputs else self.inputs[0], y)
