# architectures/graph.py
from collections import defaultdict, deque

import torch

from architectures.compiler import run_graph
from architectures.summary import summarize
from layers.base import SymbolicTensor
from layers.naming import get_uid
from utils.logger import get_logger

logger = get_logger("architectures")


def _flatten(refs):
    if isinstance(refs, (list, tuple)):
        return list(refs)
    return [refs]


class Model:
    """
    Functional model: a DAG of layer applications between declared inputs and outputs.

    layers        : layers in topological order (a layer never precedes its inputs)
    input_layers  : InputLayer of each declared input, in order
    output_layers : layer producing each declared output, in order
    inputs/outputs: declared SymbolicTensors (always lists)
    """

    def __init__(self, inputs, outputs, name=None):
        self.name = name or get_uid("model")
        self.disposed = False
        self._init_graph(inputs, outputs)

    def _init_graph(self, inputs, outputs):
        self.inputs = _flatten(inputs)
        self.outputs = _flatten(outputs)
        for t in self.inputs + self.outputs:
            if not isinstance(t, SymbolicTensor):
                raise TypeError(f"Model {self.name}: inputs and outputs must be SymbolicTensors, got {type(t)}")
        for t in self.inputs:
            if not t.source_layer.is_input:
                raise ValueError(f"Model {self.name}: input {t.name} is not the output of an InputLayer")

        self.input_layers = [t.source_layer for t in self.inputs]
        self.output_layers = [t.source_layer for t in self.outputs]
        self.nodes = self.topological_sort()

        self.layers = []
        seen = set()
        for node in self.nodes:
            layer = node.outbound_layer
            if id(layer) not in seen:
                seen.add(id(layer))
                self.layers.append(layer)
        logger.debug("Model %s: %d layers, %d nodes", self.name, len(self.layers), len(self.nodes))

    def _collect_nodes(self):
        """Every call record reachable backwards from the outputs, plus every declared input."""
        found = {}
        for layer in self.input_layers:
            found[id(layer.inbound_nodes[0])] = layer.inbound_nodes[0]
        stack = [t.source_layer.inbound_nodes[t.node_index] for t in self.outputs]
        while stack:
            node = stack.pop()
            if id(node) in found:
                continue
            found[id(node)] = node
            for t in node.input_tensors:
                stack.append(t.source_layer.inbound_nodes[t.node_index])
        return found

    def topological_sort(self):
        """
        Kahn's algorithm over call records, seeded with the declared inputs in order.
        Raises ValueError if an output depends on an input that is not declared.
        """
        found = self._collect_nodes()
        indegree = defaultdict(int)
        children = defaultdict(list)

        for nid, node in found.items():
            for t in node.input_tensors:
                parent = t.source_layer.inbound_nodes[t.node_index]
                children[id(parent)].append(nid)
                indegree[nid] += 1

        declared = {id(layer.inbound_nodes[0]) for layer in self.input_layers}
        for nid, node in found.items():
            if indegree[nid] == 0 and nid not in declared:
                raise ValueError(f"Graph disconnected: {node.outbound_layer.name} is reachable "
                                 f"from the outputs but is not a declared input of {self.name}")

        queue = deque()
        for layer in self.input_layers:
            nid = id(layer.inbound_nodes[0])
            if nid in found and nid not in queue:
                queue.append(nid)

        order = []
        while queue:
            u = queue.popleft()
            order.append(found[u])
            for v in children[u]:
                indegree[v] -= 1
                if indegree[v] == 0:
                    queue.append(v)

        assert len(order) == len(found), "Graph has a cycle!"
        return order

    # ----- lookups -----
    def get_layer(self, name):
        for layer in self.layers:
            if layer.name == name:
                return layer
        raise KeyError(f"No layer named {name} in model {self.name}")

    # ----- weights -----
    def count_params(self):
        return sum(layer.count_params() for layer in self.layers)

    def trainable_parameters(self):
        return [p for layer in self.layers for p in layer.trainable_weights]

    def get_weights(self):
        return [w for layer in self.layers for w in layer.get_weights()]

    # ----- execution -----
    def __call__(self, inputs, training=False):
        values = [torch.as_tensor(v, dtype=torch.float32) for v in _flatten(inputs)]
        if len(values) != len(self.inputs):
            raise ValueError(f"Model {self.name} expects {len(self.inputs)} inputs, got {len(values)}")
        outputs = run_graph(self, values, training=training)
        return outputs[0] if len(outputs) == 1 else outputs

    def predict(self, inputs):
        with torch.no_grad():
            return self(inputs, training=False)

    def summary(self):
        return summarize(self)

    # ----- lifetime -----
    def dispose(self):
        """Release the weights of every layer in this model. Returns the number of tensors released."""
        if self.disposed:
            return 0
        released = sum(layer.dispose() for layer in self.layers)
        self.disposed = True
        logger.info("Disposed model %s (%d tensors released)", self.name, released)
        return released

    def __repr__(self):
        lines = [f"Model {self.name}:"]
        for node in self.nodes:
            lines.append(
                f"  {node.outbound_layer.name}: type={node.outbound_layer.class_name}, "
                f"parents={[layer.name for layer in node.inbound_layers]}"
            )
        lines.append(f"  Outputs: {[t.name for t in self.outputs]}")
        return "\n".join(lines)
