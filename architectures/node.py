# architectures/node.py

class Node:
    def __init__(self, outbound_layer, input_tensors, output_tensors, call_args=None,
                 input_is_list=False, output_is_list=False):
        """
        One application of a layer (its call record).

        outbound_layer : Layer that was applied
        input_tensors  : list[SymbolicTensor] it was applied to (empty for InputLayer)
        output_tensors : list[SymbolicTensor] it produced
        call_args      : dict of extra keyword arguments passed to apply()
        input_is_list  : whether apply() received a list rather than a single tensor
        output_is_list : whether the layer produced a list of outputs
        """
        self.outbound_layer = outbound_layer
        self.input_tensors = list(input_tensors)
        self.output_tensors = list(output_tensors)
        self.call_args = dict(call_args or {})
        self.input_is_list = input_is_list
        self.output_is_list = output_is_list

        outbound_layer.inbound_nodes.append(self)
        for layer in self.inbound_layers:
            layer.outbound_nodes.append(self)

    @property
    def inbound_layers(self):
        return [t.source_layer for t in self.input_tensors]

    @property
    def inputs(self):
        """Input references in the structure apply() received them."""
        if self.input_is_list:
            return list(self.input_tensors)
        return self.input_tensors[0] if self.input_tensors else None

    @property
    def outputs(self):
        if self.output_is_list:
            return list(self.output_tensors)
        return self.output_tensors[0]

    def __repr__(self):
        parents = [layer.name for layer in self.inbound_layers]
        return f"Node(layer={self.outbound_layer.name}, parents={parents}, call_args={self.call_args})"
