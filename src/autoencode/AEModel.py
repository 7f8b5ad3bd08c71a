import torch
import torch.nn as nn
from typing import List, Optional

ACTIVATIONS = {
    "sigmoid":    nn.Sigmoid,
    "relu":       nn.ReLU,
    "leaky-relu": nn.LeakyReLU,
    "tanh":       nn.Tanh,
}


class MLP(nn.Module):
    """Fully connected feed-forward network.

    Every layer, the output layer included, is a ``Linear`` followed by the activation, so
    with the default sigmoid all outputs lie in (0, 1).

    ``sizes`` lists the width of every layer, input first. Layer ``i`` of the network (with
    ``0`` the input layer) is the output of ``self.blocks[i - 1]``.
    """

    def __init__(self, sizes: List[int], activation = "sigmoid"):
        """Constructor sets up all layers needed for network.

        Args:
            sizes (List[int]): ``[input_size, *hidden_layers, output_size]``.
            activation (str): One of ``"sigmoid"``, ``"relu"``, ``"leaky-relu"``, ``"tanh"``.
                Defaults to ``"sigmoid"``.

        Raises:
            ValueError: If fewer than two sizes are given, a size is not positive, or the
                activation is unknown.
        """
        super().__init__()

        if len(sizes) < 2:
            raise ValueError("Need at least an input and an output size.")
        if any(int(s) < 1 for s in sizes):
            raise ValueError(f"Layer sizes must be positive, got {sizes}.")
        if activation not in ACTIVATIONS:
            raise ValueError(f"activation must be one of {list(ACTIVATIONS)}, got {activation!r}.")

        self.sizes      = [int(s) for s in sizes]
        self.activation = activation

        self.blocks = nn.ModuleList([
            nn.Sequential(nn.Linear(n_in, n_out), ACTIVATIONS[activation]())
            for n_in, n_out in zip(self.sizes[:-1], self.sizes[1:])
        ])

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        for block in self.blocks:
            x = block(x)
        return x

    def layer_outputs(self, x: torch.Tensor, up_to: Optional[int] = None) -> List[torch.Tensor]:
        """Return the activation of every layer, input layer first.

        Args:
            x (torch.Tensor): Input of shape ``(N, sizes[0])``.
            up_to (int, optional): Stop after this layer index. Defaults to the output layer.
        """
        last = len(self.blocks) if up_to is None else up_to
        if not 0 <= last <= len(self.blocks):
            raise IndexError(f"Layer {last} out of range for a network with {len(self.sizes)} layers.")

        outputs = [x]
        for block in self.blocks[:last]:
            x = block(x)
            outputs.append(x)
        return outputs
