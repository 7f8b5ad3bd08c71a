#!/usr/bin/env python3
import asyncio
import time
import numpy as np
import torch
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple
from autoencode.AEErrors import InvalidInputError, SerializationError
from autoencode.AELoss import ReconLoss
from autoencode.AEModel import ACTIVATIONS, MLP
from autoencode.DataProcessors import make_pair_loader
import autoencode.utils as utils

Pair = Tuple[Sequence[float], Sequence[float]]

DEFAULT_TRAIN_OPTIONS = {
    "iterations":      20000,   # max epochs per call
    "error_thresh":    0.005,   # stop once the epoch MSE drops below this
    "learning_rate":   0.01,
    "momentum":        0.1,     # sgd only
    "praxis":          "adam",  # "adam" or "sgd"
    "batch_size":      None,    # None: one batch holds all pairs
    "log":             False,   # True prints epoch losses, a callable receives status dicts
    "log_period":      10,
    "callback":        None,
    "callback_period": 10,
    "timeout":         None,    # seconds
}


class TrainableNetwork(Protocol):
    """What ``AutoEncoder`` needs from its encoder and decoder networks.

    ``outputs`` holds the per-layer activations of the last forward pass, input layer at
    index 0.
    """
    input_size: int
    output_size: int
    hidden_layers: List[int]
    outputs: List[np.ndarray]

    @property
    def sizes(self) -> List[int]: ...

    def run(self, vector) -> np.ndarray: ...

    def run_to_layer(self, vector, layer: int) -> np.ndarray: ...

    def train(self, pairs: List[Pair], **options) -> Dict[str, float]: ...

    async def train_async(self, pairs: List[Pair], **options) -> Dict[str, float]: ...

    def to_json(self) -> Dict[str, Any]: ...

    def from_json(self, json_obj: Dict[str, Any]) -> None: ...


class FeedForwardNet(object):
    """Default ``TrainableNetwork``: an ``MLP`` plus the loop that trains it.

    Training is full-batch gradient descent on the mean squared error between network
    output and target (mini-batches if ``batch_size`` is set), run until the epoch error
    falls below ``error_thresh``, ``iterations`` epochs have run, or ``timeout`` seconds
    have passed. Weights carry over between calls to ``train``.

    Attributes:
        device (str): ``"cuda"`` or ``"cpu"``.
        model (MLP): The network being trained.
        train_loss (ReconLoss): Loss tracker; its ``epoch_total_loss`` accumulates across calls.
        outputs (List[np.ndarray]): Layer activations of the last ``run``/``run_to_layer``.
        train_opts (dict): Options used by the last ``train`` call (callables dropped).
    """

    def __init__(self,
                 input_size: int,
                 output_size: int,
                 hidden_layers: Optional[List[int]] = None,
                 *,
                 activation = "sigmoid",
                 device = "auto"):
        self.device        = utils.get_device(device)
        self.input_size    = int(input_size)
        self.output_size   = int(output_size)
        self.hidden_layers = [int(h) for h in (hidden_layers or [])]
        self.activation    = activation
        self.model         = MLP(self.sizes, activation).to(self.device)
        self.train_loss    = ReconLoss()
        self.outputs       = []
        self.train_opts    = {}

    @property
    def sizes(self) -> List[int]:
        return [self.input_size, *self.hidden_layers, self.output_size]

    def run(self, vector) -> np.ndarray:
        """Forward one vector through the whole network and return the output layer."""
        return self._forward(vector, None)[-1]

    def run_to_layer(self, vector, layer: int) -> np.ndarray:
        """Forward one vector only as far as ``layer`` (0 = input) and return its activation."""
        return self._forward(vector, layer)[-1]

    def _forward(self, vector, up_to):
        x = torch.as_tensor(np.asarray(vector, dtype=np.float32), device=self.device)
        if x.ndim != 1 or x.shape[0] != self.input_size:
            raise InvalidInputError(f"Expected a vector of {self.input_size} values, got shape {tuple(x.shape)}.")

        is_training = self.model.training
        self.model.eval()
        try:
            with torch.no_grad():
                layers = self.model.layer_outputs(x.unsqueeze(0), up_to=up_to)
        finally:
            self.model.train(is_training)

        self.outputs = [layer[0].cpu().numpy() for layer in layers]
        return self.outputs

    def train(self, pairs: List[Pair], **options) -> Dict[str, float]:
        """Train on ``(input, output)`` pairs.

        Args:
            pairs: Training pairs of input and target vectors.
            **options: Overrides of ``DEFAULT_TRAIN_OPTIONS``.

        Returns:
            dict: ``{"error": last epoch MSE, "iterations": epochs run}``.

        Raises:
            InvalidInputError: On unknown options, empty data or mis-sized vectors.
        """
        opts   = self._resolve_options(options)
        loader = make_pair_loader(pairs, opts["batch_size"], shuffle=True, device=self.device)

        in_width, out_width = (t.shape[1] for t in loader.dataset.tensors)
        if in_width != self.input_size or out_width != self.output_size:
            raise InvalidInputError(f"Pairs of widths ({in_width}, {out_width}) do not fit a network "
                                    f"with sizes {self.sizes}.")

        optimizer = self._make_optimizer(opts)
        log, callback = opts["log"], opts["callback"]

        start_time = time.time()
        error      = float("inf")
        iterations = 0

        self.model.train()
        try:
            while iterations < opts["iterations"] and error > opts["error_thresh"]:
                for x, y in loader:
                    loss = self.train_loss(self.model(x), y)
                    loss.backward()
                    optimizer.step()
                    # Clear the gradient for the next iteration so it doesnt accumulate
                    optimizer.zero_grad()

                error = self.train_loss.append_mean_batch_loss()
                iterations += 1
                elapsed = time.time() - start_time
                status  = {"iterations": iterations, "error": error}

                if log and iterations % opts["log_period"] == 0:
                    if callable(log):
                        log(status)
                    else:
                        self.train_loss.print_epoch_losses(elapsed_time=elapsed)
                if callback is not None and iterations % opts["callback_period"] == 0:
                    callback(status)
                if opts["timeout"] is not None and elapsed >= opts["timeout"]:
                    break
        finally:
            self.model.eval()

        self.train_opts = {k: v for k, v in opts.items() if not callable(v)}
        return {"error": error, "iterations": iterations}

    async def train_async(self, pairs: List[Pair], **options) -> Dict[str, float]:
        """Run ``train`` in a worker thread and wait for it to finish."""
        return await asyncio.to_thread(self.train, pairs, **options)

    def _resolve_options(self, options) -> Dict[str, Any]:
        unknown = set(options) - set(DEFAULT_TRAIN_OPTIONS)
        if unknown:
            raise InvalidInputError(f"Unknown training options: {sorted(unknown)}.")

        opts = dict(DEFAULT_TRAIN_OPTIONS)
        opts.update(options)

        if opts["praxis"] not in ("sgd", "adam"):
            raise InvalidInputError(f"praxis must be 'sgd' or 'adam', got {opts['praxis']!r}.")
        if opts["batch_size"] is not None and opts["batch_size"] < 1:
            raise InvalidInputError(f"batch_size must be positive, got {opts['batch_size']}.")
        if opts["log_period"] < 1 or opts["callback_period"] < 1:
            raise InvalidInputError("log_period and callback_period must be positive.")
        return opts

    def _make_optimizer(self, opts) -> torch.optim.Optimizer:
        if opts["praxis"] == "adam":
            return torch.optim.Adam(self.model.parameters(), lr=opts["learning_rate"])
        return torch.optim.SGD(self.model.parameters(), lr=opts["learning_rate"], momentum=opts["momentum"])

    def plot_losses(self, out_prefix = "AElossplot", log = True, starting_epoch = 0):
        """Plot the recorded training losses. See ``utils.make_loss_plots``."""
        return utils.make_loss_plots(self.train_loss, out_prefix=out_prefix, log=log,
                                     starting_epoch=starting_epoch)

    def to_json(self) -> Dict[str, Any]:
        """Return topology and weights as a JSON-compatible dict."""
        layers = []
        for block in self.model.blocks:
            linear = block[0]
            layers.append({"weights": linear.weight.detach().cpu().tolist(),
                           "biases":  linear.bias.detach().cpu().tolist()})

        return {"type":       type(self).__name__,
                "sizes":      self.sizes,
                "activation": self.activation,
                "layers":     layers,
                "train_opts": dict(self.train_opts)}

    def from_json(self, json_obj: Dict[str, Any]) -> None:
        """Replace topology and weights with those of ``json_obj`` (as made by ``to_json``).

        Raises:
            SerializationError: If the object is missing fields or the weights do not match
                the declared sizes.
        """
        try:
            sizes      = [int(s) for s in json_obj["sizes"]]
            activation = json_obj.get("activation", "sigmoid")
            layers     = list(json_obj["layers"])
            train_opts = json_obj.get("train_opts") or {}
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed network JSON: {e!r}") from e

        if not isinstance(activation, str) or activation not in ACTIVATIONS:
            raise SerializationError(f"Unknown activation {activation!r} in network JSON.")
        if not isinstance(train_opts, dict):
            raise SerializationError(f"train_opts must be an object, got {type(train_opts).__name__}.")
        if len(sizes) < 2 or len(layers) != len(sizes) - 1:
            raise SerializationError(f"Inconsistent network JSON: sizes={sizes}, {len(layers)} layers.")

        try:
            model = MLP(sizes, activation)
            with torch.no_grad():
                for block, layer, n_in, n_out in zip(model.blocks, layers, sizes[:-1], sizes[1:]):
                    weights = torch.tensor(layer["weights"], dtype=torch.float32)
                    biases  = torch.tensor(layer["biases"], dtype=torch.float32)
                    if tuple(weights.shape) != (n_out, n_in) or tuple(biases.shape) != (n_out,):
                        raise SerializationError(f"Layer weights of shape {tuple(weights.shape)} do not "
                                                 f"connect {n_in} to {n_out} units.")
                    block[0].weight.copy_(weights)
                    block[0].bias.copy_(biases)
        except SerializationError:
            raise
        except (KeyError, TypeError, ValueError, RuntimeError) as e:
            raise SerializationError(f"Malformed network weights: {e!r}") from e

        self.input_size    = sizes[0]
        self.output_size   = sizes[-1]
        self.hidden_layers = sizes[1:-1]
        self.activation    = activation
        self.model         = model.to(self.device).eval()
        self.outputs       = []
        self.train_opts    = dict(train_opts)
