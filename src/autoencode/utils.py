#!/usr/bin/env python3
import importlib.util
import math
import os
import random
from typing import Dict, Union

import matplotlib.pyplot as plt
import numpy as np
import torch


def round_half_up(x: float) -> int:
    """Round to the nearest integer, halves going up (``round`` in Python rounds halves to even)."""
    return int(math.floor(x + 0.5))


def nan_to_zero(x: float) -> float:
    return 0.0 if math.isnan(x) else x


def get_device(device = "auto") -> str:
    if device == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    return device


def set_seed(seed = None):
    """Seed Python, NumPy, and PyTorch RNGs for reproducibility.

    Notes:
        This mutates global RNG state (``random``, ``numpy.random``, and ``torch``) and sets
        cuDNN to deterministic mode.

    Args:
        seed (int, optional): Seed value. If None, this is a no-op. Defaults to None.
    """
    if seed is None:
        return  # use module-level RNGs as-is

    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    torch.cuda.manual_seed_all(seed)

    torch.backends.cudnn.deterministic = True
    torch.backends.cudnn.benchmark = False


def read_config(config_file: str) -> Dict[str, Union[int, float, str]]:
    """
    Read a configuration file and return the settings as a dictionary.

    The file is a python module defining one dictionary called ``settings``, e.g.::

        settings = {"error_thresh": 0.01, "iterations": 2000, "accuracy": 0.9, "attempts": 5}

    Args:
        config_file (str): Path to the configuration file.

    Returns:
        dict: Dictionary containing the settings.
    """
    if not os.path.isfile(config_file):
        raise FileNotFoundError(f"File '{config_file}' does not exist.")

    spec = importlib.util.spec_from_file_location("settings", config_file)
    settings_module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(settings_module)
    settings = settings_module.settings
    return dict(settings)


def make_loss_plots(train_loss, *, out_prefix = "AElossplot", log = True, starting_epoch = 0):
    """Plot the epoch losses recorded by a ``ReconLoss`` to ``<out_prefix>.loss.pdf``.

    Args:
        train_loss (ReconLoss): Loss tracker with an ``epoch_total_loss`` list.
        out_prefix (str, optional): Output filename prefix. Defaults to ``"AElossplot"``.
        log (bool, optional): If True, plot log10 of the loss. Defaults to True.
        starting_epoch (int, optional): First epoch to include in plot. Defaults to 0.

    Returns:
        str: Path of the written file.
    """
    losses = np.asarray(train_loss.epoch_total_loss[starting_epoch:], dtype=np.float64)
    epochs = np.arange(starting_epoch, starting_epoch + len(losses))
    if log:
        losses = np.log10(np.clip(losses, 1e-12, None))

    fig = plt.figure(figsize=(11, 8))
    plt.plot(epochs, losses, label='Training Loss', c="r")
    plt.xlabel('Epochs')
    plt.ylabel('log10 Loss' if log else 'Loss')
    plt.legend()
    plt.grid(True)
    plt.tight_layout()

    out_fn = out_prefix + ".loss.pdf"
    plt.savefig(out_fn, bbox_inches='tight')
    plt.close(fig)
    return out_fn
