import torch
import torch.nn as nn
import torch.nn.functional as fun


class ReconLoss(nn.Module):
    """Stateful mean-squared reconstruction loss.

    ``forward()`` returns the batch loss for backprop and appends it to an internal batch
    buffer. Call ``append_mean_batch_loss()`` once per epoch to turn the buffer into an
    epoch mean (stored in ``epoch_total_loss``), and ``print_epoch_losses()`` to print it.
    """

    def __init__(self, name = "Train") -> None:
        super().__init__()
        self.name = name
        self.batch_total_loss = []
        self.batch_sizes      = []
        self.epoch_total_loss = []

    def forward(self, pred: torch.Tensor, true: torch.Tensor) -> torch.Tensor:
        total_loss = fun.mse_loss(pred, true)
        self.batch_total_loss.append(total_loss.detach())
        self.batch_sizes.append(pred.shape[0])
        return total_loss

    def append_mean_batch_loss(self) -> float:
        """Aggregate the current batch buffer into an epoch mean, reset it and return the mean."""
        losses  = torch.stack(self.batch_total_loss)
        weights = torch.tensor(self.batch_sizes, dtype=losses.dtype, device=losses.device)
        mean_total_loss = (torch.sum(losses * weights) / torch.sum(weights)).item()

        self.epoch_total_loss.append(mean_total_loss)

        self.batch_total_loss = []
        self.batch_sizes      = []
        return mean_total_loss

    def print_epoch_losses(self, elapsed_time):
        """Print the most recent epoch loss summary.

        Args:
            elapsed_time (float): Elapsed time since training started, in seconds.
        """
        print(f"Epoch {len(self.epoch_total_loss)}\t {self.name} loss: {self.epoch_total_loss[-1]:.6f},  " +
              f"Run time: {elapsed_time:.3f} sec")

    def reset(self):
        self.batch_total_loss = []
        self.batch_sizes      = []
        self.epoch_total_loss = []
