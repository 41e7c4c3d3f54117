"""
Sign classification networks.

Architectures:
    StaticSignNet    (batch, 63)      -> MLP -> (batch, num_classes)
        FC1 128, BatchNorm, ReLU, Dropout(0.3)
        FC2 64, ReLU, Dropout(0.2)
    SequenceSignNet  (batch, 15, 63)  -> LSTM(64) -> FC 32 -> (batch, num_classes)

Both return raw logits from forward(); predict_proba() applies softmax.
TorchSignClassifier adapts either network to the classifier interface
used by the ClassificationDispatcher (numpy in, probabilities out).
"""

import logging

import numpy as np
import torch
import torch.nn as nn

from sign_tutor.core.types import FEATURE_DIM, SIGN_CLASSES

logger = logging.getLogger(__name__)

NUM_CLASSES = len(SIGN_CLASSES)
DEFAULT_SEQUENCE_LENGTH = 15


class StaticSignNet(nn.Module):
    """MLP over a single normalized 63-value frame."""

    kind = "static"

    def __init__(self, input_dim=FEATURE_DIM, num_classes=NUM_CLASSES,
                 dropout1=0.3, dropout2=0.2):
        super().__init__()
        self.input_dim = input_dim
        self.num_classes = num_classes

        self.features = nn.Sequential(
            nn.Linear(input_dim, 128),
            nn.BatchNorm1d(128),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout1),

            nn.Linear(128, 64),
            nn.ReLU(inplace=True),
            nn.Dropout(dropout2),
        )
        self.classifier = nn.Linear(64, num_classes)
        self._init_weights()

    def _init_weights(self):
        for m in self.modules():
            if isinstance(m, nn.Linear):
                nn.init.kaiming_normal_(m.weight, nonlinearity="relu")
                if m.bias is not None:
                    nn.init.zeros_(m.bias)
            elif isinstance(m, nn.BatchNorm1d):
                nn.init.ones_(m.weight)
                nn.init.zeros_(m.bias)

    def forward(self, x):
        """Forward pass.

        Args:
            x: Tensor of shape (batch, 63)

        Returns:
            Tensor of shape (batch, num_classes), raw logits
        """
        return self.classifier(self.features(x))

    def predict_proba(self, x):
        self.eval()
        with torch.no_grad():
            return torch.softmax(self.forward(x), dim=1)

    def config_dict(self):
        return {"input_dim": self.input_dim, "num_classes": self.num_classes}


class SequenceSignNet(nn.Module):
    """LSTM over a fixed-length sequence of normalized frames."""

    kind = "sequence"

    def __init__(self, input_dim=FEATURE_DIM, num_classes=NUM_CLASSES,
                 hidden_size=64, dropout=0.3):
        super().__init__()
        self.input_dim = input_dim
        self.num_classes = num_classes
        self.hidden_size = hidden_size

        self.lstm = nn.LSTM(input_dim, hidden_size, batch_first=True)
        self.dropout = nn.Dropout(dropout)
        self.head = nn.Sequential(
            nn.Linear(hidden_size, 32),
            nn.ReLU(inplace=True),
        )
        self.classifier = nn.Linear(32, num_classes)

    def forward(self, x):
        """Forward pass.

        Args:
            x: Tensor of shape (batch, sequence_length, 63)

        Returns:
            Tensor of shape (batch, num_classes), raw logits
        """
        _, (hidden, _) = self.lstm(x)
        last = self.dropout(hidden[-1])
        return self.classifier(self.head(last))

    def predict_proba(self, x):
        self.eval()
        with torch.no_grad():
            return torch.softmax(self.forward(x), dim=1)

    def config_dict(self):
        return {"input_dim": self.input_dim, "num_classes": self.num_classes,
                "hidden_size": self.hidden_size}


NETWORKS = {
    StaticSignNet.kind: StaticSignNet,
    SequenceSignNet.kind: SequenceSignNet,
}


def save_checkpoint(model, path):
    """Save a network with the shape info needed to rebuild it."""
    torch.save({
        "kind": model.kind,
        "config": model.config_dict(),
        "model_state_dict": model.state_dict(),
    }, path)
    logger.info("Saved %s network to %s", model.kind, path)


def _check_label_count(model):
    """Networks must score exactly the SIGN_CLASSES label set."""
    if model.num_classes != NUM_CLASSES:
        raise ValueError("%s network has %d classes, expected %d"
                         % (model.kind, model.num_classes, NUM_CLASSES))


def load_checkpoint(path, kind, device="cpu"):
    """Load a trained network from a checkpoint.

    Supports both full checkpoint dicts (from save_checkpoint) and raw
    state_dicts.
    """
    network_cls = NETWORKS[kind]
    checkpoint = torch.load(path, map_location=device)

    if isinstance(checkpoint, dict) and "model_state_dict" in checkpoint:
        state_dict = checkpoint["model_state_dict"]
        model = network_cls(**checkpoint.get("config", {}))
    else:
        state_dict = checkpoint
        model = network_cls()

    _check_label_count(model)
    model.load_state_dict(state_dict)
    model.to(device)
    model.eval()
    logger.info("Loaded %s network (%d classes) from %s", kind, model.num_classes, path)
    return model


class TorchSignClassifier:
    """Classifier collaborator backed by a torch network."""

    def __init__(self, model, device="cpu"):
        _check_label_count(model)
        self._model = model
        self._device = device
        self._model.to(device)
        self._model.eval()

    @property
    def model(self):
        return self._model

    def predict(self, features):
        """Class probabilities for one input.

        Args:
            features: (63,) frame for a static network or
                      (sequence_length, 63) sequence for a sequence network

        Returns:
            np.ndarray of shape (num_classes,)
        """
        tensor = torch.as_tensor(np.asarray(features, dtype=np.float32)).unsqueeze(0)
        probs = self._model.predict_proba(tensor.to(self._device))
        return probs.cpu().numpy().squeeze(0)
