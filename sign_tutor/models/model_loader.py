"""
ModelLoader: loads and caches the sign classifier networks.

Each network is loaded once per name. When a checkpoint is missing or
cannot be read, an untrained network of the right shape is used
instead so the rest of the pipeline can still run during development;
its predictions are meaningless and a warning is logged.
"""

import os
import logging

from sign_tutor.models.sign_net import NETWORKS, TorchSignClassifier, load_checkpoint

logger = logging.getLogger(__name__)


class ModelLoader:
    """Loads classifier collaborators by name with caching.

    Usage::

        loader = ModelLoader(config.models)
        static, sequence = loader.load_classifiers()
    """

    def __init__(self, config: dict = None):
        config = config or {}
        self._model_dir = config.get("model_dir", "models/weights")
        self._static_name = config.get("static_model", "asl_static_model.pth")
        self._sequence_name = config.get("sequence_model", "asl_lstm_model.pth")
        self._device = config.get("device", "cpu")
        self._models = {}
        self._fallbacks = set()

    def load(self, name: str, kind: str) -> TorchSignClassifier:
        """Load (or fetch from cache) the network stored as ``name``.

        Args:
            name: Checkpoint file name inside the model directory
            kind: 'static' or 'sequence'
        """
        if kind not in NETWORKS:
            raise ValueError("Unknown network kind %r (expected one of %s)"
                             % (kind, ", ".join(sorted(NETWORKS))))
        if name in self._models:
            return self._models[name]

        path = os.path.join(self._model_dir, name)
        model = None
        if os.path.isfile(path):
            try:
                model = load_checkpoint(path, kind, device=self._device)
            except Exception as e:
                logger.warning("Failed to load %s model %s: %s", kind, path, e)
        else:
            logger.warning("Model checkpoint not found: %s", path)

        if model is None:
            logger.warning("Using untrained %s network for %s; predictions are not meaningful",
                           kind, name)
            model = NETWORKS[kind]()
            self._fallbacks.add(name)

        classifier = TorchSignClassifier(model, device=self._device)
        self._models[name] = classifier
        return classifier

    def load_classifiers(self):
        """Static and sequence classifiers named in the config."""
        return (self.load(self._static_name, "static"),
                self.load(self._sequence_name, "sequence"))

    def is_fallback(self, name: str) -> bool:
        """True if ``name`` is served by an untrained network."""
        return name in self._fallbacks

    @property
    def loaded(self) -> list:
        return sorted(self._models)

    def clear(self):
        self._models.clear()
        self._fallbacks.clear()
