# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

"""Abstract base classes for Poreflow plugins."""

from abc import ABC, abstractmethod

import numpy as np

# Event table layout shared by every segmenter
EVENT_DTYPE = np.dtype([
    ('start', np.int64),
    ('length', np.int64),
    ('mean', np.float32),
    ('stdv', np.float32),
])


class Segmenter(ABC):
    """Splits a normalized signal into events.

    The pipeline calls :meth:`segment` once per read with the signal already
    converted to pA. Implementations must not keep references to the signal
    buffer; it is released at the end of the cycle.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in CLI and entry-point registration."""

    @property
    def description(self) -> str:
        return ""

    @property
    def version(self) -> str:
        return "0.0.0"

    def configure(self, opts) -> None:
        """Receive parsed CLI opts."""

    @abstractmethod
    def segment(self, n_samples: int, signal: np.ndarray) -> np.ndarray:
        """Return an ``EVENT_DTYPE`` array covering ``signal[:n_samples]``."""


class Consumer(ABC):
    """Receives each processed batch as a frozen snapshot.

    :meth:`on_batch` is called once per cycle, before the batch is cleared.
    :meth:`commit` is called once after the last batch.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier."""

    @property
    def description(self) -> str:
        return ""

    @property
    def version(self) -> str:
        return "0.0.0"

    def configure(self, opts) -> None:
        """Receive parsed CLI opts."""

    def on_batch(self, snapshot) -> None:
        """Called with a :class:`~poreflow.plugins.snapshots.BatchSnapshot`."""

    @abstractmethod
    def commit(self, output_dir: str, exp_tag: str) -> None:
        """Write results to *output_dir*."""
