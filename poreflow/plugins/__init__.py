# This file is part of Poreflow.
# Licensed under MIT License.

"""Plugin infrastructure for Poreflow segmenters and consumers."""

from .abc import Consumer, Segmenter  # noqa: F401
from .registry import PluginRegistry  # noqa: F401
from .snapshots import BatchSnapshot, ReadSnapshot  # noqa: F401
