# This file is part of Poreflow.
# Licensed under MIT License.

from .bamfile import AlignmentStore  # noqa: F401
