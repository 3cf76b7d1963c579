# This file is part of Poreflow.
# Licensed under MIT License.

from .fasta import ReferenceStore  # noqa: F401
