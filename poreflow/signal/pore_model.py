# This file is part of Poreflow.
# Licensed under MIT License.

"""Immutable 6-mer pore model table.

One entry per possible 6-mer over ``ACGT`` (4**6 = 4096). The table is owned
by the :class:`~poreflow.core.context.PipelineContext` and passed by
reference to anything that needs k-mer level lookups.
"""

import logging as lg
from dataclasses import dataclass

import numpy as np

from ..core.errors import StoreOpenError

KMER_SIZE = 6
NUM_KMERS = 4 ** KMER_SIZE

_BASE_RANK = {'A': 0, 'C': 1, 'G': 2, 'T': 3}


def kmer_rank(kmer):
    """Lexicographic rank of *kmer* over ``ACGT``."""
    rank = 0
    for base in kmer:
        rank = (rank << 2) | _BASE_RANK[base]
    return rank


def _frozen(arr):
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True)
class PoreModel:
    name: str
    level_mean: np.ndarray
    level_stdv: np.ndarray
    sd_mean: np.ndarray
    sd_stdv: np.ndarray

    @classmethod
    def empty(cls):
        """Zero-filled table, used when no model file is given."""
        return cls(
            'empty',
            *(_frozen(np.zeros(NUM_KMERS, dtype=np.float32)) for _ in range(4)),
        )

    @classmethod
    def load(cls, path):
        """Load a nanopolish-style ``.model`` TSV.

        Lines starting with ``#`` are metadata; the column header line starts
        with ``kmer``. Columns are ``kmer level_mean level_stdv sd_mean sd_stdv``.

        Raises:
            StoreOpenError: The file is unreadable, or a row has a k-mer of
                the wrong length, an invalid base or a non-numeric level.
        """
        cols = np.zeros((4, NUM_KMERS), dtype=np.float32)
        seen = 0
        try:
            with open(path) as fh:
                for lineno, line in enumerate(fh, 1):
                    if line.startswith('#') or line.startswith('kmer') or not line.strip():
                        continue
                    fields = line.split()
                    kmer = fields[0]
                    if len(kmer) != KMER_SIZE or len(fields) < 5:
                        raise StoreOpenError(f'{path}:{lineno}: expected a {KMER_SIZE}-mer row')
                    try:
                        i = kmer_rank(kmer)
                    except KeyError:
                        raise StoreOpenError(f'{path}:{lineno}: invalid k-mer {kmer}') from None
                    try:
                        cols[:, i] = [float(v) for v in fields[1:5]]
                    except ValueError:
                        raise StoreOpenError(f'{path}:{lineno}: non-numeric level for {kmer}') from None
                    seen += 1
        except StoreOpenError:
            raise
        except (OSError, UnicodeDecodeError) as exc:
            raise StoreOpenError(f'Could not read pore model {path}: {exc}') from exc

        if seen < NUM_KMERS:
            lg.warning(f'Pore model {path} defines {seen} of {NUM_KMERS} k-mers')
        return cls(path, *(_frozen(c.copy()) for c in cols))

    def lookup(self, kmer):
        """Return ``(level_mean, level_stdv)`` for *kmer*."""
        i = kmer_rank(kmer)
        return float(self.level_mean[i]), float(self.level_stdv[i])

    def __len__(self):
        return NUM_KMERS
