# This file is part of Poreflow.
# Licensed under MIT License.

"""Random access to reference subsequences through a faidx-indexed FASTA."""

import logging as lg

import pysam

from ..core.errors import ReferenceFetchError, StoreOpenError


class ReferenceStore:
    def __init__(self, fasta_path):
        self.path = fasta_path
        try:
            self._fa = pysam.FastaFile(fasta_path)
        except (OSError, ValueError) as exc:
            raise StoreOpenError(f'Could not open reference {fasta_path}: {exc}') from exc
        lg.debug(f'Opened reference {fasta_path}: {self._fa.nreferences} sequences')

    def fetch(self, contig, start, end):
        """Return the reference sequence on ``[start, end)``.

        Raises:
            ReferenceFetchError: Unknown contig, invalid coordinates, or a
                region extending past the end of the contig.
        """
        if self._fa is None:
            raise ReferenceFetchError(contig, start, end, 'reference store is closed')
        if contig is None:
            raise ReferenceFetchError(contig, start, end, 'record has no reference sequence')
        if start is None or end is None or start < 0 or end < start:
            raise ReferenceFetchError(contig, start, end, 'invalid coordinates')
        try:
            seq = self._fa.fetch(contig, start, end)
        except (KeyError, ValueError, IndexError) as exc:
            raise ReferenceFetchError(contig, start, end, str(exc)) from exc
        # pysam silently truncates regions past the contig end
        if len(seq) != end - start:
            raise ReferenceFetchError(
                contig, start, end, f'fetched {len(seq)} bases, expected {end - start}'
            )
        return seq

    def close(self):
        if self._fa is not None:
            self._fa.close()
            self._fa = None
