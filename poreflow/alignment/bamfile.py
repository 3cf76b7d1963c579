# This file is part of Poreflow.
# Licensed under MIT License.

"""Indexed BAM access for the loader.

Wraps a pysam ``AlignmentFile`` opened once per run. The file, its index,
its header and a whole-file iterator are acquired in that order and released
in reverse by :meth:`AlignmentStore.close`.
"""

import logging as lg

import pysam

from ..core.errors import StoreOpenError


class AlignmentStore:
    """Sequential reader over an indexed, coordinate-sorted BAM."""

    def __init__(self, bam_path, threads=1):
        self.path = bam_path
        self._sf = None
        self._itr = None
        self._exhausted = False

        try:
            self._sf = pysam.AlignmentFile(bam_path, 'rb', threads=threads)
        except (OSError, ValueError) as exc:
            raise StoreOpenError(f'Could not open alignment file {bam_path}: {exc}') from exc

        if not self._sf.has_index():
            self._sf.close()
            self._sf = None
            raise StoreOpenError(
                f'Alignment file {bam_path} has no index. Run "samtools index {bam_path}" first.'
            )

        header = self._sf.header
        self.ref_names = tuple(header.references)
        if not self.ref_names:
            self._sf.close()
            self._sf = None
            raise StoreOpenError(f'Alignment file {bam_path} has no @SQ header lines')

        # Region filtering would go here; the whole file is scanned for now.
        self._itr = self._sf.fetch(until_eof=True)
        lg.debug(f'Opened {bam_path}: {len(self.ref_names)} reference sequences')

    def reference_name(self, tid):
        """Return the contig name for a header target id, or *None*."""
        if 0 <= tid < len(self.ref_names):
            return self.ref_names[tid]
        return None

    def next_record(self):
        """Return the next ``AlignedSegment``, or *None* once the file is exhausted."""
        if self._exhausted or self._itr is None:
            return None
        try:
            return next(self._itr)
        except StopIteration:
            self._exhausted = True
            return None

    @property
    def exhausted(self):
        return self._exhausted

    def close(self):
        # iterator, then header and index with the file handle
        self._itr = None
        if self._sf is not None:
            self._sf.close()
            self._sf = None
        self._exhausted = True
