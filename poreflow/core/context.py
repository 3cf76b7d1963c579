# This file is part of Poreflow.
# Licensed under MIT License.

"""Run-wide resource handles.

:class:`PipelineContext` opens the alignment file (file, index, header,
iterator), the reference, the signal manifest and the pore model table, in
that order, and releases them in exactly the reverse order.
"""

import logging as lg
from dataclasses import replace

from ..alignment import AlignmentStore
from ..reference import ReferenceStore
from ..signal import PoreModel, ReadDB
from .options import PipelineOptions


class PipelineContext:
    """Open stores and configuration for one pipeline run.

    Args:
        bam_path: Coordinate-sorted, indexed BAM.
        fasta_path: Reference FASTA (faidx index is built if missing).
        reads_path: Reads file whose ``.index.readdb`` manifest maps read
            names to fast5 files, or the manifest itself.
        options: :class:`PipelineOptions`; defaults are used if *None*.
        model_path: Optional pore model table to load.
        threads: htslib decompression threads for the BAM.

    Raises:
        StoreOpenError: Any store fails to open. Handles already opened are
            released before the error propagates.
    """

    def __init__(self, bam_path, fasta_path, reads_path, options=None, model_path=None, threads=1):
        self.bam_path = bam_path
        self.fasta_path = fasta_path
        self.reads_path = reads_path
        self.options = replace(options) if options is not None else PipelineOptions()

        self.alignments = None
        self.reference = None
        self.readdb = None
        self.model = None
        self._release = []  # acquisition order; released back to front

        try:
            self.alignments = AlignmentStore(bam_path, threads=threads)
            self._release.append(('alignments', self.alignments.close))

            self.reference = ReferenceStore(fasta_path)
            self._release.append(('reference', self.reference.close))

            self.readdb = ReadDB.load(reads_path)
            self._release.append(('readdb', self.readdb.close))

            self.model = PoreModel.load(model_path) if model_path else PoreModel.empty()
            self._release.append(('model', None))
        except Exception:
            self.close()
            raise

        lg.info(f'Opened {self}')

    @property
    def closed(self):
        return not self._release and self.alignments is None

    def close(self):
        """Release every handle in reverse acquisition order."""
        while self._release:
            name, closer = self._release.pop()
            lg.debug(f'Releasing {name}')
            if closer is not None:
                closer()
            setattr(self, name, None)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __str__(self):
        return f'<PipelineContext bam={self.bam_path}, reference={self.fasta_path}, reads={self.reads_path}>'
