# This file is part of Poreflow.
# Licensed under MIT License.

"""Exception types raised by the stores and the pipeline."""


class PoreflowError(Exception):
    """Base class for all Poreflow errors."""


class StoreOpenError(PoreflowError, OSError):
    """A store, its index, its header or the signal manifest could not be opened.

    Raised while the :class:`~poreflow.core.context.PipelineContext` is being
    built. Always fatal: no batch is processed.
    """


class SignalUnavailable(PoreflowError):
    """The raw signal for a read could not be resolved or read."""

    def __init__(self, read_name, reason, path=None):
        self.read_name = read_name
        self.reason = reason
        self.path = path
        super().__init__(f'{read_name}: {reason}' + (f' ({path})' if path else ''))


class ReferenceFetchError(PoreflowError):
    """The reference subsequence for a read could not be fetched."""

    def __init__(self, contig, start, end, reason):
        self.contig = contig
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f'{contig}:{start}-{end}: {reason}')
