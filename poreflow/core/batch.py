# This file is part of Poreflow.
# Licensed under MIT License.

"""Fixed-capacity, reusable working set of reads.

A :class:`Batch` owns ``capacity`` :class:`Slot` objects, created once and
reused for every load/process cycle. Each slot ties together one read record
and its per-cycle attachments (reference subsequence, raw signal, events).
Only the first ``count`` slots are occupied; anything past ``count`` is stale
and must not be read.

Every attachment is recorded in the batch ledger when it is made and again
when :meth:`Batch.clear_cycle` releases it, so a balanced ledger means no
per-read data outlived its cycle.
"""

import enum
from collections import Counter

from .options import DEFAULT_BATCH_SIZE

ATTACHMENT_KINDS = ('reference', 'signal', 'events')


class SlotStatus(enum.Enum):
    OK = 'ok'
    SIGNAL_UNAVAILABLE = 'signal_unavailable'
    REFERENCE_UNAVAILABLE = 'reference_unavailable'


class ReadRecord:
    """Fields the pipeline consumes from one alignment record.

    Allocated once per slot and overwritten by :meth:`fill` on every load.
    """

    def __init__(self):
        self.reset()

    def fill(self, aln, reference_name=None):
        """Copy the fields of a pysam ``AlignedSegment`` into this record."""
        self.query_name = aln.query_name
        self.flag = aln.flag
        self.mapping_quality = aln.mapping_quality
        self.reference_id = aln.reference_id
        self.reference_name = reference_name
        self.reference_start = aln.reference_start
        self.reference_end = aln.reference_end
        self.is_unmapped = aln.is_unmapped
        self.is_secondary = aln.is_secondary
        self.is_supplementary = aln.is_supplementary

    def reset(self):
        self.query_name = None
        self.flag = 0
        self.mapping_quality = 0
        self.reference_id = -1
        self.reference_name = None
        self.reference_start = -1
        self.reference_end = None
        self.is_unmapped = True
        self.is_secondary = False
        self.is_supplementary = False

    @property
    def empty(self):
        return self.query_name is None

    def __repr__(self):
        return (f'<ReadRecord {self.query_name} {self.reference_name}:'
                f'{self.reference_start}-{self.reference_end} mapq={self.mapping_quality}>')


class Slot:
    """One read and everything correlated with it for the current cycle."""

    def __init__(self, index, ledger):
        self.index = index
        self.read = ReadRecord()
        self.reference = None
        self.signal = None
        self.signal_path = None
        self.events = None
        self.status = SlotStatus.OK
        self._ledger = ledger

    def _attach(self, kind, current):
        if current is not None:
            raise RuntimeError(
                f'Slot {self.index} already holds {kind} data; clear_cycle() was not called'
            )
        self._ledger['allocated'][kind] += 1

    def attach_reference(self, seq):
        self._attach('reference', self.reference)
        self.reference = seq

    def attach_signal(self, record, path=None):
        self._attach('signal', self.signal)
        self.signal = record
        self.signal_path = path

    def attach_events(self, events):
        self._attach('events', self.events)
        self.events = events

    def fail(self, status):
        # the first failure wins; a read missing both is reported once
        if self.status is SlotStatus.OK:
            self.status = status

    @property
    def ready(self):
        """True when the slot can be normalized and segmented."""
        return self.status is SlotStatus.OK and self.signal is not None

    def release(self):
        """Drop every per-cycle attachment and reset the read record."""
        released = self._ledger['released']
        if self.reference is not None:
            self.reference = None
            released['reference'] += 1
        if self.signal is not None:
            self.signal.raw = None
            self.signal = None
            released['signal'] += 1
        if self.events is not None:
            self.events = None
            released['events'] += 1
        self.signal_path = None
        self.status = SlotStatus.OK
        self.read.reset()


class Batch:
    """Arena of ``capacity`` reusable slots with an occupied-count watermark."""

    def __init__(self, capacity=DEFAULT_BATCH_SIZE):
        if capacity < 1:
            raise ValueError(f'Batch capacity must be positive, got {capacity}')
        self.capacity = capacity
        self.count = 0
        self.ledger = {'allocated': Counter(), 'released': Counter()}
        self.slots = [Slot(i, self.ledger) for i in range(capacity)]

    def __len__(self):
        return self.count

    def __getitem__(self, i):
        if not 0 <= i < self.count:
            raise IndexError(f'slot {i} is not occupied (count={self.count})')
        return self.slots[i]

    def occupied(self):
        """Iterate over the occupied slots, in load order."""
        self._check_alive()
        return iter(self.slots[:self.count])

    @property
    def destroyed(self):
        return self.slots is None

    def _check_alive(self):
        if self.slots is None:
            raise RuntimeError('Batch has been destroyed')

    def clear_cycle(self):
        """Release per-cycle data of the occupied slots.

        Slots past ``count`` were cleared in an earlier cycle and are left
        alone. The read records stay allocated for the next load.
        """
        self._check_alive()
        for slot in self.slots[:self.count]:
            slot.release()
        self.count = 0

    def destroy(self):
        """Release every slot, occupied or not. The batch is unusable afterwards."""
        if self.slots is None:
            return
        for slot in self.slots:
            slot.release()
        self.slots = None
        self.count = 0

    def live_attachments(self):
        """Attachments made but not yet released, per kind."""
        alloc, rel = self.ledger['allocated'], self.ledger['released']
        return {k: alloc[k] - rel[k] for k in ATTACHMENT_KINDS}
