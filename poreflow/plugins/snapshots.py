# -*- coding: utf-8 -*-

# This file is part of Poreflow.
# Licensed under MIT License.

"""Frozen dataclass snapshots passed to consumers via platform hooks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ReadSnapshot:
    """One segmented read."""
    read_name: str
    contig: str
    ref_start: int
    ref_end: int
    reference: str                # reference subsequence on [ref_start, ref_end)
    signal_path: str
    n_samples: int
    sample_rate: float
    events: object                # EVENT_DTYPE array (read-only by convention)


@dataclass(frozen=True)
class BatchSnapshot:
    """Immutable view of one processed batch.

    Passed to :meth:`Consumer.on_batch`. Only reads that were segmented are
    in ``reads``; the rest are listed in ``skipped`` with their status.
    """
    batch_index: int
    reads: tuple                  # (ReadSnapshot, ...)
    skipped: tuple                # ((read_name, status_value), ...)

    @classmethod
    def from_batch(cls, batch, batch_index):
        reads = []
        skipped = []
        for slot in batch.occupied():
            if slot.events is None:
                skipped.append((slot.read.query_name, slot.status.value))
                continue
            read = slot.read
            reads.append(ReadSnapshot(
                read_name=read.query_name,
                contig=read.reference_name,
                ref_start=read.reference_start,
                ref_end=read.reference_end,
                reference=slot.reference,
                signal_path=slot.signal_path,
                n_samples=slot.signal.n_samples,
                sample_rate=slot.signal.sample_rate,
                events=slot.events,
            ))
        return cls(batch_index=batch_index, reads=tuple(reads), skipped=tuple(skipped))
