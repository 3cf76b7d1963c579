# This file is part of Poreflow.
# Licensed under MIT License.

"""Reading raw nanopore signal and calibration constants from fast5 files.

Both fast5 layouts are supported:

* single-read files: ``Raw/Reads/Read_<n>/Signal`` with calibration in
  ``UniqueGlobalKey/channel_id``
* multi-read files: ``read_<read_id>/Raw/Signal`` with calibration in
  ``read_<read_id>/channel_id``
"""

from dataclasses import dataclass

import h5py
import numpy as np

from ..core.errors import SignalUnavailable


@dataclass
class SignalRecord:
    """Raw samples for one read plus the constants that convert them to pA.

    ``raw`` is converted in place by
    :func:`~poreflow.core.process.to_picoamps`; ``in_picoamps`` records that
    it happened.
    """
    read_id: str
    raw: np.ndarray
    digitisation: float
    offset: float
    range: float
    sample_rate: float = 0.0
    in_picoamps: bool = False

    @property
    def n_samples(self):
        return int(self.raw.shape[0])


def _decode(value):
    return value.decode() if isinstance(value, bytes) else str(value)


def _locate(fh, read_name):
    """Return ``(signal_dataset, channel_id_group)`` for *read_name*."""
    multi_key = f'read_{read_name}'
    if multi_key in fh:
        grp = fh[multi_key]
        return grp['Raw/Signal'], grp['channel_id']

    reads = fh.get('Raw/Reads')
    if reads is None or len(reads) == 0:
        raise KeyError('no Raw/Reads group')
    # single-read files hold exactly one Read_<n> group
    read_grp = reads[sorted(reads.keys())[0]]
    file_read_id = read_grp.attrs.get('read_id')
    if file_read_id is not None and _decode(file_read_id) != read_name:
        raise KeyError(f'file holds read {_decode(file_read_id)}')
    return read_grp['Signal'], fh['UniqueGlobalKey/channel_id']


def read_fast5(path, read_name):
    """Read the raw signal for *read_name* from the fast5 file at *path*.

    The HDF5 handle is closed before returning.

    Raises:
        SignalUnavailable: The file cannot be opened, or does not hold a
            readable signal and numeric calibration for the read.
    """
    try:
        fh = h5py.File(path, 'r')
    except OSError as exc:
        raise SignalUnavailable(read_name, 'fast5 file is unreadable', path) from exc

    with fh:
        try:
            signal_ds, channel = _locate(fh, read_name)
            raw = np.asarray(signal_ds[()], dtype=np.float32)
            attrs = channel.attrs
            record = SignalRecord(
                read_id=read_name,
                raw=raw,
                digitisation=float(attrs['digitisation']),
                offset=float(attrs['offset']),
                range=float(attrs['range']),
                sample_rate=float(attrs.get('sampling_rate', 0.0)),
            )
        except OSError as exc:
            raise SignalUnavailable(read_name, f'signal could not be read: {exc}', path) from exc
        except (KeyError, ValueError, TypeError) as exc:
            raise SignalUnavailable(read_name, f'malformed fast5: {exc}', path) from exc

    if record.digitisation == 0:
        raise SignalUnavailable(read_name, 'digitisation is zero', path)
    return record


def list_read_ids(path):
    """Return the read ids stored in a fast5 file."""
    with h5py.File(path, 'r') as fh:
        multi = [k[len('read_'):] for k in fh.keys() if k.startswith('read_')]
        if multi:
            return multi
        ret = []
        reads = fh.get('Raw/Reads')
        if reads is not None:
            for key in reads:
                rid = reads[key].attrs.get('read_id')
                if rid is not None:
                    ret.append(_decode(rid))
        return ret
