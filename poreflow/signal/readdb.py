# This file is part of Poreflow.
# Licensed under MIT License.

"""Read database mapping read names to the fast5 file holding their signal.

The manifest lives beside the reads file as ``<reads>.index.readdb`` and
holds one ``read_id<TAB>fast5_path`` line per read. Relative paths are
resolved against the manifest's directory.
"""

import logging as lg
import os

from ..core.errors import SignalUnavailable, StoreOpenError
from .fast5 import list_read_ids, read_fast5

READDB_SUFFIX = '.index.readdb'


def manifest_path(reads_path):
    if reads_path.endswith('.readdb'):
        return reads_path
    return reads_path + READDB_SUFFIX


class ReadDB:
    def __init__(self, path, paths):
        self.path = path
        self._paths = paths

    @classmethod
    def load(cls, reads_path):
        """Load the manifest for *reads_path*.

        Raises:
            StoreOpenError: The manifest is missing or unreadable.
        """
        path = manifest_path(reads_path)
        if not os.path.exists(path):
            raise StoreOpenError(
                f'Signal manifest {path} not found. Run "poreflow index" first.'
            )
        basedir = os.path.dirname(os.path.abspath(path))
        paths = {}
        try:
            with open(path) as fh:
                for lineno, line in enumerate(fh, 1):
                    line = line.rstrip('\n')
                    if not line or line.startswith('#'):
                        continue
                    fields = line.split('\t')
                    if len(fields) < 2 or not fields[1]:
                        # reads without a fast5 are listed with an empty path
                        lg.debug(f'{path}:{lineno}: no signal path for {fields[0]}')
                        continue
                    read_id, f5 = fields[0], fields[1]
                    if not os.path.isabs(f5):
                        f5 = os.path.join(basedir, f5)
                    paths[read_id] = f5
        except OSError as exc:
            raise StoreOpenError(f'Could not read signal manifest {path}: {exc}') from exc
        lg.info(f'Loaded signal manifest {path}: {len(paths)} reads')
        return cls(path, paths)

    def resolve(self, read_name):
        """Return the fast5 path for *read_name*.

        Raises:
            SignalUnavailable: The read is not in the manifest.
        """
        try:
            return self._paths[read_name]
        except KeyError:
            raise SignalUnavailable(read_name, 'not in signal manifest') from None

    def read_signal(self, read_name):
        """Resolve *read_name* and read its signal.

        Returns:
            (fast5 path, :class:`SignalRecord`)

        Raises:
            SignalUnavailable: Not in the manifest, or the fast5 is unreadable.
        """
        path = self.resolve(read_name)
        return path, read_fast5(path, read_name)

    def __len__(self):
        return len(self._paths)

    def __contains__(self, read_name):
        return read_name in self._paths

    def close(self):
        self._paths = {}


def build_readdb(fast5_dir, reads_path):
    """Scan *fast5_dir* and write the manifest for *reads_path*.

    Returns:
        (manifest path, number of reads indexed)
    """
    out_path = manifest_path(reads_path)
    out_dir = os.path.dirname(os.path.abspath(out_path))
    nreads = 0
    with open(out_path, 'w') as outh:
        for root, _dirs, files in os.walk(fast5_dir):
            for fname in sorted(files):
                if not fname.endswith('.fast5'):
                    continue
                f5 = os.path.join(root, fname)
                try:
                    read_ids = list_read_ids(f5)
                except OSError as exc:
                    lg.warning(f'Skipping unreadable fast5 {f5}: {exc}')
                    continue
                relpath = os.path.relpath(os.path.abspath(f5), out_dir)
                for rid in read_ids:
                    outh.write(f'{rid}\t{relpath}\n')
                    nreads += 1
    lg.info(f'Indexed {nreads} reads from {fast5_dir} into {out_path}')
    return out_path, nreads
