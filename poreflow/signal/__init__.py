# This file is part of Poreflow.
# Licensed under MIT License.

"""Raw-signal archive: read database, fast5 reader and pore model table."""

from .fast5 import SignalRecord, list_read_ids, read_fast5  # noqa: F401
from .pore_model import PoreModel  # noqa: F401
from .readdb import ReadDB, build_readdb  # noqa: F401
