# This file is part of Poreflow.
# Licensed under MIT License.

"""Pipeline configuration passed to the core."""

from dataclasses import dataclass

DEFAULT_MIN_MAPQ = 30
DEFAULT_BATCH_SIZE = 512

SECONDARY_MODES = ('keep', 'skip')


@dataclass(frozen=True)
class PipelineOptions:
    """Options recognised by the loader.

    Attributes:
        print_raw: Write each read's name, signal path and raw samples to the
            raw stream while loading.
        min_mapq: Reads with a mapping quality below this are rejected.
        secondary: ``'keep'`` passes secondary and supplementary alignments
            through, ``'skip'`` rejects them.
    """
    print_raw: bool = False
    min_mapq: int = DEFAULT_MIN_MAPQ
    secondary: str = 'keep'

    def __post_init__(self):
        if self.secondary not in SECONDARY_MODES:
            raise ValueError(
                f"Unknown secondary mode '{self.secondary}'. Allowed: {list(SECONDARY_MODES)}"
            )
        if self.min_mapq < 0:
            raise ValueError(f'min_mapq must be non-negative, got {self.min_mapq}')

    @classmethod
    def from_opts(cls, opts):
        """Build from a parsed CLI options object."""
        return cls(
            print_raw=bool(getattr(opts, 'print_raw', False)),
            min_mapq=getattr(opts, 'min_mapq', DEFAULT_MIN_MAPQ),
            secondary=getattr(opts, 'secondary', 'keep'),
        )
