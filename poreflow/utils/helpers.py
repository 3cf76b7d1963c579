# This file is part of Poreflow.
# Licensed under MIT License.


def format_minutes(seconds):
    """Format elapsed seconds as ``MM:SS``, or ``HH:MM:SS`` past an hour."""
    seconds = int(round(seconds))
    hours, rem = divmod(seconds, 3600)
    mins, secs = divmod(rem, 60)
    if hours:
        return f'{hours:d}:{mins:02d}:{secs:02d}'
    return f'{mins:02d}:{secs:02d}'
