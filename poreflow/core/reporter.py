# This file is part of Poreflow.
# Licensed under MIT License.

"""Raw-signal dump and run summary output."""

import logging as lg


def print_raw_signal(read_name, path, record, stream):
    """Write ``@name<TAB>path<TAB>nsample`` then the tab-separated raw samples."""
    print(f'@{read_name}\t{path}\t{record.n_samples}', file=stream)
    print('\t'.join(str(int(v)) for v in record.raw), file=stream)


def print_summary(run_info, loglev=lg.WARNING):
    _d = run_info
    lg.log(loglev, 'Run Summary:')
    lg.log(loglev, '    {} alignment records read in {} batches.'.format(_d['records'], _d['batches']))
    lg.log(loglev, '        {} unmapped.'.format(_d['filtered_unmapped']))
    lg.log(loglev, '        {} below minimum mapping quality.'.format(_d['filtered_mapq']))
    lg.log(loglev, '        {} secondary or supplementary (skipped).'.format(_d['filtered_secondary']))
    lg.log(loglev, '--')
    lg.log(loglev, '    {} reads accepted; of these'.format(_d['accepted']))
    lg.log(loglev, '        {} had no readable signal.'.format(_d['signal_unavailable']))
    lg.log(loglev, '        {} had no reference sequence.'.format(_d['reference_unavailable']))
    lg.log(loglev, '        {} were segmented into {} events.'.format(_d['segmented'], _d['events']))
