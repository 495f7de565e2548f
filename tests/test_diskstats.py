import pytest

from procfs_mcp.decoders import diskstats
from procfs_mcp.decoders.errors import MissingField, NotANumber, ProcfsReadError

# 5.5+ (flush columns), 4.18+ (discard columns) and pre-4.18 layouts
SAMPLE = """ 259       0 nvme0n1 134375 25016 10425322 39866 318622 204153 21391808 412318 0 223772 470390 4 0 8 1 11224 18204
   8       0 sda 9021 1203 745110 5012 2011 891 61224 3321 0 6240 8333 0 0 0 0
   8      16 sdb 120 0 2048 30 0 0 0 0 0 40 30
"""


def test_parse_sample():
    d = diskstats.parse_diskstats(SAMPLE)
    assert [x.device_name for x in d.disk_stats] == ['nvme0n1', 'sda', 'sdb']
    nvme = d.disk_stats[0]
    assert (nvme.block_major, nvme.block_minor) == (259, 0)
    assert nvme.reads_completed_success == 134375
    assert nvme.ios_weighted_time_spent_ms == 470390
    assert nvme.discards_completed_success == 4
    assert nvme.flush_requests_completed_success == 11224
    assert nvme.flush_requests_time_spent_ms == 18204


def test_optional_columns_by_kernel_generation():
    sda, sdb = diskstats.parse_diskstats(SAMPLE).disk_stats[1:]
    assert sda.discards_time_spent_ms == 0
    assert sda.flush_requests_completed_success is None
    assert sdb.discards_completed_success is None
    assert sdb.flush_requests_time_spent_ms is None


@pytest.mark.parametrize('line,exc', [
    ('8 0 sda 1 2 3', MissingField),
    ('8 x sda 1 2 3 4 5 6 7 8 9 10 11', NotANumber),
])
def test_errors(line, exc):
    with pytest.raises(exc):
        diskstats.decode_disk_line(line)


def test_read(fake_proc):
    fake_proc.write('diskstats', SAMPLE)
    assert len(diskstats.read().disk_stats) == 3


def test_read_missing(fake_proc):
    with pytest.raises(ProcfsReadError):
        diskstats.read()
