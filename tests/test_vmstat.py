import dataclasses
import pytest

from procfs_mcp.decoders import vmstat
from procfs_mcp.decoders.errors import NotANumber, ProcfsReadError

SAMPLE = """nr_free_pages 457637
pgpgin 123456
pgpgout 654321
pswpin 0
pswpout 0
pgfault 987654321
pgmajfault 4321
nr_brand_new_counter 5
"""


def test_parse_sample():
    v = vmstat.parse_vmstat(SAMPLE)
    assert v.nr_free_pages == 457637
    assert v.pgfault == 987654321
    assert v.pgmajfault == 4321
    assert v.pswpin == 0


def test_unprinted_counter_is_none():
    v = vmstat.parse_vmstat(SAMPLE)
    assert v.zswpout is None


def test_unknown_counter_not_a_field():
    v = vmstat.parse_vmstat(SAMPLE)
    assert 'nr_brand_new_counter' not in {f.name for f in dataclasses.fields(v)}


def test_record_is_frozen():
    v = vmstat.parse_vmstat(SAMPLE)
    with pytest.raises(dataclasses.FrozenInstanceError):
        v.pgfault = 1


def test_bad_number():
    with pytest.raises(NotANumber):
        vmstat.parse_vmstat('pgfault 12ab\n')


def test_read(fake_proc):
    fake_proc.write('vmstat', SAMPLE)
    assert vmstat.read().pgpgout == 654321


def test_read_missing(fake_proc):
    with pytest.raises(ProcfsReadError):
        vmstat.read()
