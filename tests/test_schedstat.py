"""Scheduler statistics decoding (/proc/schedstat and /proc/<pid>/schedstat).

Covers the line classifier, cpu/domain decoding (both time units), cpu mask
groups, domain ownership, document assembly and the read entry points.
"""

import logging, os
import pytest

from procfs_mcp.decoders import schedstat
from procfs_mcp.decoders.common import clock_ticks_per_second, decode_scalar
from procfs_mcp.decoders.errors import MalformedDocument, MissingField, NotANumber, ProcfsReadError

SAMPLE = os.path.join(os.path.dirname(__file__), 'data', 'schedstat_v15.txt')
ZEROS = ' '.join(['0'] * 36)


@pytest.mark.parametrize('line,kind', [
    ('version 15', schedstat.VERSION),
    ('timestamp 4295337416', schedstat.TIMESTAMP),
    ('cpu7 0 0 0 0 0 0 1 2 3', schedstat.CPU),
    ('domain2 ff 0 0', schedstat.DOMAIN),
    ('bogus 1 2 3', schedstat.UNRECOGNIZED),
    ('', schedstat.UNRECOGNIZED),
])
def test_classify_line(line, kind):
    assert schedstat.classify_line(line) == kind


def test_end_to_end_minimal_document():
    doc = schedstat.parse_schedstat("version 15\ntimestamp 100\ncpu0 0 0 0 0 0 0 1 2 3\ndomain0 3f 0 0")
    assert doc.version == 15
    assert doc.timestamp == 100
    assert len(doc.per_cpu) == 1
    assert doc.per_cpu[0].cpu_index == 0
    assert doc.per_cpu[0].counters == (0, 0, 0, 0, 0, 0, 0, 1, 2, 3)
    assert len(doc.domains) == 1
    d = doc.domains[0]
    assert (d.cpu_nr, d.domain_nr, d.cpu_masks, d.statistics) == (0, 0, (63,), (0, 0))


def test_cpu_line_nanoseconds_unchanged():
    rec = schedstat.decode_cpu('cpu0 0 0 0 0 0 0 457571901633 48594074614 4348645')
    assert rec.cpu_index == 0
    assert rec.counters == (0, 0, 0, 0, 0, 0, 0, 457571901633, 48594074614, 4348645)
    assert rec.run_time == 457571901633
    assert rec.wait_time == 48594074614
    assert rec.timeslices == 4348645
    assert len(rec.statistics) == schedstat.CPU_STATISTICS


def test_cpu_line_jiffies_converted_to_ms():
    rec = schedstat.decode_cpu('cpu0 0 0 0 0 0 0 200 300 4', clk_tck=100, time_unit='jiffies')
    assert rec.counters[7] == 2000
    assert rec.counters[8] == 3000
    # only run and wait time are time values
    assert rec.counters[9] == 4


def test_cpu_line_jiffies_uses_host_clock_when_not_given(monkeypatch):
    monkeypatch.setattr(os, 'sysconf', lambda name: 250)
    rec = schedstat.decode_cpu('cpu1 0 0 0 0 0 0 500 250 1', time_unit='jiffies')
    assert rec.counters[7] == 2000
    assert rec.counters[8] == 1000


def test_unknown_time_unit_rejected():
    with pytest.raises(ValueError):
        schedstat.decode_cpu('cpu0 0 0 0 0 0 0 1 2 3', time_unit='seconds')


@pytest.mark.parametrize('line,exc', [
    ('cpu0 0 0 0', MissingField),
    ('cpu0 0 0 0 0 0 0 1 2 x', NotANumber),
    ('cpu0 0 0 0 0 0 0 1 2 -3', NotANumber),
    ('cpuX 0 0 0 0 0 0 1 2 3', NotANumber),
])
def test_cpu_line_errors(line, exc):
    with pytest.raises(exc):
        schedstat.decode_cpu(line)


def test_clock_rate_falls_back_to_100(monkeypatch):
    def boom(name):
        raise ValueError('unsupported')
    monkeypatch.setattr(os, 'sysconf', boom)
    assert clock_ticks_per_second() == 100
    monkeypatch.setattr(os, 'sysconf', lambda name: -1)
    assert clock_ticks_per_second() == 100


@pytest.mark.parametrize('token,masks', [
    ('00000000,00000001', [0, 1]),
    ('ffffffff,ffffffff', [4294967295, 4294967295]),
    ('3f', [63]),
])
def test_cpu_mask_groups(token, masks):
    assert schedstat.decode_cpu_mask(token) == masks


def test_cpu_mask_ungrouped_equals_single_group():
    assert schedstat.decode_cpu_mask('0000003f') == schedstat.decode_cpu_mask('3f')


def test_cpu_mask_bad_hex():
    with pytest.raises(NotANumber):
        schedstat.decode_cpu_mask('00000000,zz')


def test_domain_cpus_folds_groups():
    d = schedstat.decode_domain(f'domain1 00000001,00000003 {ZEROS}', cpu_nr=0)
    assert d.cpu_masks == (1, 3)
    assert d.cpus() == [0, 1, 32]
    assert len(d.statistics) == 36


def test_domain_before_cpu_is_malformed():
    with pytest.raises(MalformedDocument):
        schedstat.parse_schedstat('version 15\ndomain0 3f 0 0\ncpu0 0 0 0 0 0 0 1 2 3')


def test_domain_owner_is_most_recent_cpu():
    text = '\n'.join([
        'cpu4 0 0 0 0 0 0 1 2 3',
        'domain0 3 0', 'domain1 f 0',
        'cpu9 0 0 0 0 0 0 1 2 3',
        'domain0 c 0',
    ])
    doc = schedstat.parse_schedstat(text)
    assert [d.cpu_nr for d in doc.domains] == [4, 4, 9]
    assert [d.domain_nr for d in doc.domains] == [0, 1, 0]


def test_garbage_line_skipped_and_logged(caplog):
    with open(SAMPLE) as f:
        lines = f.read().splitlines()
    lines.insert(5, 'garbage-from-a-newer-kernel 1 2 3')
    with caplog.at_level(logging.WARNING, logger='procfs_mcp'):
        doc = schedstat.parse_schedstat('\n'.join(lines))
    assert len(doc.per_cpu) + len(doc.domains) == 12
    assert len(doc.per_cpu) == 4
    assert any('garbage-from-a-newer-kernel' in r.getMessage() for r in caplog.records)


def test_six_cpu_six_domain_document_with_injected_garbage():
    body = []
    for n in range(6):
        body.append(f'cpu{n} 0 0 0 0 0 0 {n} {n} {n}')
        body.append(f'domain0 {1 << n:x} {ZEROS}')
    body.insert(6, 'unexpected line')
    doc = schedstat.parse_schedstat('version 15\ntimestamp 1\n' + '\n'.join(body))
    assert len(doc.per_cpu) == 6
    assert len(doc.domains) == 6
    assert [d.cpus() for d in doc.domains] == [[n] for n in range(6)]


def test_per_cpu_empty_without_cpu_lines():
    doc = schedstat.parse_schedstat('version 15\ntimestamp 1\n')
    assert doc.per_cpu == ()
    assert doc.domains == ()


def test_missing_header_lines_are_none():
    doc = schedstat.parse_schedstat('cpu0 0 0 0 0 0 0 1 2 3\n')
    assert doc.version is None and doc.timestamp is None


def test_repeated_version_keeps_first():
    doc = schedstat.parse_schedstat('version 15\nversion 16\ncpu0 0 0 0 0 0 0 1 2 3')
    assert doc.version == 15


def test_read_sample_file():
    doc = schedstat.read(SAMPLE)
    assert doc.version == 15
    assert doc.timestamp == 4295337416
    assert [c.cpu_index for c in doc.per_cpu] == [0, 1, 2, 3]
    assert [d.cpu_nr for d in doc.domains] == [0, 0, 1, 1, 2, 2, 3, 3]
    assert doc.domains[1].cpus() == [0, 1, 2, 3]
    assert doc.per_cpu[0].run_time == 457571901633


def test_read_time_unit_from_environment(monkeypatch):
    monkeypatch.setenv('PROCFS_SCHEDSTAT_TIME_UNIT', 'jiffies')
    monkeypatch.setattr(os, 'sysconf', lambda name: 100)
    doc = schedstat.read(SAMPLE)
    assert doc.per_cpu[0].run_time == 457571901633 * 10


def test_read_missing_file(tmp_path):
    missing = str(tmp_path / 'nope')
    with pytest.raises(ProcfsReadError) as ei:
        schedstat.read(missing)
    assert ei.value.path == missing
    assert isinstance(ei.value.__cause__, OSError)


def test_read_uses_proc_root(fake_proc):
    fake_proc.write('schedstat', 'version 15\ntimestamp 7\ncpu0 0 0 0 0 0 0 1 2 3\n')
    assert schedstat.read().timestamp == 7


def test_pid_schedstat(fake_proc):
    fake_proc.write('42/schedstat', '123456 7890 12\n')
    rec = schedstat.read_pid(42)
    assert (rec.run_time, rec.wait_time, rec.timeslices) == (123456, 7890, 12)


def test_pid_schedstat_short_line():
    with pytest.raises(MissingField):
        schedstat.parse_pid_schedstat('1 2')


def test_oversized_number_is_not_a_number():
    with pytest.raises(NotANumber):
        schedstat.parse_schedstat('version ' + '9' * 5000 + '\ncpu0 0 0 0 0 0 0 1 2 3')
    with pytest.raises(NotANumber):
        schedstat.decode_cpu('cpu0 0 0 0 0 0 0 18446744073709551616 2 3')


def test_leading_zeros_do_not_count_against_width():
    assert decode_scalar('version ' + '0' * 40 + '15') == 15


def test_extra_cpu_statistics_kept():
    rec = schedstat.decode_cpu('cpu0 1 2 3 4 5 6 7 8 9 10')
    assert rec.counters == (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10)
    assert len(rec.counters) == 11
    assert rec.run_time == 7 and rec.wait_time == 8 and rec.timeslices == 9


def test_document_sequences_are_immutable():
    doc = schedstat.parse_schedstat("version 15\ncpu0 0 0 0 0 0 0 1 2 3\ndomain0 3f 0 0")
    with pytest.raises(AttributeError):
        doc.per_cpu.append(doc.per_cpu[0])
    with pytest.raises(TypeError):
        doc.per_cpu[0].counters[7] = 0
    with pytest.raises(TypeError):
        doc.domains[0].cpu_masks[0] = 0
