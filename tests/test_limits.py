import pytest

from statskit.linux.limits import (
    UNLIMITED,
    Limits,
    ProcLimits,
    parse_limit_uint,
    parse_proc_limits,
    read_proc_limits,
)

# (field, limit name, soft, hard, unit) for a typical process.
ROWS = [
    ("cpu_time", "Max cpu time", UNLIMITED, UNLIMITED, "seconds"),
    ("file_size", "Max file size", UNLIMITED, UNLIMITED, "bytes"),
    ("data_size", "Max data size", UNLIMITED, UNLIMITED, "bytes"),
    ("stack_size", "Max stack size", 8388608, UNLIMITED, "bytes"),
    ("core_file_size", "Max core file size", 0, UNLIMITED, "bytes"),
    ("resident_set", "Max resident set", UNLIMITED, UNLIMITED, "bytes"),
    ("processes", "Max processes", UNLIMITED, UNLIMITED, "processes"),
    ("open_files", "Max open files", 1048576, 1048576, "files"),
    ("locked_memory", "Max locked memory", 65536, 65536, "bytes"),
    ("address_space", "Max address space", UNLIMITED, UNLIMITED, "bytes"),
    ("file_locks", "Max file locks", UNLIMITED, UNLIMITED, "locks"),
    ("pending_signals", "Max pending signals", 7767, 7767, "signals"),
    ("msgqueue_size", "Max msgqueue size", 819200, 819200, "bytes"),
    ("nice_priority", "Max nice priority", 0, 0, ""),
    ("realtime_priority", "Max realtime priority", 0, 0, ""),
    ("realtime_timeout", "Max realtime timeout", UNLIMITED, UNLIMITED, "us"),
]


def _cell(value):
    return "unlimited" if value == UNLIMITED else str(value)


def _render(rows):
    header = f"{'Limit':<26}{'Soft Limit':<21}{'Hard Limit':<21}Units"
    body = [
        f"{name:<26}{_cell(soft):<21}{_cell(hard):<21}{unit}".rstrip()
        for _, name, soft, hard, unit in rows
    ]
    return "\n".join([header, *body]) + "\n"


def test_parse_proc_limits():
    assert parse_proc_limits(_render(ROWS)) == ProcLimits(
        cpu_time=Limits("Max cpu time", UNLIMITED, UNLIMITED, "seconds"),
        file_size=Limits("Max file size", UNLIMITED, UNLIMITED, "bytes"),
        data_size=Limits("Max data size", UNLIMITED, UNLIMITED, "bytes"),
        stack_size=Limits("Max stack size", 8388608, UNLIMITED, "bytes"),
        core_file_size=Limits("Max core file size", 0, UNLIMITED, "bytes"),
        resident_set=Limits("Max resident set", UNLIMITED, UNLIMITED, "bytes"),
        processes=Limits("Max processes", UNLIMITED, UNLIMITED, "processes"),
        open_files=Limits("Max open files", 1048576, 1048576, "files"),
        locked_memory=Limits("Max locked memory", 65536, 65536, "bytes"),
        address_space=Limits("Max address space", UNLIMITED, UNLIMITED, "bytes"),
        file_locks=Limits("Max file locks", UNLIMITED, UNLIMITED, "locks"),
        pending_signals=Limits("Max pending signals", 7767, 7767, "signals"),
        msgqueue_size=Limits("Max msgqueue size", 819200, 819200, "bytes"),
        nice_priority=Limits("Max nice priority", 0, 0, ""),
        realtime_priority=Limits("Max realtime priority", 0, 0, ""),
        realtime_timeout=Limits("Max realtime timeout", UNLIMITED, UNLIMITED, "us"),
    )


def test_unknown_limit_rows_are_ignored():
    text = _render([("x", "Max bogus thing", 1, 2, "units")])
    assert parse_proc_limits(text) == ProcLimits()


def test_unlimited_is_max_uint64():
    assert parse_limit_uint("unlimited") == 2**64 - 1


@pytest.mark.parametrize("text", ["-1", "abc", "", "18446744073709551616"])
def test_parse_limit_uint_errors(text):
    with pytest.raises(ValueError):
        parse_limit_uint(text)


def test_parse_invalid_limit_value():
    with pytest.raises(ValueError):
        parse_proc_limits("header\nMax cpu time  bogus  unlimited  seconds\n")


def test_read_proc_limits_missing_process():
    with pytest.raises(FileNotFoundError):
        read_proc_limits("asdfasdf")