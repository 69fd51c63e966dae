import pytest

from statskit.linux.sched import ProcSched, parse_proc_sched, read_proc_sched

PROPERTIES = [
    ("se.exec_start", "44212723.563800"),
    ("se.vruntime", "0.553868"),
    ("se.sum_exec_runtime", "8.945468"),
    ("nr_switches", "51"),
    ("nr_voluntary_switches", "45"),
    ("nr_involuntary_switches", "6"),
    ("se.load.weight", "1024"),
    ("se.avg.load_sum", "2139396"),
    ("se.avg.util_sum", "2097665"),
    ("se.avg.load_avg", "40"),
    ("se.avg.util_avg", "39"),
    ("se.avg.last_update_time", "44212723563800"),
    ("policy", "0"),
    ("prio", "120"),
    ("clock-delta", "41"),
]


def _render(properties, header="cat (5013, #threads: 1)"):
    lines = [header, "-" * 67]
    lines += [f"{key:<45}: {value:>20}" for key, value in properties]
    return "\n".join(lines) + "\n"


def test_parse_proc_sched():
    assert parse_proc_sched(_render(PROPERTIES)) == ProcSched(
        nr_switches=51,
        nr_voluntary_switches=45,
        nr_involuntary_switches=6,
        se_avg_load_sum=2139396,
        se_avg_util_sum=2097665,
        se_avg_load_avg=40,
        se_avg_util_avg=39,
    )


def test_header_lines_are_skipped():
    text = "nr_switches: 9\nnr_switches: 9\nnr_switches: 2\n"
    assert parse_proc_sched(text).nr_switches == 2


def test_repeated_keys_are_summed():
    text = "head\n----\nnr_switches: 3\nnr_switches: 4\n"
    assert parse_proc_sched(text).nr_switches == 7


def test_invalid_value():
    with pytest.raises(ValueError):
        parse_proc_sched("head\n----\nnr_switches: -3\n")


def test_read_proc_sched_missing_process():
    with pytest.raises(FileNotFoundError):
        read_proc_sched("asdfasdf")