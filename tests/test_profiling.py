"""Hot path profiling hooks."""

import pytest

import jtea
from jtea import _profiling


def test_stats_accumulate() -> None:
    stats = jtea.HotPathStats("tokenize")
    stats.record_call(100, 10)
    stats.record_call(50, 5)

    assert stats.call_count == 2
    assert stats.total_time_ns == 150
    assert stats.units_processed == 15


@pytest.mark.skipif(
    _profiling.PROFILE_HOT_PATHS, reason="profiling enabled by JTEA_PROFILE"
)
def test_profiling_disabled_by_default() -> None:
    jtea.loads("[1, 2]").skip()

    assert jtea.get_hot_path_stats() == {}
    jtea.clear_hot_path_stats()


@pytest.mark.skipif(
    not _profiling.PROFILE_HOT_PATHS, reason="set JTEA_PROFILE to profile"
)
def test_profiling_records_hot_paths() -> None:
    jtea.clear_hot_path_stats()

    jtea.loads("[1, 2]").skip()

    stats = jtea.get_hot_path_stats()
    assert stats["tokenize"].units_processed > 0
    assert stats["skip"].call_count == 1
