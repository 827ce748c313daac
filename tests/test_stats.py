"""Statistics tests."""
from conftest import make_record

from app.services.stats_service import compute_stats


def test_stats_scenario():
    view = [
        make_record('A', total_amount='1,000.00', status='INVOICED'),
        make_record('B', total_amount='', status='PENDING'),
        make_record('C', total_amount='500.50', status='REGRET'),
    ]
    stats = compute_stats(view)
    assert stats.total_quotations == 3
    assert stats.total_amount == 1500.50
    assert stats.invoiced_count == 1
    assert stats.regret_count == 1
    assert stats.open_count == 0
    assert stats.pending_count == 1


def test_status_counts_partition_the_view():
    view = [
        make_record('A', status='invoiced'),
        make_record('B', status='OPEN'),
        make_record('C', status='CANCELLED'),
        make_record('D', status='REGRET'),
    ]
    stats = compute_stats(view)
    assert stats.invoiced_count == 1
    assert stats.other_count == 1
    assert (stats.invoiced_count + stats.regret_count + stats.open_count
            + stats.pending_count + stats.other_count) == stats.total_quotations


def test_empty_view():
    stats = compute_stats([])
    assert stats.total_quotations == 0
    assert stats.total_amount == 0
    assert stats.as_dict()['other_count'] == 0
