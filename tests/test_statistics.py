from quizrank.core.models import UserStats
from quizrank.core.services.result_aggregator import ResultAggregator
from quizrank.core.services.statistics import StatisticsCalculator


def test_user_without_results_gets_zeroed_stats(store):
    stats = StatisticsCalculator(store).compute_stats("nobody")

    assert stats == UserStats(
        total_quizzes=0,
        total_attempts=0,
        average_score=0,
        total_time_spent=0,
        perfect_scores=0,
    )


def test_stats_aggregate_best_results(store, catalog, clock):
    aggregator = ResultAggregator(store, catalog, clock=clock)
    aggregator.submit_result("u1", "five", 5, 5, 100, 30)
    aggregator.submit_result("u1", "five", 3, 5, 60, 10)
    aggregator.submit_result("u1", "ten", 3, 10, 30, 45)
    aggregator.submit_result("u1", "empty", 0, 0, 0, 0)
    aggregator.submit_result("u2", "ten", 10, 10, 100, 5)

    stats = StatisticsCalculator(store).compute_stats("u1")

    assert stats.total_quizzes == 3
    assert stats.total_attempts == 4
    # (100 + 30 + 0) / 3 = 43.33
    assert stats.average_score == 43
    # only the best attempt's time of each quiz counts
    assert stats.total_time_spent == 75
    assert stats.perfect_scores == 1


def test_average_rounds_half_up(store, catalog, clock):
    aggregator = ResultAggregator(store, catalog, clock=clock)
    aggregator.submit_result("u1", "five", 4, 5, 80, 1)
    aggregator.submit_result("u1", "ten", 7, 10, 70, 1)

    assert StatisticsCalculator(store).compute_stats("u1").average_score == 75
