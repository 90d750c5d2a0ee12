"""Unit tests for deterministic chain ordering."""
from __future__ import annotations

from rebalancer.engine.ordering import chain_ratios, most_buffer_first, worst_first


class TestChainRatios:
    def test_worst_ratio_wins(self, make_position) -> None:
        positions = [make_position(1, 1000, 100), make_position(1, 200, 100)]
        assert chain_ratios(positions) == {1: 16 * 10**17}

    def test_sentinel_replaced_by_real_ratio(self, make_position) -> None:
        positions = [make_position(1, 1000), make_position(1, 200, 100)]
        assert chain_ratios(positions) == {1: 16 * 10**17}

    def test_all_sentinel(self, make_position) -> None:
        assert chain_ratios([make_position(1, 1000), make_position(1, 5)]) == {1: 0}


class TestWorstFirst:
    def test_ascending_with_sentinel_last(self, make_position) -> None:
        positions = [
            make_position(3, 1000),  # sentinel
            make_position(1, 100, 90),  # 0.888
            make_position(2, 50, 100),  # 0.4
        ]
        assert worst_first(positions) == (2, 1, 3)

    def test_ties_by_chain_id(self, make_position) -> None:
        positions = [make_position(9, 50, 100), make_position(4, 50, 100)]
        assert worst_first(positions) == (4, 9)


class TestMostBufferFirst:
    def test_descending_with_sentinel_last(self, make_position) -> None:
        positions = [
            make_position(3, 2000),  # sentinel
            make_position(1, 500, 100),  # 4.0
            make_position(2, 1000, 100),  # 8.0
        ]
        assert most_buffer_first(positions) == (2, 1, 3)

    def test_multiple_sentinels_by_chain_id(self, make_position) -> None:
        positions = [make_position(8453, 10), make_position(10, 10)]
        assert most_buffer_first(positions) == (10, 8453)

    def test_empty(self) -> None:
        assert most_buffer_first([]) == ()
