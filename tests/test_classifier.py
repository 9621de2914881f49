"""Tests for overallocation classification."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from models.allocation import AllocationStatus
from engine.classifier import classify, round_half_up, status_style


class TestClassify:
    def test_zero_is_empty(self):
        assert classify(0, 100) == AllocationStatus.EMPTY

    def test_under_at_over(self):
        assert classify(60, 100) == AllocationStatus.UNDER
        assert classify(100, 100) == AllocationStatus.AT_CAP
        assert classify(140, 100) == AllocationStatus.OVER

    def test_rounding_half_up(self):
        assert round_half_up(99.5) == 100
        assert round_half_up(100.49) == 100
        assert classify(99.5, 100) == AllocationStatus.AT_CAP
        assert classify(100.4, 100) == AllocationStatus.AT_CAP
        assert classify(100.5, 100) == AllocationStatus.OVER

    def test_small_nonzero_is_under(self):
        assert classify(0.2, 100) == AllocationStatus.UNDER

    def test_custom_cap(self):
        assert classify(80, 80) == AllocationStatus.AT_CAP
        assert classify(90, 80) == AllocationStatus.OVER


class TestStatusStyle:
    def test_styles_differ_per_status(self):
        styles = {status_style(s) for s in AllocationStatus}
        assert len(styles) == len(AllocationStatus)

    def test_non_working_overrides_status(self):
        assert status_style(AllocationStatus.OVER, non_working=True) == \
            status_style(AllocationStatus.UNDER, non_working=True)
