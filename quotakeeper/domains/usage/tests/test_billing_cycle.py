"""Unit tests for billing-cycle arithmetic."""

from datetime import datetime, timedelta, timezone

from quotakeeper.domains.usage.billing_cycle import as_utc, is_due, month_start, next_month_start


class TestMonthStart:
    def test_truncates_to_first_instant(self):
        moment = datetime(2026, 3, 15, 12, 30, 45, 123, tzinfo=timezone.utc)

        assert month_start(moment) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_naive_is_taken_as_utc(self):
        assert month_start(datetime(2026, 3, 15)) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_offset_timestamps_use_the_utc_month(self):
        # 00:30 on April 1st at UTC+2 is still March 31st in UTC.
        plus_two = timezone(timedelta(hours=2))
        moment = datetime(2026, 4, 1, 0, 30, tzinfo=plus_two)

        assert month_start(moment) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_as_utc_converts_offsets(self):
        minus_five = timezone(timedelta(hours=-5))
        moment = datetime(2026, 1, 31, 22, 0, tzinfo=minus_five)

        assert as_utc(moment) == datetime(2026, 2, 1, 3, 0, tzinfo=timezone.utc)


class TestNextMonthStart:
    def test_mid_year(self):
        assert next_month_start(datetime(2026, 6, 30, tzinfo=timezone.utc)) == datetime(
            2026, 7, 1, tzinfo=timezone.utc
        )

    def test_december_rolls_the_year(self):
        assert next_month_start(datetime(2026, 12, 31, 23, 59, tzinfo=timezone.utc)) == datetime(
            2027, 1, 1, tzinfo=timezone.utc
        )


class TestIsDue:
    def test_same_month_not_due(self):
        anchor = datetime(2026, 3, 1, tzinfo=timezone.utc)

        assert is_due(anchor, datetime(2026, 3, 31, 23, 59, tzinfo=timezone.utc)) is False

    def test_next_month_due(self):
        anchor = datetime(2026, 3, 1, tzinfo=timezone.utc)

        assert is_due(anchor, datetime(2026, 4, 1, tzinfo=timezone.utc)) is True

    def test_several_months_behind_due(self):
        anchor = datetime(2025, 11, 1, tzinfo=timezone.utc)

        assert is_due(anchor, datetime(2026, 3, 2, tzinfo=timezone.utc)) is True

    def test_mid_month_anchor_due_next_month(self):
        anchor = datetime(2026, 2, 17, 9, 0, tzinfo=timezone.utc)

        assert is_due(anchor, datetime(2026, 3, 1, 0, 0, 1, tzinfo=timezone.utc)) is True

    def test_future_anchor_never_due(self):
        anchor = datetime(2026, 5, 1, tzinfo=timezone.utc)

        assert is_due(anchor, datetime(2026, 3, 15, tzinfo=timezone.utc)) is False
