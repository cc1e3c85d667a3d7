"""
Digest filter tests
"""

from datetime import date

import pytest

from conftest import make_event, make_subscriber
from letsrace.digest.filter import filter_events_for_subscriber

TODAY = date(2025, 6, 15)


class TestDigestFilter:
    """filter_events_for_subscriber"""

    @pytest.fixture
    def subscriber(self):
        return make_subscriber(region="Scotland", disciplines=["Road"])

    def test_event_in_both_windows(self, subscriber):
        event_a = make_event(id="A", start_date="2025-06-20", added_at="2025-06-10")

        result = filter_events_for_subscriber([event_a], subscriber, TODAY)

        assert [e.id for e in result.new_this_week] == ["A"]
        assert [e.id for e in result.upcoming] == ["A"]

    def test_region_mismatch_excluded(self, subscriber):
        event_b = make_event(id="B", region="Wales", start_date="2025-06-20")

        result = filter_events_for_subscriber([event_b], subscriber, TODAY)

        assert result.new_this_week == []
        assert result.upcoming == []
        assert result.has_content is False

    def test_discipline_must_be_selected(self, subscriber):
        event = make_event(discipline="MTB")

        result = filter_events_for_subscriber([event], subscriber, TODAY)

        assert not result.has_content

    def test_new_window_inclusive_both_ends(self, subscriber):
        events = [
            make_event(id="lower", added_at="2025-06-08", start_date="2025-01-01"),
            make_event(id="upper", added_at="2025-06-15", start_date="2025-01-01"),
            make_event(id="too-old", added_at="2025-06-07", start_date="2025-01-01"),
            make_event(id="future", added_at="2025-06-16", start_date="2025-01-01"),
        ]

        result = filter_events_for_subscriber(events, subscriber, TODAY)

        assert sorted(e.id for e in result.new_this_week) == ["lower", "upper"]

    def test_upcoming_window_inclusive_both_ends(self, subscriber):
        events = [
            make_event(id="today", start_date="2025-06-15", added_at="2025-01-01"),
            make_event(id="six-weeks", start_date="2025-07-27", added_at="2025-01-01"),
            make_event(id="too-far", start_date="2025-07-28", added_at="2025-01-01"),
            make_event(id="past", start_date="2025-06-14", added_at="2025-01-01"),
        ]

        result = filter_events_for_subscriber(events, subscriber, TODAY)

        assert sorted(e.id for e in result.upcoming) == ["six-weeks", "today"]

    def test_timestamps_compared_as_dates(self, subscriber):
        event = make_event(added_at="2025-06-08T09:30:00", start_date="2025-07-27T18:00:00")

        result = filter_events_for_subscriber([event], subscriber, TODAY)

        assert len(result.new_this_week) == 1
        assert len(result.upcoming) == 1

    def test_unparseable_date_only_drops_its_window(self, subscriber):
        bad_added = make_event(id="bad-added", added_at="not a date", start_date="2025-06-20")
        bad_start = make_event(id="bad-start", added_at="2025-06-12", start_date="TBC")

        result = filter_events_for_subscriber([bad_added, bad_start], subscriber, TODAY)

        assert [e.id for e in result.new_this_week] == ["bad-start"]
        assert [e.id for e in result.upcoming] == ["bad-added"]

    def test_dedupe_by_id(self, subscriber):
        first = make_event(id="dup", name="Crit One")
        second = make_event(id="dup", name="Crit One (copy)")

        result = filter_events_for_subscriber([first, second], subscriber, TODAY)

        assert len(result.new_this_week) == 1
        assert len(result.upcoming) == 1
        assert result.upcoming[0].name == "Crit One"

    def test_sorted_by_date_then_name(self, subscriber):
        events = [
            make_event(id="3", name="Zebra GP", start_date="2025-06-21"),
            make_event(id="2", name="Beta Road Race", start_date="2025-06-20"),
            make_event(id="1", name="Alpha Crit", start_date="2025-06-20"),
        ]

        result = filter_events_for_subscriber(events, subscriber, TODAY)

        assert [e.id for e in result.upcoming] == ["1", "2", "3"]

    def test_multiple_disciplines(self):
        subscriber = make_subscriber(disciplines=["Road", "Time Trial"])
        events = [
            make_event(id="road", discipline="Road"),
            make_event(id="tt", discipline="Time Trial"),
            make_event(id="bmx", discipline="BMX"),
        ]

        result = filter_events_for_subscriber(events, subscriber, TODAY)

        assert sorted(e.id for e in result.upcoming) == ["road", "tt"]

    def test_no_events_is_empty_not_none(self, subscriber):
        result = filter_events_for_subscriber([], subscriber, TODAY)

        assert result.new_this_week == []
        assert result.upcoming == []
        assert result.has_content is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
