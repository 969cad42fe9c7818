"""
Tests for the booking ledger and party streak.
"""
import pytest
from datetime import date

from app.models.booking import Booking, BookingStatus
from app.services.bookings_service import BookingLedger, calculate_party_streak


def past(day: date) -> Booking:
    return Booking(id=day.isoformat(), event_name="Party", date=day, status=BookingStatus.PAST)


class TestPartyStreak:

    def test_three_consecutive_months(self):
        bookings = [past(date(2025, 1, 10)), past(date(2025, 2, 3)), past(date(2025, 3, 28))]
        assert calculate_party_streak(bookings, today=date(2025, 3, 31)) == 3

    def test_gap_stops_the_walk(self):
        bookings = [past(date(2025, 1, 10)), past(date(2025, 3, 5))]
        assert calculate_party_streak(bookings, today=date(2025, 3, 31)) == 1

    def test_no_booking_this_month(self):
        bookings = [past(date(2025, 1, 10)), past(date(2025, 2, 3))]
        assert calculate_party_streak(bookings, today=date(2025, 3, 1)) == 0

    def test_walk_crosses_the_year(self):
        bookings = [past(date(2024, 11, 2)), past(date(2024, 12, 31)), past(date(2025, 1, 1))]
        assert calculate_party_streak(bookings, today=date(2025, 1, 15)) == 3

    def test_several_bookings_in_one_month_count_once(self):
        bookings = [past(date(2025, 3, 1)), past(date(2025, 3, 20))]
        assert calculate_party_streak(bookings, today=date(2025, 3, 31)) == 1

    def test_upcoming_and_undated_are_ignored(self):
        bookings = [
            Booking(id="u", event_name="Soon", date=date(2025, 3, 30), status=BookingStatus.UPCOMING),
            Booking(id="n", event_name="Undated", date=None, status=BookingStatus.PAST),
        ]
        assert calculate_party_streak(bookings, today=date(2025, 3, 31)) == 0

    def test_future_dated_past_booking_counts(self):
        # Streak walks from the current month; a later month alone is not reached
        bookings = [past(date(2025, 3, 31)), past(date(2025, 4, 15))]
        assert calculate_party_streak(bookings, today=date(2025, 3, 1)) == 1

    def test_empty(self):
        assert calculate_party_streak([]) == 0


class TestBookingLedger:

    def test_record_and_filter(self):
        ledger = BookingLedger()
        ledger.record("+919876543210", "Warehouse Rave", venue_name="Club 1", event_date=date(2025, 5, 1))
        ledger.record("+919876543210", "Old Party", status=BookingStatus.PAST)
        ledger.record("+911111111111", "Someone else")

        mine = ledger.list("+919876543210")
        assert [b.event_name for b in mine] == ["Warehouse Rave", "Old Party"]
        assert [b.event_name for b in ledger.list("+919876543210", BookingStatus.PAST)] == ["Old Party"]
        assert ledger.list("+910000000000") == []
