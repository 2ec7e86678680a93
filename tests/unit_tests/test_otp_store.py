"""Tests for OtpStore generation, one-shot validation and expiry."""

import asyncio

import pytest

from otp_gate.services.otp_store import CODE_LENGTH, OtpRecord, OtpStore
from tests.mocks.models import ADDRESS, OTHER_ADDRESS, TOLERANCE, VALIDITY


class TestGenerate:
    def test_code_is_six_digits(self, store):
        code = store.generate(ADDRESS)
        assert len(code) == CODE_LENGTH
        assert code.isdigit()

    def test_new_record_has_no_send_yet(self, store):
        store.generate(ADDRESS)
        record = store.get(ADDRESS)
        assert record == OtpRecord(code=record.code, last_send_time=None, send_count=0)

    def test_regenerate_keeps_send_bookkeeping(self, store, clock):
        store.generate(ADDRESS)
        sent_at = store.commit_send(ADDRESS)
        clock.advance(90)

        new_code = store.generate(ADDRESS)

        record = store.get(ADDRESS)
        assert record.code == new_code
        assert record.last_send_time == sent_at
        assert record.send_count == 1
        assert len(store) == 1

    def test_digits_cover_full_range(self, store):
        digits = set()
        for i in range(200):
            digits.update(store.generate(f"user{i}@example.com"))
        assert digits == set("0123456789")


class TestCommitSend:
    def test_stamps_time_and_counts(self, store, clock):
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(120)
        store.commit_send(ADDRESS)

        record = store.get(ADDRESS)
        assert record.last_send_time == clock.now
        assert record.send_count == 2

    def test_schedules_expiry_after_validity_window(self, store, scheduler):
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        assert len(scheduler.scheduled) == 1
        assert scheduler.scheduled[0][0] == VALIDITY

    def test_missing_record_is_not_recreated(self, store, scheduler):
        assert store.commit_send(ADDRESS) is None
        assert store.get(ADDRESS) is None
        assert scheduler.scheduled == []


class TestValidate:
    def test_valid_code_succeeds_once(self, store):
        code = store.generate(ADDRESS)
        store.commit_send(ADDRESS)

        assert store.validate(ADDRESS, code) is True
        assert store.validate(ADDRESS, code) is False
        assert store.get(ADDRESS) is None

    def test_wrong_code_leaves_record_intact(self, store):
        code = store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        wrong = "000000" if code != "000000" else "111111"

        assert store.validate(ADDRESS, wrong) is False
        assert store.validate(ADDRESS, code) is True

    @pytest.mark.parametrize("submitted", ["", None])
    def test_empty_code_never_matches(self, store, submitted):
        store.generate(ADDRESS)
        assert store.validate(ADDRESS, submitted) is False
        assert store.get(ADDRESS) is not None

    def test_no_normalisation(self, store):
        code = store.generate(ADDRESS)
        assert store.validate(ADDRESS, f" {code}") is False
        assert store.validate(ADDRESS, code) is True

    def test_unknown_address(self, store):
        code = store.generate(ADDRESS)
        assert store.validate(OTHER_ADDRESS, code) is False


class TestExpiry:
    def test_timer_removes_record(self, store, clock, scheduler):
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(VALIDITY)

        assert scheduler.fire(0) is True
        assert len(store) == 0

    def test_stale_timer_spares_refreshed_record(self, store, clock, scheduler):
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(3600)
        code = store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(VALIDITY - 3600)

        # First send's timer fires, but the record now belongs to the second send
        assert scheduler.fire(0) is False
        assert store.validate(ADDRESS, code) is True

    def test_timer_tolerates_jitter(self, store, clock, scheduler):
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(VALIDITY - TOLERANCE / 2)

        assert scheduler.fire(0) is True

    def test_early_timer_does_nothing(self, store, clock, scheduler):
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(VALIDITY / 2)

        assert scheduler.fire(0) is False
        assert store.get(ADDRESS) is not None

    def test_record_acts_absent_without_timer(self, store, clock):
        code = store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        clock.advance(VALIDITY)

        assert store.validate(ADDRESS, code) is False
        assert len(store) == 0

    def test_uncommitted_record_does_not_expire_lazily(self, store, clock):
        store.generate(ADDRESS)
        clock.advance(VALIDITY * 2)
        assert store.get(ADDRESS) is not None

    @pytest.mark.asyncio
    async def test_real_event_loop_timer(self):
        store = OtpStore(validity_seconds=0.05, expiry_tolerance_seconds=0.01)
        store.generate(ADDRESS)
        store.commit_send(ADDRESS)

        await asyncio.sleep(0.15)

        assert len(store) == 0


class TestRestore:
    def test_puts_previous_code_back(self, store):
        old = store.generate(ADDRESS)
        store.commit_send(ADDRESS)
        store.generate(ADDRESS)

        store.restore(ADDRESS, store.get(ADDRESS).code, old)

        assert store.get(ADDRESS).send_count == 1
        assert store.validate(ADDRESS, old) is True

    def test_drops_never_committed_record(self, store):
        failed = store.generate(ADDRESS)
        store.restore(ADDRESS, failed, None)
        assert store.get(ADDRESS) is None

    def test_leaves_code_issued_by_another_request(self, store):
        failed = store.generate(ADDRESS)
        newer = store.generate(ADDRESS)
        assert newer != failed

        store.restore(ADDRESS, failed, None)

        assert store.get(ADDRESS).code == newer


def test_stores_are_independent():
    first, second = OtpStore(), OtpStore()
    first.generate(ADDRESS)
    assert second.get(ADDRESS) is None
