"""Tests for the in-memory verification code registry."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from gera.core.exceptions import InvalidOrExpired
from gera.services.verification import CodePurpose, VerificationCodeRegistry


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codes(clock) -> VerificationCodeRegistry:
    return VerificationCodeRegistry(ttl=timedelta(minutes=10), clock=clock)


def test_issue_returns_six_digit_code(codes):
    code = codes.issue("a@x.com", CodePurpose.SIGNUP)
    assert len(code) == 6
    assert code.isdigit()


def test_consume_once(codes):
    code = codes.issue("a@x.com", CodePurpose.SIGNUP)
    codes.consume("a@x.com", CodePurpose.SIGNUP, code)
    with pytest.raises(InvalidOrExpired):
        codes.consume("a@x.com", CodePurpose.SIGNUP, code)


def test_email_key_is_case_insensitive(codes):
    code = codes.issue("A@X.com", CodePurpose.SIGNUP)
    codes.consume("a@x.COM ", CodePurpose.SIGNUP, code)


def test_wrong_code_keeps_live_code(codes):
    code = codes.issue("a@x.com", CodePurpose.SIGNUP)
    wrong = "000000" if code != "000000" else "111111"
    with pytest.raises(InvalidOrExpired):
        codes.consume("a@x.com", CodePurpose.SIGNUP, wrong)
    codes.consume("a@x.com", CodePurpose.SIGNUP, code)


def test_unknown_key_fails(codes):
    with pytest.raises(InvalidOrExpired):
        codes.consume("nobody@x.com", CodePurpose.SIGNUP, "123456")


def test_reissue_overwrites_previous_code(codes):
    first = codes.issue("a@x.com", CodePurpose.SIGNUP)
    second = codes.issue("a@x.com", CodePurpose.SIGNUP)
    if first != second:
        with pytest.raises(InvalidOrExpired):
            codes.consume("a@x.com", CodePurpose.SIGNUP, first)
    codes.consume("a@x.com", CodePurpose.SIGNUP, second)


def test_purposes_are_disjoint(codes):
    code = codes.issue("a@x.com", CodePurpose.SIGNUP)
    with pytest.raises(InvalidOrExpired):
        codes.consume("a@x.com", CodePurpose.PASSWORD_RESET, code)
    # The signup code is still usable for its own purpose
    codes.consume("a@x.com", CodePurpose.SIGNUP, code)


def test_expired_code_fails(codes, clock):
    code = codes.issue("a@x.com", CodePurpose.PASSWORD_RESET)
    clock.advance(minutes=10, seconds=1)
    with pytest.raises(InvalidOrExpired):
        codes.consume("a@x.com", CodePurpose.PASSWORD_RESET, code)


def test_code_valid_until_ttl(codes, clock):
    code = codes.issue("a@x.com", CodePurpose.SIGNUP)
    clock.advance(minutes=10)
    codes.consume("a@x.com", CodePurpose.SIGNUP, code)


def test_peek_expiry(codes, clock):
    codes.issue("a@x.com", CodePurpose.SIGNUP)
    assert codes.peek_expiry("a@x.com", CodePurpose.SIGNUP) == clock.now + timedelta(minutes=10)
    assert codes.peek_expiry("a@x.com", CodePurpose.PASSWORD_RESET) is None


def test_parallel_consume_succeeds_exactly_once():
    codes = VerificationCodeRegistry(ttl=timedelta(minutes=10))
    code = codes.issue("race@x.com", CodePurpose.SIGNUP)

    def attempt(_):
        try:
            codes.consume("race@x.com", CodePurpose.SIGNUP, code)
            return True
        except InvalidOrExpired:
            return False

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(attempt, range(64)))

    assert results.count(True) == 1
