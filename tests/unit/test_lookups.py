"""
test_lookups.py - Unit tests for marker lookups and verdicts

Tests:
- find_unique_marked: absent, duplicate, wrong address, wrong quantity
- datum_as: payload type check
- judge: exceptions and False folded into REJECTED
"""

import logging

import pytest

from fundledger import (
    Address, TxOutput, Value, Verdict, Portfolio,
    PORTFOLIO_ADDRESS,
    NoMatch, NotASingleton, WrongAddress, InvalidMarker, InvalidDatum, StaleEpoch,
    find_unique_marked, datum_as, judge, portfolio_token,
)


def _portfolio_record(qty=1, address=PORTFOLIO_ADDRESS, datum=None):
    return TxOutput(address, Value(0, {portfolio_token(): qty}), datum or Portfolio())


class TestFindUniqueMarked:

    def test_finds_single(self):
        rec = _portfolio_record()
        others = [TxOutput(Address("w"), Value(5))]
        assert find_unique_marked(others + [rec], portfolio_token()) is rec

    def test_absent(self):
        with pytest.raises(NoMatch):
            find_unique_marked([TxOutput(Address("w"))], portfolio_token())

    def test_duplicate(self):
        with pytest.raises(NotASingleton):
            find_unique_marked([_portfolio_record(), _portfolio_record()], portfolio_token())

    def test_wrong_address(self):
        rec = _portfolio_record(address=Address("elsewhere"))
        with pytest.raises(WrongAddress):
            find_unique_marked([rec], portfolio_token(), PORTFOLIO_ADDRESS)

    def test_address_not_checked_when_omitted(self):
        rec = _portfolio_record(address=Address("elsewhere"))
        assert find_unique_marked([rec], portfolio_token()) is rec

    @pytest.mark.parametrize("qty", [2, -1])
    def test_quantity_must_be_one(self, qty):
        with pytest.raises(InvalidMarker):
            find_unique_marked([_portfolio_record(qty=qty)], portfolio_token())


class TestDatumAs:

    def test_matching_type(self):
        p = Portfolio(n_groups=2)
        assert datum_as(_portfolio_record(datum=p), Portfolio) is p

    def test_wrong_type(self):
        rec = TxOutput(PORTFOLIO_ADDRESS, Value(), b"")
        with pytest.raises(InvalidDatum):
            datum_as(rec, Portfolio)


class TestJudge:

    def test_accepted(self):
        assert judge(lambda: True) == (Verdict.ACCEPTED, None)

    def test_false_is_rejected(self):
        def check():
            return False
        verdict, reason = judge(check)
        assert verdict == Verdict.REJECTED
        assert "check" in reason

    def test_fund_error_is_rejected_with_reason(self):
        def check(tick):
            raise StaleEpoch(f"tick {tick}")
        verdict, reason = judge(check, 4)
        assert verdict == Verdict.REJECTED
        assert reason == "StaleEpoch: tick 4"

    def test_programming_errors_propagate(self):
        def check():
            raise KeyError("bug")
        with pytest.raises(KeyError):
            judge(check)

    def test_rejection_logged(self, caplog):
        def check():
            raise NoMatch("nothing")
        with caplog.at_level(logging.INFO, logger="fundledger.core"):
            judge(check)
        assert "check rejected: NoMatch: nothing" in caplog.text

    def test_kwargs_forwarded(self):
        assert judge(lambda a, b=0: a == b, 1, b=1)[0] == Verdict.ACCEPTED
