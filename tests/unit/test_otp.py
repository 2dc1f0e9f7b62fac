"""
Unit tests for the OTP lifecycle.

Tests issuing, replacing, validating and expiring email verification codes.
"""

import pytest

from clubhub.auth import OTPState
from clubhub.auth.otp import generate_code
from clubhub.errors import AlreadyVerifiedError, InvalidOrExpiredOTPError, NotFoundError


class TestGenerateCode:
    """Tests for code generation."""

    @pytest.mark.unit
    def test_fixed_width_digits(self):
        for _ in range(200):
            code = generate_code(6)
            assert len(code) == 6
            assert code.isdigit()

    @pytest.mark.unit
    def test_custom_length(self):
        assert len(generate_code(8)) == 8


class TestOTPManager:
    """Tests for OTPManager class."""

    @pytest.mark.unit
    def test_initial_state(self, otp_manager, sample_account):
        assert otp_manager.state(sample_account.user_id) == OTPState.UNVERIFIED_NO_CODE
        assert otp_manager.state("missing") is None

    @pytest.mark.unit
    def test_issue_sets_pending_code(self, otp_manager, account_store, sample_account, clock):
        code = otp_manager.issue(sample_account.user_id)

        account = account_store.get_by_id(sample_account.user_id)
        assert account.otp_code == code
        assert (account.otp_expiry - clock.now).total_seconds() == 600
        assert otp_manager.state(sample_account.user_id) == OTPState.CODE_PENDING

    @pytest.mark.unit
    def test_validate_verifies_and_clears(self, otp_manager, account_store, sample_account):
        code = otp_manager.issue(sample_account.user_id)

        account = otp_manager.validate(sample_account.user_id, code)

        assert account.is_email_verified is True
        assert account.otp_code is None
        assert account.otp_expires_at is None
        assert otp_manager.state(sample_account.user_id) == OTPState.VERIFIED

    @pytest.mark.unit
    def test_wrong_code(self, otp_manager, account_store, sample_account):
        code = otp_manager.issue(sample_account.user_id)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(InvalidOrExpiredOTPError):
            otp_manager.validate(sample_account.user_id, wrong)

        # failure leaves the pending code usable
        account = account_store.get_by_id(sample_account.user_id)
        assert account.is_email_verified is False
        assert account.otp_code == code

    @pytest.mark.unit
    def test_validate_without_code(self, otp_manager, sample_account):
        with pytest.raises(InvalidOrExpiredOTPError):
            otp_manager.validate(sample_account.user_id, "123456")

    @pytest.mark.unit
    def test_non_string_candidate(self, otp_manager, sample_account):
        otp_manager.issue(sample_account.user_id)

        with pytest.raises(InvalidOrExpiredOTPError):
            otp_manager.validate(sample_account.user_id, None)

    @pytest.mark.unit
    def test_second_issue_invalidates_first(self, otp_manager, sample_account):
        first = otp_manager.issue(sample_account.user_id)
        second = otp_manager.issue(sample_account.user_id)
        while second == first:
            second = otp_manager.issue(sample_account.user_id)

        with pytest.raises(InvalidOrExpiredOTPError):
            otp_manager.validate(sample_account.user_id, first)

        assert otp_manager.validate(sample_account.user_id, second).is_email_verified is True

    @pytest.mark.unit
    def test_valid_one_second_before_expiry(self, otp_manager, sample_account, clock):
        code = otp_manager.issue(sample_account.user_id)
        clock.advance(599)

        assert otp_manager.validate(sample_account.user_id, code).is_email_verified is True

    @pytest.mark.unit
    def test_invalid_exactly_at_expiry(self, otp_manager, account_store, sample_account, clock):
        code = otp_manager.issue(sample_account.user_id)
        clock.advance(600)

        with pytest.raises(InvalidOrExpiredOTPError):
            otp_manager.validate(sample_account.user_id, code)
        assert account_store.get_by_id(sample_account.user_id).is_email_verified is False

    @pytest.mark.unit
    def test_reissue_after_expiry(self, otp_manager, sample_account, clock):
        otp_manager.issue(sample_account.user_id)
        clock.advance(3600)

        code = otp_manager.issue(sample_account.user_id)

        assert otp_manager.validate(sample_account.user_id, code).is_email_verified is True

    @pytest.mark.unit
    def test_issue_for_verified_account(self, otp_manager, sample_account):
        otp_manager.validate(sample_account.user_id, otp_manager.issue(sample_account.user_id))

        with pytest.raises(AlreadyVerifiedError):
            otp_manager.issue(sample_account.user_id)

    @pytest.mark.unit
    def test_validate_for_verified_account(self, otp_manager, sample_account):
        code = otp_manager.issue(sample_account.user_id)
        otp_manager.validate(sample_account.user_id, code)

        with pytest.raises(AlreadyVerifiedError):
            otp_manager.validate(sample_account.user_id, code)

    @pytest.mark.unit
    def test_unknown_account(self, otp_manager):
        with pytest.raises(NotFoundError):
            otp_manager.issue("missing")

    @pytest.mark.unit
    def test_revoked_account_verifies_again(self, otp_manager, account_store, sample_account):
        otp_manager.validate(sample_account.user_id, otp_manager.issue(sample_account.user_id))
        account_store.revoke_verification(sample_account.user_id)

        assert otp_manager.state(sample_account.user_id) == OTPState.UNVERIFIED_NO_CODE
        code = otp_manager.issue(sample_account.user_id)
        assert otp_manager.validate(sample_account.user_id, code).is_email_verified is True
