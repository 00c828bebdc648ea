"""
Tests for X-VERIFY checksum signing.

Tests cover:
- Checksum format and known values
- Determinism
- Verification of request and callback checksums
- Tampered payloads and checksums
"""

import pytest

from payments.adapters import ChecksumSigner, PhonePeConfig, SignedRequest
from payments.adapters.tests.conftest import MERCHANT_ID, SALT_KEY


ENCODED = "eyJhIjoxfQ=="  # base64 of {"a":1}


@pytest.fixture
def signer(phonepe_config):
    return ChecksumSigner(phonepe_config)


class TestSign:
    """Tests for ChecksumSigner.sign."""

    def test_known_request_checksum(self, signer):
        """Should hash payload + endpoint + salt key and append the index."""
        assert signer.sign(ENCODED, "/pg/v1/pay") == (
            "f4ab9a7e787f9f269ba7785ac3161dbab890bf73adb4d31605caef8b50662351###1"
        )

    def test_known_status_checksum(self, signer):
        """Status checks sign the empty payload with the status path."""
        endpoint = f"/pg/v1/status/{MERCHANT_ID}/TX1"

        assert signer.sign("", endpoint) == (
            "c43fb1c108aa54ce51fc6f8ac533cfa97e220bc89263bd0c449ee249bbcf53f6###1"
        )

    def test_format(self, signer):
        digest, separator, index = signer.sign(ENCODED, "/pg/v1/pay").partition("###")

        assert separator == "###"
        assert len(digest) == 64
        assert all(c in "0123456789abcdef" for c in digest)
        assert index == "1"

    def test_deterministic(self, phonepe_config):
        """Identical inputs and configuration give identical checksums."""
        first = ChecksumSigner(phonepe_config).sign(ENCODED, "/pg/v1/pay")
        second = ChecksumSigner(phonepe_config).sign(ENCODED, "/pg/v1/pay")

        assert first == second

    def test_bytes_and_text_payloads_match(self, signer):
        assert signer.sign(ENCODED.encode(), "/pg/v1/pay") == signer.sign(ENCODED, "/pg/v1/pay")

    def test_salt_index_is_appended(self):
        signer = ChecksumSigner(
            PhonePeConfig(merchant_id=MERCHANT_ID, salt_key=SALT_KEY, salt_index="2")
        )

        assert signer.sign(ENCODED, "/pg/v1/pay").endswith("###2")

    def test_different_salt_changes_checksum(self, signer):
        other = ChecksumSigner(PhonePeConfig(merchant_id=MERCHANT_ID, salt_key="other-salt"))

        assert other.sign(ENCODED, "/pg/v1/pay") != signer.sign(ENCODED, "/pg/v1/pay")

    def test_sign_request_bundles_parts(self, signer):
        signed = signer.sign_request(ENCODED, "/pg/v1/pay")

        assert signed == SignedRequest(
            payload=ENCODED,
            endpoint="/pg/v1/pay",
            checksum=signer.sign(ENCODED, "/pg/v1/pay"),
        )


class TestVerify:
    """Tests for ChecksumSigner.verify."""

    def test_callback_checksum(self, signer):
        """Callbacks are signed without an endpoint."""
        checksum = "c67e6b75fa35e64d505b1cc87695367c517df2de485c0cd5c34cafbeabe3d355###1"

        assert signer.verify(ENCODED, checksum) is True

    def test_verifies_own_request_checksum(self, signer):
        checksum = signer.sign(ENCODED, "/pg/v1/pay")

        assert signer.verify(ENCODED, checksum, endpoint="/pg/v1/pay") is True

    def test_request_checksum_does_not_verify_without_endpoint(self, signer):
        checksum = signer.sign(ENCODED, "/pg/v1/pay")

        assert signer.verify(ENCODED, checksum) is False

    def test_altered_payload_fails(self, signer):
        checksum = signer.sign(ENCODED, "")
        tampered = "f" + ENCODED[1:]

        assert signer.verify(tampered, checksum) is False

    def test_altered_checksum_fails(self, signer):
        checksum = signer.sign(ENCODED, "")
        tampered = ("0" if checksum[0] != "0" else "1") + checksum[1:]

        assert signer.verify(ENCODED, tampered) is False

    def test_wrong_salt_index_fails(self, signer):
        digest = signer.sign(ENCODED, "").split("###")[0]

        assert signer.verify(ENCODED, f"{digest}###2") is False
