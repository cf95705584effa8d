"""Tests for access token encoding and decoding."""

import base64
import json

import pytest

from src.access_links import codec


NOW_MS = 1_748_779_200_000  # 2025-06-01T12:00:00Z
DAY_MS = 24 * 60 * 60 * 1000


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode()).decode().rstrip("=")


class TestEncode:
    """Tests for the current token format."""

    def test_roundtrip(self) -> None:
        token = codec.encode("MOH202512345", timestamp_ms=NOW_MS)
        assert codec.decode(token) == "MOH202512345"

    def test_token_is_url_safe_without_padding(self) -> None:
        token = codec.encode("MOH202512345")
        assert "=" not in token
        assert "+" not in token
        assert "/" not in token

    def test_two_tokens_for_same_identity_differ(self) -> None:
        first = codec.encode("MOH202512345", timestamp_ms=NOW_MS)
        second = codec.encode("MOH202512345", timestamp_ms=NOW_MS)
        assert first != second

    def test_payload_layout(self) -> None:
        token = codec.encode("MOH202512345", timestamp_ms=NOW_MS)
        padded = token + "=" * (-len(token) % 4)
        text = base64.urlsafe_b64decode(padded).decode()
        registration_number, timestamp, nonce = text.split("-")
        assert registration_number == "MOH202512345"
        assert timestamp == str(NOW_MS)
        assert len(nonce) == 32

    def test_identity_containing_delimiter(self) -> None:
        token = codec.encode("REG-2025-001", timestamp_ms=NOW_MS)
        assert codec.decode(token) == "REG-2025-001"

    def test_empty_identity_rejected(self) -> None:
        with pytest.raises(ValueError):
            codec.encode("")

    def test_current_format_ignores_age(self) -> None:
        token = codec.encode("MOH202512345", timestamp_ms=NOW_MS - 365 * DAY_MS)
        assert codec.decode(token, now_ms=NOW_MS) == "MOH202512345"


class TestLegacyFormat:
    """Tests for the JSON token format issued by older releases."""

    def test_fresh_legacy_token_decodes(self) -> None:
        token = codec.encode_legacy("MOH202512345", timestamp_ms=NOW_MS - DAY_MS)
        assert codec.decode(token, now_ms=NOW_MS) == "MOH202512345"

    def test_legacy_token_older_than_cutoff_rejected(self) -> None:
        token = codec.encode_legacy("MOH202512345", timestamp_ms=NOW_MS - 31 * DAY_MS)
        assert codec.decode(token, now_ms=NOW_MS) is None

    def test_legacy_token_exactly_at_cutoff_accepted(self) -> None:
        token = codec.encode_legacy("MOH202512345", timestamp_ms=NOW_MS - 30 * DAY_MS)
        assert codec.decode(token, now_ms=NOW_MS) == "MOH202512345"

    def test_custom_max_age(self) -> None:
        token = codec.encode_legacy("MOH202512345", timestamp_ms=NOW_MS - 3 * DAY_MS)
        assert codec.decode(token, max_age_days=2, now_ms=NOW_MS) is None

    def test_padded_legacy_token_decodes(self) -> None:
        payload = json.dumps({"regNum": "MOH202512345", "timestamp": NOW_MS})
        token = base64.urlsafe_b64encode(payload.encode()).decode()
        assert codec.decode(token, now_ms=NOW_MS) == "MOH202512345"

    def test_decode_legacy_rejects_current_format(self) -> None:
        token = codec.encode("MOH202512345", timestamp_ms=NOW_MS)
        assert codec.decode_legacy(token, now_ms=NOW_MS) is None

    def test_decode_legacy_accepts_legacy_format(self) -> None:
        token = codec.encode_legacy("MOH202512345", timestamp_ms=NOW_MS)
        assert codec.decode_legacy(token, now_ms=NOW_MS) == "MOH202512345"

    @pytest.mark.parametrize(
        "payload",
        [
            '{"timestamp": 1748779200000}',
            '{"regNum": "", "timestamp": 1748779200000}',
            '{"regNum": "MOH202512345"}',
            '{"regNum": "MOH202512345", "timestamp": "soon"}',
            '{"regNum": "MOH202512345", "timestamp": true}',
            '{"regNum": 42, "timestamp": 1748779200000}',
            '{"regNum": "MOH202512345", "timestamp": NaN}',
            '{"regNum": "MOH202512345", "timestamp": Infinity}',
            '{"regNum": "MOH202512345", "timestamp": -Infinity}',
            '{"regNum": "MOH202512345", "timestamp": 1e999}',
            "{not json",
        ],
    )
    def test_malformed_legacy_payloads(self, payload: str) -> None:
        assert codec.decode(_b64(payload), now_ms=NOW_MS) is None


class TestDecodeMalformed:
    """decode never raises on garbage input."""

    @pytest.mark.parametrize(
        "token",
        [
            "",
            "!!!not-base64!!!",
            "not-a-real-token",
            "a",
            _b64("no delimiter here"),
            _b64("-1748779200000-abc"),
            _b64("MOH202512345-notanumber-abc"),
            base64.urlsafe_b64encode(b"\xff\xfe\xfd").decode(),
        ],
    )
    def test_garbage_yields_none(self, token: str) -> None:
        assert codec.decode(token) is None

    def test_non_string_yields_none(self) -> None:
        assert codec.decode(None) is None  # type: ignore[arg-type]
