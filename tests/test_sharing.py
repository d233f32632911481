"""
Tests for the share codec and clipboard fallback.
"""

import base64
import json
from unittest.mock import MagicMock

import pytest

from energiekuchen_store.models import (
    Activity,
    Chart,
    ClipboardError,
    EnergyDataset,
    ShareError,
)
from energiekuchen_store.sharing import (
    Clipboard,
    ShareCodec,
    copy_to_clipboard,
    extract_share_payload,
)


@pytest.fixture
def codec():
    return ShareCodec(base_url="https://example.org/")


def make_dataset() -> EnergyDataset:
    """Helper to create a small dataset."""
    return EnergyDataset(
        version="1.0",
        positive=Chart((Activity(id="p1", name="Sport", value=5),)),
        negative=Chart((Activity(id="n1", name="Stress", value=3),)),
    )


def encode(payload) -> str:
    """Helper to base64 a JSON payload the way the codec does."""
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


class TestGenerate:
    """Test generate_share_data."""

    def test_url_format(self, codec):
        share = codec.generate_share_data(make_dataset())

        assert share.url == f"https://example.org/share/#{share.encoded}"
        assert share.url.startswith("https://example.org/share/#")

    def test_payload_is_projection(self, codec):
        """Test that only version and id/name/value per activity are encoded."""
        share = codec.generate_share_data(make_dataset())
        payload = json.loads(base64.b64decode(share.encoded).decode("utf-8"))

        assert payload == {
            "version": "1.0",
            "positive": {"activities": [{"id": "p1", "name": "Sport", "value": 5}]},
            "negative": {"activities": [{"id": "n1", "name": "Stress", "value": 3}]},
        }

    def test_round_trip(self, codec):
        dataset = make_dataset()
        share = codec.generate_share_data(dataset)
        assert codec.decode_share_data(share.encoded) == dataset

    def test_non_ascii_names(self, codec):
        dataset = EnergyDataset(positive=Chart((Activity(id="p", name="Müßiggang", value=2),)))
        share = codec.generate_share_data(dataset)
        assert codec.decode_share_data(share.encoded).positive.activities[0].name == "Müßiggang"

    def test_too_large(self):
        """Test that an overlong URL is refused."""
        codec = ShareCodec(base_url="https://example.org", max_url_length=80)

        with pytest.raises(ShareError) as exc:
            codec.generate_share_data(make_dataset())

        assert exc.value.code == "PAYLOAD_TOO_LARGE"

    def test_limit_is_inclusive(self, codec):
        share = codec.generate_share_data(make_dataset())
        exact = ShareCodec(base_url="https://example.org", max_url_length=len(share.url))
        assert exact.generate_share_data(make_dataset()).url == share.url


class TestDecode:
    """Test decode_share_data."""

    def test_accepts_full_url(self, codec):
        share = codec.generate_share_data(make_dataset())
        assert codec.decode_share_data(share.url) == make_dataset()

    def test_accepts_url_safe_unpadded(self, codec):
        share = codec.generate_share_data(make_dataset())
        url_safe = share.encoded.replace("+", "-").replace("/", "_").rstrip("=")
        assert codec.decode_share_data(url_safe) == make_dataset()

    def test_version_defaults(self, codec):
        encoded = encode({"positive": {"activities": []}, "negative": {"activities": []}})
        assert codec.decode_share_data(encoded).version == "1.0"

    @pytest.mark.parametrize("encoded", [
        "",
        "not base64!!",
        base64.b64encode(b"not json").decode("ascii"),
        base64.b64encode(b"\xff\xfe").decode("ascii"),
    ])
    def test_undecodable(self, codec, encoded):
        with pytest.raises(ShareError) as exc:
            codec.decode_share_data(encoded)

        assert exc.value.code == "INVALID_SHARE_DATA"

    @pytest.mark.parametrize("payload", [
        [1, 2],
        {"positive": {"activities": []}},
        {"positive": {"activities": []}, "negative": {}},
        {"positive": {"activities": [{"name": "A", "value": 1}]}, "negative": {"activities": []}},
        {"positive": {"activities": [{"id": "a", "value": 1}]}, "negative": {"activities": []}},
        {"positive": {"activities": [{"id": "a", "name": "A", "value": 1.5}]},
         "negative": {"activities": []}},
        {"positive": {"activities": [{"id": "a", "name": "A", "value": 1}]},
         "negative": {"activities": [{"id": "a", "name": "B", "value": 1}]}},
    ])
    def test_structurally_invalid(self, codec, payload):
        """Test that shape problems are rejected and nothing is half-decoded."""
        with pytest.raises(ShareError) as exc:
            codec.decode_share_data(encode(payload))

        assert exc.value.code == "INVALID_SHARE_DATA"

    def test_deeply_nested_payload(self, codec):
        """Test that a short link with deeply nested JSON is a typed error."""
        encoded = base64.b64encode(b"[" * 100000).decode("ascii")

        with pytest.raises(ShareError) as exc:
            codec.decode_share_data(encoded)

        assert exc.value.code == "INVALID_SHARE_DATA"

    def test_levels_not_range_checked(self, codec):
        """Test that decoding checks structure only; level ranges are the caller's job."""
        encoded = encode({
            "positive": {"activities": [{"id": "a", "name": "A", "value": 42}]},
            "negative": {"activities": []},
        })
        assert codec.decode_share_data(encoded).positive.activities[0].value == 42


class TestExtractPayload:
    """Test extract_share_payload."""

    def test_variants(self):
        assert extract_share_payload("abc") == "abc"
        assert extract_share_payload("#abc") == "abc"
        assert extract_share_payload("https://x.de/share/#abc") == "abc"
        assert extract_share_payload("https://x.de/share/abc") == "abc"

    def test_percent_encoding(self):
        assert extract_share_payload("https://x.de/share/#ab%3D%3D") == "ab=="


class TestClipboard:
    """Test the clipboard fallback chain."""

    def test_primary_used(self):
        primary, fallback = MagicMock(), MagicMock()
        Clipboard(primary, fallback).copy("text")

        primary.assert_called_once_with("text")
        fallback.assert_not_called()

    def test_fallback_on_failure(self):
        primary = MagicMock(side_effect=OSError("no clipboard tool"))
        fallback = MagicMock()

        Clipboard(primary, fallback).copy("text")

        fallback.assert_called_once_with("text")

    def test_both_fail(self):
        primary = MagicMock(side_effect=OSError("no clipboard tool"))
        fallback = MagicMock(side_effect=RuntimeError("no display"))

        with pytest.raises(ClipboardError) as exc:
            Clipboard(primary, fallback).copy("text")

        assert exc.value.code == "CLIPBOARD_FAILED"

    def test_copy_to_clipboard_with_given_clipboard(self):
        clipboard = MagicMock()
        copy_to_clipboard("text", clipboard=clipboard)
        clipboard.copy.assert_called_once_with("text")
