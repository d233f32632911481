"""
Sharing codec - encode a dataset into a link and back.

The share payload is a minimal projection (id, name and value per
activity) serialized as JSON and base64-encoded into the URL fragment:

    <base_url>/share/#<base64(JSON)>

The codec never touches live state: it reads a snapshot on export and
builds a fresh dataset on import. Whether that dataset replaces or is
merged into the current one is the caller's decision.
"""

import base64
import binascii
import json
import logging
import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import unquote

from .models import (
    Activity,
    Chart,
    ChartType,
    ClipboardError,
    EnergyDataset,
    ShareError,
)
from .schema import DEFAULT_VERSION, MAX_URL_LENGTH, SHARE_BASE_URL
from .validation import is_integral

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShareData:
    """Result of encoding a dataset for sharing."""
    encoded: str
    url: str


def share_projection(dataset: EnergyDataset) -> Dict[str, Any]:
    """Only what a recipient needs to redraw the charts."""
    return {
        "version": dataset.version,
        "positive": {
            "activities": [
                {"id": a.id, "name": a.name, "value": a.value}
                for a in dataset.positive.activities
            ],
        },
        "negative": {
            "activities": [
                {"id": a.id, "name": a.name, "value": a.value}
                for a in dataset.negative.activities
            ],
        },
    }


def extract_share_payload(url_or_encoded: str) -> str:
    """
    Pull the encoded payload out of a share URL.

    Accepts a full share URL, a "#<payload>" fragment or the bare payload.
    Percent-encoding added by browsers is undone.
    """
    text = url_or_encoded.strip()
    if "#" in text:
        text = text.split("#", 1)[1]
    elif "/share/" in text:
        text = text.split("/share/", 1)[1]
    return unquote(text).strip()


def _invalid(detail: str) -> ShareError:
    return ShareError(f"Invalid share data: {detail}", code="INVALID_SHARE_DATA")


def _decode_chart(data: Dict[str, Any], chart: ChartType, seen_ids: set) -> Chart:
    chart_data = data.get(chart.value)
    if not isinstance(chart_data, dict):
        raise _invalid(f"missing '{chart.value}' chart")
    raw_activities = chart_data.get("activities")
    if not isinstance(raw_activities, list):
        raise _invalid(f"missing activities in '{chart.value}' chart")

    activities: List[Activity] = []
    for raw in raw_activities:
        if not isinstance(raw, dict):
            raise _invalid("activity is not an object")
        activity_id, name, value = raw.get("id"), raw.get("name"), raw.get("value")
        if not isinstance(activity_id, str) or not activity_id:
            raise _invalid("activity without id")
        if activity_id in seen_ids:
            raise _invalid(f"duplicate activity id '{activity_id}'")
        if not isinstance(name, str):
            raise _invalid("activity without name")
        if not is_integral(value):
            raise _invalid("activity without integer value")
        seen_ids.add(activity_id)
        activities.append(Activity(id=activity_id, name=name, value=int(value)))
    return Chart(tuple(activities))


class ShareCodec:
    """
    Builds and parses share links.

    Usage:
        codec = ShareCodec(base_url="https://energiekuchen.de")
        share = codec.generate_share_data(dataset)
        dataset = codec.decode_share_data(share.encoded)
    """

    def __init__(
        self,
        base_url: str = SHARE_BASE_URL,
        max_url_length: int = MAX_URL_LENGTH,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_url_length = max_url_length

    def build_url(self, encoded: str) -> str:
        return f"{self.base_url}/share/#{encoded}"

    def generate_share_data(self, dataset: EnergyDataset) -> ShareData:
        """
        Encode a dataset into a share link.

        Raises:
            ShareError: code PAYLOAD_TOO_LARGE when the URL would exceed
                max_url_length characters
        """
        json_string = json.dumps(
            share_projection(dataset), separators=(",", ":"), ensure_ascii=False
        )
        encoded = base64.b64encode(json_string.encode("utf-8")).decode("ascii")
        url = self.build_url(encoded)

        if len(url) > self.max_url_length:
            raise ShareError(
                f"Data is too large to share ({len(url)} of "
                f"{self.max_url_length} characters)",
                code="PAYLOAD_TOO_LARGE",
            )

        return ShareData(encoded=encoded, url=url)

    def decode_share_data(self, encoded: str) -> EnergyDataset:
        """
        Decode a share payload (or a full share URL) into a new dataset.

        Raises:
            ShareError: code INVALID_SHARE_DATA on any decoding problem;
                nothing is ever partially decoded
        """
        payload = extract_share_payload(encoded)
        if not payload:
            raise _invalid("empty payload")

        # Tolerate URL-safe alphabets and stripped padding
        payload = payload.replace("-", "+").replace("_", "/")
        payload += "=" * (-len(payload) % 4)

        try:
            raw = base64.b64decode(payload, validate=True)
            data = json.loads(raw.decode("utf-8"))
        except (binascii.Error, ValueError, RecursionError) as e:
            logger.warning("Failed to decode share data: %s", e)
            raise _invalid("not a valid encoded payload") from e

        if not isinstance(data, dict):
            raise _invalid("payload is not an object")

        seen_ids: set = set()
        positive = _decode_chart(data, ChartType.POSITIVE, seen_ids)
        negative = _decode_chart(data, ChartType.NEGATIVE, seen_ids)

        version = data.get("version")
        if not isinstance(version, str) or not version:
            version = DEFAULT_VERSION

        return EnergyDataset(version=version, positive=positive, negative=negative)


def _system_clipboard_command() -> Optional[List[str]]:
    if sys.platform == "darwin":
        return ["pbcopy"]
    if sys.platform.startswith("win"):
        return ["clip"]
    if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-copy"):
        return ["wl-copy"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if shutil.which("xsel"):
        return ["xsel", "--clipboard", "--input"]
    return None


def copy_with_system_command(text: str) -> None:
    """Copy via the platform clipboard tool (pbcopy, clip, wl-copy, xclip, xsel)."""
    cmd = _system_clipboard_command()
    if cmd is None:
        raise ClipboardError("No clipboard command available")
    subprocess.run(cmd, input=text, text=True, capture_output=True, check=True)


def copy_with_tk_selection(text: str) -> None:
    """Copy by owning the Tk clipboard selection."""
    import tkinter

    root = tkinter.Tk()
    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(text)
        root.update()
    finally:
        root.destroy()


CopyFunction = Callable[[str], None]


class Clipboard:
    """
    Clipboard access with a fallback.

    The primary mechanism is tried first; if it fails the fallback is
    tried. If both fail a ClipboardError is raised so the caller can tell
    the user.
    """

    def __init__(
        self,
        primary: Optional[CopyFunction] = None,
        fallback: Optional[CopyFunction] = None,
    ):
        self.primary = primary or copy_with_system_command
        self.fallback = fallback or copy_with_tk_selection

    def copy(self, text: str) -> None:
        try:
            self.primary(text)
            return
        except Exception as e:
            logger.warning("Clipboard copy failed (%s); trying fallback", e)

        try:
            self.fallback(text)
        except Exception as e:
            logger.error("Clipboard fallback failed: %s", e)
            raise ClipboardError("Could not copy to clipboard") from e


def copy_to_clipboard(text: str, clipboard: Optional[Clipboard] = None) -> None:
    """Copy text with the default (or given) clipboard."""
    (clipboard or Clipboard()).copy(text)
