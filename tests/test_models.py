"""
Tests for the data model.
"""

import dataclasses

import pytest

from energiekuchen_store.models import (
    Activity,
    Chart,
    ChartType,
    EnergyDataset,
    InvalidChartType,
    ValidationError,
)


def make_activity(id: str = "a1", name: str = "Sport", value: int = 3) -> Activity:
    """Helper to create test activities."""
    return Activity(id=id, name=name, value=value)


class TestActivity:
    """Test the Activity record."""

    def test_requires_id(self):
        """Test that an empty id is rejected."""
        with pytest.raises(ValidationError) as exc:
            Activity(id="", name="Sport", value=3)

        assert exc.value.code == "MISSING_ID"

    def test_is_frozen(self):
        """Test that activities cannot be changed in place."""
        activity = make_activity()
        with pytest.raises(dataclasses.FrozenInstanceError):
            activity.name = "Other"

    def test_copy_with_changes(self):
        """Test copy() returns a changed copy and keeps the original."""
        activity = make_activity()
        changed = activity.copy(value=5)

        assert changed.value == 5
        assert changed.id == activity.id
        assert activity.value == 3

    def test_dict_round_trip(self):
        """Test to_dict/from_dict."""
        activity = make_activity()
        assert Activity.from_dict(activity.to_dict()) == activity


class TestChart:
    """Test the Chart sequence."""

    def test_list_becomes_tuple(self):
        """Test that lists passed in are stored as tuples."""
        chart = Chart([make_activity("a"), make_activity("b", name="Read")])
        assert isinstance(chart.activities, tuple)
        assert len(chart) == 2

    def test_get_by_id(self):
        """Test looking up an activity by id."""
        chart = Chart((make_activity("a"), make_activity("b", name="Read")))
        assert chart.get("b").name == "Read"
        assert chart.get("missing") is None

    def test_ids(self):
        chart = Chart((make_activity("a"), make_activity("b", name="Read")))
        assert chart.ids() == {"a", "b"}


class TestEnergyDataset:
    """Test the dataset aggregate."""

    def test_empty(self):
        """Test empty dataset defaults."""
        dataset = EnergyDataset.empty()
        assert dataset.version == "1.0"
        assert dataset.is_empty()

    def test_with_chart_returns_new_dataset(self):
        """Test that with_chart leaves the original untouched."""
        dataset = EnergyDataset.empty()
        updated = dataset.with_chart(ChartType.POSITIVE, Chart((make_activity(),)))

        assert len(updated.positive) == 1
        assert len(dataset.positive) == 0
        assert updated.negative is dataset.negative

    def test_all_ids(self):
        dataset = EnergyDataset(
            positive=Chart((make_activity("a"),)),
            negative=Chart((make_activity("b", name="Stress"),)),
        )
        assert dataset.all_ids() == {"a", "b"}

    def test_dict_round_trip(self):
        """Test to_dict/from_dict keeps order and version."""
        dataset = EnergyDataset(
            version="1.0",
            positive=Chart((make_activity("a"), make_activity("b", name="Read"))),
            negative=Chart((make_activity("c", name="Stress"),)),
        )
        data = dataset.to_dict()

        assert [a["id"] for a in data["positive"]["activities"]] == ["a", "b"]
        assert EnergyDataset.from_dict(data) == dataset

    def test_from_dict_defaults_version(self):
        """Test that a missing version falls back to the default."""
        dataset = EnergyDataset.from_dict({"positive": {"activities": []}})
        assert dataset.version == "1.0"
        assert len(dataset.negative) == 0


class TestChartType:
    """Test chart name parsing."""

    def test_parse(self):
        assert ChartType.parse("positive") is ChartType.POSITIVE
        assert ChartType.parse(ChartType.NEGATIVE) is ChartType.NEGATIVE
        assert ChartType.parse("neutral") is None
        assert ChartType.parse(None) is None

    def test_require_rejects_unknown(self):
        """Test that require() raises for unknown charts."""
        with pytest.raises(InvalidChartType) as exc:
            ChartType.require("current")

        assert exc.value.code == "INVALID_CHART"
        assert "Unknown chart" in str(exc.value)
