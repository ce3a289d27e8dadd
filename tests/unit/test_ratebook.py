"""
Unit Tests for Ratebook Loading.

Test Coverage:
- Built-in RATEBOOK_V1 contents
- Loading a regional ratebook from JSON
- RatebookError for missing, malformed and invalid files
- get_ratebook path resolution
"""

import json

import pytest

from mastercontractor.config.errors import ErrorCode, RatebookError
from mastercontractor.data.ratebook import DEFAULT_RATEBOOK, get_ratebook, load_ratebook
from mastercontractor.models.site_context import AccessDifficulty


def _regional_payload(region="Pacific Northwest"):
    data = DEFAULT_RATEBOOK.model_dump(mode="json")
    data["version"] = "RATEBOOK_PNW_1"
    data["region"] = region
    data["scope_dependencies"] = data["scope_dependencies"][:1]
    return data


# =============================================================================
# Built-in Ratebook
# =============================================================================


class TestDefaultRatebook:
    """Tests for the built-in RATEBOOK_V1."""

    def test_identity(self):
        assert DEFAULT_RATEBOOK.version == "RATEBOOK_V1"
        assert DEFAULT_RATEBOOK.region == "US National"

    def test_every_rate_has_provenance(self):
        for rule in DEFAULT_RATEBOOK.scope_dependencies:
            assert rule.default_estimate.source.ref.startswith("RULE:")
        assert DEFAULT_RATEBOOK.logistics.dumpster.source.ref == "RULE:US_AVG_2024_WASTE"

    def test_labor_multipliers(self):
        assert DEFAULT_RATEBOOK.labor_multipliers[AccessDifficulty.HARD] == 1.35

    def test_frozen(self):
        with pytest.raises(Exception):
            DEFAULT_RATEBOOK.region = "Elsewhere"


# =============================================================================
# Loading
# =============================================================================


class TestLoadRatebook:
    """Tests for load_ratebook."""

    def test_loads_regional_file(self, tmp_path):
        path = tmp_path / "pnw.json"
        path.write_text(json.dumps(_regional_payload()), encoding="utf-8")

        ratebook = load_ratebook(path)

        assert ratebook.version == "RATEBOOK_PNW_1"
        assert ratebook.region == "Pacific Northwest"
        assert len(ratebook.scope_dependencies) == 1
        assert ratebook.labor_multipliers[AccessDifficulty.CRANE_REQUIRED] == 1.6

    def test_missing_file(self, tmp_path):
        with pytest.raises(RatebookError) as exc_info:
            load_ratebook(tmp_path / "nope.json")

        assert exc_info.value.code == ErrorCode.RATEBOOK_NOT_FOUND
        assert exc_info.value.path.endswith("nope.json")

    def test_not_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(RatebookError) as exc_info:
            load_ratebook(path)
        assert exc_info.value.code == ErrorCode.RATEBOOK_INVALID

    def test_schema_failure_lists_errors(self, tmp_path):
        data = _regional_payload()
        data["logistics"]["dumpster"]["low"] = 9999
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(RatebookError) as exc_info:
            load_ratebook(path)

        error = exc_info.value
        assert error.code == ErrorCode.RATEBOOK_INVALID
        assert error.details["errors"]
        assert error.to_dict()["details"]["path"] == str(path)


class TestGetRatebook:
    """Tests for get_ratebook."""

    def test_default_without_path(self, monkeypatch):
        from mastercontractor.data import ratebook as ratebook_module

        monkeypatch.setattr(ratebook_module.settings, "ratebook_path", None)
        assert get_ratebook() is DEFAULT_RATEBOOK

    def test_explicit_path_is_cached(self, tmp_path):
        path = tmp_path / "pnw.json"
        path.write_text(json.dumps(_regional_payload()), encoding="utf-8")

        first = get_ratebook(str(path))
        assert first.region == "Pacific Northwest"
        assert get_ratebook(str(path)) is first
