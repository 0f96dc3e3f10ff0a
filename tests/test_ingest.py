# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""Tests for probe ingestion and loading."""

import json
import logging
from datetime import datetime, timezone

import pytest

from colorcompare.errors import ColorCompareError, IngestionError
from colorcompare.measure.ingest import (
    IngestConfig,
    infer_kernel,
    ingest_probe,
    load_probe,
)

NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _bare_pixels(n, value=0.5):
    """Pixels with colors only: no ids, no coordinates."""
    return [{"rgba": [value, value, value, 1.0]} for _ in range(n)]


def _record(**fields):
    data = {"pixels": [{"id": "a", "x": 0.1, "y": 0.2, "rgba": [0.1, 0.2, 0.3, 1.0]}]}
    data.update(fields)
    return data


class TestMetadata:

    def test_defaults_for_missing_fields(self):
        probe = ingest_probe({"pixels": []}, now=NOW)
        assert probe.name == "Unknown Probe"
        assert probe.source_label == "Unknown Host"
        assert probe.bit_depth == "Unknown"
        assert probe.color_space == "Unknown"
        assert probe.frame_index == 0
        assert probe.timestamp == NOW.isoformat()
        assert probe.pixels == ()

    def test_empty_record(self):
        probe = ingest_probe({}, now=NOW)
        assert probe.sample_count == 0
        assert probe.kernel is None

    def test_config_defaults(self):
        cfg = IngestConfig(probe_name="Probe", source_label="Nuke")
        probe = ingest_probe({}, cfg, now=NOW)
        assert probe.name == "Probe"
        assert probe.source_label == "Nuke"

    @pytest.mark.parametrize("key", ["probe_name", "plugin", "name"])
    def test_name_aliases(self, key):
        assert ingest_probe({key: "P"}, now=NOW).name == "P"

    @pytest.mark.parametrize("key", ["software", "host", "source"])
    def test_source_aliases(self, key):
        assert ingest_probe({key: "Resolve"}, now=NOW).source_label == "Resolve"

    def test_alias_precedence(self):
        probe = ingest_probe({"plugin": "second", "probe_name": "first"}, now=NOW)
        assert probe.name == "first"

    def test_camel_case_aliases(self):
        probe = ingest_probe({"bitDepth": "16f", "colorSpace": "ACEScg"}, now=NOW)
        assert probe.bit_depth == "16f"
        assert probe.color_space == "ACEScg"

    def test_frame_aliases(self):
        assert ingest_probe({"frame": 1001}, now=NOW).frame_index == 1001
        assert ingest_probe({"frame_index": "12"}, now=NOW).frame_index == 12

    def test_frame_float_string(self):
        assert ingest_probe({"frame": "1001.0"}, now=NOW).frame_index == 1001

    def test_unparseable_frame_defaults_to_zero(self, caplog):
        with caplog.at_level(logging.WARNING, logger="colorcompare"):
            probe = ingest_probe({"frame": "A001"}, now=NOW)
        assert probe.frame_index == 0
        assert "A001" in caplog.text

    def test_timestamp_kept_verbatim(self):
        probe = ingest_probe({"timestamp": "2024-05-01T10:00:00Z"}, now=NOW)
        assert probe.timestamp == "2024-05-01T10:00:00Z"

    def test_unix_time_converted(self):
        probe = ingest_probe({"time": 0}, now=NOW)
        assert probe.timestamp == "1970-01-01T00:00:00+00:00"

    def test_unix_time_string(self):
        probe = ingest_probe({"time": "60"}, now=NOW)
        assert probe.timestamp == "1970-01-01T00:01:00+00:00"

    def test_out_of_range_time_uses_now(self):
        probe = ingest_probe({"time": 1e20}, now=NOW)
        assert probe.timestamp == NOW.isoformat()

    def test_unknown_keys_ignored(self):
        probe = ingest_probe(_record(extra={"nested": True}), now=NOW)
        assert probe.sample_count == 1

    def test_deterministic(self):
        raw = {"pixels": _bare_pixels(9)}
        assert ingest_probe(raw, now=NOW) == ingest_probe(raw, now=NOW)


class TestKernel:

    @pytest.mark.parametrize("n, expected", [(9, (3, 3)), (1, (1, 1)), (25, (5, 5)), (7, (7, 1)), (12, (12, 1))])
    def test_infer_kernel(self, n, expected):
        assert infer_kernel(n) == expected

    def test_inferred_when_coordinates_missing(self):
        probe = ingest_probe({"pixels": _bare_pixels(9)}, now=NOW)
        assert probe.kernel == (3, 3)
        assert probe.synthesized_coordinates

    def test_not_inferred_when_coordinates_present(self):
        probe = ingest_probe(_record(), now=NOW)
        assert probe.kernel is None
        assert not probe.synthesized_coordinates

    @pytest.mark.parametrize("key", ["kernel size", "kernel_size", "kernelSize"])
    def test_declared_kernel(self, key):
        probe = ingest_probe({key: "3x2", "pixels": _bare_pixels(6)}, now=NOW)
        assert probe.kernel == (3, 2)

    def test_kernel_width_height(self):
        probe = ingest_probe(
            {"kernel_width": 2, "kernel_height": 2, "pixels": _bare_pixels(4)}, now=NOW
        )
        assert probe.kernel == (2, 2)


class TestCoordinateSynthesis:

    def test_square_layout(self):
        probe = ingest_probe({"pixels": _bare_pixels(9)}, now=NOW)
        center = probe.pixels[4]
        assert center.x == pytest.approx(0.5)
        assert center.y == pytest.approx(0.5)
        corner = probe.pixels[0]
        assert corner.x == pytest.approx(0.5 - 1.0 / 1920)
        assert corner.y == pytest.approx(0.5 - 1.0 / 1080)
        last = probe.pixels[8]
        assert last.x == pytest.approx(0.5 + 1.0 / 1920)
        assert last.y == pytest.approx(0.5 + 1.0 / 1080)

    def test_row_layout(self):
        probe = ingest_probe({"pixels": _bare_pixels(7)}, now=NOW)
        assert probe.kernel == (7, 1)
        for idx, p in enumerate(probe.pixels):
            assert p.x == pytest.approx(0.5 + (idx - 3) / 1920)
            assert p.y == pytest.approx(0.5)

    def test_position_and_image_size(self):
        raw = {
            "position": {"x": 0.25, "y": 0.75},
            "image_size": {"width": 100, "height": 50},
            "pixels": _bare_pixels(9),
        }
        probe = ingest_probe(raw, now=NOW)
        assert probe.pixels[4].x == pytest.approx(0.25)
        assert probe.pixels[4].y == pytest.approx(0.75)
        assert probe.pixels[5].x == pytest.approx(0.25 + 0.01)
        assert probe.pixels[7].y == pytest.approx(0.75 + 0.02)

    def test_image_size_string(self):
        raw = {"imagesize": "200x100", "pixels": _bare_pixels(9)}
        probe = ingest_probe(raw, now=NOW)
        assert probe.pixels[5].x == pytest.approx(0.5 + 1.0 / 200)

    def test_supplied_coordinates_kept(self):
        probe = ingest_probe(_record(), now=NOW)
        p = probe.pixels[0]
        assert (p.x, p.y) == (0.1, 0.2)
        assert not p.position_synthesized

    def test_synthesized_flag(self):
        probe = ingest_probe({"pixels": _bare_pixels(4)}, now=NOW)
        assert all(p.position_synthesized for p in probe.pixels)


class TestIdentifiers:

    def test_supplied_id_kept(self):
        probe = ingest_probe(_record(), now=NOW)
        assert probe.pixels[0].identifier == "a"
        assert not probe.pixels[0].identifier_synthesized

    def test_numeric_id_stringified(self):
        probe = ingest_probe({"pixels": [{"id": 7, "x": 0, "y": 0, "rgba": [0, 0, 0, 1]}]}, now=NOW)
        assert probe.pixels[0].identifier == "7"

    def test_kernel_ids(self):
        probe = ingest_probe({"pixels": _bare_pixels(9)}, now=NOW)
        assert probe.pixels[0].identifier == "k0_r0_c0"
        assert probe.pixels[4].identifier == "k4_r1_c1"
        assert probe.pixels[5].identifier == "k5_r1_c2"
        assert all(p.identifier_synthesized for p in probe.pixels)

    def test_positional_ids_when_coordinates_supplied(self):
        pixels = [{"x": 0.1 * i, "y": 0.0, "rgba": [0, 0, 0, 1]} for i in range(3)]
        probe = ingest_probe({"pixels": pixels}, now=NOW)
        assert [p.identifier for p in probe.pixels] == ["pt_0", "pt_1", "pt_2"]


class TestValueScale:

    def test_eight_bit_tag_rescales(self):
        raw = {"bit_depth": "8u", "pixels": [{"x": 0, "y": 0, "r": 128, "g": 0, "b": 255}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.r == pytest.approx(128 / 255)
        assert rgba.g == 0.0
        assert rgba.b == pytest.approx(1.0)
        # Missing alpha in 8-bit data means opaque
        assert rgba.a == pytest.approx(1.0)

    def test_eight_bit_tag_case_insensitive(self):
        raw = {"bitDepth": "8U", "pixels": [{"x": 0, "y": 0, "rgba": [1, 1, 1, 255]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.r == pytest.approx(1 / 255)
        assert rgba.a == pytest.approx(1.0)

    def test_values_above_one_rescale_all_pixels(self):
        raw = {"pixels": [
            {"x": 0, "y": 0, "rgba": [0.5, 0.5, 0.5, 1.0]},
            {"x": 1, "y": 0, "rgba": [255, 0, 0, 1.0]},
        ]}
        probe = ingest_probe(raw, now=NOW)
        assert probe.pixels[0].rgba.r == pytest.approx(0.5 / 255)
        assert probe.pixels[1].rgba.r == pytest.approx(1.0)

    def test_float_values_untouched(self):
        raw = {"bit_depth": "32f", "pixels": [{"x": 0, "y": 0, "rgba": [0.25, 0.5, 0.75]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.as_tuple() == (0.25, 0.5, 0.75, 1.0)

    def test_alpha_above_one_divided(self):
        raw = {"pixels": [{"x": 0, "y": 0, "rgba": [0.2, 0.2, 0.2, 128]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.r == pytest.approx(0.2)
        assert rgba.a == pytest.approx(128 / 255)

    def test_channel_keys(self):
        raw = {"pixels": [{"x": 0, "y": 0, "r": 0.1, "g": 0.2, "b": 0.3, "a": 0.4}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.as_tuple() == (0.1, 0.2, 0.3, 0.4)

    def test_missing_channels_default_to_zero(self):
        raw = {"pixels": [{"x": 0, "y": 0, "r": 0.6}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.as_tuple() == (0.6, 0.0, 0.0, 1.0)

    def test_negative_values_clamped(self):
        raw = {"pixels": [{"x": 0, "y": 0, "rgba": [-0.1, 0.5, 0.5, 1.0]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.r == 0.0

    def test_all_channels_in_unit_range(self):
        raw = {"pixels": [{"x": 0, "y": 0, "rgba": [300, 12, 0, 1]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert all(0.0 <= v <= 1.0 for v in rgba.as_tuple())


class TestLooseValues:

    def test_numeric_string_channels(self):
        raw = {"bit_depth": "8u", "pixels": [{"x": 0, "y": 0, "r": "128", "g": 0, "b": " 255 "}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.r == pytest.approx(128 / 255)
        assert rgba.b == pytest.approx(1.0)

    def test_numeric_string_rgba_triggers_rescale(self):
        raw = {"pixels": [{"x": 0, "y": 0, "rgba": ["255", "0", "0", "1"]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.as_tuple() == pytest.approx((1.0, 0.0, 0.0, 1.0))

    def test_numeric_string_coordinates(self):
        raw = {"pixels": [{"x": "0.5", "y": "0.25", "rgba": [0.1, 0.1, 0.1]}]}
        p = ingest_probe(raw, now=NOW).pixels[0]
        assert (p.x, p.y) == (0.5, 0.25)
        assert not p.position_synthesized

    @pytest.mark.parametrize("bad", ["red", True, None, float("nan"), float("inf"), [1]])
    def test_unusable_channel_defaults_to_zero(self, bad):
        raw = {"pixels": [{"x": 0, "y": 0, "rgba": [bad, 0.5, 0.5, 1.0]}]}
        rgba = ingest_probe(raw, now=NOW).pixels[0].rgba
        assert rgba.as_tuple() == (0.0, 0.5, 0.5, 1.0)

    def test_unusable_channel_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="colorcompare"):
            ingest_probe({"pixels": [{"x": 0, "y": 0, "r": "red"}]}, now=NOW)
        assert "pixel 0 r" in caplog.text

    def test_unusable_alpha_means_opaque(self):
        raw = {"pixels": [{"x": 0, "y": 0, "rgba": [0.2, 0.2, 0.2, "half"]}]}
        assert ingest_probe(raw, now=NOW).pixels[0].rgba.a == 1.0

    def test_unusable_coordinate_synthesized(self, caplog):
        raw = {"pixels": [
            {"id": "a", "x": 0.1, "y": 0.2, "rgba": [0.5, 0.5, 0.5]},
            {"id": "b", "x": "left", "y": 0.2, "rgba": [0.5, 0.5, 0.5]},
        ]}
        with caplog.at_level(logging.WARNING, logger="colorcompare"):
            probe = ingest_probe(raw, now=NOW)
        assert probe.kernel == (2, 1)
        first, second = probe.pixels
        assert (first.x, first.y) == (0.1, 0.2)
        assert second.position_synthesized
        assert second.x == pytest.approx(0.5 + 0.5 / 1920)
        assert second.y == pytest.approx(0.5)
        assert "pixel 1 x" in caplog.text

    def test_non_finite_coordinate_synthesized(self):
        raw = {"pixels": [{"x": float("inf"), "y": 0.0, "rgba": [0.5, 0.5, 0.5]}]}
        p = ingest_probe(raw, now=NOW).pixels[0]
        assert p.position_synthesized
        assert (p.x, p.y) == (0.5, 0.5)

    def test_unusable_position_uses_default(self):
        raw = {"position": {"x": "centre", "y": "0.25"}, "pixels": _bare_pixels(1)}
        p = ingest_probe(raw, now=NOW).pixels[0]
        assert (p.x, p.y) == (0.5, 0.25)


class TestMalformedInput:

    def test_non_mapping_record(self):
        with pytest.raises(IngestionError, match="JSON object"):
            ingest_probe([1, 2, 3], now=NOW)

    def test_pixels_not_a_list(self):
        with pytest.raises(IngestionError, match="'pixels' must be a list"):
            ingest_probe({"pixels": {"a": 1}}, now=NOW)

    def test_pixel_not_a_mapping(self):
        with pytest.raises(IngestionError, match="pixel 1"):
            ingest_probe({"pixels": [{"r": 0}, 5]}, now=NOW)

    def test_error_hierarchy(self):
        with pytest.raises(ColorCompareError):
            ingest_probe({"pixels": 3}, now=NOW)
        with pytest.raises(ValueError):
            ingest_probe({"pixels": 3}, now=NOW)


class TestLoadProbe:

    def test_from_json_text(self):
        probe = load_probe(json.dumps(_record(software="Nuke")), now=NOW)
        assert probe.source_label == "Nuke"

    def test_from_bytes(self):
        probe = load_probe(json.dumps(_record()).encode("utf-8"), now=NOW)
        assert probe.sample_count == 1

    def test_from_mapping(self):
        assert load_probe(_record(), now=NOW).pixels[0].identifier == "a"

    def test_from_path(self, tmp_path):
        path = tmp_path / "probe.json"
        path.write_text(json.dumps(_record(probe_name="From File")), encoding="utf-8")
        assert load_probe(path, now=NOW).name == "From File"
        assert load_probe(str(path), now=NOW).name == "From File"

    def test_invalid_json(self):
        with pytest.raises(IngestionError, match="Invalid JSON"):
            load_probe('{"pixels": [', now=NOW)

    def test_invalid_json_file_carries_source(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(IngestionError) as exc_info:
            load_probe(path, now=NOW)
        assert exc_info.value.source == str(path)
        assert str(path) in str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(IngestionError, match="Cannot read"):
            load_probe(tmp_path / "missing.json", now=NOW)

    def test_top_level_list_rejected(self):
        with pytest.raises(IngestionError, match="JSON object"):
            load_probe("[1, 2]", now=NOW)

    def test_unsupported_type(self):
        with pytest.raises(IngestionError, match="Expected"):
            load_probe(42, now=NOW)
