"""
Planner semantics: traversal order, stream key filtering, strict and
tolerant handling of incomplete manifests.
"""

from __future__ import annotations

import dataclasses

import pytest
from conftest import make_element

from smooth_cli.core.planner import plan_segments
from smooth_cli.core.selection import StreamKeySelection
from smooth_cli.exceptions import IncompleteManifestError
from smooth_cli.models.manifest import Manifest
from smooth_cli.models.segment import StreamKey


def _positions(segments):
    return [(*s.stream_key, s.chunk_index) for s in segments]


def test_empty_selection_plans_every_track_in_order(two_element_manifest) -> None:
    segments = plan_segments(two_element_manifest, (), True)

    assert len(segments) == 7
    assert _positions(segments) == [
        (0, 0, 0),
        (0, 0, 1),
        (0, 0, 2),
        (1, 0, 0),
        (1, 0, 1),
        (1, 1, 0),
        (1, 1, 1),
    ]


def test_segments_carry_start_time_and_resolved_url(two_element_manifest) -> None:
    segments = plan_segments(two_element_manifest)

    assert [s.start_time_us for s in segments[:3]] == [0, 2_000_000, 4_000_000]
    assert segments[1].url == (
        "http://media.example.com/vod/movie.ism/"
        "QualityLevels(1000000)/Fragments(video=20000000)"
    )
    assert segments[1].request.headers == ()
    assert segments[1].request.byte_range is None


def test_single_key_selects_only_that_track(two_element_manifest) -> None:
    segments = plan_segments(two_element_manifest, [StreamKey(1, 1)], True)

    assert _positions(segments) == [(1, 1, 0), (1, 1, 1)]
    assert all("QualityLevels(128000)" in s.url for s in segments)


def test_subset_count_is_sum_of_selected_chunk_counts(two_element_manifest) -> None:
    keys = [(0, 0), (1, 0)]

    segments = plan_segments(two_element_manifest, keys)

    assert len(segments) == 3 + 2
    assert {s.stream_key for s in segments} == {StreamKey(0, 0), StreamKey(1, 0)}


def test_key_order_does_not_change_traversal_order(two_element_manifest) -> None:
    forward = plan_segments(two_element_manifest, [(0, 0), (1, 1)])
    backward = plan_segments(two_element_manifest, [(1, 1), (0, 0)])

    assert forward == backward
    assert forward[0].stream_key == StreamKey(0, 0)


def test_accepts_prebuilt_selection(two_element_manifest) -> None:
    selection = StreamKeySelection([(1, 0)])

    segments = plan_segments(two_element_manifest, selection)

    assert _positions(segments) == [(1, 0, 0), (1, 0, 1)]


def test_planning_is_idempotent(two_element_manifest) -> None:
    first = plan_segments(two_element_manifest, [(1, 1), (0, 0)])
    second = plan_segments(two_element_manifest, [(1, 1), (0, 0)])

    assert first == second
    assert [s.url for s in first] == [s.url for s in second]


def test_start_times_non_decreasing_per_track(two_element_manifest) -> None:
    segments = plan_segments(two_element_manifest)

    by_track: dict[StreamKey, list[int]] = {}
    for segment in segments:
        by_track.setdefault(segment.stream_key, []).append(segment.start_time_us)

    for times in by_track.values():
        assert times == sorted(times)


def test_strict_mode_rejects_missing_stream(two_element_manifest) -> None:
    with pytest.raises(IncompleteManifestError) as excinfo:
        plan_segments(two_element_manifest, [(0, 0), (5, 0)], False)

    assert excinfo.value.reasons == ["stream key 5:0 is not present in the manifest"]


def test_strict_mode_rejects_missing_track(two_element_manifest) -> None:
    with pytest.raises(IncompleteManifestError):
        plan_segments(two_element_manifest, [(0, 1)])


def test_tolerant_mode_omits_missing_pairs(two_element_manifest) -> None:
    segments = plan_segments(two_element_manifest, [(0, 0), (5, 0), (1, 7)], True)

    assert _positions(segments) == [(0, 0, 0), (0, 0, 1), (0, 0, 2)]


def test_tolerant_mode_with_nothing_matching_is_empty(two_element_manifest) -> None:
    assert plan_segments(two_element_manifest, [(9, 9)], True) == []


def test_live_manifest_requires_tolerant_mode(two_element_manifest) -> None:
    live = dataclasses.replace(two_element_manifest, is_live=True)

    with pytest.raises(IncompleteManifestError, match="live"):
        plan_segments(live)

    assert len(plan_segments(live, allow_incomplete_list=True)) == 7


def test_partially_listed_element_is_incomplete() -> None:
    manifest = Manifest(
        stream_elements=(
            make_element("video", [500_000], [0, 20_000_000], declared_chunk_count=4),
        )
    )

    with pytest.raises(IncompleteManifestError, match="lists 2 of 4 chunks"):
        plan_segments(manifest)

    assert len(plan_segments(manifest, allow_incomplete_list=True)) == 2


def test_custom_completeness_check_is_consulted(two_element_manifest) -> None:
    manifest = dataclasses.replace(
        two_element_manifest, completeness_check=lambda m: ["still encoding"]
    )

    with pytest.raises(IncompleteManifestError, match="still encoding"):
        plan_segments(manifest)


def test_strict_failure_reports_every_reason(two_element_manifest) -> None:
    live = dataclasses.replace(two_element_manifest, is_live=True)

    with pytest.raises(IncompleteManifestError) as excinfo:
        plan_segments(live, [(3, 0)])

    assert len(excinfo.value.reasons) == 2


def test_planner_does_not_mutate_manifest(two_element_manifest) -> None:
    before = dataclasses.replace(two_element_manifest)

    plan_segments(two_element_manifest, [(1, 0)])

    assert two_element_manifest == before


def test_strict_mode_rejects_negative_indices(two_element_manifest) -> None:
    for key in [(-1, 0), (0, -1)]:
        with pytest.raises(IncompleteManifestError, match="not present"):
            plan_segments(two_element_manifest, [key], False)

    assert plan_segments(two_element_manifest, [(-1, 0)], True) == []


def test_negative_key_on_empty_manifest_is_incomplete() -> None:
    with pytest.raises(IncompleteManifestError) as excinfo:
        plan_segments(Manifest(stream_elements=()), [(-1, 0)], False)

    assert excinfo.value.reasons == ["stream key -1:0 is not present in the manifest"]
