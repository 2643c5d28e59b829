import math
import threading
import time

import pytest

from spotify_search.src.errors import RateLimited, UpstreamProtocolError
from spotify_search.src.services.base import ServiceProvider
from spotify_search.src.services.features import FEATURE_ORDER, BatchFeatureFetcher, to_embedding

from conftest import features_json


class FakeFeaturesClient(ServiceProvider):
    def __init__(self, known=None, fail_on=None, delays=None):
        self.known = known
        self.fail_on = fail_on
        self.delays = delays or {}
        self.calls = []
        self.completed = []
        self._lock = threading.Lock()

    def search(self, query, limit=None, offset=None):
        raise NotImplementedError

    def get_tracks(self, track_ids):
        raise NotImplementedError

    def audio_features(self, track_ids):
        with self._lock:
            self.calls.append(list(track_ids))
        wait_for = self.delays.get(track_ids[0])
        if wait_for is not None:
            wait_for.wait(5)
        if self.fail_on is not None and self.fail_on in track_ids:
            raise RateLimited("slow down", retry_after=3)
        out = [
            features_json(i, danceability=(ord(i[0]) % 10) / 10)
            if self.known is None or i in self.known
            else None
            for i in track_ids
        ]
        with self._lock:
            self.completed.append(track_ids[0])
        return out


def test_embedding_dimension_order():
    feats = to_embedding("t1", features_json("t1"))
    assert len(FEATURE_ORDER) == 12
    assert feats.track_id == "t1"
    assert feats.vector == pytest.approx(
        (0.5, 0.8, 1.0, 0.9, 1.0, 0.05, 0.1, 0.0, 0.2, 0.6, 0.5, 4 / 7)
    )


def test_embedding_clamps_and_handles_no_key():
    feats = to_embedding("t1", features_json("t1", key=-1, loudness=-80.0, tempo=320.0))
    assert feats.vector[2] == 0.0
    assert feats.vector[3] == 0.0
    assert feats.vector[10] == 1.0


@pytest.mark.parametrize("af", [None, {}, features_json("t1", tempo=None), features_json("t1", mode=True)])
def test_incomplete_features_are_absent(af):
    assert to_embedding("t1", af) is None


@pytest.mark.parametrize("n, batch", [(0, 100), (1, 100), (100, 100), (101, 100), (7, 3), (250, 100)])
def test_chunk_count_and_positions(n, batch):
    client = FakeFeaturesClient()
    ids = [f"id{i}" for i in range(n)]
    out = BatchFeatureFetcher(client, batch_size=batch, max_workers=4).fetch_features(ids)

    assert len(client.calls) == math.ceil(n / batch)
    assert all(len(c) <= batch for c in client.calls)
    assert len(out) == n
    assert [f.track_id for f in out] == ids


def test_absent_marker_keeps_position():
    client = FakeFeaturesClient(known={"a", "c"})
    out = BatchFeatureFetcher(client, batch_size=2).fetch_features(["a", "b", "c", "d"])
    assert [f.track_id if f else None for f in out] == ["a", None, "c", None]


def test_duplicates_passed_through():
    client = FakeFeaturesClient()
    out = BatchFeatureFetcher(client, batch_size=100).fetch_features(["a", "b", "a"])
    assert [f.track_id for f in out] == ["a", "b", "a"]
    assert out[0] == out[2]


def test_results_follow_chunk_index_not_arrival():
    b_done = threading.Event()
    client = FakeFeaturesClient(delays={"A": b_done})

    def release_when_b_completes():
        while "B" not in client.completed:
            time.sleep(0.01)
        b_done.set()

    watcher = threading.Thread(target=release_when_b_completes, daemon=True)
    watcher.start()
    out = BatchFeatureFetcher(client, batch_size=1, max_workers=2).fetch_features(["A", "B"])

    assert len(client.calls) == 2
    assert client.completed == ["B", "A"]
    assert [f.track_id for f in out] == ["A", "B"]


def test_chunk_failure_fails_fast():
    client = FakeFeaturesClient(fail_on="id3")
    fetcher = BatchFeatureFetcher(client, batch_size=2, max_workers=1)
    with pytest.raises(RateLimited) as excinfo:
        fetcher.fetch_features([f"id{i}" for i in range(8)])
    assert excinfo.value.retry_after == 3
    assert len(client.calls) == 2


def test_chunk_failure_propagates_in_parallel():
    client = FakeFeaturesClient(fail_on="id3")
    with pytest.raises(RateLimited):
        BatchFeatureFetcher(client, batch_size=2, max_workers=4).fetch_features([f"id{i}" for i in range(8)])


def test_short_chunk_response_is_protocol_error():
    class ShortClient(FakeFeaturesClient):
        def audio_features(self, track_ids):
            return super().audio_features(track_ids)[:-1]

    with pytest.raises(UpstreamProtocolError):
        BatchFeatureFetcher(ShortClient(), batch_size=10).fetch_features(["a", "b"])


def test_batch_size_must_be_positive():
    with pytest.raises(ValueError):
        BatchFeatureFetcher(FakeFeaturesClient(), batch_size=0)
