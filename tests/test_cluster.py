"""Tests for connected-component clustering."""

import random
from collections import Counter

import pytest

from pixeldedup.common.models import Cluster
from pixeldedup.image.bktree import BKTree
from pixeldedup.image.cluster import build_clusters, sequential_ids


class CountingIndex:
    """Wraps an index and counts queries per fingerprint holder."""

    def __init__(self, items):
        self.inner = BKTree()
        for identifier, fingerprint in items.items():
            self.inner.insert(fingerprint, identifier)
        self.queries = Counter()

    def query(self, fingerprint, radius):
        self.queries[fingerprint] += 1
        return self.inner.query(fingerprint, radius)


def index_for(items):
    tree = BKTree()
    for identifier, fingerprint in items.items():
        tree.insert(fingerprint, identifier)
    return tree.seal()


def as_partition(clusters):
    return {frozenset(c.members) for c in clusters}


@pytest.fixture
def items():
    rng = random.Random(2024)
    values = {}
    for c in range(6):
        centre = rng.getrandbits(64)
        for v in range(5):
            fingerprint = centre
            for bit in rng.sample(range(64), rng.randint(0, 3)):
                fingerprint ^= 1 << bit
            values[f"img_{c}_{v}.jpg"] = fingerprint
    return values


class TestBuildClusters:
    def test_empty_input(self):
        assert build_clusters({}, BKTree(), 5) == []

    def test_partition_property(self, items):
        clusters = build_clusters(items, index_for(items), 6)
        members = [m for c in clusters for m in c.members]
        assert sorted(members) == sorted(items)
        assert len(members) == len(set(members))
        assert all(len(c) >= 1 for c in clusters)

    def test_radius_zero_groups_identical_fingerprints_only(self):
        items = {"a": 10, "b": 10, "c": 11}
        clusters = build_clusters(items, index_for(items), 0)
        assert as_partition(clusters) == {frozenset({"a", "b"}), frozenset({"c"})}

    def test_chaining_links_distant_members(self):
        # a-b and b-c are 3 bits apart, a-c is 6 bits apart
        items = {"a": 0b000000, "b": 0b000111, "c": 0b111111}
        clusters = build_clusters(items, index_for(items), 3)
        assert as_partition(clusters) == {frozenset({"a", "b", "c"})}

    def test_invariant_to_iteration_order(self, items):
        expected = as_partition(build_clusters(items, index_for(items), 4))
        shuffled = list(items.items())
        random.Random(11).shuffle(shuffled)
        shuffled = dict(shuffled)
        assert as_partition(build_clusters(shuffled, index_for(shuffled), 4)) == expected

    def test_each_item_queried_once(self):
        # Distinct fingerprints so the counter maps one-to-one onto items
        items = {f"img{i}": 1 << i for i in range(20)}
        index = CountingIndex(items)
        build_clusters(items, index, 2)
        assert sum(index.queries.values()) == len(items)
        assert set(index.queries.values()) == {1}

    def test_default_ids_are_sequential(self):
        items = {"a": 0, "b": 0xFFFF, "c": 0xFFFF0000}
        clusters = build_clusters(items, index_for(items), 1)
        assert [c.cluster_id for c in clusters] == ["dup_0001", "dup_0002", "dup_0003"]

    def test_custom_id_factory(self):
        items = {"a": 0, "b": 1}
        clusters = build_clusters(items, index_for(items), 1, id_factory=sequential_ids("grp-"))
        assert clusters == [Cluster(cluster_id="grp-0001", members=("a", "b"))]

    def test_ids_unique(self, items):
        clusters = build_clusters(items, index_for(items), 2)
        ids = [c.cluster_id for c in clusters]
        assert len(ids) == len(set(ids))
