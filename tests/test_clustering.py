import pytest

from interview_scribe.diarization.clustering import assign_two_clusters, normalize_features
from interview_scribe.models import FeatureVector

LOW = FeatureVector(energy=0.10, pitch=110.0, zcr=0.05)
HIGH = FeatureVector(energy=0.60, pitch=220.0, zcr=0.20)


def jitter(f, k):
    return FeatureVector(energy=f.energy + 0.001 * k, pitch=f.pitch + k, zcr=f.zcr + 0.0005 * k)


class TestNormalize:
    def test_each_dimension_spans_zero_to_one(self):
        points = normalize_features([LOW, HIGH, jitter(LOW, 3)])
        assert points.min(axis=0).tolist() == [0.0, 0.0, 0.0]
        assert points.max(axis=0).tolist() == [1.0, 1.0, 1.0]

    def test_constant_dimension_is_zero(self):
        points = normalize_features([FeatureVector(0.2, 150.0, 0.1), FeatureVector(0.8, 150.0, 0.3)])
        assert points[:, 1].tolist() == [0.0, 0.0]

    def test_undefined_pitch_sits_mid_range(self):
        points = normalize_features([LOW, HIGH, FeatureVector(0.3, None, 0.1)])
        assert points[2, 1] == 0.5
        assert points[0, 1] == 0.0


class TestAssignTwoClusters:
    @pytest.mark.parametrize("n", [0, 1])
    def test_fewer_than_two_points(self, n):
        partition = assign_two_clusters([LOW] * n)
        assert partition.a == tuple(range(n))
        assert partition.b == ()

    def test_alternating_bands_separate(self):
        features = [jitter(LOW if i % 2 == 0 else HIGH, i) for i in range(6)]
        partition = assign_two_clusters(features)

        assert partition.a == (0, 2, 4)
        assert partition.b == (1, 3, 5)

    def test_runs_are_identical(self):
        features = [jitter(HIGH if i in (1, 2, 5) else LOW, i) for i in range(7)]
        assert assign_two_clusters(features) == assign_two_clusters(features)

    def test_partition_covers_every_index_once(self):
        features = [jitter(HIGH if i % 3 == 0 else LOW, i) for i in range(9)]
        partition = assign_two_clusters(features)
        assert sorted(partition.a + partition.b) == list(range(9))
        assert not set(partition.a) & set(partition.b)

    def test_identical_points_stay_in_first_cluster(self):
        partition = assign_two_clusters([LOW] * 5)
        assert partition.a == (0, 1, 2, 3, 4)
        assert partition.b == ()

    def test_zero_iterations_keeps_everything_in_first_cluster(self):
        partition = assign_two_clusters([LOW, HIGH, LOW, HIGH], iterations=0)
        assert partition.a == (0, 1, 2, 3)
