"""Tests for fold strategies."""

import numpy as np
import pytest
from sklearn.model_selection import KFold

from genstack.exceptions import ConfigurationError
from genstack.operators.splitters import CV, Fold, StratifiedCV, make_folds


class TestCV:
    """Test suite for plain k-fold partitions."""

    def test_default_has_six_folds(self):
        assert CV().n_folds == 6
        assert len(make_folds(CV(), 12)) == 6

    def test_six_rows_two_folds(self):
        """Contiguous test blocks, train is the complement."""
        folds = make_folds(CV(n_folds=2), 6)

        assert len(folds) == 2
        assert isinstance(folds[0], Fold)
        np.testing.assert_array_equal(folds[0].train, [3, 4, 5])
        np.testing.assert_array_equal(folds[0].test, [0, 1, 2])
        np.testing.assert_array_equal(folds[1].train, [0, 1, 2])
        np.testing.assert_array_equal(folds[1].test, [3, 4, 5])

    @pytest.mark.parametrize("n, k", [(5, 2), (10, 3), (17, 5), (100, 10)])
    def test_test_sets_cover_every_row_once(self, n, k):
        folds = make_folds(CV(n_folds=k), n)

        all_test = np.concatenate([fold.test for fold in folds])
        np.testing.assert_array_equal(np.sort(all_test), np.arange(n))

        for fold in folds:
            assert len(set(fold.train) & set(fold.test)) == 0
            assert len(fold.train) + len(fold.test) == n

    def test_fold_sizes_balanced(self):
        sizes = [len(fold.test) for fold in make_folds(CV(n_folds=3), 10)]
        assert sizes == [4, 3, 3]

    def test_matches_sklearn_kfold_without_shuffle(self):
        ours = make_folds(CV(n_folds=4), 23)
        theirs = list(KFold(n_splits=4).split(np.zeros((23, 1))))
        for fold, (train, test) in zip(ours, theirs):
            np.testing.assert_array_equal(fold.test, test)
            np.testing.assert_array_equal(np.sort(fold.train), train)

    def test_more_folds_than_rows_gives_empty_test_sets(self):
        folds = make_folds(CV(n_folds=4), 3)

        assert [len(fold.test) for fold in folds] == [1, 1, 1, 0]
        np.testing.assert_array_equal(folds[3].train, [0, 1, 2])

    def test_shuffle_is_seeded(self):
        first = make_folds(CV(n_folds=3, shuffle=True, random_state=7), 30)
        second = make_folds(CV(n_folds=3, shuffle=True, random_state=7), 30)
        plain = make_folds(CV(n_folds=3), 30)

        for a, b in zip(first, second):
            np.testing.assert_array_equal(a.test, b.test)
        assert not np.array_equal(first[0].test, plain[0].test)

        all_test = np.concatenate([fold.test for fold in first])
        np.testing.assert_array_equal(np.sort(all_test), np.arange(30))

    @pytest.mark.parametrize("n_folds", [0, 1, 2.5, True])
    def test_invalid_number_of_folds(self, n_folds):
        with pytest.raises(ConfigurationError):
            CV(n_folds=n_folds)


class TestStratifiedCV:
    """Test suite for stratified partitions."""

    def test_class_proportions_preserved(self):
        y = np.array([0] * 30 + [1] * 60 + [2] * 90)
        folds = make_folds(StratifiedCV(n_folds=3), len(y), y)

        global_props = np.bincount(y) / len(y)
        for fold in folds:
            props = np.bincount(y[fold.test], minlength=3) / len(fold.test)
            np.testing.assert_allclose(props, global_props, atol=0.02)

        all_test = np.concatenate([fold.test for fold in folds])
        np.testing.assert_array_equal(np.sort(all_test), np.arange(len(y)))

    def test_string_labels(self):
        y = np.array(["a", "b"] * 10)
        folds = make_folds(StratifiedCV(n_folds=2), len(y), y)

        for fold in folds:
            labels, counts = np.unique(y[fold.test], return_counts=True)
            assert list(labels) == ["a", "b"]
            assert list(counts) == [5, 5]

    def test_requires_target(self):
        with pytest.raises(ConfigurationError, match="requires the target"):
            make_folds(StratifiedCV(n_folds=2), 10)

    def test_continuous_target_rejected(self):
        y = np.linspace(0.0, 1.0, 12)

        with pytest.raises(ConfigurationError, match="got a continuous target"):
            make_folds(StratifiedCV(n_folds=3), len(y), y)

    def test_target_length_checked(self):
        with pytest.raises(ValueError):
            make_folds(StratifiedCV(n_folds=2), 10, np.zeros(8))


def test_make_folds_rejects_foreign_splitter():
    with pytest.raises(ConfigurationError, match="CV or StratifiedCV"):
        make_folds(KFold(n_splits=2), 10)
