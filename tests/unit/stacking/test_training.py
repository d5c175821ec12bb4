"""Tests for stack fitting, deploy-time prediction and persistence."""

import io
import logging

import joblib
import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LinearRegression, LogisticRegression, Ridge
from sklearn.tree import DecisionTreeRegressor

from genstack import (
    CV,
    CategoricalPrediction,
    FittedStack,
    GaussianRegressor,
    Stack,
    StackingConfig,
    StratifiedCV,
    fit,
    predict,
)
from genstack.core.logging import configure_logging
from genstack.exceptions import PredictionError, TrainingError
from genstack.operators.models import PredictionKind
from genstack.stacking import check_kinds


@pytest.fixture
def regression_stack():
    return Stack(
        metalearner=LinearRegression(),
        cv_strategy=CV(n_folds=2),
        lr=LinearRegression(),
        ridge=Ridge(alpha=1.0),
    )


@pytest.fixture
def classification_stack():
    return Stack(
        metalearner=LogisticRegression(),
        cv_strategy=StratifiedCV(n_folds=3),
        logit=LogisticRegression(),
        strong=LogisticRegression(C=10.0),
    )


class TestFitRegression:
    """Test suite for fitting a deterministic regression stack."""

    def test_meta_dataset_from_out_of_fold_predictions(self, regression_stack, tiny_regression):
        X, y = tiny_regression

        fitted = fit(regression_stack, X, y)
        meta = fitted.report.meta_dataset

        assert list(meta.features.columns) == ["lr", "ridge"]
        np.testing.assert_allclose(
            meta.features["lr"].to_numpy()[:3],
            LinearRegression().fit(X[3:], y[3:]).predict(X[:3]),
        )
        np.testing.assert_allclose(
            meta.features["ridge"].to_numpy()[3:],
            Ridge(alpha=1.0).fit(X[:3], y[:3]).predict(X[3:]),
        )
        np.testing.assert_array_equal(meta.target, y)
        np.testing.assert_array_equal(meta.fold_ids, [0, 0, 0, 1, 1, 1])

    def test_metalearner_trained_on_meta_dataset(self, regression_stack, tiny_regression):
        X, y = tiny_regression

        fitted = fit(regression_stack, X, y)
        meta = fitted.report.meta_dataset
        expected = LinearRegression().fit(meta.features, meta.target)

        np.testing.assert_allclose(fitted.metalearner.coef_, expected.coef_)

    def test_base_models_refit_on_full_data(self, regression_stack, tiny_regression):
        X, y = tiny_regression

        fitted = fit(regression_stack, X, y)

        assert list(fitted.base_models) == ["lr", "ridge"]
        np.testing.assert_allclose(
            fitted.base_models["ridge"].coef_, Ridge(alpha=1.0).fit(X, y).coef_
        )
        assert not hasattr(regression_stack.ridge, "coef_")

    def test_deploy_features_match_training_layout(self, regression_stack, regression_data):
        X, y = regression_data

        fitted = fit(regression_stack, X, y)
        Z_new = fitted.transform(X[:5])

        assert list(Z_new.columns) == fitted.report.feature_names == fitted.feature_names
        np.testing.assert_allclose(Z_new["lr"], fitted.base_models["lr"].predict(X[:5]))

    def test_predict_chains_base_models_and_metalearner(self, regression_stack, regression_data):
        X, y = regression_data
        fitted = fit(regression_stack, X, y)

        prediction = predict(fitted, X[:5])
        expected = fitted.metalearner.predict(fitted.transform(X[:5]))

        np.testing.assert_allclose(prediction, expected)
        np.testing.assert_allclose(fitted.predict(X[:5]), expected)

    def test_predict_never_refits(self, tiny_regression, counting_regressor):
        X, y = tiny_regression
        model, calls = counting_regressor
        stack = Stack(metalearner=LinearRegression(), cv_strategy=CV(n_folds=3), mean=model, lr=LinearRegression())

        fitted = stack.fit(X, y)
        after_fit = calls["count"]
        fitted.predict(X)
        fitted.predict(X)

        assert after_fit == 3 + 1
        assert calls["count"] == after_fit

    def test_deterministic_across_runs_and_modes(self, regression_data):
        X, y = regression_data
        stack = Stack(
            metalearner=LinearRegression(),
            cv_strategy=CV(n_folds=4, shuffle=True, random_state=0),
            ridge=Ridge(),
            tree=DecisionTreeRegressor(max_depth=3, random_state=0),
        )

        first = fit(stack, X, y)
        second = fit(stack, X, y)
        parallel = fit(stack, X, y, config=StackingConfig(n_jobs=2, backend="threading"))

        for other in (second, parallel):
            pd.testing.assert_frame_equal(
                first.report.meta_dataset.features, other.report.meta_dataset.features
            )
            np.testing.assert_allclose(first.predict(X), other.predict(X))

    def test_report(self, regression_stack, regression_data):
        X, y = regression_data

        fitted = fit(regression_stack, X, y)
        report = fitted.report

        assert len(report.folds) == 2
        assert set(report.timings) == {"out_of_fold", "metalearner", "retrain", "total"}
        assert report.timings["total"] >= report.timings["metalearner"]

    def test_meta_dataset_can_be_dropped(self, regression_stack, regression_data):
        X, y = regression_data

        fitted = fit(regression_stack, X, y, config=StackingConfig(keep_meta_dataset=False))

        assert fitted.report.meta_dataset is None

    def test_dataframe_input(self, regression_stack, regression_data):
        X, y = regression_data
        frame = pd.DataFrame(X, columns=["a", "b", "c", "d"])

        fitted = fit(regression_stack, frame, pd.Series(y))

        np.testing.assert_allclose(fitted.predict(frame), fit(regression_stack, X, y).predict(X))

    def test_pipeline_stages(self, regression_stack, tiny_regression):
        X, y = tiny_regression

        fitted = fit(regression_stack, X, y)

        assert fitted.pipeline.stage_names == ["lr", "ridge", "features", "metalearner"]


class TestFitClassification:
    """Test suite for probabilistic classification stacks."""

    def test_probability_features(self, classification_stack, classification_data):
        X, y = classification_data

        fitted = fit(classification_stack, X, y)
        Z = fitted.report.meta_dataset.features

        assert list(Z.columns) == [
            "logit__0", "logit__1", "logit__2", "strong__0", "strong__1", "strong__2",
        ]
        np.testing.assert_allclose(Z.iloc[:, :3].sum(axis=1), 1.0)
        np.testing.assert_allclose(Z.iloc[:, 3:].sum(axis=1), 1.0)

    def test_predict_returns_class_probabilities(self, classification_stack, classification_data):
        X, y = classification_data

        fitted = fit(classification_stack, X, y)
        prediction = fitted.predict(X)

        assert fitted.prediction_kind is PredictionKind.PROBABILISTIC
        assert isinstance(prediction, CategoricalPrediction)
        np.testing.assert_array_equal(prediction.classes, [0, 1, 2])
        np.testing.assert_allclose(prediction.probabilities.sum(axis=1), 1.0)

    def test_predict_mode(self, classification_stack, classification_data):
        X, y = classification_data

        labels = fit(classification_stack, X, y).predict_mode(X)

        assert set(labels) <= {0, 1, 2}
        assert np.mean(labels == y) > 0.9

    def test_string_labels(self, classification_stack, classification_data):
        X, y = classification_data
        names = np.array(["setosa", "versicolor", "virginica"])[y]

        fitted = fit(classification_stack, X, names)

        assert fitted.feature_names[:3] == ["logit__setosa", "logit__versicolor", "logit__virginica"]
        assert set(fitted.predict_mode(X)) <= set(names)

    def test_mean_only_for_continuous(self, classification_stack, classification_data):
        X, y = classification_data
        fitted = fit(classification_stack, X, y)

        with pytest.raises(PredictionError, match="predict_mean"):
            fitted.predict_mean(X)


class TestProbabilisticRegression:
    """Test suite for stacks with a probabilistic regression metalearner."""

    def test_predict_mean_and_median(self, regression_data):
        X, y = regression_data
        stack = Stack(
            metalearner=GaussianRegressor(),
            cv_strategy=CV(n_folds=3),
            ridge=Ridge(),
            gauss=GaussianRegressor(),
        )

        fitted = fit(stack, X, y)
        mean = fitted.predict_mean(X)

        assert mean.shape == (len(y),)
        np.testing.assert_allclose(fitted.predict_median(X), mean)
        np.testing.assert_allclose(fitted.predict(X).mean(), mean)
        with pytest.raises(PredictionError, match="predict_mode"):
            fitted.predict_mode(X)

    def test_deterministic_stack_rejects_summaries(self, regression_stack, regression_data):
        X, y = regression_data
        fitted = fit(regression_stack, X, y)

        with pytest.raises(PredictionError):
            fitted.predict_mean(X)
        with pytest.raises(PredictionError):
            fitted.predict_median(X)


class TestFitFailures:
    """Test suite for fatal fit failures."""

    def test_base_model_failure_aborts_fit(self, tiny_regression, failing_regressor):
        X, y = tiny_regression
        stack = Stack(
            metalearner=LinearRegression(),
            cv_strategy=CV(n_folds=2),
            lr=LinearRegression(),
            broken=failing_regressor("fit"),
        )

        with pytest.raises(TrainingError) as exc_info:
            fit(stack, X, y)

        assert exc_info.value.model_name == "broken"
        assert exc_info.value.fold_index == 0

    def test_metalearner_failure(self, tiny_regression, failing_regressor):
        X, y = tiny_regression
        stack = Stack(metalearner=failing_regressor("fit"), cv_strategy=CV(n_folds=2), lr=LinearRegression())

        with pytest.raises(TrainingError) as exc_info:
            fit(stack, X, y)

        assert exc_info.value.model_name == "metalearner"
        assert exc_info.value.fold_index is None

    def test_length_mismatch(self, regression_stack, tiny_regression):
        X, y = tiny_regression

        with pytest.raises(ValueError):
            fit(regression_stack, X, y[:5])

    def test_deploy_failure(self, tiny_regression):
        X, y = tiny_regression
        fitted = fit(Stack(metalearner=LinearRegression(), cv_strategy=CV(n_folds=2), lr=LinearRegression()), X, y)

        with pytest.raises(PredictionError) as exc_info:
            fitted.predict(np.ones((2, 5)))

        assert exc_info.value.model_name == "lr"
        assert exc_info.value.fold_index is None


class TestKindChecks:
    """Test suite for fit-time kind checks."""

    def test_integer_table_warns(self, regression_stack):
        X = np.arange(12).reshape(6, 2)
        y = np.linspace(0.0, 1.0, 6)

        warnings = check_kinds(regression_stack, X, y)

        assert len(warnings) == 1
        assert "count_table" in warnings[0]

    def test_finite_target_for_regression_warns(self, regression_stack):
        warnings = check_kinds(regression_stack, np.zeros((4, 2)), np.array(["a", "b", "a", "b"]))

        assert any("Target looks finite" in w for w in warnings)

    def test_integer_class_labels_are_fine(self, classification_stack, classification_data):
        X, y = classification_data

        assert check_kinds(classification_stack, X, y) == []

    def test_warnings_in_report(self, regression_stack, caplog):
        X = np.arange(12).reshape(6, 2)
        y = np.linspace(0.0, 1.0, 6)

        with caplog.at_level(logging.WARNING, logger="genstack"):
            fitted = fit(regression_stack, X, y)

        assert any("count_table" in w for w in fitted.report.warnings)
        assert "count_table" in caplog.text

    def test_checks_can_be_disabled(self, regression_stack):
        X = np.arange(12).reshape(6, 2)
        y = np.linspace(0.0, 1.0, 6)

        fitted = fit(regression_stack, X, y, config=StackingConfig(check_kinds=False))

        assert fitted.report.warnings == []


class TestPersistence:
    """Test suite for saving and loading fitted stacks."""

    def test_save_and_load(self, classification_stack, classification_data, tmp_path):
        X, y = classification_data
        fitted = fit(classification_stack, X, y)

        path = fitted.save(tmp_path / "models" / "stack.joblib")
        restored = FittedStack.load(path)

        assert restored.stack.model_names == ("logit", "strong")
        np.testing.assert_allclose(
            restored.predict(X).probabilities, fitted.predict(X).probabilities
        )

    def test_load_rejects_other_objects(self, tmp_path):

        path = tmp_path / "other.joblib"
        joblib.dump({"not": "a stack"}, path)

        with pytest.raises(TypeError, match="FittedStack"):
            FittedStack.load(path)


class TestFitLogging:
    """Test suite for progress logging during a fit."""

    def test_fold_progress_is_logged(self, regression_stack, tiny_regression):

        stream = io.StringIO()
        configure_logging(verbose=2, stream=stream)
        X, y = tiny_regression

        fit(regression_stack, X, y)

        output = stream.getvalue()
        assert "Fitting stack of 2 model(s)" in output
        assert "[fold 1/2]" in output
        assert "[OK] Stack fitted" in output
