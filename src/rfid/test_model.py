"""
Tests for the Gaussian density model.
"""

import math

import numpy as np
import pytest
from sklearn.exceptions import NotFittedError

from rfid.features import FEATURE_NAMES, NUM_FEATURES, build_feature_matrix
from rfid.model import (
    MIN_STD,
    THRESHOLD_MARGIN,
    EmptyTrainingSetError,
    GaussianDensityModel,
    log_gaussian_pdf,
    sigmoid,
)


def test_log_gaussian_pdf_at_mean():
    assert log_gaussian_pdf(0.0, 0.0, 1.0) == pytest.approx(-0.5 * math.log(2 * math.pi))
    assert log_gaussian_pdf(2.0, 1.0, 0.5) == pytest.approx(-0.5 * math.log(2 * math.pi) - math.log(0.5) - 2.0)


def test_sigmoid_is_stable():
    assert sigmoid(0.0) == 0.5
    assert sigmoid(-1e6) == 0.0
    assert sigmoid(1e6) == 1.0
    assert sigmoid(2.0) == pytest.approx(1.0 / (1.0 + math.exp(-2.0)))


def test_fit_population_statistics():
    X = np.array([[float(i)] * NUM_FEATURES for i in (1, 2, 3, 4)])
    model = GaussianDensityModel().fit(X)
    assert np.allclose(model.mean_, 2.5)
    assert np.allclose(model.std_, np.sqrt(1.25))  # population, not sample std


def test_std_floor_on_degenerate_training_data():
    model, _ = GaussianDensityModel.from_corpus(["AB12CD34"] * 5)
    assert model.n_samples_fit_ == 1
    assert all(p.std >= MIN_STD for p in model.feature_params)
    assert np.all(model.std_ == MIN_STD)


def test_threshold_is_min_train_loglik_minus_margin():
    model, X = GaussianDensityModel.from_corpus(["AB12CD34", "EF56GH78", "1A2B3C4D", "XYZ-0001"])
    train_llk = model.score_samples(X)
    assert model.threshold_ == pytest.approx(float(np.min(train_llk)) - THRESHOLD_MARGIN)
    assert np.all(train_llk >= model.threshold_)
    assert np.all(model.predict(X) == 1)


def test_feature_params_are_named():
    model, _ = GaussianDensityModel.from_corpus(["AB12CD34", "EF56GH78"])
    params = model.feature_params
    assert [p.name for p in params] == list(FEATURE_NAMES)
    with pytest.raises(AttributeError):
        params[0].mean = 1.0


def test_permutation_invariance():
    corpus = ["AB12CD34", "ef56gh78", " ab12cd34 ", "1A2B3C4D", "XYZ-0001", "EF56GH78", "C0FFEE12"]
    shuffled = [corpus[i] for i in (5, 2, 6, 0, 4, 1, 3)]

    m1, _ = GaussianDensityModel.from_corpus(corpus)
    m2, _ = GaussianDensityModel.from_corpus(shuffled)
    m3, _ = GaussianDensityModel.from_corpus(list(reversed(corpus)))

    for other in (m2, m3):
        assert np.array_equal(m1.mean_, other.mean_)
        assert np.array_equal(m1.std_, other.std_)
        assert m1.threshold_ == other.threshold_


@pytest.mark.parametrize("corpus", [[], [""], ["   ", "\t"], [None, " "]])
def test_empty_corpus_is_rejected(corpus):
    with pytest.raises(EmptyTrainingSetError):
        GaussianDensityModel.from_corpus(corpus)


def test_empty_training_error_is_value_error():
    assert issubclass(EmptyTrainingSetError, ValueError)


def test_score_before_fit_raises():
    with pytest.raises(NotFittedError):
        GaussianDensityModel().score_samples(np.zeros((1, NUM_FEATURES)))


def test_wrong_feature_count_rejected():
    with pytest.raises(ValueError):
        GaussianDensityModel().fit(np.zeros((3, 4)))

    model, _ = GaussianDensityModel.from_corpus(["AB12CD34"])
    with pytest.raises(ValueError):
        model.score_samples(np.zeros((1, 3)))


def test_predict_flags_outliers():
    model, _ = GaussianDensityModel.from_corpus(["AB12CD34", "EF56GH78"])
    X = build_feature_matrix(["AB12CD34", "!!!!!!!!"])
    assert list(model.predict(X)) == [1, -1]
    scores = model.decision_function(X)
    assert scores[0] >= 0 > scores[1]


def test_model_is_sklearn_estimator():
    from sklearn.base import BaseEstimator, clone

    model = GaussianDensityModel()
    assert isinstance(model, BaseEstimator)
    assert model.get_params() == {"min_std": MIN_STD, "threshold_margin": THRESHOLD_MARGIN}

    fitted, X = GaussianDensityModel.from_corpus(["AB12CD34", "EF56GH78"])
    unfitted = clone(fitted)
    with pytest.raises(NotFittedError):
        unfitted.score_samples(X)
    assert list(fitted.fit_predict(X)) == [1, 1]
