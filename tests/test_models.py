import numpy as np
import pytest

from ltr.errors import ConfigurationError, NumericDomainError
from ltr.models.activation import Sigmoid
from ltr.models.learning_rate import ConstantLearningRate
from ltr.models.linear import LinearRegression
from ltr.models.neural_net import NeuralNetwork
from ltr.models.persistence import load_model, save_model
from ltr.models.registry import create_model, resolve_model


# ================================================================
# Activation
# ================================================================
def test_sigmoid_basics():
    sig = Sigmoid()
    assert sig(0.0) == 0.5
    assert sig.derivative(0.5) == 0.25
    assert sig(1000.0) == pytest.approx(1.0)
    assert 0.0 <= sig(-1000.0) < 1e-100


@pytest.mark.parametrize("K", [1.0, 2.5])
def test_logit_inverts_sigmoid(K):
    sig = Sigmoid(K=K)
    for x in [-3.0, -0.2, 0.0, 1.7]:
        assert sig.logit(sig(x)) == pytest.approx(x, abs=1e-9)


def test_logit_clamps_at_boundary():
    sig = Sigmoid()
    low, high = sig.logit(0.0), sig.logit(1.0)
    assert np.isfinite(low) and low < 0
    assert np.isfinite(high) and high > 0
    assert np.all(np.isfinite(sig.logit(np.array([0.0, 0.5, 1.0, np.nan]))))


def test_logit_strict_rejects_boundary():
    with pytest.raises(NumericDomainError):
        Sigmoid().logit(1.0, strict=True)


# ================================================================
# Linear model
# ================================================================
def test_linear_score(lr):
    model = LinearRegression(2, lr, weights=[1.0, 2.0])
    assert model.score(np.array([3.0, 4.0])) == 11.0
    assert np.allclose(model.scores(np.array([[1.0, 0.0], [0.0, 1.0]])), [1.0, 2.0])


def test_linear_gradient_descends(lr):
    model = LinearRegression(2, lr)
    g = model.gradient()
    # negative multiplier (loss decreases as the score grows) → weight grows
    g.update(np.array([1.0, 0.0]), 0.0, -0.5)
    assert np.allclose(g.gradient, [0.05, 0.0])
    g.apply_to(model)
    assert np.allclose(model.weights, [0.05, 0.0])


def test_apply_does_not_reset(lr):
    model = LinearRegression(2, lr)
    g = model.gradient()
    g.update(np.array([1.0, 1.0]), 0.0, -1.0)
    g.apply_to(model)
    g.apply_to(model)
    assert np.allclose(model.weights, [0.2, 0.2])


# ================================================================
# Neural network
# ================================================================
def test_nn_weights_deterministic(lr):
    a = NeuralNetwork(3, 4, lr)
    b = NeuralNetwork(3, 4, lr)
    c = NeuralNetwork(3, 4, lr, seed=7)
    assert np.array_equal(a.w1, b.w1) and np.array_equal(a.wy, b.wy)
    assert not np.array_equal(a.w1, c.w1)
    for w in (a.w1, a.wy):
        assert np.all((w >= 0.1) & (w < 1.0))


def test_nn_forward_matches_definition(lr):
    model = NeuralNetwork(3, 2, lr)
    x = np.array([0.2, -0.4, 1.0])
    hidden = 1.0 / (1.0 + np.exp(-(x @ model.w1)))
    expected = 1.0 / (1.0 + np.exp(-(hidden @ model.wy)))

    assert model.score(x) == pytest.approx(expected)
    scores, h = model.forward(np.vstack([x, x]))
    assert np.allclose(scores, expected)
    assert np.allclose(h[0], hidden)


def test_nn_gradient_matches_finite_differences():
    model = NeuralNetwork(3, 2, ConstantLearningRate(1.0))
    x = np.array([0.3, -0.1, 0.8])
    y = model.score(x)
    g = model.gradient()
    g.update(x, y, 1.0)  # multiplier 1 → accumulates -dy/dw

    eps = 1e-6
    for i in range(3):
        for h in range(2):
            model.w1[i, h] += eps
            up = model.score(x)
            model.w1[i, h] -= 2 * eps
            down = model.score(x)
            model.w1[i, h] += eps
            assert g.gradient1[i, h] == pytest.approx(-(up - down) / (2 * eps), rel=1e-4, abs=1e-9)
    for h in range(2):
        model.wy[h] += eps
        up = model.score(x)
        model.wy[h] -= 2 * eps
        down = model.score(x)
        model.wy[h] += eps
        assert g.gradienty[h] == pytest.approx(-(up - down) / (2 * eps), rel=1e-4, abs=1e-9)


def test_nn_update_with_retained_activations(lr):
    model = NeuralNetwork(3, 4, lr)
    X = np.array([[0.1, 0.2, 0.3], [1.0, -1.0, 0.5]])
    scores, hidden = model.forward(X)

    retained, recomputed = model.gradient(), model.gradient()
    retained.update(X[1], scores[1], -0.7, hidden[1])
    recomputed.update(X[1], scores[1], -0.7)
    assert np.allclose(retained.gradient1, recomputed.gradient1)
    assert np.allclose(retained.gradienty, recomputed.gradienty)


@pytest.mark.parametrize("name", ["linreg", "nn3"])
def test_reset_then_apply_is_noop(name, lr):
    model = create_model(name, 3, lr)
    before = {k: v.copy() for k, v in model.state().items()}
    g = model.gradient()
    g.update(np.array([1.0, 2.0, 3.0]), 0.5, -1.0)
    g.reset()
    g.apply_to(model)
    for key, value in model.state().items():
        assert np.array_equal(value, before[key])


def test_merge_and_finiteness(lr):
    model = NeuralNetwork(2, 2, lr)
    a, b = model.gradient(), model.gradient()
    a.update(np.array([1.0, 0.0]), 0.6, -1.0)
    b.update(np.array([0.0, 1.0]), 0.4, 1.0)
    expected = a.gradient1 + b.gradient1
    a.merge(b)
    assert np.allclose(a.gradient1, expected)
    assert a.is_finite()

    b.gradienty[0] = np.nan
    assert not b.is_finite()

    with pytest.raises(ValueError):
        a.merge(NeuralNetwork(2, 3, lr).gradient())


# ================================================================
# Registry & persistence
# ================================================================
@pytest.mark.parametrize("name, hidden", [("nn20", 20), ("nn_5", 5), ("nn:3", 3)])
def test_resolve_nn(name, hidden, lr):
    model = resolve_model(name)(4, lr)
    assert isinstance(model, NeuralNetwork)
    assert model.hidden_neurons == hidden


@pytest.mark.parametrize("name", ["nn", "nn0", "nn_x", "svm", ""])
def test_resolve_model_rejects(name):
    with pytest.raises(ConfigurationError):
        resolve_model(name)


def test_unknown_model_message_lists_choices():
    with pytest.raises(ConfigurationError, match="linreg"):
        resolve_model("svm")


@pytest.mark.parametrize("name", ["linreg", "nn4"])
def test_save_load_roundtrip(name, lr, tmp_path):
    model = create_model(name, 3, lr)
    g = model.gradient()
    g.update(np.array([0.5, -0.5, 1.0]), model.score(np.array([0.5, -0.5, 1.0])), -1.0)
    g.apply_to(model)

    path = save_model(model, tmp_path / "models" / "model.npz")
    loaded = load_model(path, lr)

    assert type(loaded) is type(model)
    x = np.array([0.1, 0.2, 0.3])
    assert loaded.score(x) == model.score(x)


def test_load_unknown_kind(lr, tmp_path):
    path = tmp_path / "tree.npz"
    with open(path, "wb") as f:
        np.savez(f, kind=np.array("tree"), weights=np.zeros(2))
    with pytest.raises(ConfigurationError):
        load_model(path, lr)
