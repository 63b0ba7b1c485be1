"""
test_model.py
~~~~~~~~~~~~~

Tests for the layer graph, the loss layers and the training loop.
"""

import numpy as np
import pytest

from ffnet import (
    Activation,
    CrossEntropyLoss,
    DenseLayer,
    GDOptimizer,
    GraphCycleError,
    InvalidStateError,
    MeanSquaredErrorLoss,
    Model,
    ShapeMismatchError,
)
from ffnet.layers import is_trainable, param_count


def xor_data():
    X = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
    Y = np.array([[1.0, 0.0], [0.0, 1.0], [0.0, 1.0], [1.0, 0.0]])
    return X, Y


@pytest.fixture
def xor_model():
    model = Model(name="xor", seed=0)
    hidden = DenseLayer(model, "hidden", Activation.RELU, output_size=8, input_size=2)
    output = DenseLayer(model, "output", Activation.LINEAR, output_size=2, input_size=8)
    loss = MeanSquaredErrorLoss(model, "loss", input_size=2)
    model.connect(hidden, output)
    model.connect(output, loss)
    model.init()
    return model, hidden, output, loss


class CountingOptimizer(GDOptimizer):
    def __init__(self, eta):
        super().__init__(eta)
        self.calls = 0

    def train(self, layer):
        self.calls += 1
        super().train(layer)


@pytest.mark.unit
class TestTopology:
    """Handles, edges and graph validation."""

    def test_handles_are_stable_indices(self, model, make_probe):
        a = make_probe(model, "a")
        b = make_probe(model, "b")
        assert (a.handle, b.handle) == (0, 1)
        assert model.layer(1) is b
        assert len(model) == 2

    def test_connect_records_both_directions(self, model, make_probe):
        a = make_probe(model, "a")
        b = make_probe(model, "b")
        c = make_probe(model, "c")
        model.connect(a, b)
        model.connect(a, c)
        assert a.subsequents == [b, c]
        assert b.antecedents == [a]
        assert model.input_layers() == [a]
        assert model.output_layers() == [b, c]

    def test_connect_checks_sizes(self, model):
        first = DenseLayer(model, "first", Activation.RELU, output_size=3, input_size=2)
        second = DenseLayer(model, "second", Activation.LINEAR, output_size=1, input_size=4)
        with pytest.raises(ShapeMismatchError):
            model.connect(first, second)

    def test_connect_rejects_self_loop(self, model, make_probe):
        a = make_probe(model)
        with pytest.raises(ValueError):
            model.connect(a, a)

    def test_connect_rejects_foreign_layer(self, model, make_probe):
        a = make_probe(model, "a")
        other = make_probe(Model(name="other"), "b")
        with pytest.raises(ValueError):
            model.connect(a, other)

    def test_topological_order(self, model, make_probe):
        c = make_probe(model, "c")
        a = make_probe(model, "a")
        b = make_probe(model, "b")
        model.connect(a, b)
        model.connect(b, c)
        assert [L.name for L in model.topological_order()] == ["a", "b", "c"]

    def test_cycle_detected_on_init(self, model, make_probe):
        a = make_probe(model, "a")
        b = make_probe(model, "b")
        model.connect(a, b)
        model.connect(b, a)
        with pytest.raises(GraphCycleError):
            model.init()

    def test_init_runs_once(self, model, make_probe):
        make_probe(model)
        model.init()
        with pytest.raises(InvalidStateError):
            model.init()

    def test_forward_before_init_raises(self, model, make_probe):
        make_probe(model)
        with pytest.raises(InvalidStateError):
            model.forward([1.0])

    def test_parameterless_capability(self, model, make_probe):
        probe = make_probe(model)
        assert not is_trainable(probe)
        assert param_count(probe) == 0


@pytest.mark.unit
class TestLossLayers:
    """Cross-entropy and MSE nodes at the end of the graph."""

    y = [0.0, 0.0, 0.0, 0.0, 1.0]
    y_hat = [0.1, 0.1, 0.25, 0.05, 0.5]

    def test_cross_entropy_forward_and_reverse(self, model, make_probe):
        probe = make_probe(model)
        loss = CrossEntropyLoss(model, "ce", input_size=5)
        model.connect(probe, loss)
        model.init()

        loss.set_target(self.y)
        model.forward(self.y_hat)
        assert loss.loss == pytest.approx(0.6931471805599453)
        assert loss.correct == 1

        model.reverse()
        np.testing.assert_allclose(probe.seen_gradients[0], [0, 0, 0, 0, -2.0])

    def test_batch_size_scales_gradient(self, model, make_probe):
        probe = make_probe(model)
        loss = CrossEntropyLoss(model, "ce", input_size=5, batch_size=2)
        model.connect(probe, loss)
        model.init()

        loss.set_target(self.y)
        model.forward(self.y_hat)
        model.reverse()
        np.testing.assert_allclose(probe.seen_gradients[0], [0, 0, 0, 0, -1.0])

    def test_mean_squared_error(self, model, make_probe):
        probe = make_probe(model)
        loss = MeanSquaredErrorLoss(model, "mse", input_size=5)
        model.connect(probe, loss)
        model.init()

        loss.set_target(np.ones(5))
        model.forward([1.1, 0.1, 1.2, 1.5, 0.5])
        assert loss.loss == pytest.approx(0.272)
        model.reverse()
        np.testing.assert_allclose(probe.seen_gradients[0], [0.2, -1.8, 0.4, 1.0, -1.0])

    def test_running_score(self, model, make_probe):
        probe = make_probe(model)
        loss = MeanSquaredErrorLoss(model, "mse", input_size=2)
        model.connect(probe, loss)
        model.init()

        loss.set_target([1.0, 0.0])
        model.forward([1.0, 0.0])
        model.forward([0.0, 1.0])
        assert loss.samples == 2
        assert loss.accuracy == 0.5
        assert loss.mean_loss == pytest.approx(0.5)

        loss.reset_score()
        assert loss.samples == 0
        assert loss.mean_loss == 0.0

    def test_forward_without_target_raises(self, model, make_probe):
        probe = make_probe(model)
        loss = MeanSquaredErrorLoss(model, "mse", input_size=2)
        model.connect(probe, loss)
        model.init()
        with pytest.raises(InvalidStateError):
            model.forward([1.0, 0.0])

    def test_reverse_before_forward_raises(self, model):
        loss = MeanSquaredErrorLoss(model, "mse", input_size=2)
        model.init()
        loss.set_target([1.0, 0.0])
        with pytest.raises(InvalidStateError):
            loss.reverse()

    def test_target_length_checked(self, model):
        loss = MeanSquaredErrorLoss(model, "mse", input_size=2)
        with pytest.raises(ShapeMismatchError):
            loss.set_target([1.0, 0.0, 0.0])


@pytest.mark.integration
class TestTraining:
    """Model.fit end to end."""

    def test_loss_decreases(self, xor_model):
        model, _, _, _ = xor_model
        X, Y = xor_data()
        history = model.fit(X, Y, GDOptimizer(0.05), epochs=200, verbose=0)
        assert len(history["loss"]) == 200
        assert history["loss"][-1] < history["loss"][0]

    def test_optimizer_steps_per_batch(self, xor_model):
        model, _, _, _ = xor_model
        X, Y = xor_data()
        optimizer = CountingOptimizer(0.01)
        model.fit(X[:3], Y[:3], optimizer, epochs=1, batch_size=2, verbose=0)
        # one full batch and one trailing partial batch, three layers each
        assert optimizer.calls == 2 * len(model)

    def test_gradients_clear_after_fit(self, xor_model):
        model, hidden, output, _ = xor_model
        X, Y = xor_data()
        model.fit(X, Y, GDOptimizer(0.05), epochs=3, batch_size=4, verbose=0)
        for layer in (hidden, output):
            assert not np.any(layer.weight_gradients)
            assert not np.any(layer.bias_gradients)

    def test_fit_is_reproducible(self):
        def run():
            model = Model(seed=21)
            hidden = DenseLayer(model, "hidden", Activation.RELU, output_size=4, input_size=2)
            output = DenseLayer(model, "output", Activation.LINEAR, output_size=2, input_size=4)
            loss = MeanSquaredErrorLoss(model, "loss", input_size=2)
            model.connect(hidden, output)
            model.connect(output, loss)
            model.init()
            X, Y = xor_data()
            model.fit(X, Y, GDOptimizer(0.05), epochs=5, verbose=0)
            return output.weights.copy()

        np.testing.assert_array_equal(run(), run())

    def test_evaluate_and_predict(self, xor_model):
        model, _, output, _ = xor_model
        X, Y = xor_data()
        mean_loss, acc = model.evaluate(X, Y)
        assert mean_loss > 0.0
        assert 0.0 <= acc <= 1.0
        prediction = model.predict(X[0], output)
        assert prediction.shape == (2,)

    def test_fit_logs_epochs(self, xor_model, tmp_path):
        from ffnet.helpers.logger import RunLogger

        model, _, _, _ = xor_model
        X, Y = xor_data()
        logger = RunLogger(root=tmp_path, tag="xor")
        model.fit(X, Y, GDOptimizer(0.05), epochs=3, verbose=0, logger=logger)
        assert [row["epoch"] for row in logger.metrics] == [1, 2, 3]
        assert logger.json_path.exists()

    def test_mismatched_labels_rejected(self, xor_model):
        model, _, _, _ = xor_model
        X, Y = xor_data()
        with pytest.raises(ShapeMismatchError):
            model.fit(X, Y[:2], GDOptimizer(0.05), epochs=1, verbose=0)

    def test_evaluate_rejects_mismatched_labels(self, xor_model):
        model, _, _, _ = xor_model
        X, Y = xor_data()
        with pytest.raises(ShapeMismatchError):
            model.evaluate(X, Y[:2])

    def test_batch_gradient_is_averaged(self):
        """Each optimizer step sees the mean gradient of its batch."""
        model = Model(seed=1)
        layer = DenseLayer(model, "linear", Activation.LINEAR, output_size=1, input_size=1)
        loss = MeanSquaredErrorLoss(model, "loss", input_size=1)
        model.connect(layer, loss)
        model.init()
        layer.biases[...] = 0.0

        seen = []

        class RecordingOptimizer(GDOptimizer):
            def train(self, trained):
                if trained is layer:
                    seen.append(layer.bias_gradients.copy())
                super().train(trained)

        model.fit(np.zeros((4, 1)), np.ones((4, 1)), RecordingOptimizer(0.1),
                  epochs=1, batch_size=4, shuffle=False, verbose=0)

        # every sample contributes dJ/db = 2 (0 - 1)
        assert len(seen) == 1
        np.testing.assert_allclose(seen[0], [-2.0])
        assert loss.batch_size == 1

    def test_loss_must_be_unambiguous(self, model, make_probe):
        probe = make_probe(model)
        first = MeanSquaredErrorLoss(model, "first", input_size=2)
        second = MeanSquaredErrorLoss(model, "second", input_size=2)
        model.connect(probe, first)
        model.connect(probe, second)
        model.init()
        X, Y = xor_data()
        with pytest.raises(ValueError):
            model.fit(X, Y, GDOptimizer(0.05), epochs=1, verbose=0)
