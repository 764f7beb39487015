from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from scgnet.core.errors import InvalidArgumentError, NullArgumentError, TrainingFailedError
from scgnet.core.init import ConstValueInitializer, random_range
from scgnet.core.network import NetworkModel
from scgnet.data import synthetic
from scgnet.data.normalize import SymmetricNormalizer
from scgnet.data.sampling import RandomSampler
from scgnet.training.config import TrainerConfig
from scgnet.training.coordinator import TrainingCoordinator
from scgnet.training.losses import error, mean_error
from scgnet.training.scg import ScgOptimizer
from scgnet.training.task import TaskOutcome


class _Capture:
    def __init__(self, name: str = "", log: list | None = None) -> None:
        self.name = name
        self.log = log if log is not None else []

    def on_training_epoch_complete(self, event) -> None:
        self.log.append((self.name, "epoch", event.epoch))

    def on_training_complete(self, event) -> None:
        self.log.append((self.name, "complete", event.epoch))

    def on_training_canceled(self, event) -> None:
        self.log.append((self.name, "canceled", event.epoch))


class _Gate(_Capture):
    """Blocks the worker on the first epoch until released."""

    def __init__(self) -> None:
        super().__init__("gate")
        self.reached = threading.Event()
        self.release = threading.Event()

    def on_training_epoch_complete(self, event) -> None:
        super().on_training_epoch_complete(event)
        if event.epoch == 1:
            self.reached.set()
            self.release.wait(timeout=30)


@pytest.fixture
def coordinator():
    coord = TrainingCoordinator(TrainerConfig(max_epoch=10), sampler=RandomSampler(0))
    yield coord
    coord.shutdown()


def test_reference_scenario(coordinator):
    inputs = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [0.5, 0.5, 0.5]])
    targets = np.array([[1.0], [0.0], [0.5]])
    net = NetworkModel(3, [2, 3], 1, ConstValueInitializer(0.1, 0.1))
    original = net.copy()
    capture = _Capture()
    coordinator.register_listener(capture)

    assert coordinator.get_trained_network() is None
    assert coordinator.training_finished()
    coordinator.start_train(net, inputs, targets)
    trained = coordinator.get_trained_network(timeout=60)

    assert coordinator.training_finished()
    assert coordinator.current_task.outcome is TaskOutcome.COMPLETED
    assert capture.log[-1][1] == "complete"
    assert net == original
    assert mean_error(trained, inputs, targets) < mean_error(net, inputs, targets)
    # returns a fresh copy every time
    assert coordinator.get_trained_network() is not trained
    assert coordinator.get_trained_network() == trained


def test_error_formula():
    outputs = np.array([0.0, 0.4, 0.9])
    targets = np.array([1.0, 1.0, 0.1])
    eps = 1e-15
    expected = np.mean(-targets * np.log(eps + outputs) - (1 - targets) * np.log(eps + 1 - outputs))
    assert error(outputs, targets) == pytest.approx(expected, rel=1e-12)
    with pytest.raises(InvalidArgumentError):
        error([0.1, 0.2], [0.1])


def test_configuration_getters():
    config = TrainerConfig(max_epoch=7, performance_goal=0.5, train_ratio=70, validation_ratio=20, test_ratio=10)
    with TrainingCoordinator(config) as coord:
        assert coord.config is config
        assert coord.max_epoch == 7
        assert coord.performance_goal == 0.5
        assert coord.train_samples_ratio == 70
        assert coord.validation_samples_ratio == 20
        assert coord.test_samples_ratio == 10


def test_inputs_are_normalised_in_place(coordinator):
    inputs = np.array([[0.0, 10.0], [4.0, 30.0], [2.0, 20.0]])
    targets = np.array([[2.0], [6.0], [4.0]])
    coordinator.start_train(NetworkModel(2, [2], 1), inputs, targets)
    coordinator.get_trained_network(timeout=60)
    np.testing.assert_allclose(inputs, [[0.0, 0.0], [1.0, 1.0], [0.5, 0.5]])
    np.testing.assert_allclose(targets, [[0.0], [1.0], [0.5]])
    sample = np.array([2.0, 30.0])
    coordinator.input_normalizer.normalize(sample)
    np.testing.assert_allclose(sample, [0.5, 1.0])


def test_custom_normalizer_factory():
    inputs = np.array([[0.0], [2.0]])
    targets = np.array([[0.0], [1.0]])
    with TrainingCoordinator(TrainerConfig(), normalizer_factory=SymmetricNormalizer) as coord:
        coord.start_train(NetworkModel(1, [1], 1), inputs, targets)
        coord.get_trained_network(timeout=60)
        assert isinstance(coord.target_normalizer, SymmetricNormalizer)
    np.testing.assert_allclose(inputs, [[-1.0], [1.0]])


def test_validation_is_synchronous(coordinator):
    net = NetworkModel(2, [2], 1)
    x, y = synthetic.xor()
    with pytest.raises(NullArgumentError):
        coordinator.start_train(None, x, y)
    with pytest.raises(NullArgumentError):
        coordinator.start_train(net, None, y)
    with pytest.raises(NullArgumentError):
        coordinator.start_train(net, x, None)
    with pytest.raises(InvalidArgumentError):
        coordinator.start_train(net, x[:3], y)
    with pytest.raises(InvalidArgumentError):
        coordinator.start_train(net, np.ones((4, 3)), y)
    with pytest.raises(InvalidArgumentError):
        coordinator.start_train(net, x, np.ones((4, 2)))
    with pytest.raises(InvalidArgumentError):
        coordinator.start_train(net, np.zeros((0, 2)), np.zeros((0, 1)))
    assert coordinator.current_task is None


def test_empty_training_subset_rejected():
    x, y = synthetic.xor()
    config = TrainerConfig(train_ratio=10, test_ratio=90)
    with TrainingCoordinator(config) as coord:
        with pytest.raises(InvalidArgumentError):
            coord.start_train(NetworkModel(2, [2], 1), x.copy(), y.copy())
        # rejected before the caller's samples are touched
        untouched = x.copy()
        with pytest.raises(InvalidArgumentError):
            coord.start_train(NetworkModel(2, [2], 1), untouched, y.copy())
        np.testing.assert_array_equal(untouched, x)


def test_stop_training_cancels_and_returns_partial_network():
    x, y = synthetic.xor()
    gate = _Gate()
    net = NetworkModel(2, [4], 1, random_range(-1, 1, -1, 1, seed=3))
    with TrainingCoordinator(TrainerConfig(max_epoch=1000, performance_goal=1e-12)) as coord:
        coord.register_listener(gate)
        coord.start_train(net, x, y)
        assert gate.reached.wait(timeout=30)
        assert not coord.training_finished()
        coord.stop_training()
        gate.release.set()
        partial = coord.get_trained_network(timeout=60)
        assert coord.training_finished()
        assert coord.current_task.outcome is TaskOutcome.CANCELED
    assert partial.shape == net.shape
    kinds = [kind for _, kind, _ in gate.log]
    assert kinds[-1] == "canceled"
    assert kinds.count("canceled") == 1
    assert "complete" not in kinds


def test_restart_cancels_previous_run():
    x, y = synthetic.xor()
    gate = _Gate()
    log = gate.log
    with TrainingCoordinator(TrainerConfig(max_epoch=1000, performance_goal=1e-12)) as coord:
        coord.register_listener(gate)
        first = coord.start_train(NetworkModel(2, [4], 1, random_range(-1, 1, -1, 1, seed=1)), x.copy(), y.copy())
        assert gate.reached.wait(timeout=30)
        coord.remove_listener(gate)
        coord.register_listener(_Capture("second", log))
        second = coord.start_train(NetworkModel(2, [4], 1, random_range(-1, 1, -1, 1, seed=2)), x.copy(), y.copy())
        assert first.cancel_requested
        gate.release.set()
        coord.stop_training()
        coord.get_trained_network(timeout=60)
        assert first.wait(timeout=60)
        assert first.outcome is TaskOutcome.CANCELED
        assert second.done()
    # both terminal events reach whoever is registered when they fire
    assert [(name, kind) for name, kind, _ in log if kind != "epoch"] == [
        ("second", "canceled"),
        ("second", "canceled"),
    ]


def test_listener_order_and_terminal_event():
    x, y = synthetic.xor()
    log: list = []
    with TrainingCoordinator(TrainerConfig(max_epoch=5, performance_goal=1e-9)) as coord:
        coord.register_listener(_Capture("a", log))
        coord.register_listener(_Capture("b", log))
        coord.start_train(NetworkModel(2, [3], 1, random_range(-1, 1, -1, 1, seed=9)), x, y)
        coord.get_trained_network(timeout=60)
    names = [name for name, _, _ in log]
    assert names == ["a", "b"] * (len(log) // 2)
    kinds = [kind for _, kind, _ in log]
    assert kinds[-2:] == ["complete", "complete"]
    assert "canceled" not in kinds
    assert all(kind == "epoch" for kind in kinds[:-2])


def test_failure_is_reraised_and_worker_stays_usable(monkeypatch):
    x, y = synthetic.xor()
    capture = _Capture()

    def boom(self):
        raise FloatingPointError("numerical failure")

    with TrainingCoordinator(TrainerConfig(max_epoch=3)) as coord:
        coord.register_listener(capture)
        monkeypatch.setattr(ScgOptimizer, "_train", boom)
        coord.start_train(NetworkModel(2, [2], 1), x.copy(), y.copy())
        with pytest.raises(TrainingFailedError) as info:
            coord.get_trained_network(timeout=60)
        assert isinstance(info.value.__cause__, FloatingPointError)
        assert info.value.network == NetworkModel(2, [2], 1)
        assert capture.log[-1][1] == "canceled"

        monkeypatch.undo()
        coord.start_train(NetworkModel(2, [2], 1, random_range(-1, 1, -1, 1, seed=0)), x.copy(), y.copy())
        assert coord.get_trained_network(timeout=60) is not None
        assert capture.log[-1][1] == "complete"


def test_listener_registration_requires_listener(coordinator):
    with pytest.raises(NullArgumentError):
        coordinator.register_listener(None)
    with pytest.raises(NullArgumentError):
        coordinator.remove_listener(None)


def test_start_after_shutdown_is_rejected_before_touching_samples():
    x, y = synthetic.xor()
    coord = TrainingCoordinator(TrainerConfig(max_epoch=5, performance_goal=1e-9))
    first = coord.start_train(NetworkModel(2, [3], 1, random_range(-1, 1, -1, 1, seed=9)), x.copy(), y.copy())
    coord.get_trained_network(timeout=60)
    coord.shutdown()

    samples = 3.0 * x + 1.0
    with pytest.raises(RuntimeError):
        coord.start_train(NetworkModel(2, [3], 1), samples, y.copy())
    assert coord.current_task is first
    assert coord.training_finished()
    np.testing.assert_array_equal(samples, 3.0 * x + 1.0)


def test_rejected_submit_keeps_previous_run():
    x, y = synthetic.xor()
    gate = _Gate()
    executor = ThreadPoolExecutor(max_workers=1)
    coord = TrainingCoordinator(TrainerConfig(max_epoch=1000, performance_goal=1e-12), executor=executor)
    coord.register_listener(gate)
    first = coord.start_train(NetworkModel(2, [4], 1, random_range(-1, 1, -1, 1, seed=3)), x.copy(), y.copy())
    normalizer = coord.input_normalizer
    assert gate.reached.wait(timeout=30)

    executor.shutdown(wait=False)
    with pytest.raises(RuntimeError):
        coord.start_train(NetworkModel(2, [4], 1), x.copy(), y.copy())
    assert coord.current_task is first
    assert not first.cancel_requested
    assert coord.input_normalizer is normalizer

    coord.stop_training()
    gate.release.set()
    assert first.wait(timeout=60)
    assert first.outcome is TaskOutcome.CANCELED
    assert coord.training_finished()


def test_shutdown_cancels_running_training():
    x, y = synthetic.sine(n_points=64)
    gate = _Gate()
    coord = TrainingCoordinator(TrainerConfig(max_epoch=100000, performance_goal=1e-12))
    coord.register_listener(gate)
    task = coord.start_train(NetworkModel(1, [8], 1, random_range(-1, 1, -1, 1, seed=4)), x, y)
    assert gate.reached.wait(timeout=30)

    closer = threading.Thread(target=coord.shutdown)
    closer.start()
    gate.release.set()
    closer.join(timeout=30)
    assert not closer.is_alive()
    assert task.done()
    assert task.outcome is TaskOutcome.CANCELED
    assert task.event.epoch < 100000
    assert gate.log[-1][1] == "canceled"


def test_shutdown_finishes_runs_queued_behind_the_current_one():
    x, y = synthetic.xor()
    gate = _Gate()
    coord = TrainingCoordinator(TrainerConfig(max_epoch=100000, performance_goal=1e-12))
    coord.register_listener(gate)
    first = coord.start_train(NetworkModel(2, [4], 1, random_range(-1, 1, -1, 1, seed=1)), x.copy(), y.copy())
    assert gate.reached.wait(timeout=30)
    second = coord.start_train(NetworkModel(2, [4], 1, random_range(-1, 1, -1, 1, seed=2)), x.copy(), y.copy())

    closer = threading.Thread(target=coord.shutdown)
    closer.start()
    gate.release.set()
    closer.join(timeout=30)
    assert not closer.is_alive()
    assert first.outcome is TaskOutcome.CANCELED
    assert second.outcome is TaskOutcome.CANCELED
    assert second.result(timeout=0).shape == NetworkModel(2, [4], 1).shape
