"""Test guard and callback evaluation."""

import pytest

from state_machines.core.eval_helpers import Evaluator, evaluate_method, is_deferred


class Host:
    """Object exposing named methods."""

    def ready(self):
        return True

    def check(self, value):
        return value

    def collect(self, *args):
        return args

    @property
    def moving(self):
        return False


class TestEvaluator:
    """Test argument passing by arity."""

    def test_zero_argument_callable(self):
        """Test callables without parameters receive nothing."""
        assert Evaluator(lambda: 1)(Host(), 2) == 1

    def test_object_callable(self):
        """Test single parameter callables receive the object."""
        host = Host()
        assert Evaluator(lambda obj: obj)(host, 2) is host

    def test_extra_arguments_are_truncated(self):
        """Test callables receive only as many arguments as they accept."""
        host = Host()
        assert Evaluator(lambda obj, value: (obj, value))(host, 2, 3) == (host, 2)

    def test_variadic_callable(self):
        """Test variadic callables receive every argument."""
        assert Evaluator(lambda obj, *args: args)(Host(), 2, 3) == (2, 3)

    def test_named_methods(self):
        """Test named methods are looked up on the object without it as an argument."""
        host = Host()
        assert Evaluator("ready")(host, 1, 2) is True
        assert Evaluator("check")(host, 1, 2) == 1
        assert Evaluator("collect")(host, 1, 2) == (1, 2)

    def test_named_property(self):
        """Test named attributes that are not methods are returned as they are."""
        assert Evaluator("moving")(Host(), 1) is False

    def test_missing_named_method(self):
        """Test unknown method names fail on the object."""
        with pytest.raises(AttributeError):
            Evaluator("missing")(Host())

    def test_rejects_invalid_methods(self):
        """Test non-callable values are rejected."""
        with pytest.raises(TypeError):
            Evaluator(42)

    def test_is_generator(self):
        """Test generator detection."""
        def around(obj):
            yield

        assert Evaluator(around).is_generator
        assert not Evaluator(lambda: None).is_generator
        assert not Evaluator("ready").is_generator


class TestHelpers:
    """Test module helpers."""

    def test_evaluate_method(self):
        """Test evaluating names, callables and evaluators."""
        host = Host()
        assert evaluate_method(host, "check", 5) == 5
        assert evaluate_method(host, lambda obj, value: value * 2, 5) == 10
        assert evaluate_method(host, Evaluator("ready")) is True

    def test_is_deferred(self):
        """Test only non-class callables are deferred values."""
        assert is_deferred(lambda: 1)
        assert not is_deferred(1)
        assert not is_deferred("parked")
        assert not is_deferred(str)
