"""
Unit tests for the Result envelope.
"""

import pytest

from service_directory.app.domain.result import Result


class TestResult:
    """Test cases for Result."""

    def test_handled_carries_data(self):
        """Test a handled result exposes its data and no message."""
        result = Result.handled([1, 2])

        assert result.is_handled is True
        assert result.is_error is False
        assert result.data == [1, 2]
        assert result.message is None

    def test_error_carries_message(self):
        """Test an error result exposes its message and no data."""
        result = Result.error("No employees found")

        assert result.is_error is True
        assert result.is_handled is False
        assert result.message == "No employees found"
        assert result.data is None

    def test_structural_equality(self):
        """Test results compare by variant and contents."""
        assert Result.handled(("a",)) == Result.handled(("a",))
        assert Result.error("boom") == Result.error("boom")
        assert Result.handled(("a",)) != Result.handled(("b",))
        assert Result.error("boom") != Result.error("bang")

    def test_variants_never_equal(self):
        """Test a handled None is not equal to an error."""
        assert Result.handled(None) != Result.error("None")

    def test_error_rejects_data(self):
        """Test the error variant cannot be built with data."""
        with pytest.raises(ValueError):
            Result(kind="error", data=[1], message="boom")

    def test_error_requires_message(self):
        """Test the error constructor rejects a missing message."""
        with pytest.raises(ValueError):
            Result.error(None)

    def test_handled_rejects_message(self):
        """Test the handled variant cannot be built with a message."""
        with pytest.raises(ValueError):
            Result(kind="handled", data=[1], message="boom")

    def test_unknown_kind_rejected(self):
        """Test an unknown variant tag is rejected."""
        with pytest.raises(ValueError):
            Result(kind="maybe")

    def test_results_are_immutable(self):
        """Test results cannot be mutated after construction."""
        result = Result.handled(())
        with pytest.raises(Exception):
            result.data = (1,)

    def test_repr_names_variant(self):
        """Test repr shows the constructor used."""
        assert repr(Result.error("x")) == "Result.error('x')"
        assert repr(Result.handled(1)) == "Result.handled(1)"
