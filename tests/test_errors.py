"""
Tests for the error taxonomy.
"""
import pytest

from bank_processing.errors import (
    BankProcessingError,
    BatchFailedError,
    ConfigError,
    DuplicateFeatureIdError,
    ErrorCode,
    ErrorContext,
    ExternalCallError,
    FeatureExecutionError,
    InvalidBankError,
    InvalidOptionsError,
    MissingProviderError,
    NoResultError,
    ReplayError,
    ReplayMissError,
    ReplayRecordedError,
    UnsupportedRequestError,
    describe_error,
    serialize_error,
)


class TestErrorCodes:
    """Test error code enumeration."""

    def test_error_codes_are_strings(self):
        """Test that error codes are strings."""
        assert ErrorCode.REPLAY_MISS.value.startswith("ERR_")
        assert ErrorCode.MISSING_PROVIDER.value.startswith("ERR_")

    def test_error_codes_unique(self):
        """Test that all error codes are unique."""
        values = [e.value for e in ErrorCode]
        assert len(values) == len(set(values))


class TestErrorContext:
    """Test error context."""

    def test_to_dict(self):
        """Test context serialization."""
        ctx = ErrorContext(bank_id="lesson-01", feature_id="vdu-kirciuoklis-1", extra={"attempt": 2})

        d = ctx.to_dict()

        assert d["bank_id"] == "lesson-01"
        assert d["feature_id"] == "vdu-kirciuoklis-1"
        assert d["attempt"] == 2


class TestBankProcessingError:
    """Test the base error."""

    def test_create_error(self):
        error = BankProcessingError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR

    def test_to_dict(self):
        """Test error serialization."""
        cause = RuntimeError("socket closed")
        error = ExternalCallError("External call failed", context=ErrorContext(provider="vdu"), cause=cause)

        d = error.to_dict()

        assert d["error_type"] == "ExternalCallError"
        assert d["code"] == ErrorCode.EXTERNAL_CALL.value
        assert d["context"]["provider"] == "vdu"
        assert d["cause"] == "socket closed"


class TestConfigErrors:
    """Preflight errors share the ConfigError base."""

    @pytest.mark.parametrize(
        "error",
        [
            InvalidBankError("bad"),
            MissingProviderError(["a"]),
            DuplicateFeatureIdError([("x", 1)]),
            InvalidOptionsError("p", 0, "nope"),
        ],
    )
    def test_hierarchy(self, error):
        assert isinstance(error, ConfigError)

    def test_missing_provider_message(self):
        error = MissingProviderError(["translategemma", "vdu_kirciuoklis"])

        assert str(error) == "Missing plugins for providers: translategemma, vdu_kirciuoklis"
        assert error.providers == ["translategemma", "vdu_kirciuoklis"]

    def test_duplicate_ids_message(self):
        error = DuplicateFeatureIdError([("x", 2), ("y", 3)])

        assert str(error) == 'Duplicate feature id "x" at feature index 2; Duplicate feature id "y" at feature index 3'


class TestExecutionErrors:
    def test_no_result_default_message(self):
        assert str(NoResultError()) == "No result for input"

    def test_feature_execution_message(self):
        error = FeatureExecutionError("vdu-kirciuoklis-1", "ačiū", "VDU API error (500)")

        assert str(error) == 'Feature "vdu-kirciuoklis-1" failed for input "ačiū": VDU API error (500)'
        assert error.input == "ačiū"

    def test_replay_errors(self):
        miss = ReplayMissError("abc")
        recorded = ReplayRecordedError("abc")

        assert str(miss) == "Replay miss for key=abc"
        assert str(recorded) == "Replay error for key=abc"
        assert isinstance(miss, ReplayError) and miss.key == "abc"
        assert not isinstance(miss, ExternalCallError)

    def test_unsupported_request(self):
        error = UnsupportedRequestError()

        assert isinstance(error, ExternalCallError)
        assert str(error) == "Unsupported external request format"

    def test_batch_failed_lists_each_bank(self):
        error = BatchFailedError({"a": ValueError("one"), "b": MissingProviderError(["p"])})

        assert str(error) == "[a] one\n[b] Missing plugins for providers: p"
        assert set(error.failures) == {"a", "b"}


class TestUtilities:
    def test_describe_error(self):
        assert describe_error(InvalidBankError("Invalid JSON in x.json")) == "Invalid JSON in x.json"
        assert describe_error(RuntimeError("kaput")) == "kaput"
        assert describe_error(TimeoutError()) == "TimeoutError"

    def test_serialize_external_error(self):
        error = ExternalCallError("External call failed: 503 busy", http_status=503, body="busy")

        assert serialize_error(error) == {
            "name": "ExternalCallError",
            "message": "External call failed: 503 busy",
            "status": 503,
        }

    def test_serialize_plain_error(self):
        assert serialize_error(ValueError("bad")) == {"name": "ValueError", "message": "bad"}
