"""
Tests for request decoding and line-count clamping.
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from logviewer_mcp.config.settings import LogViewerConfig
from logviewer_mcp.exceptions import ErrorCategory, RequestValidationError
from logviewer_mcp.models.request import LogRequest


@pytest.fixture
def bounds():
    return LogViewerConfig(_env_file=None, min_lines=10, max_lines=500, default_lines=100)


class TestLogRequest:
    """Tests for LogRequest.from_params."""

    @pytest.mark.parametrize("params", [None, {}, {"lines": None}, {"lines": ""}, {"lines": "   "}])
    def test_missing_uses_default(self, bounds, params):
        assert LogRequest.from_params(params, bounds).lines == 100

    @pytest.mark.parametrize("raw", ["abc", "12abc", "1e3", "--5"])
    def test_non_numeric_text_uses_default(self, bounds, raw):
        assert LogRequest.from_params({"lines": raw}, bounds).lines == 100

    @pytest.mark.parametrize("raw", [0, -1, "0", "-20"])
    def test_non_positive_uses_default(self, bounds, raw):
        assert LogRequest.from_params({"lines": raw}, bounds).lines == 100

    def test_numeric_string(self, bounds):
        assert LogRequest.from_params({"lines": "250"}, bounds).lines == 250

    def test_quoted_numeric_string(self, bounds):
        assert LogRequest.from_params({"lines": '"250"'}, bounds).lines == 250

    def test_whitespace_around_number(self, bounds):
        assert LogRequest.from_params({"lines": " 42 "}, bounds).lines == 42

    def test_clamped_to_max(self, bounds):
        assert LogRequest.from_params({"lines": 99999}, bounds).lines == 500

    def test_clamped_to_min(self, bounds):
        assert LogRequest.from_params({"lines": 3}, bounds).lines == 10

    def test_whole_float_accepted(self, bounds):
        assert LogRequest.from_params({"lines": 200.0}, bounds).lines == 200

    @pytest.mark.parametrize("raw", [True, False, [10], {"n": 10}, 12.5])
    def test_uncountable_types_rejected(self, bounds, raw):
        with pytest.raises(RequestValidationError) as exc_info:
            LogRequest.from_params({"lines": raw}, bounds)

        error = exc_info.value
        assert error.status_code == 400
        assert error.category == ErrorCategory.VALIDATION
        assert error.context["field"] == "lines"

    def test_default_configuration(self):
        config = LogViewerConfig(_env_file=None)
        assert LogRequest.from_params({}, config).lines == 2000
        assert LogRequest.from_params({"lines": 50000}, config).lines == 10000

    @pytest.mark.property
    @given(st.integers(min_value=-10**6, max_value=10**6))
    def test_result_always_within_bounds(self, n):
        config = LogViewerConfig(_env_file=None, min_lines=10, max_lines=500, default_lines=100)

        lines = LogRequest.from_params({"lines": n}, config).lines

        assert 10 <= lines <= 500
        if 10 <= n <= 500:
            assert lines == n
