import pytest

from SIFT.errors import ExpressionError
from SIFT.query import NO_RESULT, compile_expression


class TestCompileExpression:

    def test_valid_expression(self):
        expression = compile_expression('.level')
        assert expression.text == '.level'

    @pytest.mark.parametrize("text", ["", "   ", ".[", "if then"])
    def test_invalid_expression_raises(self, text):
        with pytest.raises(ExpressionError):
            compile_expression(text)


class TestExpressionFirst:

    def test_first_result(self):
        assert compile_expression('.a').first({"a": 5}) == 5

    def test_only_first_of_many_results(self):
        assert compile_expression('.a, .b').first({"a": 1, "b": 2}) == 1

    def test_empty_stream(self):
        result = compile_expression('empty').first({"a": 1})
        assert result is NO_RESULT
        assert not result

    def test_runtime_error_raises(self):
        with pytest.raises(ExpressionError):
            compile_expression('.a.b').first({"a": 5})
