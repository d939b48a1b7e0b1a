"""Tests for JSON extraction from model output."""

import json

from sf_cicd.ai.extract import extract_json


class TestFencedBlocks:
    """Tests for ```json fenced blocks."""

    def test_fenced_block_inner_content(self):
        """Test only the fence delimiters are removed."""
        text = 'prefix text ```json\n{"a":1}\n``` suffix'

        assert extract_json(text) == '{"a":1}'

    def test_fenced_block_preferred_over_earlier_braces(self):
        """Test a fenced block wins over braces in the surrounding prose."""
        text = 'Use {curly} braces.\n```json\n{"score": 8}\n```'

        assert extract_json(text) == '{"score": 8}'

    def test_multiline_fenced_block(self):
        """Test a pretty-printed object is returned verbatim."""
        body = '{\n  "overall_score": 7,\n  "issues": []\n}'
        text = f"Review:\n```json\n{body}\n```\n"

        assert extract_json(text) == body

    def test_single_line_fence(self):
        """Test a fence opened and closed on one line."""
        assert extract_json('```json {"a": 2}```\nmore text') == '{"a": 2}'

    def test_unterminated_fence(self):
        """Test an unterminated fence returns the rest of the text."""
        assert extract_json('```json\n{"a": 3}') == '{"a": 3}'


class TestBraceMatching:
    """Tests for depth-counted brace matching."""

    def test_nested_braces(self):
        """Test nested objects are matched by depth."""
        text = 'noise {"a": {"b": 1}} trailing'

        assert extract_json(text) == '{"a": {"b": 1}}'

    def test_stops_at_first_balanced_object(self):
        """Test braces after the object are not included."""
        text = 'Result: {"a": 1} and later {"b": 2}'

        assert extract_json(text) == '{"a": 1}'

    def test_braces_inside_strings_ignored(self):
        """Test braces in string literals do not affect depth."""
        text = 'answer {"msg": "use } and { carefully", "n": {"x": "\\"}"}} end'

        result = extract_json(text)

        assert json.loads(result) == {"msg": "use } and { carefully", "n": {"x": '"}'}}

    def test_unbalanced_returns_tail(self):
        """Test unbalanced input returns the candidate from the first brace."""
        assert extract_json('oops {"a": {"b": 1}') == '{"a": {"b": 1}'


class TestPassThrough:
    """Tests for input without JSON markers."""

    def test_plain_text_unchanged(self):
        """Test text without braces or fences is returned unchanged."""
        assert extract_json("no structured data here") == "no structured data here"

    def test_empty_string(self):
        """Test empty input."""
        assert extract_json("") == ""
