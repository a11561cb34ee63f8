"""
Unit tests for the method contract and the inbuilt methods.
"""

import pytest

from src.core.exceptions import (
    InvalidResponseError,
    SchemaError,
    ScriptNotFoundError,
    ScriptRuntimeError,
)
from src.learning import list_inbuilt, load_method, load_method_source
from src.learning.methods import to_plain_data

DAY = 86400

BASE = '''
def get_default_metadata():
    return {"n": 0}


def get_weight(data, difficult):
    return 1


def adjust_card(response, data, difficult):
    return data, False
'''


def method_with(sandbox, body, responses='["a", "b"]'):
    return load_method_source("custom", f"RESPONSES = {responses}\n{BASE}\n{body}", sandbox)


class TestLoading:
    """Resolving and validating method scripts."""

    def test_inbuilt_methods_listed(self):
        assert list_inbuilt("methods") == ["sm2", "speed"]

    def test_responses_in_declared_order(self, sm2, speed):
        assert sm2.responses == ("0", "1", "2", "3", "4", "5")
        assert speed.responses == ("y", "n")

    def test_custom_method_from_path(self, tmp_path, sandbox):
        path = tmp_path / "mine.rpy"
        path.write_text('RESPONSES = ["ok"]\n' + BASE, encoding="utf-8")
        method = load_method(str(path), sandbox)
        assert method.name == str(path)
        assert method.responses == ("ok",)

    def test_unknown_method(self, sandbox, tmp_path):
        with pytest.raises(ScriptNotFoundError):
            load_method(str(tmp_path / "nothing-here.rpy"), sandbox)

    def test_missing_responses(self, sandbox):
        with pytest.raises(SchemaError, match="RESPONSES"):
            load_method_source("custom", BASE, sandbox)

    def test_empty_responses(self, sandbox):
        with pytest.raises(SchemaError):
            method_with(sandbox, "", responses="[]")

    def test_duplicate_responses(self, sandbox):
        with pytest.raises(SchemaError, match="duplicates"):
            method_with(sandbox, "", responses='["a", "a"]')

    def test_missing_function(self, sandbox):
        source = 'RESPONSES = ["a"]\n\ndef get_weight(data, difficult):\n    return 1\n'
        with pytest.raises(SchemaError, match="adjust_card"):
            load_method_source("custom", source, sandbox)


class TestContract:
    """Validation of what method functions return."""

    @pytest.mark.parametrize("value", ["-1", "'heavy'", "True", "float('nan')"])
    def test_bad_weight(self, sandbox, value):
        method = method_with(sandbox, f"\ndef get_weight(data, difficult):\n    return {value}\n")
        with pytest.raises(SchemaError):
            method.get_weight({"n": 0}, False)

    def test_integer_weight_accepted(self, sandbox):
        method = method_with(sandbox, "")
        assert method.get_weight({"n": 0}, False) == 1.0

    def test_invalid_response_does_not_run_script(self, sandbox):
        method = method_with(
            sandbox,
            "\ndef adjust_card(response, data, difficult):\n    raise ValueError('ran')\n",
        )
        with pytest.raises(InvalidResponseError):
            method.adjust_card("c", {"n": 0}, False)
        # A permitted response does reach the script
        with pytest.raises(ScriptRuntimeError):
            method.adjust_card("a", {"n": 0}, False)

    def test_adjust_must_return_pair(self, sandbox):
        method = method_with(
            sandbox, "\ndef adjust_card(response, data, difficult):\n    return data\n"
        )
        with pytest.raises(SchemaError):
            method.adjust_card("a", {"n": 0}, False)

    def test_difficult_must_be_bool(self, sandbox):
        method = method_with(
            sandbox, "\ndef adjust_card(response, data, difficult):\n    return data, 1\n"
        )
        with pytest.raises(SchemaError, match="bool"):
            method.adjust_card("a", {"n": 0}, False)

    def test_data_must_be_json(self, sandbox):
        method = method_with(
            sandbox,
            "\ndef adjust_card(response, data, difficult):\n    return get_weight, False\n",
        )
        with pytest.raises(SchemaError):
            method.adjust_card("a", {"n": 0}, False)

    @pytest.mark.parametrize("value", ["float('nan')", "float('inf')", "-float('inf')"])
    def test_adjust_rejects_non_finite_data(self, sandbox, value):
        method = method_with(
            sandbox,
            f"\ndef adjust_card(response, data, difficult):\n    return {{'n': {value}}}, False\n",
        )
        with pytest.raises(SchemaError) as exc_info:
            method.adjust_card("a", {"n": 0}, False, card_id="card-7")
        error = exc_info.value
        assert error.script == "custom"
        assert error.phase == "adjust_card"
        assert error.card_id == "card-7"

    def test_default_metadata_rejects_nan(self, sandbox):
        method = method_with(
            sandbox, "\ndef get_default_metadata():\n    return {'x': [float('nan')]}\n"
        )
        with pytest.raises(SchemaError) as exc_info:
            method.get_default_metadata()
        assert exc_info.value.script == "custom"
        assert exc_info.value.phase == "get_default_metadata"

    def test_data_passed_by_value(self, sandbox):
        method = method_with(
            sandbox,
            "\ndef adjust_card(response, data, difficult):\n"
            "    data['n'] = 99\n"
            "    raise ValueError('after mutation')\n",
        )
        data = {"n": 0}
        with pytest.raises(ScriptRuntimeError):
            method.adjust_card("a", data, False)
        assert data == {"n": 0}

    def test_returned_data_is_detached(self, sandbox):
        method = method_with(sandbox, "")
        data = {"n": [1]}
        new_data, _ = method.adjust_card("a", data, False)
        new_data["n"].append(2)
        assert data == {"n": [1]}

    def test_to_plain_data_accepts_nested_json(self):
        value = {"a": [1, 2.5, None, True, "x"], "b": {"c": []}}
        assert to_plain_data(value) == value


class TestSm2:
    """SuperMemo 2 inbuilt method."""

    def test_default_metadata(self, sm2):
        assert sm2.get_default_metadata() == {
            "easiness": 2.5,
            "repetitions": 0,
            "interval": 1,
            "next_review": 0,
        }

    def test_three_perfect_reviews(self, sm2, clock):
        data = sm2.get_default_metadata()
        expected = [(2.6, 1, 1), (2.7, 2, 6), (2.8, 3, 17)]

        for easiness, repetitions, interval in expected:
            data, difficult = sm2.adjust_card("5", data, False)
            assert difficult is False
            assert data["easiness"] == pytest.approx(easiness)
            assert data["repetitions"] == repetitions
            assert data["interval"] == interval
            assert data["next_review"] == int(clock.now) + interval * DAY

    def test_failed_review_is_difficult(self, sm2):
        data = sm2.get_default_metadata()
        data, _ = sm2.adjust_card("5", data, False)
        data, difficult = sm2.adjust_card("2", data, False)
        assert difficult is True
        assert data["repetitions"] == 0
        assert data["interval"] == 1

    def test_easiness_floor(self, sm2):
        data = sm2.get_default_metadata()
        for _ in range(10):
            data, _ = sm2.adjust_card("0", data, True)
        assert data["easiness"] == pytest.approx(1.3)

    def test_weight_follows_schedule(self, sm2, clock):
        data = sm2.get_default_metadata()
        assert sm2.get_weight(data, False) == 1.0

        data, _ = sm2.adjust_card("4", data, False)
        assert sm2.get_weight(data, False) == 0.0
        assert sm2.get_weight(data, True) == 2.0

        clock.advance(DAY)
        assert sm2.get_weight(data, False) == 1.0


class TestSpeed:
    """Speed inbuilt method."""

    def test_two_correct_answers_retire_card(self, speed):
        data = speed.get_default_metadata()
        data, difficult = speed.adjust_card("y", data, False)
        assert data == {"weight": 0.5}
        assert difficult is False
        data, _ = speed.adjust_card("y", data, False)
        assert speed.get_weight(data, False) == 0.0

    def test_wrong_answer_doubles_weight(self, speed):
        data = speed.get_default_metadata()
        data, difficult = speed.adjust_card("n", data, False)
        assert data == {"weight": 2.0}
        assert difficult is True

    def test_correct_after_wrong_resets(self, speed):
        data, _ = speed.adjust_card("n", {"weight": 1.0}, False)
        data, difficult = speed.adjust_card("y", data, True)
        assert data == {"weight": 1.0}
        assert difficult is False
