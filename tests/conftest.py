"""
Pytest configuration and shared fixtures for jtea tests.

Provides immutable JSON documents and a recording failure handler used
across tokenizer, session and diagnostics tests.
"""

from dataclasses import dataclass
from dataclasses import field
from typing import Any

import pytest

import jtea


@dataclass(frozen=True)
class JsonTestCase:
    """
    Immutable container for JSON test case data.

    Holds test input and expected behavior for consistent test execution.
    """

    description: str
    input_data: str
    should_fail: bool = False
    skip_reason: str = ""


@dataclass
class HandlerRecorder:
    """Failure handler recording each (operation, status) it receives."""

    calls: list[tuple[str, jtea.Status]] = field(default_factory=list)

    def __call__(self, operation: str, status: jtea.Status) -> None:
        self.calls.append((operation, status))


@pytest.fixture
def handler() -> HandlerRecorder:
    return HandlerRecorder()


@pytest.fixture
def json_fail_cases() -> list[JsonTestCase]:
    """
    Provides JSON strings the tokenizer must reject.

    These cases come from the json.org JSON_checker suite.
    """
    fail_docs = [
        # https://json.org/JSON_checker/test/fail1.json
        '"A JSON payload should be an object or array, not a string."',
        '["Unclosed array"',
        '{unquoted_key: "keys must be quoted"}',
        '["extra comma",]',
        '["double extra comma",,]',
        '[   , "<-- missing value"]',
        '["Comma after the close"],',
        '["Extra close"]]',
        '{"Extra comma": true,}',
        '{"Extra value after close": true} "misplaced quoted value"',
        '{"Illegal expression": 1 + 2}',
        '{"Illegal invocation": alert()}',
        '{"Numbers cannot have leading zeroes": 013}',
        '{"Numbers cannot be hex": 0x14}',
        '["Illegal backslash escape: \\x15"]',
        "[\\naked]",
        '["Illegal backslash escape: \\017"]',
        # https://json.org/JSON_checker/test/fail18.json
        '[[[[[[[[[[[[[[[[[[[["Too deep"]]]]]]]]]]]]]]]]]]]]',
        '{"Missing colon" null}',
        '{"Double colon":: null}',
        '{"Comma instead of colon", null}',
        '["Colon instead of comma": false]',
        '["Bad value", truth]',
        "['single quote']",
        '["\ttab\tcharacter\tin\tstring\t"]',
        '["tab\\   character\\   in\\  string\\  "]',
        '["line\nbreak"]',
        '["line\\\nbreak"]',
        "[0e]",
        "[0e+]",
        "[0e+-1]",
        '{"Comma instead if closing brace": true,',
        '["mismatch"}',
        # https://code.google.com/archive/p/simplejson/issues/3
        '["A\u001fZ control characters in string"]',
    ]

    skips = {
        1: "scalar documents are accepted",
        18: "nesting depth is not limited",
    }

    return [
        JsonTestCase(
            description=f"fail{idx + 1}.json",
            input_data=doc,
            should_fail=True,
            skip_reason=skips.get(idx + 1, ""),
        )
        for idx, doc in enumerate(fail_docs)
    ]


@pytest.fixture
def json_pass_cases() -> list[JsonTestCase]:
    """Provides JSON strings that must tokenize successfully."""
    return [
        JsonTestCase(
            description="pass1.json - complex nested structure",
            input_data="""[
    "JSON Test Pattern pass1",
    {"object with 1 member":["array with 1 element"]},
    {},
    [],
    -42,
    true,
    false,
    null,
    {
        "integer": 1234567890,
        "real": -9876.543210,
        "e": 0.123456789e-12,
        "E": 1.234567890E+34,
        "":  23456789012E66,
        "zero": 0,
        "one": 1,
        "space": " ",
        "quote": "\\"",
        "backslash": "\\\\",
        "controls": "\\b\\f\\n\\r\\t",
        "slash": "/ & \\/",
        "hex": "\\u0123\\u4567\\u89AB\\uCDEF\\uabcd\\uef4A",
        "true": true,
        "false": false,
        "null": null,
        "array":[  ],
        "object":{  },
        "url": "https://www.JSON.org/",
        "comment": "// /* <!-- --",
        "# -- --> */": " ",
        " s p a c e d " :[1,2 , 3

,

4 , 5        ,          6           ,7        ],"compact":[1,2,3,4,5,6,7],
        "jsontext": "{\\"object with 1 member\\":[\\"array with 1 element\\"]}"
    },
    0.5 ,98.6
,
99.44
,

1066,
1e1,
0.1e1,
"rosebud"]""",
        ),
        JsonTestCase(
            description="pass2.json - deep nesting",
            input_data='[[[[[[[[[[[[[[[[[[["Not too deep"]]]]]]]]]]]]]]]]]]]',
        ),
        JsonTestCase(
            description="pass3.json - simple object",
            input_data='{"JSON Test Pattern pass3": {"The outermost value": '
            '"must be an object or array.", "In this test": '
            '"It is an object."}}',
        ),
    ]


def walk(session: jtea.Session) -> int:
    """
    Consumes the value at the cursor with typed operations.

    Returns the number of operations issued; every one must succeed.
    """
    token = session.token
    assert token is not None
    calls = 1

    if token.type is jtea.TokenType.OBJECT:
        pairs = session.next_object().unwrap()
        assert pairs is not None
        for _ in range(pairs):
            session.next_string(key=True).unwrap()
            calls += 1 + walk(session)
    elif token.type is jtea.TokenType.ARRAY:
        count = session.next_array().unwrap()
        assert count is not None
        for _ in range(count):
            calls += walk(session)
    elif token.type is jtea.TokenType.STRING:
        session.next_string().unwrap()
    else:
        text = bytes(session.buffer[token.start : token.end])
        if text == b"null":
            session.next_null().unwrap()
        elif text in (b"true", b"false"):
            session.next_bool().unwrap()
        else:
            session.next_number(jtea.NumberKind.FLOAT64).unwrap()
    return calls


@pytest.fixture
def walker() -> Any:
    return walk
