import pytest

from npcmind.agent.decision.interpreter import ResponseInterpreter, normalize_arguments
from npcmind.agent.decision.schemas import ModelResponse, ToolInvocation


def nav_call(target, thoughts="", name="select_destination"):
    return ToolInvocation(name=name, arguments={"target": target, "thoughts": thoughts})


def speak_call(text):
    return ToolInvocation(name="speak", arguments={"text": text})


def test_tool_calls_produce_speech_and_navigation():
    response = ModelResponse(
        tool_calls=[speak_call("Morning!"), speak_call("Anyone seen my stapler?"), nav_call("Kitchen", "Hungry.")]
    )
    result = ResponseInterpreter().interpret(response)
    assert result.speech_lines == ["Morning!", "Anyone seen my stapler?"]
    assert result.navigation.target == "Kitchen"
    assert result.navigation.thoughts == "Hungry."
    assert result.has_action


def test_first_valid_destination_wins():
    response = ModelResponse(tool_calls=[nav_call("", "blank"), nav_call("Kitchen", "a"), nav_call("Printer", "b")])
    result = ResponseInterpreter().interpret(response)
    assert result.navigation.target == "Kitchen"
    assert result.navigation.thoughts == "a"


def test_blank_thoughts_are_synthesized():
    result = ResponseInterpreter().interpret(ModelResponse(tool_calls=[nav_call("Break Room", "   ")]))
    assert result.navigation.thoughts == "Heading to Break Room."


def test_string_arguments_are_decoded_and_malformed_calls_skipped():
    response = ModelResponse(
        tool_calls=[
            ToolInvocation(name="speak", arguments="{not json"),
            ToolInvocation(name="speak", arguments='["a list"]'),
            ToolInvocation(name="select_destination", arguments='{"target": "Printer", "thoughts": "Paper jam."}'),
        ]
    )
    result = ResponseInterpreter().interpret(response)
    assert result.speech_lines == []
    assert result.navigation.target == "Printer"


def test_blank_speech_and_unknown_tools_are_ignored():
    response = ModelResponse(
        tool_calls=[speak_call("   "), ToolInvocation(name="dance", arguments={"style": "tango"}), speak_call(42)]
    )
    result = ResponseInterpreter().interpret(response)
    assert not result.has_action


def test_tool_names_match_case_insensitively():
    response = ModelResponse(tool_calls=[ToolInvocation(name="SPEAK", arguments={"text": "Hi"}), nav_call("Desk", "x", name="Select_Destination")])
    result = ResponseInterpreter().interpret(response)
    assert result.speech_lines == ["Hi"]
    assert result.navigation.target == "Desk"


def test_text_fallback_extracts_inline_json():
    response = ModelResponse(text='blah {"target":"Kitchen","thoughts":"hungry"} blah')
    result = ResponseInterpreter().interpret(response)
    assert result.speech_lines == []
    assert result.navigation.target == "Kitchen"
    assert result.navigation.thoughts == "hungry"


def test_text_fallback_skipped_when_tools_produced_an_action():
    response = ModelResponse(tool_calls=[speak_call("Hello.")], text='{"target": "Kitchen", "thoughts": "x"}')
    result = ResponseInterpreter().interpret(response)
    assert result.speech_lines == ["Hello."]
    assert result.navigation is None


@pytest.mark.parametrize(
    "text",
    ["", "I will go to the kitchen.", "{broken json}", '{"thoughts": "no target"}', '{"target": ""}', "} backwards {"],
)
def test_unparseable_text_yields_empty_result(text):
    result = ResponseInterpreter().interpret(ModelResponse(text=text))
    assert not result.has_action


def test_none_response_yields_empty_result():
    assert not ResponseInterpreter().interpret(None).has_action


def test_normalize_arguments_accepts_bytes_and_mappings():
    assert normalize_arguments(b'{"text": "hi"}') == {"text": "hi"}
    assert normalize_arguments({"text": "hi"}) == {"text": "hi"}
    assert normalize_arguments("   ") is None
    assert normalize_arguments(3) is None


def test_deeply_nested_arguments_do_not_abort_other_calls():
    nested = '{"text": ' + "[" * 100000 + "]" * 100000 + "}"
    response = ModelResponse(tool_calls=[ToolInvocation(name="speak", arguments=nested), speak_call("ok")])
    result = ResponseInterpreter().interpret(response)
    assert result.speech_lines == ["ok"]


def test_deeply_nested_fallback_text_yields_empty_result():
    text = '{"target": ' + "[" * 100000 + "]" * 100000 + "}"
    assert not ResponseInterpreter().interpret(ModelResponse(text=text)).has_action


if __name__ == "__main__":
    pytest.main(["-v", __file__])
