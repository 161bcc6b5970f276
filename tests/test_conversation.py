from llamastream.core.conversation import Conversation, current_turn
from llamastream.core.generation import GenerationLoop
from llamastream.core.transcript import SYSTEM_PREAMBLE, Transcript
from llamastream.errors import BackendError, BackendErrorKind


def _conversation(graph, output) -> Conversation:
    return Conversation(Transcript(), GenerationLoop(graph, output))


def test_single_turn_streams_and_commits_trimmed_reply(make_graph, make_output, eos) -> None:
    graph = make_graph(["Hel", "lo", "!", eos])
    output = make_output(graph)
    conversation = _conversation(graph, output)

    result = conversation.turn("Hi")

    assert output.tokens == ["Hel", "lo", "!"]
    assert graph.sessions[0].inputs[0] == (SYSTEM_PREAMBLE + "[INST] Hi [/INST]").encode()
    assert result.prompt == SYSTEM_PREAMBLE + "[INST] Hi [/INST]"
    assert result.reply == "Hello!"
    assert conversation.transcript.text == SYSTEM_PREAMBLE + "[INST] Hi [/INST] Hello!"


def test_reply_whitespace_is_trimmed_before_commit(make_graph, make_output, eos) -> None:
    graph = make_graph([" ", "Sure", ".\n", eos])
    conversation = _conversation(graph, make_output(graph))

    conversation.turn("Hi")

    assert conversation.transcript.text.endswith("[/INST] Sure.")


def test_turns_accumulate_without_overflow(make_graph, make_output, eos) -> None:
    graph = make_graph(["one", eos], ["two", eos], ["three", eos])
    conversation = _conversation(graph, make_output(graph))

    conversation.turn("u1")
    after_first = conversation.transcript.text
    conversation.turn("u2")
    after_second = conversation.transcript.text
    conversation.turn("u3")

    assert after_second == after_first + " [INST] u2 [/INST]" + " two"
    assert conversation.transcript.text == after_second + " [INST] u3 [/INST]" + " three"
    assert graph.sessions[2].inputs[0] == (after_second + " [INST] u3 [/INST]").encode()


def test_overflow_clears_transcript_and_next_turn_starts_fresh(make_graph, make_output, eos, context_full) -> None:
    graph = make_graph(["Hel", "lo", "!", eos], [context_full], ["Hel", "lo", "!", eos])
    output = make_output(graph)
    conversation = _conversation(graph, output)

    conversation.turn("Hi")
    second = conversation.turn("Tell me more")

    assert second.overflow is True
    assert output.notices == ["[INFO] Context full, we'll reset the context and continue."]
    assert conversation.transcript.text == ""

    third = conversation.turn("Hi")

    assert graph.sessions[2].inputs[0] == (SYSTEM_PREAMBLE + "[INST] Hi [/INST]").encode()
    assert third.reply == "Hello!"
    assert conversation.transcript.text == SYSTEM_PREAMBLE + "[INST] Hi [/INST] Hello!"
    assert graph.released == 3


def test_prompt_too_long_resets_regardless_of_length(make_graph, make_output, eos, prompt_too_long) -> None:
    scripts = [[f"r{i}", eos] for i in range(5)] + [[prompt_too_long]]
    graph = make_graph(*scripts)
    conversation = _conversation(graph, make_output(graph))
    for i in range(5):
        conversation.turn(f"u{i}")
    assert len(conversation.transcript) > 100

    result = conversation.turn("last")

    assert result.overflow is True
    assert conversation.transcript.text == ""


def test_failure_commits_partial_reply(make_graph, make_output) -> None:
    graph = make_graph(["half", BackendError(BackendErrorKind.OTHER, "device lost")])
    conversation = _conversation(graph, make_output(graph))

    result = conversation.turn("Hi")

    assert result.overflow is False
    assert result.error == "device lost"
    assert conversation.transcript.text == SYSTEM_PREAMBLE + "[INST] Hi [/INST] half"


def test_turn_number_is_visible_during_turn(make_graph, eos) -> None:
    seen: list[str] = []
    graph = make_graph(["a", eos], ["b", eos])

    class _Output:
        def stream_token(self, text: str) -> None:
            seen.append(current_turn())

        def notice(self, message: str) -> None:
            pass

        def failure(self, message: str) -> None:
            pass

    conversation = Conversation(Transcript(), GenerationLoop(graph, _Output()))
    conversation.turn("one")
    conversation.turn("two")

    assert seen == ["1", "2"]
    assert conversation.turns == 2
    assert current_turn() == "-"


def test_reset_clears_transcript(make_graph, make_output, eos) -> None:
    graph = make_graph(["a", eos])
    conversation = _conversation(graph, make_output(graph))
    conversation.turn("Hi")

    conversation.reset()

    assert conversation.transcript.text == ""
