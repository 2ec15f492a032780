from src.block_feedback.engine.prompt import (
    build_focus_instructions,
    build_review_prompt,
    build_tone_guidance,
    format_blocks,
    format_existing_feedback,
    get_system_instruction,
)
from src.block_feedback.schemas.request import Block, FeedbackThread, ReviewOptions, ThreadReply


def _thread(**overrides) -> FeedbackThread:
    data = {
        "top_level_note_id": 7,
        "block_id": "b1",
        "category": "content",
        "severity": "important",
        "body": "<strong>Add context</strong>\n\nJumps in too fast.",
    }
    data.update(overrides)
    return FeedbackThread(**data)


class TestGetSystemInstruction:
    def test_returns_persona_and_rules(self):
        instruction = get_system_instruction()
        assert "editorial assistant" in instruction
        assert "critical:" in instruction
        assert "GOOD:" in instruction and "BAD:" in instruction

    def test_fresh_review_has_no_continuation_rules(self):
        assert "CONTINUATION" not in get_system_instruction(False)

    def test_continuation_rules_appended(self):
        instruction = get_system_instruction(True)
        assert instruction.startswith(get_system_instruction(False))
        assert "CONTINUATION REVIEW RULES" in instruction
        assert "same block_ids" in instruction


class TestFormatBlocks:
    def test_block_header_and_text(self):
        text = format_blocks([Block(id="b1", type="paragraph", text="Plugins are easy.")])
        assert text == "Block b1 [paragraph]\nPlugins are easy."

    def test_empty_blocks_skipped(self):
        text = format_blocks(
            [
                Block(id="b1", type="paragraph", text="Hello"),
                Block(id="b2", type="paragraph", text="  \n "),
            ]
        )
        assert "b1" in text
        assert "b2" not in text

    def test_long_block_truncated(self):
        text = format_blocks([Block(id="b1", type="paragraph", text="x" * 2500)])
        assert "[truncated]" in text
        assert "x" * 2000 in text
        assert "x" * 2001 not in text

    def test_no_blocks_stated(self):
        assert "no blocks" in format_blocks([]).lower()

    def test_blocks_separated(self):
        text = format_blocks([Block(id="a", text="one"), Block(id="b", text="two")])
        assert "\n\n---\n\n" in text


class TestFocusAndTone:
    def test_focus_areas_in_order(self):
        text = build_focus_instructions(["flow", "content"])
        lines = text.splitlines()
        assert lines[0].startswith("- Flow & Structure")
        assert lines[1].startswith("- Content Quality")

    def test_unknown_focus_area_ignored(self):
        assert build_focus_instructions(["grammar"]) == ""

    def test_tone_lookup(self):
        assert build_tone_guidance("academic").startswith("Academic")

    def test_unknown_tone_defaults_to_professional(self):
        assert build_tone_guidance("pirate").startswith("Professional")


class TestFormatExistingFeedback:
    def test_thread_header(self):
        text = format_existing_feedback([_thread()])
        assert text.startswith("[Block: b1] [content/important]\nAI Feedback: Add context")
        assert "<strong>" not in text

    def test_replies_rendered(self):
        thread = _thread(
            replies=[
                ThreadReply(author="Dana", body="Fixed, added an intro."),
                ThreadReply(author="AI Feedback", body="Looks better now.", is_from_ai=True),
                ThreadReply(author="", body="anonymous reply"),
            ]
        )
        text = format_existing_feedback([thread])
        assert "  - Dana: Fixed, added an intro." in text
        assert "  - AI: Looks better now." in text
        assert "  - User: anonymous reply" in text

    def test_body_and_reply_truncation(self):
        thread = _thread(body="a" * 600, replies=[ThreadReply(author="Dana", body="r" * 400)])
        text = format_existing_feedback([thread])
        assert "a" * 500 + "... [truncated]" in text
        assert "a" * 501 not in text
        assert "r" * 300 + "..." in text
        assert "r" * 301 not in text

    def test_threads_separated(self):
        text = format_existing_feedback([_thread(), _thread(block_id="b2")])
        assert text.count("\n\n---\n\n") == 1


class TestBuildReviewPrompt:
    def test_contains_sections(self, sample_blocks):
        options = ReviewOptions(focus_areas=["content"], target_tone="professional", document_title="Guide")
        prompt = build_review_prompt(sample_blocks, options)
        assert "DOCUMENT TITLE: Guide" in prompt
        assert "Block b1 [paragraph]" in prompt
        assert "Content Quality" in prompt
        assert "Tone & Voice" not in prompt
        assert "Professional" in prompt

    def test_output_contract(self, sample_blocks):
        prompt = build_review_prompt(sample_blocks, ReviewOptions())
        assert '"summary"' in prompt
        assert '"feedback"' in prompt
        assert '"block_id"' in prompt
        assert "Return ONLY valid JSON" in prompt

    def test_fresh_review_has_no_continuation_section(self, sample_blocks):
        prompt = build_review_prompt(sample_blocks, ReviewOptions())
        assert "PREVIOUS FEEDBACK" not in prompt

    def test_continuation_from_options(self, sample_blocks):
        options = ReviewOptions(existing_feedback=[_thread()])
        prompt = build_review_prompt(sample_blocks, options)
        assert "CONTINUATION REVIEW INSTRUCTIONS" in prompt
        assert "Do NOT repeat feedback" in prompt
        assert "[Block: b1] [content/important]" in prompt

    def test_explicit_existing_feedback_wins(self, sample_blocks):
        options = ReviewOptions(existing_feedback=[_thread()])
        prompt = build_review_prompt(sample_blocks, options, existing_feedback=[])
        assert "PREVIOUS FEEDBACK" not in prompt

    def test_braces_in_block_text(self):
        blocks = [Block(id="b1", type="code", text='function() { return {"key": value}; }')]
        prompt = build_review_prompt(blocks, ReviewOptions())
        assert '{"key": value}' in prompt

    def test_empty_block_list_is_valid(self):
        prompt = build_review_prompt([], ReviewOptions())
        assert "no blocks" in prompt.lower()

    def test_unicode_content(self):
        blocks = [Block(id="b1", type="paragraph", text="プラグインは簡単です")]
        assert "プラグインは簡単です" in build_review_prompt(blocks, ReviewOptions())
