"""Tests for WIDA adaptation prompt construction."""

import pytest

from ellift.models.adaptation import AdaptationRequest, ProficiencyLevel
from ellift.services.llm.prompt_builder import (
    LEVEL_ADAPTATIONS,
    PromptBuilder,
    bilingual_instructions,
    level_adaptations,
)


def make_request(**overrides) -> AdaptationRequest:
    data = {
        "content": "1. What is the main function of chloroplasts?",
        "materialType": "quiz",
        "subject": "Biology",
        "gradeLevel": "Grade 9",
        "proficiencyLevel": "emerging",
        "learningObjectives": "Explain photosynthesis",
    }
    data.update(overrides)
    return AdaptationRequest(**data)


@pytest.fixture
def builder():
    return PromptBuilder()


class TestLevelAdaptations:
    def test_each_level_has_bullets(self):
        for level in LEVEL_ADAPTATIONS:
            text = level_adaptations(level)
            assert text.startswith("- ")
            assert len(text.splitlines()) == 5

    def test_reaching_falls_back_to_developing(self):
        assert level_adaptations(ProficiencyLevel.REACHING) == level_adaptations(
            ProficiencyLevel.DEVELOPING
        )


class TestBilingualInstructions:
    def test_absent_without_flag(self):
        assert bilingual_instructions(make_request(nativeLanguage="Spanish")) == ""

    def test_absent_without_language(self):
        assert bilingual_instructions(make_request(bilingualSupport=True)) == ""

    @pytest.mark.parametrize(
        "level, phrase",
        [
            ("entering", "more extensive bilingual support"),
            ("emerging", "more extensive bilingual support"),
            ("developing", "moderate bilingual support"),
            ("bridging", "minimal, strategic bilingual support"),
        ],
    )
    def test_support_scales_with_level(self, level, phrase):
        text = bilingual_instructions(
            make_request(bilingualSupport=True, nativeLanguage="Spanish", proficiencyLevel=level)
        )
        assert "Include Spanish translations" in text
        assert phrase in text


class TestBuild:
    def test_single_user_message(self, builder):
        messages = builder.build(make_request())
        assert len(messages) == 1
        assert messages[0].role == "user"

    def test_prompt_includes_request_fields(self, builder):
        prompt = builder.build_prompt(make_request())
        assert "adapt the following quiz for Biology (Grade 9)" in prompt
        assert "emerging WIDA English proficiency level" in prompt
        assert "Explain photosynthesis" in prompt
        assert "1. What is the main function of chloroplasts?" in prompt
        assert "SPECIFIC ADAPTATIONS FOR EMERGING LEVEL:" in prompt

    def test_prompt_without_grade(self, builder):
        prompt = builder.build_prompt(make_request(gradeLevel=None))
        assert "quiz for Biology for students" in prompt

    def test_output_sections_in_order(self, builder):
        prompt = builder.build_prompt(make_request())
        headings = [
            "ADAPTED MATERIAL:",
            "CONTENT OBJECTIVES (maintained):",
            "ELL LANGUAGE OBJECTIVES:",
            "ELL SUPPORTS INCLUDED:",
            "ASSESSMENT ADAPTATIONS:",
        ]
        # Output headings appear on their own lines, after the instructions
        positions = [prompt.index(f"\n{h}\n") for h in headings]
        assert positions == sorted(positions)
        assert prompt.rstrip().endswith("copied and pasted into any document.")

    def test_bilingual_glossary_section(self, builder):
        prompt = builder.build_prompt(
            make_request(bilingualSupport=True, nativeLanguage="Arabic")
        )
        assert "• [English term] = [Arabic translation]" in prompt
        assert prompt.index("BILINGUAL VOCABULARY SUPPORT:\nUse bullet points") < prompt.index(
            "ASSESSMENT ADAPTATIONS:"
        )

    def test_no_glossary_without_bilingual_support(self, builder):
        assert "BILINGUAL VOCABULARY SUPPORT" not in builder.build_prompt(make_request())
