"""Tests for adaptation data models."""

import pytest
from pydantic import ValidationError

from ellift.models.adaptation import (
    AdaptationRequest,
    AdaptationResult,
    BackendKind,
    BackendPolicy,
    ChatMessage,
    DispatchOutcome,
    MaterialType,
    ProficiencyLevel,
)


def make_request(**overrides) -> AdaptationRequest:
    data = {
        "content": "Read the passage and answer the questions.",
        "materialType": "homework",
        "subject": "English",
        "proficiencyLevel": "bridging",
    }
    data.update(overrides)
    return AdaptationRequest(**data)


class TestAdaptationRequest:
    def test_aliases_and_defaults(self):
        request = make_request()
        assert request.material_type == MaterialType.HOMEWORK
        assert request.proficiency_level == ProficiencyLevel.BRIDGING
        assert request.grade_level is None
        assert request.learning_objectives == ""
        assert request.bilingual_support is False
        assert request.max_output_tokens == 3000

    def test_field_names_accepted(self):
        request = AdaptationRequest(
            content="x",
            material_type="quiz",
            subject="Math",
            proficiency_level="entering",
        )
        assert request.material_type == MaterialType.QUIZ

    def test_frozen(self):
        request = make_request()
        with pytest.raises(ValidationError):
            request.subject = "Art"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"content": "   "},
            {"content": ""},
            {"materialType": "essay"},
            {"proficiencyLevel": "native"},
            {"subject": ""},
            {"maxOutputTokens": 0},
        ],
    )
    def test_rejects_invalid(self, overrides):
        with pytest.raises(ValidationError):
            make_request(**overrides)

    def test_blank_optional_strings_become_none(self):
        request = make_request(gradeLevel=" ", nativeLanguage="")
        assert request.grade_level is None
        assert request.native_language is None


class TestChatMessage:
    def test_text_content(self):
        assert ChatMessage(role="assistant", content="ok").content == "ok"

    def test_content_blocks(self):
        blocks = [
            {"type": "document", "source": {"type": "base64", "data": "JVBERi0="}},
            {"type": "text", "text": "Extract the text"},
        ]
        assert ChatMessage(role="user", content=blocks).content == blocks

    @pytest.mark.parametrize(
        "data",
        [
            {"role": "system", "content": "hi"},
            {"role": "user", "content": " "},
            {"role": "user", "content": []},
            {"role": "user"},
        ],
    )
    def test_rejects_invalid(self, data):
        with pytest.raises(ValidationError):
            ChatMessage(**data)


def test_result_total_tokens():
    result = AdaptationResult(text="t", inputTokens=12, outputTokens=30)
    assert result.total_tokens == 42
    assert result.model_dump(by_alias=True) == {
        "text": "t",
        "inputTokens": 12,
        "outputTokens": 30,
    }


def test_policy_defaults():
    policy = BackendPolicy()
    assert policy.backend == BackendKind.PRIMARY
    assert policy.max_tokens == 4096
    assert policy.auto_route is False


def test_cached_outcome_response():
    outcome = DispatchOutcome(
        result=AdaptationResult(text="t"), backend=BackendKind.PRIMARY, cached=True
    )
    assert outcome.to_response()["cached"] is True
    assert outcome.to_response()["model"] is None
