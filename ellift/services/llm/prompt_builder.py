"""WIDA-aligned adaptation prompt construction.

Builds the single user message sent to a model backend for an
AdaptationRequest. The prompt keeps the content objectives intact, adds
language objectives for the target proficiency level, optionally adds
native-language vocabulary support, and asks for plain-text output with fixed
section headings so results can be pasted into any document.
"""

from typing import Dict, List

from ellift.models.adaptation import AdaptationRequest, ChatMessage, ProficiencyLevel

LEVEL_ADAPTATIONS: Dict[ProficiencyLevel, List[str]] = {
    ProficiencyLevel.ENTERING: [
        "Use very simple sentence structures and present tense",
        "Provide extensive visual supports and vocabulary definitions",
        "Include picture cues and gesture descriptions",
        "Use sentence starters and word banks",
        "Focus on key vocabulary with native language cognates when possible",
    ],
    ProficiencyLevel.EMERGING: [
        "Use simple sentence structures with basic connecting words",
        "Provide vocabulary support with examples and visual aids",
        "Include graphic organizers and sentence frames",
        "Use yes/no and choice questions alongside open-ended ones",
        "Provide opportunities for partner work and discussion",
    ],
    ProficiencyLevel.DEVELOPING: [
        "Use clear sentence structures with some complex sentences",
        "Provide moderate vocabulary support with context clues",
        "Include sentence frames and transition words",
        "Balance receptive and productive language tasks",
        "Encourage extended responses with scaffolding",
    ],
    ProficiencyLevel.EXPANDING: [
        "Use varied sentence structures with academic language",
        "Provide context for technical vocabulary",
        "Include opportunities for academic discourse",
        "Encourage critical thinking with language support",
        "Use complex texts with strategic supports",
    ],
    ProficiencyLevel.BRIDGING: [
        "Maintain grade-level academic language with strategic supports",
        "Provide context for complex concepts and abstract ideas",
        "Include opportunities for academic argument and analysis",
        "Use sophisticated vocabulary with explanations",
        "Prepare students for mainstream academic expectations",
    ],
}

_PLAIN_TEXT_RULE = (
    "IMPORTANT: Do not use any markdown formatting like **bold**, *italics*, "
    "### headers, or markdown bullet points with -. Use only plain text with "
    "regular bullet points (•) and clear section headers that can be easily "
    "copied and pasted into any document."
)


def level_adaptations(level: ProficiencyLevel) -> str:
    """Adaptation guidance for a level; levels without their own fall back to developing."""
    lines = LEVEL_ADAPTATIONS.get(level, LEVEL_ADAPTATIONS[ProficiencyLevel.DEVELOPING])
    return "\n".join(f"- {line}" for line in lines)


def bilingual_instructions(request: AdaptationRequest) -> str:
    if not request.bilingual_support or not request.native_language:
        return ""

    language = request.native_language
    level = request.proficiency_level
    if level in (ProficiencyLevel.ENTERING, ProficiencyLevel.EMERGING):
        support = "Provide more extensive bilingual support to aid comprehension"
    elif level == ProficiencyLevel.DEVELOPING:
        support = "Provide moderate bilingual support, focusing on academic vocabulary"
    else:
        support = "Provide minimal, strategic bilingual support for complex concepts only"

    return (
        "\n\nBILINGUAL VOCABULARY SUPPORT:\n"
        f"- Include {language} translations for key academic vocabulary and technical terms\n"
        f"- Focus on cognates between {language} and English when available\n"
        f"- Provide {language} support for complex concepts that are difficult to visualize\n"
        "- Use bilingual support strategically - as a bridge to English, not a replacement\n"
        f"- For {level.value} level: {support}\n"
        "- Include a bilingual vocabulary glossary if helpful"
    )


def _output_format(request: AdaptationRequest) -> str:
    sections = [
        "ADAPTED MATERIAL:\n"
        "[The adapted content ready for classroom use - no markdown, just plain text]",
        "CONTENT OBJECTIVES (maintained):\n"
        "Use bullet points to list each objective clearly:\n"
        "• [First content objective and how it's maintained]\n"
        "• [Second content objective and how it's maintained]\n"
        "• [Additional objectives as needed]",
        "ELL LANGUAGE OBJECTIVES:\n"
        "Use bullet points to list each language objective with clear domain labels:\n"
        "• LISTENING: [Specific listening objective for this WIDA level]\n"
        "• SPEAKING: [Specific speaking objective for this WIDA level]\n"
        "• READING: [Specific reading objective for this WIDA level]\n"
        "• WRITING: [Specific writing objective for this WIDA level]\n"
        "Note: Include only the language domains that are relevant for this "
        "specific material type and activity.",
        "ELL SUPPORTS INCLUDED:\n"
        "Use bullet points to list each support clearly:\n"
        "• [First scaffold or support added]\n"
        "• [Second scaffold or support added]\n"
        "• [Additional supports as needed]",
    ]

    if request.bilingual_support and request.native_language:
        language = request.native_language
        sections.append(
            "BILINGUAL VOCABULARY SUPPORT:\n"
            "Use bullet points to list key terms:\n"
            f"• [English term] = [{language} translation]\n"
            f"• [English term] = [{language} translation]\n"
            "• [Additional bilingual vocabulary as needed]"
        )

    sections.append(
        "ASSESSMENT ADAPTATIONS:\n"
        "Use bullet points to list assessment modifications:\n"
        "• [First assessment adaptation]\n"
        "• [Second assessment adaptation]\n"
        "• [Additional adaptations as needed]"
    )
    return "\n\n".join(sections)


class PromptBuilder:
    """Turns an AdaptationRequest into backend messages."""

    def build_prompt(self, request: AdaptationRequest) -> str:
        level = request.proficiency_level.value
        audience = request.subject
        if request.grade_level:
            audience = f"{audience} ({request.grade_level})"

        return (
            "You are an expert in English Language Learning (ELL) pedagogy and "
            "curriculum adaptation. Please adapt the following "
            f"{request.material_type.value} for {audience} for students at the "
            f"{level} WIDA English proficiency level.\n\n"
            "CONTENT LEARNING OBJECTIVES:\n"
            f"{request.learning_objectives}\n\n"
            "ORIGINAL MATERIAL:\n"
            f"{request.content}\n\n"
            "ADAPTATION REQUIREMENTS:\n\n"
            "1. MAINTAIN CONTENT OBJECTIVES: Ensure the adapted material still "
            "allows students to achieve the same content learning objectives "
            "listed above. Do not lower academic expectations.\n\n"
            "2. ADD ELL LANGUAGE OBJECTIVES: Include specific WIDA-aligned "
            "language objectives that specify what students will be able to do "
            "linguistically (listening, speaking, reading, writing) at the "
            f"{level} level.\n\n"
            "3. ALIGN WITH ELL STANDARDS: Follow WIDA English Language "
            "Development Standards and research-based ELL best practices."
            f"{bilingual_instructions(request)}\n\n"
            f"SPECIFIC ADAPTATIONS FOR {level.upper()} LEVEL:\n"
            f"{level_adaptations(request.proficiency_level)}\n\n"
            "REQUIRED OUTPUT FORMAT:\n"
            "Please structure your response as clean, readable text without any "
            "markdown formatting. Use the following structure:\n\n"
            f"{_output_format(request)}\n\n"
            f"{_PLAIN_TEXT_RULE}"
        )

    def build(self, request: AdaptationRequest) -> List[ChatMessage]:
        """Build the message list for a request (a single user turn)."""
        return [ChatMessage(role="user", content=self.build_prompt(request))]
