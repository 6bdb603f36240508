"""Prompt templates for speech-oriented rewriting.

Templates use ``{name}`` placeholders that are substituted literally, so
braces inside the chunk text are left alone.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SYSTEM_PROMPT = (
    "You are an expert at converting technical documents into natural, spoken "
    "language optimized for text-to-speech applications. Your goal is to transform "
    "written content into a form that sounds natural when read aloud."
)

DEFAULT_TEXT_PROMPT = """Transform the following text into natural, spoken language. Follow these rules:
1. Preserve the original language
2. Convert technical jargon into plain language where appropriate
3. Expand acronyms on first use
4. Remove inline citations but preserve meaning
5. Make the text flow naturally when read aloud
6. Keep the tone {tone} and verbosity {verbosity}

Text to transform:
{text}"""

DEFAULT_ELEMENT_PROMPTS = {
    "code": (
        "Describe the following code in natural language. Explain what it does, its "
        "purpose, and key logic without reading it line-by-line. Make it understandable "
        "to someone listening:\n\n{text}"
    ),
    "table": (
        "Convert the following table into a narrative description. Explain what the "
        "table shows, describe key patterns or trends, and make the data understandable "
        "when spoken aloud:\n\n{text}"
    ),
    "math": (
        "Convert the following mathematical notation into spoken form. Say it as you "
        "would speak it naturally:\n\n{text}"
    ),
}


def fill(template: str, variables: dict[str, str]) -> str:
    """Replace each ``{key}`` in ``template`` with its value."""
    for key, value in variables.items():
        template = template.replace(f"{{{key}}}", value)
    return template


@dataclass(frozen=True)
class PromptTemplate:
    """System prompt plus per-content-type instruction templates."""

    system: str = DEFAULT_SYSTEM_PROMPT
    text: str = DEFAULT_TEXT_PROMPT
    tone: str = "conversational"
    verbosity: str = "balanced"
    elements: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ELEMENT_PROMPTS))

    def render(self, chunk_text: str, kind: str = "text") -> str:
        """Build the full prompt for ``chunk_text``.

        Args:
            chunk_text: Text of the chunk to transform
            kind: Content type; unknown kinds use the text template

        Returns:
            System prompt and filled instruction separated by a blank line
        """
        template = self.elements.get(kind, self.text) if kind != "text" else self.text
        instruction = fill(
            template,
            {"tone": self.tone, "verbosity": self.verbosity, "text": chunk_text},
        )
        if not self.system:
            return instruction
        return f"{self.system}\n\n{instruction}"
