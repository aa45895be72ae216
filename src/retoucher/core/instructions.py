"""Natural-language instruction compilation for every edit kind.

Each edit is sent to the model as the image followed by one instruction
string. The instruction quotes the user's request verbatim, states the
editing constraints, embeds the safety policy where the edit could touch a
person's appearance, and ends with an output directive so the model answers
with an image instead of conversational text.

Instructions are assembled with :class:`InstructionBuilder`, which collects
clauses in order and joins them with newlines. Every ``compile_*`` function
is pure: identical arguments always produce byte-identical text.

Instruction Structure (localized edit)::

    [Role statement]
    User Request: "[prompt]"
    Edit Location: [hotspot]

    Editing Guidelines:
    - [constraint]
    ...

    Safety & Ethics Policy:
    - [directive]
    ...

    Output: Return ONLY the final edited image. Do not return text.

Usage
-----
::

    instruction = compile_localized_edit("remove the lamp post", Hotspot(120, 48))
    result = compile_text_replace("OPEN", "CLOSED", TextStyle(color="red"))
    result.instruction         # full prompt
    result.style_instruction   # the style sub-instruction embedded in it
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from retoucher.core.models import Hotspot, TextStyle

# ---------------------------------------------------------------------------
# Fixed policy clauses.
# ---------------------------------------------------------------------------

_EDITOR_ROLE = "You are an expert photo editor AI."

_SKIN_TONE_DIRECTIVE = (
    "- You MUST fulfill requests to adjust skin tone, such as 'give me a tan', "
    "'make my skin darker', or 'make my skin lighter'. These are considered standard "
    "photo enhancements."
)

_ETHNICITY_DIRECTIVE = (
    "- You MUST REFUSE any request to change a person's fundamental race or ethnicity "
    "(e.g., 'make me look Asian', 'change this person to be Black'). Do not perform these "
    "edits. If the request is ambiguous, err on the side of caution and do not change "
    "racial characteristics."
)

_FILTER_COLOR_DIRECTIVE = (
    "- Filters may subtly shift colors, but you MUST ensure they do not alter a person's "
    "fundamental race or ethnicity."
)

_FILTER_REFUSAL_DIRECTIVE = (
    "- YOU MUST REFUSE any request that explicitly asks to change a person's race "
    "(e.g., 'apply a filter to make me look Chinese')."
)

_SAFETY_POLICY_TITLE = "Safety & Ethics Policy:"

# Attribute lines are emitted in this order.
_STYLE_FIELD_LINES: tuple[tuple[str, str], ...] = (
    ("font", "- Font face similar to: {}"),
    ("size", "- Size: {}"),
    ("color", "- Color: {}"),
    ("bold", "- Weight: Bold"),
    ("italic", "- Style: Italic"),
)


def _output_directive(subject: str) -> str:
    return f"Output: Return ONLY the final {subject} image. Do not return text."


class InstructionBuilder:
    """Accumulates instruction clauses and joins them deterministically."""

    def __init__(self) -> None:
        self._clauses: list[str] = []

    def line(self, text: str) -> InstructionBuilder:
        self._clauses.append(text)
        return self

    def blank(self) -> InstructionBuilder:
        self._clauses.append("")
        return self

    def section(self, title: str, lines: Iterable[str]) -> InstructionBuilder:
        """Append a titled block preceded by a blank line."""
        self.blank()
        self._clauses.append(title)
        self._clauses.extend(lines)
        return self

    def build(self) -> str:
        return "\n".join(self._clauses)


def _safety_policy() -> tuple[str, str]:
    return (_SKIN_TONE_DIRECTIVE, _ETHNICITY_DIRECTIVE)


def compile_localized_edit(prompt: str, hotspot: Hotspot) -> str:
    """Instruction for an edit focused on a single point of the image."""
    return (
        InstructionBuilder()
        .line(
            f"{_EDITOR_ROLE} Your task is to perform a natural, localized edit on the "
            "provided image based on the user's request."
        )
        .line(f'User Request: "{prompt}"')
        .line(
            f"Edit Location: Focus on the area around pixel coordinates "
            f"(x: {hotspot.x}, y: {hotspot.y})."
        )
        .section(
            "Editing Guidelines:",
            [
                "- The edit must be realistic and blend seamlessly with the surrounding area.",
                "- The rest of the image (outside the immediate edit area) must remain "
                "identical to the original.",
            ],
        )
        .section(_SAFETY_POLICY_TITLE, _safety_policy())
        .blank()
        .line(_output_directive("edited"))
        .build()
    )


def compile_filter(prompt: str) -> str:
    """Instruction for a stylistic filter applied to the whole image."""
    return (
        InstructionBuilder()
        .line(
            f"{_EDITOR_ROLE} Your task is to apply a stylistic filter to the entire image "
            "based on the user's request. Do not change the composition or content, only "
            "apply the style."
        )
        .line(f'Filter Request: "{prompt}"')
        .section(
            _SAFETY_POLICY_TITLE,
            [_FILTER_COLOR_DIRECTIVE, _FILTER_REFUSAL_DIRECTIVE, *_safety_policy()],
        )
        .blank()
        .line(_output_directive("filtered"))
        .build()
    )


def compile_adjustment(prompt: str) -> str:
    """Instruction for a global, photorealistic adjustment."""
    return (
        InstructionBuilder()
        .line(
            f"{_EDITOR_ROLE} Your task is to perform a natural, global adjustment to the "
            "entire image based on the user's request."
        )
        .line(f'User Request: "{prompt}"')
        .section(
            "Editing Guidelines:",
            [
                "- The adjustment must be applied uniformly across the entire image.",
                "- The result must be photorealistic.",
            ],
        )
        .section(_SAFETY_POLICY_TITLE, _safety_policy())
        .blank()
        .line(_output_directive("adjusted"))
        .build()
    )


def compile_remove_background() -> str:
    """Instruction for isolating the subject on a transparent canvas."""
    return (
        InstructionBuilder()
        .line(
            f"{_EDITOR_ROLE} Your task is to perfectly isolate the main subject(s) from "
            "the background in the provided image."
        )
        .line("- Identify the primary subject(s) of the photo.")
        .line(
            "- Create a clean and precise cutout of the subject(s), preserving all details "
            "like hair, fur, or fine edges."
        )
        .line(
            "- The background must be completely removed and replaced with a transparent canvas."
        )
        .line("- The output MUST be a PNG image with a transparent background.")
        .line("- Do not add any shadows, borders, or effects.")
        .line("- The subject(s) must remain identical to the original, with no other changes.")
        .blank()
        .line(
            "Output: Return ONLY the final image with the transparent background. "
            "Do not return text."
        )
        .build()
    )


@dataclass(frozen=True)
class TextReplaceInstruction:
    """Compiled text replacement: the full instruction and its style part."""

    instruction: str
    style_instruction: str


def style_lines(style: TextStyle) -> list[str]:
    """One instruction line per style attribute the caller set."""
    style = style.normalized()
    lines = []
    for attribute, template in _STYLE_FIELD_LINES:
        value = getattr(style, attribute)
        if value:
            lines.append(template.format(value))
    return lines


def compile_text_style(old_text: str, new_text: str, style: TextStyle | None = None) -> str:
    """Style sub-instruction for text replacement.

    With at least one attribute set, lists the requested attributes and asks
    the model to infer the rest. With none set, asks for a strict analysis of
    the original text so every attribute is reproduced exactly.
    """
    lines = style_lines(style or TextStyle())
    builder = InstructionBuilder().line("Key Style Instructions for the new text:")

    if lines:
        for style_line in lines:
            builder.line(style_line)
        return (
            builder.blank()
            .line(
                "If a style attribute is not specified above, you MUST intelligently match it "
                f'to the original text\'s style ("{old_text}"). If there was no original text, '
                "match the surrounding environment for a natural look."
            )
            .build()
        )

    return (
        builder.line(
            f'Your primary task is to make the new text, "{new_text}", an absolutely seamless '
            f'replacement for the original text, "{old_text}". To achieve this, you must follow '
            "a strict process:"
        )
        .line(
            f'1.  **Analyze the Original Text:** Carefully examine "{old_text}" in the image. '
            "Identify all of its visual properties with extreme precision."
        )
        .line("2.  **Extract Key Attributes:** Your analysis must determine the following:")
        .line(
            "    -   **Font:** The exact font face, weight (bold, regular), "
            "and style (italic, normal)."
        )
        .line(
            "    -   **Color:** The precise color, including any gradients, "
            "textures, or patterns."
        )
        .line("    -   **Size & Scale:** The font size relative to the image and its surroundings.")
        .line(
            "    -   **Perspective & Transformation:** Any rotation, skewing, warping, or "
            "perspective applied to the text."
        )
        .line(
            "    -   **Lighting & Effects:** How the text interacts with the scene's lighting. "
            "Identify and replicate all shadows, highlights, glows, or bevels."
        )
        .line(
            f'3.  **Apply to New Text:** Render the new text, "{new_text}", using the *exact* '
            "attributes you extracted. The new text must occupy the same 3D space as the original."
        )
        .blank()
        .line(
            "The final result must be indistinguishable from a real photograph where the new "
            "text was present from the beginning."
        )
        .build()
    )


def compile_text_replace(
    old_text: str, new_text: str, style: TextStyle | None = None
) -> TextReplaceInstruction:
    """Instruction for finding and replacing text inside the image."""
    style_instruction = compile_text_style(old_text, new_text, style)
    instruction = (
        InstructionBuilder()
        .line(
            f"{_EDITOR_ROLE[:-1]} specializing in typography and photorealistic text "
            "integration. Your task is to find and replace text within the provided image."
        )
        .blank()
        .line(f'Text to find: "{old_text}"')
        .line(f'Text to replace it with: "{new_text}"')
        .blank()
        .line(style_instruction)
        .section(
            "General Instructions:",
            [
                f'1.  **Find the Text:** Accurately locate the instance of "{old_text}" in the '
                "image. If there are multiple instances, replace the most prominent one.",
                "2.  **Reconstruct Background:** Before adding the new text, intelligently remove "
                "the original text and reconstruct the background behind it as if the text was "
                "never there. This is a critical step.",
                "3.  **Seamless Integration:** The final result should be photorealistic and "
                "indistinguishable from a real photograph. The new text should look like it was "
                "part of the original scene.",
                "4.  **Preserve Image:** The rest of the image (everything other than the text "
                "being replaced) must remain absolutely identical to the original.",
            ],
        )
        .blank()
        .line(
            "Output: Return ONLY the final edited image in the same resolution. Do not return "
            "any text, explanations, or dialogue."
        )
        .build()
    )
    return TextReplaceInstruction(instruction=instruction, style_instruction=style_instruction)


def compile_describe() -> str:
    """Instruction asking for a single-paragraph, generator-ready description."""
    return (
        InstructionBuilder()
        .line("You are an expert at analyzing images and creating descriptive prompts.")
        .line(
            "Analyze the provided image and generate a detailed, descriptive prompt that could "
            "be used by an image generation AI to create a similar image."
        )
        .section(
            "Describe the following aspects:",
            [
                "- Subject: What is the main subject?",
                "- Composition: How is the shot framed (e.g., close-up, wide shot)?",
                "- Setting: Where does the image take place?",
                "- Lighting: What is the lighting like (e.g., golden hour, studio lighting)?",
                "- Style: What is the artistic style (e.g., photorealistic, anime, watercolor)?",
                "- Colors: What are the dominant colors?",
            ],
        )
        .blank()
        .line(
            "Output only the final, detailed prompt as a single paragraph of text. Do not "
            "include any other explanations or introductory phrases."
        )
        .build()
    )


def compile_generate(prompt: str) -> str:
    """Text-to-image prompts are sent unchanged."""
    return prompt
