"""Ready-made adjustment prompts offered to the editing surface.

The presets are fixed prompts for common global adjustments. The contrast
helper turns a signed slider value into an adjustment prompt.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class AdjustmentPreset:
    """A named adjustment prompt."""

    id: str
    name: str
    prompt: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


ADJUSTMENT_PRESETS: tuple[AdjustmentPreset, ...] = (
    AdjustmentPreset(
        id="blur-background",
        name="Blur Background",
        prompt=(
            "Apply a realistic depth-of-field effect, making the background blurry while "
            "keeping the main subject in sharp focus."
        ),
    ),
    AdjustmentPreset(
        id="enhance-details",
        name="Enhance Details",
        prompt=(
            "Slightly enhance the sharpness and details of the image without making it "
            "look unnatural."
        ),
    ),
    AdjustmentPreset(
        id="warmer-lighting",
        name="Warmer Lighting",
        prompt=(
            "Adjust the color temperature to give the image warmer, golden-hour style lighting."
        ),
    ),
    AdjustmentPreset(
        id="studio-light",
        name="Studio Light",
        prompt="Add dramatic, professional studio lighting to the main subject.",
    ),
)


def get_preset(preset_id: str) -> AdjustmentPreset:
    """Look up a preset by id.

    Raises:
        KeyError: If no preset has that id.
    """
    for preset in ADJUSTMENT_PRESETS:
        if preset.id == preset_id:
            return preset
    available = ", ".join(p.id for p in ADJUSTMENT_PRESETS)
    raise KeyError(f"Adjustment preset '{preset_id}' not found. Available presets: {available}")


def contrast_prompt(amount: int) -> str:
    """Adjustment prompt for a contrast change of ``amount`` percent.

    Args:
        amount: Signed percentage, -100 to 100 and not zero.

    Raises:
        ValueError: If ``amount`` is zero or out of range.
    """
    if amount == 0:
        raise ValueError("Contrast amount must be non-zero")
    if not -100 <= amount <= 100:
        raise ValueError(f"Contrast amount must be between -100 and 100, got {amount}")
    if amount > 0:
        return f"Increase contrast by {amount}%"
    return f"Decrease contrast by {-amount}%"
