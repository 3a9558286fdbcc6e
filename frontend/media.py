from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class MarketingMedium(str, Enum):
    MUG = "Mug"
    BILLBOARD = "Billboard"
    TSHIRT = "T-Shirt"


@dataclass(frozen=True)
class MediumOption:
    id: MarketingMedium
    label: str
    icon: str
    default_prompt: str


MEDIA_OPTIONS: Tuple[MediumOption, ...] = (
    MediumOption(
        id=MarketingMedium.MUG,
        label="Mug",
        icon="☕",
        default_prompt=(
            "A photorealistic, high-quality product shot of this item seamlessly printed "
            "on a glossy white coffee mug. The mug is sitting on a rustic wooden cafe table, "
            "with soft, natural morning light. The background is slightly blurred to "
            "emphasize the mug."
        ),
    ),
    MediumOption(
        id=MarketingMedium.BILLBOARD,
        label="Billboard",
        icon="🏙️",
        default_prompt=(
            "A photorealistic image of a massive, modern billboard in a bustling city square "
            "like Times Square at dusk. This item is the central focus of the billboard "
            "advertisement. The city lights should reflect off the billboard surface."
        ),
    ),
    MediumOption(
        id=MarketingMedium.TSHIRT,
        label="T-Shirt",
        icon="👕",
        default_prompt=(
            "A photorealistic image of a person wearing a plain, high-quality cotton t-shirt "
            "(color: heather grey). This item is featured as a crisp, clear graphic print on "
            "the center of the t-shirt. The photo is taken from the chest up, in a well-lit "
            "studio environment."
        ),
    ),
)

_BY_ID: Dict[MarketingMedium, MediumOption] = {m.id: m for m in MEDIA_OPTIONS}

ASPECT_RATIOS: Tuple[str, ...] = ("1:1", "16:9", "9:16", "4:3", "3:4")


def get_medium(medium_id) -> Optional[MediumOption]:
    try:
        return _BY_ID.get(MarketingMedium(medium_id))
    except ValueError:
        return None
