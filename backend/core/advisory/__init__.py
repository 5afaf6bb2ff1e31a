from .farming_advisory import (
    DerivedAdvisories,
    derive_advisories,
    generate_agricultural_advisory,
    generate_crop_planning_advice,
    generate_farming_recommendations,
)

__all__ = [
    "DerivedAdvisories",
    "derive_advisories",
    "generate_agricultural_advisory",
    "generate_crop_planning_advice",
    "generate_farming_recommendations",
]
