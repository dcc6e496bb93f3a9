"""
Platform content constraints and draft validation.
"""

from typing import Dict, List, NamedTuple, Tuple

from ..models.core import DraftItem, Platform


class PlatformSpec(NamedTuple):
    max_caption_length: int
    max_hashtags: int
    video_duration: str


PLATFORM_SPECS: Dict[str, PlatformSpec] = {
    Platform.TIKTOK.value: PlatformSpec(2200, 5, "15-60 seconds"),
    Platform.SHORTS.value: PlatformSpec(100, 3, "30-60 seconds"),
    Platform.REELS.value: PlatformSpec(2200, 10, "15-90 seconds"),
    Platform.FACEBOOK.value: PlatformSpec(63206, 3, "30-90 seconds"),
    Platform.LINKEDIN.value: PlatformSpec(3000, 5, "30-120 seconds"),
    Platform.SNAPCHAT.value: PlatformSpec(250, 0, "10-60 seconds"),
    Platform.YTLONG.value: PlatformSpec(5000, 15, "8-15 minutes"),
}

# Content types each platform accepts, preferred type first.
PLATFORM_CONTENT_TYPES: Dict[str, Tuple[str, ...]] = {
    platform.value: ("video",) for platform in Platform
}


def validate_content(item: DraftItem) -> Tuple[bool, List[str]]:
    """
    Check a draft against its platform's caption and hashtag limits.

    Returns:
        tuple: (valid, warnings)
    """
    spec = PLATFORM_SPECS.get(item.platform)
    if spec is None:
        return True, ["Unknown platform"]

    warnings = []
    if len(item.caption) > spec.max_caption_length:
        warnings.append(f"Caption exceeds {spec.max_caption_length} characters for {item.platform}")
    if len(item.hashtags) > spec.max_hashtags:
        warnings.append(
            f"Too many hashtags ({len(item.hashtags)}) for {item.platform}. Max: {spec.max_hashtags}"
        )
    return not warnings, warnings


def resolve_content_type(platform: str, requested: str = None) -> str:
    """Keep a requested ``text`` type only where the platform supports it."""
    supported = PLATFORM_CONTENT_TYPES.get(platform, ("video",))
    if requested == "text" and "text" in supported:
        return "text"
    return supported[0]
