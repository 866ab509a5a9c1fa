"""Named cache profile lookup and merge.

A policy that names a profile takes its duration and enabled flag from the
profile, except where the policy already set a value directly. Values set
inline always win over the profile.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from outputcache.exceptions import ConfigurationMissing, ProfileNotFound
from outputcache.models import CacheProfile, OutputCacheSettings


@dataclass(frozen=True)
class CacheFragment:
    """The subset of a cache policy a profile can contribute to.

    ``None`` means the value was never set on the policy.
    """

    duration: Optional[int] = None
    client_duration: Optional[int] = None
    disabled: Optional[bool] = None


def resolve_profile(settings: Optional[OutputCacheSettings], name: str) -> CacheProfile:
    """Look up the profile called *name*.

    Args:
        settings: The loaded settings, or ``None`` if none were loaded.
        name: Profile name, matched case-insensitively.

    Raises:
        ConfigurationMissing: If there is no profile table to search.
        ProfileNotFound: If no profile matches *name*.
    """
    if settings is None or settings.profiles is None:
        raise ConfigurationMissing(
            "No cache profiles have been configured. Add a 'profiles' section "
            "to the outputcache settings before referencing a profile by name."
        )
    profile = settings.find_profile(name)
    if profile is None:
        raise ProfileNotFound(name)
    return profile


def merge_profile(fragment: CacheFragment, profile: CacheProfile) -> CacheFragment:
    """Merge *profile* into *fragment*, keeping values the caller already set."""
    duration = fragment.duration
    if duration is None or duration <= 0:
        duration = profile.duration

    client_duration = fragment.client_duration
    if client_duration is None:
        client_duration = profile.duration

    disabled = fragment.disabled
    if disabled is None:
        disabled = not profile.enabled

    return replace(
        fragment,
        duration=duration,
        client_duration=client_duration,
        disabled=disabled,
    )
