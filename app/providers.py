"""Streaming platform definitions used for watch-provider filtering."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class StreamingPlatform:
    """A selectable platform and the vendor provider IDs it covers."""

    id: str
    name: str
    provider_ids: tuple[int, ...]
    regions: frozenset[str] | None = None

    def available_in(self, region: str) -> bool:
        return self.regions is None or region.upper() in self.regions


# Provider IDs as listed by the metadata vendor. Several brands carry two IDs
# after a rebrand (HBO Max/Max) or a catalogue split (Prime Video).
STREAMING_PLATFORMS: tuple[StreamingPlatform, ...] = (
    StreamingPlatform(id="netflix", name="Netflix", provider_ids=(8,)),
    StreamingPlatform(id="prime", name="Prime Video", provider_ids=(9, 119)),
    StreamingPlatform(id="disney", name="Disney+", provider_ids=(337,)),
    StreamingPlatform(id="max", name="MAX", provider_ids=(384, 1899)),
    StreamingPlatform(id="paramount", name="Paramount+", provider_ids=(531,)),
    StreamingPlatform(id="appletv", name="Apple TV+", provider_ids=(350,)),
    StreamingPlatform(id="crunchyroll", name="Crunchyroll", provider_ids=(283,)),
    StreamingPlatform(
        id="hulu", name="Hulu", provider_ids=(15,), regions=frozenset({"US"})
    ),
    StreamingPlatform(
        id="peacock", name="Peacock", provider_ids=(386,), regions=frozenset({"US"})
    ),
    StreamingPlatform(
        id="starz", name="Starz", provider_ids=(43,), regions=frozenset({"US"})
    ),
    StreamingPlatform(
        id="fubotv", name="FuboTV", provider_ids=(257,), regions=frozenset({"US"})
    ),
    StreamingPlatform(
        id="epix", name="Epix", provider_ids=(34,), regions=frozenset({"US"})
    ),
    StreamingPlatform(
        id="plutotv", name="Pluto TV", provider_ids=(300,), regions=frozenset({"US"})
    ),
)

# Providers without a platform menu entry that still count as streaming.
EXTRA_STREAMING_PROVIDER_IDS: tuple[int, ...] = (37, 188, 273, 12, 332)

ALL_PLATFORMS = "all"


def all_streaming_provider_ids() -> tuple[int, ...]:
    """Return every known subscription or free streaming provider ID."""

    ids: list[int] = []
    for platform in STREAMING_PLATFORMS:
        for provider_id in platform.provider_ids:
            if provider_id not in ids:
                ids.append(provider_id)
    for provider_id in EXTRA_STREAMING_PROVIDER_IDS:
        if provider_id not in ids:
            ids.append(provider_id)
    return tuple(ids)


def provider_ids_for_platform(platform: str) -> tuple[int, ...]:
    """Return provider IDs for a platform slug; unknown slugs cover every provider."""

    slug = (platform or "").strip().lower()
    for definition in STREAMING_PLATFORMS:
        if definition.id == slug:
            return definition.provider_ids
    return all_streaming_provider_ids()


def platforms_for_region(region: str) -> list[dict[str, str]]:
    """Return the platform menu for a region, ``all`` first."""

    menu = [{"id": ALL_PLATFORMS, "name": "All Platforms"}]
    menu.extend(
        {"id": platform.id, "name": platform.name}
        for platform in STREAMING_PLATFORMS
        if platform.available_in(region)
    )
    return menu


def includes_rental_content(platform: str) -> bool:
    """Without a platform filter results may include rent/purchase-only titles."""

    return (platform or ALL_PLATFORMS).strip().lower() == ALL_PLATFORMS
