"""Location resolution for services."""

from dataclasses import dataclass, field
from typing import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import LocationTitleRule, Settings
from src.modules.directory.models import Location


@dataclass(frozen=True)
class LocationTable:
    """
    Service code -> location lookup.

    Title rules are checked first (case-insensitive substring of the class title),
    then the plain service-code map. Location codes with no row in `locations`
    resolve to None, as do missing or unmapped service codes.
    """

    location_ids: Mapping[str, int]
    service_locations: Mapping[str, str] = field(default_factory=dict)
    title_rules: tuple[LocationTitleRule, ...] = ()

    @classmethod
    def from_settings(
        cls, settings: Settings, location_ids: Mapping[str, int]
    ) -> "LocationTable":
        return cls(
            location_ids=dict(location_ids),
            service_locations=dict(settings.service_location_map),
            title_rules=tuple(settings.location_title_rules),
        )

    def location_code_for(self, service_code: str | None, class_title: str | None) -> str | None:
        if not service_code:
            return None
        if class_title:
            title = class_title.lower()
            for rule in self.title_rules:
                if rule.service_code == service_code and rule.title_contains.lower() in title:
                    return rule.location_code
        return self.service_locations.get(service_code)

    def resolve(self, service_code: str | None, class_title: str | None = None) -> int | None:
        code = self.location_code_for(service_code, class_title)
        if code is None:
            return None
        return self.location_ids.get(code)


class DirectoryService:
    """Read-only access to directory reference data."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_location_ids(self, codes: Iterable[str] | None = None) -> dict[str, int]:
        """Map location code -> id for active locations."""
        query = select(Location.code, Location.id).where(Location.is_active == True)  # noqa: E712
        if codes is not None:
            query = query.where(Location.code.in_(list(codes)))
        result = await self.db.execute(query)
        return {code: location_id for code, location_id in result.all()}

    async def build_location_table(self, settings: Settings) -> LocationTable:
        wanted = set(settings.service_location_map.values())
        wanted.update(rule.location_code for rule in settings.location_title_rules)
        location_ids = await self.get_location_ids(wanted)
        return LocationTable.from_settings(settings, location_ids)
