from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from market_linker.knowledge import aliases

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class AliasTable:
    """Read-only alias -> canonical map with aliases pre-sorted longest first."""

    lookup: Mapping[str, str]
    ordered: Tuple[str, ...]
    alias_tokens: Mapping[str, Tuple[str, ...]]

    def __contains__(self, alias: str) -> bool:
        return alias in self.lookup

    def __len__(self) -> int:
        return len(self.lookup)


@dataclass(frozen=True)
class AliasRegistry:
    teams: AliasTable
    people: AliasTable
    organizations: AliasTable
    leagues: AliasTable
    central_banks: AliasTable
    team_domains: Mapping[str, str]


def build_alias_table(tables: Iterable[Dict[str, List[str]]]) -> AliasTable:
    lookup: Dict[str, str] = {}
    for table in tables:
        for canonical, alias_list in table.items():
            lookup.setdefault(canonical.lower().replace("_", " "), canonical)
            for alias in alias_list:
                lookup.setdefault(alias.lower(), canonical)
    ordered = tuple(sorted(lookup, key=lambda a: (-len(a), a)))
    alias_tokens = {alias: tuple(_TOKEN_SPLIT.sub(" ", alias).split()) for alias in lookup}
    return AliasTable(
        lookup=MappingProxyType(lookup),
        ordered=ordered,
        alias_tokens=MappingProxyType(alias_tokens),
    )


def build_registry() -> AliasRegistry:
    domains: Dict[str, str] = {}
    for game, table in aliases.ESPORTS_TEAM_GROUPS.items():
        for canonical in table:
            domains.setdefault(canonical, game)
    for domain, table in (
        ("UFC", aliases.UFC_FIGHTERS),
        ("TENNIS", aliases.TENNIS_PLAYERS),
        ("F1", aliases.F1_ENTRANTS),
        ("GOLF", aliases.GOLF_PLAYERS),
        ("SOCCER", aliases.SOCCER_TEAMS),
        ("MLB", aliases.MLB_TEAMS),
    ):
        for canonical in table:
            domains.setdefault(canonical, domain)

    return AliasRegistry(
        teams=build_alias_table(aliases.TEAM_TABLES),
        people=build_alias_table(aliases.PEOPLE_TABLES),
        organizations=build_alias_table(aliases.ORGANIZATION_TABLES),
        leagues=build_alias_table([aliases.SPORTS_LEAGUES]),
        central_banks=build_alias_table([aliases.CENTRAL_BANKS]),
        team_domains=MappingProxyType(domains),
    )


@lru_cache(maxsize=1)
def default_registry() -> AliasRegistry:
    return build_registry()
