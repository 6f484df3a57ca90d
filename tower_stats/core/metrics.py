"""
Metric catalogue and display helpers for stored runs.

Groups the run fields into sections, knows how each one should be shown,
and prepares chronological series for charting.
"""

from dataclasses import dataclass
from typing import Any, Optional

from .dates import battle_date_sort_key
from .durations import format_seconds
from .numbers import PLACEHOLDER, format_number


@dataclass(frozen=True)
class MetricSpec:
    """A displayable run metric.

    style is one of: number (suffix notation), int (thousands separators),
    duration, plain, multiplier.
    """
    key: str
    label: str
    section: str
    style: str = "number"


def _section(name: str, entries: list[tuple]) -> list[MetricSpec]:
    return [MetricSpec(key, label, name, *rest) for key, label, *rest in entries]


METRICS: tuple[MetricSpec, ...] = tuple(
    _section("Overview", [
        ("wave", "Wave", "int"),
        ("tier", "Tier", "plain"),
        ("realTimeSeconds", "Real Time", "duration"),
        ("gameTimeSeconds", "Game Time", "duration"),
    ])
    + _section("Economy", [
        ("coinsEarned", "Coins Earned"),
        ("coinsPerHour", "Coins/Hour"),
        ("cashEarned", "Cash Earned"),
        ("interestEarned", "Interest Earned"),
        ("cellsEarned", "Cells Earned"),
        ("rerollShardsEarned", "Reroll Shards Earned"),
        ("gemBlocksTapped", "Gem Blocks Tapped", "int"),
    ])
    + _section("Combat", [
        ("damageDealt", "Damage Dealt"),
        ("damageTaken", "Damage Taken"),
        ("damageTakenWall", "Damage Taken Wall"),
        ("damageTakenWhileBerserked", "Dmg While Berserked"),
        ("damageGainFromBerserk", "Berserk Multiplier", "multiplier"),
        ("deathDefy", "Death Defy", "int"),
        ("lifesteal", "Lifesteal"),
        ("projectilesDamage", "Projectiles Dmg"),
        ("projectilesCount", "Projectiles Count"),
        ("thornDamage", "Thorn Damage"),
        ("orbDamage", "Orb Damage"),
        ("enemiesHitByOrbs", "Enemies Hit by Orbs"),
        ("landMineDamage", "Land Mine Dmg"),
        ("landMinesSpawned", "Land Mines Spawned", "int"),
        ("rendArmorDamage", "Rend Armor Dmg"),
        ("deathRayDamage", "Death Ray Dmg"),
        ("smartMissileDamage", "Smart Missile Dmg"),
        ("innerLandMineDamage", "Inner Land Mine Dmg"),
        ("chainLightningDamage", "Chain Lightning Dmg"),
        ("deathWaveDamage", "Death Wave Dmg"),
        ("taggedByDeathwave", "Tagged by Deathwave", "int"),
        ("swampDamage", "Swamp Damage"),
        ("blackHoleDamage", "Black Hole Dmg"),
        ("electronsDamage", "Electrons Dmg"),
    ])
    + _section("Utility", [
        ("wavesSkipped", "Waves Skipped", "int"),
        ("recoveryPackages", "Recovery Packages", "int"),
        ("freeAttackUpgrade", "Free Attack Upgrades", "int"),
        ("freeDefenseUpgrade", "Free Defense Upgrades", "int"),
        ("freeUtilityUpgrade", "Free Utility Upgrades", "int"),
        ("hpFromDeathWave", "HP From Death Wave"),
        ("coinsFromDeathWave", "Coins From Death Wave"),
        ("cashFromGoldenTower", "Cash From Golden Tower"),
        ("coinsFromGoldenTower", "Coins From Golden Tower"),
        ("coinsFromBlackHole", "Coins From Black Hole"),
        ("coinsFromSpotlight", "Coins From Spotlight"),
        ("coinsFromOrb", "Coins From Orb"),
        ("coinsFromCoinUpgrade", "Coins From Upgrade"),
        ("coinsFromCoinBonuses", "Coins From Bonuses"),
    ])
    + _section("Enemies", [
        ("totalEnemies", "Total Enemies", "int"),
        ("basicEnemies", "Basic", "int"),
        ("fastEnemies", "Fast", "int"),
        ("tankEnemies", "Tank", "int"),
        ("rangedEnemies", "Ranged", "int"),
        ("bossEnemies", "Boss", "int"),
        ("protectorEnemies", "Protector", "int"),
        ("totalElites", "Total Elites", "int"),
        ("vampires", "Vampires", "int"),
        ("rays", "Rays", "int"),
        ("scatters", "Scatters", "int"),
        ("saboteur", "Saboteur", "int"),
        ("commander", "Commander", "int"),
        ("overcharge", "Overcharge", "int"),
        ("destroyedByOrbs", "Destroyed by Orbs", "int"),
        ("destroyedByThorns", "Destroyed by Thorns", "int"),
        ("destroyedByDeathRay", "Destroyed by Death Ray", "int"),
        ("destroyedByLandMine", "Destroyed by Land Mine", "int"),
        ("destroyedInSpotlight", "Destroyed in Spotlight", "int"),
    ])
    + _section("Bots", [
        ("flameBotDamage", "Flame Bot Dmg"),
        ("thunderBotStuns", "Thunder Bot Stuns", "int"),
        ("goldenBotCoins", "Golden Bot Coins"),
        ("destroyedInGoldenBot", "Destroyed in Golden Bot", "int"),
        ("guardianDamage", "Guardian Dmg"),
        ("summonedEnemies", "Summoned Enemies", "int"),
        ("guardianCoinsStolen", "Guardian Coins Stolen"),
        ("coinsFetched", "Coins Fetched"),
    ])
    + _section("Rewards", [
        ("gems", "Gems", "int"),
        ("medals", "Medals", "int"),
        ("rerollShards", "Reroll Shards", "int"),
        ("cannonShards", "Cannon Shards", "int"),
        ("armorShards", "Armor Shards", "int"),
        ("generatorShards", "Generator Shards", "int"),
        ("coreShards", "Core Shards", "int"),
        ("commonModules", "Common Modules", "int"),
        ("rareModules", "Rare Modules", "int"),
    ])
)

METRICS_BY_KEY: dict[str, MetricSpec] = {m.key: m for m in METRICS}

SECTIONS: tuple[str, ...] = tuple(dict.fromkeys(m.section for m in METRICS))


def format_int(value: Any) -> str:
    """Integer with thousands separators."""
    if value is None:
        return PLACEHOLDER
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.2f}"
    return f"{int(value):,}"


def format_metric(key: str, value: Any) -> str:
    """Display string for one metric value."""
    if value is None:
        return PLACEHOLDER
    metric = METRICS_BY_KEY.get(key)
    style = metric.style if metric else "number"
    if style == "int":
        return format_int(value)
    if style == "duration":
        return format_seconds(value)
    if style == "multiplier":
        return f"x{value}"
    if style == "plain":
        return str(value)
    return format_number(value)


def chronological_runs(runs: list[dict]) -> list[dict]:
    """Runs with a battle date, oldest first.

    Dates the parser cannot read sort ahead of real dates, by their text.
    """
    dated = [run for run in runs if run.get("battleDate") is not None]
    return sorted(dated, key=lambda run: battle_date_sort_key(run["battleDate"]))


def metric_series(runs: list[dict], key: str) -> tuple[list[str], list[Optional[float]]]:
    """Chart series for one metric: (battle date labels, values)."""
    ordered = chronological_runs(runs)
    labels = [run["battleDate"] for run in ordered]
    values = []
    for run in ordered:
        value = run.get(key)
        values.append(float(value) if value is not None else None)
    return labels, values


def summarize_run(run: dict) -> dict[str, str]:
    """Row shown in the run history list."""
    return {
        "date": run.get("battleDate") or PLACEHOLDER,
        "tier": str(run["tier"]) if run.get("tier") is not None else PLACEHOLDER,
        "wave": str(run["wave"]) if run.get("wave") is not None else PLACEHOLDER,
        "killedBy": run.get("killedBy") or PLACEHOLDER,
        "coins": format_number(run.get("coinsEarned")),
        "cells": format_number(run.get("cellsEarned")),
        "elites": str(run["totalElites"]) if run.get("totalElites") is not None else PLACEHOLDER,
        "realTime": format_seconds(run.get("realTimeSeconds")),
    }
