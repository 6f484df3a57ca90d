"""
Battle report field table.

Maps report labels to record keys. Rules are evaluated in the declared
order and nothing tracks which text an earlier rule already matched, so
overlapping labels are kept apart inside the patterns themselves:

  Land Mine Damage        vs  Inner Land Mine Damage   (lookbehind)
  Reroll Shards           vs  Reroll Shards Earned     (anchor + label lookahead)
  Damage Taken            vs  Damage Taken Wall/While  (label lookahead)
  Wave                    vs  Death Wave ...           (lookbehind)
  Gems                    vs  ...Gems                  (word anchor)
"""

import re
from dataclasses import dataclass
from enum import Enum

from .numbers import CASH_RE_STR, NUM_RE_STR


class ValueKind(Enum):
    """How a captured value is stored."""
    TEXT = "text"      # trimmed and kept verbatim
    NUMBER = "number"  # decoded through the numeric codec


@dataclass(frozen=True)
class FieldRule:
    """One named extraction rule."""
    key: str
    pattern: re.Pattern
    kind: ValueKind = ValueKind.NUMBER

    def find(self, text: str) -> str | None:
        """Captured value for this rule, or None when the label is absent."""
        match = self.pattern.search(text)
        if not match:
            return None
        return match.group(1)


def _text(key: str, pattern: str) -> FieldRule:
    return FieldRule(key, re.compile(pattern), ValueKind.TEXT)


def _raw(key: str, pattern: str) -> FieldRule:
    return FieldRule(key, re.compile(pattern))


def _num(key: str, label: str) -> FieldRule:
    return FieldRule(key, re.compile(rf"{label}\s+{NUM_RE_STR}"))


def _cash(key: str, label: str) -> FieldRule:
    return FieldRule(key, re.compile(rf"{label}\s+{CASH_RE_STR}"))


def _count(key: str, label: str) -> FieldRule:
    return FieldRule(key, re.compile(rf"{label}\s+(\d+)"))


# Order matters: more specific labels come before more general ones.
FIELD_RULES: tuple[FieldRule, ...] = (
    # Meta
    _text("battleDate", r"Battle Date\s+(.+?)(?=\s+Game Time)"),
    _text("gameTimeRaw", r"Game Time\s+(\d+h\s*\d+m\s*\d+s)"),
    _text("realTimeRaw", r"Real Time\s+(\d+h\s*\d+m\s*\d+s)"),
    _count("tier", "Tier"),
    _raw("wave", r"(?<!Death )Wave\s+(\d+)"),
    _text("killedBy", r"Killed By\s+(\S+)"),

    # Coins / cash / gems
    _num("coinsEarned", "Coins earned"),
    _num("coinsPerHour", "Coins per hour"),
    _cash("cashEarned", "Cash earned"),
    _cash("interestEarned", "Interest earned"),
    _count("gemBlocksTapped", "Gem Blocks Tapped"),

    # Cells & shards
    _num("cellsEarned", "Cells Earned"),
    _num("rerollShardsEarned", "Reroll Shards Earned"),

    # Combat
    _raw("damageDealt", rf"(?:Combat )?Damage dealt\s+{NUM_RE_STR}"),
    _raw("damageTaken", rf"Damage Taken(?!\s+W(?:all|hile))\s+{NUM_RE_STR}"),
    _num("damageTakenWall", "Damage Taken Wall"),
    _num("damageTakenWhileBerserked", "Damage Taken While Berserked"),
    _raw("damageGainFromBerserk", r"Damage Gain From Berserk\s+x?([\d.]+)"),
    _count("deathDefy", "Death Defy"),
    _num("lifesteal", "Lifesteal"),

    # Projectiles
    _num("projectilesDamage", "Projectiles Damage"),
    _num("projectilesCount", "Projectiles Count"),

    # Skills / abilities
    _num("thornDamage", "Thorn damage"),
    _num("orbDamage", "Orb Damage"),
    _num("enemiesHitByOrbs", "Enemies Hit by Orbs"),
    _raw("landMineDamage", rf"(?<!Inner )Land Mine Damage\s+{NUM_RE_STR}"),
    _num("landMinesSpawned", "Land Mines Spawned"),
    _num("rendArmorDamage", "Rend Armor Damage"),
    _num("deathRayDamage", "Death Ray Damage"),
    _num("smartMissileDamage", "Smart Missile Damage"),
    _num("innerLandMineDamage", "Inner Land Mine Damage"),
    _num("chainLightningDamage", "Chain Lightning Damage"),
    _num("deathWaveDamage", "Death Wave Damage"),
    _count("taggedByDeathwave", "Tagged by Deathwave"),
    _num("swampDamage", "Swamp Damage"),
    _num("blackHoleDamage", "Black Hole Damage"),
    _num("electronsDamage", "Electrons Damage"),

    # Utility
    _count("wavesSkipped", "Waves Skipped"),
    _count("recoveryPackages", "Recovery Packages"),
    _count("freeAttackUpgrade", "Free Attack Upgrade"),
    _count("freeDefenseUpgrade", "Free Defense Upgrade"),
    _count("freeUtilityUpgrade", "Free Utility Upgrade"),
    _num("hpFromDeathWave", "HP From Death Wave"),
    _num("coinsFromDeathWave", "Coins From Death Wave"),
    _cash("cashFromGoldenTower", "Cash From Golden Tower"),
    _num("coinsFromGoldenTower", "Coins From Golden Tower"),
    _num("coinsFromBlackHole", "Coins From Black Hole"),
    _num("coinsFromSpotlight", "Coins From Spotlight"),
    _num("coinsFromOrb", "Coins From Orb"),
    _num("coinsFromCoinUpgrade", "Coins from Coin Upgrade"),
    _num("coinsFromCoinBonuses", "Coins from Coin Bonuses"),

    # Enemies destroyed
    _count("totalEnemies", "Total Enemies"),
    _count("basicEnemies", "Basic"),
    _count("fastEnemies", "Fast"),
    _count("tankEnemies", "Tank"),
    _count("rangedEnemies", "Ranged"),
    _count("bossEnemies", "Boss"),
    _count("protectorEnemies", "Protector"),
    _count("totalElites", "Total Elites"),
    _count("vampires", "Vampires"),
    _count("rays", "Rays"),
    _count("scatters", "Scatters"),
    _count("saboteur", "Saboteur"),
    _count("commander", "Commander"),
    _count("overcharge", "Overcharge"),
    _count("destroyedByOrbs", "Destroyed By Orbs"),
    _count("destroyedByThorns", "Destroyed by Thorns"),
    _count("destroyedByDeathRay", "Destroyed by Death Ray"),
    _count("destroyedByLandMine", "Destroyed by Land Mine"),
    _count("destroyedInSpotlight", "Destroyed in Spotlight"),

    # Bots
    _num("flameBotDamage", "Flame Bot Damage"),
    _count("thunderBotStuns", "Thunder Bot Stuns"),
    _num("goldenBotCoins", "Golden Bot Coins Earned"),
    _count("destroyedInGoldenBot", "Destroyed in Golden Bot"),

    # Guardian
    _num("guardianDamage", "Guardian Damage"),
    _count("summonedEnemies", "Summoned enemies"),
    _num("guardianCoinsStolen", "Guardian coins stolen"),
    _num("coinsFetched", "Coins Fetched"),
    _raw("gems", r"(?:^|\s)Gems\s+(\d+)"),
    _count("medals", "Medals"),
    _raw("rerollShards", r"(?:^|\s)Reroll Shards(?!\s+Earned)\s+(\d+)"),
    _count("cannonShards", "Cannon Shards"),
    _count("armorShards", "Armor Shards"),
    _count("generatorShards", "Generator Shards"),
    _count("coreShards", "Core Shards"),
    _count("commonModules", "Common Modules"),
    _count("rareModules", "Rare Modules"),
)

TEXT_FIELDS = frozenset(rule.key for rule in FIELD_RULES if rule.kind is ValueKind.TEXT)

FIELD_KEYS = tuple(rule.key for rule in FIELD_RULES)
