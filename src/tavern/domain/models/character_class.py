from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class ClassCategory(str, Enum):
    HIGH_MAGIC = "high_magic"
    HYBRID = "hybrid"
    LOW_MAGIC = "low_magic"


@dataclass(frozen=True)
class CharacterClass:
    id: str
    name: str
    offense: int
    defense: int
    magic: int
    category: ClassCategory
    tier: str
    max_stamina: int
    max_mana: int
    description: str = ""
    icon: str = ""
    starting_skills: tuple[str, ...] = ()
    default_skills: Dict[str, int] = field(default_factory=dict)


def _cls(
    id: str,
    name: str,
    icon: str,
    offense: int,
    defense: int,
    magic: int,
    category: str,
    tier: str,
    max_mana: int,
    max_stamina: int,
    description: str,
    starting: List[str],
    defaults: Dict[str, int],
) -> CharacterClass:
    return CharacterClass(
        id=id,
        name=name,
        offense=offense,
        defense=defense,
        magic=magic,
        category=ClassCategory(category),
        tier=tier,
        max_stamina=max_stamina,
        max_mana=max_mana,
        description=description,
        icon=icon,
        starting_skills=tuple(starting),
        default_skills=dict(defaults),
    )


CLASS_CATALOG: tuple[CharacterClass, ...] = (
    # Exotic
    _cls("lich", "Lich", "💀", 6, 4, 9, "high_magic", "exotic", 180, 50, "Undead sorcerer. Can cast T2 spells while Drained.",
         ["Necromancy", "Soulbinding"],
         {"necromancy": 25, "soulbinding": 20, "destruction": 15, "alteration": 10, "illusion": 5, "intimidation": 10, "brawling": 2, "one_handed": 2, "climbing": 2, "infamy": 15}),
    _cls("werewolf", "Werewolf", "🐺", 9, 6, 1, "low_magic", "exotic", 15, 180, "Primal beast. Uses Stamina for Primal Leap and Frenzy.",
         ["Brawling", "Regeneration"],
         {"brawling": 25, "regeneration": 15, "acrobatics": 15, "climbing": 15, "stealth": 10, "intimidation": 10, "beastmastery": 10, "destruction": 1, "alteration": 1, "bravery": 10}),
    _cls("angel", "Fallen Angel", "👼", 8, 3, 9, "high_magic", "exotic", 200, 45, "Celestial being. High magic resistance, weak to Bloodmancy.",
         ["Alteration", "Justice"],
         {"alteration": 25, "regeneration": 20, "destruction": 15, "persuasion": 10, "justice": 20, "honor": 15, "mercy": 10, "brawling": 2, "stealth": 1}),
    _cls("vampire", "Vampire Noble", "🧛", 8, 5, 6, "hybrid", "exotic", 70, 90, "Can bite to restore Stamina mid-battle.",
         ["Seduction", "Bloodmancy", "Acrobatics"],
         {"seduction": 25, "bloodmancy": 20, "acrobatics": 15, "stealth": 12, "persuasion": 10, "intimidation": 8, "one_handed": 8, "infamy": 10, "malice": 5}),
    _cls("abyssal-mutant", "Abyssal Mutant", "🧬", 9, 7, 3, "low_magic", "exotic", 20, 170, "Warped by betrayal. Deception and raw power.",
         ["Deception", "Brawling"],
         {"brawling": 25, "intimidation": 20, "climbing": 12, "stealth": 10, "two_handed": 8, "acrobatics": 8, "infamy": 20, "malice": 10, "destruction": 3}),
    # Professional
    _cls("inquisitor", "Inquisitor", "⚖️", 7, 6, 5, "hybrid", "professional", 65, 95, "Gains Mana when using Intimidation on magical enemies.",
         ["Intimidation", "One Handed"],
         {"intimidation": 20, "one_handed": 18, "investigation": 15, "persuasion": 8, "destruction": 8, "alteration": 5, "justice": 15, "honor": 10, "bravery": 8}),
    _cls("bounty-hunter", "Bounty Hunter", "🎯", 7, 5, 3, "low_magic", "professional", 20, 160, "Can Track betrayers with low Stamina cost.",
         ["Beastmastery", "Ranged"],
         {"aim": 22, "beastmastery": 18, "stealth": 12, "investigation": 12, "climbing": 8, "acrobatics": 8, "bartering": 5, "brawling": 3, "justice": 8}),
    _cls("battle-medic", "Battle Medic", "💉", 3, 5, 8, "high_magic", "professional", 150, 60, "High Mana healer. Keeps Mercy reputation high.",
         ["Regeneration", "Persuasion"],
         {"regeneration": 25, "persuasion": 18, "alteration": 12, "investigation": 8, "mercy": 20, "honor": 10, "loyalty": 10, "brawling": 2, "stealth": 1}),
    _cls("shadow-blade", "Shadow Blade", "🌑", 9, 3, 4, "low_magic", "professional", 15, 175, "Ultimate assassin for Cold Justice playthroughs.",
         ["Stealth", "Sleight of Hand"],
         {"stealth": 25, "sleight_of_hand": 20, "one_handed": 15, "acrobatics": 12, "climbing": 10, "aim": 5, "illusion": 5, "infamy": 8}),
    _cls("wandering-knight", "Wandering Knight", "🛡️", 7, 9, 2, "low_magic", "professional", 15, 160, "High Physical Defense. Honorable warrior.",
         ["Two Handed", "Honor"],
         {"two_handed": 22, "one_handed": 12, "brawling": 8, "climbing": 5, "persuasion": 5, "honor": 20, "bravery": 15, "loyalty": 10, "justice": 8}),
    # Specialized
    _cls("soul-binder", "Soul Binder", "🔮", 5, 5, 8, "high_magic", "hybrid_specialized", 160, 55, "Can bind defeated enemies as permanent companions.",
         ["Soulbinding", "Loyalty"],
         {"soulbinding": 25, "necromancy": 12, "alteration": 12, "persuasion": 10, "investigation": 8, "loyalty": 20, "bravery": 5, "brawling": 2, "stealth": 2}),
    _cls("gunsmith", "Gunsmith/Alchemist", "🔧", 7, 4, 5, "hybrid", "hybrid_specialized", 60, 100, "Uses Bloodmancy to craft custom bullets.",
         ["Aim", "Bartering"],
         {"aim": 22, "bartering": 18, "bloodmancy": 10, "investigation": 10, "sleight_of_hand": 8, "destruction": 5, "stealth": 5, "climbing": 3}),
    _cls("illusionist", "Illusionist Thief", "🎭", 5, 3, 7, "hybrid", "hybrid_specialized", 75, 85, "Decoy costs 0 Mana but 20 Stamina.",
         ["Illusion", "Deception"],
         {"illusion": 25, "stealth": 15, "sleight_of_hand": 15, "persuasion": 10, "acrobatics": 8, "seduction": 5, "bartering": 5, "brawling": 1}),
    _cls("void-walker", "Void Walker", "🌀", 6, 4, 7, "hybrid", "hybrid_specialized", 80, 80, "Can Phase through attacks, regains Stamina on success.",
         ["Alteration", "Acrobatics"],
         {"alteration": 22, "acrobatics": 18, "destruction": 10, "stealth": 8, "climbing": 8, "illusion": 8, "investigation": 5, "bravery": 8}),
    _cls("dread-lord", "Dread Lord", "👑", 8, 5, 8, "high_magic", "hybrid_specialized", 170, 50, "Villain path. Necromancy and area damage.",
         ["Necromancy", "Intimidation"],
         {"necromancy": 22, "intimidation": 20, "destruction": 15, "soulbinding": 10, "bloodmancy": 8, "infamy": 25, "malice": 20, "brawling": 3}),
    # Classic
    _cls("assassin", "Assassin", "🗡️", 10, 2, 2, "low_magic", "professional", 10, 190, "Master of shadows and critical strikes",
         ["Stealth", "One Handed"],
         {"stealth": 25, "one_handed": 20, "acrobatics": 15, "sleight_of_hand": 12, "climbing": 8, "aim": 5, "infamy": 10, "bravery": 5}),
    _cls("brute", "Brute", "💪", 7, 10, 1, "low_magic", "professional", 10, 200, "Unstoppable wall of muscle",
         ["Brawling", "Two Handed"],
         {"brawling": 25, "two_handed": 20, "climbing": 10, "intimidation": 12, "bravery": 15, "one_handed": 5, "acrobatics": 2}),
    _cls("priest", "Priest", "⛪", 1, 5, 10, "high_magic", "professional", 200, 40, "Divine healer and protector",
         ["Regeneration", "Alteration"],
         {"regeneration": 25, "alteration": 22, "persuasion": 15, "mercy": 25, "honor": 15, "loyalty": 10, "investigation": 5, "brawling": 1}),
    _cls("storm-mage", "Storm Mage", "⚡", 9, 3, 9, "high_magic", "exotic", 180, 45, "Master of lightning and wind",
         ["Destruction", "Alteration"],
         {"destruction": 25, "alteration": 18, "illusion": 8, "regeneration": 5, "intimidation": 8, "bravery": 10, "brawling": 2, "climbing": 2}),
    _cls("bard", "Bard", "🎵", 4, 4, 7, "hybrid", "professional", 70, 85, "Charismatic performer and buffer",
         ["Persuasion", "Illusion"],
         {"persuasion": 25, "illusion": 18, "seduction": 12, "bartering": 10, "investigation": 8, "acrobatics": 5, "alteration": 5, "loyalty": 8}),
    _cls("druid", "Druid", "🌿", 5, 6, 8, "hybrid", "professional", 80, 80, "Guardian of nature",
         ["Beastmastery", "Regeneration"],
         {"beastmastery": 25, "regeneration": 18, "alteration": 12, "climbing": 10, "investigation": 8, "mercy": 10, "honor": 5, "brawling": 5}),
    _cls("monk", "Monk", "🥋", 7, 7, 4, "hybrid", "professional", 60, 100, "Martial arts master",
         ["Brawling", "Acrobatics"],
         {"brawling": 22, "acrobatics": 20, "climbing": 12, "stealth": 8, "regeneration": 8, "honor": 10, "bravery": 10, "persuasion": 3}),
    _cls("pyromancer", "Pyromancer", "🔥", 10, 2, 8, "high_magic", "exotic", 160, 50, "Master of flames",
         ["Destruction", "Bloodmancy"],
         {"destruction": 25, "bloodmancy": 18, "alteration": 8, "intimidation": 10, "bravery": 12, "acrobatics": 3, "stealth": 2, "infamy": 5}),
    _cls("rogue", "Rogue", "🎪", 7, 4, 3, "low_magic", "professional", 15, 165, "Cunning thief and trickster",
         ["Stealth", "Sleight of Hand"],
         {"stealth": 22, "sleight_of_hand": 20, "acrobatics": 12, "bartering": 10, "climbing": 8, "one_handed": 8, "investigation": 5, "infamy": 5}),
    _cls("archer", "Archer", "🏹", 8, 3, 3, "low_magic", "professional", 15, 165, "Precision ranged fighter",
         ["Aim", "Acrobatics"],
         {"aim": 25, "acrobatics": 15, "stealth": 10, "climbing": 10, "investigation": 8, "bravery": 8, "one_handed": 3, "beastmastery": 5}),
    _cls("necromancer", "Necromancer", "☠️", 5, 3, 10, "high_magic", "exotic", 190, 40, "Commander of the undead",
         ["Necromancy", "Soulbinding"],
         {"necromancy": 25, "soulbinding": 20, "destruction": 10, "bloodmancy": 8, "intimidation": 10, "infamy": 20, "malice": 10, "investigation": 3}),
    _cls("paladin", "Paladin", "⚔️", 7, 8, 5, "hybrid", "professional", 70, 90, "Holy knight of justice",
         ["Two Handed", "Regeneration"],
         {"two_handed": 18, "regeneration": 15, "one_handed": 10, "persuasion": 8, "honor": 20, "justice": 15, "bravery": 12, "loyalty": 10, "mercy": 8}),
    _cls("berserker", "Berserker", "🪓", 10, 3, 0, "low_magic", "professional", 10, 200, "Rage-fueled warrior",
         ["Brawling", "Two Handed"],
         {"brawling": 25, "two_handed": 22, "climbing": 8, "intimidation": 15, "bravery": 20, "infamy": 5, "acrobatics": 3}),
    _cls("knight", "Knight", "🏰", 6, 9, 2, "low_magic", "professional", 15, 160, "Honorable armored warrior",
         ["Two Handed", "One Handed"],
         {"two_handed": 18, "one_handed": 15, "brawling": 8, "persuasion": 8, "honor": 18, "loyalty": 12, "bravery": 15, "justice": 8}),
    # Final challenge
    _cls("fallen-hero", "The Fallen Hero", "⬇️", 5, 5, 5, "hybrid", "final_challenge", 70, 90, "Balanced but starts with permanent Drained debuff until Level 5.",
         ["One Handed", "Persuasion"],
         {"one_handed": 10, "persuasion": 10, "brawling": 8, "stealth": 8, "destruction": 8, "alteration": 8, "acrobatics": 8, "honor": 5, "bravery": 5}),
    _cls("cursed-peasant", "Cursed Peasant", "🧑‍🌾", 2, 2, 2, "hybrid", "final_challenge", 40, 80, "Starts at +0 everything. Every kill grants 2x XP.",
         [], {}),
    _cls("broken-vessel", "The Broken Vessel", "💔", 7, 5, 3, "low_magic", "final_challenge", 0, 150, "0 Max Mana. Uses Bloodmancy (HP/Stamina) for all spells.",
         ["Brawling", "Regeneration", "Bravery"],
         {"brawling": 18, "regeneration": 15, "bloodmancy": 12, "climbing": 8, "two_handed": 8, "bravery": 20, "intimidation": 5}),
    _cls("nameless-ghoul", "The Nameless Ghoul", "👻", 6, 4, 7, "high_magic", "final_challenge", 140, 60, "Reputation locked at -50. Soulbinding/Necromancy costs halved.",
         ["Stealth", "Necromancy", "Sleight of Hand"],
         {"necromancy": 20, "stealth": 18, "sleight_of_hand": 15, "soulbinding": 10, "bloodmancy": 8, "infamy": 15, "malice": 15, "investigation": 3}),
    _cls("fallen-prodigy", "The Fallen Prodigy", "🔮", 4, 3, 9, "high_magic", "final_challenge", 180, 45, "Lost their eyes. Ranged/Aim capped at 0. Massive Illusion radius.",
         ["Illusion", "Alteration", "Investigation"],
         {"illusion": 25, "alteration": 20, "investigation": 20, "destruction": 10, "regeneration": 8, "persuasion": 5, "bravery": 8}),
    _cls("exile-kingslayer", "The Exile Kingslayer", "👑", 8, 10, 2, "low_magic", "final_challenge", 15, 180, "Hunted by Bounty Hunters. x3 Vengeance Strike on defense.",
         ["Two Handed", "Intimidation", "Justice"],
         {"two_handed": 22, "intimidation": 18, "brawling": 12, "climbing": 8, "one_handed": 8, "justice": 20, "bravery": 15, "infamy": 10}),
    _cls("mimic-symbiote", "The Mimic Symbiote", "🦠", 6, 5, 6, "hybrid", "final_challenge", 70, 90, "Bonded with a parasite. Can copy enemy skills. Regen drains Stamina.",
         ["Acrobatics", "Deception", "Alteration"],
         {"acrobatics": 18, "alteration": 15, "stealth": 12, "climbing": 8, "brawling": 8, "investigation": 8, "sleight_of_hand": 5, "bravery": 5}),
)

CLASS_BY_ID: Dict[str, CharacterClass] = {cls.id: cls for cls in CLASS_CATALOG}


def find_class(class_id: object) -> Optional[CharacterClass]:
    raw = str(class_id or "").strip().lower().replace("_", "-").replace(" ", "-")
    return CLASS_BY_ID.get(raw)
