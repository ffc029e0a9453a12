CONTRACT_VERSION = "1.1.0"

COMMAND_INTENTS = (
    "create_character",
    "submit_action",
    "rest",
    "allocate_stat_points",
    "set_companion_active",
    "start_new_story",
)

QUERY_INTENTS = (
    "get_character_sheet",
    "get_character_for_user",
    "narrator_status",
)

CONTRACT_DTO_TYPES = (
    "ActionResult",
    "CharacterSheetView",
    "NarratorSnapshot",
    "Narration",
    "LevelProgressView",
)
