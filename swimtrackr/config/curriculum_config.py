"""
Default Curriculum Configuration
The program package every new facility starts from: ordered levels, each with
ordered tasks. Used by scripts/seed_curriculum.py.
"""

DEFAULT_PACKAGE = {
    "name": "SwimTrackr Standard",
    "description": "Default learn-to-swim progression",
    "is_default": True,
}

# Order in these lists becomes order_index (starting at 1)
DEFAULT_LEVELS = [
    {
        "name": "Water Discovery",
        "description": "Comfort and safety in the water",
        "tasks": ["Enter and exit the pool safely", "Blow bubbles", "Submerge face", "Assisted front float"],
    },
    {
        "name": "Beginner",
        "description": "Independent floating and basic propulsion",
        "tasks": ["Independent front float", "Independent back float", "Flutter kick with board", "Glide 3 metres"],
    },
    {
        "name": "Intermediate",
        "description": "Stroke foundations",
        "tasks": ["Front crawl arms", "Side breathing", "Backstroke 10 metres", "Treading water 30 seconds"],
    },
    {
        "name": "Advanced",
        "description": "Stroke development and endurance",
        "tasks": ["Front crawl 25 metres", "Breaststroke kick", "Butterfly kick", "Open turn"],
    },
    {
        "name": "Swimmer",
        "description": "Competent swimmer",
        "tasks": ["Front crawl 50 metres", "Breaststroke 25 metres", "Tumble turn", "Survival float 2 minutes"],
    },
]


def get_curriculum():
    """Package with levels and tasks carrying explicit order_index values"""
    return {
        "package": dict(DEFAULT_PACKAGE),
        "levels": [
            {
                "name": level["name"],
                "description": level["description"],
                "order_index": level_index,
                "tasks": [
                    {"name": task, "order_index": task_index}
                    for task_index, task in enumerate(level["tasks"], start=1)
                ],
            }
            for level_index, level in enumerate(DEFAULT_LEVELS, start=1)
        ],
    }


CURRICULUM = get_curriculum()
