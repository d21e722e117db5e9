"""
Tablas estáticas categoría -> filtros y categoría -> keywords.

Los filtros apuntan a campos estructurados de la comunidad; las keywords
son el fallback por texto libre para comunidades sin esos campos.
"""

from types import MappingProxyType

# Campo lógico -> atributo del modelo Community
FIELD_ATTRIBUTES = MappingProxyType({
    "life_stage": "life_stages",
    "age_group": "age_group",
    "gender": "gender",
    "ministry": "ministry_types",
    "activity": "activities",
    "profession": "professions",
    "recovery": "recovery_support",
    "meeting_type": "meeting_type",
})

CATEGORY_TO_FILTERS: MappingProxyType = MappingProxyType({
    # Etapa de vida
    "College Life": (
        ("life_stage", ("Students",)),
        ("age_group", ("Young Adult",)),
    ),
    "Young Professional": (
        ("life_stage", ("Young Professionals",)),
        ("age_group", ("Young Adult", "Adult")),
    ),
    "Single": (
        ("life_stage", ("Singles",)),
    ),
    "Dating & Relationships": (
        ("life_stage", ("Singles", "Married")),
    ),
    "Newlywed": (
        ("life_stage", ("Married",)),
    ),
    # Género
    "Men": (
        ("gender", ("Men's Only",)),
    ),
    "Women": (
        ("gender", ("Women's Only",)),
    ),
    # Fe y crecimiento
    "New to Faith": (
        ("life_stage", ("New Believers",)),
        ("ministry", ("Discipleship",)),
    ),
    "Bible Study": (
        ("ministry", ("Bible Study",)),
    ),
    "Prayer": (
        ("ministry", ("Prayer",)),
    ),
    "Worship & Music": (
        ("ministry", ("Worship",)),
        ("activity", ("Music", "Worship Music")),
    ),
    "Apologetics": (
        ("ministry", ("Apologetics",)),
    ),
    "Missions & Outreach": (
        ("ministry", ("Missions", "Evangelism")),
        ("activity", ("Service Projects", "Volunteering")),
    ),
    # Intereses y estilo de vida
    "Mental Health": (
        ("recovery", ("Mental Health",)),
    ),
    "Career & Purpose": (
        ("profession", ("Business", "Entrepreneurs")),
        ("life_stage", ("Young Professionals",)),
    ),
    "Creative Arts": (
        ("activity", ("Arts & Crafts", "Music", "Photography", "Writing", "Theater/Drama")),
    ),
    "Fitness & Sports": (
        ("activity", (
            "Sports", "Fitness", "Running", "Hiking",
            "Basketball", "Soccer", "Cycling", "Swimming",
        )),
    ),
    "Social Events": (
        ("activity", ("Social Events", "Coffee & Conversations", "Board Games", "Movies")),
    ),
    "Small Groups": (
        ("ministry", ("Discipleship", "Bible Study")),
        ("meeting_type", ("In-Person", "Hybrid")),
    ),
})

CATEGORY_KEYWORDS: MappingProxyType = MappingProxyType({
    "College Life": ("college", "university", "student", "campus", "dorm", "grad"),
    "Young Professional": ("professional", "career", "workplace", "young adult", "20s", "millennial"),
    "Single": ("single", "singles", "unmarried"),
    "Dating & Relationships": ("dating", "relationship", "couples", "love", "engaged"),
    "Newlywed": ("newlywed", "married", "marriage", "spouse", "wedding"),
    "Men": ("men", "man", "brotherhood", "guys", "bros"),
    "Women": ("women", "woman", "sisterhood", "ladies", "girls"),
    "New to Faith": ("new believer", "new to faith", "seeker", "exploring", "beginner", "basics"),
    "Bible Study": ("bible", "study", "scripture", "word", "reading", "devotional"),
    "Prayer": ("prayer", "intercession", "praying", "devotion"),
    "Worship & Music": ("worship", "praise", "music", "singing", "band", "choir"),
    "Apologetics": ("apologetics", "defense", "reason", "evidence", "questions", "theology", "doctrine"),
    "Missions & Outreach": ("missions", "outreach", "evangelism", "serve", "volunteer", "global"),
    "Mental Health": ("mental health", "wellness", "anxiety", "support", "healing", "recovery"),
    "Career & Purpose": ("career", "purpose", "calling", "work", "vocation", "business"),
    "Creative Arts": ("creative", "art", "music", "writing", "film", "media", "design"),
    "Fitness & Sports": ("fitness", "sports", "gym", "running", "workout", "health", "active"),
    "Social Events": ("social", "events", "meetup", "gathering", "hangout", "fun", "fellowship"),
    "Small Groups": ("small group", "home group", "life group", "community", "connect"),
})
