from newsroom.models import SectionBudget, SectionConfig, SectionQuery

FRONT_PAGE = "frontPage"

SECTIONS = {
    FRONT_PAGE: SectionConfig(
        id=FRONT_PAGE,
        label="Front Page",
        budget=SectionBudget(secondary=6, quick_hits=10),
        query=None,
    ),
    "ai": SectionConfig(
        id="ai",
        label="AI",
        budget=SectionBudget(secondary=3, quick_hits=5),
        query=SectionQuery(
            topics=[
                "ai", "machine-learning", "deep-learning", "llm", "gpt",
                "neural-network", "nlp", "computer-vision", "generative-ai", "transformers",
            ],
            languages=["Jupyter Notebook"],
        ),
    ),
    "robotics": SectionConfig(
        id="robotics",
        label="Robotics",
        budget=SectionBudget(secondary=3, quick_hits=5),
        query=SectionQuery(
            topics=[
                "robotics", "robot", "ros", "autonomous", "drone",
                "embedded", "iot", "arduino", "sensor",
            ],
        ),
    ),
    "cyber": SectionConfig(
        id="cyber",
        label="Cyber",
        budget=SectionBudget(secondary=3, quick_hits=5),
        query=SectionQuery(
            topics=[
                "security", "cybersecurity", "hacking", "pentest",
                "vulnerability", "exploit", "ctf", "malware", "encryption",
            ],
        ),
    ),
    "systems": SectionConfig(
        id="systems",
        label="Systems",
        budget=SectionBudget(secondary=3, quick_hits=5),
        query=SectionQuery(languages=["Rust", "Go", "C", "C++", "Zig"]),
    ),
    "diy": SectionConfig(
        id="diy",
        label="DIY",
        budget=SectionBudget(secondary=3, quick_hits=5),
        query=SectionQuery(
            topics=[
                "diy", "maker", "hardware", "3d-printing",
                "home-automation", "self-hosted", "homelab", "raspberry-pi",
            ],
        ),
    ),
}

# Later sections skip repos claimed by earlier ones, so this order matters.
SECTION_ORDER = [FRONT_PAGE, "ai", "robotics", "cyber", "systems", "diy"]
