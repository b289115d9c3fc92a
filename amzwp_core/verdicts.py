"""Deterministic, category-keyed product descriptions."""

import re
from typing import Optional

MIN_EXISTING_VERDICT_CHARS = 100
VERDICT_SENTENCES = 3
GENERIC_OPENINGS = ("this ", "the ", "a ")
DEFAULT_BRAND = "This premium"

_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+")
_NAME_JUNK_RE = re.compile(r"[^\w\s\-]", re.ASCII)

TEMPLATES = {
    "headphones": "Engineered for audiophiles and professionals who demand studio-quality sound, the {brand} {name} delivers immersive audio with deep bass, crystal-clear highs, and industry-leading noise cancellation. Advanced driver technology and ergonomic design ensure hours of comfortable listening while preserving every detail in your favorite tracks. Trusted by music producers worldwide and backed by {brand}'s comprehensive warranty and dedicated audio support.",
    "laptop": "Built for professionals and power users who demand desktop-class performance, the {brand} {name} combines cutting-edge processing power with all-day battery life and a stunning display. Blazing-fast SSD storage and generous RAM handle demanding workflows from video editing to software development without breaking a sweat. Trusted by Fortune 500 companies and backed by {brand}'s premium support with next-day replacement options.",
    "phone": "Designed for users who demand flagship performance and exceptional photography, the {brand} {name} features a pro-grade camera system, lightning-fast processor, and all-day battery in a premium build. Advanced AI optimizes every shot and adapts to your usage patterns while 5G connectivity delivers blazing download speeds anywhere. Backed by {brand}'s global warranty network and 24/7 customer support.",
    "coffee": "Crafted for coffee connoisseurs who refuse to compromise on their daily brew, the {brand} {name} extracts maximum flavor with precise temperature control and optimal pressure. Programmable settings let you customize strength and timing while premium components ensure consistent results cup after cup. Trusted by certified baristas and backed by {brand}'s 2-year comprehensive warranty.",
    "kitchen": "Designed for home chefs who demand restaurant-quality results, the {brand} {name} combines professional-grade performance with intuitive controls and effortless cleanup. Premium food-safe materials exceed FDA standards while powerful engineering handles everything from delicate sauces to tough ingredients. Trusted in over 100,000 kitchens and backed by {brand}'s comprehensive warranty.",
    "fitness": "Engineered for athletes pursuing measurable results, the {brand} {name} delivers gym-quality performance with commercial-grade durability and ergonomic design. Smart tracking and adaptive resistance systems optimize every workout while reinforced construction handles intense daily use. Trusted by certified trainers and backed by {brand}'s industry-leading warranty.",
    "gaming": "Designed for competitive gamers who demand split-second responsiveness, the {brand} {name} delivers tournament-proven performance with sub-millisecond latency and precision controls. Customizable settings and premium materials provide the competitive edge that separates winners in ranked play. Trusted by professional esports athletes and backed by {brand}'s 3-year warranty.",
    "outdoor": "Built for adventurers who depend on reliable gear in extreme conditions, the {brand} {name} performs flawlessly from arctic cold to desert heat with military-grade construction. Weather-sealed components and impact-resistant materials survive conditions that destroy inferior equipment. Field-tested by professionals and backed by {brand}'s unconditional lifetime guarantee.",
    "camera": "Engineered for photographers who demand exceptional image quality, the {brand} {name} captures stunning detail in any lighting with advanced sensor technology and precision optics. Fast autofocus ensures you never miss the shot while 4K video capabilities satisfy professional production needs. Trusted by award-winning photographers and backed by {brand}'s professional support program.",
    "home": "Crafted for modern homes that demand both style and functionality, the {brand} {name} combines elegant design with exceptional durability and effortless maintenance. Premium materials resist wear and fading while thoughtful engineering ensures years of reliable performance. Backed by {brand}'s satisfaction guarantee and thousands of 5-star reviews.",
    "beauty": "Formulated for skincare enthusiasts who demand visible results, the {brand} {name} combines clinically-proven ingredients with luxurious textures that absorb quickly. Dermatologist-tested and suitable for all skin types, it addresses multiple concerns while strengthening the skin's natural barrier. Trusted by licensed estheticians and backed by {brand}'s 60-day results guarantee.",
    "baby": "Designed with infant safety as the absolute priority, the {brand} {name} exceeds international safety standards while delivering the functionality parents need. Hypoallergenic materials and one-handed operation make daily use effortless during those exhausting early months. Pediatrician-recommended and backed by {brand}'s comprehensive warranty.",
    "pet": "Created for pet parents who treat companions like family, the {brand} {name} combines veterinarian-approved safety with durability that withstands enthusiastic daily use. Non-toxic materials protect paws and teeth while providing enrichment and comfort your pet will love. Trusted by over 50,000 happy pets and backed by {brand}'s satisfaction guarantee.",
    "tools": "Built for professionals who demand reliability under pressure, the {brand} {name} delivers commercial-grade power and precision that makes quick work of tough jobs. Ergonomic design reduces fatigue while brushless motor technology maximizes runtime and longevity. Trusted on jobsites worldwide and backed by {brand}'s 5-year professional warranty.",
    "monitor": "Designed for professionals and gamers who demand visual excellence, the {brand} {name} delivers stunning color accuracy with high refresh rates and wide color gamut. Ergonomic adjustability and eye-care technology reduce strain during marathon sessions. Trusted by video editors and esports athletes, backed by {brand}'s zero dead pixel guarantee.",
    "speaker": "Engineered for music lovers who demand room-filling sound, the {brand} {name} delivers powerful, balanced audio with deep bass and crystal-clear highs in a premium design. Smart connectivity and voice control provide seamless integration with your devices and smart home ecosystem. Trusted by audio engineers and backed by {brand}'s 2-year warranty.",
    "vacuum": "Designed for homeowners who demand powerful, effortless cleaning, the {brand} {name} delivers exceptional suction with advanced filtration that captures 99.9% of particles. Smart navigation and self-emptying technology handle daily cleaning automatically while you focus on what matters. Trusted in millions of homes and backed by {brand}'s comprehensive warranty.",
    "default": "Engineered for discerning users who demand excellence, the {brand} {name} delivers professional-grade performance with premium materials and precision engineering. Thoughtful design addresses real-world needs while rigorous quality control ensures long-term reliability. Backed by {brand}'s comprehensive warranty and thousands of verified 5-star reviews.",
}

# first matching category wins, so order matters
CATEGORY_KEYWORDS = (
    ("headphones", ("headphone", "earphone", "earbud", "airpod", "audio", "beats", "bose", "sony wh", "sony wf", "jabra", "sennheiser")),
    ("laptop", ("laptop", "macbook", "notebook", "chromebook", "thinkpad", "surface pro", "xps", "pavilion")),
    ("phone", ("phone", "iphone", "samsung galaxy", "pixel", "oneplus", "smartphone")),
    ("coffee", ("coffee", "espresso", "keurig", "nespresso", "brewer", "barista", "latte")),
    ("kitchen", ("kitchen", "cookware", "blender", "mixer", "instant pot", "air fryer", "knife", "pan", "pot", "ninja", "cuisinart")),
    ("fitness", ("fitness", "gym", "workout", "exercise", "yoga", "weight", "treadmill", "dumbbell", "peloton", "bowflex")),
    ("gaming", ("gaming", "game", "controller", "keyboard", "mouse", "headset", "razer", "logitech g", "rgb", "mechanical")),
    ("outdoor", ("outdoor", "camping", "hiking", "tent", "backpack", "flashlight", "tactical", "yeti", "coleman")),
    ("camera", ("camera", "dslr", "mirrorless", "canon eos", "nikon", "sony alpha", "gopro", "fujifilm")),
    ("home", ("home", "furniture", "decor", "storage", "bedding", "pillow", "mattress", "roomba", "robot vacuum")),
    ("beauty", ("beauty", "skincare", "makeup", "serum", "cream", "hair", "shampoo", "moisturizer")),
    ("baby", ("baby", "infant", "toddler", "nursery", "stroller", "graco", "pampers", "car seat")),
    ("pet", ("pet", "dog", "cat", "puppy", "kitten", "kong", "purina", "treat", "leash", "collar")),
    ("tools", ("tool", "drill", "saw", "dewalt", "milwaukee", "makita", "craftsman", "wrench", "impact")),
    ("monitor", ("monitor", "display", "screen", "4k", "ultrawide", "curved", "gaming monitor")),
    ("speaker", ("speaker", "soundbar", "subwoofer", "sonos", "bose speaker", "jbl speaker", "bluetooth speaker")),
    ("vacuum", ("vacuum", "roomba", "dyson", "shark", "bissell", "cordless vacuum", "robot vacuum")),
)


def detect_category(name: str, brand: str = "", category: str = "") -> str:
    combined = f"{name} {brand} {category}".lower()
    for cat, keywords in CATEGORY_KEYWORDS:
        if any(kw in combined for kw in keywords):
            return cat
    return "default"


def _usable_existing(verdict: str, name: str, brand: str) -> Optional[str]:
    """The first three sentences of ``verdict`` if it is specific enough to keep."""
    clean = (verdict or "").strip()
    if len(clean) <= MIN_EXISTING_VERDICT_CHARS:
        return None
    lower = clean.lower()
    if lower.startswith(GENERIC_OPENINGS):
        return None
    sentences = _SENTENCE_RE.findall(clean)
    if len(sentences) < VERDICT_SENTENCES:
        return None
    name_head = (name or "").lower().split(" ")[0]
    specific = (brand and brand.lower() in lower) or (name_head and name_head in lower)
    if not specific:
        return None
    return " ".join(s.strip() for s in sentences[:VERDICT_SENTENCES])


def generate_verdict(name: str, brand: str, category: str, existing: Optional[str] = None) -> str:
    """Three-sentence description for a product.

    An ``existing`` description is kept (trimmed to three sentences) when it is
    over 100 characters, has at least three sentences, mentions the brand or
    the first word of the name, and does not open with "this", "the" or "a".
    Otherwise the template for the detected category is filled in.
    """
    kept = _usable_existing(existing, name, brand)
    if kept:
        return kept
    clean_name = _NAME_JUNK_RE.sub("", name or "").strip()
    clean_brand = brand or DEFAULT_BRAND
    template = TEMPLATES[detect_category(name or "", brand or "", category or "")]
    return template.format(brand=clean_brand, name=clean_name)
