import json, os
import logging
import random
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

log = logging.getLogger(__name__)

RANDOM_CATEGORY = "random"


@dataclass(frozen=True)
class TextItem:
    category: str
    content: str
    attribution: str = ""


FALLBACK_ITEM = TextItem(
    category="general",
    content="The quick brown fox jumps over the lazy dog.",
    attribution="Traditional pangram",
)


def load_text_items(path="assets/texts.json") -> List[TextItem]:
    """Read `[{category, content, attribution}, ...]`; bad entries are skipped."""
    p = Path(path)
    if not p.exists():
        log.warning("Text corpus %s not found", p)
        return []
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("Failed to read text corpus %s: %s", p, e)
        return []
    if not isinstance(data, list):
        log.warning("Text corpus %s is not a list", p)
        return []

    items = []
    for raw in data:
        if not isinstance(raw, dict):
            continue
        content = raw.get("content")
        if not isinstance(content, str) or not content.strip():
            continue
        items.append(
            TextItem(
                category=str(raw.get("category") or "general"),
                content=content.strip().replace("\r\n", "\n"),
                attribution=str(raw.get("attribution") or ""),
            )
        )
    log.info("Loaded %d text item(s) from %s", len(items), p)
    return items


def unique_categories(items) -> List[str]:
    return sorted({t.category for t in items if t.category})


def pick_text(items, category: str = RANDOM_CATEGORY, rng: Optional[random.Random] = None) -> TextItem:
    rng = rng or random
    if category and category != RANDOM_CATEGORY:
        pool = [t for t in items if t.category == category]
    else:
        pool = list(items)
    if not pool:
        return FALLBACK_ITEM
    return rng.choice(pool)


def load_last_category(path="data/last_mode.json") -> str:
    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f).get("category")
    except FileNotFoundError:
        return RANDOM_CATEGORY
    except (OSError, ValueError, AttributeError) as e:
        log.warning("Ignoring unreadable %s: %s", path, e)
        return RANDOM_CATEGORY
    return saved if isinstance(saved, str) and saved else RANDOM_CATEGORY


def save_last_category(category: str, path="data/last_mode.json"):
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"category": category}, f, indent=2)
    except OSError as e:
        log.warning("Could not save last category to %s: %s", path, e)
