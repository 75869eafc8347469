import re
from dataclasses import dataclass
from enum import Enum

from src.modules.fetcher.schemas import RawItem


class Category(str, Enum):
    LLMS = "llms"
    CV = "cv"
    ML = "ml"
    AGI = "agi"
    ROBOTICS = "robotics"
    AGENTS = "agents"
    NLP = "nlp"


DEFAULT_CATEGORY = Category.ML


@dataclass(frozen=True)
class CategoryRule:
    category: Category
    pattern: re.Pattern[str]

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def keyword_rule(category: Category, *keywords: str) -> CategoryRule:
    alternation = "|".join(re.escape(keyword) for keyword in keywords)
    return CategoryRule(category, re.compile(rf"\b(?:{alternation})\b", re.IGNORECASE))


# Evaluated top to bottom, first match wins. "autonomous agent" resolves to
# robotics because that rule precedes agents.
RULES: tuple[CategoryRule, ...] = (
    keyword_rule(
        Category.LLMS,
        "gpt", "llm", "language model", "chatgpt", "claude", "gemini", "transformer",
    ),
    keyword_rule(
        Category.CV,
        "computer vision", "cv", "image recognition", "object detection", "yolo",
        "segmentation",
    ),
    keyword_rule(Category.AGI, "agi", "artificial general intelligence", "superintelligence"),
    keyword_rule(Category.ROBOTICS, "robot", "robotics", "autonomous", "drone"),
    keyword_rule(Category.AGENTS, "agent", "autonomous agent", "multi-agent", "agentic"),
    keyword_rule(
        Category.NLP,
        "nlp", "natural language processing", "sentiment analysis", "text classification",
    ),
)


def categorize_text(text: str, rules: tuple[CategoryRule, ...] = RULES) -> Category:
    lowered = text.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.category
    return DEFAULT_CATEGORY


def categorize(item: RawItem, rules: tuple[CategoryRule, ...] = RULES) -> Category:
    """Assign a category from the item's title and content."""
    return categorize_text(f"{item.title} {item.content}", rules)
