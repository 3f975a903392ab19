# src/app/domain/models.py
"""
Domain models for recipes and their interactions.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Difficulty(str, Enum):
    """Difficulty levels offered by the recipe form."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class RecipeSort(str, Enum):
    """Listing orders; every order is descending."""
    NEWEST = "newest"    # created_at
    POPULAR = "popular"  # likes_count
    VIEWS = "views"      # view_count

    @property
    def column(self) -> str:
        return _SORT_COLUMNS[self]


_SORT_COLUMNS = {
    RecipeSort.NEWEST: "created_at",
    RecipeSort.POPULAR: "likes_count",
    RecipeSort.VIEWS: "view_count",
}


@dataclass
class Ingredient:
    name: str
    amount: str


@dataclass
class Nutrition:
    """Per-serving nutrition facts; every field is optional."""
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None


@dataclass
class Comment:
    id: str
    user_id: str
    text: str
    created_at: datetime
    user_name: Optional[str] = None
    user_photo_url: Optional[str] = None


@dataclass
class Recipe:
    """
    A shared recipe together with its embedded interactions.

    Counters are denormalised next to the collections they count and are
    always recomputed from them (see `sync_counters`).
    """
    id: str
    title: str
    description: str
    category: str
    prep_time: int
    cook_time: int
    servings: int
    user_id: str

    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = field(default_factory=list)
    ingredients: list[Ingredient] = field(default_factory=list)
    instructions: list[str] = field(default_factory=list)
    tips: list[str] = field(default_factory=list)
    nutrition: Nutrition = field(default_factory=Nutrition)
    images: list[str] = field(default_factory=list)

    # Owner snapshot, denormalised for display
    user_name: Optional[str] = None
    user_photo_url: Optional[str] = None

    is_featured: bool = False
    view_count: int = 0

    # Interactions
    likes: list[str] = field(default_factory=list)
    likes_count: int = 0
    saves: list[str] = field(default_factory=list)
    saves_count: int = 0
    ratings: dict[str, int] = field(default_factory=dict)
    rating_sum: int = 0
    rating_count: int = 0
    comments: list[Comment] = field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Optimistic concurrency token, bumped on every write
    version: int = 0

    @property
    def average_rating(self) -> float:
        if not self.rating_count:
            return 0.0
        return round(self.rating_sum / self.rating_count, 1)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id

    def find_comment(self, comment_id: str) -> Optional[Comment]:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
        return None

    def sync_counters(self) -> None:
        """Recompute every counter from the collection it summarises."""
        self.likes_count = len(self.likes)
        self.saves_count = len(self.saves)
        self.rating_count = len(self.ratings)
        self.rating_sum = sum(self.ratings.values())


@dataclass
class RecipeFilter:
    """Exact-match filters for listing; unset fields do not filter."""
    category: Optional[str] = None
    owner_id: Optional[str] = None
    tag: Optional[str] = None
    featured: bool = False
    saved_by: Optional[str] = None

    def matches(self, recipe: Recipe) -> bool:
        if self.category is not None and recipe.category != self.category:
            return False
        if self.owner_id is not None and recipe.user_id != self.owner_id:
            return False
        if self.tag is not None and self.tag.strip().lower() not in recipe.tags:
            return False
        if self.featured and not recipe.is_featured:
            return False
        if self.saved_by is not None and self.saved_by not in recipe.saves:
            return False
        return True


@dataclass
class RecipePage:
    items: list[Recipe]
    next_cursor: Optional[str] = None


@dataclass
class ToggleResult:
    """Authoritative state after a like/save toggle."""
    active: bool
    count: int


@dataclass
class RatingSummary:
    user_rating: int
    rating_sum: int
    rating_count: int

    @property
    def average(self) -> float:
        if not self.rating_count:
            return 0.0
        return round(self.rating_sum / self.rating_count, 1)


@dataclass
class CommentPage:
    items: list[Comment]
    page: int
    per_page: int
    total: int

    @property
    def total_pages(self) -> int:
        if not self.total:
            return 0
        return -(-self.total // self.per_page)


@dataclass
class UserIdentity:
    """Authenticated user as reported by the identity provider."""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


@dataclass
class UserProfile:
    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    photo_url: Optional[str] = None
    saved_recipes: list[str] = field(default_factory=list)
    created_at: Optional[datetime] = None


@dataclass
class UploadProgress:
    """Progress of one object upload; `url` is set on the final event only."""
    bytes_transferred: int
    total_bytes: int
    url: Optional[str] = None

    @property
    def percent(self) -> float:
        if not self.total_bytes:
            return 100.0
        return self.bytes_transferred * 100.0 / self.total_bytes

    @property
    def is_complete(self) -> bool:
        return self.url is not None


@dataclass
class DashboardStats:
    total_recipes: int = 0
    total_likes: int = 0
    total_comments: int = 0
    total_views: int = 0
    total_saved: int = 0
