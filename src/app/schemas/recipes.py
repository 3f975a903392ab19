# src/app/schemas/recipes.py
from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.app.domain.models import (
    Comment,
    CommentPage,
    DashboardStats,
    RatingSummary,
    Recipe,
    RecipePage,
    ToggleResult,
)
from src.app.infra.db.records import format_datetime

# camelCase request keys that differ from the domain field names
_FIELD_NAMES = {
    "prepTime": "prep_time",
    "cookTime": "cook_time",
    "isFeatured": "is_featured",
}


class RecipeInput(BaseModel):
    """
    Recipe form payload, used for both create and partial update.

    Values are left loosely typed: forms send numbers as strings and list
    editors may carry blank rows, which the service layer cleans up and
    reports per field.
    """
    model_config = ConfigDict(extra="allow")

    title: Any = None
    description: Any = None
    category: Any = None
    difficulty: Any = None
    prepTime: Any = None
    cookTime: Any = None
    servings: Any = None
    tags: Any = None
    ingredients: Any = None
    instructions: Any = None
    tips: Any = None
    nutrition: Any = None
    images: Any = None
    isFeatured: Any = None

    def to_fields(self) -> dict[str, Any]:
        """Fields that were actually sent, keyed by domain name."""
        data = self.model_dump(exclude_unset=True)
        return {_FIELD_NAMES.get(key, key): value for key, value in data.items()}


class IngredientOut(BaseModel):
    name: str
    amount: str


class NutritionOut(BaseModel):
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None


class CommentResponse(BaseModel):
    id: str
    userId: str
    userName: Optional[str] = None
    userPhotoURL: Optional[str] = None
    text: str
    createdAt: Optional[str] = None

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            userId=comment.user_id,
            userName=comment.user_name,
            userPhotoURL=comment.user_photo_url,
            text=comment.text,
            createdAt=format_datetime(comment.created_at),
        )


class RecipeResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    difficulty: str
    prepTime: int
    cookTime: int
    servings: int
    tags: list[str] = Field(default_factory=list)
    ingredients: list[IngredientOut] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    tips: list[str] = Field(default_factory=list)
    nutrition: NutritionOut = Field(default_factory=NutritionOut)
    images: list[str] = Field(default_factory=list)
    userId: str
    userName: Optional[str] = None
    userPhotoURL: Optional[str] = None
    isFeatured: bool = False
    viewCount: int = 0
    likes: list[str] = Field(default_factory=list)
    likesCount: int = 0
    saves: list[str] = Field(default_factory=list)
    savesCount: int = 0
    ratings: dict[str, int] = Field(default_factory=dict)
    ratingSum: int = 0
    ratingCount: int = 0
    averageRating: float = 0.0
    commentsCount: int = 0
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @classmethod
    def from_domain(cls, recipe: Recipe) -> "RecipeResponse":
        nutrition = recipe.nutrition
        return cls(
            id=recipe.id,
            title=recipe.title,
            description=recipe.description,
            category=recipe.category,
            difficulty=recipe.difficulty.value,
            prepTime=recipe.prep_time,
            cookTime=recipe.cook_time,
            servings=recipe.servings,
            tags=list(recipe.tags),
            ingredients=[IngredientOut(name=i.name, amount=i.amount) for i in recipe.ingredients],
            instructions=list(recipe.instructions),
            tips=list(recipe.tips),
            nutrition=NutritionOut(
                calories=nutrition.calories,
                protein=nutrition.protein,
                carbs=nutrition.carbs,
                fat=nutrition.fat,
                fiber=nutrition.fiber,
            ),
            images=list(recipe.images),
            userId=recipe.user_id,
            userName=recipe.user_name,
            userPhotoURL=recipe.user_photo_url,
            isFeatured=recipe.is_featured,
            viewCount=recipe.view_count,
            likes=list(recipe.likes),
            likesCount=recipe.likes_count,
            saves=list(recipe.saves),
            savesCount=recipe.saves_count,
            ratings=dict(recipe.ratings),
            ratingSum=recipe.rating_sum,
            ratingCount=recipe.rating_count,
            averageRating=recipe.average_rating,
            commentsCount=len(recipe.comments),
            createdAt=format_datetime(recipe.created_at),
            updatedAt=format_datetime(recipe.updated_at),
        )


class RecipeWithWarnings(RecipeResponse):
    warnings: list[str] = Field(default_factory=list)


class RecipePageResponse(BaseModel):
    items: list[RecipeResponse]
    nextCursor: Optional[str] = None

    @classmethod
    def from_domain(cls, page: RecipePage) -> "RecipePageResponse":
        return cls(items=[RecipeResponse.from_domain(r) for r in page.items], nextCursor=page.next_cursor)


class ToggleResponse(BaseModel):
    active: bool
    count: int

    @classmethod
    def from_domain(cls, result: ToggleResult) -> "ToggleResponse":
        return cls(active=result.active, count=result.count)


class RatingRequest(BaseModel):
    # validated by the service so the error carries the rating rules
    value: Any


class RatingResponse(BaseModel):
    userRating: int
    ratingSum: int
    ratingCount: int
    averageRating: float

    @classmethod
    def from_domain(cls, summary: RatingSummary) -> "RatingResponse":
        return cls(
            userRating=summary.user_rating,
            ratingSum=summary.rating_sum,
            ratingCount=summary.rating_count,
            averageRating=summary.average,
        )


class CommentCreate(BaseModel):
    text: str = ""


class CommentPageResponse(BaseModel):
    items: list[CommentResponse]
    page: int
    perPage: int
    total: int
    totalPages: int

    @classmethod
    def from_domain(cls, page: CommentPage) -> "CommentPageResponse":
        return cls(
            items=[CommentResponse.from_domain(c) for c in page.items],
            page=page.page,
            perPage=page.per_page,
            total=page.total,
            totalPages=page.total_pages,
        )


class DashboardResponse(BaseModel):
    totalRecipes: int = 0
    totalLikes: int = 0
    totalComments: int = 0
    totalViews: int = 0
    totalSaved: int = 0

    @classmethod
    def from_domain(cls, stats: DashboardStats) -> "DashboardResponse":
        return cls(
            totalRecipes=stats.total_recipes,
            totalLikes=stats.total_likes,
            totalComments=stats.total_comments,
            totalViews=stats.total_views,
            totalSaved=stats.total_saved,
        )


SortParam = Literal["newest", "popular", "views"]
