from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Literal, Optional, Tuple


class ContentItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    topics: Tuple[str, ...] = ()
    hashtags: Tuple[str, ...] = ()
    duration_ms: Optional[float] = None
    metadata: Dict = {}


class WeightedEntry(BaseModel):
    name: str
    weight: float


class InterestSet(BaseModel):
    topics: List[WeightedEntry] = []
    hashtags: List[WeightedEntry] = []

    def is_empty(self):
        return not self.topics and not self.hashtags


class ContentRequest(BaseModel):
    limit: int = Field(default=10, ge=1)
    topics: List[WeightedEntry] = []
    hashtags: List[WeightedEntry] = []


class PostsResponse(BaseModel):
    posts: List[ContentItem]
    limit: int
    total: int


class InteractionEvent(BaseModel):
    event: Literal["like", "interested", "not_interested", "comment", "view_start", "view_end"]
    item: ContentItem


class ClassifierState(BaseModel):
    trained: bool = False
    training: bool = False
    vocabulary_snapshot: List[str] = []
    generation: int = 0


class InteractionView(BaseModel):
    item_id: str
    topics: List[str]
    hashtags: List[str]
    liked: bool
    interested: bool
    not_interested: bool
    commented: bool
    time_spent_ms: float
    last_updated: float


class SessionSnapshot(BaseModel):
    classifier: ClassifierState
    topics: List[str]
    hashtags: List[str]
    interaction_count: int
    last_interest: InterestSet
    recent_interactions: List[InteractionView] = []
