from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Comment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    name: str
    comment: str
    created_at: datetime


class Post(BaseModel):
    """
    A post with the author's name, location and picture copied at creation time.
    Those fields are not kept in sync with later profile changes.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = None
    user_id: str
    first_name: str
    last_name: str
    location: str = ""
    user_picture_path: str = ""
    description: str
    picture_path: str = ""
    likes: Dict[str, bool] = {}
    comments: List[Comment] = []
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = Field(default=0, exclude=True)

    def is_liked_by(self, user_id: str) -> bool:
        return self.likes.get(user_id, False)


class LikeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: Optional[str] = None


class CommentRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: Optional[str] = None
    comment: str
