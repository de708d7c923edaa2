"""Object-created event envelope delivered through the intake queue."""

from pydantic import BaseModel, ConfigDict, Field


class _EventObject(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: str = Field(min_length=1)
    size: int | None = None


class _EventBucket(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None


class _EventDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    object: _EventObject
    bucket: _EventBucket | None = None


class ObjectCreatedEvent(BaseModel):
    """Minimal shape of a storage notification: ``{detail: {object: {key}}}``.

    Anything that does not validate against this model is noise.
    """

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    detail: _EventDetail

    @property
    def object_key(self) -> str:
        return self.detail.object.key

    @property
    def bucket(self) -> str | None:
        return self.detail.bucket.name if self.detail.bucket else None
