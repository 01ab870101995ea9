from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class NoteUpdated(BaseModel):
    type: Literal["note_updated"] = "note_updated"
    note_id: str
    note_path: str


class NoteDeleted(BaseModel):
    type: Literal["note_deleted"] = "note_deleted"
    note_id: str


class ImageUploaded(BaseModel):
    type: Literal["image_uploaded"] = "image_uploaded"
    local_path: str
    hash: str


class SyncAll(BaseModel):
    type: Literal["sync_all"] = "sync_all"
    sync_folder: str


class GenerateHtml(BaseModel):
    type: Literal["generate_html"] = "generate_html"
    output_path: str
    index_path: str


PublishEvent = Annotated[
    Union[NoteUpdated, NoteDeleted, ImageUploaded, SyncAll, GenerateHtml],
    Field(discriminator="type"),
]

publish_event_adapter: TypeAdapter[PublishEvent] = TypeAdapter(PublishEvent)


def encode_event(event: PublishEvent) -> bytes:
    return event.model_dump_json(indent=2).encode("utf-8")


def decode_event(data: bytes | str) -> PublishEvent:
    return publish_event_adapter.validate_json(data)
