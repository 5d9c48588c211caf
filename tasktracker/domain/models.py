"""Pydantic schemas for the persisted document and the API payloads."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic.alias_generators import to_camel


class _Schema(BaseModel):
    # camelCase no disco e na API, snake_case no codigo
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(_Schema):
    id: StrictStr = Field(min_length=1)
    title: StrictStr = Field(min_length=1, max_length=200)
    description: StrictStr = Field(min_length=1)
    done: StrictBool
    approved: StrictBool
    completed_details: StrictStr


class Request(_Schema):
    request_id: StrictStr = Field(min_length=1)
    original_request: StrictStr = Field(min_length=1)
    split_details: StrictStr
    tasks: List[Task]
    completed: StrictBool


class TasksDocument(_Schema):
    requests: List[Request]


class RequestCreate(_Schema):
    original_request: StrictStr = Field(min_length=1)
    split_details: StrictStr = ""
    completed: StrictBool = False


class RequestUpdate(_Schema):
    original_request: Optional[StrictStr] = Field(default=None, min_length=1)
    split_details: Optional[StrictStr] = None
    completed: Optional[StrictBool] = None


class TaskCreate(_Schema):
    title: StrictStr = Field(min_length=1, max_length=200)
    description: StrictStr = Field(min_length=1)
    done: StrictBool = False
    approved: StrictBool = False
    completed_details: StrictStr = ""


class TaskUpdate(_Schema):
    title: Optional[StrictStr] = Field(default=None, min_length=1, max_length=200)
    description: Optional[StrictStr] = Field(default=None, min_length=1)
    done: Optional[StrictBool] = None
    approved: Optional[StrictBool] = None
    completed_details: Optional[StrictStr] = None


def empty_document() -> dict:
    return {"requests": []}
