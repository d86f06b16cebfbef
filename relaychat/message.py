"""
Control messages sent by chat clients.

A frame may carry several JSON objects back to back, e.g.::

    {"content": {"text": "hi"}} {"create": {"username": "ada"}}

Every facet is optional; only ``content.text`` is acted on by the room.
"""
import json
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import DecodeError

_decoder = json.JSONDecoder()


class Content(BaseModel):
    """Chat text to relay to the other users."""
    text: str = Field(default='', description='Message text')

    @field_validator('text', mode='before')
    @classmethod
    def _null_text(cls, value):
        return '' if value is None else value


class Create(BaseModel):
    """Request to join under a username."""
    username: str = Field(default='', description='Requested username')

    @field_validator('username', mode='before')
    @classmethod
    def _null_username(cls, value):
        return '' if value is None else value


class ErrorFacet(BaseModel):
    error: str = Field(default='', description='Error reported by the client')

    @field_validator('error', mode='before')
    @classmethod
    def _null_error(cls, value):
        return '' if value is None else value


class Control(BaseModel):
    """One decoded control message. ``user`` is the sender, set by the room."""
    content: Content = Field(default_factory=Content)
    create: Create = Field(default_factory=Create)
    error: ErrorFacet = Field(default_factory=ErrorFacet)
    user: Any = Field(default=None, exclude=True)

    @field_validator('content', 'create', 'error', mode='before')
    @classmethod
    def _null_facet(cls, value):
        return {} if value is None else value


def _describe(error):
    parts = []
    for detail in error.errors():
        loc = '.'.join(str(part) for part in detail['loc'])
        parts.append(f'{loc}: {detail["msg"]}' if loc else detail['msg'])
    return '; '.join(parts)


def decode(frame, user=None):
    """Yield each Control in ``frame`` in order.

    Raises DecodeError at the first malformed value; everything yielded before
    it is still valid.
    """
    if isinstance(frame, (bytes, bytearray)):
        try:
            frame = bytes(frame).decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError(f'frame is not UTF-8: {e.reason}', pos=e.start) from e
    pos = 0
    end = len(frame)
    while True:
        while pos < end and frame[pos].isspace():
            pos += 1
        if pos >= end:
            return
        start = pos
        try:
            data, pos = _decoder.raw_decode(frame, pos)
        except json.JSONDecodeError as e:
            raise DecodeError(e.msg, e.doc, e.pos) from e
        if not isinstance(data, dict):
            raise DecodeError(f'expected a JSON object, got {type(data).__name__}', frame, start)
        try:
            control = Control.model_validate(data)
        except ValidationError as e:
            raise DecodeError(_describe(e), frame, start) from e
        control.user = user
        yield control
