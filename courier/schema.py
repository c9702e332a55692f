"""Schema for Git LFS custom transfer protocol events.

Each schema loads the JSON body of one event (without its ``event`` tag)
into the matching type from :mod:`courier.types`, and dumps it
back. Request objects travel flat on the wire (``oid`` and ``size`` sit next
to the other event fields), so they are nested and flattened here.
"""
from typing import Any

import marshmallow
from marshmallow import fields, post_dump, post_load, pre_dump, validate

from courier.types import (
    Complete,
    Download,
    Init,
    ObjectRef,
    Operation,
    Progress,
    Terminate,
    TransferError,
    Upload,
)

# Git LFS object IDs are hex encoded SHA-256 hashes
OID_PATTERN = r"^[0-9a-f]{64}\Z"


class EventSchema(marshmallow.Schema):
    """Base class for event schemas.

    Git LFS may send fields we do not care about (e.g. ``action`` for
    standalone transfers), so unknown fields are dropped rather than
    rejected.
    """

    class Meta:
        unknown = marshmallow.EXCLUDE


class InitSchema(EventSchema):
    operation = fields.Enum(Operation, required=True)
    remote = fields.String(required=True)
    concurrent = fields.Boolean(load_default=False)
    concurrent_transfers = fields.Integer(
        data_key="concurrenttransfers",
        load_default=None,
        allow_none=True,
        validate=validate.Range(min=1),
    )

    @post_load
    def make_event(self, data: dict[str, Any], **_: Any) -> Init:
        return Init(**data)


class ObjectSchema(EventSchema):
    """Flat object fields shared by download and upload requests."""

    oid = fields.String(
        required=True,
        validate=validate.Regexp(OID_PATTERN, error="Not a SHA-256 OID"),
    )
    size = fields.Integer(required=True, validate=validate.Range(min=0))


class DownloadSchema(ObjectSchema):
    @pre_dump
    def flatten_object(self, event: Download, **_: Any) -> dict[str, Any]:
        return {"oid": event.object.oid, "size": event.object.size}

    @post_load
    def make_event(self, data: dict[str, Any], **_: Any) -> Download:
        return Download(object=ObjectRef(oid=data["oid"], size=data["size"]))


class UploadSchema(ObjectSchema):
    path = fields.String(required=True, validate=validate.Length(min=1))

    @pre_dump
    def flatten_object(self, event: Upload, **_: Any) -> dict[str, Any]:
        return {
            "oid": event.object.oid,
            "size": event.object.size,
            "path": event.path,
        }

    @post_load
    def make_event(self, data: dict[str, Any], **_: Any) -> Upload:
        return Upload(
            object=ObjectRef(oid=data["oid"], size=data["size"]),
            path=data["path"],
        )


class ProgressSchema(EventSchema):
    oid = fields.String(required=True)
    bytes_so_far = fields.Integer(
        data_key="bytesSoFar", required=True, validate=validate.Range(min=0)
    )
    bytes_since_last = fields.Integer(
        data_key="bytesSinceLast",
        required=True,
        validate=validate.Range(min=0),
    )

    @post_load
    def make_event(self, data: dict[str, Any], **_: Any) -> Progress:
        return Progress(**data)


class TransferErrorSchema(EventSchema):
    code = fields.Integer(required=True)
    message = fields.String(required=True)

    @post_load
    def make_error(self, data: dict[str, Any], **_: Any) -> TransferError:
        return TransferError(**data)


class CompleteSchema(EventSchema):
    oid = fields.String(required=True)
    path = fields.String(load_default=None, allow_none=True)
    error = fields.Nested(
        TransferErrorSchema, load_default=None, allow_none=True
    )

    @marshmallow.validates_schema
    def validate_result(self, data: dict[str, Any], **_: Any) -> None:
        if data.get("path") is not None and data.get("error") is not None:
            raise marshmallow.ValidationError(
                "Only one of 'path' and 'error' may be set"
            )

    @post_dump
    def remove_empty_result(
        self, data: dict[str, Any], **_: Any
    ) -> dict[str, Any]:
        return {k: v for k, v in data.items() if v is not None}

    @post_load
    def make_event(self, data: dict[str, Any], **_: Any) -> Complete:
        return Complete(**data)


class TerminateSchema(EventSchema):
    @post_load
    def make_event(self, data: dict[str, Any], **_: Any) -> Terminate:
        return Terminate()


# Event tag -> (event type, schema instance)
event_schemas: dict[str, tuple[type, EventSchema]] = {
    "init": (Init, InitSchema()),
    "download": (Download, DownloadSchema()),
    "upload": (Upload, UploadSchema()),
    "terminate": (Terminate, TerminateSchema()),
    "progress": (Progress, ProgressSchema()),
    "complete": (Complete, CompleteSchema()),
}
