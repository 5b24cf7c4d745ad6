"""
Attachment tools.

Metadata lives in the ``sys_attachment`` table; file bodies go through the
Attachment API. File content crosses the protocol base64-encoded.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..client import ServiceNowClient
from ..errors import invalid_request
from .common import ToolGroup, ToolSpec, results

logger = logging.getLogger(__name__)

TABLE = "sys_attachment"
LIST_FIELDS = "sys_id,file_name,content_type,size_bytes,sys_created_on"


class ListAttachmentsParams(BaseModel):
    table_name: str = Field(..., min_length=1, description="Table the record belongs to (e.g. incident)")
    table_sys_id: str = Field(..., min_length=1, description="sys_id of the record whose attachments to list")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve")


class AttachmentParams(BaseModel):
    sys_id: str = Field(..., min_length=1, description="sys_id of the attachment")


class GetAttachmentParams(AttachmentParams):
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to retrieve (optional)")


class UploadAttachmentParams(BaseModel):
    table_name: str = Field(..., min_length=1, description="Table of the record to attach to (e.g. incident)")
    table_sys_id: str = Field(..., min_length=1, description="sys_id of the record to attach to")
    file_name: str = Field(..., min_length=1, description="Name of the file, including extension")
    content_type: str = Field("application/octet-stream", description="MIME type of the file (e.g. text/plain)")
    file_content: str = Field(..., description="File content, base64 encoded")


def list_attachments(client: ServiceNowClient, params: ListAttachmentsParams) -> Dict[str, Any]:
    query = f"table_name={params.table_name}^table_sys_id={params.table_sys_id}"
    attachments = results(client.query_table(TABLE, query, params.fields or LIST_FIELDS, limit=100)) or []
    return {"count": len(attachments), "attachments": attachments}


def get_attachment(client: ServiceNowClient, params: GetAttachmentParams) -> Dict[str, Any]:
    return results(client.get_record(TABLE, params.sys_id, params.fields)) or {}


def download_attachment(client: ServiceNowClient, params: AttachmentParams) -> Dict[str, Any]:
    attachment = results(client.get_record(TABLE, params.sys_id)) or {}
    content = client.download_attachment(params.sys_id)
    return {
        "sys_id": params.sys_id,
        "file_name": attachment.get("file_name"),
        "content_type": attachment.get("content_type"),
        "size_bytes": attachment.get("size_bytes"),
        "file_content": base64.b64encode(content).decode("utf-8"),
    }


def upload_attachment(client: ServiceNowClient, params: UploadAttachmentParams) -> Dict[str, Any]:
    try:
        content = base64.b64decode(params.file_content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise invalid_request(f"file_content is not valid base64: {e}") from e

    attachment = results(client.upload_attachment(
        params.table_name, params.table_sys_id, params.file_name, params.content_type, content
    )) or {}
    logger.info("Uploaded %s (%d bytes) to %s/%s",
                params.file_name, len(content), params.table_name, params.table_sys_id)
    return {
        "sys_id": attachment.get("sys_id"),
        "file_name": attachment.get("file_name"),
        "size_bytes": attachment.get("size_bytes"),
        "content_type": attachment.get("content_type"),
        "download_link": attachment.get("download_link"),
    }


def delete_attachment(client: ServiceNowClient, params: AttachmentParams) -> Dict[str, Any]:
    attachment = results(client.get_record(TABLE, params.sys_id, "sys_id,file_name")) or {}
    client.request("DELETE", f"/attachment/{params.sys_id}")
    return {
        "success": True,
        "message": f"Attachment {attachment.get('file_name') or params.sys_id} deleted",
    }


TOOLS = [
    ToolSpec("servicenow_attachment_list", ToolGroup.ATTACHMENT,
             "List the attachments on a ServiceNow record", ListAttachmentsParams, list_attachments),
    ToolSpec("servicenow_attachment_get", ToolGroup.ATTACHMENT,
             "Get attachment metadata by sys_id", GetAttachmentParams, get_attachment),
    ToolSpec("servicenow_attachment_download", ToolGroup.ATTACHMENT,
             "Download an attachment; the content is returned base64 encoded", AttachmentParams, download_attachment),
    ToolSpec("servicenow_attachment_upload", ToolGroup.ATTACHMENT,
             "Upload a base64 encoded file as an attachment on a record", UploadAttachmentParams, upload_attachment),
    ToolSpec("servicenow_attachment_delete", ToolGroup.ATTACHMENT,
             "Delete an attachment by sys_id", AttachmentParams, delete_attachment),
]
