"""
File upload support for GraphQL requests.

This module finds uploadable values inside operation variables and encodes
requests that carry them as multipart bodies: an ``operations`` part with
the JSON request (uploads replaced by null), a ``map`` part linking each
file part to the variable paths it fills, and one part per file.
"""

from __future__ import annotations

import io
import json
import mimetypes
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import aiofiles
import aiohttp
from pydantic import BaseModel, Field

from .exceptions import GraphQLTransportError

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_FILENAME = "blob"


class UploadFile(BaseModel):
    """File upload read from disk when the request is sent."""

    path: Union[str, Path] = Field(description="File path")
    filename: Optional[str] = Field(default=None, description="Custom filename")
    content_type: Optional[str] = Field(default=None, description="Content type")


Upload = Union[UploadFile, io.BufferedIOBase, io.RawIOBase]
ExtractedFiles = List[Tuple[Upload, List[str]]]


def is_upload(value: Any) -> bool:
    """Check whether a variable value is sent as a file part."""
    return isinstance(value, (UploadFile, io.BufferedIOBase, io.RawIOBase))


def extract_files(value: Any, path: str = "variables") -> Tuple[Any, ExtractedFiles]:
    """
    Replace uploads in a value by None and collect their object paths.

    Args:
        value: Variables (or any JSON-like value) to scan
        path: Object path of ``value`` inside the operations body

    Returns:
        Tuple of the cleaned copy and a list of (upload, paths) pairs. An
        upload used in several places appears once with every path.
    """
    files: ExtractedFiles = []

    def walk(current: Any, current_path: str) -> Any:
        if is_upload(current):
            for upload, paths in files:
                if upload is current:
                    paths.append(current_path)
                    break
            else:
                files.append((current, [current_path]))
            return None

        if isinstance(current, dict):
            return {key: walk(item, f"{current_path}.{key}") for key, item in current.items()}

        if isinstance(current, (list, tuple)):
            return [walk(item, f"{current_path}.{index}") for index, item in enumerate(current)]

        return current

    return walk(value, path), files


def _guess_content_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or DEFAULT_CONTENT_TYPE


async def _file_part(upload: Upload) -> Tuple[Any, str, str]:
    """Get the content, filename and content type of an upload."""
    if isinstance(upload, UploadFile):
        file_path = Path(upload.path)

        if not file_path.is_file():
            raise GraphQLTransportError(f"File not found: {file_path}")

        filename = upload.filename or file_path.name
        try:
            async with aiofiles.open(file_path, "rb") as f:
                content = await f.read()
        except OSError as e:
            raise GraphQLTransportError(f"Cannot read file {file_path}: {e}") from e
        return content, filename, upload.content_type or _guess_content_type(filename)

    name = getattr(upload, "name", None)
    filename = Path(name).name if isinstance(name, str) and name else DEFAULT_FILENAME
    return upload, filename, _guess_content_type(filename)


async def build_multipart(operations: Dict[str, Any], files: ExtractedFiles) -> aiohttp.FormData:
    """
    Build a multipart request body.

    Args:
        operations: JSON request body with uploads already replaced by None
        files: Uploads and their paths as returned by ``extract_files``

    Returns:
        FormData with operations, map and file parts in that order
    """
    form = aiohttp.FormData()
    form.add_field("operations", json.dumps(operations), content_type="application/json")
    form.add_field(
        "map",
        json.dumps({str(index): paths for index, (_, paths) in enumerate(files)}),
        content_type="application/json",
    )

    for index, (upload, _) in enumerate(files):
        content, filename, content_type = await _file_part(upload)
        form.add_field(str(index), content, filename=filename, content_type=content_type)

    return form
