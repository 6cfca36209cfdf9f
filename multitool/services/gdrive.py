"""
Google Drive client (read-only).

Credentials are an authorised-user JSON file written by
``multitool gdrive-auth``. Expired tokens are refreshed and written back.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from multitool.core.config import GDriveConfig
from multitool.core.errors import RemoteServiceError, ServiceNotConfigured
from multitool.core.formatting import display_time, format_file_size, truncate

logger = logging.getLogger("MultiTool.services.gdrive")

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
WORKSPACE_MIME_PREFIX = "application/vnd.google-apps"
SUMMARY_PREVIEW_CHARS = 1000

MIME_TYPE_LABELS = {
    "application/vnd.google-apps.document": "Google Document",
    "application/vnd.google-apps.spreadsheet": "Google Spreadsheet",
    "application/vnd.google-apps.presentation": "Google Presentation",
    "application/vnd.google-apps.drawing": "Google Drawing",
    "application/vnd.google-apps.folder": "Google Drive Folder",
    "application/vnd.google-apps.form": "Google Form",
    "application/pdf": "PDF",
    "text/plain": "Text File",
    "text/html": "HTML File",
    "text/css": "CSS File",
    "text/javascript": "JavaScript File",
    "text/csv": "CSV File",
    "application/json": "JSON File",
    "application/xml": "XML File",
    "application/zip": "ZIP Archive",
    "image/jpeg": "JPEG Image",
    "image/png": "PNG Image",
    "image/gif": "GIF Image",
    "image/svg+xml": "SVG Image",
    "audio/mpeg": "MP3 Audio",
    "video/mp4": "MP4 Video",
}

# Workspace mime type -> (export mime type, label)
EXPORT_FORMATS = {
    "application/vnd.google-apps.document": ("text/plain", "Google Document"),
    "application/vnd.google-apps.spreadsheet": ("text/csv", "Google Spreadsheet"),
    "application/vnd.google-apps.presentation": ("text/plain", "Google Presentation"),
}


def format_mime_type(mime_type: Optional[str]) -> str:
    return MIME_TYPE_LABELS.get(mime_type or "", mime_type or "")


def escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def load_credentials(config: GDriveConfig) -> Credentials:
    path = Path(config.credentials_path).expanduser()
    if not path.exists():
        raise ServiceNotConfigured(
            "Google Drive credentials not found. Run `multitool gdrive-auth` first."
        )

    creds = Credentials.from_authorized_user_file(str(path), config.scopes)
    if creds.expired and creds.refresh_token:
        logger.info("Refreshing expired Google Drive token")
        try:
            creds.refresh(Request())
        except GoogleAuthError as exc:
            raise RemoteServiceError(
                f"Failed to refresh Google Drive credentials: {exc}", service="gdrive"
            ) from exc
        path.write_text(creds.to_json(), encoding="utf-8")
    return creds


def authenticate_and_save(
    config: GDriveConfig,
    flow_factory: Callable[..., Any] = InstalledAppFlow.from_client_secrets_file,
) -> Credentials:
    """Run the browser OAuth flow and store the resulting credentials."""
    oauth_path = Path(config.oauth_path).expanduser()
    if not oauth_path.exists():
        raise ServiceNotConfigured(f"OAuth key file not found at {oauth_path}")

    flow = flow_factory(str(oauth_path), config.scopes)
    creds = flow.run_local_server(port=0)

    target = Path(config.credentials_path).expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(creds.to_json(), encoding="utf-8")
    logger.info("Google Drive credentials saved to %s", target)
    return creds


class GDriveClient:
    def __init__(self, config: GDriveConfig, service: Any = None):
        self.config = config
        self._drive = service

    def _service(self) -> Any:
        if self._drive is None:
            creds = load_credentials(self.config)
            self._drive = build("drive", "v3", credentials=creds, cache_discovery=False)
        return self._drive

    def _execute(self, request: Any) -> Any:
        try:
            return request.execute()
        except HttpError as exc:
            status = getattr(exc.resp, "status", None)
            raise RemoteServiceError(
                f"Google Drive API error: {exc}",
                service="gdrive",
                status_code=int(status) if status else None,
            ) from exc

    def search(self, query: str, limit: int = 10) -> str:
        response = self._execute(
            self._service().files().list(
                q=f"fullText contains '{escape_query(query)}'",
                pageSize=max(1, min(20, int(limit))),
                fields="files(id, name, mimeType, modifiedTime, size, webViewLink)",
            )
        )
        files = response.get("files") or []
        if not files:
            return f'No files found matching "{query}" in Google Drive.'

        text = f'Search results for "{query}" in Google Drive:\n\n'
        for index, item in enumerate(files, start=1):
            text += f"{index}. {item.get('name')}\n"
            text += f" Type: {format_mime_type(item.get('mimeType'))}\n"
            if item.get("modifiedTime"):
                text += f" Modified: {display_time(item['modifiedTime'])}\n"
            if item.get("size"):
                text += f" Size: {format_file_size(int(item['size']))}\n"
            text += f" ID: {item.get('id')}\n"
            if item.get("webViewLink"):
                text += f" Link: {item['webViewLink']}\n"
            text += "\n"
        text += f'Found {len(files)} file(s) matching "{query}".'
        return text

    def summarize(self, file_id: str) -> str:
        files = self._service().files()
        meta = self._execute(
            files.get(fileId=file_id, fields="name,mimeType,modifiedTime,size,webViewLink")
        )
        if not meta:
            raise RemoteServiceError(f"File not found with ID: {file_id}", service="gdrive")

        name = meta.get("name")
        mime_type = meta.get("mimeType") or ""
        if mime_type.startswith(WORKSPACE_MIME_PREFIX):
            export_type, content_type = EXPORT_FORMATS.get(
                mime_type, ("text/plain", "Google Workspace file")
            )
            raw = self._execute(files.export(fileId=file_id, mimeType=export_type))
        elif mime_type.startswith("text/") or mime_type == "application/json":
            raw = self._execute(files.get_media(fileId=file_id))
            content_type = mime_type
        else:
            return f"Unable to summarize binary file: {name} ({format_mime_type(mime_type)})"

        content = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else str(raw or "")

        text = f"File Summary for: {name}\n\n"
        text += f"Type: {content_type}\n"
        if meta.get("modifiedTime"):
            text += f"Modified: {display_time(meta['modifiedTime'])}\n"
        if meta.get("size"):
            text += f"Size: {format_file_size(int(meta['size']))}\n"
        if meta.get("webViewLink"):
            text += f"Link: {meta['webViewLink']}\n"
        text += f"ID: {file_id}\n\n"
        text += f"Content Preview:\n\n{truncate(content, SUMMARY_PREVIEW_CHARS)}"
        return text

    def list(self, folder_id: Optional[str] = None, limit: int = 20, page_token: Optional[str] = None) -> str:
        """List a folder (root by default) with folders before files."""
        parent = folder_id or "root"
        params: Dict[str, Any] = {
            "q": f"'{escape_query(parent)}' in parents",
            "pageSize": max(1, min(50, int(limit))),
            "fields": "nextPageToken, files(id, name, mimeType, modifiedTime, size)",
        }
        if page_token:
            params["pageToken"] = page_token
        response = self._execute(self._service().files().list(**params))

        files: List[Dict[str, Any]] = response.get("files") or []
        if not files:
            return "No items found in the specified Google Drive folder."

        folders = [f for f in files if f.get("mimeType") == FOLDER_MIME_TYPE]
        documents = [f for f in files if f.get("mimeType") != FOLDER_MIME_TYPE]

        text = f"Contents of folder {parent} in Google Drive:\n\n"
        if folders:
            text += "Folders:\n"
            for index, folder in enumerate(folders, start=1):
                text += f"{index}. {folder.get('name')}\n"
                text += f" ID: {folder.get('id')}\n"
                text += f" Modified: {display_time(folder.get('modifiedTime'))}\n\n"
        if documents:
            text += "Files:\n"
            for index, item in enumerate(documents, start=1):
                text += f"{index}. {item.get('name')}\n"
                text += f" Type: {format_mime_type(item.get('mimeType'))}\n"
                text += f" ID: {item.get('id')}\n"
                if item.get("modifiedTime"):
                    text += f" Modified: {display_time(item['modifiedTime'])}\n"
                if item.get("size"):
                    text += f" Size: {format_file_size(int(item['size']))}\n"
                text += "\n"

        if response.get("nextPageToken"):
            text += f"More items available. Use page_token: {response['nextPageToken']}\n"
        return text
