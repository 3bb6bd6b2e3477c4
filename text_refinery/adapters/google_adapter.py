from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional
import io
import json
import logging

from text_refinery.adapters.memory_store import memory_filename
from text_refinery.errors import TransportError
from text_refinery.memory import Memory

logger = logging.getLogger(__name__)

DRIVE_SCOPES = ['https://www.googleapis.com/auth/drive.file']


@dataclass
class GoogleDriveConfig:
    """Configuration for the Google Drive memory store."""
    credentials_path: str  # Path to service account JSON or OAuth credentials
    folder_id: Optional[str] = None  # Folder holding the memory files (None = root)


def _load_credentials(credentials_path: str):
    """Load credentials from service account JSON or OAuth JSON."""
    from google.oauth2 import service_account
    from google.oauth2.credentials import Credentials

    with open(credentials_path, 'r') as f:
        cred_data = json.load(f)

    # Detect credential type
    if cred_data.get('type') == 'service_account':
        logger.debug("Loading service account credentials")
        return service_account.Credentials.from_service_account_file(
            credentials_path,
            scopes=DRIVE_SCOPES,
        )
    logger.debug("Loading OAuth user credentials")
    return Credentials.from_authorized_user_file(credentials_path, scopes=DRIVE_SCOPES)


def _escape_query(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveMemoryStore:
    """
    Memory records stored as JSON files on Google Drive.

    Files are looked up by name, so each key maps to
    `text_refinery_memory_<key>.json`. Only a missing file reads as "no
    record"; lookup or download failures raise TransportError. Write
    failures make `put` return False.
    """

    def __init__(self, config: GoogleDriveConfig, service: Any = None):
        self.config = config
        self._service = service

    @property
    def service(self):
        """Lazy initialization of the Drive v3 client."""
        if self._service is None:
            from googleapiclient.discovery import build
            creds = _load_credentials(self.config.credentials_path)
            self._service = build('drive', 'v3', credentials=creds)
        return self._service

    def _find_file_id(self, filename: str) -> Optional[str]:
        query = f"name='{_escape_query(filename)}' and trashed=false"
        if self.config.folder_id:
            query += f" and '{_escape_query(self.config.folder_id)}' in parents"
        found = self.service.files().list(q=query, fields='files(id, name)').execute()
        files = found.get('files') or []
        return files[0]['id'] if files else None

    def get(self, key: str) -> Optional[Memory]:
        """
        Stored record for `key`, or None when no file exists.

        Raises:
            TransportError: if the lookup, download or parse fails
        """
        filename = memory_filename(key)
        try:
            file_id = self._find_file_id(filename)
            if file_id is None:
                return None
            content = self.service.files().get_media(fileId=file_id).execute()
            if isinstance(content, bytes):
                content = content.decode('utf-8')
            return Memory.from_dict(json.loads(content))
        except Exception as e:
            logger.error(f"Reading '{filename}' from Google Drive failed: {type(e).__name__}: {e}")
            raise TransportError(f"Reading '{filename}' from Google Drive failed: {type(e).__name__}: {e}") from e

    def put(self, key: str, memory: Memory) -> bool:
        from googleapiclient.http import MediaIoBaseUpload

        filename = memory_filename(key)
        payload = json.dumps(memory.to_dict(), ensure_ascii=False, indent=2).encode('utf-8')
        media = MediaIoBaseUpload(io.BytesIO(payload), mimetype='application/json')

        try:
            file_id = self._find_file_id(filename)
            if file_id:
                self.service.files().update(fileId=file_id, media_body=media).execute()
            else:
                metadata = {'name': filename, 'mimeType': 'application/json'}
                if self.config.folder_id:
                    metadata['parents'] = [self.config.folder_id]
                self.service.files().create(body=metadata, media_body=media, fields='id').execute()
        except Exception as e:
            logger.error(f"Google Drive upload of '{filename}' failed: {type(e).__name__}: {e}")
            return False

        logger.info(f"Saved '{filename}' to Google Drive")
        return True
