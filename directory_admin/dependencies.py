import json
import os
import uuid
from dataclasses import dataclass
from pathlib import Path

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from directory_admin.config import Settings
from directory_admin.exceptions import CredentialsNotFoundError, DirectoryAdminError


@dataclass
class FirestoreHandle:
    """A connected Firestore client plus where it points.

    Created once per script run and passed to every function that touches
    the database.
    """
    app: firebase_admin.App
    db: FirestoreClient
    environment: str
    project_id: str

    @property
    def is_emulator(self) -> bool:
        return self.environment != "production"

    def close(self) -> None:
        firebase_admin.delete_app(self.app)


def _load_service_account(path: str) -> dict:
    if not Path(path).is_file():
        raise CredentialsNotFoundError(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise DirectoryAdminError(f"Service account file {path} is not valid JSON: {e}") from e


def connect(settings: Settings, app_name: str | None = None) -> FirestoreHandle:
    """Initialise a Firebase app for ``settings.environment`` and return its client.

    Production reads the service-account file and takes the project id from it.
    Anything else is pointed at the local emulators.
    """
    # "[DEFAULT]" can only be initialised once per process; each handle gets its own app.
    name = app_name or f"directory-admin-{uuid.uuid4().hex}"

    if settings.is_production:
        service_account = _load_service_account(settings.firebase_credentials_path)
        project_id = service_account.get("project_id", settings.project_id)
        app = firebase_admin.initialize_app(
            credentials.Certificate(service_account),
            {"projectId": project_id},
            name=name,
        )
    else:
        # firebase-admin auto-detects these env vars; no real credentials are needed.
        os.environ["FIRESTORE_EMULATOR_HOST"] = settings.firestore_emulator_host
        os.environ["FIREBASE_AUTH_EMULATOR_HOST"] = settings.auth_emulator_host
        project_id = settings.project_id
        app = firebase_admin.initialize_app(
            None,
            {"projectId": project_id},
            name=name,
        )

    return FirestoreHandle(
        app=app,
        db=firestore.client(app),
        environment=settings.environment,
        project_id=project_id,
    )
