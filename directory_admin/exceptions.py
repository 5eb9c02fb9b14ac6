"""Errors that abort an admin script.

Per-document read/write failures are not represented here: the tree walkers
log those and carry on with the remaining siblings.
"""


class DirectoryAdminError(Exception):
    """Base class for fatal admin-tool errors."""


class CredentialsNotFoundError(DirectoryAdminError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"firebase-service-account.json not found at {path}. "
            "Download a key from Firebase Console (Project Settings > Service Accounts "
            "> Generate New Private Key) and save it there."
        )


class BackupFileError(DirectoryAdminError):
    """The backup file is missing, is not JSON, or does not have the backup layout."""


class OperationCancelled(DirectoryAdminError):
    """The confirmation phrase for a destructive operation was not typed."""
