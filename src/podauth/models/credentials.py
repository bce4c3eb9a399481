"""Test credentials model for POD login.

Credentials are loaded from a JSON file of the form:

    {
      "email": "test@example.com",
      "password": "your-password",
      "securityKey": "your-security-key",
      "webId": "https://pods.dev.solidcommunity.au/test/profile/card#me",
      "podUrl": "https://pods.dev.solidcommunity.au/test/",
      "issuer": "https://pods.dev.solidcommunity.au"
    }
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from podauth.models.errors import CredentialsError

CREDENTIALS_TEMPLATE = """{
  "email": "your-email@example.com",
  "password": "your-password",
  "securityKey": "your-security-key",
  "webId": "https://pods.dev.solidcommunity.au/your-pod/profile/card#me",
  "podUrl": "https://pods.dev.solidcommunity.au/your-pod/",
  "issuer": "https://pods.dev.solidcommunity.au"
}"""


class TestCredentials(BaseModel):
    """Login material for the automated POD flow."""

    __test__ = False  # Not a pytest test class

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    security_key: str = Field(alias="securityKey", min_length=1)
    web_id: str = Field(alias="webId", min_length=1)
    pod_url: str = Field(alias="podUrl", min_length=1)
    issuer: str = Field(min_length=1)

    @classmethod
    def load(cls, path: str | Path) -> TestCredentials:
        """Load test credentials from a JSON file.

        Args:
            path: Location of the credentials file

        Returns:
            Parsed credentials

        Raises:
            CredentialsError: If the file is missing or cannot be parsed
        """
        file_path = Path(path)
        if not file_path.exists():
            raise CredentialsError(
                f"Test credentials file not found: {file_path}\n"
                "Create this file with your POD login credentials:\n"
                f"{CREDENTIALS_TEMPLATE}"
            )

        try:
            return cls.model_validate_json(file_path.read_text(encoding="utf-8"))
        except (ValidationError, OSError, UnicodeDecodeError) as e:
            raise CredentialsError(
                f"Failed to parse test credentials from {file_path}: {e}"
            ) from e

    def to_json(self) -> dict[str, Any]:
        """Serialize with the file's camelCase keys."""
        return self.model_dump(by_alias=True)

    def __repr__(self) -> str:
        return f"TestCredentials(email={self.email!r}, web_id={self.web_id!r})"
