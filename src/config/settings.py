# Credentials and endpoints for the Confluence -> BookStack migration.

import os
from dataclasses import dataclass, replace

from dotenv import load_dotenv

from src.migration.domain.errors import ValidationError
from src.migration.domain.rules import basic_auth_header, require_non_empty, token_auth_header

load_dotenv()


@dataclass(frozen=True)
class MigrationSettings:
    confluence_base: str = ""
    confluence_user: str = ""
    confluence_token: str = ""
    bookstack_base: str = ""
    bookstack_token_id: str = ""
    bookstack_token_secret: str = ""

    @classmethod
    def from_env(cls, **overrides: str | None) -> "MigrationSettings":
        settings = cls(
            confluence_base=os.getenv("CONFLUENCE_BASE", ""),
            confluence_user=os.getenv("CONFLUENCE_USER", ""),
            confluence_token=os.getenv("CONFLUENCE_TOKEN", ""),
            bookstack_base=os.getenv("BOOKSTACK_BASE", ""),
            bookstack_token_id=os.getenv("BOOKSTACK_TOKEN_ID", ""),
            bookstack_token_secret=os.getenv("BOOKSTACK_TOKEN_SECRET", ""),
        )
        explicit = {key: value for key, value in overrides.items() if value}
        unknown = set(explicit) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown settings: {sorted(unknown)}")
        return replace(settings, **explicit)

    @property
    def confluence_base_normalized(self) -> str:
        return self.confluence_base.strip().rstrip("/")

    @property
    def bookstack_base_normalized(self) -> str:
        return self.bookstack_base.strip().rstrip("/")

    def validate_source(self) -> None:
        require_non_empty(self.confluence_user, "Missing --confluence-user or env CONFLUENCE_USER")
        require_non_empty(self.confluence_token, "Missing --confluence-token or env CONFLUENCE_TOKEN")
        require_non_empty(
            self.confluence_base_normalized,
            "Missing --confluence-base (or env CONFLUENCE_BASE) when only a page id is given",
        )

    def validate_target(self) -> None:
        require_non_empty(
            self.bookstack_base_normalized,
            "Missing --bookstack-base (or env BOOKSTACK_BASE) to publish pages; use --dry-run otherwise",
        )
        require_non_empty(self.bookstack_token_id, "Missing --bookstack-token-id or env BOOKSTACK_TOKEN_ID")
        require_non_empty(
            self.bookstack_token_secret,
            "Missing --bookstack-token-secret or env BOOKSTACK_TOKEN_SECRET",
        )

    def confluence_auth_header(self) -> str:
        if not self.confluence_user or not self.confluence_token:
            raise ValidationError("Confluence credentials are not configured")
        return basic_auth_header(self.confluence_user, self.confluence_token)

    def bookstack_auth_header(self) -> str:
        if not self.bookstack_token_id or not self.bookstack_token_secret:
            raise ValidationError("BookStack token is not configured")
        return token_auth_header(self.bookstack_token_id, self.bookstack_token_secret)
