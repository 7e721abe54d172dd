from datetime import datetime
from typing import Literal

from beanie import Document, Indexed
from pydantic import Field

from storefront.core.clock import utcnow

Role = Literal["customer", "admin", "manager"]
ADMIN_ROLES = ("admin", "manager")


class User(Document):
    google_sub: Indexed(str, unique=True)
    email: Indexed(str)
    first_name: str = ""
    last_name: str = ""
    display_name: str = ""
    picture: str | None = None
    phone: str | None = None
    accepts_marketing: bool = False
    role: Role = "customer"
    is_approved: bool = False  # may view locked product images
    authorization_requested_at: datetime | None = None
    # Shipping address
    address: str | None = None
    apartment: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    pin_code: str | None = None
    session_version: int = 0
    last_login_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        name = "users"
        indexes = [[("role", 1)]]

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES
