"""
Request Schemas

One Pydantic model per writable resource. Each model lists exactly the columns
a client may set on its table:
- GalleryItemIn  -> "gallery"
- TestimonialIn  -> "testimonials"
- BookingIn      -> "bookings"
- ContactIn      -> "contact_submissions"

Unknown fields in a request body are ignored. ``id`` and ``created_at`` are
always assigned by the database.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RowSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    def to_row(self) -> Dict[str, Any]:
        """Row shape for the store: only the fields the client actually sent."""
        return self.model_dump(mode="json", exclude_unset=True)


class GalleryItemIn(RowSchema):
    image_url: str = Field(..., min_length=1, description="Public URL of the photo")
    title: str = Field(..., min_length=1)
    category: Optional[str] = Field(None, description="Free label, e.g. Wedding or Portraits")
    description: Optional[str] = None


class TestimonialIn(RowSchema):
    name: str = Field(..., min_length=1, description="Client name as shown on the site")
    email: Optional[EmailStr] = None
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)
    image_url: Optional[str] = None


class BookingIn(RowSchema):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    service_type: str = Field(..., min_length=1)
    date: str = Field(..., min_length=1, description="Requested day, as entered in the booking form")
    time: str = Field(..., min_length=1, description="Requested time slot")
    message: Optional[str] = None


class ContactIn(RowSchema):
    name: str = Field(..., min_length=1)
    email: EmailStr
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
