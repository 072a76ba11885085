"""
Contact details and the pre-filled enquiry email.

Nothing submitted through the contact section is stored; visitors are handed
a mailto: link that opens their own mail program.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from ecovibe.config import Settings

MAIL_SUBJECT = "Ecovibe: Exploring a Remodel – Let's Talk"

MAIL_BODY_LINES = (
    "Hi EcoVibe Team,",
    "",
    "I'm interested in exploring a potential remodel project and would love to "
    "learn more about your approach. I'm just gathering ideas and thought it "
    "would be great to connect.",
    "",
    "Project Overview:",
    "   Type of Space: ",
    "   Timeline:",
    "   Budget Range:",
    "   Additional Notes:",
    "",
    "Contact Preferences:",
    "   Contact preferred by (phone, email, or text): ",
    "   Best time to reach me:",
    "   Mobile phone number (optional):",
    "",
    "Looking forward to hearing from you!",
)


@dataclass(frozen=True)
class ContactInfo:
    email: str
    phone: str
    phone_display: str
    service_area: str
    instagram_handle: str
    instagram_url: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "ContactInfo":
        return cls(
            email=settings.contact_email,
            phone=settings.contact_phone,
            phone_display=settings.contact_phone_display,
            service_area=settings.service_area,
            instagram_handle=settings.instagram_handle,
            instagram_url=settings.instagram_url,
        )


def mailto_link(contact: ContactInfo) -> str:
    body = "\r\n".join(MAIL_BODY_LINES)
    return (
        f"mailto:{contact.email}"
        f"?subject={quote(MAIL_SUBJECT)}&body={quote(body)}"
    )
