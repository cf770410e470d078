from __future__ import annotations
from pydantic import BaseModel


class SignatureRequest(BaseModel):
    recipient_email: str


class SignatureSubmission(BaseModel):
    token: str
    receiver_name: str
    receiver_national_id: str
    signature_image: str
