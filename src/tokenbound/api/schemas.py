from __future__ import annotations

"""Pydantic request schemas for the public API.

These exist only for HTTP input validation; the call boundary itself is the
canonical-JSON codec in tokenbound.runtime.abi.
"""

from pydantic import BaseModel, Field


class IsValidSignerRequest(BaseModel):
    signer: str = Field(..., description="Candidate signer address, 0x-hex")
    context: str = Field(default="0x", description="Opaque context bytes, 0x-hex")


class IsValidSignatureRequest(BaseModel):
    hash: str = Field(..., description="32-byte digest, 0x-hex")
    signature: str = Field(..., description="Signature bytes, 0x-hex")


class CallEnvelopeRequest(BaseModel):
    signer: str = Field(..., description="Ed25519 public key, hex")
    nonce: int = Field(..., description="Next sender nonce")
    to: str = Field(..., description="Target address, 0x-hex")
    value: int = Field(default=0, ge=0, description="Native value to send")
    data: str = Field(default="0x", description="Calldata, 0x-hex")
    sig: str = Field(..., description="Ed25519 signature over the canonical call message, hex")
