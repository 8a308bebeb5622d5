from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from tokenbound.api.errors import ApiError
from tokenbound.api.routes_public_parts.common import _host
from tokenbound.api.schemas import CallEnvelopeRequest
from tokenbound.runtime.tx_admission import submit_call

router = APIRouter()

Json = Dict[str, Any]


@router.post("/tx/submit")
def tx_submit(body: CallEnvelopeRequest, request: Request) -> Json:
    """Submit a signed call envelope and run it.

    Returns:
      { ok, receipt: {ok, sender, to, nonce, return_data, revert_data} }

    A call that reverts still returns 200 with receipt.ok == False: the
    nonce was consumed and the revert payload is in receipt.revert_data.
    """
    host = _host(request)
    verdict, receipt = submit_call(host=host, env=body.model_dump())
    if not verdict.ok or receipt is None:
        if verdict.code == "bad_sig":
            raise ApiError.forbidden(verdict.code, verdict.reason, verdict.details or {})
        raise ApiError.bad_request(verdict.code, verdict.reason, verdict.details or {})
    return {"ok": True, "receipt": receipt.to_json()}
