from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from tokenbound.api.errors import ApiError
from tokenbound.api.routes_public_parts.common import _account, _address, _hex, _host, _view
from tokenbound.api.schemas import IsValidSignatureRequest, IsValidSignerRequest
from tokenbound.runtime.abi import ERC1271_MAGIC, IS_VALID_SIGNER_MAGIC, hex_to_bytes
from tokenbound.runtime.errors import Revert, decode_error

router = APIRouter()

Json = Dict[str, Any]


def _revert_json(e: Revert) -> Json:
    decoded = decode_error(e.data)
    if decoded is None:
        return {"code": "revert", "data": "0x" + e.data.hex()}
    code, reason, details = decoded
    return {"code": code, "reason": reason, "details": details}


@router.get("/accounts/{address}")
def v1_account_get(address: str, request: Request) -> Json:
    """Binding, current owner, state counter and balance of an account.

    An owner lookup that reverts (e.g. the bound token is not minted) is
    reported as owner=None with owner_error, not as a failed request.
    """
    host = _host(request)
    acct = _account(request, address)

    with host.lock:
        chain_id, registry, token_id = _view(host, acct, "token")
        state = int(_view(host, acct, "state"))
        balance = host.balance_of(acct)
        owner = None
        owner_error = None
        try:
            owner = _view(host, acct, "owner")
        except Revert as e:
            owner_error = _revert_json(e)

    return {
        "ok": True,
        "address": acct,
        "binding": {"chain_id": int(chain_id), "registry": registry, "token_id": int(token_id)},
        "owner": owner,
        "owner_error": owner_error,
        "state": state,
        "balance": balance,
    }


@router.get("/accounts/{address}/supports-interface/{interface_id}")
def v1_account_supports_interface(address: str, interface_id: str, request: Request) -> Json:
    host = _host(request)
    acct = _account(request, address)
    iid = _hex(interface_id, field="interface_id", size=4)
    supported = bool(_view(host, acct, "supportsInterface", interface_id=iid))
    return {"ok": True, "address": acct, "interface_id": "0x" + iid.hex(), "supported": supported}


@router.post("/accounts/{address}/is-valid-signer")
def v1_account_is_valid_signer(address: str, body: IsValidSignerRequest, request: Request) -> Json:
    host = _host(request)
    acct = _account(request, address)
    signer = _address(body.signer, field="signer")
    context = _hex(body.context, field="context")
    try:
        magic = hex_to_bytes(_view(host, acct, "isValidSigner", signer=signer, context=context))
    except Revert as e:
        raise ApiError.conflict("owner_lookup_failed", "account owner could not be resolved", _revert_json(e))
    return {"ok": True, "address": acct, "magic": "0x" + magic.hex(), "valid": magic == IS_VALID_SIGNER_MAGIC}


@router.post("/accounts/{address}/is-valid-signature")
def v1_account_is_valid_signature(address: str, body: IsValidSignatureRequest, request: Request) -> Json:
    host = _host(request)
    acct = _account(request, address)
    digest = _hex(body.hash, field="hash", size=32)
    signature = _hex(body.signature, field="signature")
    try:
        magic = hex_to_bytes(_view(host, acct, "isValidSignature", hash=digest, signature=signature))
    except Revert as e:
        raise ApiError.conflict("owner_lookup_failed", "account owner could not be resolved", _revert_json(e))
    return {"ok": True, "address": acct, "magic": "0x" + magic.hex(), "valid": magic == ERC1271_MAGIC}
