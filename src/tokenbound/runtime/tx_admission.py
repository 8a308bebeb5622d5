from __future__ import annotations

"""tokenbound.runtime.tx_admission

Admission of signed top-level calls from externally owned keys.

An envelope names the signer by ed25519 public key; the sender address is
derived from it. Admission checks, in order:

  1. shape (signer, to, value, data, nonce, sig)
  2. signature over canonical_call_message(chain_id=host.chain_id, ...)
  3. nonce == host.nonce_of(sender) + 1

Admission never raises for bad input; it returns a TxVerdict. The nonce is
consumed by Host.transact whether or not the call commits.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple

from tokenbound.crypto.sig import address_from_pubkey, verify_call_envelope
from tokenbound.runtime.abi import hex_to_bytes, is_address, normalize_address
from tokenbound.runtime.host import Host, Receipt

Json = Dict[str, Any]


@dataclass(frozen=True)
class TxReject:
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class TxVerdict:
    ok: bool
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None

    def __iter__(self) -> Iterator[Any]:
        """Allow `ok, rej = admit_call(...)` unpacking."""
        if self.ok:
            yield True
            yield None
        else:
            yield False
            yield TxReject(self.code, self.reason, self.details)

    @staticmethod
    def admit() -> "TxVerdict":
        return TxVerdict(True, "ok", "admitted", None)

    @staticmethod
    def reject(code: str, reason: str, details: Optional[Dict[str, Any]] = None) -> "TxVerdict":
        return TxVerdict(False, code, reason, details)


@dataclass(frozen=True)
class CallEnvelope:
    signer: str  # ed25519 pubkey hex
    nonce: int
    to: str
    value: int
    data: str  # 0x-hex calldata
    sig: str = ""

    @staticmethod
    def from_json(j: Any) -> "CallEnvelope":
        if isinstance(j, CallEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)
        return CallEnvelope(
            signer=str(j.get("signer", "") or "").strip(),
            nonce=int(j.get("nonce", 0) or 0),
            to=str(j.get("to", "") or "").strip(),
            value=int(j.get("value", 0) or 0),
            data=str(j.get("data", "0x") or "0x").strip(),
            sig=str(j.get("sig", "") or "").strip(),
        )

    def to_json(self) -> Json:
        return {
            "signer": self.signer,
            "nonce": self.nonce,
            "to": self.to,
            "value": self.value,
            "data": self.data,
            "sig": self.sig,
        }

    def sender(self) -> str:
        return address_from_pubkey(self.signer)


def admit_call(*, host: Host, env: Any) -> TxVerdict:
    try:
        e = CallEnvelope.from_json(env)
    except (TypeError, ValueError) as ex:
        return TxVerdict.reject("bad_env", "malformed_envelope", {"error": str(ex)})

    if not e.signer:
        return TxVerdict.reject("bad_env", "missing_signer")
    try:
        sender = e.sender()
    except ValueError:
        return TxVerdict.reject("bad_env", "bad_signer_pubkey", {"signer": e.signer})

    if not is_address(e.to):
        return TxVerdict.reject("bad_env", "bad_to_address", {"to": e.to})
    if e.value < 0:
        return TxVerdict.reject("bad_env", "negative_value", {"value": e.value})
    try:
        hex_to_bytes(e.data)
    except ValueError:
        return TxVerdict.reject("bad_env", "bad_calldata_hex")
    if not e.sig:
        return TxVerdict.reject("bad_sig", "missing_sig")

    if not verify_call_envelope(env=e.to_json(), chain_id=host.chain_id):
        return TxVerdict.reject("bad_sig", "invalid_signature", {"sender": sender})

    expected = host.nonce_of(sender) + 1
    if e.nonce != expected:
        return TxVerdict.reject("bad_nonce", "unexpected_nonce", {"expected": expected, "got": e.nonce})

    return TxVerdict.admit()


def submit_call(*, host: Host, env: Any) -> Tuple[TxVerdict, Optional[Receipt]]:
    """Admit and run a signed call. Receipt is None when admission rejects.

    Admission and execution happen under the host lock so two submissions
    cannot both pass the nonce check.
    """
    with host.lock:
        verdict = admit_call(host=host, env=env)
        if not verdict.ok:
            return verdict, None
        e = CallEnvelope.from_json(env)
        receipt = host.transact(
            sender=e.sender(),
            to=normalize_address(e.to),
            value=e.value,
            data=hex_to_bytes(e.data),
        )
        return verdict, receipt
