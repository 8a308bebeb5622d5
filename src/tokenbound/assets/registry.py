from __future__ import annotations

"""tokenbound.assets.registry

Minimal non-fungible asset registry.

Only what a token-bound account needs from its registry, plus the writes
used to move tokens around in genesis and tests:

  ownerOf(token_id)                 -> address (reverts if not minted)
  mint(to, token_id)                -> admin only
  transferFrom(from, to, token_id)  -> current owner only
  supportsInterface(interface_id)   -> bool

Storage:
  {"admin": address, "owners": {str(token_id): address}}
"""

from typing import Any, Dict

from tokenbound.runtime.abi import (
    INTERFACE_ERC165,
    INTERFACE_ERC721,
    ZERO_ADDRESS,
    arg_address,
    arg_bytes,
    arg_int,
    encode_return,
    normalize_address,
)
from tokenbound.runtime.contract import CallContext, Contract
from tokenbound.runtime.errors import NotRegistryAdmin, NotTokenOwner, TokenAlreadyMinted, TokenDoesNotExist

Json = Dict[str, Any]


class AssetRegistry(Contract):
    kind = "asset_registry"

    def __init__(self, *, admin: str, name: str = "") -> None:
        super().__init__()
        self.admin = normalize_address(admin)
        self.name = str(name)

    def _owners(self, ctx: CallContext) -> Json:
        st = self.storage(ctx)
        owners = st.get("owners")
        if not isinstance(owners, dict):
            owners = {}
            st["owners"] = owners
        return owners

    def owner_of(self, ctx: CallContext, token_id: int) -> str:
        holder = self._owners(ctx).get(str(int(token_id)))
        if not holder:
            raise TokenDoesNotExist("not_minted", {"registry": self.address, "token_id": int(token_id)})
        return str(holder)

    def mint(self, ctx: CallContext, to: str, token_id: int) -> None:
        if ctx.sender != self.admin:
            raise NotRegistryAdmin("mint_requires_admin", {"caller": ctx.sender})
        if to == ZERO_ADDRESS:
            raise NotTokenOwner("mint_to_null_address", {"token_id": int(token_id)})
        owners = self._owners(ctx)
        key = str(int(token_id))
        if key in owners:
            raise TokenAlreadyMinted("already_minted", {"token_id": int(token_id)})
        owners[key] = to

    def transfer_from(self, ctx: CallContext, src: str, to: str, token_id: int) -> None:
        holder = self.owner_of(ctx, token_id)
        if holder != src or ctx.sender != holder:
            raise NotTokenOwner("transfer_requires_owner", {"caller": ctx.sender, "owner": holder})
        if to == ZERO_ADDRESS:
            raise NotTokenOwner("transfer_to_null_address", {"token_id": int(token_id)})
        self._owners(ctx)[str(int(token_id))] = to

    def handle(self, ctx: CallContext, fn: str, args: Json) -> bytes:
        if fn == "ownerOf":
            return encode_return(self.owner_of(ctx, arg_int(args, "token_id")))
        if fn == "mint":
            self.mint(ctx, arg_address(args, "to"), arg_int(args, "token_id"))
            return encode_return(True)
        if fn == "transferFrom":
            self.transfer_from(ctx, arg_address(args, "from"), arg_address(args, "to"), arg_int(args, "token_id"))
            return encode_return(True)
        if fn == "supportsInterface":
            iid = arg_bytes(args, "interface_id", size=4)
            return encode_return(iid in {INTERFACE_ERC165, INTERFACE_ERC721})
        return super().handle(ctx, fn, args)
