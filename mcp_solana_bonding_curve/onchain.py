"""
Read-only mirror of deployed bonding curve accounts.

The on-chain program is the authority for what a mint is charged. This module
derives a collection's curve account address, fetches and decodes the account,
and turns it into a `BondingCurveConfig` so the studio can display the same
price before a mint transaction is built.

Account layout (Anchor, little-endian, after the 8-byte discriminator):
    authority: Pubkey (32), collection_mint: Pubkey (32), curve_type: u8,
    base_price: u64, price_increment: u64, max_supply: u32,
    current_supply: u32, total_volume: u64, bump: u8
"""
import base64
import struct
from typing import Optional, Tuple

import httpx
from pydantic import BaseModel, ConfigDict
from solders.pubkey import Pubkey

from mcp_solana_bonding_curve import config
from mcp_solana_bonding_curve.errors import OnChainAccountError
from mcp_solana_bonding_curve.pricing import price_at
from mcp_solana_bonding_curve.schemas import BezierCurveData, BondingCurveConfig, CurveKind, PriceResult
from mcp.server.fastmcp.utilities.logging import get_logger

logger = get_logger(__name__)

BONDING_CURVE_SEED = b"bonding_curve"
ACCOUNT_DISCRIMINATOR_SIZE = 8
# authority, collection_mint, curve_type, base_price, price_increment,
# max_supply, current_supply, total_volume, bump
_ACCOUNT_LAYOUT = struct.Struct("<32s32sBQQIIQB")
ACCOUNT_SIZE = ACCOUNT_DISCRIMINATOR_SIZE + _ACCOUNT_LAYOUT.size

# Discriminant order used by the program's curve_type byte.
ONCHAIN_CURVE_KINDS = (CurveKind.linear, CurveKind.exponential, CurveKind.logarithmic, CurveKind.bezier)


class OnChainCurveState(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    address: Optional[Pubkey] = None
    authority: Pubkey
    collection_mint: Pubkey
    kind: CurveKind
    base_price: int
    price_increment: int
    max_supply: int
    current_supply: int
    total_volume: int
    bump: int

    @property
    def sold_out(self) -> bool:
        return self.current_supply >= self.max_supply

    def to_config(self, bezier: Optional[BezierCurveData] = None) -> BondingCurveConfig:
        """
        Pricing configuration of the deployed curve.

        Bezier curve shapes are not stored in the account, so bezier accounts need
        the curve data the collection was created with.
        """
        if self.kind == CurveKind.bezier and bezier is None:
            raise OnChainAccountError(
                f"Bonding curve {self.address} is a bezier curve; its curve data must be supplied"
            )
        return BondingCurveConfig(
            kind=self.kind,
            base_price=self.base_price,
            price_increment=self.price_increment,
            max_supply=self.max_supply,
            bezier=bezier if self.kind == CurveKind.bezier else None,
        )


def get_bonding_curve_pda(collection_mint: Pubkey, program_id: Optional[Pubkey] = None) -> Tuple[Pubkey, int]:
    """Address and bump of the bonding curve account for a collection."""
    program_id = config.BONDING_CURVE_PROGRAM_ID if program_id is None else program_id
    return Pubkey.find_program_address([BONDING_CURVE_SEED, bytes(collection_mint)], program_id)


def decode_bonding_curve_account(data: bytes, address: Optional[Pubkey] = None) -> OnChainCurveState:
    """
    Decode raw account data into an OnChainCurveState.

    Raises:
        OnChainAccountError: If the data is too short or has an unknown curve type.
    """
    if len(data) < ACCOUNT_SIZE:
        raise OnChainAccountError(
            f"Bonding curve account data too short: expected {ACCOUNT_SIZE} bytes, got {len(data)}"
        )
    (
        authority,
        collection_mint,
        curve_type,
        base_price,
        price_increment,
        max_supply,
        current_supply,
        total_volume,
        bump,
    ) = _ACCOUNT_LAYOUT.unpack_from(data, ACCOUNT_DISCRIMINATOR_SIZE)

    if curve_type >= len(ONCHAIN_CURVE_KINDS):
        raise OnChainAccountError(f"Unknown curve type {curve_type} in bonding curve account")

    return OnChainCurveState(
        address=address,
        authority=Pubkey.from_bytes(authority),
        collection_mint=Pubkey.from_bytes(collection_mint),
        kind=ONCHAIN_CURVE_KINDS[curve_type],
        base_price=base_price,
        price_increment=price_increment,
        max_supply=max_supply,
        current_supply=current_supply,
        total_volume=total_volume,
        bump=bump,
    )


async def fetch_bonding_curve(
    client: httpx.AsyncClient,
    collection_mint: Pubkey,
    rpc_endpoint: Optional[str] = None,
) -> OnChainCurveState:
    """
    Fetch and decode the bonding curve account of a collection via getAccountInfo.

    Raises:
        OnChainAccountError: On RPC errors, a missing account or undecodable data.
    """
    address, _ = get_bonding_curve_pda(collection_mint)
    endpoint = config.RPC_ENDPOINT if rpc_endpoint is None else rpc_endpoint
    try:
        response = await client.post(
            endpoint,
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "method": "getAccountInfo",
                "params": [str(address), {"encoding": "base64", "commitment": "confirmed"}],
            },
        )
        response.raise_for_status()
        payload = response.json()

        if payload.get("error"):
            raise OnChainAccountError(f"Error fetching bonding curve {address}: {payload['error']}")

        value = (payload.get("result") or {}).get("value")
        if not value:
            raise OnChainAccountError(f"Bonding curve account {address} not found")

        data = base64.b64decode(value["data"][0])
        state = decode_bonding_curve_account(data, address=address)
        logger.info(f"Fetched {state.kind.value} bonding curve {address}: "
                    f"{state.current_supply}/{state.max_supply} minted")
        return state

    except httpx.HTTPStatusError as e:
        logger.error(f"HTTP error fetching bonding curve {address}: {e.response.status_code} - {e.response.text}")
        raise OnChainAccountError(f"HTTP error fetching bonding curve: {e.response.status_code}")
    except httpx.HTTPError as e:
        logger.error(f"Transport error fetching bonding curve {address}: {e}")
        raise OnChainAccountError(f"Could not reach RPC endpoint: {e}")
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Malformed account data for bonding curve {address}: {e}")
        raise OnChainAccountError(f"Malformed account data received: {e}")


def current_price(state: OnChainCurveState, bezier: Optional[BezierCurveData] = None) -> PriceResult:
    """Price of the next edition (index current_supply) of a deployed curve."""
    return price_at(state.to_config(bezier), state.current_supply)
