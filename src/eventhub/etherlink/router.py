"""Etherlink router: /etherlink/* endpoints for the prize contract."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException

from eventhub.auth.dependencies import require_roles
from eventhub.db.models import Role, User
from eventhub.etherlink.schemas import DistributeFundsRequest, EtherlinkResponse, LockFundsRequest
from eventhub.etherlink.service import (
    BALANCE_UNIT,
    EtherlinkError,
    EtherlinkService,
    get_etherlink_service,
)

logger = structlog.get_logger()

router = APIRouter(prefix="/etherlink", tags=["Etherlink"])


def _failure(status_code: int, message: str, e: Exception) -> HTTPException:
    logger.error("etherlink_request_failed", message=message, error=str(e))
    return HTTPException(
        status_code=status_code,
        detail={"success": False, "message": message, "error": str(e)},
    )


# ---------------------------------------------------------------------------
# Transactions (admin only)
# ---------------------------------------------------------------------------


@router.post("/distribute-funds", response_model=EtherlinkResponse)
async def distribute_funds(
    body: DistributeFundsRequest,
    admin: User = Depends(require_roles(Role.ADMIN)),
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    """Pay a winner out of the contract."""
    logger.info("etherlink_distribute_requested", admin_id=admin.id, recipient=body.recipient_address)
    try:
        result = await etherlink.distribute_funds(body.recipient_address, body.amount_in_ether)
    except EtherlinkError as e:
        raise _failure(400, "Failed to distribute funds", e) from e
    return EtherlinkResponse(message="Funds distributed successfully", data=result)


@router.post("/lock-funds", response_model=EtherlinkResponse)
async def lock_funds(
    body: LockFundsRequest,
    admin: User = Depends(require_roles(Role.ADMIN)),
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    """Top up the contract from the signing wallet."""
    logger.info("etherlink_lock_requested", admin_id=admin.id, amount=body.amount_in_ether)
    try:
        result = await etherlink.lock_funds(body.amount_in_ether)
    except EtherlinkError as e:
        raise _failure(400, "Failed to lock funds", e) from e
    return EtherlinkResponse(message="Funds locked successfully", data=result)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/balance", response_model=EtherlinkResponse)
async def contract_balance(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        balance = await etherlink.get_contract_balance_in_ether()
    except EtherlinkError as e:
        raise _failure(500, "Failed to get contract balance", e) from e
    return EtherlinkResponse(
        message="Contract balance retrieved successfully",
        data={"balance": balance, "unit": BALANCE_UNIT},
    )


@router.get("/wallet-balance", response_model=EtherlinkResponse)
async def wallet_balance(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        balance = await etherlink.get_wallet_balance()
    except EtherlinkError as e:
        raise _failure(500, "Failed to get wallet balance", e) from e
    return EtherlinkResponse(
        message="Wallet balance retrieved successfully",
        data={"balance": balance, "unit": BALANCE_UNIT},
    )


@router.get("/host", response_model=EtherlinkResponse)
async def host_address(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        host = await etherlink.get_host_address()
    except EtherlinkError as e:
        raise _failure(500, "Failed to get host address", e) from e
    return EtherlinkResponse(message="Host address retrieved successfully", data={"host_address": host})


@router.get("/status", response_model=EtherlinkResponse)
async def contract_status(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        status = await etherlink.get_contract_status()
    except EtherlinkError as e:
        raise _failure(500, "Failed to get contract status", e) from e
    return EtherlinkResponse(message="Contract status retrieved successfully", data=status)


@router.get("/contract-info", response_model=EtherlinkResponse)
async def contract_info(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        balance = await etherlink.get_contract_balance_in_ether()
        host = await etherlink.get_host_address()
    except EtherlinkError as e:
        raise _failure(500, "Failed to get contract info", e) from e
    return EtherlinkResponse(
        message="Contract info retrieved successfully",
        data={
            "contract_address": etherlink.contract_address,
            "balance": balance,
            "balance_unit": BALANCE_UNIT,
            "host_address": host,
        },
    )


# ---------------------------------------------------------------------------
# Diagnostics (always 200; failures are reported in the body)
# ---------------------------------------------------------------------------


@router.get("/diagnose", response_model=EtherlinkResponse)
async def diagnose(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        diagnosis = await etherlink.diagnose_connection()
    except Exception as e:
        logger.error("etherlink_diagnose_failed", error=str(e))
        return EtherlinkResponse(success=False, message="Diagnosis failed", error=str(e))
    return EtherlinkResponse(message="Diagnosis completed", data=diagnosis)


@router.get("/verify-contract", response_model=EtherlinkResponse)
async def verify_contract(
    etherlink: EtherlinkService = Depends(get_etherlink_service),
) -> EtherlinkResponse:
    try:
        verification = await etherlink.verify_contract_on_sepolia()
    except Exception as e:
        logger.error("etherlink_verify_failed", error=str(e))
        return EtherlinkResponse(success=False, message="Contract verification failed", error=str(e))
    return EtherlinkResponse(message="Contract verification completed", data=verification)
