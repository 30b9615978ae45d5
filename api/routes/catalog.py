"""
Catalog and wallet endpoints
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import logging

from api.dependencies import PipelineServices, get_services
from api.errors import error_response
from checkpoint.clients import WalletInfo
from schemas.api import APIResponse, CatalogInfo, WalletBalance, CheckpointRunSummary

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/harlequin/catalog", tags=["Catalog"])

# Minimum balance, in AR, before a checkpoint is worth attempting
MIN_DEPLOY_BALANCE = 0.01


def _wallet(services: PipelineServices) -> Optional[WalletInfo]:
    uploader = services.orchestrator.uploader
    if isinstance(uploader, WalletInfo):
        return uploader
    return None


def _catalog_info(services: PipelineServices) -> CatalogInfo:
    wallet = _wallet(services)
    return CatalogInfo(
        arns_name=services.settings.ARNS_NAME,
        wallet_loaded=services.orchestrator.enabled,
        wallet_address=wallet.address if wallet else None,
        arweave_host=services.settings.ARWEAVE_GATEWAY_URL if services.orchestrator.enabled else "not configured",
        auto_update_arns=services.settings.AUTO_UPDATE_ARNS,
    )


@router.get("", response_model=APIResponse[CatalogInfo])
async def catalog_info(services: PipelineServices = Depends(get_services)):
    """ArNS name and wallet configuration"""
    return APIResponse(response=_catalog_info(services))


@router.get("/balance", response_model=APIResponse[WalletBalance])
async def wallet_balance(services: PipelineServices = Depends(get_services)):
    """Balance of the checkpoint wallet"""
    wallet = _wallet(services)
    if wallet is None:
        return error_response(404, "Wallet not configured")

    try:
        balance = await wallet.get_balance()
    except Exception as e:
        logger.exception("Failed to get wallet balance")
        return error_response(500, "Failed to get wallet balance", message=str(e))

    return APIResponse(response=WalletBalance(address=wallet.address, balance=balance))


@router.get("/validate")
async def validate_configuration(services: PipelineServices = Depends(get_services)):
    """Readiness checks for checkpoint deployment"""
    info = _catalog_info(services)
    wallet = _wallet(services)

    balance = None
    if wallet is not None:
        try:
            balance = await wallet.get_balance()
        except Exception as e:
            logger.warning(f"Could not fetch wallet balance: {e}")

    validation = {
        "wallet_configured": info.wallet_loaded,
        "wallet_address": info.wallet_address,
        "arns_name": info.arns_name,
        "arweave_connection": info.arweave_host != "not configured",
        "sufficient_balance": balance is not None and balance > MIN_DEPLOY_BALANCE,
    }
    validation["ready_for_deployment"] = (
        validation["wallet_configured"]
        and validation["arweave_connection"]
        and validation["sufficient_balance"]
    )

    if validation["ready_for_deployment"]:
        recommendations = ["Configuration is valid for deployment"]
    else:
        recommendations = []
        if not validation["wallet_configured"]:
            recommendations.append("Configure wallet at ARWEAVE_WALLET_PATH")
        if not validation["arweave_connection"]:
            recommendations.append("Check Arweave connection settings")
        if not validation["sufficient_balance"]:
            recommendations.append("Insufficient AR balance for deployment")

    return {
        "ok": True,
        "response": {
            "validation": validation,
            "balance": balance,
            "recommendations": recommendations,
        }
    }


@router.get("/history")
async def checkpoint_history(
    limit: int = Query(10, ge=1, le=100, description="Number of runs to return"),
    services: PipelineServices = Depends(get_services)
):
    """Recent checkpoint runs, newest first"""
    try:
        runs = await services.history.recent(limit)
        last = await services.history.last_success()
    except Exception as e:
        logger.exception("Failed to get checkpoint history")
        return error_response(500, "Failed to get checkpoint history", message=str(e))

    return {
        "ok": True,
        "response": {
            "deployments": [
                CheckpointRunSummary.model_validate(run).model_dump(mode="json")
                for run in runs
            ],
            "total_deployments": len(runs),
            "last_deployment": (
                CheckpointRunSummary.model_validate(last).model_dump(mode="json") if last else None
            ),
        }
    }
