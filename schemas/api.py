"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Generic, TypeVar
from datetime import datetime

from models.base import CheckpointStatus, CheckpointTrigger

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """Success envelope shared by every endpoint"""
    ok: bool = True
    response: T


class ErrorResponse(BaseModel):
    """Failure envelope; clients branch on ok == False"""
    ok: bool = False
    error: str
    message: Optional[str] = None
    details: Optional[List[Dict[str, Any]]] = None
    stack: Optional[str] = None
    available_tables: Optional[List[str]] = None

    class Config:
        json_schema_extra = {
            "example": {
                "ok": False,
                "error": "Invalid transaction format",
                "details": [
                    {"path": "data_size", "message": "Input should be greater than or equal to 0", "received": -1}
                ]
            }
        }


# ============================================================================
# Table Schemas
# ============================================================================

class TableStats(BaseModel):
    """Buffer and file facts for one table"""
    buffer_count: int = 0
    rows_flushed: int = 0
    file_size: int = 0
    row_count: int = 0
    last_modified: Optional[datetime] = None
    file_exists: bool = False


class TransactionAck(BaseModel):
    message: str = "Transaction processed successfully"
    transaction_id: str
    block_height: int
    table: str


class BlockAck(BaseModel):
    message: str = "Block processed"
    block_height: int
    transactions_processed: int
    transactions_failed: int
    total_transactions: int


class FlushResponse(BaseModel):
    message: str
    tables: Dict[str, TableStats]
    results: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    failed_tables: List[str] = Field(default_factory=list)


class CheckpointResponse(BaseModel):
    message: str
    files_count: int
    files: List[str] = Field(default_factory=list)
    catalog_tx_id: Optional[str] = None
    table_tx_ids: Dict[str, str] = Field(default_factory=dict)
    pointer_updated: bool = False


class StatusResponse(BaseModel):
    status: str = "active"
    uptime: float
    memory: Dict[str, Any]
    tables: Dict[str, TableStats]
    endpoints: Dict[str, str]
    checkpoint: Dict[str, Any] = Field(default_factory=dict)


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    status: str = Field("healthy", description="healthy or degraded")
    timestamp: datetime
    uptime: float
    memory: Dict[str, Any]
    tables: Dict[str, TableStats]
    database_connected: bool = True


# ============================================================================
# Catalog Schemas
# ============================================================================

class CatalogInfo(BaseModel):
    arns_name: str
    wallet_loaded: bool
    wallet_address: Optional[str] = None
    arweave_host: str
    auto_update_arns: bool


class WalletBalance(BaseModel):
    address: str
    balance: float = Field(..., description="Balance in AR")


class CheckpointRunSummary(BaseModel):
    run_id: str
    trigger: CheckpointTrigger
    status: CheckpointStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    files_count: int = 0
    catalog_tx_id: Optional[str] = None
    pointer_updated: bool = False
    error_message: Optional[str] = None

    class Config:
        from_attributes = True
        use_enum_values = True
