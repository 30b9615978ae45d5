"""
Pydantic schemas for webhook payloads
"""

from pydantic import BaseModel, Field, ValidationError
from typing import Optional, List, Dict, Any

# Integer columns are stored as Parquet int64
MAX_INT64 = 2 ** 63 - 1


class Tag(BaseModel):
    """Arweave transaction tag"""
    name: str
    value: str


class TransactionEvent(BaseModel):
    """
    A single transaction delivered by the indexer webhook.

    Ensures:
    - Identifiers are strings
    - Sizes, heights, timestamps and fees are non-negative and fit in int64
    """
    transaction_id: str
    owner: str
    target: Optional[str] = None
    tags: List[Tag]
    data_size: int = Field(..., ge=0, le=MAX_INT64)
    block_height: int = Field(..., ge=0, le=MAX_INT64)
    block_timestamp: int = Field(..., ge=0, le=MAX_INT64, description="Block time in epoch seconds")
    fee: Optional[int] = Field(None, ge=0, le=MAX_INT64)

    def tag_map(self) -> Dict[str, str]:
        """Tag name -> value; later duplicates win"""
        return {tag.name: tag.value for tag in self.tags}

    class Config:
        json_schema_extra = {
            "example": {
                "transaction_id": "tx1",
                "owner": "addrA",
                "target": None,
                "tags": [{"name": "App-Name", "value": "ArDrive"}],
                "data_size": 100,
                "block_height": 10,
                "block_timestamp": 1000,
                "fee": 0
            }
        }


class BlockEvent(BaseModel):
    """
    A block with its transactions.

    Entries are kept as raw objects: each one is validated on its own after
    being merged with the block height/timestamp, so a malformed entry only
    fails that entry.
    """
    block_height: int = Field(..., ge=0, le=MAX_INT64)
    block_timestamp: int = Field(..., ge=0, le=MAX_INT64)
    transactions: Optional[List[Any]] = None


def validation_details(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten a pydantic error into {path, message, received} entries"""
    details = []
    for err in error.errors():
        details.append({
            "path": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg"),
            "received": None if err.get("type") == "missing" else err.get("input"),
        })
    return details
