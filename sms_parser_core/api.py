from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional, Union

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, load_settings
from .errors import StoreError
from .extractor import TransactionExtractor
from .log import configure_logging
from .persistence import PersistenceBridge
from .pipeline import MessageOutcome, TransactionPipeline
from .raw_message import RawMessage
from .scanner import InboxScanner
from .sources import InMemoryMessageSource
from .stores import SqlTransactionStore

app = FastAPI(
    title="SMS Transaction Parser API",
    description="Recognises bank and payment SMS, extracts transactions and stores them without duplicates.",
    version="1.0.0"
)


class SMSRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[Union[int, str]] = Field(default=None, alias="_id")
    date: int
    address: str = ""
    body: str

    def to_raw_message(self) -> RawMessage:
        return RawMessage(
            body=self.body,
            sender=self.address,
            received_at=datetime.fromtimestamp(self.date / 1000, tz=timezone.utc),
            message_id=str(self.id) if self.id is not None else None,
        )


class ClassifyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[Union[int, str]] = Field(default=None, alias="_id")
    is_transactional: bool
    is_noise: bool


class ParseResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[Union[int, str]] = Field(default=None, alias="_id")
    transaction_id: Optional[str] = None
    type: str
    amount: float
    merchant: Optional[str] = None
    category: str = "other"
    date: str
    account_tail: Optional[str] = None
    channel: Optional[str] = None
    reference: Optional[str] = None
    bank_hint: Optional[str] = None
    balance: Optional[float] = None
    currency: str = "INR"
    status: str = "success"


class SyncRequest(BaseModel):
    owner_id: str = Field(min_length=1)
    messages: List[SMSRequest]
    lookback_days: Optional[int] = Field(default=None, ge=0)


@lru_cache
def get_settings() -> Settings:
    return load_settings()


@lru_cache
def get_pipeline() -> TransactionPipeline:
    return TransactionPipeline(extractor=TransactionExtractor(currency=get_settings().currency))


def get_bridge(settings: Settings = Depends(get_settings)) -> PersistenceBridge:
    return _bridge_for(settings.database_url)


@lru_cache
def _bridge_for(database_url: str) -> PersistenceBridge:
    return PersistenceBridge(SqlTransactionStore(database_url))


def format_parsed_txn(request: SMSRequest, recognition) -> Dict[str, Any]:
    txn = recognition.transaction
    result = txn.to_dict()
    result.pop("raw", None)
    result.pop("timestamp", None)
    result.pop("sender", None)
    result["transaction_id"] = result.pop("id")
    result["_id"] = request.id
    result["status"] = "success"
    return result


@app.post("/classify", response_model=ClassifyResponse)
async def classify_sms(request: SMSRequest, pipeline: TransactionPipeline = Depends(get_pipeline)):
    """
    Report whether an SMS is a transaction notification or OTP/promotional noise.
    """
    classification = pipeline.classifier.classify(request.body, request.address)
    return {
        "_id": request.id,
        "is_transactional": classification.is_transactional,
        "is_noise": classification.is_noise,
    }


@app.post("/parse", response_model=ParseResponse)
async def parse_sms(request: SMSRequest, pipeline: TransactionPipeline = Depends(get_pipeline)):
    """
    Parse a single SMS into a transaction without storing it.
    """
    recognition = pipeline.recognize(request.to_raw_message())
    if recognition.outcome in (MessageOutcome.NOISE, MessageOutcome.IRRELEVANT):
        raise HTTPException(status_code=422, detail="Message is not a transaction notification.")
    if recognition.outcome == MessageOutcome.UNPARSED:
        raise HTTPException(status_code=422, detail="Could not extract transaction data from the SMS body.")

    return format_parsed_txn(request, recognition)


@app.post("/parse-batch", response_model=List[dict])
async def parse_sms_batch(requests: List[SMSRequest], pipeline: TransactionPipeline = Depends(get_pipeline)):
    """
    Parse multiple SMS messages in one request. Each entry reports its own status.
    """
    results = []
    for request in requests:
        recognition = pipeline.recognize(request.to_raw_message())
        if recognition.outcome == MessageOutcome.PARSED:
            results.append(format_parsed_txn(request, recognition))
            continue

        results.append({
            "_id": request.id,
            "status": recognition.outcome.value,
            "message": "Could not extract transaction data." if recognition.outcome == MessageOutcome.UNPARSED
            else "Not a transaction notification.",
        })

    return results


@app.post("/sync")
def sync_messages(
    request: SyncRequest,
    bridge: PersistenceBridge = Depends(get_bridge),
    settings: Settings = Depends(get_settings),
    pipeline: TransactionPipeline = Depends(get_pipeline),
):
    """
    Run an inbox scan over the posted messages and persist new transactions for owner_id.
    """
    source = InMemoryMessageSource([m.to_raw_message() for m in request.messages])
    scanner = InboxScanner(source, bridge=bridge, pipeline=pipeline, settings=settings)
    result = scanner.scan(request.owner_id, lookback_days=request.lookback_days)
    if not result.success:
        raise HTTPException(status_code=500, detail=result.message)
    return result.to_dict()


@app.get("/transactions/{owner_id}")
def list_transactions(owner_id: str, bridge: PersistenceBridge = Depends(get_bridge)):
    try:
        return bridge.store.list_transactions(owner_id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.delete("/transactions/{transaction_id}")
def delete_transaction(transaction_id: str, bridge: PersistenceBridge = Depends(get_bridge)):
    try:
        deleted = bridge.store.delete(transaction_id)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Transaction not found: {transaction_id}")
    return {"status": "deleted", "id": transaction_id}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


if __name__ == "__main__":
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    uvicorn.run(app, host="0.0.0.0", port=8000)
