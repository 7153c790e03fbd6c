"""
Shared Expense Splitter - FastAPI Web Backend

This module serves the JSON API of the expense splitter using FastAPI.

Features:
    - RESTful API for managing ledgers, participants, and expenses
    - Balance and settlement calculations
    - Analytics and transparency reports
    - JSON export/import of whole ledgers

Endpoints:
    GET    /health                                    - Health check
    POST   /ledgers                                   - Create a new ledger
    GET    /ledgers/{ledger_id}                       - Get a ledger
    DELETE /ledgers/{ledger_id}                       - Delete a ledger
    POST   /ledgers/{ledger_id}/participants          - Add participant
    DELETE /ledgers/{ledger_id}/participants/{pid}    - Remove participant (cascades)
    POST   /ledgers/{ledger_id}/expenses              - Add expense
    DELETE /ledgers/{ledger_id}/expenses/{eid}        - Delete expense
    PUT    /ledgers/{ledger_id}/currency              - Change currency
    POST   /ledgers/{ledger_id}/reset                 - Remove everything
    POST   /ledgers/{ledger_id}/example               - Load sample data
    GET    /ledgers/{ledger_id}/calculate             - Balances and settlements
    GET    /ledgers/{ledger_id}/export                - Download ledger JSON
    POST   /ledgers/{ledger_id}/import                - Replace ledger from JSON

Usage:
    uvicorn expense_splitter.main:app --reload
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from expense_splitter.analytics import generate_analytics
from expense_splitter.config import configure_logging
from expense_splitter.expenses import add_expense, delete_expense
from expense_splitter.import_export import LedgerImportError, import_ledger, ledger_to_wire
from expense_splitter.ledger import (
    calculate_results,
    empty_ledger,
    example_ledger,
    set_currency,
)
from expense_splitter.participants import add_participant, remove_participant
from expense_splitter.store import get_store
from expense_splitter.utils import explain_all_participants


logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models for Request/Response Validation
# =============================================================================

class LedgerCreate(BaseModel):
    """Request model for creating a new ledger."""
    ledger_id: Optional[str] = Field(
        None, pattern=r"^[A-Za-z0-9_-]{1,64}$", description="Optional ledger ID"
    )
    currency_code: Optional[str] = Field(None, description="Currency code (default from settings)")


class LedgerCreated(BaseModel):
    """Response model for ledger creation."""
    ledger_id: str
    message: str


class ParticipantCreate(BaseModel):
    """Request model for adding a participant."""
    name: str = Field(..., min_length=1, description="Participant name")


class ParticipantResponse(BaseModel):
    """Response model for participant data."""
    participant_id: str
    name: str


class ExpenseCreate(BaseModel):
    """Request model for adding an expense."""
    description: str = Field(..., min_length=1, description="What the money was spent on")
    amount: float = Field(..., gt=0, allow_inf_nan=False, description="Expense amount (must be > 0)")
    payer_id: str = Field(..., min_length=1, description="Participant ID of payer")
    participant_ids: list[str] = Field(..., min_length=1, description="Participant IDs sharing the cost")
    date: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Expense date (YYYY-MM-DD)")


class ExpenseResponse(BaseModel):
    """Response model for expense data."""
    expense_id: str
    description: str
    amount: float
    payer_id: str
    participant_ids: list[str]
    date: str


class CurrencyUpdate(BaseModel):
    """Request model for changing the ledger currency."""
    currency_code: str = Field(..., min_length=1)


class CalculateResponse(BaseModel):
    """Response model for calculation results."""
    currency_code: str
    balances: dict[str, float]
    settlements: list
    analytics: dict
    warnings: list
    explanations: list


# =============================================================================
# FastAPI Application
# =============================================================================

configure_logging()

app = FastAPI(
    title="Shared Expense Splitter",
    description="Split shared expenses and settle up with as few transfers as possible",
    version="1.0.0"
)


# =============================================================================
# Helper Functions
# =============================================================================

def get_ledger_store():
    """Dependency returning the configured ledger store."""
    try:
        return get_store()
    except RuntimeError as e:
        raise HTTPException(status_code=503, detail=str(e))


def _generate_ledger_id() -> str:
    """
    Generate a unique ledger ID.

    Format: ledger_{short_uuid}
    """
    return f"ledger_{uuid.uuid4().hex[:8]}"


def _http_error(e: Exception) -> HTTPException:
    """Map a domain exception to the HTTP error returned to the client."""
    if isinstance(e, KeyError):
        return HTTPException(status_code=404, detail=str(e.args[0]) if e.args else "Not found")
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RuntimeError):
        return HTTPException(status_code=503, detail=str(e))
    logger.exception("Unexpected error")
    return HTTPException(status_code=500, detail=str(e))


def _ledger_response(ledger_id: str, ledger) -> dict:
    """Ledger in the file format, tagged with its ID."""
    data = ledger_to_wire(ledger)
    data["ledgerId"] = ledger_id
    return data


# =============================================================================
# API Endpoints
# =============================================================================

@app.post("/ledgers", response_model=LedgerCreated, status_code=201)
async def create_ledger(ledger_data: LedgerCreate = None, store=Depends(get_ledger_store)):
    """
    Create a new, empty ledger.

    Request flow:
        1. Use the requested ledger_id or generate one
        2. Refuse to overwrite an existing ledger
        3. Save an empty ledger
    """
    try:
        ledger_id = ledger_data.ledger_id if ledger_data and ledger_data.ledger_id else _generate_ledger_id()
        if store.exists(ledger_id):
            raise HTTPException(status_code=409, detail=f"Ledger {ledger_id} already exists")

        ledger = empty_ledger()
        if ledger_data and ledger_data.currency_code:
            ledger = set_currency(ledger, ledger_data.currency_code)
        store.save(ledger_id, ledger)
        logger.info("Created ledger %s", ledger_id)

        return LedgerCreated(ledger_id=ledger_id, message="Ledger created successfully")

    except HTTPException:
        raise
    except Exception as e:
        raise _http_error(e)


@app.get("/ledgers/{ledger_id}")
async def get_ledger(ledger_id: str, store=Depends(get_ledger_store)):
    """Get a ledger's participants, expenses and currency."""
    try:
        return _ledger_response(ledger_id, store.load(ledger_id))
    except Exception as e:
        raise _http_error(e)


@app.delete("/ledgers/{ledger_id}", status_code=204)
async def remove_ledger(ledger_id: str, store=Depends(get_ledger_store)):
    """Delete a ledger."""
    try:
        store.delete(ledger_id)
    except Exception as e:
        raise _http_error(e)


@app.post("/ledgers/{ledger_id}/participants", response_model=ParticipantResponse, status_code=201)
async def add_ledger_participant(
    ledger_id: str,
    participant_data: ParticipantCreate,
    store=Depends(get_ledger_store)
):
    """
    Add a participant to a ledger.

    Request flow:
        1. Validate input using Pydantic model
        2. Call add_participant() from participants.py
        3. Save the ledger and return the created participant
    """
    try:
        ledger, participant = add_participant(store.load(ledger_id), participant_data.name)
        store.save(ledger_id, ledger)

        return ParticipantResponse(
            participant_id=participant.participant_id,
            name=participant.name
        )

    except Exception as e:
        raise _http_error(e)


@app.delete("/ledgers/{ledger_id}/participants/{participant_id}")
async def remove_ledger_participant(ledger_id: str, participant_id: str, store=Depends(get_ledger_store)):
    """
    Remove a participant.

    Their expenses are deleted and they are dropped from every other expense.
    """
    try:
        ledger = remove_participant(store.load(ledger_id), participant_id)
        store.save(ledger_id, ledger)
        return _ledger_response(ledger_id, ledger)
    except Exception as e:
        raise _http_error(e)


@app.post("/ledgers/{ledger_id}/expenses", response_model=ExpenseResponse, status_code=201)
async def add_ledger_expense(ledger_id: str, expense_data: ExpenseCreate, store=Depends(get_ledger_store)):
    """
    Add an expense to a ledger.

    Request flow:
        1. Validate input using Pydantic model
        2. Call add_expense() from expenses.py
        3. Save the ledger and return the created expense
    """
    try:
        ledger, expense = add_expense(
            store.load(ledger_id),
            description=expense_data.description,
            amount=expense_data.amount,
            payer_id=expense_data.payer_id,
            participant_ids=expense_data.participant_ids,
            date=expense_data.date
        )
        store.save(ledger_id, ledger)

        return ExpenseResponse(**expense.to_dict())

    except Exception as e:
        raise _http_error(e)


@app.delete("/ledgers/{ledger_id}/expenses/{expense_id}")
async def delete_ledger_expense(ledger_id: str, expense_id: str, store=Depends(get_ledger_store)):
    """Delete an expense."""
    try:
        ledger = delete_expense(store.load(ledger_id), expense_id)
        store.save(ledger_id, ledger)
        return _ledger_response(ledger_id, ledger)
    except Exception as e:
        raise _http_error(e)


@app.put("/ledgers/{ledger_id}/currency")
async def update_ledger_currency(ledger_id: str, currency_data: CurrencyUpdate, store=Depends(get_ledger_store)):
    """Change the currency a ledger is recorded in (amounts are not converted)."""
    try:
        ledger = set_currency(store.load(ledger_id), currency_data.currency_code)
        store.save(ledger_id, ledger)
        return _ledger_response(ledger_id, ledger)
    except Exception as e:
        raise _http_error(e)


@app.post("/ledgers/{ledger_id}/reset")
async def reset_ledger(ledger_id: str, store=Depends(get_ledger_store)):
    """Remove every participant and expense from a ledger."""
    try:
        store.load(ledger_id)
        ledger = empty_ledger()
        store.save(ledger_id, ledger)
        logger.info("Reset ledger %s", ledger_id)
        return _ledger_response(ledger_id, ledger)
    except Exception as e:
        raise _http_error(e)


@app.post("/ledgers/{ledger_id}/example")
async def load_example_ledger(ledger_id: str, store=Depends(get_ledger_store)):
    """Replace a ledger's contents with the sample dataset."""
    try:
        store.load(ledger_id)
        ledger = example_ledger()
        store.save(ledger_id, ledger)
        return _ledger_response(ledger_id, ledger)
    except Exception as e:
        raise _http_error(e)


@app.get("/ledgers/{ledger_id}/calculate", response_model=CalculateResponse)
async def calculate_ledger_results(ledger_id: str, store=Depends(get_ledger_store)):
    """
    Calculate all results for a ledger.

    Request flow:
        1. Load the ledger
        2. Calculate balances (splitter.py)
        3. Optimize settlements (settlement.py)
        4. Generate analytics (analytics.py)
        5. Generate explanations (utils.py)
        6. Return complete results (nothing derived is stored)
    """
    try:
        ledger = store.load(ledger_id)
        participants = ledger.participant_dicts()
        expenses = ledger.expense_dicts()

        balances, settlements = calculate_results(ledger)
        analytics_result = generate_analytics(participants, expenses)
        explanations = explain_all_participants(participants, expenses, balances)

        return CalculateResponse(
            currency_code=ledger.currency_code,
            balances=balances,
            settlements=settlements,
            analytics=analytics_result["analytics"],
            warnings=analytics_result["warnings"],
            explanations=explanations
        )

    except Exception as e:
        raise _http_error(e)


@app.get("/ledgers/{ledger_id}/export")
async def export_ledger_file(ledger_id: str, store=Depends(get_ledger_store)):
    """Download a ledger in the JSON file format."""
    try:
        ledger = store.load(ledger_id)
    except Exception as e:
        raise _http_error(e)

    return JSONResponse(
        content=ledger_to_wire(ledger),
        headers={"Content-Disposition": f'attachment; filename="{ledger_id}.json"'}
    )


@app.post("/ledgers/{ledger_id}/import")
async def import_ledger_file(ledger_id: str, request: Request, store=Depends(get_ledger_store)):
    """
    Replace a ledger with the contents of a JSON file.

    The body must be a ledger in the export format. A malformed file is
    rejected with 400 and the stored ledger is left untouched.
    """
    body = await request.body()
    try:
        ledger = import_ledger(body, source=f"API import into {ledger_id}")
        store.save(ledger_id, ledger)
        return _ledger_response(ledger_id, ledger)
    except LedgerImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise _http_error(e)


# =============================================================================
# Health Check Endpoint
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint to verify API is running."""
    return {"status": "healthy", "service": "Shared Expense Splitter"}


# =============================================================================
# Run with: python -m expense_splitter.main
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("expense_splitter.main:app", host="127.0.0.1", port=8000, reload=True)
