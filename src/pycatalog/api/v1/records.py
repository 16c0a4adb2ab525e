"""
Record endpoints.

Derived attributes are computed from the active formulas before a record
is stored.
"""

from fastapi import APIRouter, status

from pycatalog.api.deps import RecordServiceDep
from pycatalog.schemas.record import RecordCreate, RecordResponse

router = APIRouter()


@router.post(
    "",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_record(
    record_data: RecordCreate,
    record_service: RecordServiceDep,
) -> RecordResponse:
    """
    Create a record.

    Blank form values are stored as null. A formula that fails for this
    record stores null for its field; the record is still created.
    """
    return await record_service.create_record(record_data.data)


@router.post("/preview", response_model=RecordResponse)
async def preview_record(
    record_data: RecordCreate,
    record_service: RecordServiceDep,
) -> RecordResponse:
    """Show the derived attributes a record would get, without saving it."""
    return await record_service.preview_record(record_data.data)
