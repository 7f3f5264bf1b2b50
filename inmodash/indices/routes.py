"""API routes for rent indices."""
from fastapi import APIRouter, Depends, HTTPException

from inmodash.auth.dependencies import get_current_user
from inmodash.data import models
from inmodash.indices.client import RentIndexClient, RentIndexError, get_rent_index_client
from inmodash.indices.schemas import (
    AllIndicesResponse,
    CalculateUpdateRequest,
    CalculateUpdateResponse,
    IndexValueResponse,
)

router = APIRouter()


def _bad_gateway(e: RentIndexError) -> HTTPException:
    return HTTPException(status_code=502, detail=str(e))


@router.get("/icl", response_model=IndexValueResponse)
async def get_icl(
    current_user: models.User = Depends(get_current_user),
    client: RentIndexClient = Depends(get_rent_index_client)
):
    """Latest ICL (Indice para Contratos de Locacion) value."""
    try:
        return (await client.get_icl()).to_dict()
    except RentIndexError as e:
        raise _bad_gateway(e)


@router.get("/ipc", response_model=IndexValueResponse)
async def get_ipc(
    current_user: models.User = Depends(get_current_user),
    client: RentIndexClient = Depends(get_rent_index_client)
):
    """Latest IPC (consumer price index) value."""
    try:
        return (await client.get_ipc()).to_dict()
    except RentIndexError as e:
        raise _bad_gateway(e)


@router.get("/all", response_model=AllIndicesResponse)
async def get_all_indices(
    current_user: models.User = Depends(get_current_user),
    client: RentIndexClient = Depends(get_rent_index_client)
):
    try:
        icl = await client.get_icl()
        ipc = await client.get_ipc()
    except RentIndexError as e:
        raise _bad_gateway(e)
    return {"icl": icl.to_dict(), "ipc": ipc.to_dict()}


@router.post("/calculate", response_model=CalculateUpdateResponse)
async def calculate_update(
    request: CalculateUpdateRequest,
    current_user: models.User = Depends(get_current_user),
    client: RentIndexClient = Depends(get_rent_index_client)
):
    """Escalate an amount by the variation between two index values."""
    current_value = request.current_index_value
    if current_value is None:
        if request.index_type is None:
            raise HTTPException(status_code=400, detail="Provide current_index_value or index_type")
        try:
            current_value = (await client.get_index(request.index_type)).value
        except RentIndexError as e:
            raise _bad_gateway(e)

    try:
        result = client.calculate_updated_amount(
            request.base_amount, request.initial_index_value, current_value
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {**result, "current_index_value": current_value}
