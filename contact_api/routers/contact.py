import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..config import Settings
from ..db import DatabaseUnavailableError
from ..dependencies import (
    get_client_ip,
    get_contact_repository,
    get_settings,
    get_submission_body,
    require_admin_key,
)
from ..input_sanitizer import sanitizer
from ..limiter import RATE_LIMIT, limiter
from ..schemas import validate_contact
from ..services.contact_repository import ContactRepository, ContactStoreError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["contact"])

INVALID_DATA_MESSAGE = "Dados inválidos"
SUCCESS_MESSAGE = "Mensagem enviada com sucesso! Retornaremos em breve."
OFFLINE_SUCCESS_MESSAGE = "Mensagem recebida! Entraremos em contato em breve."
OFFLINE_NOTE = "Sistema temporariamente offline, mas sua mensagem foi registrada."
UNAVAILABLE_MESSAGE = "Serviço temporariamente indisponível. Tente novamente mais tarde."
SAVE_FAILED_MESSAGE = "Erro ao processar sua mensagem. Tente novamente mais tarde."
LIST_FAILED_MESSAGE = "Erro ao buscar contatos."


@router.post("/contact")
@limiter.limit(RATE_LIMIT)
async def submit_contact_form(
    request: Request,
    payload: Dict[str, Any] = Depends(get_submission_body),
    repository: ContactRepository = Depends(get_contact_repository),
    settings: Settings = Depends(get_settings),
):
    """Sanitize, validate and store a contact form submission"""
    form, errors = validate_contact(sanitizer.sanitize_dict(payload))
    if errors:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": INVALID_DATA_MESSAGE, "details": errors},
        )

    try:
        await repository.insert(form, ip_address=get_client_ip(request))
    except DatabaseUnavailableError:
        if settings.ACCEPT_WHEN_DB_OFFLINE:
            logger.warning(f"📝 Contact received without database: {form.email}")
            return {
                "message": OFFLINE_SUCCESS_MESSAGE,
                "success": True,
                "note": OFFLINE_NOTE,
            }
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=UNAVAILABLE_MESSAGE,
        )
    except ContactStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=SAVE_FAILED_MESSAGE,
        )

    return {"message": SUCCESS_MESSAGE, "success": True}


@router.get("/contacts", dependencies=[Depends(require_admin_key)])
@limiter.limit(RATE_LIMIT)
async def list_contacts(
    request: Request,
    repository: ContactRepository = Depends(get_contact_repository),
) -> List[Dict[str, Any]]:
    """All contact submissions, newest first"""
    try:
        return await repository.list_all()
    except DatabaseUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=UNAVAILABLE_MESSAGE,
        )
    except ContactStoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=LIST_FAILED_MESSAGE,
        )
